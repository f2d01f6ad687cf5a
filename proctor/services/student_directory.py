"""
Student Directory
Read-only profile lookup for eligibility and result snapshots
"""
from dataclasses import dataclass

from proctor.errors import RecordNotFound
from proctor.extensions import db
from proctor.models import User
from proctor.services.persistence import persistence


@dataclass(frozen=True)
class StudentProfile:
    """Academic context of one student at lookup time"""

    id: str
    full_name: str
    department: str
    division: str = None
    prn: str = None
    college_year: int = None
    semester: int = None

    @classmethod
    def from_user(cls, user):
        return cls(
            id=user.id,
            full_name=user.full_name,
            department=user.department,
            division=user.division,
            prn=user.prn,
            college_year=user.college_year,
            semester=user.semester,
        )

    def snapshot(self):
        """Fields copied into a result at submission time"""
        return {
            'prn': self.prn,
            'division': self.division,
            'department': self.department,
            'college_year': self.college_year,
            'semester': self.semester,
        }


class StudentDirectory:
    def get_profile(self, student_id):
        with persistence('load student profile'):
            user = db.session.get(User, str(student_id))
            if user is None or user.role != 'student':
                raise RecordNotFound(f"Student {student_id} not found")
            return StudentProfile.from_user(user)
