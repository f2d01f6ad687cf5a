"""
Quiz Result Model
Final scored outcome with the student's academic context at submission time
"""
from enum import Enum
from proctor.extensions import db
from proctor.utils import now_utc, isoformat, local_isoformat


class SubmissionType(str, Enum):
    NORMAL = 'NORMAL'
    TIMEOUT = 'TIMEOUT'
    VIOLATION_AUTO_SUBMIT = 'VIOLATION_AUTO_SUBMIT'


class QuizResult(db.Model):
    """Result model"""
    __tablename__ = 'quiz_result'

    id = db.Column(db.String(64), primary_key=True)
    quiz_id = db.Column(db.String(64), nullable=False, index=True)
    quiz_title = db.Column(db.String(200), nullable=False)
    student_id = db.Column(db.String(64), nullable=False, index=True)
    student_name = db.Column(db.String(150), nullable=False)

    # Snapshot fields for reporting
    prn = db.Column(db.String(50))
    division = db.Column(db.String(20))
    department = db.Column(db.String(100))
    college_year = db.Column(db.Integer)
    semester = db.Column(db.Integer)

    score = db.Column(db.Integer, nullable=False)
    total_questions = db.Column(db.Integer, nullable=False)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc, index=True)
    submission_type = db.Column(db.String(32), nullable=False, default=SubmissionType.NORMAL.value)

    __table_args__ = (
        db.UniqueConstraint(
            'student_id', 'quiz_id',
            name='unique_result_per_student_quiz'
        ),
    )

    def __repr__(self):
        return f'<QuizResult {self.student_name}: {self.score}/{self.total_questions}>'

    @property
    def flagged(self):
        """Anything other than a clean manual submission needs review"""
        return self.submission_type != SubmissionType.NORMAL.value

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'quiz_title': self.quiz_title,
            'student_id': self.student_id,
            'student_name': self.student_name,
            'prn': self.prn,
            'division': self.division,
            'department': self.department,
            'college_year': self.college_year,
            'semester': self.semester,
            'score': self.score,
            'total_questions': self.total_questions,
            'submitted_at': isoformat(self.submitted_at),
            'submitted_at_local': local_isoformat(self.submitted_at),
            'submission_type': self.submission_type,
            'flagged': self.flagged,
        }
