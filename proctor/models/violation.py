"""
Violation Record Model
Append-only integrity events
"""
from proctor.extensions import db
from proctor.utils import now_utc, isoformat, local_isoformat


class ViolationRecord(db.Model):
    """Loss of foreground focus during an active session"""
    __tablename__ = 'violation_record'

    id = db.Column(db.String(64), primary_key=True)
    quiz_id = db.Column(db.String(64), nullable=False, index=True)
    student_name = db.Column(db.String(150), nullable=False)
    test_name = db.Column(db.String(200), nullable=False, index=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc)

    def __repr__(self):
        return f'<ViolationRecord {self.student_name} in {self.test_name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'student_name': self.student_name,
            'test_name': self.test_name,
            'timestamp': isoformat(self.timestamp),
            'timestamp_local': local_isoformat(self.timestamp),
        }
