"""
Test Activation Model
A teacher's rollout of a quiz template to one department/division cohort
"""
from proctor.extensions import db
from proctor.utils import now_utc, isoformat


class TestActivation(db.Model):
    """Activation of a quiz for a cohort"""
    __tablename__ = 'test_activation'
    __test__ = False  # not a pytest class

    # Surrogate key keeps registry insertion order
    seq = db.Column(db.Integer, primary_key=True, autoincrement=True)
    id = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # Plain column: deleting a template leaves the activation orphaned
    quiz_id = db.Column(db.String(64), nullable=False, index=True)
    quiz_title = db.Column(db.String(200))
    assigned_by = db.Column(db.String(64), nullable=False, index=True)
    department = db.Column(db.String(100), nullable=False)
    division = db.Column(db.String(20), nullable=False)
    assigned_at = db.Column(db.DateTime(timezone=True), default=now_utc)
    is_active = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.Index('ix_activation_cohort', 'department', 'division'),
    )

    def __repr__(self):
        state = 'active' if self.is_active else 'inactive'
        return f'<TestActivation {self.quiz_title} -> {self.department}/{self.division} {state}>'

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'quiz_title': self.quiz_title,
            'assigned_by': self.assigned_by,
            'department': self.department,
            'division': self.division,
            'assigned_at': isoformat(self.assigned_at),
            'is_active': self.is_active,
        }
