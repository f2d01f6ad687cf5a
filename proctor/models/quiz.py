"""
Quiz Template Model
Immutable question set with target year/semester and time limit
"""
from proctor.extensions import db
from proctor.utils import now_utc


class QuizTemplate(db.Model):
    """Quiz template owned by its creating teacher"""
    __tablename__ = 'quiz_template'

    id = db.Column(db.String(64), primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    created_by = db.Column(db.String(64), nullable=False, index=True)
    college_year = db.Column(db.Integer, nullable=False)
    semester = db.Column(db.Integer, nullable=False)
    time_limit_minutes = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    # Relationships
    questions = db.relationship(
        'Question',
        backref='quiz',
        lazy=True,
        order_by='Question.order',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<QuizTemplate {self.title}>'

    def to_dict(self, include_answers=False):
        return {
            'id': self.id,
            'title': self.title,
            'created_by': self.created_by,
            'college_year': self.college_year,
            'semester': self.semester,
            'time_limit_minutes': self.time_limit_minutes,
            'question_count': len(self.questions),
            'questions': [q.to_dict(include_answers) for q in self.questions],
        }
