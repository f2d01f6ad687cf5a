"""
Question Model
Multiple-choice question with four option slots
"""
from proctor.extensions import db


class Question(db.Model):
    """Question model"""
    __tablename__ = 'question'

    pk = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Caller-supplied; unique only within its quiz
    id = db.Column(db.String(64), nullable=False)
    quiz_id = db.Column(
        db.String(64),
        db.ForeignKey('quiz_template.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    order = db.Column(db.Integer, default=0)
    text = db.Column(db.Text, nullable=False)

    # Always four slots; blank slots are stored as ''
    options = db.Column(db.JSON, nullable=False)
    correct_option_index = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'id', name='unique_question_per_quiz'),
    )

    def __repr__(self):
        return f'<Question {self.id}: {self.text[:50]}...>'

    def to_dict(self, include_answer=False):
        data = {
            'id': self.id,
            'text': self.text,
            'options': list(self.options),
        }
        if include_answer:
            data['correct_option_index'] = self.correct_option_index
        return data
