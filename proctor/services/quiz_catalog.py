"""
Quiz Catalog
Stores immutable quiz templates
"""
import logging

from proctor.errors import ValidationError
from proctor.models import QuizTemplate, Question
from proctor.services.persistence import persistence
from proctor.utils import generate_id

logger = logging.getLogger(__name__)

OPTION_SLOTS = 4
MIN_FILLED_OPTIONS = 2
COLLEGE_YEARS = range(1, 5)
SEMESTERS = range(1, 9)


def _require_int(payload, key, allowed=None, minimum=None):
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"'{key}' must be an integer")
    if allowed is not None and value not in allowed:
        raise ValidationError(f"'{key}' must be between {allowed.start} and {allowed.stop - 1}")
    if minimum is not None and value < minimum:
        raise ValidationError(f"'{key}' must be at least {minimum}")
    return value


def _clean_question(raw, position):
    """Validate one question payload and return normalized column values"""
    if not isinstance(raw, dict):
        raise ValidationError(f"Question {position} is malformed")

    text = (raw.get('text') or '').strip()
    if not text:
        raise ValidationError(f"Question {position} has no text")

    options = raw.get('options')
    if not isinstance(options, (list, tuple)) or len(options) > OPTION_SLOTS:
        raise ValidationError(f"Question {position} must have at most {OPTION_SLOTS} options")
    if any(opt is not None and not isinstance(opt, str) for opt in options):
        raise ValidationError(f"Question {position} options must be strings")

    options = [(opt or '').strip() for opt in options]
    options += [''] * (OPTION_SLOTS - len(options))
    if sum(1 for opt in options if opt) < MIN_FILLED_OPTIONS:
        raise ValidationError(
            f"Question {position} needs at least {MIN_FILLED_OPTIONS} non-empty options"
        )

    correct = raw.get('correct_option_index')
    if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < OPTION_SLOTS:
        raise ValidationError(f"Question {position} correct option must be 0-{OPTION_SLOTS - 1}")

    return {
        'id': raw.get('id') or generate_id('q'),
        'text': text,
        'options': options,
        'correct_option_index': correct,
    }


class QuizCatalog:
    """Create, list and delete quiz templates"""

    @staticmethod
    def validate(payload):
        """
        Check a template payload before anything is written.

        Returns the normalized template fields and question rows. Raises
        ValidationError on empty question sets, questions with fewer than two
        filled options, or a non-positive time limit.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Template payload must be an object")

        title = (payload.get('title') or '').strip()
        if not title:
            raise ValidationError("Quiz title is required")
        created_by = payload.get('created_by')
        if not created_by:
            raise ValidationError("Template creator is required")

        time_limit = _require_int(payload, 'time_limit_minutes', minimum=1)
        college_year = _require_int(payload, 'college_year', allowed=COLLEGE_YEARS)
        semester = _require_int(payload, 'semester', allowed=SEMESTERS)

        raw_questions = payload.get('questions') or []
        if not isinstance(raw_questions, list) or not raw_questions:
            raise ValidationError("A quiz needs at least one question")
        questions = [_clean_question(q, i + 1) for i, q in enumerate(raw_questions)]

        question_ids = [q['id'] for q in questions]
        if len(set(question_ids)) != len(question_ids):
            raise ValidationError("Question ids must be unique within a quiz")

        fields = {
            'id': payload.get('id') or generate_id('qz'),
            'title': title,
            'created_by': str(created_by),
            'college_year': college_year,
            'semester': semester,
            'time_limit_minutes': time_limit,
        }
        return fields, questions

    def create(self, payload):
        fields, questions = self.validate(payload)

        existing = self.get(fields['id'])
        if existing is not None:
            # Retried create with the same identity
            return existing

        with persistence('create quiz template') as session:
            quiz = QuizTemplate(**fields)
            quiz.questions = [
                Question(order=i, **question) for i, question in enumerate(questions)
            ]
            session.add(quiz)

        logger.info("Created quiz template %s (%d questions)", quiz.id, len(questions))
        return quiz

    def get(self, quiz_id):
        if not quiz_id:
            return None
        with persistence('load quiz template') as session:
            return session.get(QuizTemplate, quiz_id)

    def list(self, creator=None, college_year=None, semester=None):
        with persistence('list quiz templates'):
            query = QuizTemplate.query
            if creator is not None:
                query = query.filter_by(created_by=str(creator))
            if college_year is not None:
                query = query.filter_by(college_year=college_year)
            if semester is not None:
                query = query.filter_by(semester=semester)
            return query.order_by(QuizTemplate.created_at, QuizTemplate.id).all()

    def delete(self, quiz_id):
        """Hard delete; activations referencing it are left orphaned"""
        with persistence('delete quiz template') as session:
            quiz = session.get(QuizTemplate, quiz_id)
            if quiz is None:
                return False
            session.delete(quiz)

        logger.info("Deleted quiz template %s", quiz_id)
        return True
