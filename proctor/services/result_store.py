"""
Result Store
Final scored outcomes; the unique (student, quiz) constraint is the
single-attempt guarantee
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from proctor.errors import AlreadyAttemptedError, PersistenceError, ValidationError
from proctor.extensions import db
from proctor.models import QuizResult, SubmissionType
from proctor.services.persistence import persistence
from proctor.utils import generate_id, now_utc, subtract_months, as_utc

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ('prn', 'division', 'department', 'college_year', 'semester')
SUBMISSION_TYPES = {t.value for t in SubmissionType}


class ResultStore:
    """Create-only result storage with attempt lookup and age pruning"""

    def create(self, payload):
        """
        The only write.

        Re-sending a payload with an existing result id returns the stored
        row. A different result for the same (student, quiz) pair raises
        AlreadyAttemptedError carrying the prior result.
        """
        fields = self._clean(payload)

        with persistence('look up result'):
            same = db.session.get(QuizResult, fields['id'])
        if same is not None and same.student_id == fields['student_id'] \
                and same.quiz_id == fields['quiz_id']:
            return same

        try:
            result = QuizResult(**fields)
            db.session.add(result)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            prior = self.get(fields['student_id'], fields['quiz_id'])
            if prior is not None:
                logger.warning(
                    "Rejected second result for student %s on quiz %s",
                    fields['student_id'], fields['quiz_id']
                )
                raise AlreadyAttemptedError(prior) from exc
            logger.error("Failed to create result %s: %s", fields['id'], exc)
            raise PersistenceError("Failed to create result") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Failed to create result %s: %s", fields['id'], exc)
            raise PersistenceError("Failed to create result") from exc

        logger.info(
            "Stored result %s: %s scored %d/%d (%s)",
            result.id, result.student_name, result.score,
            result.total_questions, result.submission_type
        )
        return result

    @staticmethod
    def _clean(payload):
        for key in ('quiz_id', 'quiz_title', 'student_id', 'student_name'):
            if not payload.get(key):
                raise ValidationError(f"Result is missing '{key}'")

        score = payload.get('score')
        total = payload.get('total_questions')
        if not isinstance(score, int) or not isinstance(total, int) or score < 0 or total < score:
            raise ValidationError("Result score must be between 0 and total_questions")

        submission_type = payload.get('submission_type', SubmissionType.NORMAL)
        submission_type = getattr(submission_type, 'value', submission_type)
        if submission_type not in SUBMISSION_TYPES:
            raise ValidationError(f"Unknown submission type {submission_type!r}")

        fields = {
            'id': payload.get('id') or generate_id('r'),
            'quiz_id': payload['quiz_id'],
            'quiz_title': payload['quiz_title'],
            'student_id': str(payload['student_id']),
            'student_name': payload['student_name'],
            'score': score,
            'total_questions': total,
            'submitted_at': payload.get('submitted_at') or now_utc(),
            'submission_type': submission_type,
        }
        for key in SNAPSHOT_FIELDS:
            fields[key] = payload.get(key)
        return fields

    def get(self, student_id, quiz_id):
        """Attempt-gate lookup; None when the student has not attempted"""
        with persistence('look up result'):
            return QuizResult.query.filter_by(
                student_id=str(student_id),
                quiz_id=quiz_id
            ).first()

    def list(self, department=None, division=None, college_year=None, semester=None,
             quiz_ids=None, student_id=None):
        with persistence('list results'):
            query = QuizResult.query
            if department is not None:
                query = query.filter_by(department=department)
            if division is not None:
                query = query.filter_by(division=division)
            if college_year is not None:
                query = query.filter_by(college_year=college_year)
            if semester is not None:
                query = query.filter_by(semester=semester)
            if quiz_ids is not None:
                query = query.filter(QuizResult.quiz_id.in_(list(quiz_ids)))
            if student_id is not None:
                query = query.filter_by(student_id=str(student_id))
            return query.order_by(QuizResult.submitted_at.desc(), QuizResult.id).all()

    def prune_older_than(self, cutoff_months, now=None):
        """
        Delete results submitted before now minus `cutoff_months`.
        Returns the number deleted.
        """
        if isinstance(cutoff_months, bool) or not isinstance(cutoff_months, int) or cutoff_months <= 0:
            raise ValidationError("Months required")

        cutoff = subtract_months(as_utc(now or now_utc()), cutoff_months)
        with persistence('prune results'):
            deleted = (
                QuizResult.query
                .filter(QuizResult.submitted_at < cutoff)
                .delete(synchronize_session=False)
            )

        logger.info("Pruned %d results older than %d months (before %s)",
                    deleted, cutoff_months, cutoff.isoformat())
        return deleted
