"""
Violation Ledger
Append-only record of integrity events
"""
import logging

from sqlalchemy import func

from proctor.errors import ValidationError
from proctor.models import ViolationRecord
from proctor.services.persistence import persistence
from proctor.utils import generate_id, now_utc

logger = logging.getLogger(__name__)


class ViolationLedger:
    """Violation storage; no update operation"""

    def append(self, quiz_id, student_name, test_name, timestamp=None, violation_id=None):
        """Always succeeds or raises PersistenceError"""
        if not quiz_id or not test_name:
            raise ValidationError("Violation needs a quiz and test name")

        with persistence('record violation') as session:
            record = ViolationRecord(
                id=violation_id or generate_id('v'),
                quiz_id=quiz_id,
                student_name=student_name or 'Unknown Student',
                test_name=test_name,
                timestamp=timestamp or now_utc(),
            )
            session.add(record)
        return record

    def get(self, violation_id):
        with persistence('load violation') as session:
            return session.get(ViolationRecord, violation_id)

    def list_by_test_name(self, test_name=None, test_names=None):
        with persistence('list violations'):
            query = ViolationRecord.query
            if test_name is not None:
                query = query.filter_by(test_name=test_name)
            if test_names is not None:
                query = query.filter(ViolationRecord.test_name.in_(list(test_names)))
            return query.order_by(ViolationRecord.timestamp, ViolationRecord.id).all()

    def summarize_by_test_name(self, test_names=None):
        """(test_name, count) pairs for the 'tests with violations' view"""
        with persistence('summarize violations') as session:
            query = session.query(
                ViolationRecord.test_name,
                func.count(ViolationRecord.id).label('count')
            )
            if test_names is not None:
                query = query.filter(ViolationRecord.test_name.in_(list(test_names)))
            rows = query.group_by(ViolationRecord.test_name).order_by(ViolationRecord.test_name).all()
        return [(row.test_name, int(row.count)) for row in rows]

    def delete_one(self, violation_id):
        with persistence('delete violation'):
            deleted = ViolationRecord.query.filter_by(id=violation_id).delete()
        return deleted > 0

    def delete_all(self):
        """Irreversible; confirmation belongs to the caller"""
        with persistence('delete all violations'):
            deleted = ViolationRecord.query.delete()
        logger.warning("Purged %d violation records", deleted)
        return deleted
