"""
Persistence Helpers
Wraps unit-of-work commits so storage failures surface as PersistenceError
"""
from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError

from proctor.errors import PersistenceError
from proctor.extensions import db

logger = logging.getLogger(__name__)


@contextmanager
def persistence(action):
    """
    Run a block of store work and commit it.

    Any SQLAlchemy failure rolls the session back and is re-raised as
    PersistenceError; nothing is partially applied.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to %s: %s", action, exc)
        raise PersistenceError(f"Failed to {action}") from exc
