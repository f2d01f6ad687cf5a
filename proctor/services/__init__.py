"""
Services Package
"""
from proctor.services.scoring_service import ScoringService
from proctor.services.quiz_catalog import QuizCatalog
from proctor.services.activation_registry import TestActivationRegistry, EligibleTest
from proctor.services.violation_ledger import ViolationLedger
from proctor.services.result_store import ResultStore
from proctor.services.student_directory import StudentDirectory, StudentProfile
from proctor.services.capabilities import SystemClock, DisplayMode, NullDisplayMode
from proctor.services.session_engine import (
    SessionEngine,
    SessionState,
    StartStatus,
    ExamSession,
)

__all__ = [
    'ScoringService',
    'QuizCatalog',
    'TestActivationRegistry',
    'EligibleTest',
    'ViolationLedger',
    'ResultStore',
    'StudentDirectory',
    'StudentProfile',
    'SystemClock',
    'DisplayMode',
    'NullDisplayMode',
    'SessionEngine',
    'SessionState',
    'StartStatus',
    'ExamSession',
    'build_engine',
]


def build_engine(config, clock=None, display=None):
    """Wire the stores into a SessionEngine using app config tunables"""
    catalog = QuizCatalog()
    return SessionEngine(
        catalog=catalog,
        activations=TestActivationRegistry(catalog),
        results=ResultStore(),
        violations=ViolationLedger(),
        students=StudentDirectory(),
        clock=clock,
        display=display,
        violation_limit=config.get('VIOLATION_LIMIT', 3),
        warning_seconds=config.get('WARNING_DISMISS_SECONDS', 10),
        confirm_timeout=config.get('CONFIRM_TIMEOUT_SECONDS', 600),
        retry_window=config.get('RETRY_WINDOW_SECONDS', 86400),
    )
