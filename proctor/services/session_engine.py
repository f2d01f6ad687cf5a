"""
Session Engine
Per-student exam session state machine:
NOT_STARTED -> CONFIRMING -> ACTIVE -> SUBMITTED

Every ACTIVE session ends in exactly one terminal resolution (manual submit,
timeout or violation auto-submit) which scores the captured answers, stores
one QuizResult with the student's current academic snapshot, releases the
exclusive display and reports the outcome.

A SUBMITTED session whose result could not be stored stays in the engine
until a retry stores it; while it does, the student cannot start the quiz
again.
"""
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock, RLock
import logging
import math

from proctor.errors import (
    AlreadyAttemptedError,
    InvalidTransition,
    PersistenceError,
    RecordNotFound,
    SessionNotFound,
    ValidationError,
)
from proctor.models import SubmissionType
from proctor.services.activation_registry import matches_profile
from proctor.services.capabilities import SystemClock, NullDisplayMode
from proctor.services.scoring_service import ScoringService
from proctor.utils import generate_id, isoformat

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = 'NOT_STARTED'
    CONFIRMING = 'CONFIRMING'
    ACTIVE = 'ACTIVE'
    SUBMITTED = 'SUBMITTED'


class StartStatus(str, Enum):
    CONFIRMING = 'CONFIRMING'
    IN_PROGRESS = 'IN_PROGRESS'
    SUBMISSION_PENDING = 'SUBMISSION_PENDING'
    ALREADY_ATTEMPTED = 'ALREADY_ATTEMPTED'
    NOT_ELIGIBLE = 'NOT_ELIGIBLE'


@dataclass(frozen=True)
class QuestionSnapshot:
    id: str
    correct_option_index: int
    option_count: int


@dataclass(frozen=True)
class QuizSnapshot:
    """Template inputs captured at session start"""

    id: str
    title: str
    time_limit_minutes: int
    questions: tuple

    @classmethod
    def from_template(cls, quiz):
        return cls(
            id=quiz.id,
            title=quiz.title,
            time_limit_minutes=quiz.time_limit_minutes,
            questions=tuple(
                QuestionSnapshot(q.id, q.correct_option_index, len(q.options))
                for q in quiz.questions
            ),
        )

    @property
    def total_seconds(self):
        return self.time_limit_minutes * 60

    def question(self, question_id):
        return next((q for q in self.questions if q.id == question_id), None)


@dataclass
class StartDecision:
    status: StartStatus
    message: str
    session: object = None
    prior_score: int = None
    prior_total: int = None

    def to_dict(self):
        data = {'status': self.status.value, 'message': self.message}
        if self.session is not None:
            data['session'] = self.session.to_dict()
        if self.prior_score is not None:
            data['score'] = self.prior_score
            data['total_questions'] = self.prior_total
        return data


@dataclass
class SubmissionOutcome:
    session_id: str
    submission_type: SubmissionType
    score: int
    total_questions: int
    persisted: bool
    message: str
    result_id: str = None
    already_attempted: bool = False

    def to_dict(self):
        return {
            'session_id': self.session_id,
            'submission_type': self.submission_type.value,
            'score': self.score,
            'total_questions': self.total_questions,
            'persisted': self.persisted,
            'already_attempted': self.already_attempted,
            'result_id': self.result_id,
            'message': self.message,
        }


@dataclass
class ViolationOutcome:
    count: int
    limit: int
    recorded: bool
    warning: bool
    dismiss_after: int = None
    submission: SubmissionOutcome = None

    def to_dict(self):
        return {
            'count': self.count,
            'limit': self.limit,
            'recorded': self.recorded,
            'warning': self.warning,
            'dismiss_after': self.dismiss_after,
            'submission': self.submission.to_dict() if self.submission else None,
        }


@dataclass
class ExamSession:
    """Live, in-memory attempt of one student at one quiz"""

    id: str
    quiz: QuizSnapshot
    activation_id: str
    student: object
    state: SessionState = SessionState.CONFIRMING
    started_at: object = None
    deadline: float = None
    answers: dict = field(default_factory=dict)
    violation_count: int = 0
    warning_until: float = None
    display_held: bool = False
    submission_type: SubmissionType = None
    submitted_at: object = None
    score: int = None
    result_id: str = None
    outcome: SubmissionOutcome = None
    # Monotonic times the session was opened and submitted
    opened_at: float = None
    closed_at: float = None
    lock: object = field(default_factory=RLock, repr=False, compare=False)

    @property
    def student_id(self):
        return self.student.id

    @property
    def is_terminal(self):
        return self.state is SessionState.SUBMITTED

    @property
    def awaiting_retry(self):
        """Submitted, but the result is not stored yet"""
        return self.is_terminal and (self.outcome is None or not self.outcome.persisted)

    def to_dict(self, remaining=None, warning_visible=False):
        return {
            'id': self.id,
            'quiz_id': self.quiz.id,
            'quiz_title': self.quiz.title,
            'activation_id': self.activation_id,
            'student_id': self.student_id,
            'state': self.state.value,
            'time_limit_minutes': self.quiz.time_limit_minutes,
            'total_questions': len(self.quiz.questions),
            'started_at': isoformat(self.started_at),
            'remaining_seconds': remaining,
            'answers': dict(self.answers),
            'violation_count': self.violation_count,
            'warning_visible': warning_visible,
            'awaiting_retry': self.awaiting_retry,
            'outcome': self.outcome.to_dict() if self.outcome else None,
        }


class SessionEngine:
    """
    Drives exam sessions for all students.

    Sessions live in memory keyed by id. The timer is deadline based: the
    remaining time is always recomputed from the monotonic clock, and every
    operation first resolves an overdue session to TIMEOUT.

    `_lock` guards only the session map and is never held across storage
    calls. State changes and store writes for one session happen under that
    session's own lock, so students never wait on each other.
    Lock order: session lock, then map lock.
    """

    def __init__(self, catalog, activations, results, violations, students,
                 clock=None, display=None, violation_limit=3, warning_seconds=10,
                 confirm_timeout=600, retry_window=86400):
        self.catalog = catalog
        self.activations = activations
        self.results = results
        self.violations = violations
        self.students = students
        self.clock = clock or SystemClock()
        self.display = display or NullDisplayMode()
        self.violation_limit = violation_limit
        self.warning_seconds = warning_seconds
        self.confirm_timeout = confirm_timeout
        self.retry_window = retry_window

        self._sessions = {}
        self._lock = Lock()

    # ================= LOOKUP =================

    def get(self, session_id):
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"No live session {session_id}")
        return session

    def find(self, student_id, quiz_id):
        """The session the engine still holds for this student and quiz, if any"""
        with self._lock:
            return self._find(str(student_id), quiz_id)

    def _find(self, student_id, quiz_id):
        for session in self._sessions.values():
            if session.student_id == student_id and session.quiz.id == quiz_id:
                return session
        return None

    def live_sessions(self):
        with self._lock:
            return list(self._sessions.values())

    def available_tests(self, student_id):
        profile = self.students.get_profile(student_id)
        return self.activations.list_eligible(
            profile.department,
            profile.division,
            profile.college_year,
            profile.semester,
        )

    # ================= START =================

    def request_start(self, student_id, activation_id):
        """
        NOT_STARTED -> CONFIRMING.

        The attempt gate runs first: a stored result, or a submission still
        waiting to be stored, blocks the start and no session is created.
        """
        self.reap_stale()

        profile = self.students.get_profile(student_id)
        activation = self.activations.get(activation_id)
        if activation is None:
            return StartDecision(StartStatus.NOT_ELIGIBLE, "Test is not available.")

        prior = self.results.get(profile.id, activation.quiz_id)
        if prior is not None:
            return StartDecision(
                StartStatus.ALREADY_ATTEMPTED,
                "You have already submitted this test. "
                f"Score: {prior.score} / {prior.total_questions}",
                prior_score=prior.score,
                prior_total=prior.total_questions,
            )

        existing = self.find(profile.id, activation.quiz_id)
        if existing is not None and existing.is_terminal:
            return self._pending_decision(existing)

        quiz = self.catalog.get(activation.quiz_id)
        if not matches_profile(activation, quiz, profile):
            return StartDecision(StartStatus.NOT_ELIGIBLE, "Test is not available.")

        session = ExamSession(
            id=generate_id('s'),
            quiz=QuizSnapshot.from_template(quiz),
            activation_id=activation.id,
            student=profile,
            opened_at=self.clock.monotonic(),
        )
        with self._lock:
            existing = self._find(profile.id, quiz.id)
            if existing is None:
                self._sessions[session.id] = session

        if existing is not None:
            if existing.is_terminal:
                return self._pending_decision(existing)
            return StartDecision(
                StartStatus.IN_PROGRESS,
                "This test is already in progress.",
                session=existing,
            )

        logger.info("Session %s: %s opening %s", session.id, profile.full_name, quiz.title)
        return StartDecision(
            StartStatus.CONFIRMING,
            f"Time Limit: {quiz.time_limit_minutes} Minutes. "
            "Fullscreen required. Tab switching is monitored.",
            session=session,
        )

    @staticmethod
    def _pending_decision(session):
        return StartDecision(
            StartStatus.SUBMISSION_PENDING,
            "Your submission has not been saved yet. Retry it to finish this test.",
            session=session,
            prior_score=session.score,
            prior_total=len(session.quiz.questions),
        )

    def cancel(self, session_id):
        """Back out of the confirmation dialog"""
        session = self.get(session_id)
        with session.lock:
            if session.state is not SessionState.CONFIRMING:
                raise InvalidTransition("Only an unconfirmed session can be cancelled")
            self._forget(session)
        logger.info("Session %s cancelled before start", session_id)

    def confirm(self, session_id):
        """CONFIRMING -> ACTIVE: start the clock and request full screen"""
        session = self.get(session_id)
        with session.lock:
            if session.state is not SessionState.CONFIRMING:
                raise InvalidTransition(f"Session is {session.state.value}, not CONFIRMING")

            session.state = SessionState.ACTIVE
            session.started_at = self.clock.now()
            session.deadline = self.clock.monotonic() + session.quiz.total_seconds
            session.violation_count = 0
            self._acquire_display(session)

        logger.info(
            "Session %s active: %d questions, %d min",
            session.id, len(session.quiz.questions), session.quiz.time_limit_minutes
        )
        return session

    # ================= TIMER =================

    def remaining_seconds(self, session):
        if session.deadline is None:
            return session.quiz.total_seconds
        if session.is_terminal:
            return 0
        return max(0, math.ceil(session.deadline - self.clock.monotonic()))

    def warning_visible(self, session):
        if session.warning_until is None or session.is_terminal:
            return False
        return self.clock.monotonic() < session.warning_until

    def tick(self, session_id):
        """
        Advance the countdown. Returns (remaining_seconds, outcome); the
        outcome is set once the session has reached SUBMITTED.
        """
        session = self.get(session_id)
        with session.lock:
            outcome = self._expire_if_due(session)
            if session.is_terminal:
                return 0, outcome or session.outcome
            return self.remaining_seconds(session), None

    def status(self, session_id):
        session = self.get(session_id)
        with session.lock:
            self._expire_if_due(session)
            return session.to_dict(
                remaining=self.remaining_seconds(session),
                warning_visible=self.warning_visible(session),
            )

    def _expire_if_due(self, session):
        if session.state is SessionState.ACTIVE and self.remaining_seconds(session) == 0:
            logger.info("Session %s ran out of time", session.id)
            return self._finalize(session, SubmissionType.TIMEOUT)
        return None

    # ================= ANSWERS =================

    def select_answer(self, session_id, question_id, option_index):
        """Upsert question -> option; may change any number of times"""
        session = self.get(session_id)
        with session.lock:
            self._expire_if_due(session)
            self._require_active(session)

            question = session.quiz.question(question_id)
            if question is None:
                raise ValidationError(f"Question {question_id} is not part of this quiz")
            if isinstance(option_index, bool) or not isinstance(option_index, int) \
                    or not 0 <= option_index < question.option_count:
                raise ValidationError(
                    f"Option index must be between 0 and {question.option_count - 1}"
                )

            session.answers[question_id] = option_index
            return dict(session.answers)

    # ================= VIOLATIONS =================

    def report_visibility(self, session_id, visible):
        """
        Foreground-visibility signal. Losing focus while ACTIVE is a
        violation; regaining it is not. Returns a ViolationOutcome or None.
        """
        if visible:
            return None

        session = self.get(session_id)
        with session.lock:
            self._expire_if_due(session)
            if session.state is not SessionState.ACTIVE:
                return None

            session.violation_count += 1
            count = session.violation_count
            recorded = self._record_violation(session)
            logger.warning(
                "Session %s: %s left the test (%d/%d)",
                session.id, session.student.full_name, count, self.violation_limit
            )

            if count > self.violation_limit:
                outcome = self._finalize(session, SubmissionType.VIOLATION_AUTO_SUBMIT)
                return ViolationOutcome(count, self.violation_limit, recorded,
                                        warning=False, submission=outcome)

            session.warning_until = self.clock.monotonic() + self.warning_seconds
            return ViolationOutcome(count, self.violation_limit, recorded,
                                    warning=True, dismiss_after=self.warning_seconds)

    def _record_violation(self, session):
        """A failed write still counts toward the in-memory total"""
        try:
            self.violations.append(
                quiz_id=session.quiz.id,
                student_name=session.student.full_name,
                test_name=session.quiz.title,
                timestamp=self.clock.now(),
            )
        except PersistenceError as exc:
            logger.error("Session %s: violation not recorded: %s", session.id, exc)
            return False
        return True

    # ================= SUBMISSION =================

    def submit(self, session_id, confirmed=True):
        """Manual submission; the caller must have confirmed it"""
        if not confirmed:
            raise ValidationError("Submission must be confirmed")

        session = self.get(session_id)
        with session.lock:
            outcome = self._expire_if_due(session)
            if outcome is not None:
                return outcome
            if session.is_terminal:
                return session.outcome
            self._require_active(session)
            return self._finalize(session, SubmissionType.NORMAL)

    def retry_submission(self, session_id):
        """Re-attempt only the persistence step of a failed submission"""
        session = self.get(session_id)
        with session.lock:
            if not session.is_terminal:
                raise InvalidTransition("Session has not been submitted")
            if not session.awaiting_retry:
                return session.outcome
            return self._persist(session)

    def abandon(self, session_id):
        """
        Drop a session without a result, as when the client goes away.
        Leaves no trace and does not consume the attempt. A submission
        waiting to be stored cannot be abandoned.
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            return False

        with session.lock:
            if session.awaiting_retry:
                raise InvalidTransition("Submission is not saved yet; retry it instead")
            if session.is_terminal:
                return False
            self._forget(session)

        logger.warning(
            "Session %s abandoned in state %s; no result stored",
            session.id, session.state.value
        )
        return True

    def reap_stale(self):
        """
        Clean up sessions nobody will come back for.

        ACTIVE sessions past their deadline are submitted as TIMEOUT.
        Unconfirmed sessions older than `confirm_timeout` are dropped.
        Unsaved submissions older than `retry_window` get one last store
        attempt and are dropped if it fails. Returns the number removed.
        """
        now = self.clock.monotonic()
        reaped = 0
        for session in self.live_sessions():
            with session.lock:
                if session.state is SessionState.ACTIVE:
                    self._expire_if_due(session)
                elif session.state is SessionState.CONFIRMING:
                    if now - session.opened_at >= self.confirm_timeout:
                        logger.info("Session %s never confirmed; dropped", session.id)
                        self._forget(session)
                        reaped += 1
                elif session.awaiting_retry and now - session.closed_at >= self.retry_window:
                    outcome = self._persist(session)
                    if outcome.persisted or outcome.already_attempted:
                        reaped += 1
                    else:
                        logger.error(
                            "Session %s: giving up on unsaved result (%s/%s) for student %s",
                            session.id, session.score, outcome.total_questions,
                            session.student_id
                        )
                        self._forget(session)
                        reaped += 1
        return reaped

    def _finalize(self, session, submission_type):
        """Single terminal path for all three triggers"""
        if session.is_terminal:
            return session.outcome

        session.state = SessionState.SUBMITTED
        session.submission_type = submission_type
        session.submitted_at = self.clock.now()
        session.closed_at = self.clock.monotonic()
        session.warning_until = None
        session.score = ScoringService.score(session.quiz.questions, session.answers)
        session.result_id = generate_id('r')

        outcome = self._persist(session)
        self._release_display(session)
        return outcome

    def _persist(self, session):
        total = len(session.quiz.questions)
        try:
            profile = self.students.get_profile(session.student_id)
        except (PersistenceError, RecordNotFound) as exc:
            logger.warning("Session %s: using start-time profile snapshot: %s", session.id, exc)
            profile = session.student

        payload = {
            'id': session.result_id,
            'quiz_id': session.quiz.id,
            'quiz_title': session.quiz.title,
            'student_id': session.student_id,
            'student_name': profile.full_name,
            'score': session.score,
            'total_questions': total,
            'submitted_at': session.submitted_at,
            'submission_type': session.submission_type,
        }
        payload.update(profile.snapshot())

        try:
            result = self.results.create(payload)
        except AlreadyAttemptedError as exc:
            outcome = SubmissionOutcome(
                session.id, session.submission_type, exc.prior.score,
                exc.prior.total_questions, persisted=False,
                message=exc.message, result_id=exc.prior.id, already_attempted=True,
            )
            self._discard(session, outcome)
            return outcome
        except PersistenceError as exc:
            logger.error("Session %s: result not stored: %s", session.id, exc)
            session.outcome = SubmissionOutcome(
                session.id, session.submission_type, session.score, total,
                persisted=False,
                message="Submission failed. Your answers are saved; please retry.",
            )
            return session.outcome

        outcome = SubmissionOutcome(
            session.id, session.submission_type, session.score, total,
            persisted=True, message=self._report(session.submission_type, session.score, total),
            result_id=result.id,
        )
        self._discard(session, outcome)
        logger.info(
            "Session %s submitted (%s): %d/%d",
            session.id, session.submission_type.value, session.score, total
        )
        return outcome

    @staticmethod
    def _report(submission_type, score, total):
        if submission_type is SubmissionType.VIOLATION_AUTO_SUBMIT:
            return "Test Auto-Submitted due to multiple tab switching violations!"
        if submission_type is SubmissionType.TIMEOUT:
            return f"Time is up! Test Submitted. Your Score: {score} / {total}"
        return f"Test Submitted! Your Score: {score} / {total}"

    def _discard(self, session, outcome):
        session.outcome = outcome
        with self._lock:
            self._sessions.pop(session.id, None)

    def _forget(self, session):
        """Remove a session that ends without a stored result"""
        with self._lock:
            self._sessions.pop(session.id, None)
        self._release_display(session)

    # ================= HELPERS =================

    @staticmethod
    def _require_active(session):
        if session.state is not SessionState.ACTIVE:
            raise InvalidTransition(f"Session is {session.state.value}, not ACTIVE")

    def _acquire_display(self, session):
        try:
            self.display.request(session)
            session.display_held = True
        except Exception as exc:
            logger.warning("Session %s: full screen unavailable: %s", session.id, exc)

    def _release_display(self, session):
        if not session.display_held:
            return
        session.display_held = False
        try:
            self.display.release(session)
        except Exception as exc:
            logger.warning("Session %s: could not leave full screen: %s", session.id, exc)
