"""
Socket.IO Event Handlers
Real-time exam session channel: visibility signal in, timer/warnings/outcome out
"""
import logging

from flask import session, request, current_app
from flask_socketio import emit, join_room, leave_room

from proctor.errors import ProctorError, SessionNotFound
from proctor.extensions import socketio, session_sockets
from proctor.services.capabilities import DisplayMode

logger = logging.getLogger(__name__)


class SocketDisplayMode(DisplayMode):
    """Asks the student's client to enter/leave full screen"""

    def request(self, exam_session):
        socketio.emit('display_mode', {'session_id': exam_session.id, 'action': 'request'},
                      to=exam_session.id)

    def release(self, exam_session):
        socketio.emit('display_mode', {'session_id': exam_session.id, 'action': 'release'},
                      to=exam_session.id)


def _engine(app=None):
    return (app or current_app).extensions['session_engine']


def emit_outcome(outcome):
    """Tell the student how the session ended"""
    socketio.emit('session_submitted', outcome.to_dict(), to=outcome.session_id)


def publish_violation(session_id, violation):
    """Push a violation result to the session room"""
    if violation is None:
        return
    if violation.submission is not None:
        emit_outcome(violation.submission)
        return

    socketio.emit('violation_warning', {
        'session_id': session_id,
        **violation.to_dict(),
    }, to=session_id)

    app = current_app._get_current_object()
    if app.config.get('SESSION_TIMER_ENABLED', True):
        socketio.start_background_task(_dismiss_warning_later, app, session_id)


def _dismiss_warning_later(app, session_id):
    """Emit the dismissal once the engine's warning window has passed"""
    interval = app.config.get('TIMER_TICK_SECONDS', 1)
    engine = _engine(app)

    while True:
        socketio.sleep(interval)
        try:
            exam_session = engine.get(session_id)
        except SessionNotFound:
            return
        if exam_session.is_terminal:
            return
        # A newer violation extends the warning
        if not engine.warning_visible(exam_session):
            socketio.emit('violation_warning_dismissed', {'session_id': session_id},
                          to=session_id)
            return


def start_session_timer(session_id):
    """Server-side countdown; ends when the session leaves the engine or submits"""
    app = current_app._get_current_object()
    if not app.config.get('SESSION_TIMER_ENABLED', True):
        return None
    return socketio.start_background_task(_run_timer, app, session_id)


def _run_timer(app, session_id):
    interval = app.config.get('TIMER_TICK_SECONDS', 1)
    engine = _engine(app)

    while True:
        socketio.sleep(interval)
        with app.app_context():
            try:
                remaining, outcome = engine.tick(session_id)
            except SessionNotFound:
                return
            except ProctorError as exc:
                logger.error("Timer for session %s stopped: %s", session_id, exc)
                return

            if outcome is not None:
                emit_outcome(outcome)
                return

            socketio.emit('timer_tick', {
                'session_id': session_id,
                'remaining_seconds': remaining,
            }, to=session_id)


def _owned_session(data):
    """Resolve the payload's session and check it belongs to the caller"""
    session_id = (data or {}).get('session_id')
    exam_session = _engine().get(session_id)
    if exam_session.student_id != str(session.get('user_id')):
        raise SessionNotFound(f"No live session {session_id}")
    return exam_session


def register_socket_events():
    """Register all Socket.IO event handlers"""

    @socketio.on('join_session')
    def join_session(data):
        """Student's exam client subscribes to its session room"""
        try:
            exam_session = _owned_session(data)
        except ProctorError as exc:
            emit('session_error', exc.to_dict())
            return

        join_room(exam_session.id)
        session_sockets[request.sid] = exam_session.id
        emit('session_state', _engine().status(exam_session.id))
        logger.debug("Socket %s joined session %s", request.sid, exam_session.id)

    @socketio.on('visibility_change')
    def visibility_change(data):
        """Monitored surface lost or regained foreground focus"""
        try:
            exam_session = _owned_session(data)
            violation = _engine().report_visibility(exam_session.id, bool(data.get('visible')))
        except ProctorError as exc:
            emit('session_error', exc.to_dict())
            return
        publish_violation(exam_session.id, violation)

    @socketio.on('select_answer')
    def select_answer(data):
        try:
            exam_session = _owned_session(data)
            answers = _engine().select_answer(
                exam_session.id,
                data.get('question_id'),
                data.get('option_index'),
            )
        except ProctorError as exc:
            emit('session_error', exc.to_dict())
            return
        emit('answer_saved', {'session_id': exam_session.id, 'answers': answers})

    @socketio.on('leave_session')
    def leave_session(data):
        """Client is closing; the session is dropped without a result"""
        try:
            exam_session = _owned_session(data)
            _engine().abandon(exam_session.id)
        except ProctorError as exc:
            emit('session_error', exc.to_dict())
            return
        session_sockets.pop(request.sid, None)
        leave_room(exam_session.id)

    @socketio.on('disconnect')
    def handle_disconnect(reason=None):
        """Handle client disconnect"""
        session_id = session_sockets.pop(request.sid, None)
        if session_id is None or not current_app.config.get('ABANDON_ON_DISCONNECT', True):
            return
        engine = _engine()
        try:
            exam_session = engine.get(session_id)
        except SessionNotFound:
            return
        if not exam_session.is_terminal:
            engine.abandon(session_id)
