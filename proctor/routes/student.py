"""
Student Routes
Available tests, the exam session lifecycle, and result history
"""
from flask import Blueprint, request, jsonify

from proctor import get_engine
from proctor.errors import SessionNotFound, ValidationError
from proctor.routes.common import json_body
from proctor.services import StartStatus
from proctor.sockets import start_session_timer, publish_violation, emit_outcome
from proctor.utils import require_student, get_current_user_id

student_bp = Blueprint('student', __name__)


def _my_session(session_id):
    """Live session owned by the current student"""
    exam_session = get_engine().get(session_id)
    if exam_session.student_id != str(get_current_user_id()):
        raise SessionNotFound(f"No live session {session_id}")
    return exam_session


def _outcome_response(outcome):
    if outcome.already_attempted:
        status = 409
    elif not outcome.persisted:
        status = 503
    else:
        status = 200
    return jsonify(outcome.to_dict()), status


@student_bp.route('/tests')
@require_student
def available_tests():
    """Active tests for my division/department and year/semester"""
    tests = get_engine().available_tests(get_current_user_id())
    return jsonify({'tests': [
        {
            **test.quiz.to_dict(),
            'activation_id': test.activation.id,
        }
        for test in tests
    ]})


@student_bp.route('/tests/<activation_id>/start', methods=['POST'])
@require_student
def start_test(activation_id):
    """Attempt gate + eligibility; opens the confirmation step"""
    decision = get_engine().request_start(get_current_user_id(), activation_id)
    status = 201 if decision.status is StartStatus.CONFIRMING else 200
    return jsonify(decision.to_dict()), status


@student_bp.route('/sessions/<session_id>', methods=['GET', 'DELETE'])
@require_student
def session_detail(session_id):
    engine = get_engine()
    _my_session(session_id)

    if request.method == 'DELETE':
        # Client is closing the test without submitting
        engine.abandon(session_id)
        return jsonify({'success': True})

    return jsonify(engine.status(session_id))


@student_bp.route('/sessions/<session_id>/confirm', methods=['POST'])
@require_student
def confirm_session(session_id):
    """Student accepted the time limit and monitoring disclosure"""
    engine = get_engine()
    _my_session(session_id)
    engine.confirm(session_id)
    start_session_timer(session_id)
    return jsonify(engine.status(session_id))


@student_bp.route('/sessions/<session_id>/cancel', methods=['POST'])
@require_student
def cancel_session(session_id):
    _my_session(session_id)
    get_engine().cancel(session_id)
    return jsonify({'success': True})


@student_bp.route('/sessions/<session_id>/answers', methods=['PUT'])
@require_student
def select_answer(session_id):
    _my_session(session_id)
    data = json_body()
    answers = get_engine().select_answer(
        session_id,
        data.get('question_id'),
        data.get('option_index'),
    )
    return jsonify({'session_id': session_id, 'answers': answers})


@student_bp.route('/sessions/<session_id>/visibility', methods=['POST'])
@require_student
def visibility(session_id):
    """HTTP fallback for the foreground-visibility signal"""
    _my_session(session_id)
    data = json_body()
    if 'visible' not in data:
        raise ValidationError("'visible' is required")

    violation = get_engine().report_visibility(session_id, bool(data['visible']))
    publish_violation(session_id, violation)
    return jsonify({'violation': violation.to_dict() if violation else None})


@student_bp.route('/sessions/<session_id>/submit', methods=['POST'])
@require_student
def submit_session(session_id):
    _my_session(session_id)
    outcome = get_engine().submit(session_id, confirmed=json_body().get('confirm') is True)
    emit_outcome(outcome)
    return _outcome_response(outcome)


@student_bp.route('/sessions/<session_id>/retry', methods=['POST'])
@require_student
def retry_submission(session_id):
    """Re-send a submission whose result failed to store"""
    _my_session(session_id)
    outcome = get_engine().retry_submission(session_id)
    return _outcome_response(outcome)


@student_bp.route('/results')
@require_student
def history():
    """My submitted tests"""
    rows = get_engine().results.list(student_id=get_current_user_id())
    return jsonify({'results': [r.to_dict() for r in rows]})
