"""
Teacher Routes
Quiz templates, activations, and review of results and violations
"""
from flask import Blueprint, request, jsonify

from proctor import get_engine
from proctor.errors import RecordNotFound, ValidationError
from proctor.routes.common import json_body, forbidden, result_filters
from proctor.utils import require_teacher, get_current_user_id

teacher_bp = Blueprint('teacher', __name__)


def _own_quiz(quiz_id):
    quiz = get_engine().catalog.get(quiz_id)
    if quiz is None:
        raise RecordNotFound(f"Quiz template {quiz_id} not found")
    return quiz


def _own_activation(activation_id):
    activation = get_engine().activations.get(activation_id)
    if activation is None:
        raise RecordNotFound(f"Activation {activation_id} not found")
    return activation


def _my_quizzes():
    return get_engine().catalog.list(creator=get_current_user_id())


@teacher_bp.route('/quizzes', methods=['GET', 'POST'])
@require_teacher
def quizzes():
    """Create a template, or list my templates"""
    catalog = get_engine().catalog

    if request.method == 'POST':
        payload = dict(json_body())
        payload['created_by'] = get_current_user_id()
        quiz = catalog.create(payload)
        return jsonify(quiz.to_dict(include_answers=True)), 201

    my_quizzes = catalog.list(
        creator=get_current_user_id(),
        college_year=request.args.get('college_year', type=int),
        semester=request.args.get('semester', type=int),
    )
    return jsonify({'quizzes': [q.to_dict(include_answers=True) for q in my_quizzes]})


@teacher_bp.route('/quizzes/<quiz_id>', methods=['DELETE'])
@require_teacher
def delete_quiz(quiz_id):
    quiz = _own_quiz(quiz_id)
    if quiz.created_by != str(get_current_user_id()):
        return forbidden('You can only delete your own quizzes')
    get_engine().catalog.delete(quiz_id)
    return jsonify({'success': True})


@teacher_bp.route('/activations', methods=['GET', 'POST'])
@require_teacher
def activations():
    """Assign one of my templates to a cohort, or list my assignments"""
    registry = get_engine().activations

    if request.method == 'POST':
        data = json_body()
        quiz = get_engine().catalog.get(data.get('quiz_id'))
        if quiz is not None and quiz.created_by != str(get_current_user_id()):
            return forbidden('You can only assign your own quizzes')
        activation = registry.create(
            quiz_id=data.get('quiz_id'),
            department=data.get('department'),
            division=data.get('division'),
            teacher_id=get_current_user_id(),
            activation_id=data.get('id'),
        )
        return jsonify(activation.to_dict()), 201

    mine = registry.list(
        teacher_id=get_current_user_id(),
        department=request.args.get('department'),
        division=request.args.get('division'),
    )
    return jsonify({'activations': [a.to_dict() for a in mine]})


@teacher_bp.route('/activations/<activation_id>', methods=['PATCH', 'DELETE'])
@require_teacher
def activation_detail(activation_id):
    """Open/close the attempt window, or remove the assignment"""
    registry = get_engine().activations
    activation = _own_activation(activation_id)
    if activation.assigned_by != str(get_current_user_id()):
        return forbidden('You can only manage your own assignments')

    if request.method == 'DELETE':
        registry.delete(activation_id)
        return jsonify({'success': True})

    data = json_body()
    if 'is_active' not in data:
        raise ValidationError("'is_active' is required")
    activation = registry.set_active(activation_id, data['is_active'])
    return jsonify(activation.to_dict())


@teacher_bp.route('/results')
@require_teacher
def results():
    """Results for my templates, filterable by cohort/year/semester"""
    quiz_ids = [q.id for q in _my_quizzes()]
    rows = get_engine().results.list(quiz_ids=quiz_ids, **result_filters())
    return jsonify({
        'results': [r.to_dict() for r in rows],
        'flagged': sum(1 for r in rows if r.flagged),
    })


@teacher_bp.route('/violations', methods=['GET', 'DELETE'])
@require_teacher
def violations():
    ledger = get_engine().violations

    if request.method == 'DELETE':
        if json_body().get('confirm') is not True:
            raise ValidationError("Deleting all violation records must be confirmed")
        deleted = ledger.delete_all()
        return jsonify({'success': True, 'deleted_count': deleted})

    my_titles = [q.title for q in _my_quizzes()]
    test_name = request.args.get('test_name')
    if test_name is not None and test_name not in my_titles:
        return jsonify({'violations': []})
    records = ledger.list_by_test_name(test_name, test_names=my_titles)
    return jsonify({'violations': [v.to_dict() for v in records]})


@teacher_bp.route('/violations/summary')
@require_teacher
def violation_summary():
    """Tests with violations and their counts"""
    my_titles = [q.title for q in _my_quizzes()]
    summary = get_engine().violations.summarize_by_test_name(test_names=my_titles)
    return jsonify({'tests': [{'test_name': name, 'count': count} for name, count in summary]})


@teacher_bp.route('/violations/<violation_id>', methods=['DELETE'])
@require_teacher
def delete_violation(violation_id):
    ledger = get_engine().violations
    record = ledger.get(violation_id)
    if record is None:
        raise RecordNotFound(f"Violation {violation_id} not found")
    if record.test_name not in [q.title for q in _my_quizzes()]:
        return forbidden('You can only delete violations from your own tests')
    ledger.delete_one(violation_id)
    return jsonify({'success': True})
