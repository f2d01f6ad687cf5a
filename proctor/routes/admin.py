"""
Admin Routes
Portal-wide result/violation review and maintenance (admins and developers)
"""
from flask import Blueprint, request, jsonify

from proctor import get_engine
from proctor.errors import ValidationError
from proctor.routes.common import json_body, result_filters
from proctor.utils import require_admin

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/results')
@require_admin
def results():
    rows = get_engine().results.list(**result_filters())
    return jsonify({'results': [r.to_dict() for r in rows]})


@admin_bp.route('/results/prune', methods=['DELETE', 'POST'])
@require_admin
def prune_results():
    """Delete results older than `months`; irreversible"""
    months = json_body().get('months')
    if isinstance(months, str) and months.isdigit():
        months = int(months)
    deleted = get_engine().results.prune_older_than(months)
    return jsonify({'deleted_count': deleted})


@admin_bp.route('/violations', methods=['GET', 'DELETE'])
@require_admin
def violations():
    ledger = get_engine().violations

    if request.method == 'DELETE':
        if json_body().get('confirm') is not True:
            raise ValidationError("Deleting all violation records must be confirmed")
        return jsonify({'success': True, 'deleted_count': ledger.delete_all()})

    records = ledger.list_by_test_name(request.args.get('test_name'))
    return jsonify({'violations': [v.to_dict() for v in records]})


@admin_bp.route('/sessions')
@require_admin
def live_sessions():
    """Sessions currently held in memory"""
    engine = get_engine()
    return jsonify({'sessions': [
        s.to_dict(remaining=engine.remaining_seconds(s)) for s in engine.live_sessions()
    ]})
