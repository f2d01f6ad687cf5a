"""
Shared route helpers and JSON error handlers
"""
import logging

from flask import request, jsonify

from proctor.errors import ProctorError

logger = logging.getLogger(__name__)


def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def forbidden(message):
    response = jsonify({'error': 'Forbidden', 'message': message})
    response.status_code = 403
    return response


def result_filters():
    """Cohort/year/semester filters from the query string"""
    return {
        'department': request.args.get('department'),
        'division': request.args.get('division'),
        'college_year': request.args.get('college_year', type=int),
        'semester': request.args.get('semester', type=int),
    }


def register_error_handlers(app):
    """Map engine and store errors to JSON responses"""

    @app.errorhandler(ProctorError)
    def handle_proctor_error(exc):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc.message)
        response = jsonify(exc.to_dict())
        response.status_code = exc.status_code
        return response
