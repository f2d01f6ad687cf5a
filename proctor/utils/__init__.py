"""
Utils Package
"""
from proctor.utils.helpers import (
    now_utc,
    as_utc,
    to_local,
    isoformat,
    local_isoformat,
    subtract_months,
    generate_id,
    get_current_user_id,
    require_teacher,
    require_student,
    require_admin
)
from proctor.utils.logging_config import configure_logging

__all__ = [
    'now_utc',
    'as_utc',
    'to_local',
    'isoformat',
    'local_isoformat',
    'subtract_months',
    'generate_id',
    'get_current_user_id',
    'require_teacher',
    'require_student',
    'require_admin',
    'configure_logging'
]
