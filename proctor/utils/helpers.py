"""
Helper Functions
Utility functions used across the application
"""
from datetime import datetime, timezone
from flask import session, jsonify, current_app
from functools import wraps
import calendar
import uuid
import pytz


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def as_utc(dt):
    """Attach UTC to naive datetimes coming back from the database"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(utc_dt, tz_name=None):
    """Convert UTC datetime to the configured display timezone"""
    if not utc_dt:
        return None
    if tz_name is None:
        tz_name = current_app.config.get('TIMEZONE', 'UTC')
    return as_utc(utc_dt).astimezone(pytz.timezone(tz_name))


def isoformat(dt):
    return as_utc(dt).isoformat() if dt else None


def local_isoformat(dt):
    return to_local(dt).isoformat() if dt else None


def subtract_months(dt, months):
    """Same day-of-month `months` earlier, clamped to the month's last day"""
    month_index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def generate_id(prefix=''):
    """Generate an opaque record identity"""
    return f"{prefix}{uuid.uuid4().hex}"


def get_current_user_id():
    """Get the logged-in user's id from the session"""
    return session.get('user_id')


def get_current_role():
    return (session.get('role') or '').lower()


def _deny(message, status):
    response = jsonify({'error': 'Forbidden' if status == 403 else 'Unauthorized',
                        'message': message})
    response.status_code = status
    return response


def require_role(*roles):
    """Decorator factory: allow only logged-in users with one of `roles`"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if get_current_user_id() is None:
                return _deny('Login required', 401)
            if get_current_role() not in roles:
                return _deny(f"{' or '.join(roles).title()} access required", 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


require_teacher = require_role('teacher')
require_student = require_role('student')
# Developers share the admin maintenance surface
require_admin = require_role('admin', 'developer')
