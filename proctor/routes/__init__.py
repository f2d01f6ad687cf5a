"""
Routes Package
Exports all route blueprints
"""
from proctor.routes.teacher import teacher_bp
from proctor.routes.student import student_bp
from proctor.routes.admin import admin_bp
from proctor.routes.common import register_error_handlers

__all__ = ['teacher_bp', 'student_bp', 'admin_bp', 'register_error_handlers']
