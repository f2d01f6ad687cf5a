"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask, current_app
from proctor.config import get_config
from proctor.extensions import db, socketio
from proctor.utils import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_name=None, clock=None, display=None):
    """
    Application factory pattern
    Creates and configures Flask app

    `clock` and `display` replace the session engine's host capabilities.
    """
    app = Flask(__name__)

    # Load configuration
    if config_name:
        from proctor.config import config
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['SOCKETIO_CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE']
    )

    # Session engine
    from proctor.services import build_engine
    from proctor.sockets import SocketDisplayMode
    app.extensions['session_engine'] = build_engine(
        app.config,
        clock=clock,
        display=display or SocketDisplayMode(),
    )

    # Register blueprints
    from proctor.routes import teacher_bp, student_bp, admin_bp, register_error_handlers

    app.register_blueprint(teacher_bp, url_prefix='/teacher')
    app.register_blueprint(student_bp, url_prefix='/student')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    register_error_handlers(app)

    # Maintenance commands
    from proctor.commands import register_commands
    register_commands(app)

    # Register Socket.IO events
    from proctor.sockets import register_socket_events
    register_socket_events()

    # Create database tables
    with app.app_context():
        db.create_all()
        logger.info('Database tables created/verified')

    return app


def get_engine():
    """Session engine bound to the current app"""
    return current_app.extensions['session_engine']
