"""
WSGI Entry Point
Serves the proctoring API and the exam session channel

    gunicorn --worker-class gthread -w 1 --threads 50 wsgi:app

A single worker keeps every live exam session in one engine.
"""
import logging
import os

from proctor import create_app
from proctor.extensions import socketio

app = create_app(os.getenv('PROCTOR_CONFIG'))

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    logging.getLogger(__name__).info("Proctor dev server on port %d", port)

    socketio.run(
        app,
        host=os.getenv('HOST', '127.0.0.1'),
        port=port,
        debug=app.config.get('DEBUG', False),
        use_reloader=False,
        allow_unsafe_werkzeug=True,
    )
