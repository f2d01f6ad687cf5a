"""
Sockets Package
"""
from proctor.sockets.session_events import (
    SocketDisplayMode,
    register_socket_events,
    start_session_timer,
    publish_violation,
    emit_outcome,
)

__all__ = [
    'SocketDisplayMode',
    'register_socket_events',
    'start_session_timer',
    'publish_violation',
    'emit_outcome',
]
