"""Realtime change notifications over Socket.IO."""

from flask_socketio import SocketIO

from .notifier import (
    ADMIN_CHANGED,
    ALLOWED_CLIENT_EVENTS,
    CLASSIFIEDS_CHANGED,
    RealtimeNotifier,
    register_handlers,
)

socketio = SocketIO()
notifier = RealtimeNotifier(socketio)
register_handlers(socketio, notifier)

__all__ = [
    "ADMIN_CHANGED",
    "ALLOWED_CLIENT_EVENTS",
    "CLASSIFIEDS_CHANGED",
    "RealtimeNotifier",
    "notifier",
    "socketio",
]
