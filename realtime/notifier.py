"""Broadcast-only Socket.IO channel telling clients to refetch.

Events carry no payload. Delivery is best effort: there is no queue for
disconnected clients and no acknowledgement. Connection bookkeeping is local
to this process.
"""

from __future__ import annotations

import threading

from flask import Flask, current_app, request
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_socketio import ConnectionRefusedError, SocketIO
from jwt.exceptions import PyJWTError

from models import db
from models.user import User

CLASSIFIEDS_CHANGED = "classifieds:changed"
ADMIN_CHANGED = "admin:changed"

# Client to server events accepted by the channel. The server only pushes.
ALLOWED_CLIENT_EVENTS: frozenset[str] = frozenset()


class RealtimeNotifier:
    """Owns per-user connection accounting and the broadcast helpers."""

    def __init__(self, socketio: SocketIO, max_connections_per_user: int = 5):
        self.socketio = socketio
        self.max_connections_per_user = max_connections_per_user
        self._lock = threading.Lock()
        self._connections: dict[int, set[str]] = {}
        self._session_users: dict[str, int] = {}

    def init_app(self, app: Flask) -> None:
        self.max_connections_per_user = int(
            app.config.get("SOCKETIO_MAX_CONNECTIONS_PER_USER", self.max_connections_per_user)
        )
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._connections.clear()
            self._session_users.clear()

    def admit(self, user_id: int, sid: str) -> bool:
        """Register ``sid`` for ``user_id`` unless the user is at the limit."""

        with self._lock:
            if len(self._connections.get(user_id, ())) >= self.max_connections_per_user:
                return False
            self._connections.setdefault(user_id, set()).add(sid)
            self._session_users[sid] = user_id
            return True

    def release(self, sid: str) -> int | None:
        """Forget ``sid`` and return the user it belonged to, if any."""

        with self._lock:
            user_id = self._session_users.pop(sid, None)
            if user_id is None:
                return None
            sids = self._connections.get(user_id)
            if sids is not None:
                sids.discard(sid)
                if not sids:
                    del self._connections[user_id]
            return user_id

    def connection_count(self, user_id: int) -> int:
        with self._lock:
            return len(self._connections.get(user_id, ()))

    def broadcast(self, event: str) -> None:
        """Emit ``event`` to every connected client. Never raises."""

        try:
            self.socketio.emit(event)
        except Exception:
            current_app.logger.exception("Broadcast of %s failed", event)

    def classifieds_changed(self) -> None:
        self.broadcast(CLASSIFIEDS_CHANGED)

    def admin_changed(self) -> None:
        self.broadcast(ADMIN_CHANGED)


def _handshake_token(auth) -> str | None:
    if isinstance(auth, dict) and auth.get("token"):
        return str(auth["token"])
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


def _user_id_from_token(token: str) -> int | None:
    try:
        claims = decode_token(token)
        identity = claims[current_app.config.get("JWT_IDENTITY_CLAIM", "sub")]
        user_id = int(identity)
    except (PyJWTError, JWTExtendedException, KeyError, TypeError, ValueError):
        return None
    if db.session.get(User, user_id) is None:
        return None
    return user_id


def register_handlers(socketio: SocketIO, notifier: RealtimeNotifier) -> None:
    """Attach the connection lifecycle handlers to ``socketio``."""

    @socketio.on("connect")
    def handle_connect(auth=None):
        token = _handshake_token(auth)
        if token is None:
            current_app.logger.info("Socket connected: %s (anonymous)", request.sid)
            return True

        user_id = _user_id_from_token(token)
        if user_id is None:
            raise ConnectionRefusedError("User not found")
        if not notifier.admit(user_id, request.sid):
            raise ConnectionRefusedError("Too many connections")

        current_app.logger.info("Socket connected: %s (user %s)", request.sid, user_id)
        return True

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        notifier.release(request.sid)
        current_app.logger.info("Socket disconnected: %s (%s)", request.sid, reason)

    @socketio.on("*")
    def handle_client_event(event, *args):
        if event not in ALLOWED_CLIENT_EVENTS:
            current_app.logger.warning("Ignored client event %r from %s", event, request.sid)

    @socketio.on_error_default
    def handle_socket_error(error):
        current_app.logger.error("Socket error on %s: %s", request.sid, error)
