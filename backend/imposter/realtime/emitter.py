from __future__ import annotations

from flask_socketio import SocketIO


class SocketIOEmitter:
    """Outbound side of the game service, backed by Flask-SocketIO.

    Uses the server object directly so it works both inside handlers and from
    background tasks (turn timer) where there is no request context.
    """

    def __init__(self, socketio: SocketIO, namespace: str = "/") -> None:
        self._socketio = socketio
        self._namespace = namespace

    def emit(self, event: str, payload: dict, to: str) -> None:
        self._socketio.emit(event, payload, to=to, namespace=self._namespace)

    def enter_room(self, sid: str, room_code: str) -> None:
        self._socketio.server.enter_room(sid, room_code, namespace=self._namespace)

    def leave_room(self, sid: str, room_code: str) -> None:
        self._socketio.server.leave_room(sid, room_code, namespace=self._namespace)
