from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO, emit

from ..game.errors import GameError
from ..game.service import GameService
from . import events

logger = logging.getLogger(__name__)


def _validate_name(name: str, max_chars: int = 16) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > max_chars:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _room_code(payload: dict) -> str:
    return str(payload.get("roomCode", "")).strip().upper()


def _reject(code: str, message: str) -> dict:
    emit(events.ERROR, {"error": code, "message": message})
    return {"ok": False, "error": code}


def register_socketio_handlers(socketio: SocketIO, service: GameService, nickname_max_chars: int = 16) -> None:
    def handler(event: str) -> Callable:
        """Register ``fn`` for ``event`` and turn GameError into an error notice + ack."""

        def decorator(fn: Callable[[dict], Any]) -> Callable:
            @functools.wraps(fn)
            def wrapper(data=None):
                payload = data if isinstance(data, dict) else {}
                try:
                    result = fn(payload)
                except GameError as exc:
                    logger.debug("[rejected] event=%s sid=%s error=%s", event, request.sid, exc.code)
                    return _reject(exc.code, exc.message)
                if result is None:
                    return {"ok": True}
                return result

            socketio.on_event(event, wrapper)
            return wrapper

        return decorator

    @handler(events.CREATE_ROOM)
    def create_room(payload):
        nickname = str(payload.get("nickname", "")).strip()
        if not _validate_name(nickname, nickname_max_chars):
            return _reject("invalid_nickname", "Please choose a valid nickname")

        room = service.create_room(request.sid, nickname)
        return {"ok": True, "roomCode": room.code}

    @handler(events.JOIN_ROOM)
    def join_room(payload):
        room_code = _room_code(payload)
        nickname = str(payload.get("nickname", "")).strip()
        if not room_code:
            return _reject("invalid_room", "Room code is required")
        if not _validate_name(nickname, nickname_max_chars):
            return _reject("invalid_nickname", "Please choose a valid nickname")

        room = service.join_room(request.sid, room_code, nickname)
        return {"ok": True, "roomCode": room.code}

    @handler(events.TOGGLE_READY)
    def toggle_ready(payload):
        ready = service.toggle_ready(request.sid, _room_code(payload))
        return {"ok": True, "ready": ready}

    @handler(events.UPDATE_ROOM_SETTINGS)
    def update_room_settings(payload):
        # Accept both a flat payload and a nested {"settings": {...}}.
        settings = payload.get("settings")
        if not isinstance(settings, dict):
            settings = payload
        service.update_settings(request.sid, _room_code(payload), settings)

    @handler(events.GET_PUBLIC_LOBBIES)
    def get_public_lobbies(payload):
        lobbies = service.public_lobbies(request.sid)
        return {"ok": True, "lobbies": lobbies}

    @handler(events.LEAVE_ROOM)
    def leave_room(payload):
        service.leave_room(request.sid, _room_code(payload))

    @handler(events.START_GAME)
    def start_game(payload):
        service.start_game(request.sid, _room_code(payload))

    @handler(events.SUBMIT_DESCRIPTION)
    def submit_description(payload):
        text = str(payload.get("description", ""))
        accepted = service.submit_description(request.sid, _room_code(payload), text)
        return {"ok": True, "accepted": accepted}

    @handler(events.SUBMIT_VOTE)
    def submit_vote(payload):
        target = str(payload.get("votedPlayerId", "")).strip()
        if not target:
            return _reject("invalid_target", "Choose a player or skip")
        service.submit_vote(request.sid, _room_code(payload), target)

    @handler(events.VOTE_KICK)
    def vote_kick(payload):
        target = str(payload.get("targetId", "")).strip()
        if not target:
            return _reject("invalid_target", "Choose a player to kick")
        kicked = service.vote_kick(request.sid, _room_code(payload), target)
        return {"ok": True, "kicked": kicked}

    @handler(events.LOBBY_CHAT)
    def lobby_chat_message(payload):
        service.lobby_chat(request.sid, _room_code(payload), str(payload.get("text", "")))

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        try:
            service.disconnect(request.sid)
        except Exception:
            logger.exception("[disconnect-error] sid=%s", request.sid)
