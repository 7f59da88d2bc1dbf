from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("rooms", __name__)


def _registry():
    return current_app.extensions["imposter"].registry


@bp.get("/rooms")
def list_rooms():
    return jsonify({"lobbies": _registry().list_public_joinable()})


@bp.get("/rooms/<code>")
def get_room(code: str):
    room = _registry().get(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(room.public_state())
