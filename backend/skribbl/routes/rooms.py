from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game.visibility import redact_room_for_viewer
from ..utils.validation import normalize_room_code

bp = Blueprint("rooms", __name__)


def _store():
    return current_app.extensions["skribbl"]["store"]


@bp.post("/rooms")
def create_room():
    # Only reserves a code; the room itself is created by the first socket join.
    return jsonify({"roomCode": _store().generate_code()}), 201


@bp.get("/rooms/<code>")
def get_room(code: str):
    room_code = normalize_room_code(code)
    if room_code is None:
        return jsonify({"error": "invalid_room_code"}), 400

    room = _store().get_by_code(room_code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(redact_room_for_viewer(room, None))
