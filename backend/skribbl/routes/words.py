from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..game.words import DIFFICULTIES

bp = Blueprint("words", __name__)


@bp.get("/words")
def get_words():
    try:
        count = int(request.args.get("count", "3"))
    except ValueError:
        count = 3
    count = max(1, min(count, 10))

    difficulty = request.args.get("difficulty") or None
    if difficulty is not None and difficulty not in DIFFICULTIES:
        return jsonify({"error": "invalid_difficulty"}), 400

    supplier = current_app.extensions["skribbl"]["words"]
    return jsonify({"words": supplier.draw(count, difficulty)})
