from __future__ import annotations

import logging
from typing import Any

from flask import current_app, request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.engine import Outcome, TurnEngine
from ..utils.ratelimit import RateLimiter
from ..utils.validation import (
    normalize_room_code,
    sanitize_chat_message,
    sanitize_player_name,
    validate_drawing_data,
)
from . import events
from .events import error_payload


logger = logging.getLogger(__name__)


def _payload(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def _room_id(payload: dict) -> str:
    return str(payload.get("roomId", "")).strip()


def register_socketio_handlers(socketio: SocketIO, engine: TurnEngine, limiter: RateLimiter) -> None:
    def _limit(action: str) -> bool:
        max_requests, window = current_app.config["RATE_LIMITS"][action]
        return limiter.allow(request.sid, action, max_requests, window)

    def _fail(error_event: str, code: str) -> dict:
        emit(error_event, error_payload(code))
        return {"ok": False, "error": code}

    def _ack(outcome: Outcome, error_event: str = events.GAME_ERROR) -> dict:
        if not outcome.ok:
            return _fail(error_event, outcome.error or "invalid_payload")
        if outcome.retry:
            emit(error_event, error_payload("retry_later"))
        return {"ok": True, "retry": outcome.retry}

    def _system(room_id: str, text: str) -> None:
        socketio.emit(events.CHAT_SYSTEM, {"roomId": room_id, "message": text}, to=room_id)

    def _after_removal(outcome: Outcome, sid: str) -> None:
        room = outcome.room
        if not outcome.ok or room is None:
            return
        leave_room(room.id, sid=sid)
        if outcome.room_deleted:
            return
        if outcome.player is not None:
            _system(room.id, f"{outcome.player.name} left the room")
        if outcome.was_drawer and room.status == "playing":
            engine.next_turn(room.id)

    @socketio.on(events.JOIN)
    def room_join(data):
        payload = _payload(data)
        if not _limit("join"):
            return _fail(events.ROOM_ERROR, "rate_limited")

        code = normalize_room_code(payload.get("roomCode"))
        if code is None:
            return _fail(events.ROOM_ERROR, "invalid_room_code")

        name = sanitize_player_name(payload.get("playerName"))
        if not name:
            return _fail(events.ROOM_ERROR, "invalid_name")

        outcome = engine.join(code, request.sid, name, payload.get("settings"))
        if not outcome.ok:
            return _fail(events.ROOM_ERROR, outcome.error or "room_not_found")

        room = outcome.room
        join_room(room.id)
        emit(
            events.ROOM_JOINED,
            {
                "roomId": room.id,
                "roomCode": room.code,
                "userId": request.sid,
                "isOwner": room.owner_id == request.sid,
                "created": outcome.created,
            },
        )
        # Late joiners replay the current canvas.
        emit(events.DRAW_SYNC, {"roomId": room.id, "strokes": list(room.drawing_data)})
        _system(room.id, f"{outcome.player.name} joined the room")

        if outcome.retry:
            emit(events.ROOM_ERROR, error_payload("retry_later"))
        return {"ok": True, "roomId": room.id, "retry": outcome.retry}

    @socketio.on(events.LEAVE)
    def room_leave(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        if not room_id:
            return _fail(events.ROOM_ERROR, "invalid_payload")

        outcome = engine.remove_player(room_id, request.sid)
        _after_removal(outcome, request.sid)
        return _ack(outcome, events.ROOM_ERROR)

    @socketio.on(events.TOGGLE_READY)
    def room_toggle_ready(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        if not room_id:
            return _fail(events.ROOM_ERROR, "invalid_payload")
        return _ack(engine.toggle_ready(room_id, request.sid), events.ROOM_ERROR)

    @socketio.on(events.KICK)
    def room_kick(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        target_id = str(payload.get("targetId", "")).strip()
        if not room_id or not target_id:
            return _fail(events.ROOM_ERROR, "invalid_payload")

        outcome = engine.kick(room_id, request.sid, target_id)
        if outcome.ok and outcome.room is not None:
            leave_room(outcome.room.id, sid=target_id)
            if not outcome.room_deleted:
                _system(outcome.room.id, f"{outcome.player.name} was kicked")
                if outcome.was_drawer and outcome.room.status == "playing":
                    engine.next_turn(outcome.room.id)
        return _ack(outcome, events.ROOM_ERROR)

    @socketio.on(events.START)
    def game_start(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        if not room_id:
            return _fail(events.GAME_ERROR, "invalid_payload")
        return _ack(engine.start(room_id, request.sid))

    @socketio.on(events.SELECT_WORD)
    def game_select_word(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        word = payload.get("word")
        if not room_id or not isinstance(word, str) or not word.strip():
            return _fail(events.GAME_ERROR, "invalid_payload")
        return _ack(engine.select_word(room_id, request.sid, word))

    @socketio.on(events.RESTART)
    def game_restart(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        if not room_id:
            return _fail(events.GAME_ERROR, "invalid_payload")
        return _ack(engine.restart(room_id, request.sid, payload.get("settings")))

    @socketio.on(events.DRAW)
    def draw_stroke(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        stroke = payload.get("stroke")
        # Strokes are high volume; anything off gets dropped without a reply.
        if not room_id or not validate_drawing_data(stroke):
            return
        if not _limit("draw"):
            return
        engine.draw(room_id, request.sid, stroke)

    @socketio.on(events.CLEAR_CANVAS)
    def draw_clear(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        if not room_id:
            return
        engine.clear_canvas(room_id, request.sid)

    @socketio.on(events.CHAT)
    def chat_message(data):
        payload = _payload(data)
        room_id = _room_id(payload)
        if not room_id:
            return _fail(events.GAME_ERROR, "invalid_payload")

        if not _limit("chat"):
            return _fail(events.GAME_ERROR, "rate_limited")

        text = sanitize_chat_message(payload.get("text"))
        if not text:
            return {"ok": False, "error": "invalid_payload"}

        outcome = engine.chat(room_id, request.sid, text)
        ack = _ack(outcome)
        if outcome.ok:
            ack["correct"] = outcome.correct
        return ack

    @socketio.on("disconnect")
    def on_disconnect(*_args: Any):
        sid = request.sid
        limiter.reset(sid)
        for room in engine.rooms_for_player(sid):
            outcome = engine.remove_player(room.id, sid)
            _after_removal(outcome, sid)
        logger.debug("Client %s disconnected", sid)
