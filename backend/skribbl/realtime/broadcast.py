from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..game.models import Room
from ..game.visibility import redact_room_for_viewer
from . import events


class Broadcaster:
    """Pushes events to connected clients through a Flask-SocketIO server.

    Room snapshots are always rendered per viewer; a redacted payload is never
    reused for a second recipient.
    """

    def __init__(self, socketio: Any) -> None:
        self._socketio = socketio

    def push_room(self, room: Room) -> None:
        for player in list(room.players):
            self._socketio.emit(events.ROOM_STATE, redact_room_for_viewer(room, player.id), to=player.id)

    def to_player(self, player_id: str, event: str, payload: dict) -> None:
        self._socketio.emit(event, payload, to=player_id)

    def to_players(self, player_ids: Iterable[str], event: str, payload: dict) -> None:
        for pid in player_ids:
            self._socketio.emit(event, dict(payload), to=pid)

    def to_room(self, room: Room, event: str, payload: dict, skip_sid: str | None = None) -> None:
        self._socketio.emit(event, payload, to=room.id, skip_sid=skip_sid)
