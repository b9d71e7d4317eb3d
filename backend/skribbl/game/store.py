from __future__ import annotations

import logging
import random
import string
import uuid
from threading import RLock

from ..storage.base import ParticipantRecord, PersistenceError, PersistenceGateway, RoomRecord
from .models import Player, Room


logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def room_record(room: Room) -> RoomRecord:
    return RoomRecord(
        id=room.id,
        room_code=room.code,
        owner_id=room.owner_id,
        current_word=room.current_word,
        current_drawer=room.drawer_id,
        round=room.round,
        max_rounds=room.max_rounds,
        draw_time=room.draw_time,
        status=room.status,
    )


def participant_record(room: Room, player: Player) -> ParticipantRecord:
    return ParticipantRecord(
        id=player.id,
        name=player.name,
        avatar=player.avatar,
        score=player.score,
        seat=room.player_index(player.id),
    )


class RoomSessionStore:
    """Live rooms for this process, keyed by id with a code index.

    In-memory state is authoritative for live play; the gateway only gets
    best-effort copies. Create one per server process and call
    :meth:`close` on shutdown.
    """

    def __init__(self, gateway: PersistenceGateway, rng: random.Random | None = None) -> None:
        self._gateway = gateway
        self._rng = rng or random.Random()
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._codes: dict[str, str] = {}

    def create(self, code: str, **settings) -> tuple[Room, bool]:
        """Returns (room, persisted)."""
        room = Room(id=uuid.uuid4().hex, code=code, **settings)
        with self._lock:
            self._rooms[room.id] = room
            self._codes[code] = room.id

        persisted = True
        try:
            self._gateway.save_room(room_record(room))
        except PersistenceError:
            logger.warning("Could not persist new room %s (%s)", room.id, code, exc_info=True)
            persisted = False

        logger.info("Created room %s with code %s", room.id, code)
        return room, persisted

    def get(self, room_id: str | None) -> Room | None:
        if not room_id:
            return None
        with self._lock:
            return self._rooms.get(room_id)

    def get_by_code(self, code: str) -> Room | None:
        with self._lock:
            room_id = self._codes.get(code)
            return self._rooms.get(room_id) if room_id else None

    def get_or_rehydrate(self, code: str) -> tuple[Room | None, bool]:
        """Returns (room, rehydrated). Raises PersistenceError if the lookup fails."""
        room = self.get_by_code(code)
        if room is not None:
            return room, False

        record = self._gateway.latest_room_by_code(code)
        if record is None:
            return None, False

        with self._lock:
            # Another join may have rehydrated it while we were waiting on I/O.
            live = self._rooms.get(record.id)
            if live is not None:
                return live, False

        participants = self._gateway.participants_for_room(record.id)
        if not participants:
            # Everyone left, so the room was deleted; a join starts a fresh one.
            logger.info("Room %s (%s) has no participants, not rehydrating", record.id, code)
            return None, False
        room = self._rehydrate(record, participants)

        with self._lock:
            live = self._rooms.get(record.id)
            if live is not None:
                return live, False
            self._rooms[room.id] = room
            self._codes[room.code] = room.id

        logger.info("Rehydrated room %s (%s) with %d players", room.id, code, len(room.players))
        return room, True

    def _rehydrate(self, record: RoomRecord, participants: list[ParticipantRecord]) -> Room:
        players = [
            Player(id=p.id, name=p.name, avatar=p.avatar, score=max(0, p.score))
            for p in sorted(participants, key=lambda p: p.seat)
        ]
        room = Room(
            id=record.id,
            code=record.room_code,
            owner_id=record.owner_id,
            players=players,
            round=max(1, record.round),
            max_rounds=record.max_rounds,
            draw_time=record.draw_time,
            status=record.status if record.status in ("waiting", "playing", "finished") else "waiting",
            drawer_id=record.current_drawer,
        )

        if not room.has_player(room.owner_id):
            room.owner_id = players[0].id if players else None
        if not room.has_player(room.drawer_id):
            room.drawer_id = None
        if room.status == "playing":
            # Transient turn state is gone; the engine resumes from a round-end.
            room.game_phase = "results"
        if room.status == "finished" and room.round > room.max_rounds:
            room.round = room.max_rounds
        return room

    def all(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def delete(self, room_id: str) -> Room | None:
        with self._lock:
            room = self._rooms.pop(room_id, None)
            if room is None:
                return None
            if self._codes.get(room.code) == room_id:
                del self._codes[room.code]
        room.timers.cancel_all()
        logger.info("Deleted room %s (%s)", room.id, room.code)
        return room

    def generate_code(self, length: int = 6) -> str:
        with self._lock:
            while True:
                code = "".join(self._rng.choices(CODE_ALPHABET, k=length))
                if code not in self._codes:
                    return code

    @staticmethod
    def is_sweepable(room: Room, now: float, ttl: float) -> bool:
        return (
            room.status == "finished"
            and not room.players
            and room.finished_at is not None
            and now - room.finished_at > ttl
        )

    def sweep(self, now: float, ttl: float) -> list[str]:
        stale = [r.id for r in self.all() if self.is_sweepable(r, now, ttl)]
        for room_id in stale:
            self.delete(room_id)
        if stale:
            logger.info("Swept %d finished rooms", len(stale))
        return stale

    def close(self) -> None:
        for room in self.all():
            self.delete(room.id)
        self._gateway.close()
