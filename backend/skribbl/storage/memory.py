from __future__ import annotations

import random
from dataclasses import replace
from threading import RLock

from ..game.words import DEFAULT_WORDS, categorize_difficulty, pick_words
from .base import ParticipantRecord, PersistenceGateway, RoomRecord


class MemoryGateway(PersistenceGateway):
    """Process-local store. The default when no DATABASE_URL is configured."""

    def __init__(self, words: list[str] | None = None, rng: random.Random | None = None) -> None:
        self._lock = RLock()
        self._rng = rng or random.Random()
        self._rooms: dict[str, RoomRecord] = {}
        self._room_order: list[str] = []
        self._participants: dict[str, dict[str, ParticipantRecord]] = {}
        self.chat_log: list[dict] = []
        self._words = {w: categorize_difficulty(w) for w in (words or DEFAULT_WORDS)}

    def save_room(self, record: RoomRecord) -> None:
        with self._lock:
            if record.id not in self._rooms:
                self._room_order.append(record.id)
            self._rooms[record.id] = replace(record)

    def latest_room_by_code(self, room_code: str) -> RoomRecord | None:
        with self._lock:
            for room_id in reversed(self._room_order):
                rec = self._rooms[room_id]
                if rec.room_code == room_code:
                    return replace(rec)
            return None

    def upsert_participant(self, room_id: str, participant: ParticipantRecord) -> None:
        with self._lock:
            self._participants.setdefault(room_id, {})[participant.id] = replace(participant)

    def delete_participant(self, room_id: str, participant_id: str) -> None:
        with self._lock:
            self._participants.get(room_id, {}).pop(participant_id, None)

    def participants_for_room(self, room_id: str) -> list[ParticipantRecord]:
        with self._lock:
            rows = self._participants.get(room_id, {}).values()
            return [replace(p) for p in sorted(rows, key=lambda p: p.seat)]

    def upsert_score(self, room_id: str, participant_id: str, score: int) -> None:
        with self._lock:
            rec = self._participants.get(room_id, {}).get(participant_id)
            if rec is not None:
                rec.score = score

    def reset_scores(self, room_id: str) -> None:
        with self._lock:
            for rec in self._participants.get(room_id, {}).values():
                rec.score = 0

    def random_words(self, count: int, difficulty: str | None = None) -> list[str]:
        with self._lock:
            pool = [w for w, d in self._words.items() if difficulty is None or d == difficulty]
            return pick_words(pool, count, self._rng)

    def save_chat_message(self, room_id: str, user_id: str, message: str, is_guess: bool = False) -> None:
        with self._lock:
            self.chat_log.append(
                {"game_id": room_id, "user_id": user_id, "message": message, "is_guess": is_guess}
            )
