from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class PersistenceError(Exception):
    """Durable store unreachable or rejected a write. Always retryable."""


@dataclass
class RoomRecord:
    id: str
    room_code: str
    owner_id: str | None = None
    current_word: str | None = None
    current_drawer: str | None = None
    round: int = 1
    max_rounds: int = 3
    draw_time: int = 80
    status: str = "waiting"


@dataclass
class ParticipantRecord:
    id: str
    name: str
    avatar: str = ""
    score: int = 0
    seat: int = 0


class PersistenceGateway(ABC):
    """Durable store for rooms, participants, scores, chat and the word catalog.

    Implementations raise :class:`PersistenceError` on any storage failure;
    callers decide whether that is fatal (it never is for live play).
    """

    @abstractmethod
    def save_room(self, record: RoomRecord) -> None: ...

    @abstractmethod
    def latest_room_by_code(self, room_code: str) -> RoomRecord | None: ...

    @abstractmethod
    def upsert_participant(self, room_id: str, participant: ParticipantRecord) -> None: ...

    @abstractmethod
    def delete_participant(self, room_id: str, participant_id: str) -> None: ...

    @abstractmethod
    def participants_for_room(self, room_id: str) -> list[ParticipantRecord]: ...

    @abstractmethod
    def upsert_score(self, room_id: str, participant_id: str, score: int) -> None: ...

    @abstractmethod
    def reset_scores(self, room_id: str) -> None: ...

    @abstractmethod
    def random_words(self, count: int, difficulty: str | None = None) -> list[str]: ...

    @abstractmethod
    def save_chat_message(self, room_id: str, user_id: str, message: str, is_guess: bool = False) -> None: ...

    def close(self) -> None:
        return None
