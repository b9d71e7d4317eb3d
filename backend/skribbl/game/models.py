from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from urllib.parse import quote

from .timers import RoomTimers


RoomStatus = Literal["waiting", "playing", "finished"]
GamePhase = Literal["choosing", "drawing", "results"]

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


def avatar_for(name: str) -> str:
    return AVATAR_URL.format(seed=quote(name, safe=""))


@dataclass
class Player:
    id: str
    name: str
    avatar: str = ""
    score: int = 0
    has_guessed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "score": self.score,
            "hasGuessed": self.has_guessed,
        }


@dataclass
class Room:
    id: str
    code: str
    owner_id: str | None = None
    players: list[Player] = field(default_factory=list)
    players_ready: set[str] = field(default_factory=set)
    banned_players: set[str] = field(default_factory=set)
    round: int = 1
    max_rounds: int = 3
    draw_time: int = 80
    difficulty: str | None = None
    status: RoomStatus = "waiting"
    game_phase: GamePhase | None = None
    time_left: int = 0
    current_word: str | None = None
    word_choices: list[str] | None = None
    drawer_id: str | None = None
    hints: str = ""
    drawing_data: list[dict] = field(default_factory=list)
    last_word: str | None = None
    finished_at: float | None = None
    timers: RoomTimers = field(default_factory=RoomTimers, repr=False, compare=False)

    def get_player(self, player_id: str | None) -> Player | None:
        if player_id is None:
            return None
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def has_player(self, player_id: str | None) -> bool:
        return self.get_player(player_id) is not None

    @property
    def drawer(self) -> Player | None:
        return self.get_player(self.drawer_id)

    def player_index(self, player_id: str | None) -> int:
        for idx, p in enumerate(self.players):
            if p.id == player_id:
                return idx
        return -1

    def non_drawers(self) -> list[Player]:
        return [p for p in self.players if p.id != self.drawer_id]

    def all_players_guessed(self) -> bool:
        others = self.non_drawers()
        return bool(others) and all(p.has_guessed for p in others)

    def reset_guesses(self) -> None:
        for p in self.players:
            p.has_guessed = False

    def to_dict(self) -> dict:
        """Full, unredacted snapshot. Never send this to a client directly."""
        drawer = self.drawer
        return {
            "id": self.id,
            "roomCode": self.code,
            "ownerId": self.owner_id,
            "players": [p.to_dict() for p in self.players],
            "playersReady": sorted(self.players_ready),
            "bannedPlayers": sorted(self.banned_players),
            "round": self.round,
            "maxRounds": self.max_rounds,
            "drawTime": self.draw_time,
            "difficulty": self.difficulty,
            "status": self.status,
            "gamePhase": self.game_phase,
            "timeLeft": self.time_left,
            "currentWord": self.current_word,
            "wordChoices": list(self.word_choices) if self.word_choices is not None else None,
            "currentDrawer": drawer.to_dict() if drawer else None,
            "hints": self.hints,
            "lastWord": self.last_word if self.game_phase == "results" else None,
            "drawingCount": len(self.drawing_data),
        }
