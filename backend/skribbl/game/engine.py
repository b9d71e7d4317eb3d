"""Turn/session state machine for live rooms.

Every public operation validates its preconditions and returns an
:class:`Outcome` instead of raising. Mutations happen under one re-entrant
lock; persistence I/O and word drawing happen outside it, and any step that
continues after I/O re-fetches the room and re-checks it first.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from threading import RLock
from typing import TYPE_CHECKING, Any

from ..config import Config
from ..realtime import events
from ..storage.base import PersistenceError, PersistenceGateway
from ..utils.validation import clean_stroke, validate_game_settings
from .models import Player, Room, avatar_for
from .store import RoomSessionStore, participant_record, room_record
from .timers import TimerHandle, TimerKind
from .visibility import (
    can_see_word,
    mask_word,
    players_who_can_see_word,
    redact_chat_message,
)
from .words import WordSupplier

if TYPE_CHECKING:
    from ..realtime.broadcast import Broadcaster


logger = logging.getLogger(__name__)


@dataclass
class Outcome:
    ok: bool
    error: str | None = None
    # A durable write failed; the in-memory change still happened.
    retry: bool = False
    room: Room | None = None
    player: Player | None = None
    created: bool = False
    correct: bool = False
    points: int = 0
    was_drawer: bool = False
    room_deleted: bool = False
    new_owner_id: str | None = None


def _deny(reason: str, room: Room | None = None) -> Outcome:
    return Outcome(ok=False, error=reason, room=room)


def score_for_guess(time_left: int, draw_time: int) -> int:
    """Guesser points: 100 base plus up to 50 for speed, never below 10."""
    if draw_time <= 0:
        return 100
    return max(10, 100 + math.floor(time_left / draw_time * 50))


@dataclass
class HintPlan:
    word: str
    positions: list[int]
    max_hints: int
    interval: int
    started_at: float
    revealed: int = 0


@dataclass
class _Snapshot:
    """What a step saw before it released the lock for I/O."""

    status: str
    phase: str | None
    drawer_id: str | None
    round: int

    @classmethod
    def of(cls, room: Room) -> "_Snapshot":
        return cls(room.status, room.game_phase, room.drawer_id, room.round)

    def matches(self, room: Room) -> bool:
        return (room.status, room.game_phase, room.drawer_id, room.round) == (
            self.status,
            self.phase,
            self.drawer_id,
            self.round,
        )


class TurnEngine:
    def __init__(
        self,
        store: RoomSessionStore,
        words: WordSupplier,
        gateway: PersistenceGateway,
        broadcaster: "Broadcaster",
        scheduler: Any,
        config: Mapping[str, Any] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.words = words
        self._gateway = gateway
        self._broadcast = broadcaster
        self._scheduler = scheduler
        self._config = config or {}
        self._rng = rng or random.Random()
        self._lock = RLock()
        self._housekeeping: TimerHandle | None = None

    def _setting(self, name: str) -> Any:
        return self._config.get(name, getattr(Config, name))

    # ------------------------------------------------------------------
    # Persistence (best effort)
    # ------------------------------------------------------------------

    def _persist(self, op: str, fn: Callable[..., None], *args: Any) -> bool:
        try:
            fn(*args)
            return True
        except PersistenceError:
            logger.warning("Persistence failed during %s", op, exc_info=True)
            return False

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _live(self, room_id: str, kind: TimerKind, handle: TimerHandle) -> Room | None:
        """Room for a timer callback, or None if the tick is stale."""
        room = self.store.get(room_id)
        if room is None or getattr(room.timers, kind) is not handle:
            handle.cancel()
            return None
        return room

    def _every(self, room: Room, kind: TimerKind, interval: float, fn: Callable[..., None], *args: Any) -> TimerHandle:
        handle = room.timers.replace(kind, TimerHandle(f"{kind}:{room.id}"))
        return self._scheduler.call_every(interval, partial(fn, room.id, handle, *args), handle=handle)

    def _later(self, room: Room, kind: TimerKind, delay: float, fn: Callable[..., None]) -> TimerHandle:
        handle = room.timers.replace(kind, TimerHandle(f"{kind}:{room.id}"))
        return self._scheduler.call_later(delay, partial(fn, room.id, handle), handle=handle)

    def _tick(self, room: Room) -> None:
        room.time_left = max(0, room.time_left - 1)
        self._broadcast.push_room(room)
        self._broadcast.to_room(room, events.TIMER_TICK, {"timeLeft": room.time_left})

    def _choice_tick(self, room_id: str, handle: TimerHandle) -> None:
        with self._lock:
            room = self._live(room_id, "choice", handle)
            if room is None:
                return
            if room.status != "playing" or room.game_phase != "choosing":
                room.timers.cancel("choice")
                return

            self._tick(room)
            if room.time_left > 0:
                return

            room.timers.cancel("choice")
            drawer_id = room.drawer_id
            choice = room.word_choices[0] if room.word_choices else None
            difficulty = room.difficulty

        if choice is None:
            # Nothing was offered; pick straight from the catalog.
            fallback = self.words.draw(1, difficulty)
            with self._lock:
                room = self.store.get(room_id)
                if room is None or room.game_phase != "choosing" or not fallback:
                    return
                room.word_choices = fallback
                choice = fallback[0]

        logger.info("Choice timer expired in room %s, auto-selecting", room_id)
        self.select_word(room_id, drawer_id, choice)

    def _draw_tick(self, room_id: str, handle: TimerHandle) -> None:
        with self._lock:
            room = self._live(room_id, "draw", handle)
            if room is None:
                return
            if room.status != "playing" or room.game_phase != "drawing":
                room.timers.cancel("draw")
                return

            self._tick(room)
            if room.time_left > 0:
                return

            room.timers.cancel("draw")
            room.reset_guesses()
            self.next_turn(room_id)

    def _start_hint_timer(self, room: Room) -> None:
        word = room.current_word or ""
        if len(word) <= 3:
            return

        max_hints = math.floor(len(word) * 0.5)
        positions = [i for i, ch in enumerate(word) if ch != " "]
        self._rng.shuffle(positions)
        plan = HintPlan(
            word=word,
            positions=positions,
            max_hints=min(max_hints, len(positions)),
            interval=max(1, room.draw_time // (max_hints + 1)),
            started_at=self._scheduler.now(),
        )
        self._every(room, "hint", 1, self._hint_tick, plan)

    def _hint_tick(self, room_id: str, handle: TimerHandle, plan: HintPlan) -> None:
        with self._lock:
            room = self._live(room_id, "hint", handle)
            if room is None:
                return
            if room.game_phase != "drawing" or room.current_word != plan.word:
                room.timers.cancel("hint")
                return

            # Wall-clock based so a late tick still reveals the right amount.
            elapsed = int(self._scheduler.now() - plan.started_at)
            due = min(elapsed // plan.interval, plan.max_hints)
            if due <= plan.revealed:
                return

            plan.revealed = due
            room.hints = mask_word(plan.word, plan.positions[:due])
            self._broadcast.to_room(room, events.HINT_UPDATE, {"hints": room.hints})

            if plan.revealed >= plan.max_hints:
                room.timers.cancel("hint")

    def _advance_tick(self, room_id: str, handle: TimerHandle) -> None:
        with self._lock:
            room = self._live(room_id, "advance", handle)
            if room is None:
                return
            room.timers.advance = None
        self.advance_turn(room_id)

    def _all_guessed_tick(self, room_id: str, handle: TimerHandle) -> None:
        with self._lock:
            room = self._live(room_id, "advance", handle)
            if room is None:
                return
            room.timers.advance = None
            room.reset_guesses()
            self.next_turn(room_id)

    def _schedule_all_guessed(self, room: Room) -> None:
        # Freeze the clock and give clients a moment to celebrate.
        room.timers.cancel("draw")
        room.timers.cancel("hint")
        self._later(room, "advance", self._setting("ALL_GUESSED_DELAY_SEC"), self._all_guessed_tick)
        logger.info("Everyone guessed in room %s", room.id)

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    def _settings(self, raw: Any, room: Room | None = None) -> dict:
        """Validated settings; omitted values keep the room's current ones."""
        s = validate_game_settings(
            raw,
            draw_time_range=self._setting("DRAW_TIME_RANGE"),
            max_rounds_range=self._setting("MAX_ROUNDS_RANGE"),
            default_draw_time=room.draw_time if room else self._setting("DEFAULT_DRAW_TIME_SEC"),
            default_max_rounds=room.max_rounds if room else self._setting("DEFAULT_MAX_ROUNDS"),
        )
        if room is not None and not (isinstance(raw, dict) and "difficulty" in raw):
            s["difficulty"] = room.difficulty
        return s

    def join(self, code: str, player_id: str, name: str, settings: Any = None) -> Outcome:
        """Join the room with ``code``, rehydrating or creating it as needed.

        ``code`` and ``name`` must already be validated and sanitized.
        """
        retry = False
        try:
            room, rehydrated = self.store.get_or_rehydrate(code)
        except PersistenceError:
            logger.warning("Room lookup for %s failed, treating as live-only", code, exc_info=True)
            room, rehydrated = self.store.get_by_code(code), False
            retry = True

        created = False
        if room is None:
            s = self._settings(settings)
            room, persisted = self.store.create(
                code, max_rounds=s["max_rounds"], draw_time=s["draw_time"], difficulty=s["difficulty"]
            )
            created = True
            retry = retry or not persisted

        with self._lock:
            room = self.store.get(room.id)
            if room is None:
                return _deny("room_not_found")
            if player_id in room.banned_players:
                return _deny("banned", room)

            player = room.get_player(player_id)
            if player is None:
                player = Player(id=player_id, name=name, avatar=avatar_for(name))
                room.players.append(player)
            if not room.has_player(room.owner_id):
                room.owner_id = player_id
            participant = participant_record(room, player)
            record = room_record(room)

        logger.info("Player %s joined room %s (%s)", name, room.id, room.code)
        ok = self._persist("upsert_participant", self._gateway.upsert_participant, room.id, participant)
        ok = self._persist("save_room", self._gateway.save_room, record) and ok

        if rehydrated and room.status == "playing":
            # Timers died with the previous process; resume from a round end.
            self.next_turn(room.id)

        self._broadcast.push_room(room)
        return Outcome(ok=True, room=room, player=player, created=created, retry=retry or not ok)

    def start(self, room_id: str, requester_id: str) -> Outcome:
        with self._lock:
            room = self.store.get(room_id)
            denied = self._check_start(room, requester_id)
            if denied:
                return denied
            difficulty = room.difficulty

        words = self.words.draw(self._setting("WORD_CHOICES_COUNT"), difficulty)

        with self._lock:
            room = self.store.get(room_id)
            denied = self._check_start(room, requester_id)
            if denied:
                return denied

            room.reset_guesses()
            room.status = "playing"
            room.finished_at = None
            room.players_ready.clear()
            room.drawer_id = room.players[0].id
            self._begin_choosing(room, words)
            record = room_record(room)

        logger.info("Game started in room %s with %d players", room.id, len(room.players))
        ok = self._persist("save_room", self._gateway.save_room, record)
        return Outcome(ok=True, room=room, retry=not ok)

    def _check_start(self, room: Room | None, requester_id: str) -> Outcome | None:
        if room is None:
            return _deny("room_not_found")
        if room.owner_id != requester_id:
            return _deny("only_owner", room)
        if room.status != "waiting":
            return _deny("already_started", room)
        if len(room.players) < self._setting("MIN_PLAYERS"):
            return _deny("not_enough_players", room)
        return None

    def restart(self, room_id: str, requester_id: str, settings: Any = None) -> Outcome:
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            if room.owner_id != requester_id:
                return _deny("only_owner", room)

            s = self._settings(settings, room)

            room.timers.cancel_all()
            room.current_word = None
            room.word_choices = None
            room.drawer_id = None
            room.round = 1
            room.max_rounds = s["max_rounds"]
            room.draw_time = s["draw_time"]
            room.difficulty = s["difficulty"]
            room.status = "waiting"
            room.game_phase = None
            room.time_left = 0
            room.drawing_data = []
            room.hints = ""
            room.last_word = None
            room.finished_at = None
            for p in room.players:
                p.score = 0
                p.has_guessed = False
            room.players_ready = {room.owner_id} if room.owner_id else set()

            self._broadcast.to_room(room, events.GAME_RESTARTED, {"roomId": room.id})
            self._broadcast.push_room(room)
            record = room_record(room)

        logger.info("Room %s restarted", room.id)
        ok = self._persist("reset_scores", self._gateway.reset_scores, room.id)
        ok = self._persist("save_room", self._gateway.save_room, record) and ok
        return Outcome(ok=True, room=room, retry=not ok)

    def toggle_ready(self, room_id: str, player_id: str) -> Outcome:
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            if not room.has_player(player_id):
                return _deny("not_in_room", room)
            if room.status != "finished":
                return _deny("not_finished", room)

            if player_id in room.players_ready:
                room.players_ready.discard(player_id)
            else:
                room.players_ready.add(player_id)
            self._broadcast.push_room(room)
            return Outcome(ok=True, room=room)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def _begin_choosing(self, room: Room, words: list[str]) -> None:
        room.word_choices = list(words)
        room.current_word = None
        room.last_word = None
        room.hints = ""
        room.drawing_data = []
        room.game_phase = "choosing"
        room.time_left = self._setting("CHOOSE_DURATION_SEC")
        self._broadcast.to_room(room, events.CLEAR_CANVAS, {"roomId": room.id})

        for p in room.players:
            payload = {"drawerId": room.drawer_id, "timeLeft": room.time_left}
            payload["words"] = list(room.word_choices) if p.id == room.drawer_id else None
            self._broadcast.to_player(p.id, events.WORD_CHOICES, payload)

        self._every(room, "choice", 1, self._choice_tick)
        self._broadcast.push_room(room)

    def select_word(self, room_id: str, requester_id: str | None, word: Any) -> Outcome:
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            if room.status != "playing" or room.game_phase != "choosing":
                return _deny("not_choosing", room)
            if requester_id is None or requester_id != room.drawer_id:
                return _deny("not_drawer", room)

            wanted = word.strip().lower() if isinstance(word, str) else ""
            choice = next((c for c in room.word_choices or [] if c.lower() == wanted), None)
            if choice is None:
                return _deny("invalid_word", room)

            room.timers.cancel("choice")
            room.word_choices = None
            room.current_word = choice
            room.hints = mask_word(choice)
            room.game_phase = "drawing"
            room.time_left = room.draw_time

            self._every(room, "draw", 1, self._draw_tick)
            self._start_hint_timer(room)

            for p in room.players:
                payload = {"drawerId": room.drawer_id, "hints": room.hints, "timeLeft": room.time_left}
                if can_see_word(room, p.id):
                    payload["word"] = choice
                self._broadcast.to_player(p.id, events.WORD_SELECTED, payload)
            self._broadcast.push_room(room)
            record = room_record(room)

        ok = self._persist("save_room", self._gateway.save_room, record)
        return Outcome(ok=True, room=room, retry=not ok)

    def guess(self, room_id: str, player_id: str, text: Any) -> Outcome:
        """Score ``text`` as a guess. Outcome.correct tells whether it matched."""
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            player = room.get_player(player_id)
            if player is None:
                return _deny("not_in_room", room)

            if room.status != "playing" or room.game_phase != "drawing" or not room.current_word:
                return Outcome(ok=True, room=room, player=player)
            if player_id == room.drawer_id or player.has_guessed:
                return Outcome(ok=True, room=room, player=player)
            if not isinstance(text, str) or text.strip().lower() != room.current_word.strip().lower():
                return Outcome(ok=True, room=room, player=player)

            points = score_for_guess(room.time_left, room.draw_time)
            player.score += points
            player.has_guessed = True
            drawer = room.drawer
            if drawer is not None:
                drawer.score += self._setting("DRAWER_BONUS")

            if room.all_players_guessed():
                self._schedule_all_guessed(room)

            scores = [(player.id, player.score)]
            if drawer is not None:
                scores.append((drawer.id, drawer.score))

        ok = True
        for pid, score in scores:
            ok = self._persist("upsert_score", self._gateway.upsert_score, room_id, pid, score) and ok
        return Outcome(ok=True, room=room, player=player, correct=True, points=points, retry=not ok)

    def next_turn(self, room_id: str) -> Outcome:
        """End the current turn: show results, then rotate after a short pause."""
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            if room.status != "playing":
                return _deny("not_playing", room)

            room.timers.cancel_all()
            already_showing = room.game_phase == "results"
            drawer = room.drawer

            room.last_word = room.current_word or room.last_word
            room.current_word = None
            room.word_choices = None
            room.game_phase = "results"
            room.time_left = 0
            room.reset_guesses()

            if not already_showing:
                self._broadcast.to_room(
                    room,
                    events.ROUND_END,
                    {
                        "word": room.last_word,
                        "drawer": drawer.name if drawer else None,
                        "round": room.round,
                        "maxRounds": room.max_rounds,
                    },
                )
            self._broadcast.push_room(room)
            self._later(room, "advance", self._setting("ROUND_END_DELAY_SEC"), self._advance_tick)
            return Outcome(ok=True, room=room)

    def advance_turn(self, room_id: str) -> Outcome:
        """Rotate to the next drawer, or finish the game after the last round."""
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            if room.status != "playing" or not room.players:
                return _deny("not_playing", room)
            seen = _Snapshot.of(room)
            difficulty = room.difficulty

        words = self.words.draw(self._setting("WORD_CHOICES_COUNT"), difficulty)

        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            if not seen.matches(room) or not room.players:
                logger.info("Turn advance in room %s superseded while drawing words", room_id)
                return _deny("superseded", room)

            room.timers.cancel_all()
            idx = room.player_index(room.drawer_id)  # -1 when the drawer left
            next_idx = (idx + 1) % len(room.players)

            if next_idx == 0:
                room.round += 1
                if room.round > room.max_rounds:
                    self._finish(room)
                    record = room_record(room)
                    finished = True
                else:
                    finished = False
            else:
                finished = False

            if not finished:
                room.reset_guesses()
                room.drawer_id = room.players[next_idx].id
                self._begin_choosing(room, words)
                self._broadcast.to_room(
                    room,
                    events.NEXT_TURN,
                    {"drawerId": room.drawer_id, "round": room.round, "maxRounds": room.max_rounds},
                )
                record = room_record(room)

        ok = self._persist("save_room", self._gateway.save_room, record)
        return Outcome(ok=True, room=room, retry=not ok)

    def _finish(self, room: Room) -> None:
        room.timers.cancel_all()
        room.status = "finished"
        room.round = room.max_rounds
        room.game_phase = None
        room.current_word = None
        room.word_choices = None
        room.drawer_id = None
        room.hints = ""
        room.time_left = 0
        room.finished_at = self._scheduler.now()
        room.players_ready = {room.owner_id} if room.owner_id else set()

        standings = sorted(room.players, key=lambda p: p.score, reverse=True)
        self._broadcast.to_room(
            room,
            events.GAME_FINISHED,
            {"standings": [p.to_dict() for p in standings], "winnerId": standings[0].id if standings else None},
        )
        self._broadcast.push_room(room)
        logger.info("Game finished in room %s", room.id)

    # ------------------------------------------------------------------
    # Drawing and chat
    # ------------------------------------------------------------------

    def draw(self, room_id: str, player_id: str, stroke: dict) -> bool:
        with self._lock:
            room = self.store.get(room_id)
            if room is None or room.status != "playing" or room.game_phase != "drawing":
                return False
            if player_id != room.drawer_id:
                return False

            stroke = clean_stroke(stroke)
            room.drawing_data.append(stroke)
            if len(room.drawing_data) > self._setting("DRAWING_DATA_MAX"):
                room.drawing_data = room.drawing_data[-self._setting("DRAWING_DATA_KEEP"):]

            self._broadcast.to_room(room, events.DRAW, stroke, skip_sid=player_id)
            return True

    def clear_canvas(self, room_id: str, player_id: str) -> bool:
        with self._lock:
            room = self.store.get(room_id)
            if room is None or room.status != "playing" or player_id != room.drawer_id:
                return False
            room.drawing_data = []
            self._broadcast.to_room(room, events.CLEAR_CANVAS, {"roomId": room.id}, skip_sid=player_id)
            return True

    def chat(self, room_id: str, sender_id: str, text: str) -> Outcome:
        """Route a sanitized chat line: score it as a guess, then deliver it per viewer."""
        result = self.guess(room_id, sender_id, text)
        if not result.ok:
            return result

        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            sender = room.get_player(sender_id)
            if sender is None:
                return _deny("not_in_room", room)

            guessing = room.status == "playing" and room.game_phase == "drawing"
            is_guess = guessing and sender_id != room.drawer_id

            if result.correct:
                self._announce_correct_guess(room, sender, result.points)
            else:
                message = {
                    "userId": sender.id,
                    "userName": sender.name,
                    "message": text,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
                if guessing and can_see_word(room, sender_id):
                    # Drawer and solvers talk among themselves until the round ends.
                    self._broadcast.to_players(players_who_can_see_word(room), events.CHAT, message)
                else:
                    for p in room.players:
                        payload = dict(message)
                        if not can_see_word(room, p.id):
                            payload["message"] = redact_chat_message(text, room.current_word)
                        self._broadcast.to_player(p.id, events.CHAT, payload)

            self._broadcast.push_room(room)

        ok = self._persist("save_chat_message", self._gateway.save_chat_message, room_id, sender_id, text, is_guess)
        return Outcome(
            ok=True,
            room=room,
            player=sender,
            correct=result.correct,
            points=result.points,
            retry=result.retry or not ok,
        )

    def _announce_correct_guess(self, room: Room, guesser: Player, points: int) -> None:
        insiders = set(players_who_can_see_word(room))
        notice = {"userId": guesser.id, "userName": guesser.name, "points": points}
        for p in room.players:
            payload = dict(notice)
            if p.id in insiders:
                payload["word"] = room.current_word
            self._broadcast.to_player(p.id, events.CORRECT_GUESS, payload)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def remove_player(self, room_id: str, player_id: str) -> Outcome:
        """Drop a player (disconnect, leave or kick).

        Never advances the turn itself: when ``was_drawer`` is set the caller
        must invoke :meth:`next_turn`.
        """
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            player = room.get_player(player_id)
            if player is None:
                return _deny("not_in_room", room)

            was_owner = room.owner_id == player_id
            was_drawer = room.drawer_id == player_id and room.status == "playing"

            room.players.remove(player)
            room.players_ready.discard(player_id)

            if not room.players:
                self.store.delete(room.id)
                # The durable row must not look resumable once the room is gone.
                room.status = "finished"
                room.game_phase = None
                room.current_word = None
                room.drawer_id = None
                logger.info("Last player left room %s", room.id)
                outcome = Outcome(ok=True, room=room, player=player, was_drawer=was_drawer, room_deleted=True)
            else:
                if room.drawer_id == player_id:
                    room.drawer_id = None
                if was_drawer:
                    room.timers.cancel_all()
                    logger.info("Drawer left room %s, timers cleared", room.id)
                elif (
                    room.status == "playing"
                    and room.game_phase == "drawing"
                    and room.timers.advance is None
                    and room.all_players_guessed()
                ):
                    self._schedule_all_guessed(room)

                if was_owner:
                    room.owner_id = self._rng.choice(room.players).id
                    if room.status == "finished":
                        room.players_ready.add(room.owner_id)
                    logger.info("Ownership of room %s transferred to %s", room.id, room.owner_id)

                self._broadcast.to_room(
                    room,
                    events.PLAYER_LEFT,
                    {"userId": player_id, "playerName": player.name, "newOwnerId": room.owner_id},
                )
                self._broadcast.push_room(room)
                outcome = Outcome(
                    ok=True,
                    room=room,
                    player=player,
                    was_drawer=was_drawer,
                    new_owner_id=room.owner_id if was_owner else None,
                )
            record = room_record(room)

        ok = self._persist("delete_participant", self._gateway.delete_participant, room_id, player_id)
        ok = self._persist("save_room", self._gateway.save_room, record) and ok
        outcome.retry = not ok
        return outcome

    def kick(self, room_id: str, requester_id: str, target_id: str) -> Outcome:
        with self._lock:
            room = self.store.get(room_id)
            if room is None:
                return _deny("room_not_found")
            if room.owner_id != requester_id:
                return _deny("only_owner", room)
            if target_id == requester_id:
                return _deny("cannot_kick_self", room)
            target = room.get_player(target_id)
            if target is None:
                return _deny("not_in_room", room)

            room.banned_players.add(target_id)
            self._broadcast.to_player(target_id, events.YOU_WERE_KICKED, {"roomId": room.id})
            self._broadcast.to_room(
                room, events.PLAYER_KICKED, {"userId": target_id, "playerName": target.name}
            )
            logger.info("Player %s kicked from room %s", target_id, room.id)

        return self.remove_player(room_id, target_id)

    def rooms_for_player(self, player_id: str) -> list[Room]:
        return [r for r in self.store.all() if r.has_player(player_id)]

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def sweep(self) -> list[str]:
        with self._lock:
            return self.store.sweep(self._scheduler.now(), self._setting("FINISHED_ROOM_TTL_SEC"))

    def start_housekeeping(self) -> TimerHandle:
        if self._housekeeping is None or self._housekeeping.cancelled:
            self._housekeeping = self._scheduler.call_every(
                self._setting("SWEEP_INTERVAL_SEC"), self.sweep, handle=TimerHandle("sweep")
            )
        return self._housekeeping

    def shutdown(self) -> None:
        if self._housekeeping is not None:
            self._housekeeping.cancel()
        with self._lock:
            self.store.close()
