"""Who may see the secret word, and per-viewer redaction.

Everything here is a pure function of its arguments: no logging, no I/O and
no caching. Redacted payloads must be rebuilt for every viewer.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import Room


HINT_GAP = "     "
MASK_CHAR = "*"


def mask_word(word: str, revealed: Iterable[int] = ()) -> str:
    """Render ``word`` as a hint: ``_`` per hidden letter, a wide gap per space."""
    shown = set(revealed)
    cells = []
    for idx, ch in enumerate(word):
        if ch == " ":
            cells.append(HINT_GAP)
        elif idx in shown:
            cells.append(ch)
        else:
            cells.append("_")
    return " ".join(cells)


def can_see_word(room: Room, viewer_id: str | None) -> bool:
    if room is None or not viewer_id:
        return False

    # Lobby / finished: nothing to protect.
    if room.status != "playing":
        return True

    if not room.current_word:
        return False

    if viewer_id == room.drawer_id:
        return True

    viewer = room.get_player(viewer_id)
    if viewer is not None and viewer.has_guessed:
        return True

    if room.game_phase == "choosing":
        return viewer_id == room.drawer_id

    if room.game_phase == "results":
        return True

    return False


def can_see_choices(room: Room, viewer_id: str | None) -> bool:
    return (
        room.status == "playing"
        and room.game_phase == "choosing"
        and viewer_id is not None
        and viewer_id == room.drawer_id
    )


def redact_room_for_viewer(room: Room, viewer_id: str | None) -> dict:
    payload = room.to_dict()

    if not can_see_word(room, viewer_id):
        payload["currentWord"] = None
        if room.game_phase == "drawing" and room.current_word and not payload["hints"]:
            payload["hints"] = mask_word(room.current_word)

    if not can_see_choices(room, viewer_id):
        payload["wordChoices"] = None

    # Ban list is owner business.
    if viewer_id != room.owner_id:
        payload.pop("bannedPlayers", None)

    return payload


def redact_chat_message(text: str, secret_word: str | None) -> str:
    if not text or not secret_word:
        return text

    # Lookarounds instead of \b so secrets that start or end with punctuation
    # ("c++") still match as whole words.
    pattern = re.compile(rf"(?<!\w){re.escape(secret_word)}(?!\w)", re.IGNORECASE)
    return pattern.sub(lambda m: MASK_CHAR * len(m.group(0)), text)


def players_who_can_see_word(room: Room) -> list[str]:
    ids: list[str] = []
    if room.drawer is not None:
        ids.append(room.drawer.id)
    for p in room.players:
        if p.has_guessed and p.id != room.drawer_id:
            ids.append(p.id)
    return ids
