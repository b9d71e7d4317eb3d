from __future__ import annotations

import re
from numbers import Real
from typing import Any


MAX_NAME_LENGTH = 20
MAX_CHAT_LENGTH = 200
MAX_COORD = 10000
LINE_WIDTH_RANGE = (1, 50)
STROKE_TYPES = ("draw", "erase")
STROKE_FIELDS = ("x", "y", "prevX", "prevY", "color", "lineWidth", "type")
DIFFICULTIES = ("easy", "medium", "hard")

ROOM_CODE_RE = re.compile(r"^[A-Z0-9]{4,8}$")
HEX_COLOR_RE = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def strip_html(text: str) -> str:
    return _TAG_RE.sub("", _SCRIPT_RE.sub("", text))


def sanitize_player_name(name: Any) -> str:
    if not isinstance(name, str):
        return ""
    cleaned = _CONTROL_RE.sub("", strip_html(name)).strip()
    return cleaned[:MAX_NAME_LENGTH].strip()


def sanitize_chat_message(message: Any) -> str:
    if not isinstance(message, str):
        return ""
    cleaned = _CONTROL_RE.sub(" ", strip_html(message)).strip()
    return cleaned[:MAX_CHAT_LENGTH]


def normalize_room_code(room_code: Any) -> str | None:
    """Upper-cased code if it is 4-8 alphanumerics, else None."""
    if not isinstance(room_code, str):
        return None
    code = room_code.strip().upper()
    return code if ROOM_CODE_RE.match(code) else None


def validate_room_code(room_code: Any) -> bool:
    return normalize_room_code(room_code) is not None


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_drawing_data(data: Any) -> bool:
    if not isinstance(data, dict):
        return False

    for key in ("x", "y", "prevX", "prevY"):
        value = data.get(key)
        if not _is_number(value) or value < 0 or value > MAX_COORD:
            return False

    color = data.get("color")
    if not isinstance(color, str) or not HEX_COLOR_RE.match(color):
        return False

    line_width = data.get("lineWidth")
    lo, hi = LINE_WIDTH_RANGE
    if not _is_number(line_width) or line_width < lo or line_width > hi:
        return False

    return data.get("type") in STROKE_TYPES


def _in_range(value: Any, bounds: tuple[int, int]) -> bool:
    return _is_number(value) and int(value) == value and bounds[0] <= value <= bounds[1]


def validate_game_settings(
    settings: Any,
    draw_time_range: tuple[int, int] = (30, 300),
    max_rounds_range: tuple[int, int] = (1, 10),
    default_draw_time: int = 80,
    default_max_rounds: int = 3,
) -> dict:
    """Out-of-range or missing values fall back to the defaults."""
    if not isinstance(settings, dict):
        settings = {}

    draw_time = settings.get("drawTime")
    max_rounds = settings.get("maxRounds")
    difficulty = settings.get("difficulty")

    return {
        "draw_time": int(draw_time) if _in_range(draw_time, draw_time_range) else default_draw_time,
        "max_rounds": int(max_rounds) if _in_range(max_rounds, max_rounds_range) else default_max_rounds,
        "difficulty": difficulty if difficulty in DIFFICULTIES else None,
    }


def clean_stroke(data: dict) -> dict:
    """Copy only the stroke fields a validated payload is allowed to carry."""
    return {key: data[key] for key in STROKE_FIELDS}
