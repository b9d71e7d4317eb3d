from __future__ import annotations

import logging
import random
import re

from ..storage.base import PersistenceError, PersistenceGateway


logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")

DEFAULT_WORDS = [
    "apple", "banana", "cat", "dog", "house", "tree", "car", "boat", "sun",
    "moon", "star", "fish", "bird", "book", "chair", "clock", "cloud", "cake",
    "guitar", "piano", "rocket", "robot", "castle", "dragon", "pirate",
    "elephant", "giraffe", "penguin", "octopus", "volcano", "rainbow",
    "umbrella", "bicycle", "snowman", "lighthouse", "sandwich", "scissors",
    "toothbrush", "helicopter", "butterfly", "skateboard", "telescope",
    "hot dog", "ice cream", "fire truck", "palm tree", "traffic light",
    "roller coaster", "treasure chest", "swimming pool",
]


def categorize_difficulty(word: str) -> str:
    w = word.strip()
    has_spaces = " " in w
    has_special = re.search(r"[^a-zA-Z0-9\s]", w) is not None

    if len(w) <= 4 and not has_spaces and not has_special:
        return "easy"
    if len(w) <= 8 and not has_special:
        return "medium"
    return "hard"


def pick_words(words: list[str], count: int, rng: random.Random | None = None) -> list[str]:
    pool = list(dict.fromkeys(w for w in words if w))
    if count <= 0 or not pool:
        return []
    r = rng or random
    return r.sample(pool, min(count, len(pool)))


class WordSupplier:
    """Draws candidate words from the catalog, falling back to built-ins."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        fallback: list[str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._gateway = gateway
        self._fallback = list(fallback or DEFAULT_WORDS)
        self._rng = rng or random.Random()

    def draw(self, count: int, difficulty: str | None = None) -> list[str]:
        if difficulty not in DIFFICULTIES:
            difficulty = None

        try:
            words = [w for w in self._gateway.random_words(count, difficulty) if w]
        except PersistenceError:
            logger.warning("Word catalog unavailable, using built-in words", exc_info=True)
            words = []

        if len(words) < count:
            pool = [w for w in self._fallback if w not in words]
            if difficulty:
                pool = [w for w in pool if categorize_difficulty(w) == difficulty] or pool
            words.extend(pick_words(pool, count - len(words), self._rng))

        return words[:count]
