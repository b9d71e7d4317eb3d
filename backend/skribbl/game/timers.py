from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Literal


TimerKind = Literal["choice", "draw", "hint", "advance"]


class TimerHandle:
    """Cancellation token for a scheduled callback.

    Schedulers check ``cancelled`` before every invocation, so cancelling a
    handle is enough to turn any pending tick into a no-op.
    """

    __slots__ = ("name", "cancelled")

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"<TimerHandle {self.name!r} {state}>"


@dataclass
class RoomTimers:
    """At most one live handle of each kind for a single room."""

    choice: TimerHandle | None = None
    draw: TimerHandle | None = None
    hint: TimerHandle | None = None
    # Delayed transitions: the all-guessed celebration and the round-end pause.
    advance: TimerHandle | None = None

    def replace(self, kind: TimerKind, handle: TimerHandle) -> TimerHandle:
        self.cancel(kind)
        setattr(self, kind, handle)
        return handle

    def cancel(self, kind: TimerKind) -> None:
        handle = getattr(self, kind)
        if handle is not None:
            handle.cancel()
            setattr(self, kind, None)

    def cancel_all(self) -> None:
        for f in fields(self):
            self.cancel(f.name)  # type: ignore[arg-type]

    def active(self) -> list[TimerHandle]:
        handles = (getattr(self, f.name) for f in fields(self))
        return [h for h in handles if h is not None and not h.cancelled]
