"""Gesture tokens identifying one physical user interaction.

A view may forward a single click twice: once through the binder's implicit
dispatcher wiring and once through an explicit ``ActionRequest`` re-published
by the view and re-forwarded by the presenter. Both copies carry the same
token, which lets the dispatcher execute the handler exactly once.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass

__all__ = ["GestureToken", "next_gesture"]

_COUNTER = itertools.count(1)
_COUNTER_LOCK = threading.Lock()


@dataclass(frozen=True, slots=True, order=True)
class GestureToken:
    """Monotonically increasing value minted once per trigger activation."""

    serial: int

    def __str__(self) -> str:
        return f"gesture-{self.serial}"


def next_gesture() -> GestureToken:
    """Mint a new token; tokens are unique and increasing across the process."""

    with _COUNTER_LOCK:
        return GestureToken(next(_COUNTER))
