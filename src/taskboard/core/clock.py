"""Clock abstraction injected into time-sensitive components."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]


def monotonic_clock() -> float:
    """Return seconds from a monotonic source, unaffected by wall-clock changes."""
    return time.monotonic()


__all__ = ["Clock", "monotonic_clock"]
