"""Backoff and deadline helpers for the trigger delivery runtime."""

from __future__ import annotations

import random
import time


def backoff_seconds(attempt: int, *, base: float = 0.25, cap: float = 5.0) -> float:
    """Exponential backoff with jitter."""
    exp = base * (2 ** max(0, int(attempt)))
    jitter = random.uniform(0.0, base)
    return min(cap, exp + jitter)


def within_deadline(deadline: float) -> bool:
    return time.monotonic() < deadline


__all__ = ["backoff_seconds", "within_deadline"]
