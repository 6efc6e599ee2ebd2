from __future__ import annotations

import random
from typing import Sequence

from .models import SourceEntry
from .shutdown import ShutdownToken


class Pacer:
    """Randomness and sleeping for the schedulers, swappable in tests."""

    def __init__(self, token: ShutdownToken, rng: random.Random | None = None) -> None:
        self.token = token
        self.rng = rng or random.Random()

    def uniform(self, low: float, high: float) -> float:
        return self.rng.uniform(low, high)

    def weighted_choice(self, entries: Sequence[SourceEntry]) -> SourceEntry:
        if not entries:
            raise ValueError("no sources to choose from")
        total = sum(entry.weight for entry in entries)
        remaining = self.rng.random() * total
        for entry in entries:
            remaining -= entry.weight
            if remaining <= 0:
                return entry
        return entries[-1]

    def sleep(self, seconds: float) -> bool:
        """Wait up to `seconds`; returns True when cut short by a shutdown request."""
        if seconds <= 0:
            return self.token.requested
        return self.token.wait(seconds)
