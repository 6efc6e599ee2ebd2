from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

MAX_BACKOFF_HOURS = 8


def backoff_hours(failure_count: int, max_hours: int = MAX_BACKOFF_HOURS) -> int:
    """1, 2, 4, 8, 8, ... hours for the 1st, 2nd, 3rd, 4th+ consecutive failure."""
    if failure_count <= 0:
        return 0
    return min(2 ** (failure_count - 1), max_hours)


@dataclass
class SourceFailureState:
    failure_count: int = 0
    backoff_until: datetime | None = None


class FailureTracker:
    def __init__(self, max_backoff_hours: int = MAX_BACKOFF_HOURS) -> None:
        self.max_backoff_hours = max_backoff_hours
        self._states: dict[str, SourceFailureState] = {}

    def state(self, name: str) -> SourceFailureState:
        return self._states.setdefault(name, SourceFailureState())

    def failure_count(self, name: str) -> int:
        existing = self._states.get(name)
        return existing.failure_count if existing else 0

    def in_backoff(self, name: str, now: datetime) -> bool:
        existing = self._states.get(name)
        if existing is None or existing.backoff_until is None:
            return False
        return now < existing.backoff_until

    def backoff_until(self, name: str) -> datetime | None:
        existing = self._states.get(name)
        return existing.backoff_until if existing else None

    def record_failure(self, name: str, now: datetime) -> int:
        state = self.state(name)
        state.failure_count += 1
        hours = backoff_hours(state.failure_count, self.max_backoff_hours)
        state.backoff_until = now + timedelta(hours=hours)
        return hours

    def record_success(self, name: str) -> int:
        state = self.state(name)
        previous = state.failure_count
        state.failure_count = 0
        state.backoff_until = None
        return previous
