from __future__ import annotations

import signal
import threading
from collections.abc import Callable
from typing import Any

from .run_logger import RunLogger


class ShutdownToken:
    """Set once a stop has been requested; waits on it end early."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    def request(self, reason: str = "requested") -> None:
        if self.reason is None:
            self.reason = reason
        self._event.set()

    def wait(self, seconds: float) -> bool:
        return self._event.wait(max(seconds, 0.0))


class SignalHandler:
    """Turns SIGTERM/SIGINT into a shutdown request instead of an exception.

    Work already in flight finishes; loops check the token between steps.
    `current` names the source being scraped, if any, so the log says what
    the process is still waiting on.
    """

    def __init__(
        self,
        token: ShutdownToken,
        logger: RunLogger,
        current: Callable[[], str | None] | None = None,
    ) -> None:
        self._token = token
        self._logger = logger
        self._current = current
        self._previous_handlers: dict[int, Any] = {}

    def __enter__(self) -> "SignalHandler":
        self._install(signal.SIGTERM)
        self._install(signal.SIGINT)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        return False

    def _install(self, signum: signal.Signals) -> None:
        self._previous_handlers[int(signum)] = signal.getsignal(signum)
        signal.signal(signum, self._handle)

    def _handle(self, signum, frame) -> None:
        name = signal.Signals(signum).name
        waiting = self._current() if self._current is not None else None
        if waiting:
            self._logger.log(f"shutdown requested signal={name} waiting_for={waiting!r}")
        else:
            self._logger.log(f"shutdown requested signal={name}")
        self._token.request(name)
