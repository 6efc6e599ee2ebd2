"""Best-effort e-mail alerts through the Resend HTTP API.

Nothing in here may raise into the scheduler: missing configuration turns the
notifier into a no-op and delivery errors are only logged.
"""

from __future__ import annotations

import socket
import threading
from typing import Any

import requests

from .config import Settings
from .failures import backoff_hours
from .run_logger import RunLogger
from .time_utils import iso_now

RESEND_ENDPOINT = "https://api.resend.com/emails"
SEND_TIMEOUT = 15


class Notifier:
    def __init__(
        self,
        api_key: str | None,
        recipient: str | None,
        sender: str = Settings.alert_from,
        *,
        session: requests.Session | None = None,
        logger: RunLogger | None = None,
        background: bool = True,
    ) -> None:
        self.api_key = api_key
        self.recipient = recipient
        self.sender = sender
        self.session = session or requests.Session()
        self.logger = logger
        self.background = background

    @classmethod
    def from_settings(cls, settings: Settings, logger: RunLogger | None = None) -> Notifier:
        return cls(
            settings.resend_api_key,
            settings.alert_email,
            settings.alert_from,
            logger=logger,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.recipient)

    def alert_failure(self, source: str, message: str, failure_count: int) -> None:
        if not self.enabled:
            self._log("notify skipped reason=not_configured")
            return
        text = "\n".join(
            [
                f"Scraper: {source}",
                f"Error: {message}",
                f"Failure Count: {failure_count}",
                f"Backoff: {backoff_hours(failure_count)} hours until next retry",
                "",
                f"Timestamp: {iso_now()}",
                f"Host: {socket.gethostname()}",
            ]
        )
        subject = f"Scraper Failed: {source}"
        if self.background:
            thread = threading.Thread(target=self._send, args=(subject, text), daemon=True)
            thread.start()
        else:
            self._send(subject, text)

    def alert_summary(self, success_count: int, failed_names: list[str], total_articles: int) -> None:
        if not self.enabled or not failed_names:
            return
        lines = [
            "Scraper Run Summary",
            "==================",
            f"Successful Scrapers: {success_count}",
            f"Failed Scrapers: {len(failed_names)}",
            f"Total Articles Synced: {total_articles}",
            "",
            "Failed:",
            *(f"  - {name}" for name in failed_names),
            "",
            f"Timestamp: {iso_now()}",
            f"Host: {socket.gethostname()}",
        ]
        self._send(f"Scraper Run Summary: {len(failed_names)} failures", "\n".join(lines))

    def _send(self, subject: str, text: str) -> bool:
        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [self.recipient],
            "subject": subject,
            "text": text,
        }
        try:
            response = self.session.post(
                RESEND_ENDPOINT,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=SEND_TIMEOUT,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            self._log(f"notify failed subject={subject!r} error={exc}")
            return False
        self._log(f"notify sent subject={subject!r}")
        return True

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.log(message)
