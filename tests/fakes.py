from __future__ import annotations

from pathlib import Path

from lux_scraper.pacing import Pacer
from lux_scraper.run_logger import RunLogger
from lux_scraper.shutdown import ShutdownToken


class FakePage:
    def __init__(
        self,
        html: str,
        url: str = "https://example.com/",
        clickable: tuple[str, ...] = (),
        fail_content: Exception | None = None,
    ) -> None:
        self.html = html
        self.url = url
        self.clickable = set(clickable)
        self.fail_content = fail_content
        self.waited: list[tuple[str, int]] = []
        self.clicked: list[str] = []
        self.scrolled: list[int] = []
        self.paused: list[int] = []
        self.closed = 0

    def wait_for_selector(self, selector, timeout_ms):
        self.waited.append((selector, timeout_ms))
        return True

    def click(self, selector):
        if selector in self.clickable:
            self.clicked.append(selector)
            return True
        return False

    def scroll(self, pixels):
        self.scrolled.append(pixels)

    def pause(self, ms):
        self.paused.append(ms)

    def content(self):
        if self.fail_content is not None:
            raise self.fail_content
        return self.html

    def close(self):
        self.closed += 1


class FakeRenderer:
    def __init__(self, pages: dict | None = None) -> None:
        self.pages = pages or {}
        self.opened: list[tuple[str, int, str]] = []
        self.closed = False

    def open(self, url, load_timeout_ms, wait_until="domcontentloaded"):
        self.opened.append((url, load_timeout_ms, wait_until))
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page

    def close(self):
        self.closed = True


class ScriptedRandom:
    """random() pops scripted values; uniform() returns the midpoint."""

    def __init__(self, values=()):
        self.values = list(values)

    def random(self):
        return self.values.pop(0) if self.values else 0.0

    def uniform(self, low, high):
        return low + (high - low) / 2


class RecordingPacer(Pacer):
    def __init__(self, token=None, values=(), stop_after_sleeps=None):
        super().__init__(token or ShutdownToken(), ScriptedRandom(values))
        self.sleeps: list[float] = []
        self.stop_after_sleeps = stop_after_sleeps

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if self.stop_after_sleeps is not None and len(self.sleeps) >= self.stop_after_sleeps:
            self.token.request("test")
        return self.token.requested


class RecordingNotifier:
    def __init__(self) -> None:
        self.failures: list[tuple[str, str, int]] = []
        self.summaries: list[tuple[int, list[str], int]] = []

    def alert_failure(self, source, message, failure_count):
        self.failures.append((source, message, failure_count))

    def alert_summary(self, success_count, failed_names, total_articles):
        self.summaries.append((success_count, failed_names, total_articles))


def quiet_logger(root: Path, mode: str = "test") -> RunLogger:
    return RunLogger(root, "test", mode=mode, stream=None)
