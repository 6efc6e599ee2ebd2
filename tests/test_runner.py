from __future__ import annotations

from datetime import datetime, timedelta, timezone

from lux_scraper.config import BatchConfig
from lux_scraper.errors import StoreWriteFailure
from lux_scraper.failures import FailureTracker
from lux_scraper.models import ScrapedItem, SourceEntry, SourceResult
from lux_scraper.runner import BatchRunner
from lux_scraper.store.sqlite import SqliteArticleStore

from fakes import FakeRenderer, RecordingNotifier, RecordingPacer, quiet_logger

START = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class CountingSource:
    def __init__(self, name: str, result_factory, sector="luxury") -> None:
        self.name = name
        self.calls = 0
        self._factory = result_factory
        self.entry = SourceEntry(name=name, kind="feed", sector=sector, fetch=self)

    def __call__(self, ctx):
        self.calls += 1
        return self._factory(self.name)


def ok(*urls):
    def factory(name):
        items = [ScrapedItem(title=f"{name} {url}", url=url, source=name) for url in urls]
        return SourceResult.from_items(name, items, 10)

    return factory


def failing(message="HTTP 503"):
    return lambda name: SourceResult.failed(name, message, 10)


def empty(name):
    return SourceResult.from_items(name, [], 10)


def _runner(tmp_path, sources, *, store=None, pacer=None, notifier=None, tracker=None, clock=None, config=None):
    return BatchRunner(
        store or SqliteArticleStore(tmp_path),
        FakeRenderer(),
        quiet_logger(tmp_path, mode="run"),
        pacer or RecordingPacer(),
        notifier or RecordingNotifier(),
        session=object(),
        sources=[source.entry for source in sources],
        config=config or BatchConfig(),
        tracker=tracker,
        clock=clock or Clock(START),
    )


def test_run_visits_sources_in_order_and_syncs_once(tmp_path):
    a = CountingSource("A", ok("https://a.example/1", "https://a.example/2"))
    b = CountingSource("B", failing())
    c = CountingSource("C", empty)
    store = SqliteArticleStore(tmp_path)
    pacer = RecordingPacer()
    notifier = RecordingNotifier()
    runner = _runner(tmp_path, [a, b, c], store=store, pacer=pacer, notifier=notifier)

    report = runner.run()

    assert (a.calls, b.calls, c.calls) == (1, 1, 1)
    assert report.success_count == 1
    assert report.failed == ["B"]
    assert report.empty == ["C"]
    assert report.synced == 2
    assert pacer.sleeps == [3.0, 3.0]
    assert notifier.failures == [("B", "HTTP 503", 1)]
    assert notifier.summaries == [(1, ["B"], 2)]
    assert {row.url for row in store.get_articles("luxury")} == {
        "https://a.example/1",
        "https://a.example/2",
    }
    assert runner.tracker.failure_count("C") == 0


def test_no_summary_alert_without_failures(tmp_path):
    notifier = RecordingNotifier()
    runner = _runner(tmp_path, [CountingSource("A", ok("https://a.example/1"))], notifier=notifier)
    report = runner.run()
    assert report.failed == []
    assert notifier.summaries == []
    assert "run summary success=1" in runner.logger.log_path.read_text(encoding="utf-8")


def test_backoff_skips_source_without_counting_new_failure(tmp_path):
    b = CountingSource("B", failing())
    clock = Clock(START)
    tracker = FailureTracker()
    notifier = RecordingNotifier()

    first = _runner(tmp_path, [b], tracker=tracker, clock=clock, notifier=notifier).run()
    assert first.failed == ["B"]

    clock.advance(minutes=30)
    second = _runner(tmp_path, [b], tracker=tracker, clock=clock, notifier=notifier).run()
    assert b.calls == 1
    assert second.skipped == ["B"]
    assert second.failed == []
    assert tracker.failure_count("B") == 1

    clock.advance(hours=1)
    third = _runner(tmp_path, [b], tracker=tracker, clock=clock, notifier=notifier).run()
    assert b.calls == 2
    assert third.failed == ["B"]
    assert tracker.failure_count("B") == 2
    assert tracker.backoff_until("B") == clock.now + timedelta(hours=2)
    assert [count for _, _, count in notifier.failures] == [1, 2]


def test_warning_does_not_advance_backoff_and_success_resets(tmp_path):
    results = iter([failing()("C"), empty("C"), empty("C")])
    c = CountingSource("C", lambda name: next(results))
    clock = Clock(START)
    tracker = FailureTracker()

    _runner(tmp_path, [c], tracker=tracker, clock=clock).run()
    assert tracker.failure_count("C") == 1

    clock.advance(hours=2)
    _runner(tmp_path, [c], tracker=tracker, clock=clock).run()
    assert tracker.failure_count("C") == 0
    assert not tracker.in_backoff("C", clock.now)

    _runner(tmp_path, [c], tracker=tracker, clock=clock).run()
    assert tracker.failure_count("C") == 0
    assert c.calls == 3


def test_restart_resets_backoff(tmp_path):
    a = CountingSource("A", failing())
    clock = Clock(START)
    tracker = FailureTracker()
    for _ in range(3):
        _runner(tmp_path, [a], tracker=tracker, clock=clock).run()
        clock.advance(hours=9)
    assert tracker.failure_count("A") == 3

    fresh = _runner(tmp_path, [a], clock=clock)
    report = fresh.run()
    assert a.calls == 4
    assert report.skipped == []
    assert fresh.tracker.failure_count("A") == 1


def test_shutdown_mid_source_finishes_it_and_skips_sync(tmp_path):
    pacer = RecordingPacer()

    def slow(name):
        pacer.token.request("SIGTERM")
        return ok("https://a.example/1")(name)

    a = CountingSource("A", slow)
    b = CountingSource("B", ok("https://b.example/1"))
    store = SqliteArticleStore(tmp_path)
    notifier = RecordingNotifier()
    report = _runner(tmp_path, [a, b], store=store, pacer=pacer, notifier=notifier).run()

    assert a.calls == 1
    assert b.calls == 0
    assert report.interrupted is True
    assert report.collected == 1
    assert report.synced == 0
    assert store.get_articles("luxury") == []
    assert pacer.sleeps == []
    assert notifier.summaries == []


def test_startup_jitter_only_when_enabled(tmp_path):
    pacer = RecordingPacer()
    config = BatchConfig(enable_jitter=True)
    _runner(tmp_path, [CountingSource("A", empty)], pacer=pacer, config=config).run()
    assert pacer.sleeps == [900.0]

    pacer = RecordingPacer()
    _runner(tmp_path, [CountingSource("A", empty)], pacer=pacer).run()
    assert pacer.sleeps == []


def test_shutdown_during_jitter_runs_nothing(tmp_path):
    a = CountingSource("A", ok("https://a.example/1"))
    pacer = RecordingPacer(stop_after_sleeps=1)
    report = _runner(tmp_path, [a], pacer=pacer, config=BatchConfig(enable_jitter=True)).run()
    assert report.interrupted is True
    assert a.calls == 0


def test_store_failure_during_sync_is_not_fatal(tmp_path):
    class BrokenStore:
        def upsert(self, articles):
            raise StoreWriteFailure("connection refused")

    notifier = RecordingNotifier()
    report = _runner(
        tmp_path,
        [CountingSource("A", ok("https://a.example/1"))],
        store=BrokenStore(),
        notifier=notifier,
    ).run()
    assert report.collected == 1
    assert report.synced == 0


def test_duplicate_urls_across_sources_keep_last(tmp_path):
    a = CountingSource("A", ok("https://shared.example/x"))
    d = CountingSource("D", ok("https://shared.example/x"))
    store = SqliteArticleStore(tmp_path)
    report = _runner(tmp_path, [a, d], store=store).run()
    assert report.collected == 2
    assert report.synced == 1
    [row] = store.get_articles("luxury")
    assert row.title == "D https://shared.example/x"
    assert row.source == "D"


def test_raising_source_is_recorded_as_failure(tmp_path):
    def explode(ctx):
        raise RuntimeError("unexpected")

    entry = SourceEntry(name="X", kind="rendered", sector="semiconductors", fetch=explode)
    runner = BatchRunner(
        SqliteArticleStore(tmp_path),
        FakeRenderer(),
        quiet_logger(tmp_path),
        RecordingPacer(),
        RecordingNotifier(),
        session=object(),
        sources=[entry],
        clock=Clock(START),
    )
    report = runner.run()
    assert report.failed == ["X"]
    assert runner.current is None
