"""One pass over every enabled source, followed by a single deduplicated sync."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import requests

from .config import BatchConfig
from .failures import FailureTracker
from .models import Article, FetchContext, SourceEntry, SourceResult
from .notify import Notifier
from .pacing import Pacer
from .persistence import dedupe_by_url, persist, to_articles
from .renderer import Renderer
from .run_logger import RunLogger
from .sources import invoke
from .sources.registry import list_sources
from .store import ArticleStore
from .time_utils import utc_now


@dataclass
class RunReport:
    success_count: int = 0
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    empty: list[str] = field(default_factory=list)
    collected: int = 0
    synced: int = 0
    interrupted: bool = False
    results: list[SourceResult] = field(default_factory=list)


class BatchRunner:
    def __init__(
        self,
        store: ArticleStore,
        renderer: Renderer,
        logger: RunLogger,
        pacer: Pacer,
        notifier: Notifier,
        *,
        session: requests.Session,
        sources: list[SourceEntry] | None = None,
        config: BatchConfig | None = None,
        tracker: FailureTracker | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.logger = logger
        self.pacer = pacer
        self.notifier = notifier
        self.session = session
        self.sources = sources if sources is not None else list_sources(include_disabled=False)
        self.config = config or BatchConfig()
        self.tracker = tracker or FailureTracker(self.config.max_backoff_hours)
        self.clock = clock
        self.current: str | None = None

    @property
    def shutting_down(self) -> bool:
        return self.pacer.token.requested

    def run(self) -> RunReport:
        report = RunReport()
        if self.config.enable_jitter:
            jitter = self.pacer.uniform(0, self.config.startup_jitter_s)
            self.logger.log(f"startup jitter minutes={round(jitter / 60)}")
            if self.pacer.sleep(jitter):
                self.logger.log("shutdown during startup jitter; nothing scraped")
                report.interrupted = True
                return report

        articles: list[Article] = []
        for index, entry in enumerate(self.sources):
            if self.shutting_down:
                self.logger.log("shutdown requested; stopping scraper run")
                break
            result = self.run_source(entry)
            if result is None:
                report.skipped.append(entry.name)
            else:
                report.results.append(result)
                if result.status == "error":
                    report.failed.append(entry.name)
                elif result.items:
                    articles.extend(to_articles(result.items, entry.sector, entry.name))
                    report.success_count += 1
                else:
                    report.empty.append(entry.name)
            if index < len(self.sources) - 1 and not self.shutting_down:
                self.pacer.sleep(self.config.scraper_delay_s)

        report.collected = len(articles)
        if self.shutting_down:
            report.interrupted = True
            self.logger.log(f"run interrupted; skipping sync collected={len(articles)}")
            return report

        report.synced = self.sync(articles)
        self.report(report)
        return report

    def run_source(self, entry: SourceEntry) -> SourceResult | None:
        """Invoke one source unless it is backing off; None means skipped."""
        now = self.clock()
        if self.tracker.in_backoff(entry.name, now):
            until = self.tracker.backoff_until(entry.name)
            remaining = int((until - now).total_seconds() // 60) + 1 if until else 0
            self.logger.log(f"source skipped name={entry.name!r} backoff_minutes={remaining}")
            return None

        self.current = entry.name
        self.logger.log(f"source start name={entry.name!r}")
        try:
            ctx = FetchContext(session=self.session, renderer=self.renderer, now=now)
            result = invoke(entry, ctx)
        finally:
            self.current = None

        if result.status == "error":
            error = result.error or "Unknown error"
            hours = self.tracker.record_failure(entry.name, self.clock())
            count = self.tracker.failure_count(entry.name)
            self.logger.log(
                f"source failed name={entry.name!r} failures={count} "
                f"backoff_hours={hours} error={error}"
            )
            self.logger.failure(
                {"stage": "source", "source": entry.name, "failures": count, "error": error}
            )
            self.notifier.alert_failure(entry.name, error, count)
            return result

        previous = self.tracker.record_success(entry.name)
        if previous:
            self.logger.log(f"source recovered name={entry.name!r} after_failures={previous}")
        self.logger.log(
            f"source done name={entry.name!r} status={result.status} "
            f"count={result.count} duration_ms={result.duration_ms}"
        )
        return result

    def sync(self, articles: list[Article]) -> int:
        if not articles:
            self.logger.log("sync skipped; no articles")
            return 0
        unique = dedupe_by_url(articles)
        self.logger.log(f"sync start collected={len(articles)} unique={len(unique)}")
        written = persist(self.store, unique, self.logger)
        self.logger.log(f"sync done written={written}")
        return written

    def report(self, report: RunReport) -> None:
        if report.failed:
            self.notifier.alert_summary(report.success_count, list(report.failed), report.synced)
        self.logger.log(
            "run summary "
            f"success={report.success_count} "
            f"failed={len(report.failed)} "
            f"empty={len(report.empty)} "
            f"skipped={len(report.skipped)} "
            f"articles={report.synced}"
        )
        if report.failed:
            self.logger.log("failed sources: " + ", ".join(report.failed))
