"""Continuous scraping loop.

Each cycle picks one source by weight, persists what it found, then spends a
little time filling in full text for articles that have not been deep scraped
yet before idling until the next source.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import requests

from .config import DaemonConfig
from .deep_scrape import deep_scrape_article
from .errors import DeepScrapeFailure, StoreError
from .failures import FailureTracker
from .models import Article, FetchContext, SourceEntry, SourceResult
from .pacing import Pacer
from .persistence import persist, to_articles
from .renderer import Renderer
from .run_logger import RunLogger
from .sources import invoke
from .sources.registry import list_sources
from .store import ArticleStore
from .time_utils import format_duration, utc_now


class DaemonState(enum.Enum):
    PICK_SOURCE = "pick_source"
    SCRAPE = "scrape"
    PERSIST = "persist"
    DEEP_SCRAPE_WAIT = "deep_scrape_wait"
    DEEP_SCRAPE_LOOP = "deep_scrape_loop"
    SOURCE_WAIT = "source_wait"
    SHUTDOWN = "shutdown"


@dataclass
class DaemonStats:
    started_at: datetime = field(default_factory=utc_now)
    sources_scraped: int = 0
    articles_found: int = 0
    articles_deep_scraped: int = 0
    errors: int = 0

    def lines(self, now: datetime) -> list[str]:
        uptime = (now - self.started_at).total_seconds()
        return [
            f"uptime={format_duration(uptime)}",
            f"sources_scraped={self.sources_scraped}",
            f"articles_found={self.articles_found}",
            f"articles_deep_scraped={self.articles_deep_scraped}",
            f"errors={self.errors}",
        ]


class ContinuousDaemon:
    def __init__(
        self,
        store: ArticleStore,
        renderer: Renderer,
        logger: RunLogger,
        pacer: Pacer,
        *,
        session: requests.Session,
        sources: list[SourceEntry] | None = None,
        config: DaemonConfig | None = None,
        tracker: FailureTracker | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.logger = logger
        self.pacer = pacer
        self.session = session
        self.sources = sources if sources is not None else list_sources(include_disabled=False)
        self.config = config or DaemonConfig()
        self.tracker = tracker or FailureTracker()
        self.clock = clock
        self.stats = DaemonStats(started_at=clock())
        self.state = DaemonState.PICK_SOURCE
        self.cycles = 0
        self._current: SourceEntry | None = None
        self._result: SourceResult | None = None

    def run(self) -> DaemonStats:
        self.logger.log(
            "daemon start "
            f"sources={len(self.sources)} "
            f"source_delay={self.config.min_source_delay_s:.0f}-{self.config.max_source_delay_s:.0f}s "
            f"article_delay={self.config.min_article_delay_s:.0f}-{self.config.max_article_delay_s:.0f}s "
            f"batch={self.config.articles_per_batch}"
        )
        try:
            while self.state is not DaemonState.SHUTDOWN:
                self.step()
        finally:
            self._close_renderer()
            self.print_stats()
        return self.stats

    def step(self) -> DaemonState:
        if self.pacer.token.requested:
            self.state = DaemonState.SHUTDOWN
            return self.state
        handler = {
            DaemonState.PICK_SOURCE: self._pick_source,
            DaemonState.SCRAPE: self._scrape,
            DaemonState.PERSIST: self._persist,
            DaemonState.DEEP_SCRAPE_WAIT: self._deep_scrape_wait,
            DaemonState.DEEP_SCRAPE_LOOP: self._deep_scrape_loop,
            DaemonState.SOURCE_WAIT: self._source_wait,
        }[self.state]
        self.state = handler()
        return self.state

    @property
    def current(self) -> str | None:
        """Name of the source being scraped right now."""
        if self.state is DaemonState.SCRAPE and self._current is not None:
            return self._current.name
        return None

    def _pick_source(self) -> DaemonState:
        if not self.sources:
            self.logger.log("no enabled sources; shutting down")
            return DaemonState.SHUTDOWN
        if self.config.max_cycles is not None and self.cycles >= self.config.max_cycles:
            return DaemonState.SHUTDOWN
        self._current = self.pacer.weighted_choice(self.sources)
        self._result = None
        return DaemonState.SCRAPE

    def _scrape(self) -> DaemonState:
        entry = self._current
        if entry is None:
            return DaemonState.PICK_SOURCE
        self.logger.log(f"source start name={entry.name!r} sector={entry.sector}")
        ctx = FetchContext(session=self.session, renderer=self.renderer, now=self.clock())
        result = invoke(entry, ctx)
        self._result = result
        self.stats.sources_scraped += 1
        if result.status == "error":
            self.stats.errors += 1
            self.tracker.record_failure(entry.name, self.clock())
            self.logger.log(f"source error name={entry.name!r} error={result.error}")
            self.logger.failure({"stage": "source", "source": entry.name, "error": result.error})
        else:
            self.tracker.record_success(entry.name)
            self.stats.articles_found += result.count
            self.logger.log(
                f"source done name={entry.name!r} status={result.status} "
                f"count={result.count} duration_ms={result.duration_ms}"
            )
        return DaemonState.PERSIST

    def _persist(self) -> DaemonState:
        entry, result = self._current, self._result
        if entry is not None and result is not None and result.status != "error" and result.items:
            articles = to_articles(result.items, entry.sector, entry.name)
            written = persist(self.store, articles, self.logger)
            self.logger.log(f"persist name={entry.name!r} extracted={len(articles)} written={written}")
        return DaemonState.DEEP_SCRAPE_WAIT

    def _article_delay(self) -> float:
        return self.pacer.uniform(self.config.min_article_delay_s, self.config.max_article_delay_s)

    def _deep_scrape_wait(self) -> DaemonState:
        delay = self._article_delay()
        self.logger.log(f"wait before deep scrape seconds={delay:.0f}")
        if self.pacer.sleep(delay):
            return DaemonState.SHUTDOWN
        return DaemonState.DEEP_SCRAPE_LOOP

    def _deep_scrape_loop(self) -> DaemonState:
        try:
            pending = self.store.get_unscraped(self.config.articles_per_batch)
        except StoreError as exc:
            self.stats.errors += 1
            self.logger.log(f"deep scrape query failed error={exc}")
            return DaemonState.SOURCE_WAIT
        self.logger.log(f"deep scrape pending={len(pending)}")
        for article in pending:
            if self.pacer.token.requested:
                return DaemonState.SHUTDOWN
            self.deep_scrape(article)
            delay = self._article_delay()
            self.logger.log(f"wait before next article seconds={delay:.0f}")
            if self.pacer.sleep(delay):
                return DaemonState.SHUTDOWN
        return DaemonState.SOURCE_WAIT

    def deep_scrape(self, article: Article) -> bool:
        """Fill in one article's text; it is marked deep scraped whatever the outcome."""
        self.logger.log(f"deep scrape start url={article.url}")
        try:
            content = deep_scrape_article(
                self.renderer,
                article.url,
                max_content_length=self.config.max_content_length,
                load_timeout_ms=self.config.page_timeout_ms,
            )
        except DeepScrapeFailure as exc:
            return self._deep_scrape_failed(article, str(exc))
        except Exception as exc:
            return self._deep_scrape_failed(article, f"{type(exc).__name__}: {exc}")
        try:
            self.store.update_content(article.url, content)
        except StoreError as exc:
            self.stats.errors += 1
            self.logger.log(f"content update failed url={article.url} error={exc}")
            self._mark_deep_scraped(article.url)
            return False
        self.stats.articles_deep_scraped += 1
        self.logger.log(f"deep scrape done url={article.url} chars={len(content)}")
        return True

    def _deep_scrape_failed(self, article: Article, error: str) -> bool:
        self.stats.errors += 1
        self.logger.log(f"deep scrape failed url={article.url} error={error}")
        self.logger.failure({"stage": "deep_scrape", "url": article.url, "error": error})
        self._mark_deep_scraped(article.url)
        return False

    def _mark_deep_scraped(self, url: str) -> None:
        try:
            self.store.mark_deep_scraped(url)
        except StoreError as exc:
            self.logger.log(f"mark deep scraped failed url={url} error={exc}")

    def _source_wait(self) -> DaemonState:
        self.cycles += 1
        if self.stats.sources_scraped % self.config.stats_every == 0:
            self.print_stats()
        if self.config.max_cycles is not None and self.cycles >= self.config.max_cycles:
            return DaemonState.SHUTDOWN
        delay = self.pacer.uniform(self.config.min_source_delay_s, self.config.max_source_delay_s)
        self.logger.log(f"wait before next source seconds={delay:.0f}")
        if self.pacer.sleep(delay):
            return DaemonState.SHUTDOWN
        return DaemonState.PICK_SOURCE

    def print_stats(self) -> None:
        self.logger.log("daemon stats " + " ".join(self.stats.lines(self.clock())))

    def _close_renderer(self) -> None:
        close = getattr(self.renderer, "close", None)
        if callable(close):
            self.logger.log("closing browser")
            close()
