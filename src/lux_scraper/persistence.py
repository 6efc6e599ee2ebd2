from __future__ import annotations

from collections.abc import Iterable

from .errors import StoreError
from .models import Article, ScrapedItem, Sector
from .run_logger import RunLogger
from .store import ArticleStore


def dedupe_by_url(articles: Iterable[Article]) -> list[Article]:
    """Collapse duplicate URLs; the last occurrence wins but keeps the first's position."""
    by_url: dict[str, Article] = {}
    for article in articles:
        by_url[article.url] = article
    return list(by_url.values())


def to_articles(items: Iterable[ScrapedItem], sector: Sector, fallback_source: str = "") -> list[Article]:
    return [Article.from_item(item, sector, fallback_source) for item in items]


def persist(store: ArticleStore, articles: list[Article], logger: RunLogger) -> int:
    unique = dedupe_by_url(articles)
    if not unique:
        return 0
    try:
        result = store.upsert(unique)
    except StoreError as exc:
        logger.log(f"store upsert failed count={len(unique)} error={exc}")
        logger.failure({"stage": "upsert", "count": len(unique), "error": str(exc)})
        return 0
    if not result.success:
        logger.log(f"store upsert rejected count={len(unique)}")
        return 0
    return result.count
