from __future__ import annotations

from typing import Any

import feedparser
import requests

from ..errors import AdapterEmpty, AdapterError
from ..extraction import absolute_url
from ..http import get_bytes
from ..models import FeedTarget, FetchContext, ScrapedItem, Sector, SourceEntry, SourceResult
from ..text import clean_text, strip_html, truncate_summary
from ..time_utils import format_recency
from . import timed_result


def make_feed_source(
    name: str,
    sector: Sector,
    target: FeedTarget,
    *,
    weight: int = 1,
    enabled: bool = True,
) -> SourceEntry:
    return SourceEntry(
        name=name,
        kind="feed",
        sector=sector,
        weight=weight,
        enabled=enabled,
        fetch=lambda ctx: scrape_feed(ctx, target),
    )


def scrape_feed(ctx: FetchContext, target: FeedTarget) -> SourceResult:
    return timed_result(target.source, lambda: fetch_feed_items(ctx, target))


def fetch_feed_items(ctx: FetchContext, target: FeedTarget) -> list[ScrapedItem]:
    try:
        payload = get_bytes(ctx.session, target.url)
    except requests.RequestException as exc:
        raise AdapterError(f"feed request failed for {target.url}: {exc}") from exc
    data = feedparser.parse(payload)
    if data.bozo and not data.entries:
        raise AdapterError(f"feed parse error for {target.url}: {data.get('bozo_exception')}")

    items: list[ScrapedItem] = []
    for entry in data.entries[: target.limit]:
        title = clean_text(entry.get("title"))
        url = absolute_url(target.url, entry.get("link"))
        if not title or not url:
            continue
        items.append(
            ScrapedItem(
                title=title,
                url=url,
                source=target.source,
                time=format_recency(_published(entry), ctx.now, target.time_default),
                summary=truncate_summary(strip_html(entry.get("summary") or entry.get("description"))),
            )
        )
    if not items:
        raise AdapterEmpty(f"feed empty for {target.url}")
    return items


def _published(entry: Any) -> str | None:
    value = entry.get("published") or entry.get("updated")
    return str(value) if value else None
