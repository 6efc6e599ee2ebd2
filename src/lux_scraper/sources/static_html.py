from __future__ import annotations

import requests

from ..errors import AdapterEmpty, AdapterError
from ..extraction import extract_items
from ..http import get_page
from ..models import FetchContext, ScrapedItem, Sector, SourceEntry, SourceResult, StaticTarget
from ..text import detect_blocked_text, strip_html
from . import timed_result


def make_static_source(
    name: str,
    sector: Sector,
    target: StaticTarget,
    *,
    weight: int = 1,
    enabled: bool = True,
) -> SourceEntry:
    return SourceEntry(
        name=name,
        kind="static",
        sector=sector,
        weight=weight,
        enabled=enabled,
        fetch=lambda ctx: scrape_static(ctx, target),
    )


def scrape_static(ctx: FetchContext, target: StaticTarget) -> SourceResult:
    return timed_result(target.source, lambda: fetch_static_items(ctx, target))


def fetch_static_items(ctx: FetchContext, target: StaticTarget) -> list[ScrapedItem]:
    try:
        response = get_page(ctx.session, target.url)
    except requests.RequestException as exc:
        raise AdapterError(f"request failed for {target.url}: {exc}") from exc
    html = response.text
    items = extract_items(
        html,
        response.url or target.url,
        target.selector,
        target.source,
        time_selector=target.time_selector,
        time_default=target.time_default,
        now=ctx.now,
    )
    if not items:
        blocked = detect_blocked_text(strip_html(html))
        if blocked:
            raise AdapterError(f"Blocked content detected: {blocked}")
        raise AdapterEmpty(f"no items matched {target.selector!r}")
    return items
