from __future__ import annotations

from ..errors import AdapterEmpty
from ..extraction import render_items
from ..models import FetchContext, RenderTarget, ScrapedItem, Sector, SourceEntry, SourceResult
from . import timed_result


def make_rendered_source(
    name: str,
    sector: Sector,
    target: RenderTarget,
    *,
    weight: int = 1,
    enabled: bool = True,
) -> SourceEntry:
    return SourceEntry(
        name=name,
        kind="rendered",
        sector=sector,
        weight=weight,
        enabled=enabled,
        fetch=lambda ctx: scrape_rendered(ctx, target),
    )


def scrape_rendered(ctx: FetchContext, target: RenderTarget) -> SourceResult:
    return timed_result(target.source, lambda: fetch_rendered_items(ctx, target))


def fetch_rendered_items(ctx: FetchContext, target: RenderTarget) -> list[ScrapedItem]:
    items = render_items(ctx.renderer, target, ctx.now)
    if not items and target.secondary is not None:
        items = render_items(ctx.renderer, target.secondary, ctx.now)
    if not items:
        raise AdapterEmpty(f"no items matched {target.selector!r}")
    return items
