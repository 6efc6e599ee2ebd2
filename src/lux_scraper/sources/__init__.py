from __future__ import annotations

import time
from collections.abc import Callable

from ..errors import AdapterEmpty, AdapterError
from ..models import FetchContext, ScrapedItem, SourceEntry, SourceResult


def elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def timed_result(source: str, fetch: Callable[[], list[ScrapedItem]]) -> SourceResult:
    """Run an item fetch and fold its outcome into a SourceResult."""
    started = time.monotonic()
    try:
        items = fetch()
    except AdapterEmpty:
        return SourceResult.from_items(source, [], elapsed_ms(started))
    except AdapterError as exc:
        return SourceResult.failed(source, str(exc), elapsed_ms(started))
    return SourceResult.from_items(source, items, elapsed_ms(started))


def invoke(entry: SourceEntry, ctx: FetchContext) -> SourceResult:
    """Call an entry's fetch; any escaping exception becomes an error result."""
    started = time.monotonic()
    try:
        return entry.fetch(ctx)
    except Exception as exc:
        return SourceResult.failed(entry.name, f"{type(exc).__name__}: {exc}", elapsed_ms(started))
