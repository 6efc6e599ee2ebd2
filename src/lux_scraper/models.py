from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Literal

import requests

if TYPE_CHECKING:
    from .renderer import Renderer


Sector = Literal["luxury", "semiconductors"]
SourceStatus = Literal["success", "warning", "error"]
SourceKind = Literal["rendered", "static", "feed"]

SECTORS: tuple[str, ...] = ("luxury", "semiconductors")


@dataclass(frozen=True)
class FetchContext:
    session: requests.Session
    renderer: Renderer
    now: datetime


@dataclass(frozen=True)
class ScrapedItem:
    title: str
    url: str
    source: str
    time: str = "Just now"
    summary: str = ""


@dataclass(frozen=True)
class SourceResult:
    source: str
    status: SourceStatus
    count: int
    duration_ms: int
    items: list[ScrapedItem] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_items(cls, source: str, items: list[ScrapedItem], duration_ms: int) -> SourceResult:
        return cls(
            source=source,
            status="success" if items else "warning",
            count=len(items),
            duration_ms=duration_ms,
            items=list(items),
        )

    @classmethod
    def failed(cls, source: str, error: str, duration_ms: int) -> SourceResult:
        return cls(source=source, status="error", count=0, duration_ms=duration_ms, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "status": self.status,
            "count": self.count,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "items": [
                {
                    "title": item.title,
                    "url": item.url,
                    "source": item.source,
                    "time": item.time,
                    "summary": item.summary,
                }
                for item in self.items
            ],
        }


@dataclass(frozen=True)
class Article:
    url: str
    title: str
    source: str
    sector: Sector
    time: str = "Recent"
    summary: str = ""
    content: str | None = None
    deep_scraped: bool = False
    deep_scraped_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: ScrapedItem, sector: Sector, fallback_source: str) -> Article:
        return cls(
            url=item.url,
            title=item.title,
            source=item.source or fallback_source,
            sector=sector,
            time=item.time or "Recent",
            summary=item.summary or "",
        )

    def with_updated_at(self, updated_at: str) -> Article:
        return replace(self, updated_at=updated_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "source": self.source,
            "sector": self.sector,
            "time": self.time,
            "summary": self.summary,
            "content": self.content,
            "deep_scraped": self.deep_scraped,
            "deep_scraped_at": self.deep_scraped_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class RenderTarget:
    url: str
    selector: str
    source: str
    fallback_scan: bool = False
    scroll_px: int = 0
    secondary: RenderTarget | None = None


@dataclass(frozen=True)
class StaticTarget:
    url: str
    selector: str
    source: str
    time_selector: str | None = None
    time_default: str = "Recent"


@dataclass(frozen=True)
class FeedTarget:
    url: str
    source: str
    limit: int | None = None
    time_default: str = "Recent"


@dataclass(frozen=True)
class SourceEntry:
    name: str
    kind: SourceKind
    sector: Sector
    fetch: Callable[[FetchContext], SourceResult]
    weight: int = 1
    enabled: bool = True
