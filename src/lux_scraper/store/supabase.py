from __future__ import annotations

from typing import Any

from supabase import Client, create_client

from ..errors import FatalInitError, StoreUnavailable, StoreWriteFailure
from ..models import Article, Sector
from ..time_utils import iso_now
from . import UpsertResult

TABLE = "articles"
_COLUMNS = (
    "url,title,source,sector,time,summary,content,deep_scraped,deep_scraped_at,updated_at"
)


class SupabaseArticleStore:
    """Article store over the Supabase `articles` table (unique on url)."""

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def connect(cls, url: str, key: str) -> SupabaseArticleStore:
        try:
            client = create_client(url, key)
        except Exception as exc:
            raise FatalInitError(f"Supabase client init failed: {exc}") from exc
        return cls(client)

    def close(self) -> None:
        pass

    def _table(self) -> Any:
        return self._client.table(TABLE)

    def upsert(self, articles: list[Article]) -> UpsertResult:
        if not articles:
            return UpsertResult(success=True, count=0)
        now = iso_now()
        # deep_scraped is left out so a re-scrape never resets it.
        records = [
            {
                "url": a.url,
                "title": a.title,
                "source": a.source,
                "sector": a.sector,
                "time": a.time,
                "summary": a.summary,
                "updated_at": a.updated_at or now,
            }
            for a in articles
        ]
        try:
            self._table().upsert(records, on_conflict="url").execute()
        except Exception as exc:
            raise StoreWriteFailure(f"upsert failed: {exc}") from exc
        return UpsertResult(success=True, count=len(records))

    def update_content(self, url: str, content: str) -> bool:
        now = iso_now()
        try:
            response = (
                self._table()
                .update(
                    {
                        "content": content,
                        "deep_scraped": True,
                        "deep_scraped_at": now,
                        "updated_at": now,
                    }
                )
                .eq("url", url)
                .execute()
            )
        except Exception as exc:
            raise StoreWriteFailure(f"content update failed for {url}: {exc}") from exc
        return bool(response.data)

    def mark_deep_scraped(self, url: str) -> None:
        try:
            (
                self._table()
                .update({"deep_scraped": True, "deep_scraped_at": iso_now()})
                .eq("url", url)
                .execute()
            )
        except Exception as exc:
            raise StoreWriteFailure(f"mark deep scraped failed for {url}: {exc}") from exc

    def _select(self, build: Any) -> list[Article]:
        try:
            response = build(self._table().select(_COLUMNS)).execute()
        except Exception as exc:
            raise StoreUnavailable(f"select failed: {exc}") from exc
        return [_record_to_article(record) for record in response.data or []]

    def get_unscraped(self, limit: int) -> list[Article]:
        return self._select(
            lambda q: q.or_("deep_scraped.is.null,deep_scraped.eq.false")
            .order("updated_at", desc=True)
            .limit(limit)
        )

    def get_articles(self, sector: Sector, limit: int = 100) -> list[Article]:
        return self._select(
            lambda q: q.eq("sector", sector).order("updated_at", desc=True).limit(limit)
        )

    def get_articles_by_source(self, source: str, limit: int = 50) -> list[Article]:
        return self._select(
            lambda q: q.eq("source", source).order("updated_at", desc=True).limit(limit)
        )


def _record_to_article(record: dict[str, Any]) -> Article:
    return Article(
        url=record["url"],
        title=record.get("title") or "",
        source=record.get("source") or "",
        sector=record.get("sector") or "luxury",
        time=record.get("time") or "Recent",
        summary=record.get("summary") or "",
        content=record.get("content"),
        deep_scraped=bool(record.get("deep_scraped")),
        deep_scraped_at=record.get("deep_scraped_at"),
        updated_at=record.get("updated_at"),
    )
