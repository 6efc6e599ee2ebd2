from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..config import Settings
from ..errors import FatalInitError
from ..models import Article, Sector


@dataclass(frozen=True)
class UpsertResult:
    success: bool
    count: int


class ArticleStore(Protocol):
    def upsert(self, articles: list[Article]) -> UpsertResult:
        ...

    def update_content(self, url: str, content: str) -> bool:
        ...

    def mark_deep_scraped(self, url: str) -> None:
        ...

    def get_unscraped(self, limit: int) -> list[Article]:
        ...

    def get_articles(self, sector: Sector, limit: int = 100) -> list[Article]:
        ...

    def get_articles_by_source(self, source: str, limit: int = 50) -> list[Article]:
        ...

    def close(self) -> None:
        ...


def create_store(settings: Settings) -> ArticleStore:
    backend = settings.store_backend
    if backend == "sqlite":
        from .sqlite import SqliteArticleStore

        return SqliteArticleStore(settings.data_root)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise FatalInitError(
                "Supabase store needs SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY "
                "(or NEXT_PUBLIC_SUPABASE_ANON_KEY)"
            )
        from .supabase import SupabaseArticleStore

        return SupabaseArticleStore.connect(settings.supabase_url, settings.supabase_key)
    raise FatalInitError(f"Unknown store backend: {backend}")
