from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Iterable

from ..errors import StoreUnavailable, StoreWriteFailure
from ..models import Article, Sector
from ..paths import ensure_data_dirs
from ..time_utils import iso_now
from . import UpsertResult

_COLUMNS = (
    "url, title, source, sector, time, summary, content, "
    "deep_scraped, deep_scraped_at, updated_at"
)


class SqliteArticleStore:
    def __init__(self, root: Path) -> None:
        self.root = root
        ensure_data_dirs(self.root)
        self.db_path = self.root / "articles.sqlite"
        self._conn: sqlite3.Connection | None = None
        self.init_db()

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self._conn = sqlite3.connect(self.db_path)
            except sqlite3.Error as exc:
                raise StoreUnavailable(f"cannot open {self.db_path}: {exc}") from exc
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def init_db(self) -> None:
        conn = self.connect()
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS articles (
                url TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                source TEXT NOT NULL,
                sector TEXT NOT NULL,
                time TEXT,
                summary TEXT,
                content TEXT,
                deep_scraped INTEGER NOT NULL DEFAULT 0,
                deep_scraped_at TEXT,
                updated_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_articles_sector ON articles(sector, updated_at);
            CREATE INDEX IF NOT EXISTS idx_articles_source ON articles(source, updated_at);
            CREATE INDEX IF NOT EXISTS idx_articles_unscraped ON articles(deep_scraped, updated_at);
            """
        )
        conn.commit()

    def _fetchall(self, query: str, params: Iterable[Any]) -> list[sqlite3.Row]:
        try:
            cur = self.connect().execute(query, tuple(params))
            rows = cur.fetchall()
            cur.close()
        except sqlite3.Error as exc:
            raise StoreUnavailable(str(exc)) from exc
        return rows

    def upsert(self, articles: list[Article]) -> UpsertResult:
        if not articles:
            return UpsertResult(success=True, count=0)
        now = iso_now()
        rows = [
            (a.url, a.title, a.source, a.sector, a.time, a.summary, a.updated_at or now)
            for a in articles
        ]
        conn = self.connect()
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO articles (url, title, source, sector, time, summary, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(url) DO UPDATE SET
                        title = excluded.title,
                        source = excluded.source,
                        sector = excluded.sector,
                        time = excluded.time,
                        summary = excluded.summary,
                        updated_at = excluded.updated_at
                    """,
                    rows,
                )
        except sqlite3.Error as exc:
            raise StoreWriteFailure(f"upsert failed: {exc}") from exc
        return UpsertResult(success=True, count=len(rows))

    def update_content(self, url: str, content: str) -> bool:
        now = iso_now()
        conn = self.connect()
        try:
            with conn:
                cur = conn.execute(
                    """
                    UPDATE articles
                    SET content = ?, deep_scraped = 1, deep_scraped_at = ?, updated_at = ?
                    WHERE url = ?
                    """,
                    (content, now, now, url),
                )
        except sqlite3.Error as exc:
            raise StoreWriteFailure(f"content update failed for {url}: {exc}") from exc
        return cur.rowcount > 0

    def mark_deep_scraped(self, url: str) -> None:
        now = iso_now()
        conn = self.connect()
        try:
            with conn:
                conn.execute(
                    "UPDATE articles SET deep_scraped = 1, deep_scraped_at = ? WHERE url = ?",
                    (now, url),
                )
        except sqlite3.Error as exc:
            raise StoreWriteFailure(f"mark deep scraped failed for {url}: {exc}") from exc

    def get_unscraped(self, limit: int) -> list[Article]:
        rows = self._fetchall(
            f"SELECT {_COLUMNS} FROM articles WHERE deep_scraped = 0 "
            "ORDER BY updated_at DESC, rowid DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_article(row) for row in rows]

    def get_articles(self, sector: Sector, limit: int = 100) -> list[Article]:
        rows = self._fetchall(
            f"SELECT {_COLUMNS} FROM articles WHERE sector = ? "
            "ORDER BY updated_at DESC, rowid DESC LIMIT ?",
            (sector, limit),
        )
        return [_row_to_article(row) for row in rows]

    def get_articles_by_source(self, source: str, limit: int = 50) -> list[Article]:
        rows = self._fetchall(
            f"SELECT {_COLUMNS} FROM articles WHERE source = ? "
            "ORDER BY updated_at DESC, rowid DESC LIMIT ?",
            (source, limit),
        )
        return [_row_to_article(row) for row in rows]


def _row_to_article(row: sqlite3.Row) -> Article:
    return Article(
        url=row["url"],
        title=row["title"],
        source=row["source"],
        sector=row["sector"],
        time=row["time"] or "Recent",
        summary=row["summary"] or "",
        content=row["content"],
        deep_scraped=bool(row["deep_scraped"]),
        deep_scraped_at=row["deep_scraped_at"],
        updated_at=row["updated_at"],
    )
