from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .paths import data_root, project_root

BLOCKED_RESOURCE_TYPES: tuple[str, ...] = ("image", "stylesheet", "font", "media")


@dataclass(frozen=True)
class DaemonConfig:
    min_source_delay_s: float = 30.0
    max_source_delay_s: float = 180.0
    min_article_delay_s: float = 10.0
    max_article_delay_s: float = 60.0
    articles_per_batch: int = 3
    max_content_length: int = 50_000
    page_timeout_ms: int = 60_000
    stats_every: int = 10
    max_cycles: int | None = None


@dataclass(frozen=True)
class BatchConfig:
    scraper_delay_s: float = 3.0
    max_backoff_hours: int = 8
    startup_jitter_s: float = 30 * 60.0
    enable_jitter: bool = False


@dataclass(frozen=True)
class Settings:
    data_root: Path
    store_backend: str = "sqlite"
    supabase_url: str | None = None
    supabase_key: str | None = None
    supabase_key_type: str | None = None
    resend_api_key: str | None = None
    alert_email: str | None = None
    alert_from: str = "Lux Scrapers <onboarding@resend.dev>"
    environment: str = "development"
    chromium_path: str | None = None
    blocked_resource_types: tuple[str, ...] = field(default=BLOCKED_RESOURCE_TYPES)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_env_files(root: Path | None = None) -> None:
    base = root or project_root()
    load_dotenv(base / ".env.local")
    load_dotenv(base / ".env")


def load_settings(root_override: Path | None = None) -> Settings:
    load_env_files()
    env = os.environ
    service_key = env.get("SUPABASE_SERVICE_ROLE_KEY")
    anon_key = env.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")
    key_type = "service_role" if service_key else ("anon" if anon_key else None)
    return Settings(
        data_root=data_root(root_override),
        store_backend=(env.get("LUX_STORE") or "sqlite").strip().lower(),
        supabase_url=env.get("SUPABASE_URL") or env.get("NEXT_PUBLIC_SUPABASE_URL"),
        supabase_key=service_key or anon_key,
        supabase_key_type=key_type,
        resend_api_key=env.get("RESEND_API_KEY") or None,
        alert_email=env.get("ALERT_EMAIL") or None,
        alert_from=env.get("ALERT_FROM") or Settings.alert_from,
        environment=(env.get("LUX_ENV") or "development").strip().lower(),
        chromium_path=env.get("PLAYWRIGHT_CHROMIUM_PATH") or None,
    )
