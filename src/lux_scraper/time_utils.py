from __future__ import annotations

from datetime import datetime, timezone

from dateutil import parser

RECENT_FILLER = "Recent"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    return utc_now().replace(microsecond=0).isoformat()


def run_stamp(now: datetime | None = None) -> str:
    return (now or utc_now()).strftime("%Y%m%d-%H%M%S")


def parse_datetime(value: str) -> datetime:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        dt = parser.parse(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_date(dt: datetime) -> str:
    return f"{dt:%b} {dt.day}, {dt.year}"


def format_recency(value: str | None, now: datetime, default: str = RECENT_FILLER) -> str:
    """Render a feed timestamp as "Just now", "N hours ago" or "Mon D, YYYY"."""
    if not value:
        return default
    try:
        published = parse_datetime(value)
    except (ValueError, OverflowError):
        return default
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    hours = (now - published).total_seconds() / 3600
    if hours < 1:
        return "Just now"
    if hours < 24:
        count = int(hours)
        return f"{count} hour ago" if count == 1 else f"{count} hours ago"
    return format_date(published)


def format_duration(seconds: float) -> str:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"
