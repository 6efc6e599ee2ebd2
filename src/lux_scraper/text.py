from __future__ import annotations

import re

from bs4 import BeautifulSoup

SUMMARY_LIMIT = 150
ELLIPSIS = "..."

_WHITESPACE_RE = re.compile(r"\s+")

_BLOCK_PATTERNS = (
    re.compile(r"you can.?t perform that action at this time", re.IGNORECASE),
    re.compile(r"attention required", re.IGNORECASE),
    re.compile(r"checking your browser before accessing", re.IGNORECASE),
    re.compile(r"enable javascript and cookies to continue", re.IGNORECASE),
    re.compile(r"please enable javascript", re.IGNORECASE),
    re.compile(r"access denied", re.IGNORECASE),
    re.compile(r"verify you are human", re.IGNORECASE),
)


def clean_text(value: str | None) -> str:
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip()


def strip_html(value: str | None) -> str:
    if not value:
        return ""
    if "<" not in value:
        return clean_text(value)
    return clean_text(BeautifulSoup(value, "lxml").get_text(" "))


def truncate_summary(value: str | None, limit: int = SUMMARY_LIMIT) -> str:
    text = value or ""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def truncate_content(value: str, limit: int) -> str:
    return value[:limit]


def detect_blocked_text(text: str) -> str | None:
    """Return the matched phrase when short text looks like a bot challenge page."""
    if not text:
        return None
    collapsed = clean_text(text)
    if not collapsed:
        return None
    if len(collapsed.split()) > 120 or len(collapsed) > 1200:
        return None
    for pattern in _BLOCK_PATTERNS:
        match = pattern.search(collapsed)
        if match:
            return match.group(0)
    return None
