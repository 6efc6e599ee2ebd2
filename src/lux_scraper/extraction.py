"""Generic list-page extraction shared by the rendered and static adapters.

The renderer only loads the page and runs the interactive steps (popup
dismissal, waiting, scrolling). Everything after that works on the page HTML
through BeautifulSoup so it can be exercised without a browser.
"""

from __future__ import annotations

import re
from datetime import datetime
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from .errors import RenderError
from .models import RenderTarget, ScrapedItem
from .renderer import RenderedPage, Renderer
from .text import clean_text, truncate_summary
from .time_utils import format_recency, utc_now

RENDER_LOAD_TIMEOUT_MS = 60_000
SELECTOR_TIMEOUT_MS = 15_000
POPUP_SETTLE_MS = 500
SCROLL_SETTLE_MS = 1_000
MAX_ITEMS = 15

POPUP_SELECTORS = (
    'button[aria-label="Close"]',
    ".close-button",
    "#close-popup",
    ".newsletter-modal .close",
    'div[class*="popup"] button',
)

FALLBACK_MIN_TEXT = 30
FALLBACK_EXCLUDED = ("Read More", "Subscribe")

DEFAULT_TIME = "Just now"
SUMMARY_MIN_TEXT = 20
SUMMARY_SELECTORS = ".description, .excerpt, .summary, .post-content"

_TIME_RE = re.compile(r"\d+ (?:hour|minute|day)s? ago|[A-Z][a-z]{2} \d{1,2}, \d{4}")


def select_candidates(soup: BeautifulSoup, selector: str, fallback_scan: bool = False) -> list[Tag]:
    matches = soup.select(selector)
    if not matches and fallback_scan:
        matches = [anchor for anchor in soup.find_all("a") if _looks_like_headline(anchor)]
    return matches[:MAX_ITEMS]


def _looks_like_headline(anchor: Tag) -> bool:
    text = clean_text(anchor.get_text(" "))
    if len(text) <= FALLBACK_MIN_TEXT:
        return False
    return not any(marker in text for marker in FALLBACK_EXCLUDED)


def find_link(element: Tag) -> Tag | None:
    if element.name == "a":
        return element
    return element.find("a")


def context_element(element: Tag) -> Tag | None:
    """Nearest enclosing <article>, else the direct parent."""
    if element.name == "article":
        return element
    return element.find_parent("article") or element.parent


def derive_time(
    element: Tag,
    time_selector: str | None = None,
    default: str = DEFAULT_TIME,
    now: datetime | None = None,
) -> str:
    container = context_element(element)
    if container is None:
        return default
    if time_selector:
        node = container.select_one(time_selector)
        if node is not None:
            text = clean_text(node.get_text(" "))
            if text:
                return text
    time_node = container.find("time")
    if time_node is not None:
        stamp = time_node.get("datetime")
        if stamp:
            stamp = str(stamp).strip()
            return format_recency(stamp, now or utc_now(), default=stamp)
        text = clean_text(time_node.get_text(" "))
        if text:
            return text
    match = _TIME_RE.search(clean_text(container.get_text(" ")))
    if match:
        return match.group(0)
    return default


def derive_summary(element: Tag, title: str) -> str:
    container = context_element(element)
    if container is None:
        return ""
    for paragraph in container.find_all("p"):
        text = clean_text(paragraph.get_text(" "))
        if text != title and len(text) > SUMMARY_MIN_TEXT:
            return truncate_summary(text)
    node = container.select_one(SUMMARY_SELECTORS)
    if node is not None:
        return truncate_summary(clean_text(node.get_text(" ")))
    return ""


def absolute_url(base_url: str, href: str | None) -> str | None:
    if not href:
        return None
    url = urljoin(base_url, href.strip())
    if urlparse(url).scheme not in ("http", "https"):
        return None
    return url


def extract_items(
    html: str,
    base_url: str,
    selector: str,
    source: str,
    *,
    fallback_scan: bool = False,
    time_selector: str | None = None,
    time_default: str = DEFAULT_TIME,
    now: datetime | None = None,
) -> list[ScrapedItem]:
    soup = BeautifulSoup(html, "lxml")
    items: list[ScrapedItem] = []
    for element in select_candidates(soup, selector, fallback_scan):
        link = find_link(element)
        if link is None:
            continue
        title = clean_text(element.get_text(" ")) or clean_text(link.get_text(" "))
        url = absolute_url(base_url, link.get("href"))
        if not title or not url:
            continue
        items.append(
            ScrapedItem(
                title=title,
                url=url,
                source=source,
                time=derive_time(element, time_selector, time_default, now),
                summary=derive_summary(element, title),
            )
        )
    return items


def dismiss_popups(page: RenderedPage) -> int:
    dismissed = 0
    for selector in POPUP_SELECTORS:
        try:
            clicked = page.click(selector)
        except Exception:
            # Overlays detach or go stale while we click; nothing to recover.
            continue
        if clicked:
            dismissed += 1
            page.pause(POPUP_SETTLE_MS)
    return dismissed


def render_items(
    renderer: Renderer,
    target: RenderTarget,
    now: datetime | None = None,
) -> list[ScrapedItem]:
    """Render the target and extract its items. Raises RenderError when the page fails to load."""
    page = renderer.open(target.url, RENDER_LOAD_TIMEOUT_MS)
    try:
        dismiss_popups(page)
        page.wait_for_selector(target.selector, SELECTOR_TIMEOUT_MS)
        if target.scroll_px:
            page.scroll(target.scroll_px)
            page.pause(SCROLL_SETTLE_MS)
        html = page.content()
        base_url = page.url or target.url
    except RenderError:
        raise
    except Exception as exc:
        raise RenderError(f"render of {target.url} failed: {exc}") from exc
    finally:
        page.close()
    return extract_items(
        html,
        base_url,
        target.selector,
        target.source,
        fallback_scan=target.fallback_scan,
        now=now,
    )
