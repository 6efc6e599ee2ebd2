from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from .errors import DeepScrapeFailure, RenderError
from .renderer import Renderer
from .text import detect_blocked_text, truncate_content

CONTENT_SELECTORS = (
    "article",
    ".post-content",
    ".entry-content",
    ".article-body",
    ".article-content",
    ".post-body",
    "main article",
    '[role="main"]',
    ".story-body",
    ".content-body",
)
MIN_SELECTOR_TEXT = 200
MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 50_000
PAGE_TIMEOUT_MS = 60_000

_NON_TEXT_TAGS = ("script", "style", "noscript", "template")
_CHROME_TAGS = ("nav", "footer")


def _visible_text(node: Tag) -> str:
    lines = (line.strip() for line in node.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


def extract_main_text(html: str) -> str:
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all(_NON_TEXT_TAGS):
        tag.decompose()
    for selector in CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        text = _visible_text(node)
        if len(text) > MIN_SELECTOR_TEXT:
            return text
    body = soup.body or soup
    for tag in body.find_all(_CHROME_TAGS):
        tag.decompose()
    return _visible_text(body)


def deep_scrape_article(
    renderer: Renderer,
    url: str,
    max_content_length: int = MAX_CONTENT_LENGTH,
    load_timeout_ms: int = PAGE_TIMEOUT_MS,
) -> str:
    """Fetch the full text of one article, raising DeepScrapeFailure when nothing usable comes back."""
    try:
        page = renderer.open(url, load_timeout_ms, wait_until="load")
    except RenderError as exc:
        raise DeepScrapeFailure(str(exc)) from exc
    try:
        html = page.content()
    except Exception as exc:
        raise DeepScrapeFailure(f"could not read {url}: {exc}") from exc
    finally:
        page.close()

    text = extract_main_text(html)
    if len(text) <= MIN_CONTENT_LENGTH:
        raise DeepScrapeFailure(f"insufficient content ({len(text)} chars)")
    blocked = detect_blocked_text(text)
    if blocked:
        raise DeepScrapeFailure(f"blocked content detected: {blocked}")
    return truncate_content(text, max_content_length)
