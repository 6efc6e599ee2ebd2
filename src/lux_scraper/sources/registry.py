from __future__ import annotations

from ..models import FeedTarget, RenderTarget, SourceEntry, StaticTarget
from .feeds import make_feed_source
from .rendered import make_rendered_source
from .static_html import make_static_source

GOOGLE_NEWS_LUXURY = (
    "https://news.google.com/rss/search?q=luxury+fashion+industry&hl=en-US&gl=US&ceid=US:en"
)
GOOGLE_NEWS_SEMICONDUCTORS = (
    "https://news.google.com/rss/search?q=semiconductor+industry&hl=en-US&gl=US&ceid=US:en"
)

_PURSEBLOG_URL = "https://www.purseblog.com/"

_SOURCES: list[SourceEntry] = [
    # luxury
    make_static_source(
        "CPP Luxury",
        "luxury",
        StaticTarget(
            url="https://cpp-luxury.com/",
            selector="h5 a",
            source="CPP Luxury",
            time_selector=".date",
        ),
        weight=2,
    ),
    make_rendered_source(
        "Jing Daily",
        "luxury",
        RenderTarget(
            url="https://jingdaily.com/",
            selector="h3.elementor-post__title a",
            source="Jing Daily",
            fallback_scan=True,
        ),
        weight=2,
    ),
    make_rendered_source(
        "PurseBlog",
        "luxury",
        RenderTarget(
            url=_PURSEBLOG_URL,
            selector="h2.post-title a",
            source="PurseBlog",
            scroll_px=500,
            secondary=RenderTarget(url=_PURSEBLOG_URL, selector="article h2 a", source="PurseBlog"),
        ),
        weight=2,
    ),
    make_rendered_source(
        "PurseBlog Forum",
        "luxury",
        RenderTarget(
            url="https://forum.purseblog.com/feeds/hot",
            selector="div.structItem-title a[data-tp-primary='on']",
            source="PurseBlog Forum",
        ),
    ),
    make_feed_source(
        "Luxury Fallback",
        "luxury",
        FeedTarget(url=GOOGLE_NEWS_LUXURY, source="Google News", limit=10),
    ),
    # semiconductors
    make_feed_source(
        "Lithosgraphein",
        "semiconductors",
        FeedTarget(url="https://lithosgraphein.substack.com/feed", source="Lithosgraphein"),
        weight=3,
    ),
    make_rendered_source(
        "SemiAnalysis",
        "semiconductors",
        RenderTarget(url="https://www.semianalysis.com/", selector="h1 a", source="SemiAnalysis"),
        weight=2,
    ),
    make_rendered_source(
        "Fabricated Knowledge",
        "semiconductors",
        RenderTarget(
            url="https://www.fabricatedknowledge.com/",
            selector="h3 a",
            source="Fabricated Knowledge",
        ),
        weight=2,
    ),
    make_rendered_source(
        "Asianometry",
        "semiconductors",
        RenderTarget(
            url="https://www.youtube.com/@Asianometry/videos",
            selector="a#video-title-link",
            source="Asianometry",
        ),
    ),
    make_rendered_source(
        "More Than Moore",
        "semiconductors",
        RenderTarget(url="https://www.morethanmoore.com/", selector="h3 a", source="More Than Moore"),
        weight=2,
    ),
    make_static_source(
        "Hacker News",
        "semiconductors",
        StaticTarget(
            url="https://news.ycombinator.com/",
            selector="span.titleline > a",
            source="Hacker News",
        ),
        weight=3,
    ),
    make_feed_source(
        "TechCrunch",
        "semiconductors",
        FeedTarget(url="https://techcrunch.com/feed/", source="TechCrunch", limit=15),
        weight=2,
    ),
    make_feed_source(
        "Ars Technica",
        "semiconductors",
        FeedTarget(
            url="https://feeds.arstechnica.com/arstechnica/technology-lab",
            source="Ars Technica",
            limit=15,
        ),
        weight=2,
    ),
    make_feed_source(
        "Tech News",
        "semiconductors",
        FeedTarget(url=GOOGLE_NEWS_SEMICONDUCTORS, source="Tech News", limit=10),
    ),
    make_rendered_source(
        "CMX",
        "semiconductors",
        RenderTarget(url="https://newsletter.cmx.io/", selector="h3 a", source="CMX"),
        enabled=False,
    ),
]


def list_sources(include_disabled: bool = True) -> list[SourceEntry]:
    if include_disabled:
        return list(_SOURCES)
    return [source for source in _SOURCES if source.enabled]


def get_source(name: str) -> SourceEntry:
    for source in _SOURCES:
        if source.name == name:
            return source
    lowered = name.lower()
    for source in _SOURCES:
        if source.name.lower() == lowered:
            return source
    raise KeyError(f"Unknown source: {name}")
