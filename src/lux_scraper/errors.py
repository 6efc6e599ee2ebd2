from __future__ import annotations


class ScraperError(Exception):
    pass


class AdapterError(ScraperError):
    """The fetch or render of a source failed outright."""


class AdapterEmpty(ScraperError):
    """The source was reachable but produced zero items."""


class RenderError(AdapterError):
    pass


class LoadTimeout(RenderError):
    pass


class NavigationError(RenderError):
    pass


class DeepScrapeFailure(ScraperError):
    pass


class StoreError(ScraperError):
    pass


class StoreUnavailable(StoreError):
    pass


class StoreWriteFailure(StoreError):
    pass


class FatalInitError(ScraperError):
    pass
