"""Playwright-backed page renderer.

The scraping code only relies on the small `Renderer` / `RenderedPage`
protocols below; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Callable, Protocol

from playwright.sync_api import Browser, Page, Playwright, Route, sync_playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .config import BLOCKED_RESOURCE_TYPES
from .errors import LoadTimeout, NavigationError, RenderError
from .http import USER_AGENT

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-background-networking",
]
CLICK_TIMEOUT_MS = 2_000


class RenderedPage(Protocol):
    @property
    def url(self) -> str:
        ...

    def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        ...

    def click(self, selector: str) -> bool:
        ...

    def scroll(self, pixels: int) -> None:
        ...

    def pause(self, ms: int) -> None:
        ...

    def content(self) -> str:
        ...

    def close(self) -> None:
        ...


class Renderer(Protocol):
    def open(
        self,
        url: str,
        load_timeout_ms: int,
        wait_until: str = "domcontentloaded",
    ) -> RenderedPage:
        ...


class PlaywrightPage:
    def __init__(self, page: Page, on_close: Callable[[], None] | None = None) -> None:
        self._page = page
        self._on_close = on_close

    @property
    def url(self) -> str:
        return self._page.url

    def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        try:
            self._page.wait_for_selector(selector, timeout=timeout_ms, state="attached")
        except PlaywrightTimeoutError:
            return False
        return True

    def click(self, selector: str) -> bool:
        handle = self._page.query_selector(selector)
        if handle is None:
            return False
        handle.click(timeout=CLICK_TIMEOUT_MS)
        return True

    def scroll(self, pixels: int) -> None:
        self._page.evaluate("(dy) => window.scrollBy(0, dy)", pixels)

    def pause(self, ms: int) -> None:
        self._page.wait_for_timeout(ms)

    def content(self) -> str:
        return self._page.content()

    def close(self) -> None:
        try:
            self._page.close()
        except PlaywrightError:
            pass
        if self._on_close is not None:
            self._on_close()


class BrowserSession:
    """One Chromium instance reused across pages; relaunched when disconnected."""

    def __init__(
        self,
        executable_path: str | None = None,
        blocked_resource_types: tuple[str, ...] = BLOCKED_RESOURCE_TYPES,
    ) -> None:
        self.executable_path = executable_path
        self.blocked_resource_types = frozenset(blocked_resource_types)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    def ensure_browser(self) -> Browser:
        if self._browser is not None and self._browser.is_connected():
            return self._browser
        try:
            if self._playwright is None:
                self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=True,
                executable_path=self.executable_path,
                args=LAUNCH_ARGS,
            )
        except PlaywrightError as exc:
            raise RenderError(f"browser launch failed: {exc}") from exc
        return self._browser

    def open(
        self,
        url: str,
        load_timeout_ms: int,
        wait_until: str = "domcontentloaded",
    ) -> RenderedPage:
        return PlaywrightPage(self._open_page(url, load_timeout_ms, wait_until))

    def _open_page(self, url: str, load_timeout_ms: int, wait_until: str) -> Page:
        browser = self.ensure_browser()
        try:
            page = browser.new_page(user_agent=USER_AGENT)
        except PlaywrightError as exc:
            raise RenderError(f"new page failed: {exc}") from exc
        page.route("**/*", self._route)
        try:
            page.goto(url, wait_until=wait_until, timeout=load_timeout_ms)
        except PlaywrightTimeoutError as exc:
            page.close()
            raise LoadTimeout(f"timed out loading {url}") from exc
        except PlaywrightError as exc:
            page.close()
            raise NavigationError(f"navigation to {url} failed: {exc}") from exc
        return page

    def _route(self, route: Route) -> None:
        if route.request.resource_type in self.blocked_resource_types:
            route.abort()
        else:
            route.continue_()

    def close(self) -> None:
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError:
                pass
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None


class IsolatedRenderer:
    """Launches a fresh browser for every page and tears it down on close."""

    def __init__(
        self,
        executable_path: str | None = None,
        blocked_resource_types: tuple[str, ...] = BLOCKED_RESOURCE_TYPES,
    ) -> None:
        self.executable_path = executable_path
        self.blocked_resource_types = blocked_resource_types

    def open(
        self,
        url: str,
        load_timeout_ms: int,
        wait_until: str = "domcontentloaded",
    ) -> RenderedPage:
        session = BrowserSession(self.executable_path, self.blocked_resource_types)
        try:
            page = session._open_page(url, load_timeout_ms, wait_until)
        except BaseException:
            session.close()
            raise
        return PlaywrightPage(page, on_close=session.close)
