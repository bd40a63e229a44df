"""
Navigation Driver
=================
"Go to URL, wait for readiness, hand back the DOM" behind one interface.

Two implementations:
    - ``BrowserSession``  Playwright (sync API), full JS rendering
    - ``StaticSession``   requests + BeautifulSoup, no JS

Sessions are scoped resources. Every pipeline phase opens one with ``with``
and the browser is closed on every exit path::

    with open_session(config) as session:
        session.goto(url, wait_until="load", timeout_ms=0)
        document = session.document()
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import requests
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout
from playwright.sync_api import sync_playwright

from .dom import DomNode, SoupNode
from .errors import NavigationFailure

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)


class NavigationSession(ABC):
    """Contract every navigation backend implements."""

    def __enter__(self) -> "NavigationSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        """Acquire the underlying resource (browser, HTTP pool)."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource. Safe to call twice."""
        ...

    @abstractmethod
    def goto(self, url: str, wait_until: str = "load", timeout_ms: int = 0) -> None:
        """Navigate and wait. ``timeout_ms=0`` waits indefinitely.

        Raises:
            NavigationFailure: timeout, network error or HTTP error status
        """
        ...

    @abstractmethod
    def wait_for_any(self, selectors: Sequence[str], timeout_ms: int) -> Optional[str]:
        """Return the first selector that appears on the page, or None."""
        ...

    @abstractmethod
    def document(self) -> DomNode:
        """Snapshot of the current page as a DOM root."""
        ...


class BrowserSession(NavigationSession):
    """
    Playwright-backed session: one browser, one context, one page.
    """

    def __init__(
        self,
        headless: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        viewport_width: int = 1920,
        viewport_height: int = 1080,
    ):
        self.headless = headless
        self.user_agent = user_agent
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def open(self) -> None:
        if self._playwright is not None:
            return
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.headless,
            args=[
                '--disable-gpu',
                '--no-sandbox',
                '--disable-dev-shm-usage',
            ]
        )
        self._context = self._browser.new_context(
            user_agent=self.user_agent,
            viewport={'width': self.viewport_width, 'height': self.viewport_height},
            locale='en-US',
        )
        self._page = self._context.new_page()
        logger.info("[DRIVER] Playwright browser launched")

    def close(self) -> None:
        for name in ('_context', '_browser'):
            resource = getattr(self, name)
            if resource is not None:
                try:
                    resource.close()
                except PlaywrightError as e:
                    logger.debug(f"[DRIVER] Error closing {name.strip('_')}: {e}")
                setattr(self, name, None)
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None
            logger.info("[DRIVER] Browser closed")
        self._page = None

    def goto(self, url: str, wait_until: str = "load", timeout_ms: int = 0) -> None:
        if self._page is None:
            self.open()
        try:
            self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightTimeout as e:
            raise NavigationFailure(f"Timed out loading {url}", url=url, timeout_ms=timeout_ms) from e
        except PlaywrightError as e:
            raise NavigationFailure(f"Navigation failed for {url}: {e}", url=url) from e

    def wait_for_any(self, selectors: Sequence[str], timeout_ms: int) -> Optional[str]:
        for selector in selectors:
            try:
                self._page.wait_for_selector(selector, timeout=timeout_ms)
                return selector
            except PlaywrightTimeout:
                logger.warning(f"[DRIVER] Selector {selector} not found")
        return None

    def document(self) -> DomNode:
        return SoupNode.from_html(self._page.content())


class StaticSession(NavigationSession):
    """
    requests-backed session for pages that render server-side.

    ``wait_until`` is ignored; the response body is the page.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT):
        self.user_agent = user_agent
        self._session: Optional[requests.Session] = None
        self._html = ""

    def open(self) -> None:
        if self._session is not None:
            return
        self._session = requests.Session()
        self._session.headers.update({
            'User-Agent': self.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        })

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        self._html = ""

    def goto(self, url: str, wait_until: str = "load", timeout_ms: int = 0) -> None:
        if self._session is None:
            self.open()
        timeout = timeout_ms / 1000 if timeout_ms else None
        try:
            response = self._session.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise NavigationFailure(f"Timed out loading {url}", url=url, timeout_ms=timeout_ms) from e
        except requests.RequestException as e:
            raise NavigationFailure(f"Navigation failed for {url}: {e}", url=url) from e
        self._html = response.text

    def wait_for_any(self, selectors: Sequence[str], timeout_ms: int) -> Optional[str]:
        document = self.document()
        for selector in selectors:
            if document.select_one(selector) is not None:
                return selector
            logger.warning(f"[DRIVER] Selector {selector} not found")
        return None

    def document(self) -> DomNode:
        return SoupNode.from_html(self._html)


def open_session(config) -> NavigationSession:
    """Build the session the run config asks for (not yet opened)."""
    if config.use_browser:
        return BrowserSession(headless=config.headless, user_agent=config.user_agent)
    return StaticSession(user_agent=config.user_agent)
