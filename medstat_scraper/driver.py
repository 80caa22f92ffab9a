"""Page driver: the browser capability the scraper runs against.

``PageDriver`` defines the small surface the pipeline needs (navigate, wait,
read text, read attributes, fill and click for login). Text and attribute
extraction work over a BeautifulSoup snapshot of the rendered document, so any
driver that can hand back HTML gets them for free. ``PlaywrightPageDriver``
drives a real Chromium through Playwright's sync API.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from .config import ACTION_TIMEOUT_MS, NAVIGATION_TIMEOUT_MS


logger = logging.getLogger(__name__)

LOAD_STATES = ("load", "domcontentloaded", "networkidle")
URL_ATTRIBUTES = ("href", "src")


class NavigationError(RuntimeError):
    """Navigation to a URL failed or timed out."""


class PageDriver:
    """Base class for page drivers.

    Subclasses provide navigation, ``url`` and ``content()``; extraction is
    implemented here on top of the HTML snapshot.
    """

    @property
    def url(self) -> str:
        raise NotImplementedError

    def goto(self, url: str, timeout_ms: int = NAVIGATION_TIMEOUT_MS) -> None:
        raise NotImplementedError

    def content(self) -> str:
        raise NotImplementedError

    def wait_for_condition(
        self,
        selector: Optional[str] = None,
        state: Optional[str] = None,
        timeout_ms: int = ACTION_TIMEOUT_MS,
    ) -> bool:
        """Wait for a selector to appear or a load state to be reached.

        Returns False on timeout instead of raising.
        """
        raise NotImplementedError

    def fill(self, label: str, value: str) -> None:
        raise NotImplementedError

    def click(self, name: str) -> None:
        raise NotImplementedError

    def has_field(self, label: str) -> bool:
        raise NotImplementedError

    def pause(self, ms: int) -> None:
        raise NotImplementedError

    def _soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.content(), "lxml")

    def extract_text(self, selector: str) -> Optional[str]:
        el = self._soup().select_one(selector)
        if el is None:
            return None
        return el.get_text(separator="\n", strip=True)

    def extract_attributes(self, selector: str, attr: str) -> List[str]:
        values: List[str] = []
        for el in self._soup().select(selector):
            value = el.get(attr)
            if not value:
                continue
            if attr in URL_ATTRIBUTES:
                value = urljoin(self.url, value)
            values.append(value)
        return values


class PlaywrightPageDriver(PageDriver):
    """Chromium driven through Playwright's sync API.

    Use as a context manager; the browser is closed on exit::

        with PlaywrightPageDriver(headless=True) as driver:
            driver.goto("https://example.com")
    """

    def __init__(
        self,
        headless: bool = True,
        viewport: Optional[dict] = None,
        action_timeout_ms: int = ACTION_TIMEOUT_MS,
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
    ) -> None:
        self.headless = headless
        self.viewport = viewport or {"width": 1280, "height": 800}
        self.action_timeout_ms = action_timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    def start(self) -> "PlaywrightPageDriver":
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        self._context = self._browser.new_context(viewport=self.viewport)
        self._context.set_default_timeout(self.action_timeout_ms)
        self._context.set_default_navigation_timeout(self.navigation_timeout_ms)
        self._page = self._context.new_page()
        logger.debug("Browser started (headless=%s)", self.headless)
        return self

    def close(self) -> None:
        if self._context is not None:
            self._context.close()
        if self._browser is not None:
            self._browser.close()
        if self._playwright is not None:
            self._playwright.stop()
        self._page = self._context = self._browser = self._playwright = None

    def __enter__(self) -> "PlaywrightPageDriver":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Driver is not started")
        return self._page

    @property
    def url(self) -> str:
        return self.page.url

    def goto(self, url: str, timeout_ms: int = NAVIGATION_TIMEOUT_MS) -> None:
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightError as exc:
            raise NavigationError(f"{url}: {exc}") from exc

    def content(self) -> str:
        return self.page.content()

    def wait_for_condition(
        self,
        selector: Optional[str] = None,
        state: Optional[str] = None,
        timeout_ms: int = ACTION_TIMEOUT_MS,
    ) -> bool:
        if state is not None and state not in LOAD_STATES:
            raise ValueError(f"Unknown load state: {state}")
        try:
            if selector:
                self.page.locator(selector).first.wait_for(timeout=timeout_ms)
            if state:
                self.page.wait_for_load_state(state, timeout=timeout_ms)
        except PlaywrightError as exc:
            logger.debug("Wait for selector=%r state=%r gave up: %s", selector, state, exc)
            return False
        return True

    def _textbox(self, label: str):
        return self.page.get_by_role("textbox", name=re.compile(label, re.IGNORECASE))

    def fill(self, label: str, value: str) -> None:
        box = self._textbox(label)
        box.click()
        box.fill(value)

    def click(self, name: str) -> None:
        self.page.get_by_role("button", name=re.compile(name, re.IGNORECASE)).click()

    def has_field(self, label: str) -> bool:
        try:
            return self._textbox(label).count() > 0
        except PlaywrightError as exc:
            # the document is being replaced, so the form is on its way out
            logger.debug("Field %r not queryable: %s", label, exc)
            return False

    def pause(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def extract_attributes(self, selector: str, attr: str) -> List[str]:
        try:
            return super().extract_attributes(selector, attr)
        except PlaywrightError as exc:
            logger.warning("Attributes %r of %r unavailable: %s", attr, selector, exc)
            return []

    def extract_text(self, selector: str) -> Optional[str]:
        # inner_text keeps the rendered line breaks the field rules rely on
        locator = self.page.locator(selector)
        try:
            if locator.count() == 0:
                return None
            return locator.first.inner_text()
        except PlaywrightError as exc:
            logger.debug("Text for %r unavailable: %s", selector, exc)
            return None
