"""Shared fixtures: a static-HTML page driver and a small fake storefront."""

from typing import Dict, Iterable, Optional

import pytest

from medstat_scraper.config import LOGIN_URL, Settings
from medstat_scraper.driver import NavigationError, PageDriver


SITE = "https://www.medstatsupplies.com"
SEARCH_BASE = f"{SITE}/search?order=relevance:desc&keywords=BLUESTAR"
HOME_URL = f"{SITE}/"
EMPTY_PAGE = "<html><body></body></html>"


class FakePageDriver(PageDriver):
    """Serves canned HTML by URL; unknown or failing URLs raise NavigationError."""

    def __init__(
        self,
        pages: Dict[str, str],
        failing: Iterable[str] = (),
        after_login_url: Optional[str] = HOME_URL,
    ) -> None:
        self.pages = dict(pages)
        self.failing = set(failing)
        self.after_login_url = after_login_url
        self._url = "about:blank"
        self.visited = []
        self.waits = []
        self.filled = {}
        self.clicked = []
        self.paused_ms = 0

    @property
    def url(self) -> str:
        return self._url

    def goto(self, url, timeout_ms=0):
        self.visited.append(url)
        if url in self.failing or url not in self.pages:
            raise NavigationError(f"{url}: net::ERR_FAILED")
        self._url = url

    def content(self) -> str:
        return self.pages.get(self._url, EMPTY_PAGE)

    def wait_for_condition(self, selector=None, state=None, timeout_ms=0):
        self.waits.append((selector, state))
        if selector:
            return bool(self._soup().select(selector))
        return True

    def fill(self, label, value):
        self.filled[label] = value

    def click(self, name):
        self.clicked.append(name)
        if name == "Log In" and self.after_login_url:
            self._url = self.after_login_url

    def has_field(self, label):
        return "login" in self._url

    def pause(self, ms):
        self.paused_ms += ms


LOGIN_PAGE = """
<html><body>
  <form><label>Email Address <input type="email"></label>
  <label>Password <input type="password"></label><button>Log In</button></form>
</body></html>
"""

SEARCH_PAGE_1 = """
<html><body>
  <div class="facets-item-cell">
    <a class="facets-item-cell-grid-link-image" href="/product/widget-a"><img src="/a.jpg"></a>
    <a class="facets-item-cell-grid-link-title" href="/product/widget-a">Widget A</a>
  </div>
  <div class="facets-item-cell">
    <a class="facets-item-cell-grid-link-image" href="/product/widget-b"><img src="/b.jpg"></a>
    <a class="facets-item-cell-grid-link-title" href="/product/widget-b">Widget B</a>
  </div>
  <a href="/p/widget-c">Widget C</a>
  <a href="/search?keywords=BLUESTAR&page=2">Next</a>
  <a href="/product/widget-a#reviews">Reviews</a>
  <a href="/about-us">About</a>
</body></html>
"""

SEARCH_PAGE_2 = """
<html><body>
  <div class="facets-item-cell">
    <a class="facets-item-cell-grid-link-title" href="/product/widget-a">Widget A</a>
  </div>
  <div class="facets-item-cell">
    <a class="facets-item-cell-grid-link-title" href="/product/widget-d">Widget D</a>
  </div>
</body></html>
"""

PRODUCT_A = """
<html><body>
  <h1>BLUESTAR Widget A</h1>
  <div id="product-details-full-form">
    <p>SKU: BS-100</p>
    <p>MPN: M-100</p>
    <p>Manufacturer: Bluestar</p>
    <p>$1,234.56</p>
    <p>Current Stock: 12 in stock</p>
    <p>Description: A sturdy widget.</p>
  </div>
  <footer>Copyright</footer>
</body></html>
"""

PRODUCT_B = """
<html><body>
  <h1>BLUESTAR Widget B</h1>
  <div id="product-details-full-form">
    <p>Item # BS-200</p>
    <p>Call for quote</p>
    <p>Current Stock: N/A</p>
  </div>
</body></html>
"""

PRODUCT_C = """
<html><body><h1>Widget C</h1></body></html>
"""


@pytest.fixture
def storefront_pages() -> Dict[str, str]:
    return {
        LOGIN_URL: LOGIN_PAGE,
        SEARCH_BASE: SEARCH_PAGE_1,
        f"{SEARCH_BASE}&page=2": SEARCH_PAGE_2,
        f"{SITE}/product/widget-a": PRODUCT_A,
        f"{SITE}/product/widget-b": PRODUCT_B,
        f"{SITE}/p/widget-c": PRODUCT_C,
    }


@pytest.fixture
def storefront(storefront_pages) -> FakePageDriver:
    return FakePageDriver(storefront_pages)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        email="buyer@example.com",
        password="secret",
        output_dir=str(tmp_path / "data"),
        total_pages=2,
    )
