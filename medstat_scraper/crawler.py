from __future__ import annotations

import logging
import re
from typing import Iterable, List
from urllib.parse import urlparse

from .config import GRID_TIMEOUT_MS
from .driver import NavigationError, PageDriver


logger = logging.getLogger(__name__)

TITLE_LINK_SELECTOR = "a.facets-item-cell-grid-link-title[href]"
IMAGE_LINK_SELECTOR = "a.facets-item-cell-grid-link-image[href]"
GRID_SELECTOR = f"{TITLE_LINK_SELECTOR}, {IMAGE_LINK_SELECTOR}, .facets-item-cell"

PRODUCT_PATH_RE = re.compile(r"/(product|p|sku|prod)/", re.IGNORECASE)
EXCLUDED_PATH_PARTS = ("/search", "/checkout")


def search_url(base_url: str, page_index: int) -> str:
    """URL of a result page; page 1 is the bare search URL."""
    if page_index < 1:
        raise ValueError(f"page_index must be >= 1, got {page_index}")
    if page_index == 1:
        return base_url
    return f"{base_url}&page={page_index}"


def is_product_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme.lower() not in ("http", "https"):
        return False
    if any(part in parsed.path for part in EXCLUDED_PATH_PARTS):
        return False
    if parsed.fragment:
        return False
    return bool(PRODUCT_PATH_RE.search(parsed.path))


def _dedupe_keep_order(urls: Iterable[str]) -> List[str]:
    seen = set()
    result: List[str] = []
    for u in urls:
        if u in seen:
            continue
        seen.add(u)
        result.append(u)
    return result


def collect_product_urls(driver: PageDriver, base_url: str, page_index: int) -> List[str]:
    """Collect product links from one search result page.

    Grid tile anchors (title, then image) come first, then any other anchor
    whose path looks like a product page. Returns [] if the page can't be loaded.
    """
    url = search_url(base_url, page_index)
    try:
        driver.goto(url)
    except NavigationError as exc:
        logger.warning("Page %d: navigation failed: %s", page_index, exc)
        return []

    # the grid keeps requests open, so wait for a tile rather than network idle
    if not driver.wait_for_condition(selector=GRID_SELECTOR, timeout_ms=GRID_TIMEOUT_MS):
        logger.info("Page %d: product grid did not appear", page_index)

    by_title = driver.extract_attributes(TITLE_LINK_SELECTOR, "href")
    by_image = driver.extract_attributes(IMAGE_LINK_SELECTOR, "href")
    by_heuristic = [u for u in driver.extract_attributes("a[href]", "href") if is_product_url(u)]

    unique = _dedupe_keep_order([*by_title, *by_image, *by_heuristic])
    logger.info("Page %d: found %d product URLs", page_index, len(unique))
    return unique


def collect_all_product_urls(driver: PageDriver, base_url: str, total_pages: int) -> List[str]:
    """Walk result pages 1..total_pages; URLs keep first-discovery order."""
    collected: List[str] = []
    for page_index in range(1, total_pages + 1):
        collected.extend(collect_product_urls(driver, base_url, page_index))
    return _dedupe_keep_order(collected)
