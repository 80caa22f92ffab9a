"""Tests for search page URLs and product link discovery."""

import pytest

from medstat_scraper.crawler import (
    collect_all_product_urls,
    collect_product_urls,
    is_product_url,
    search_url,
)

from tests.conftest import SEARCH_BASE, SITE, FakePageDriver


class TestSearchUrl:
    def test_first_page_is_bare_search(self):
        assert search_url(SEARCH_BASE, 1) == SEARCH_BASE

    def test_later_pages_add_page_parameter(self):
        assert search_url(SEARCH_BASE, 3) == f"{SEARCH_BASE}&page=3"

    def test_page_zero_is_rejected(self):
        with pytest.raises(ValueError):
            search_url(SEARCH_BASE, 0)


class TestIsProductUrl:
    @pytest.mark.parametrize(
        "url",
        [
            f"{SITE}/product/widget",
            f"{SITE}/p/widget",
            f"{SITE}/SKU/123",
            "http://example.com/prod/9",
        ],
    )
    def test_product_paths(self, url):
        assert is_product_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            f"{SITE}/search/product/x",
            f"{SITE}/checkout/product/x",
            f"{SITE}/product/widget#reviews",
            f"{SITE}/about-us",
            "mailto:sales@medstatsupplies.com",
            "javascript:void(0)",
        ],
    )
    def test_other_links(self, url):
        assert not is_product_url(url)


class TestCollectProductUrls:
    def test_grid_links_then_heuristic_links(self, storefront):
        urls = collect_product_urls(storefront, SEARCH_BASE, 1)
        assert urls == [
            f"{SITE}/product/widget-a",
            f"{SITE}/product/widget-b",
            f"{SITE}/p/widget-c",
        ]
        assert storefront.visited == [SEARCH_BASE]

    def test_navigation_failure_gives_no_urls(self, storefront_pages):
        driver = FakePageDriver(storefront_pages, failing=[SEARCH_BASE])
        assert collect_product_urls(driver, SEARCH_BASE, 1) == []

    def test_page_without_grid_still_uses_heuristics(self):
        page = f'<html><body><a href="{SITE}/product/lone">Lone</a></body></html>'
        driver = FakePageDriver({SEARCH_BASE: page})
        assert collect_product_urls(driver, SEARCH_BASE, 1) == [f"{SITE}/product/lone"]

    def test_all_pages_merged_in_discovery_order(self, storefront):
        urls = collect_all_product_urls(storefront, SEARCH_BASE, 2)
        assert urls == [
            f"{SITE}/product/widget-a",
            f"{SITE}/product/widget-b",
            f"{SITE}/p/widget-c",
            f"{SITE}/product/widget-d",
        ]

    def test_missing_page_does_not_stop_the_walk(self, storefront):
        urls = collect_all_product_urls(storefront, SEARCH_BASE, 3)
        assert len(urls) == 4
        assert storefront.visited[-1] == f"{SEARCH_BASE}&page=3"
