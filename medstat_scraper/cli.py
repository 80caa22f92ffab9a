from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from typing import List, Optional

from .auth import login
from .config import (
    DEFAULT_KEYWORD,
    DEFAULT_TOTAL_PAGES,
    PRODUCT_TIMEOUT_MS,
    ConfigurationError,
    Settings,
)
from .crawler import collect_all_product_urls
from .driver import NavigationError, PageDriver, PlaywrightPageDriver
from .excel_writer import append_batch
from .extract import extract_product
from .json_writer import ensure_output_dir, save_json
from .types import ProductRecord


logger = logging.getLogger(__name__)

WORKBOOK_FILENAME = "products_all.xlsx"
PRODUCT_READY_SELECTOR = "h1, h2.product-title, .product-details-info"


MESSAGES = {
    "en": {
        "stage_login": "[1/4] Logging in…",
        "stage_links": "[2/4] Collecting product links from {pages} result page(s)…",
        "found_links": "Found product links: {found}",
        "progress": "[{current}/{total}] ({percent}%) Processing: {url} (remaining: {remaining})",
        "progress_fail": "[{current}/{total}] Page did not load, keeping URL only",
        "stage_save": "[3/4] Saving JSON and Excel…",
        "stage_done": "[4/4] Finalizing",
        "success": "Scraping completed. Saved products: {count}",
        "file": "File: {path}",
        "no_products": "No products were scraped",
        "config_error": "Configuration error: {error}",
        "error": "Scraping error: {error}",
        "interrupted": "Interrupted by user",
        "help_desc": (
            "Log into medstatsupplies.com, scrape search results for a keyword\n"
            "and append them to a JSON snapshot and an Excel workbook."
        ),
        "help_pages": "Number of search result pages to walk (default 7)",
        "help_keyword": "Search keyword (default BLUESTAR)",
        "help_out": "Output directory (default data)",
        "help_headless": "Run the browser without a window (default)",
        "help_headed": "Show the browser window",
        "help_lang": "Messages language: en or ru (default en)",
        "help_verbose": "Verbose logging",
    },
    "ru": {
        "stage_login": "[1/4] Вход в аккаунт…",
        "stage_links": "[2/4] Сбор ссылок на товары со страниц выдачи: {pages}…",
        "found_links": "Найдено ссылок на товары: {found}",
        "progress": "[{current}/{total}] ({percent}%) Обработка: {url} (осталось: {remaining})",
        "progress_fail": "[{current}/{total}] Страница не загрузилась, сохраняется только ссылка",
        "stage_save": "[3/4] Сохранение в JSON и Excel…",
        "stage_done": "[4/4] Готово к завершению",
        "success": "Парсинг успешно завершён. Сохранено товаров: {count}",
        "file": "Файл: {path}",
        "no_products": "Не удалось собрать ни одного товара",
        "config_error": "Ошибка конфигурации: {error}",
        "error": "Ошибка парсинга: {error}",
        "interrupted": "Прервано пользователем",
        "help_desc": (
            "Вход на medstatsupplies.com, сбор товаров по ключевому слову\n"
            "и дозапись в JSON и Excel."
        ),
        "help_pages": "Количество страниц выдачи (по умолчанию 7)",
        "help_keyword": "Ключевое слово поиска (по умолчанию BLUESTAR)",
        "help_out": "Каталог для результатов (по умолчанию data)",
        "help_headless": "Запуск браузера без окна (по умолчанию)",
        "help_headed": "Показать окно браузера",
        "help_lang": "Язык сообщений: en или ru (по умолчанию en)",
        "help_verbose": "Подробный лог",
    },
}


def _msg(lang: str, key: str, **kwargs) -> str:
    lang_key = lang if lang in MESSAGES else "en"
    template = MESSAGES[lang_key].get(key, "")
    return template.format(**kwargs)


def output_suffix(total_pages: int) -> str:
    return "page1" if total_pages == 1 else "all"


def scrape_product(driver: PageDriver, url: str) -> Optional[ProductRecord]:
    """Visit one product page and extract it; None if the page never loaded."""
    try:
        driver.goto(url)
    except NavigationError as exc:
        logger.warning("Failed to open %s: %s", url, exc)
        return None
    driver.wait_for_condition(state="networkidle")
    driver.wait_for_condition(selector=PRODUCT_READY_SELECTOR, timeout_ms=PRODUCT_TIMEOUT_MS)
    return extract_product(driver)


def scrape_products(driver: PageDriver, urls: List[str], lang: str = "en") -> List[ProductRecord]:
    results: List[ProductRecord] = []
    total = len(urls)
    for current, url in enumerate(urls, start=1):
        print(
            _msg(lang, "progress", current=current, total=total,
                 percent=int(round(current * 100 / total)), url=url, remaining=total - current),
            flush=True,
        )
        record = scrape_product(driver, url)
        if record is None:
            print(_msg(lang, "progress_fail", current=current, total=total), flush=True)
            record = ProductRecord(product_url=url)
        results.append(record)
    return results


def run_scrape(
    settings: Settings,
    lang: str = "en",
    driver: Optional[PageDriver] = None,
    run_timestamp: Optional[datetime] = None,
) -> List[ProductRecord]:
    """Log in, walk the search pages, scrape every product and write the outputs.

    Credentials are checked before any browser is started. When ``driver`` is
    given it is used as is and left open; otherwise a Playwright browser is
    launched for the run and closed afterwards.
    """
    credentials = settings.require_credentials()
    run_timestamp = run_timestamp or datetime.now(timezone.utc)
    ensure_output_dir(settings.output_dir)

    if driver is None:
        with PlaywrightPageDriver(headless=settings.headless) as browser:
            return run_scrape(settings, lang=lang, driver=browser, run_timestamp=run_timestamp)

    print(_msg(lang, "stage_login"), flush=True)
    login(driver, credentials, settings.login_url)

    print(_msg(lang, "stage_links", pages=settings.total_pages), flush=True)
    urls = collect_all_product_urls(driver, settings.search_url_base, settings.total_pages)
    print(_msg(lang, "found_links", found=len(urls)), flush=True)
    suffix = output_suffix(settings.total_pages)
    save_json(settings.output_dir, f"product_urls_{suffix}.json", urls)

    products = scrape_products(driver, urls, lang=lang)

    print(_msg(lang, "stage_save"), flush=True)
    save_json(settings.output_dir, f"products_{suffix}.json", [p.to_dict() for p in products])
    append_batch(os.path.join(settings.output_dir, WORKBOOK_FILENAME), products, run_timestamp, settings.time_zone)
    print(_msg(lang, "stage_done"), flush=True)
    return products


def _build_arg_parser(lang: str = "en") -> argparse.ArgumentParser:
    loc = MESSAGES.get(lang, MESSAGES["en"])
    p = argparse.ArgumentParser(
        prog="medstat-scraper",
        description=loc["help_desc"],
    )
    p.add_argument(
        "-p",
        "--pages",
        dest="pages",
        type=int,
        default=DEFAULT_TOTAL_PAGES,
        help=loc["help_pages"],
    )
    p.add_argument(
        "-k",
        "--keyword",
        dest="keyword",
        default=DEFAULT_KEYWORD,
        help=loc["help_keyword"],
    )
    p.add_argument(
        "-o",
        "--out-dir",
        dest="output_dir",
        default=None,
        help=loc["help_out"],
    )
    headless = p.add_mutually_exclusive_group()
    headless.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=None,
        help=loc["help_headless"],
    )
    headless.add_argument(
        "--headed",
        dest="headless",
        action="store_false",
        help=loc["help_headed"],
    )
    p.add_argument(
        "--lang",
        dest="lang",
        choices=["en", "ru"],
        default=lang,
        help=loc["help_lang"],
    )
    p.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help=loc["help_verbose"],
    )
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser("en")
    args = parser.parse_args(argv)
    lang = args.lang
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.pages < 1:
        parser.error("--pages must be at least 1")
    try:
        settings = Settings.from_env(
            keyword=args.keyword,
            output_dir=args.output_dir,
            total_pages=args.pages,
            headless=args.headless,
        )
        products = run_scrape(settings, lang=lang)
    except ConfigurationError as exc:
        print(_msg(lang, "config_error", error=exc), file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print(_msg(lang, "interrupted"), file=sys.stderr)
        return 130
    except Exception as exc:
        logger.debug("Run failed", exc_info=True)
        print(_msg(lang, "error", error=exc), file=sys.stderr)
        return 1

    if not products:
        print(_msg(lang, "no_products"), file=sys.stderr)
        return 1
    print(_msg(lang, "success", count=len(products)))
    print(_msg(lang, "file", path=os.path.join(settings.output_dir, WORKBOOK_FILENAME)))
    return 0
