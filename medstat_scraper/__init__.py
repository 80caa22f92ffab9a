"""
Medstat Supplies product scraper package.

Exports:
- ProductRecord: dataclass representing one scraped product page
- append_batch: append records to the reconciled Excel workbook
- run_scrape: high-level function to log in, scrape and save JSON/Excel
"""

from .types import ProductRecord
from .excel_writer import append_batch
from .cli import run_scrape

__all__ = ["ProductRecord", "append_batch", "run_scrape"]
