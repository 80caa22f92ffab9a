from __future__ import annotations

import logging
import math
import os
import re
import tempfile
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from .config import TIME_ZONE
from .types import ProductRecord


logger = logging.getLogger(__name__)

SHEET_NAME = "Products"
PRICE_NUMBER_FORMAT = "$#,##0.00"


@dataclass(frozen=True)
class Column:
    header: str
    key: str
    width: int


CANONICAL_COLUMNS = (
    Column("DATE", "runDate", 12),
    Column("TIME", "runTime", 18),
    Column("Item Name", "productName", 50),
    Column("SKU", "sku", 30),
    Column("DESCRIPTION", "description", 80),
    Column("MPN", "mpn", 30),
    Column("MANUFACTURER", "manufacturer", 30),
    Column("PRICE", "price", 15),
    Column("STOCK", "stock", 15),
    Column("PRODUCT URL", "productUrl", 80),
)
CANONICAL_HEADERS = [c.header for c in CANONICAL_COLUMNS]
_WIDTHS = {c.header: c.width for c in CANONICAL_COLUMNS}


def coerce_price(value: Optional[str]) -> Union[float, str, None]:
    """``"$1,234.56"`` -> 1234.56; anything that isn't a finite number stays as given."""
    if value is None:
        return None
    cleaned = re.sub(r"[^0-9.\-]", "", value)
    try:
        number = float(cleaned)
    except ValueError:
        return value
    return number if math.isfinite(number) else value


def coerce_stock(value: Optional[str]) -> Union[int, str, None]:
    """``"12 in stock"`` -> 12; text without a leading integer stays as given."""
    if value is None:
        return None
    cleaned = re.sub(r"[^0-9\-]", "", value)
    m = re.match(r"-?\d+", cleaned)
    return int(m.group(0)) if m else value


def format_run_stamp(run_timestamp: Optional[datetime] = None, tz_name: str = TIME_ZONE) -> Tuple[str, str]:
    """Return the (DATE, TIME) cell values for a run, e.g. ("10/19/2026", "02:05 PM PDT")."""
    moment = run_timestamp or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(ZoneInfo(tz_name))
    return local.strftime("%m/%d/%Y"), local.strftime("%I:%M %p %Z")


def _cell_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def read_header(ws: Worksheet) -> List[str]:
    """Display names from row 1, trailing blanks dropped."""
    rows = ws.iter_rows(min_row=1, max_row=1, values_only=True)
    header = [_cell_text(v).strip() for v in next(rows, ())]
    while header and not header[-1]:
        header.pop()
    return header


def reconcile_header(header: List[str]) -> Tuple[List[str], List[str]]:
    """Append every canonical column missing from ``header``.

    Existing columns keep their positions. Returns (new_header, added).
    """
    present = set(header)
    added = [name for name in CANONICAL_HEADERS if name not in present]
    return header + added, added


def column_index(header: List[str]) -> Dict[str, int]:
    """Display name -> 1-based column number; the first occurrence wins."""
    index: Dict[str, int] = {}
    for position, name in enumerate(header, start=1):
        if name and name not in index:
            index[name] = position
    return index


def _open_sheet(path: str) -> Tuple[Workbook, Worksheet]:
    if os.path.exists(path):
        try:
            wb = load_workbook(path)
            ws = wb[SHEET_NAME] if SHEET_NAME in wb.sheetnames else wb.worksheets[0]
            return wb, ws
        except (InvalidFileException, zipfile.BadZipFile, KeyError, IndexError, ValueError, OSError) as exc:
            logger.warning("Could not read %s (%s); starting a new workbook", path, exc)
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    return wb, ws


def _record_values(record: ProductRecord, run_date: str, run_time: str) -> Dict[str, object]:
    data = record.to_dict()
    data["price"] = coerce_price(record.price)
    data["stock"] = coerce_stock(record.stock)
    data["runDate"] = run_date
    data["runTime"] = run_time
    # control characters from rendered text are rejected by openpyxl
    return {k: ILLEGAL_CHARACTERS_RE.sub("", v) if isinstance(v, str) else v for k, v in data.items()}


def _save_atomically(wb: Workbook, path: str) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".products-", suffix=".xlsx", dir=directory)
    os.close(fd)
    try:
        wb.save(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def append_batch(
    path: Union[str, os.PathLike],
    records: Iterable[ProductRecord],
    run_timestamp: Optional[datetime] = None,
    tz_name: str = TIME_ZONE,
) -> str:
    """Append one row per record to the workbook at ``path``.

    The header in row 1 is the schema. Columns are matched by name, missing
    canonical columns are added on the right, and existing rows are never
    touched. The whole workbook is rewritten in one go.
    """
    path = os.fspath(path)
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    wb, ws = _open_sheet(path)

    old_header = read_header(ws)
    header, added = reconcile_header(old_header)
    start_col = len(old_header) + 1
    for offset, name in enumerate(added):
        col = start_col + offset
        ws.cell(row=1, column=col).value = name
        ws.column_dimensions[get_column_letter(col)].width = _WIDTHS[name]
    if old_header and added:
        logger.info("Added columns to %s: %s", path, ", ".join(added))

    index = column_index(header)
    price_col = index["PRICE"]
    run_date, run_time = format_run_stamp(run_timestamp, tz_name)

    written = 0
    for record in records:
        values = _record_values(record, run_date, run_time)
        row: List[object] = [None] * len(header)
        for column in CANONICAL_COLUMNS:
            row[index[column.header] - 1] = values[column.key]
        ws.append(row)
        price_cell = ws.cell(row=ws.max_row, column=price_col)
        if isinstance(price_cell.value, float):
            price_cell.number_format = PRICE_NUMBER_FORMAT
        written += 1

    if ws.max_row >= 2:
        ws.freeze_panes = "A2"

    _save_atomically(wb, path)
    logger.info("Excel written: %s (%d new rows)", path, written)
    return path
