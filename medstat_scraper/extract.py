from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Sequence

from .driver import PageDriver
from .types import ProductRecord


logger = logging.getLogger(__name__)

NAME_SELECTOR = "h1"
DETAILS_SELECTOR = "#product-details-full-form"
FALLBACK_SELECTOR = "body"

PRICE_RE = re.compile(r"\$[\d,.]+")


def _label(label: str, to_end: bool = False) -> re.Pattern:
    # label, optional separator, then the rest of the line (or of the text)
    tail = r"([^\n][\s\S]*)" if to_end else r"([^\n]+)"
    return re.compile(rf"\b{label}\s*[:#-]?\s*{tail}", re.IGNORECASE)


# Label synonyms per field, tried in order; the first match wins.
FIELD_RULES: Dict[str, Sequence[re.Pattern]] = {
    "sku": (_label("SKU"), _label("Item")),
    "mpn": (_label("MPN"),),
    "manufacturer": (_label("MANUFACTURER"),),
    "stock": (_label("Current Stock"),),
    "description": (_label("Description", to_end=True),),
}


def match_after(text: str, patterns: Sequence[re.Pattern]) -> Optional[str]:
    for pattern in patterns:
        m = pattern.search(text)
        if not m:
            continue
        value = m.group(1).strip()
        if value:
            return value
    return None


def extract_price(text: str) -> Optional[str]:
    m = PRICE_RE.search(text)
    return m.group(0) if m else None


def extract_fields(text: Optional[str]) -> Dict[str, Optional[str]]:
    """Pull the labeled fields out of a product details text block.

    Missing labels give None; this never raises.
    """
    text = text or ""
    fields = {name: match_after(text, patterns) for name, patterns in FIELD_RULES.items()}
    fields["price"] = extract_price(text)
    return fields


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def extract_product(driver: PageDriver) -> ProductRecord:
    product_url = driver.url
    name = _clean(driver.extract_text(NAME_SELECTOR))
    details = _clean(driver.extract_text(DETAILS_SELECTOR)) or _clean(driver.extract_text(FALLBACK_SELECTOR))
    if not details:
        logger.debug("No details text on %s", product_url)
    fields = extract_fields(details)
    return ProductRecord(
        product_url=product_url,
        product_name=name,
        sku=fields["sku"],
        mpn=fields["mpn"],
        manufacturer=fields["manufacturer"],
        price=fields["price"],
        stock=fields["stock"],
        description=fields["description"],
    )
