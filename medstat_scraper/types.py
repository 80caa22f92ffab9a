from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class ProductRecord:
    product_url: str
    product_name: Optional[str] = None
    sku: Optional[str] = None
    mpn: Optional[str] = None
    manufacturer: Optional[str] = None
    price: Optional[str] = None
    stock: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> dict:
        """JSON form, keyed the way the exported files have always been."""
        data = asdict(self)
        return {
            "productUrl": data["product_url"],
            "productName": data["product_name"],
            "sku": data["sku"],
            "mpn": data["mpn"],
            "manufacturer": data["manufacturer"],
            "price": data["price"],
            "stock": data["stock"],
            "description": data["description"],
        }
