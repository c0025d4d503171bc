# models/ledger.py
from dataclasses import dataclass
from typing import Optional, Dict, Any, Sequence

from .enums import ProductStatus


@dataclass(frozen=True)
class ProductFact:
    """Product record as held by the ledger. Read-only."""
    product_id: str
    exists: bool
    manufacturer: str = ""
    manufacture_date: int = 0
    batch_number: str = ""
    category: str = ""
    status: ProductStatus = ProductStatus.AVAILABLE
    content_fingerprint: Optional[str] = None

    @classmethod
    def from_contract(cls, product_id: str, result: Sequence[Any]) -> 'ProductFact':
        """Build from the getProductDetails tuple:
        (exists, manufacturer, manufactureDate, batchNumber, category, status)
        """
        exists, manufacturer, manufacture_date, batch_number, category, status = result[:6]
        return cls(
            product_id=product_id,
            exists=bool(exists),
            manufacturer=manufacturer or "",
            manufacture_date=int(manufacture_date or 0),
            batch_number=batch_number or "",
            category=category or "",
            status=ProductStatus(int(status or 0)),
        )

    @classmethod
    def missing(cls, product_id: str) -> 'ProductFact':
        return cls(product_id=product_id, exists=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "exists": self.exists,
            "manufacturer": self.manufacturer,
            "manufactureDate": self.manufacture_date,
            "batchNumber": self.batch_number,
            "category": self.category,
            "status": self.status.label,
            "contentFingerprint": self.content_fingerprint,
        }


@dataclass(frozen=True)
class SaleFact:
    """Sale record as held by the ledger. Only meaningful for sold products."""
    product_id: str
    was_sold: bool
    retailer: str = ""
    sale_date: int = 0
    location: str = ""

    @classmethod
    def from_contract(cls, product_id: str, result: Sequence[Any]) -> 'SaleFact':
        """Build from the getSaleInfo tuple: (wasSold, retailer, saleDate, location)"""
        was_sold, retailer, sale_date, location = result[:4]
        return cls(
            product_id=product_id,
            was_sold=bool(was_sold),
            retailer=retailer or "",
            sale_date=int(sale_date or 0),
            location=location or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "wasSold": self.was_sold,
            "retailer": self.retailer,
            "saleDate": self.sale_date,
            "location": self.location,
        }
