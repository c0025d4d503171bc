# models/verdict.py
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from .enums import ProductStatus, ScanResult


@dataclass
class SaleAssessment:
    was_sold: bool = False
    retailer: str = ""
    retailer_trusted: bool = False
    sale_date: int = 0
    location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wasSold": self.was_sold,
            "retailer": self.retailer,
            "retailerTrusted": self.retailer_trusted,
            "saleDate": self.sale_date,
            "location": self.location,
        }


@dataclass
class Verdict:
    """Outcome of one verification. Computed per call and never persisted."""
    product_id: str
    exists: bool = False
    status: Optional[ProductStatus] = None
    manufacturer: str = ""
    batch_number: str = ""

    is_trusted_manufacturer: bool = False
    details_provided: bool = False
    # None means no details were supplied, which is not the same as a failed check
    details_match: Optional[bool] = None
    onchain_fingerprint: Optional[str] = None
    local_fingerprint: Optional[str] = None

    sale: Optional[SaleAssessment] = None
    classification: ScanResult = ScanResult.NOT_FOUND
    verdict_ok: bool = False
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "exists": self.exists,
            "status": self.status.label if self.status is not None else None,
            "manufacturer": self.manufacturer,
            "batchNumber": self.batch_number,
            "isTrustedManufacturer": self.is_trusted_manufacturer,
            "detailsProvided": self.details_provided,
            "detailsMatch": self.details_match,
            "onchainHash": self.onchain_fingerprint,
            "localHash": self.local_fingerprint,
            "sale": self.sale.to_dict() if self.sale else None,
            "classification": self.classification.value,
            "verdict": self.verdict_ok,
            "reasons": list(self.reasons),
        }
