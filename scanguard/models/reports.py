# models/reports.py
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime

from .scan_event import GeoPoint


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class SuspiciousLocation:
    cell_lat: float
    cell_lon: float
    count: int
    distinct_product_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cell": {"latitude": self.cell_lat, "longitude": self.cell_lon},
            "count": self.count,
            "distinctProductIds": list(self.distinct_product_ids),
        }


@dataclass
class SightingLocation:
    location: Optional[GeoPoint]
    human_address: Optional[str]
    occurred_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict() if self.location else None,
            "humanAddress": self.human_address,
            "occurredAt": _iso(self.occurred_at),
        }


@dataclass
class DuplicateProduct:
    product_id: str
    count: int
    locations: List[SightingLocation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "count": self.count,
            "locations": [location.to_dict() for location in self.locations],
        }


@dataclass
class SuspiciousProduct:
    product_id: str
    total_scans: int = 0
    not_found_count: int = 0
    already_sold_count: int = 0
    distinct_locations: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "totalScans": self.total_scans,
            "notFoundCount": self.not_found_count,
            "alreadySoldCount": self.already_sold_count,
            "distinctLocations": self.distinct_locations,
            "firstSeen": _iso(self.first_seen),
            "lastSeen": _iso(self.last_seen),
        }
