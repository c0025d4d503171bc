# models/scan_event.py
from dataclasses import dataclass
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from bson import ObjectId

from .enums import ScanResult


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lon}")

    def to_geojson(self) -> Dict[str, Any]:
        # GeoJSON order is [longitude, latitude]
        return {"type": "Point", "coordinates": [self.lon, self.lat]}

    @classmethod
    def from_geojson(cls, doc: Optional[Dict[str, Any]]) -> Optional['GeoPoint']:
        coordinates = (doc or {}).get("coordinates")
        if not coordinates or len(coordinates) != 2:
            return None
        return cls(lat=float(coordinates[1]), lon=float(coordinates[0]))

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.lat, "longitude": self.lon}


@dataclass(frozen=True)
class DeviceInfo:
    user_agent: str = ""
    platform: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"userAgent": self.user_agent, "platform": self.platform}


@dataclass(frozen=True)
class ScanEvent:
    """One verification attempt. Append-only: never updated or deleted."""
    id: str
    product_id: str
    scan_result: ScanResult
    occurred_at: datetime
    location: Optional[GeoPoint] = None
    human_address: Optional[str] = None
    manufacturer_snapshot: str = ""
    batch_number_snapshot: str = ""
    status_snapshot: str = ""
    device_snapshot: Optional[DeviceInfo] = None

    def to_document(self) -> Dict[str, Any]:
        """Convert to a scan_logs document"""
        document = {
            "_id": ObjectId(self.id),
            "productId": self.product_id,
            "scanResult": self.scan_result.value,
            "timestamp": self.occurred_at,
            "blockchainData": {
                "manufacturer": self.manufacturer_snapshot,
                "batchNumber": self.batch_number_snapshot,
                "status": self.status_snapshot,
            },
        }
        # 2dsphere indexes reject partial points, so the field is omitted entirely
        if self.location is not None:
            document["location"] = self.location.to_geojson()
        if self.human_address:
            document["address"] = self.human_address
        if self.device_snapshot is not None:
            document["deviceInfo"] = self.device_snapshot.to_dict()
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'ScanEvent':
        blockchain_data = document.get("blockchainData") or {}
        device = document.get("deviceInfo")
        occurred_at = document.get("timestamp")
        if occurred_at is not None and occurred_at.tzinfo is None:
            # pymongo hands back naive UTC datetimes by default
            occurred_at = occurred_at.replace(tzinfo=timezone.utc)

        return cls(
            id=str(document["_id"]),
            product_id=document["productId"],
            scan_result=ScanResult(document["scanResult"]),
            occurred_at=occurred_at,
            location=GeoPoint.from_geojson(document.get("location")),
            human_address=document.get("address"),
            manufacturer_snapshot=blockchain_data.get("manufacturer", ""),
            batch_number_snapshot=blockchain_data.get("batchNumber", ""),
            status_snapshot=blockchain_data.get("status", ""),
            device_snapshot=DeviceInfo(
                user_agent=device.get("userAgent", ""),
                platform=device.get("platform", ""),
            ) if device else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Format for API responses"""
        return {
            "id": self.id,
            "productId": self.product_id,
            "scanResult": self.scan_result.value,
            "timestamp": self.occurred_at.isoformat() if self.occurred_at else None,
            "location": self.location.to_dict() if self.location else None,
            "address": self.human_address,
            "blockchainData": {
                "manufacturer": self.manufacturer_snapshot,
                "batchNumber": self.batch_number_snapshot,
                "status": self.status_snapshot,
            },
            "deviceInfo": self.device_snapshot.to_dict() if self.device_snapshot else None,
        }
