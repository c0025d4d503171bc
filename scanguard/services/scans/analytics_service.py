# services/scans/analytics_service.py
import logging
from typing import Any, Dict, List, Optional

from scanguard.models.enums import ScanResult
from scanguard.models.scan_event import GeoPoint, ScanEvent
from scanguard.services.scans.fraud_detector import DetectorThresholds
from scanguard.services.scans.scan_store import ScanStore

logger = logging.getLogger(__name__)

NEARBY_DEFAULT_RADIUS_METERS = 5000
NEARBY_MAX_RADIUS_METERS = 50000
NEARBY_PAGE_SIZE = 100


class FraudAnalyticsService:
    """Fraud reports and statistics over the scan store"""

    def __init__(self, store: ScanStore, thresholds: DetectorThresholds = None,
                 default_radius: int = NEARBY_DEFAULT_RADIUS_METERS,
                 max_radius: int = NEARBY_MAX_RADIUS_METERS,
                 page_size: int = NEARBY_PAGE_SIZE):
        self.store = store
        self.thresholds = thresholds or DetectorThresholds()
        self.default_radius = default_radius
        self.max_radius = max_radius
        self.page_size = page_size

    @classmethod
    def from_config(cls, store: ScanStore, app_config) -> 'FraudAnalyticsService':
        return cls(
            store,
            thresholds=DetectorThresholds.from_config(app_config),
            default_radius=app_config.get('NEARBY_DEFAULT_RADIUS_METERS', NEARBY_DEFAULT_RADIUS_METERS),
            max_radius=app_config.get('NEARBY_MAX_RADIUS_METERS', NEARBY_MAX_RADIUS_METERS),
            page_size=app_config.get('NEARBY_PAGE_SIZE', NEARBY_PAGE_SIZE),
        )

    def get_fraud_analytics(self, thresholds: Optional[DetectorThresholds] = None) -> Dict[str, Any]:
        """Suspicious locations, duplicate-sold products and per-result counts"""
        thresholds = thresholds or self.thresholds

        locations = self.store.suspicious_locations(thresholds)
        duplicates = self.store.duplicate_sold_products(thresholds)
        statistics = self.get_statistics()

        logger.info(
            f"Fraud analytics: {len(locations)} suspicious locations, "
            f"{len(duplicates)} duplicate products"
        )
        return {
            'suspiciousLocations': [entry.to_dict() for entry in locations],
            'duplicateProducts': [entry.to_dict() for entry in duplicates],
            'statistics': statistics,
        }

    def get_suspicious_products(self, thresholds: Optional[DetectorThresholds] = None) -> List[Dict[str, Any]]:
        thresholds = thresholds or self.thresholds
        return [entry.to_dict() for entry in self.store.suspicious_products(thresholds)]

    def get_statistics(self) -> Dict[str, int]:
        """Scan counts per result, zero-filled for results never seen"""
        counts = {result: 0 for result in ScanResult.values()}
        counts.update(self.store.count_by_result())
        return counts

    def get_scans_near(self, center: GeoPoint, radius: Optional[float] = None) -> List[ScanEvent]:
        """
        Scans within radius meters of center, nearest first

        Radius defaults to NEARBY_DEFAULT_RADIUS_METERS and is capped at
        NEARBY_MAX_RADIUS_METERS; at most one page is returned.
        """
        if radius is None:
            radius = self.default_radius
        if radius < 0:
            raise ValueError("radius must not be negative")

        radius = min(float(radius), float(self.max_radius))
        return self.store.find_near(center, radius, self.page_size)
