# services/scans/fraud_detector.py
"""
Fraud Pattern Detector
Pure aggregations over scan events. Nothing here reads or writes storage.
"""
from dataclasses import dataclass, replace, fields
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from scanguard.models.enums import ScanResult
from scanguard.models.reports import SuspiciousLocation, DuplicateProduct, SuspiciousProduct, SightingLocation
from scanguard.models.scan_event import ScanEvent
from scanguard.utils.geo import coordinate_cell

SUSPICIOUS_LOCATION_MIN_SCANS = 5
DUPLICATE_SOLD_MIN_SCANS = 3
SUSPICIOUS_PRODUCT_MIN_SOLD = 3
SUSPICIOUS_PRODUCT_MIN_NOT_FOUND = 5
LOCATION_CELL_PRECISION = 4

# config key -> DetectorThresholds field
_CONFIG_KEYS = {
    'SUSPICIOUS_LOCATION_MIN_SCANS': 'location_min_scans',
    'DUPLICATE_SOLD_MIN_SCANS': 'duplicate_sold_min_scans',
    'SUSPICIOUS_PRODUCT_MIN_SOLD': 'product_min_sold',
    'SUSPICIOUS_PRODUCT_MIN_NOT_FOUND': 'product_min_not_found',
    'LOCATION_CELL_PRECISION': 'cell_precision',
}


@dataclass(frozen=True)
class DetectorThresholds:
    location_min_scans: int = SUSPICIOUS_LOCATION_MIN_SCANS
    duplicate_sold_min_scans: int = DUPLICATE_SOLD_MIN_SCANS
    product_min_sold: int = SUSPICIOUS_PRODUCT_MIN_SOLD
    product_min_not_found: int = SUSPICIOUS_PRODUCT_MIN_NOT_FOUND
    cell_precision: int = LOCATION_CELL_PRECISION

    def __post_init__(self):
        for threshold in fields(self):
            value = getattr(self, threshold.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{threshold.name} must be an integer")
            if threshold.name == 'cell_precision':
                if not 0 <= value <= 10:
                    raise ValueError("cell_precision must be between 0 and 10")
            elif value < 1:
                raise ValueError(f"{threshold.name} must be at least 1")

    @classmethod
    def from_config(cls, app_config: Mapping[str, Any]) -> 'DetectorThresholds':
        overrides = {
            field_name: int(app_config[key])
            for key, field_name in _CONFIG_KEYS.items()
            if app_config.get(key) is not None
        }
        return cls(**overrides)

    def override(self, **values: Optional[int]) -> 'DetectorThresholds':
        """Copy with the given non-None values replaced"""
        changes = {name: value for name, value in values.items() if value is not None}
        return replace(self, **changes) if changes else self


def suspicious_locations(events: Iterable[ScanEvent],
                         thresholds: DetectorThresholds = DetectorThresholds()) -> List[SuspiciousLocation]:
    """
    NOT_FOUND scans grouped by coordinate cell

    Many failed lookups concentrated in one place point at a seller pushing
    counterfeits. Scans without a location cannot be placed and are skipped.
    """
    groups: Dict[Tuple[float, float], Dict[str, Any]] = {}

    for event in events:
        if event.scan_result is not ScanResult.NOT_FOUND or event.location is None:
            continue
        cell = coordinate_cell(event.location, thresholds.cell_precision)
        group = groups.setdefault(cell, {'count': 0, 'products': {}})
        group['count'] += 1
        # dict keeps first-seen order with O(1) membership
        group['products'][event.product_id] = None

    report = [
        SuspiciousLocation(cell_lat=cell[0], cell_lon=cell[1], count=group['count'],
                           distinct_product_ids=list(group['products']))
        for cell, group in groups.items()
        if group['count'] >= thresholds.location_min_scans
    ]
    report.sort(key=lambda entry: (-entry.count, entry.cell_lat, entry.cell_lon))
    return report


def duplicate_sold_products(events: Iterable[ScanEvent],
                            thresholds: DetectorThresholds = DetectorThresholds()) -> List[DuplicateProduct]:
    """
    ALREADY_SOLD scans grouped by product

    A legitimately sold item is rarely rescanned as sold more than a couple
    of times; repeated hits suggest a cloned code in circulation.
    """
    groups: Dict[str, List[ScanEvent]] = {}
    for event in events:
        if event.scan_result is ScanResult.ALREADY_SOLD:
            groups.setdefault(event.product_id, []).append(event)

    report = [
        DuplicateProduct(
            product_id=product_id,
            count=len(sightings),
            locations=[
                SightingLocation(location=event.location, human_address=event.human_address,
                                 occurred_at=event.occurred_at)
                for event in sightings
            ],
        )
        for product_id, sightings in groups.items()
        if len(sightings) >= thresholds.duplicate_sold_min_scans
    ]
    report.sort(key=lambda entry: (-entry.count, entry.product_id))
    return report


def suspicious_products(events: Iterable[ScanEvent],
                        thresholds: DetectorThresholds = DetectorThresholds()) -> List[SuspiciousProduct]:
    """NOT_FOUND and ALREADY_SOLD scans per product, flagged on either threshold"""
    groups: Dict[str, SuspiciousProduct] = {}
    locations: Dict[str, set] = {}

    for event in events:
        if event.scan_result not in (ScanResult.NOT_FOUND, ScanResult.ALREADY_SOLD):
            continue

        entry = groups.get(event.product_id)
        if entry is None:
            entry = groups[event.product_id] = SuspiciousProduct(product_id=event.product_id)
            locations[event.product_id] = set()

        entry.total_scans += 1
        if event.scan_result is ScanResult.NOT_FOUND:
            entry.not_found_count += 1
        else:
            entry.already_sold_count += 1

        if event.location is not None:
            locations[event.product_id].add((event.location.lat, event.location.lon))

        if event.occurred_at is not None:
            if entry.first_seen is None or event.occurred_at < entry.first_seen:
                entry.first_seen = event.occurred_at
            if entry.last_seen is None or event.occurred_at > entry.last_seen:
                entry.last_seen = event.occurred_at

    report = []
    for product_id, entry in groups.items():
        entry.distinct_locations = len(locations[product_id])
        if (entry.already_sold_count >= thresholds.product_min_sold
                or entry.not_found_count >= thresholds.product_min_not_found):
            report.append(entry)

    report.sort(key=lambda entry: (-entry.total_scans, entry.product_id))
    return report
