# services/scans/scan_store.py
"""
Scan Store
Append-only log of scan events with result and geospatial lookups
"""
import math
import logging
import threading
from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from scanguard.core.exceptions import ScanStoreError
from scanguard.models.enums import ScanResult, StoreBackend
from scanguard.models.reports import SuspiciousLocation, DuplicateProduct, SuspiciousProduct, SightingLocation
from scanguard.models.scan_event import ScanEvent, GeoPoint
from scanguard.services.scans import fraud_detector
from scanguard.services.scans.fraud_detector import DetectorThresholds
from scanguard.utils.geo import haversine_meters, METERS_PER_DEGREE

logger = logging.getLogger(__name__)

SCAN_COLLECTION = 'scan_logs'

# Grid resolution of the in-memory spatial index, in degrees
GRID_CELL_DEGREES = 0.1


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _cell_expression(coordinate: Any, precision: int) -> Dict[str, Any]:
    """
    Aggregation expression flooring a coordinate to an integer cell index

    Rounding the scaled value to 6 places first absorbs binary error, so
    12.3456 at precision 4 lands in cell 123456 and not 123455.
    """
    return {'$floor': {'$round': [{'$multiply': [coordinate, 10 ** precision]}, 6]}}


def _cell_coordinate(index: Any, precision: int) -> float:
    return float(Decimal(int(index)).scaleb(-precision))


class ScanStore(ABC):
    """Append-only store of ScanEvents. Events are never updated or deleted."""

    @abstractmethod
    def append(self, event: ScanEvent) -> ScanEvent:
        ...

    @abstractmethod
    def find_by_results(self, results: Iterable[ScanResult]) -> Iterator[ScanEvent]:
        """Snapshot of events whose result is in results"""

    @abstractmethod
    def count_by_result(self) -> Dict[str, int]:
        ...

    @abstractmethod
    def find_near(self, center: GeoPoint, radius_meters: float, limit: int) -> List[ScanEvent]:
        """Events within radius_meters of center, nearest first"""

    @abstractmethod
    def list_scans(self, start: Optional[datetime] = None, end: Optional[datetime] = None,
                   scan_result: Optional[ScanResult] = None, product_id: Optional[str] = None,
                   limit: int = 100) -> List[ScanEvent]:
        """Most recent events first"""

    @abstractmethod
    def suspicious_locations(self, thresholds: DetectorThresholds) -> List[SuspiciousLocation]:
        """NOT_FOUND cells with at least location_min_scans scans"""

    @abstractmethod
    def duplicate_sold_products(self, thresholds: DetectorThresholds) -> List[DuplicateProduct]:
        ...

    @abstractmethod
    def suspicious_products(self, thresholds: DetectorThresholds) -> List[SuspiciousProduct]:
        ...

    @abstractmethod
    def is_healthy(self) -> bool:
        ...


class MongoScanStore(ScanStore):
    """Scan store over the scan_logs collection (2dsphere index on location)"""

    def __init__(self, db, collection_name: str = SCAN_COLLECTION):
        self.db = db
        self.collection = db[collection_name]

    def append(self, event: ScanEvent) -> ScanEvent:
        try:
            self.collection.insert_one(event.to_document())
            return event
        except PyMongoError as e:
            logger.error(f"Error appending scan for {event.product_id}: {e}")
            raise ScanStoreError(f"Failed to log scan: {e}") from e

    def find_by_results(self, results: Iterable[ScanResult]) -> Iterator[ScanEvent]:
        query = {'scanResult': {'$in': [result.value for result in results]}}
        try:
            documents = list(self.collection.find(query))
        except PyMongoError as e:
            logger.error(f"Error reading scans: {e}")
            raise ScanStoreError(f"Failed to read scans: {e}") from e
        return (ScanEvent.from_document(document) for document in documents)

    def count_by_result(self) -> Dict[str, int]:
        pipeline = [
            {'$group': {
                '_id': '$scanResult',
                'count': {'$sum': 1}
            }}
        ]
        try:
            return {row['_id']: row['count'] for row in self.collection.aggregate(pipeline)}
        except PyMongoError as e:
            logger.error(f"Error aggregating scan statistics: {e}")
            raise ScanStoreError(f"Failed to fetch statistics: {e}") from e

    def find_near(self, center: GeoPoint, radius_meters: float, limit: int) -> List[ScanEvent]:
        query = {
            'location': {
                '$near': {
                    '$geometry': center.to_geojson(),
                    '$maxDistance': radius_meters
                }
            }
        }
        try:
            return [ScanEvent.from_document(document) for document in self.collection.find(query).limit(limit)]
        except PyMongoError as e:
            logger.error(f"Error fetching nearby scans: {e}")
            raise ScanStoreError(f"Failed to fetch nearby scans: {e}") from e

    def list_scans(self, start: Optional[datetime] = None, end: Optional[datetime] = None,
                   scan_result: Optional[ScanResult] = None, product_id: Optional[str] = None,
                   limit: int = 100) -> List[ScanEvent]:
        query = {}

        if start or end:
            query['timestamp'] = {}
            if start:
                query['timestamp']['$gte'] = start
            if end:
                query['timestamp']['$lte'] = end

        if scan_result:
            query['scanResult'] = scan_result.value
        if product_id:
            query['productId'] = product_id

        try:
            cursor = self.collection.find(query).sort('timestamp', DESCENDING).limit(limit)
            return [ScanEvent.from_document(document) for document in cursor]
        except PyMongoError as e:
            logger.error(f"Error listing scans: {e}")
            raise ScanStoreError(f"Failed to fetch scans: {e}") from e

    def _aggregate(self, pipeline: List[Dict[str, Any]], report: str) -> List[Dict[str, Any]]:
        try:
            return list(self.collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.error(f"Error aggregating {report}: {e}")
            raise ScanStoreError(f"Failed to fetch {report}: {e}") from e

    def suspicious_locations(self, thresholds: DetectorThresholds) -> List[SuspiciousLocation]:
        precision = thresholds.cell_precision
        pipeline = [
            {'$match': {
                'scanResult': ScanResult.NOT_FOUND.value,
                'location.coordinates': {'$exists': True}
            }},
            {'$group': {
                '_id': {
                    'lat': _cell_expression({'$arrayElemAt': ['$location.coordinates', 1]}, precision),
                    'lon': _cell_expression({'$arrayElemAt': ['$location.coordinates', 0]}, precision)
                },
                'count': {'$sum': 1},
                'products': {'$addToSet': '$productId'}
            }},
            {'$match': {'count': {'$gte': thresholds.location_min_scans}}},
            {'$sort': {'count': -1, '_id.lat': 1, '_id.lon': 1}}
        ]

        return [
            SuspiciousLocation(
                cell_lat=_cell_coordinate(row['_id']['lat'], precision),
                cell_lon=_cell_coordinate(row['_id']['lon'], precision),
                count=row['count'],
                distinct_product_ids=sorted(row['products'])
            )
            for row in self._aggregate(pipeline, 'suspicious locations')
        ]

    def duplicate_sold_products(self, thresholds: DetectorThresholds) -> List[DuplicateProduct]:
        pipeline = [
            {'$match': {'scanResult': ScanResult.ALREADY_SOLD.value}},
            {'$sort': {'timestamp': 1}},
            {'$group': {
                '_id': '$productId',
                'count': {'$sum': 1},
                'sightings': {'$push': {
                    'location': '$location',
                    'address': '$address',
                    'timestamp': '$timestamp'
                }}
            }},
            {'$match': {'count': {'$gte': thresholds.duplicate_sold_min_scans}}},
            {'$sort': {'count': -1, '_id': 1}}
        ]

        return [
            DuplicateProduct(
                product_id=row['_id'],
                count=row['count'],
                locations=[
                    SightingLocation(
                        location=GeoPoint.from_geojson(sighting.get('location')),
                        human_address=sighting.get('address'),
                        occurred_at=_as_utc(sighting.get('timestamp'))
                    )
                    for sighting in row['sightings']
                ]
            )
            for row in self._aggregate(pipeline, 'duplicate products')
        ]

    def suspicious_products(self, thresholds: DetectorThresholds) -> List[SuspiciousProduct]:
        pipeline = [
            {'$match': {'scanResult': {'$in': [ScanResult.NOT_FOUND.value, ScanResult.ALREADY_SOLD.value]}}},
            {'$group': {
                '_id': '$productId',
                'totalScans': {'$sum': 1},
                'notFoundCount': {'$sum': {
                    '$cond': [{'$eq': ['$scanResult', ScanResult.NOT_FOUND.value]}, 1, 0]
                }},
                'alreadySoldCount': {'$sum': {
                    '$cond': [{'$eq': ['$scanResult', ScanResult.ALREADY_SOLD.value]}, 1, 0]
                }},
                'locations': {'$addToSet': '$location.coordinates'},
                'firstSeen': {'$min': '$timestamp'},
                'lastSeen': {'$max': '$timestamp'}
            }},
            {'$project': {
                'totalScans': 1,
                'notFoundCount': 1,
                'alreadySoldCount': 1,
                'distinctLocations': {'$size': '$locations'},
                'firstSeen': 1,
                'lastSeen': 1
            }},
            {'$match': {'$or': [
                {'alreadySoldCount': {'$gte': thresholds.product_min_sold}},
                {'notFoundCount': {'$gte': thresholds.product_min_not_found}}
            ]}},
            {'$sort': {'totalScans': -1, '_id': 1}}
        ]

        return [
            SuspiciousProduct(
                product_id=row['_id'],
                total_scans=row['totalScans'],
                not_found_count=row['notFoundCount'],
                already_sold_count=row['alreadySoldCount'],
                distinct_locations=row['distinctLocations'],
                first_seen=_as_utc(row.get('firstSeen')),
                last_seen=_as_utc(row.get('lastSeen'))
            )
            for row in self._aggregate(pipeline, 'suspicious products')
        ]

    def is_healthy(self) -> bool:
        try:
            self.db.command('ping')
            return True
        except PyMongoError as e:
            logger.warning(f"Scan store ping failed: {e}")
            return False


class InMemoryScanStore(ScanStore):
    """
    Scan store held in process memory

    Keeps a lat/lon grid so radius queries only visit nearby cells.
    """

    def __init__(self, cell_degrees: float = GRID_CELL_DEGREES):
        self.cell_degrees = cell_degrees
        self._lon_cells = int(round(360.0 / cell_degrees))
        self._lock = threading.Lock()
        self._events: List[ScanEvent] = []
        self._grid: Dict[Tuple[int, int], List[ScanEvent]] = defaultdict(list)

    def _lat_index(self, lat: float) -> int:
        return int(math.floor((lat + 90.0) / self.cell_degrees))

    def _lon_index(self, lon: float) -> int:
        return int(math.floor((lon + 180.0) / self.cell_degrees)) % self._lon_cells

    def append(self, event: ScanEvent) -> ScanEvent:
        with self._lock:
            self._events.append(event)
            if event.location is not None:
                key = (self._lat_index(event.location.lat), self._lon_index(event.location.lon))
                self._grid[key].append(event)
        return event

    def find_by_results(self, results: Iterable[ScanResult]) -> Iterator[ScanEvent]:
        wanted = set(results)
        with self._lock:
            snapshot = [event for event in self._events if event.scan_result in wanted]
        return iter(snapshot)

    def count_by_result(self) -> Dict[str, int]:
        with self._lock:
            return dict(Counter(event.scan_result.value for event in self._events))

    def _candidate_cells(self, center: GeoPoint, radius_meters: float) -> Iterable[Tuple[int, int]]:
        lat_span = radius_meters / METERS_PER_DEGREE
        lat_rows = range(
            self._lat_index(max(-90.0, center.lat - lat_span)),
            self._lat_index(min(90.0, center.lat + lat_span)) + 1
        )

        cos_lat = math.cos(math.radians(min(89.999999, abs(center.lat) + lat_span)))
        lon_span = lat_span / cos_lat if cos_lat > 0 else 360.0
        if lon_span >= 180.0:
            # Polar cap or huge radius: every longitude column
            lon_columns = range(self._lon_cells)
        else:
            first = int(math.floor((center.lon - lon_span + 180.0) / self.cell_degrees))
            last = int(math.floor((center.lon + lon_span + 180.0) / self.cell_degrees))
            lon_columns = sorted({column % self._lon_cells for column in range(first, last + 1)})

        return [(row, column) for row in lat_rows for column in lon_columns]

    def find_near(self, center: GeoPoint, radius_meters: float, limit: int) -> List[ScanEvent]:
        matches = []
        with self._lock:
            for key in self._candidate_cells(center, radius_meters):
                for event in self._grid.get(key, ()):
                    distance = haversine_meters(center, event.location)
                    if distance <= radius_meters:
                        matches.append((distance, event))

        matches.sort(key=lambda match: match[0])
        return [event for _, event in matches[:limit]]

    def list_scans(self, start: Optional[datetime] = None, end: Optional[datetime] = None,
                   scan_result: Optional[ScanResult] = None, product_id: Optional[str] = None,
                   limit: int = 100) -> List[ScanEvent]:
        with self._lock:
            snapshot = list(self._events)

        selected = [
            event for event in snapshot
            if (start is None or event.occurred_at >= start)
            and (end is None or event.occurred_at <= end)
            and (scan_result is None or event.scan_result is scan_result)
            and (product_id is None or event.product_id == product_id)
        ]
        selected.sort(key=lambda event: event.occurred_at, reverse=True)
        return selected[:limit]

    def suspicious_locations(self, thresholds: DetectorThresholds) -> List[SuspiciousLocation]:
        return fraud_detector.suspicious_locations(self.find_by_results([ScanResult.NOT_FOUND]), thresholds)

    def duplicate_sold_products(self, thresholds: DetectorThresholds) -> List[DuplicateProduct]:
        return fraud_detector.duplicate_sold_products(self.find_by_results([ScanResult.ALREADY_SOLD]), thresholds)

    def suspicious_products(self, thresholds: DetectorThresholds) -> List[SuspiciousProduct]:
        events = self.find_by_results([ScanResult.NOT_FOUND, ScanResult.ALREADY_SOLD])
        return fraud_detector.suspicious_products(events, thresholds)

    def is_healthy(self) -> bool:
        return True


def build_scan_store(app_config, db=None) -> ScanStore:
    """Construct the store selected by SCAN_STORE_BACKEND"""
    backend = StoreBackend(app_config.get('SCAN_STORE_BACKEND', 'mongo'))

    if backend is StoreBackend.MEMORY:
        logger.warning("Using in-memory scan store - scans are not persisted")
        return InMemoryScanStore()

    if db is None:
        from scanguard.config.database import get_db_connection
        db = get_db_connection(app_config.get('MONGODB_URI'), app_config.get('DATABASE_NAME'))
    return MongoScanStore(db)
