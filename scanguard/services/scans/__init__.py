from .scan_store import ScanStore, MongoScanStore, InMemoryScanStore, build_scan_store
from .ingestion_service import IngestionGate
from .analytics_service import FraudAnalyticsService

__all__ = [
    'ScanStore', 'MongoScanStore', 'InMemoryScanStore', 'build_scan_store',
    'IngestionGate', 'FraudAnalyticsService',
]
