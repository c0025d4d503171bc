from .enums import ScanResult, Classification, ProductStatus
from .ledger import ProductFact, SaleFact
from .verdict import Verdict, SaleAssessment
from .scan_event import ScanEvent, GeoPoint, DeviceInfo
from .reports import SuspiciousLocation, DuplicateProduct, SuspiciousProduct, SightingLocation
from .product import CatalogProduct

__all__ = [
    'ScanResult', 'Classification', 'ProductStatus',
    'ProductFact', 'SaleFact',
    'Verdict', 'SaleAssessment',
    'ScanEvent', 'GeoPoint', 'DeviceInfo',
    'SuspiciousLocation', 'DuplicateProduct', 'SuspiciousProduct', 'SightingLocation',
    'CatalogProduct',
]
