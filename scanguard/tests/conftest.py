# tests/conftest.py
import os
from datetime import datetime, timezone

import pytest
from bson import ObjectId

from scanguard import create_app
from scanguard.models.enums import ProductStatus, ScanResult
from scanguard.models.ledger import ProductFact, SaleFact
from scanguard.models.scan_event import GeoPoint, ScanEvent
from scanguard.services.ledger.trust_registry import InMemoryTrustRegistry
from scanguard.services.scans.scan_store import InMemoryScanStore
from scanguard.utils.crypto_utils import content_fingerprint

MANUFACTURER = '0x' + 'a1' * 20
RETAILER = '0x' + 'b2' * 20
UNTRUSTED = '0x' + 'c3' * 20
OWNER = '0x' + 'd4' * 20

PRODUCT_DETAILS = '{"name":"Widget","serial":"W-100"}'


def make_product(product_id, manufacturer=MANUFACTURER, status=ProductStatus.AVAILABLE,
                 details=PRODUCT_DETAILS):
    return ProductFact(
        product_id=product_id,
        exists=True,
        manufacturer=manufacturer,
        manufacture_date=1700000000,
        batch_number='BATCH-1',
        category='electronics',
        status=status,
        content_fingerprint=content_fingerprint(details) if details else None,
    )


def make_scan(product_id, scan_result, lat=None, lon=None, occurred_at=None, address=None):
    return ScanEvent(
        id=str(ObjectId()),
        product_id=product_id,
        scan_result=scan_result,
        occurred_at=occurred_at or datetime.now(timezone.utc),
        location=GeoPoint(lat, lon) if lat is not None else None,
        human_address=address,
    )


@pytest.fixture
def registry():
    """Ledger with one available product, one sold product and one untrusted product"""
    registry = InMemoryTrustRegistry(owner=OWNER, manufacturers=[MANUFACTURER], retailers=[RETAILER])
    registry.put_product(make_product('P1'))
    registry.put_product(make_product('P3', status=ProductStatus.SOLD))
    registry.put_sale(SaleFact(product_id='P3', was_sold=True, retailer=RETAILER,
                               sale_date=1700001000, location='Lagos'))
    registry.put_product(make_product('P4', manufacturer=UNTRUSTED))
    return registry


@pytest.fixture
def scan_store():
    return InMemoryScanStore()


@pytest.fixture
def app(registry, scan_store):
    """Create test app"""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app(trust_registry=registry, scan_store=scan_store)
    app.config['TESTING'] = True

    with app.app_context():
        yield app



@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()
