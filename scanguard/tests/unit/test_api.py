# tests/unit/test_api.py
import os
from unittest.mock import MagicMock, patch

from conftest import MANUFACTURER, OWNER, PRODUCT_DETAILS, make_scan
from scanguard import create_app
from scanguard.models.enums import ScanResult
from scanguard.services.ledger.trust_registry import TrustRegistry
from scanguard.services.scans.scan_store import InMemoryScanStore


def test_verify_available_product(client, scan_store):
    response = client.get('/v1/verification/P1')

    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['data']['classification'] == 'AUTHENTIC'
    assert body['data']['verdict'] is True
    assert body['data']['reasons'] == ['No details provided to verify fingerprint']
    assert body['data']['scanLogged'] is True

    scans = scan_store.list_scans()
    assert len(scans) == 1
    assert scans[0].scan_result == ScanResult.AUTHENTIC
    assert scans[0].status_snapshot == 'Available'


def test_verify_with_details_and_location(client, scan_store):
    response = client.post('/v1/verification/P1', json={
        'details': PRODUCT_DETAILS,
        'latitude': 6.5244,
        'longitude': 3.3792,
        'address': 'Lagos',
        'deviceInfo': {'userAgent': 'test-agent', 'platform': 'iOS'}
    })

    data = response.get_json()['data']
    assert data['detailsMatch'] is True
    assert data['verdict'] is True

    scan = scan_store.list_scans()[0]
    assert scan.id == data['scanId']
    assert scan.location.lat == 6.5244
    assert scan.device_snapshot.platform == 'iOS'


def test_verify_missing_product(client, scan_store):
    data = client.get('/v1/verification/P2').get_json()['data']

    assert data['classification'] == 'NOT_FOUND'
    assert data['verdict'] is False
    assert data['reasons'] == ['Product not found on-chain']
    assert scan_store.list_scans()[0].scan_result == ScanResult.NOT_FOUND


def test_invalid_location_does_not_change_verdict(client, scan_store):
    response = client.get('/v1/verification/P1?latitude=abc&longitude=3')

    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['verdict'] is True
    assert data['scanLogged'] is False
    assert scan_store.list_scans() == []


def test_ledger_outage_returns_503_without_scan():
    os.environ['FLASK_ENV'] = 'testing'
    registry = MagicMock(spec=TrustRegistry)
    registry.get_product_details.side_effect = ConnectionError('node down')
    store = InMemoryScanStore()
    app = create_app(trust_registry=registry, scan_store=store)

    response = app.test_client().get('/v1/verification/P1')

    assert response.status_code == 503
    assert response.get_json()['success'] is False
    assert store.list_scans() == []


def test_log_scan(client):
    response = client.post('/api/scans', json={'productId': 'P9', 'scanResult': 'NOT_FOUND',
                                               'latitude': 1.0, 'longitude': 2.0})

    assert response.status_code == 201
    assert response.get_json()['data']['location'] == {'latitude': 1.0, 'longitude': 2.0}


def test_log_scan_validation_error(client):
    response = client.post('/api/scans', json={'scanResult': 'MAYBE'})

    assert response.status_code == 400
    assert len(response.get_json()['details']) == 2


def test_list_scans_filters(client, scan_store):
    scan_store.append(make_scan('P1', ScanResult.NOT_FOUND))
    scan_store.append(make_scan('P2', ScanResult.AUTHENTIC))

    body = client.get('/api/scans?scanResult=NOT_FOUND').get_json()

    assert body['count'] == 1
    assert body['data'][0]['productId'] == 'P1'
    assert client.get('/api/scans?scanResult=BOGUS').status_code == 400
    assert client.get('/api/scans?startDate=yesterday').status_code == 400


def test_fraud_analytics(client, scan_store):
    for i in range(6):
        scan_store.append(make_scan(f'FAKE-{i % 5}', ScanResult.NOT_FOUND, 6.52441, 3.37921))

    data = client.get('/api/scans/analytics').get_json()['data']

    assert len(data['suspiciousLocations']) == 1
    assert data['suspiciousLocations'][0]['count'] == 6
    assert len(data['suspiciousLocations'][0]['distinctProductIds']) == 5
    assert data['duplicateProducts'] == []
    assert data['statistics'] == {'NOT_FOUND': 6, 'AUTHENTIC': 0, 'ALREADY_SOLD': 0}


def test_fraud_analytics_threshold_override(client, scan_store):
    scan_store.append(make_scan('FAKE', ScanResult.NOT_FOUND, 1.0, 1.0))

    data = client.get('/api/scans/analytics?locationMinScans=1').get_json()['data']

    assert len(data['suspiciousLocations']) == 1
    assert client.get('/api/scans/analytics?locationMinScans=abc').status_code == 400
    assert client.get('/api/scans/analytics?locationMinScans=0').status_code == 400


def test_suspicious_products(client, scan_store):
    for _ in range(3):
        scan_store.append(make_scan('CLONE', ScanResult.ALREADY_SOLD))

    body = client.get('/api/scans/suspicious').get_json()

    assert body['count'] == 1
    assert body['data'][0]['alreadySoldCount'] == 3


def test_nearby_scans(client, scan_store):
    scan_store.append(make_scan('NEAR', ScanResult.NOT_FOUND, 6.5244, 3.3792))
    scan_store.append(make_scan('FAR', ScanResult.NOT_FOUND, 9.0765, 7.3986))

    body = client.get('/api/scans/nearby?latitude=6.5244&longitude=3.3792&radius=1000').get_json()

    assert [scan['productId'] for scan in body['data']] == ['NEAR']
    assert client.get('/api/scans/nearby?latitude=6.5').status_code == 400
    assert client.get('/api/scans/nearby?latitude=100&longitude=3').status_code == 400
    assert client.get('/api/scans/nearby?latitude=6&longitude=3&radius=-5').status_code == 400


def test_product_catalog_routes(client):
    payload = {'uid': 'P1', 'manufacturer': MANUFACTURER, 'details': PRODUCT_DETAILS}

    assert client.post('/api/products', json=payload).status_code == 201
    assert client.post('/api/products', json=payload).status_code == 409
    assert client.post('/api/products', json={'uid': 'P2'}).status_code == 400

    body = client.get(f'/api/products/manufacturer/{MANUFACTURER}').get_json()
    assert body['count'] == 1
    assert client.get('/api/products/manufacturer/acme').status_code == 400


def test_ledger_product_lookup(client):
    data = client.get('/v1/ledger/products/P3').get_json()['data']

    assert data['product']['status'] == 'Sold'
    assert data['sale']['wasSold'] is True
    assert data['catalog'] is None
    assert client.get('/v1/ledger/products/P2').status_code == 404


def test_health(client):
    with patch('scanguard.monitoring.health.psutil.virtual_memory', return_value=MagicMock(percent=40.0)):
        response = client.get('/health')

    body = response.get_json()
    assert response.status_code == 200
    assert body['checks']['ledger'] == {'status': 'healthy', 'owner': OWNER}


def test_unknown_route_uses_error_envelope(client):
    response = client.get('/v1/unknown')

    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_cors_echoes_allowed_origin(client):
    response = client.get('/api/scans', headers={'Origin': 'http://localhost:5173'})

    assert response.status_code == 200
    assert response.headers['Access-Control-Allow-Origin'] == 'http://localhost:5173'


def test_cors_ignores_foreign_origin(client):
    response = client.get('/api/scans', headers={'Origin': 'http://evil.example'})

    assert response.status_code == 200
    assert 'Access-Control-Allow-Origin' not in response.headers


def test_cors_headers_on_error_responses(client):
    response = client.get('/v1/unknown', headers={'Origin': 'http://localhost:3000'})

    assert response.status_code == 404
    assert response.headers['Access-Control-Allow-Origin'] == 'http://localhost:3000'
