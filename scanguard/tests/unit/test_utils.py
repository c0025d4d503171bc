# tests/unit/test_utils.py
from datetime import datetime, timezone

import pytest
from web3 import Web3

from scanguard.models.scan_event import GeoPoint
from scanguard.utils.crypto_utils import content_fingerprint, fingerprints_match
from scanguard.utils.geo import haversine_meters, floor_to_precision, coordinate_cell
from scanguard.utils.input_validators import (
    is_valid_ethereum_address, validate_product_id, parse_coordinate, parse_limit, parse_iso_datetime
)


def test_content_fingerprint_is_keccak_of_text():
    details = '{"name":"Widget"}'

    assert content_fingerprint('') == '0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    assert content_fingerprint(details) == Web3.to_hex(Web3.keccak(text=details))
    assert content_fingerprint(details) == content_fingerprint(details)


def test_fingerprints_match_ignores_case():
    fingerprint = content_fingerprint('abc')

    assert fingerprints_match(fingerprint, fingerprint.upper().replace('0X', '0x'))
    assert not fingerprints_match(fingerprint, content_fingerprint('abd'))
    assert not fingerprints_match(fingerprint, None)


def test_haversine_one_degree_of_latitude():
    distance = haversine_meters(GeoPoint(0.0, 0.0), GeoPoint(1.0, 0.0))

    assert distance == pytest.approx(111319.49, rel=1e-4)


def test_floor_to_precision():
    assert floor_to_precision(12.34569, 4) == 12.3456
    assert floor_to_precision(-12.34561, 4) == -12.3457
    assert floor_to_precision(12.3456, 4) == 12.3456


def test_coordinate_cell():
    assert coordinate_cell(GeoPoint(51.50072, -0.12462), 3) == (51.5, -0.125)


def test_ethereum_address_validation():
    assert is_valid_ethereum_address('0x' + 'aB' * 20)
    assert not is_valid_ethereum_address('0x' + 'g1' * 20)
    assert not is_valid_ethereum_address(None)


def test_validate_product_id():
    assert validate_product_id('  P-1 ') == 'P-1'
    with pytest.raises(ValueError):
        validate_product_id('   ')
    with pytest.raises(ValueError):
        validate_product_id('x' * 257)


@pytest.mark.parametrize('value', ['nan', 'inf', None, 'abc', False])
def test_parse_coordinate_rejects(value):
    with pytest.raises(ValueError):
        parse_coordinate(value, 'latitude')


def test_parse_coordinate_accepts_strings_and_zero():
    assert parse_coordinate('12.5', 'latitude') == 12.5
    assert parse_coordinate(0, 'longitude') == 0.0


def test_parse_limit():
    assert parse_limit(None, 100, 1000) == 100
    assert parse_limit('50', 100, 1000) == 50
    assert parse_limit('5000', 100, 1000) == 1000
    assert parse_limit('-1', 100, 1000) == 100


def test_parse_iso_datetime():
    assert parse_iso_datetime('2024-05-01T10:00:00Z', 'startDate') == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert parse_iso_datetime('2024-05-01', 'startDate') == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert parse_iso_datetime('', 'startDate') is None
    with pytest.raises(ValueError):
        parse_iso_datetime('yesterday', 'startDate')
