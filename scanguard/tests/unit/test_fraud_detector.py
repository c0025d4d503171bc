# tests/unit/test_fraud_detector.py
from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_scan
from scanguard.models.enums import ScanResult
from scanguard.services.scans.fraud_detector import (
    DetectorThresholds, suspicious_locations, duplicate_sold_products, suspicious_products
)


def test_six_not_found_scans_in_one_cell():
    events = [
        make_scan(f'FAKE-{i % 5}', ScanResult.NOT_FOUND, 6.52441 + i * 0.000001, 3.37921)
        for i in range(6)
    ]

    report = suspicious_locations(events)

    assert len(report) == 1
    assert report[0].count == 6
    assert len(report[0].distinct_product_ids) == 5
    assert report[0].to_dict()['cell'] == {'latitude': 6.5244, 'longitude': 3.3792}


def test_distinct_products_keep_first_seen_order():
    ids = ['C', 'A', 'C', 'B', 'A', 'C']
    events = [make_scan(product_id, ScanResult.NOT_FOUND, 6.5, 3.4) for product_id in ids]

    report = suspicious_locations(events)

    assert report[0].count == 6
    assert report[0].distinct_product_ids == ['C', 'A', 'B']


def test_fifth_decimal_shares_cell():
    thresholds = DetectorThresholds(location_min_scans=2)
    events = [
        make_scan('A', ScanResult.NOT_FOUND, 12.34561, 45.67891),
        make_scan('B', ScanResult.NOT_FOUND, 12.34569, 45.67899),
    ]

    report = suspicious_locations(events, thresholds)

    assert len(report) == 1
    assert report[0].count == 2


def test_one_degree_apart_splits_cells():
    thresholds = DetectorThresholds(location_min_scans=1)
    events = [
        make_scan('A', ScanResult.NOT_FOUND, 12.3456, 45.6789),
        make_scan('B', ScanResult.NOT_FOUND, 13.3456, 45.6789),
    ]

    report = suspicious_locations(events, thresholds)

    assert len(report) == 2
    assert all(entry.count == 1 for entry in report)


def test_negative_coordinates_floor_towards_south_west():
    thresholds = DetectorThresholds(location_min_scans=1)
    report = suspicious_locations([make_scan('A', ScanResult.NOT_FOUND, -33.86881, -151.20931)], thresholds)

    assert (report[0].cell_lat, report[0].cell_lon) == (-33.8689, -151.2094)


def test_locations_below_threshold_and_other_results_ignored():
    events = [make_scan('A', ScanResult.NOT_FOUND, 1.0, 1.0) for _ in range(4)]
    events += [make_scan('B', ScanResult.ALREADY_SOLD, 1.0, 1.0) for _ in range(5)]
    events.append(make_scan('C', ScanResult.NOT_FOUND))

    assert suspicious_locations(events) == []


def test_locations_sorted_by_count():
    thresholds = DetectorThresholds(location_min_scans=1)
    events = [make_scan('A', ScanResult.NOT_FOUND, 1.0, 1.0)]
    events += [make_scan('B', ScanResult.NOT_FOUND, 2.0, 2.0) for _ in range(3)]

    report = suspicious_locations(events, thresholds)

    assert [entry.count for entry in report] == [3, 1]


def test_coarser_cell_precision_merges_groups():
    events = [
        make_scan('A', ScanResult.NOT_FOUND, 12.31, 45.61),
        make_scan('B', ScanResult.NOT_FOUND, 12.39, 45.69),
    ]

    assert len(suspicious_locations(events, DetectorThresholds(location_min_scans=1))) == 2
    assert len(suspicious_locations(events, DetectorThresholds(location_min_scans=1, cell_precision=1))) == 1


def test_duplicate_sold_threshold():
    events = [make_scan('SOLD-3', ScanResult.ALREADY_SOLD, 1.0, 1.0, address='Market St') for _ in range(3)]
    events += [make_scan('SOLD-2', ScanResult.ALREADY_SOLD) for _ in range(2)]

    report = duplicate_sold_products(events)

    assert [entry.product_id for entry in report] == ['SOLD-3']
    assert report[0].count == 3
    assert len(report[0].locations) == 3
    assert report[0].locations[0].human_address == 'Market St'


def test_suspicious_products():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    events = [
        make_scan('CLONE', ScanResult.ALREADY_SOLD, 1.0 + i, 1.0, occurred_at=start + timedelta(hours=i))
        for i in range(3)
    ]
    events += [make_scan('GHOST', ScanResult.NOT_FOUND, 1.0, 1.0) for _ in range(4)]
    events.append(make_scan('OK', ScanResult.AUTHENTIC))

    report = suspicious_products(events)

    assert [entry.product_id for entry in report] == ['CLONE']
    assert report[0].already_sold_count == 3
    assert report[0].distinct_locations == 3
    assert report[0].first_seen == start
    assert report[0].last_seen == start + timedelta(hours=2)


def test_threshold_override():
    thresholds = DetectorThresholds().override(product_min_not_found=4, product_min_sold=None)

    assert thresholds.product_min_not_found == 4
    assert thresholds.product_min_sold == 3


@pytest.mark.parametrize('values', [
    {'location_min_scans': 0},
    {'duplicate_sold_min_scans': True},
    {'cell_precision': 11},
])
def test_invalid_thresholds_rejected(values):
    with pytest.raises(ValueError):
        DetectorThresholds(**values)


def test_thresholds_from_config():
    thresholds = DetectorThresholds.from_config({'SUSPICIOUS_LOCATION_MIN_SCANS': 7, 'LOCATION_CELL_PRECISION': 2})

    assert thresholds.location_min_scans == 7
    assert thresholds.cell_precision == 2
    assert thresholds.duplicate_sold_min_scans == 3
