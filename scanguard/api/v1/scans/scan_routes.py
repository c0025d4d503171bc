"""
Scan Routes
Scan ingestion, listing and fraud analytics
"""
from flask import Blueprint, request, current_app
import logging

from scanguard.extensions import get_services
from scanguard.core.exceptions import ValidationError
from scanguard.models.enums import ScanResult
from scanguard.models.scan_event import GeoPoint
from scanguard.utils.input_validators import parse_coordinate, parse_limit, parse_iso_datetime
from scanguard.api.middleware.response_middleware import response_middleware

scan_bp = Blueprint('scans', __name__)
logger = logging.getLogger(__name__)

# query parameter -> DetectorThresholds field
THRESHOLD_PARAMS = {
    'locationMinScans': 'location_min_scans',
    'duplicateMinScans': 'duplicate_sold_min_scans',
    'productMinSold': 'product_min_sold',
    'productMinNotFound': 'product_min_not_found',
    'cellPrecision': 'cell_precision',
}


def _threshold_overrides():
    """
    Detector thresholds with any query parameter overrides applied

    Raises:
        ValidationError: An override is not a valid integer threshold
    """
    values = {}
    errors = []
    for param, field_name in THRESHOLD_PARAMS.items():
        raw = request.args.get(param)
        if raw is None or raw == '':
            continue
        try:
            values[field_name] = int(raw)
        except ValueError:
            errors.append(f"{param} must be an integer")

    if errors:
        raise ValidationError(errors)

    try:
        return get_services().analytics_service.thresholds.override(**values)
    except ValueError as e:
        raise ValidationError([str(e)])


@scan_bp.route('', methods=['POST'])
def log_scan():
    """Append one scan event"""
    event = get_services().ingestion_gate.record(request.get_json(silent=True))
    return response_middleware.create_success_response(event.to_dict(), "Scan logged successfully", 201)


@scan_bp.route('', methods=['GET'])
def get_scans():
    """List scans newest first with optional filters"""
    errors = []
    start = end = None
    try:
        start = parse_iso_datetime(request.args.get('startDate'), 'startDate')
    except ValueError as e:
        errors.append(str(e))
    try:
        end = parse_iso_datetime(request.args.get('endDate'), 'endDate')
    except ValueError as e:
        errors.append(str(e))

    scan_result = request.args.get('scanResult')
    if scan_result and scan_result not in ScanResult.values():
        errors.append(f"scanResult must be one of: {', '.join(ScanResult.values())}")

    if errors:
        raise ValidationError(errors)

    limit = parse_limit(
        request.args.get('limit'),
        current_app.config.get('SCAN_LIST_DEFAULT_LIMIT', 100),
        current_app.config.get('SCAN_LIST_MAX_LIMIT', 1000)
    )

    scans = get_services().scan_store.list_scans(
        start=start,
        end=end,
        scan_result=ScanResult(scan_result) if scan_result else None,
        product_id=request.args.get('productId') or None,
        limit=limit
    )
    return response_middleware.create_success_response(
        [scan.to_dict() for scan in scans], count=len(scans)
    )


@scan_bp.route('/analytics', methods=['GET'])
def get_fraud_analytics():
    """Suspicious locations, duplicate-sold products and statistics"""
    thresholds = _threshold_overrides()
    analytics = get_services().analytics_service.get_fraud_analytics(thresholds)
    return response_middleware.create_success_response(analytics)


@scan_bp.route('/suspicious', methods=['GET'])
def get_suspicious_products():
    thresholds = _threshold_overrides()
    products = get_services().analytics_service.get_suspicious_products(thresholds)
    return response_middleware.create_success_response(products, count=len(products))


@scan_bp.route('/nearby', methods=['GET'])
def get_nearby_scans():
    """Scans within a radius of a point, nearest first"""
    latitude = request.args.get('latitude')
    longitude = request.args.get('longitude')
    if latitude is None or longitude is None:
        return response_middleware.create_error_response('latitude and longitude are required', 400)

    try:
        center = GeoPoint(
            lat=parse_coordinate(latitude, 'latitude'),
            lon=parse_coordinate(longitude, 'longitude')
        )
        radius = request.args.get('radius')
        radius = parse_coordinate(radius, 'radius') if radius else None
        scans = get_services().analytics_service.get_scans_near(center, radius)
    except ValueError as e:
        return response_middleware.create_error_response(str(e), 400)

    return response_middleware.create_success_response(
        [scan.to_dict() for scan in scans], count=len(scans)
    )
