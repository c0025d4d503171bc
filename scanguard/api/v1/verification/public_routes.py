"""
Public Verification Routes
Product verification endpoints - anyone holding a product can verify it
"""
from flask import Blueprint, request
import logging

from scanguard.extensions import get_services
from scanguard.utils.input_validators import validate_product_id
from scanguard.api.middleware.response_middleware import response_middleware

public_verification_bp = Blueprint('public_verification', __name__)
logger = logging.getLogger(__name__)


def _request_data():
    """JSON body for POST, query string for GET"""
    if request.method == 'POST':
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            return data
    return request.args.to_dict()


def _scan_context(data):
    device_info = data.get('deviceInfo')
    if device_info is None:
        device_info = {
            'userAgent': request.headers.get('User-Agent', ''),
            'platform': data.get('platform', '')
        }

    return {
        'latitude': data.get('latitude'),
        'longitude': data.get('longitude'),
        'address': data.get('address'),
        'deviceInfo': device_info
    }


@public_verification_bp.route('/<path:product_id>', methods=['GET', 'POST'])
def verify_product(product_id):
    """
    Verify a scanned product against the ledger
    The verdict is returned even if the scan could not be logged
    """
    try:
        clean_id = validate_product_id(product_id)
    except ValueError as e:
        return response_middleware.create_error_response(str(e), 400)

    data = _request_data()
    details = data.get('details')
    if details is not None and not isinstance(details, str):
        return response_middleware.create_error_response('details must be a string', 400)

    result = get_services().verification_service.verify_product(
        clean_id,
        details=details,
        scan_context=_scan_context(data)
    )

    logger.info(f"Verified {clean_id}: {result['classification']} ok={result['verdict']}")
    return response_middleware.create_success_response(result, "Verification complete")
