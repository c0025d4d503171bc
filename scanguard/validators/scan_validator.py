#validators/scan_validator.py
"""
Scan Validation
Boundary validation for scan ingestion payloads
"""

from typing import Dict, Any, Optional

from scanguard.models.enums import ScanResult
from scanguard.models.scan_event import GeoPoint, DeviceInfo
from scanguard.utils.input_validators import validate_product_id, parse_coordinate

MAX_ADDRESS_LENGTH = 500
MAX_SNAPSHOT_FIELD_LENGTH = 256


def _clean_text(value: Any, max_length: int) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()[:max_length]


class ScanValidator:
    """Validator for scan ingestion payloads"""

    @staticmethod
    def validate_scan_payload(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Validate a scan payload

        Accepts productId, scanResult, optional latitude/longitude, address,
        blockchainData {manufacturer, batchNumber, status} and
        deviceInfo {userAgent, platform}.

        Returns:
            {'valid': bool, 'errors': [...], 'cleaned_data': {...}}
        """
        errors = []
        cleaned: Dict[str, Any] = {}

        if not isinstance(data, dict):
            return {'valid': False, 'errors': ["Request body must be a JSON object"], 'cleaned_data': {}}

        try:
            cleaned['product_id'] = validate_product_id(data.get('productId'))
        except ValueError as e:
            errors.append(str(e))

        scan_result = data.get('scanResult')
        if scan_result in ScanResult.values():
            cleaned['scan_result'] = ScanResult(scan_result)
        else:
            errors.append(f"scanResult must be one of: {', '.join(ScanResult.values())}")

        location_error = None
        latitude, longitude = data.get('latitude'), data.get('longitude')
        if latitude is None and longitude is None:
            cleaned['location'] = None
        elif latitude is None or longitude is None:
            location_error = "latitude and longitude must be provided together"
        else:
            try:
                cleaned['location'] = GeoPoint(
                    lat=parse_coordinate(latitude, 'latitude'),
                    lon=parse_coordinate(longitude, 'longitude')
                )
            except ValueError as e:
                location_error = str(e)
        if location_error:
            errors.append(location_error)

        address = data.get('address')
        if address is not None and not isinstance(address, str):
            errors.append("address must be a string")
        else:
            cleaned['human_address'] = _clean_text(address, MAX_ADDRESS_LENGTH) or None

        blockchain_data = data.get('blockchainData') or {}
        if not isinstance(blockchain_data, dict):
            errors.append("blockchainData must be an object")
            blockchain_data = {}
        cleaned['manufacturer_snapshot'] = _clean_text(blockchain_data.get('manufacturer'), MAX_SNAPSHOT_FIELD_LENGTH)
        cleaned['batch_number_snapshot'] = _clean_text(blockchain_data.get('batchNumber'), MAX_SNAPSHOT_FIELD_LENGTH)
        cleaned['status_snapshot'] = _clean_text(blockchain_data.get('status'), MAX_SNAPSHOT_FIELD_LENGTH)

        device_info = data.get('deviceInfo')
        if device_info is not None and not isinstance(device_info, dict):
            errors.append("deviceInfo must be an object")
            device_info = None
        if device_info:
            cleaned['device_snapshot'] = DeviceInfo(
                user_agent=_clean_text(device_info.get('userAgent'), MAX_SNAPSHOT_FIELD_LENGTH),
                platform=_clean_text(device_info.get('platform'), MAX_SNAPSHOT_FIELD_LENGTH),
            )
        else:
            cleaned['device_snapshot'] = None

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'cleaned_data': cleaned
        }
