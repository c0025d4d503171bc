# monitoring/health.py
from flask import Blueprint, jsonify
from datetime import datetime, timezone
import psutil

from scanguard.core.exceptions import LedgerUnavailable
from scanguard.extensions import get_services

health_bp = Blueprint('health', __name__)

MEMORY_LIMIT_PERCENT = 90


@health_bp.route('/health')
def health_check():
    checks = {
        'database': check_scan_store(),
        'ledger': check_ledger(),
        'memory': check_memory(),
        'timestamp': datetime.now(timezone.utc).isoformat()
    }

    overall_status = 'healthy' if all(
        check['status'] == 'healthy' for check in checks.values()
        if isinstance(check, dict) and 'status' in check
    ) else 'unhealthy'

    status_code = 200 if overall_status == 'healthy' else 503

    return jsonify({
        'status': overall_status,
        'service': 'scanguard',
        'checks': checks
    }), status_code


def check_scan_store():
    store = get_services().scan_store
    if store.is_healthy():
        return {'status': 'healthy', 'backend': type(store).__name__}
    return {'status': 'unhealthy', 'backend': type(store).__name__, 'error': 'Scan store unreachable'}


def check_ledger():
    registry = get_services().trust_registry
    if not registry.is_connected():
        return {'status': 'unhealthy', 'error': 'Ledger node unreachable'}
    try:
        return {'status': 'healthy', 'owner': registry.owner()}
    except LedgerUnavailable as e:
        return {'status': 'unhealthy', 'error': str(e)}


def check_memory():
    memory = psutil.virtual_memory()
    if memory.percent > MEMORY_LIMIT_PERCENT:
        return {'status': 'unhealthy', 'usage_percent': memory.percent}
    return {'status': 'healthy', 'usage_percent': memory.percent}
