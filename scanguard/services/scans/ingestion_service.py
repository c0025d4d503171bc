# services/scans/ingestion_service.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId

from scanguard.core.exceptions import ValidationError, ScanStoreError
from scanguard.models.scan_event import ScanEvent
from scanguard.models.verdict import Verdict
from scanguard.services.scans.scan_store import ScanStore
from scanguard.validators.scan_validator import ScanValidator

logger = logging.getLogger(__name__)


class IngestionGate:
    """Validates scan payloads and appends one immutable ScanEvent per attempt"""

    def __init__(self, store: ScanStore):
        self.store = store

    def record(self, payload: Dict[str, Any]) -> ScanEvent:
        """
        Validate and append a scan

        Raises:
            ValidationError: Payload is malformed
            ScanStoreError: Store rejected the append
        """
        validation = ScanValidator.validate_scan_payload(payload)
        if not validation['valid']:
            logger.warning(f"Rejected scan payload: {validation['errors']}")
            raise ValidationError(validation['errors'])

        cleaned = validation['cleaned_data']
        event = ScanEvent(
            id=str(ObjectId()),
            occurred_at=datetime.now(timezone.utc),
            **cleaned
        )
        self.store.append(event)

        logger.info(f"Scan logged: {event.product_id} {event.scan_result.value}")
        return event

    def record_verification(self, verdict: Verdict, context: Optional[Dict[str, Any]] = None) -> Optional[ScanEvent]:
        """
        Best-effort scan logging for a completed verification

        Args:
            verdict: Completed verdict; supplies product, result and snapshots
            context: Caller-supplied latitude, longitude, address and deviceInfo,
                validated here like any other scan payload

        Never raises: the verdict stands whether or not the scan is stored.
        """
        context = context or {}
        payload = {
            'productId': verdict.product_id,
            'scanResult': verdict.classification.value,
            'latitude': context.get('latitude'),
            'longitude': context.get('longitude'),
            'address': context.get('address'),
            'deviceInfo': context.get('deviceInfo'),
            'blockchainData': {
                'manufacturer': verdict.manufacturer,
                'batchNumber': verdict.batch_number,
                'status': verdict.status.label if verdict.status is not None else '',
            },
        }

        try:
            return self.record(payload)
        except ValidationError as e:
            logger.warning(f"Scan for {verdict.product_id} not logged: {e}")
        except ScanStoreError as e:
            logger.error(f"Scan for {verdict.product_id} not logged: {e}")
        return None
