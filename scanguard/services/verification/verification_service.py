# services/verification/verification_service.py
import logging
from typing import Any, Dict, Optional

from scanguard.services.scans.ingestion_service import IngestionGate
from scanguard.services.verification.evaluator import VerificationEvaluator

logger = logging.getLogger(__name__)


class VerificationService:
    """Service for handling product verification requests"""

    def __init__(self, evaluator: VerificationEvaluator, ingestion_gate: IngestionGate):
        self.evaluator = evaluator
        self.ingestion_gate = ingestion_gate

    def verify_product(self, product_id: str, details: Optional[str] = None,
                       scan_context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Evaluate a product and log the attempt

        The scan is appended only once a verdict exists, so an evaluation
        that raises leaves no trace in the scan log. A rejected or failed
        scan append does not change the verdict.

        Args:
            product_id: Identifier decoded from the scanned code
            details: Optional canonical details string to fingerprint
            scan_context: Optional latitude, longitude, address and deviceInfo

        Raises:
            LedgerUnavailable: The product record could not be read
        """
        verdict = self.evaluator.evaluate(product_id, details)

        scan = self.ingestion_gate.record_verification(verdict, scan_context)

        result = verdict.to_dict()
        result['scanId'] = scan.id if scan else None
        result['scanLogged'] = scan is not None
        return result
