# services/verification/evaluator.py
"""
Verification Evaluator
Turns ledger facts into a Verdict with an ordered list of reasons
"""
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional, Callable, Any

from scanguard.core.exceptions import LedgerUnavailable
from scanguard.models.enums import ProductStatus, ScanResult
from scanguard.models.verdict import Verdict, SaleAssessment
from scanguard.services.ledger.trust_registry import TrustRegistry
from scanguard.utils.crypto_utils import content_fingerprint, fingerprints_match

logger = logging.getLogger(__name__)

REASON_NOT_FOUND = "Product not found on-chain"
REASON_UNTRUSTED_MANUFACTURER = "Manufacturer not in trusted list"
REASON_DETAILS_MISMATCH = "Details do not match on-chain fingerprint"
REASON_NO_DETAILS = "No details provided to verify fingerprint"
REASON_NO_FINGERPRINT = "No on-chain fingerprint recorded for product"
REASON_SOLD_WITHOUT_RECORD = "Marked sold but no sale record found"
REASON_UNTRUSTED_RETAILER = "Sale retailer not authorized"

DEFAULT_READ_TIMEOUT_SECONDS = 10.0

# Product, manufacturer, fingerprint, sale and retailer
MAX_READS_PER_EVALUATION = 5


class VerificationEvaluator:
    """
    Compose trust registry reads into a Verdict

    Only a product that does not exist short-circuits. Every other failed
    check, including a failed or timed-out read, is recorded as a reason and
    counts against the verdict. A failed read never counts as a pass.
    """

    def __init__(self, registry: TrustRegistry, read_timeout: float = DEFAULT_READ_TIMEOUT_SECONDS):
        self.registry = registry
        self.read_timeout = read_timeout

    def _read(self, executor: ThreadPoolExecutor, operation: str, fn: Callable[..., Any], *args) -> Any:
        """
        Run one ledger read under its own timeout

        The executor belongs to a single evaluation and has a worker for every
        read it can make, so a read starts as soon as it is submitted even if
        an earlier read of the same evaluation is still hanging.
        """
        future = executor.submit(fn, *args)
        try:
            return future.result(timeout=self.read_timeout)
        except FutureTimeout as e:
            logger.warning(f"{operation} timed out after {self.read_timeout}s")
            raise LedgerUnavailable(operation, TimeoutError(f"timed out after {self.read_timeout}s")) from e
        except LedgerUnavailable:
            raise
        except Exception as e:
            raise LedgerUnavailable(operation, e) from e

    def evaluate(self, product_id: str, details: Optional[str] = None) -> Verdict:
        """
        Evaluate one product

        Args:
            product_id: Identifier decoded from the scanned code
            details: Canonical details string the consumer wants checked

        Returns:
            Verdict for the product

        Raises:
            LedgerUnavailable: The product record itself could not be read
        """
        executor = ThreadPoolExecutor(max_workers=MAX_READS_PER_EVALUATION, thread_name_prefix='ledger-read')
        try:
            return self._evaluate(executor, product_id, details)
        finally:
            # A hung read keeps its thread until the node's HTTP timeout fires
            executor.shutdown(wait=False)

    def _evaluate(self, executor: ThreadPoolExecutor, product_id: str, details: Optional[str]) -> Verdict:
        details = details or ""
        verdict = Verdict(product_id=product_id, details_provided=bool(details.strip()))

        # 1) existence; the only fast-fail path
        product = self._read(executor, 'Product lookup', self.registry.get_product_details, product_id)
        verdict.exists = product.exists
        if not product.exists:
            verdict.classification = ScanResult.NOT_FOUND
            verdict.reasons.append(REASON_NOT_FOUND)
            logger.info(f"Verification {product_id}: not found")
            return verdict

        verdict.status = product.status
        verdict.manufacturer = product.manufacturer
        verdict.batch_number = product.batch_number

        # 2) manufacturer authorization
        self._check_manufacturer(executor, verdict)

        # 3) integrity via fingerprint
        self._check_integrity(executor, verdict, details)

        # 4) sale checks if sold
        if product.status is ProductStatus.SOLD:
            self._check_sale(executor, verdict)

        # 5) classification follows raw ledger state, independent of trust
        verdict.classification = (
            ScanResult.ALREADY_SOLD if product.status is ProductStatus.SOLD else ScanResult.AUTHENTIC
        )

        # 6) verdict is the conjunction of every independent check
        details_ok = verdict.details_match is True if verdict.details_provided else True
        sale_ok = product.status is ProductStatus.AVAILABLE or bool(
            verdict.sale and verdict.sale.was_sold and verdict.sale.retailer_trusted
        )
        verdict.verdict_ok = verdict.is_trusted_manufacturer and details_ok and sale_ok

        logger.info(
            f"Verification {product_id}: classification={verdict.classification.value} "
            f"verdict={verdict.verdict_ok} reasons={len(verdict.reasons)}"
        )
        return verdict

    def _check_manufacturer(self, executor: ThreadPoolExecutor, verdict: Verdict):
        trusted = False
        try:
            trusted = bool(self._read(
                executor, 'Manufacturer authorization lookup',
                self.registry.is_authorized_manufacturer,
                verdict.manufacturer
            ))
        except LedgerUnavailable as e:
            verdict.reasons.append(f"Failed to check manufacturer authorization: {e.detail}")

        verdict.is_trusted_manufacturer = trusted
        if not trusted:
            verdict.reasons.append(REASON_UNTRUSTED_MANUFACTURER)

    def _check_integrity(self, executor: ThreadPoolExecutor, verdict: Verdict, details: str):
        if not verdict.details_provided:
            verdict.reasons.append(REASON_NO_DETAILS)
            return

        verdict.details_match = False
        verdict.local_fingerprint = content_fingerprint(details)
        try:
            verdict.onchain_fingerprint = self._read(
                executor, 'Fingerprint lookup', self.registry.get_content_fingerprint, verdict.product_id
            )
        except LedgerUnavailable as e:
            verdict.reasons.append(f"Failed to fetch product fingerprint: {e.detail}")
            return

        if not verdict.onchain_fingerprint:
            verdict.reasons.append(REASON_NO_FINGERPRINT)
            return

        verdict.details_match = fingerprints_match(verdict.local_fingerprint, verdict.onchain_fingerprint)
        if not verdict.details_match:
            verdict.reasons.append(REASON_DETAILS_MISMATCH)

    def _check_sale(self, executor: ThreadPoolExecutor, verdict: Verdict):
        try:
            sale = self._read(executor, 'Sale lookup', self.registry.get_sale_info, verdict.product_id)
        except LedgerUnavailable as e:
            verdict.reasons.append(f"Failed to fetch sale info: {e.detail}")
            return

        assessment = SaleAssessment(
            was_sold=sale.was_sold,
            retailer=sale.retailer,
            sale_date=sale.sale_date,
            location=sale.location,
        )
        verdict.sale = assessment

        if not sale.was_sold:
            # Inconsistent ledger state; retailer trust stays false
            verdict.reasons.append(REASON_SOLD_WITHOUT_RECORD)
            return

        try:
            assessment.retailer_trusted = bool(self._read(
                executor, 'Retailer authorization lookup', self.registry.is_authorized_retailer, sale.retailer
            ))
        except LedgerUnavailable as e:
            verdict.reasons.append(f"Failed to check retailer authorization: {e.detail}")
            return

        if not assessment.retailer_trusted:
            verdict.reasons.append(REASON_UNTRUSTED_RETAILER)
