# extensions.py
"""
Service container
Services are built once per application and shared by every request
"""
import logging
from dataclasses import dataclass
from typing import Optional

from flask import Flask, current_app

from scanguard.services.ledger.trust_registry import TrustRegistry, build_trust_registry
from scanguard.services.products.product_service import ProductCatalogService, build_product_catalog
from scanguard.services.scans.analytics_service import FraudAnalyticsService
from scanguard.services.scans.ingestion_service import IngestionGate
from scanguard.services.scans.scan_store import ScanStore, build_scan_store
from scanguard.services.verification.evaluator import VerificationEvaluator
from scanguard.services.verification.verification_service import VerificationService

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'scanguard'


@dataclass
class Services:
    trust_registry: TrustRegistry
    scan_store: ScanStore
    product_catalog: ProductCatalogService
    evaluator: VerificationEvaluator
    ingestion_gate: IngestionGate
    verification_service: VerificationService
    analytics_service: FraudAnalyticsService


def init_services(app: Flask, trust_registry: Optional[TrustRegistry] = None,
                  scan_store: Optional[ScanStore] = None,
                  product_catalog: Optional[ProductCatalogService] = None) -> Services:
    """Build services from app config; explicitly passed collaborators win"""
    trust_registry = trust_registry or build_trust_registry(app.config)
    scan_store = scan_store or build_scan_store(app.config)
    product_catalog = product_catalog or build_product_catalog(app.config)

    evaluator = VerificationEvaluator(
        trust_registry,
        read_timeout=app.config.get('LEDGER_READ_TIMEOUT_SECONDS', 10.0)
    )
    ingestion_gate = IngestionGate(scan_store)

    services = Services(
        trust_registry=trust_registry,
        scan_store=scan_store,
        product_catalog=product_catalog,
        evaluator=evaluator,
        ingestion_gate=ingestion_gate,
        verification_service=VerificationService(evaluator, ingestion_gate),
        analytics_service=FraudAnalyticsService.from_config(scan_store, app.config),
    )
    app.extensions[EXTENSION_KEY] = services
    logger.info(f"Services initialized ({type(trust_registry).__name__}, {type(scan_store).__name__})")
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
