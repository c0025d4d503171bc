"""
API Route Registry
Central registration of all API routes
"""
import logging
from flask import Flask

logger = logging.getLogger(__name__)


def register_routes(app: Flask):
    """Register all API routes with the Flask app"""

    try:
        # ===============================
        # VERIFICATION ROUTES
        # ===============================
        from scanguard.api.v1.verification.public_routes import public_verification_bp

        app.register_blueprint(public_verification_bp, url_prefix='/v1/verification')
        logger.info("Registered: /v1/verification/*")

        # ===============================
        # LEDGER ROUTES
        # ===============================
        from scanguard.api.v1.ledger.ledger_routes import ledger_bp

        app.register_blueprint(ledger_bp, url_prefix='/v1/ledger')
        logger.info("Registered: /v1/ledger/*")

        # ===============================
        # SCAN LOG & ANALYTICS ROUTES
        # ===============================
        from scanguard.api.v1.scans.scan_routes import scan_bp

        app.register_blueprint(scan_bp, url_prefix='/api/scans')
        logger.info("Registered: /api/scans/*")

        # ===============================
        # PRODUCT CATALOG ROUTES
        # ===============================
        from scanguard.api.v1.products.product_routes import product_bp

        app.register_blueprint(product_bp, url_prefix='/api/products')
        logger.info("Registered: /api/products/*")

        # ===============================
        # HEALTH & STATUS ROUTES
        # ===============================
        from scanguard.monitoring.health import health_bp

        app.register_blueprint(health_bp)
        logger.info("Registered: /health")

        logger.info(f"Total Blueprints Registered: {len(app.blueprints)}")
        return True

    except ImportError as e:
        logger.error(f"Failed to import route module: {e}")
        raise

    except Exception as e:
        logger.error(f"Route registration failed: {e}")
        raise


def list_routes(app: Flask):
    """List all registered routes (for debugging)"""
    routes = []
    for rule in app.url_map.iter_rules():
        routes.append({
            'endpoint': rule.endpoint,
            'methods': sorted(rule.methods - {'HEAD', 'OPTIONS'}),
            'path': str(rule)
        })
    return sorted(routes, key=lambda x: x['path'])
