# scanguard/__init__.py
from flask import Flask
from flask_cors import CORS
import logging
import sys

from scanguard.config.environment import Config


def create_app(config=None, trust_registry=None, scan_store=None, product_catalog=None):
    """
    Application factory pattern

    Args:
        config: Optional mapping applied over the environment configuration
        trust_registry: Optional TrustRegistry, overrides LEDGER_BACKEND
        scan_store: Optional ScanStore, overrides SCAN_STORE_BACKEND
        product_catalog: Optional ProductCatalogService
    """
    app = Flask(__name__)

    app_config = Config().get_config()
    app.config.update(app_config)
    if config:
        app.config.update(config)

    setup_logging(app)

    CORS(app,
         origins=app.config['CORS_ORIGINS'],
         allow_headers=['Content-Type', 'Authorization'],
         methods=['GET', 'POST', 'OPTIONS'])

    from scanguard.models.enums import StoreBackend
    if StoreBackend(app.config.get('SCAN_STORE_BACKEND', 'mongo')) is StoreBackend.MONGO:
        from scanguard.config.database import get_db_connection
        from scanguard.utils.database_helpers import init_database_indexes
        db = get_db_connection(app.config.get('MONGODB_URI'), app.config.get('DATABASE_NAME'))
        init_database_indexes(db)
        app.logger.info("Database connection established")

    from scanguard.extensions import init_services
    init_services(app, trust_registry=trust_registry, scan_store=scan_store, product_catalog=product_catalog)

    from scanguard.api.route_registry import register_routes
    register_routes(app)

    from scanguard.api.middleware.error_handler import ErrorHandler
    ErrorHandler.init_app(app)

    app.logger.info(f"Application created ({len(list(app.url_map.iter_rules()))} routes)")
    return app


def setup_logging(app):
    """Setup application logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Quiet down noisy loggers
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('web3').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
