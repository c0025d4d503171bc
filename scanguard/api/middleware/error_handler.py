"""
Error Handler Middleware
Centralized error handling for the application
"""

import logging
from flask import request
from werkzeug.exceptions import HTTPException

from scanguard.api.middleware.response_middleware import response_middleware
from scanguard.core.exceptions import (
    ValidationError, LedgerUnavailable, ScanStoreError, ProductCatalogError, DuplicateProductError
)

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error handling"""

    @staticmethod
    def init_app(app):
        """Initialize error handlers for Flask app"""

        # Validation errors
        @app.errorhandler(ValidationError)
        def handle_validation_error(error):
            return response_middleware.create_error_response(
                'Validation failed', 400, details=error.errors
            )

        # Duplicate catalog entries
        @app.errorhandler(DuplicateProductError)
        def handle_duplicate_product(error):
            return response_middleware.create_error_response(str(error), 409)

        # Ledger reads that could not complete
        @app.errorhandler(LedgerUnavailable)
        def handle_ledger_unavailable(error):
            logger.error(f"Ledger unavailable: {error} - {request.path}")
            return response_middleware.create_error_response(
                'Ledger unavailable', 503, details=str(error)
            )

        # Storage failures
        @app.errorhandler(ScanStoreError)
        @app.errorhandler(ProductCatalogError)
        def handle_storage_error(error):
            logger.error(f"Storage error: {error} - {request.path}")
            return response_middleware.create_error_response('Storage unavailable', 503)

        # HTTP exceptions
        @app.errorhandler(HTTPException)
        def handle_http_exception(error):
            logger.info(f"HTTP {error.code}: {request.path}")
            return response_middleware.create_error_response(error.description or error.name, error.code)

        # 500 Internal Server Error
        @app.errorhandler(Exception)
        def handle_unexpected_error(error):
            logger.exception(f"Unhandled error on {request.method} {request.path}: {error}")
            return response_middleware.create_error_response('Internal server error', 500)
