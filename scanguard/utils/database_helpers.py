"""
Database Helper Utilities
Index management for the scan log and product catalog collections
Does not manage connections - callers pass the database in
"""

import logging

from pymongo import ASCENDING, DESCENDING, GEOSPHERE
from pymongo.errors import PyMongoError

from scanguard.services.scans.scan_store import SCAN_COLLECTION
from scanguard.services.products.product_service import PRODUCT_COLLECTION

logger = logging.getLogger(__name__)


def init_database_indexes(db):
    """
    Initialize database indexes
    Should be called once during application startup; create_index is idempotent

    Raises:
        PyMongoError: If index creation fails
    """
    try:
        # Scan log indexes
        logger.info(f"Creating indexes for '{SCAN_COLLECTION}' collection...")
        scans = db[SCAN_COLLECTION]
        scans.create_index([("location", GEOSPHERE)])
        scans.create_index("productId")
        scans.create_index("timestamp")
        scans.create_index([("productId", ASCENDING), ("scanResult", ASCENDING), ("timestamp", DESCENDING)])

        # Product catalog indexes
        logger.info(f"Creating indexes for '{PRODUCT_COLLECTION}' collection...")
        products = db[PRODUCT_COLLECTION]
        products.create_index("uid", unique=True)
        products.create_index("manufacturer")

        logger.info("Database indexes initialized")

    except PyMongoError as e:
        logger.error(f"Index creation failed: {e}")
        raise
