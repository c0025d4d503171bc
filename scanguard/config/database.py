"""
Database Configuration and Connection Management
Centralized database connection with singleton pattern
"""

import os
import logging
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError
from typing import Optional

logger = logging.getLogger(__name__)

# Global connection instances
_db_connection = None
_mongo_client = None


def get_db_connection(connection_string: Optional[str] = None, db_name: Optional[str] = None):
    """
    Get database connection with connection pooling (singleton pattern)
    Returns the same connection instance across the application

    Args:
        connection_string: MongoDB URI, falls back to MONGODB_URI
        db_name: Database name, falls back to DATABASE_NAME

    Returns:
        Database: MongoDB database instance
    """
    global _db_connection, _mongo_client

    if _db_connection is None:
        try:
            connection_string = connection_string or os.getenv('MONGODB_URI')
            if not connection_string:
                raise ValueError("MONGODB_URI environment variable not set")

            # Create MongoDB client with connection pooling
            _mongo_client = MongoClient(
                connection_string,
                maxPoolSize=50,
                minPoolSize=10,
                maxIdleTimeMS=30000,
                serverSelectionTimeoutMS=30000
            )

            # Test connection
            _mongo_client.admin.command('ping')

            db_name = db_name or os.getenv('DATABASE_NAME', 'product_verification')
            _db_connection = _mongo_client[db_name]

            logger.info(f"Connected to database: {db_name}")

        except ConnectionFailure as e:
            logger.error(f"Database connection failed: {e}")
            _mongo_client = None
            raise
        except Exception as e:
            logger.error(f"Database setup error: {e}")
            _mongo_client = None
            raise

    return _db_connection


def close_db_connection():
    """
    Close database connection and cleanup resources
    Should be called on application shutdown
    """
    global _db_connection, _mongo_client

    if _mongo_client:
        try:
            _mongo_client.close()
            logger.info("Database connection closed")
        except PyMongoError as e:
            logger.error(f"Error closing database connection: {e}")
        finally:
            _db_connection = None
            _mongo_client = None
