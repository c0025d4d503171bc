# config/environment.py
import os
from typing import Dict, Any
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Config:
    """Environment-based configuration"""
    def __init__(self, env: str = None):
        self.env = Environment(env or os.getenv('FLASK_ENV', 'development'))

    def get_config(self) -> Dict[str, Any]:
        base_config = {
            'SECRET_KEY': os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production'),
            'DATABASE_NAME': os.getenv('DATABASE_NAME', 'product_verification'),
            'CORS_ORIGINS': os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://localhost:5173').split(','),
            'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO'),

            # Ledger
            'BLOCKCHAIN_RPC_URL': os.getenv('BLOCKCHAIN_RPC_URL'),
            'CONTRACT_ADDRESS': os.getenv('CONTRACT_ADDRESS'),
            'CHAIN_ID': _env_int('CHAIN_ID', 1337),
            'LEDGER_READ_TIMEOUT_SECONDS': _env_float('LEDGER_READ_TIMEOUT_SECONDS', 10.0),

            # Fraud detection thresholds
            'SUSPICIOUS_LOCATION_MIN_SCANS': _env_int('SUSPICIOUS_LOCATION_MIN_SCANS', 5),
            'DUPLICATE_SOLD_MIN_SCANS': _env_int('DUPLICATE_SOLD_MIN_SCANS', 3),
            'SUSPICIOUS_PRODUCT_MIN_SOLD': _env_int('SUSPICIOUS_PRODUCT_MIN_SOLD', 3),
            'SUSPICIOUS_PRODUCT_MIN_NOT_FOUND': _env_int('SUSPICIOUS_PRODUCT_MIN_NOT_FOUND', 5),
            'LOCATION_CELL_PRECISION': _env_int('LOCATION_CELL_PRECISION', 4),

            # Scan queries
            'NEARBY_DEFAULT_RADIUS_METERS': _env_int('NEARBY_DEFAULT_RADIUS_METERS', 5000),
            'NEARBY_MAX_RADIUS_METERS': _env_int('NEARBY_MAX_RADIUS_METERS', 50000),
            'NEARBY_PAGE_SIZE': _env_int('NEARBY_PAGE_SIZE', 100),
            'SCAN_LIST_DEFAULT_LIMIT': _env_int('SCAN_LIST_DEFAULT_LIMIT', 100),
            'SCAN_LIST_MAX_LIMIT': _env_int('SCAN_LIST_MAX_LIMIT', 1000),
        }

        if self.env == Environment.DEVELOPMENT:
            return {**base_config, **self._development_config()}
        elif self.env == Environment.TESTING:
            return {**base_config, **self._testing_config()}
        elif self.env == Environment.STAGING:
            return {**base_config, **self._staging_config()}
        else:
            return {**base_config, **self._production_config()}

    def _development_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': True,
            'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/product-verifier'),
            'BLOCKCHAIN_RPC_URL': os.getenv('BLOCKCHAIN_RPC_URL', 'http://127.0.0.1:7545'),
            'LEDGER_BACKEND': os.getenv('LEDGER_BACKEND', 'contract'),
            'SCAN_STORE_BACKEND': os.getenv('SCAN_STORE_BACKEND', 'mongo'),
            'LOG_LEVEL': os.getenv('LOG_LEVEL', 'DEBUG'),
        }

    def _testing_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': True,
            'TESTING': True,
            'MONGODB_URI': None,
            'LEDGER_BACKEND': 'memory',
            'SCAN_STORE_BACKEND': 'memory',
            'LEDGER_READ_TIMEOUT_SECONDS': 2.0,
        }

    def _staging_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': False,
            'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/product_verification_staging'),
            'LEDGER_BACKEND': 'contract',
            'SCAN_STORE_BACKEND': 'mongo',
        }

    def _production_config(self) -> Dict[str, Any]:
        return {
            'DEBUG': False,
            'MONGODB_URI': os.getenv('MONGODB_URI'),
            'LEDGER_BACKEND': 'contract',
            'SCAN_STORE_BACKEND': 'mongo',
        }
