"""
Configuration module
Centralized configuration for database, ledger and detection thresholds
"""

from .database import get_db_connection, close_db_connection
from .environment import Config, Environment

__all__ = ['get_db_connection', 'close_db_connection', 'Config', 'Environment']
