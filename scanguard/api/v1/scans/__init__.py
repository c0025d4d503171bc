"""
Scan Routes Module
"""
from .scan_routes import scan_bp

__all__ = [
    'scan_bp'
]
