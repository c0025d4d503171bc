"""
Verification Routes Module
"""
from .public_routes import public_verification_bp

__all__ = [
    'public_verification_bp'
]
