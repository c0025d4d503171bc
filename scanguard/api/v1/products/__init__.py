from .product_routes import product_bp

__all__ = [
    'product_bp'
]
