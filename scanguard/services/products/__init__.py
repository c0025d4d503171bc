from .product_service import ProductCatalogService, build_product_catalog

__all__ = [
    'ProductCatalogService',
    'build_product_catalog'
]
