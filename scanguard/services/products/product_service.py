# services/products/product_service.py
"""
Product Catalog
Off-chain copy of products registered on the ledger, keyed by uid
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from scanguard.core.exceptions import ValidationError, DuplicateProductError, ProductCatalogError
from scanguard.models.enums import StoreBackend
from scanguard.models.product import CatalogProduct
from scanguard.utils.input_validators import is_valid_ethereum_address

logger = logging.getLogger(__name__)

PRODUCT_COLLECTION = 'products'


class ProductCatalogService:
    """Create and list catalog products. Storage is a products collection or a dict."""

    def __init__(self, db=None, collection_name: str = PRODUCT_COLLECTION):
        self.collection = db[collection_name] if db is not None else None
        self._lock = threading.Lock()
        self._products: Dict[str, CatalogProduct] = {}

    @staticmethod
    def validate_product_data(data) -> CatalogProduct:
        """
        Validate a create request

        Raises:
            ValidationError: Missing fields or malformed manufacturer address
        """
        data = data if isinstance(data, dict) else {}
        uid = str(data.get('uid') or '').strip()
        manufacturer = str(data.get('manufacturer') or '').strip()
        details = str(data.get('details') or '').strip()

        if not uid or not manufacturer or not details:
            raise ValidationError(["uid, manufacturer and details are required"])

        if not is_valid_ethereum_address(manufacturer):
            raise ValidationError(["manufacturer must be a valid Ethereum address (0x...)"])

        now = datetime.now(timezone.utc)
        return CatalogProduct(uid=uid, manufacturer=manufacturer.lower(), details=details,
                              created_at=now, updated_at=now)

    def create_product(self, data) -> CatalogProduct:
        """
        Store a new catalog product

        Raises:
            ValidationError: Invalid request data
            DuplicateProductError: uid already exists
            ProductCatalogError: Storage failure
        """
        product = self.validate_product_data(data)

        if self.collection is None:
            with self._lock:
                if product.uid in self._products:
                    raise DuplicateProductError("A product with this uid already exists")
                product.id = str(ObjectId())
                self._products[product.uid] = product
            logger.info(f"Catalog product created: {product.uid}")
            return product

        try:
            if self.collection.find_one({'uid': product.uid}):
                raise DuplicateProductError("A product with this uid already exists")
            result = self.collection.insert_one(product.to_document())
        except DuplicateKeyError as e:
            # Lost a race with a concurrent insert of the same uid
            raise DuplicateProductError("A product with this uid already exists") from e
        except PyMongoError as e:
            logger.error(f"Error creating product {product.uid}: {e}")
            raise ProductCatalogError(f"Failed to create product: {e}") from e

        product.id = str(result.inserted_id)
        logger.info(f"Catalog product created: {product.uid}")
        return product

    def get_by_manufacturer(self, address: str, limit: int = 100) -> List[CatalogProduct]:
        """
        Products for a manufacturer, newest first

        Raises:
            ValidationError: Malformed manufacturer address
        """
        if not is_valid_ethereum_address(address):
            raise ValidationError(["Invalid manufacturer address"])
        manufacturer = address.strip().lower()

        if self.collection is None:
            with self._lock:
                # reversed insertion order breaks created_at ties newest first
                products = [p for p in reversed(list(self._products.values())) if p.manufacturer == manufacturer]
            products.sort(key=lambda p: p.created_at, reverse=True)
            return products[:limit]

        try:
            cursor = self.collection.find({'manufacturer': manufacturer}).sort('created_at', DESCENDING).limit(limit)
            return [CatalogProduct.from_document(document) for document in cursor]
        except PyMongoError as e:
            logger.error(f"Error fetching products for {manufacturer}: {e}")
            raise ProductCatalogError(f"Failed to fetch products: {e}") from e

    def get_by_uid(self, uid: str) -> Optional[CatalogProduct]:
        if self.collection is None:
            with self._lock:
                return self._products.get(uid)

        try:
            document = self.collection.find_one({'uid': uid})
        except PyMongoError as e:
            raise ProductCatalogError(f"Failed to fetch product: {e}") from e
        return CatalogProduct.from_document(document) if document else None


def build_product_catalog(app_config, db=None) -> ProductCatalogService:
    backend = StoreBackend(app_config.get('SCAN_STORE_BACKEND', 'mongo'))
    if backend is StoreBackend.MEMORY:
        return ProductCatalogService()

    if db is None:
        from scanguard.config.database import get_db_connection
        db = get_db_connection(app_config.get('MONGODB_URI'), app_config.get('DATABASE_NAME'))
    return ProductCatalogService(db)
