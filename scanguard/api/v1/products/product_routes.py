"""
Product Catalog Routes
Off-chain catalog of products registered by manufacturers
"""
from flask import Blueprint, request, current_app
import logging

from scanguard.extensions import get_services
from scanguard.utils.input_validators import parse_limit
from scanguard.api.middleware.response_middleware import response_middleware

product_bp = Blueprint('products', __name__)
logger = logging.getLogger(__name__)


@product_bp.route('', methods=['POST'])
def create_product():
    """Add a product to the catalog; 409 if the uid is taken"""
    product = get_services().product_catalog.create_product(request.get_json(silent=True))
    return response_middleware.create_success_response(product.to_dict(), "Product created", 201)


@product_bp.route('/manufacturer/<address>', methods=['GET'])
def get_manufacturer_products(address):
    limit = parse_limit(
        request.args.get('limit'),
        current_app.config.get('SCAN_LIST_DEFAULT_LIMIT', 100),
        current_app.config.get('SCAN_LIST_MAX_LIMIT', 1000)
    )
    products = get_services().product_catalog.get_by_manufacturer(address, limit=limit)
    return response_middleware.create_success_response(
        [product.to_dict() for product in products], count=len(products)
    )
