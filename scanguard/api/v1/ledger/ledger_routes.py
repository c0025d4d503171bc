"""
Ledger Lookup Routes
Raw ledger facts for a product, without trust evaluation
"""
from flask import Blueprint
import logging

from scanguard.extensions import get_services
from scanguard.models.enums import ProductStatus
from scanguard.utils.input_validators import validate_product_id
from scanguard.api.middleware.response_middleware import response_middleware

ledger_bp = Blueprint('ledger', __name__)
logger = logging.getLogger(__name__)


@ledger_bp.route('/products/<path:product_id>', methods=['GET'])
def get_product(product_id):
    """
    Product record, sale record when sold, and the catalog entry if any
    A product the ledger does not know is a 404
    """
    try:
        clean_id = validate_product_id(product_id)
    except ValueError as e:
        return response_middleware.create_error_response(str(e), 400)

    services = get_services()
    product = services.trust_registry.get_product_details(clean_id)
    if not product.exists:
        return response_middleware.create_error_response('Product not found on-chain', 404)

    sale = None
    if product.status is ProductStatus.SOLD:
        sale = services.trust_registry.get_sale_info(clean_id).to_dict()

    catalog_entry = services.product_catalog.get_by_uid(clean_id)

    return response_middleware.create_success_response({
        'product': product.to_dict(),
        'sale': sale,
        'catalog': catalog_entry.to_dict() if catalog_entry else None
    })
