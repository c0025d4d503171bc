# tests/unit/test_product_catalog.py
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from conftest import MANUFACTURER
from scanguard.core.exceptions import ValidationError, DuplicateProductError
from scanguard.services.products.product_service import ProductCatalogService


@pytest.fixture
def catalog():
    return ProductCatalogService()


def product_data(**overrides):
    data = {'uid': 'P1', 'manufacturer': MANUFACTURER.upper().replace('0X', '0x'), 'details': '{"name":"Widget"}'}
    data.update(overrides)
    return data


def test_create_product_lowercases_manufacturer(catalog):
    product = catalog.create_product(product_data())

    assert product.id
    assert product.manufacturer == MANUFACTURER
    assert catalog.get_by_uid('P1') is product


@pytest.mark.parametrize('overrides, message', [
    ({'uid': ''}, 'uid, manufacturer and details are required'),
    ({'details': None}, 'uid, manufacturer and details are required'),
    ({'manufacturer': '0x123'}, 'manufacturer must be a valid Ethereum address (0x...)'),
])
def test_create_product_validation(catalog, overrides, message):
    with pytest.raises(ValidationError) as exc_info:
        catalog.create_product(product_data(**overrides))

    assert exc_info.value.errors == [message]


def test_duplicate_uid_rejected(catalog):
    catalog.create_product(product_data())

    with pytest.raises(DuplicateProductError):
        catalog.create_product(product_data(details='other'))


def test_products_by_manufacturer_newest_first(catalog):
    for uid in ('P1', 'P2', 'P3'):
        catalog.create_product(product_data(uid=uid))
    catalog.create_product(product_data(uid='OTHER', manufacturer='0x' + 'e5' * 20))

    products = catalog.get_by_manufacturer(MANUFACTURER, limit=2)

    assert [product.uid for product in products] == ['P3', 'P2']


def test_invalid_manufacturer_lookup(catalog):
    with pytest.raises(ValidationError):
        catalog.get_by_manufacturer('acme')


def test_mongo_duplicate_key_race():
    collection = MagicMock()
    collection.find_one.return_value = None
    collection.insert_one.side_effect = DuplicateKeyError('E11000 duplicate key')
    db = MagicMock()
    db.__getitem__.return_value = collection

    with pytest.raises(DuplicateProductError):
        ProductCatalogService(db).create_product(product_data())


def test_mongo_create_sets_id():
    inserted_id = ObjectId()
    collection = MagicMock()
    collection.find_one.return_value = None
    collection.insert_one.return_value.inserted_id = inserted_id
    db = MagicMock()
    db.__getitem__.return_value = collection

    product = ProductCatalogService(db).create_product(product_data())

    assert product.id == str(inserted_id)
    assert collection.insert_one.call_args[0][0]['manufacturer'] == MANUFACTURER
