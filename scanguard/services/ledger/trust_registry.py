# services/ledger/trust_registry.py
"""
Trust Registry Client
Read-only access to product, sale and authorization facts held on the ledger
"""
import os
import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional, Dict, Iterable

from web3 import Web3

from scanguard.core.exceptions import LedgerUnavailable
from scanguard.models.enums import LedgerBackend
from scanguard.models.ledger import ProductFact, SaleFact
from scanguard.utils.crypto_utils import normalize_address

logger = logging.getLogger(__name__)

EMPTY_FINGERPRINT = '0x' + '0' * 64


class TrustRegistry(ABC):
    """
    Read-only ledger interface

    Every call is a point-in-time read. Membership answers are never cached
    between calls, so a revocation on the ledger is visible on the next read.
    Implementations raise LedgerUnavailable when a read cannot be completed.
    """

    @abstractmethod
    def get_product_details(self, product_id: str) -> ProductFact:
        ...

    @abstractmethod
    def get_content_fingerprint(self, product_id: str) -> Optional[str]:
        ...

    @abstractmethod
    def get_sale_info(self, product_id: str) -> SaleFact:
        ...

    @abstractmethod
    def is_authorized_manufacturer(self, address: str) -> bool:
        ...

    @abstractmethod
    def is_authorized_retailer(self, address: str) -> bool:
        ...

    @abstractmethod
    def owner(self) -> str:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...


class ContractTrustRegistry(TrustRegistry):
    """Trust registry backed by the ProductVerifier contract through web3"""

    def __init__(self, rpc_url: str, contract_address: str, chain_id: int = 1337,
                 timeout: float = 10.0, abi_path: Optional[str] = None, web3: Optional[Web3] = None):
        self.rpc_url = rpc_url
        self.contract_address = contract_address
        self.chain_id = chain_id
        self.timeout = timeout
        self.abi_path = abi_path or os.getenv('CONTRACT_ABI_PATH')

        self.web3 = web3
        self.contract = None
        self._initialize_connection()

    def _initialize_connection(self):
        """Initialize blockchain connection"""
        if self.web3 is None:
            if not self.rpc_url:
                logger.warning("BLOCKCHAIN_RPC_URL not configured")
                return
            # Per-request HTTP timeout bounds every read against the node
            self.web3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={'timeout': self.timeout}))

        if not self.contract_address:
            logger.warning("CONTRACT_ADDRESS not configured")
            return

        try:
            self.contract = self.web3.eth.contract(
                address=Web3.to_checksum_address(self.contract_address),
                abi=self._get_contract_abi()
            )
            logger.info(f"Ledger contract bound at {self.contract_address} (Chain ID: {self.chain_id})")
        except (ValueError, OSError) as e:
            logger.error(f"Ledger contract initialization failed: {e}")
            self.contract = None

    def _get_contract_abi(self):
        """Get contract ABI, preferring the compiled artifact when one is configured"""
        if self.abi_path and os.path.exists(self.abi_path):
            with open(self.abi_path) as f:
                artifact = json.load(f)
            return artifact['abi'] if isinstance(artifact, dict) else artifact

        abi_json = '''[
            {
                "inputs": [{"name": "_productId", "type": "string"}],
                "name": "getProductDetails",
                "outputs": [
                    {"name": "exists", "type": "bool"},
                    {"name": "manufacturer", "type": "address"},
                    {"name": "manufactureDate", "type": "uint256"},
                    {"name": "batchNumber", "type": "string"},
                    {"name": "category", "type": "string"},
                    {"name": "status", "type": "uint8"}
                ],
                "stateMutability": "view",
                "type": "function"
            },
            {
                "inputs": [{"name": "", "type": "string"}],
                "name": "products",
                "outputs": [
                    {"name": "productId", "type": "string"},
                    {"name": "manufacturer", "type": "address"},
                    {"name": "manufactureDate", "type": "uint256"},
                    {"name": "batchNumber", "type": "string"},
                    {"name": "category", "type": "string"},
                    {"name": "productHash", "type": "bytes32"},
                    {"name": "status", "type": "uint8"},
                    {"name": "exists", "type": "bool"}
                ],
                "stateMutability": "view",
                "type": "function"
            },
            {
                "inputs": [{"name": "_productId", "type": "string"}],
                "name": "getSaleInfo",
                "outputs": [
                    {"name": "wasSold", "type": "bool"},
                    {"name": "retailer", "type": "address"},
                    {"name": "saleDate", "type": "uint256"},
                    {"name": "location", "type": "string"}
                ],
                "stateMutability": "view",
                "type": "function"
            },
            {
                "inputs": [{"name": "", "type": "address"}],
                "name": "authorizedManufacturers",
                "outputs": [{"name": "", "type": "bool"}],
                "stateMutability": "view",
                "type": "function"
            },
            {
                "inputs": [{"name": "", "type": "address"}],
                "name": "authorizedRetailers",
                "outputs": [{"name": "", "type": "bool"}],
                "stateMutability": "view",
                "type": "function"
            },
            {
                "inputs": [],
                "name": "owner",
                "outputs": [{"name": "", "type": "address"}],
                "stateMutability": "view",
                "type": "function"
            }
        ]'''
        return json.loads(abi_json)

    def is_connected(self) -> bool:
        """Check if blockchain connection is active"""
        try:
            return bool(self.contract is not None and self.web3.is_connected())
        except Exception as e:
            logger.warning(f"Ledger connectivity check failed: {e}")
            return False

    def _call(self, operation: str, function_name: str, *args):
        if self.contract is None:
            raise LedgerUnavailable(operation, ConnectionError('Ledger contract not configured'))

        try:
            return getattr(self.contract.functions, function_name)(*args).call()
        except Exception as e:
            # web3 surfaces transport, ABI and revert failures under many types
            logger.error(f"Ledger read {function_name} failed: {e}")
            raise LedgerUnavailable(operation, e) from e

    def get_product_details(self, product_id: str) -> ProductFact:
        result = self._call('Product lookup', 'getProductDetails', product_id)
        try:
            return ProductFact.from_contract(product_id, result)
        except (TypeError, ValueError) as e:
            raise LedgerUnavailable('Product lookup', e) from e

    def get_content_fingerprint(self, product_id: str) -> Optional[str]:
        record = self._call('Fingerprint lookup', 'products', product_id)
        product_hash = record[5] if len(record) > 5 else None
        if not product_hash:
            return None

        fingerprint = Web3.to_hex(product_hash) if isinstance(product_hash, (bytes, bytearray)) else str(product_hash)
        return None if fingerprint.lower() == EMPTY_FINGERPRINT else fingerprint

    def get_sale_info(self, product_id: str) -> SaleFact:
        result = self._call('Sale lookup', 'getSaleInfo', product_id)
        return SaleFact.from_contract(product_id, result)

    def _checksum(self, operation: str, address: str) -> str:
        try:
            return Web3.to_checksum_address(normalize_address(address))
        except (TypeError, ValueError) as e:
            raise LedgerUnavailable(operation, e) from e

    def is_authorized_manufacturer(self, address: str) -> bool:
        operation = 'Manufacturer authorization lookup'
        return bool(self._call(operation, 'authorizedManufacturers', self._checksum(operation, address)))

    def is_authorized_retailer(self, address: str) -> bool:
        operation = 'Retailer authorization lookup'
        return bool(self._call(operation, 'authorizedRetailers', self._checksum(operation, address)))

    def owner(self) -> str:
        return self._call('Owner lookup', 'owner')


class InMemoryTrustRegistry(TrustRegistry):
    """
    Trust registry held in process memory

    Used for local development without a node and for tests. Mirrors the
    contract's behaviour: unknown products come back with exists=False.
    """

    def __init__(self, owner: str = "", manufacturers: Iterable[str] = (), retailers: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._owner = owner
        self._manufacturers = {normalize_address(a) for a in manufacturers}
        self._retailers = {normalize_address(a) for a in retailers}
        self._products: Dict[str, ProductFact] = {}
        self._sales: Dict[str, SaleFact] = {}

    def authorize_manufacturer(self, address: str):
        with self._lock:
            self._manufacturers.add(normalize_address(address))

    def authorize_retailer(self, address: str):
        with self._lock:
            self._retailers.add(normalize_address(address))

    def revoke_manufacturer(self, address: str):
        with self._lock:
            self._manufacturers.discard(normalize_address(address))

    def revoke_retailer(self, address: str):
        with self._lock:
            self._retailers.discard(normalize_address(address))

    def put_product(self, product: ProductFact):
        with self._lock:
            self._products[product.product_id] = product

    def put_sale(self, sale: SaleFact):
        with self._lock:
            self._sales[sale.product_id] = sale

    def get_product_details(self, product_id: str) -> ProductFact:
        with self._lock:
            return self._products.get(product_id) or ProductFact.missing(product_id)

    def get_content_fingerprint(self, product_id: str) -> Optional[str]:
        with self._lock:
            product = self._products.get(product_id)
        return product.content_fingerprint if product else None

    def get_sale_info(self, product_id: str) -> SaleFact:
        with self._lock:
            return self._sales.get(product_id) or SaleFact(product_id=product_id, was_sold=False)

    def is_authorized_manufacturer(self, address: str) -> bool:
        with self._lock:
            return normalize_address(address) in self._manufacturers

    def is_authorized_retailer(self, address: str) -> bool:
        with self._lock:
            return normalize_address(address) in self._retailers

    def owner(self) -> str:
        return self._owner

    def is_connected(self) -> bool:
        return True


def build_trust_registry(app_config) -> TrustRegistry:
    """Construct the registry selected by LEDGER_BACKEND"""
    backend = LedgerBackend(app_config.get('LEDGER_BACKEND', 'contract'))

    if backend is LedgerBackend.MEMORY:
        logger.warning("Using in-memory trust registry - ledger facts are not persisted")
        return InMemoryTrustRegistry()

    return ContractTrustRegistry(
        rpc_url=app_config.get('BLOCKCHAIN_RPC_URL'),
        contract_address=app_config.get('CONTRACT_ADDRESS'),
        chain_id=app_config.get('CHAIN_ID', 1337),
        timeout=app_config.get('LEDGER_READ_TIMEOUT_SECONDS', 10.0),
    )
