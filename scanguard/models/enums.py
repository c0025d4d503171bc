# models/enums.py
from enum import Enum


class ScanResult(Enum):
    """Coarse classification of a verification attempt, derived from raw ledger state"""
    NOT_FOUND = "NOT_FOUND"
    AUTHENTIC = "AUTHENTIC"
    ALREADY_SOLD = "ALREADY_SOLD"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


# A verdict's classification and a scan event's result share one vocabulary
Classification = ScanResult


class ProductStatus(Enum):
    """Product status as encoded by the ledger contract (uint8)"""
    AVAILABLE = 0
    SOLD = 1

    @property
    def label(self) -> str:
        return 'Sold' if self is ProductStatus.SOLD else 'Available'


class StoreBackend(Enum):
    MONGO = "mongo"
    MEMORY = "memory"


class LedgerBackend(Enum):
    CONTRACT = "contract"
    MEMORY = "memory"
