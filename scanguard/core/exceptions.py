# core/exceptions.py
from typing import List, Optional


class ScanguardError(Exception):
    pass


class LedgerUnavailable(ScanguardError):
    """A ledger read failed or timed out"""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        self.detail = str(cause) if cause is not None else ''
        if not self.detail:
            # TimeoutError and friends carry no message
            self.detail = type(cause).__name__ if cause is not None else 'ledger unavailable'
        super().__init__(f"{operation} failed: {self.detail}")


class ValidationError(ScanguardError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__('; '.join(self.errors) or 'Validation failed')


class ScanStoreError(ScanguardError):
    pass


class ProductCatalogError(ScanguardError):
    pass


class DuplicateProductError(ProductCatalogError):
    pass
