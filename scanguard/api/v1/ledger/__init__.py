from .ledger_routes import ledger_bp

__all__ = [
    'ledger_bp'
]
