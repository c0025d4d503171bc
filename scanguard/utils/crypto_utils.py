"""
Cryptographic Utilities
Pure functions for content fingerprints and address normalization
"""

from typing import Optional
from web3 import Web3


def content_fingerprint(details: str) -> str:
    """
    Compute the fingerprint recorded on the ledger when a product is created

    keccak256 over the UTF-8 bytes of the details string, the same digest
    the contract stores as productHash.

    Args:
        details: Canonical details string, hashed exactly as given

    Returns:
        0x-prefixed lowercase hex digest
    """
    return Web3.to_hex(Web3.keccak(text=details)).lower()


def fingerprints_match(local: Optional[str], onchain: Optional[str]) -> bool:
    """
    Compare two hex fingerprints case-insensitively

    Returns:
        True only when both are present and equal
    """
    if not local or not onchain:
        return False
    return str(local).strip().lower() == str(onchain).strip().lower()


def normalize_address(address: Optional[str]) -> str:
    """
    Normalize a ledger address for comparison

    Ledger addresses are case-insensitive identifiers, so comparisons
    use the lowercase form.
    """
    return (address or "").strip().lower()
