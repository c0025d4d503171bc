# utils/input_validators.py
"""
Pure Input Validation Utilities
Low-level validation functions with no business logic
"""

import re
import math
from typing import Any, Optional
from datetime import datetime, timezone

ADDRESS_PATTERN = re.compile(r'^0x[a-fA-F0-9]{40}$')


def is_valid_ethereum_address(address: str) -> bool:
    """
    Check if Ethereum address format is valid

    Args:
        address: Ethereum wallet address

    Returns:
        True if valid, False otherwise
    """
    if not address or not isinstance(address, str):
        return False

    # Ethereum address pattern: 0x followed by 40 hexadecimal characters
    return ADDRESS_PATTERN.match(address.strip()) is not None


def validate_product_id(product_id: Any) -> str:
    """
    Validate and clean a product identifier

    Args:
        product_id: Raw product identifier

    Returns:
        Stripped product identifier

    Raises:
        ValueError: If identifier is missing or too long
    """
    if product_id is None or isinstance(product_id, (dict, list, bool)):
        raise ValueError("productId is required")

    cleaned = str(product_id).strip()
    if not cleaned:
        raise ValueError("productId is required")

    if len(cleaned) > 256:
        raise ValueError("productId cannot exceed 256 characters")

    return cleaned


def parse_coordinate(value: Any, name: str) -> float:
    """
    Parse a numeric coordinate from JSON or a query string

    Raises:
        ValueError: If value is not a finite number
    """
    # bool is an int subclass and must not pass as 0/1
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{name} must be a number")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number")

    if not math.isfinite(number):
        raise ValueError(f"{name} must be a finite number")

    return number


def parse_limit(value: Any, default: int, maximum: int) -> int:
    """Parse a page size, falling back to default and capping at maximum"""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default

    if limit <= 0:
        return default
    return min(limit, maximum)


def parse_iso_datetime(value: Optional[str], name: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime, assuming UTC when no offset is given

    Raises:
        ValueError: If the value is not ISO-8601
    """
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        raise ValueError(f"{name} must be an ISO-8601 date")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
