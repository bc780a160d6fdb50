"""
Text utilities for serial numbers, manual codes and revision codes.

Used by the model validators and the bulk import.
"""

import re
from typing import Optional

REVISION_CODE_PATTERN = re.compile(r"^\d{3}$")


def clean_text(value: Optional[str], max_length: int = 255) -> Optional[str]:
    """
    Clean free text for storage.

    - Strips whitespace
    - Truncates to max length
    - Returns None for empty/whitespace-only strings

    Args:
        value: Raw text (name, description, code)
        max_length: Maximum characters to store

    Returns:
        Cleaned text or None
    """
    if not value:
        return None

    value = value.strip()

    if not value:
        return None

    if len(value) > max_length:
        value = value[:max_length]

    return value


def normalize_revision_code(value: Optional[str]) -> Optional[str]:
    """
    Normalize a revision code to its 3-digit zero-padded form.

    - "1" → "001"
    - " 012 " → "012"
    - "" / None → None

    Raises:
        ValueError: If the code is not numeric
    """
    value = clean_text(value, max_length=10)
    if value is None:
        return None

    if not value.isdigit():
        raise ValueError(f"Revision code must be numeric, got {value!r}")

    return value.zfill(3)


def is_revision_code(value: Optional[str]) -> bool:
    """True for codes in the canonical 001, 002... format."""
    return bool(value) and REVISION_CODE_PATTERN.match(value) is not None


def latest_revision_code(codes: list[Optional[str]], default: str = "000") -> str:
    """
    Highest canonical revision code in the list.

    Codes not in the 3-digit format are ignored.
    """
    valid = [c for c in codes if is_revision_code(c)]
    if not valid:
        return default
    return max(valid, key=int)
