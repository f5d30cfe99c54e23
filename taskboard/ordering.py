"""Fractional order keys.

An order key is a base62 string read as the digits of a fraction between 0
and 1. The alphabet is in ASCII order, so plain string comparison orders
keys. A key never ends in the smallest digit, which keeps room below every
key and makes the key space dense: a new key always exists strictly between
two distinct keys, and inserting one never rewrites any other key.
"""

from typing import List, Optional

from taskboard.errors import KeyInvariantViolation

DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
BASE = len(DIGITS)
ZERO = DIGITS[0]

# Key handed out for the first item of an empty list
DEFAULT_KEY = DIGITS[BASE // 2]

_DIGIT_VALUES = {digit: value for value, digit in enumerate(DIGITS)}


def is_valid_position(key: Optional[str]) -> bool:
    """Return True if key is a well-formed order key."""
    if not key:
        return False
    if key.endswith(ZERO):
        return False
    return all(char in _DIGIT_VALUES for char in key)


def _check_key(key: str, name: str) -> None:
    if not is_valid_position(key):
        raise KeyInvariantViolation(f"{name} is not a valid order key: {key!r}")


def _midpoint(lower: str, upper: Optional[str]) -> str:
    """Return a key strictly between lower and upper.

    lower may be empty (the 0 boundary) and upper may be None (the 1
    boundary). Neither may end in ZERO.
    """
    if upper is not None:
        # Shared prefix, padding lower with zeros
        n = 0
        while n < len(upper) and (lower[n] if n < len(lower) else ZERO) == upper[n]:
            n += 1
        if n > 0:
            return upper[:n] + _midpoint(lower[n:], upper[n:])

    low_digit = _DIGIT_VALUES[lower[0]] if lower else 0
    high_digit = _DIGIT_VALUES[upper[0]] if upper is not None else BASE

    if high_digit - low_digit > 1:
        return DIGITS[(low_digit + high_digit) // 2]

    # Adjacent digits
    if upper is not None and len(upper) > 1:
        return upper[0]
    return DIGITS[low_digit] + _midpoint(lower[1:], None)


def generate_position(before: Optional[str], after: Optional[str]) -> str:
    """Generate an order key between two existing keys.

    Args:
        before: Key of the item before the insertion point (None for head)
        after: Key of the item after the insertion point (None for tail)

    Returns:
        A key k with before < k < after (open boundaries ignored)

    Raises:
        KeyInvariantViolation: If a key is malformed or before >= after
    """
    if before is None and after is None:
        return DEFAULT_KEY

    if before is not None:
        _check_key(before, "before")
    if after is not None:
        _check_key(after, "after")
    if before is not None and after is not None and before >= after:
        raise KeyInvariantViolation(
            f"before must sort strictly before after: {before!r} >= {after!r}"
        )

    return _midpoint(before or "", after)


def _encode(value: int, width: int) -> str:
    digits = []
    for _ in range(width):
        value, remainder = divmod(value, BASE)
        digits.append(DIGITS[remainder])
    return "".join(reversed(digits)).rstrip(ZERO)


def generate_sequence(count: int) -> List[str]:
    """Generate count evenly spaced ascending keys.

    Used to seed a list in one go, leaving equal room between neighbours.
    """
    if count < 0:
        raise ValueError("count cannot be negative")
    if count == 0:
        return []

    width = 1
    while BASE ** width < count + 1:
        width += 1
    span = BASE ** width

    return [_encode((i + 1) * span // (count + 1), width) for i in range(count)]


def position_to_debug_number(key: str) -> float:
    """Return the fraction a key stands for. Debugging aid only."""
    _check_key(key, "key")
    value = 0.0
    scale = 1.0
    for char in key:
        scale /= BASE
        value += _DIGIT_VALUES[char] * scale
    return value
