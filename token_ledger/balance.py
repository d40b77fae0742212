"""
Balance Arithmetic Module

Unsigned fixed-width integer amounts for the token ledger. Balances are plain
Python ints constrained to [0, 2**bits - 1]; every add and subtract is checked
so a wraparound can never reach the balance tables.
"""

from typing import Final

DEFAULT_BALANCE_BITS: Final[int] = 128


def max_balance(bits: int = DEFAULT_BALANCE_BITS) -> int:
    """Largest representable balance for the given width"""
    if not isinstance(bits, int) or isinstance(bits, bool) or bits <= 0:
        raise ValueError(f"Balance width must be a positive integer, got {bits!r}")
    return (1 << bits) - 1


MAX_BALANCE: Final[int] = max_balance(DEFAULT_BALANCE_BITS)


def require_balance(value, limit: int = MAX_BALANCE) -> int:
    """
    Validate that a value is a representable balance

    Args:
        value: Candidate amount
        limit: Inclusive upper bound for the balance width

    Returns:
        The value, unchanged

    Raises:
        ValueError: If value is not an int, is a bool, is negative or exceeds limit
    """
    # bool is an int subclass; True is not an amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Balance must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Balance cannot be negative: {value}")
    if value > limit:
        raise ValueError(f"Balance {value} exceeds maximum {limit}")
    return value


def checked_add(a: int, b: int, limit: int = MAX_BALANCE) -> int:
    """Add two balances, raising OverflowError instead of wrapping"""
    result = a + b
    if result > limit:
        raise OverflowError(f"Balance overflow: {a} + {b} exceeds {limit}")
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract two balances, raising OverflowError instead of going negative"""
    if b > a:
        raise OverflowError(f"Balance underflow: {a} - {b} is negative")
    return a - b
