"""
Test suite for balance arithmetic

Balances are unsigned fixed-width integers: every operation must reject
values it cannot represent instead of wrapping.
"""

import pytest

from token_ledger.balance import (
    MAX_BALANCE, DEFAULT_BALANCE_BITS,
    max_balance, require_balance, checked_add, checked_sub
)


class TestBalanceWidth:
    """Test balance width limits"""

    def test_default_width_is_u128(self):
        """Test default maximum is 2**128 - 1"""
        assert DEFAULT_BALANCE_BITS == 128
        assert MAX_BALANCE == 2 ** 128 - 1

    def test_custom_width(self):
        """Test maximum for smaller widths"""
        assert max_balance(8) == 255
        assert max_balance(64) == 2 ** 64 - 1

    def test_invalid_width(self):
        """Test that non-positive widths are rejected"""
        with pytest.raises(ValueError):
            max_balance(0)
        with pytest.raises(ValueError):
            max_balance(-8)


class TestRequireBalance:
    """Test balance validation"""

    def test_valid_values(self):
        assert require_balance(0) == 0
        assert require_balance(1234) == 1234
        assert require_balance(MAX_BALANCE) == MAX_BALANCE

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            require_balance(-1)

    def test_above_width_rejected(self):
        with pytest.raises(ValueError, match="exceeds maximum"):
            require_balance(256, limit=255)

    def test_non_integer_rejected(self):
        """Test that floats, strings and bools are not balances"""
        for value in (1.5, "10", None, True):
            with pytest.raises(ValueError, match="must be an integer"):
                require_balance(value)


class TestCheckedArithmetic:
    """Test overflow-checked add and subtract"""

    def test_add_within_range(self):
        assert checked_add(200, 55, limit=255) == 255

    def test_add_overflow(self):
        """Test that exceeding the width raises instead of wrapping"""
        with pytest.raises(OverflowError, match="overflow"):
            checked_add(200, 56, limit=255)

    def test_sub_within_range(self):
        assert checked_sub(10, 10) == 0

    def test_sub_underflow(self):
        with pytest.raises(OverflowError, match="underflow"):
            checked_sub(5, 6)
