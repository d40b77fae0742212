"""
Token Ledger Module

Owns the total supply and the per-account balance table. Every mutation is
overflow-checked so the sum of balances always equals the total supply once
the supply has been issued.
"""

from typing import Any, Dict, List, Optional

from .accounts import AccountId
from .balance import MAX_BALANCE, require_balance, checked_add, checked_sub


class Ledger:
    """
    Balance bookkeeping for a single fixed-supply asset
    An account absent from the table has a balance of zero
    """

    def __init__(self, max_balance: int = MAX_BALANCE):
        self.max_balance = max_balance
        self._balances: Dict[AccountId, int] = {}
        self._total_supply: Optional[int] = None

    @property
    def total_supply(self) -> int:
        """Total issued supply (zero before issuance)"""
        return self._total_supply or 0

    @property
    def is_issued(self) -> bool:
        return self._total_supply is not None

    def balance_of(self, account: AccountId) -> int:
        """Get balance for an account, zero if it has never held tokens"""
        return self._balances.get(account, 0)

    def credit(self, account: AccountId, amount: int) -> None:
        """
        Increase an account balance

        Raises:
            ValueError: If amount is not a valid balance
            OverflowError: If the new balance would exceed the balance width
        """
        require_balance(amount, self.max_balance)
        new_balance = checked_add(self.balance_of(account), amount, self.max_balance)
        self._store(account, new_balance)

    def debit(self, account: AccountId, amount: int) -> bool:
        """
        Decrease an account balance if it holds enough

        Returns:
            True if debited, False (with no mutation) on insufficient balance
        """
        require_balance(amount, self.max_balance)
        current = self.balance_of(account)
        if current < amount:
            return False
        self._store(account, checked_sub(current, amount))
        return True

    def issue(self, account: AccountId, amount: int) -> None:
        """
        One-time issuance of the entire supply to a single account

        Raises:
            ValueError: If the supply was already issued or amount is invalid
        """
        if self.is_issued:
            raise ValueError("Token supply has already been issued")
        require_balance(amount, self.max_balance)
        self.credit(account, amount)
        self._total_supply = amount

    def holders(self) -> List[AccountId]:
        """Accounts holding a non-zero balance, in id order"""
        return sorted(self._balances)

    def verify_supply(self) -> Dict[str, Any]:
        """
        Check conservation of the supply

        Returns:
            Dictionary with the check result and the compared totals
        """
        sum_of_balances = sum(self._balances.values())
        return {
            'valid': sum_of_balances == self.total_supply,
            'total_supply': self.total_supply,
            'sum_of_balances': sum_of_balances,
            'holder_count': len(self._balances)
        }

    def _store(self, account: AccountId, balance: int) -> None:
        # Zero balances are dropped; absent and zero are the same account state
        if balance == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = balance
