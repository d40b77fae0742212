"""
Allowance Registry Module

Tracks how much each owner has authorized each spender to move on its behalf.
"""

from typing import Dict, Tuple

from .accounts import AccountId
from .balance import MAX_BALANCE, require_balance, checked_sub


class AllowanceRegistry:
    """(owner, spender) -> approved amount, absent pairs read as zero"""

    def __init__(self, max_balance: int = MAX_BALANCE):
        self.max_balance = max_balance
        self._allowances: Dict[Tuple[AccountId, AccountId], int] = {}

    def allowance_of(self, owner: AccountId, spender: AccountId) -> int:
        return self._allowances.get((owner, spender), 0)

    def set_allowance(self, owner: AccountId, spender: AccountId, amount: int) -> None:
        """Overwrite the approved amount (absolute, not additive)"""
        require_balance(amount, self.max_balance)
        self._store(owner, spender, amount)

    def decrease_allowance(self, owner: AccountId, spender: AccountId, amount: int) -> bool:
        """
        Reduce the approved amount if it covers the request

        Returns:
            True if decreased, False (with no mutation) if the allowance is too small
        """
        require_balance(amount, self.max_balance)
        current = self.allowance_of(owner, spender)
        if current < amount:
            return False
        self._store(owner, spender, checked_sub(current, amount))
        return True

    def spenders_of(self, owner: AccountId) -> Dict[AccountId, int]:
        """Non-zero allowances granted by an owner"""
        return {
            spender: amount
            for (granter, spender), amount in self._allowances.items()
            if granter == owner
        }

    def _store(self, owner: AccountId, spender: AccountId, amount: int) -> None:
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount
