"""
Transfer Engine Module

Orchestrates issuance, transfers, approvals and delegated transfers on top of
the Ledger and the AllowanceRegistry. The engine is the only component that
mutates both, and every successful mutation is reported to the EventSink.

Insufficient balance or allowance is an expected outcome and is reported as a
False return with no state change and no event. Arithmetic overflow is a
fault and propagates as OverflowError.
"""

from typing import Optional

from .accounts import AccountId
from .allowances import AllowanceRegistry
from .balance import require_balance
from .config import ALLOWANCE_POLICIES
from .events import EventSink, NullEventSink, Transfer, Approval
from .ledger import Ledger
from .logging_config import get_logger, log_action


class TransferEngine:
    """
    Token operations for one ledger instance
    The caller identity is supplied by the host on every mutating call
    """

    def __init__(
        self,
        ledger: Ledger,
        allowances: AllowanceRegistry,
        event_sink: Optional[EventSink] = None,
        allowance_policy: str = "atomic"
    ):
        if allowance_policy not in ALLOWANCE_POLICIES:
            raise ValueError(f"Unknown allowance policy: {allowance_policy}")
        self.ledger = ledger
        self.allowances = allowances
        self.event_sink = event_sink or NullEventSink()
        self.allowance_policy = allowance_policy
        self.logger = get_logger("token_ledger.transfers")

    def issue(self, issuer: AccountId, initial_amount: int) -> None:
        """
        Create the whole supply and credit it to the issuer

        The issuance event is delivered before the supply is committed, so a
        sink failure leaves the ledger unissued and the call can be retried.

        Raises:
            ValueError: If already issued or the amount is not a valid balance
        """
        if self.ledger.is_issued:
            raise ValueError("Token supply has already been issued")
        require_balance(initial_amount, self.ledger.max_balance)

        self.event_sink.emit(Transfer(from_account=None, to_account=issuer, value=initial_amount))
        self.ledger.issue(issuer, initial_amount)

        log_action(
            self.logger, "info", "Token supply issued",
            caller=issuer.to_hex(), action="issue",
            extra={"total_supply": initial_amount}
        )

    def total_supply(self) -> int:
        total_supply = self.ledger.total_supply
        self.logger.debug(f"total_supply = {total_supply}")
        return total_supply

    def balance_of(self, owner: AccountId) -> int:
        balance = self.ledger.balance_of(owner)
        self.logger.debug(f"balance_of(owner = {owner.short()}) = {balance}")
        return balance

    def allowance(self, owner: AccountId, spender: AccountId) -> int:
        allowance = self.allowances.allowance_of(owner, spender)
        self.logger.debug(
            f"allowance(owner = {owner.short()}, spender = {spender.short()}) = {allowance}"
        )
        return allowance

    def transfer(self, caller: AccountId, to: AccountId, value: int) -> bool:
        """
        Move tokens out of the caller's own balance

        Returns:
            True on success, False if the caller's balance is insufficient
        """
        return self.move_tokens(caller, to, value, caller=caller)

    def approve(self, caller: AccountId, spender: AccountId, value: int) -> bool:
        """
        Set the amount spender may move out of the caller's balance
        Absolute set: replaces any previous allowance. Always succeeds.
        """
        self.allowances.set_allowance(caller, spender, value)
        self.event_sink.emit(Approval(owner=caller, spender=spender, value=value))

        log_action(
            self.logger, "info", "Allowance approved",
            caller=caller.to_hex(), action="approve",
            resource=f"allowance:{caller.to_hex()}:{spender.to_hex()}",
            extra={"spender": spender.to_hex(), "value": value}
        )
        return True

    def transfer_from(self, caller: AccountId, from_account: AccountId,
                      to: AccountId, value: int) -> bool:
        """
        Move tokens out of from_account using the allowance it granted the caller

        Under the "atomic" policy the allowance is only spent when the balance
        debit succeeds. Under "consume" it is spent before the debit and stays
        spent if the debit fails.

        Returns:
            True on success, False if the allowance or the balance is insufficient
        """
        require_balance(value, self.ledger.max_balance)
        allowance = self.allowances.allowance_of(from_account, caller)
        if allowance < value:
            self._log_rejected("transfer_from", caller, from_account, to, value,
                               reason="insufficient_allowance", allowance=allowance)
            return False

        if self.allowance_policy == "consume":
            self.allowances.decrease_allowance(from_account, caller, value)
            return self.move_tokens(from_account, to, value, caller=caller)

        if self.ledger.balance_of(from_account) < value:
            self._log_rejected("transfer_from", caller, from_account, to, value,
                               reason="insufficient_balance")
            return False
        self.allowances.decrease_allowance(from_account, caller, value)
        try:
            return self.move_tokens(from_account, to, value, caller=caller)
        except OverflowError:
            # No tokens moved, so the allowance is not spent either
            self.allowances.set_allowance(from_account, caller, allowance)
            raise

    def move_tokens(self, from_account: AccountId, to: AccountId, value: int,
                    caller: Optional[AccountId] = None) -> bool:
        """
        Debit from_account and credit to, emitting one Transfer on success

        Raises:
            OverflowError: If crediting would exceed the balance width; the
                debit is reverted first so the supply stays conserved
        """
        caller = caller or from_account
        if not self.ledger.debit(from_account, value):
            self._log_rejected("transfer", caller, from_account, to, value,
                               reason="insufficient_balance")
            return False

        try:
            self.ledger.credit(to, value)
        except OverflowError:
            self.ledger.credit(from_account, value)
            log_action(
                self.logger, "error", "Balance overflow on credit",
                caller=caller.to_hex(), action="transfer",
                extra={"from": from_account.to_hex(), "to": to.to_hex(), "value": value}
            )
            raise

        self.event_sink.emit(Transfer(from_account=from_account, to_account=to, value=value))

        log_action(
            self.logger, "info", "Tokens transferred",
            caller=caller.to_hex(), action="transfer",
            extra={"from": from_account.to_hex(), "to": to.to_hex(), "value": value}
        )
        return True

    def _log_rejected(self, action: str, caller: AccountId, from_account: AccountId,
                      to: AccountId, value: int, reason: str, **details) -> None:
        log_action(
            self.logger, "info", f"{action} rejected: {reason}",
            caller=caller.to_hex(), action=action,
            extra={"from": from_account.to_hex(), "to": to.to_hex(), "value": value,
                   "reason": reason, **details}
        )
