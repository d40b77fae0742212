"""
Ledger Host Module

Serialized front door for a TransferEngine. The engine itself takes no locks
and assumes one call at a time; LedgerHost admits callers one at a time behind
a re-entrant lock so the engine can be shared by threads, and each call
finishes (events included) before the next one starts.
"""

import threading
from typing import Optional

from .accounts import AccountId
from .allowances import AllowanceRegistry
from .audit import AuditEventSink
from .balance import max_balance
from .config import TokenLedgerConfig, get_config
from .events import EventSink, CompositeEventSink, NullEventSink
from .ledger import Ledger
from .logging_config import get_logger, log_action, setup_logging
from .storage import InMemoryStorage, StorageInterface
from .transfers import TransferEngine


class LedgerHost:
    """Dispatches calls into one TransferEngine, one call at a time"""

    def __init__(self, engine: TransferEngine, audit_sink: Optional[AuditEventSink] = None):
        self.engine = engine
        self.audit_sink = audit_sink
        self._lock = threading.RLock()
        self.logger = get_logger("token_ledger.host")

    @classmethod
    def deploy(
        cls,
        issuer: AccountId,
        initial_supply: int,
        event_sink: Optional[EventSink] = None,
        config: Optional[TokenLedgerConfig] = None,
        audit_storage: Optional[StorageInterface] = None,
        configure_logging: bool = False
    ) -> 'LedgerHost':
        """
        Build a ledger, issue the full supply to issuer and return its host

        Args:
            issuer: Account credited with the whole supply
            initial_supply: Total supply to issue
            event_sink: Observer for emitted events (optional)
            config: Configuration, defaults to the global configuration
            audit_storage: Backend for the audit trail when auditing is enabled
            configure_logging: Install the configured log level and format on
                the token_ledger logger before deploying

        Returns:
            LedgerHost wrapping the issued ledger
        """
        config = config or get_config()
        if configure_logging:
            setup_logging(config.log_level, log_format=config.log_format)
        limit = max_balance(config.balance_bits)

        sink = CompositeEventSink()
        if event_sink is not None:
            sink.add(event_sink)

        audit_sink = None
        if config.enable_audit_logging:
            audit_sink = AuditEventSink(audit_storage or InMemoryStorage(), config.audit_table)
            sink.add(audit_sink)

        engine = TransferEngine(
            ledger=Ledger(max_balance=limit),
            allowances=AllowanceRegistry(max_balance=limit),
            event_sink=sink if sink.sinks else NullEventSink(),
            allowance_policy=config.allowance_policy
        )
        host = cls(engine, audit_sink=audit_sink)
        host.issue(issuer, initial_supply)

        log_action(
            host.logger, "info", "Ledger deployed",
            caller=issuer.to_hex(), action="deploy",
            extra={
                "initial_supply": initial_supply,
                "balance_bits": config.balance_bits,
                "allowance_policy": config.allowance_policy,
                "audit": audit_sink is not None
            }
        )
        return host

    def issue(self, issuer: AccountId, initial_amount: int) -> None:
        with self._lock:
            self.engine.issue(issuer, initial_amount)

    def total_supply(self) -> int:
        with self._lock:
            return self.engine.total_supply()

    def balance_of(self, owner: AccountId) -> int:
        with self._lock:
            return self.engine.balance_of(owner)

    def allowance(self, owner: AccountId, spender: AccountId) -> int:
        with self._lock:
            return self.engine.allowance(owner, spender)

    def transfer(self, caller: AccountId, to: AccountId, value: int) -> bool:
        with self._lock:
            return self.engine.transfer(caller, to, value)

    def approve(self, caller: AccountId, spender: AccountId, value: int) -> bool:
        with self._lock:
            return self.engine.approve(caller, spender, value)

    def transfer_from(self, caller: AccountId, from_account: AccountId,
                      to: AccountId, value: int) -> bool:
        with self._lock:
            return self.engine.transfer_from(caller, from_account, to, value)

    def as_caller(self, caller: AccountId) -> 'CallerSession':
        """Bind a caller identity for a sequence of calls"""
        return CallerSession(self, caller)


class CallerSession:
    """
    Host calls made on behalf of one account
    The bound identity is passed explicitly on every call
    """

    def __init__(self, host: LedgerHost, caller: AccountId):
        self.host = host
        self.caller = caller

    def total_supply(self) -> int:
        return self.host.total_supply()

    def balance_of(self, owner: AccountId) -> int:
        return self.host.balance_of(owner)

    def allowance(self, owner: AccountId, spender: AccountId) -> int:
        return self.host.allowance(owner, spender)

    def transfer(self, to: AccountId, value: int) -> bool:
        return self.host.transfer(self.caller, to, value)

    def approve(self, spender: AccountId, value: int) -> bool:
        return self.host.approve(self.caller, spender, value)

    def transfer_from(self, from_account: AccountId, to: AccountId, value: int) -> bool:
        return self.host.transfer_from(self.caller, from_account, to, value)
