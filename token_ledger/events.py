"""
Event System Module

Ledger notifications and the observers that receive them. The transfer engine
emits immutable Transfer/Approval records to an injected EventSink; sinks
either record them, forward them to subscribers, or chain them into an audit
trail.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, List, Any, Optional, Union
from dataclasses import dataclass
import logging
from threading import RLock

from .accounts import AccountId


class TokenEvent(Enum):
    """Kinds of ledger notifications"""
    TRANSFER = "transfer"
    APPROVAL = "approval"


def _hex_or_none(account: Optional[AccountId]) -> Optional[str]:
    return account.to_hex() if account is not None else None


@dataclass(frozen=True)
class Transfer:
    """
    Tokens moved between accounts
    from_account is None only for the issuance event
    """
    from_account: Optional[AccountId]
    to_account: Optional[AccountId]
    value: int

    @property
    def event_type(self) -> TokenEvent:
        return TokenEvent.TRANSFER

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type.value,
            'from': _hex_or_none(self.from_account),
            'to': _hex_or_none(self.to_account),
            'value': self.value
        }


@dataclass(frozen=True)
class Approval:
    """An owner set the amount a spender may move on its behalf"""
    owner: AccountId
    spender: AccountId
    value: int

    @property
    def event_type(self) -> TokenEvent:
        return TokenEvent.APPROVAL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type.value,
            'owner': self.owner.to_hex(),
            'spender': self.spender.to_hex(),
            'value': self.value
        }


LedgerEvent = Union[Transfer, Approval]


def event_from_dict(data: Dict[str, Any]) -> LedgerEvent:
    """Rebuild an event from its to_dict() form"""
    event_type = TokenEvent(data['event_type'])
    if event_type == TokenEvent.TRANSFER:
        return Transfer(
            from_account=AccountId.from_hex(data['from']) if data.get('from') else None,
            to_account=AccountId.from_hex(data['to']) if data.get('to') else None,
            value=data['value']
        )
    return Approval(
        owner=AccountId.from_hex(data['owner']),
        spender=AccountId.from_hex(data['spender']),
        value=data['value']
    )


class EventSink(ABC):
    """Observer notified of every balance- or allowance-changing operation"""

    @abstractmethod
    def emit(self, event: LedgerEvent) -> None:
        """Deliver one event"""
        pass


class NullEventSink(EventSink):
    """Discards events"""

    def emit(self, event: LedgerEvent) -> None:
        pass


class RecordingEventSink(EventSink):
    """Accumulates emitted events in order"""

    def __init__(self):
        self.events: List[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def count(self, event_type: Optional[TokenEvent] = None) -> int:
        return len(self.of_type(event_type)) if event_type else len(self.events)

    def of_type(self, event_type: TokenEvent) -> List[LedgerEvent]:
        return [e for e in self.events if e.event_type == event_type]

    @property
    def last(self) -> Optional[LedgerEvent]:
        return self.events[-1] if self.events else None

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)


class CompositeEventSink(EventSink):
    """Fans each event out to several sinks, in registration order"""

    def __init__(self, *sinks: EventSink):
        self.sinks: List[EventSink] = list(sinks)

    def add(self, sink: EventSink) -> None:
        self.sinks.append(sink)

    def emit(self, event: LedgerEvent) -> None:
        for sink in self.sinks:
            sink.emit(event)


class EventDispatcher(EventSink):
    """Publish/subscribe sink; handler failures are logged, never raised"""

    def __init__(self):
        self._handlers: Dict[TokenEvent, List[Callable]] = {}
        self._global_handlers: List[Callable] = []  # catch-all handlers
        self._lock = RLock()
        self.logger = logging.getLogger("token_ledger.events")

    def subscribe(self, event_type: TokenEvent, handler: Callable) -> None:
        """Subscribe to a specific event type"""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self.logger.debug(f"Subscribed handler {_handler_name(handler)} to {event_type.value}")

    def subscribe_all(self, handler: Callable) -> None:
        """Subscribe to ALL events"""
        with self._lock:
            self._global_handlers.append(handler)
            self.logger.debug(f"Subscribed global handler {_handler_name(handler)}")

    def unsubscribe(self, event_type: TokenEvent, handler: Callable) -> None:
        """Unsubscribe from a specific event type"""
        with self._lock:
            try:
                self._handlers.get(event_type, []).remove(handler)
                self.logger.debug(f"Unsubscribed handler {_handler_name(handler)} from {event_type.value}")
            except ValueError:
                self.logger.warning(f"Handler {_handler_name(handler)} was not subscribed to {event_type.value}")

    def unsubscribe_all(self, handler: Callable) -> None:
        """Remove a catch-all handler"""
        with self._lock:
            try:
                self._global_handlers.remove(handler)
                self.logger.debug(f"Unsubscribed global handler {_handler_name(handler)}")
            except ValueError:
                self.logger.warning(f"Global handler {_handler_name(handler)} was not subscribed")

    def emit(self, event: LedgerEvent) -> None:
        self.publish(event)

    def publish(self, event: LedgerEvent) -> None:
        """Publish event to all subscribers"""
        with self._lock:
            self.logger.debug(f"Publishing event {event.event_type.value}")

            handlers = self._handlers.get(event.event_type, []) + self._global_handlers
            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    # The ledger mutation is already committed
                    self.logger.error(
                        f"Error in event handler {_handler_name(handler)} for {event.event_type.value}: {e}"
                    )

    def clear(self) -> None:
        """Clear all handlers"""
        with self._lock:
            self._handlers.clear()
            self._global_handlers.clear()
            self.logger.info("All event handlers cleared")

    def get_handler_count(self, event_type: Optional[TokenEvent] = None) -> int:
        """Get count of handlers for a specific event type or all"""
        with self._lock:
            if event_type:
                return len(self._handlers.get(event_type, []))
            total = sum(len(handlers) for handlers in self._handlers.values())
            return total + len(self._global_handlers)


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__name__", repr(handler))
