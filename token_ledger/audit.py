"""
Audit Trail Module

Hash-chained immutable log of ledger events with SHA-256 for tamper detection.
AuditEventSink plugs into the transfer engine like any other EventSink and
records every Transfer and Approval it receives.
"""

import hashlib
import json
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from .accounts import AccountId
from .events import EventSink, LedgerEvent, TokenEvent, event_from_dict
from .logging_config import get_logger
from .storage import StorageInterface, StorageRecord


@dataclass
class AuditRecord(StorageRecord):
    """
    One recorded ledger event, chained to its predecessor by hash
    """
    sequence: int
    event_type: TokenEvent
    payload: Dict[str, Any]  # LedgerEvent.to_dict()
    accounts: List[str]      # Hex ids touched by the event, for lookups
    previous_hash: str
    current_hash: str

    def calculate_hash(self) -> str:
        """
        Calculate SHA-256 hash of this record
        Hash covers all fields except current_hash
        """
        hash_data = {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'sequence': self.sequence,
            'event_type': self.event_type.value,
            'payload': self.payload,
            'previous_hash': self.previous_hash
        }

        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        return self.current_hash == self.calculate_hash()

    def to_event(self) -> LedgerEvent:
        return event_from_dict(self.payload)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['event_type'] = self.event_type.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditRecord':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            sequence=data['sequence'],
            event_type=TokenEvent(data['event_type']),
            payload=data['payload'],
            accounts=data['accounts'],
            previous_hash=data['previous_hash'],
            current_hash=data['current_hash']
        )


def _accounts_of(event: LedgerEvent) -> List[str]:
    if event.event_type == TokenEvent.TRANSFER:
        candidates = [event.from_account, event.to_account]
    else:
        candidates = [event.owner, event.spender]
    return sorted({a.to_hex() for a in candidates if a is not None})


class AuditEventSink(EventSink):
    """
    Hash-chained audit trail of emitted ledger events
    """

    def __init__(self, storage: StorageInterface, table_name: str = "ledger_events"):
        self.storage = storage
        self.table_name = table_name
        self.logger = get_logger("token_ledger.audit")
        self._last_hash: str = ""
        self._sequence = 0
        self._lock = threading.Lock()
        self._load_chain_head()

    def _load_chain_head(self) -> None:
        """Resume the chain from records already in storage"""
        records = self._load_records()
        if records:
            self._last_hash = records[-1].current_hash
            self._sequence = records[-1].sequence

    def emit(self, event: LedgerEvent) -> None:
        self.log_event(event)

    def log_event(self, event: LedgerEvent) -> AuditRecord:
        """
        Append an event to the chain

        Args:
            event: Transfer or Approval emitted by the engine

        Returns:
            Stored AuditRecord
        """
        with self._lock:
            self._sequence += 1
            record = AuditRecord(
                id=str(uuid.uuid4()),
                created_at=datetime.now(timezone.utc),
                sequence=self._sequence,
                event_type=event.event_type,
                payload=event.to_dict(),
                accounts=_accounts_of(event),
                previous_hash=self._last_hash,
                current_hash=""  # Calculated below
            )
            record.current_hash = record.calculate_hash()

            self.storage.save(self.table_name, record.id, record.to_dict())
            self._last_hash = record.current_hash

            self.logger.debug(f"Audited {event.event_type.value} #{record.sequence}")
            return record

    def get_all_events(self, limit: Optional[int] = None) -> List[AuditRecord]:
        """All audit records in chain order, optionally only the most recent N"""
        records = self._load_records()
        if limit:
            records = records[-limit:]
        return records

    def get_event_by_id(self, record_id: str) -> Optional[AuditRecord]:
        """Get a specific audit record by ID"""
        data = self.storage.load(self.table_name, record_id)
        if data:
            return AuditRecord.from_dict(data)
        return None

    def get_events_for_account(self, account: AccountId) -> List[AuditRecord]:
        """Records for every event that touched an account"""
        account_hex = account.to_hex()
        return [r for r in self._load_records() if account_hex in r.accounts]

    def get_events_by_type(self, event_type: TokenEvent) -> List[AuditRecord]:
        records = self.storage.find(self.table_name, {'event_type': event_type.value})
        return sorted((AuditRecord.from_dict(data) for data in records), key=lambda r: r.sequence)

    def count_events(self) -> int:
        return self.storage.count(self.table_name)

    def get_latest_hash(self) -> str:
        return self._last_hash

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Verify the integrity of the entire audit chain

        Returns:
            Dictionary with integrity check results
        """
        result = {
            'valid': True,
            'total_events': 0,
            'hash_errors': [],
            'chain_breaks': []
        }

        records = self._load_records()
        result['total_events'] = len(records)

        previous_hash = ""
        for i, record in enumerate(records):
            if not record.verify_hash():
                result['valid'] = False
                result['hash_errors'].append({
                    'record_id': record.id,
                    'position': i,
                    'expected_hash': record.calculate_hash(),
                    'actual_hash': record.current_hash
                })
            if record.previous_hash != previous_hash:
                result['valid'] = False
                result['chain_breaks'].append({
                    'record_id': record.id,
                    'position': i,
                    'expected_previous_hash': previous_hash,
                    'actual_previous_hash': record.previous_hash
                })
            previous_hash = record.current_hash

        if not result['valid']:
            self.logger.warning(
                f"Audit chain integrity check failed: {len(result['hash_errors'])} hash errors, "
                f"{len(result['chain_breaks'])} chain breaks"
            )
        return result

    def _load_records(self) -> List[AuditRecord]:
        records = [AuditRecord.from_dict(data) for data in self.storage.load_all(self.table_name)]
        records.sort(key=lambda r: r.sequence)
        return records
