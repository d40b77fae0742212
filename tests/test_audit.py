"""
Test suite for audit module

Tests the hash-chained ledger event trail, tamper detection and lookups.
"""

from token_ledger.accounts import AccountId
from token_ledger.audit import AuditEventSink, AuditRecord
from token_ledger.events import Transfer, Approval, TokenEvent
from token_ledger.storage import InMemoryStorage


ALICE = AccountId.from_byte(0x00)
BOB = AccountId.from_byte(0x01)
CHARLIE = AccountId.from_byte(0x02)


class TestAuditEventSink:
    """Test recording and chaining of ledger events"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit = AuditEventSink(self.storage)

    def test_records_are_chained(self):
        """Test that each record points at its predecessor's hash"""
        first = self.audit.log_event(Transfer(None, ALICE, 1234))
        second = self.audit.log_event(Approval(ALICE, BOB, 20))

        assert first.previous_hash == ""
        assert second.previous_hash == first.current_hash
        assert first.sequence == 1
        assert second.sequence == 2
        assert self.audit.get_latest_hash() == second.current_hash
        assert self.audit.count_events() == 2

    def test_emit_records_event(self):
        event = Transfer(ALICE, BOB, 10)
        self.audit.emit(event)

        records = self.audit.get_all_events()
        assert len(records) == 1
        assert records[0].event_type == TokenEvent.TRANSFER
        assert records[0].to_event() == event

    def test_intact_chain_verifies(self):
        self.audit.emit(Transfer(None, ALICE, 1234))
        self.audit.emit(Approval(ALICE, BOB, 20))
        self.audit.emit(Transfer(ALICE, CHARLIE, 10))

        result = self.audit.verify_integrity()
        assert result['valid'] is True
        assert result['total_events'] == 3
        assert result['hash_errors'] == []
        assert result['chain_breaks'] == []

    def test_tampered_payload_detected(self):
        """Test that editing a stored record breaks its hash"""
        record = self.audit.log_event(Transfer(ALICE, BOB, 10))
        self.audit.emit(Transfer(BOB, CHARLIE, 5))

        data = self.storage.load(self.audit.table_name, record.id)
        data['payload']['value'] = 1000
        self.storage.save(self.audit.table_name, record.id, data)

        result = self.audit.verify_integrity()
        assert result['valid'] is False
        assert result['hash_errors'][0]['record_id'] == record.id

    def test_removed_record_breaks_chain(self):
        first = self.audit.log_event(Transfer(None, ALICE, 1234))
        middle = self.audit.log_event(Transfer(ALICE, BOB, 10))
        self.audit.emit(Transfer(BOB, CHARLIE, 5))

        # Replay every record except the middle one into a fresh backend
        pruned = InMemoryStorage()
        for data in self.storage.load_all(self.audit.table_name):
            if data["id"] != middle.id:
                pruned.save(self.audit.table_name, data["id"], data)

        result = AuditEventSink(pruned).verify_integrity()
        assert result['valid'] is False
        assert len(result['chain_breaks']) == 1
        assert result['chain_breaks'][0]['expected_previous_hash'] == first.current_hash

    def test_event_by_id(self):
        record = self.audit.log_event(Approval(ALICE, BOB, 20))

        loaded = self.audit.get_event_by_id(record.id)
        assert loaded.current_hash == record.current_hash
        assert loaded.to_event() == Approval(ALICE, BOB, 20)
        assert self.audit.get_event_by_id("missing") is None

    def test_events_for_account(self):
        self.audit.emit(Transfer(None, ALICE, 1234))
        self.audit.emit(Approval(ALICE, BOB, 20))
        self.audit.emit(Transfer(ALICE, CHARLIE, 10))

        assert len(self.audit.get_events_for_account(ALICE)) == 3
        assert len(self.audit.get_events_for_account(BOB)) == 1
        assert len(self.audit.get_events_for_account(CHARLIE)) == 1

    def test_events_by_type(self):
        self.audit.emit(Transfer(None, ALICE, 1234))
        self.audit.emit(Approval(ALICE, BOB, 20))
        self.audit.emit(Approval(ALICE, BOB, 5))

        approvals = self.audit.get_events_by_type(TokenEvent.APPROVAL)
        assert [r.payload['value'] for r in approvals] == [20, 5]

    def test_chain_resumes_from_storage(self):
        """Test that a new sink over the same storage continues the chain"""
        last = self.audit.log_event(Transfer(None, ALICE, 1234))

        resumed = AuditEventSink(self.storage)
        record = resumed.log_event(Transfer(ALICE, BOB, 1))
        assert record.previous_hash == last.current_hash
        assert record.sequence == 2
        assert resumed.verify_integrity()['valid'] is True

    def test_record_dict_round_trip(self):
        record = self.audit.log_event(Approval(ALICE, BOB, 20))
        restored = AuditRecord.from_dict(record.to_dict())
        assert restored == record
        assert restored.verify_hash()
