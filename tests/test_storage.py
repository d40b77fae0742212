"""
Tests for the in-memory storage backend
"""

from token_ledger.storage import InMemoryStorage


class TestInMemoryStorage:
    """Test basic record operations"""

    def test_basic_operations(self):
        """Test save, load, find and count"""
        storage = InMemoryStorage()

        storage.save("records", "r1", {"id": "r1", "kind": "transfer", "value": 10})
        storage.save("records", "r2", {"id": "r2", "kind": "approval", "value": 20})

        assert storage.load("records", "r1") == {"id": "r1", "kind": "transfer", "value": 10}
        assert storage.load("records", "missing") is None
        assert [r["id"] for r in storage.load_all("records")] == ["r1", "r2"]
        assert storage.find("records", {"kind": "approval"}) == [
            {"id": "r2", "kind": "approval", "value": 20}
        ]
        assert storage.count("records") == 2


    def test_returned_records_are_copies(self):
        """Test that callers cannot mutate stored data through returned dicts"""
        storage = InMemoryStorage()
        data = {"id": "r1", "nested": {"value": 1}}
        storage.save("records", "r1", data)

        data["nested"]["value"] = 2
        loaded = storage.load("records", "r1")
        assert loaded["nested"]["value"] == 1

        loaded["nested"]["value"] = 3
        assert storage.load("records", "r1")["nested"]["value"] == 1

    def test_unknown_table_is_empty(self):
        storage = InMemoryStorage()
        assert storage.load_all("nothing") == []
        assert storage.find("nothing", {"id": "x"}) == []
        assert storage.count("nothing") == 0
