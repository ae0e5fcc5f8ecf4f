"""
Tests for the state document store.

Covers:
- Load before any sync
- Last-write-wins replacement
- One document per owner
- Combined payload and timestamp reads
- Rejection of NaN and Infinity
"""
import pytest
from sqlalchemy import text

from statesync.errors import NotFoundError, ValidationError


class TestStateStore:
    """Test load/sync semantics."""

    def test_load_before_sync_not_found(self, state_store):
        with pytest.raises(NotFoundError):
            state_store.load("owner-1")

    def test_sync_then_load(self, state_store):
        state_store.sync("owner-1", {"x": 1})

        assert state_store.load("owner-1") == {"x": 1}

    def test_last_write_wins_without_merge(self, state_store):
        state_store.sync("owner-1", {"a": 1, "b": {"c": 2}})
        state_store.sync("owner-1", {"b": 3})

        assert state_store.load("owner-1") == {"b": 3}

    def test_single_document_per_owner(self, state_store, database):
        for i in range(5):
            state_store.sync("owner-1", {"n": i})

        with database.get_session() as session:
            count = session.execute(
                text("SELECT COUNT(*) FROM state_documents WHERE owner_correlation_id = 'owner-1'")
            ).scalar()
        assert count == 1
        assert state_store.load("owner-1") == {"n": 4}

    def test_owners_are_isolated(self, state_store):
        state_store.sync("owner-1", {"who": 1})
        state_store.sync("owner-2", {"who": 2})

        assert state_store.load("owner-1") == {"who": 1}
        assert state_store.load("owner-2") == {"who": 2}

    @pytest.mark.parametrize("payload", [[1, 2, 3], "text", 42, False, {"nested": [{"a": None}]}])
    def test_payload_is_opaque(self, state_store, payload):
        state_store.sync("owner-1", payload)

        assert state_store.load("owner-1") == payload

    def test_last_updated_refreshes(self, state_store):
        assert state_store.last_updated("owner-1") is None

        first = state_store.sync("owner-1", {"v": 1})
        second = state_store.sync("owner-1", {"v": 2})

        assert second >= first
        assert state_store.last_updated("owner-1") is not None

    def test_load_document_pairs_payload_and_timestamp(self, state_store):
        synced_at = state_store.sync("owner-1", {"v": 1})

        payload, last_updated = state_store.load_document("owner-1")

        assert payload == {"v": 1}
        assert last_updated is not None
        assert state_store.last_updated("owner-1") == last_updated
        assert synced_at is not None

    def test_load_document_before_sync(self, state_store):
        with pytest.raises(NotFoundError):
            state_store.load_document("owner-1")

    @pytest.mark.parametrize("payload", [
        {"x": float("nan")},
        [float("inf")],
        {"nested": {"y": float("-inf")}},
    ])
    def test_non_finite_numbers_rejected(self, state_store, payload):
        with pytest.raises(ValidationError):
            state_store.sync("owner-1", payload)

        with pytest.raises(NotFoundError):
            state_store.load("owner-1")
