"""
Unit tests for the retrieval facade.

Tests cover:
- Classification of keys and values
- Ordering and pagination through the facade
- Error wrapping per failure kind
- Independence of successive calls
"""

import asyncio

import msgspec
import pytest

from kvexplorer_core.errors import (
    CommitFailedError,
    ConnectionFailedError,
    RetrievalError,
    RetrievalErrorKind,
    ScanFailedError,
)
from kvexplorer_core.facade import KeyValuePair, RetrievalFacade
from kvexplorer_core.store.base import StoreConnectionError, StoreError
from kvexplorer_core.store.memory import InMemoryStore, TxnStatus
from kvexplorer_core.values import (
    PlainText,
    RawBytes,
    StructuredBinary,
    StructuredJson,
)


class TestGetAllPairs:
    """Tests for RetrievalFacade.get_all_pairs()."""

    @pytest.fixture
    def store(self):
        """Store holding one value of every kind."""
        return InMemoryStore(
            {
                b"user:1": b'{"name": "alice"}',
                b"user:2": b"plain greeting",
                b"user:3": msgspec.msgpack.encode({"score": 7}),
                b"\xff\xfe\x00\x01": b"\xff\xfe\x00\x01",
            }
        )

    @pytest.mark.asyncio
    async def test_classifies_keys_and_values(self, store):
        """Every key and value is classified."""
        facade = RetrievalFacade(store)

        pairs = await facade.get_all_pairs()

        assert pairs == [
            KeyValuePair(PlainText("user:1"), StructuredJson({"name": "alice"})),
            KeyValuePair(PlainText("user:2"), PlainText("plain greeting")),
            KeyValuePair(PlainText("user:3"), StructuredBinary({"score": 7})),
            KeyValuePair(RawBytes(b"\xff\xfe\x00\x01"), RawBytes(b"\xff\xfe\x00\x01")),
        ]

    @pytest.mark.asyncio
    async def test_key_and_value_classified_independently(self):
        """A JSON key does not make its text value JSON."""
        store = InMemoryStore({b"42": b"not json"})

        [pair] = await RetrievalFacade(store).get_all_pairs()

        assert pair.key == StructuredJson(42)
        assert pair.value == PlainText("not json")

    @pytest.mark.asyncio
    async def test_paginates_whole_keyspace(self):
        """Small batch limits still return everything in order."""
        store = InMemoryStore({f"k{i}".encode(): b"v" for i in range(5)})

        pairs = await RetrievalFacade(store, batch_limit=2).get_all_pairs()

        assert [pair.key for pair in pairs] == [PlainText(f"k{i}") for i in range(5)]
        assert store.transactions[0].scan_calls[-1][1] == 2

    @pytest.mark.asyncio
    async def test_pair_to_dict(self, store):
        """Pairs serialize both halves."""
        pairs = await RetrievalFacade(store).get_all_pairs()

        data = pairs[0].to_dict()

        assert data["key"]["badge"] == "String"
        assert data["value"]["data"] == {"name": "alice"}

    @pytest.mark.asyncio
    async def test_custom_classifier(self):
        """The classifier can be substituted."""
        store = InMemoryStore({b"a": b"b"})
        facade = RetrievalFacade(store, classifier=RawBytes)

        pairs = await facade.get_all_pairs()

        assert pairs == [KeyValuePair(RawBytes(b"a"), RawBytes(b"b"))]

    def test_rejects_non_positive_limit(self):
        """The batch limit must be positive."""
        with pytest.raises(ValueError):
            RetrievalFacade(InMemoryStore(), batch_limit=-1)


class TestSnapshots:
    """Tests for call independence."""

    @pytest.mark.asyncio
    async def test_each_call_reads_a_new_snapshot(self):
        """No caching between calls."""
        store = InMemoryStore({b"a": b"1"})
        facade = RetrievalFacade(store)

        first = await facade.get_all_pairs()
        store.put(b"b", b"2")
        second = await facade.get_all_pairs()

        assert len(first) == 1
        assert len(second) == 2
        assert len(store.transactions) == 2
        assert store.commits == 2

    @pytest.mark.asyncio
    async def test_concurrent_calls_use_separate_transactions(self):
        """Concurrent retrievals never share a transaction."""
        store = InMemoryStore({f"k{i}".encode(): b"v" for i in range(7)})
        facade = RetrievalFacade(store, batch_limit=3)

        first, second = await asyncio.gather(facade.get_all_pairs(), facade.get_all_pairs())

        assert first == second
        assert len(first) == 7
        assert len(store.transactions) == 2
        assert store.transactions[0] is not store.transactions[1]


class TestErrors:
    """Tests for error wrapping."""

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        """Connection failures keep their kind."""
        store = InMemoryStore({b"a": b"1"})
        store.failures.connect = StoreConnectionError("unreachable")

        with pytest.raises(RetrievalError) as exc_info:
            await RetrievalFacade(store).get_all_pairs()

        error = exc_info.value
        assert error.kind is RetrievalErrorKind.CONNECTION_FAILED
        assert error.code == "CONNECTION_FAILED"
        assert isinstance(error.__cause__, ConnectionFailedError)

    @pytest.mark.asyncio
    async def test_scan_failure_returns_no_partial_data(self):
        """A failure after successful batches raises instead of returning them."""
        store = InMemoryStore({f"k{i}".encode(): b"v" for i in range(5)})
        store.failures.scan_on_call = 3
        facade = RetrievalFacade(store, batch_limit=2)

        with pytest.raises(RetrievalError) as exc_info:
            await facade.get_all_pairs()

        error = exc_info.value
        assert error.kind is RetrievalErrorKind.SCAN_FAILED
        assert isinstance(error.__cause__, ScanFailedError)
        assert error.details["batches_completed"] == 2
        assert store.commits == 0

    @pytest.mark.asyncio
    async def test_unexpected_backend_error_is_wrapped(self):
        """A backend exception outside StoreError is still a RetrievalError."""
        store = InMemoryStore({f"k{i}".encode(): b"v" for i in range(5)})
        store.failures.scan_on_call = 2
        store.failures.scan = TimeoutError("batch timed out")

        with pytest.raises(RetrievalError) as exc_info:
            await RetrievalFacade(store, batch_limit=2).get_all_pairs()

        assert exc_info.value.kind is RetrievalErrorKind.SCAN_FAILED
        assert store.rollbacks == 1
        assert store.transactions[0].status is TxnStatus.ROLLED_BACK

    @pytest.mark.asyncio
    async def test_commit_failure(self):
        """Commit failures are reported as their own kind."""
        store = InMemoryStore({b"a": b"1"})
        store.failures.commit = StoreError("write conflict")

        with pytest.raises(RetrievalError) as exc_info:
            await RetrievalFacade(store).get_all_pairs()

        assert exc_info.value.kind is RetrievalErrorKind.COMMIT_FAILED
        assert isinstance(exc_info.value.__cause__, CommitFailedError)

    @pytest.mark.asyncio
    async def test_rollback_failure_attached(self):
        """The rollback failure rides along with the scan error."""
        store = InMemoryStore({b"a": b"1"})
        store.failures.scan_on_call = 1
        store.failures.rollback = StoreError("rollback lost")

        with pytest.raises(RetrievalError) as exc_info:
            await RetrievalFacade(store).get_all_pairs()

        error = exc_info.value
        assert error.kind is RetrievalErrorKind.SCAN_FAILED
        assert error.rollback_error is not None
        assert "rollback also failed" in error.description
