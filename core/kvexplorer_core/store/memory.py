"""
In-memory transactional store for testing.

This module provides a simple in-memory store backend for:
- Unit tests
- Integration tests of the console
- Local development without a TiKV cluster

Invariants:
    - All data is lost on process exit
    - Transactions read the snapshot taken when they were opened
    - Scans honour the same ordering and per-call limit as TiKV

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with the TransactionalStore protocol
    - Add failure injection hooks rather than special-casing tests
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple
import logging

from .base import (
    RawPair,
    StoreConnectionError,
    StoreError,
)

logger = logging.getLogger(__name__)


class TxnStatus(Enum):
    """Lifecycle of an in-memory transaction."""

    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class FailurePlan:
    """Failures to inject into the next operations.

    Attributes:
        connect: Exception raised by connect()
        begin: Exception raised by begin_optimistic()
        scan_on_call: Fail the scan call with this 1-based index
        scan: Exception raised by the failing scan call
        commit: Exception raised by commit()
        rollback: Exception raised by rollback()
    """

    connect: Optional[Exception] = None
    begin: Optional[Exception] = None
    scan_on_call: Optional[int] = None
    scan: Optional[Exception] = None
    commit: Optional[Exception] = None
    rollback: Optional[Exception] = None


class InMemoryTransaction:
    """Snapshot transaction over a frozen copy of the store contents."""

    def __init__(self, store: InMemoryStore, snapshot: Dict[bytes, bytes]) -> None:
        self._store = store
        self._keys = sorted(snapshot)
        self._snapshot = snapshot
        self.status = TxnStatus.OPEN
        self.scan_calls: List[Tuple[bytes, int]] = []

    def _ensure_open(self) -> None:
        if self.status is not TxnStatus.OPEN:
            raise StoreError(f"Transaction already {self.status.value}")

    async def scan(self, start: bytes, limit: int) -> List[RawPair]:
        """Return up to `limit` pairs with key >= `start`."""
        self._ensure_open()
        self.scan_calls.append((start, limit))
        self._store.scan_call_count += 1

        failures = self._store.failures
        if failures.scan_on_call == self._store.scan_call_count:
            raise failures.scan or StoreError("Injected scan failure")

        if limit > self._store.max_scan_limit:
            raise StoreError(
                f"Scan limit {limit} exceeds maximum {self._store.max_scan_limit}"
            )

        index = bisect.bisect_left(self._keys, start)
        keys = self._keys[index:index + limit]
        return [(key, self._snapshot[key]) for key in keys]

    async def commit(self) -> None:
        """Commit; read-only so this only closes the transaction."""
        self._ensure_open()
        if self._store.failures.commit is not None:
            raise self._store.failures.commit
        self.status = TxnStatus.COMMITTED
        self._store.commits += 1

    async def rollback(self) -> None:
        """Roll back the transaction."""
        self._ensure_open()
        if self._store.failures.rollback is not None:
            raise self._store.failures.rollback
        self.status = TxnStatus.ROLLED_BACK
        self._store.rollbacks += 1


class InMemoryStore:
    """In-memory implementation of TransactionalStore for testing.

    Attributes:
        max_scan_limit: Largest `limit` a single scan call accepts
        failures: Failure injection plan
        transactions: Every transaction opened, in order

    Example:
        >>> store = InMemoryStore({b"a": b"1", b"b": b"2"})
        >>> await store.connect()
        >>> txn = await store.begin_optimistic()
        >>> await txn.scan(b"", 10)
        [(b'a', b'1'), (b'b', b'2')]
    """

    def __init__(
        self,
        data: Optional[Mapping[bytes, bytes]] = None,
        max_scan_limit: int = 10240,
    ) -> None:
        """Initialize in-memory store.

        Args:
            data: Initial contents
            max_scan_limit: Maximum pairs per scan call
        """
        self._data: Dict[bytes, bytes] = dict(data or {})
        self._connected = False
        self.max_scan_limit = max_scan_limit
        self.failures = FailurePlan()
        self.transactions: List[InMemoryTransaction] = []
        self.scan_call_count = 0
        self.commits = 0
        self.rollbacks = 0

    @property
    def is_connected(self) -> bool:
        """Whether connected (always true after connect())."""
        return self._connected

    async def connect(self) -> None:
        """Connect (no-op for in-memory)."""
        if self.failures.connect is not None:
            raise self.failures.connect
        self._connected = True
        logger.debug("InMemoryStore connected")

    async def close(self) -> None:
        """Disconnect; data is kept so a reconnect sees it again."""
        self._connected = False
        logger.debug("InMemoryStore closed")

    async def begin_optimistic(self) -> InMemoryTransaction:
        """Open a transaction over a snapshot of the current contents."""
        if not self._connected:
            raise StoreConnectionError("Not connected")
        if self.failures.begin is not None:
            raise self.failures.begin

        txn = InMemoryTransaction(self, dict(self._data))
        self.transactions.append(txn)
        return txn

    # Testing helpers

    def put(self, key: bytes, value: bytes) -> None:
        """Store a pair directly (testing helper)."""
        self._data[key] = value

    def load(self, data: Mapping[bytes, bytes]) -> None:
        """Store many pairs directly (testing helper)."""
        self._data.update(data)

    def delete(self, key: bytes) -> None:
        """Remove a key directly (testing helper)."""
        self._data.pop(key, None)

    @property
    def key_count(self) -> int:
        """Number of stored keys (testing helper)."""
        return len(self._data)
