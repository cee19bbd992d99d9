"""
Transactional full-keyspace scanner.

The scanner reads every key/value pair of the store inside one optimistic
snapshot transaction. The store caps the number of pairs per scan call, so
the keyspace is read in batches, each starting just past the last key of
the previous one.

State machine:

    IDLE -> TRANSACTION_OPEN -> SCANNING -+-> COMMITTING -> DONE
                                          |
                                          +-> ROLLING_BACK -> FAILED

Failing to open the transaction or to commit also ends in FAILED.

Invariants:
    - Batch N+1 is requested only after batch N has been accumulated
    - A transaction whose full range was not read is never committed
    - A failed scan never returns partial data, whatever the backend raised
    - A rollback failure is attached to the scan error, never raised instead
    - A scanner performs exactly one scan_all() and is then spent

How to change safely:
    - Keep every state transition in _transition() so the log shows them
    - Test new failure paths with InMemoryStore.failures
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from .config import DEFAULT_BATCH_LIMIT
from .errors import (
    CommitFailedError,
    ConnectionFailedError,
    RollbackFailedError,
    ScanFailedError,
)
from .store.base import (
    LOWEST_KEY,
    RawPair,
    StoreTransaction,
    TransactionalStore,
    next_key,
)

logger = logging.getLogger(__name__)


class ScanState(Enum):
    """Lifecycle of a TransactionalScanner."""

    IDLE = "idle"
    TRANSACTION_OPEN = "transaction_open"
    SCANNING = "scanning"
    COMMITTING = "committing"
    DONE = "done"
    ROLLING_BACK = "rolling_back"
    FAILED = "failed"


_TRANSITIONS = {
    ScanState.IDLE: {ScanState.TRANSACTION_OPEN, ScanState.FAILED},
    ScanState.TRANSACTION_OPEN: {ScanState.SCANNING},
    ScanState.SCANNING: {ScanState.COMMITTING, ScanState.ROLLING_BACK},
    ScanState.COMMITTING: {ScanState.DONE, ScanState.FAILED},
    ScanState.ROLLING_BACK: {ScanState.FAILED},
    ScanState.DONE: set(),
    ScanState.FAILED: set(),
}


@dataclass
class ScanResult:
    """Snapshot of the whole keyspace at one read timestamp.

    Attributes:
        pairs: Raw (key, value) pairs in ascending key order
        batch_count: Number of scan round trips it took
    """

    pairs: List[RawPair] = field(default_factory=list)
    batch_count: int = 0

    def __iter__(self) -> Iterator[RawPair]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)


class TransactionalScanner:
    """Reads the entire keyspace in one optimistic transaction.

    The scanner owns its transaction handle exclusively. It is single-use:
    create a new scanner for every retrieval.

    Attributes:
        store: Connected (or connectable) store client
        batch_limit: Maximum pairs requested per scan call
        state: Current ScanState

    Example:
        >>> scanner = TransactionalScanner(store, batch_limit=1000)
        >>> result = await scanner.scan_all()
        >>> len(result)
        5
    """

    def __init__(
        self,
        store: TransactionalStore,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
    ) -> None:
        if batch_limit <= 0:
            raise ValueError(f"batch_limit must be positive, got {batch_limit}")

        self.store = store
        self.batch_limit = batch_limit
        self.state = ScanState.IDLE
        self._batches_completed = 0

    @property
    def batches_completed(self) -> int:
        """Scan batches read successfully so far."""
        return self._batches_completed

    def _transition(self, new_state: ScanState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid scanner transition {self.state.value} -> {new_state.value}")
        logger.debug(
            "Scanner state change",
            extra={"from_state": self.state.value, "to_state": new_state.value},
        )
        self.state = new_state

    async def scan_all(self) -> ScanResult:
        """Read every key/value pair.

        Returns:
            ScanResult with all pairs in ascending key order

        Raises:
            ConnectionFailedError: If the transaction cannot be opened
            ScanFailedError: If any batch fails (after a rollback attempt)
            CommitFailedError: If all batches were read but commit fails
            RuntimeError: If this scanner was already used
        """
        if self.state is not ScanState.IDLE:
            raise RuntimeError("TransactionalScanner is single-use; create a new one per scan")

        txn = await self._open()

        self._transition(ScanState.SCANNING)
        try:
            pairs = await self._scan_batches(txn)
        except Exception as e:
            rollback_error = await self._rollback(txn)
            raise ScanFailedError(
                f"Failed to scan keys: {e}",
                batches_completed=self._batches_completed,
                rollback_error=rollback_error,
            ) from e
        except asyncio.CancelledError:
            logger.info(
                "Scan cancelled, rolling back",
                extra={"batches_completed": self._batches_completed},
            )
            await self._rollback(txn)
            raise

        await self._commit(txn, len(pairs))

        logger.info(
            "Keyspace scan complete",
            extra={"pairs": len(pairs), "batches": self._batches_completed},
        )
        return ScanResult(pairs=pairs, batch_count=self._batches_completed)

    async def _open(self) -> StoreTransaction:
        try:
            if not self.store.is_connected:
                await self.store.connect()
            txn = await self.store.begin_optimistic()
        except Exception as e:
            self._transition(ScanState.FAILED)
            endpoints = getattr(getattr(self.store, "config", None), "pd_endpoints", None)
            raise ConnectionFailedError(
                f"Failed to start optimistic transaction: {e}",
                endpoints=list(endpoints) if endpoints else None,
            ) from e

        self._transition(ScanState.TRANSACTION_OPEN)
        logger.debug("Optimistic transaction opened")
        return txn

    async def _scan_batches(self, txn: StoreTransaction) -> List[RawPair]:
        pairs: List[RawPair] = []
        start = LOWEST_KEY
        while True:
            batch = await txn.scan(start, self.batch_limit)
            pairs.extend(batch)
            self._batches_completed += 1

            logger.debug(
                "Scan batch read",
                extra={"batch": self._batches_completed, "size": len(batch)},
            )

            # A short batch means the end of the keyspace was reached.
            if len(batch) < self.batch_limit:
                return pairs
            start = next_key(batch[-1][0])

    async def _commit(self, txn: StoreTransaction, pairs_read: int) -> None:
        self._transition(ScanState.COMMITTING)
        try:
            await txn.commit()
        except Exception as e:
            self._transition(ScanState.FAILED)
            raise CommitFailedError(
                f"Failed to commit transaction: {e}",
                pairs_read=pairs_read,
            ) from e
        self._transition(ScanState.DONE)

    async def _rollback(self, txn: StoreTransaction) -> Optional[RollbackFailedError]:
        """Best-effort rollback; returns the failure instead of raising it."""
        self._transition(ScanState.ROLLING_BACK)
        try:
            await txn.rollback()
        except Exception as e:
            logger.warning(
                "Failed to rollback transaction",
                extra={"error": str(e), "batches_completed": self._batches_completed},
            )
            return RollbackFailedError(f"Failed to rollback transaction: {e}")
        finally:
            self._transition(ScanState.FAILED)

        logger.info(
            "Transaction rolled back",
            extra={"batches_completed": self._batches_completed},
        )
        return None
