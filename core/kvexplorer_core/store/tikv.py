"""
TiKV transactional store implementation.

This module wraps the `tikv-client` async TransactionClient so the
scanner can read a TiKV cluster through the TransactionalStore protocol.

Invariants:
    - Transactions are optimistic (no pessimistic locks on reads)
    - Every client exception is re-raised as a StoreError subclass
    - The client is created once per store and reused across scans

How to change safely:
    - Test against a real PD + TiKV cluster before deploying
    - Keep scans read-only; the explorer never writes
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List

from .base import (
    RawPair,
    StoreConnectionError,
    StoreError,
)

logger = logging.getLogger(__name__)

# Try to import tikv-client, provide helpful message if not installed
try:
    from tikv_client.asynchronous import TransactionClient

    TIKV_AVAILABLE = True
except ImportError:
    TIKV_AVAILABLE = False
    TransactionClient = None


class TikvTransaction:
    """StoreTransaction backed by a tikv-client optimistic transaction."""

    def __init__(self, txn: Any) -> None:
        self._txn = txn

    async def scan(self, start: bytes, limit: int) -> List[RawPair]:
        """Scan from `start` (inclusive) to the end of the keyspace."""
        try:
            pairs = await self._txn.scan(
                start,
                end=None,
                limit=limit,
                include_start=True,
                include_end=False,
            )
        except Exception as e:
            raise StoreError(f"Failed to scan keys: {e}") from e
        return [(bytes(key), bytes(value)) for key, value in pairs]

    async def commit(self) -> None:
        """Commit the transaction."""
        try:
            await self._txn.commit()
        except Exception as e:
            raise StoreError(f"Failed to commit transaction: {e}") from e

    async def rollback(self) -> None:
        """Roll back the transaction.

        Older tikv-client releases have no explicit rollback; an
        optimistic transaction that is dropped uncommitted is discarded.
        """
        rollback = getattr(self._txn, "rollback", None)
        if rollback is None:
            logger.debug("tikv-client has no rollback(), dropping transaction")
            self._txn = None
            return
        try:
            await rollback()
        except Exception as e:
            raise StoreError(f"Failed to rollback transaction: {e}") from e


class TikvStore:
    """TiKV implementation of TransactionalStore.

    Attributes:
        config: Store configuration (PD endpoints)

    Example:
        >>> config = StoreConfig(pd_endpoints=("127.0.0.1:2379",))
        >>> store = TikvStore(config)
        >>> await store.connect()
        >>> txn = await store.begin_optimistic()
    """

    def __init__(self, config: Any) -> None:
        """Initialize TiKV store.

        Args:
            config: StoreConfig instance with PD endpoints

        Raises:
            ImportError: If tikv-client is not installed
        """
        if not TIKV_AVAILABLE:
            raise ImportError(
                "tikv-client is required for the TiKV backend. "
                "Install with: pip install 'kvexplorer[tikv]'"
            )

        self.config = config
        self._client: Any = None
        self._connect_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Whether a client has been created."""
        return self._client is not None

    async def connect(self) -> None:
        """Create the transaction client.

        Raises:
            StoreConnectionError: If the PD endpoints cannot be reached
        """
        async with self._connect_lock:
            if self._client is not None:
                return

            endpoints = list(self.config.pd_endpoints)
            try:
                self._client = await TransactionClient.connect(endpoints)
            except Exception as e:
                self._client = None
                raise StoreConnectionError(f"Failed to create tikv client: {e}") from e

            logger.info("Connected to TiKV", extra={"pd_endpoints": endpoints})

    async def close(self) -> None:
        """Drop the client; tikv-client releases its channels on drop."""
        self._client = None
        logger.info("TiKV client closed")

    async def begin_optimistic(self) -> TikvTransaction:
        """Open an optimistic transaction."""
        if self._client is None:
            raise StoreConnectionError("Not connected")
        try:
            txn = await self._client.begin(pessimistic=False)
        except Exception as e:
            raise StoreError(f"Failed to start optimistic transaction: {e}") from e
        return TikvTransaction(txn)
