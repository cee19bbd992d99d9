"""
Base protocol and types for the transactional store boundary.

This module defines the TransactionalStore and StoreTransaction protocols
that every backend implements, along with the store-level errors.

Invariants:
    - scan() returns pairs in ascending byte-lexicographic key order
    - scan() never returns more than `limit` pairs
    - A transaction is finished by exactly one commit() or rollback()
    - Backends only raise StoreError (or subclasses) for store failures

How to change safely:
    - Protocol changes require updating all implementations
    - Keep the store read-only from the explorer's point of view
"""

from __future__ import annotations

from abc import abstractmethod
from typing import (
    List,
    Protocol,
    Tuple,
    TYPE_CHECKING,
    runtime_checkable,
)
import logging

if TYPE_CHECKING:
    from ..config import StoreConfig

logger = logging.getLogger(__name__)

RawPair = Tuple[bytes, bytes]

# Smallest possible key; a scan starting here covers the whole keyspace.
LOWEST_KEY = b""


class StoreError(Exception):
    """Base exception for store operations."""
    pass


class StoreConnectionError(StoreError):
    """Connection to the store failed."""
    pass


def next_key(key: bytes) -> bytes:
    """Return the immediate successor of `key` in byte-lexicographic order."""
    return key + b"\x00"


@runtime_checkable
class StoreTransaction(Protocol):
    """An optimistic snapshot transaction.

    Reads observe a single point-in-time view of the keyspace. No locks
    are taken; conflicts surface at commit time.
    """

    @abstractmethod
    async def scan(self, start: bytes, limit: int) -> List[RawPair]:
        """Scan keys from `start` (inclusive) with no upper bound.

        Args:
            start: First key to include
            limit: Maximum number of pairs to return

        Returns:
            Up to `limit` (key, value) pairs in ascending key order

        Raises:
            StoreError: If the request fails
        """
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Commit the transaction.

        Raises:
            StoreError: If the commit fails
        """
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Roll back the transaction.

        Raises:
            StoreError: If the rollback fails
        """
        ...


@runtime_checkable
class TransactionalStore(Protocol):
    """Protocol for store backends.

    Example:
        >>> store = InMemoryStore({b"a": b"1"})
        >>> await store.connect()
        >>> txn = await store.begin_optimistic()
        >>> await txn.scan(LOWEST_KEY, 10)
        [(b'a', b'1')]
    """

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the store.

        Raises:
            StoreConnectionError: If connection fails
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the connection."""
        ...

    @abstractmethod
    async def begin_optimistic(self) -> StoreTransaction:
        """Open an optimistic snapshot transaction.

        Raises:
            StoreConnectionError: If not connected
            StoreError: If the transaction cannot be opened
        """
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether currently connected to the store."""
        ...


def create_store(config: "StoreConfig") -> TransactionalStore:
    """Factory function to create a store from configuration.

    Args:
        config: Store configuration

    Returns:
        Appropriate TransactionalStore implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import StoreBackend
    from .memory import InMemoryStore
    from .tikv import TikvStore

    if config.backend == StoreBackend.TIKV:
        return TikvStore(config)
    elif config.backend == StoreBackend.MEMORY:
        return InMemoryStore()
    else:
        raise ValueError(f"Unsupported store backend: {config.backend}")
