"""
Transactional store abstraction for the KV explorer.

This module provides a pluggable store backend interface supporting:
- TiKV (production, through tikv-client)
- In-memory (for testing and local development)

Invariants:
    - The explorer only ever reads; no backend exposes writes to the core
    - scan() results are ordered by key and bounded by the requested limit
    - Store failures surface as StoreError, never as backend exceptions

How to change safely:
    - New backends must implement the TransactionalStore protocol
    - Register them in create_store()
"""

from .base import (
    LOWEST_KEY,
    RawPair,
    StoreConnectionError,
    StoreError,
    StoreTransaction,
    TransactionalStore,
    create_store,
    next_key,
)
from .memory import InMemoryStore, InMemoryTransaction
from .tikv import TikvStore

__all__ = [
    # Protocol and types
    "TransactionalStore",
    "StoreTransaction",
    "RawPair",
    "LOWEST_KEY",
    "next_key",
    "StoreError",
    "StoreConnectionError",
    # Factory
    "create_store",
    # Implementations
    "TikvStore",
    "InMemoryStore",
    "InMemoryTransaction",
]
