"""
KV Explorer core - typed, read-only browsing of a transactional KV store.

This package implements the non-UI half of the explorer:
- A byte-format classifier (JSON, text, MessagePack, raw bytes)
- A transactional scanner that reads a consistent snapshot of the
  entire keyspace in paginated batches
- A retrieval facade combining both behind get_all_pairs()

Architecture:
    ┌──────────────┐     ┌─────────────────┐     ┌────────────────────┐
    │    Caller    │────▶│ RetrievalFacade │────▶│   Transactional    │
    │ (console UI) │     │ get_all_pairs() │     │      Scanner       │
    └──────────────┘     └────────┬────────┘     └─────────┬──────────┘
                                  │                        │ begin / scan* /
                                  ▼                        ▼ commit|rollback
                         ┌─────────────────┐     ┌────────────────────┐
                         │   classify()    │     │ TransactionalStore │
                         │ (per key/value) │     │ (TiKV, in-memory)  │
                         └─────────────────┘     └────────────────────┘

Invariants:
    - The explorer never writes to the store
    - Every retrieval is one snapshot transaction, read to the end
    - Classification never fails; RawBytes is the universal fallback

Version: see _version.py.
"""

from ._version import __version__
from .errors import (
    CommitFailedError,
    ConnectionFailedError,
    ExplorerError,
    RetrievalError,
    RetrievalErrorKind,
    RollbackFailedError,
    ScanError,
    ScanFailedError,
)
from .facade import KeyValuePair, RetrievalFacade
from .scanner import ScanResult, ScanState, TransactionalScanner
from .values import (
    CLASSIFICATION_ORDER,
    PlainText,
    RawBytes,
    SemanticValue,
    StructuredBinary,
    StructuredJson,
    classify,
)

__all__ = [
    "__version__",
    # Classifier
    "classify",
    "CLASSIFICATION_ORDER",
    "SemanticValue",
    "StructuredJson",
    "StructuredBinary",
    "PlainText",
    "RawBytes",
    # Scanner
    "TransactionalScanner",
    "ScanResult",
    "ScanState",
    # Facade
    "RetrievalFacade",
    "KeyValuePair",
    # Errors
    "ExplorerError",
    "ScanError",
    "ConnectionFailedError",
    "ScanFailedError",
    "CommitFailedError",
    "RollbackFailedError",
    "RetrievalError",
    "RetrievalErrorKind",
]
