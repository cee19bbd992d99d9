"""
Retrieval facade: the single entry point for reading the store.

get_all_pairs() runs one TransactionalScanner and classifies every key and
every value independently.

Invariants:
    - Every call is an independent snapshot (no caching, no retry)
    - Pair order is the store's ascending key order
    - Scanner failures surface as RetrievalError with a matching kind
"""

from __future__ import annotations

import logging
from typing import Callable, List, NamedTuple

from .config import DEFAULT_BATCH_LIMIT
from .errors import RetrievalError, ScanError
from .scanner import TransactionalScanner
from .store.base import TransactionalStore
from .values import SemanticValue, classify

logger = logging.getLogger(__name__)


class KeyValuePair(NamedTuple):
    """A classified (key, value) pair."""

    key: SemanticValue
    value: SemanticValue

    def to_dict(self) -> dict:
        return {"key": self.key.to_dict(), "value": self.value.to_dict()}


class RetrievalFacade:
    """Reads and classifies the whole keyspace.

    The store client is constructed once by the caller and passed in;
    the facade never creates or shares transactions across calls.

    Example:
        >>> facade = RetrievalFacade(TikvStore(config.store))
        >>> for pair in await facade.get_all_pairs():
        ...     print(pair.key.compact(), pair.value.compact())
    """

    def __init__(
        self,
        store: TransactionalStore,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
        classifier: Callable[[bytes], SemanticValue] = classify,
    ) -> None:
        if batch_limit <= 0:
            raise ValueError(f"batch_limit must be positive, got {batch_limit}")
        self.store = store
        self.batch_limit = batch_limit
        self._classify = classifier

    async def get_all_pairs(self) -> List[KeyValuePair]:
        """Read a snapshot of every pair and classify it.

        Returns:
            Classified pairs in ascending key order

        Raises:
            RetrievalError: If connecting, scanning or committing fails
        """
        scanner = TransactionalScanner(self.store, batch_limit=self.batch_limit)
        try:
            result = await scanner.scan_all()
        except ScanError as e:
            error = RetrievalError.from_scan_error(e)
            logger.error(
                "Retrieval failed",
                extra={"kind": error.kind.value, "error": error.message},
            )
            raise error from e

        return [
            KeyValuePair(self._classify(key), self._classify(value))
            for key, value in result.pairs
        ]
