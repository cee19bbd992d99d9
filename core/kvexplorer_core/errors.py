"""
Error types for the KV explorer core.

This module defines every exception the retrieval engine raises:
- ExplorerError: Base exception
- ScanError: Failures of a single scan-all attempt (connection, scan, commit)
- RollbackFailedError: Secondary cleanup failure, attached to a primary error
- RetrievalError: Caller-facing wrapper raised by the retrieval facade

Invariants:
    - All errors inherit from ExplorerError
    - A rollback failure never replaces the error that triggered the rollback
    - RetrievalError keeps the connection/scan/commit distinction in `kind`
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ExplorerError(Exception):
    """Base exception for all KV explorer errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "EXPLORER_ERROR"
        self.details = details or {}


class ScanError(ExplorerError):
    """A scan-all attempt failed."""


class ConnectionFailedError(ScanError):
    """Could not establish a session or open a transaction with the store.

    Fatal to the call. The engine never retries.
    """

    def __init__(self, message: str, endpoints: Optional[list[str]] = None) -> None:
        super().__init__(
            message,
            code="CONNECTION_FAILED",
            details={"endpoints": endpoints or []},
        )
        self.endpoints = endpoints or []


class RollbackFailedError(ScanError):
    """Rolling back a transaction failed.

    Only ever attached to a primary error as `rollback_error`.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="ROLLBACK_FAILED")


class ScanFailedError(ScanError):
    """A batch request failed mid-scan.

    Attributes:
        batches_completed: Batches read successfully before the failure
        rollback_error: Set when the cleanup rollback also failed
    """

    def __init__(
        self,
        message: str,
        batches_completed: int = 0,
        rollback_error: Optional[RollbackFailedError] = None,
    ) -> None:
        super().__init__(
            message,
            code="SCAN_FAILED",
            details={
                "batches_completed": batches_completed,
                "rollback_error": str(rollback_error) if rollback_error else None,
            },
        )
        self.batches_completed = batches_completed
        self.rollback_error = rollback_error


class CommitFailedError(ScanError):
    """Every batch was read but the transaction failed to commit.

    Callers must treat the data as untrusted.
    """

    def __init__(self, message: str, pairs_read: int = 0) -> None:
        super().__init__(
            message,
            code="COMMIT_FAILED",
            details={"pairs_read": pairs_read},
        )
        self.pairs_read = pairs_read


class RetrievalErrorKind(Enum):
    """Which stage of a retrieval failed."""

    CONNECTION_FAILED = "connection_failed"
    SCAN_FAILED = "scan_failed"
    COMMIT_FAILED = "commit_failed"


_KIND_BY_SCAN_ERROR = (
    (ConnectionFailedError, RetrievalErrorKind.CONNECTION_FAILED),
    (ScanFailedError, RetrievalErrorKind.SCAN_FAILED),
    (CommitFailedError, RetrievalErrorKind.COMMIT_FAILED),
)


class RetrievalError(ExplorerError):
    """Retrieving the key/value pairs failed.

    Raised by RetrievalFacade.get_all_pairs(). The presentation layer
    renders `description` in place of data.

    Attributes:
        kind: Stage that failed
        rollback_error: Secondary rollback failure, if any
    """

    def __init__(
        self,
        message: str,
        kind: RetrievalErrorKind,
        rollback_error: Optional[RollbackFailedError] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=kind.name, details=details)
        self.kind = kind
        self.rollback_error = rollback_error

    @classmethod
    def from_scan_error(cls, error: ScanError) -> RetrievalError:
        """Wrap a scanner error, keeping its kind and context."""
        for error_type, kind in _KIND_BY_SCAN_ERROR:
            if isinstance(error, error_type):
                break
        else:
            kind = RetrievalErrorKind.SCAN_FAILED

        return cls(
            error.message,
            kind=kind,
            rollback_error=getattr(error, "rollback_error", None),
            details=dict(error.details),
        )

    @property
    def description(self) -> str:
        """Human-readable description for display."""
        text = f"{self.kind.value.replace('_', ' ')}: {self.message}"
        if self.rollback_error is not None:
            text += f" (rollback also failed: {self.rollback_error.message})"
        return text
