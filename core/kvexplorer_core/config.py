"""
Configuration management for the KV explorer.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - The scan batch limit is always a positive integer

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep variable names prefixed with KVX_ unless shared with other tools
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_PD_ENDPOINTS = ("127.0.0.1:2379",)

# Pairs requested per scan call.
DEFAULT_BATCH_LIMIT = 1000


class StoreBackend(Enum):
    """Supported store backends."""

    TIKV = "tikv"
    MEMORY = "memory"


def _split_endpoints(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class StoreConfig:
    """Store connection configuration.

    Attributes:
        backend: Which store backend to use
        pd_endpoints: PD addresses of the TiKV cluster (host:port)
        batch_limit: Maximum pairs requested per scan call
    """

    backend: StoreBackend = StoreBackend.TIKV
    pd_endpoints: tuple[str, ...] = DEFAULT_PD_ENDPOINTS
    batch_limit: int = DEFAULT_BATCH_LIMIT

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Load configuration from environment variables."""
        backend_str = os.getenv("KVX_STORE_BACKEND", "tikv").lower()
        try:
            backend = StoreBackend(backend_str)
        except ValueError:
            raise ValueError(
                f"Invalid KVX_STORE_BACKEND '{backend_str}'. Must be one of: tikv, memory"
            )

        return cls(
            backend=backend,
            pd_endpoints=_split_endpoints(
                os.getenv("KVX_PD_ENDPOINTS", ",".join(DEFAULT_PD_ENDPOINTS))
            ),
            batch_limit=int(os.getenv("KVX_SCAN_BATCH_LIMIT", str(DEFAULT_BATCH_LIMIT))),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class ExplorerConfig:
    """Complete explorer configuration.

    Attributes:
        store: Store configuration
        observability: Logging configuration
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ExplorerConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            store=StoreConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.store.batch_limit <= 0:
            raise ValueError("KVX_SCAN_BATCH_LIMIT must be a positive integer")

        if self.store.backend == StoreBackend.TIKV and not self.store.pd_endpoints:
            raise ValueError("KVX_PD_ENDPOINTS is required when KVX_STORE_BACKEND=tikv")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Explorer configuration loaded",
            extra={
                "store_backend": self.store.backend.value,
                "pd_endpoints": list(self.store.pd_endpoints)
                if self.store.backend == StoreBackend.TIKV
                else None,
                "batch_limit": self.store.batch_limit,
                "log_level": self.observability.log_level,
            },
        )
