"""
Unit tests for configuration loading and the store factory.
"""

import logging

import pytest

from kvexplorer_core import config as config_module
from kvexplorer_core.config import (
    DEFAULT_BATCH_LIMIT,
    ExplorerConfig,
    ObservabilityConfig,
    StoreBackend,
    StoreConfig,
)
from kvexplorer_core.logsetup import setup_logging
from kvexplorer_core.store import InMemoryStore, create_store
from kvexplorer_core.store import tikv as tikv_module


class TestStoreConfig:
    """Tests for StoreConfig.from_env()."""

    def test_defaults(self, monkeypatch):
        """Defaults point at a local PD."""
        for name in ("KVX_STORE_BACKEND", "KVX_PD_ENDPOINTS", "KVX_SCAN_BATCH_LIMIT"):
            monkeypatch.delenv(name, raising=False)

        config = StoreConfig.from_env()

        assert config.backend is StoreBackend.TIKV
        assert config.pd_endpoints == ("127.0.0.1:2379",)
        assert config.batch_limit == DEFAULT_BATCH_LIMIT == 1000

    def test_from_env(self, monkeypatch):
        """Endpoints are comma separated; blanks are dropped."""
        monkeypatch.setenv("KVX_STORE_BACKEND", "MEMORY")
        monkeypatch.setenv("KVX_PD_ENDPOINTS", "pd0:2379, pd1:2379,,")
        monkeypatch.setenv("KVX_SCAN_BATCH_LIMIT", "250")

        config = StoreConfig.from_env()

        assert config.backend is StoreBackend.MEMORY
        assert config.pd_endpoints == ("pd0:2379", "pd1:2379")
        assert config.batch_limit == 250

    def test_invalid_backend(self, monkeypatch):
        """Unknown backends are rejected."""
        monkeypatch.setenv("KVX_STORE_BACKEND", "etcd")

        with pytest.raises(ValueError, match="KVX_STORE_BACKEND"):
            StoreConfig.from_env()


class TestExplorerConfig:
    """Tests for validation of the aggregate config."""

    def test_from_env_validates(self, monkeypatch):
        """A non-positive batch limit fails at load time."""
        monkeypatch.setenv("KVX_SCAN_BATCH_LIMIT", "0")

        with pytest.raises(ValueError, match="KVX_SCAN_BATCH_LIMIT"):
            ExplorerConfig.from_env()

    def test_tikv_requires_endpoints(self):
        """The TiKV backend needs at least one PD endpoint."""
        config = ExplorerConfig(store=StoreConfig(pd_endpoints=()))

        with pytest.raises(ValueError, match="KVX_PD_ENDPOINTS"):
            config.validate()

    def test_memory_needs_no_endpoints(self):
        """The memory backend ignores endpoints."""
        config = ExplorerConfig(store=StoreConfig(backend=StoreBackend.MEMORY, pd_endpoints=()))

        config.validate()

    def test_invalid_log_format(self):
        """Only json and text formats exist."""
        config = ExplorerConfig(observability=ObservabilityConfig(log_format="xml"))

        with pytest.raises(ValueError, match="LOG_FORMAT"):
            config.validate()

    def test_log_config(self, caplog):
        """Configuration is logged with structured fields."""
        with caplog.at_level(logging.INFO, logger=config_module.__name__):
            ExplorerConfig().log_config()

        record = caplog.records[-1]
        assert record.getMessage() == "Explorer configuration loaded"
        assert record.store_backend == "tikv"
        assert record.batch_limit == 1000


class TestCreateStore:
    """Tests for the store factory."""

    def test_memory_backend(self):
        """The memory backend builds an empty in-memory store."""
        store = create_store(StoreConfig(backend=StoreBackend.MEMORY))

        assert isinstance(store, InMemoryStore)
        assert store.key_count == 0

    def test_tikv_backend_without_client_library(self, monkeypatch):
        """A missing tikv-client gives an install hint."""
        monkeypatch.setattr(tikv_module, "TIKV_AVAILABLE", False)

        with pytest.raises(ImportError, match="tikv-client"):
            create_store(StoreConfig())


class TestSetupLogging:
    """Tests for setup_logging()."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        """Put the root logger back after each test."""
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_text_format(self):
        """Text format installs a plain formatter at the configured level."""
        setup_logging(ExplorerConfig(observability=ObservabilityConfig("DEBUG", "text")))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert type(root.handlers[0].formatter) is logging.Formatter

    def test_json_format(self):
        """JSON format uses json_log_formatter."""
        import json_log_formatter

        setup_logging(ExplorerConfig(observability=ObservabilityConfig("WARNING", "json")))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)
