"""
KV Explorer console - a read-only HTTP service over the explorer core.

This gateway:
1. Builds a store client from KVX_* configuration
2. Exposes the classified key/value pairs as a REST API
"""

from .app import create_app
from .routes import router

__all__ = ["create_app", "router"]
