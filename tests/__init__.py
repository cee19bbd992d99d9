"""
KV Explorer Test Suite.

This package contains:
- unit/: Unit tests (no external dependencies)
- integration/: Console API tests over the in-memory store
"""
