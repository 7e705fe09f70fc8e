"""
repower test suite.

This package contains:
- unit/: Unit tests (no storage, mocked HTTP)
- integration/: Integration tests (in-memory SQLite EAV table, mocked HTTP)
"""
