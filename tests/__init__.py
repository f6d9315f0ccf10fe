"""
MVN Catalog Core Test Suite.

This package contains:
- unit/: Unit tests (pure functions, single components)
- integration/: Integration tests (repository + aggregator + resolver)
"""
