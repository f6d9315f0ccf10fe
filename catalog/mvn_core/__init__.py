"""
MVN Catalog Core - identity and metadata aggregation for the content catalog.

This package implements the parts of the catalog backend that every other
component keys off:
- URN identity scheme (the only resource-naming mechanism)
- Hierarchical metadata aggregation (units roll up into their series)
- Cascading edit permissions (owner, parent-series owner, allowed editors)

Architecture:
    ┌──────────────┐   mutate unit   ┌──────────────┐   recompute   ┌─────────────────────┐
    │    Caller    │────────────────▶│  Repository  │──────────────▶│ TaxonomyAggregator  │
    └──────┬───────┘                 └──────▲───────┘               └─────────────────────┘
           │ grant / revoke                 │ persist
           ▼                                │
    ┌──────────────────┐   per-target lock  │
    │PermissionResolver│────────────────────┘
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │     UrnCodec     │
    └──────────────────┘

Invariants:
    - Every resource is referenced by a URN: urn:{namespace}:{type}:{id}
    - URN namespace and type are stored lower-case
    - Aggregation is pure, idempotent and monotonic over the series baseline
    - Mutation of allowed_editors and series recompute are serialized per URN

How to change safely:
    - New mvn resource types must be added to MVN_TYPES, never removed
    - Aggregated fields must keep union semantics (no deletions)
    - Keep lock order unit -> series when adding new write paths

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
