"""
Aggregate module - rolls unit metadata up into the parent series and
computes the read-time inherited view of a unit.

Both directions are pure functions over immutable records.
"""

from .aggregator import TaxonomyAggregator, get_aggregator

__all__ = ["TaxonomyAggregator", "get_aggregator"]
