"""
Model module - catalog records shared by the aggregator, the permission
resolver and the repository.
"""

from .types import (
    Author,
    EditPermission,
    Group,
    LocalizedMetadata,
    Poster,
    Scanlator,
    ScanlatorRole,
    Series,
    Unit,
    UnitLocalizedMetadata,
)

__all__ = [
    "Author",
    "Scanlator",
    "ScanlatorRole",
    "Group",
    "Poster",
    "LocalizedMetadata",
    "UnitLocalizedMetadata",
    "Series",
    "Unit",
    "EditPermission",
]
