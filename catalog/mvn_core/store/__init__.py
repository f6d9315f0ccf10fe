"""
Store module - catalog persistence.

CatalogRepository is the capability the core consumes; InMemoryRepository
is the bundled implementation. build_catalog() wires a repository and a
PermissionResolver onto one shared KeyedLock.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..access.locks import KeyedLock
from ..access.permissions import PermissionResolver
from ..aggregate import TaxonomyAggregator
from ..config import CoreSettings, get_settings
from .base import CatalogRepository
from .memory import InMemoryRepository


@dataclass
class Catalog:
    """A repository and a permission resolver sharing one lock registry."""

    repository: InMemoryRepository
    permissions: PermissionResolver

    @property
    def locks(self) -> KeyedLock:
        return self.repository.locks


def build_catalog(
    settings: Optional[CoreSettings] = None,
    aggregator: Optional[TaxonomyAggregator] = None,
) -> Catalog:
    """Create an in-memory catalog.

    Args:
        settings: Core settings (loaded from env if not provided)
        aggregator: Aggregator override, mainly for tests

    Returns:
        Catalog whose repository and resolver share a KeyedLock
    """
    settings = settings or get_settings()
    locks = KeyedLock()
    repository = InMemoryRepository(
        aggregator=aggregator,
        locks=locks,
        recompute_on_unit_write=settings.recompute_on_unit_write,
    )
    permissions = PermissionResolver(
        repository,
        locks=locks,
        require_user_urn_type=settings.require_user_urn_type,
    )
    return Catalog(repository=repository, permissions=permissions)


__all__ = [
    "CatalogRepository",
    "InMemoryRepository",
    "Catalog",
    "build_catalog",
]
