"""
Repository protocol consumed by the core.

The core never touches storage directly. It reads series and units through
this capability and hands new state back for persistence:
- PermissionResolver reads a target, changes allowed_editors, persists it
- The repository calls TaxonomyAggregator.recompute after unit writes

Invariants:
    - get_units_of_series returns the complete current unit list
    - update_* replaces the stored record with the given value

How to change safely:
    - Protocol changes require updating every implementation
    - Keep methods async; implementations may do I/O
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Optional, Protocol, runtime_checkable

from ..model import Series, Unit


@runtime_checkable
class CatalogRepository(Protocol):
    """Protocol for catalog storage backends.

    Example:
        >>> repo = InMemoryRepository()
        >>> series = await repo.get_series("urn:mvn:series:abc")
        >>> units = await repo.get_units_of_series(series.id)
    """

    @abstractmethod
    async def get_series(self, series_id: str) -> Optional[Series]:
        """Return the series or None if it does not exist."""
        ...

    @abstractmethod
    async def get_unit(self, unit_id: str) -> Optional[Unit]:
        """Return the unit or None if it does not exist."""
        ...

    @abstractmethod
    async def get_units_of_series(self, series_id: str) -> list[Unit]:
        """Return every unit of a series ordered by unit_number."""
        ...

    @abstractmethod
    async def update_series(self, series: Series) -> Series:
        """Persist a series.

        Raises:
            NotFoundError: If the series does not exist
        """
        ...

    @abstractmethod
    async def update_unit(self, unit: Unit) -> Unit:
        """Persist a unit.

        Raises:
            NotFoundError: If the unit does not exist
        """
        ...
