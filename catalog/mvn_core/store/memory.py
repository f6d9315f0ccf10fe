"""
In-memory catalog repository.

This module provides a dict-backed CatalogRepository for:
- Unit and integration tests
- Local tooling (the mvn-catalog CLI)
- Embedding the core without a database

Records are keyed by canonical URN. Every unit write re-derives the parent
series through TaxonomyAggregator.recompute while holding the series lock,
reading the unit list as it stands at that moment.

Invariants:
    - All data is lost on process exit
    - A unit always belongs to an existing series
    - get_units_of_series is ordered by unit_number
    - Recompute of one series never runs concurrently with itself or with a
      series-level grant sharing the same KeyedLock

How to change safely:
    - Keep lock order unit -> series; recompute_series takes the series lock
      and is called from paths that may already hold the unit lock
    - Callers doing read-modify-write on a record hold locks.hold(record_id)
      themselves; update_* only replaces
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from ..access.locks import KeyedLock
from ..aggregate import TaxonomyAggregator, get_aggregator
from ..config import get_settings
from ..errors import ConflictError, NotFoundError, UrnError, UrnErrorKind
from ..identity import urn as urn_codec
from ..model import Series, Unit

logger = logging.getLogger(__name__)


def _key(value: str, expected_type: str) -> str:
    urn = urn_codec.parse(value)
    if not urn.is_of_type(expected_type):
        raise UrnError(
            UrnErrorKind.NOT_APPLICABLE,
            f"Expected a {expected_type} URN, got {value}",
            value=value,
        )
    return str(urn)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRepository:
    """Dict-backed implementation of CatalogRepository.

    Attributes:
        aggregator: Used to recompute series after unit writes
        locks: Per-URN lock registry shared with PermissionResolver
        recompute_on_unit_write: Recompute the parent series on unit writes

    Thread safety:
        Safe for concurrent coroutines on one event loop.

    Example:
        >>> repo = InMemoryRepository()
        >>> await repo.add_series(Series(id="urn:mvn:series:s1", title="S"))
        >>> await repo.add_unit(Unit(id="urn:mvn:unit:u1",
        ...                          series_id="urn:mvn:series:s1", unit_number=1))
    """

    def __init__(
        self,
        aggregator: Optional[TaxonomyAggregator] = None,
        locks: Optional[KeyedLock] = None,
        recompute_on_unit_write: Optional[bool] = None,
    ) -> None:
        self.aggregator = aggregator or get_aggregator()
        self.locks = locks if locks is not None else KeyedLock()
        if recompute_on_unit_write is None:
            recompute_on_unit_write = get_settings().recompute_on_unit_write
        self.recompute_on_unit_write = recompute_on_unit_write
        self._series: dict[str, Series] = {}
        self._units: dict[str, Unit] = {}

    # -- series -------------------------------------------------------------

    async def add_series(self, series: Series) -> Series:
        """Store a new series.

        Raises:
            UrnError: If series.id is not a series URN
            ConflictError: If the id is taken
        """
        key = _key(series.id, "series")
        if key in self._series:
            raise ConflictError(
                f"Series already exists: {key}",
                resource_type="series",
                resource_id=key,
            )

        now = _utcnow()
        stored = replace(
            series,
            id=key,
            created_at=series.created_at or now,
            updated_at=series.updated_at or now,
        )
        self._series[key] = stored
        logger.info("Series added", extra={"series_id": key, "created_by": stored.created_by})
        return stored

    async def get_series(self, series_id: str) -> Optional[Series]:
        return self._series.get(_key(series_id, "series"))

    async def list_series(self) -> list[Series]:
        return list(self._series.values())

    async def update_series(self, series: Series) -> Series:
        key = _key(series.id, "series")
        if key not in self._series:
            raise NotFoundError(
                f"Series not found: {key}",
                resource_type="series",
                resource_id=key,
            )

        stored = replace(series, id=key, updated_at=_utcnow())
        self._series[key] = stored
        logger.debug("Series updated", extra={"series_id": key})
        return stored

    async def delete_series(self, series_id: str) -> int:
        """Delete a series and all of its units.

        Returns:
            Number of units deleted with it

        Raises:
            NotFoundError: If the series does not exist
        """
        key = _key(series_id, "series")
        async with self.locks.hold(key):
            if self._series.pop(key, None) is None:
                raise NotFoundError(
                    f"Series not found: {key}",
                    resource_type="series",
                    resource_id=key,
                )
            orphans = [uid for uid, unit in self._units.items() if unit.series_id == key]
            for uid in orphans:
                del self._units[uid]

        logger.info("Series deleted", extra={"series_id": key, "unit_count": len(orphans)})
        return len(orphans)

    # -- units --------------------------------------------------------------

    def _require_series(self, series_id: str) -> str:
        key = _key(series_id, "series")
        if key not in self._series:
            raise NotFoundError(
                f"Series not found: {key}",
                resource_type="series",
                resource_id=key,
            )
        return key

    async def add_unit(self, unit: Unit) -> Unit:
        """Store a new unit and recompute its series.

        Raises:
            UrnError: If unit.id or unit.series_id has the wrong URN type
            NotFoundError: If the parent series does not exist
            ConflictError: If the id is taken
        """
        key = _key(unit.id, "unit")
        series_key = self._require_series(unit.series_id)
        if key in self._units:
            raise ConflictError(
                f"Unit already exists: {key}",
                resource_type="unit",
                resource_id=key,
            )

        now = _utcnow()
        stored = replace(
            unit,
            id=key,
            series_id=series_key,
            created_at=unit.created_at or now,
            updated_at=unit.updated_at or now,
        )
        self._units[key] = stored
        logger.info(
            "Unit added",
            extra={"unit_id": key, "series_id": series_key, "unit_number": stored.unit_number},
        )

        if self.recompute_on_unit_write:
            await self.recompute_series(series_key)
        return stored

    async def get_unit(self, unit_id: str) -> Optional[Unit]:
        return self._units.get(_key(unit_id, "unit"))

    async def get_unit_view(self, unit_id: str, language: Optional[str] = None) -> Optional[Unit]:
        """Unit with series metadata inherited into fields it does not set."""
        unit = await self.get_unit(unit_id)
        if unit is None:
            return None
        series = self._series.get(unit.series_id)
        if series is None:
            return unit
        return self.aggregator.inherit(unit, series, language)

    async def get_units_of_series(self, series_id: str) -> list[Unit]:
        key = _key(series_id, "series")
        units = [u for u in self._units.values() if u.series_id == key]
        units.sort(key=lambda u: u.unit_number)
        return units

    async def update_unit(self, unit: Unit) -> Unit:
        """Replace a unit and recompute the affected series.

        Moving a unit to another series recomputes both series.

        Raises:
            NotFoundError: If the unit or its new parent series does not exist
        """
        key = _key(unit.id, "unit")
        previous = self._units.get(key)
        if previous is None:
            raise NotFoundError(
                f"Unit not found: {key}",
                resource_type="unit",
                resource_id=key,
            )
        series_key = self._require_series(unit.series_id)

        stored = replace(unit, id=key, series_id=series_key, updated_at=_utcnow())
        self._units[key] = stored
        logger.debug("Unit updated", extra={"unit_id": key, "series_id": series_key})

        if self.recompute_on_unit_write:
            await self.recompute_series(series_key)
            if previous.series_id != series_key and previous.series_id in self._series:
                await self.recompute_series(previous.series_id)
        return stored

    async def delete_unit(self, unit_id: str) -> None:
        """Delete a unit and recompute its series.

        Aggregated values are unions over the series baseline, so values the
        unit contributed stay on the series.

        Raises:
            NotFoundError: If the unit does not exist
        """
        key = _key(unit_id, "unit")
        unit = self._units.pop(key, None)
        if unit is None:
            raise NotFoundError(
                f"Unit not found: {key}",
                resource_type="unit",
                resource_id=key,
            )
        logger.info("Unit deleted", extra={"unit_id": key, "series_id": unit.series_id})

        if self.recompute_on_unit_write and unit.series_id in self._series:
            await self.recompute_series(unit.series_id)

    # -- aggregation --------------------------------------------------------

    async def recompute_series(self, series_id: str) -> Series:
        """Re-derive a series from its current units and persist it.

        Runs under the series lock. The unit list is read after the lock is
        acquired, so concurrent unit writes are never lost.

        Raises:
            NotFoundError: If the series does not exist
        """
        key = _key(series_id, "series")
        async with self.locks.hold(key):
            series = self._series.get(key)
            if series is None:
                raise NotFoundError(
                    f"Series not found: {key}",
                    resource_type="series",
                    resource_id=key,
                )

            units = await self.get_units_of_series(key)
            recomputed = replace(
                self.aggregator.recompute(series, units), updated_at=_utcnow()
            )
            self._series[key] = recomputed
            return recomputed
