"""
Shared fixtures for the catalog core tests.

SlowRepository suspends on every repository call so that concurrent tasks
really interleave inside read-modify-write sections. The plain
InMemoryRepository never yields, which would hide a missing lock.
"""

import asyncio

import pytest

from catalog.mvn_core.access import PermissionResolver
from catalog.mvn_core.store import Catalog, InMemoryRepository


class SlowRepository(InMemoryRepository):
    """InMemoryRepository that yields to the event loop on every call.

    get_units_of_series takes its snapshot first and then suspends, earlier
    callers for longer, so unserialized recomputes finish in reverse order
    and the oldest snapshot is written last.
    """

    def __init__(self, read_ticks: int = 200, **kwargs) -> None:
        super().__init__(**kwargs)
        self.read_ticks = read_ticks
        self._reads = 0

    async def get_series(self, series_id):
        await asyncio.sleep(0)
        return await super().get_series(series_id)

    async def get_unit(self, unit_id):
        await asyncio.sleep(0)
        return await super().get_unit(unit_id)

    async def update_series(self, series):
        await asyncio.sleep(0)
        return await super().update_series(series)

    async def update_unit(self, unit):
        await asyncio.sleep(0)
        return await super().update_unit(unit)

    async def get_units_of_series(self, series_id):
        units = await super().get_units_of_series(series_id)
        self._reads += 1
        for _ in range(max(1, self.read_ticks - self._reads)):
            await asyncio.sleep(0)
        return units


@pytest.fixture
def slow_catalog():
    """Catalog over a SlowRepository; the resolver shares the repository locks."""
    repository = SlowRepository(recompute_on_unit_write=True)
    permissions = PermissionResolver(repository, require_user_urn_type=True)
    return Catalog(repository=repository, permissions=permissions)
