"""
Integration tests for InMemoryRepository.

Tests cover:
- CRUD with URN canonicalization
- Recompute on unit add/update/delete
- Concurrent unit writes under one series
- Read-time inheritance through the repository
"""

import asyncio

import pytest

from catalog.mvn_core.config import CoreSettings
from catalog.mvn_core.errors import ConflictError, NotFoundError, UrnError
from catalog.mvn_core.model import Author, Series, Unit
from catalog.mvn_core.store import CatalogRepository, InMemoryRepository, build_catalog

SERIES_ID = "urn:mvn:series:s1"


@pytest.fixture
def repo():
    return InMemoryRepository(recompute_on_unit_write=True)


def make_unit(number, series_id=SERIES_ID, **kwargs):
    unit_id = f"urn:mvn:unit:u{number}".replace(".", "_")
    return Unit(id=unit_id, series_id=series_id, unit_number=number, **kwargs)


class TestSeriesCrud:
    """Tests for series storage."""

    def test_implements_protocol(self, repo):
        assert isinstance(repo, CatalogRepository)

    @pytest.mark.asyncio
    async def test_add_and_get(self, repo):
        stored = await repo.add_series(Series(id="URN:MVN:SERIES:s1", title="S"))
        assert stored.id == SERIES_ID
        assert stored.created_at is not None
        assert await repo.get_series("urn:mvn:Series:s1") == stored

    @pytest.mark.asyncio
    async def test_get_missing(self, repo):
        assert await repo.get_series("urn:mvn:series:nope") is None

    @pytest.mark.asyncio
    async def test_duplicate_add(self, repo):
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        with pytest.raises(ConflictError):
            await repo.add_series(Series(id=SERIES_ID, title="Again"))

    @pytest.mark.asyncio
    async def test_wrong_urn_type(self, repo):
        with pytest.raises(UrnError):
            await repo.add_series(Series(id="urn:mvn:unit:u1", title="S"))

    @pytest.mark.asyncio
    async def test_update_missing(self, repo):
        with pytest.raises(NotFoundError):
            await repo.update_series(Series(id=SERIES_ID, title="S"))

    @pytest.mark.asyncio
    async def test_delete_cascades(self, repo):
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        await repo.add_unit(make_unit(1))
        await repo.add_unit(make_unit(2))

        assert await repo.delete_series(SERIES_ID) == 2

        assert await repo.get_series(SERIES_ID) is None
        assert await repo.get_unit("urn:mvn:unit:u1") is None
        assert await repo.list_series() == []


class TestUnitCrud:
    """Tests for unit storage."""

    @pytest.mark.asyncio
    async def test_unit_requires_series(self, repo):
        with pytest.raises(NotFoundError):
            await repo.add_unit(make_unit(1))

    @pytest.mark.asyncio
    async def test_units_ordered_by_number(self, repo):
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        for number in (3, 1, 2.5):
            await repo.add_unit(make_unit(number))
        units = await repo.get_units_of_series(SERIES_ID)
        assert [u.unit_number for u in units] == [1, 2.5, 3]

    @pytest.mark.asyncio
    async def test_duplicate_unit(self, repo):
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        await repo.add_unit(make_unit(1))
        with pytest.raises(ConflictError):
            await repo.add_unit(make_unit(1))

    @pytest.mark.asyncio
    async def test_delete_missing_unit(self, repo):
        with pytest.raises(NotFoundError):
            await repo.delete_unit("urn:mvn:unit:nope")


class TestRecompute:
    """Tests for aggregation triggered by unit writes."""

    @pytest.mark.asyncio
    async def test_add_unit_recomputes(self, repo):
        await repo.add_series(Series(id=SERIES_ID, title="S", tags=("Action",)))
        await repo.add_unit(make_unit(1, tags=("Action", "Drama")))
        await repo.add_unit(make_unit(2, tags=("Comedy",)))

        series = await repo.get_series(SERIES_ID)

        assert series.tags == ("Action", "Drama", "Comedy")

    @pytest.mark.asyncio
    async def test_update_unit_recomputes(self, repo):
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        unit = await repo.add_unit(make_unit(1))
        before = (await repo.get_series(SERIES_ID)).updated_at

        data = {**unit.to_dict(), "authors": [{"id": "a1", "name": "Al"}]}
        await repo.update_unit(Unit.from_dict(data))

        series = await repo.get_series(SERIES_ID)
        assert series.authors == (Author("a1", "Al"),)
        assert series.updated_at >= before

    @pytest.mark.asyncio
    async def test_moving_unit_recomputes_both(self, repo):
        other = "urn:mvn:series:s2"
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        await repo.add_series(Series(id=other, title="T"))
        unit = await repo.add_unit(make_unit(1, tags=("Drama",)))

        moved = await repo.update_unit(Unit.from_dict({**unit.to_dict(), "series_id": other}))

        assert moved.series_id == other
        assert (await repo.get_series(other)).tags == ("Drama",)
        assert await repo.get_units_of_series(SERIES_ID) == []

    @pytest.mark.asyncio
    async def test_delete_unit_keeps_union(self, repo):
        """Aggregated values stay after the contributing unit is deleted."""
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        await repo.add_unit(make_unit(1, tags=("Drama",)))

        await repo.delete_unit("urn:mvn:unit:u1")

        assert (await repo.get_series(SERIES_ID)).tags == ("Drama",)

    @pytest.mark.asyncio
    async def test_recompute_disabled(self):
        repo = InMemoryRepository(recompute_on_unit_write=False)
        await repo.add_series(Series(id=SERIES_ID, title="S"))
        await repo.add_unit(make_unit(1, tags=("Drama",)))

        assert (await repo.get_series(SERIES_ID)).tags == ()

        series = await repo.recompute_series(SERIES_ID)
        assert series.tags == ("Drama",)

    @pytest.mark.asyncio
    async def test_recompute_missing_series(self, repo):
        with pytest.raises(NotFoundError):
            await repo.recompute_series("urn:mvn:series:nope")

    @pytest.mark.asyncio
    async def test_concurrent_unit_writes_not_lost(self, slow_catalog):
        """Every concurrently added unit contributes to the series."""
        repo = slow_catalog.repository
        await repo.add_series(Series(id=SERIES_ID, title="S"))

        await asyncio.gather(
            *(repo.add_unit(make_unit(i, tags=(f"T{i}",))) for i in range(1, 51))
        )

        series = await repo.get_series(SERIES_ID)
        assert set(series.tags) == {f"T{i}" for i in range(1, 51)}
        assert len(repo.locks) == 0


class TestCatalogWiring:
    """Tests for build_catalog()."""

    def test_shared_locks(self):
        catalog = build_catalog(CoreSettings())
        assert catalog.repository.locks is catalog.permissions.locks
        assert catalog.locks is catalog.repository.locks

    def test_settings_applied(self):
        catalog = build_catalog(
            CoreSettings(recompute_on_unit_write=False, require_user_urn_type=False)
        )
        assert catalog.repository.recompute_on_unit_write is False
        assert catalog.permissions.require_user_urn_type is False

    @pytest.mark.asyncio
    async def test_unit_view_inherits(self):
        catalog = build_catalog(CoreSettings())
        await catalog.repository.add_series(Series(id=SERIES_ID, title="S", tags=("Action",)))
        await catalog.repository.add_unit(make_unit(1))

        view = await catalog.repository.get_unit_view("urn:mvn:unit:u1")

        assert view.tags == ("Action",)
        assert (await catalog.repository.get_unit("urn:mvn:unit:u1")).tags is None
