"""Tests for city catalog listing and lookup."""

import pytest

from citycast.services.catalog import CityCatalog
from citycast.store.errors import RecordNotFoundError
from citycast.store.sqlite_store import SqliteStore


@pytest.mark.asyncio
class TestCityCatalog:
    async def test_list_ordered_by_name(self, seeded_store: SqliteStore):
        cities = await CityCatalog(seeded_store).list_cities()
        assert [c.name for c in cities] == ["Austin", "Berlin", "Paris", "Tokyo"]

    async def test_search_matches_name_case_insensitive(self, seeded_store: SqliteStore):
        cities = await CityCatalog(seeded_store).list_cities("TOK")
        assert [c.id for c in cities] == ["c3"]

    async def test_search_matches_country(self, seeded_store: SqliteStore):
        cities = await CityCatalog(seeded_store).list_cities("united")
        assert [c.name for c in cities] == ["Austin"]

    async def test_search_no_match(self, seeded_store: SqliteStore):
        assert await CityCatalog(seeded_store).list_cities("atlantis") == []

    async def test_get_city(self, seeded_store: SqliteStore):
        city = await CityCatalog(seeded_store).get_city("c2")
        assert city.name == "Paris"
        assert city.country == "France"
        assert city.latitude == pytest.approx(48.8566)

    async def test_get_missing_city(self, seeded_store: SqliteStore):
        with pytest.raises(RecordNotFoundError):
            await CityCatalog(seeded_store).get_city("nope")
