"""Shared test fixtures."""

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest
import yaml

from citycast.store.base import Filters, Order, RecordStore, Row
from citycast.store.errors import StoreError
from citycast.store.sqlite_store import SqliteStore

CITIES = [
    ("c1", "Berlin", "Germany", 52.52, 13.405),
    ("c2", "Paris", "France", 48.8566, 2.3522),
    ("c3", "Tokyo", "Japan", 35.6762, 139.6503),
    ("c4", "Austin", "United States", None, None),
]


@pytest.fixture
def store(tmp_path: Path):
    """Empty migrated SQLite store."""
    s = SqliteStore.open(tmp_path / "test.db")
    yield s
    s.conn.close()


@pytest.fixture
def seeded_store(store: SqliteStore) -> SqliteStore:
    """Store with four cities, two Berlin readings and ten Berlin forecast days.

    Paris has one reading and no forecast; Tokyo and Austin have no data.
    """
    conn = store.conn
    conn.executemany(
        "INSERT INTO cities (id, city_name, country, latitude, longitude) "
        "VALUES (?, ?, ?, ?, ?)",
        CITIES,
    )
    conn.executemany(
        "INSERT INTO weather_data (id, city_id, temperature, humidity, condition, recorded_at) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        [
            ("w1", "c1", 22.0, 70, "Cloudy", "2026-02-11T09:00:00+00:00"),
            ("w2", "c1", 25.0, 55, "Sunny", "2026-02-11T15:00:00+00:00"),
            ("w3", "c2", 12.5, 81, "Rain", "2026-02-11T12:00:00+00:00"),
        ],
    )
    # Inserted newest first so ordering comes from the query, not insertion
    conn.executemany(
        "INSERT INTO forecasts (id, city_id, date, min_temp, max_temp, condition) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        [
            (f"f{day}", "c1", f"2026-02-{day:02d}", 1.0 + day, 8.0 + day, "Cloudy")
            for day in range(19, 9, -1)
        ],
    )
    conn.commit()
    return store


class ScriptedStore(RecordStore):
    """Wraps a store, adding per-city latency and injected failures.

    ``read_lag`` delays select results after they were read, so callers
    receive rows that may already be out of date.
    """

    def __init__(
        self,
        inner: RecordStore,
        delays: dict[str, float] | None = None,
        fail_cities: set[str] | None = None,
        fail_tables: set[str] | None = None,
        fail_writes: bool = False,
        write_delay: float = 0.0,
        read_lag: float = 0.0,
    ):
        self.inner = inner
        self.delays = delays or {}
        self.fail_cities = fail_cities or set()
        self.fail_tables = fail_tables or set()
        self.fail_writes = fail_writes
        self.write_delay = write_delay
        self.read_lag = read_lag
        self.calls: list[tuple[str, str]] = []

    async def _before(self, op: str, table: str, filters: Filters | None) -> None:
        self.calls.append((op, table))
        city_id = (filters or {}).get("city_id") or (filters or {}).get("id")
        await asyncio.sleep(self.delays.get(city_id, 0.0))
        if table in self.fail_tables or (table == "cities" and city_id in self.fail_cities):
            raise StoreError(f"injected failure on {table}", status_code=503)

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order: Order | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[Row]:
        await self._before("select", table, filters)
        rows = await self.inner.select(table, filters, order, limit, columns)
        # Rows are read before the lag, so writes during it are not seen
        await asyncio.sleep(self.read_lag)
        return rows

    async def _write(self, op: str, table: str, filters: Filters | None) -> None:
        await self._before(op, table, None)
        await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise StoreError(f"injected {op} failure", status_code=500)

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        await self._write("insert", table, None)
        return await self.inner.insert(table, values)

    async def delete(self, table: str, filters: Filters) -> int:
        await self._write("delete", table, filters)
        return await self.inner.delete(table, filters)

    async def update(
        self, table: str, filters: Filters, values: Mapping[str, Any]
    ) -> list[Row]:
        await self._write("update", table, filters)
        return await self.inner.update(table, filters, values)


@pytest.fixture
def scripted():
    """Factory for ScriptedStore wrappers."""
    return ScriptedStore


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "store": {"backend": "sqlite", "db_path": str(tmp_path / "cli.db")},
        "aggregation": {"forecast_days": 7},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path
