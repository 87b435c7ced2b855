"""Record store contract shared by the hosted and local backends."""

import abc
import asyncio
import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from citycast.store.errors import RecordNotFoundError, StoreTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Row = dict[str, Any]
Filters = Mapping[str, Any]

CITIES = "cities"
WEATHER_DATA = "weather_data"
FORECASTS = "forecasts"
USER_PREFERENCES = "user_preferences"
PROFILES = "profiles"

TABLES = (CITIES, WEATHER_DATA, FORECASTS, USER_PREFERENCES, PROFILES)


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = False


class RecordStore(abc.ABC):
    """Query-capable remote table store.

    Filters are equality predicates joined with AND. Every method is a
    suspension point and raises StoreError on failure.
    """

    @abc.abstractmethod
    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order: Order | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[Row]:
        ...

    @abc.abstractmethod
    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        ...

    @abc.abstractmethod
    async def delete(self, table: str, filters: Filters) -> int:
        ...

    @abc.abstractmethod
    async def update(
        self, table: str, filters: Filters, values: Mapping[str, Any]
    ) -> list[Row]:
        ...

    async def select_maybe(
        self, table: str, filters: Filters, columns: str = "*"
    ) -> Row | None:
        rows = await self.select(table, filters, limit=1, columns=columns)
        return rows[0] if rows else None

    async def select_single(
        self, table: str, filters: Filters, columns: str = "*"
    ) -> Row:
        row = await self.select_maybe(table, filters, columns=columns)
        if row is None:
            raise RecordNotFoundError(
                f"No row in {table} matching {dict(filters)}", code="PGRST116"
            )
        return row

    async def aclose(self) -> None:
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


async def with_deadline(call: Awaitable[T], timeout: float, what: str) -> T:
    """Await a store call, converting an expired deadline into StoreTimeoutError."""
    try:
        async with asyncio.timeout(timeout):
            return await call
    except TimeoutError as e:
        logger.error("%s timed out after %.1fs", what, timeout)
        raise StoreTimeoutError(f"{what} timed out after {timeout:.1f}s") from e
