"""City weather aggregator: latest observation plus forecast window per city."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from citycast.models.common import CityId, utc_now
from citycast.models.weather import (
    BatchItemFailure,
    City,
    CityWeatherView,
    ForecastDay,
    WeatherObservation,
    unknown_observation,
)
from citycast.services.catalog import CityCatalog
from citycast.store.base import (
    FORECASTS,
    WEATHER_DATA,
    Order,
    RecordStore,
    with_deadline,
)
from citycast.store.errors import StoreError
from citycast.store.rows import forecast_from_row, observation_from_row

logger = logging.getLogger(__name__)

DEFAULT_FORECAST_DAYS = 7
DEFAULT_MAX_CONCURRENCY = 8
UNKNOWN_CONDITION = "Unknown"


class WeatherAggregator:
    """Builds CityWeatherView composites from the record store.

    Only the city lookup is required. Missing or unreadable weather and
    forecast data degrade to the "unknown" reading and an empty forecast.
    """

    def __init__(
        self,
        store: RecordStore,
        timeout: float = 10.0,
        forecast_days: int = DEFAULT_FORECAST_DAYS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        unknown_condition: str = UNKNOWN_CONDITION,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.timeout = timeout
        self.forecast_days = forecast_days
        self.max_concurrency = max_concurrency
        self.unknown_condition = unknown_condition
        self.clock = clock
        self.catalog = CityCatalog(store, timeout=timeout)

    async def assemble_one(self, city_id: CityId) -> CityWeatherView:
        """Assemble one city. Raises StoreError if the city cannot be read."""
        city, observation, forecast = await asyncio.gather(
            self.catalog.get_city(city_id),
            self._latest_observation(city_id),
            self._forecast(city_id),
            return_exceptions=True,
        )
        for result in (city, observation, forecast):
            if isinstance(result, BaseException):
                raise result
        return self._view(city, observation, forecast)

    async def assemble_batch(
        self, city_ids: Sequence[CityId]
    ) -> list[CityWeatherView | BatchItemFailure]:
        """Assemble every city concurrently, preserving input order.

        A city whose assembly raises StoreError is returned as a
        BatchItemFailure in its slot; the rest of the batch is unaffected.
        """
        _check_unique(city_ids)
        return await self._fan_out(
            [(city_id, self.assemble_one(city_id)) for city_id in city_ids]
        )

    async def assemble_many(self, city_ids: Sequence[CityId]) -> list[CityWeatherView]:
        """Like assemble_batch, with failed cities omitted from the result."""
        return _successes(await self.assemble_batch(city_ids))

    async def assemble_cities(self, cities: Sequence[City]) -> list[CityWeatherView]:
        """Assemble already-resolved cities, skipping the per-city lookup."""
        _check_unique([c.id for c in cities])
        results = await self._fan_out(
            [(city.id, self._assemble_known(city)) for city in cities]
        )
        return _successes(results)

    async def assemble_all(self, search: str | None = None) -> list[CityWeatherView]:
        """Assemble every catalog city in catalog order."""
        cities = await self.catalog.list_cities(search)
        return await self.assemble_cities(cities)

    async def _assemble_known(self, city: City) -> CityWeatherView:
        observation, forecast = await asyncio.gather(
            self._latest_observation(city.id), self._forecast(city.id)
        )
        return self._view(city, observation, forecast)

    async def _fan_out(self, jobs) -> list[CityWeatherView | BatchItemFailure]:
        results: list[CityWeatherView | BatchItemFailure | None] = [None] * len(jobs)
        limiter = asyncio.Semaphore(self.max_concurrency)

        async def run(index: int, city_id: CityId, job) -> None:
            async with limiter:
                try:
                    results[index] = await job
                except StoreError as e:
                    logger.warning("Skipping city %s: %s", city_id, e)
                    results[index] = BatchItemFailure(city_id=city_id, error=e)

        async with asyncio.TaskGroup() as tg:
            for index, (city_id, job) in enumerate(jobs):
                tg.create_task(run(index, city_id, job))

        failed = sum(isinstance(r, BatchItemFailure) for r in results)
        logger.info("Assembled %d cities (%d failed)", len(jobs) - failed, failed)
        return results

    async def _latest_observation(self, city_id: CityId) -> WeatherObservation | None:
        try:
            rows = await with_deadline(
                self.store.select(
                    WEATHER_DATA, {"city_id": city_id},
                    order=Order("recorded_at", descending=True), limit=1,
                ),
                self.timeout, f"weather lookup for {city_id}",
            )
            return observation_from_row(rows[0]) if rows else None
        except StoreError as e:
            logger.warning("No weather for %s: %s", city_id, e)
            return None

    async def _forecast(self, city_id: CityId) -> list[ForecastDay]:
        try:
            rows = await with_deadline(
                self.store.select(
                    FORECASTS, {"city_id": city_id},
                    order=Order("date"), limit=self.forecast_days,
                ),
                self.timeout, f"forecast lookup for {city_id}",
            )
            days = [forecast_from_row(r) for r in rows]
        except StoreError as e:
            logger.warning("No forecast for %s: %s", city_id, e)
            return []
        # Stores may return equal dates in any order; keep the window sorted
        return sorted(days, key=lambda d: d.date)[: self.forecast_days]

    def _view(
        self,
        city: City,
        observation: WeatherObservation | None,
        forecast: list[ForecastDay],
    ) -> CityWeatherView:
        if observation is None:
            return CityWeatherView(
                city=city,
                current=unknown_observation(city.id, self.clock(), self.unknown_condition),
                forecast=tuple(forecast),
                observation_available=False,
            )
        return CityWeatherView(city=city, current=observation, forecast=tuple(forecast))


def _check_unique(city_ids: Sequence[CityId]) -> None:
    if len(set(city_ids)) != len(city_ids):
        raise ValueError("city ids must be unique")


def _successes(
    results: list[CityWeatherView | BatchItemFailure],
) -> list[CityWeatherView]:
    return [r for r in results if isinstance(r, CityWeatherView)]
