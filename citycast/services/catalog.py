"""City catalog: listing, search and required single-city lookups."""

import logging

from citycast.models.common import CityId
from citycast.models.weather import City
from citycast.store.base import CITIES, Order, RecordStore, with_deadline
from citycast.store.rows import city_from_row

logger = logging.getLogger(__name__)


class CityCatalog:
    def __init__(self, store: RecordStore, timeout: float = 10.0):
        self.store = store
        self.timeout = timeout

    async def get_city(self, city_id: CityId) -> City:
        """Fetch one city. Raises RecordNotFoundError when it does not exist."""
        row = await with_deadline(
            self.store.select_single(CITIES, {"id": city_id}),
            self.timeout, f"cities lookup for {city_id}",
        )
        return city_from_row(row)

    async def list_cities(self, search: str | None = None) -> list[City]:
        """All cities ordered by name, optionally filtered by name or country.

        The search is a case-insensitive substring match.
        """
        rows = await with_deadline(
            self.store.select(CITIES, order=Order("city_name")),
            self.timeout, "cities listing",
        )
        cities = [city_from_row(r) for r in rows]
        if search:
            needle = search.lower()
            cities = [
                c for c in cities
                if needle in c.name.lower() or needle in c.country.lower()
            ]
        logger.debug("Listed %d cities (search=%r)", len(cities), search)
        return cities
