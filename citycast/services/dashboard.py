"""Favorites dashboard: hydrated favorites joined with their weather views."""

import logging

from citycast.models.common import UserId
from citycast.models.weather import CityWeatherView
from citycast.services.aggregator import WeatherAggregator
from citycast.services.favorites import FavoritesManager

logger = logging.getLogger(__name__)


async def load_dashboard(
    user_id: UserId,
    favorites: FavoritesManager,
    aggregator: WeatherAggregator,
) -> list[CityWeatherView]:
    """Weather for each of the user's favorite cities, ordered by city name.

    Favorites are loaded best-effort: if the load fails the previously
    cached set is used.
    """
    if not await favorites.hydrate_best_effort(user_id):
        logger.warning("Showing cached favorites for %s", user_id)
    cities = await favorites.favorite_cities(user_id, aggregator.catalog)
    return await aggregator.assemble_cities(cities)
