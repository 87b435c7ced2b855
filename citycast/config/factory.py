"""Build record stores and services from an AppConfig."""

import logging

from citycast.config.schema import AppConfig, StoreBackend
from citycast.services.aggregator import WeatherAggregator
from citycast.services.favorites import FavoritesManager
from citycast.store.base import RecordStore
from citycast.store.postgrest import PostgrestStore
from citycast.store.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


def build_store(config: AppConfig, db_path: str | None = None) -> RecordStore:
    """Open the configured backend. ``db_path`` overrides the SQLite file."""
    store_cfg = config.store
    if store_cfg.backend == StoreBackend.POSTGREST:
        logger.info("Using hosted record store at %s", store_cfg.url)
        return PostgrestStore(
            base_url=store_cfg.url,
            api_key=store_cfg.api_key or None,
            timeout=store_cfg.timeout_seconds,
        )
    path = db_path or store_cfg.db_path
    logger.info("Using local record store at %s", path)
    return SqliteStore.open(path)


def build_aggregator(config: AppConfig, store: RecordStore) -> WeatherAggregator:
    agg = config.aggregation
    return WeatherAggregator(
        store,
        timeout=config.store.timeout_seconds,
        forecast_days=agg.forecast_days,
        max_concurrency=agg.max_concurrency,
        unknown_condition=agg.unknown_condition,
    )


def build_favorites(config: AppConfig, store: RecordStore) -> FavoritesManager:
    return FavoritesManager(store, timeout=config.store.timeout_seconds)
