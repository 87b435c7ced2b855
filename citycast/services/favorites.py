"""Favorites set manager: cached per-user favorite cities kept in step with the store.

The local cache is only ever written after the store confirms a mutation.
There is deliberately no optimistic write followed by rollback: a failed
toggle leaves the cache exactly as it was, so the cache can lag the store
during an in-flight call but is never ahead of it. Do not convert this to
write-then-rollback; that reintroduces the delete/insert race the per-key
guard exists to prevent.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from citycast.models.common import CityId, UserId
from citycast.models.weather import City
from citycast.services.catalog import CityCatalog
from citycast.store.base import USER_PREFERENCES, RecordStore, with_deadline
from citycast.store.errors import StoreError
from citycast.store.rows import favorite_from_row

logger = logging.getLogger(__name__)

# Re-query attempts when favorites change while a hydrate is in flight
HYDRATE_ATTEMPTS = 3


@dataclass
class _KeyGuard:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class FavoritesManager:
    def __init__(self, store: RecordStore, timeout: float = 10.0):
        self.store = store
        self.timeout = timeout
        self._favorites: dict[UserId, set[CityId]] = {}
        self._generation: dict[UserId, int] = {}
        self._guards: dict[tuple[UserId, CityId], _KeyGuard] = {}

    async def hydrate(self, user_id: UserId) -> frozenset[CityId]:
        """Replace the cached set for user_id with the store's favorites.

        On StoreError the previous set is kept and the error propagates.
        """
        for attempt in range(HYDRATE_ATTEMPTS):
            generation = self._generation.get(user_id, 0)
            rows = await with_deadline(
                self.store.select(
                    USER_PREFERENCES, {"user_id": user_id}, columns="user_id,city_id"
                ),
                self.timeout, f"favorites load for {user_id}",
            )
            if self._generation.get(user_id, 0) == generation:
                break
            logger.debug(
                "Favorites for %s changed during load, retrying (attempt %d/%d)",
                user_id, attempt + 1, HYDRATE_ATTEMPTS,
            )
        else:
            logger.warning(
                "Favorites for %s kept changing during load; using last result",
                user_id,
            )

        self._favorites[user_id] = {favorite_from_row(r).city_id for r in rows}
        logger.info("Loaded %d favorites for %s", len(self._favorites[user_id]), user_id)
        return self.favorites(user_id)

    async def hydrate_best_effort(self, user_id: UserId) -> bool:
        """Hydrate for display. Returns False, keeping the old set, on failure."""
        try:
            await self.hydrate(user_id)
            return True
        except StoreError as e:
            logger.warning("Failed to load favorites for %s: %s", user_id, e)
            return False

    def is_favorite(self, user_id: UserId, city_id: CityId) -> bool:
        """Cache-only membership check; False until the user is hydrated."""
        return city_id in self._favorites.get(user_id, ())

    def favorites(self, user_id: UserId) -> frozenset[CityId]:
        return frozenset(self._favorites.get(user_id, ()))

    async def toggle_favorite(self, user_id: UserId, city_id: CityId) -> bool:
        """Flip membership of city_id for user_id. Returns the new membership.

        Toggles on the same (user, city) pair run one at a time, each reading
        membership only after the previous one has settled.
        """
        async with self._serialized(user_id, city_id):
            if self.is_favorite(user_id, city_id):
                await with_deadline(
                    self.store.delete(
                        USER_PREFERENCES, {"user_id": user_id, "city_id": city_id}
                    ),
                    self.timeout, f"unfavorite {city_id}",
                )
                self._apply(user_id, city_id, False)
                logger.info("Removed %s from favorites of %s", city_id, user_id)
                return False

            await with_deadline(
                self.store.insert(
                    USER_PREFERENCES, {"user_id": user_id, "city_id": city_id}
                ),
                self.timeout, f"favorite {city_id}",
            )
            self._apply(user_id, city_id, True)
            logger.info("Added %s to favorites of %s", city_id, user_id)
            return True

    async def remove_favorite(self, user_id: UserId, city_id: CityId) -> bool:
        """Unfavorite regardless of cached state. Returns True if a row was removed."""
        async with self._serialized(user_id, city_id):
            removed = await with_deadline(
                self.store.delete(
                    USER_PREFERENCES, {"user_id": user_id, "city_id": city_id}
                ),
                self.timeout, f"unfavorite {city_id}",
            )
            self._apply(user_id, city_id, False)
            return removed > 0

    async def check_favorite(self, user_id: UserId, city_id: CityId) -> bool:
        """Ask the store whether one relation exists and refresh that cache entry."""
        async with self._serialized(user_id, city_id):
            row = await with_deadline(
                self.store.select_maybe(
                    USER_PREFERENCES,
                    {"user_id": user_id, "city_id": city_id},
                    columns="id",
                ),
                self.timeout, f"favorite check for {city_id}",
            )
            present = row is not None
            if present != self.is_favorite(user_id, city_id):
                self._apply(user_id, city_id, present)
            return present

    async def favorite_cities(
        self, user_id: UserId, catalog: CityCatalog
    ) -> list[City]:
        """Cached favorites resolved to catalog cities, ordered by name."""
        wanted = self.favorites(user_id)
        if not wanted:
            return []
        return [c for c in await catalog.list_cities() if c.id in wanted]

    def _apply(self, user_id: UserId, city_id: CityId, present: bool) -> None:
        cached = self._favorites.setdefault(user_id, set())
        if present:
            cached.add(city_id)
        else:
            cached.discard(city_id)
        self._generation[user_id] = self._generation.get(user_id, 0) + 1

    @contextlib.asynccontextmanager
    async def _serialized(self, user_id: UserId, city_id: CityId) -> AsyncIterator[None]:
        key = (user_id, city_id)
        guard = self._guards.setdefault(key, _KeyGuard())
        guard.holders += 1
        try:
            async with guard.lock:
                yield
        finally:
            guard.holders -= 1
            if guard.holders == 0:
                del self._guards[key]
