"""
City search and lookup backed by the freshness cache.

City-search instantiation of ``FreshnessCache``
-----------------------------------------------
  key        : (name substring, optional country code, limit)
  cached read: case-insensitive substring match, population desc, name asc
  fresh      : always (a stored city never expires)
  hit        : at least min(limit, city_min_cached_results) cached matches
  upsert     : by provider geocoding id

Usage::

    service = CityService(conn, client, config.cache)
    result = await service.search_cities("lisbon", limit=5)
    for city in result.entries:
        ...
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from typing import NamedTuple, Optional

from activity_planner.cache.freshness_cache import CacheOrigin, CacheResult, FreshnessCache
from activity_planner.config import CacheConfig
from activity_planner.db.repositories.city_repo import CityRepository
from activity_planner.db.repositories.weather_repo import WeatherObservationRepository
from activity_planner.errors import NotFound, PersistenceWriteFailed
from activity_planner.ingestion.open_meteo_client import OpenMeteoClient
from activity_planner.models.city import City, CityDetail
from activity_planner.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 100


class CitySearchKey(NamedTuple):
    """Cache key for one city search."""

    query: str
    country_code: Optional[str]
    limit: int


class CityService:
    """Search, fetch and persist geocoded cities.

    Args:
        conn:         Open SQLite connection; committed after each upstream refresh.
        client:       Upstream geocoding client.
        cache_config: ``[cache]`` config section.
        clock:        Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        client: OpenMeteoClient,
        cache_config: CacheConfig = CacheConfig(),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repo          = CityRepository(conn)
        self.weather_repo  = WeatherObservationRepository(conn)
        self.client        = client
        self.cache_config  = cache_config
        self._clock        = clock
        self._cache: FreshnessCache[CitySearchKey, City, City] = FreshnessCache(
            name="city-search",
            read_cached=self._read_cached,
            fetch_upstream=self._fetch_upstream,
            upsert=self._upsert,
            is_fresh=lambda city: True,
        )

    async def search_cities(
        self,
        query: str,
        limit: Optional[int] = None,
        country_code: Optional[str] = None,
    ) -> CacheResult[City]:
        """Find cities by name, preferring the local cache.

        Args:
            query: Name substring (non-empty).
            limit: Maximum results, 1–100; defaults to ``default_search_limit``.
            country_code: Optional ISO alpha-2 filter.

        Returns:
            ``CacheResult`` of matching cities.

        Raises:
            ValueError: Empty query or limit out of range.
            UpstreamUnavailable: Provider down and no cached match.
            UpstreamRejected: Provider rejected the request.
        """
        query = query.strip()
        if not query:
            raise ValueError("Search query must be non-empty.")
        if limit is None:
            limit = self.cache_config.default_search_limit
        if not 1 <= limit <= MAX_SEARCH_LIMIT:
            raise ValueError(f"limit must be in [1, {MAX_SEARCH_LIMIT}], got {limit}.")

        key = CitySearchKey(
            query=query,
            country_code=country_code.upper() if country_code else None,
            limit=limit,
        )
        min_count = min(limit, self.cache_config.city_min_cached_results)
        result = await self._cache.resolve(key, min_count=min_count)
        if result.origin is CacheOrigin.UPSTREAM:
            self.repo.conn.commit()
        logger.info(
            "City search '%s' → %d result(s) from %s.",
            query, len(result.entries), result.origin,
        )
        return result

    def get_city_by_id(self, city_id: int) -> City:
        """Return a stored city.

        Raises:
            NotFound: No city with ``city_id``.
        """
        city = self.repo.get_by_id(city_id)
        if city is None:
            raise NotFound("city", city_id)
        return city

    def get_city_by_provider_id(self, provider_id: int) -> City:
        """Return a stored city by its geocoding id.

        Raises:
            NotFound: No city with ``provider_id``.
        """
        city = self.repo.get_by_provider_id(provider_id)
        if city is None:
            raise NotFound("city", provider_id, detail="provider id")
        return city

    def get_city_detail(self, city_id: int) -> CityDetail:
        """Return a city with its most recent stored observations."""
        city = self.get_city_by_id(city_id)
        recent = self.weather_repo.get_recent(
            city_id, limit=self.cache_config.recent_forecasts_per_city
        )
        return CityDetail(city=city, recent_observations=recent)

    # ── Cache collaborators ───────────────────────────────────────────────────

    def _read_cached(self, key: CitySearchKey) -> list[City]:
        return self.repo.search(key.query, key.country_code, key.limit)

    async def _fetch_upstream(self, key: CitySearchKey) -> list[City]:
        return await self.client.search(key.query, key.limit, key.country_code)

    def _upsert(self, city: City) -> City:
        try:
            return self.repo.upsert(city, refreshed_at=self._clock())
        except sqlite3.Error as exc:
            raise PersistenceWriteFailed("city", city.provider_id, str(exc)) from exc
