"""
Daily weather forecasts backed by the freshness cache.

Weather instantiation of ``FreshnessCache``
-------------------------------------------
  key        : (city, local today, days)
  cached read: observations for today .. today + days - 1 (city-local dates)
  fresh      : last_refreshed_at > now - weather_ttl_minutes
  hit        : window non-empty AND every row fresh; one stale row forces a
               full refetch of the window
  upsert     : by (city_id, forecast_date), whole-record replacement

The provider returns one multi-day payload; it is unpacked into per-date
rows before being upserted row by row.  A row that cannot be built or
written (missing required value, FK failure) is skipped.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional

from activity_planner.cache.freshness_cache import CacheOrigin, CacheResult, FreshnessCache
from activity_planner.config import CacheConfig
from activity_planner.db.repositories.weather_repo import WeatherObservationRepository
from activity_planner.errors import PersistenceWriteFailed
from activity_planner.ingestion.open_meteo_client import (
    DailyForecastRow,
    OpenMeteoClient,
    unpack_daily_forecast,
)
from activity_planner.models.city import City
from activity_planner.models.weather import WeatherObservation
from activity_planner.services.cities import CityService
from activity_planner.utils.time_utils import date_window, local_today, utcnow

logger = logging.getLogger(__name__)

MAX_FORECAST_DAYS = 16


@dataclass(frozen=True)
class ForecastWindow:
    """Cache key for one city's forecast window."""

    city_id: int
    start: date
    days: int
    city: City = field(repr=False, compare=False)

    @property
    def end(self) -> date:
        return date_window(self.start, self.days)[1]


class PendingRow(NamedTuple):
    """An unpacked forecast row waiting to be stored for a city."""

    city_id: int
    row: DailyForecastRow


class WeatherService:
    """Serve cached daily forecasts, refreshing them from upstream when stale.

    Args:
        conn:         Open SQLite connection; committed after each upstream refresh.
        client:       Upstream forecast client.
        city_service: Resolves city ids (raises ``NotFound``).
        cache_config: ``[cache]`` config section (TTL, default window).
        clock:        Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        client: OpenMeteoClient,
        city_service: CityService,
        cache_config: CacheConfig = CacheConfig(),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repo         = WeatherObservationRepository(conn)
        self.client       = client
        self.city_service = city_service
        self.ttl          = timedelta(minutes=cache_config.weather_ttl_minutes)
        self.default_days = cache_config.default_forecast_days
        self._clock       = clock
        self._cache: FreshnessCache[ForecastWindow, PendingRow, WeatherObservation] = (
            FreshnessCache(
                name="weather",
                read_cached=self._read_window,
                fetch_upstream=self._fetch_upstream,
                upsert=self._upsert,
                is_fresh=self.is_fresh,
            )
        )

    def is_fresh(self, obs: WeatherObservation) -> bool:
        """``True`` while ``obs`` was refreshed strictly less than one TTL ago."""
        if obs.last_refreshed_at is None:
            return False
        return obs.last_refreshed_at > self._clock() - self.ttl

    async def get_forecast(
        self,
        city_id: int,
        days: Optional[int] = None,
    ) -> CacheResult[WeatherObservation]:
        """Return the daily forecast window for a city.

        Args:
            city_id: Local city id.
            days: Window length, 1–16; defaults to ``default_forecast_days``.

        Returns:
            ``CacheResult`` of observations ordered by date.

        Raises:
            ValueError: ``days`` out of range.
            NotFound: Unknown city.
            UpstreamUnavailable: Provider down and nothing cached for the window.
            UpstreamRejected: Provider rejected the request.
        """
        if days is None:
            days = self.default_days
        if not 1 <= days <= MAX_FORECAST_DAYS:
            raise ValueError(f"days must be in [1, {MAX_FORECAST_DAYS}], got {days}.")

        city = self.city_service.get_city_by_id(city_id)
        window = ForecastWindow(
            city_id=city_id,
            start=self.local_today(city),
            days=days,
            city=city,
        )
        result = await self._cache.resolve(window, require_all_fresh=True)
        if result.origin is CacheOrigin.UPSTREAM:
            self.repo.conn.commit()
        logger.info(
            "Forecast for %s (%s..%s) → %d day(s) from %s.",
            city.name, window.start, window.end, len(result.entries), result.origin,
        )
        return result

    def local_today(self, city: City) -> date:
        """Current calendar date in the city's timezone."""
        return local_today(self._clock(), city.timezone)

    def get_weather_for_date(
        self,
        city_id: int,
        forecast_date: date,
    ) -> Optional[WeatherObservation]:
        """Return the stored observation for a city and date, without refreshing."""
        return self.repo.get_for_date(city_id, forecast_date)

    # ── Cache collaborators ───────────────────────────────────────────────────

    def _read_window(self, window: ForecastWindow) -> list[WeatherObservation]:
        return self.repo.get_range(window.city_id, window.start, window.end)

    async def _fetch_upstream(self, window: ForecastWindow) -> list[PendingRow]:
        city = window.city
        payload = await self.client.forecast(
            city.latitude, city.longitude, window.days, city.timezone
        )
        return [PendingRow(window.city_id, row) for row in unpack_daily_forecast(payload)]

    def _upsert(self, pending: PendingRow) -> WeatherObservation:
        city_id, row = pending
        try:
            obs = row.to_observation(city_id)
            return self.repo.upsert(obs, refreshed_at=self._clock())
        except (ValueError, sqlite3.Error) as exc:
            reason = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
            raise PersistenceWriteFailed(
                "weather", (city_id, row.forecast_date), reason
            ) from exc
