"""
Repository for daily weather observations.

Natural key: ``(city_id, forecast_date)``.  ``upsert`` replaces every weather
column of an existing row (never a partial update) and stamps
``last_refreshed_at``; repeating it with the same values leaves exactly one
row behind.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from typing import Optional

from activity_planner.db.repositories.base import BaseRepository
from activity_planner.models.weather import WeatherObservation
from activity_planner.utils.time_utils import parse_utc_iso, to_utc_iso, utcnow

logger = logging.getLogger(__name__)


class WeatherObservationRepository(BaseRepository):
    """Read/write access to the ``weather_observations`` table."""

    def upsert(
        self,
        obs: WeatherObservation,
        refreshed_at: Optional[datetime] = None,
    ) -> WeatherObservation:
        """Insert or replace the observation for ``(city_id, forecast_date)``.

        Args:
            obs: The observation to persist (``observation_id`` is ignored).
            refreshed_at: Value for ``last_refreshed_at``; defaults to now.

        Returns:
            The stored ``WeatherObservation``.

        Raises:
            sqlite3.IntegrityError: If ``city_id`` does not reference a city.
        """
        self.execute(
            """
            INSERT INTO weather_observations (
                city_id, forecast_date, max_temp, min_temp, weather_code,
                precipitation, rain_sum, showers_sum, snowfall_sum,
                wind_speed, wind_direction, wind_gusts, uv_index,
                sunrise, sunset, sunshine_duration, last_refreshed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(city_id, forecast_date) DO UPDATE SET
                max_temp          = excluded.max_temp,
                min_temp          = excluded.min_temp,
                weather_code      = excluded.weather_code,
                precipitation     = excluded.precipitation,
                rain_sum          = excluded.rain_sum,
                showers_sum       = excluded.showers_sum,
                snowfall_sum      = excluded.snowfall_sum,
                wind_speed        = excluded.wind_speed,
                wind_direction    = excluded.wind_direction,
                wind_gusts        = excluded.wind_gusts,
                uv_index          = excluded.uv_index,
                sunrise           = excluded.sunrise,
                sunset            = excluded.sunset,
                sunshine_duration = excluded.sunshine_duration,
                last_refreshed_at = excluded.last_refreshed_at;
            """,
            (
                obs.city_id,
                obs.forecast_date.isoformat(),
                obs.max_temp,
                obs.min_temp,
                obs.weather_code,
                obs.precipitation,
                obs.rain_sum,
                obs.showers_sum,
                obs.snowfall_sum,
                obs.wind_speed,
                obs.wind_direction,
                obs.wind_gusts,
                obs.uv_index,
                obs.sunrise,
                obs.sunset,
                obs.sunshine_duration,
                to_utc_iso(refreshed_at or utcnow()),
            ),
        )
        stored = self.get_for_date(obs.city_id, obs.forecast_date)
        assert stored is not None
        return stored

    def get_for_date(self, city_id: int, forecast_date: date) -> Optional[WeatherObservation]:
        """Fetch the single observation for a city and date, or ``None``."""
        row = self.fetchone(
            """
            SELECT * FROM weather_observations
            WHERE city_id = ? AND forecast_date = ?;
            """,
            (city_id, forecast_date.isoformat()),
        )
        return _row_to_observation(row) if row else None

    def get_range(
        self,
        city_id: int,
        start: date,
        end: date,
    ) -> list[WeatherObservation]:
        """Fetch observations for ``start <= forecast_date <= end``, oldest first."""
        rows = self.fetchall(
            """
            SELECT * FROM weather_observations
            WHERE city_id = ? AND forecast_date BETWEEN ? AND ?
            ORDER BY forecast_date ASC;
            """,
            (city_id, start.isoformat(), end.isoformat()),
        )
        return [_row_to_observation(r) for r in rows]

    def get_recent(self, city_id: int, limit: int = 7) -> list[WeatherObservation]:
        """Fetch the ``limit`` latest-dated observations for a city, newest first."""
        rows = self.fetchall(
            """
            SELECT * FROM weather_observations
            WHERE city_id = ?
            ORDER BY forecast_date DESC
            LIMIT ?;
            """,
            (city_id, limit),
        )
        return [_row_to_observation(r) for r in rows]

    def count(self, city_id: Optional[int] = None) -> int:
        """Return the number of stored observations, optionally for one city."""
        if city_id is None:
            return self.count_rows("weather_observations")
        row = self.fetchone(
            "SELECT COUNT(*) AS n FROM weather_observations WHERE city_id = ?;",
            (city_id,),
        )
        assert row is not None
        return int(row["n"])


# ── Row mapper ────────────────────────────────────────────────────────────────

def _row_to_observation(row: sqlite3.Row) -> WeatherObservation:
    return WeatherObservation(
        observation_id=row["observation_id"],
        city_id=row["city_id"],
        forecast_date=date.fromisoformat(row["forecast_date"]),
        max_temp=row["max_temp"],
        min_temp=row["min_temp"],
        weather_code=row["weather_code"],
        precipitation=row["precipitation"],
        rain_sum=row["rain_sum"],
        showers_sum=row["showers_sum"],
        snowfall_sum=row["snowfall_sum"],
        wind_speed=row["wind_speed"],
        wind_direction=row["wind_direction"],
        wind_gusts=row["wind_gusts"],
        uv_index=row["uv_index"],
        sunrise=row["sunrise"],
        sunset=row["sunset"],
        sunshine_duration=row["sunshine_duration"],
        last_refreshed_at=parse_utc_iso(row["last_refreshed_at"]),
    )
