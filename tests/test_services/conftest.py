"""
Fixtures for the service-layer test suite.

Provides:
  - ``FakeOpenMeteoClient``: scripted stand-in for ``OpenMeteoClient`` that
    records calls and serves geocoding results and forecast payloads.
  - ``fake_client``: a default instance with no cities and a snowy forecast
    starting 2026-10-17.
  - ``services``: ``CityService``, ``WeatherService`` and
    ``RecommendationService`` wired to ``in_memory_db``, ``fake_client`` and
    the shared fake ``clock``.
"""

from __future__ import annotations

from datetime import date, timedelta
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from activity_planner.config import CacheConfig
from activity_planner.models.city import City
from activity_planner.services.activities import RecommendationService
from activity_planner.services.cities import CityService
from activity_planner.services.weather import WeatherService

# Daily values served for every forecast day unless overridden.
_DEFAULT_DAY: dict[str, Any] = {
    "temperature_2m_max": 0.0,
    "temperature_2m_min": -4.0,
    "weathercode": 73,
    "precipitation_sum": 3.0,
    "snowfall_sum": 10.0,
    "windspeed_10m_max": 12.0,
    "uv_index_max": 1.5,
}


def forecast_payload(start: date, days: int, **overrides: Any) -> dict[str, Any]:
    """Build an Open-Meteo style daily payload of ``days`` identical days."""
    values = dict(_DEFAULT_DAY, **overrides)
    daily: dict[str, Any] = {
        "time": [(start + timedelta(days=i)).isoformat() for i in range(days)],
    }
    for name, value in values.items():
        daily[name] = value if isinstance(value, list) else [value] * days
    return {"latitude": 0.0, "longitude": 0.0, "daily": daily}


class FakeOpenMeteoClient:
    """Async test double for ``OpenMeteoClient``.

    Args:
        cities: Geocoding results; ``search`` returns those whose name
            contains the query (case-insensitive).
        start: First date of every forecast payload.
        error: If set, raised by both ``search`` and ``forecast``.
        day_overrides: Replacement daily values passed to ``forecast_payload``.
    """

    def __init__(
        self,
        cities: Optional[list[City]] = None,
        start: date = date(2026, 10, 17),
        error: Optional[Exception] = None,
        **day_overrides: Any,
    ) -> None:
        self.cities = list(cities or [])
        self.start = start
        self.error = error
        self.day_overrides = day_overrides
        self.search_calls: list[tuple] = []
        self.forecast_calls: list[tuple] = []

    async def search(self, name, limit=10, country_code=None):
        self.search_calls.append((name, limit, country_code))
        if self.error is not None:
            raise self.error
        needle = name.casefold()
        matches = [
            c for c in self.cities
            if needle in c.name.casefold()
            and (country_code is None or c.country_code == country_code)
        ]
        return matches[:limit]

    async def forecast(self, latitude, longitude, days, timezone):
        self.forecast_calls.append((latitude, longitude, days, timezone))
        if self.error is not None:
            raise self.error
        return forecast_payload(self.start, days, **self.day_overrides)

    async def aclose(self):
        pass


@pytest.fixture
def fake_client() -> FakeOpenMeteoClient:
    return FakeOpenMeteoClient()


@pytest.fixture
def services(in_memory_db, fake_client, clock) -> SimpleNamespace:
    cache_config = CacheConfig()
    cities = CityService(in_memory_db, fake_client, cache_config, clock=clock)
    weather = WeatherService(in_memory_db, fake_client, cities, cache_config, clock=clock)
    planner = RecommendationService(cities, weather)
    return SimpleNamespace(
        cities=cities,
        weather=weather,
        planner=planner,
        client=fake_client,
        conn=in_memory_db,
    )
