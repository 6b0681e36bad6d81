"""
Shared pytest fixtures for the City Activity Planner test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``clock``: A settable fake UTC clock for freshness tests.
  - Sample domain object factories for use in multiple test modules.
"""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta, timezone
from typing import Generator

import pytest

from activity_planner.db.schema import apply_schema
from activity_planner.models.city import City
from activity_planner.models.weather import WeatherObservation

FIXED_NOW = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock returning a fixed instant that tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def clock() -> FakeClock:
    """A ``FakeClock`` pinned to 2026-10-17 12:00 UTC."""
    return FakeClock()


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def sample_city() -> City:
    """A mountainous city (elevation 574 m) not yet stored."""
    return City(
        provider_id=2775220,
        name="Innsbruck",
        latitude=47.26266,
        longitude=11.39454,
        elevation=574.0,
        timezone="Europe/Vienna",
        feature_code="PPLA",
        country_code="at",
        country="Austria",
        population=112467,
        admin1="Tyrol",
        postcodes=["6020"],
    )


@pytest.fixture
def coastal_city() -> City:
    """A coastal city (elevation 2 m) not yet stored."""
    return City(
        provider_id=2267057,
        name="Lisbon",
        latitude=38.71667,
        longitude=-9.13333,
        elevation=2.0,
        timezone="Europe/Lisbon",
        country_code="PT",
        country="Portugal",
        population=517802,
    )


@pytest.fixture
def sample_observation() -> WeatherObservation:
    """A mild, clear day for city_id=1 on 2026-10-17."""
    return WeatherObservation(
        city_id=1,
        forecast_date=date(2026, 10, 17),
        max_temp=21.0,
        min_temp=15.0,
        weather_code=0,
        precipitation=0.0,
        snowfall_sum=0.0,
        wind_speed=5.0,
        uv_index=3.0,
        sunrise="2026-10-17T07:31",
        sunset="2026-10-17T18:22",
    )
