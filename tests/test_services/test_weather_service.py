"""
Tests for WeatherService: forecast window caching, TTL freshness, fallback.

The shared ``clock`` starts at 2026-10-17 12:00 UTC, which is 14:00 on the
same date in Europe/Vienna (the sample city's timezone).
"""

from __future__ import annotations

import asyncio
from datetime import date, timedelta

import pytest

from activity_planner.cache.freshness_cache import CacheOrigin
from activity_planner.errors import NotFound, UpstreamRejected, UpstreamUnavailable
from activity_planner.models.city import City

TODAY = date(2026, 10, 17)


@pytest.fixture
def city_id(services, sample_city) -> int:
    return services.cities.repo.upsert(sample_city).city_id


def _forecast(services, city_id, days=None):
    return asyncio.run(services.weather.get_forecast(city_id, days))


class TestGetForecast:
    def test_empty_cache_fetches_default_window(self, services, city_id, sample_city):
        result = _forecast(services, city_id)

        assert result.origin is CacheOrigin.UPSTREAM
        assert [o.forecast_date for o in result.entries] == [
            TODAY + timedelta(days=i) for i in range(7)
        ]
        assert services.client.forecast_calls == [
            (sample_city.latitude, sample_city.longitude, 7, "Europe/Vienna")
        ]
        assert services.weather.repo.count(city_id) == 7
        assert not services.conn.in_transaction

    def test_fresh_window_served_from_cache(self, services, city_id):
        _forecast(services, city_id)
        result = _forecast(services, city_id)

        assert result.origin is CacheOrigin.CACHE
        assert len(result.entries) == 7
        assert len(services.client.forecast_calls) == 1

    def test_fresh_just_before_ttl(self, services, city_id, clock):
        _forecast(services, city_id)
        clock.advance(minutes=29, seconds=59)

        assert _forecast(services, city_id).origin is CacheOrigin.CACHE
        assert len(services.client.forecast_calls) == 1

    def test_stale_exactly_at_ttl(self, services, city_id, clock):
        _forecast(services, city_id)
        clock.advance(minutes=30)

        result = _forecast(services, city_id)
        assert result.origin is CacheOrigin.UPSTREAM
        assert len(services.client.forecast_calls) == 2
        assert all(o.last_refreshed_at == clock() for o in result.entries)
        assert services.weather.repo.count(city_id) == 7

    def test_is_fresh_boundary(self, services, city_id, clock):
        obs = _forecast(services, city_id, days=1).entries[0]
        assert services.weather.is_fresh(obs)
        clock.advance(minutes=30)
        assert not services.weather.is_fresh(obs)

    def test_one_stale_row_refetches_whole_window(self, services, city_id, clock):
        first = _forecast(services, city_id, days=3).entries
        clock.advance(minutes=20)
        services.weather.repo.upsert(first[0], refreshed_at=clock())
        clock.advance(minutes=15)   # day 1 fresh, days 2-3 stale

        result = _forecast(services, city_id, days=3)
        assert result.origin is CacheOrigin.UPSTREAM
        assert len(services.client.forecast_calls) == 2
        assert all(services.weather.is_fresh(o) for o in result.entries)

    def test_partial_fresh_window_is_a_hit(self, services, city_id):
        _forecast(services, city_id, days=3)
        result = _forecast(services, city_id, days=7)

        assert result.origin is CacheOrigin.CACHE
        assert len(result.entries) == 3

    def test_stale_fallback_when_provider_down(self, services, city_id, clock):
        _forecast(services, city_id, days=1)
        clock.advance(hours=2)
        services.client.error = UpstreamUnavailable("forecast", {}, "HTTP 503")

        result = _forecast(services, city_id, days=1)
        assert result.origin is CacheOrigin.STALE_FALLBACK
        assert len(result.entries) == 1
        assert not services.weather.is_fresh(result.entries[0])

    def test_provider_down_and_nothing_cached(self, services, city_id):
        services.client.error = UpstreamUnavailable("forecast", {}, "HTTP 503")
        with pytest.raises(UpstreamUnavailable):
            _forecast(services, city_id)

    def test_rejected_propagates(self, services, city_id):
        services.client.error = UpstreamRejected("forecast", {}, 400)
        with pytest.raises(UpstreamRejected):
            _forecast(services, city_id)

    def test_unknown_city(self, services):
        with pytest.raises(NotFound):
            _forecast(services, 999)
        assert services.client.forecast_calls == []

    @pytest.mark.parametrize("days", [0, 17, -1])
    def test_days_out_of_range(self, services, city_id, days):
        with pytest.raises(ValueError):
            _forecast(services, city_id, days=days)

    def test_sixteen_days_allowed(self, services, city_id):
        assert len(_forecast(services, city_id, days=16).entries) == 16

    def test_rows_missing_required_values_are_skipped(self, services, city_id):
        services.client.day_overrides = {"temperature_2m_max": [5.0, None, 6.0]}
        result = _forecast(services, city_id, days=3)

        assert result.origin is CacheOrigin.UPSTREAM
        assert result.skipped == 1
        assert [o.forecast_date for o in result.entries] == [TODAY, TODAY + timedelta(days=2)]
        assert services.weather.repo.count(city_id) == 2

    def test_payload_without_daily_block(self, services, city_id, monkeypatch):
        async def empty_forecast(*args, **kwargs):
            return {"latitude": 0.0}

        monkeypatch.setattr(services.client, "forecast", empty_forecast)
        result = _forecast(services, city_id)
        assert result.origin is CacheOrigin.UPSTREAM
        assert result.entries == []

    def test_non_numeric_weather_code_skips_only_that_row(self, services, city_id):
        services.client.day_overrides = {"weathercode": [3, "n/a", 61]}
        result = _forecast(services, city_id, days=3)

        assert result.origin is CacheOrigin.UPSTREAM
        assert result.skipped == 1
        assert [o.weather_code for o in result.entries] == [3, 61]
        assert services.weather.repo.count(city_id) == 2

    def test_unstorable_refetch_serves_stale_cache(self, services, city_id, clock):
        _forecast(services, city_id, days=1)
        clock.advance(hours=2)
        services.client.day_overrides = {"weathercode": "n/a"}

        result = _forecast(services, city_id, days=1)
        assert result.origin is CacheOrigin.STALE_FALLBACK
        assert result.skipped == 1
        assert result.entries[0].weather_code == 73

    def test_malformed_time_array_serves_stale_cache(
        self, services, city_id, clock, monkeypatch
    ):
        _forecast(services, city_id, days=1)
        clock.advance(hours=2)

        async def bad_forecast(*args, **kwargs):
            return {"daily": {"time": 5}}

        monkeypatch.setattr(services.client, "forecast", bad_forecast)
        result = _forecast(services, city_id, days=1)
        assert result.origin is CacheOrigin.STALE_FALLBACK
        assert len(result.entries) == 1

    def test_malformed_time_array_with_empty_cache(self, services, city_id, monkeypatch):
        async def bad_forecast(*args, **kwargs):
            return {"daily": {"time": 5}}

        monkeypatch.setattr(services.client, "forecast", bad_forecast)
        with pytest.raises(UpstreamUnavailable):
            _forecast(services, city_id)


class TestLocalDates:
    def test_window_starts_at_city_local_today(self, services):
        auckland = services.cities.repo.upsert(City(
            provider_id=2193733, name="Auckland", latitude=-36.85, longitude=174.76,
            elevation=26.0, timezone="Pacific/Auckland",
        ))
        assert services.weather.local_today(auckland) == date(2026, 10, 18)

        services.client.start = date(2026, 10, 18)
        result = _forecast(services, auckland.city_id, days=2)
        assert [o.forecast_date for o in result.entries] == [date(2026, 10, 18), date(2026, 10, 19)]

    def test_get_weather_for_date(self, services, city_id):
        assert services.weather.get_weather_for_date(city_id, TODAY) is None
        _forecast(services, city_id, days=2)
        obs = services.weather.get_weather_for_date(city_id, TODAY + timedelta(days=1))
        assert obs is not None
        assert obs.weather_code == 73
