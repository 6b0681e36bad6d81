"""
Async client for the Open-Meteo geocoding and forecast APIs.

Endpoints
---------
  Geocoding : GET {geocoding_url}/v1/search
              ?name=&count=&language=&format=json[&country_code=]
  Forecast  : GET {forecast_url}/v1/forecast
              ?latitude=&longitude=&timezone=&forecast_days=&daily=<fields>

Neither endpoint requires credentials.

Error mapping
-------------
  timeout / connection error / 5xx / unparseable body → UpstreamUnavailable
  4xx                                                 → UpstreamRejected

Retries are delegated to ``httpx.AsyncHTTPTransport(retries=N)``, which only
retries failed connection attempts, never an HTTP error response.  Response
bodies are logged at DEBUG (truncated) and never copied into raised errors.

Forecast payload shape (arrays positionally aligned by date index)::

    {
        "daily": {
            "time": ["2026-10-17", "2026-10-18", ...],
            "temperature_2m_max": [14.2, 15.0, ...],
            "snowfall_sum": [0.0, 0.0, ...],
            ...
        }
    }

``unpack_daily_forecast`` splits that into one ``DailyForecastRow`` per date.

Usage::

    async with OpenMeteoClient.from_config(config.providers) as client:
        cities = await client.search("Berlin", limit=5)
        payload = await client.forecast(52.52, 13.41, days=7, timezone="Europe/Berlin")
        rows = unpack_daily_forecast(payload)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, Optional

import httpx
from pydantic import ValidationError

from activity_planner.errors import UpstreamRejected, UpstreamUnavailable
from activity_planner.models.city import City
from activity_planner.models.weather import WeatherObservation

if TYPE_CHECKING:
    from activity_planner.config import ProvidersConfig

logger = logging.getLogger(__name__)

GEOCODING_PROVIDER = "open-meteo-geocoding"
FORECAST_PROVIDER  = "open-meteo-forecast"

DAILY_FIELDS: tuple[str, ...] = (
    "temperature_2m_max",
    "temperature_2m_min",
    "weathercode",
    "precipitation_sum",
    "rain_sum",
    "showers_sum",
    "snowfall_sum",
    "windspeed_10m_max",
    "winddirection_10m_dominant",
    "windgusts_10m_max",
    "uv_index_max",
    "sunrise",
    "sunset",
    "sunshine_duration",
)

_LOG_BODY_CHARS = 500


# ── Response types ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DailyForecastRow:
    """One date's slice of a multi-day forecast payload.

    Every value is ``None`` when the provider omitted that array (or that
    index); absence is never coerced to zero here.  Type checks happen in
    ``to_observation``.
    """

    forecast_date:     Any
    max_temp:          Optional[float]
    min_temp:          Optional[float]
    weather_code:      Any
    precipitation:     Optional[float]
    rain_sum:          Optional[float]
    showers_sum:       Optional[float]
    snowfall_sum:      Optional[float]
    wind_speed:        Optional[float]
    wind_direction:    Optional[float]
    wind_gusts:        Optional[float]
    uv_index:          Optional[float]
    sunrise:           Optional[str]
    sunset:            Optional[str]
    sunshine_duration: Optional[float]

    def to_observation(self, city_id: int) -> WeatherObservation:
        """Build a ``WeatherObservation`` for ``city_id``.

        Raises:
            pydantic.ValidationError: If a required value (temperatures,
                weather code, precipitation, wind speed) is missing or not
                numeric.
            ValueError: If ``forecast_date`` is not an ISO date string.
        """
        if not isinstance(self.forecast_date, str):
            raise ValueError(f"forecast date {self.forecast_date!r} is not a string")
        return WeatherObservation(
            city_id=city_id,
            forecast_date=date.fromisoformat(self.forecast_date),
            max_temp=self.max_temp,
            min_temp=self.min_temp,
            weather_code=self.weather_code,
            precipitation=self.precipitation,
            rain_sum=self.rain_sum,
            showers_sum=self.showers_sum,
            snowfall_sum=self.snowfall_sum,
            wind_speed=self.wind_speed,
            wind_direction=self.wind_direction,
            wind_gusts=self.wind_gusts,
            uv_index=self.uv_index,
            sunrise=self.sunrise,
            sunset=self.sunset,
            sunshine_duration=self.sunshine_duration,
        )


def unpack_daily_forecast(payload: dict[str, Any]) -> list[DailyForecastRow]:
    """Split a forecast payload's aligned daily arrays into per-date rows.

    Args:
        payload: Decoded JSON body of ``/v1/forecast``.

    Returns:
        One ``DailyForecastRow`` per entry of ``daily.time`` (empty if the
        payload carries no daily block).  Values are passed through as sent;
        a malformed value fails that row's ``to_observation`` only.

    Raises:
        UpstreamUnavailable: ``daily`` or ``daily.time`` has the wrong type.
    """
    daily = payload.get("daily")
    if daily is not None and not isinstance(daily, dict):
        raise UpstreamUnavailable(
            FORECAST_PROVIDER, {"daily": type(daily).__name__}, "unexpected response shape"
        )
    times = daily.get("time") if daily else None
    if times is not None and not isinstance(times, list):
        raise UpstreamUnavailable(
            FORECAST_PROVIDER, {"daily.time": type(times).__name__}, "unexpected response shape"
        )
    if not times:
        logger.warning("Forecast payload has no daily data; nothing to unpack.")
        return []

    columns = {name: _column(daily, name) for name in DAILY_FIELDS}

    rows: list[DailyForecastRow] = []
    for i, day in enumerate(times):
        sunrise = _at(columns["sunrise"], i)
        sunset  = _at(columns["sunset"], i)
        if not (sunrise and sunset):
            sunrise = sunset = None

        rows.append(DailyForecastRow(
            forecast_date=day,
            max_temp=_at(columns["temperature_2m_max"], i),
            min_temp=_at(columns["temperature_2m_min"], i),
            weather_code=_at(columns["weathercode"], i),
            precipitation=_at(columns["precipitation_sum"], i),
            rain_sum=_at(columns["rain_sum"], i),
            showers_sum=_at(columns["showers_sum"], i),
            snowfall_sum=_at(columns["snowfall_sum"], i),
            wind_speed=_at(columns["windspeed_10m_max"], i),
            wind_direction=_at(columns["winddirection_10m_dominant"], i),
            wind_gusts=_at(columns["windgusts_10m_max"], i),
            uv_index=_at(columns["uv_index_max"], i),
            sunrise=sunrise,
            sunset=sunset,
            sunshine_duration=_at(columns["sunshine_duration"], i),
        ))
    return rows


def _column(daily: dict[str, Any], name: str) -> Optional[list[Any]]:
    values = daily.get(name)
    return values if isinstance(values, list) else None


def _at(values: Optional[list[Any]], index: int) -> Any:
    if values is None or index >= len(values):
        return None
    return values[index]


def _result_to_city(result: dict[str, Any]) -> City:
    """Map one geocoding ``results[]`` entry to a ``City`` (no ``city_id``)."""
    return City(
        provider_id=result["id"],
        name=result["name"],
        latitude=result["latitude"],
        longitude=result["longitude"],
        elevation=result.get("elevation"),
        timezone=result.get("timezone") or "UTC",
        feature_code=result.get("feature_code"),
        country_code=result.get("country_code"),
        country=result.get("country"),
        population=result.get("population"),
        admin1=result.get("admin1"),
        admin2=result.get("admin2"),
        admin3=result.get("admin3"),
        admin4=result.get("admin4"),
        postcodes=result.get("postcodes") or [],
    )


# ── Client ────────────────────────────────────────────────────────────────────


class OpenMeteoClient:
    """Async client for Open-Meteo geocoding and daily forecasts.

    Args:
        geocoding_url:   Base URL of the geocoding API.
        forecast_url:    Base URL of the forecast API.
        timeout_seconds: Per-request timeout.
        max_retries:     Connection retry count for the default transport.
        language:        Result language for geocoding names.
        transport:       Optional transport override (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        geocoding_url: str = "https://geocoding-api.open-meteo.com",
        forecast_url: str = "https://api.open-meteo.com",
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        language: str = "en",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.geocoding_url = geocoding_url.rstrip("/")
        self.forecast_url  = forecast_url.rstrip("/")
        self.language      = language
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport or httpx.AsyncHTTPTransport(retries=max_retries),
        )

    @classmethod
    def from_config(
        cls,
        config: "ProvidersConfig",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OpenMeteoClient":
        """Build a client from the ``[providers]`` config section."""
        return cls(
            geocoding_url=config.geocoding_url,
            forecast_url=config.forecast_url,
            timeout_seconds=config.timeout_seconds,
            max_retries=config.max_retries,
            language=config.language,
            transport=transport,
        )

    async def search(
        self,
        name: str,
        limit: int = 10,
        country_code: Optional[str] = None,
    ) -> list[City]:
        """Geocode a city name.

        Args:
            name: Free-text city name.
            limit: Maximum number of matches requested.
            country_code: Optional ISO alpha-2 filter.

        Returns:
            Matching cities (``city_id`` unset).  A response without
            ``results`` means no matches.

        Raises:
            UpstreamUnavailable: Transport failure, timeout, 5xx, bad body.
            UpstreamRejected: 4xx response.
        """
        params: dict[str, Any] = {
            "name": name,
            "count": limit,
            "language": self.language,
            "format": "json",
        }
        if country_code:
            params["country_code"] = country_code

        data = await self._get_json(
            GEOCODING_PROVIDER, f"{self.geocoding_url}/v1/search", params, params
        )

        cities: list[City] = []
        for result in data.get("results") or []:
            try:
                cities.append(_result_to_city(result))
            except (KeyError, TypeError, ValidationError) as exc:
                logger.warning(
                    "Skipping malformed geocoding result for '%s': %s",
                    name, type(exc).__name__,
                )
        logger.debug("Geocoding '%s' returned %d result(s).", name, len(cities))
        return cities

    async def forecast(
        self,
        latitude: float,
        longitude: float,
        days: int,
        timezone: str,
    ) -> dict[str, Any]:
        """Fetch a multi-day daily forecast.

        Args:
            latitude: Degrees.
            longitude: Degrees.
            days: Number of forecast days (1–16).
            timezone: IANA timezone; daily boundaries follow it.

        Returns:
            Decoded JSON payload; pass to ``unpack_daily_forecast``.

        Raises:
            UpstreamUnavailable: Transport failure, timeout, 5xx, bad body.
            UpstreamRejected: 4xx response.
        """
        context = {
            "latitude": latitude,
            "longitude": longitude,
            "days": days,
            "timezone": timezone,
        }
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "timezone": timezone,
            "forecast_days": days,
            "daily": ",".join(DAILY_FIELDS),
        }
        data = await self._get_json(
            FORECAST_PROVIDER, f"{self.forecast_url}/v1/forecast", params, context
        )
        logger.debug(
            "Forecast for (%s, %s): %d day(s).",
            latitude, longitude, len((data.get("daily") or {}).get("time") or []),
        )
        return data

    async def _get_json(
        self,
        provider: str,
        url: str,
        params: dict[str, Any],
        context: dict[str, Any],
    ) -> dict[str, Any]:
        """GET ``url`` and decode a JSON object, mapping failures to domain errors."""
        try:
            resp = await self.client.get(url, params=params)
        except httpx.TimeoutException as exc:
            logger.error("%s timed out: %s", provider, context)
            raise UpstreamUnavailable(provider, context, "request timed out") from exc
        except httpx.RequestError as exc:
            logger.error("%s transport error (%s): %s", provider, type(exc).__name__, context)
            raise UpstreamUnavailable(
                provider, context, f"transport error ({type(exc).__name__})"
            ) from exc

        if resp.status_code >= 400:
            logger.error("%s returned HTTP %d: %s", provider, resp.status_code, context)
            logger.debug("%s error body: %s", provider, resp.text[:_LOG_BODY_CHARS])
            if resp.status_code < 500:
                raise UpstreamRejected(provider, context, resp.status_code)
            raise UpstreamUnavailable(provider, context, f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            logger.debug("%s unparseable body: %s", provider, resp.text[:_LOG_BODY_CHARS])
            raise UpstreamUnavailable(provider, context, "malformed JSON response") from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailable(provider, context, "unexpected response shape")
        return data

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "OpenMeteoClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
