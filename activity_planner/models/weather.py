"""
Daily weather observation model.

One ``WeatherObservation`` exists per ``(city_id, forecast_date)``.  A refresh
replaces the whole record; fields missing from the provider response are
stored as ``None`` (never zero).  ``last_refreshed_at`` is the freshness
timestamp compared against the weather TTL.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from activity_planner.taxonomy.weather_codes import WeatherCategory, classify_weather_code


class WeatherObservation(BaseModel):
    """Forecast values for one city on one calendar date.

    Attributes:
        observation_id: Auto-assigned DB PK; ``None`` before insertion.
        city_id: FK to ``cities.city_id``.
        forecast_date: Local calendar date of the forecast.
        max_temp: Daily maximum temperature (°C).
        min_temp: Daily minimum temperature (°C).
        weather_code: WMO condition code.
        precipitation: Precipitation sum (mm).
        rain_sum: Rain sum (mm), optional.
        showers_sum: Showers sum (mm), optional.
        snowfall_sum: Snowfall sum (cm), optional.
        wind_speed: Max wind speed at 10 m (km/h).
        wind_direction: Dominant wind direction (°), optional.
        wind_gusts: Max wind gusts (km/h), optional.
        uv_index: Max UV index, optional.
        sunrise: Local ISO time of sunrise; set only together with ``sunset``.
        sunset: Local ISO time of sunset; set only together with ``sunrise``.
        sunshine_duration: Seconds of sunshine, optional.
        last_refreshed_at: When this row was last written (UTC).
    """

    model_config = ConfigDict(frozen=True)

    observation_id: Optional[int] = None
    city_id: int
    forecast_date: date
    max_temp: float
    min_temp: float
    weather_code: int
    precipitation: float
    rain_sum: Optional[float] = None
    showers_sum: Optional[float] = None
    snowfall_sum: Optional[float] = None
    wind_speed: float
    wind_direction: Optional[float] = None
    wind_gusts: Optional[float] = None
    uv_index: Optional[float] = None
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    sunshine_duration: Optional[float] = None
    last_refreshed_at: Optional[datetime] = None

    @field_validator("precipitation", "wind_speed")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Value must be >= 0, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_sun_times(self) -> "WeatherObservation":
        if (self.sunrise is None) != (self.sunset is None):
            raise ValueError("sunrise and sunset must be both present or both absent.")
        return self

    @property
    def avg_temp(self) -> float:
        """Mean of daily max and min temperature (°C)."""
        return (self.max_temp + self.min_temp) / 2

    @property
    def category(self) -> WeatherCategory:
        """Coarse condition family of ``weather_code``."""
        return classify_weather_code(self.weather_code)
