"""
Recommendation orchestrator: city + date → ranked activities.

Flow for ``recommend(city_id, forecast_date)``:
  1. Resolve the city (``NotFound`` if unknown).
  2. Look up the stored observation for (city, date).
  3. If absent, resolve the default forecast window anchored at the city's
     local *today* and look again.  The window does not move to the requested
     date, so a date outside it is still reported as ``NotFound``.
  4. Score and rank.

An observation that exists but is stale is scored as-is; only a missing
observation triggers a fetch.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from activity_planner.errors import NotFound
from activity_planner.models.activity import ActivityRecommendationResult
from activity_planner.recommendations.ranker import recommend_for_weather
from activity_planner.services.cities import CityService
from activity_planner.services.weather import WeatherService

logger = logging.getLogger(__name__)


class RecommendationService:
    """Combine cached weather with the scoring engine.

    Args:
        city_service:    City lookups.
        weather_service: Forecast cache.
        forecast_days:   Window fetched on demand; defaults to the weather
                         service's configured default.
    """

    def __init__(
        self,
        city_service: CityService,
        weather_service: WeatherService,
        forecast_days: Optional[int] = None,
    ) -> None:
        self.city_service    = city_service
        self.weather_service = weather_service
        self.forecast_days   = forecast_days or weather_service.default_days

    async def recommend(
        self,
        city_id: int,
        forecast_date: Optional[date] = None,
    ) -> ActivityRecommendationResult:
        """Return ranked activity recommendations for a city on a date.

        ``forecast_date`` defaults to the city's local today.

        Raises:
            NotFound: Unknown city, or no observation for the date after a
                forecast fetch.
            UpstreamUnavailable: Forecast needed, provider down, nothing cached.
            UpstreamRejected: Provider rejected the forecast request.
        """
        city = self.city_service.get_city_by_id(city_id)
        if forecast_date is None:
            forecast_date = self.weather_service.local_today(city)
        weather = self.weather_service.get_weather_for_date(city_id, forecast_date)

        if weather is None:
            logger.info(
                "No stored weather for %s on %s; fetching %d-day forecast.",
                city.name, forecast_date, self.forecast_days,
            )
            await self.weather_service.get_forecast(city_id, days=self.forecast_days)
            weather = self.weather_service.get_weather_for_date(city_id, forecast_date)

        if weather is None:
            raise NotFound(
                "weather",
                f"{city.name} on {forecast_date.isoformat()}",
                detail=f"city_id={city_id}",
            )

        result = recommend_for_weather(city, weather)
        logger.debug(
            "Recommendations for %s on %s: %s",
            city.name, forecast_date,
            ", ".join(f"{r.activity}={r.score:.0f}" for r in result.activities),
        )
        return result
