"""
Recommendation ranker: turns ActivityScores + reasoning into an ordered list
of ActivityRecommendation rows and wraps them into the final result.

Ordering
--------
Score descending.  ``sorted`` is stable, so equal scores keep ``Activity``
declaration order (Skiing, Surfing, Indoor, Outdoor).  Example::

    {skiing: 10, surfing: 90, indoor: 50, outdoor: 50}
    → [Surfing, Indoor Sightseeing, Outdoor Sightseeing, Skiing]
"""

from __future__ import annotations

from activity_planner.models.activity import (
    ActivityRecommendation,
    ActivityRecommendationResult,
)
from activity_planner.models.city import City
from activity_planner.models.weather import WeatherObservation
from activity_planner.recommendations.scorer import (
    ActivityScores,
    build_reasoning,
    compute_scores,
    recommendation_label,
)
from activity_planner.taxonomy.activity_taxonomy import Activity


def rank_activities(
    scores: ActivityScores,
    reasoning: dict[Activity, str],
) -> list[ActivityRecommendation]:
    """Build one ``ActivityRecommendation`` per activity, best first.

    Args:
        scores:    Clamped activity scores.
        reasoning: Explanation per activity (from ``build_reasoning``).

    Returns:
        Four recommendations sorted by score descending, ties in
        declaration order.
    """
    recommendations = [
        ActivityRecommendation(
            activity=activity,
            score=score,
            label=recommendation_label(score),
            reasoning=reasoning[activity],
        )
        for activity, score in scores.by_activity().items()
    ]
    return sorted(recommendations, key=lambda r: r.score, reverse=True)


def recommend_for_weather(
    city: City,
    weather: WeatherObservation,
) -> ActivityRecommendationResult:
    """Score, explain and rank activities for ``city`` on ``weather.forecast_date``."""
    geography = city.geography
    scores    = compute_scores(weather, geography)
    reasoning = build_reasoning(weather, geography, city.name)
    return ActivityRecommendationResult(
        city=city,
        forecast_date=weather.forecast_date,
        activities=rank_activities(scores, reasoning),
    )
