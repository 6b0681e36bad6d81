"""
Activity recommendation output models.

Derived on every request and never persisted: the scoring engine produces the
four ``ActivityRecommendation`` rows, the ranker orders them, and the
recommendation service wraps them with the city and date.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, field_validator

from activity_planner.models.city import City
from activity_planner.taxonomy.activity_taxonomy import Activity, RecommendationLabel


class ActivityRecommendation(BaseModel):
    """One scored activity.

    Attributes:
        activity: Which activity was scored.
        score: Bounded score in [0, 100].
        label: Qualitative band for ``score``.
        reasoning: Human-readable explanation, reproducible from the inputs.
    """

    model_config = ConfigDict(frozen=True)

    activity: Activity
    score: float
    label: RecommendationLabel
    reasoning: str

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"score must be in [0, 100], got {v}.")
        return v


class ActivityRecommendationResult(BaseModel):
    """Ranked activities for a city on a date.

    ``activities`` is sorted by score descending; ties keep ``Activity``
    declaration order.
    """

    model_config = ConfigDict(frozen=True)

    city: City
    forecast_date: date
    activities: list[ActivityRecommendation]

    @property
    def best(self) -> ActivityRecommendation:
        """Highest-ranked activity."""
        return self.activities[0]
