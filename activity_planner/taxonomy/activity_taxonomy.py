"""
Activity names and qualitative recommendation labels.

``Activity`` member order is significant: it is the declaration order used to
break score ties when ranking (Skiing, Surfing, Indoor, Outdoor).

``RecommendationLabel`` thresholds are shared by every activity::

    score >= 80  → EXCELLENT
    score >= 60  → GOOD
    score >= 40  → FAIR
    score >= 20  → POOR
    otherwise    → NOT_RECOMMENDED

This module has NO imports from any other ``activity_planner`` package.
"""

from enum import StrEnum


class Activity(StrEnum):
    """Activities scored for every (city, date) pair."""

    SKIING = "Skiing"
    """Only scored for mountainous cities below 5°C average."""

    SURFING = "Surfing"
    """Only scored for coastal cities."""

    INDOOR_SIGHTSEEING = "Indoor Sightseeing"
    """Museums, galleries; favoured by bad weather."""

    OUTDOOR_SIGHTSEEING = "Outdoor Sightseeing"
    """Walking tours, parks; favoured by clear, mild weather."""


class RecommendationLabel(StrEnum):
    """Qualitative band for a 0–100 activity score."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    NOT_RECOMMENDED = "Not Recommended"


# Lower bound (inclusive) → label, checked top-down.
LABEL_THRESHOLDS: tuple[tuple[float, RecommendationLabel], ...] = (
    (80.0, RecommendationLabel.EXCELLENT),
    (60.0, RecommendationLabel.GOOD),
    (40.0, RecommendationLabel.FAIR),
    (20.0, RecommendationLabel.POOR),
)
