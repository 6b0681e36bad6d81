"""
Terrain classification from city elevation.

The classifier is a deliberately coarse heuristic: low-lying cities are
treated as coastal, high ones as mountainous.  The two thresholds are fixed
design constants and are NOT exposed through ``AppConfig``; changing them
changes which activities a city can ever qualify for.

    elevation <  COASTAL_MAX_ELEVATION_M   → COASTAL
    elevation >  MOUNTAIN_MIN_ELEVATION_M  → MOUNTAINOUS
    otherwise                              → NEUTRAL

A missing elevation is treated as 0 m (and therefore coastal).

This module has NO imports from any other ``activity_planner`` package.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

COASTAL_MAX_ELEVATION_M: float = 100.0
MOUNTAIN_MIN_ELEVATION_M: float = 500.0


class GeographyClass(StrEnum):
    """Terrain class that gates skiing and surfing eligibility."""

    COASTAL = "coastal"
    """Below 100 m; surfing is scored."""

    MOUNTAINOUS = "mountainous"
    """Above 500 m; skiing is scored."""

    NEUTRAL = "neutral"
    """Neither; only indoor and outdoor sightseeing score above zero."""


def classify_geography(elevation_m: Optional[float]) -> GeographyClass:
    """Classify terrain from elevation in metres.

    Args:
        elevation_m: City elevation; ``None`` is treated as 0.

    Returns:
        Exactly one ``GeographyClass``.
    """
    elevation = elevation_m or 0.0
    if elevation < COASTAL_MAX_ELEVATION_M:
        return GeographyClass.COASTAL
    if elevation > MOUNTAIN_MIN_ELEVATION_M:
        return GeographyClass.MOUNTAINOUS
    return GeographyClass.NEUTRAL
