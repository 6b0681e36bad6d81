"""
Activity scoring: converts one daily WeatherObservation + the city's
GeographyClass into four bounded activity scores with explanations.

Pure functions only: no I/O, no clock, no hidden state.  The same inputs
always produce the same scores and the same reasoning strings.

    avg = (max_temp + min_temp) / 2

Score formulas (each clamped to [0, 100] after all terms)
---------------------------------------------------------
skiing   (0 unless MOUNTAINOUS and avg < 5):
    30 base
    +40 snowfall_sum > 0
    +20 avg < 0
    +10 category == SNOW

surfing  (0 unless COASTAL):
    30 base
    +20 avg > 15, another +20 avg > 20
    +15 10 < wind_speed < 25
    +15 category in (CLEAR, MOSTLY_CLEAR)
    -20 precipitation > 5

outdoor:
    50 base
    +30 CLEAR / +20 MOSTLY_CLEAR / +10 PARTLY_CLOUDY
    temperature band, first match wins:
        15 <= avg <= 25  → +20
        25 <  avg <= 30  → +10
        avg < 5          → -20
        avg > 35         → -20
    -min(30, precipitation * 3) when precipitation > 2
    -15 wind_speed > 30
    -10 uv_index present and > 7

indoor:
    50 base
    +min(30, precipitation * 2) when precipitation > 2
    +20 avg < 5 or avg > 35
    +15 raw weather_code >= 45 (FOG); higher codes are worse weather
    +10 wind_speed > 30
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from activity_planner.models.weather import WeatherObservation
from activity_planner.taxonomy.activity_taxonomy import (
    LABEL_THRESHOLDS,
    Activity,
    RecommendationLabel,
)
from activity_planner.taxonomy.geography import GeographyClass
from activity_planner.taxonomy.weather_codes import (
    WeatherCategory,
    WeatherCode,
    describe_weather_code,
)

SCORE_MIN = 0.0
SCORE_MAX = 100.0

_OUTDOOR_CONDITION_BONUS: dict[WeatherCategory, float] = {
    WeatherCategory.CLEAR:         30.0,
    WeatherCategory.MOSTLY_CLEAR:  20.0,
    WeatherCategory.PARTLY_CLOUDY: 10.0,
}


@dataclass(frozen=True)
class ActivityScores:
    """Clamped scores for all four activities.

    Attributes:
        skiing:  0–100.
        surfing: 0–100.
        indoor:  0–100.
        outdoor: 0–100.
    """

    skiing:  float
    surfing: float
    indoor:  float
    outdoor: float

    def by_activity(self) -> dict[Activity, float]:
        """Scores keyed by ``Activity``, in declaration order."""
        return {
            Activity.SKIING:              self.skiing,
            Activity.SURFING:             self.surfing,
            Activity.INDOOR_SIGHTSEEING:  self.indoor,
            Activity.OUTDOOR_SIGHTSEEING: self.outdoor,
        }


def compute_scores(
    weather: WeatherObservation,
    geography: GeographyClass,
) -> ActivityScores:
    """Score every activity for one day of weather.

    Args:
        weather:   Daily observation for the city and date.
        geography: Terrain class of the city.

    Returns:
        ``ActivityScores`` with each value in [0, 100].
    """
    return ActivityScores(
        skiing=_skiing_score(weather, geography),
        surfing=_surfing_score(weather, geography),
        indoor=_indoor_score(weather),
        outdoor=_outdoor_score(weather),
    )


def recommendation_label(score: float) -> RecommendationLabel:
    """Map a 0–100 score to its qualitative ``RecommendationLabel``."""
    for lower_bound, label in LABEL_THRESHOLDS:
        if score >= lower_bound:
            return label
    return RecommendationLabel.NOT_RECOMMENDED


def build_reasoning(
    weather: WeatherObservation,
    geography: GeographyClass,
    city_name: str,
) -> dict[Activity, str]:
    """Build the explanation string for each activity.

    Args:
        weather:   Daily observation the scores were computed from.
        geography: Terrain class of the city.
        city_name: Display name used in the terrain statements.

    Returns:
        Mapping of ``Activity`` → reasoning text.
    """
    avg        = weather.avg_temp
    precip     = weather.precipitation
    wind       = weather.wind_speed
    snowfall   = weather.snowfall_sum or 0.0
    condition  = describe_weather_code(weather.weather_code)

    if geography is GeographyClass.MOUNTAINOUS:
        snow_note = f", snowfall: {_fmt(snowfall)}cm" if snowfall > 0 else ""
        skiing = f"{city_name} is mountainous. Temperature: {_fmt_temp(avg)}°C{snow_note}."
    else:
        skiing = f"{city_name} is not suitable for skiing (no mountains)."

    if geography is GeographyClass.COASTAL:
        precip_note = f", precipitation: {_fmt(precip)}mm" if precip > 0 else ""
        surfing = (
            f"{city_name} is coastal. Temperature: {_fmt_temp(avg)}°C, "
            f"wind: {_fmt(wind)} km/h{precip_note}."
        )
    else:
        surfing = f"{city_name} is not coastal, no surfing opportunities."

    extreme_note = ", extreme temperature" if avg < 5 or avg > 35 else ""
    rainy_note   = ", rainy conditions" if precip > 2 else ""
    indoor = f"{condition} weather{extreme_note}{rainy_note} make indoor activities appealing."

    precip_note = f", {_fmt(precip)}mm precipitation" if precip > 0 else ""
    windy_note  = "Windy conditions. " if wind > 20 else ""
    outdoor = (
        f"{condition} weather, {_fmt_temp(avg)}°C{precip_note}. "
        f"{windy_note}Good for outdoor exploration."
    )

    return {
        Activity.SKIING:              skiing,
        Activity.SURFING:             surfing,
        Activity.INDOOR_SIGHTSEEING:  indoor,
        Activity.OUTDOOR_SIGHTSEEING: outdoor,
    }


# ── Per-activity scores ───────────────────────────────────────────────────────

def _skiing_score(weather: WeatherObservation, geography: GeographyClass) -> float:
    avg = weather.avg_temp
    if geography is not GeographyClass.MOUNTAINOUS or avg >= 5:
        return SCORE_MIN

    score = 30.0
    if (weather.snowfall_sum or 0.0) > 0:
        score += 40.0
    if avg < 0:
        score += 20.0
    if weather.category is WeatherCategory.SNOW:
        score += 10.0
    return _clamp(score, SCORE_MIN, SCORE_MAX)


def _surfing_score(weather: WeatherObservation, geography: GeographyClass) -> float:
    if geography is not GeographyClass.COASTAL:
        return SCORE_MIN

    avg   = weather.avg_temp
    score = 30.0
    if avg > 15:
        score += 20.0
    if avg > 20:
        score += 20.0
    if 10 < weather.wind_speed < 25:
        score += 15.0
    if weather.category in (WeatherCategory.CLEAR, WeatherCategory.MOSTLY_CLEAR):
        score += 15.0
    if weather.precipitation > 5:
        score -= 20.0
    return _clamp(score, SCORE_MIN, SCORE_MAX)


def _outdoor_score(weather: WeatherObservation) -> float:
    avg    = weather.avg_temp
    precip = weather.precipitation
    score  = 50.0 + _OUTDOOR_CONDITION_BONUS.get(weather.category, 0.0)

    if 15 <= avg <= 25:
        score += 20.0
    elif 25 < avg <= 30:
        score += 10.0
    elif avg < 5:
        score -= 20.0
    elif avg > 35:
        score -= 20.0

    if precip > 2:
        score -= min(30.0, precip * 3)
    if weather.wind_speed > 30:
        score -= 15.0
    if weather.uv_index is not None and weather.uv_index > 7:
        score -= 10.0
    return _clamp(score, SCORE_MIN, SCORE_MAX)


def _indoor_score(weather: WeatherObservation) -> float:
    avg    = weather.avg_temp
    precip = weather.precipitation
    score  = 50.0

    if precip > 2:
        score += min(30.0, precip * 2)
    if avg < 5 or avg > 35:
        score += 20.0
    if weather.weather_code >= WeatherCode.FOG:
        score += 15.0
    if weather.wind_speed > 30:
        score += 10.0
    return _clamp(score, SCORE_MIN, SCORE_MAX)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    """Clamp ``value`` to ``[lo, hi]``."""
    return max(lo, min(hi, value))


def _fmt(value: float) -> str:
    """Render a measurement without a trailing ``.0`` (``10.0`` → ``"10"``)."""
    value = float(value)
    return str(int(value)) if value.is_integer() else f"{value:g}"


def _fmt_temp(value: float) -> str:
    """One decimal place, halves rounded away from zero (``2.25`` → ``"2.3"``)."""
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
