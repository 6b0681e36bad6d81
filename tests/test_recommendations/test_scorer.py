"""
Tests for activity_planner/recommendations/scorer.py.

What we test
------------
compute_scores():
  - Worked examples: snowy mountain day, warm coastal day, mild clear day.
  - Skiing is 0 unless mountainous and avg < 5.
  - Surfing is 0 unless coastal.
  - Outdoor temperature band (first match wins) and precipitation cap.
  - Indoor precipitation cap and the raw-code >= 45 bonus.
  - Every score stays in [0, 100] for inputs that overshoot both ways.

recommendation_label():
  - Threshold boundaries are inclusive lower bounds.

build_reasoning():
  - Deterministic text per activity, including optional fragments.
"""

from __future__ import annotations

import itertools
from datetime import date

import pytest

from activity_planner.models.weather import WeatherObservation
from activity_planner.recommendations.scorer import (
    build_reasoning,
    compute_scores,
    recommendation_label,
)
from activity_planner.taxonomy.activity_taxonomy import Activity, RecommendationLabel
from activity_planner.taxonomy.geography import GeographyClass


# ── Helpers ────────────────────────────────────────────────────────────────────

def _weather(
    avg: float = 18.0,
    code: int = 0,
    precipitation: float = 0.0,
    wind_speed: float = 5.0,
    snowfall_sum: float | None = 0.0,
    uv_index: float | None = None,
) -> WeatherObservation:
    """Build an observation whose max/min straddle ``avg`` by 3 °C."""
    return WeatherObservation(
        city_id=1,
        forecast_date=date(2026, 10, 17),
        max_temp=avg + 3.0,
        min_temp=avg - 3.0,
        weather_code=code,
        precipitation=precipitation,
        snowfall_sum=snowfall_sum,
        wind_speed=wind_speed,
        uv_index=uv_index,
    )


# ── Worked examples ───────────────────────────────────────────────────────────

def test_snowy_mountain_day_maxes_skiing():
    weather = _weather(avg=-2.0, code=73, snowfall_sum=10.0)
    scores = compute_scores(weather, GeographyClass.MOUNTAINOUS)
    assert scores.skiing == pytest.approx(100.0)
    assert recommendation_label(scores.skiing) is RecommendationLabel.EXCELLENT


def test_warm_coastal_day_maxes_surfing():
    weather = _weather(avg=22.0, code=0, wind_speed=15.0, precipitation=0.0)
    scores = compute_scores(weather, GeographyClass.COASTAL)
    assert scores.surfing == pytest.approx(100.0)
    assert recommendation_label(scores.surfing) is RecommendationLabel.EXCELLENT


def test_mild_clear_day_outdoor_and_indoor():
    weather = _weather(avg=18.0, code=0, precipitation=0.0, wind_speed=5.0, uv_index=3.0)
    scores = compute_scores(weather, GeographyClass.NEUTRAL)
    assert scores.outdoor == pytest.approx(100.0)
    assert scores.indoor == pytest.approx(50.0)
    assert recommendation_label(scores.outdoor) is RecommendationLabel.EXCELLENT
    assert recommendation_label(scores.indoor) is RecommendationLabel.FAIR


# ── Skiing ────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("geography", [GeographyClass.COASTAL, GeographyClass.NEUTRAL])
def test_skiing_zero_without_mountains(geography):
    weather = _weather(avg=-10.0, code=75, snowfall_sum=30.0)
    assert compute_scores(weather, geography).skiing == 0.0


def test_skiing_zero_when_too_warm():
    weather = _weather(avg=5.0, code=73, snowfall_sum=5.0)
    assert compute_scores(weather, GeographyClass.MOUNTAINOUS).skiing == 0.0


def test_skiing_base_only():
    weather = _weather(avg=3.0, code=3, snowfall_sum=None)
    assert compute_scores(weather, GeographyClass.MOUNTAINOUS).skiing == pytest.approx(30.0)


# ── Surfing ───────────────────────────────────────────────────────────────────

def test_surfing_zero_inland():
    weather = _weather(avg=25.0, wind_speed=15.0)
    assert compute_scores(weather, GeographyClass.NEUTRAL).surfing == 0.0
    assert compute_scores(weather, GeographyClass.MOUNTAINOUS).surfing == 0.0


def test_surfing_rain_penalty():
    # 30 + 20 (avg > 15) - 20 (precip > 5); code 63 earns no clear-sky bonus
    weather = _weather(avg=17.0, code=63, precipitation=6.0, wind_speed=5.0)
    assert compute_scores(weather, GeographyClass.COASTAL).surfing == pytest.approx(30.0)


def test_surfing_wind_window_is_exclusive():
    at_10 = _weather(avg=10.0, code=3, wind_speed=10.0)
    at_25 = _weather(avg=10.0, code=3, wind_speed=25.0)
    inside = _weather(avg=10.0, code=3, wind_speed=12.0)
    assert compute_scores(at_10, GeographyClass.COASTAL).surfing == pytest.approx(30.0)
    assert compute_scores(at_25, GeographyClass.COASTAL).surfing == pytest.approx(30.0)
    assert compute_scores(inside, GeographyClass.COASTAL).surfing == pytest.approx(45.0)


# ── Outdoor ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "avg, expected",
    [
        (15.0, 70.0),   # band 15..25 inclusive
        (25.0, 70.0),
        (27.0, 60.0),   # 25 < avg <= 30
        (30.0, 60.0),
        (32.0, 50.0),   # no band
        (4.0, 30.0),    # avg < 5
        (36.0, 30.0),   # avg > 35
    ],
)
def test_outdoor_temperature_band(avg, expected):
    weather = _weather(avg=avg, code=3)
    assert compute_scores(weather, GeographyClass.NEUTRAL).outdoor == pytest.approx(expected)


def test_outdoor_condition_bonus():
    assert compute_scores(_weather(avg=10.0, code=1), GeographyClass.NEUTRAL).outdoor == 70.0
    assert compute_scores(_weather(avg=10.0, code=2), GeographyClass.NEUTRAL).outdoor == 60.0
    assert compute_scores(_weather(avg=10.0, code=3), GeographyClass.NEUTRAL).outdoor == 50.0


def test_outdoor_precipitation_penalty_and_cap():
    light = _weather(avg=20.0, code=0, precipitation=3.0)
    heavy = _weather(avg=20.0, code=0, precipitation=40.0)
    below = _weather(avg=20.0, code=0, precipitation=2.0)
    assert compute_scores(light, GeographyClass.NEUTRAL).outdoor == pytest.approx(91.0)
    assert compute_scores(heavy, GeographyClass.NEUTRAL).outdoor == pytest.approx(70.0)
    assert compute_scores(below, GeographyClass.NEUTRAL).outdoor == pytest.approx(100.0)


def test_outdoor_wind_and_uv_penalties():
    weather = _weather(avg=10.0, code=3, wind_speed=31.0, uv_index=8.0)
    assert compute_scores(weather, GeographyClass.NEUTRAL).outdoor == pytest.approx(25.0)


# ── Indoor ────────────────────────────────────────────────────────────────────

def test_indoor_precipitation_cap():
    light = _weather(avg=10.0, code=3, precipitation=3.0)
    heavy = _weather(avg=10.0, code=3, precipitation=25.0)
    assert compute_scores(light, GeographyClass.NEUTRAL).indoor == pytest.approx(56.0)
    assert compute_scores(heavy, GeographyClass.NEUTRAL).indoor == pytest.approx(80.0)


def test_indoor_bad_weather_code_uses_raw_threshold():
    # Code 80 classifies as MIXED but is still >= 45.
    showers = _weather(avg=10.0, code=80)
    overcast = _weather(avg=10.0, code=3)
    assert compute_scores(showers, GeographyClass.NEUTRAL).indoor == pytest.approx(65.0)
    assert compute_scores(overcast, GeographyClass.NEUTRAL).indoor == pytest.approx(50.0)


# ── Clamp ─────────────────────────────────────────────────────────────────────

def test_indoor_overshoot_clamped_to_100():
    weather = _weather(avg=40.0, code=95, precipitation=50.0, wind_speed=60.0)
    assert compute_scores(weather, GeographyClass.NEUTRAL).indoor == 100.0


def test_outdoor_undershoot_clamped_to_0():
    weather = _weather(avg=40.0, code=95, precipitation=50.0, wind_speed=60.0, uv_index=11.0)
    assert compute_scores(weather, GeographyClass.NEUTRAL).outdoor == 0.0


@pytest.mark.parametrize(
    "avg, code, precipitation, wind_speed",
    list(itertools.product([-40.0, 0.0, 20.0, 50.0], [0, 45, 73, 99], [0.0, 6.0, 500.0], [0.0, 15.0, 200.0])),
)
def test_all_scores_bounded(avg, code, precipitation, wind_speed):
    weather = _weather(
        avg=avg, code=code, precipitation=precipitation, wind_speed=wind_speed,
        snowfall_sum=100.0, uv_index=15.0,
    )
    for geography in GeographyClass:
        for score in compute_scores(weather, geography).by_activity().values():
            assert 0.0 <= score <= 100.0


# ── Labels ────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "score, expected",
    [
        (100.0, RecommendationLabel.EXCELLENT),
        (80.0, RecommendationLabel.EXCELLENT),
        (79.9, RecommendationLabel.GOOD),
        (60.0, RecommendationLabel.GOOD),
        (59.9, RecommendationLabel.FAIR),
        (40.0, RecommendationLabel.FAIR),
        (39.9, RecommendationLabel.POOR),
        (20.0, RecommendationLabel.POOR),
        (19.9, RecommendationLabel.NOT_RECOMMENDED),
        (0.0, RecommendationLabel.NOT_RECOMMENDED),
    ],
)
def test_recommendation_label(score, expected):
    assert recommendation_label(score) is expected


# ── Reasoning ─────────────────────────────────────────────────────────────────

def test_reasoning_mountain_with_snow():
    weather = _weather(avg=-2.0, code=73, snowfall_sum=10.0)
    text = build_reasoning(weather, GeographyClass.MOUNTAINOUS, "Zermatt")
    assert text[Activity.SKIING] == "Zermatt is mountainous. Temperature: -2.0°C, snowfall: 10cm."
    assert text[Activity.SURFING] == "Zermatt is not coastal, no surfing opportunities."


def test_reasoning_coastal():
    weather = _weather(avg=22.0, code=0, wind_speed=15.0)
    text = build_reasoning(weather, GeographyClass.COASTAL, "Nice")
    assert text[Activity.SURFING] == "Nice is coastal. Temperature: 22.0°C, wind: 15 km/h."
    assert text[Activity.SKIING] == "Nice is not suitable for skiing (no mountains)."


def test_reasoning_coastal_with_rain():
    weather = _weather(avg=16.0, code=63, wind_speed=12.5, precipitation=6.0)
    text = build_reasoning(weather, GeographyClass.COASTAL, "Porto")
    assert text[Activity.SURFING] == (
        "Porto is coastal. Temperature: 16.0°C, wind: 12.5 km/h, precipitation: 6mm."
    )


def test_reasoning_sightseeing_clear():
    weather = _weather(avg=18.0, code=0)
    text = build_reasoning(weather, GeographyClass.NEUTRAL, "Madrid")
    assert text[Activity.INDOOR_SIGHTSEEING] == "Clear sky weather make indoor activities appealing."
    assert text[Activity.OUTDOOR_SIGHTSEEING] == (
        "Clear sky weather, 18.0°C. Good for outdoor exploration."
    )


def test_reasoning_sightseeing_bad_weather():
    weather = _weather(avg=2.0, code=63, precipitation=5.0, wind_speed=25.0)
    text = build_reasoning(weather, GeographyClass.NEUTRAL, "Oslo")
    assert text[Activity.INDOOR_SIGHTSEEING] == (
        "Rainy weather, extreme temperature, rainy conditions make indoor activities appealing."
    )
    assert text[Activity.OUTDOOR_SIGHTSEEING] == (
        "Rainy weather, 2.0°C, 5mm precipitation. Windy conditions. "
        "Good for outdoor exploration."
    )


def test_reasoning_is_deterministic():
    weather = _weather(avg=7.5, code=45, precipitation=1.2)
    first = build_reasoning(weather, GeographyClass.NEUTRAL, "Bern")
    second = build_reasoning(weather, GeographyClass.NEUTRAL, "Bern")
    assert first == second
    assert set(first) == set(Activity)


@pytest.mark.parametrize("avg, shown", [(2.25, "2.3"), (-2.25, "-2.3"), (2.0, "2.0")])
def test_reasoning_temperature_rounds_half_away_from_zero(avg, shown):
    text = build_reasoning(_weather(avg=avg), GeographyClass.MOUNTAINOUS, "Chamonix")
    assert text[Activity.SKIING] == f"Chamonix is mountainous. Temperature: {shown}°C."
