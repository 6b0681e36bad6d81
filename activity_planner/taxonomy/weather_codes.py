"""
WMO weather interpretation codes, as returned by the Open-Meteo ``weathercode``
daily field.

Two views of the same integer:
  - ``WeatherCode``     — the raw code set published by the provider.
  - ``WeatherCategory`` — the coarse condition family used by scoring.

``classify_weather_code`` is total: any integer (documented or not) resolves
to a category, with ``WeatherCategory.MIXED`` as the default.

Usage example::

    from activity_planner.taxonomy.weather_codes import classify_weather_code

    classify_weather_code(73)   # WeatherCategory.SNOW
    classify_weather_code(80)   # WeatherCategory.MIXED (showers are not mapped)

This module has NO imports from any other ``activity_planner`` package.
"""

from enum import IntEnum, StrEnum


class WeatherCode(IntEnum):
    """WMO code set used by the daily forecast endpoint."""

    # ── Clear / cloud cover ───────────────────────────────────────────────────
    CLEAR_SKY = 0
    MAINLY_CLEAR = 1
    PARTLY_CLOUDY = 2
    OVERCAST = 3

    # ── Fog ───────────────────────────────────────────────────────────────────
    FOG = 45
    """Lowest "bad weather" code; indoor scoring treats codes >= FOG as poor."""

    DEPOSITING_RIME_FOG = 48

    # ── Drizzle ───────────────────────────────────────────────────────────────
    LIGHT_DRIZZLE = 51
    MODERATE_DRIZZLE = 53
    DENSE_DRIZZLE = 55
    LIGHT_FREEZING_DRIZZLE = 56
    DENSE_FREEZING_DRIZZLE = 57

    # ── Rain ──────────────────────────────────────────────────────────────────
    SLIGHT_RAIN = 61
    MODERATE_RAIN = 63
    HEAVY_RAIN = 65
    LIGHT_FREEZING_RAIN = 66
    HEAVY_FREEZING_RAIN = 67

    # ── Snow ──────────────────────────────────────────────────────────────────
    SLIGHT_SNOWFALL = 71
    MODERATE_SNOWFALL = 73
    HEAVY_SNOWFALL = 75
    SNOW_GRAINS = 77

    # ── Showers ───────────────────────────────────────────────────────────────
    SLIGHT_RAIN_SHOWERS = 80
    MODERATE_RAIN_SHOWERS = 81
    VIOLENT_RAIN_SHOWERS = 82
    SLIGHT_SNOW_SHOWERS = 85
    HEAVY_SNOW_SHOWERS = 86

    # ── Thunderstorm ──────────────────────────────────────────────────────────
    THUNDERSTORM = 95
    THUNDERSTORM_SLIGHT_HAIL = 96
    THUNDERSTORM_HEAVY_HAIL = 99


class WeatherCategory(StrEnum):
    """Coarse condition family derived from a ``WeatherCode``."""

    CLEAR = "clear"
    MOSTLY_CLEAR = "mostly_clear"
    PARTLY_CLOUDY = "partly_cloudy"
    OVERCAST = "overcast"
    FOG = "fog"
    DRIZZLE = "drizzle"
    RAIN = "rain"
    SNOW = "snow"
    THUNDERSTORM = "thunderstorm"
    MIXED = "mixed"
    """Fallback for every code outside the explicit mapping table."""


# Freezing drizzle/rain, snow grains and showers are intentionally absent:
# they fall through to MIXED.
_CODE_TO_CATEGORY: dict[int, WeatherCategory] = {
    WeatherCode.CLEAR_SKY:           WeatherCategory.CLEAR,
    WeatherCode.MAINLY_CLEAR:        WeatherCategory.MOSTLY_CLEAR,
    WeatherCode.PARTLY_CLOUDY:       WeatherCategory.PARTLY_CLOUDY,
    WeatherCode.OVERCAST:            WeatherCategory.OVERCAST,
    WeatherCode.FOG:                 WeatherCategory.FOG,
    WeatherCode.DEPOSITING_RIME_FOG: WeatherCategory.FOG,
    WeatherCode.LIGHT_DRIZZLE:       WeatherCategory.DRIZZLE,
    WeatherCode.MODERATE_DRIZZLE:    WeatherCategory.DRIZZLE,
    WeatherCode.DENSE_DRIZZLE:       WeatherCategory.DRIZZLE,
    WeatherCode.SLIGHT_RAIN:         WeatherCategory.RAIN,
    WeatherCode.MODERATE_RAIN:       WeatherCategory.RAIN,
    WeatherCode.HEAVY_RAIN:          WeatherCategory.RAIN,
    WeatherCode.SLIGHT_SNOWFALL:     WeatherCategory.SNOW,
    WeatherCode.MODERATE_SNOWFALL:   WeatherCategory.SNOW,
    WeatherCode.HEAVY_SNOWFALL:      WeatherCategory.SNOW,
    WeatherCode.THUNDERSTORM:             WeatherCategory.THUNDERSTORM,
    WeatherCode.THUNDERSTORM_SLIGHT_HAIL: WeatherCategory.THUNDERSTORM,
    WeatherCode.THUNDERSTORM_HEAVY_HAIL:  WeatherCategory.THUNDERSTORM,
}

_CATEGORY_DESCRIPTIONS: dict[WeatherCategory, str] = {
    WeatherCategory.CLEAR:         "Clear sky",
    WeatherCategory.MOSTLY_CLEAR:  "Mainly clear",
    WeatherCategory.PARTLY_CLOUDY: "Partly cloudy",
    WeatherCategory.OVERCAST:      "Overcast",
    WeatherCategory.FOG:           "Foggy",
    WeatherCategory.DRIZZLE:       "Drizzle",
    WeatherCategory.RAIN:          "Rainy",
    WeatherCategory.SNOW:          "Snowy",
    WeatherCategory.THUNDERSTORM:  "Thunderstorm",
    WeatherCategory.MIXED:         "Mixed",
}


def classify_weather_code(code: int) -> WeatherCategory:
    """Map a raw condition code to its ``WeatherCategory``.

    Never raises; unknown codes map to ``WeatherCategory.MIXED``.
    """
    return _CODE_TO_CATEGORY.get(code, WeatherCategory.MIXED)


def describe_weather_code(code: int) -> str:
    """Return the human-readable condition label used in reasoning strings."""
    return _CATEGORY_DESCRIPTIONS[classify_weather_code(code)]
