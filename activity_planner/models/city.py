"""
City model.

A ``City`` is identified by its provider-assigned geocoding id
(``provider_id``).  The local surrogate ``city_id`` is assigned on first
insert and never changes; the pair is jointly unique.  Every later geocoding
match refreshes the non-identity fields in place.  Cities are never deleted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from activity_planner.models.weather import WeatherObservation
from activity_planner.taxonomy.geography import GeographyClass, classify_geography


class City(BaseModel):
    """A geocoded city.

    Attributes:
        city_id: Local surrogate PK; ``None`` before DB insertion.
        provider_id: Open-Meteo geocoding id (stable, unique).
        name: Display name.
        latitude: Degrees, -90..90.
        longitude: Degrees, -180..180.
        elevation: Metres above sea level; ``None`` if unknown (treated as 0).
        timezone: IANA timezone name, e.g. ``"Europe/Berlin"``.
        feature_code: GeoNames feature code, e.g. ``"PPLC"``.
        country_code: ISO-3166 alpha-2, upper-cased.
        country: Country display name.
        population: Inhabitants, if known.
        admin1..admin4: Administrative region labels.
        postcodes: Postal codes reported by the provider.
        created_at: First insert time (UTC).
        updated_at: Last refresh time (UTC).
    """

    model_config = ConfigDict(frozen=True)

    city_id: Optional[int] = None
    provider_id: int
    name: str
    latitude: float
    longitude: float
    elevation: Optional[float] = None
    timezone: str = "UTC"
    feature_code: Optional[str] = None
    country_code: Optional[str] = None
    country: Optional[str] = None
    population: Optional[int] = None
    admin1: Optional[str] = None
    admin2: Optional[str] = None
    admin3: Optional[str] = None
    admin4: Optional[str] = None
    postcodes: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("City name must be non-empty.")
        return v

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v: float) -> float:
        if not -90.0 <= v <= 90.0:
            raise ValueError(f"latitude must be in [-90, 90], got {v}.")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v: float) -> float:
        if not -180.0 <= v <= 180.0:
            raise ValueError(f"longitude must be in [-180, 180], got {v}.")
        return v

    @field_validator("country_code")
    @classmethod
    def normalize_country_code(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None

    @property
    def geography(self) -> GeographyClass:
        """Terrain class derived from ``elevation``."""
        return classify_geography(self.elevation)


class CityDetail(BaseModel):
    """A city together with its most recent stored observations.

    Attributes:
        city: The stored city.
        recent_observations: Latest-dated observations, newest first.
    """

    model_config = ConfigDict(frozen=True)

    city: City
    recent_observations: list[WeatherObservation] = []
