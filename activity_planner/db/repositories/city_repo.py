"""
Repository for geocoded cities.

``upsert`` is keyed by ``provider_id``: the first match inserts the row and
assigns ``city_id``; every later match refreshes the non-identity columns in
place.  ``provider_id`` and ``city_id`` never change once stored.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from activity_planner.db.repositories.base import BaseRepository
from activity_planner.models.city import City
from activity_planner.utils.time_utils import parse_utc_iso, to_utc_iso, utcnow

logger = logging.getLogger(__name__)


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


class CityRepository(BaseRepository):
    """Read/write access to the ``cities`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        super().__init__(conn)
        # SQLite's LOWER()/LIKE only fold ASCII; names are often not ASCII.
        conn.create_function("casefold", 1, _casefold, deterministic=True)

    def upsert(self, city: City, refreshed_at: Optional[datetime] = None) -> City:
        """Insert or refresh a city by ``provider_id``.

        Args:
            city: The ``City`` to persist (``city_id`` is ignored).
            refreshed_at: Timestamp written to ``updated_at``; defaults to now.

        Returns:
            The stored ``City`` with its ``city_id`` populated.
        """
        stamp = to_utc_iso(refreshed_at or utcnow())
        self.execute(
            """
            INSERT INTO cities (
                provider_id, name, latitude, longitude, elevation, timezone,
                feature_code, country_code, country, population,
                admin1, admin2, admin3, admin4, postcodes,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(provider_id) DO UPDATE SET
                name         = excluded.name,
                latitude     = excluded.latitude,
                longitude    = excluded.longitude,
                elevation    = excluded.elevation,
                timezone     = excluded.timezone,
                feature_code = excluded.feature_code,
                country_code = excluded.country_code,
                country      = excluded.country,
                population   = excluded.population,
                admin1       = excluded.admin1,
                admin2       = excluded.admin2,
                admin3       = excluded.admin3,
                admin4       = excluded.admin4,
                postcodes    = excluded.postcodes,
                updated_at   = excluded.updated_at;
            """,
            (
                city.provider_id,
                city.name,
                city.latitude,
                city.longitude,
                city.elevation,
                city.timezone,
                city.feature_code,
                city.country_code,
                city.country,
                city.population,
                city.admin1,
                city.admin2,
                city.admin3,
                city.admin4,
                json.dumps(list(city.postcodes)),
                stamp,
                stamp,
            ),
        )
        stored = self.get_by_provider_id(city.provider_id)
        assert stored is not None
        return stored

    def get_by_id(self, city_id: int) -> Optional[City]:
        """Fetch a city by local surrogate id, or ``None``."""
        row = self.fetchone("SELECT * FROM cities WHERE city_id = ?;", (city_id,))
        return _row_to_city(row) if row else None

    def get_by_provider_id(self, provider_id: int) -> Optional[City]:
        """Fetch a city by provider geocoding id, or ``None``."""
        row = self.fetchone(
            "SELECT * FROM cities WHERE provider_id = ?;", (provider_id,)
        )
        return _row_to_city(row) if row else None

    def search(
        self,
        query: str,
        country_code: Optional[str] = None,
        limit: int = 10,
    ) -> list[City]:
        """Find cached cities whose name contains ``query`` (case-insensitive).

        Results are ordered by population descending (unknown population
        last), then name ascending.

        Args:
            query: Name substring.
            country_code: Optional ISO alpha-2 filter.
            limit: Maximum rows returned.

        Returns:
            List of matching ``City`` objects.
        """
        sql = "SELECT * FROM cities WHERE instr(casefold(name), ?) > 0"
        params: list = [query.casefold()]
        if country_code:
            sql += " AND country_code = ?"
            params.append(country_code.upper())
        sql += " ORDER BY population IS NULL, population DESC, name ASC LIMIT ?;"
        params.append(limit)

        rows = self.fetchall(sql, tuple(params))
        return [_row_to_city(r) for r in rows]

    def count(self) -> int:
        """Return total number of cached cities."""
        return self.count_rows("cities")


# ── Row mapper ────────────────────────────────────────────────────────────────

def _row_to_city(row: sqlite3.Row) -> City:
    return City(
        city_id=row["city_id"],
        provider_id=row["provider_id"],
        name=row["name"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        elevation=row["elevation"],
        timezone=row["timezone"],
        feature_code=row["feature_code"],
        country_code=row["country_code"],
        country=row["country"],
        population=row["population"],
        admin1=row["admin1"],
        admin2=row["admin2"],
        admin3=row["admin3"],
        admin4=row["admin4"],
        postcodes=json.loads(row["postcodes"] or "[]"),
        created_at=parse_utc_iso(row["created_at"]),
        updated_at=parse_utc_iso(row["updated_at"]),
    )
