"""
SQLite schema DDL: all CREATE TABLE and CREATE INDEX statements.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is **idempotent**:
safe to call on an already-initialized database (e.g. after restart or in tests).

Table creation order respects foreign key dependencies:
  1. cities               (no FKs)
  2. weather_observations (→ cities)

Natural keys enforced by the store:
  - ``cities.provider_id``                          UNIQUE
  - ``weather_observations(city_id, forecast_date)`` UNIQUE
Repositories upsert against these with ``ON CONFLICT ... DO UPDATE``.  The
UNIQUE constraint on weather_observations doubles as the index for its
(city_id, forecast_date) range reads; name search scans ``cities`` with
``instr(casefold(name), ?)``, which no index can serve.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_CITIES = """
CREATE TABLE IF NOT EXISTS cities (
    city_id         INTEGER PRIMARY KEY AUTOINCREMENT,
    provider_id     INTEGER NOT NULL UNIQUE,
    name            TEXT    NOT NULL,
    latitude        REAL    NOT NULL,
    longitude       REAL    NOT NULL,
    elevation       REAL,
    timezone        TEXT    NOT NULL DEFAULT 'UTC',
    feature_code    TEXT,
    country_code    TEXT,
    country         TEXT,
    population      INTEGER,
    admin1          TEXT,
    admin2          TEXT,
    admin3          TEXT,
    admin4          TEXT,
    postcodes       TEXT    NOT NULL DEFAULT '[]',
    created_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_CITIES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_cities_country
    ON cities(country_code);
"""

_DDL_WEATHER_OBSERVATIONS = """
CREATE TABLE IF NOT EXISTS weather_observations (
    observation_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    city_id             INTEGER NOT NULL REFERENCES cities(city_id),
    forecast_date       TEXT    NOT NULL,
    max_temp            REAL    NOT NULL,
    min_temp            REAL    NOT NULL,
    weather_code        INTEGER NOT NULL,
    precipitation       REAL    NOT NULL,
    rain_sum            REAL,
    showers_sum         REAL,
    snowfall_sum        REAL,
    wind_speed          REAL    NOT NULL,
    wind_direction      REAL,
    wind_gusts          REAL,
    uv_index            REAL,
    sunrise             TEXT,
    sunset              TEXT,
    sunshine_duration   REAL,
    last_refreshed_at   TEXT    NOT NULL,
    created_at          TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    UNIQUE (city_id, forecast_date)
);
"""

_ALL_DDL: list[str] = [
    _DDL_CITIES,
    _DDL_CITIES_INDEXES,
    _DDL_WEATHER_OBSERVATIONS,
]

ALL_TABLE_NAMES = [
    "cities",
    "weather_observations",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent; safe to call on an already-initialized database.

    Args:
        conn: An open ``sqlite3.Connection`` (FK enforcement should be ON).
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return index names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
