"""
City Activity Planner: CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Open the SQLite database (schema applied idempotently).
  4. Run the service call (async services bridged with ``asyncio.run``).
  5. Report result to stdout; domain errors become ``[ERROR]`` + exit code 1.

Install and run::

    pip install -e .
    activity-planner --help
    activity-planner init-db
    activity-planner validate-config
    activity-planner search-cities "innsbruck" --limit 5
    activity-planner forecast 1 --days 7
    activity-planner city 1
    activity-planner recommend 1 2026-10-17
"""

from __future__ import annotations

import asyncio
import json
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional

import typer

app = typer.Typer(
    name="activity-planner",
    help="City Activity Planner: weather-based activity recommendations.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from activity_planner.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from activity_planner.utils.logging import configure_logging
    configure_logging(config.logging)


@contextmanager
def _open_services(config):
    """Yield ``(city_service, weather_service, recommendation_service, client)``.

    The schema is applied first so commands work against a fresh database.
    """
    from activity_planner.db.connection import open_database
    from activity_planner.ingestion.open_meteo_client import OpenMeteoClient
    from activity_planner.services.activities import RecommendationService
    from activity_planner.services.cities import CityService
    from activity_planner.services.weather import WeatherService

    with open_database(config.database) as conn:
        client   = OpenMeteoClient.from_config(config.providers)
        cities   = CityService(conn, client, config.cache)
        weather  = WeatherService(conn, client, cities, config.cache)
        planner  = RecommendationService(cities, weather)
        yield cities, weather, planner, client


def _run_or_exit(config, action: Callable[..., Any]) -> Any:
    """Run ``action(cities, weather, planner)`` and map domain errors to exit code 1.

    ``action`` may return a coroutine; it is awaited on a fresh event loop and
    the HTTP client is closed on the same loop.
    """
    from activity_planner.errors import NotFound, UpstreamError

    async def _drive(cities, weather, planner, client):
        try:
            outcome = action(cities, weather, planner)
            if asyncio.iscoroutine(outcome):
                outcome = await outcome
            return outcome
        finally:
            await client.aclose()

    try:
        with _open_services(config) as (cities, weather, planner, client):
            return asyncio.run(_drive(cities, weather, planner, client))
    except NotFound as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except UpstreamError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid input: {exc}", err=True)
        raise typer.Exit(code=1)


def _echo_origin(result) -> None:
    if result.is_degraded:
        typer.echo("[WARN] Provider unavailable; showing cached (possibly stale) data.")
    if result.skipped:
        typer.echo(f"[WARN] {result.skipped} upstream record(s) could not be stored.")


def _format_observation(obs) -> str:
    uv = f"{obs.uv_index:.1f}" if obs.uv_index is not None else "-"
    return (
        f"  {obs.forecast_date.isoformat()}  "
        f"{obs.min_temp:5.1f}..{obs.max_temp:5.1f}°C  "
        f"code={obs.weather_code:<3d} precip={obs.precipitation:5.1f}mm  "
        f"wind={obs.wind_speed:5.1f}km/h  uv={uv}"
    )


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Initialize the SQLite database and apply the full schema.

    Safe to run multiple times; all DDL uses IF NOT EXISTS.
    Also runs pending schema migrations.
    """
    from activity_planner.db.connection import open_database
    from activity_planner.db.migrations import run_migrations
    from activity_planner.db.schema import ALL_TABLE_NAMES

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with open_database(config.database, db_path=target_path) as conn:
        migrations_applied = run_migrations(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:     {config.database.db_path}")
    typer.echo(f"  Geocoding API:     {config.providers.geocoding_url}")
    typer.echo(f"  Forecast API:      {config.providers.forecast_url}")
    typer.echo(f"  HTTP timeout:      {config.providers.timeout_seconds}s "
               f"({config.providers.max_retries} retries)")
    typer.echo(f"  Weather TTL:       {config.cache.weather_ttl_minutes} min")
    typer.echo(f"  Forecast window:   {config.cache.default_forecast_days} days")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("search-cities")
def search_cities(
    query: str = typer.Argument(..., help="City name or name fragment."),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", help="Maximum results (1-100)."
    ),
    country: Optional[str] = typer.Option(
        None, "--country", help="ISO 3166-1 alpha-2 country filter, e.g. AT."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Search cities by name (local cache first, then the geocoding API)."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    result = _run_or_exit(
        config,
        lambda cities, weather, planner: cities.search_cities(query, limit, country),
    )

    _echo_origin(result)
    if not result.entries:
        typer.echo(f"No cities found for '{query}'.")
        return

    typer.echo(f"{'ID':>5}  {'Name':<28} {'Country':<8} {'Elev(m)':>8} {'Population':>11}  Region")
    for city in result.entries:
        elevation  = f"{city.elevation:.0f}" if city.elevation is not None else "-"
        population = f"{city.population:,}" if city.population is not None else "-"
        typer.echo(
            f"{city.city_id:>5}  {city.name[:28]:<28} {city.country_code or '-':<8} "
            f"{elevation:>8} {population:>11}  {city.admin1 or ''}"
        )
    typer.echo(f"[OK] {len(result.entries)} city(ies) ({result.origin}).")


@app.command("forecast")
def forecast(
    city_id: int = typer.Argument(..., help="Local city id (see search-cities)."),
    days: Optional[int] = typer.Option(
        None, "--days", "-d", help="Forecast window in days (1-16)."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Show the daily forecast for a city, refreshing stale data."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    result = _run_or_exit(
        config,
        lambda cities, weather, planner: weather.get_forecast(city_id, days),
    )

    _echo_origin(result)
    for obs in result.entries:
        typer.echo(_format_observation(obs))
    typer.echo(f"[OK] {len(result.entries)} day(s) ({result.origin}).")


@app.command("city")
def city_detail(
    city_id: int = typer.Argument(..., help="Local city id."),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Show a stored city and its most recent stored forecasts."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    detail = _run_or_exit(
        config,
        lambda cities, weather, planner: cities.get_city_detail(city_id),
    )

    city = detail.city
    typer.echo(f"{city.name} ({city.country or '-'}) — id {city.city_id}, provider id {city.provider_id}")
    typer.echo(f"  Location:   {city.latitude:.4f}, {city.longitude:.4f}  ({city.timezone})")
    typer.echo(f"  Elevation:  {city.elevation if city.elevation is not None else '-'} m  "
               f"→ {city.geography}")
    if detail.recent_observations:
        typer.echo("  Recent forecasts:")
        for obs in detail.recent_observations:
            typer.echo(_format_observation(obs))
    else:
        typer.echo("  No stored forecasts.")


@app.command("recommend")
def recommend(
    city_id: int = typer.Argument(..., help="Local city id."),
    on_date: Optional[str] = typer.Argument(
        None, help="ISO date (YYYY-MM-DD); defaults to the city's local today."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Rank skiing, surfing, indoor and outdoor sightseeing for a city and date."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        target = date.fromisoformat(on_date) if on_date else None
    except ValueError:
        typer.echo(f"[ERROR] Invalid date '{on_date}'. Expected YYYY-MM-DD.", err=True)
        raise typer.Exit(code=1)

    result = _run_or_exit(
        config,
        lambda cities, weather, planner: planner.recommend(city_id, target),
    )

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    typer.echo(f"{result.city.name} — {result.forecast_date.isoformat()}")
    for rank, rec in enumerate(result.activities, start=1):
        typer.echo(f"  {rank}. {rec.activity:<20} {rec.score:5.1f}  {rec.label}")
        typer.echo(f"       {rec.reasoning}")
    typer.echo(f"[OK] Best pick: {result.best.activity}.")


if __name__ == "__main__":
    app()
