"""
Ingestion layer: Open-Meteo geocoding and forecast client.

Submodules:
  open_meteo_client — async httpx client, payload unpacking, error mapping

Endpoints are configured in ``[providers]`` (config/default.toml) and may be
overridden with ACTIVITY_PLANNER_GEOCODING_URL / ACTIVITY_PLANNER_FORECAST_URL.
"""
