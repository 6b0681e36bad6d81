"""
City Activity Planner.

Geocodes cities, caches daily Open-Meteo forecasts in SQLite, and ranks
skiing, surfing, indoor and outdoor sightseeing for a city on a date.
"""

__version__ = "0.1.0"
