"""
Service layer.

Modules
-------
cities     : CityService — search (cache first), lookup by id, city detail.
weather    : WeatherService — forecast window cache with TTL freshness.
activities : RecommendationService — city + date → ranked activities.
"""
