"""
Recommendation engine: converts one day's weather into ranked activity
recommendations with human-readable explanations.

Modules
-------
scorer : ActivityScores dataclass + compute_scores() + recommendation_label()
         + build_reasoning(); pure functions, no DB or I/O.
ranker : rank_activities() + recommend_for_weather().
"""
