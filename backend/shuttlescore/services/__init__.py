"""Internal application services (pure helpers, no I/O)."""

from .validation import (
    ValidationError,
    validate_next_set,
    validate_roster,
    validate_scoring_system,
    validate_start,
)
from .stats import (
    calculate_game_stats,
    calculate_match_stats,
    compute_streaks,
    count_game_points,
    point_winners,
    score_progression,
)

__all__ = [
    "ValidationError",
    "validate_next_set",
    "validate_roster",
    "validate_scoring_system",
    "validate_start",
    "calculate_game_stats",
    "calculate_match_stats",
    "compute_streaks",
    "count_game_points",
    "point_winners",
    "score_progression",
]
