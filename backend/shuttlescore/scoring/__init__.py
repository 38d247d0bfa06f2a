"""Scoring engine for badminton singles and doubles."""

from . import badminton, positions, rotation

__all__ = [
    "badminton",
    "positions",
    "rotation",
]
