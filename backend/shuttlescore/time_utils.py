"""Helpers for working with elapsed match time."""

from __future__ import annotations


def format_elapsed(seconds: int | None) -> str:
    """Format a number of elapsed seconds as ``HH:MM:SS``.

    Negative or missing values are shown as ``00:00:00``.
    """

    if not seconds or seconds < 0:
        return "00:00:00"

    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def elapsed_between(start: int, now: int) -> int:
    """Return ``now - start``, never less than zero."""

    return max(0, now - start)
