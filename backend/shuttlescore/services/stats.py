from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from ..schemas import GameSnapshot, GameStats, MatchStats, PointSnapshot, Side


def point_winners(history: Sequence[PointSnapshot]) -> List[Side]:
    """Return which side won each rally, read from score changes in ``history``."""
    winners: List[Side] = []
    for prev, curr in zip(history, history[1:]):
        if curr.points_a > prev.points_a:
            winners.append("A")
        elif curr.points_b > prev.points_b:
            winners.append("B")
    return winners


def compute_streaks(winners: Sequence[Side]) -> Dict[str, int]:
    """Compute the current run and the longest run of points for each side.

    ``current`` is positive for a run by side A and negative for side B.
    """
    longest = {"A": 0, "B": 0}
    curr = {"A": 0, "B": 0}
    for side in winners:
        other = "B" if side == "A" else "A"
        curr[side] += 1
        curr[other] = 0
        longest[side] = max(longest[side], curr[side])
    current = 0
    if winners:
        last = winners[-1]
        count = 0
        for side in reversed(winners):
            if side == last:
                count += 1
            else:
                break
        current = count if last == "A" else -count
    return {
        "current": current,
        "longestA": longest["A"],
        "longestB": longest["B"],
    }


def count_game_points(
    history: Sequence[PointSnapshot], scoring_system: int
) -> Tuple[int, int]:
    """Count game-point situations for each side after every rally.

    A side holds game point when it sits on ``scoring_system - 1`` with the
    opponent below that, or when it has reached ``scoring_system`` and leads
    by exactly one. Every extension game point counts again.
    """
    threshold = scoring_system - 1
    game_points_a = game_points_b = 0
    for snap in history[1:]:
        a, b = snap.points_a, snap.points_b
        if a == threshold and b < threshold:
            game_points_a += 1
        if b == threshold and a < threshold:
            game_points_b += 1
        if a >= scoring_system and a == b + 1:
            game_points_a += 1
        if b >= scoring_system and b == a + 1:
            game_points_b += 1
    return game_points_a, game_points_b


def score_progression(history: Sequence[PointSnapshot]) -> List[Tuple[int, int]]:
    """Score after each rally, for drawing the point flow of a game."""
    return [(snap.points_a, snap.points_b) for snap in history[1:]]


def calculate_game_stats(game: GameSnapshot, scoring_system: int) -> GameStats:
    history = game.point_history
    streaks = compute_streaks(point_winners(history))
    game_points_a, game_points_b = count_game_points(history, scoring_system)
    return GameStats(
        total_points_won_a=game.points_a,
        total_points_won_b=game.points_b,
        total_points_played=max(len(history) - 1, 0),
        most_consecutive_points_a=streaks["longestA"],
        most_consecutive_points_b=streaks["longestB"],
        game_points_a=game_points_a,
        game_points_b=game_points_b,
    )


def calculate_match_stats(games: Iterable[GameSnapshot], scoring_system: int) -> MatchStats:
    """Aggregate per-game stats: totals are summed, streaks take the maximum."""
    totals = MatchStats().model_dump()
    for game in games:
        stats = calculate_game_stats(game, scoring_system)
        totals["games_played"] += 1
        for key in (
            "total_points_won_a",
            "total_points_won_b",
            "total_points_played",
            "game_points_a",
            "game_points_b",
        ):
            totals[key] += getattr(stats, key)
        for key in ("most_consecutive_points_a", "most_consecutive_points_b"):
            totals[key] = max(totals[key], getattr(stats, key))
    return MatchStats(**totals)
