from typing import Any, Iterable, List, Optional, Sequence

from ..config import SCORE_CAPS
from ..schemas import MatchState, Players, Side, other_side


class ValidationError(Exception):
    """Raised when a roster or a server/receiver selection is invalid."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def _normalize_team(label: str, team: Any) -> List[str]:
    if not isinstance(team, (list, tuple)):
        raise ValidationError(f"Team {label} must be a list of player names.")
    if len(team) not in (1, 2):
        raise ValidationError(f"Team {label} must have one or two players.")
    names: List[str] = []
    for i, raw in enumerate(team, start=1):
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError(f"Team {label} player #{i} must have a name.")
        names.append(raw.strip())
    return names


def validate_roster(team_a: Sequence[str], team_b: Sequence[str]) -> Players:
    """Validate both rosters and return them as ``Players``.

    Rules:
    - Each team is a list of one (singles) or two (doubles) non-empty names
    - Both teams have the same size
    - No name appears twice
    """

    a = _normalize_team("A", team_a)
    b = _normalize_team("B", team_b)
    if len(a) != len(b):
        raise ValidationError("Both teams must have the same number of players.")
    seen = set()
    for name in a + b:
        if name in seen:
            raise ValidationError(f"Player name '{name}' is used twice.")
        seen.add(name)
    return Players(team_a=a, team_b=b)


def validate_scoring_system(
    scoring_system: Any, *, allowed: Optional[Iterable[int]] = None
) -> int:
    allowed_values = sorted(allowed if allowed is not None else SCORE_CAPS)
    if isinstance(scoring_system, bool) or not isinstance(scoring_system, int):
        raise ValidationError("Scoring system must be an integer.")
    if scoring_system not in allowed_values:
        formatted = ", ".join(str(v) for v in allowed_values)
        raise ValidationError(f"Scoring system must be one of {formatted}.")
    return scoring_system


def _require_member(players: Players, side: Side, name: Optional[str], role: str) -> None:
    team = players.team(side)
    if name not in team:
        raise ValidationError(
            f"The {role} '{name}' is not a player of team {side}."
        )


def validate_start(
    players: Players,
    first_serve: Side,
    first_server_name: Optional[str],
    opponent_receiver_name: Optional[str],
) -> None:
    """Reject a first server or receiver who is not on the expected team.

    In singles the names may be omitted since there is only one choice.
    """

    if players.is_empty:
        raise ValidationError("Both teams need players before the match starts.")
    if players.is_singles and not first_server_name and not opponent_receiver_name:
        return
    _require_member(players, first_serve, first_server_name, "first server")
    _require_member(
        players, other_side(first_serve), opponent_receiver_name, "first receiver"
    )


def validate_next_set(state: MatchState, server_name: str, receiver_name: str) -> None:
    """Check a server/receiver choice for the next game against the roster."""

    players = state.players
    if players.is_empty:
        raise ValidationError("The match has not started.")
    server_side = players.side_of(server_name)
    if server_side is None:
        raise ValidationError(f"The server '{server_name}' is not in this match.")
    _require_member(players, other_side(server_side), receiver_name, "receiver")
