"""Left/right court placement for both sides.

In doubles a serving side stands according to its own score: the server is
in the right court on an even score and in the left court on an odd one.
The receiving side never moves while it receives, so its placement is kept
from the previous rally instead of being re-derived from roster order.
"""

from typing import Optional, Sequence

from ..schemas import CourtPositions, Players, Side, SidePositions, other_side


def slot_of(team: Sequence[str], name: Optional[str]) -> int:
    """Index of ``name`` in ``team``, or 0 when it is not on that team."""
    if name in team:
        return list(team).index(name)
    return 0


def partner_of(team: Sequence[str], name: Optional[str]) -> str:
    if len(team) == 1:
        return team[0]
    return team[1 - slot_of(team, name)]


def serving_positions(team: Sequence[str], server: str, points: int) -> SidePositions:
    """Placement of a serving side with ``points`` on its score."""
    partner = partner_of(team, server)
    if points % 2 == 0:
        return SidePositions(left=partner, right=server)
    return SidePositions(left=server, right=partner)


def receiving_positions(
    team: Sequence[str], receiver: str, serving_points: int
) -> SidePositions:
    """Placement of a receiving side, read off the receiver's diagonal court."""
    partner = partner_of(team, receiver)
    if serving_points % 2 == 0:
        return SidePositions(left=partner, right=receiver)
    return SidePositions(left=receiver, right=partner)


def resolve_positions(
    serving_side: Side,
    players: Players,
    server_name: Optional[str],
    receiver_name: Optional[str],
    points_a: int,
    points_b: int,
    previous: Optional[CourtPositions] = None,
) -> Optional[CourtPositions]:
    """Return where every player stands for the coming rally.

    At 0-0 server and receiver both start in the right court. During play
    only the serving side is recomputed; the other side keeps ``previous``.
    Without a previous placement the receiving side is derived from the
    receiver, who always stands diagonally opposite the server.
    """
    if players.is_empty:
        return None

    if players.is_singles:
        a, b = players.team_a[0], players.team_b[0]
        return CourtPositions(
            team_a=SidePositions(left=a, right=a),
            team_b=SidePositions(left=b, right=b),
        )

    receiving_side = other_side(serving_side)
    serving_team = players.team(serving_side)
    receiving_team = players.team(receiving_side)
    server = serving_team[slot_of(serving_team, server_name)]
    receiver = receiving_team[slot_of(receiving_team, receiver_name)]
    serving_points = points_a if serving_side == "A" else points_b

    if points_a == 0 and points_b == 0:
        serving = serving_positions(serving_team, server, 0)
        receiving = receiving_positions(receiving_team, receiver, 0)
    else:
        serving = serving_positions(serving_team, server, serving_points)
        if previous is not None:
            receiving = previous.side(receiving_side)
        else:
            receiving = receiving_positions(receiving_team, receiver, serving_points)

    if serving_side == "A":
        return CourtPositions(team_a=serving, team_b=receiving)
    return CourtPositions(team_a=receiving, team_b=serving)
