"""Serve rotation for singles and doubles.

Doubles service passes in a fixed cycle: initial server, partner of the
initial receiver, partner of the initial server, initial receiver. Singles
simply alternates between the two players. The serving side is always read
off the server's roster rather than tracked on its own.

The receiver is found with a parity rule. While side X serves, the opposing
side stays put, so it is enough to remember which of its players stands in
the right court (the "baseline offset"): an even serving score goes to that
player, an odd one to the partner. The offset is re-baselined every time the
service changes hands.
"""

from typing import NamedTuple, Optional, Sequence, Tuple

from ..schemas import Players, Side, other_side
from .positions import partner_of, slot_of


class ServeStart(NamedTuple):
    order: Tuple[str, ...]
    server: str
    receiver: str
    receiver_offset_a: int
    receiver_offset_b: int


def build_serve_order(
    serving_team: Sequence[str],
    receiving_team: Sequence[str],
    server_slot: int,
    receiver_slot: int,
) -> Tuple[str, ...]:
    server = serving_team[server_slot]
    receiver = receiving_team[receiver_slot]
    if len(serving_team) == 1:
        return (server, receiver)
    return (
        server,
        receiving_team[1 - receiver_slot],
        serving_team[1 - server_slot],
        receiver,
    )


def start_rotation(
    players: Players,
    serving_side: Side,
    server_name: Optional[str],
    receiver_name: Optional[str],
) -> ServeStart:
    """Build the serve order and baseline offsets for a game starting at 0-0.

    Names that are not on the expected team fall back to that team's first
    player.
    """
    serving_team = players.team(serving_side)
    receiving_team = players.team(other_side(serving_side))

    if players.is_singles:
        server_slot = receiver_slot = 0
    else:
        server_slot = slot_of(serving_team, server_name)
        receiver_slot = slot_of(receiving_team, receiver_name)

    order = build_serve_order(serving_team, receiving_team, server_slot, receiver_slot)

    if players.is_singles:
        offset_a = offset_b = 0
    elif serving_side == "A":
        offset_a, offset_b = receiver_slot, server_slot
    else:
        offset_a, offset_b = server_slot, receiver_slot

    return ServeStart(
        order=order,
        server=serving_team[server_slot],
        receiver=receiving_team[receiver_slot],
        receiver_offset_a=offset_a,
        receiver_offset_b=offset_b,
    )


def advance(order: Sequence[str], index: int) -> int:
    return (index + 1) % len(order)


def next_in_order(order: Sequence[str], index: int) -> Optional[str]:
    if not order:
        return None
    return order[(index + 1) % len(order)]


def serving_side_of(players: Players, server: str) -> Side:
    return "A" if server in players.team_a else "B"


def right_court_player(team: Sequence[str], server: str, points: int) -> str:
    """Player of a serving side standing in the right court."""
    if points % 2 == 0:
        return server
    return partner_of(team, server)


def rebaseline_offset(
    players: Players, losing_side: Side, last_server: Optional[str], losing_points: int
) -> int:
    """Offset for the side that just won the service back.

    ``losing_side`` has just lost the rally on its own serve and becomes the
    receiving side; the offset is the roster slot of its right-court player.
    """
    team = players.team(losing_side)
    server = team[slot_of(team, last_server)]
    return slot_of(team, right_court_player(team, server, losing_points))


def compute_receiver(
    players: Players,
    serving_side: Side,
    points_a: int,
    points_b: int,
    receiver_offset_a: int,
    receiver_offset_b: int,
) -> Optional[str]:
    receiving_team = players.team(other_side(serving_side))
    if not receiving_team:
        return None
    if players.is_singles:
        return receiving_team[0]
    if serving_side == "A":
        idx = (receiver_offset_a + points_a % 2) % len(receiving_team)
    else:
        idx = (receiver_offset_b + points_b % 2) % len(receiving_team)
    return receiving_team[idx]


def default_next_server(
    order: Sequence[str],
    serve_index: int,
    current_server: Optional[str],
    last_two_point_winners: Sequence[Side],
    winner_team: Sequence[str],
) -> str:
    """Suggest who serves first in the next game.

    If one side won the last two points the server of the winning point
    keeps the serve; otherwise it passes to that server's partner. The
    suggestion is always a player of the side that won the game.
    """
    if len(last_two_point_winners) == 2 and order:
        if last_two_point_winners[0] == last_two_point_winners[1]:
            candidate = current_server or winner_team[0]
        else:
            candidate = order[(serve_index + 2) % len(order)]
    else:
        candidate = current_server or winner_team[0]

    if candidate not in winner_team:
        candidate = winner_team[0]
    return candidate
