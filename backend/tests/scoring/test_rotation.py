import itertools
import random

import pytest

from shuttlescore.schemas import Players, StartMatch
from shuttlescore.scoring import badminton, rotation


PLAYERS = Players(team_a=["A1", "A2"], team_b=["B1", "B2"])


class Court:
    """Doubles court tracked player by player, following the laws directly.

    The serving side serves from the right court on an even score and the
    left court on an odd one, to the diagonally opposite receiver. Partners
    swap courts only after winning a rally on their own serve.
    """

    def __init__(self, serving, server, receiver):
        receiving = "B" if serving == "A" else "A"
        self.right = {serving: server, receiving: receiver}
        self.left = {
            serving: _partner(serving, server),
            receiving: _partner(receiving, receiver),
        }
        self.score = {"A": 0, "B": 0}
        self.serving = serving

    def _court(self, side, points):
        return self.right[side] if points % 2 == 0 else self.left[side]

    @property
    def server(self):
        return self._court(self.serving, self.score[self.serving])

    @property
    def receiver(self):
        receiving = "B" if self.serving == "A" else "A"
        return self._court(receiving, self.score[self.serving])

    def rally(self, winner):
        if winner == self.serving:
            self.right[winner], self.left[winner] = self.left[winner], self.right[winner]
        self.score[winner] += 1
        self.serving = winner


def _partner(side, name):
    team = PLAYERS.team(side)
    return team[1 - team.index(name)]


def _start(serving, server, receiver):
    return badminton.apply(
        StartMatch(
            players=PLAYERS,
            first_serve=serving,
            first_server_name=server,
            opponent_receiver_name=receiver,
        ),
        badminton.initial_state(),
    )


STARTS = [
    (serving, server, receiver)
    for serving in "AB"
    for server in PLAYERS.team(serving)
    for receiver in PLAYERS.team("B" if serving == "A" else "A")
]


@pytest.mark.parametrize("serving, server, receiver", STARTS)
def test_rotation_matches_court_laws(serving, server, receiver):
    rng = random.Random(f"{serving}{server}{receiver}")
    seen = set()

    for _ in range(40):
        state = _start(serving, server, receiver)
        court = Court(serving, server, receiver)

        while True:
            assert state.serving_side == court.serving
            assert state.current_server == court.server
            assert state.current_receiver == court.receiver
            for side in "AB":
                placed = state.positions.side(side)
                assert placed.right == court.right[side]
                assert placed.left == court.left[side]

            seen.add((state.serve_index, state.points(state.serving_side) % 2))

            side = rng.choice("AB")
            state = badminton.apply({"type": "POINT", "by": side}, state)
            if state.set_finish_data is not None:
                break
            court.rally(side)

    assert seen == set(itertools.product(range(4), (0, 1)))


def test_every_short_sequence_matches_court_laws():
    for rallies in itertools.product("AB", repeat=8):
        state = _start("A", "A1", "B1")
        court = Court("A", "A1", "B1")
        for side in rallies:
            state = badminton.apply({"type": "POINT", "by": side}, state)
            court.rally(side)
            assert state.current_server == court.server
            assert state.current_receiver == court.receiver


def test_start_rotation_offsets():
    start = rotation.start_rotation(PLAYERS, "B", "B2", "A1")
    assert start.order == ("B2", "A2", "B1", "A1")
    assert start.server == "B2"
    assert start.receiver == "A1"
    assert (start.receiver_offset_a, start.receiver_offset_b) == (1, 0)


def test_start_rotation_singles_ignores_names():
    players = Players(team_a=["Alice"], team_b=["Bob"])
    start = rotation.start_rotation(players, "B", "Alice", "Nobody")
    assert start.order == ("Bob", "Alice")
    assert start.server == "Bob"
    assert start.receiver == "Alice"


def test_advance_wraps_around():
    order = ("A1", "B2", "A2", "B1")
    assert rotation.advance(order, 3) == 0
    assert rotation.next_in_order(order, 3) == "A1"
    assert rotation.next_in_order((), 0) is None


@pytest.mark.parametrize(
    "points_a, offset_a, expected",
    [(0, 0, "B1"), (1, 0, "B2"), (2, 1, "B2"), (3, 1, "B1")],
)
def test_receiver_parity(points_a, offset_a, expected):
    assert rotation.compute_receiver(PLAYERS, "A", points_a, 0, offset_a, 0) == expected


def test_rebaseline_offset_uses_last_server_court():
    # B served on an even score, so its server stands in the right court
    assert rotation.rebaseline_offset(PLAYERS, "B", "B2", 4) == 1
    # on an odd score the partner is on the right
    assert rotation.rebaseline_offset(PLAYERS, "B", "B2", 5) == 0


@pytest.mark.parametrize(
    "last_two, current, index, expected",
    [
        (("A", "A"), "A2", 2, "A2"),
        (("B", "A"), "B1", 3, "A1"),
        (("B", "A"), "A2", 2, "A1"),
        (("A",), "A2", 2, "A2"),
        (("A", "A"), "B1", 3, "A1"),
    ],
    ids=["kept", "partner-on-loser", "partner", "single-point", "forced-to-winner"],
)
def test_default_next_server(last_two, current, index, expected):
    order = ("A1", "B2", "A2", "B1")
    assert (
        rotation.default_next_server(order, index, current, last_two, PLAYERS.team_a)
        == expected
    )
