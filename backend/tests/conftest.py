import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from shuttlescore.schemas import Players, StartMatch  # noqa: E402
from shuttlescore.scoring import badminton  # noqa: E402


@pytest.fixture
def singles_state():
    """Alice (A) serves to Bob (B) in a 21-point game."""
    return badminton.apply(
        StartMatch(
            players=Players(team_a=["Alice"], team_b=["Bob"]),
            first_serve="A",
            scoring_system=21,
        ),
        badminton.initial_state(),
    )


@pytest.fixture
def doubles_state():
    """A1 serves to B1 with A2 and B2 as partners, 21-point game."""
    return badminton.apply(
        StartMatch(
            players=Players(team_a=["A1", "A2"], team_b=["B1", "B2"]),
            first_serve="A",
            first_server_name="A1",
            opponent_receiver_name="B1",
            scoring_system=21,
        ),
        badminton.initial_state(),
    )
