import pytest

from shuttlescore.scoring import badminton
from shuttlescore.services.session import MatchSession
from shuttlescore.services.validation import ValidationError
from shuttlescore.time_utils import elapsed_between, format_elapsed


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def doubles_session(**kwargs):
    session = MatchSession(21, **kwargs)
    session.start_match(["A1", "A2"], ["B1", "B2"], "A", "A1", "B1")
    return session


def play(session, sequence, start=0, step=10):
    for i, side in enumerate(sequence):
        session.point(side, start + step * (i + 1))
    return session.state


# ---------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------

def test_new_session_is_not_started():
    session = MatchSession()
    assert not session.is_match_started
    assert session.in_progress_game(0) is None
    assert session.history_for_display(0) == []


def test_full_best_of_three():
    session = doubles_session(best_of=3)

    play(session, "A" * 21)
    assert session.state.set_finish_data is not None
    session.continue_next_set(300)
    assert session.state.set_finish_data is None
    assert session.state.current_set_start_time == 300

    play(session, "A" * 21, start=300)

    assert session.match_winner == "A"
    assert [g.game_number for g in session.state.match_history] == [1, 2]


def test_continue_uses_suggested_server():
    session = doubles_session()
    state = play(session, "AB" * 19 + "AA")
    suggested = state.current_server

    session.continue_next_set(500)

    assert session.state.current_server == suggested
    assert session.state.current_receiver == "B1"


def test_continue_with_explicit_choice():
    session = doubles_session()
    play(session, "B" * 21)

    session.continue_next_set(500, server_name="B2", receiver_name="A2")

    assert session.state.current_server == "B2"
    assert session.state.current_receiver == "A2"
    assert session.state.serving_side == "B"


def test_continue_without_finished_game_is_a_noop():
    session = doubles_session()
    play(session, "AB")
    before = session.state

    assert session.continue_next_set(100) is before


def test_undo_and_reset_history():
    session = doubles_session()
    play(session, "A" * 21)
    session.continue_next_set(300)
    play(session, "AAB", start=300)

    session.undo()
    assert (session.state.points_a, session.state.points_b) == (2, 0)

    session.reset_history()
    assert session.state.match_history == ()
    assert (session.state.points_a, session.state.points_b) == (2, 0)


# ---------------------------------------------------------
# Strict mode
# ---------------------------------------------------------

def test_strict_session_rejects_unknown_server():
    session = MatchSession(strict=True)

    with pytest.raises(ValidationError):
        session.start_match(["A1", "A2"], ["B1", "B2"], "A", "Zed", "B1")
    assert not session.is_match_started


def test_lenient_session_corrects_unknown_server():
    session = MatchSession()
    session.start_match(["A1", "A2"], ["B1", "B2"], "A", "Zed", "B1")
    assert session.state.current_server == "A1"


def test_strict_session_rejects_receiver_on_server_team():
    session = doubles_session(strict=True)
    play(session, "A" * 21)

    with pytest.raises(ValidationError):
        session.continue_next_set(100, server_name="A1", receiver_name="A2")
    assert session.state.set_finish_data is not None


# ---------------------------------------------------------
# Reporting
# ---------------------------------------------------------

def test_in_progress_game_includes_live_score():
    session = doubles_session()
    play(session, "AAB")

    game = session.in_progress_game(95)

    assert game.game_number == 1
    assert game.winner_side is None
    assert game.duration == 95
    assert len(game.point_history) == 4
    assert (game.point_history[-1].points_a, game.point_history[-1].points_b) == (2, 1)


def test_history_and_stats_cover_live_game():
    session = doubles_session()
    play(session, "A" * 21)
    session.continue_next_set(300)
    play(session, "BBB", start=300)

    history = session.history_for_display(400)
    assert len(history) == 2
    assert history[-1].duration == 100

    stats = session.match_stats(400)
    assert stats.games_played == 2
    assert stats.total_points_played == 24
    assert stats.most_consecutive_points_a == 21
    assert stats.most_consecutive_points_b == 3


# ---------------------------------------------------------
# Replay
# ---------------------------------------------------------

def test_load_events_must_be_list():
    with pytest.raises(ValidationError):
        MatchSession().load_events("not_a_list")  # type: ignore[arg-type]


def test_invalid_event_is_atomic():
    session = doubles_session()
    before = session.state

    with pytest.raises(ValidationError):
        session.load_events([{"type": "UNDO"}, {"type": "POINT", "by": "C"}])

    assert session.state is before


def test_replay_is_deterministic():
    session = doubles_session()
    play(session, "ABBAAB" * 5)
    session.undo()
    play(session, "B" * 21)
    session.continue_next_set(900)
    play(session, "AB", start=900)

    exported = session.export_events()

    replayed = MatchSession(21)
    replayed.load_events(exported)

    assert replayed.state == session.state
    assert replayed.export_events() == exported


def test_replay_matches_direct_reducer_calls():
    events = [
        {
            "type": "START_MATCH",
            "players": {"team_a": ["Alice"], "team_b": ["Bob"]},
            "first_serve": "A",
        },
        {"type": "POINT", "by": "B", "time": 4},
        {"type": "POINT", "by": "A", "time": 9},
        {"type": "UNDO"},
    ]
    session = MatchSession()
    state = session.load_events(events)

    expected = badminton.init_state({"pointsTo": 21})
    for ev in events:
        expected = badminton.apply(ev, expected)

    assert state == expected
    assert (state.points_a, state.points_b) == (0, 1)


def test_reset_clears_state():
    session = doubles_session()
    play(session, "AAB")

    session.reset()

    assert not session.is_match_started
    assert session.export_events() == []


# ---------------------------------------------------------
# Time helpers
# ---------------------------------------------------------

@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "00:00:00"), (59, "00:00:59"), (3725, "01:02:05"), (-4, "00:00:00"), (None, "00:00:00")],
)
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected


def test_elapsed_between_never_negative():
    assert elapsed_between(100, 160) == 60
    assert elapsed_between(100, 40) == 0
