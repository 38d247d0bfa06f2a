"""Badminton scoring engine.

Rally scoring to 21 points (15 and 30 are supported too) with a win-by-2
requirement and a hard cap: 15-point games end at 21, 21- and 30-point
games at 30. Besides the score the engine tracks the serve rotation, the
receiver, where everyone stands and a per-game undo stack.

``apply`` is a pure reducer: it never mutates the state it receives and
returns a new ``MatchState``. Every event has a defined outcome; events
that cannot be applied leave the state unchanged.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, get_args

from pydantic import BaseModel, ValidationError

from ..config import SCORING_SYSTEM
from ..schemas import (
    EVENT_ADAPTER,
    ClearPointHistory,
    GameSnapshot,
    IncrementPoint,
    MatchEvent,
    MatchState,
    PointSnapshot,
    ResetHistory,
    SetNextReceiver,
    SetNextServer,
    SetSetFinishData,
    Side,
    StartMatch,
    StartNextSet,
    Undo,
    other_side,
)
from ..services.stats import point_winners
from ..time_utils import format_elapsed
from .positions import resolve_positions
from .rotation import (
    advance,
    compute_receiver,
    default_next_server,
    next_in_order,
    rebaseline_offset,
    serving_side_of,
    start_rotation,
)

logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = tuple(PointSnapshot.model_fields)


def initial_state() -> MatchState:
    """Return a fresh, unstarted match."""
    return MatchState()


def init_state(config: Dict) -> MatchState:
    """Initialise scoreboard state for badminton.

    ``config`` may contain ``pointsTo``, the target score used when a match
    is started without an explicit scoring system.
    """
    return MatchState(scoring_system=config.get("pointsTo", SCORING_SYSTEM))


def is_set_finished(points_a: int, points_b: int, points_to: int, max_point: int) -> bool:
    for ps, po in ((points_a, points_b), (points_b, points_a)):
        if (ps >= points_to and ps - po >= 2) or ps == max_point:
            return True
    return False


def is_game_over(state: MatchState) -> bool:
    """True once the current game has ended, even if the finish was dismissed."""
    return state.set_finish_data is not None or is_set_finished(
        state.points_a, state.points_b, state.scoring_system, state.max_point
    )


def capture(state: MatchState) -> PointSnapshot:
    """Copy everything a rally can change into a snapshot."""
    return PointSnapshot(**{name: getattr(state, name) for name in _SNAPSHOT_FIELDS})


def _check_name(team: Tuple[str, ...], name: Optional[str], role: str) -> None:
    if name and name not in team:
        logger.warning(
            "%s %r is not on team %s; using %r instead", role, name, list(team), team[0]
        )


def _start_match(state: MatchState, event: StartMatch) -> MatchState:
    players = event.players
    serving_side = event.first_serve
    if not players.is_singles:
        _check_name(players.team(serving_side), event.first_server_name, "server")
        _check_name(
            players.team(other_side(serving_side)),
            event.opponent_receiver_name,
            "receiver",
        )

    rotation = start_rotation(
        players, serving_side, event.first_server_name, event.opponent_receiver_name
    )
    order = rotation.order
    start_index = order.index(rotation.server) if rotation.server in order else 0
    scoring_system = event.scoring_system or state.scoring_system

    logger.info(
        "Match started: %s vs %s, %s serves to %s, games to %d",
        " & ".join(players.team_a),
        " & ".join(players.team_b),
        rotation.server,
        rotation.receiver,
        scoring_system,
    )

    return MatchState(
        players=players,
        scoring_system=scoring_system,
        current_set_start_time=event.start_time,
        serve_order=order,
        serve_index=start_index,
        next_server=next_in_order(order, start_index),
        serving_side=serving_side,
        current_server=rotation.server,
        current_receiver=rotation.receiver,
        receiver_offset_a=rotation.receiver_offset_a,
        receiver_offset_b=rotation.receiver_offset_b,
        positions=resolve_positions(
            serving_side, players, rotation.server, rotation.receiver, 0, 0
        ),
    )


def _finish_set(
    state: MatchState,
    before: PointSnapshot,
    points_a: int,
    points_b: int,
    time: int,
) -> MatchState:
    winner: Side = "A" if points_a > points_b else "B"
    loser = other_side(winner)
    sets_a = state.sets_a + (1 if winner == "A" else 0)
    sets_b = state.sets_b + (1 if winner == "B" else 0)

    after = before.model_copy(
        update={
            "points_a": points_a,
            "points_b": points_b,
            "sets_a": sets_a,
            "sets_b": sets_b,
        }
    )
    history = state.current_set_point_history + (before, after)
    last_two = tuple(point_winners(history)[-2:])

    game = GameSnapshot(
        game_number=len(state.match_history) + 1,
        points_a=points_a,
        points_b=points_b,
        winner_side=winner,
        duration=time - state.current_set_start_time,
        point_history=history,
    )

    winner_team = state.players.team(winner)
    next_server = default_next_server(
        state.serve_order,
        state.serve_index,
        state.current_server,
        last_two,
        winner_team,
    )
    next_receiver = state.players.team(loser)[0]

    logger.info(
        "Game %d won by side %s %d-%d in %s",
        game.game_number,
        winner,
        points_a,
        points_b,
        format_elapsed(game.duration),
    )

    return state.model_copy(
        update={
            "points_a": points_a,
            "points_b": points_b,
            "sets_a": sets_a,
            "sets_b": sets_b,
            "set_finish_data": game,
            "match_history": state.match_history + (game,),
            "last_two_point_winners": last_two,
            "serving_side": winner,
            "current_server": next_server,
            "current_receiver": next_receiver,
            "current_set_point_history": (),
        }
    )


def _increment(state: MatchState, event: IncrementPoint) -> MatchState:
    if not state.is_started:
        logger.debug("Ignoring point for side %s: match not started", event.by)
        return state
    if is_game_over(state):
        logger.debug(
            "Ignoring point for side %s: game finished at %d-%d",
            event.by,
            state.points_a,
            state.points_b,
        )
        return state

    side = event.by
    points_a = state.points_a + (1 if side == "A" else 0)
    points_b = state.points_b + (1 if side == "B" else 0)
    before = capture(state)

    if is_set_finished(points_a, points_b, state.scoring_system, state.max_point):
        return _finish_set(state, before, points_a, points_b, event.time)

    players = state.players
    serving_side = state.serving_side or side
    server = state.current_server
    next_server = state.next_server
    serve_index = state.serve_index
    offset_a = state.receiver_offset_a
    offset_b = state.receiver_offset_b

    if side != state.serving_side and state.serve_order:
        serve_index = advance(state.serve_order, state.serve_index)
        server = state.serve_order[serve_index]
        next_server = next_in_order(state.serve_order, serve_index)
        serving_side = serving_side_of(players, server)
        if state.serving_side is not None and not players.is_singles:
            offset = rebaseline_offset(
                players,
                state.serving_side,
                state.current_server,
                state.points(state.serving_side),
            )
            if serving_side == "A":
                offset_a = offset
            else:
                offset_b = offset

    receiver = compute_receiver(players, serving_side, points_a, points_b, offset_a, offset_b)

    logger.debug(
        "Point %s: %d-%d, %s serves to %s", side, points_a, points_b, server, receiver
    )

    return state.model_copy(
        update={
            "points_a": points_a,
            "points_b": points_b,
            "current_set_point_history": state.current_set_point_history + (before,),
            "serving_side": serving_side,
            "current_server": server,
            "next_server": next_server,
            "serve_index": serve_index,
            "current_receiver": receiver,
            "receiver_offset_a": offset_a,
            "receiver_offset_b": offset_b,
            "positions": resolve_positions(
                serving_side,
                players,
                server,
                receiver,
                points_a,
                points_b,
                previous=state.positions,
            ),
        }
    )


def _undo(state: MatchState, event: Undo) -> MatchState:
    if not state.current_set_point_history:
        return state

    last = state.current_set_point_history[-1]
    update: Dict[str, Any] = {name: getattr(last, name) for name in _SNAPSHOT_FIELDS}
    update["current_set_point_history"] = state.current_set_point_history[:-1]
    return state.model_copy(update=update)


def _start_next_set(state: MatchState, event: StartNextSet) -> MatchState:
    if not state.is_started:
        return state
    if not is_game_over(state):
        logger.debug(
            "Ignoring next game at %d-%d: game %d is still in play",
            state.points_a,
            state.points_b,
            len(state.match_history) + 1,
        )
        return state

    players = state.players
    server_side = players.side_of(event.next_server_name)
    if server_side is None:
        finished = state.set_finish_data
        server_side = (finished.winner_side if finished else None) or state.serving_side or "A"
        logger.warning(
            "server %r is not on either team; side %s serves",
            event.next_server_name,
            server_side,
        )
    if not players.is_singles:
        _check_name(
            players.team(other_side(server_side)), event.next_receiver_name, "receiver"
        )

    rotation = start_rotation(
        players, server_side, event.next_server_name, event.next_receiver_name
    )

    logger.info(
        "Game %d starting: %s serves to %s",
        len(state.match_history) + 1,
        rotation.server,
        rotation.receiver,
    )

    return state.model_copy(
        update={
            "points_a": 0,
            "points_b": 0,
            "serving_side": server_side,
            "current_server": rotation.server,
            "current_receiver": rotation.receiver,
            "current_set_start_time": event.start_time,
            "set_finish_data": None,
            "current_set_point_history": (),
            "last_two_point_winners": (),
            "serve_order": rotation.order,
            "serve_index": 0,
            "next_server": next_in_order(rotation.order, 0),
            "receiver_offset_a": rotation.receiver_offset_a,
            "receiver_offset_b": rotation.receiver_offset_b,
            "positions": resolve_positions(
                server_side, players, rotation.server, rotation.receiver, 0, 0
            ),
        }
    )


def _reset_history(state: MatchState, event: ResetHistory) -> MatchState:
    return state.model_copy(update={"match_history": ()})


def _set_next_server(state: MatchState, event: SetNextServer) -> MatchState:
    if state.set_finish_data is None:
        logger.debug("Ignoring next server %r: no finished game", event.name)
        return state
    return state.model_copy(update={"current_server": event.name})


def _set_next_receiver(state: MatchState, event: SetNextReceiver) -> MatchState:
    if state.set_finish_data is None:
        logger.debug("Ignoring next receiver %r: no finished game", event.name)
        return state
    return state.model_copy(update={"current_receiver": event.name})


def _clear_point_history(state: MatchState, event: ClearPointHistory) -> MatchState:
    """Drop the undo stack of the current game.

    The 0-0 entry goes too, so a game finished after this reports fewer
    points played and shorter streaks than its final score implies.
    """
    return state.model_copy(update={"current_set_point_history": ()})


def _set_set_finish_data(state: MatchState, event: SetSetFinishData) -> MatchState:
    return state.model_copy(update={"set_finish_data": event.data})


_HANDLERS: Dict[type, Callable[[MatchState, Any], MatchState]] = {
    StartMatch: _start_match,
    IncrementPoint: _increment,
    Undo: _undo,
    StartNextSet: _start_next_set,
    ResetHistory: _reset_history,
    SetNextServer: _set_next_server,
    SetNextReceiver: _set_next_receiver,
    ClearPointHistory: _clear_point_history,
    SetSetFinishData: _set_set_finish_data,
}

EVENT_TYPES: Tuple[type, ...] = get_args(get_args(MatchEvent)[0])

_unhandled = set(EVENT_TYPES) - set(_HANDLERS)
if _unhandled:
    raise RuntimeError(
        "no handler for event(s): " + ", ".join(sorted(t.__name__ for t in _unhandled))
    )


def parse_event(event: Any) -> Optional[BaseModel]:
    """Turn ``event`` into one of the event models, or ``None`` if it is not one."""
    if isinstance(event, EVENT_TYPES):
        return event
    if not isinstance(event, dict):
        logger.warning("Ignoring event of type %s", type(event).__name__)
        return None
    try:
        return EVENT_ADAPTER.validate_python(event)
    except ValidationError as exc:
        logger.warning(
            "Ignoring invalid %r event: %s", event.get("type"), exc.errors()[0]["msg"]
        )
        return None


def apply(event: Any, state: MatchState) -> MatchState:
    """Apply an event (model instance or plain dict) to the current state."""
    parsed = parse_event(event)
    if parsed is None:
        return state
    return _HANDLERS[type(parsed)](state, parsed)


def match_winner(state: MatchState, best_of: Optional[int]) -> Optional[Side]:
    if not best_of:
        return None
    games_needed = best_of // 2 + 1
    if state.sets_a >= games_needed:
        return "A"
    if state.sets_b >= games_needed:
        return "B"
    return None


def summary(state: MatchState, best_of: Optional[int] = None) -> Dict:
    return {
        "points": {"A": state.points_a, "B": state.points_b},
        "games": {"A": state.sets_a, "B": state.sets_b},
        "config": {"pointsTo": state.scoring_system, "maxPoint": state.max_point},
        "servingSide": state.serving_side,
        "server": state.current_server,
        "receiver": state.current_receiver,
        "nextServer": state.next_server,
        "positions": state.positions.model_dump() if state.positions else None,
        "gameFinished": state.set_finish_data is not None,
        "matchWinner": match_winner(state, best_of),
    }


def record_sets(
    set_scores: Iterable[Tuple[int, int]], state: MatchState
) -> Tuple[List[Dict], MatchState]:
    """Generate point events to reach the provided game scores.

    ``set_scores`` is an iterable of ``(points_A, points_B)`` tuples and
    ``state`` must be a started match. Points alternate until the loser's
    total is reached and the winner then takes the rest; between games the
    engine's suggested server and receiver open the next one. Returns the
    generated events and the resulting state.
    """
    if not state.is_started:
        raise ValueError("record_sets needs a started match")

    events: List[Dict] = []

    def push(ev: Dict) -> None:
        nonlocal state
        events.append(ev)
        state = apply(ev, state)

    for number, (pa, pb) in enumerate(set_scores):
        if pa == pb:
            raise ValueError("games cannot be tied")
        if number > 0:
            push(
                {
                    "type": "NEXT_SET",
                    "next_server_name": state.current_server,
                    "next_receiver_name": state.current_receiver,
                }
            )
        elif state.set_finish_data is not None:
            raise ValueError("the current game is already finished")

        winner: Side = "A" if pa > pb else "B"
        loser = other_side(winner)
        win_points, lose_points = max(pa, pb), min(pa, pb)

        for _ in range(lose_points):
            push({"type": "POINT", "by": winner})
            push({"type": "POINT", "by": loser})
        for _ in range(win_points - lose_points):
            push({"type": "POINT", "by": winner})

        finished = state.set_finish_data
        if finished is None or (finished.points_a, finished.points_b) != (pa, pb):
            raise ValueError(f"{pa}-{pb} is not a finished game score")

    return events, state
