import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from ..config import DEFAULT_BEST_OF, SCORING_SYSTEM
from ..schemas import (
    GameSnapshot,
    IncrementPoint,
    MatchState,
    MatchStats,
    Players,
    ResetHistory,
    Side,
    StartMatch,
    StartNextSet,
    Undo,
    other_side,
)
from ..scoring import badminton
from ..time_utils import elapsed_between
from .stats import calculate_match_stats
from .validation import ValidationError, validate_next_set, validate_start

logger = logging.getLogger(__name__)


class MatchSession:
    """
    Single local scoreboard session.

    Responsibilities:
    - Hold the current MatchState and the events that produced it
    - Offer one call per scoreboard action
    - Atomically replay a recorded event log
    - Assemble the in-progress game for history and stats views

    Elapsed time is always supplied by the caller.
    """

    def __init__(
        self,
        scoring_system: Optional[int] = None,
        *,
        best_of: int = DEFAULT_BEST_OF,
        strict: bool = False,
    ):
        self._config = {"pointsTo": scoring_system or SCORING_SYSTEM}
        self.best_of = best_of
        self.strict = strict
        self._state = badminton.init_state(self._config)
        self._events: List[BaseModel] = []

    # ---------------------------------------------------------
    # Core API
    # ---------------------------------------------------------

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def is_match_started(self) -> bool:
        return self._state.is_started

    @property
    def match_winner(self) -> Optional[Side]:
        return badminton.match_winner(self._state, self.best_of)

    def dispatch(self, event: Any) -> MatchState:
        parsed = badminton.parse_event(event)
        if parsed is None:
            return self._state
        self._events.append(parsed)
        self._state = badminton.apply(parsed, self._state)
        return self._state

    def start_match(
        self,
        team_a: Sequence[str],
        team_b: Sequence[str],
        first_serve: Side,
        first_server_name: str = "",
        opponent_receiver_name: str = "",
        scoring_system: Optional[int] = None,
    ) -> MatchState:
        players = Players(team_a=team_a, team_b=team_b)
        if self.strict:
            validate_start(players, first_serve, first_server_name, opponent_receiver_name)
        return self.dispatch(
            StartMatch(
                players=players,
                first_serve=first_serve,
                first_server_name=first_server_name,
                opponent_receiver_name=opponent_receiver_name,
                scoring_system=scoring_system,
                start_time=0,
            )
        )

    def point(self, side: Side, elapsed: int) -> MatchState:
        return self.dispatch(IncrementPoint(by=side, time=elapsed))

    def undo(self) -> MatchState:
        return self.dispatch(Undo())

    def continue_next_set(
        self,
        elapsed: int,
        server_name: Optional[str] = None,
        receiver_name: Optional[str] = None,
    ) -> MatchState:
        """Start the next game once the finished one has been acknowledged.

        Without explicit names the engine's suggested server and receiver
        are used.
        """
        finished = self._state.set_finish_data
        if finished is None:
            return self._state

        players = self._state.players
        winner_team = players.team(finished.winner_side or "A")
        loser_team = players.team(other_side(finished.winner_side or "A"))
        server = server_name or self._state.current_server or winner_team[0]
        receiver = receiver_name or self._state.current_receiver or loser_team[0]

        if self.strict:
            validate_next_set(self._state, server, receiver)
        return self.dispatch(
            StartNextSet(
                next_server_name=server,
                next_receiver_name=receiver,
                start_time=elapsed,
            )
        )

    def reset_history(self) -> MatchState:
        return self.dispatch(ResetHistory())

    # ---------------------------------------------------------
    # Reporting
    # ---------------------------------------------------------

    def in_progress_game(self, elapsed: int) -> Optional[GameSnapshot]:
        """The game being played, with the live score appended to its history."""
        state = self._state
        if not state.is_started or not state.current_set_point_history:
            return None
        return GameSnapshot(
            game_number=len(state.match_history) + 1,
            points_a=state.points_a,
            points_b=state.points_b,
            winner_side=None,
            duration=elapsed_between(state.current_set_start_time, elapsed),
            point_history=state.current_set_point_history + (badminton.capture(state),),
        )

    def history_for_display(self, elapsed: int) -> List[GameSnapshot]:
        games = list(self._state.match_history)
        current = self.in_progress_game(elapsed)
        if current is not None:
            games.append(current)
        return games

    def match_stats(self, elapsed: int) -> MatchStats:
        return calculate_match_stats(
            self.history_for_display(elapsed), self._state.scoring_system
        )

    # ---------------------------------------------------------
    # Replay
    # ---------------------------------------------------------

    def load_events(self, events: List[Dict]) -> MatchState:
        """
        Replay an event log from a fresh match.
        Atomic: if any event is invalid -> no state mutation.
        """
        if not isinstance(events, list):
            raise ValidationError("events must be a list")

        parsed: List[BaseModel] = []
        for i, raw in enumerate(events, start=1):
            event = badminton.parse_event(raw)
            if event is None:
                raise ValidationError(f"Event #{i} is not a valid scoreboard event.")
            parsed.append(event)

        state = badminton.init_state(self._config)
        for event in parsed:
            state = badminton.apply(event, state)

        self._state = state
        self._events = parsed
        logger.info("Replayed %d event(s)", len(parsed))
        return state

    def export_events(self) -> List[Dict]:
        return [e.model_dump(mode="json") for e in self._events]

    def reset(self) -> None:
        self._state = badminton.init_state(self._config)
        self._events = []
