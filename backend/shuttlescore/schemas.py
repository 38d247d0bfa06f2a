from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from .config import SCORING_SYSTEM, max_point

Side = Literal["A", "B"]
SIDES: Tuple[Side, Side] = ("A", "B")


def other_side(side: Side) -> Side:
    return "B" if side == "A" else "A"


class Players(BaseModel):
    """Rosters for both sides, one or two names each."""

    model_config = ConfigDict(frozen=True)

    team_a: Tuple[str, ...] = ()
    team_b: Tuple[str, ...] = ()

    @field_validator("team_a", "team_b", mode="before")
    @classmethod
    def _normalize_names(cls, value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ValueError("a team must be a list of player names")
        names = []
        for raw in value:
            if not isinstance(raw, str):
                raise ValueError("player names must be strings")
            trimmed = raw.strip()
            if not trimmed:
                raise ValueError("player names must not be empty")
            names.append(trimmed)
        return tuple(names)

    @model_validator(mode="after")
    def _validate_sizes(self) -> "Players":
        if not self.team_a and not self.team_b:
            return self
        if len(self.team_a) not in (1, 2) or len(self.team_b) not in (1, 2):
            raise ValueError("each side must have one or two players")
        if len(self.team_a) != len(self.team_b):
            raise ValueError("both sides must have the same number of players")
        names = self.team_a + self.team_b
        if len(set(names)) != len(names):
            raise ValueError("player names must be unique across both sides")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.team_a

    @property
    def is_singles(self) -> bool:
        return len(self.team_a) == 1

    def team(self, side: Side) -> Tuple[str, ...]:
        return self.team_a if side == "A" else self.team_b

    def side_of(self, name: Optional[str]) -> Optional[Side]:
        if name is None:
            return None
        if name in self.team_a:
            return "A"
        if name in self.team_b:
            return "B"
        return None


class SidePositions(BaseModel):
    """Which player of a side stands in the left and the right court."""

    model_config = ConfigDict(frozen=True)

    left: str
    right: str


class CourtPositions(BaseModel):
    model_config = ConfigDict(frozen=True)

    team_a: SidePositions
    team_b: SidePositions

    def side(self, side: Side) -> SidePositions:
        return self.team_a if side == "A" else self.team_b


class PointSnapshot(BaseModel):
    """Copy of the match state taken before a rally, used for undo."""

    model_config = ConfigDict(frozen=True)

    points_a: int = 0
    sets_a: int = 0
    points_b: int = 0
    sets_b: int = 0
    serving_side: Optional[Side] = None
    current_server: Optional[str] = None
    current_receiver: Optional[str] = None
    next_server: Optional[str] = None
    serve_index: int = 0
    receiver_offset_a: int = 0
    receiver_offset_b: int = 0
    players: Players = Field(default_factory=Players)
    positions: Optional[CourtPositions] = None


class GameSnapshot(BaseModel):
    """Result and point history of one game, finished or in progress."""

    model_config = ConfigDict(frozen=True)

    game_number: int = Field(ge=1)
    points_a: int = Field(ge=0)
    points_b: int = Field(ge=0)
    winner_side: Optional[Side] = None
    duration: int = 0
    point_history: Tuple[PointSnapshot, ...] = ()


class MatchState(BaseModel):
    """Everything the reducer needs to score a match.

    Instances are frozen; every transition builds a new value.
    ``receiver_offset_a`` is the index in team B of the player standing in
    the right court while side A serves, ``receiver_offset_b`` the index in
    team A while side B serves.
    """

    model_config = ConfigDict(frozen=True)

    points_a: int = Field(default=0, ge=0)
    sets_a: int = Field(default=0, ge=0)
    points_b: int = Field(default=0, ge=0)
    sets_b: int = Field(default=0, ge=0)

    players: Players = Field(default_factory=Players)

    current_set_point_history: Tuple[PointSnapshot, ...] = ()
    match_history: Tuple[GameSnapshot, ...] = ()

    serving_side: Optional[Side] = None
    current_server: Optional[str] = None
    current_receiver: Optional[str] = None
    next_server: Optional[str] = None
    serve_order: Tuple[str, ...] = ()
    serve_index: int = 0

    scoring_system: int = Field(default=SCORING_SYSTEM, gt=0)
    current_set_start_time: int = 0
    set_finish_data: Optional[GameSnapshot] = None

    receiver_offset_a: int = 0
    receiver_offset_b: int = 0
    last_two_point_winners: Tuple[Side, ...] = ()
    positions: Optional[CourtPositions] = None

    @property
    def is_started(self) -> bool:
        return not self.players.is_empty

    @property
    def max_point(self) -> int:
        return max_point(self.scoring_system)

    def points(self, side: Side) -> int:
        return self.points_a if side == "A" else self.points_b


class StartMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["START_MATCH"] = "START_MATCH"
    players: Players
    first_serve: Side
    first_server_name: str = ""
    opponent_receiver_name: str = ""
    scoring_system: Optional[int] = Field(default=None, gt=0)
    start_time: int = Field(default=0, ge=0)

    @field_validator("players")
    @classmethod
    def _require_players(cls, value: Players) -> Players:
        if value.is_empty:
            raise ValueError("a match needs players on both sides")
        return value


class IncrementPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["POINT"] = "POINT"
    by: Side
    time: int = Field(default=0, ge=0)


class Undo(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["UNDO"] = "UNDO"


class StartNextSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["NEXT_SET"] = "NEXT_SET"
    next_server_name: str
    next_receiver_name: str
    start_time: int = Field(default=0, ge=0)


class ResetHistory(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["RESET_HISTORY"] = "RESET_HISTORY"


class SetNextServer(BaseModel):
    """Override the suggested server while a finished game awaits the next one."""

    model_config = ConfigDict(frozen=True)

    type: Literal["SET_NEXT_SERVER"] = "SET_NEXT_SERVER"
    name: str


class SetNextReceiver(BaseModel):
    """Override the suggested receiver while a finished game awaits the next one."""

    model_config = ConfigDict(frozen=True)

    type: Literal["SET_NEXT_RECEIVER"] = "SET_NEXT_RECEIVER"
    name: str


class ClearPointHistory(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["CLEAR_POINT_HISTORY"] = "CLEAR_POINT_HISTORY"


class SetSetFinishData(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["SET_SET_FINISH_DATA"] = "SET_SET_FINISH_DATA"
    data: Optional[GameSnapshot] = None


MatchEvent = Annotated[
    Union[
        StartMatch,
        IncrementPoint,
        Undo,
        StartNextSet,
        ResetHistory,
        SetNextServer,
        SetNextReceiver,
        ClearPointHistory,
        SetSetFinishData,
    ],
    Field(discriminator="type"),
]

EVENT_ADAPTER: TypeAdapter = TypeAdapter(MatchEvent)


class GameStats(BaseModel):
    """Per-game statistics derived from a point history."""

    total_points_won_a: int = 0
    total_points_won_b: int = 0
    total_points_played: int = 0
    most_consecutive_points_a: int = 0
    most_consecutive_points_b: int = 0
    game_points_a: int = 0
    game_points_b: int = 0


class MatchStats(GameStats):
    """Statistics aggregated over every game of a match."""

    games_played: int = 0
