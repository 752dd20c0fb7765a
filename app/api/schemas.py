"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel, Field
from typing import Optional

from app.engine.match_engine import MAX_TOTAL_OVERS, MIN_TOTAL_OVERS
from app.engine.outcome import DismissalKind, ExtraKind
from app.engine.state import InningsStatus, MatchStatus, TossDecision, WinType


# Requests
class CreateMatchRequest(BaseModel):
    team_a_id: int
    team_b_id: int
    total_overs: Optional[int] = Field(None, ge=MIN_TOTAL_OVERS, le=MAX_TOTAL_OVERS)
    venue: str = "TBD"
    team_a_players: list[int] = []
    team_b_players: list[int] = []


class TossRequest(BaseModel):
    winner_id: int
    decision: TossDecision


class StartInningsRequest(BaseModel):
    opening_batters: list[int] = Field(min_length=2, max_length=2)
    opening_bowler: int


class BallRequest(BaseModel):
    runs: int = Field(0, ge=0, le=7)
    extras_type: Optional[str] = None  # wide, no_ball, bye, leg_bye, penalty
    extras_runs: int = Field(0, ge=0, le=7)
    wicket_type: Optional[str] = None
    dismissed_player_id: Optional[int] = None  # defaults to the striker
    bowler_id: Optional[int] = None
    fielder_id: Optional[int] = None


class UpdateSquadsRequest(BaseModel):
    team_a_players: Optional[list[int]] = None
    team_b_players: Optional[list[int]] = None


class SetBatterRequest(BaseModel):
    player_id: int
    is_striker: bool = True


class SetBowlerRequest(BaseModel):
    player_id: int


# Stat lines
class BatterResponse(BaseModel):
    player_id: int
    batting_order: int
    runs: int
    balls_faced: int
    fours: int
    sixes: int
    is_out: bool
    dismissal: Optional[DismissalKind] = None
    dismissed_by: Optional[int] = None
    fielder_id: Optional[int] = None
    strike_rate: float

    class Config:
        from_attributes = True


class BowlerResponse(BaseModel):
    player_id: int
    overs: int
    balls: int
    overs_display: str
    maidens: int
    runs: int
    wickets: int
    wides: int
    no_balls: int
    economy: float

    class Config:
        from_attributes = True


class ExtrasResponse(BaseModel):
    wides: int
    no_balls: int
    byes: int
    leg_byes: int
    penalties: int
    total: int

    class Config:
        from_attributes = True


class FallOfWicketResponse(BaseModel):
    wicket_number: int
    score: int
    overs: str
    batter_id: int

    class Config:
        from_attributes = True


class OverResponse(BaseModel):
    over_number: int
    bowler_id: int
    runs: int
    wickets: int
    wides: int
    no_balls: int
    legal_balls: int
    is_maiden: bool
    is_complete: bool

    class Config:
        from_attributes = True


# Ball events
class WicketResponse(BaseModel):
    dismissal: DismissalKind
    batter_id: int
    bowler_id: Optional[int] = None
    fielder_id: Optional[int] = None

    class Config:
        from_attributes = True


class BallEventResponse(BaseModel):
    sequence: int
    over_number: int
    ball_number: int
    striker_id: int
    non_striker_id: int
    bowler_id: int
    batter_runs: int
    extras_runs: int
    total_runs: int
    is_legal: bool
    extra_kind: Optional[ExtraKind] = None
    wicket: Optional[WicketResponse] = None
    is_four: bool
    is_six: bool
    label: str
    completed_over: bool
    is_undone: bool

    class Config:
        from_attributes = True


# Innings and match
class InningsResponse(BaseModel):
    innings_number: int
    batting_team_id: int
    bowling_team_id: int
    total_overs: int
    target: Optional[int] = None
    status: InningsStatus
    total_runs: int
    wickets: int
    total_balls: int
    overs_display: str
    current_over: int
    current_over_balls: int
    extras: ExtrasResponse
    run_rate: float
    required_run_rate: Optional[float] = None
    runs_needed: Optional[int] = None
    balls_remaining: int
    striker_id: Optional[int] = None
    non_striker_id: Optional[int] = None
    current_bowler_id: Optional[int] = None
    batters: list[BatterResponse]
    bowlers: list[BowlerResponse]
    fall_of_wickets: list[FallOfWicketResponse]
    overs: list[OverResponse]

    class Config:
        from_attributes = True


class TeamSideResponse(BaseModel):
    team_id: int
    name: str
    player_ids: list[int]

    class Config:
        from_attributes = True


class MatchResultResponse(BaseModel):
    winner_id: Optional[int] = None
    win_margin: Optional[int] = None
    win_type: WinType
    summary: str

    class Config:
        from_attributes = True


class MatchResponse(BaseModel):
    match_id: int
    team_a: TeamSideResponse
    team_b: TeamSideResponse
    total_overs: int
    venue: str
    toss_winner_id: Optional[int] = None
    toss_decision: Optional[TossDecision] = None
    status: MatchStatus
    current_innings: int
    innings: list[InningsResponse]
    result: Optional[MatchResultResponse] = None

    class Config:
        from_attributes = True


# Operation results
class StartInningsResponse(BaseModel):
    match: MatchResponse
    innings: InningsResponse
    events: list[str]


class InningsUpdateResponse(BaseModel):
    innings: InningsResponse
    events: list[str]


class BallResultResponse(BaseModel):
    ball: BallEventResponse
    innings: InningsResponse
    over: OverResponse
    match_status: MatchStatus
    result: Optional[MatchResultResponse] = None
    events: list[str]


class UndoResponse(BaseModel):
    undone: BallEventResponse
    innings: InningsResponse
    match_status: MatchStatus
    events: list[str]


class CurrentOverResponse(BaseModel):
    innings_number: int
    over_number: int
    over: Optional[OverResponse] = None
    balls: list[BallEventResponse]

    class Config:
        from_attributes = True


class VerifyResponse(BaseModel):
    match_id: int
    consistent: bool
    problems: dict[int, list[str]]


# Match listings
class InningsScoreResponse(BaseModel):
    innings_number: int
    batting_team_id: int
    total_runs: int
    wickets: int
    overs_display: str
    target: Optional[int] = None

    class Config:
        from_attributes = True


class MatchSummaryResponse(BaseModel):
    match_id: int
    team_a: TeamSideResponse
    team_b: TeamSideResponse
    total_overs: int
    venue: str
    status: MatchStatus
    current_innings: int
    innings: list[InningsScoreResponse]
    result: Optional[MatchResultResponse] = None

    class Config:
        from_attributes = True


class MatchListResponse(BaseModel):
    matches: list[MatchSummaryResponse]
    page: int
    limit: int
    total: int
    pages: int

    class Config:
        from_attributes = True
