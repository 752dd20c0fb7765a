"""
Match state value objects.

Every scoring operation takes one of these, works on its own copy and hands
the new state back. Nothing here is a singleton or lives between calls.
"""
import enum
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Iterator

from app.engine.outcome import (
    BALLS_PER_OVER, BallInput, DismissalKind, ExtraKind, ExtrasInput, WicketInput,
    format_overs, is_bowler_credited,
)

MAX_WICKETS = 10


class MatchStatus(enum.Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class InningsStatus(enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TossDecision(enum.Enum):
    BAT = "bat"
    BOWL = "bowl"


class WinType(enum.Enum):
    RUNS = "runs"
    WICKETS = "wickets"
    TIE = "tie"
    NO_RESULT = "no_result"


@dataclass
class ExtrasBreakdown:
    wides: int = 0
    no_balls: int = 0
    byes: int = 0
    leg_byes: int = 0
    penalties: int = 0

    @property
    def total(self) -> int:
        return self.wides + self.no_balls + self.byes + self.leg_byes + self.penalties

    def add(self, kind: Optional[ExtraKind], runs: int) -> None:
        """Credit (or with negative runs, debit) the bucket for an extras kind"""
        if kind is None:
            return
        if kind == ExtraKind.WIDE:
            self.wides += runs
        elif kind == ExtraKind.NO_BALL:
            self.no_balls += runs
        elif kind == ExtraKind.BYE:
            self.byes += runs
        elif kind == ExtraKind.LEG_BYE:
            self.leg_byes += runs
        elif kind == ExtraKind.PENALTY:
            self.penalties += runs


@dataclass
class BatterStats:
    """A batter's innings"""
    player_id: int
    batting_order: int
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    is_out: bool = False
    dismissal: Optional[DismissalKind] = None
    dismissed_by: Optional[int] = None
    fielder_id: Optional[int] = None

    @property
    def strike_rate(self) -> float:
        if self.balls_faced == 0:
            return 0.0
        return (self.runs / self.balls_faced) * 100


@dataclass
class BowlerStats:
    """A bowler's spell"""
    player_id: int
    overs: int = 0
    balls: int = 0
    maidens: int = 0
    runs: int = 0
    wickets: int = 0
    wides: int = 0
    no_balls: int = 0

    @property
    def overs_display(self) -> str:
        return format_overs(self.balls)

    @property
    def economy(self) -> float:
        if self.balls == 0:
            return 0.0
        return (self.runs / self.balls) * BALLS_PER_OVER


@dataclass
class FallOfWicket:
    wicket_number: int
    score: int
    overs: str
    batter_id: int


@dataclass
class OverState:
    over_number: int  # 0-based
    bowler_id: int
    runs: int = 0
    wickets: int = 0
    wides: int = 0
    no_balls: int = 0
    legal_balls: int = 0
    is_maiden: bool = False
    is_complete: bool = False


@dataclass(frozen=True)
class WicketDetail:
    """A dismissal as recorded, with the batter and bowler resolved"""
    dismissal: DismissalKind
    batter_id: int
    bowler_id: Optional[int] = None
    fielder_id: Optional[int] = None

    @property
    def is_bowler_credited(self) -> bool:
        return is_bowler_credited(self.dismissal)


@dataclass(frozen=True)
class BallEvent:
    """One delivery attempt. Only ever changed by tombstoning it."""
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
    extra_input_runs: int = 0
    wicket: Optional[WicketDetail] = None
    completed_over: bool = False
    is_undone: bool = False

    @property
    def is_wicket(self) -> bool:
        return self.wicket is not None

    @property
    def is_four(self) -> bool:
        return self.batter_runs == 4

    @property
    def is_six(self) -> bool:
        return self.batter_runs == 6

    @property
    def label(self) -> str:
        """Short scoreboard notation: 'W', '4', '1wd', '2nb', '1lb'"""
        if self.is_wicket:
            return "W"
        if self.extra_kind == ExtraKind.WIDE:
            return f"{self.total_runs}wd"
        if self.extra_kind == ExtraKind.NO_BALL:
            return f"{self.total_runs}nb"
        if self.extra_kind == ExtraKind.BYE:
            return f"{self.total_runs}b"
        if self.extra_kind == ExtraKind.LEG_BYE:
            return f"{self.total_runs}lb"
        if self.extra_kind == ExtraKind.PENALTY:
            return f"{self.total_runs}p"
        return str(self.batter_runs)

    def to_ball_input(self) -> BallInput:
        extras = ExtrasInput(self.extra_kind, self.extra_input_runs) if self.extra_kind else None
        wicket = None
        if self.wicket:
            wicket = WicketInput(
                dismissal=self.wicket.dismissal,
                batter_id=self.wicket.batter_id,
                bowler_id=self.wicket.bowler_id,
                fielder_id=self.wicket.fielder_id,
            )
        return BallInput(runs=self.batter_runs, extras=extras, wicket=wicket)


@dataclass
class EventLog:
    """Append-only ball log for one innings. Sequence numbers are never reused."""
    events: list[BallEvent] = field(default_factory=list)

    def __iter__(self) -> Iterator[BallEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    @property
    def next_sequence(self) -> int:
        return self.events[-1].sequence + 1 if self.events else 1

    def append(self, event: BallEvent) -> None:
        if event.sequence != self.next_sequence:
            raise ValueError(f"Out of order ball event {event.sequence}, expected {self.next_sequence}")
        self.events.append(event)

    def active(self) -> list[BallEvent]:
        return [e for e in self.events if not e.is_undone]

    def last_active(self) -> Optional[BallEvent]:
        for event in reversed(self.events):
            if not event.is_undone:
                return event
        return None

    def tombstone(self, sequence: int) -> BallEvent:
        for i, event in enumerate(self.events):
            if event.sequence == sequence:
                self.events[i] = replace(event, is_undone=True)
                return self.events[i]
        raise KeyError(sequence)

    def active_in_over(self, over_number: int) -> list[BallEvent]:
        return [e for e in self.events if not e.is_undone and e.over_number == over_number]


@dataclass
class InningsState:
    """Current state of an innings"""
    innings_number: int
    batting_team_id: int
    bowling_team_id: int
    total_overs: int
    target: Optional[int] = None
    status: InningsStatus = InningsStatus.NOT_STARTED

    total_runs: int = 0
    wickets: int = 0
    total_balls: int = 0  # legal deliveries
    current_over: int = 0
    current_over_balls: int = 0
    extras: ExtrasBreakdown = field(default_factory=ExtrasBreakdown)
    run_rate: float = 0.0
    required_run_rate: Optional[float] = None

    striker_id: Optional[int] = None
    non_striker_id: Optional[int] = None
    current_bowler_id: Optional[int] = None

    batters: list[BatterStats] = field(default_factory=list)
    bowlers: list[BowlerStats] = field(default_factory=list)
    fall_of_wickets: list[FallOfWicket] = field(default_factory=list)
    overs: list[OverState] = field(default_factory=list)
    log: EventLog = field(default_factory=EventLog)

    @property
    def overs_display(self) -> str:
        return format_overs(self.total_balls)

    @property
    def max_balls(self) -> int:
        return self.total_overs * BALLS_PER_OVER

    @property
    def balls_remaining(self) -> int:
        return self.max_balls - self.total_balls

    @property
    def is_chasing(self) -> bool:
        return self.target is not None

    @property
    def runs_needed(self) -> Optional[int]:
        if self.target is None:
            return None
        return max(self.target - self.total_runs, 0)

    def batter(self, player_id: Optional[int]) -> Optional[BatterStats]:
        return next((b for b in self.batters if b.player_id == player_id), None)

    def bowler(self, player_id: Optional[int]) -> Optional[BowlerStats]:
        return next((b for b in self.bowlers if b.player_id == player_id), None)

    def over(self, over_number: int) -> Optional[OverState]:
        return next((o for o in self.overs if o.over_number == over_number), None)

    @property
    def open_over(self) -> Optional[OverState]:
        return next(
            (o for o in self.overs if o.over_number == self.current_over and not o.is_complete),
            None,
        )

    @property
    def last_completed_over(self) -> Optional[OverState]:
        completed = [o for o in self.overs if o.is_complete]
        return max(completed, key=lambda o: o.over_number) if completed else None

    def __repr__(self):
        return f"<InningsState {self.innings_number}: {self.total_runs}/{self.wickets} ({self.overs_display})>"


@dataclass
class TeamSide:
    team_id: int
    name: str
    player_ids: list[int] = field(default_factory=list)


@dataclass
class MatchResult:
    winner_id: Optional[int]
    win_margin: Optional[int]
    win_type: WinType
    summary: str


@dataclass
class MatchState:
    team_a: TeamSide
    team_b: TeamSide
    total_overs: int
    match_id: Optional[int] = None
    venue: str = "TBD"
    toss_winner_id: Optional[int] = None
    toss_decision: Optional[TossDecision] = None
    status: MatchStatus = MatchStatus.UPCOMING
    current_innings: int = 1
    innings: list[InningsState] = field(default_factory=list)
    result: Optional[MatchResult] = None

    def side(self, team_id: Optional[int]) -> Optional[TeamSide]:
        for side in (self.team_a, self.team_b):
            if side.team_id == team_id:
                return side
        return None

    def opponent(self, team_id: int) -> TeamSide:
        return self.team_b if self.team_a.team_id == team_id else self.team_a

    def get_innings(self, number: int) -> Optional[InningsState]:
        return next((i for i in self.innings if i.innings_number == number), None)

    @property
    def active_innings(self) -> Optional[InningsState]:
        return self.get_innings(self.current_innings)

    def __repr__(self):
        return f"<MatchState {self.match_id}: {self.team_a.name} vs {self.team_b.name} ({self.status.value})>"


def to_dict(obj) -> dict:
    """Plain-data view of a state object, enums flattened to their values"""
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, EventLog):
        return [to_dict(e) for e in obj.events]
    if hasattr(obj, "__dataclass_fields__"):
        return {f.name: to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, list):
        return [to_dict(item) for item in obj]
    return obj
