"""
Ball outcome resolution - pure classification of a single delivery.

Nothing in here touches innings state. Given what the scorer entered for a
delivery, work out whether it was legal, how many runs go to the batter, how
many go to extras, the total added to the score and whether the batters
change ends.
"""
import enum
from dataclasses import dataclass
from typing import Optional


class ExtraKind(enum.Enum):
    WIDE = "wide"
    NO_BALL = "no_ball"
    BYE = "bye"
    LEG_BYE = "leg_bye"
    PENALTY = "penalty"


class DismissalKind(enum.Enum):
    BOWLED = "bowled"
    CAUGHT = "caught"
    LBW = "lbw"
    RUN_OUT = "run_out"
    STUMPED = "stumped"
    HIT_WICKET = "hit_wicket"
    CAUGHT_BEHIND = "caught_behind"
    CAUGHT_AND_BOWLED = "caught_and_bowled"
    RETIRED_HURT = "retired_hurt"
    RETIRED_OUT = "retired_out"
    OBSTRUCTING_FIELD = "obstructing_field"
    HIT_BALL_TWICE = "hit_ball_twice"
    TIMED_OUT = "timed_out"
    HANDLED_BALL = "handled_ball"


# Dismissals that do not go to the bowler's wicket tally
NON_BOWLER_DISMISSALS = frozenset({
    DismissalKind.RUN_OUT,
    DismissalKind.RETIRED_HURT,
    DismissalKind.RETIRED_OUT,
    DismissalKind.OBSTRUCTING_FIELD,
    DismissalKind.TIMED_OUT,
})

ILLEGAL_KINDS = frozenset({ExtraKind.WIDE, ExtraKind.NO_BALL})

BALLS_PER_OVER = 6


def is_bowler_credited(dismissal: DismissalKind) -> bool:
    return dismissal not in NON_BOWLER_DISMISSALS


@dataclass(frozen=True)
class ExtrasInput:
    kind: ExtraKind
    runs: int = 0


@dataclass(frozen=True)
class WicketInput:
    dismissal: DismissalKind
    batter_id: Optional[int] = None  # None means the striker
    bowler_id: Optional[int] = None
    fielder_id: Optional[int] = None

    @property
    def is_bowler_credited(self) -> bool:
        return is_bowler_credited(self.dismissal)


@dataclass(frozen=True)
class BallInput:
    """What the scorer entered for one delivery"""
    runs: int = 0
    extras: Optional[ExtrasInput] = None
    wicket: Optional[WicketInput] = None

    @property
    def is_wicket(self) -> bool:
        return self.wicket is not None

    @property
    def extra_kind(self) -> Optional[ExtraKind]:
        return self.extras.kind if self.extras else None


@dataclass(frozen=True)
class ResolvedOutcome:
    is_legal: bool
    batter_runs: int
    extras_runs: int
    total_runs: int
    rotate_strike: bool
    extra_kind: Optional[ExtraKind] = None

    @property
    def is_four(self) -> bool:
        return self.batter_runs == 4

    @property
    def is_six(self) -> bool:
        return self.batter_runs == 6


def is_legal_ball(extras: Optional[ExtrasInput]) -> bool:
    return extras is None or extras.kind not in ILLEGAL_KINDS


def resolve_outcome(ball: BallInput) -> ResolvedOutcome:
    """Classify a delivery. The only place extras kinds are dispatched on."""
    extras = ball.extras
    kind = extras.kind if extras else None
    extra_runs = extras.runs if extras else 0

    if kind is None:
        batter_runs = ball.runs
        total = ball.runs
        rotation_runs = batter_runs
    elif kind == ExtraKind.WIDE:
        batter_runs = 0
        total = 1 + extra_runs
        rotation_runs = batter_runs
    elif kind == ExtraKind.NO_BALL:
        batter_runs = ball.runs
        total = 1 + batter_runs + extra_runs
        rotation_runs = batter_runs
    elif kind in (ExtraKind.BYE, ExtraKind.LEG_BYE):
        batter_runs = 0
        total = extra_runs
        # Byes are run, so the batters cross on the extras too
        rotation_runs = batter_runs + extra_runs
    elif kind == ExtraKind.PENALTY:
        # Awarded to the batting side, never to the striker
        batter_runs = 0
        total = extra_runs
        rotation_runs = batter_runs
    else:
        raise ValueError(f"Unhandled extras kind: {kind}")

    return ResolvedOutcome(
        is_legal=is_legal_ball(extras),
        batter_runs=batter_runs,
        extras_runs=total - batter_runs,
        total_runs=total,
        rotate_strike=rotation_runs % 2 == 1 and not ball.is_wicket,
        extra_kind=kind,
    )


def format_overs(total_balls: int) -> str:
    return f"{total_balls // BALLS_PER_OVER}.{total_balls % BALLS_PER_OVER}"

