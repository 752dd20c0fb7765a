"""
Over tracking - one open over per innings, accumulating -> complete
"""
from app.engine.outcome import BALLS_PER_OVER, ExtraKind, ResolvedOutcome
from app.engine.state import BallEvent, InningsState, OverState


def current_over(innings: InningsState) -> OverState:
    """The innings' open over, created on the first ball bowled in it"""
    over = innings.open_over
    if over is None:
        over = OverState(over_number=innings.current_over, bowler_id=innings.current_bowler_id)
        innings.overs.append(over)
    return over


def add_ball(over: OverState, outcome: ResolvedOutcome) -> None:
    over.runs += outcome.total_runs
    if outcome.is_legal:
        over.legal_balls += 1
    elif outcome.extra_kind == ExtraKind.WIDE:
        over.wides += 1
    elif outcome.extra_kind == ExtraKind.NO_BALL:
        over.no_balls += 1


def remove_ball(over: OverState, event: BallEvent) -> None:
    over.runs -= event.total_runs
    if event.is_legal:
        over.legal_balls -= 1
    elif event.extra_kind == ExtraKind.WIDE:
        over.wides -= 1
    elif event.extra_kind == ExtraKind.NO_BALL:
        over.no_balls -= 1


def is_full(over: OverState) -> bool:
    return over.legal_balls >= BALLS_PER_OVER


def complete(over: OverState) -> None:
    over.is_complete = True
    over.is_maiden = over.runs == 0 and over.wickets == 0


def reopen(over: OverState) -> None:
    over.is_complete = False
    over.is_maiden = False


def discard_if_empty(innings: InningsState, over: OverState) -> None:
    """Drop an over that no longer holds a live delivery"""
    if not innings.log.active_in_over(over.over_number):
        innings.overs.remove(over)
