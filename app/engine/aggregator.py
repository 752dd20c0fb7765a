"""
Innings aggregation - applies one delivery to an innings.

record_ball() is the pure entry point: it copies the innings and returns the
new state with the ball event and the over it went into. apply_ball() does
the work in place and is shared with replay.
"""
import copy
import logging
from dataclasses import dataclass

from app.engine import over_tracker, wickets
from app.engine.errors import InvalidState
from app.engine.outcome import BALLS_PER_OVER, BallInput, ExtraKind, resolve_outcome
from app.engine.state import (
    MAX_WICKETS, BallEvent, InningsState, InningsStatus, OverState,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoredBall:
    ball: BallEvent
    innings: InningsState
    over: OverState


def record_ball(innings: InningsState, ball: BallInput) -> ScoredBall:
    updated = copy.deepcopy(innings)
    return apply_ball(updated, ball)


def apply_ball(innings: InningsState, ball: BallInput) -> ScoredBall:
    if innings.status != InningsStatus.IN_PROGRESS:
        raise InvalidState(f"Innings {innings.innings_number} is not in progress")
    if innings.striker_id is None or innings.non_striker_id is None or innings.current_bowler_id is None:
        raise InvalidState("Striker, non-striker and bowler must be set")

    striker = innings.batter(innings.striker_id)
    bowler = innings.bowler(innings.current_bowler_id)
    if striker is None or innings.batter(innings.non_striker_id) is None:
        raise InvalidState("Batters at the crease have no batting record")
    if bowler is None:
        raise InvalidState(f"No bowling record for player {innings.current_bowler_id}")

    outcome = resolve_outcome(ball)
    wicket = wickets.resolve_wicket(innings, ball.wicket) if ball.wicket else None

    # Validation done - from here on the innings is mutated
    over = over_tracker.current_over(innings)
    completes_over = outcome.is_legal and over.legal_balls + 1 >= BALLS_PER_OVER
    event = BallEvent(
        sequence=innings.log.next_sequence,
        over_number=over.over_number,
        ball_number=over.legal_balls + 1 if outcome.is_legal else over.legal_balls,
        striker_id=innings.striker_id,
        non_striker_id=innings.non_striker_id,
        bowler_id=innings.current_bowler_id,
        batter_runs=outcome.batter_runs,
        extras_runs=outcome.extras_runs,
        total_runs=outcome.total_runs,
        is_legal=outcome.is_legal,
        extra_kind=outcome.extra_kind,
        extra_input_runs=ball.extras.runs if ball.extras else 0,
        wicket=wicket,
        completed_over=completes_over,
    )
    innings.log.append(event)

    innings.total_runs += outcome.total_runs
    innings.extras.add(outcome.extra_kind, outcome.extras_runs)

    striker.runs += outcome.batter_runs
    if outcome.is_legal:
        striker.balls_faced += 1
    if outcome.is_four:
        striker.fours += 1
    if outcome.is_six:
        striker.sixes += 1

    bowler.runs += outcome.total_runs
    if outcome.is_legal:
        bowler.balls += 1
        bowler.overs = bowler.balls // BALLS_PER_OVER
        innings.total_balls += 1
    if outcome.extra_kind == ExtraKind.WIDE:
        bowler.wides += 1
    elif outcome.extra_kind == ExtraKind.NO_BALL:
        bowler.no_balls += 1

    over_tracker.add_ball(over, outcome)

    if wicket:
        wickets.apply_wicket(innings, over, wicket)

    rotate = outcome.rotate_strike
    if over_tracker.is_full(over):
        over_tracker.complete(over)
        if over.is_maiden:
            bowler.maidens += 1
        innings.current_over += 1
        innings.current_over_balls = 0
        # Ends change at the end of every over; the next over needs a bowler
        rotate = not rotate
        innings.current_bowler_id = None
    elif outcome.is_legal:
        innings.current_over_balls = over.legal_balls

    if rotate and not wicket:
        innings.striker_id, innings.non_striker_id = innings.non_striker_id, innings.striker_id

    update_rates(innings)
    if check_completion(innings):
        logger.info(
            "Innings %s completed at %s/%s (%s)",
            innings.innings_number, innings.total_runs, innings.wickets, innings.overs_display,
        )

    return ScoredBall(ball=event, innings=innings, over=over)


def update_rates(innings: InningsState) -> None:
    overs = innings.current_over + innings.current_over_balls / BALLS_PER_OVER
    innings.run_rate = round(innings.total_runs / overs, 2) if overs > 0 else 0.0

    if innings.target is None:
        innings.required_run_rate = None
        return
    balls_left = innings.balls_remaining
    if balls_left <= 0:
        innings.required_run_rate = None
    else:
        innings.required_run_rate = round(innings.runs_needed / (balls_left / BALLS_PER_OVER), 2)


def check_completion(innings: InningsState) -> bool:
    """Close the innings on all out, overs used up or target reached"""
    finished = (
        innings.wickets >= MAX_WICKETS
        or innings.total_balls >= innings.max_balls
        or (innings.target is not None and innings.total_runs >= innings.target)
    )
    if finished:
        innings.status = InningsStatus.COMPLETED
    return finished
