"""
Undo - exact arithmetic inverse of the most recent live delivery
"""
import copy
import logging

from app.engine import over_tracker, wickets
from app.engine.aggregator import update_rates
from app.engine.errors import InvalidState, NothingToUndo
from app.engine.outcome import BALLS_PER_OVER, ExtraKind
from app.engine.state import BallEvent, InningsState, InningsStatus

logger = logging.getLogger(__name__)


def undo_last_ball(innings: InningsState) -> tuple[BallEvent, InningsState]:
    updated = copy.deepcopy(innings)
    event = revert_last_ball(updated)
    return event, updated


def revert_last_ball(innings: InningsState) -> BallEvent:
    """Tombstone the last live ball and take its effects back out. Returns the tombstoned event."""
    if innings.status == InningsStatus.NOT_STARTED:
        raise InvalidState(f"Innings {innings.innings_number} has not started")

    last = innings.log.last_active()
    if last is None:
        raise NothingToUndo(f"No ball to undo in innings {innings.innings_number}")

    over = innings.over(last.over_number)
    batter = innings.batter(last.striker_id)
    bowler = innings.bowler(last.bowler_id)
    if over is None or batter is None or bowler is None:
        raise InvalidState(f"Ball {last.sequence} does not match the innings records")

    event = innings.log.tombstone(last.sequence)

    innings.total_runs -= event.total_runs
    innings.extras.add(event.extra_kind, -event.extras_runs)

    batter.runs -= event.batter_runs
    if event.is_legal:
        batter.balls_faced -= 1
    if event.is_four:
        batter.fours -= 1
    if event.is_six:
        batter.sixes -= 1

    if event.completed_over and over.is_maiden:
        bowler.maidens -= 1
    bowler.runs -= event.total_runs
    if event.is_legal:
        bowler.balls -= 1
        innings.total_balls -= 1
    if event.extra_kind == ExtraKind.WIDE:
        bowler.wides -= 1
    elif event.extra_kind == ExtraKind.NO_BALL:
        bowler.no_balls -= 1
    bowler.overs = bowler.balls // BALLS_PER_OVER

    if event.wicket:
        wickets.revert_wicket(innings, over, event.wicket, event.bowler_id)

    over_tracker.remove_ball(over, event)
    over_tracker.reopen(over)

    # The event holds who was on strike and bowling before it was delivered
    innings.striker_id = event.striker_id
    innings.non_striker_id = event.non_striker_id
    innings.current_bowler_id = event.bowler_id
    _drop_unused_players(innings)

    innings.current_over = over.over_number
    innings.current_over_balls = over.legal_balls
    over_tracker.discard_if_empty(innings, over)

    innings.status = InningsStatus.IN_PROGRESS
    update_rates(innings)

    logger.info(
        "Undid ball %s (%s.%s) in innings %s, score back to %s/%s",
        event.sequence, event.over_number, event.ball_number,
        innings.innings_number, innings.total_runs, innings.wickets,
    )
    return event


def _drop_unused_players(innings: InningsState) -> None:
    """Forget batters and bowlers picked after the undone ball who never took part in a live delivery"""
    live = innings.log.active()
    batted = {e.striker_id for e in live} | {e.non_striker_id for e in live}
    batted |= {innings.striker_id, innings.non_striker_id}
    innings.batters = [b for b in innings.batters if b.player_id in batted]
    for order, line in enumerate(innings.batters, start=1):
        line.batting_order = order

    bowled = {e.bowler_id for e in live} | {innings.current_bowler_id}
    innings.bowlers = [b for b in innings.bowlers if b.player_id in bowled]
