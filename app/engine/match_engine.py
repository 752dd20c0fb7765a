"""
Match orchestration - toss, innings sequencing, player selection and result.

Each operation takes a MatchState and returns a ScoringResult holding a new
MatchState; the input is never modified, so a rejected call leaves the
caller's state exactly as it was.
"""
import copy
import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from app.engine import aggregator, undo
from app.engine.errors import InvalidState, NothingToUndo, RuleViolation, ValidationError
from app.engine.outcome import BallInput
from app.engine.state import (
    BallEvent, BatterStats, BowlerStats, InningsState, InningsStatus, MatchResult,
    MatchState, MatchStatus, OverState, TeamSide, TossDecision, WinType, MAX_WICKETS,
)

logger = logging.getLogger(__name__)

MIN_TOTAL_OVERS = 1
MAX_TOTAL_OVERS = 50


class ScoringEvent(enum.Enum):
    """Names published to observers after a change is committed"""
    BALL_UPDATE = "ball_update"
    OVER_COMPLETE = "over_complete"
    WICKET = "wicket"
    INNINGS_COMPLETE = "innings_complete"
    MATCH_COMPLETE = "match_complete"
    UNDO_BALL = "undo_ball"
    SCORE_UPDATE = "score_update"


@dataclass
class ScoringResult:
    match: MatchState
    innings: Optional[InningsState] = None
    ball: Optional[BallEvent] = None
    over: Optional[OverState] = None
    events: list[ScoringEvent] = field(default_factory=list)


def create_match(
    team_a: TeamSide,
    team_b: TeamSide,
    total_overs: int,
    venue: str = "TBD",
) -> MatchState:
    if team_a.team_id == team_b.team_id:
        raise RuleViolation("A team cannot play itself")
    if not MIN_TOTAL_OVERS <= total_overs <= MAX_TOTAL_OVERS:
        raise ValidationError(f"Total overs must be between {MIN_TOTAL_OVERS} and {MAX_TOTAL_OVERS}")
    return MatchState(
        team_a=copy.deepcopy(team_a),
        team_b=copy.deepcopy(team_b),
        total_overs=total_overs,
        venue=venue,
    )


def set_toss(match: MatchState, winner_id: int, decision: TossDecision) -> ScoringResult:
    if match.status != MatchStatus.UPCOMING:
        raise InvalidState("Toss can only be set for upcoming matches")
    if match.side(winner_id) is None:
        raise RuleViolation("Toss winner must be one of the playing teams")

    updated = copy.deepcopy(match)
    updated.toss_winner_id = winner_id
    updated.toss_decision = decision
    return ScoringResult(match=updated)


def update_squads(
    match: MatchState,
    team_a_players: Optional[list[int]] = None,
    team_b_players: Optional[list[int]] = None,
) -> ScoringResult:
    """Replace either squad before play starts. None leaves that squad as it is."""
    if match.status != MatchStatus.UPCOMING:
        raise InvalidState("Squads can only be changed before the match starts")

    updated = copy.deepcopy(match)
    if team_a_players is not None:
        updated.team_a.player_ids = list(team_a_players)
    if team_b_players is not None:
        updated.team_b.player_ids = list(team_b_players)
    return ScoringResult(match=updated)


def batting_first(match: MatchState) -> TeamSide:
    toss_winner = match.side(match.toss_winner_id)
    if match.toss_decision == TossDecision.BAT:
        return toss_winner
    return match.opponent(toss_winner.team_id)


def start_match(match: MatchState, opening_batters: list[int], opening_bowler: int) -> ScoringResult:
    if match.status != MatchStatus.UPCOMING:
        raise InvalidState("Match has already started or finished")
    if match.toss_winner_id is None or match.toss_decision is None:
        raise InvalidState("Toss must be completed before starting the match")

    batting = batting_first(match)
    bowling = match.opponent(batting.team_id)
    _check_openers(batting, bowling, opening_batters, opening_bowler)

    updated = copy.deepcopy(match)
    innings = _open_innings(updated, 1, batting, bowling, None, opening_batters, opening_bowler)
    updated.status = MatchStatus.LIVE
    updated.current_innings = 1

    logger.info("Match %s live: %s batting first", updated.match_id, batting.name)
    return ScoringResult(match=updated, innings=innings, events=[ScoringEvent.SCORE_UPDATE])


def start_second_innings(match: MatchState, opening_batters: list[int], opening_bowler: int) -> ScoringResult:
    if match.get_innings(2) is not None:
        raise RuleViolation("Second innings already exists")
    first = match.get_innings(1)
    if match.status != MatchStatus.LIVE or first is None or first.status != InningsStatus.COMPLETED:
        raise InvalidState("First innings must be completed")

    batting = match.side(first.bowling_team_id)
    bowling = match.side(first.batting_team_id)
    _check_openers(batting, bowling, opening_batters, opening_bowler)

    updated = copy.deepcopy(match)
    target = first.total_runs + 1
    innings = _open_innings(updated, 2, batting, bowling, target, opening_batters, opening_bowler)
    updated.current_innings = 2

    logger.info("Match %s second innings: %s need %s", updated.match_id, batting.name, target)
    return ScoringResult(match=updated, innings=innings, events=[ScoringEvent.INNINGS_COMPLETE])


def set_batter(match: MatchState, player_id: int, is_striker: bool = True) -> ScoringResult:
    innings = _active_innings(match)
    _check_squad(match.side(innings.batting_team_id), player_id)

    existing = innings.batter(player_id)
    if existing is not None and existing.is_out:
        raise RuleViolation(f"Player {player_id} is already out")
    other_end = innings.non_striker_id if is_striker else innings.striker_id
    if other_end == player_id:
        raise RuleViolation(f"Player {player_id} is already batting at the other end")

    updated = copy.deepcopy(match)
    innings = updated.active_innings
    if existing is None:
        innings.batters.append(BatterStats(player_id=player_id, batting_order=len(innings.batters) + 1))
    if is_striker:
        innings.striker_id = player_id
    else:
        innings.non_striker_id = player_id
    return ScoringResult(match=updated, innings=innings, events=[ScoringEvent.SCORE_UPDATE])


def set_bowler(match: MatchState, player_id: int) -> ScoringResult:
    innings = _active_innings(match)
    _check_squad(match.side(innings.bowling_team_id), player_id)

    last_over = innings.last_completed_over
    if last_over is not None and last_over.bowler_id == player_id:
        raise RuleViolation("Same bowler cannot bowl consecutive overs")

    updated = copy.deepcopy(match)
    innings = updated.active_innings
    if innings.bowler(player_id) is None:
        innings.bowlers.append(BowlerStats(player_id=player_id))
    innings.current_bowler_id = player_id
    return ScoringResult(match=updated, innings=innings, events=[ScoringEvent.SCORE_UPDATE])


def swap_batters(match: MatchState) -> ScoringResult:
    _active_innings(match)
    updated = copy.deepcopy(match)
    innings = updated.active_innings
    innings.striker_id, innings.non_striker_id = innings.non_striker_id, innings.striker_id
    return ScoringResult(match=updated, innings=innings, events=[ScoringEvent.SCORE_UPDATE])


def record_ball(match: MatchState, ball: BallInput) -> ScoringResult:
    _active_innings(match)
    updated = copy.deepcopy(match)
    innings = updated.active_innings
    scored = aggregator.apply_ball(innings, ball)

    events = [ScoringEvent.BALL_UPDATE]
    if scored.over.is_complete:
        events.append(ScoringEvent.OVER_COMPLETE)
    if scored.ball.is_wicket:
        events.append(ScoringEvent.WICKET)

    if innings.status == InningsStatus.COMPLETED:
        if innings.innings_number == 1:
            # Waits here until the second innings is set up
            updated.current_innings = 2
            events.append(ScoringEvent.INNINGS_COMPLETE)
        else:
            updated.status = MatchStatus.COMPLETED
            updated.result = compute_result(updated)
            events.append(ScoringEvent.MATCH_COMPLETE)
            logger.info("Match %s completed: %s", updated.match_id, updated.result.summary)

    return ScoringResult(match=updated, innings=innings, ball=scored.ball, over=scored.over, events=events)


def undo_last_ball(match: MatchState) -> ScoringResult:
    if match.status not in (MatchStatus.LIVE, MatchStatus.COMPLETED):
        raise InvalidState("Match is not live")

    innings = match.active_innings
    if innings is None and match.current_innings == 2:
        # First innings just ended and the second has not been set up
        innings = match.get_innings(1)
    if innings is None:
        raise NothingToUndo("No ball to undo")

    updated = copy.deepcopy(match)
    innings = updated.get_innings(innings.innings_number)
    ball = undo.revert_last_ball(innings)

    updated.current_innings = innings.innings_number
    if updated.status == MatchStatus.COMPLETED:
        updated.status = MatchStatus.LIVE
        updated.result = None

    return ScoringResult(match=updated, innings=innings, ball=ball, events=[ScoringEvent.UNDO_BALL])


def abandon_match(match: MatchState) -> ScoringResult:
    if match.status not in (MatchStatus.UPCOMING, MatchStatus.LIVE):
        raise InvalidState(f"Cannot abandon a {match.status.value} match")
    updated = copy.deepcopy(match)
    updated.status = MatchStatus.ABANDONED
    updated.result = MatchResult(winner_id=None, win_margin=None, win_type=WinType.NO_RESULT, summary="Match Abandoned")
    return ScoringResult(match=updated, innings=updated.active_innings, events=[ScoringEvent.MATCH_COMPLETE])


def compute_result(match: MatchState) -> MatchResult:
    first = match.get_innings(1)
    second = match.get_innings(2)
    if first is None or second is None:
        raise InvalidState("Both innings are needed for a result")

    if first.total_runs > second.total_runs:
        winner = match.side(first.batting_team_id)
        margin = first.total_runs - second.total_runs
        return MatchResult(
            winner_id=winner.team_id,
            win_margin=margin,
            win_type=WinType.RUNS,
            summary=f"{winner.name} won by {_plural(margin, 'run')}",
        )
    if second.total_runs > first.total_runs:
        winner = match.side(second.batting_team_id)
        margin = MAX_WICKETS - second.wickets
        return MatchResult(
            winner_id=winner.team_id,
            win_margin=margin,
            win_type=WinType.WICKETS,
            summary=f"{winner.name} won by {_plural(margin, 'wicket')}",
        )
    return MatchResult(winner_id=None, win_margin=None, win_type=WinType.TIE, summary="Match Tied")


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _active_innings(match: MatchState) -> InningsState:
    if match.status != MatchStatus.LIVE:
        raise InvalidState("Match is not live")
    innings = match.active_innings
    if innings is None or innings.status != InningsStatus.IN_PROGRESS:
        raise InvalidState("No active innings")
    return innings


def _check_squad(side: TeamSide, player_id: int) -> None:
    # An empty squad list means selections are not restricted
    if side.player_ids and player_id not in side.player_ids:
        raise RuleViolation(f"Player {player_id} is not in the {side.name} squad")


def _check_openers(batting: TeamSide, bowling: TeamSide, opening_batters: list[int], opening_bowler: int) -> None:
    if len(opening_batters) != 2 or opening_batters[0] == opening_batters[1]:
        raise ValidationError("Two different opening batters are required")
    if opening_bowler is None:
        raise ValidationError("Opening bowler is required")
    for player_id in opening_batters:
        _check_squad(batting, player_id)
    _check_squad(bowling, opening_bowler)


def _open_innings(
    match: MatchState,
    number: int,
    batting: TeamSide,
    bowling: TeamSide,
    target: Optional[int],
    opening_batters: list[int],
    opening_bowler: int,
) -> InningsState:
    innings = InningsState(
        innings_number=number,
        batting_team_id=batting.team_id,
        bowling_team_id=bowling.team_id,
        total_overs=match.total_overs,
        target=target,
        status=InningsStatus.IN_PROGRESS,
        striker_id=opening_batters[0],
        non_striker_id=opening_batters[1],
        current_bowler_id=opening_bowler,
        batters=[
            BatterStats(player_id=opening_batters[0], batting_order=1),
            BatterStats(player_id=opening_batters[1], batting_order=2),
        ],
        bowlers=[BowlerStats(player_id=opening_bowler)],
    )
    aggregator.update_rates(innings)
    match.innings.append(innings)
    return innings
