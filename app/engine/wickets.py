"""
Wicket handling - dismissal bookkeeping and its exact reversal
"""
from typing import Optional

from app.engine.errors import InvalidState, ValidationError
from app.engine.outcome import WicketInput, format_overs
from app.engine.state import (
    MAX_WICKETS, FallOfWicket, InningsState, InningsStatus, OverState, WicketDetail,
)


def resolve_wicket(innings: InningsState, wicket: WicketInput) -> WicketDetail:
    """Pin down who is out and who gets the credit, before anything changes"""
    batter_id = wicket.batter_id if wicket.batter_id is not None else innings.striker_id
    if batter_id not in (innings.striker_id, innings.non_striker_id):
        raise ValidationError(f"Dismissed batter {batter_id} is not at the crease")
    line = innings.batter(batter_id)
    if line is None:
        raise InvalidState(f"No batting record for player {batter_id}")
    if line.is_out:
        raise ValidationError(f"Player {batter_id} is already out")

    bowler_id = innings.current_bowler_id if wicket.is_bowler_credited else wicket.bowler_id
    return WicketDetail(
        dismissal=wicket.dismissal,
        batter_id=batter_id,
        bowler_id=bowler_id,
        fielder_id=wicket.fielder_id,
    )


def apply_wicket(innings: InningsState, over: OverState, wicket: WicketDetail) -> None:
    innings.wickets += 1
    over.wickets += 1

    line = innings.batter(wicket.batter_id)
    line.is_out = True
    line.dismissal = wicket.dismissal
    line.dismissed_by = wicket.bowler_id
    line.fielder_id = wicket.fielder_id

    if wicket.is_bowler_credited:
        innings.bowler(innings.current_bowler_id).wickets += 1

    innings.fall_of_wickets.append(FallOfWicket(
        wicket_number=innings.wickets,
        score=innings.total_runs,
        overs=format_overs(innings.total_balls),
        batter_id=wicket.batter_id,
    ))

    # Empty end means a new batter has to be named before the next ball
    if innings.striker_id == wicket.batter_id:
        innings.striker_id = None
    elif innings.non_striker_id == wicket.batter_id:
        innings.non_striker_id = None

    if innings.wickets >= MAX_WICKETS:
        innings.status = InningsStatus.COMPLETED


def revert_wicket(
    innings: InningsState,
    over: OverState,
    wicket: WicketDetail,
    bowler_id: Optional[int],
) -> None:
    """Undo apply_wicket. Batter positions are restored by the caller."""
    innings.wickets -= 1
    over.wickets -= 1

    line = innings.batter(wicket.batter_id)
    line.is_out = False
    line.dismissal = None
    line.dismissed_by = None
    line.fielder_id = None

    if wicket.is_bowler_credited:
        innings.bowler(bowler_id).wickets -= 1

    innings.fall_of_wickets.pop()
