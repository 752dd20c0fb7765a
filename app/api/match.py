from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.engine.match_engine import ScoringResult
from app.engine.state import MatchStatus
from app.services.scoring_service import ScoringService
from app.validators.ball_validator import BallInputValidator
from app.api.schemas import (
    CreateMatchRequest, TossRequest, StartInningsRequest, BallRequest, SetBatterRequest, SetBowlerRequest,
    UpdateSquadsRequest, MatchResponse, InningsResponse, BallEventResponse, OverResponse, MatchResultResponse,
    StartInningsResponse, InningsUpdateResponse, BallResultResponse, UndoResponse,
    CurrentOverResponse, VerifyResponse, MatchSummaryResponse, MatchListResponse,
)

router = APIRouter(prefix="/matches", tags=["Scoring"])

# One service per process: it owns the per-match write locks
scoring_service = ScoringService()


def get_scoring_service() -> ScoringService:
    return scoring_service


def _event_names(result: ScoringResult) -> list[str]:
    return [e.value for e in result.events]


def _innings_update(result: ScoringResult) -> InningsUpdateResponse:
    return InningsUpdateResponse(
        innings=InningsResponse.model_validate(result.innings),
        events=_event_names(result),
    )


def _start_response(result: ScoringResult) -> StartInningsResponse:
    return StartInningsResponse(
        match=MatchResponse.model_validate(result.match),
        innings=InningsResponse.model_validate(result.innings),
        events=_event_names(result),
    )


@router.post("", response_model=MatchResponse)
def create_match(request: CreateMatchRequest, service: ScoringService = Depends(get_scoring_service)):
    """Create an upcoming match between two teams"""
    match = service.create_match(
        request.team_a_id,
        request.team_b_id,
        total_overs=request.total_overs,
        venue=request.venue,
        team_a_players=request.team_a_players,
        team_b_players=request.team_b_players,
    )
    return MatchResponse.model_validate(match)


@router.get("", response_model=MatchListResponse)
def list_matches(
    status: Optional[MatchStatus] = None,
    team_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ScoringService = Depends(get_scoring_service),
):
    """Matches newest first, optionally filtered by status or team"""
    return MatchListResponse.model_validate(service.list_matches(status, team_id, page, limit))


@router.get("/live", response_model=list[MatchSummaryResponse])
def live_matches(service: ScoringService = Depends(get_scoring_service)):
    return [MatchSummaryResponse.model_validate(m) for m in service.live_matches()]


@router.get("/{match_id}", response_model=MatchResponse)
def get_match(match_id: int, service: ScoringService = Depends(get_scoring_service)):
    return MatchResponse.model_validate(service.get_match(match_id))


@router.put("/{match_id}/squads", response_model=MatchResponse)
def update_squads(match_id: int, request: UpdateSquadsRequest, service: ScoringService = Depends(get_scoring_service)):
    """Replace either squad while the match is still upcoming"""
    result = service.update_squads(match_id, request.team_a_players, request.team_b_players)
    return MatchResponse.model_validate(result.match)


@router.post("/{match_id}/toss", response_model=MatchResponse)
def set_toss(match_id: int, request: TossRequest, service: ScoringService = Depends(get_scoring_service)):
    result = service.set_toss(match_id, request.winner_id, request.decision)
    return MatchResponse.model_validate(result.match)


@router.post("/{match_id}/start", response_model=StartInningsResponse)
def start_match(match_id: int, request: StartInningsRequest, service: ScoringService = Depends(get_scoring_service)):
    """Start the first innings with two openers and an opening bowler"""
    result = service.start_match(match_id, request.opening_batters, request.opening_bowler)
    return _start_response(result)


@router.post("/{match_id}/second-innings", response_model=StartInningsResponse)
def start_second_innings(
    match_id: int, request: StartInningsRequest, service: ScoringService = Depends(get_scoring_service)
):
    result = service.start_second_innings(match_id, request.opening_batters, request.opening_bowler)
    return _start_response(result)


@router.post("/{match_id}/batter", response_model=InningsUpdateResponse)
def set_batter(match_id: int, request: SetBatterRequest, service: ScoringService = Depends(get_scoring_service)):
    return _innings_update(service.set_batter(match_id, request.player_id, request.is_striker))


@router.post("/{match_id}/bowler", response_model=InningsUpdateResponse)
def set_bowler(match_id: int, request: SetBowlerRequest, service: ScoringService = Depends(get_scoring_service)):
    return _innings_update(service.set_bowler(match_id, request.player_id))


@router.post("/{match_id}/swap", response_model=InningsUpdateResponse)
def swap_batters(match_id: int, service: ScoringService = Depends(get_scoring_service)):
    return _innings_update(service.swap_batters(match_id))


@router.post("/{match_id}/ball", response_model=BallResultResponse)
def record_ball(match_id: int, request: BallRequest, service: ScoringService = Depends(get_scoring_service)):
    """Record one delivery"""
    ball = BallInputValidator.parse(**request.model_dump())
    result = service.record_ball(match_id, ball)
    return BallResultResponse(
        ball=BallEventResponse.model_validate(result.ball),
        innings=InningsResponse.model_validate(result.innings),
        over=OverResponse.model_validate(result.over),
        match_status=result.match.status,
        result=MatchResultResponse.model_validate(result.match.result) if result.match.result else None,
        events=_event_names(result),
    )


@router.post("/{match_id}/undo", response_model=UndoResponse)
def undo_last_ball(match_id: int, service: ScoringService = Depends(get_scoring_service)):
    """Undo the most recent live ball"""
    result = service.undo_last_ball(match_id)
    return UndoResponse(
        undone=BallEventResponse.model_validate(result.ball),
        innings=InningsResponse.model_validate(result.innings),
        match_status=result.match.status,
        events=_event_names(result),
    )


@router.post("/{match_id}/abandon", response_model=MatchResponse)
def abandon_match(match_id: int, service: ScoringService = Depends(get_scoring_service)):
    return MatchResponse.model_validate(service.abandon_match(match_id).match)


@router.get("/{match_id}/innings/{innings_number}", response_model=InningsResponse)
def get_innings(match_id: int, innings_number: int, service: ScoringService = Depends(get_scoring_service)):
    return InningsResponse.model_validate(service.get_innings(match_id, innings_number))


@router.get("/{match_id}/innings/{innings_number}/balls", response_model=list[BallEventResponse])
def get_ball_events(match_id: int, innings_number: int, service: ScoringService = Depends(get_scoring_service)):
    """Live (not undone) deliveries in order"""
    return [BallEventResponse.model_validate(e) for e in service.get_ball_events(match_id, innings_number)]


@router.get("/{match_id}/current-over", response_model=CurrentOverResponse)
def get_current_over(match_id: int, service: ScoringService = Depends(get_scoring_service)):
    return CurrentOverResponse.model_validate(service.get_current_over(match_id))


@router.get("/{match_id}/verify", response_model=VerifyResponse)
def verify_match(match_id: int, service: ScoringService = Depends(get_scoring_service)):
    problems = service.verify(match_id)
    return VerifyResponse(
        match_id=match_id,
        consistent=not any(problems.values()),
        problems=problems,
    )
