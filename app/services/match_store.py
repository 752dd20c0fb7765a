"""
Match store - maps match state value objects to and from database rows
"""
from typing import Iterable, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.engine.errors import NotFound
from app.engine.outcome import DismissalKind
from app.engine.state import (
    BallEvent, BatterStats, BowlerStats, EventLog, ExtrasBreakdown, FallOfWicket,
    InningsState, MatchResult, MatchState, MatchStatus, OverState, TeamSide, WicketDetail, to_dict,
)
from app.models.match import Match, Innings, Over, Delivery
from app.models.player import Player
from app.models.team import Team


class MatchStore:
    """Loads and saves whole matches. The caller owns the session and the commit."""

    def __init__(self, session: Session):
        self.session = session

    # Directory lookups

    def get_team(self, team_id: int) -> Team:
        team = self.session.get(Team, team_id)
        if not team:
            raise NotFound(f"Team {team_id} not found")
        return team

    def get_players(self, player_ids: Iterable[int]) -> list[Player]:
        player_ids = list(player_ids)
        players = self.session.query(Player).filter(Player.id.in_(player_ids)).all()
        missing = set(player_ids) - {p.id for p in players}
        if missing:
            raise NotFound(f"Player(s) not found: {', '.join(str(i) for i in sorted(missing))}")
        return players

    def player_names(self, player_ids: Iterable[Optional[int]]) -> dict[int, str]:
        ids = {i for i in player_ids if i is not None}
        if not ids:
            return {}
        return {p.id: p.name for p in self.session.query(Player).filter(Player.id.in_(ids))}

    # Matches

    def create(self, state: MatchState) -> MatchState:
        row = Match(
            team_a_id=state.team_a.team_id,
            team_b_id=state.team_b.team_id,
            team_a_players=list(state.team_a.player_ids),
            team_b_players=list(state.team_b.player_ids),
            total_overs=state.total_overs,
            venue=state.venue,
            status=state.status,
            current_innings=state.current_innings,
        )
        self.session.add(row)
        self.session.flush()
        state.match_id = row.id
        return state

    def load(self, match_id: int) -> MatchState:
        row = self.session.get(Match, match_id)
        if not row:
            raise NotFound(f"Match {match_id} not found")
        return self._state_from_row(row)

    def list_matches(
        self,
        status: Optional[MatchStatus] = None,
        team_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[MatchState], int]:
        """One page of matches, newest first, and the number of matches matching the filters"""
        query = self.session.query(Match)
        if status:
            query = query.filter_by(status=status)
        if team_id is not None:
            query = query.filter(or_(Match.team_a_id == team_id, Match.team_b_id == team_id))

        total = query.count()
        rows = (
            query.order_by(Match.match_date.desc(), Match.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [self._state_from_row(r) for r in rows], total

    def live_matches(self) -> list[MatchState]:
        rows = self.session.query(Match).filter_by(status=MatchStatus.LIVE).order_by(Match.id.desc()).all()
        return [self._state_from_row(r) for r in rows]

    def _state_from_row(self, row: Match) -> MatchState:
        result = None
        if row.win_type is not None:
            result = MatchResult(
                winner_id=row.winner_id,
                win_margin=row.win_margin,
                win_type=row.win_type,
                summary=row.result_summary,
            )

        return MatchState(
            match_id=row.id,
            team_a=TeamSide(row.team_a_id, row.team_a.name, list(row.team_a_players or [])),
            team_b=TeamSide(row.team_b_id, row.team_b.name, list(row.team_b_players or [])),
            total_overs=row.total_overs,
            venue=row.venue,
            toss_winner_id=row.toss_winner_id,
            toss_decision=row.toss_decision,
            status=row.status,
            current_innings=row.current_innings,
            innings=[self._innings_from_row(i) for i in row.innings],
            result=result,
        )

    def save(self, state: MatchState) -> None:
        row = self.session.get(Match, state.match_id)
        if not row:
            raise NotFound(f"Match {state.match_id} not found")

        row.team_a_players = list(state.team_a.player_ids)
        row.team_b_players = list(state.team_b.player_ids)
        row.toss_winner_id = state.toss_winner_id
        row.toss_decision = state.toss_decision
        row.status = state.status
        row.current_innings = state.current_innings
        row.winner_id = state.result.winner_id if state.result else None
        row.win_margin = state.result.win_margin if state.result else None
        row.win_type = state.result.win_type if state.result else None
        row.result_summary = state.result.summary if state.result else None

        existing = {i.innings_number: i for i in row.innings}
        for innings in state.innings:
            innings_row = existing.get(innings.innings_number)
            if innings_row is None:
                innings_row = Innings(
                    innings_number=innings.innings_number,
                    batting_team_id=innings.batting_team_id,
                    bowling_team_id=innings.bowling_team_id,
                    total_overs=innings.total_overs,
                )
                row.innings.append(innings_row)
            self._write_innings(innings_row, innings)

        self.session.flush()

    def _write_innings(self, row: Innings, innings: InningsState) -> None:
        row.target = innings.target
        row.status = innings.status
        row.total_runs = innings.total_runs
        row.wickets = innings.wickets
        row.total_balls = innings.total_balls
        row.current_over = innings.current_over
        row.current_over_balls = innings.current_over_balls
        row.extras = to_dict(innings.extras)
        row.run_rate = innings.run_rate
        row.required_run_rate = innings.required_run_rate
        row.striker_id = innings.striker_id
        row.non_striker_id = innings.non_striker_id
        row.current_bowler_id = innings.current_bowler_id
        row.batters = to_dict(innings.batters)
        row.bowlers = to_dict(innings.bowlers)
        row.fall_of_wickets = to_dict(innings.fall_of_wickets)

        over_rows = {o.over_number: o for o in row.overs}
        for over in innings.overs:
            over_row = over_rows.pop(over.over_number, None)
            if over_row is None:
                over_row = Over(over_number=over.over_number, bowler_id=over.bowler_id)
                row.overs.append(over_row)
            over_row.bowler_id = over.bowler_id
            over_row.runs = over.runs
            over_row.wickets = over.wickets
            over_row.wides = over.wides
            over_row.no_balls = over.no_balls
            over_row.legal_balls = over.legal_balls
            over_row.is_maiden = over.is_maiden
            over_row.is_complete = over.is_complete
        # Overs emptied by an undo
        for stale in over_rows.values():
            row.overs.remove(stale)

        event_rows = {e.sequence: e for e in row.ball_events}
        for event in innings.log:
            event_row = event_rows.get(event.sequence)
            if event_row is not None:
                event_row.is_undone = event.is_undone
                continue
            row.ball_events.append(_delivery_from_event(event))

    def _innings_from_row(self, row: Innings) -> InningsState:
        return InningsState(
            innings_number=row.innings_number,
            batting_team_id=row.batting_team_id,
            bowling_team_id=row.bowling_team_id,
            total_overs=row.total_overs,
            target=row.target,
            status=row.status,
            total_runs=row.total_runs,
            wickets=row.wickets,
            total_balls=row.total_balls,
            current_over=row.current_over,
            current_over_balls=row.current_over_balls,
            extras=ExtrasBreakdown(**(row.extras or {})),
            run_rate=row.run_rate,
            required_run_rate=row.required_run_rate,
            striker_id=row.striker_id,
            non_striker_id=row.non_striker_id,
            current_bowler_id=row.current_bowler_id,
            batters=[_batter_from_dict(d) for d in row.batters or []],
            bowlers=[BowlerStats(**d) for d in row.bowlers or []],
            fall_of_wickets=[FallOfWicket(**d) for d in row.fall_of_wickets or []],
            overs=[
                OverState(
                    over_number=o.over_number,
                    bowler_id=o.bowler_id,
                    runs=o.runs,
                    wickets=o.wickets,
                    wides=o.wides,
                    no_balls=o.no_balls,
                    legal_balls=o.legal_balls,
                    is_maiden=o.is_maiden,
                    is_complete=o.is_complete,
                )
                for o in row.overs
            ],
            log=EventLog([_event_from_delivery(d) for d in row.ball_events]),
        )


def _batter_from_dict(data: dict) -> BatterStats:
    data = dict(data)
    if data.get("dismissal"):
        data["dismissal"] = DismissalKind(data["dismissal"])
    return BatterStats(**data)


def _delivery_from_event(event: BallEvent) -> Delivery:
    wicket = event.wicket
    return Delivery(
        sequence=event.sequence,
        over_number=event.over_number,
        ball_number=event.ball_number,
        striker_id=event.striker_id,
        non_striker_id=event.non_striker_id,
        bowler_id=event.bowler_id,
        batter_runs=event.batter_runs,
        extras_runs=event.extras_runs,
        total_runs=event.total_runs,
        is_legal=event.is_legal,
        extra_type=event.extra_kind,
        extra_input_runs=event.extra_input_runs,
        dismissal_type=wicket.dismissal if wicket else None,
        dismissed_player_id=wicket.batter_id if wicket else None,
        dismissed_by_id=wicket.bowler_id if wicket else None,
        fielder_id=wicket.fielder_id if wicket else None,
        completed_over=event.completed_over,
        is_undone=event.is_undone,
    )


def _event_from_delivery(row: Delivery) -> BallEvent:
    wicket = None
    if row.dismissal_type is not None:
        wicket = WicketDetail(
            dismissal=row.dismissal_type,
            batter_id=row.dismissed_player_id,
            bowler_id=row.dismissed_by_id,
            fielder_id=row.fielder_id,
        )
    return BallEvent(
        sequence=row.sequence,
        over_number=row.over_number,
        ball_number=row.ball_number,
        striker_id=row.striker_id,
        non_striker_id=row.non_striker_id,
        bowler_id=row.bowler_id,
        batter_runs=row.batter_runs,
        extras_runs=row.extras_runs,
        total_runs=row.total_runs,
        is_legal=row.is_legal,
        extra_kind=row.extra_type,
        extra_input_runs=row.extra_input_runs,
        wicket=wicket,
        completed_over=row.completed_over,
        is_undone=row.is_undone,
    )
