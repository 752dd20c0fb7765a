"""
Scoring service - the single writer for every match.

Each mutation holds the match's lock for load -> transform -> persist ->
commit. The engine never modifies the state it was handed, so when the
persist or commit fails the session is rolled back and nothing else needs
undoing. Observers are told only after the commit succeeded; the
broadcaster queues the snapshot so a slow observer never holds up the writer.
"""
import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_session
from app.engine import match_engine
from app.engine.errors import NotFound, ScoringError
from app.engine.match_engine import ScoringResult
from app.engine.outcome import BallInput
from app.engine.replay import verify_innings
from app.engine.state import (
    BallEvent, InningsState, MatchState, MatchStatus, OverState, TeamSide, TossDecision, to_dict,
)
from app.services.broadcaster import MatchBroadcaster
from app.services.match_store import MatchStore
from app.validators.squad_validator import SquadValidator

logger = logging.getLogger(__name__)


@dataclass
class CurrentOver:
    innings_number: int
    over_number: int
    over: Optional[OverState] = None
    balls: list[BallEvent] = field(default_factory=list)


@dataclass
class MatchPage:
    matches: list[MatchState]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class ScoringService:
    def __init__(
        self,
        session_factory: Callable[[], Session] = get_session,
        broadcaster: Optional[MatchBroadcaster] = None,
        store_class: type = MatchStore,
        verify_replay: Optional[bool] = None,
    ):
        self.session_factory = session_factory
        self.broadcaster = broadcaster or MatchBroadcaster()
        self.store_class = store_class
        self.verify_replay = settings.VERIFY_REPLAY if verify_replay is None else verify_replay
        self._locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, match_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = self._locks[match_id] = threading.Lock()
            return lock

    def _mutate(
        self,
        match_id: int,
        action: str,
        operation: Callable[[MatchState], ScoringResult],
        check: Optional[Callable[[MatchStore, MatchState], None]] = None,
    ) -> ScoringResult:
        with self._lock_for(match_id):
            session = self.session_factory()
            try:
                store = self.store_class(session)
                match = store.load(match_id)
                if check is not None:
                    # Directory lookups that the pure engine cannot do itself
                    check(store, match)
                result = operation(match)
                store.save(result.match)
                session.commit()
            except ScoringError as e:
                session.rollback()
                logger.warning("Match %s: %s rejected (%s): %s", match_id, action, e.name, e.message)
                raise
            except Exception:
                session.rollback()
                logger.exception("Match %s: %s failed, rolled back", match_id, action)
                raise
            finally:
                session.close()

            logger.info("Match %s: %s", match_id, action)
            if self.verify_replay:
                self._verify(result.match)
            self._publish(result)
            return result

    def _read(self, match_id: int) -> MatchState:
        session = self.session_factory()
        try:
            return self.store_class(session).load(match_id)
        finally:
            session.close()

    def _verify(self, match: MatchState) -> None:
        for innings in match.innings:
            for problem in verify_innings(innings):
                logger.warning("Match %s innings %s replay mismatch: %s", match.match_id, innings.innings_number, problem)

    def _publish(self, result: ScoringResult) -> None:
        payload = snapshot(result)
        for event in result.events:
            self.broadcaster.publish(event.value, result.match.match_id, payload)

    # Setup

    def create_match(
        self,
        team_a_id: int,
        team_b_id: int,
        total_overs: Optional[int] = None,
        venue: str = "TBD",
        team_a_players: Optional[list[int]] = None,
        team_b_players: Optional[list[int]] = None,
    ) -> MatchState:
        session = self.session_factory()
        try:
            store = self.store_class(session)
            sides = []
            for team_id, player_ids in ((team_a_id, team_a_players), (team_b_id, team_b_players)):
                team = store.get_team(team_id)
                player_ids = list(player_ids or [])
                if player_ids:
                    SquadValidator.check(team_id, player_ids, store.get_players(player_ids))
                sides.append(TeamSide(team_id=team.id, name=team.name, player_ids=player_ids))

            state = match_engine.create_match(
                sides[0], sides[1], total_overs or settings.DEFAULT_TOTAL_OVERS, venue
            )
            state = store.create(state)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info("Match %s created: %s vs %s", state.match_id, state.team_a.name, state.team_b.name)
        return state

    def set_toss(self, match_id: int, winner_id: int, decision: TossDecision) -> ScoringResult:
        return self._mutate(
            match_id, "toss", lambda m: match_engine.set_toss(m, winner_id, decision)
        )

    def update_squads(
        self,
        match_id: int,
        team_a_players: Optional[list[int]] = None,
        team_b_players: Optional[list[int]] = None,
    ) -> ScoringResult:
        def check(store: MatchStore, match: MatchState) -> None:
            for side, player_ids in ((match.team_a, team_a_players), (match.team_b, team_b_players)):
                if player_ids:
                    SquadValidator.check(side.team_id, player_ids, store.get_players(player_ids))

        return self._mutate(
            match_id, "squads",
            lambda m: match_engine.update_squads(m, team_a_players, team_b_players),
            check=check,
        )

    def start_match(self, match_id: int, opening_batters: list[int], opening_bowler: int) -> ScoringResult:
        return self._mutate(
            match_id, "start", lambda m: match_engine.start_match(m, opening_batters, opening_bowler)
        )

    def start_second_innings(self, match_id: int, opening_batters: list[int], opening_bowler: int) -> ScoringResult:
        return self._mutate(
            match_id, "second innings",
            lambda m: match_engine.start_second_innings(m, opening_batters, opening_bowler),
        )

    # Live scoring

    def set_batter(self, match_id: int, player_id: int, is_striker: bool = True) -> ScoringResult:
        return self._mutate(
            match_id, f"batter {player_id}", lambda m: match_engine.set_batter(m, player_id, is_striker)
        )

    def set_bowler(self, match_id: int, player_id: int) -> ScoringResult:
        return self._mutate(
            match_id, f"bowler {player_id}", lambda m: match_engine.set_bowler(m, player_id)
        )

    def swap_batters(self, match_id: int) -> ScoringResult:
        return self._mutate(match_id, "swap batters", match_engine.swap_batters)

    def record_ball(self, match_id: int, ball: BallInput) -> ScoringResult:
        return self._mutate(match_id, "ball", lambda m: match_engine.record_ball(m, ball))

    def undo_last_ball(self, match_id: int) -> ScoringResult:
        return self._mutate(match_id, "undo", match_engine.undo_last_ball)

    def abandon_match(self, match_id: int) -> ScoringResult:
        return self._mutate(match_id, "abandon", match_engine.abandon_match)

    # Queries

    def get_match(self, match_id: int) -> MatchState:
        return self._read(match_id)

    def list_matches(
        self,
        status: Optional[MatchStatus] = None,
        team_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> MatchPage:
        session = self.session_factory()
        try:
            matches, total = self.store_class(session).list_matches(status, team_id, page, limit)
        finally:
            session.close()
        return MatchPage(matches=matches, page=page, limit=limit, total=total)

    def live_matches(self) -> list[MatchState]:
        session = self.session_factory()
        try:
            return self.store_class(session).live_matches()
        finally:
            session.close()

    def get_innings(self, match_id: int, innings_number: int) -> InningsState:
        innings = self._read(match_id).get_innings(innings_number)
        if innings is None:
            raise NotFound(f"Innings {innings_number} not found for match {match_id}")
        return innings

    def get_ball_events(self, match_id: int, innings_number: int) -> list[BallEvent]:
        return self.get_innings(match_id, innings_number).log.active()

    def get_current_over(self, match_id: int) -> CurrentOver:
        match = self._read(match_id)
        innings = match.active_innings
        if innings is None:
            raise NotFound(f"No innings in progress for match {match_id}")
        return CurrentOver(
            innings_number=innings.innings_number,
            over_number=innings.current_over,
            over=innings.open_over,
            balls=innings.log.active_in_over(innings.current_over),
        )

    def verify(self, match_id: int) -> dict[int, list[str]]:
        """Replay every innings from its ball log and list mismatches per innings"""
        match = self._read(match_id)
        return {i.innings_number: verify_innings(i) for i in match.innings}

    def player_names(self, player_ids) -> dict[int, str]:
        session = self.session_factory()
        try:
            return self.store_class(session).player_names(player_ids)
        finally:
            session.close()


def innings_summary(innings: Optional[InningsState]) -> Optional[dict]:
    """Innings as plain data, without its ball log"""
    if innings is None:
        return None
    data = to_dict(innings)
    data.pop("log")
    data["overs_display"] = innings.overs_display
    data["extras"]["total"] = innings.extras.total
    return data


def snapshot(result: ScoringResult) -> dict:
    match = result.match
    return {
        "match_id": match.match_id,
        "status": match.status.value,
        "current_innings": match.current_innings,
        "result": to_dict(match.result) if match.result else None,
        "innings": innings_summary(result.innings),
        "ball": to_dict(result.ball) if result.ball else None,
        "over": to_dict(result.over) if result.over else None,
    }

