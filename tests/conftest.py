"""
Shared fixtures: in-memory innings and matches, and a throwaway SQLite database.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.engine.aggregator import record_ball
from app.engine.match_engine import create_match, set_toss, start_match
from app.engine.state import (
    BatterStats, BowlerStats, InningsState, InningsStatus, TeamSide, TossDecision,
)
from app.generators.team_generator import TeamGenerator
from app.services.broadcaster import MatchBroadcaster
from app.services.scoring_service import ScoringService
import app.models  # noqa: F401  registers the tables

HOME_PLAYERS = list(range(1, 12))
AWAY_PLAYERS = list(range(101, 112))


def _play(innings: InningsState, *balls) -> InningsState:
    """Record balls one after another and return the final innings"""
    for ball in balls:
        innings = record_ball(innings, ball).innings
    return innings


def _new_bowler(innings: InningsState, player_id: int) -> InningsState:
    if innings.bowler(player_id) is None:
        innings.bowlers.append(BowlerStats(player_id=player_id))
    innings.current_bowler_id = player_id
    return innings


def _new_batter(innings: InningsState, player_id: int, is_striker: bool = True) -> InningsState:
    innings.batters.append(BatterStats(player_id=player_id, batting_order=len(innings.batters) + 1))
    if is_striker:
        innings.striker_id = player_id
    else:
        innings.non_striker_id = player_id
    return innings


@pytest.fixture
def make_innings():
    def _make(total_overs: int = 20, target: int = None, innings_number: int = 1) -> InningsState:
        return InningsState(
            innings_number=innings_number,
            batting_team_id=1,
            bowling_team_id=2,
            total_overs=total_overs,
            target=target,
            status=InningsStatus.IN_PROGRESS,
            striker_id=1,
            non_striker_id=2,
            current_bowler_id=101,
            batters=[BatterStats(player_id=1, batting_order=1), BatterStats(player_id=2, batting_order=2)],
            bowlers=[BowlerStats(player_id=101)],
        )
    return _make


@pytest.fixture
def innings(make_innings):
    return make_innings()


@pytest.fixture
def live_match():
    """One-over match, Mumbai Titans batting with 1 and 2 against 101"""
    match = create_match(
        TeamSide(1, "Mumbai Titans", HOME_PLAYERS),
        TeamSide(2, "Chennai Kings", AWAY_PLAYERS),
        total_overs=1,
    )
    match = set_toss(match, 1, TossDecision.BAT).match
    return start_match(match, [1, 2], 101).match


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def teams(session_factory):
    """Two saved demo teams: ids and squad player ids"""
    session = session_factory()
    try:
        home, away = TeamGenerator.create_fixture_teams(session, seed=7)
        return {
            "home": home.id,
            "away": away.id,
            "home_players": [p.id for p in home.players],
            "away_players": [p.id for p in away.players],
        }
    finally:
        session.close()


@pytest.fixture
def broadcaster():
    broadcaster = MatchBroadcaster()
    yield broadcaster
    broadcaster.close()


@pytest.fixture
def service(session_factory, broadcaster):
    return ScoringService(session_factory=session_factory, broadcaster=broadcaster, verify_replay=True)


@pytest.fixture
def play():
    return _play


@pytest.fixture
def new_bowler():
    return _new_bowler


@pytest.fixture
def new_batter():
    return _new_batter
