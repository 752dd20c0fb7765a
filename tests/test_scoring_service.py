"""
Tests for the scoring service: persistence round trips, rollback and notifications.
"""
import threading

import pytest

from app.engine.errors import InvalidState, NotFound, NothingToUndo, RuleViolation
from app.engine.outcome import BallInput, DismissalKind, ExtraKind, ExtrasInput, WicketInput
from app.engine.state import InningsStatus, MatchStatus, TossDecision, to_dict
from app.services.match_store import MatchStore
from app.services.scoring_service import ScoringService


class FailingStore(MatchStore):
    """Writes everything, then fails before the commit"""

    def save(self, state):
        super().save(state)
        raise RuntimeError("disk full")


@pytest.fixture
def match_id(service, teams):
    match = service.create_match(
        teams["home"], teams["away"], total_overs=2,
        team_a_players=teams["home_players"], team_b_players=teams["away_players"],
    )
    return match.match_id


@pytest.fixture
def live_match_id(service, teams, match_id):
    service.set_toss(match_id, teams["home"], TossDecision.BAT)
    home, away = teams["home_players"], teams["away_players"]
    service.start_match(match_id, [home[0], home[1]], away[-1])
    service.broadcaster.flush()
    return match_id


@pytest.fixture
def events(broadcaster):
    received = []
    broadcaster.subscribe(lambda event, match_id, payload: received.append((event, match_id, payload)))
    return received


class TestCreateMatch:
    def test_create(self, service, teams, match_id):
        match = service.get_match(match_id)

        assert match.status == MatchStatus.UPCOMING
        assert match.team_a.team_id == teams["home"]
        assert match.team_a.name == "Mumbai Titans"
        assert match.team_b.player_ids == teams["away_players"]
        assert match.total_overs == 2

    def test_unknown_team(self, service, teams):
        with pytest.raises(NotFound):
            service.create_match(teams["home"], 99)

    def test_squad_player_from_other_team(self, service, teams):
        with pytest.raises(RuleViolation):
            service.create_match(
                teams["home"], teams["away"],
                team_a_players=teams["home_players"][:10] + teams["away_players"][:1],
            )

    def test_default_overs(self, service, teams):
        match = service.create_match(teams["home"], teams["away"])
        assert match.total_overs == 20

    def test_unknown_match(self, service):
        with pytest.raises(NotFound):
            service.get_match(404)


class TestPersistence:
    def test_state_survives_reload(self, service, teams, live_match_id):
        service.record_ball(live_match_id, BallInput(runs=4))
        service.record_ball(live_match_id, BallInput(extras=ExtrasInput(ExtraKind.WIDE, 1)))
        result = service.record_ball(
            live_match_id, BallInput(wicket=WicketInput(DismissalKind.CAUGHT, fielder_id=teams["away_players"][0]))
        )

        assert to_dict(service.get_match(live_match_id)) == to_dict(result.match)

    def test_undo_survives_reload(self, service, live_match_id):
        service.record_ball(live_match_id, BallInput(runs=4))
        service.record_ball(live_match_id, BallInput(runs=1))
        result = service.undo_last_ball(live_match_id)

        stored = service.get_match(live_match_id)
        assert to_dict(stored) == to_dict(result.match)
        assert [e.is_undone for e in stored.active_innings.log] == [False, True]

    def test_over_removed_by_undo_is_deleted(self, service, live_match_id):
        service.record_ball(live_match_id, BallInput(runs=1))
        service.undo_last_ball(live_match_id)

        assert service.get_match(live_match_id).active_innings.overs == []

    def test_ball_events_exclude_undone(self, service, live_match_id):
        service.record_ball(live_match_id, BallInput(runs=4))
        service.record_ball(live_match_id, BallInput(runs=6))
        service.undo_last_ball(live_match_id)
        service.record_ball(live_match_id, BallInput(runs=2))

        balls = service.get_ball_events(live_match_id, 1)
        assert [b.sequence for b in balls] == [1, 3]
        assert [b.batter_runs for b in balls] == [4, 2]

    def test_current_over(self, service, live_match_id):
        service.record_ball(live_match_id, BallInput(runs=1))
        service.record_ball(live_match_id, BallInput(extras=ExtrasInput(ExtraKind.WIDE)))

        current = service.get_current_over(live_match_id)
        assert current.innings_number == 1
        assert current.over_number == 0
        assert current.over.legal_balls == 1
        assert current.over.wides == 1
        assert len(current.balls) == 2

    def test_unknown_innings(self, service, live_match_id):
        with pytest.raises(NotFound):
            service.get_innings(live_match_id, 2)

    def test_verify(self, service, live_match_id):
        service.record_ball(live_match_id, BallInput(runs=3))
        service.record_ball(live_match_id, BallInput(wicket=WicketInput(DismissalKind.BOWLED)))

        assert service.verify(live_match_id) == {1: []}


class TestFullMatch:
    def test_chase(self, service, teams, live_match_id):
        home, away = teams["home_players"], teams["away_players"]
        for runs in [1, 0, 0, 0, 0, 0]:
            service.record_ball(live_match_id, BallInput(runs=runs))
        service.set_bowler(live_match_id, away[-2])
        for runs in [0, 0, 0, 0, 0, 4]:
            result = service.record_ball(live_match_id, BallInput(runs=runs))
        assert result.match.current_innings == 2

        result = service.start_second_innings(live_match_id, [away[0], away[1]], home[-1])
        assert result.innings.target == 6

        result = service.record_ball(live_match_id, BallInput(runs=6))
        assert result.match.status == MatchStatus.COMPLETED
        assert result.match.result.summary == "Chennai Kings won by 10 wickets"

        stored = service.get_match(live_match_id)
        assert stored.status == MatchStatus.COMPLETED
        assert stored.result.winner_id == teams["away"]
        assert stored.get_innings(2).status == InningsStatus.COMPLETED


class TestTransactions:
    def test_failed_save_rolls_back(self, session_factory, broadcaster, events, live_match_id):
        failing = ScoringService(session_factory=session_factory, broadcaster=broadcaster, store_class=FailingStore)
        before = to_dict(failing.get_match(live_match_id))
        events.clear()

        with pytest.raises(RuntimeError):
            failing.record_ball(live_match_id, BallInput(runs=4))

        broadcaster.flush()
        assert to_dict(failing.get_match(live_match_id)) == before
        assert events == []

    def test_rejected_operation_changes_nothing(self, service, events, live_match_id):
        before = to_dict(service.get_match(live_match_id))
        events.clear()

        with pytest.raises(NothingToUndo):
            service.undo_last_ball(live_match_id)

        service.broadcaster.flush()
        assert to_dict(service.get_match(live_match_id)) == before
        assert events == []

    def test_serialised_writers(self, service, live_match_id):
        threads = [
            threading.Thread(target=service.record_ball, args=(live_match_id, BallInput(runs=1)))
            for _ in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        innings = service.get_match(live_match_id).active_innings
        assert innings.total_runs == 5
        assert [e.sequence for e in innings.log] == [1, 2, 3, 4, 5]


class TestSquads:
    def test_update_is_saved(self, service, teams, match_id):
        home = teams["home_players"]
        result = service.update_squads(match_id, team_a_players=home[:5])

        stored = service.get_match(match_id)
        assert result.match.team_a.player_ids == home[:5]
        assert stored.team_a.player_ids == home[:5]
        assert stored.team_b.player_ids == teams["away_players"]

    def test_player_from_other_team(self, service, teams, match_id):
        with pytest.raises(RuleViolation, match="Players not in team"):
            service.update_squads(match_id, team_b_players=teams["home_players"][:3])

        assert service.get_match(match_id).team_b.player_ids == teams["away_players"]

    def test_unknown_player(self, service, match_id):
        with pytest.raises(NotFound):
            service.update_squads(match_id, team_a_players=[9999, 9998])

    def test_not_after_start(self, service, teams, live_match_id):
        with pytest.raises(InvalidState):
            service.update_squads(live_match_id, team_a_players=teams["home_players"][:5])


class TestListMatches:
    def test_newest_first_in_pages(self, service, teams, match_id):
        second = service.create_match(teams["home"], teams["away"]).match_id
        third = service.create_match(teams["home"], teams["away"]).match_id

        first_page = service.list_matches(limit=2)
        assert [m.match_id for m in first_page.matches] == [third, second]
        assert first_page.total == 3
        assert first_page.pages == 2

        last_page = service.list_matches(page=2, limit=2)
        assert [m.match_id for m in last_page.matches] == [match_id]

    def test_filter_by_status(self, service, teams, live_match_id):
        upcoming = service.create_match(teams["home"], teams["away"]).match_id

        assert [m.match_id for m in service.list_matches(status=MatchStatus.LIVE).matches] == [live_match_id]
        assert [m.match_id for m in service.list_matches(status=MatchStatus.UPCOMING).matches] == [upcoming]
        assert service.list_matches(status=MatchStatus.COMPLETED).total == 0

    def test_filter_by_team(self, service, teams, match_id):
        assert service.list_matches(team_id=teams["away"]).total == 1
        page = service.list_matches(team_id=999)
        assert page.matches == []
        assert page.pages == 0

    def test_live_matches(self, service, teams, live_match_id):
        service.create_match(teams["home"], teams["away"])
        assert [m.match_id for m in service.live_matches()] == [live_match_id]

        service.abandon_match(live_match_id)
        assert service.live_matches() == []


class TestNotifications:
    def test_published_after_commit(self, service, broadcaster, live_match_id):
        seen = []

        def on_event(event, match_id, payload):
            # Committed state is already readable from a fresh session
            seen.append((event, service.get_match(match_id).active_innings.total_runs, payload["innings"]["total_runs"]))

        broadcaster.subscribe(on_event, match_id=live_match_id)
        service.record_ball(live_match_id, BallInput(runs=4))
        broadcaster.flush()

        assert seen == [("ball_update", 4, 4)]

    def test_event_names(self, service, broadcaster, events, live_match_id):
        events.clear()
        service.record_ball(live_match_id, BallInput(wicket=WicketInput(DismissalKind.BOWLED)))
        service.undo_last_ball(live_match_id)
        broadcaster.flush()

        assert [e[0] for e in events] == ["ball_update", "wicket", "undo_ball"]
        assert all(e[1] == live_match_id for e in events)

    def test_payload_snapshot(self, service, broadcaster, events, live_match_id):
        events.clear()
        service.record_ball(live_match_id, BallInput(runs=2))
        broadcaster.flush()
        _, _, payload = events[0]

        assert payload["status"] == "live"
        assert payload["ball"]["batter_runs"] == 2
        assert payload["over"]["runs"] == 2
        assert payload["innings"]["overs_display"] == "0.1"
        assert "log" not in payload["innings"]

    def test_slow_subscriber_does_not_hold_up_scoring(self, service, broadcaster, live_match_id):
        release = threading.Event()
        delivered = []

        def slow(event, match_id, payload):
            release.wait(timeout=5)
            delivered.append(payload["innings"]["total_runs"])

        broadcaster.subscribe(slow, match_id=live_match_id)
        service.record_ball(live_match_id, BallInput(runs=1))
        result = service.record_ball(live_match_id, BallInput(runs=2))

        # Both writes returned while the first notification is still blocked
        assert result.innings.total_runs == 3
        assert delivered == []

        release.set()
        broadcaster.flush(live_match_id)
        assert delivered == [1, 3]

    def test_delivery_keeps_commit_order(self, service, broadcaster, events, live_match_id):
        events.clear()
        for runs in [1, 2, 3, 4]:
            service.record_ball(live_match_id, BallInput(runs=runs))
        broadcaster.flush()

        assert [p["innings"]["total_runs"] for _, _, p in events] == [1, 3, 6, 10]

    def test_failing_subscriber_does_not_break_scoring(self, service, broadcaster, events, live_match_id):
        def broken(event, match_id, payload):
            raise ValueError("socket closed")

        broadcaster.subscribe(broken)
        events.clear()
        result = service.record_ball(live_match_id, BallInput(runs=1))
        broadcaster.flush()

        assert result.innings.total_runs == 1
        assert [e[0] for e in events] == ["ball_update"]

    def test_other_match_subscribers_not_told(self, service, broadcaster, live_match_id):
        seen = []
        broadcaster.subscribe(lambda *args: seen.append(args), match_id=live_match_id + 1)
        service.record_ball(live_match_id, BallInput(runs=1))
        broadcaster.flush()

        assert seen == []

    def test_unsubscribe(self, service, broadcaster, live_match_id):
        seen = []
        unsubscribe = broadcaster.subscribe(lambda *args: seen.append(args))
        unsubscribe()
        service.record_ball(live_match_id, BallInput(runs=1))
        broadcaster.flush()

        assert seen == []
