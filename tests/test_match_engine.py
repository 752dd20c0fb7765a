"""
Tests for match orchestration: toss, innings sequencing, selections and results.
"""
import pytest

from app.engine import match_engine
from app.engine.errors import InvalidState, NothingToUndo, RuleViolation, ValidationError
from app.engine.match_engine import ScoringEvent
from app.engine.outcome import BallInput, DismissalKind, WicketInput
from app.engine.state import (
    InningsState, InningsStatus, MatchState, MatchStatus, TeamSide, TossDecision, WinType,
)

HOME = TeamSide(1, "Mumbai Titans", list(range(1, 12)))
AWAY = TeamSide(2, "Chennai Kings", list(range(101, 112)))


def bowl_over(match: MatchState, runs: list[int]) -> MatchState:
    for r in runs:
        match = match_engine.record_ball(match, BallInput(runs=r)).match
    return match


class TestCreateMatch:
    def test_create(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=20, venue="Wankhede")

        assert match.status == MatchStatus.UPCOMING
        assert match.total_overs == 20
        assert match.innings == []

    def test_team_cannot_play_itself(self):
        with pytest.raises(RuleViolation):
            match_engine.create_match(HOME, HOME, total_overs=20)

    @pytest.mark.parametrize("overs", [0, 51])
    def test_overs_out_of_range(self, overs):
        with pytest.raises(ValidationError):
            match_engine.create_match(HOME, AWAY, total_overs=overs)


class TestToss:
    def test_bat_first(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        match = match_engine.set_toss(match, 2, TossDecision.BAT).match

        assert match_engine.batting_first(match).team_id == 2

    def test_bowl_first(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        match = match_engine.set_toss(match, 2, TossDecision.BOWL).match

        assert match_engine.batting_first(match).team_id == 1

    def test_toss_winner_must_play(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        with pytest.raises(RuleViolation):
            match_engine.set_toss(match, 9, TossDecision.BAT)


class TestSquads:
    def test_replace_one_side(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        result = match_engine.update_squads(match, team_b_players=[101, 102, 103])

        assert result.match.team_b.player_ids == [101, 102, 103]
        assert result.match.team_a.player_ids == HOME.player_ids
        assert result.events == []
        # The original is untouched
        assert match.team_b.player_ids == AWAY.player_ids

    def test_empty_list_clears_squad(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        assert match_engine.update_squads(match, team_a_players=[]).match.team_a.player_ids == []

    def test_not_once_live(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        match = match_engine.set_toss(match, 1, TossDecision.BAT).match
        match = match_engine.start_match(match, [1, 2], 101).match

        with pytest.raises(InvalidState):
            match_engine.update_squads(match, team_a_players=[1, 2])


class TestStartMatch:
    def test_start(self, live_match):
        innings = live_match.active_innings

        assert live_match.status == MatchStatus.LIVE
        assert innings.innings_number == 1
        assert innings.batting_team_id == 1
        assert innings.striker_id == 1
        assert innings.non_striker_id == 2
        assert innings.current_bowler_id == 101
        assert [b.batting_order for b in innings.batters] == [1, 2]

    def test_toss_required(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        with pytest.raises(InvalidState):
            match_engine.start_match(match, [1, 2], 101)

    def test_openers_must_differ(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        match = match_engine.set_toss(match, 1, TossDecision.BAT).match
        with pytest.raises(ValidationError):
            match_engine.start_match(match, [1, 1], 101)

    def test_opener_from_wrong_team(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        match = match_engine.set_toss(match, 1, TossDecision.BAT).match
        with pytest.raises(RuleViolation):
            match_engine.start_match(match, [1, 102], 101)

    def test_cannot_start_twice(self, live_match):
        with pytest.raises(InvalidState):
            match_engine.start_match(live_match, [1, 2], 101)


class TestSelections:
    def test_set_batter_after_wicket(self, live_match):
        match = match_engine.record_ball(live_match, BallInput(wicket=WicketInput(DismissalKind.BOWLED))).match
        assert match.active_innings.striker_id is None

        match = match_engine.set_batter(match, 3).match
        innings = match.active_innings
        assert innings.striker_id == 3
        assert innings.batter(3).batting_order == 3

    def test_dismissed_batter_cannot_return(self, live_match):
        match = match_engine.record_ball(live_match, BallInput(wicket=WicketInput(DismissalKind.BOWLED))).match
        with pytest.raises(RuleViolation):
            match_engine.set_batter(match, 1)

    def test_batter_already_at_other_end(self, live_match):
        with pytest.raises(RuleViolation):
            match_engine.set_batter(live_match, 2, is_striker=True)

    def test_batter_outside_squad(self, live_match):
        with pytest.raises(RuleViolation):
            match_engine.set_batter(live_match, 104)

    def test_same_bowler_cannot_bowl_consecutive_overs(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        match = match_engine.set_toss(match, 1, TossDecision.BAT).match
        match = match_engine.start_match(match, [1, 2], 101).match
        match = bowl_over(match, [0] * 6)

        with pytest.raises(RuleViolation):
            match_engine.set_bowler(match, 101)

        match = match_engine.set_bowler(match, 102).match
        assert match.active_innings.current_bowler_id == 102
        assert match.active_innings.bowler(102) is not None

    def test_swap_batters(self, live_match):
        match = match_engine.swap_batters(live_match).match
        assert match.active_innings.striker_id == 2
        assert match.active_innings.non_striker_id == 1


class TestRecordBall:
    def test_input_match_is_not_modified(self, live_match):
        match_engine.record_ball(live_match, BallInput(runs=4))
        assert live_match.active_innings.total_runs == 0

    def test_events(self, live_match):
        result = match_engine.record_ball(live_match, BallInput(wicket=WicketInput(DismissalKind.BOWLED)))
        assert result.events == [ScoringEvent.BALL_UPDATE, ScoringEvent.WICKET]

    def test_first_innings_completion(self, live_match):
        match = bowl_over(live_match, [1, 0, 0, 0, 0])
        result = match_engine.record_ball(match, BallInput(runs=4))

        assert ScoringEvent.OVER_COMPLETE in result.events
        assert ScoringEvent.INNINGS_COMPLETE in result.events
        assert result.match.current_innings == 2
        assert result.match.status == MatchStatus.LIVE
        assert result.match.get_innings(1).status == InningsStatus.COMPLETED

    def test_no_ball_before_second_innings_starts(self, live_match):
        match = bowl_over(live_match, [1] * 6)
        with pytest.raises(InvalidState):
            match_engine.record_ball(match, BallInput(runs=1))


class TestSecondInnings:
    def test_target(self, live_match):
        match = bowl_over(live_match, [4, 0, 1, 0, 0, 0])
        result = match_engine.start_second_innings(match, [101, 102], 1)

        innings = result.innings
        assert innings.innings_number == 2
        assert innings.batting_team_id == 2
        assert innings.target == 6
        assert innings.required_run_rate == 6.0

    def test_requires_first_innings_complete(self, live_match):
        with pytest.raises(InvalidState):
            match_engine.start_second_innings(live_match, [101, 102], 1)

    def test_only_once(self, live_match):
        match = bowl_over(live_match, [0] * 6)
        match = match_engine.start_second_innings(match, [101, 102], 1).match
        with pytest.raises(RuleViolation):
            match_engine.start_second_innings(match, [103, 104], 2)

    def test_only_once_after_match_completed(self, live_match):
        match = bowl_over(live_match, [0] * 6)
        match = match_engine.start_second_innings(match, [101, 102], 1).match
        match = match_engine.record_ball(match, BallInput(runs=1)).match
        assert match.status == MatchStatus.COMPLETED

        with pytest.raises(RuleViolation, match="already exists"):
            match_engine.start_second_innings(match, [103, 104], 2)

    def test_chase_completed_mid_over(self, live_match):
        match = bowl_over(live_match, [4, 0, 1, 0, 0, 0])
        match = match_engine.start_second_innings(match, [101, 102], 1).match

        result = match_engine.record_ball(match, BallInput(runs=6))
        innings = result.innings

        assert innings.status == InningsStatus.COMPLETED
        assert not innings.over(0).is_complete
        assert result.match.status == MatchStatus.COMPLETED
        assert ScoringEvent.MATCH_COMPLETE in result.events
        assert result.match.result.win_type == WinType.WICKETS
        assert result.match.result.win_margin == 10
        assert result.match.result.winner_id == 2
        assert result.match.result.summary == "Chennai Kings won by 10 wickets"

    def test_defending_side_wins_by_runs(self, live_match):
        match = bowl_over(live_match, [4, 0, 1, 0, 0, 0])
        match = match_engine.start_second_innings(match, [101, 102], 1).match
        match = bowl_over(match, [0, 0, 1, 0, 0, 0])

        assert match.status == MatchStatus.COMPLETED
        assert match.result.win_type == WinType.RUNS
        assert match.result.win_margin == 4
        assert match.result.summary == "Mumbai Titans won by 4 runs"

    def test_tie(self, live_match):
        match = bowl_over(live_match, [4, 0, 1, 0, 0, 0])
        match = match_engine.start_second_innings(match, [101, 102], 1).match
        match = bowl_over(match, [0, 0, 4, 0, 0, 1])

        assert match.result.win_type == WinType.TIE
        assert match.result.winner_id is None
        assert match.result.summary == "Match Tied"


def finished_match(first: tuple[int, int], second: tuple[int, int]) -> MatchState:
    match = MatchState(team_a=HOME, team_b=AWAY, total_overs=20, status=MatchStatus.LIVE)
    match.innings = [
        InningsState(1, 1, 2, 20, total_runs=first[0], wickets=first[1], status=InningsStatus.COMPLETED),
        InningsState(2, 2, 1, 20, target=first[0] + 1, total_runs=second[0], wickets=second[1],
                     status=InningsStatus.COMPLETED),
    ]
    return match


class TestComputeResult:
    def test_chasing_side_wins_by_wickets(self):
        result = match_engine.compute_result(finished_match((120, 8), (121, 6)))

        assert result.win_type == WinType.WICKETS
        assert result.win_margin == 4
        assert result.winner_id == 2
        assert result.summary == "Chennai Kings won by 4 wickets"

    def test_singular_margins(self):
        assert match_engine.compute_result(finished_match((150, 5), (149, 10))).summary == "Mumbai Titans won by 1 run"
        assert match_engine.compute_result(finished_match((150, 5), (151, 9))).summary == "Chennai Kings won by 1 wicket"

    def test_needs_both_innings(self, live_match):
        with pytest.raises(InvalidState):
            match_engine.compute_result(live_match)


class TestMatchUndo:
    def test_undo_reopens_first_innings(self, live_match):
        match = bowl_over(live_match, [1] * 6)
        assert match.current_innings == 2

        result = match_engine.undo_last_ball(match)

        assert result.match.current_innings == 1
        assert result.innings.status == InningsStatus.IN_PROGRESS
        assert result.innings.total_runs == 5
        assert result.events == [ScoringEvent.UNDO_BALL]

    def test_undo_winning_ball_reopens_match(self, live_match):
        match = bowl_over(live_match, [4, 0, 1, 0, 0, 0])
        match = match_engine.start_second_innings(match, [101, 102], 1).match
        match = match_engine.record_ball(match, BallInput(runs=6)).match
        assert match.status == MatchStatus.COMPLETED

        result = match_engine.undo_last_ball(match)

        assert result.match.status == MatchStatus.LIVE
        assert result.match.result is None
        assert result.innings.total_runs == 0
        assert result.innings.status == InningsStatus.IN_PROGRESS

    def test_undo_never_reaches_back_into_first_innings(self, live_match):
        match = bowl_over(live_match, [0] * 6)
        match = match_engine.start_second_innings(match, [101, 102], 1).match

        with pytest.raises(NothingToUndo):
            match_engine.undo_last_ball(match)

    def test_undo_forgets_batter_who_never_faced(self, live_match):
        match = match_engine.record_ball(live_match, BallInput(wicket=WicketInput(DismissalKind.BOWLED))).match
        match = match_engine.set_batter(match, 3).match

        match = match_engine.undo_last_ball(match).match
        innings = match.active_innings
        assert [(b.player_id, b.batting_order) for b in innings.batters] == [(1, 1), (2, 2)]
        assert innings.striker_id == 1

        match = match_engine.record_ball(match, BallInput(wicket=WicketInput(DismissalKind.LBW))).match
        match = match_engine.set_batter(match, 4).match
        assert match.active_innings.batter(4).batting_order == 3

    def test_undo_before_start(self):
        match = match_engine.create_match(HOME, AWAY, total_overs=5)
        with pytest.raises(InvalidState):
            match_engine.undo_last_ball(match)


class TestAbandon:
    def test_abandon_live_match(self, live_match):
        result = match_engine.abandon_match(live_match)

        assert result.match.status == MatchStatus.ABANDONED
        assert result.match.result.win_type == WinType.NO_RESULT
        assert result.match.result.summary == "Match Abandoned"

    def test_cannot_abandon_twice(self, live_match):
        match = match_engine.abandon_match(live_match).match
        with pytest.raises(InvalidState):
            match_engine.abandon_match(match)

    def test_no_scoring_after_abandon(self, live_match):
        match = match_engine.abandon_match(live_match).match
        with pytest.raises(InvalidState):
            match_engine.record_ball(match, BallInput(runs=1))
