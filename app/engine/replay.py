"""
Replay - rebuild an innings from its event log alone and compare.

The stored aggregates are maintained incrementally (and decrementally on
undo). Replaying the live events from a blank innings must land on the same
numbers; any difference points at a bookkeeping bug.
"""
from app.engine.aggregator import apply_ball, update_rates
from app.engine.state import BatterStats, BowlerStats, InningsState, InningsStatus

BATTER_FIELDS = ("runs", "balls_faced", "fours", "sixes", "is_out", "dismissal", "dismissed_by", "fielder_id")
BOWLER_FIELDS = ("overs", "balls", "maidens", "runs", "wickets", "wides", "no_balls")


def replay_innings(innings: InningsState) -> InningsState:
    shell = InningsState(
        innings_number=innings.innings_number,
        batting_team_id=innings.batting_team_id,
        bowling_team_id=innings.bowling_team_id,
        total_overs=innings.total_overs,
        target=innings.target,
        status=InningsStatus.IN_PROGRESS,
    )
    update_rates(shell)

    for event in innings.log.active():
        for player_id in (event.striker_id, event.non_striker_id):
            if shell.batter(player_id) is None:
                shell.batters.append(BatterStats(player_id=player_id, batting_order=len(shell.batters) + 1))
        if shell.bowler(event.bowler_id) is None:
            shell.bowlers.append(BowlerStats(player_id=event.bowler_id))
        shell.striker_id = event.striker_id
        shell.non_striker_id = event.non_striker_id
        shell.current_bowler_id = event.bowler_id
        apply_ball(shell, event.to_ball_input())

    return shell


def verify_innings(innings: InningsState) -> list[str]:
    """Differences between the stored innings and a replay of its log"""
    rebuilt = replay_innings(innings)
    problems = []

    for name in ("total_runs", "wickets", "total_balls", "run_rate", "required_run_rate"):
        stored, replayed = getattr(innings, name), getattr(rebuilt, name)
        if stored != replayed:
            problems.append(f"{name}: stored {stored}, replayed {replayed}")

    if innings.extras != rebuilt.extras:
        problems.append(f"extras: stored {innings.extras}, replayed {rebuilt.extras}")

    if innings.fall_of_wickets != rebuilt.fall_of_wickets:
        problems.append("fall of wickets differ")

    runs_check = sum(b.runs for b in innings.batters) + innings.extras.total
    if runs_check != innings.total_runs:
        problems.append(f"batter runs plus extras is {runs_check}, total is {innings.total_runs}")

    for line in innings.batters:
        other = rebuilt.batter(line.player_id) or BatterStats(player_id=line.player_id, batting_order=0)
        for name in BATTER_FIELDS:
            if getattr(line, name) != getattr(other, name):
                problems.append(
                    f"batter {line.player_id} {name}: stored {getattr(line, name)}, replayed {getattr(other, name)}"
                )

    for line in innings.bowlers:
        other = rebuilt.bowler(line.player_id) or BowlerStats(player_id=line.player_id)
        for name in BOWLER_FIELDS:
            if getattr(line, name) != getattr(other, name):
                problems.append(
                    f"bowler {line.player_id} {name}: stored {getattr(line, name)}, replayed {getattr(other, name)}"
                )

    return problems
