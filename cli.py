#!/usr/bin/env python3
"""
CLI for scoring a Crease match from the terminal
"""
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from app.config import configure_logging
from app.database import init_db
from app.engine.errors import ScoringError
from app.engine.state import InningsState, MatchState, MatchStatus, TossDecision
from app.generators.team_generator import TeamGenerator
from app.services.scoring_service import ScoringService
from app.validators.ball_validator import BallInputValidator

console = Console()


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
@click.pass_context
def cli(ctx, log_level):
    """Crease - Live Cricket Scoring"""
    configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("service", ScoringService())


def _service(ctx) -> ScoringService:
    return ctx.obj["service"]


def _fail(error: ScoringError):
    console.print(f"[red]{error.name}: {error.message}[/red]")
    for problem in getattr(error, "errors", [])[1:]:
        console.print(f"[red]  {problem}[/red]")
    raise SystemExit(1)


def _score_line(match: MatchState, innings: InningsState) -> str:
    side = match.side(innings.batting_team_id)
    line = f"{side.name} {innings.total_runs}/{innings.wickets} ({innings.overs_display}) RR {innings.run_rate:.2f}"
    if innings.is_chasing:
        line += f" | need {innings.runs_needed} from {innings.balls_remaining}"
        if innings.required_run_rate is not None:
            line += f" RRR {innings.required_run_rate:.2f}"
    return line


def _print_state(service: ScoringService, match: MatchState, innings: InningsState):
    names = service.player_names([innings.striker_id, innings.non_striker_id, innings.current_bowler_id])
    console.print(f"[bold]{_score_line(match, innings)}[/bold]")

    striker = names.get(innings.striker_id, "[yellow]select batter[/yellow]")
    non_striker = names.get(innings.non_striker_id, "[yellow]select batter[/yellow]")
    bowler = names.get(innings.current_bowler_id, "[yellow]select bowler[/yellow]")
    console.print(f"  {striker}* & {non_striker}  |  bowling: {bowler}")

    if match.result:
        console.print(Panel(f"[bold green]{match.result.summary}[/bold green]"))


@cli.command()
def init():
    """Initialize the database"""
    console.print("[yellow]Initializing database...[/yellow]")
    init_db()
    console.print("[green]Database initialized successfully![/green]")


@cli.command()
@click.option("--overs", default=None, type=int, help="Overs per innings")
@click.option("--venue", default="TBD")
@click.option("--seed", default=None, type=int, help="Seed for player names")
@click.pass_context
def seed_demo(ctx, overs, venue, seed):
    """Create two demo teams and an upcoming match between them"""
    service = _service(ctx)
    session = service.session_factory()
    try:
        home, away = TeamGenerator.create_fixture_teams(session, seed)
        squads = {team.id: [p.id for p in team.players] for team in (home, away)}
        team_ids = (home.id, away.id)

        for team in (home, away):
            table = Table(title=f"{team.name} ({team.short_name})")
            table.add_column("ID", justify="right")
            table.add_column("Name", style="cyan")
            table.add_column("Role", style="magenta")
            for player in team.players:
                table.add_row(str(player.id), player.name, player.role.value)
            console.print(table)
    finally:
        session.close()

    try:
        match = service.create_match(
            team_ids[0], team_ids[1], total_overs=overs, venue=venue,
            team_a_players=squads[team_ids[0]], team_b_players=squads[team_ids[1]],
        )
    except ScoringError as e:
        _fail(e)
    console.print(f"[green]Match {match.match_id} created: {match.team_a.name} vs {match.team_b.name}, "
                  f"{match.total_overs} overs[/green]")


@cli.command()
@click.option("--status", default=None, type=click.Choice([s.value for s in MatchStatus]))
@click.option("--team", "team_id", default=None, type=int, help="Only matches this team plays in")
@click.option("--page", default=1, type=click.IntRange(min=1))
@click.option("--limit", default=10, type=click.IntRange(1, 100))
@click.pass_context
def matches(ctx, status, team_id, page, limit):
    """List matches, newest first"""
    service = _service(ctx)
    listing = service.list_matches(MatchStatus(status) if status else None, team_id, page, limit)

    table = Table(title="Matches")
    table.add_column("ID", justify="right")
    table.add_column("Teams", style="cyan")
    table.add_column("Status")
    table.add_column("Score")
    for match in listing.matches:
        score = " | ".join(f"{i.total_runs}/{i.wickets} ({i.overs_display})" for i in match.innings)
        table.add_row(str(match.match_id), f"{match.team_a.name} vs {match.team_b.name}",
                      match.status.value, score or "-")
    console.print(table)
    console.print(f"Page {listing.page} of {max(listing.pages, 1)}, {listing.total} match(es)")


@cli.command()
@click.argument("match_id", type=int)
@click.argument("winner_id", type=int)
@click.argument("decision", type=click.Choice([d.value for d in TossDecision]))
@click.pass_context
def toss(ctx, match_id, winner_id, decision):
    """Record the toss winner and whether they bat or bowl"""
    try:
        result = _service(ctx).set_toss(match_id, winner_id, TossDecision(decision))
    except ScoringError as e:
        _fail(e)
    winner = result.match.side(winner_id)
    console.print(f"[green]{winner.name} won the toss and chose to {decision}[/green]")


@cli.command()
@click.argument("match_id", type=int)
@click.argument("striker", type=int)
@click.argument("non_striker", type=int)
@click.argument("bowler", type=int)
@click.pass_context
def start(ctx, match_id, striker, non_striker, bowler):
    """Start the first innings"""
    service = _service(ctx)
    try:
        result = service.start_match(match_id, [striker, non_striker], bowler)
    except ScoringError as e:
        _fail(e)
    _print_state(service, result.match, result.innings)


@cli.command()
@click.argument("match_id", type=int)
@click.argument("striker", type=int)
@click.argument("non_striker", type=int)
@click.argument("bowler", type=int)
@click.pass_context
def second_innings(ctx, match_id, striker, non_striker, bowler):
    """Start the chase"""
    service = _service(ctx)
    try:
        result = service.start_second_innings(match_id, [striker, non_striker], bowler)
    except ScoringError as e:
        _fail(e)
    console.print(f"[cyan]Target: {result.innings.target}[/cyan]")
    _print_state(service, result.match, result.innings)


@cli.command()
@click.argument("match_id", type=int)
@click.argument("runs", type=int, default=0)
@click.option("--extra", "extras_type", default=None, help="wide, no_ball, bye, leg_bye or penalty")
@click.option("--extra-runs", "extras_runs", default=0, type=int, help="Runs on top of the extra itself")
@click.option("--wicket", "wicket_type", default=None, help="Dismissal type, e.g. bowled, caught, run_out")
@click.option("--out", "dismissed_player_id", default=None, type=int, help="Dismissed batter (default striker)")
@click.option("--fielder", "fielder_id", default=None, type=int)
@click.pass_context
def ball(ctx, match_id, runs, extras_type, extras_runs, wicket_type, dismissed_player_id, fielder_id):
    """Record one delivery"""
    service = _service(ctx)
    try:
        delivery = BallInputValidator.parse(
            runs=runs,
            extras_type=extras_type,
            extras_runs=extras_runs,
            wicket_type=wicket_type,
            dismissed_player_id=dismissed_player_id,
            fielder_id=fielder_id,
        )
        result = service.record_ball(match_id, delivery)
    except ScoringError as e:
        _fail(e)

    event = result.ball
    style = "red" if event.is_wicket else "green" if event.is_four or event.is_six else "white"
    console.print(f"[{style}]{event.over_number}.{event.ball_number}  {event.label}[/{style}]")
    if result.over.is_complete:
        maiden = " (maiden)" if result.over.is_maiden else ""
        console.print(f"[cyan]End of over {result.over.over_number + 1}: "
                      f"{result.over.runs}-{result.over.wickets}{maiden}[/cyan]")
    _print_state(service, result.match, result.innings)


@cli.command()
@click.argument("match_id", type=int)
@click.pass_context
def undo(ctx, match_id):
    """Undo the last delivery"""
    service = _service(ctx)
    try:
        result = service.undo_last_ball(match_id)
    except ScoringError as e:
        _fail(e)
    console.print(f"[yellow]Undid {result.ball.over_number}.{result.ball.ball_number} {result.ball.label}[/yellow]")
    _print_state(service, result.match, result.innings)


@cli.command()
@click.argument("match_id", type=int)
@click.argument("player_id", type=int)
@click.option("--non-striker", is_flag=True, help="Send the batter to the non-striker's end")
@click.pass_context
def batter(ctx, match_id, player_id, non_striker):
    """Bring in a batter"""
    service = _service(ctx)
    try:
        result = service.set_batter(match_id, player_id, is_striker=not non_striker)
    except ScoringError as e:
        _fail(e)
    _print_state(service, result.match, result.innings)


@cli.command()
@click.argument("match_id", type=int)
@click.argument("player_id", type=int)
@click.pass_context
def bowler(ctx, match_id, player_id):
    """Set the bowler for the current over"""
    service = _service(ctx)
    try:
        result = service.set_bowler(match_id, player_id)
    except ScoringError as e:
        _fail(e)
    _print_state(service, result.match, result.innings)


@cli.command()
@click.argument("match_id", type=int)
@click.pass_context
def swap(ctx, match_id):
    """Swap striker and non-striker"""
    service = _service(ctx)
    try:
        result = service.swap_batters(match_id)
    except ScoringError as e:
        _fail(e)
    _print_state(service, result.match, result.innings)


@cli.command()
@click.argument("match_id", type=int)
@click.pass_context
def abandon(ctx, match_id):
    """Abandon the match with no result"""
    try:
        result = _service(ctx).abandon_match(match_id)
    except ScoringError as e:
        _fail(e)
    console.print(f"[yellow]{result.match.result.summary}[/yellow]")


@cli.command()
@click.argument("match_id", type=int)
@click.pass_context
def scorecard(ctx, match_id):
    """Print the scorecard of both innings"""
    service = _service(ctx)
    try:
        match = service.get_match(match_id)
    except ScoringError as e:
        _fail(e)

    console.print(Panel(f"[bold]{match.team_a.name} vs {match.team_b.name}[/bold]  "
                        f"{match.venue}, {match.total_overs} overs  [{match.status.value}]"))
    if not match.innings:
        console.print("[yellow]No innings yet[/yellow]")
    for innings in match.innings:
        _print_scorecard(service, match, innings)
    if match.result:
        console.print(f"\n[bold green]{match.result.summary}[/bold green]")


def _print_scorecard(service: ScoringService, match: MatchState, innings: InningsState):
    """Print innings scorecard"""
    names = service.player_names(
        [b.player_id for b in innings.batters]
        + [b.player_id for b in innings.bowlers]
        + [b.dismissed_by for b in innings.batters]
        + [b.fielder_id for b in innings.batters]
    )
    console.print(f"\n[bold]Innings {innings.innings_number}: {_score_line(match, innings)}[/bold]")

    # Batting
    bat_table = Table(title="Batting")
    bat_table.add_column("Batter", style="cyan")
    bat_table.add_column("Dismissal")
    bat_table.add_column("R", justify="right")
    bat_table.add_column("B", justify="right")
    bat_table.add_column("4s", justify="right")
    bat_table.add_column("6s", justify="right")
    bat_table.add_column("SR", justify="right")

    for bi in innings.batters:
        if bi.is_out:
            dismissal = bi.dismissal.value.replace("_", " ")
            if bi.dismissed_by is not None:
                dismissal += f" b {names.get(bi.dismissed_by, bi.dismissed_by)}"
        else:
            dismissal = "not out"
        bat_table.add_row(
            names.get(bi.player_id, str(bi.player_id)),
            dismissal,
            str(bi.runs),
            str(bi.balls_faced),
            str(bi.fours),
            str(bi.sixes),
            f"{bi.strike_rate:.1f}",
        )

    console.print(bat_table)
    extras = innings.extras
    console.print(f"Extras: {extras.total} (w {extras.wides}, nb {extras.no_balls}, "
                  f"b {extras.byes}, lb {extras.leg_byes}, p {extras.penalties})")

    # Bowling
    bowl_table = Table(title="Bowling")
    bowl_table.add_column("Bowler", style="magenta")
    bowl_table.add_column("O", justify="right")
    bowl_table.add_column("M", justify="right")
    bowl_table.add_column("R", justify="right")
    bowl_table.add_column("W", justify="right")
    bowl_table.add_column("Econ", justify="right")

    for spell in innings.bowlers:
        bowl_table.add_row(
            names.get(spell.player_id, str(spell.player_id)),
            spell.overs_display,
            str(spell.maidens),
            str(spell.runs),
            str(spell.wickets),
            f"{spell.economy:.1f}",
        )

    console.print(bowl_table)

    if innings.fall_of_wickets:
        fow = ", ".join(
            f"{f.wicket_number}-{f.score} ({names.get(f.batter_id, f.batter_id)}, {f.overs})"
            for f in innings.fall_of_wickets
        )
        console.print(f"Fall of wickets: {fow}")


@cli.command()
@click.argument("match_id", type=int)
@click.pass_context
def verify(ctx, match_id):
    """Rebuild each innings from its ball log and compare with the stored totals"""
    try:
        problems = _service(ctx).verify(match_id)
    except ScoringError as e:
        _fail(e)

    if not problems:
        console.print("[yellow]No innings to verify[/yellow]")
        return
    for number, issues in problems.items():
        if issues:
            console.print(f"[red]Innings {number}: {len(issues)} mismatch(es)[/red]")
            for issue in issues:
                console.print(f"[red]  {issue}[/red]")
        else:
            console.print(f"[green]Innings {number}: consistent[/green]")
    if any(problems.values()):
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
