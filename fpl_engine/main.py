#!/usr/bin/env python3
"""
Fantasy Engine - CLI Interface

Command-line interface for scoring gameweeks and checking squads.
"""

import json
import logging
from datetime import datetime
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import EngineSettings, POSITION_NAMES, Position, load_league_config
from .data.database import connect, get_db_stats
from .data.loader import SeasonLoader
from .data.repository import get_repositories, release_lock
from .data.stores import InMemorySquadStore
from .engine.gameweek_lock import LockState
from .engine.squad_service import SquadService
from .errors import DataLoadError, ValidationError
from .models.score import PlayerGameweekScore, TeamGameweekScore

console = Console()

DATETIME_FORMATS = ['%Y-%m-%d', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%dT%H:%M']


class FantasyEngine:
    """Loads a season file and wires the engine components together"""

    def __init__(self, data_file: str, testing_mode: bool = False):
        self.loader = SeasonLoader().load_from_file(data_file)
        self.settings = EngineSettings(
            testing_mode=testing_mode,
            scoring=self.loader.scoring,
            squad_rules=self.loader.squad_rules,
        )
        self.store = InMemorySquadStore()
        for squad in self.loader.squads:
            self.store.put(squad.with_version(0))

        self.service = SquadService(
            players=self.loader.players,
            stats=self.loader.ledger,
            gameweeks=self.loader.gameweeks,
            store=self.store,
            settings=self.settings,
        )

    def player_score(self, player_id: int, gameweek: int) -> PlayerGameweekScore:
        return self.service.cache.get_score(player_id, gameweek)

    def team_score(self, manager_id: int, gameweek: int) -> TeamGameweekScore:
        return self.service.team_score(manager_id, gameweek)


def display_player_score(engine: FantasyEngine, score: PlayerGameweekScore) -> None:
    """Display a single player's breakdown"""
    player = engine.loader.players.get(score.player_id)
    table = Table(title=f"{player.web_name} ({score.position.name}) - GW{score.gameweek}",
                  box=box.ROUNDED)
    table.add_column("Rule", style="cyan")
    table.add_column("Points", justify="right", style="green")

    for rule, points in score.breakdown.to_dict().items():
        if rule == 'total':
            continue
        table.add_row(rule.replace('_', ' ').title(), str(points))

    table.add_section()
    table.add_row("[bold]TOTAL[/bold]", f"[bold]{score.total}[/bold]")
    console.print(table)
    console.print(f"Participation: {score.participation.value} (revision {score.revision})")


def display_team_score(engine: FantasyEngine, result: TeamGameweekScore) -> None:
    """Display a squad's gameweek score"""
    table = Table(title=f"Manager {result.manager_id} - GW{result.gameweek}", box=box.ROUNDED)
    table.add_column("Player", style="cyan")
    table.add_column("Pos", style="yellow")
    table.add_column("Pts", justify="right")
    table.add_column("x", justify="right", style="magenta")
    table.add_column("Counted", justify="right", style="green")
    table.add_column("Breakdown", style="dim")

    for entry in result.entries:
        player = engine.loader.players.get(entry.player_id)
        name = player.web_name if player else str(entry.player_id)
        if entry.player_id == result.captain_id:
            name += " (C)"
        elif entry.player_id == result.vice_captain_id:
            name += " (VC)"
        if not entry.is_starter:
            name = f"[dim]{name} (bench)[/dim]"
        table.add_row(
            name,
            entry.score.position.name,
            str(entry.score.total),
            str(entry.multiplier),
            str(entry.points),
            entry.score.breakdown.to_short_string(),
        )

    console.print(table)
    console.print(f"Captain: {result.captain_participation.value}, "
                  f"vice-captain: {result.vice_captain_participation.value}")
    console.print(f"\n[bold]Total:[/bold] {result.total}")


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise SystemExit(1)


# CLI Commands
@click.group()
@click.option('--testing-mode/--no-testing-mode', default=False, envvar='FPL_ENGINE_TESTING_MODE',
              help='Suspend gameweek lock checks')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, testing_mode, verbose):
    """Fantasy Engine - Score gameweeks and validate squads"""
    ctx.ensure_object(dict)
    ctx.obj['testing_mode'] = testing_mode
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load(ctx, data_file: str) -> FantasyEngine:
    try:
        return FantasyEngine(data_file, testing_mode=ctx.obj['testing_mode'])
    except DataLoadError as e:
        _fail(str(e))


@cli.command()
@click.option('--league', '-l', type=click.Path(exists=True), help='League rules JSON file')
def rules(league):
    """Show scoring and squad rules"""
    settings = EngineSettings()
    scoring, squad_rules = settings.scoring, settings.squad_rules
    if league:
        scoring, squad_rules = load_league_config(league)

    table = Table(title="Scoring Rules", box=box.ROUNDED)
    table.add_column("Rule", style="cyan")
    for position in Position:
        table.add_column(POSITION_NAMES[position], justify="right")

    def row(name, values):
        table.add_row(name, *[str(values[p]) if isinstance(values, dict) else str(values)
                              for p in Position])

    row("Goal", dict(scoring.GOALS))
    row("Assist", scoring.ASSIST)
    row(f"Clean sheet ({scoring.CLEAN_SHEET_MINUTES}+ min)", dict(scoring.CLEAN_SHEET))
    row(f"Per {scoring.SAVES_PER_POINT} saves", dict(scoring.SAVE_POINTS))
    row(f"Full match ({scoring.FULL_MATCH_MINUTES}+ min)", scoring.FULL_MATCH)
    row("Partial match", scoring.PARTIAL_MATCH)
    row("Yellow card", scoring.YELLOW_CARD)
    row("Red card", scoring.RED_CARD)
    row("Goal conceded", dict(scoring.GOAL_CONCEDED))
    console.print(table)

    limits = ", ".join(
        f"{p.name} {lo}-{hi}" for p, (lo, hi) in sorted(squad_rules.SQUAD_LIMITS.items())
    )
    formation = ", ".join(
        f"{p.name} {lo}-{hi}" for p, (lo, hi) in sorted(squad_rules.FORMATION_LIMITS.items())
    )
    console.print(Panel(
        f"Squad size: {squad_rules.SQUAD_SIZE} ({squad_rules.STARTING_SIZE} starters)\n"
        f"Budget: {squad_rules.BUDGET}\n"
        f"Max per team: {squad_rules.MAX_PLAYERS_PER_TEAM}\n"
        f"Captain multiplier: x{squad_rules.CAPTAIN_MULTIPLIER}\n"
        f"Squad limits: {limits}\n"
        f"Formation limits: {formation}",
        title="Squad Rules"
    ))


@cli.command()
@click.argument('data_file', type=click.Path(exists=True))
@click.option('--gameweek', '-g', type=int, required=True, help='Gameweek number')
@click.option('--player', '-p', type=int, help='Player ID (all players if omitted)')
@click.option('--output', '-o', type=click.Path(), help='Output JSON file')
@click.pass_context
def score(ctx, data_file, gameweek, player, output):
    """Score players for a gameweek"""
    engine = _load(ctx, data_file)

    try:
        if player is not None:
            scores = [engine.player_score(player, gameweek)]
        else:
            scores = [engine.player_score(line.player_id, gameweek)
                      for line in engine.loader.ledger.lines_for_gameweek(gameweek)]
    except ValidationError as e:
        _fail(str(e))

    if output:
        with open(output, 'w') as f:
            json.dump([s.to_dict() for s in scores], f, indent=2)
        console.print(f"[green]Scores exported to {output}[/green]")
    elif player is not None:
        display_player_score(engine, scores[0])
    else:
        table = Table(title=f"GW{gameweek} Scores", box=box.ROUNDED)
        table.add_column("Player", style="cyan")
        table.add_column("Pos", style="yellow")
        table.add_column("Pts", justify="right", style="green")
        table.add_column("Breakdown", style="dim")
        for s in sorted(scores, key=lambda x: x.total, reverse=True):
            table.add_row(engine.loader.players.get(s.player_id).web_name,
                          s.position.name, str(s.total), s.breakdown.to_short_string())
        console.print(table)


@cli.command()
@click.argument('data_file', type=click.Path(exists=True))
@click.option('--manager', '-m', type=int, required=True, help='Manager ID')
@click.option('--gameweek', '-g', type=int, required=True, help='Gameweek number')
@click.pass_context
def team(ctx, data_file, manager, gameweek):
    """Aggregate a manager's squad score"""
    engine = _load(ctx, data_file)
    try:
        result = engine.team_score(manager, gameweek)
    except KeyError as e:
        _fail(str(e.args[0]))
    except ValidationError as e:
        _fail(str(e))
    display_team_score(engine, result)


@cli.command()
@click.argument('data_file', type=click.Path(exists=True))
@click.option('--manager', '-m', type=int, required=True, help='Manager ID')
@click.option('--gameweek', '-g', type=int, required=True, help='Gameweek number')
@click.option('--now', type=click.DateTime(formats=DATETIME_FORMATS), help='Evaluation time (UTC)')
@click.pass_context
def validate(ctx, data_file, manager, gameweek, now):
    """Check a manager's squad against the squad rules and gameweek lock"""
    engine = _load(ctx, data_file)
    squad = engine.loader.get_squad(manager, gameweek)
    gw = engine.loader.gameweeks.get(gameweek)
    if squad is None or gw is None:
        _fail(f"No squad for manager {manager} GW{gameweek}")

    validator = engine.service.validator
    errors = validator.collect_errors(squad)
    state = engine.service.lock.state(gw, now)
    if state is LockState.LOCKED:
        console.print(f"[yellow]{gw.label} is locked - edits would be rejected[/yellow]")

    console.print(f"Squad cost: {validator.total_cost(squad)} / {engine.settings.squad_rules.BUDGET}")
    if errors:
        for error in errors:
            console.print(f"  [red]✗[/red] {error.kind.value}: {error.detail}")
        raise SystemExit(1)
    console.print("[green]Squad is valid[/green]")


@cli.command('lock-status')
@click.argument('data_file', type=click.Path(exists=True))
@click.option('--now', type=click.DateTime(formats=DATETIME_FORMATS), help='Evaluation time (UTC)')
@click.pass_context
def lock_status(ctx, data_file, now):
    """Show which gameweeks accept squad edits"""
    engine = _load(ctx, data_file)
    moment: Optional[datetime] = now

    table = Table(title="Gameweeks", box=box.ROUNDED)
    table.add_column("Gameweek", style="cyan")
    table.add_column("Locks at")
    table.add_column("State", justify="right")
    for gw in engine.loader.gameweeks.all():
        state = engine.service.lock.state(gw, moment)
        style = "red" if state is LockState.LOCKED else "green"
        table.add_row(gw.label, gw.lock_at.isoformat(), f"[{style}]{state.value}[/{style}]")
    console.print(table)
    if engine.settings.testing_mode:
        console.print("[yellow]Testing mode: lock checks suspended[/yellow]")


@cli.command('import')
@click.argument('data_file', type=click.Path(exists=True))
@click.option('--db', 'db_path', type=click.Path(), required=True, help='DuckDB file')
@click.pass_context
def import_season(ctx, data_file, db_path):
    """Import a season file into a DuckDB database"""
    engine = _load(ctx, data_file)
    con = connect(db_path)
    try:
        repos = get_repositories(con)
        players, gameweeks, lines = engine.loader.export_to_database(repos)

        service = SquadService(repos['players'], repos['stats'], repos['gameweeks'],
                               repos['squads'], settings=engine.settings)
        saved, rejected = 0, 0
        for squad in engine.loader.squads:
            current = repos['squads'].get(squad.manager_id, squad.gameweek)
            try:
                service.save_squad(squad.with_version(current.version if current else 0))
                saved += 1
            except ValidationError as e:
                rejected += 1
                console.print(f"[yellow]Squad {squad.manager_id} GW{squad.gameweek}: {e}[/yellow]")

        stats = get_db_stats(con)
    finally:
        release_lock(con)
        con.close()

    console.print(Panel(
        f"Players: {players}\nGameweeks: {gameweeks}\nStat lines: {lines}\n"
        f"Squads saved: {saved}, rejected: {rejected}\n"
        f"Rows: {stats}",
        title=f"Imported into {db_path}"
    ))


if __name__ == '__main__':
    cli()
