#!/usr/bin/env python3
"""
CLI for the live scoring replay engine
"""
import json
import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape
from app.database import init_db
from app.api.schemas import BallRequest
from app.engine import (
    BallEvent, Lineup, MatchState,
    calculate_match_state, replay, undo_last,
)

console = Console()


def load_ball_log(path: str) -> tuple[MatchState, Lineup, list[BallEvent]]:
    """
    Read a ball log file:
    {"opening": {"striker": .., "non_striker": .., "bowler": ..},
     "batting_order": [..], "balls": [{"striker_id": .., "bowler_id": .., ...}]}
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    opening = data["opening"]
    initial = MatchState.opening(opening["striker"], opening["non_striker"], opening["bowler"])
    lineup = Lineup(batting_order=tuple(data.get("batting_order", [])))

    # Each ball gets the same checks as one entered through the API
    events = [BallRequest.model_validate(raw).to_event() for raw in data.get("balls", [])]
    return initial, lineup, events


@click.group()
def cli():
    """Live Scoring - ball-by-ball cricket scoring"""
    pass


@cli.command()
def init():
    """Initialize the database"""
    console.print("[yellow]Initializing database...[/yellow]")
    init_db()
    console.print("[green]Database initialized successfully![/green]")


@cli.command("replay")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--undo", is_flag=True, help="Drop the last ball before replaying")
@click.option("--trace", is_flag=True, help="Show the state after every ball")
def replay_log(path: str, undo: bool, trace: bool):
    """Replay a JSON ball log and show who is on strike"""
    try:
        initial, lineup, events = load_ball_log(path)
    except ValidationError as e:
        console.print(f"[red]Invalid ball log: {escape(str(e))}[/red]")
        raise click.exceptions.Exit(1)

    if undo:
        if not events:
            console.print("[red]No balls to undo.[/red]")
            return
        undone = undo_last(events, initial, lineup)
        console.print(f"[yellow]Undid {undone.removed!r}[/yellow]")
        events = list(undone.remaining)
        if undone.history_empty:
            console.print("[yellow]No balls left - select the opening batsmen and bowler again.[/yellow]")

    if trace:
        table = Table(title=f"Replay ({len(events)} balls)")
        table.add_column("#", justify="right")
        table.add_column("Ball", style="cyan")
        table.add_column("Striker", style="green")
        table.add_column("Non-striker")
        table.add_column("Bowler", style="magenta")
        table.add_column("Overs", justify="right")

        for i, event in enumerate(events, start=1):
            state = calculate_match_state(events[:i], initial, lineup)
            table.add_row(
                str(i), repr(event), state.striker, state.non_striker,
                state.bowler, state.overs_display,
            )
        console.print(table)

    result = replay(events, initial, lineup)
    state = result.state
    summary = (
        f"Striker: [bold green]{state.striker}[/bold green]\n"
        f"Non-striker: {state.non_striker}\n"
        f"Bowler: [magenta]{state.bowler}[/magenta]\n"
        f"Over {state.over}, ball {state.ball_in_over} ({state.overs_display} overs)\n"
        f"Wickets: {result.lineup.wickets}"
    )
    if result.all_out:
        summary += "\n[red]All out - innings complete[/red]"
    console.print(Panel(summary, title="Match State"))


if __name__ == "__main__":
    cli()
