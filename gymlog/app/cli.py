"""GymLog CLI - maintenance commands for the local event store.

Usage:
    gymlog stats
    gymlog export --out ./backups
    gymlog import ./gymlog-backup-2026-01-31.parquet
    gymlog --data-dir ./data clear-history --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

# Load .env early so GYMLOG_DATA_DIR is visible to the config defaults
load_dotenv()
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gymlog.app.config import GymLogConfig, set_config
from gymlog.app.engine import GymLogEngine
from gymlog.core.errors import GymLogError
from gymlog.utils.logging import setup_logging

# Initialize Typer app
app = typer.Typer(
    name="gymlog",
    help="GymLog event store CLI",
    add_completion=False,
)

console = Console()
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@app.callback()
def configure(
    ctx: typer.Context,
    data_dir: Annotated[Optional[Path], typer.Option("--data-dir", "-d", help="Directory holding events.db")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="JSON config file")] = None,
    log_level: Annotated[str, typer.Option("--log-level", "-l", help="DEBUG, INFO, WARNING or ERROR")] = "WARNING",
) -> None:
    """Load configuration and logging before any command runs."""
    if log_level.upper() not in LOG_LEVELS:
        console.print(f"[red]Error:[/red] Unknown log level: {log_level}")
        raise typer.Exit(1)

    config = GymLogConfig.load(config_file)
    if data_dir is not None:
        config.data_dir = data_dir
    config.log_level = log_level.upper()
    set_config(config)
    setup_logging(level=config.log_level, console_output=True)
    ctx.obj = config


def _open(ctx: typer.Context) -> GymLogEngine:
    try:
        return GymLogEngine.open(ctx.obj)
    except GymLogError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command("stats")
def show_stats(ctx: typer.Context) -> None:
    """Show event counts by type."""
    engine = _open(ctx)

    table = Table(title="Events by type", border_style="cyan")
    table.add_column("Event type")
    table.add_column("Count", justify="right")
    for event_type, count in engine.event_counts().items():
        table.add_row(event_type, str(count))

    console.print(Panel(
        f"[bold]Data dir:[/bold] {engine.config.data_dir}\n"
        f"[bold]Events:[/bold] {engine.event_count()}\n"
        f"[bold]Sessions:[/bold] {engine.views.session_count()}\n"
        f"[bold]Sets:[/bold] {engine.views.set_count()}\n"
        f"[bold]Recovered from backup:[/bold] {engine.recovery.from_backup}",
        title="GymLog Status",
        border_style="cyan",
    ))
    console.print(table)


@app.command("checkpoint")
def run_checkpoint(ctx: typer.Context) -> None:
    """Flush pending events to the durable store."""
    engine = _open(ctx)
    try:
        result = engine.checkpoint()
    except GymLogError as e:
        console.print(f"[red]Checkpoint failed:[/red] {e}")
        raise typer.Exit(1)

    if result.was_noop:
        console.print("[dim]Nothing to checkpoint.[/dim]")
    else:
        console.print(f"[green]Checkpoint written[/green] ({result.written} events)")


@app.command("export")
def export_backup(
    ctx: typer.Context,
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Directory to write the backup to")] = None,
) -> None:
    """Export the full event log to a portable backup file."""
    engine = _open(ctx)
    try:
        path = engine.export_backup(out)
    except (GymLogError, OSError) as e:
        console.print(f"[red]Export failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Exported {engine.event_count()} events[/green] to {path}")


@app.command("import")
def import_backup(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Backup file (.parquet)")],
) -> None:
    """Merge a backup into the store. Events already present are skipped."""
    if not file.exists():
        console.print(f"[red]Error:[/red] File not found: {file}")
        raise typer.Exit(1)

    engine = _open(ctx)
    try:
        result = engine.import_backup(file)
        engine.checkpoint()
    except GymLogError as e:
        console.print(f"[red]Import failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]{result.message()}[/green]")


@app.command("clear-history")
def clear_history(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Confirm deletion")] = False,
) -> None:
    """Delete workouts, plans and rotations. Gyms and exercises are kept."""
    if not yes:
        console.print("[yellow]Refusing to clear history without --yes[/yellow]")
        raise typer.Exit(1)

    engine = _open(ctx)
    before = engine.event_count()
    try:
        after = engine.clear_historical()
    except GymLogError as e:
        console.print(f"[red]Clear failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Cleared {before - after} events[/green], {after} remain")


@app.command("next")
def next_workout(ctx: typer.Context) -> None:
    """Show the next workout in the active rotation."""
    engine = _open(ctx)
    quick_start = engine.next_workout()
    if quick_start is None:
        console.print("[dim]No active rotation.[/dim]")
        return

    plans = {p.plan_id: p.name for p in engine.views.plans()}
    gyms = {g.gym_id: g.name for g in engine.views.gyms()}
    console.print(Panel(
        f"[bold]Rotation:[/bold] {quick_start.rotation_name}\n"
        f"[bold]Plan:[/bold] {plans.get(quick_start.plan_id, quick_start.plan_id)}\n"
        f"[bold]Gym:[/bold] {gyms.get(quick_start.gym_id, quick_start.gym_id or '-')}\n"
        f"[bold]Position:[/bold] {quick_start.position} of {quick_start.total}",
        title="Next Workout",
        border_style="green",
    ))


# Module entry point
def main() -> None:
    """Entry point for the gymlog console script."""
    app()


if __name__ == "__main__":
    main()
