"""
srs: command line front end for the scheduling engine.

A Rich terminal interface over a SQLite item store.

Commands:
- srs import    - Load a JSON deck into the store
- srs queue     - Show what is due now
- srs review    - Answer due reviews interactively
- srs unlock    - Unlock items whose prerequisites are met
- srs forecast  - Upcoming reviews and per-level progress
- srs stats     - Review statistics and stage breakdown

Global options (before the command) override settings:
    srs --db ./japanese.db --policy dual_track review
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import Settings, get_settings
from srs_engine.core.errors import SchedulingError
from srs_engine.core.items import SubTrack
from srs_engine.core.stages import PolicyKind
from srs_engine.engine import ReviewSession, SchedulingEngine
from srs_engine.review.builder import ReviewTask
from srs_engine.review.forecast import difficult_items, level_progress, stage_breakdown
from srs_engine.storage.deck import load_deck
from srs_engine.storage.sqlite_store import SQLiteItemStore

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="srs",
    help="Spaced repetition scheduler",
    no_args_is_help=True,
)
console = Console()


STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
    "track": {
        SubTrack.MEANING: "magenta",
        SubTrack.READING: "cyan",
    },
}


@dataclass
class CliState:
    """Options shared by every command."""

    settings: Settings
    db_path: Path

    def open_store(self) -> SQLiteItemStore:
        return SQLiteItemStore(self.db_path)

    def engine(self) -> SchedulingEngine:
        try:
            return SchedulingEngine.from_settings(self.settings)
        except SchedulingError as e:
            _fail(str(e))


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


def _fail(message: str) -> None:
    console.print(f"[{STYLES['incorrect']}]{message}[/{STYLES['incorrect']}]")
    raise typer.Exit(1)


@app.callback()
def cli(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="SQLite database (defaults to SRS_DB_PATH or ~/.srs_engine/state.db)",
    ),
    policy: Optional[str] = typer.Option(
        None,
        "--policy",
        "-p",
        help="Scheduling policy: backoff, mastery, sm2, dual_track",
    ),
) -> None:
    """Spaced repetition scheduler."""
    settings = get_settings()
    if policy is not None:
        try:
            PolicyKind(policy)
        except ValueError:
            _fail(f"Unknown policy {policy!r}")
        settings = settings.model_copy(update={"policy": policy})
    ctx.obj = CliState(settings=settings, db_path=db or settings.db_path)


# =============================================================================
# Display Helpers
# =============================================================================


def style_track(track: SubTrack | None) -> str:
    if track is None:
        return ""
    color = STYLES["track"][track]
    return f"[{color}]{track.value}[/{color}]"


def format_when(when: datetime | None) -> str:
    return when.strftime("%Y-%m-%d %H:%M") if when else "never"


def ask_outcome(engine: SchedulingEngine, task: ReviewTask) -> Any:
    """
    Ask for the answer result in the form the active policy expects.

    Returns:
        Outcome value, or None when the user quits
    """
    kind = engine.policy.kind
    prompt = f"[bold]{task.item_id}[/bold] {style_track(task.track)}".strip()

    if kind is PolicyKind.BACKOFF:
        choice = Prompt.ask(
            f"{prompt} difficulty",
            choices=["easy", "medium", "hard", "impossible", "q"],
            console=console,
        )
        return None if choice == "q" else choice

    if kind is PolicyKind.SM2:
        choice = Prompt.ask(
            f"{prompt} grade",
            choices=["0", "1", "2", "3", "4", "5", "q"],
            console=console,
        )
        return None if choice == "q" else int(choice)

    choice = Prompt.ask(f"{prompt} correct?", choices=["y", "n", "q"], console=console)
    return None if choice == "q" else choice == "y"


# =============================================================================
# Commands
# =============================================================================


@app.command("import")
def import_deck(
    ctx: typer.Context,
    deck: Path = typer.Argument(..., help="JSON deck file"),
    replace: bool = typer.Option(
        False,
        "--replace",
        help="Overwrite items that already exist (discards their progress)",
    ),
) -> None:
    """Load a JSON deck into the store."""
    state = _state(ctx)
    try:
        items = load_deck(deck)
        state.engine().validate(items)
    except SchedulingError as e:
        _fail(str(e))

    store = state.open_store()
    try:
        written = store.import_items(items, replace=replace)
    finally:
        store.close()

    console.print(
        f"[{STYLES['correct']}]Imported {written} of {len(items)} items "
        f"into {state.db_path}[/{STYLES['correct']}]"
    )


@app.command()
def queue(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum tasks to show"),
    level: Optional[int] = typer.Option(None, "--level", help="Only this level"),
) -> None:
    """Show what is due now."""
    state = _state(ctx)
    engine = state.engine()
    store = state.open_store()
    try:
        items = store.load_items(level=level)
    finally:
        store.close()

    session = engine.session(
        items,
        limit=limit or state.settings.session_limit,
        new_limit=state.settings.new_items_per_session,
    )
    if not session.queue:
        console.print("[green]Nothing due right now.[/green]")
        return

    by_id = {item.id: item for item in items}
    table = Table(title=f"Due now ({session.total_tasks} tasks, ~{session.estimated_minutes} min)")
    table.add_column("#", style="dim", width=4)
    table.add_column("Item")
    table.add_column("Track")
    table.add_column("Stage")
    table.add_column("Level", justify="right")

    for i, task in enumerate(session.queue, 1):
        item = by_id[task.item_id]
        table.add_row(
            str(i),
            item.id,
            style_track(task.track),
            engine.policy.stage_name(item),
            str(item.level),
        )

    console.print(table)
    console.print(
        f"[dim]{len(session.review_tasks)} reviews, {len(session.lesson_tasks)} lessons[/dim]"
    )


@app.command()
def review(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum answers"),
    level: Optional[int] = typer.Option(None, "--level", help="Only this level"),
) -> None:
    """Answer due reviews interactively."""
    state = _state(ctx)
    engine = state.engine()
    store = state.open_store()
    session = ReviewSession(engine, store, level=level)
    remaining = limit or state.settings.session_limit

    try:
        while remaining > 0:
            task = session.next_task()
            if task is None:
                break
            outcome = ask_outcome(engine, task)
            if outcome is None:
                break
            updated = session.answer(task, outcome)
            remaining -= 1
            if updated is not None:
                console.print(
                    f"  -> {engine.policy.stage_name(updated)}, "
                    f"next {format_when(updated.next_review_at)}",
                    style=STYLES["dim"],
                )
    except SchedulingError as e:
        _fail(str(e))
    finally:
        store.close()

    stats = session.stats
    if stats.answered == 0:
        console.print("[yellow]No reviews answered.[/yellow]")
        return

    console.print(
        Panel(
            f"Answered: {stats.answered}\n"
            f"Correct: {stats.correct} ({stats.accuracy:.0f}%)\n"
            f"Skipped: {stats.skipped}",
            title="Session complete",
            border_style="cyan",
        )
    )


@app.command()
def unlock(
    ctx: typer.Context,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Only show what would be unlocked and why the rest is blocked",
    ),
) -> None:
    """Unlock items whose prerequisites and level gate are met."""
    state = _state(ctx)
    engine = state.engine()
    store = state.open_store()

    try:
        items = store.load_items()
        if dry_run:
            report = engine.unlock_report(items)
            table = Table(title="Locked items")
            table.add_column("Item")
            table.add_column("Status")
            table.add_column("Blocked by", style="dim")
            for item_id in sorted(report.unlockable):
                table.add_row(item_id, "[green]unlockable[/green]", "")
            for item_id, blocking in sorted(report.blocked.items()):
                table.add_row(
                    item_id,
                    f"[yellow]{blocking.reason}[/yellow]",
                    ", ".join(sorted(blocking.blocking_ids)),
                )
            console.print(table)
            return

        unlocked = ReviewSession(engine, store).unlock_ready()
    except SchedulingError as e:
        _fail(str(e))
    finally:
        store.close()

    if not unlocked:
        console.print("[yellow]Nothing to unlock.[/yellow]")
        return
    console.print(f"[{STYLES['correct']}]Unlocked {len(unlocked)} items:[/{STYLES['correct']}]")
    for item in unlocked:
        console.print(f"  {item.id} (level {item.level})")


@app.command()
def forecast(
    ctx: typer.Context,
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Only the next N days"),
) -> None:
    """Upcoming reviews and per-level progress."""
    state = _state(ctx)
    engine = state.engine()
    store = state.open_store()
    try:
        items = store.load_items()
    finally:
        store.close()

    slots = engine.forecast(items, horizon_days=days)
    table = Table(title="Upcoming reviews")
    table.add_column("When")
    table.add_column("Reviews", justify="right")
    for slot in slots:
        table.add_row(slot.label, str(slot.count))
    console.print(table)

    progress = Table(title="Levels")
    progress.add_column("Level", justify="right")
    progress.add_column("Items", justify="right")
    progress.add_column("Unlocked", justify="right")
    progress.add_column("Learned", justify="right")
    for level in level_progress(items, engine.policy):
        progress.add_row(
            str(level.level),
            str(level.total),
            str(level.unlocked),
            f"{level.learned} ({level.percent_learned:.0f}%)",
        )
    console.print(progress)


@app.command()
def stats(ctx: typer.Context) -> None:
    """Show review statistics and the stage breakdown."""
    state = _state(ctx)
    engine = state.engine()
    store = state.open_store()
    try:
        db_stats = store.get_stats()
        items = store.load_items()
    finally:
        store.close()

    console.print("\n[bold cyan]Learning Statistics[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Policy", engine.policy.kind.value)
    table.add_row("Items", str(db_stats["total_items"]))
    table.add_row("Locked", str(db_stats["locked_items"]))
    table.add_row("Total reviews", str(db_stats["total_reviews"]))
    table.add_row("Retention rate", f"{db_stats['retention_rate_percent']:.1f}%")
    console.print(table)

    difficult = difficult_items(items)
    if difficult:
        console.print(f"\n[{STYLES['warning']}]Difficult items[/{STYLES['warning']}]")
        for item in difficult[:10]:
            console.print(f"  {item.id}: {item.wrong_count} wrong, {item.correct_count} right")

    breakdown = stage_breakdown(items, engine.policy)
    if breakdown:
        console.print("\n[bold]Stages[/bold]")
        stage_table = Table()
        stage_table.add_column("Stage")
        stage_table.add_column("Items", justify="right")
        for name, count in breakdown.items():
            stage_table.add_row(name, str(count))
        console.print(stage_table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file is not None:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB")

    app()


if __name__ == "__main__":
    main()
