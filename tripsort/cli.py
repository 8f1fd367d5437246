import asyncio
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Config, load_config, save_config_template
from .models import FolderMapping
from .transactions import TransactionNotFoundError
from .utils import JsonFileStore, setup_logging
from .engine import TripSort

app = typer.Typer(help="TripSort - Normalize trip photo folders into day buckets")
console = Console()

CONFIDENCE_COLORS = {"high": "green", "medium": "yellow", "low": "red", "undetected": "dim"}

_state = {"config": None}


@app.callback()
def main(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to a tripsort.json config file",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Detect day folders, apply the mapping and undo it later."""
    try:
        config = load_config(str(config_path) if config_path else None)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    setup_logging(verbose=verbose or config.settings.verbose)
    _state["config"] = config


def _config() -> Config:
    return _state["config"] or Config()


def _engine(root: Path) -> TripSort:
    """Engine whose transaction store lives in the trip's _meta folder."""
    config = _config()
    store_path = config.settings.store_path
    if not os.path.isabs(store_path):
        store_path = str(root / "_meta" / store_path)
    return TripSort(config=config, store=JsonFileStore(store_path))


def _check_root(root: Path) -> None:
    if not root.is_dir():
        console.print(f"[red]Folder not found: {root}[/red]")
        raise typer.Exit(1)


def _parse_overrides(values: List[str]) -> dict:
    """Parse FOLDER=DAY pairs; an empty day clears the assignment."""
    overrides = {}
    for value in values:
        folder, sep, day = value.rpartition("=")
        if not sep or not folder:
            console.print(f"[red]Expected FOLDER=DAY, got: {value}[/red]")
            raise typer.Exit(1)
        try:
            overrides[folder] = int(day) if day.strip() else None
        except ValueError:
            console.print(f"[red]Invalid day number: {day}[/red]")
            raise typer.Exit(1)
    return overrides


def _review(
    mappings: List[FolderMapping],
    overrides: dict,
    skipped: List[str],
) -> List[FolderMapping]:
    """Apply manual day assignments and skip decisions."""
    unsorted_name = _config().settings.unsorted_name
    reviewed = []
    for m in mappings:
        if m.folder in overrides:
            m = m.with_day(overrides[m.folder], unsorted_name).with_skip(overrides[m.folder] is None)
        if m.folder in skipped:
            m = m.with_skip(True)
        reviewed.append(m)
    return reviewed


def _mapping_table(title: str, mappings: List[FolderMapping]) -> Table:
    table = Table(title=title)
    table.add_column("Folder")
    table.add_column("Photos", justify="right")
    table.add_column("Day", justify="right")
    table.add_column("Confidence")
    table.add_column("Pattern", style="dim")
    table.add_column("Suggested name", style="bold")
    table.add_column("Skip")

    for m in mappings:
        color = CONFIDENCE_COLORS.get(m.confidence, "white")
        day = str(m.detected_day) if m.detected_day is not None else "-"
        if m.manual:
            day += " (manual)"
        table.add_row(
            escape(m.folder),
            str(m.photo_count),
            day,
            f"[{color}]{m.confidence}[/]",
            m.pattern_matched,
            m.suggested_name,
            "yes" if m.skip else "",
        )
    return table


@app.command()
def detect(
    root: Path = typer.Argument(..., help="Trip folder to analyze"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project name"),
    trip_start: Optional[str] = typer.Option(
        None, "--trip-start", help="First day of the trip (YYYY-MM-DD)",
    ),
):
    """Show how each subfolder maps to a trip day."""
    _check_root(root)
    engine = _engine(root)
    mappings = engine.scan(root, project_name=project or root.name, trip_start=trip_start)

    if not mappings:
        console.print("[yellow]No candidate folders found.[/yellow]")
        return

    console.print(_mapping_table(f"Folders: {root.name}", mappings))
    detected = sum(1 for m in mappings if m.is_detected)
    console.print(f"\n[bold]{detected} of {len(mappings)} folders detected as days.[/bold]")


@app.command()
def apply(
    root: Path = typer.Argument(..., help="Trip folder to normalize"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project name"),
    trip_start: Optional[str] = typer.Option(
        None, "--trip-start", help="First day of the trip (YYYY-MM-DD)",
    ),
    trip_end: Optional[str] = typer.Option(
        None, "--trip-end", help="Last day of the trip (YYYY-MM-DD)",
    ),
    set_day: List[str] = typer.Option(
        [], "--set", help="Manual day for a folder, as FOLDER=DAY (repeatable)",
    ),
    skip: List[str] = typer.Option([], "--skip", help="Folder to leave out (repeatable)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only show what would happen"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Record the day mapping for a trip folder (undoable)."""
    _check_root(root)
    project_name = project or root.name
    engine = _engine(root)

    mappings = engine.scan(root, project_name=project_name, trip_start=trip_start)
    mappings = _review(mappings, _parse_overrides(set_day), skip)
    approved = [m for m in mappings if not m.skip]

    if not approved:
        console.print("[yellow]Nothing to apply: every folder is skipped.[/yellow]")
        raise typer.Exit(1)

    console.print(_mapping_table(f"Mapping: {root.name}", mappings))

    if not dry_run and not yes and not typer.confirm("\nApply this mapping?", default=False):
        console.print("No changes made.")
        return

    result = asyncio.run(engine.apply_folder_mappings(
        project_name, str(root), approved,
        trip_start=trip_start, trip_end=trip_end, dry_run=dry_run,
    ))

    console.print(f"\n{result.summary}")
    if dry_run:
        console.print(f"[dim][DRY RUN] Nothing recorded ({result.transaction_id})[/dim]")
        return

    manifest = engine.write_manifest(project_name, result.transaction_id, trip_start, trip_end)
    console.print(f"[green]Recorded {result.transaction_id}[/green]")
    console.print(f"[dim]Manifest: {manifest.root_path}/_meta/folder_map.json[/dim]")


@app.command()
def undo(
    root: Path = typer.Argument(..., help="Trip folder"),
    transaction_id: str = typer.Argument(..., help="Transaction id to undo"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project name"),
):
    """Undo a recorded mapping by transaction id."""
    _check_root(root)
    engine = _engine(root)
    try:
        summary = asyncio.run(engine.undo_folder_mapping(project or root.name, transaction_id))
    except TransactionNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]{summary}[/green]")


@app.command("undo-last")
def undo_last(
    root: Path = typer.Argument(..., help="Trip folder"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project name"),
):
    """Undo the most recent recorded mapping."""
    _check_root(root)
    engine = _engine(root)
    try:
        summary = asyncio.run(engine.undo_last(project or root.name))
    except TransactionNotFoundError:
        console.print("[yellow]No transactions to undo.[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]{summary}[/green]")


@app.command()
def history(
    root: Path = typer.Argument(..., help="Trip folder"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project name"),
):
    """List recorded mappings, most recent first."""
    _check_root(root)
    transactions = _engine(root).list_transactions(project or root.name)
    if not transactions:
        console.print("No transactions recorded.")
        return

    table = Table(title=f"History: {project or root.name}")
    table.add_column("Transaction")
    table.add_column("Time", style="dim")
    table.add_column("Created", justify="right")
    table.add_column("Renamed", justify="right")
    table.add_column("Skipped", justify="right")
    for t in transactions:
        table.add_row(
            t.id,
            t.timestamp,
            str(len(t.changes.created)),
            str(len(t.changes.renamed)),
            str(len(t.changes.skipped)),
        )
    console.print(table)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path("tripsort.json"), help="Where to write the template"),
):
    """Write a template config file."""
    save_config_template(str(path))
    console.print(f"[green]Wrote {path}[/green]")


if __name__ == "__main__":
    app()
