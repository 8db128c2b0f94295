"""Command-line entry points invoked by the notebook lifecycle hooks."""

import json
import logging
import sys

import typer
from rich.console import Console
from rich.table import Table

from .activator import Activator
from .bootstrapper import Bootstrapper
from .config import BootstrapConfig
from .constants import NAMESPACE
from .errors import BootstrapInProgressError, LifecycleError
from .logger import add_file_handler, setup_logging
from .status_store import FileStatusStore, SetupStatus
from .worker import inspect_worker, launch_worker

app = typer.Typer(help="Bootstrap and activate the notebook instance environment")
console = Console()
logger = logging.getLogger(f"{NAMESPACE}.cli")


def _load() -> tuple:
    config = BootstrapConfig.from_env()
    store = FileStatusStore(config.status_path, legacy_marker=config.marker_path)
    return config, store


def _interactive() -> bool:
    return sys.stdout.isatty()


@app.callback()
def main() -> None:
    setup_logging()


@app.command()
def create(
    foreground: bool = typer.Option(
        False,
        "--foreground/--detach",
        help="Run setup in this process instead of a background worker",
    ),
    force: bool = typer.Option(False, help="Re-run setup even if already complete"),
) -> None:
    """Install Miniconda and build the GPU environment (runs once at creation)."""
    try:
        config, store = _load()
        if not foreground:
            launch_worker(config, store, force=force)
            return
        if _interactive():
            # The detached worker already writes here through its stdout
            add_file_handler(config.log_path)
        Bootstrapper(config, store).run(force=force)
    except BootstrapInProgressError as e:
        logger.info(str(e))
    except LifecycleError as e:
        logger.error(str(e))
        raise typer.Exit(1)


@app.command()
def start() -> None:
    """Register kernels and restart the notebook server once setup is complete."""
    try:
        config, store = _load()
        Activator(config, store).run()
    except LifecycleError as e:
        logger.error(str(e))
        raise typer.Exit(1)


@app.command()
def status(
    as_json: bool = typer.Option(False, "--json", help="Print the record as JSON"),
) -> None:
    """Show setup progress. Exits 1 unless setup is complete."""
    try:
        _, store = _load()
    except LifecycleError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    record = inspect_worker(store)

    if as_json:
        payload = record.model_dump(mode="json") if record else {"status": None}
        typer.echo(json.dumps(payload, indent=2))
    elif record is None:
        console.print("[yellow]Setup has not started[/yellow]")
    else:
        table = Table(title="Environment setup", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Status", record.status.value)
        table.add_row("Updated", record.updated_at.isoformat())
        table.add_row("Worker pid", str(record.pid) if record.pid else "-")
        table.add_row("Current step", record.current_step or "-")
        table.add_row("Completed steps", ", ".join(record.completed_steps) or "-")
        if record.error:
            table.add_row("Error", f"[red]{record.error}[/red]")
        console.print(table)

    if record is None or record.status != SetupStatus.COMPLETE:
        raise typer.Exit(1)
