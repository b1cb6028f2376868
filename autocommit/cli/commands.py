"""CLI commands for autocommit."""

import asyncio
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from autocommit import __logo__, __version__

app = typer.Typer(
    name="autocommit",
    help=f"{__logo__} autocommit - scheduled commits for a git working tree",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} autocommit v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """autocommit - scheduled commits for a git working tree."""
    pass


def _load(config_path: Path | None, repo: Path | None):
    """Load config (exiting on error), apply --repo, and set up logging."""
    from autocommit.config.loader import load_config
    from autocommit.errors import ConfigurationError
    from autocommit.logging_config import setup_logging

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if repo is not None:
        config.repository_path = str(repo)
    setup_logging(config.log_level)
    return config


def _fmt_time(moment) -> str:
    return moment.strftime("%Y-%m-%d %H:%M") if moment else "[dim]--[/dim]"


# ============================================================================
# Setup
# ============================================================================


@app.command()
def onboard(
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    repo: Path = typer.Option(None, "--repo", "-r", help="Repository path (overrides config)"),
):
    """Write a default configuration file."""
    from autocommit.config.loader import get_config_path, save_config
    from autocommit.config.schema import Config

    path = config_path or get_config_path()

    if path.exists():
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    if repo is not None:
        config.repository_path = str(repo.expanduser().resolve())
    save_config(config, path)
    console.print(f"[green]✓[/green] Created config at {path}")

    console.print(f"\n{__logo__} autocommit is ready!")
    console.print("\nNext steps:")
    console.print(f"  1. Set [cyan]repositoryPath[/cyan] and [cyan]schedule.commitTime[/cyan] in {path}")
    console.print("  2. Run: [cyan]autocommit run[/cyan]")


# ============================================================================
# Service
# ============================================================================


@app.command()
def run(
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    repo: Path = typer.Option(None, "--repo", "-r", help="Repository path (overrides config)"),
):
    """Start the scheduler and commit on schedule until interrupted."""
    from autocommit.errors import AutoCommitError
    from autocommit.service.orchestrator import AutoCommitService

    config = _load(config_path, repo)
    service = AutoCommitService(config)

    async def serve():
        shutdown_event = asyncio.Event()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown_event.set)

        try:
            await service.initialize()
            await service.start()
        except AutoCommitError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

        if not service.is_running():
            console.print("[yellow]Auto-commit is disabled in config.[/yellow]")
            return

        status = service.get_status()
        console.print(f"{__logo__} Watching {config.repository}")
        console.print(f"[green]✓[/green] Schedule: {config.schedule.commit_time}")
        console.print(f"[green]✓[/green] Next commit: {_fmt_time(status.next_scheduled_commit)}")

        try:
            await shutdown_event.wait()
        finally:
            console.print("Shutting down...")
            await service.stop()

    asyncio.run(serve())


@app.command()
def commit(
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    repo: Path = typer.Option(None, "--repo", "-r", help="Repository path (overrides config)"),
):
    """Commit pending changes now."""
    from autocommit.errors import AutoCommitError
    from autocommit.service.orchestrator import AutoCommitService

    config = _load(config_path, repo)
    service = AutoCommitService(config)

    async def run_once():
        try:
            await service.initialize(recover_missed=False)
        except AutoCommitError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        return await service.trigger_manual_commit()

    result = asyncio.run(run_once())

    if result.success and result.commit_id:
        console.print(f"[green]✓[/green] Committed {result.commit_id[:8]} ({result.files_changed} files)")
        console.print(f"  {result.message}")
    elif result.success:
        console.print(f"[dim]{result.message}[/dim]")
    else:
        console.print(f"[red]✗[/red] {result.message}")
        if result.error:
            console.print(f"  [dim]{result.error}[/dim]")
        raise typer.Exit(1)


# ============================================================================
# Status
# ============================================================================


@app.command()
def status(
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    repo: Path = typer.Option(None, "--repo", "-r", help="Repository path (overrides config)"),
):
    """Show configuration, repository and schedule status."""
    from autocommit.config.loader import get_config_path
    from autocommit.service.orchestrator import AutoCommitService

    path = config_path or get_config_path()
    config = _load(config_path, repo)
    service = AutoCommitService(config)

    info = asyncio.run(service.get_repository_info())
    state = service.scheduler.load()

    console.print(f"{__logo__} autocommit Status\n")
    console.print(f"Config: {path} {'[green]✓[/green]' if path.exists() else '[dim](defaults)[/dim]'}")
    console.print(f"Enabled: {'[green]yes[/green]' if config.enabled else '[dim]no[/dim]'}")
    console.print(f"Repository: {config.repository} {'[green]✓[/green]' if info.is_repository else '[red]✗[/red]'}")

    if info.is_repository:
        state_colors = {
            "clean": "[green]clean[/green]",
            "dirty": "[cyan]dirty[/cyan]",
            "merging": "[yellow]merging[/yellow]",
            "rebasing": "[yellow]rebasing[/yellow]",
            "detached": "[yellow]detached[/yellow]",
            "conflict": "[red]conflict[/red]",
            "unknown": "[red]unknown[/red]",
        }
        console.print(f"Branch: {info.current_branch or '[dim]--[/dim]'}")
        console.print(f"State: {state_colors.get(info.state.value, info.state.value)}")
        console.print(f"Last commit: {info.last_commit[:8] if info.last_commit else '[dim]--[/dim]'}")

    console.print(f"Schedule: {config.schedule.commit_time}")
    console.print(f"Last run: {_fmt_time(state.last_run)}")
    console.print(f"Next run: {_fmt_time(state.next_run)}")
    console.print(f"Missed runs recovered: {len(state.missed_runs)}")


@app.command()
def history(
    count: int = typer.Option(10, "--count", "-n", help="Number of commits"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    repo: Path = typer.Option(None, "--repo", "-r", help="Repository path (overrides config)"),
):
    """Show recent commits."""
    from autocommit.service.orchestrator import AutoCommitService

    config = _load(config_path, repo)
    service = AutoCommitService(config)
    commits = asyncio.run(service.get_recent_commits(count))

    if not commits:
        console.print("No commits found.")
        return

    table = Table(title="Recent Commits")
    table.add_column("Hash", style="cyan")
    table.add_column("Date")
    table.add_column("Author")
    table.add_column("Message")

    for c in commits:
        message = c.message[:60] + "..." if len(c.message) > 60 else c.message
        table.add_row(c.hash[:8], _fmt_time(c.date), c.author, message)

    console.print(table)


@app.command()
def missed(
    clear: bool = typer.Option(False, "--clear", help="Clear the missed-run history"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
):
    """List runs that were recovered after downtime."""
    from autocommit.scheduler.service import ScheduleEngine

    config = _load(config_path, None)
    engine = ScheduleEngine(config.schedule.state_path)

    if clear:
        engine.clear_missed_executions()
        console.print("[green]✓[/green] Cleared missed-run history")
        return

    runs = engine.load().missed_runs
    if not runs:
        console.print("No missed runs recorded.")
        return

    for moment in runs:
        console.print(f"  {moment.strftime('%Y-%m-%d %H:%M:%S')}")


if __name__ == "__main__":
    app()
