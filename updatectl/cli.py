"""
updatectl CLI - keep deployed projects in step with their git upstream.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from .config import load_config, write_default_config
from .daemon import BuildExecutor, ProjectReconciler, run_forever, run_one_pass
from .errors import ProjectNotFoundError, UpdatectlError
from .formatters import OutcomeFormatter
from .models import ProjectDefinition, UpdatectlConfig
from .settings import get_settings

# Setup
app = typer.Typer(
    name="updatectl",
    help="Auto-update your deployed projects from git",
    add_completion=False,
)
console = Console()


def configure_logging():
    """Configure logging based on settings."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Configure logging on module import
configure_logging()


CONFIG_OPTION_HELP = "Path to updatectl.yaml (overrides UPDATECTL_CONFIG_PATH)"


def _config_path(config_path: Optional[Path]) -> Path:
    return config_path or get_settings().config_path


def _timeout() -> Optional[float]:
    return get_settings().command_timeout_seconds or None


def _handle_command_error(e: Exception, command_type: str) -> None:
    """Print an error and exit.

    Raises:
        SystemExit: Always exits with code 1
    """
    console.print(f"[bold red]✗ {command_type.capitalize()} failed:[/bold red] {escape(str(e))}")
    raise typer.Exit(code=1)


def _load(config_path: Optional[Path]) -> UpdatectlConfig:
    """Load the configuration or exit with an error message."""
    try:
        return load_config(_config_path(config_path))
    except UpdatectlError as e:
        _handle_command_error(e, "config")


def _find_project(config: UpdatectlConfig, name: str) -> ProjectDefinition:
    project = config.get_project(name)
    if project is None:
        raise ProjectNotFoundError(f"Project {name} not found in configuration")
    return project


@app.command()
def init(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Create a default configuration file if none exists."""
    path = _config_path(config_path)
    try:
        created = write_default_config(path)
    except UpdatectlError as e:
        _handle_command_error(e, "init")

    if created:
        console.print(f"[green]✓ Created config at[/green] {path}")
    else:
        console.print(f"Config already exists at {path}")
    console.print("[dim]Edit it, then run 'updatectl watch' (or register that command with your service manager).[/dim]")


@app.command()
def watch(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", min=1, help="Minutes between passes (overrides intervalMinutes)"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Projects reconciled concurrently (overrides UPDATECTL_MAX_WORKERS)"
    ),
):
    """Run the updatectl daemon to auto-update projects."""
    config = _load(config_path)
    interval_minutes = interval or config.interval_minutes
    max_workers = workers or get_settings().max_workers

    console.print(f"Running updatectl every {interval_minutes} minutes...")
    if not config.projects:
        console.print("[yellow]⚠ No projects configured; passes will do nothing.[/yellow]")

    run_forever(config.projects, interval_minutes, max_workers=max_workers, timeout=_timeout())
    console.print("[green]Daemon stopped[/green]")


@app.command()
def update(
    name: str = typer.Argument(..., help="Project name"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Pull, rebuild and redeploy a single project now."""
    config = _load(config_path)
    try:
        project = _find_project(config, name)
    except UpdatectlError as e:
        _handle_command_error(e, "update")

    outcome = run_one_pass(project, ProjectReconciler.create(timeout=_timeout()))
    OutcomeFormatter(console).print_outcome(outcome)
    if not outcome.ok:
        raise typer.Exit(code=1)


@app.command()
def build(
    name: str = typer.Argument(..., help="Project name"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
):
    """Run the build command for a specific project."""
    config = _load(config_path)
    try:
        project = _find_project(config, name)
    except UpdatectlError as e:
        _handle_command_error(e, "build")

    if not project.has_build_command:
        console.print(f"No build command configured for project {name}")
        return

    console.print(f"Building project {name}...")
    result = BuildExecutor(timeout=_timeout()).run(project.build_command, project.path)
    if result.ok:
        console.print(f"[bold green]✓ Build completed for {name}[/bold green]")
    else:
        detail = result.status.value.replace("_", " ")
        if result.exit_status is not None:
            detail += f", exit status {result.exit_status}"
        console.print(f"[bold red]✗ Build failed for {name}:[/bold red] {detail}")
        raise typer.Exit(code=1)


@app.command(name="list")
def list_cmd(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    detailed: bool = typer.Option(False, "--detailed", "-d", help="Show repository and build command"),
):
    """List configured projects."""
    config = _load(config_path)

    if json_output:
        data = {
            "intervalMinutes": config.interval_minutes,
            "projects": [p.model_dump(by_alias=True) for p in config.projects],
        }
        console.print_json(json.dumps(data))
        return

    formatter = OutcomeFormatter(console)
    if detailed and config.projects:
        console.print(formatter.projects_table(config.projects))
    else:
        formatter.print_projects(config.projects)


@app.command()
def version():
    """Show updatectl version."""
    from . import __version__

    console.print(f"updatectl version: [bold]{__version__}[/bold]")


if __name__ == "__main__":
    app()
