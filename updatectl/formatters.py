"""
Console output formatting for updatectl commands.

Outcomes and project listings are rendered with Rich so that the operator
sees one coloured status line per project.
"""

from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .daemon.types import OutcomeKind, ReconciliationOutcome
from .models import ProjectDefinition


class OutcomeFormatter:
    """
    Formatter for reconciliation outcomes and project listings.

    Uses one symbol per outcome:
    - `✓` updated
    - `=` no change
    - `✗` failure
    - `!` cancelled or timed out
    """

    def __init__(self, console: Optional[Console] = None):
        """Initialize formatter with Rich console."""
        self.console = console or Console()

        self.colors = {
            OutcomeKind.UPDATED: "green",
            OutcomeKind.NO_CHANGE: "dim",
            OutcomeKind.TIMED_OUT: "yellow",
            OutcomeKind.CANCELLED: "yellow",
        }
        self.symbols = {
            OutcomeKind.UPDATED: "✓",
            OutcomeKind.NO_CHANGE: "=",
            OutcomeKind.TIMED_OUT: "!",
            OutcomeKind.CANCELLED: "!",
        }

    def format_outcome(self, outcome: ReconciliationOutcome) -> Text:
        color = self.colors.get(outcome.kind, "red")
        symbol = self.symbols.get(outcome.kind, "✗")
        return Text(f"{symbol} {outcome.status_line()}", style=color)

    def print_outcome(self, outcome: ReconciliationOutcome) -> None:
        self.console.print(self.format_outcome(outcome))

    def print_projects(self, projects: Iterable[ProjectDefinition]) -> None:
        """Print configured projects as ``- name (type): path`` lines."""
        projects = list(projects)
        if not projects:
            self.console.print("No projects configured.")
            return

        self.console.print("Configured projects:")
        for project in projects:
            self.console.print(f"- {project.name} ({project.type}): {project.path}", markup=False)

    def projects_table(self, projects: Iterable[ProjectDefinition]) -> Table:
        """Detailed table including repository and build command."""
        table = Table(title="updatectl projects")
        table.add_column("Name", style="bold")
        table.add_column("Type", style="cyan")
        table.add_column("Path")
        table.add_column("Repo", style="dim")
        table.add_column("Build command", style="dim")
        for project in projects:
            table.add_row(
                project.name,
                project.type,
                project.path,
                project.repo or "-",
                project.build_command or "-",
            )
        return table
