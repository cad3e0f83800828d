"""Rich-powered console output for apigate."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.table import Table

from apigate.checks.models import CheckStatus, Verdict

_STATUS_STYLE = {
    CheckStatus.PASSED: ("green", "passed"),
    CheckStatus.BREAKING: ("red", "breaking"),
    CheckStatus.ERROR: ("yellow", "error"),
}


class Console:
    """Terminal output for apigate using Rich."""

    def __init__(self, console: RichConsole | None = None) -> None:
        self.console = console or RichConsole()

    def banner(self, base_ref: str) -> None:
        self.console.print("[bold]🔍 DataFusion Breaking Changes Detection[/bold]")
        self.console.print(f"Comparing against: [cyan]{base_ref}[/cyan]")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_verdict(self, verdict: Verdict) -> None:
        """Per-check table followed by the overall verdict."""
        table = Table(title="Breaking Change Checks", border_style="cyan")
        table.add_column("Check", style="bold")
        table.add_column("Status", justify="center")
        table.add_column("Summary")

        for outcome in verdict.outcomes:
            color, label = _STATUS_STYLE[outcome.status]
            table.add_row(outcome.display_name, f"[{color}]{label}[/{color}]", outcome.summary)

        self.console.print(table)
        if verdict.breaking:
            self.error("Breaking changes detected!")
        elif verdict.errored:
            self.warning("Some checks could not run; no breaking changes found by the rest")
        else:
            self.success("No breaking changes detected")
