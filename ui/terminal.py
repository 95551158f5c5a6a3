"""
Terminal report using Rich
Displays the outcome of a validation run
"""
from typing import Optional

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.report import ValidationReport
from core.transforms import TransformReport
from core.violations import Category, CheckResult
from utils.logger import console as default_console

CATEGORY_STYLES = {
    Category.SCHEMA: "yellow",
    Category.REFERENTIAL: "magenta",
    Category.REMOTE: "cyan",
    Category.RISK: "bold red",
}

# Rows printed per failing check before the table is cut short
MAX_ROWS_PER_CHECK = 50


class ReportRenderer:
    """Rich-based renderer for validation and transform reports"""

    def __init__(self, console: Optional[Console] = None, max_rows: int = MAX_ROWS_PER_CHECK):
        self.console = console or default_console
        self.max_rows = max_rows

    def _create_header(self, report: ValidationReport) -> Panel:
        header_text = Text()
        header_text.append("REGISTRY VALIDATION", style="bold cyan")
        header_text.append("\n")

        status = "PASSED" if report.ok else "FAILED"
        status_style = "bold green" if report.ok else "bold red"

        header_text.append("Status: ", style="dim")
        header_text.append(status, style=status_style)
        header_text.append(" | ", style="dim")
        header_text.append("Checks: ", style="dim")
        header_text.append(f"{len(report.results)}", style="white")
        header_text.append(" | ", style="dim")
        header_text.append("Violations: ", style="dim")
        header_text.append(f"{len(report.violations)}", style="white")
        header_text.append(" | ", style="dim")
        header_text.append("Duration: ", style="dim")
        header_text.append(f"{report.duration:.1f}s", style="white")

        return Panel(
            Align.center(header_text),
            border_style="green" if report.ok else "red",
            padding=(0, 2)
        )

    def _create_category_table(self, report: ValidationReport) -> Table:
        table = Table(
            title="VIOLATIONS BY CATEGORY",
            show_header=True,
            header_style="bold magenta",
            border_style="dim"
        )
        table.add_column("Category", width=14)
        table.add_column("Count", justify="right", width=8)

        for category, count in report.counts_by_category.items():
            style = CATEGORY_STYLES[category] if count else "dim"
            table.add_row(Text(category.value, style=style), Text(str(count), style=style))
        return table

    def _status_text(self, result: CheckResult) -> Text:
        if result.skipped:
            return Text("SKIPPED", style="dim")
        if result.ok:
            return Text("OK", style="green")
        return Text("FAIL", style="bold red")

    def _create_checks_table(self, report: ValidationReport) -> Table:
        table = Table(
            title="CHECKS",
            show_header=True,
            header_style="bold magenta",
            border_style="dim"
        )
        table.add_column("Registry", style="cyan")
        table.add_column("Check")
        table.add_column("Category", width=12)
        table.add_column("Status", width=8)
        table.add_column("Violations", justify="right", width=10)
        table.add_column("Note", style="dim")

        for result in report.results:
            count = len(result.violations)
            table.add_row(
                result.registry,
                result.check,
                Text(result.category.value, style=CATEGORY_STYLES[result.category]),
                self._status_text(result),
                str(count) if count else "",
                Text(result.skipped or ""),
            )
        return table

    def _create_violations_table(self, result: CheckResult) -> Table:
        table = Table(
            title=f"{result.key} ({len(result.violations)})",
            title_style=CATEGORY_STYLES[result.category],
            show_header=True,
            header_style="bold",
            border_style="dim"
        )
        table.add_column("Where", style="cyan")
        table.add_column("Problem")
        table.add_column("Expected", style="green")
        table.add_column("Actual", style="red")

        for violation in result.violations[:self.max_rows]:
            table.add_row(
                Text(violation.location),
                Text(violation.message),
                Text("" if violation.expected is None else repr(violation.expected)),
                Text("" if violation.actual is None else repr(violation.actual)),
            )
        hidden = len(result.violations) - self.max_rows
        if hidden > 0:
            table.add_row("", Text(f"... {hidden} more", style="dim italic"), "", "")
        return table

    def render(self, report: ValidationReport, verbose: bool = False):
        """
        Print the header, category counts and per-check detail. Passing
        checks are listed only when verbose.
        """
        self.console.print(self._create_header(report))
        self.console.print(self._create_category_table(report))

        if verbose:
            self.console.print(self._create_checks_table(report))
        elif report.skipped:
            self.console.print(
                f"[dim]{len(report.skipped)} checks skipped: "
                f"{', '.join(r.key for r in report.skipped)}[/dim]"
            )

        for result in report.failed:
            self.console.print(self._create_violations_table(result))

    def render_transform(self, report: TransformReport):
        style = "yellow" if report.errors else "green"
        self.console.print(f"[{style}]{report.summary()}[/{style}]")

        if report.changes:
            table = Table(show_header=True, header_style="bold", border_style="dim")
            table.add_column("#", style="dim", justify="right")
            table.add_column("Field", style="cyan")
            table.add_column("Before", style="red")
            table.add_column("After", style="green")
            for change in report.changes[:self.max_rows]:
                table.add_row(str(change.index), change.field, Text(repr(change.before)), Text(repr(change.after)))
            self.console.print(table)

        for error in report.errors:
            self.console.print(f"  [yellow]{escape(error)}[/yellow]")


# Global instance
renderer = ReportRenderer()
