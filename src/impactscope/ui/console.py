"""Rich-powered console output for ImpactScope."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from impactscope.report.models import ImpactAnalysisResult

_RISK_COLORS = {"low": "green", "medium": "yellow", "high": "red"}


class Console:
    """Terminal output for ImpactScope using Rich."""

    def __init__(self, console: RichConsole | None = None) -> None:
        self.console = console or RichConsole()

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def json(self, text: str) -> None:
        self.console.print_json(text)

    def show_stats(self, stats: dict) -> None:
        """Display dependency graph statistics in a table."""
        table = Table(title="Dependency Graph Statistics", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Files", str(stats.get("files", 0)))
        table.add_row("Import Edges", str(stats.get("edges", 0)))
        table.add_row("Barrel Files", str(stats.get("barrels", 0)))
        table.add_row("Unparsed Files", str(stats.get("unparsed", 0)))

        languages = stats.get("languages", {})
        if languages:
            table.add_section()
            for lang, count in sorted(languages.items(), key=lambda x: (-x[1], x[0])):
                table.add_row(f"  {lang}", str(count))

        self.console.print(table)

    def show_files(self, title: str, files: list[str] | tuple[str, ...]) -> None:
        if not files:
            self.info(f"{title}: none")
            return
        self.console.print(f"\n[bold]{title}[/bold] ({len(files)})")
        for f in files:
            self.console.print(f"  [cyan]{f}[/cyan]")

    def show_result(self, result: ImpactAnalysisResult) -> None:
        """Display an impact analysis with its confidence breakdown."""
        report = result.report
        confidence = result.confidence
        color = _RISK_COLORS.get(result.risk_level, "white")

        self.console.print(
            Panel(
                f"[bold]File:[/bold] {result.file_path}\n"
                f"[bold]Confidence:[/bold] [{color}]{confidence.total}/100 "
                f"({confidence.status})[/{color}]\n"
                f"[bold]Risk:[/bold] [{color}]{result.risk_level}[/{color}]\n"
                f"[bold]Changed functions:[/bold] {', '.join(report.functions) or '-'}\n"
                f"[bold]Changed classes:[/bold] {', '.join(report.classes) or '-'}",
                title="[bold]Impact Analysis[/bold]",
                border_style=color,
            )
        )

        if not result.has_actual_changes and report.is_empty:
            self.info("No changes detected")
            return

        self.show_files("Downstream files", report.downstream_files)
        self.show_files("Related tests", report.tests)

        table = Table(title="Confidence Metrics", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Score", justify="right")
        table.add_column("Weight", justify="right", style="dim")
        table.add_column("Summary")
        for metric in confidence.metrics:
            table.add_row(metric.name, str(metric.score), f"{metric.weight:.2f}", metric.summary)
        self.console.print(table)

        suggestions = [s for m in confidence.metrics for s in m.suggestions]
        if suggestions:
            self.console.print("\n[bold]Suggestions:[/bold]")
            for s in suggestions:
                self.console.print(f"  [yellow]→[/yellow] {s}")
