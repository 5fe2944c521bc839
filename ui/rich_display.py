from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from models import ConsistencyIssue, ContextStats, QualityReport, SeparatedContext


class RichDisplayManager:
    """Renders assembled prompts and diagnostics to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show_context(self, context: str, title: str = "Assembled context") -> None:
        self.console.print(Panel(Text(context), title=title, border_style="blue"))

    def show_separated(self, separated: SeparatedContext) -> None:
        self.show_context(separated.system_prompt, title="System prompt")
        self.show_context(separated.user_context, title="User context")

    def show_quality(self, report: QualityReport) -> None:
        table = Table(title="Context quality", show_header=True)
        table.add_column("Dimension")
        table.add_column("Score", justify="right")
        table.add_row("Characters", str(report.character_info_quality))
        table.add_row("World building", str(report.world_building_quality))
        table.add_row("Narrative coherence", str(report.narrative_coherence_quality))
        table.add_row(Text("Overall", style="bold"), Text(str(report.overall_quality), style="bold"))
        table.caption = f"{report.total_tokens:,} estimated tokens"
        self.console.print(table)
        for suggestion in report.suggestions:
            self.console.print(Text(f"- {suggestion}"))

    def show_issues(self, issues: Sequence[ConsistencyIssue]) -> None:
        if not issues:
            self.console.print(Text("No consistency issues found.", style="green"))
            return
        table = Table(title="Consistency issues")
        table.add_column("Type")
        table.add_column("Severity")
        table.add_column("Description")
        table.add_column("Suggestion")
        for issue in issues:
            table.add_row(issue.issue_type, issue.severity, issue.description, issue.suggestion)
        self.console.print(table)

    def show_stats(self, stats: ContextStats) -> None:
        table = Table(title="Project statistics", show_header=False)
        table.add_row("Chapters", str(stats.chapter_count))
        table.add_row("Characters", str(stats.character_count))
        table.add_row("Text length", f"{stats.total_characters:,}")
        table.add_row("Estimated tokens", f"{stats.estimated_tokens:,}")
        self.console.print(table)

    def show_candidates(self, names: Sequence[str]) -> None:
        if not names:
            self.console.print(Text("No new character names detected."))
            return
        self.console.print(Text("Possible new characters: " + ", ".join(names)))

    def show_error(self, message: str) -> None:
        self.console.print(Text(f"Error: {message}", style="red"))
