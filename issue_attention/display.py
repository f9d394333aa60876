"""Rich terminal output for status info and attention reports."""

from datetime import datetime
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .attention import AttentionReport
from .types import IssueStatusInfo

console = Console()

STATUS_COLORS = {
    "no_status": "dim",
    "todo": "white",
    "in_progress": "cyan",
    "done": "green",
    "pending": "yellow",
    "canceled": "red",
}


def status_text(status: Optional[str]) -> Text:
    if not status:
        return Text("-", style="dim")
    return Text(status, style=STATUS_COLORS.get(status, "white"))


def _when(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC") if value else "-"


def _days(value: Optional[int]) -> str:
    return "-" if value is None else str(value)


def display_status_info(issue_id: str, info: IssueStatusInfo):
    """Display the reconciled status of one issue."""
    title = Text()
    title.append(f"{issue_id}: ", style="bold")
    title.append_text(status_text(info.display_status))
    if info.locked:
        title.append("  [LOCKED BY PROJECT]", style="bold yellow")

    console.print()
    console.print(Panel(title, box=box.DOUBLE))

    table = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
    table.add_column("Key", style="bold", width=22)
    table.add_column("Value")

    table.add_row("Source", info.source)
    table.add_row("Timeline", info.timeline_source)
    table.add_row("Project status", status_text(info.todo_status))
    table.add_row("Project status at", _when(info.todo_status_at))
    table.add_row("Activity status", status_text(info.activity_status))
    table.add_row("Activity status at", _when(info.activity_status_at))
    table.add_row("", "")
    table.add_row("Started", _when(info.started_at))
    table.add_row("Completed", _when(info.completed_at))
    console.print(table)

    if info.project_entries or info.activity_events:
        history = Table(box=box.ROUNDED, title="Status history")
        history.add_column("When", width=22)
        history.add_column("Source", width=14)
        history.add_column("Status")
        rows = [(e.occurred_at, "todo_project", e.status) for e in info.project_entries]
        rows += [(e.occurred_at, "activity", e.status) for e in info.activity_events]
        for occurred_at, source, status in sorted(rows, key=lambda r: r[0]):
            history.add_row(_when(occurred_at), source, status)
        console.print(history)


def display_business_time(start: str, end: str, hours: Optional[int], days: Optional[int]):
    if hours is None:
        console.print(f"[red]Cannot parse timestamps:[/red] {start} / {end}")
        return
    console.print(f"{start} -> {end}: [bold]{hours}[/bold] business hours ([bold]{days}[/bold] business days)")


def display_threshold_check(business_days: int, elapsed: bool):
    if elapsed:
        console.print(f"[yellow]At least {business_days} business days elapsed[/yellow]")
    else:
        console.print(f"[green]Fewer than {business_days} business days elapsed[/green]")


def display_attention_table(reports: list[AttentionReport], title: str = "Attention"):
    """Display a summary table of classified items."""
    table = Table(title=title, box=box.ROUNDED, show_lines=False)
    table.add_column("#", width=4, justify="right")
    table.add_column("Item", style="cyan", max_width=40)
    table.add_column("Kind", width=12)
    table.add_column("Status", width=12)
    table.add_column("Age", justify="right", width=5)
    table.add_column("Idle", justify="right", width=5)
    table.add_column("In prog", justify="right", width=7)
    table.add_column("Review", justify="right", width=6)
    table.add_column("Mention", justify="right", width=7)
    table.add_column("Attention")

    for i, report in enumerate(reports, 1):
        item = report.item
        label = f"#{item.number} {item.title[:30]}" if item.number else item.id
        status = status_text(report.status.display_status) if report.status else Text("-", style="dim")
        kinds = report.flags.kinds()
        attention = Text(", ".join(kinds), style="bold red") if kinds else Text("none", style="green")

        table.add_row(
            str(i),
            label,
            item.kind,
            status,
            _days(report.ages.age_days),
            _days(report.ages.inactivity_days),
            _days(report.ages.in_progress_days),
            _days(report.ages.review_wait_days),
            _days(report.ages.mention_wait_days),
            attention,
        )

    console.print()
    console.print(table)

    flagged = sum(1 for r in reports if r.flags.requires_attention)
    console.print(
        f"\n  Total: {len(reports)} items, "
        f"[red]{flagged} need attention[/red], "
        f"[green]{len(reports) - flagged} fine[/green]"
    )
