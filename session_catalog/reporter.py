from __future__ import annotations

from typing import Iterable, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from session_catalog.domain.models import LoadReport, Session


def print_sessions(sessions: Iterable[Session], console: Optional[Console] = None, complete: bool = True) -> None:
    """
    Render sessions as a rich table, ordered by date, time and title.
    """
    console = console or Console()
    rows = sorted(sessions, key=lambda s: (s.date, s.time, s.title, s.id))

    if not rows:
        console.print("[yellow]No sessions loaded.[/yellow]")
        return

    title = "GopherCon 2025 Sessions"
    if not complete:
        title = f"{title}\n[dim]Still loading; list may be incomplete[/dim]"

    table = Table(title=title, box=box.ROUNDED, caption=f"{len(rows)} session(s)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Date", style="green")
    table.add_column("Time", style="green")
    table.add_column("Location", style="magenta")
    table.add_column("Speakers", style="yellow")

    for session in rows:
        table.add_row(
            session.id,
            session.title or "[dim]untitled[/dim]",
            session.date,
            session.time,
            session.location,
            ", ".join(session.speakers),
        )

    console.print(table)


def print_load_report(report: LoadReport, console: Optional[Console] = None) -> None:
    """
    Render a one-row summary of a catalog load.

    Failed ids are listed beneath the table when there are any.
    """
    console = console or Console()

    table = Table(title="Catalog Load", box=box.ROUNDED)
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Requested", justify="right", style="magenta")
    table.add_column("Loaded", justify="right", style="bold green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")

    duration = report.get("duration_seconds")
    duration_str = f"{duration:.1f}" if duration is not None else "N/A"
    mem_bytes = report.get("peak_rss_bytes")
    mem_str = f"{mem_bytes / (1024 * 1024):.2f}" if mem_bytes else "N/A"
    failed = report.get("failed") or []

    table.add_row(
        report.get("source", "unknown"),
        str(report.get("requested", 0)),
        str(report.get("loaded", 0)),
        str(len(failed)),
        duration_str,
        mem_str,
    )
    console.print(table)

    if report.get("error"):
        console.print(f"[red]Load aborted:[/red] {report['error']}")
    if failed:
        console.print(f"[red]Failed sessions:[/red] {', '.join(failed)}")


__all__ = ["print_load_report", "print_sessions"]
