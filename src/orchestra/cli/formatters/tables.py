"""Rich tables for agents, tasks and reports.

Example:
    table = agents_table(orchestrator.list_agents())
    print_table(table)
"""

from collections.abc import Iterable
from typing import Any

from rich.table import Table

from orchestra.cli.formatters import console
from orchestra.core.models import Agent, Task

_STATUS_STYLES = {
    "idle": "success",
    "completed": "success",
    "active": "success",
    "working": "warning",
    "pending": "warning",
    "in_progress": "warning",
    "error": "error",
    "failed": "error",
    "paused": "muted",
    "cancelled": "muted",
    "inactive": "muted",
}


def create_table(
    title: str | None = None,
    *,
    show_header: bool = True,
    show_lines: bool = False,
    border_style: str = "blue",
    header_style: str = "bold cyan",
    row_styles: list[str] | None = None,
) -> Table:
    """Create a Rich Table with consistent Orchestra styling.

    Args:
        title: Optional table title.
        show_header: Whether to show the header row.
        show_lines: Whether to show lines between rows.
        border_style: Style for table borders.
        header_style: Style for header row.
        row_styles: Alternating row styles (default: subtle alternation).

    Returns:
        Configured Rich Table instance.
    """
    if row_styles is None:
        row_styles = ["", "dim"]

    return Table(
        title=title,
        show_header=show_header,
        show_lines=show_lines,
        border_style=border_style,
        header_style=header_style,
        row_styles=row_styles,
    )


def create_key_value_table(
    data: dict[str, Any],
    title: str | None = None,
    *,
    key_style: str = "cyan",
    value_style: str = "",
) -> Table:
    """Create a two-column table for key-value data.

    Example:
        table = create_key_value_table({"Agents": 5, "Queue": 0}, "Stats")
        print_table(table)
    """
    table = create_table(title, show_header=False)
    table.add_column("Key", style=key_style, no_wrap=True)
    table.add_column("Value", style=value_style)

    for key, value in data.items():
        table.add_row(str(key), str(value))

    return table


def styled_status(status: str) -> str:
    """Wrap ``status`` in the theme style for its meaning, if it has one."""
    style = _STATUS_STYLES.get(status.lower())
    return f"[{style}]{status}[/]" if style else status


def percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def agents_table(agents: Iterable[Agent], title: str | None = "Agents") -> Table:
    table = create_table(title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Status", justify="center")
    table.add_column("Active", justify="center")
    table.add_column("Tasks", justify="right")
    table.add_column("Success", justify="right")

    for agent in agents:
        table.add_row(
            agent.id,
            agent.name,
            agent.role,
            styled_status(agent.status.value),
            styled_status("active" if agent.is_active else "inactive"),
            str(agent.performance.tasks_completed),
            percent(agent.performance.success_rate),
        )
    return table


def tasks_table(tasks: Iterable[Task], title: str | None = "Tasks") -> Table:
    table = create_table(title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("Status", justify="center")
    table.add_column("Time", justify="right")

    for task in tasks:
        elapsed = task.actual_time_ms if task.actual_time_ms is not None else task.estimated_time_ms
        table.add_row(
            task.id,
            task.title,
            task.type.value,
            task.priority.value,
            styled_status(task.status.value),
            f"{elapsed} ms" if elapsed is not None else "-",
        )
    return table


def print_table(table: Table) -> None:
    console.print(table)


__all__ = [
    "agents_table",
    "create_key_value_table",
    "create_table",
    "percent",
    "print_table",
    "styled_status",
    "tasks_table",
]
