"""Task commands for Orchestra.

``submit`` is registered as a top-level command; ``list``, ``resubmit``
and ``cancel`` live under the ``tasks`` group.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from orchestra.cli.formatters import console
from orchestra.cli.formatters.panels import print_error, print_info, print_success
from orchestra.cli.formatters.tables import create_key_value_table, print_table, tasks_table
from orchestra.cli.runtime import ConfigOption, open_orchestrator, run
from orchestra.core.models import Task, TaskAssignment, TaskPriority, TaskStatus, TaskType

app = typer.Typer(
    name="tasks",
    help="List, resubmit and cancel tasks.",
    no_args_is_help=True,
)

CollaborateOption = Annotated[
    bool, typer.Option("--collaborate", help="Run the task as a collaboration.")
]
PreferOption = Annotated[
    list[str] | None,
    typer.Option("--prefer", help="Preferred agent id (repeatable)."),
]
ForceOption = Annotated[
    str | None, typer.Option("--force", help="Assign to this agent unconditionally.")
]
WaitOption = Annotated[
    bool,
    typer.Option("--wait/--no-wait", help="Execute the task before returning."),
]


def _dispatch(
    task: Task | str,
    *,
    collaborate: bool,
    prefer: list[str] | None,
    force: str | None,
    wait: bool,
    config_file: Path | None,
) -> None:
    """Submit ``task`` (or the stored task with that id) and report the outcome."""

    async def _submit() -> tuple[TaskAssignment, Task]:
        async with open_orchestrator(config_file) as orchestrator:
            target = orchestrator.get_task(task) if isinstance(task, str) else task
            assignment = await orchestrator.submit_task(
                target,
                require_collaboration=collaborate,
                preferred_agents=prefer or (),
                force_agent=force,
            )
            print_info(
                f"Task {target.id} assigned to {assignment.agent_id} "
                f"(estimated {assignment.estimated_duration_ms} ms)"
            )
            if wait:
                with console.status("[highlight]Agents working...[/]"):
                    await orchestrator.tick_queue()
                    await orchestrator.tick_messages()
            return assignment, orchestrator.get_task(target.id)

    assignment, final = run(_submit())
    if final.status == TaskStatus.COMPLETED and final.result is not None:
        print_success(final.result.output or "(empty output)", title=final.title)
        meta = final.result.metadata
        print_table(
            create_key_value_table(
                {
                    "Agent": assignment.agent_id,
                    "Priority rank": assignment.priority_rank,
                    "Model": meta.get("model", "-"),
                    "Tokens": meta.get("tokens", "-"),
                    "Time": f"{final.actual_time_ms} ms",
                }
            )
        )
    elif final.status == TaskStatus.FAILED:
        error = final.result.error if final.result else None
        print_error(error or "Task failed", title=final.title)
        raise typer.Exit(1)
    else:
        print_info(f"Task {final.id} is {final.status.value}")


def submit(
    title: Annotated[str, typer.Argument(help="Short task title.")],
    task_type: Annotated[
        TaskType, typer.Option("--type", "-t", help="Task type.", case_sensitive=False)
    ] = TaskType.CODE,
    priority: Annotated[
        TaskPriority,
        typer.Option("--priority", "-p", help="Task priority.", case_sensitive=False),
    ] = TaskPriority.MEDIUM,
    description: Annotated[
        str, typer.Option("--description", "-d", help="What the task should achieve.")
    ] = "",
    collaborate: CollaborateOption = False,
    prefer: PreferOption = None,
    force: ForceOption = None,
    wait: WaitOption = True,
    config_file: ConfigOption = None,
) -> None:
    """Submit a task, assign it to an agent, and (by default) execute it."""
    task = Task(title=title, description=description or title, type=task_type, priority=priority)
    _dispatch(
        task,
        collaborate=collaborate,
        prefer=prefer,
        force=force,
        wait=wait,
        config_file=config_file,
    )


@app.command()
def resubmit(
    task_id: Annotated[str, typer.Argument(help="Task id.")],
    collaborate: CollaborateOption = False,
    prefer: PreferOption = None,
    force: ForceOption = None,
    wait: WaitOption = True,
    config_file: ConfigOption = None,
) -> None:
    """Assign a pending task again, such as one interrupted by a restart."""
    _dispatch(
        task_id,
        collaborate=collaborate,
        prefer=prefer,
        force=force,
        wait=wait,
        config_file=config_file,
    )


@app.command("list")
def list_tasks(
    status: Annotated[
        TaskStatus | None,
        typer.Option("--status", "-s", help="Only tasks in this status.", case_sensitive=False),
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """List known tasks."""

    async def _list() -> list[Task]:
        async with open_orchestrator(config_file) as orchestrator:
            return orchestrator.list_tasks(status)

    tasks = run(_list())
    if not tasks:
        print_info("No tasks found")
        return
    print_table(tasks_table(tasks))


@app.command()
def cancel(
    task_id: Annotated[str, typer.Argument(help="Task id.")],
    config_file: ConfigOption = None,
) -> None:
    """Cancel a pending or in-progress task."""

    async def _cancel() -> Task:
        async with open_orchestrator(config_file) as orchestrator:
            return await orchestrator.cancel_task(task_id)

    task = run(_cancel())
    print_success(f"Task {task.id} cancelled")


__all__ = ["app", "submit"]
