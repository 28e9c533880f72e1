"""Agents command group for Orchestra.

Inspect, activate and configure the agents in the registry.
"""

from __future__ import annotations

from typing import Annotated, Any

import typer

from orchestra.cli.formatters import console
from orchestra.cli.formatters.panels import print_success, print_warning
from orchestra.cli.formatters.tables import (
    agents_table,
    create_key_value_table,
    percent,
    print_table,
    styled_status,
)
from orchestra.cli.runtime import ConfigOption, open_orchestrator, run
from orchestra.core.models import Agent
from orchestra.orchestration.state import AgentStatusReport

app = typer.Typer(
    name="agents",
    help="Inspect and configure agents.",
    no_args_is_help=True,
)

AgentId = Annotated[str, typer.Argument(help="Agent id (e.g. 'coder').")]


@app.command("list")
def list_agents(config_file: ConfigOption = None) -> None:
    """List every registered agent."""

    async def _list() -> list[Agent]:
        async with open_orchestrator(config_file) as orchestrator:
            return orchestrator.list_agents()

    print_table(agents_table(run(_list())))


@app.command()
def show(agent_id: AgentId, config_file: ConfigOption = None) -> None:
    """Show an agent's configuration, performance and current work."""

    async def _show() -> AgentStatusReport:
        async with open_orchestrator(config_file) as orchestrator:
            return orchestrator.get_agent_status(agent_id)

    report = run(_show())
    agent = report.agent
    data: dict[str, Any] = {
        "Name": agent.name,
        "Role": agent.role,
        "Status": styled_status(agent.status.value),
        "Active": "yes" if agent.is_active else "no",
        "Capabilities": ", ".join(agent.capabilities) or "-",
        "Provider": agent.config.primary_provider,
        "Fallbacks": ", ".join(agent.config.fallback_providers) or "-",
        "Temperature": agent.config.temperature,
        "Max tokens": agent.config.max_tokens,
        "Tasks completed": agent.performance.tasks_completed,
        "Success rate": percent(agent.performance.success_rate),
        "Average time": f"{agent.performance.average_time_ms:.0f} ms",
        "Quality": f"{agent.performance.quality_score:.2f}",
        "Current task": report.current_task.title if report.current_task else "-",
        "Collaborations": len(report.collaboration_ids),
    }
    print_table(create_key_value_table(data, agent.id))
    if agent.config.system_prompt:
        console.print(f"[muted]{agent.config.system_prompt.splitlines()[0]}[/]")


@app.command()
def toggle(
    agent_id: AgentId,
    active: Annotated[
        bool | None,
        typer.Option("--on/--off", help="Activate or deactivate (default: flip)."),
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """Activate or deactivate an agent."""

    async def _toggle() -> Agent:
        async with open_orchestrator(config_file) as orchestrator:
            target = active
            if target is None:
                target = not orchestrator.get_agent(agent_id).is_active
            return await orchestrator.toggle_agent(agent_id, target)

    agent = run(_toggle())
    state = "activated" if agent.is_active else "deactivated"
    print_success(f"Agent {agent.id} {state}")


@app.command()
def configure(
    agent_id: AgentId,
    temperature: Annotated[
        float | None, typer.Option("--temperature", help="Sampling temperature.")
    ] = None,
    max_tokens: Annotated[
        int | None, typer.Option("--max-tokens", help="Completion token limit.")
    ] = None,
    provider: Annotated[
        str | None, typer.Option("--provider", help="Primary provider reference.")
    ] = None,
    fallback: Annotated[
        list[str] | None,
        typer.Option("--fallback", help="Fallback provider reference (repeatable)."),
    ] = None,
    system_prompt: Annotated[
        str | None, typer.Option("--system-prompt", help="Replace the system prompt.")
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """Update fields of an agent's configuration; others are kept."""
    partial: dict[str, Any] = {
        key: value
        for key, value in {
            "temperature": temperature,
            "max_tokens": max_tokens,
            "primary_provider": provider,
            "fallback_providers": fallback,
            "system_prompt": system_prompt,
        }.items()
        if value is not None
    }
    if not partial:
        print_warning("Nothing to update. Pass at least one option.")
        raise typer.Exit(1)

    async def _configure() -> Agent:
        async with open_orchestrator(config_file) as orchestrator:
            return await orchestrator.update_agent_config(agent_id, partial)

    agent = run(_configure())
    print_success(f"Updated {', '.join(sorted(partial))} for agent {agent.id}")


__all__ = ["app"]
