"""Stats command for Orchestra."""

from __future__ import annotations

from orchestra.cli.formatters.tables import create_key_value_table, percent, print_table
from orchestra.cli.runtime import ConfigOption, open_orchestrator, run
from orchestra.orchestration.state import AnalyticsReport, OrchestrationStats


def stats(config_file: ConfigOption = None) -> None:
    """Show orchestration statistics and analytics."""

    async def _stats() -> tuple[OrchestrationStats, AnalyticsReport]:
        async with open_orchestrator(config_file) as orchestrator:
            return orchestrator.get_orchestration_stats(), orchestrator.get_orchestrator_analytics()

    current, analytics = run(_stats())
    print_table(
        create_key_value_table(
            {
                "Total agents": current.total_agents,
                "Active agents": current.active_agents,
                "Tasks in queue": current.tasks_in_queue,
                "Active assignments": current.active_assignments,
                "Tasks completed": current.total_tasks_completed,
                "Average success rate": percent(current.average_success_rate),
            },
            "Orchestration",
        )
    )
    print_table(
        create_key_value_table(
            {
                "Tasks processed": analytics.total_tasks_processed,
                "Tasks failed": analytics.total_tasks_failed,
                "Average task time": f"{analytics.average_task_time_ms:.0f} ms",
                "Collaboration success": percent(analytics.collaboration_success_rate),
                "Negotiation success": percent(analytics.negotiation_success_rate),
                "Agent utilization": percent(analytics.agent_utilization),
                "Inter-agent messages": analytics.inter_agent_messages,
                "Learning events": analytics.learning_events,
            },
            "Analytics",
        )
    )

__all__ = ["stats"]
