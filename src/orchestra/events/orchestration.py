"""Event factories for task, collaboration, negotiation and agent changes.

Event naming follows dot.notation.past_tense convention.
"""

from __future__ import annotations

from orchestra.core.models import (
    Agent,
    Collaboration,
    Negotiation,
    Task,
    TaskAssignment,
)
from orchestra.events.base import BaseEvent

# =============================================================================
# Tasks
# =============================================================================


def create_task_submitted_event(
    task: Task,
    *,
    require_collaboration: bool,
    preferred_agents: list[str],
    force_agent: str | None,
) -> BaseEvent:
    return BaseEvent(
        type="task.submission.received",
        aggregate_type="task",
        aggregate_id=task.id,
        data={
            "title": task.title,
            "task_type": task.type.value,
            "priority": task.priority.value,
            "require_collaboration": require_collaboration,
            "preferred_agents": preferred_agents,
            "force_agent": force_agent,
        },
    )


def create_task_assigned_event(assignment: TaskAssignment) -> BaseEvent:
    """Emitted when a task is bound to an agent."""
    return BaseEvent(
        type="task.assignment.created",
        aggregate_type="task",
        aggregate_id=assignment.task_id,
        data={
            "agent_id": assignment.agent_id,
            "estimated_duration_ms": assignment.estimated_duration_ms,
            "priority_rank": assignment.priority_rank,
        },
    )


def create_task_completed_event(task: Task, agent_id: str, duration_ms: int) -> BaseEvent:
    tokens = task.result.tokens if task.result else 0
    return BaseEvent(
        type="task.execution.completed",
        aggregate_type="task",
        aggregate_id=task.id,
        data={"agent_id": agent_id, "duration_ms": duration_ms, "tokens": tokens},
    )


def create_task_failed_event(task: Task, agent_id: str | None, error: str) -> BaseEvent:
    return BaseEvent(
        type="task.execution.failed",
        aggregate_type="task",
        aggregate_id=task.id,
        data={"agent_id": agent_id, "error": error},
    )


def create_task_cancelled_event(task: Task, previous_status: str) -> BaseEvent:
    return BaseEvent(
        type="task.lifecycle.cancelled",
        aggregate_type="task",
        aggregate_id=task.id,
        data={"previous_status": previous_status},
    )


# =============================================================================
# Collaboration and negotiation
# =============================================================================


def create_collaboration_initiated_event(collaboration: Collaboration) -> BaseEvent:
    """Emitted when participants are selected for a collaborative task."""
    return BaseEvent(
        type="collaboration.session.initiated",
        aggregate_type="collaboration",
        aggregate_id=collaboration.id,
        data={
            "task_id": collaboration.task_id,
            "participants": list(collaboration.participants),
            "collaboration_type": collaboration.type.value,
        },
    )


def create_collaboration_completed_event(collaboration: Collaboration) -> BaseEvent:
    return BaseEvent(
        type="collaboration.session.completed",
        aggregate_type="collaboration",
        aggregate_id=collaboration.id,
        data={"task_id": collaboration.task_id, "outcomes": dict(collaboration.outcomes)},
    )


def create_collaboration_failed_event(collaboration: Collaboration, reason: str) -> BaseEvent:
    return BaseEvent(
        type="collaboration.session.failed",
        aggregate_type="collaboration",
        aggregate_id=collaboration.id,
        data={"task_id": collaboration.task_id, "reason": reason},
    )


def create_negotiation_agreed_event(negotiation: Negotiation) -> BaseEvent:
    return BaseEvent(
        type="negotiation.resolution.agreed",
        aggregate_type="negotiation",
        aggregate_id=negotiation.id,
        data={
            "task_id": negotiation.task_id,
            "winner_agent_id": negotiation.winner_agent_id,
            "proposal_count": len(negotiation.proposals),
        },
    )


def create_negotiation_failed_event(negotiation: Negotiation, reason: str) -> BaseEvent:
    return BaseEvent(
        type="negotiation.resolution.failed",
        aggregate_type="negotiation",
        aggregate_id=negotiation.id,
        data={"task_id": negotiation.task_id, "reason": reason},
    )


# =============================================================================
# Agents
# =============================================================================


def create_agent_toggled_event(agent: Agent) -> BaseEvent:
    return BaseEvent(
        type="agent.activation.toggled",
        aggregate_type="agent",
        aggregate_id=agent.id,
        data={"is_active": agent.is_active, "status": agent.status.value},
    )


def create_agent_config_updated_event(agent: Agent, changed_keys: list[str]) -> BaseEvent:
    return BaseEvent(
        type="agent.config.updated",
        aggregate_type="agent",
        aggregate_id=agent.id,
        data={"changed_keys": changed_keys},
    )
