"""Orchestration events."""

from orchestra.events.base import BaseEvent
from orchestra.events.orchestration import (
    create_agent_config_updated_event,
    create_agent_toggled_event,
    create_collaboration_completed_event,
    create_collaboration_failed_event,
    create_collaboration_initiated_event,
    create_negotiation_agreed_event,
    create_negotiation_failed_event,
    create_task_assigned_event,
    create_task_cancelled_event,
    create_task_completed_event,
    create_task_failed_event,
    create_task_submitted_event,
)

__all__ = [
    "BaseEvent",
    "create_agent_config_updated_event",
    "create_agent_toggled_event",
    "create_collaboration_completed_event",
    "create_collaboration_failed_event",
    "create_collaboration_initiated_event",
    "create_negotiation_agreed_event",
    "create_negotiation_failed_event",
    "create_task_assigned_event",
    "create_task_cancelled_event",
    "create_task_completed_event",
    "create_task_failed_event",
    "create_task_submitted_event",
]
