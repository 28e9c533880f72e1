"""Task orchestration and multi-agent collaboration.

Key Components:
    - Orchestrator: Public facade owning state and background loops
    - TaskScheduler: Submission, agent scoring, assignment and queue execution
    - CollaborationCoordinator: Sequential, parallel, hierarchical and consensus strategies
    - NegotiationResolver: Proposal collection and winner selection
    - MessageBus: FIFO inter-agent messaging with per-type handlers
    - MaintenanceSweep: Timeouts, specialization learning and snapshot persistence

Usage:
    from orchestra.orchestration import Orchestrator

    async with Orchestrator(LiteLLMAdapter()) as orchestrator:
        await orchestrator.submit_task(task, require_collaboration=True)
        await orchestrator.tick_queue()
"""

from orchestra.orchestration.bus import MessageBus
from orchestra.orchestration.collaboration import CollaborationCoordinator
from orchestra.orchestration.maintenance import MaintenanceReport, MaintenanceSweep
from orchestra.orchestration.negotiation import NegotiationResolver, select_winner
from orchestra.orchestration.orchestrator import Orchestrator, create_orchestrator
from orchestra.orchestration.scheduler import TaskScheduler
from orchestra.orchestration.scoring import (
    assess_complexity,
    collaboration_score,
    determine_collaboration_type,
    estimate_duration_ms,
    score_agent,
)
from orchestra.orchestration.state import (
    AgentStatusReport,
    AnalyticsReport,
    OrchestrationStats,
    OrchestratorState,
)
from orchestra.orchestration.subtasks import parse_subtasks, route_subtask

__all__ = [
    "AgentStatusReport",
    "AnalyticsReport",
    "CollaborationCoordinator",
    "MaintenanceReport",
    "MaintenanceSweep",
    "MessageBus",
    "NegotiationResolver",
    "OrchestrationStats",
    "Orchestrator",
    "OrchestratorState",
    "TaskScheduler",
    "assess_complexity",
    "collaboration_score",
    "create_orchestrator",
    "determine_collaboration_type",
    "estimate_duration_ms",
    "parse_subtasks",
    "route_subtask",
    "score_agent",
    "select_winner",
]
