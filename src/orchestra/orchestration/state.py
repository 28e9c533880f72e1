"""Orchestrator state shared by the scheduler, coordinator, bus and sweep.

One ``OrchestratorState`` is built per orchestrator instance and handed to
each component. All mutation happens on the orchestrator's event loop, so
the maps carry no locks.

Persistence writes are best-effort: a failed write is logged and the
in-memory state stays authoritative.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any

from orchestra.agents.registry import AgentRegistry
from orchestra.agents.specialization import SpecializationStore
from orchestra.config.models import OrchestratorConfig
from orchestra.core.errors import PersistenceError
from orchestra.core.models import (
    Agent,
    AgentMessage,
    AgentSpecialization,
    Collaboration,
    Negotiation,
    OrchestratorAnalytics,
    Task,
    TaskAssignment,
)
from orchestra.events.base import BaseEvent
from orchestra.observability.logging import get_logger
from orchestra.persistence.base import Storage

log = get_logger(__name__)

SNAPSHOT_COLLABORATIONS = "collaborations"
SNAPSHOT_NEGOTIATIONS = "negotiations"
SNAPSHOT_SPECIALIZATIONS = "specializations"
SNAPSHOT_ANALYTICS = "analytics"


@dataclass
class OrchestratorState:
    """Every aggregate the orchestrator owns.

    Attributes:
        config: Current orchestrator behaviour; replaced on runtime updates.
        registry: Agents.
        specializations: Learned specialization records.
        storage: Persistence collaborator.
        tasks: Every task seen, by id.
        queue: Task ids awaiting execution, FIFO.
        assignments: Live assignments, by task id.
        collaborations: All collaborations, by id.
        negotiations: All negotiations, by id.
        analytics: Cumulative counters.
    """

    config: OrchestratorConfig
    registry: AgentRegistry
    storage: Storage
    specializations: SpecializationStore = field(default_factory=SpecializationStore)
    tasks: dict[str, Task] = field(default_factory=dict)
    queue: deque[str] = field(default_factory=deque)
    assignments: dict[str, TaskAssignment] = field(default_factory=dict)
    collaborations: dict[str, Collaboration] = field(default_factory=dict)
    negotiations: dict[str, Negotiation] = field(default_factory=dict)
    analytics: OrchestratorAnalytics = field(default_factory=OrchestratorAnalytics)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def active_collaboration_for(self, task_id: str) -> Collaboration | None:
        for collaboration in self.collaborations.values():
            if collaboration.task_id == task_id and collaboration.is_active:
                return collaboration
        return None

    def collaborations_for(self, agent_id: str) -> list[Collaboration]:
        return [c for c in self.collaborations.values() if agent_id in c.participants]

    def open_negotiation_for(self, task_id: str) -> Negotiation | None:
        for negotiation in self.negotiations.values():
            if negotiation.task_id == task_id and negotiation.is_open:
                return negotiation
        return None

    def release_agents_of(self, task_id: str) -> list[Agent]:
        """Return agents working on ``task_id`` to idle and drop its assignment."""
        released = []
        for agent in self.registry.list_agents():
            if agent.current_task_id == task_id:
                agent.release()
                released.append(agent)
        self.assignments.pop(task_id, None)
        return released

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def save_agent(self, agent: Agent) -> None:
        await self._safe("save_agent", self.storage.save_agent(agent))

    async def save_task(self, task: Task) -> None:
        await self._safe("save_task", self.storage.save_task(task))

    async def record(self, event: BaseEvent) -> None:
        """Append an event to storage."""
        await self._safe("append_event", self.storage.append_event(event))

    async def save_snapshots(self) -> None:
        """Persist collaborations, negotiations, specializations and analytics."""
        snapshots: dict[str, Any] = {
            SNAPSHOT_COLLABORATIONS: [
                c.model_dump(mode="json") for c in self.collaborations.values()
            ],
            SNAPSHOT_NEGOTIATIONS: [n.model_dump(mode="json") for n in self.negotiations.values()],
            SNAPSHOT_SPECIALIZATIONS: self.specializations.to_snapshot(),
            SNAPSHOT_ANALYTICS: self.analytics.model_dump(mode="json"),
        }
        for key, payload in snapshots.items():
            await self._safe("save_snapshot", self.storage.save_snapshot(key, payload))

    async def load_snapshots(self) -> None:
        """Restore snapshot aggregates saved by a previous run."""
        collaborations = await self.storage.load_snapshot(SNAPSHOT_COLLABORATIONS) or []
        self.collaborations = {
            c.id: c for c in (Collaboration.model_validate(item) for item in collaborations)
        }
        negotiations = await self.storage.load_snapshot(SNAPSHOT_NEGOTIATIONS) or []
        self.negotiations = {
            n.id: n for n in (Negotiation.model_validate(item) for item in negotiations)
        }
        # Loaded in place: the executor holds a reference to this store.
        for item in await self.storage.load_snapshot(SNAPSHOT_SPECIALIZATIONS) or []:
            self.specializations.put(AgentSpecialization.model_validate(item))
        analytics = await self.storage.load_snapshot(SNAPSHOT_ANALYTICS)
        if analytics:
            self.analytics = OrchestratorAnalytics.model_validate(analytics)

    async def _safe(self, operation: str, coro: Awaitable[None]) -> None:
        try:
            await coro
        except PersistenceError as e:
            log.warning(
                "orchestration.state.persist_failed",
                operation=operation,
                error=e.message,
            )


@dataclass(frozen=True, slots=True)
class OrchestrationStats:
    """Headline numbers for the orchestrator."""

    total_agents: int
    active_agents: int
    tasks_in_queue: int
    active_assignments: int
    total_tasks_completed: int
    average_success_rate: float


@dataclass(frozen=True, slots=True)
class AgentStatusReport:
    """One agent with its current task, collaborations and recent messages."""

    agent: Agent
    current_task: Task | None
    collaboration_ids: list[str]
    recent_messages: list[AgentMessage]


@dataclass(frozen=True, slots=True)
class AnalyticsReport:
    """Cumulative counters plus derived rates."""

    total_tasks_processed: int
    total_tasks_failed: int
    average_task_time_ms: float
    collaboration_success_rate: float
    negotiation_success_rate: float
    agent_utilization: float
    inter_agent_messages: int
    learning_events: int
