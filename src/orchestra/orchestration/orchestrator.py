"""Orchestrator: the public entry point of the orchestration engine.

The orchestrator owns one ``OrchestratorState`` and the components that
act on it. Three background loops (queue drain, message drain,
maintenance) run between ``start()`` and ``stop()``; each loop has a
``tick_*`` counterpart that runs one iteration on demand.

Usage:
    async with Orchestrator(LiteLLMAdapter()) as orchestrator:
        assignment = await orchestrator.submit_task(
            Task(title="Add login", type=TaskType.CODE, description="..."),
        )
        await orchestrator.tick_queue()
        task = orchestrator.get_task(assignment.task_id)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Self

from pydantic import ValidationError as PydanticValidationError

from orchestra.agents.context import ContextAssembler, KnowledgeGraph, SearchProvider
from orchestra.agents.executor import AgentExecutor
from orchestra.agents.performance import PerformanceTracker
from orchestra.agents.registry import AgentRegistry
from orchestra.config.models import OrchestraConfig, OrchestratorConfig
from orchestra.core.errors import (
    CollaborationNotFoundError,
    TaskNotFoundError,
    ValidationError,
)
from orchestra.core.models import (
    Agent,
    AgentStatus,
    Collaboration,
    Negotiation,
    Task,
    TaskAssignment,
    TaskStatus,
)
from orchestra.events.orchestration import (
    create_agent_config_updated_event,
    create_agent_toggled_event,
    create_task_cancelled_event,
)
from orchestra.observability.logging import get_logger
from orchestra.orchestration.bus import MessageBus
from orchestra.orchestration.collaboration import CollaborationCoordinator
from orchestra.orchestration.maintenance import MaintenanceReport, MaintenanceSweep
from orchestra.orchestration.negotiation import NegotiationResolver
from orchestra.orchestration.scheduler import TaskScheduler
from orchestra.orchestration.state import (
    AgentStatusReport,
    AnalyticsReport,
    OrchestrationStats,
    OrchestratorState,
)
from orchestra.persistence.base import InMemoryStorage, Storage
from orchestra.persistence.sqlite import SQLiteStorage
from orchestra.providers.base import LLMAdapter
from orchestra.providers.litellm_adapter import LiteLLMAdapter

log = get_logger(__name__)

INTERRUPTED_REASON = "Interrupted by restart"


class Orchestrator:
    """Agent registry, task scheduling, collaboration and messaging in one place.

    Args:
        llm: Language-model adapter every agent call goes through.
        config: Full configuration; defaults when omitted.
        storage: Persistence collaborator; in-memory when omitted.
        search: Optional search supplier for task context.
        knowledge_graph: Optional related-concept supplier for task context.
    """

    def __init__(
        self,
        llm: LLMAdapter,
        *,
        config: OrchestraConfig | None = None,
        storage: Storage | None = None,
        search: SearchProvider | None = None,
        knowledge_graph: KnowledgeGraph | None = None,
    ) -> None:
        self._config = config or OrchestraConfig()
        self._state = OrchestratorState(
            config=self._config.orchestrator,
            registry=AgentRegistry(),
            storage=storage or InMemoryStorage(),
        )
        self._tracker = PerformanceTracker(enabled=self._config.orchestrator.performance_tracking)
        self._executor = AgentExecutor(
            llm,
            ContextAssembler(self._state.storage, search, knowledge_graph),
            self._config.provider,
            self._state.specializations,
        )
        self._bus = MessageBus(self._state)
        self._resolver = NegotiationResolver(self._state, self._executor)
        self._coordinator = CollaborationCoordinator(
            self._state, self._executor, self._bus, self._resolver
        )
        self._scheduler = TaskScheduler(
            self._state,
            self._executor,
            self._coordinator,
            self._bus,
            self._tracker,
            self._config.ticks,
        )
        self._sweep = MaintenanceSweep(self._state, self._coordinator, self._resolver)

        self._initialized = False
        self._running = False
        self._loops: list[asyncio.Task[None]] = []
        self._kicks: set[asyncio.Task[int]] = set()

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def bus(self) -> MessageBus:
        return self._bus

    @property
    def is_running(self) -> bool:
        return self._running

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """Load persisted state, bootstrapping the default agents on first run.

        Raises:
            PersistenceError: If storage cannot be opened or read.
        """
        if self._initialized:
            return
        storage = self._state.storage
        await storage.initialize()

        agents = await storage.get_agents()
        if agents:
            for agent in agents:
                if agent.status == AgentStatus.WORKING:
                    # Left working by a previous process; nothing is running now.
                    agent.release()
                self._state.registry.register(agent)
        else:
            for agent in self._state.registry.bootstrap_defaults():
                await self._state.save_agent(agent)

        for task in await storage.get_tasks():
            self._state.tasks[task.id] = task
        await self._state.load_snapshots()
        await self._requeue_interrupted()

        self._initialized = True
        log.info(
            "orchestrator.initialized",
            agents=len(self._state.registry),
            tasks=len(self._state.tasks),
            collaborations=len(self._state.collaborations),
        )

    async def _requeue_interrupted(self) -> None:
        """Return tasks a previous process left in_progress to pending.

        Queue and assignments are not persisted, so such a task has no
        agent working on it. Its open collaboration and negotiation are
        failed so that it can be resubmitted either way.
        """
        for collaboration in self._state.collaborations.values():
            if collaboration.is_active:
                await self._coordinator.fail(collaboration, INTERRUPTED_REASON)
        for negotiation in self._state.negotiations.values():
            if negotiation.is_open:
                await self._resolver.fail(negotiation, INTERRUPTED_REASON)
        for task in self._state.tasks.values():
            if task.status != TaskStatus.IN_PROGRESS:
                continue
            task.status = TaskStatus.PENDING
            task.mark_updated()
            log.warning("orchestrator.task.requeued", task_id=task.id)
            await self._state.save_task(task)

    async def start(self) -> None:
        """Initialize if needed and launch the background loops."""
        await self.initialize()
        if self._running:
            return
        self._running = True
        ticks = self._config.ticks
        self._loops = [
            asyncio.create_task(self._loop("queue", ticks.queue_interval, self.tick_queue)),
            asyncio.create_task(self._loop("messages", ticks.message_interval, self.tick_messages)),
            asyncio.create_task(
                self._loop("maintenance", ticks.maintenance_interval, self.tick_maintenance)
            ),
        ]
        log.info("orchestrator.started")

    async def stop(self) -> None:
        """Cancel the background loops and wait for in-flight queue drains."""
        if not self._running:
            return
        self._running = False
        for loop in self._loops:
            loop.cancel()
        await asyncio.gather(*self._loops, return_exceptions=True)
        self._loops = []
        if self._kicks:
            await asyncio.gather(*self._kicks, return_exceptions=True)
        log.info("orchestrator.stopped")

    async def close(self) -> None:
        """Stop, persist snapshot aggregates and release storage."""
        await self.stop()
        if self._initialized:
            await self._state.save_snapshots()
        await self._state.storage.close()

    async def _loop(self, name: str, interval: float, tick: Callable[[], Awaitable[Any]]) -> None:
        while self._running:
            await asyncio.sleep(interval)
            try:
                await tick()
            except Exception:
                log.exception("orchestrator.loop.tick_failed", loop=name)

    def _kick_queue(self) -> None:
        kick = asyncio.create_task(self._scheduler.drain())
        self._kicks.add(kick)
        kick.add_done_callback(self._kicks.discard)

    async def tick_queue(self) -> int:
        """Drain the task queue once. Returns the number of tasks executed."""
        return await self._scheduler.drain()

    async def tick_messages(self) -> int:
        """Drain the message bus once. Returns the number of messages dispatched."""
        return await self._bus.drain()

    async def tick_maintenance(self) -> MaintenanceReport:
        """Run one maintenance sweep."""
        return await self._sweep.run()

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    async def submit_task(
        self,
        task: Task,
        *,
        require_collaboration: bool = False,
        preferred_agents: Iterable[str] = (),
        force_agent: str | None = None,
    ) -> TaskAssignment:
        """Submit a task and assign it to an agent.

        Raises:
            AgentNotFoundError: If ``force_agent`` is unknown.
            NoAvailableAgentError: If no agent is eligible; the task stays pending.
            ValidationError: If the task cannot be resubmitted in its state.
        """
        assignment = await self._scheduler.submit(
            task,
            require_collaboration=require_collaboration,
            preferred_agents=preferred_agents,
            force_agent=force_agent,
        )
        if self._running and not self._scheduler.is_draining:
            self._kick_queue()
        return assignment

    def get_task(self, task_id: str) -> Task:
        task = self._state.tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def list_tasks(self, status: TaskStatus | None = None) -> list[Task]:
        tasks = list(self._state.tasks.values())
        if status is not None:
            tasks = [t for t in tasks if t.status == status]
        return tasks

    async def cancel_task(self, task_id: str) -> Task:
        """Cancel a pending or in-progress task.

        An in-flight call is not interrupted; its result is discarded.

        Raises:
            TaskNotFoundError: If the id is unknown.
            ValidationError: If the task already finished.
        """
        task = self.get_task(task_id)
        if task.is_terminal:
            raise ValidationError(
                f"Task {task_id} is already {task.status.value}",
                field="status",
                value=task.status.value,
            )
        previous = task.status
        try:
            self._state.queue.remove(task_id)
        except ValueError:
            pass
        task.status = TaskStatus.CANCELLED
        task.mark_updated()
        for agent in self._state.release_agents_of(task_id):
            await self._state.save_agent(agent)
        collaboration = self._state.active_collaboration_for(task_id)
        if collaboration is not None:
            await self._coordinator.fail(collaboration, "Task cancelled")

        log.info("orchestrator.task.cancelled", task_id=task_id, previous_status=previous.value)
        await self._state.save_task(task)
        await self._state.record(create_task_cancelled_event(task, previous.value))
        return task

    # -------------------------------------------------------------------------
    # Agents
    # -------------------------------------------------------------------------

    def get_agent(self, agent_id: str) -> Agent:
        """Raises AgentNotFoundError for unknown ids."""
        return self._state.registry.require(agent_id)

    def list_agents(self) -> list[Agent]:
        return self._state.registry.list_agents()

    async def toggle_agent(self, agent_id: str, active: bool) -> Agent:
        """Activate or deactivate an agent.

        Deactivating a working agent returns it to idle, drops its
        assignment and fails the task's open collaboration; the task stays
        in_progress and may be resubmitted.
        """
        agent = self._state.registry.require(agent_id)
        previous_task = agent.current_task_id
        self._state.registry.set_active(agent_id, active)
        if previous_task is not None and agent.current_task_id is None:
            self._state.assignments.pop(previous_task, None)
            log.warning(
                "orchestrator.agent.task_orphaned", agent_id=agent_id, task_id=previous_task
            )
            collaboration = self._state.active_collaboration_for(previous_task)
            if collaboration is not None:
                await self._coordinator.fail(collaboration, "Agent deactivated")
        await self._state.save_agent(agent)
        await self._state.record(create_agent_toggled_event(agent))
        return agent

    async def update_agent_config(self, agent_id: str, partial: dict[str, Any]) -> Agent:
        """Merge ``partial`` into the agent's config.

        Raises:
            AgentNotFoundError: If the id is unknown.
            ValidationError: If a key is unknown or a value invalid.
        """
        agent = self._state.registry.update_config(agent_id, partial)
        await self._state.save_agent(agent)
        await self._state.record(create_agent_config_updated_event(agent, sorted(partial)))
        return agent

    async def create_agent(
        self,
        template_id: str,
        config_overrides: dict[str, Any] | None = None,
    ) -> Agent:
        """Clone a built-in template into a new active agent."""
        agent = self._state.registry.create_agent(template_id, config_overrides)
        await self._state.save_agent(agent)
        return agent

    async def recover_agent(self, agent_id: str) -> Agent:
        """Return an agent in ``error`` to ``idle``. Other statuses are left alone."""
        agent = self._state.registry.require(agent_id)
        if agent.status == AgentStatus.ERROR:
            agent.release()
            log.info("orchestrator.agent.recovered", agent_id=agent_id)
            await self._state.save_agent(agent)
        return agent

    def get_agent_status(self, agent_id: str) -> AgentStatusReport:
        agent = self._state.registry.require(agent_id)
        current = self._state.tasks.get(agent.current_task_id) if agent.current_task_id else None
        return AgentStatusReport(
            agent=agent,
            current_task=current,
            collaboration_ids=[c.id for c in self._state.collaborations_for(agent_id)],
            recent_messages=self._bus.recent_messages(agent_id),
        )

    # -------------------------------------------------------------------------
    # Collaborations
    # -------------------------------------------------------------------------

    def get_collaboration(self, collaboration_id: str) -> Collaboration:
        collaboration = self._state.collaborations.get(collaboration_id)
        if collaboration is None:
            raise CollaborationNotFoundError(collaboration_id)
        return collaboration

    def list_collaborations(self) -> list[Collaboration]:
        return list(self._state.collaborations.values())

    def list_negotiations(self) -> list[Negotiation]:
        return list(self._state.negotiations.values())

    # -------------------------------------------------------------------------
    # Reporting and configuration
    # -------------------------------------------------------------------------

    def get_orchestration_stats(self) -> OrchestrationStats:
        agents = self._state.registry.list_agents()
        return OrchestrationStats(
            total_agents=len(agents),
            active_agents=sum(1 for a in agents if a.is_active),
            tasks_in_queue=len(self._state.queue),
            active_assignments=len(self._state.assignments),
            total_tasks_completed=sum(a.performance.tasks_completed for a in agents),
            average_success_rate=(
                sum(a.performance.success_rate for a in agents) / len(agents) if agents else 0.0
            ),
        )

    def get_orchestrator_analytics(self) -> AnalyticsReport:
        analytics = self._state.analytics
        active = self._state.registry.active()
        working = sum(1 for a in active if a.status == AgentStatus.WORKING)
        return AnalyticsReport(
            total_tasks_processed=analytics.total_tasks_processed,
            total_tasks_failed=analytics.total_tasks_failed,
            average_task_time_ms=analytics.average_task_time_ms,
            collaboration_success_rate=analytics.collaboration_success_rate,
            negotiation_success_rate=analytics.negotiation_success_rate,
            agent_utilization=working / len(active) if active else 0.0,
            inter_agent_messages=analytics.inter_agent_messages,
            learning_events=analytics.learning_events,
        )

    def get_config(self) -> OrchestratorConfig:
        return self._state.config

    def update_config(self, **partial: Any) -> OrchestratorConfig:
        """Merge ``partial`` into the orchestrator config.

        Raises:
            ValidationError: If a key is unknown or a value invalid.
        """
        unknown = sorted(set(partial) - set(OrchestratorConfig.model_fields))
        if unknown:
            raise ValidationError(
                f"Unknown orchestrator setting: {', '.join(unknown)}",
                field=unknown[0],
            )
        try:
            updated = OrchestratorConfig.model_validate(
                {**self._state.config.model_dump(), **partial}
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(x) for x in first["loc"])
            raise ValidationError(
                f"Invalid orchestrator setting: {first['msg']}",
                field=field,
                value=partial.get(field),
            ) from e
        self._state.config = updated
        self._tracker.enabled = updated.performance_tracking
        log.info("orchestrator.config.updated", keys=sorted(partial))
        return updated


def create_orchestrator(config: OrchestraConfig, llm: LLMAdapter | None = None) -> Orchestrator:
    """Orchestrator wired from configuration.

    Uses SQLite storage at ``config.database_path`` when persistence is
    enabled, and a LiteLLM adapter built from ``config.provider`` unless
    ``llm`` is given.
    """
    storage: Storage
    if config.persistence.enabled:
        storage = SQLiteStorage.from_path(config.database_path)
    else:
        storage = InMemoryStorage()
    if llm is None:
        llm = LiteLLMAdapter(
            api_base=config.provider.api_base,
            timeout=config.provider.timeout,
            max_retries=config.provider.max_retries,
        )
    return Orchestrator(llm, config=config, storage=storage)
