"""Task submission, assignment and queue execution.

Task lifecycle:
    pending -> in_progress -> completed | failed
    pending | in_progress -> cancelled (explicit cancellation only)

Submission assigns the task immediately (forced agent, collaboration
primary, or best direct score) and queues it. Draining the queue executes
assigned tasks, at most ``max_concurrent_tasks`` at a time, with a short
pacing delay between starts. Every failure during execution is caught at
the execution boundary and recorded on the task; the drain carries on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
import time

from orchestra.agents.executor import AgentExecutor
from orchestra.agents.performance import PerformanceTracker
from orchestra.config.models import TickConfig
from orchestra.core.errors import NoAvailableAgentError, OrchestraError, ValidationError
from orchestra.core.models import (
    Agent,
    AgentStatus,
    Task,
    TaskAssignment,
    TaskResult,
    TaskStatus,
)
from orchestra.events.orchestration import (
    create_task_assigned_event,
    create_task_completed_event,
    create_task_failed_event,
    create_task_submitted_event,
)
from orchestra.observability.logging import bind_context, get_logger, unbind_context
from orchestra.orchestration.bus import MessageBus
from orchestra.orchestration.collaboration import CollaborationCoordinator
from orchestra.orchestration.scoring import (
    estimate_duration_ms,
    priority_rank,
    score_agent,
    select_best,
)
from orchestra.orchestration.state import OrchestratorState

log = get_logger(__name__)


class TaskScheduler:
    """Assigns submitted tasks to agents and executes the queue.

    Example:
        assignment = await scheduler.submit(task, preferred_agents=["coder"])
        await scheduler.drain()
        task.status  # -> TaskStatus.COMPLETED
    """

    def __init__(
        self,
        state: OrchestratorState,
        executor: AgentExecutor,
        coordinator: CollaborationCoordinator,
        bus: MessageBus,
        tracker: PerformanceTracker,
        ticks: TickConfig | None = None,
    ) -> None:
        self._state = state
        self._executor = executor
        self._coordinator = coordinator
        self._bus = bus
        self._tracker = tracker
        self._ticks = ticks or TickConfig()
        self._draining = False

    @property
    def is_draining(self) -> bool:
        return self._draining

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def submit(
        self,
        task: Task,
        *,
        require_collaboration: bool = False,
        preferred_agents: Iterable[str] = (),
        force_agent: str | None = None,
    ) -> TaskAssignment:
        """Accept ``task`` and assign it to an agent.

        A task may be resubmitted while it is pending, or while it is
        in_progress with no assignment (its agent was deactivated).

        Raises:
            AgentNotFoundError: If ``force_agent`` is unknown (nothing is changed).
            ValidationError: If the task cannot be (re)submitted in its state.
            NoAvailableAgentError: If no active, idle agent is eligible. The
                task stays pending and is not queued.
        """
        preferred = list(preferred_agents)
        forced = self._state.registry.require(force_agent) if force_agent else None
        self._check_resubmission(task)

        task.status = TaskStatus.PENDING
        task.mark_updated()
        self._state.tasks[task.id] = task
        if task.id not in self._state.queue:
            self._state.queue.append(task.id)
        await self._state.save_task(task)
        await self._state.record(
            create_task_submitted_event(
                task,
                require_collaboration=require_collaboration,
                preferred_agents=preferred,
                force_agent=force_agent,
            )
        )

        try:
            agent = await self._choose_agent(task, forced, require_collaboration, preferred)
        except OrchestraError:
            self._dequeue(task.id)
            raise
        return await self._assign(task, agent)

    def _check_resubmission(self, task: Task) -> None:
        known = self._state.tasks.get(task.id)
        if known is None or known.status == TaskStatus.PENDING:
            return
        if known.status == TaskStatus.IN_PROGRESS and task.id not in self._state.assignments:
            return
        raise ValidationError(
            f"Task {task.id} cannot be resubmitted while {known.status.value}",
            field="status",
            value=known.status.value,
        )

    async def _choose_agent(
        self,
        task: Task,
        forced: Agent | None,
        require_collaboration: bool,
        preferred: list[str],
    ) -> Agent:
        if forced is not None:
            return forced
        if require_collaboration:
            if self._state.config.enable_auto_coordination:
                collaboration = await self._coordinator.initiate(task, preferred)
                return self._state.registry.require(collaboration.primary)
            log.info("scheduler.collaboration.disabled", task_id=task.id)

        best = select_best(
            self._state.registry.available(),
            lambda agent: score_agent(
                agent, task, self._state.specializations.get(agent.id), preferred
            ),
        )
        if best is None:
            log.warning("scheduler.task.no_available_agent", task_id=task.id)
            raise NoAvailableAgentError(task.id)
        return best

    async def _assign(self, task: Task, agent: Agent) -> TaskAssignment:
        duration = estimate_duration_ms(task, agent)
        assignment = TaskAssignment(
            task_id=task.id,
            agent_id=agent.id,
            estimated_duration_ms=duration,
            priority_rank=priority_rank(task.priority),
            dependencies=list(task.dependencies),
        )
        task.status = TaskStatus.IN_PROGRESS
        task.estimated_time_ms = duration
        task.mark_updated()
        agent.status = AgentStatus.WORKING
        agent.current_task_id = task.id
        self._state.assignments[task.id] = assignment

        log.info(
            "scheduler.task.assigned",
            task_id=task.id,
            agent_id=agent.id,
            priority_rank=assignment.priority_rank,
            estimated_duration_ms=duration,
        )
        await self._state.save_task(task)
        await self._state.save_agent(agent)
        await self._state.record(create_task_assigned_event(assignment))
        return assignment

    def _dequeue(self, task_id: str) -> None:
        try:
            self._state.queue.remove(task_id)
        except ValueError:
            pass

    # -------------------------------------------------------------------------
    # Queue execution
    # -------------------------------------------------------------------------

    async def drain(self) -> int:
        """Execute every queued task that still has a live assignment.

        A drain requested while one is running returns immediately.

        Returns:
            Number of tasks executed.
        """
        if self._draining:
            log.debug("scheduler.drain.already_running")
            return 0
        self._draining = True
        try:
            runnable: list[TaskAssignment] = []
            while self._state.queue:
                task_id = self._state.queue.popleft()
                task = self._state.tasks.get(task_id)
                assignment = self._state.assignments.get(task_id)
                if task is None or assignment is None or task.status != TaskStatus.IN_PROGRESS:
                    log.debug("scheduler.drain.task_skipped", task_id=task_id)
                    continue
                runnable.append(assignment)
            if not runnable:
                return 0

            semaphore = asyncio.Semaphore(self._state.config.max_concurrent_tasks)

            async def _run(assignment: TaskAssignment) -> None:
                async with semaphore:
                    await self.execute(assignment)

            running: list[asyncio.Task[None]] = []
            for index, assignment in enumerate(runnable):
                if index and self._ticks.pacing_delay:
                    await asyncio.sleep(self._ticks.pacing_delay)
                running.append(asyncio.create_task(_run(assignment)))
            await asyncio.gather(*running)
            log.info("scheduler.drain.completed", executed=len(runnable))
            return len(runnable)
        finally:
            self._draining = False

    async def execute(self, assignment: TaskAssignment) -> None:
        """Execute one assigned task and record its outcome on the task."""
        task = self._state.tasks[assignment.task_id]
        agent = self._state.registry.get(assignment.agent_id)
        bind_context(task_id=task.id, agent_id=assignment.agent_id)
        started = time.monotonic()
        try:
            if agent is None or not agent.is_active:
                await self._fail(task, agent, f"Agent {assignment.agent_id} is not active")
                return
            collaboration = self._state.active_collaboration_for(task.id)
            if collaboration is not None:
                result = await self._coordinator.execute(collaboration, task)
            else:
                result = await self._executor.perform(agent, task)
        except OrchestraError as e:
            await self._fail(task, agent, e.message)
            return
        except Exception as e:
            log.exception("scheduler.task.unexpected_error", task_id=task.id)
            await self._fail(task, agent, str(e))
            return
        finally:
            unbind_context("task_id", "agent_id")

        elapsed_ms = int((time.monotonic() - started) * 1000)
        await self._complete(task, agent, result, elapsed_ms)

    async def _complete(
        self, task: Task, agent: Agent, result: TaskResult, elapsed_ms: int
    ) -> None:
        if task.status != TaskStatus.IN_PROGRESS:
            # Cancelled or expired while the call was in flight.
            log.info("scheduler.task.result_discarded", task_id=task.id, status=task.status.value)
            self._release(task, agent, AgentStatus.IDLE)
            await self._state.save_agent(agent)
            return

        task.status = TaskStatus.COMPLETED
        task.result = result
        task.actual_time_ms = elapsed_ms
        task.mark_updated()
        self._tracker.record_success(agent, elapsed_ms, result)
        self._release(task, agent, AgentStatus.IDLE)
        self._state.analytics.record_task_time(elapsed_ms)

        log.info(
            "scheduler.task.completed",
            task_id=task.id,
            agent_id=agent.id,
            duration_ms=elapsed_ms,
            tokens=result.tokens,
        )
        await self._state.save_task(task)
        await self._state.save_agent(agent)
        await self._state.record(create_task_completed_event(task, agent.id, elapsed_ms))

    async def _fail(self, task: Task, agent: Agent | None, error: str) -> None:
        if task.status != TaskStatus.IN_PROGRESS:
            log.info("scheduler.task.failure_discarded", task_id=task.id, error=error)
            if agent is not None:
                self._release(task, agent, AgentStatus.IDLE)
                await self._state.save_agent(agent)
            return

        task.fail(error)
        self._state.analytics.total_tasks_failed += 1
        if agent is not None:
            status = AgentStatus.ERROR if agent.is_active else AgentStatus.IDLE
            self._release(task, agent, status)
            self._tracker.record_failure(agent, error)
        self._state.assignments.pop(task.id, None)
        self._bus.broadcast_status(
            f"Task failed: {task.title}. Error: {error}", related_task_id=task.id
        )

        log.error(
            "scheduler.task.failed",
            task_id=task.id,
            agent_id=agent.id if agent else None,
            error=error,
        )
        await self._state.save_task(task)
        if agent is not None:
            await self._state.save_agent(agent)
        await self._state.record(
            create_task_failed_event(task, agent.id if agent else None, error)
        )

    def _release(self, task: Task, agent: Agent, status: AgentStatus) -> None:
        self._state.assignments.pop(task.id, None)
        # The agent may have been reassigned after a toggle or an expiry.
        if agent.current_task_id == task.id:
            agent.release(status)
