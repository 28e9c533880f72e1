"""Multi-agent collaboration: participant selection and the four strategies.

A collaboration wraps one task. ``participants[0]`` is the primary agent:
the scheduler assigns the task to it, and it produces the final result.

Strategies:
    sequential: primary performs, each other participant appends a review
    parallel: secondaries perform independent copies, primary synthesizes
    hierarchical: primary plans, subtasks are routed by role, primary synthesizes
    consensus: every participant proposes, the negotiation resolver picks one

Lifecycle: initiated -> in_progress -> completed | failed. The maintenance
sweep fails collaborations that stay in_progress past the timeout.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable

from orchestra.agents.executor import AgentExecutor
from orchestra.agents.prompts import PLAN_INSTRUCTION
from orchestra.core.errors import (
    CollaborationTimeoutError,
    NoAvailableAgentError,
    ValidationError,
)
from orchestra.core.models import (
    BROADCAST,
    ORCHESTRATOR_ID,
    Agent,
    AgentMessage,
    Collaboration,
    CollaborationStatus,
    CollaborationType,
    MessagePriority,
    MessageType,
    Task,
    TaskPriority,
    TaskResult,
    TaskType,
    utc_now,
)
from orchestra.events.orchestration import (
    create_collaboration_completed_event,
    create_collaboration_failed_event,
    create_collaboration_initiated_event,
)
from orchestra.observability.logging import bind_context, get_logger, unbind_context
from orchestra.orchestration.bus import MessageBus
from orchestra.orchestration.negotiation import NegotiationResolver
from orchestra.orchestration.scoring import (
    collaboration_score,
    determine_collaboration_type,
    participant_count,
    rank_agents,
)
from orchestra.orchestration.state import OrchestratorState
from orchestra.orchestration.subtasks import parse_subtasks, route_subtask

log = get_logger(__name__)

Strategy = Callable[[Task, list[Agent]], Awaitable[TaskResult]]


class CollaborationCoordinator:
    """Selects collaboration participants and drives the chosen strategy."""

    def __init__(
        self,
        state: OrchestratorState,
        executor: AgentExecutor,
        bus: MessageBus,
        resolver: NegotiationResolver,
    ) -> None:
        self._state = state
        self._executor = executor
        self._bus = bus
        self._resolver = resolver
        self._strategies: dict[CollaborationType, Strategy] = {
            CollaborationType.SEQUENTIAL: self._sequential,
            CollaborationType.PARALLEL: self._parallel,
            CollaborationType.HIERARCHICAL: self._hierarchical,
            CollaborationType.CONSENSUS: self._consensus,
        }

    # -------------------------------------------------------------------------
    # Initiation
    # -------------------------------------------------------------------------

    def select_participants(self, task: Task, preferred_agents: Iterable[str] = ()) -> list[Agent]:
        """Best available agents for ``task``, best first.

        The count follows task complexity (1, 2 or 3), capped at the number
        of available agents.
        """
        preferred = list(preferred_agents)
        ranked = rank_agents(
            self._state.registry.available(),
            lambda agent: collaboration_score(
                agent,
                task,
                self._state.specializations.get(agent.id),
                preferred,
            ),
        )
        return [agent for agent, _ in ranked[: participant_count(task)]]

    async def initiate(self, task: Task, preferred_agents: Iterable[str] = ()) -> Collaboration:
        """Open a collaboration for ``task`` and announce it on the bus.

        Raises:
            ValidationError: If the task already has an active collaboration.
            NoAvailableAgentError: If no agent is available.
        """
        existing = self._state.active_collaboration_for(task.id)
        if existing is not None:
            raise ValidationError(
                f"Task {task.id} already has an active collaboration",
                field="task_id",
                value=task.id,
                details={"collaboration_id": existing.id},
            )

        participants = self.select_participants(task, preferred_agents)
        if not participants:
            raise NoAvailableAgentError(task.id, {"collaboration": True})

        collaboration = Collaboration(
            task_id=task.id,
            participants=[a.id for a in participants],
            type=determine_collaboration_type(task),
        )
        self._state.collaborations[collaboration.id] = collaboration

        names = ", ".join(a.name for a in participants)
        self._bus.send(
            AgentMessage(
                from_agent_id=ORCHESTRATOR_ID,
                to_agent_id=BROADCAST,
                type=MessageType.COORDINATION,
                content=(
                    f"Collaboration initiated for task: {task.title}. "
                    f"Type: {collaboration.type.value}. Participants: {names}"
                ),
                metadata={
                    "collaboration_id": collaboration.id,
                    "task_id": task.id,
                    "collaboration_type": collaboration.type.value,
                },
                priority=MessagePriority.HIGH,
                related_task_id=task.id,
            )
        )
        log.info(
            "collaboration.session.initiated",
            collaboration_id=collaboration.id,
            task_id=task.id,
            type=collaboration.type.value,
            participants=collaboration.participants,
        )
        await self._state.record(create_collaboration_initiated_event(collaboration))
        return collaboration

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def execute(self, collaboration: Collaboration, task: Task) -> TaskResult:
        """Run the collaboration's strategy and return the task result.

        Participants deactivated since ``initiate`` are left out; the
        collaboration fails if that includes the primary.

        Raises:
            AgentNotFoundError: If a participant no longer exists.
            ValidationError: If the primary agent is inactive.
            CollaborationTimeoutError: If the sweep expired the collaboration
                while the strategy was running.
            ProviderError: If a call the strategy depends on failed.
        """
        agents = [self._state.registry.require(agent_id) for agent_id in collaboration.participants]
        primary = agents[0]
        if not primary.is_active:
            await self.fail(collaboration, f"Primary agent {primary.id} is not active")
            raise ValidationError(
                f"Primary agent {primary.id} is not active",
                field="participants",
                value=primary.id,
            )
        inactive = [a.id for a in agents if not a.is_active]
        if inactive:
            agents = [a for a in agents if a.is_active]
            log.warning(
                "collaboration.participants.inactive_dropped",
                collaboration_id=collaboration.id,
                agent_ids=inactive,
            )
        collaboration.status = CollaborationStatus.IN_PROGRESS
        self._bus.broadcast_status(
            f"Starting collaborative task: {task.title}", related_task_id=task.id
        )

        bind_context(collaboration_id=collaboration.id)
        try:
            result = await self._strategies[collaboration.type](task, agents)
        except Exception as e:
            if collaboration.status == CollaborationStatus.IN_PROGRESS:
                await self.fail(collaboration, str(e))
            raise
        finally:
            unbind_context("collaboration_id")

        if collaboration.status != CollaborationStatus.IN_PROGRESS:
            raise CollaborationTimeoutError(
                collaboration.id, task.id, self._state.config.collaboration_timeout
            )

        collaboration.status = CollaborationStatus.COMPLETED
        collaboration.end_time = utc_now()
        collaboration.outcomes = {
            "success": result.success,
            "participants": len(agents),
            "tokens": result.tokens,
        }
        self._state.analytics.collaborations_completed += 1
        log.info(
            "collaboration.session.completed",
            collaboration_id=collaboration.id,
            task_id=task.id,
            type=collaboration.type.value,
        )
        await self._state.record(create_collaboration_completed_event(collaboration))
        return result

    async def fail(self, collaboration: Collaboration, reason: str) -> None:
        """Mark a collaboration failed."""
        collaboration.status = CollaborationStatus.FAILED
        collaboration.end_time = utc_now()
        collaboration.outcomes = {"success": False, "error": reason}
        self._state.analytics.collaborations_failed += 1
        log.warning(
            "collaboration.session.failed",
            collaboration_id=collaboration.id,
            task_id=collaboration.task_id,
            reason=reason,
        )
        await self._state.record(create_collaboration_failed_event(collaboration, reason))

    # -------------------------------------------------------------------------
    # Strategies
    # -------------------------------------------------------------------------

    async def _sequential(self, task: Task, agents: list[Agent]) -> TaskResult:
        primary, reviewers = agents[0], agents[1:]
        current = await self._executor.perform(primary, task)
        for reviewer in reviewers:
            feedback = await self._executor.review(reviewer, task, current)
            current = current.model_copy(
                update={
                    "output": f"{current.output}\n\nFeedback from {reviewer.name}:\n"
                    f"{feedback.output}"
                }
            )
        current.metadata["reviewed_by"] = [r.id for r in reviewers]
        return current

    async def _parallel(self, task: Task, agents: list[Agent]) -> TaskResult:
        primary, secondaries = agents[0], agents[1:]
        if not secondaries:
            return await self._executor.perform(primary, task)

        copies = [
            task.model_copy(
                update={"id": f"{task.id}_{agent.id}", "title": f"{task.title} ({agent.name})"}
            )
            for agent in secondaries
        ]
        outcomes = await asyncio.gather(
            *(
                self._executor.perform(agent, copy)
                for agent, copy in zip(secondaries, copies, strict=True)
            ),
            return_exceptions=True,
        )

        results: list[TaskResult] = []
        for agent, outcome in zip(secondaries, outcomes, strict=True):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                # Dropped from the synthesis input, not retried.
                log.warning(
                    "collaboration.parallel.participant_failed",
                    task_id=task.id,
                    agent_id=agent.id,
                    error=str(outcome),
                )
                continue
            results.append(outcome)

        if not results:
            return await self._executor.perform(primary, task)
        return await self._executor.synthesize(primary, task, results)

    async def _hierarchical(self, task: Task, agents: list[Agent]) -> TaskResult:
        primary = agents[0]
        plan_task = task.model_copy(update={"description": task.description + PLAN_INSTRUCTION})
        plan = await self._executor.perform(primary, plan_task)

        subtasks = parse_subtasks(plan.output)
        if not subtasks:
            log.info("collaboration.hierarchical.plan_unparsed", task_id=task.id)
            return await self._executor.perform(primary, task)

        candidates = self._state.registry.active()
        results: list[TaskResult] = []
        for index, title in enumerate(subtasks, start=1):
            agent = route_subtask(title, candidates)
            if agent is None:
                log.warning(
                    "collaboration.hierarchical.subtask_unrouted", task_id=task.id, subtask=title
                )
                continue
            subtask = Task(
                id=f"{task.id}_sub{index}",
                title=title,
                description=title,
                type=TaskType.CODE,
                priority=TaskPriority.MEDIUM,
                project_id=task.project_id,
            )
            log.debug(
                "collaboration.hierarchical.subtask_routed",
                task_id=task.id,
                subtask_id=subtask.id,
                agent_id=agent.id,
            )
            results.append(await self._executor.perform(agent, subtask))

        if not results:
            return await self._executor.perform(primary, task)
        result = await self._executor.synthesize(primary, task, results)
        result.metadata["subtasks"] = len(subtasks)
        return result

    async def _consensus(self, task: Task, agents: list[Agent]) -> TaskResult:
        return await self._resolver.resolve(task, agents)
