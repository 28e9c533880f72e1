"""Periodic maintenance: expire stalled work, learn, persist.

Each sweep:
1. Fails collaborations in_progress for longer than ``collaboration_timeout``
   and the tasks they own.
2. Fails negotiations unresolved after ``negotiation_timeout``, with their
   tasks and collaborations.
3. Refreshes specialization records when learning is enabled.
4. Persists every snapshot aggregate.

An expired task's in-flight call is not interrupted; its eventual result is
discarded by the scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from orchestra.core.errors import CollaborationTimeoutError, NegotiationTimeoutError
from orchestra.core.models import CollaborationStatus, TaskStatus, utc_now
from orchestra.events.orchestration import create_task_failed_event
from orchestra.observability.logging import get_logger
from orchestra.orchestration.collaboration import CollaborationCoordinator
from orchestra.orchestration.negotiation import NegotiationResolver
from orchestra.orchestration.state import OrchestratorState

log = get_logger(__name__)


@dataclass
class MaintenanceReport:
    """What one sweep changed."""

    expired_collaborations: list[str] = field(default_factory=list)
    expired_negotiations: list[str] = field(default_factory=list)
    failed_tasks: list[str] = field(default_factory=list)
    specializations_updated: int = 0


class MaintenanceSweep:
    """Expires timed-out collaborations and negotiations, then learns."""

    def __init__(
        self,
        state: OrchestratorState,
        coordinator: CollaborationCoordinator,
        resolver: NegotiationResolver,
    ) -> None:
        self._state = state
        self._coordinator = coordinator
        self._resolver = resolver

    async def run(self, now: datetime | None = None) -> MaintenanceReport:
        """Run one sweep. ``now`` defaults to the current UTC time."""
        now = now or utc_now()
        config = self._state.config
        report = MaintenanceReport()

        collaboration_cutoff = now - timedelta(seconds=config.collaboration_timeout)
        for collaboration in list(self._state.collaborations.values()):
            if collaboration.status != CollaborationStatus.IN_PROGRESS:
                continue
            if collaboration.start_time > collaboration_cutoff:
                continue
            error = CollaborationTimeoutError(
                collaboration.id, collaboration.task_id, config.collaboration_timeout
            )
            await self._coordinator.fail(collaboration, error.message)
            report.expired_collaborations.append(collaboration.id)
            await self._fail_task(collaboration.task_id, error.message, report)

        negotiation_cutoff = now - timedelta(seconds=config.negotiation_timeout)
        for negotiation in list(self._state.negotiations.values()):
            if not negotiation.is_open or negotiation.created_at > negotiation_cutoff:
                continue
            error = NegotiationTimeoutError(
                negotiation.id, negotiation.task_id, config.negotiation_timeout
            )
            await self._resolver.fail(negotiation, error.message)
            report.expired_negotiations.append(negotiation.id)
            collaboration = self._state.active_collaboration_for(negotiation.task_id)
            if collaboration is not None:
                await self._coordinator.fail(collaboration, error.message)
            await self._fail_task(negotiation.task_id, error.message, report)

        if config.enable_learning:
            report.specializations_updated = self._state.specializations.learn(
                self._state.registry.list_agents(),
                self._state.collaborations.values(),
            )
            self._state.analytics.learning_events += 1

        await self._state.save_snapshots()
        log.info(
            "maintenance.sweep.completed",
            expired_collaborations=len(report.expired_collaborations),
            expired_negotiations=len(report.expired_negotiations),
            failed_tasks=len(report.failed_tasks),
            specializations_updated=report.specializations_updated,
        )
        return report

    async def _fail_task(self, task_id: str, error: str, report: MaintenanceReport) -> None:
        task = self._state.tasks.get(task_id)
        if task is None or task.status != TaskStatus.IN_PROGRESS:
            return
        task.fail(error)
        self._state.analytics.total_tasks_failed += 1
        report.failed_tasks.append(task.id)
        for agent in self._state.release_agents_of(task.id):
            await self._state.save_agent(agent)
        log.warning("maintenance.task.expired", task_id=task.id, error=error)
        await self._state.save_task(task)
        await self._state.record(create_task_failed_event(task, None, error))
