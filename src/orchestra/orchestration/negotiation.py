"""Consensus resolution over competing agent proposals.

Every participant proposes a full solution concurrently. The proposal with
the highest token usage wins (first proposal on ties). Token usage is a
crude stand-in for thoroughness, not a quality measure; proposals carry a
``votes`` field but no voting round is run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from orchestra.agents.executor import AgentExecutor
from orchestra.agents.prompts import PROPOSAL_INSTRUCTION
from orchestra.core.errors import NegotiationTimeoutError, ValidationError
from orchestra.core.models import (
    Agent,
    Negotiation,
    NegotiationStatus,
    Proposal,
    Task,
    TaskResult,
    utc_now,
)
from orchestra.events.orchestration import (
    create_negotiation_agreed_event,
    create_negotiation_failed_event,
)
from orchestra.observability.logging import get_logger
from orchestra.orchestration.state import OrchestratorState

log = get_logger(__name__)

PROPOSAL_CONFIDENCE = 0.8
PROPOSAL_PRIORITY = 1


def select_winner(proposals: Sequence[Proposal]) -> Proposal:
    """Proposal with the most tokens; the earliest wins ties."""
    return max(proposals, key=lambda p: p.proposal.tokens)


class NegotiationResolver:
    """Runs one negotiation per consensus collaboration."""

    def __init__(self, state: OrchestratorState, executor: AgentExecutor) -> None:
        self._state = state
        self._executor = executor

    async def resolve(self, task: Task, participants: Sequence[Agent]) -> TaskResult:
        """Collect proposals from ``participants`` and return the winning result.

        Raises:
            ValidationError: If the task already has an open negotiation.
            NegotiationTimeoutError: If the sweep expired the negotiation
                while proposals were being gathered.
            ProviderError: If any participant's call failed.
        """
        if not participants:
            raise ValidationError(
                "Negotiation needs at least one participant", field="participants"
            )
        if self._state.open_negotiation_for(task.id) is not None:
            raise ValidationError(
                f"Task {task.id} already has an open negotiation",
                field="task_id",
                value=task.id,
            )

        negotiation = Negotiation(
            task_id=task.id,
            topic=f"Consensus for task: {task.title}",
            participants=[a.id for a in participants],
        )
        self._state.negotiations[negotiation.id] = negotiation
        log.info(
            "negotiation.proposals.requested",
            negotiation_id=negotiation.id,
            task_id=task.id,
            participants=negotiation.participants,
        )

        proposal_task = task.model_copy(
            update={"description": task.description + PROPOSAL_INSTRUCTION}
        )
        # Every call is awaited before a failure is raised.
        outcomes = await asyncio.gather(
            *(self._executor.perform(agent, proposal_task) for agent in participants),
            return_exceptions=True,
        )
        results: list[TaskResult] = []
        for agent, outcome in zip(participants, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                log.warning(
                    "negotiation.proposal.failed",
                    negotiation_id=negotiation.id,
                    agent_id=agent.id,
                    error=str(outcome),
                )
                if negotiation.is_open:
                    await self.fail(negotiation, str(outcome))
                raise outcome
            results.append(outcome)

        if negotiation.status == NegotiationStatus.FAILED:
            raise NegotiationTimeoutError(
                negotiation.id, task.id, self._state.config.negotiation_timeout
            )

        negotiation.proposals = [
            Proposal(
                agent_id=agent.id,
                proposal=result,
                confidence=PROPOSAL_CONFIDENCE,
                priority=PROPOSAL_PRIORITY,
            )
            for agent, result in zip(participants, results, strict=True)
        ]
        winner = select_winner(negotiation.proposals)

        resolution = winner.proposal.model_copy(deep=True)
        resolution.metadata.update(
            negotiation_id=negotiation.id,
            proposals=len(negotiation.proposals),
            winner_agent_id=winner.agent_id,
        )
        negotiation.resolution = resolution
        negotiation.winner_agent_id = winner.agent_id
        negotiation.status = NegotiationStatus.AGREED
        negotiation.resolved_at = utc_now()
        self._state.analytics.negotiations_agreed += 1

        log.info(
            "negotiation.consensus.agreed",
            negotiation_id=negotiation.id,
            winner_agent_id=winner.agent_id,
            proposals=len(negotiation.proposals),
        )
        await self._state.record(create_negotiation_agreed_event(negotiation))
        return resolution

    async def fail(self, negotiation: Negotiation, reason: str) -> None:
        """Mark an open negotiation failed."""
        negotiation.status = NegotiationStatus.FAILED
        negotiation.resolved_at = utc_now()
        self._state.analytics.negotiations_failed += 1
        log.warning("negotiation.consensus.failed", negotiation_id=negotiation.id, reason=reason)
        await self._state.record(create_negotiation_failed_event(negotiation, reason))
