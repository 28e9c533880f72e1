"""Per-agent specialization records and the learning pass that updates them.

Task execution never writes here. The maintenance sweep calls ``learn``,
which mirrors each agent's performance and derives its collaboration
history and partner affinities from collaboration records.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from orchestra.core.models import Agent, AgentSpecialization, Collaboration, CollaborationStatus
from orchestra.observability.logging import get_logger

log = get_logger(__name__)


class SpecializationStore:
    """Specialization records keyed by agent id."""

    def __init__(self, records: Iterable[AgentSpecialization] = ()) -> None:
        self._records: dict[str, AgentSpecialization] = {r.agent_id: r for r in records}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, agent_id: str) -> AgentSpecialization:
        """The stored record, or an all-zero default for cold agents.

        Defaults are not stored, so lookups never mutate the store.
        """
        record = self._records.get(agent_id)
        if record is None:
            return AgentSpecialization(agent_id=agent_id)
        return record

    def has(self, agent_id: str) -> bool:
        return agent_id in self._records

    def put(self, record: AgentSpecialization) -> None:
        self._records[record.agent_id] = record

    def learn(self, agents: Iterable[Agent], collaborations: Iterable[Collaboration]) -> int:
        """Refresh every agent's record from its performance and collaborations.

        Returns:
            Number of records updated.
        """
        collaborations = list(collaborations)
        updated = 0
        for agent in agents:
            record = self._records.get(agent.id)
            if record is None:
                record = AgentSpecialization(
                    agent_id=agent.id,
                    specializations=list(agent.capabilities),
                )
                self._records[agent.id] = record

            record.performance = {
                "success_rate": agent.performance.success_rate,
                "quality_score": agent.performance.quality_score,
            }

            mine = [c for c in collaborations if agent.id in c.participants]
            record.collaboration_history = [c.id for c in mine]
            record.preferred_partners = _partners(agent.id, mine, CollaborationStatus.COMPLETED)
            record.avoided_partners = [
                p
                for p in _partners(agent.id, mine, CollaborationStatus.FAILED)
                if p not in record.preferred_partners
            ]
            updated += 1

        log.debug("agents.specialization.learned", updated=updated)
        return updated

    def to_snapshot(self) -> list[dict[str, Any]]:
        return [r.model_dump(mode="json") for r in self._records.values()]

    @classmethod
    def from_snapshot(cls, payload: list[dict[str, Any]] | None) -> SpecializationStore:
        return cls(AgentSpecialization.model_validate(item) for item in payload or [])


def _partners(
    agent_id: str,
    collaborations: list[Collaboration],
    status: CollaborationStatus,
) -> list[str]:
    seen: dict[str, None] = {}
    for collaboration in collaborations:
        if collaboration.status != status:
            continue
        for participant in collaboration.participants:
            if participant != agent_id:
                seen.setdefault(participant, None)
    return list(seen)
