"""Base event definition.

Events are immutable records of orchestration state changes. Their type
follows the ``domain.entity.verb_past_tense`` convention and they are
appended to storage when the storage keeps an event log.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class BaseEvent(BaseModel, frozen=True):
    """An immutable orchestration event.

    Attributes:
        id: Unique event identifier.
        type: Event type, e.g. "task.assignment.created".
        timestamp: When the event occurred (UTC).
        aggregate_type: Kind of entity the event belongs to (task, agent, ...).
        aggregate_id: Id of that entity.
        data: Event payload.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    aggregate_type: str
    aggregate_id: str
    data: dict[str, Any] = Field(default_factory=dict)

    def to_db_dict(self) -> dict[str, Any]:
        """Row for the ``events`` table."""
        return {
            "id": self.id,
            "event_type": self.type,
            "timestamp": self.timestamp,
            "aggregate_type": self.aggregate_type,
            "aggregate_id": self.aggregate_id,
            "payload": self.data,
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "BaseEvent":
        return cls(
            id=row["id"],
            type=row["event_type"],
            timestamp=row["timestamp"],
            aggregate_type=row["aggregate_type"],
            aggregate_id=row["aggregate_id"],
            data=row["payload"],
        )
