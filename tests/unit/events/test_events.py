"""Unit tests for orchestra.events modules."""

from pydantic import ValidationError
import pytest

from orchestra.agents.registry import default_agents
from orchestra.core.models import (
    Collaboration,
    CollaborationType,
    Negotiation,
    Task,
    TaskAssignment,
    TaskPriority,
    TaskResult,
    TaskType,
)
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


class TestBaseEvent:
    """Test the event record."""

    def test_defaults_and_frozen(self) -> None:
        event = BaseEvent(type="task.submission.received", aggregate_type="task", aggregate_id="a")
        assert event.id
        assert event.timestamp.tzinfo is not None
        assert event.data == {}
        with pytest.raises(ValidationError):
            event.type = "other"  # type: ignore[misc]

    def test_db_row_round_trip(self) -> None:
        event = BaseEvent(
            type="task.execution.failed",
            aggregate_type="task",
            aggregate_id="a",
            data={"error": "boom"},
        )

        row = event.to_db_dict()

        assert row["event_type"] == "task.execution.failed"
        assert row["payload"] == {"error": "boom"}
        assert BaseEvent.from_db_row(row) == event


class TestTaskEvents:
    """Test task event factories."""

    def test_submitted(self) -> None:
        task = Task(id="a", title="Login", type=TaskType.CODE, priority=TaskPriority.HIGH)

        event = create_task_submitted_event(
            task, require_collaboration=True, preferred_agents=["coder"], force_agent=None
        )

        assert event.type == "task.submission.received"
        assert event.aggregate_id == "a"
        assert event.data == {
            "title": "Login",
            "task_type": "code",
            "priority": "high",
            "require_collaboration": True,
            "preferred_agents": ["coder"],
            "force_agent": None,
        }

    def test_assigned(self) -> None:
        assignment = TaskAssignment(
            task_id="a", agent_id="coder", estimated_duration_ms=1500, priority_rank=3
        )
        event = create_task_assigned_event(assignment)
        assert event.type == "task.assignment.created"
        assert event.data == {
            "agent_id": "coder",
            "estimated_duration_ms": 1500,
            "priority_rank": 3,
        }

    def test_completed_failed_cancelled(self) -> None:
        task = Task(id="a", title="Login", type=TaskType.CODE)
        task.result = TaskResult(success=True, metadata={"tokens": 42})

        completed = create_task_completed_event(task, "coder", 900)
        failed = create_task_failed_event(task, None, "boom")
        cancelled = create_task_cancelled_event(task, "in_progress")

        assert completed.data == {"agent_id": "coder", "duration_ms": 900, "tokens": 42}
        assert failed.data == {"agent_id": None, "error": "boom"}
        assert cancelled.type == "task.lifecycle.cancelled"
        assert cancelled.data == {"previous_status": "in_progress"}

    def test_completed_without_result(self) -> None:
        task = Task(id="a", title="Login", type=TaskType.CODE)
        assert create_task_completed_event(task, "coder", 1).data["tokens"] == 0


class TestCollaborationEvents:
    """Test collaboration and negotiation event factories."""

    def test_collaboration_lifecycle(self) -> None:
        collaboration = Collaboration(
            id="collab_1",
            task_id="a",
            participants=["coder", "designer"],
            type=CollaborationType.PARALLEL,
            outcomes={"success": True},
        )

        initiated = create_collaboration_initiated_event(collaboration)
        completed = create_collaboration_completed_event(collaboration)
        failed = create_collaboration_failed_event(collaboration, "timeout")

        assert initiated.aggregate_type == "collaboration"
        assert initiated.data["participants"] == ["coder", "designer"]
        assert initiated.data["collaboration_type"] == "parallel"
        assert completed.data == {"task_id": "a", "outcomes": {"success": True}}
        assert failed.data == {"task_id": "a", "reason": "timeout"}

    def test_negotiation(self) -> None:
        negotiation = Negotiation(
            id="neg_1", task_id="a", participants=["coder"], winner_agent_id="coder"
        )

        agreed = create_negotiation_agreed_event(negotiation)
        failed = create_negotiation_failed_event(negotiation, "no proposals")

        assert agreed.type == "negotiation.resolution.agreed"
        assert agreed.data == {"task_id": "a", "winner_agent_id": "coder", "proposal_count": 0}
        assert failed.data["reason"] == "no proposals"


class TestAgentEvents:
    """Test agent event factories."""

    def test_toggled_and_config_updated(self) -> None:
        debugger = next(a for a in default_agents() if a.id == "debugger")

        toggled = create_agent_toggled_event(debugger)
        updated = create_agent_config_updated_event(debugger, ["temperature"])

        assert toggled.data == {"is_active": False, "status": "idle"}
        assert updated.data == {"changed_keys": ["temperature"]}
