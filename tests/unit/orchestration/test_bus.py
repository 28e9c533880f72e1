"""Unit tests for orchestra.orchestration.bus module."""

from __future__ import annotations

from orchestra.core.models import (
    AgentMessage,
    AgentStatus,
    Collaboration,
    CollaborationType,
    MessageType,
)
from orchestra.orchestration.bus import MessageBus
from orchestra.orchestration.state import OrchestratorState


def message(type: MessageType, **overrides: object) -> AgentMessage:
    fields: dict[str, object] = {
        "from_agent_id": "coder",
        "to_agent_id": "designer",
        "type": type,
        "content": "hello",
    }
    fields.update(overrides)
    return AgentMessage.model_validate(fields)


class TestSendAndDrain:
    """Tests for queueing and FIFO dispatch."""

    async def test_send_counts_messages(self, state: OrchestratorState) -> None:
        bus = MessageBus(state)
        bus.send(message(MessageType.BROADCAST))
        bus.send(message(MessageType.BROADCAST))

        assert bus.pending == 2
        assert state.analytics.inter_agent_messages == 2

    async def test_drain_dispatches_in_order(self, state: OrchestratorState) -> None:
        bus = MessageBus(state)
        first = bus.send(message(MessageType.BROADCAST, content="first"))
        second = bus.send(message(MessageType.BROADCAST, content="second"))

        assert await bus.drain() == 2
        assert bus.pending == 0
        assert bus.recent_messages("coder") == [first, second]

    async def test_drain_empty_bus(self, state: OrchestratorState) -> None:
        assert await MessageBus(state).drain() == 0

    async def test_responses_queued_during_drain_are_dispatched(
        self, state: OrchestratorState
    ) -> None:
        bus = MessageBus(state)
        bus.send(message(MessageType.REQUEST, content="Review?", response_expected=True))

        processed = await bus.drain()

        inbox = bus.inbox("coder")
        assert processed == 2
        assert len(inbox) == 1
        assert inbox[0].type == MessageType.RESPONSE
        assert inbox[0].from_agent_id == "designer"
        assert inbox[0].content == "Response to request: Review?"

    async def test_request_without_reply(self, state: OrchestratorState) -> None:
        bus = MessageBus(state)
        bus.send(message(MessageType.REQUEST))

        assert await bus.drain() == 1
        assert bus.inbox("coder") == []

    async def test_history_is_bounded(self, state: OrchestratorState) -> None:
        bus = MessageBus(state, history_size=3)
        for index in range(5):
            bus.send(message(MessageType.BROADCAST, content=str(index)))
        await bus.drain()

        assert [m.content for m in bus.recent_messages("coder")] == ["2", "3", "4"]

    async def test_recent_messages_limit(self, state: OrchestratorState) -> None:
        bus = MessageBus(state)
        for index in range(15):
            bus.send(message(MessageType.BROADCAST, content=str(index)))
        await bus.drain()

        recent = bus.recent_messages("designer")
        assert len(recent) == 10
        assert recent[-1].content == "14"


class TestHandlers:
    """Tests for per-type dispatch."""

    async def test_coordination_attaches_to_collaboration(
        self, state: OrchestratorState
    ) -> None:
        collaboration = Collaboration(
            task_id="task_1", participants=["coder", "designer"], type=CollaborationType.PARALLEL
        )
        state.collaborations[collaboration.id] = collaboration
        bus = MessageBus(state)
        bus.send(
            message(
                MessageType.COORDINATION,
                metadata={"collaboration_id": collaboration.id},
                response_expected=True,
            )
        )

        processed = await bus.drain()

        assert collaboration.messages[0].type == MessageType.COORDINATION
        # One acknowledgement per participant.
        assert processed == 3
        assert len(bus.inbox("coder")) == 2

    async def test_coordination_for_unknown_collaboration(
        self, state: OrchestratorState
    ) -> None:
        bus = MessageBus(state)
        bus.send(message(MessageType.COORDINATION, metadata={"collaboration_id": "nope"}))

        assert await bus.drain() == 1

    async def test_status_attaches_to_sender_collaborations(
        self, state: OrchestratorState
    ) -> None:
        mine = Collaboration(
            task_id="task_1", participants=["coder"], type=CollaborationType.PARALLEL
        )
        other = Collaboration(
            task_id="task_2", participants=["designer"], type=CollaborationType.PARALLEL
        )
        state.collaborations.update({mine.id: mine, other.id: other})
        bus = MessageBus(state)
        bus.send(message(MessageType.STATUS))

        await bus.drain()

        assert len(mine.messages) == 1
        assert other.messages == []

    async def test_delegation_marks_target_working(self, state: OrchestratorState) -> None:
        bus = MessageBus(state)
        bus.send(message(MessageType.DELEGATION, related_task_id="task_9"))

        await bus.drain()

        designer = state.registry.require("designer")
        assert designer.status == AgentStatus.WORKING
        assert designer.current_task_id == "task_9"

    async def test_delegation_to_unknown_agent(self, state: OrchestratorState) -> None:
        bus = MessageBus(state)
        bus.send(message(MessageType.DELEGATION, to_agent_id="ghost"))

        assert await bus.drain() == 1

    async def test_broadcast_status_from_orchestrator(self, state: OrchestratorState) -> None:
        bus = MessageBus(state)
        sent = bus.broadcast_status("Task failed", related_task_id="task_1")

        assert sent.from_agent_id == "orchestrator"
        assert sent.to_agent_id == "broadcast"
        assert sent.type == MessageType.STATUS
        assert await bus.drain() == 1
