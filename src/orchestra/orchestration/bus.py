"""In-process message bus between agents and the orchestrator.

Messages are queued FIFO and dispatched by type when the bus is drained.
A drain pass processes every message queued before or during the pass,
strictly in enqueue order; the ``priority`` field does not reorder.

Handlers:
    coordination: attach to the referenced collaboration, notify participants
    status: attach to every collaboration the sender takes part in
    request: answer with a response when one is expected
    response: deliver to the recipient's inbox
    delegation: mark the target agent working
    broadcast: history only
"""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Callable

from orchestra.core.models import (
    BROADCAST,
    ORCHESTRATOR_ID,
    AgentMessage,
    AgentStatus,
    MessagePriority,
    MessageType,
)
from orchestra.observability.logging import get_logger
from orchestra.orchestration.state import OrchestratorState

log = get_logger(__name__)

HISTORY_SIZE = 200
RECENT_MESSAGES = 10


class MessageBus:
    """FIFO message queue with per-type dispatch.

    Example:
        bus = MessageBus(state)
        bus.send(AgentMessage(from_agent_id="coder", to_agent_id="designer",
                              type=MessageType.REQUEST, content="Review?",
                              response_expected=True))
        await bus.drain()
        bus.inbox("coder")  # -> [response]
    """

    def __init__(self, state: OrchestratorState, history_size: int = HISTORY_SIZE) -> None:
        self._state = state
        self._queue: deque[AgentMessage] = deque()
        self._history: deque[AgentMessage] = deque(maxlen=history_size)
        self._inboxes: defaultdict[str, list[AgentMessage]] = defaultdict(list)
        self._draining = False
        self._handlers: dict[MessageType, Callable[[AgentMessage], None]] = {
            MessageType.COORDINATION: self._on_coordination,
            MessageType.STATUS: self._on_status,
            MessageType.REQUEST: self._on_request,
            MessageType.RESPONSE: self._on_response,
            MessageType.DELEGATION: self._on_delegation,
            MessageType.BROADCAST: self._on_broadcast,
        }

    @property
    def pending(self) -> int:
        return len(self._queue)

    def send(self, message: AgentMessage) -> AgentMessage:
        """Queue a message for the next drain."""
        self._queue.append(message)
        self._state.analytics.inter_agent_messages += 1
        log.debug(
            "bus.message.queued",
            message_id=message.id,
            type=message.type.value,
            from_agent_id=message.from_agent_id,
            to_agent_id=message.to_agent_id,
        )
        return message

    def broadcast_status(self, content: str, *, related_task_id: str | None = None) -> AgentMessage:
        """Queue an orchestrator status broadcast."""
        return self.send(
            AgentMessage(
                from_agent_id=ORCHESTRATOR_ID,
                to_agent_id=BROADCAST,
                type=MessageType.STATUS,
                content=content,
                priority=MessagePriority.HIGH,
                related_task_id=related_task_id,
            )
        )

    async def drain(self) -> int:
        """Dispatch every queued message.

        A second drain started while one is running returns immediately.
        A failing handler is logged; the remaining messages are still
        dispatched.

        Returns:
            Number of messages dispatched.
        """
        if self._draining:
            return 0
        self._draining = True
        processed = 0
        try:
            while self._queue:
                message = self._queue.popleft()
                self._history.append(message)
                try:
                    self._handlers[message.type](message)
                except Exception:
                    log.exception(
                        "bus.message.handler_failed",
                        message_id=message.id,
                        type=message.type.value,
                    )
                processed += 1
        finally:
            self._draining = False
        if processed:
            log.debug("bus.drain.completed", processed=processed)
        return processed

    def recent_messages(self, agent_id: str, limit: int = RECENT_MESSAGES) -> list[AgentMessage]:
        """The last ``limit`` dispatched messages the agent sent or received directly."""
        involved = [m for m in self._history if m.involves(agent_id)]
        return involved[-limit:]

    def inbox(self, agent_id: str) -> list[AgentMessage]:
        """Responses delivered to ``agent_id``."""
        return list(self._inboxes.get(agent_id, []))

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _on_coordination(self, message: AgentMessage) -> None:
        collaboration_id = message.metadata.get("collaboration_id")
        collaboration = self._state.collaborations.get(str(collaboration_id))
        if collaboration is None:
            log.warning(
                "bus.coordination.collaboration_missing",
                message_id=message.id,
                collaboration_id=collaboration_id,
            )
            return
        collaboration.messages.append(message)
        for participant in collaboration.participants:
            log.debug(
                "bus.coordination.notified",
                collaboration_id=collaboration.id,
                agent_id=participant,
            )
            if message.response_expected:
                self.send(
                    AgentMessage(
                        from_agent_id=participant,
                        to_agent_id=message.from_agent_id,
                        type=MessageType.RESPONSE,
                        content=f"Acknowledged collaboration {collaboration.id}",
                        metadata={"request_id": message.id, "collaboration_id": collaboration.id},
                        related_task_id=collaboration.task_id,
                    )
                )

    def _on_status(self, message: AgentMessage) -> None:
        for collaboration in self._state.collaborations_for(message.from_agent_id):
            collaboration.messages.append(message)

    def _on_request(self, message: AgentMessage) -> None:
        if not message.response_expected:
            log.debug("bus.request.received", message_id=message.id)
            return
        self.send(
            AgentMessage(
                from_agent_id=message.to_agent_id,
                to_agent_id=message.from_agent_id,
                type=MessageType.RESPONSE,
                content=f"Response to request: {message.content}",
                metadata={"request_id": message.id},
                related_task_id=message.related_task_id,
            )
        )

    def _on_response(self, message: AgentMessage) -> None:
        self._inboxes[message.to_agent_id].append(message)

    def _on_delegation(self, message: AgentMessage) -> None:
        target = self._state.registry.get(message.to_agent_id)
        if target is None:
            log.warning("bus.delegation.target_missing", agent_id=message.to_agent_id)
            return
        # A busy target is overwritten; its previous task loses its tracking.
        if target.status == AgentStatus.WORKING:
            log.warning(
                "bus.delegation.target_busy",
                agent_id=target.id,
                current_task_id=target.current_task_id,
            )
        target.status = AgentStatus.WORKING
        if message.related_task_id is not None:
            target.current_task_id = message.related_task_id

    def _on_broadcast(self, message: AgentMessage) -> None:
        log.debug("bus.broadcast.dispatched", message_id=message.id)
