"""Domain models shared by the registry, scheduler and coordinator.

Persisted entities (agents, tasks, collaborations, negotiations,
specializations) are mutable pydantic models so they serialize to storage
with ``model_dump(mode="json")`` and load back with ``model_validate``.
Messages and proposals are immutable once created.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

BROADCAST = "broadcast"
"""Recipient id addressing every agent."""

ORCHESTRATOR_ID = "orchestrator"
"""Sender id used for messages originated by the orchestrator itself."""


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id(prefix: str) -> str:
    """Generate a unique, prefixed identifier (e.g. ``collab_3f2a...``)."""
    return f"{prefix}_{uuid4().hex[:12]}"


# =============================================================================
# Enumerations
# =============================================================================


class TaskType(StrEnum):
    """Kind of work a task represents."""

    CODE = "code"
    DESIGN = "design"
    DEBUG = "debug"
    DEPLOY = "deploy"
    ANALYZE = "analyze"
    TEST = "test"


class TaskPriority(StrEnum):
    """Caller-assigned urgency of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(StrEnum):
    """Lifecycle state of a task.

    pending -> in_progress -> completed | failed | cancelled
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class AgentStatus(StrEnum):
    """Runtime status of an agent."""

    IDLE = "idle"
    WORKING = "working"
    ERROR = "error"
    PAUSED = "paused"


class MessageType(StrEnum):
    """Kind of message carried by the message bus."""

    REQUEST = "request"
    RESPONSE = "response"
    BROADCAST = "broadcast"
    DELEGATION = "delegation"
    STATUS = "status"
    COORDINATION = "coordination"


class MessagePriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CollaborationType(StrEnum):
    """Execution strategy used by a collaboration."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HIERARCHICAL = "hierarchical"
    CONSENSUS = "consensus"


class CollaborationStatus(StrEnum):
    INITIATED = "initiated"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class NegotiationStatus(StrEnum):
    INITIATED = "initiated"
    NEGOTIATING = "negotiating"
    AGREED = "agreed"
    FAILED = "failed"


class Complexity(StrEnum):
    """Coarse complexity bucket driving collaboration size and strategy."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# Agents
# =============================================================================


class AgentPerformance(BaseModel):
    """Rolling performance statistics for an agent.

    Attributes:
        tasks_completed: Number of tasks finished successfully.
        success_rate: Fraction in [0, 1]; only ever increases (capped at 0.99).
        average_time_ms: Running mean of completed task durations.
        quality_score: Quality of the most recent completed task, in [0, 1].
        user_rating: Smoothed quality rating, in [0, 1].
    """

    tasks_completed: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    average_time_ms: float = Field(default=0.0, ge=0.0)
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    user_rating: float = Field(default=0.0, ge=0.0, le=1.0)


class AgentConfig(BaseModel):
    """Model configuration for an agent.

    ``primary_provider`` and ``fallback_providers`` are symbolic provider
    references resolved to concrete model ids by ``ProviderConfig``.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    primary_provider: str
    fallback_providers: list[str] = Field(default_factory=list)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, gt=0)
    system_prompt: str = ""
    tools: list[str] = Field(default_factory=list)


class Agent(BaseModel):
    """A long-lived worker persona.

    Attributes:
        id: Stable identifier.
        name: Display name.
        role: Role label (e.g. "Code Generation"); drives role bonuses.
        capabilities: Capability tags matched against task requirements.
        status: Runtime status.
        is_active: Inactive agents never receive new work.
        current_task_id: Task the agent is working on, if any.
        performance: Rolling performance statistics.
        config: Model configuration.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str
    name: str
    role: str
    description: str = ""
    capabilities: list[str] = Field(default_factory=list)
    status: AgentStatus = AgentStatus.IDLE
    is_active: bool = True
    current_task_id: str | None = None
    performance: AgentPerformance = Field(default_factory=AgentPerformance)
    config: AgentConfig

    @property
    def is_available(self) -> bool:
        """True when the agent is active and idle."""
        return self.is_active and self.status == AgentStatus.IDLE

    def release(self, status: AgentStatus = AgentStatus.IDLE) -> None:
        """Detach the agent from its current task."""
        self.status = status
        self.current_task_id = None


# =============================================================================
# Tasks
# =============================================================================


class TaskResult(BaseModel):
    """Outcome of a task or of a single agent call.

    Attributes:
        success: Whether the work succeeded.
        output: Generated text.
        error: Failure description when ``success`` is False.
        artifacts: Structured pieces extracted from the output (code blocks ...).
        metadata: Agent, model, token and timing details.
    """

    success: bool
    output: str = ""
    error: str | None = None
    artifacts: list[dict[str, Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def tokens(self) -> int:
        return int(self.metadata.get("tokens", 0))


class Task(BaseModel):
    """A unit of work submitted to the orchestrator.

    Attributes:
        id: Task identifier.
        title: Short title.
        description: Full description; its length feeds duration and complexity.
        type: Kind of work.
        priority: Caller urgency.
        status: Lifecycle state.
        project_id: Owning project, used to assemble context.
        dependencies: Ids of tasks this one depends on (not enforced).
        result: Outcome once completed or failed.
        estimated_time_ms: Filled at assignment time.
        actual_time_ms: Wall-clock execution time once finished.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: new_id("task"))
    title: str
    description: str = ""
    type: TaskType
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    project_id: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    result: TaskResult | None = None
    estimated_time_ms: int | None = None
    actual_time_ms: int | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED)

    def mark_updated(self) -> None:
        self.updated_at = utc_now()

    def fail(self, error: str, **metadata: Any) -> None:
        """Move the task to ``failed`` and record the error as its result."""
        self.status = TaskStatus.FAILED
        self.result = TaskResult(success=False, error=error, metadata=metadata)
        self.mark_updated()


class TaskAssignment(BaseModel):
    """Binding of a task to the agent that will execute it.

    ``priority_rank`` is advisory (urgent=4 .. low=1); the queue is FIFO.
    """

    task_id: str
    agent_id: str
    assigned_at: datetime = Field(default_factory=utc_now)
    estimated_duration_ms: int
    priority_rank: int = Field(ge=1, le=4)
    dependencies: list[str] = Field(default_factory=list)


# =============================================================================
# Messages
# =============================================================================


class AgentMessage(BaseModel):
    """Immutable message carried on the message bus."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("msg"))
    from_agent_id: str
    to_agent_id: str
    type: MessageType
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)
    priority: MessagePriority = MessagePriority.MEDIUM
    response_expected: bool = False
    related_task_id: str | None = None

    def involves(self, agent_id: str) -> bool:
        """True if the agent sent the message or is its direct recipient."""
        return agent_id in (self.from_agent_id, self.to_agent_id)


# =============================================================================
# Collaboration and negotiation
# =============================================================================


class Collaboration(BaseModel):
    """A multi-agent session bound to a single task.

    ``participants[0]`` is the primary agent: the one the task is assigned to
    and the one that produces the final synthesized result.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: new_id("collab"))
    task_id: str
    participants: list[str]
    type: CollaborationType
    status: CollaborationStatus = CollaborationStatus.INITIATED
    messages: list[AgentMessage] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=utc_now)
    end_time: datetime | None = None
    outcomes: dict[str, Any] = Field(default_factory=dict)

    @property
    def primary(self) -> str:
        return self.participants[0]

    @property
    def is_active(self) -> bool:
        return self.status in (CollaborationStatus.INITIATED, CollaborationStatus.IN_PROGRESS)


class Proposal(BaseModel):
    """One participant's answer during consensus."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    proposal: TaskResult
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    priority: int = 1
    votes: int = 0


class Negotiation(BaseModel):
    """Proposal collection and resolution for a consensus collaboration.

    At most one open negotiation exists per task.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: new_id("negotiation"))
    task_id: str
    topic: str = ""
    participants: list[str]
    proposals: list[Proposal] = Field(default_factory=list)
    status: NegotiationStatus = NegotiationStatus.INITIATED
    resolution: TaskResult | None = None
    winner_agent_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    resolved_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in (NegotiationStatus.INITIATED, NegotiationStatus.NEGOTIATING)


class AgentSpecialization(BaseModel):
    """Learned expertise and collaboration affinity for an agent.

    Attributes:
        agent_id: Agent the record belongs to.
        specializations: Specialization tags (seeded from capabilities).
        expertise: Capability -> expertise level in [0, 1].
        collaboration_history: Ids of collaborations the agent took part in.
        preferred_partners: Agents co-participating in completed collaborations.
        avoided_partners: Agents co-participating in failed collaborations.
        performance: Mirror of success_rate / quality_score.
    """

    agent_id: str
    specializations: list[str] = Field(default_factory=list)
    expertise: dict[str, float] = Field(default_factory=dict)
    collaboration_history: list[str] = Field(default_factory=list)
    preferred_partners: list[str] = Field(default_factory=list)
    avoided_partners: list[str] = Field(default_factory=list)
    performance: dict[str, float] = Field(default_factory=dict)

    def expertise_for(self, capability: str) -> float:
        """Expertise level for a capability, clamped to [0, 1]."""
        return min(max(self.expertise.get(capability, 0.0), 0.0), 1.0)


# =============================================================================
# Reporting
# =============================================================================


class OrchestratorAnalytics(BaseModel):
    """Cumulative counters maintained by the orchestrator."""

    total_tasks_processed: int = 0
    total_tasks_failed: int = 0
    average_task_time_ms: float = 0.0
    collaborations_completed: int = 0
    collaborations_failed: int = 0
    negotiations_agreed: int = 0
    negotiations_failed: int = 0
    inter_agent_messages: int = 0
    learning_events: int = 0

    @property
    def collaboration_success_rate(self) -> float:
        total = self.collaborations_completed + self.collaborations_failed
        return self.collaborations_completed / total if total else 0.0

    @property
    def negotiation_success_rate(self) -> float:
        total = self.negotiations_agreed + self.negotiations_failed
        return self.negotiations_agreed / total if total else 0.0

    def record_task_time(self, duration_ms: float) -> None:
        """Fold a finished task's duration into the running average."""
        self.total_tasks_processed += 1
        n = self.total_tasks_processed
        self.average_task_time_ms += (duration_ms - self.average_task_time_ms) / n


__all__ = [
    "BROADCAST",
    "ORCHESTRATOR_ID",
    "Agent",
    "AgentConfig",
    "AgentMessage",
    "AgentPerformance",
    "AgentSpecialization",
    "AgentStatus",
    "Collaboration",
    "CollaborationStatus",
    "CollaborationType",
    "Complexity",
    "MessagePriority",
    "MessageType",
    "Negotiation",
    "NegotiationStatus",
    "OrchestratorAnalytics",
    "Proposal",
    "Task",
    "TaskAssignment",
    "TaskPriority",
    "TaskResult",
    "TaskStatus",
    "TaskType",
    "new_id",
    "utc_now",
]
