"""Orchestra core module - shared types, errors, and domain models."""

from orchestra.core.errors import (
    AgentNotFoundError,
    CollaborationNotFoundError,
    CollaborationTimeoutError,
    ConfigError,
    NegotiationTimeoutError,
    NoAvailableAgentError,
    OrchestraError,
    PersistenceError,
    ProviderError,
    TaskNotFoundError,
    ValidationError,
)
from orchestra.core.models import (
    BROADCAST,
    ORCHESTRATOR_ID,
    Agent,
    AgentConfig,
    AgentMessage,
    AgentPerformance,
    AgentSpecialization,
    AgentStatus,
    Collaboration,
    CollaborationStatus,
    CollaborationType,
    Complexity,
    MessagePriority,
    MessageType,
    Negotiation,
    NegotiationStatus,
    OrchestratorAnalytics,
    Proposal,
    Task,
    TaskAssignment,
    TaskPriority,
    TaskResult,
    TaskStatus,
    TaskType,
)
from orchestra.core.types import AgentId, Metadata, Result, TaskId

__all__ = [
    # Types
    "Result",
    "Metadata",
    "AgentId",
    "TaskId",
    # Errors
    "OrchestraError",
    "ProviderError",
    "ConfigError",
    "PersistenceError",
    "ValidationError",
    "NoAvailableAgentError",
    "AgentNotFoundError",
    "TaskNotFoundError",
    "CollaborationNotFoundError",
    "CollaborationTimeoutError",
    "NegotiationTimeoutError",
    # Models
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
]
