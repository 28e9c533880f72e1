"""Error hierarchy for Orchestra.

Exceptions are raised for caller mistakes (stale ids, invalid input) and
programming bugs. Expected failures of external collaborators (the language
model, storage) travel as ``Result`` values and are recorded on the owning
task at the execution boundary.

Exception Hierarchy:
    OrchestraError (base)
    ├── ProviderError               - language-model call failed
    ├── ConfigError                 - configuration loading/validation failed
    ├── PersistenceError            - storage read/write failed
    ├── ValidationError             - invalid input or illegal state transition
    ├── NoAvailableAgentError       - no active idle agent can take the task
    ├── AgentNotFoundError          - unknown agent id
    ├── TaskNotFoundError           - unknown task id
    ├── CollaborationNotFoundError  - unknown collaboration id
    ├── CollaborationTimeoutError   - collaboration exceeded its deadline
    └── NegotiationTimeoutError     - negotiation exceeded its deadline
"""

from __future__ import annotations

from typing import Any


class OrchestraError(Exception):
    """Base exception for all Orchestra errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ProviderError(OrchestraError):
    """Error from a language-model provider call.

    Attributes:
        provider: Name of the provider (e.g., "openai", "anthropic").
        status_code: HTTP status code if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.provider = provider
        self.status_code = status_code

    @classmethod
    def from_exception(cls, exc: Exception, *, provider: str | None = None) -> ProviderError:
        """Wrap a provider-specific exception, keeping it as ``__cause__``."""
        error = cls(
            str(exc),
            provider=provider,
            status_code=getattr(exc, "status_code", None),
            details={"original_exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error


class ConfigError(OrchestraError):
    """Error from configuration loading or validation.

    Attributes:
        config_key: The configuration key that caused the error.
        config_file: Path to the config file if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


class PersistenceError(OrchestraError):
    """Error from storage operations.

    Attributes:
        operation: The operation that failed (e.g., "upsert", "select").
        table: The table involved if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        table: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.operation = operation
        self.table = table


class ValidationError(OrchestraError):
    """Error from input validation or an illegal state transition.

    Attributes:
        field: The field that failed validation.
        value: The invalid value. Use ``safe_value`` when logging.
    """

    _SENSITIVE_FIELDS = frozenset({
        "password", "api_key", "secret", "token", "credential", "apikey", "api-key",
    })

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value

    @property
    def safe_value(self) -> str:
        """Masked, truncated representation of ``value`` suitable for logs."""
        if self.value is None:
            return "<None>"
        if self.field and any(s in self.field.lower() for s in self._SENSITIVE_FIELDS):
            return "<REDACTED>"
        if isinstance(self.value, str):
            if len(self.value) > 50:
                return f"{self.value[:20]}...({len(self.value)} chars)"
            return repr(self.value)
        return f"<{type(self.value).__name__}>"

    def __str__(self) -> str:
        base = self.message
        if self.field:
            base = f"{base} (field: {self.field}, value: {self.safe_value})"
        if self.details:
            base = f"{base} (details: {self.details})"
        return base


class NoAvailableAgentError(OrchestraError):
    """No active, idle agent is eligible for the task.

    The task stays ``pending``; the caller may retry later or widen filters.
    """

    def __init__(self, task_id: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"No available agent for task {task_id}", details)
        self.task_id = task_id


class AgentNotFoundError(OrchestraError):
    """The caller referenced an agent id the registry does not know."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent not found: {agent_id}")
        self.agent_id = agent_id


class TaskNotFoundError(OrchestraError):
    """The caller referenced a task id the orchestrator does not know."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class CollaborationNotFoundError(OrchestraError):
    """The caller referenced an unknown collaboration id."""

    def __init__(self, collaboration_id: str) -> None:
        super().__init__(f"Collaboration not found: {collaboration_id}")
        self.collaboration_id = collaboration_id


class CollaborationTimeoutError(OrchestraError):
    """A collaboration stayed ``in_progress`` past the configured timeout."""

    def __init__(self, collaboration_id: str, task_id: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Collaboration {collaboration_id} timed out after {timeout_seconds:g}s",
            {"task_id": task_id},
        )
        self.collaboration_id = collaboration_id
        self.task_id = task_id
        self.timeout_seconds = timeout_seconds


class NegotiationTimeoutError(OrchestraError):
    """A negotiation was not resolved before the configured timeout."""

    def __init__(self, negotiation_id: str, task_id: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Negotiation {negotiation_id} timed out after {timeout_seconds:g}s",
            {"task_id": task_id},
        )
        self.negotiation_id = negotiation_id
        self.task_id = task_id
        self.timeout_seconds = timeout_seconds
