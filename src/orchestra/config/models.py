"""Pydantic models for Orchestra configuration.

Classes:
    OrchestratorConfig: Scheduling, collaboration and learning behaviour
    TickConfig: Background loop intervals and queue pacing
    ProviderConfig: Language-model defaults and provider reference aliases
    PersistenceConfig: Storage configuration
    LoggingSettings: Logging configuration
    OrchestraConfig: Top-level configuration combining all sections
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class OrchestratorConfig(BaseModel, frozen=True):
    """Orchestrator behaviour, updatable at runtime.

    Attributes:
        max_concurrent_tasks: Tasks a queue drain executes at once.
        collaboration_timeout: Seconds a collaboration may stay in_progress.
        negotiation_timeout: Seconds a negotiation may stay unresolved.
        enable_auto_coordination: Allow collaborations at all.
        enable_learning: Run the specialization learning pass during maintenance.
        performance_tracking: Update agent performance after each task.
    """

    max_concurrent_tasks: int = Field(default=5, ge=1)
    collaboration_timeout: float = Field(default=300.0, gt=0)
    negotiation_timeout: float = Field(default=120.0, gt=0)
    enable_auto_coordination: bool = True
    enable_learning: bool = True
    performance_tracking: bool = True


class TickConfig(BaseModel, frozen=True):
    """Background loop intervals, in seconds.

    Attributes:
        queue_interval: Task queue drain interval.
        message_interval: Message bus drain interval.
        maintenance_interval: Maintenance sweep interval.
        pacing_delay: Delay between task starts within one queue drain.
    """

    queue_interval: float = Field(default=30.0, gt=0)
    message_interval: float = Field(default=1.0, gt=0)
    maintenance_interval: float = Field(default=300.0, gt=0)
    pacing_delay: float = Field(default=1.0, ge=0)


class ProviderConfig(BaseModel, frozen=True):
    """Language-model provider configuration.

    Attributes:
        default_model: Model used when a provider reference has no alias.
        api_base: Optional API base URL passed to the adapter.
        timeout: Per-request timeout in seconds.
        max_retries: Retry attempts for transient provider errors.
        model_aliases: Provider reference (as used by agent configs) to model id.
    """

    default_model: str = "openrouter/google/gemini-2.0-flash-001"
    api_base: str | None = None
    timeout: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    model_aliases: dict[str, str] = Field(
        default_factory=lambda: {
            "gemini": "gemini/gemini-2.0-flash",
            "openai": "gpt-4o",
            "claude": "anthropic/claude-sonnet-4-20250514",
        }
    )

    def resolve_model(self, provider_ref: str) -> str:
        """Map a provider reference to a concrete model id.

        Unknown references containing a ``/`` are treated as model ids;
        anything else falls back to ``default_model``.
        """
        if provider_ref in self.model_aliases:
            return self.model_aliases[provider_ref]
        if "/" in provider_ref:
            return provider_ref
        return self.default_model


class PersistenceConfig(BaseModel, frozen=True):
    """Persistence configuration.

    Attributes:
        enabled: Use SQLite storage; when False state lives in memory only.
        database_path: SQLite path, relative to the config dir unless absolute.
    """

    enabled: bool = True
    database_path: str = "data/orchestra.db"


class LoggingSettings(BaseModel, frozen=True):
    """Logging configuration as stored in config.yaml.

    Attributes:
        level: Minimum level to emit.
        mode: dev (console) or prod (JSON).
        file_logging: Whether to write rotating log files.
    """

    level: Literal["debug", "info", "warning", "error"] = "info"
    mode: Literal["dev", "prod"] = "dev"
    file_logging: bool = True


class OrchestraConfig(BaseModel, frozen=True):
    """Top-level Orchestra configuration, validated from config.yaml."""

    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    ticks: TickConfig = Field(default_factory=TickConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    config_dir: Path | None = Field(default=None, exclude=True)

    @field_validator("config_dir")
    @classmethod
    def expand_config_dir(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @property
    def database_path(self) -> Path:
        """Absolute SQLite path resolved against the config directory."""
        path = Path(self.persistence.database_path).expanduser()
        if path.is_absolute():
            return path
        return (self.config_dir or get_config_dir()) / path


def get_default_config() -> OrchestraConfig:
    return OrchestraConfig()


def get_config_dir() -> Path:
    """Return the Orchestra configuration directory (``~/.orchestra``)."""
    return Path.home() / ".orchestra"
