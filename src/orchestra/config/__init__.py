"""Configuration models and loading for Orchestra."""

from orchestra.config.loader import (
    config_exists,
    create_default_config,
    ensure_config_dir,
    load_config,
)
from orchestra.config.models import (
    LoggingSettings,
    OrchestraConfig,
    OrchestratorConfig,
    PersistenceConfig,
    ProviderConfig,
    TickConfig,
    get_config_dir,
    get_default_config,
)

__all__ = [
    "LoggingSettings",
    "OrchestraConfig",
    "OrchestratorConfig",
    "PersistenceConfig",
    "ProviderConfig",
    "TickConfig",
    "config_exists",
    "create_default_config",
    "ensure_config_dir",
    "get_config_dir",
    "get_default_config",
    "load_config",
]
