"""Configuration loading and management for Orchestra.

Functions:
    load_config: Load configuration from ~/.orchestra/config.yaml (or defaults)
    create_default_config: Write the default config.yaml
    ensure_config_dir: Ensure ~/.orchestra/ and its subdirectories exist
    config_exists: Check whether a config file is present
"""

from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
import yaml

from orchestra.config.models import OrchestraConfig, get_config_dir, get_default_config
from orchestra.core.errors import ConfigError

# Provider API keys are read by litellm from the environment.
load_dotenv()
load_dotenv(Path.home() / ".orchestra" / ".env")


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Create the configuration directory with its ``data`` and ``logs`` children."""
    config_dir = config_dir or get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "data").mkdir(exist_ok=True)
    (config_dir / "logs").mkdir(exist_ok=True)
    return config_dir


def _format_validation_errors(error: PydanticValidationError) -> str:
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)


def create_default_config(config_dir: Path | None = None, *, overwrite: bool = False) -> Path:
    """Write the default config.yaml.

    Args:
        config_dir: Directory to write into. Defaults to ~/.orchestra/.
        overwrite: Replace an existing file.

    Returns:
        Path to the written config file.

    Raises:
        ConfigError: If the file exists and overwrite is False.
    """
    config_dir = ensure_config_dir(config_dir)
    config_path = config_dir / "config.yaml"

    if config_path.exists() and not overwrite:
        raise ConfigError(
            f"Configuration file already exists: {config_path}",
            config_file=str(config_path),
        )

    config_dict: dict[str, Any] = get_default_config().model_dump(mode="json")
    with config_path.open("w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return config_path


def load_config(config_path: Path | None = None) -> OrchestraConfig:
    """Load and validate configuration.

    A missing file at the default location yields the defaults; an
    explicitly requested path must exist.

    Args:
        config_path: Path to config file. Defaults to ~/.orchestra/config.yaml.

    Returns:
        Validated OrchestraConfig.

    Raises:
        ConfigError: If an explicit file is missing, malformed, or invalid.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = get_config_dir() / "config.yaml"

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}. "
                "Run `orchestra config init` to create default configuration.",
                config_file=str(config_path),
            )
        return get_default_config()

    try:
        with config_path.open() as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse configuration file: {e}",
            config_file=str(config_path),
            details={"yaml_error": str(e)},
        ) from e

    if config_dict is None:
        config_dict = {}
    if not isinstance(config_dict, dict):
        raise ConfigError(
            "Configuration root must be a mapping",
            config_file=str(config_path),
        )

    try:
        config = OrchestraConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        raise ConfigError(
            "Configuration validation failed:\n" + _format_validation_errors(e),
            config_file=str(config_path),
            details={"validation_errors": e.errors()},
        ) from e
    return config.model_copy(update={"config_dir": config_path.parent})


def config_exists(config_dir: Path | None = None) -> bool:
    return ((config_dir or get_config_dir()) / "config.yaml").exists()
