"""Plumbing shared by commands that need a live orchestrator.

Each command loads the configuration, configures logging from it, and
works against an orchestrator that is initialized on entry and closed
(snapshots saved, storage released) on exit.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any

import typer

from orchestra.cli.formatters.panels import print_error
from orchestra.config import OrchestraConfig, get_config_dir, load_config
from orchestra.config.models import LoggingSettings
from orchestra.core.errors import OrchestraError
from orchestra.observability.logging import LoggingConfig, LogMode, configure_logging
from orchestra.orchestration.orchestrator import Orchestrator, create_orchestrator

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to config.yaml (default: ~/.orchestra/config.yaml).",
        dir_okay=False,
    ),
]


def logging_config(settings: LoggingSettings, config_dir: Path | None = None) -> LoggingConfig:
    """Translate the config.yaml logging section into a ``LoggingConfig``."""
    return LoggingConfig(
        mode=LogMode(settings.mode),
        log_level=settings.level.upper(),
        log_dir=(config_dir or get_config_dir()) / "logs",
        enable_file_logging=settings.file_logging,
    )


def setup(config_path: Path | None) -> OrchestraConfig:
    """Load configuration and configure logging from it.

    Raises:
        ConfigError: If the configuration cannot be loaded.
    """
    config = load_config(config_path)
    configure_logging(logging_config(config.logging, config.config_dir))
    return config


@asynccontextmanager
async def open_orchestrator(config_path: Path | None = None) -> AsyncIterator[Orchestrator]:
    """Initialized orchestrator for one command; closed on exit."""
    config = setup(config_path)
    async with create_orchestrator(config) as orchestrator:
        yield orchestrator


def run[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion, turning Orchestra errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except OrchestraError as e:
        print_error(e.message)
        raise typer.Exit(1) from e


__all__ = ["ConfigOption", "logging_config", "open_orchestrator", "run", "setup"]
