"""Config command group for Orchestra.

Show the effective configuration and create the default config file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

from orchestra.cli.formatters.panels import print_error, print_success, print_warning
from orchestra.cli.formatters.tables import create_key_value_table, print_table
from orchestra.cli.runtime import ConfigOption
from orchestra.config import config_exists, create_default_config, get_config_dir, load_config
from orchestra.core.errors import ConfigError
from orchestra.core.security import is_sensitive_field, mask_api_key

app = typer.Typer(
    name="config",
    help="Manage Orchestra configuration.",
    no_args_is_help=True,
)


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            flat.update(_flatten(value, f"{name}."))
        elif is_sensitive_field(key) and isinstance(value, str):
            flat[name] = mask_api_key(value)
        else:
            flat[name] = value
    return flat


@app.command()
def show(
    section: Annotated[
        str | None,
        typer.Argument(help="Section to display (orchestrator, ticks, provider, ...)."),
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """Display the effective configuration.

    Shows every section if none is specified.
    """
    try:
        config = load_config(config_file)
    except ConfigError as e:
        print_error(e.message)
        raise typer.Exit(1) from e

    data = config.model_dump(mode="json")
    if section is not None:
        if section not in data:
            print_error(f"Unknown section: {section}. Choose from {', '.join(data)}")
            raise typer.Exit(1)
        data = {section: data[section]}
    else:
        data["database"] = str(config.database_path)

    print_table(create_key_value_table(_flatten(data), "Current Configuration"))


@app.command()
def init(
    config_dir: Annotated[
        Path | None,
        typer.Option("--dir", help="Directory to create config.yaml in.", file_okay=False),
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing config.yaml.")
    ] = False,
) -> None:
    """Write the default configuration to config.yaml."""
    target = config_dir or get_config_dir()
    if config_exists(target) and not force:
        print_warning(f"Configuration already exists at {target / 'config.yaml'}. Use --force.")
        raise typer.Exit(1)
    path = create_default_config(target, overwrite=force)
    print_success(f"Configuration written to {path}")


__all__ = ["app"]
