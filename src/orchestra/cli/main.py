"""Orchestra CLI main entry point.

Defines the main Typer application and registers every command group
and top-level command.
"""

from typing import Annotated

import typer

from orchestra import __version__
from orchestra.cli.commands import agents, config, stats, tasks
from orchestra.cli.formatters import console

app = typer.Typer(
    name="orchestra",
    help="Orchestra - Multi-Agent Task Orchestration",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(agents.app, name="agents")
app.add_typer(tasks.app, name="tasks")
app.add_typer(config.app, name="config")
app.command("submit")(tasks.submit)
app.command("stats")(stats.stats)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]Orchestra[/] version [green]{__version__}[/]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Orchestra - Multi-Agent Task Orchestration.

    Specialized AI agents take tasks on their own or collaborate on them
    sequentially, in parallel, hierarchically, or by consensus.

    Use [bold cyan]orchestra COMMAND --help[/] for command-specific help.
    """


__all__ = ["app", "main"]
