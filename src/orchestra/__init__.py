"""Orchestra - Multi-Agent Task Orchestration.

Routes tasks to specialized AI agents, runs multi-agent collaborations
(sequential review, parallel synthesis, hierarchical decomposition,
consensus negotiation), and learns agent specializations over time.

Example:
    # Using CLI
    orchestra agents list
    orchestra submit "Add login form" --type design --collaborate

    # Using Python
    from orchestra.orchestration import Orchestrator
    from orchestra.providers import LiteLLMAdapter
"""

__version__ = "0.1.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the Orchestra CLI.

    This function invokes the Typer app from orchestra.cli.main.
    """
    from orchestra.cli.main import app

    app()
