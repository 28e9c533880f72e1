"""Rich formatters for CLI output.

A shared Console instance and the semantic theme every command prints
through.

Semantic Colors:
- green: success
- yellow: warning
- red: error
- blue: info
"""

from rich.console import Console
from rich.theme import Theme

ORCHESTRA_THEME = Theme(
    {
        "success": "green",
        "warning": "yellow",
        "error": "red",
        "info": "blue",
        "muted": "dim",
        "highlight": "bold cyan",
    }
)

console = Console(theme=ORCHESTRA_THEME, force_terminal=True)

__all__ = ["console", "ORCHESTRA_THEME"]
