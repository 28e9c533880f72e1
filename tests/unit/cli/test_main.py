"""Unit tests for the Orchestra CLI."""

from collections.abc import Callable
from pathlib import Path
import re
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from orchestra import __version__
from orchestra.cli.main import app
from orchestra.config.models import OrchestraConfig
from orchestra.core.errors import ProviderError
from orchestra.core.types import Result
from orchestra.orchestration.orchestrator import Orchestrator
from orchestra.persistence.base import InMemoryStorage

runner = CliRunner()

CONFIG_YAML = """\
persistence:
  enabled: false
logging:
  level: error
  file_logging: false
ticks:
  pacing_delay: 0
"""


def plain(output: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", output)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture
def wire(
    monkeypatch: pytest.MonkeyPatch, storage: InMemoryStorage
) -> Callable[[AsyncMock], None]:
    """Route CLI commands to an orchestrator on shared in-memory storage."""

    def _wire(llm: AsyncMock) -> None:
        def factory(config: OrchestraConfig) -> Orchestrator:
            return Orchestrator(llm, config=config, storage=storage)

        monkeypatch.setattr("orchestra.cli.runtime.create_orchestrator", factory)

    return _wire


@pytest.fixture
def cli(
    config_file: Path, wire: Callable[[AsyncMock], None], llm: AsyncMock
) -> Callable[..., tuple[int, str]]:
    """Invoke a command with the test config; returns (exit code, plain output)."""
    wire(llm)

    def _invoke(*args: str) -> tuple[int, str]:
        result = runner.invoke(app, [*args, "--config", str(config_file)])
        return result.exit_code, plain(result.output)

    return _invoke


class TestMainApp:
    """Test the top-level application."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in plain(result.output)

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        output = plain(result.output)
        for group in ("agents", "tasks", "config", "submit", "stats"):
            assert group in output


class TestSubmitCommand:
    """Test `orchestra submit`."""

    def test_submit_and_execute(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("submit", "Build login")

        assert code == 0
        assert "assigned to coder" in output
        assert "Solution from gpt-4o" in output
        assert "Tokens" in output

    def test_submit_without_waiting(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli(
            "submit", "Ship release", "--type", "deploy", "--priority", "urgent", "--no-wait"
        )

        assert code == 0
        assert "assigned to devops" in output
        assert "is in_progress" in output

    def test_force_unknown_agent(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("submit", "Build login", "--force", "ghost")
        assert code == 1
        assert "Agent not found: ghost" in output

    def test_failed_task_exits_nonzero(
        self,
        config_file: Path,
        wire: Callable[[AsyncMock], None],
        make_llm: Callable[..., AsyncMock],
    ) -> None:
        wire(make_llm(lambda messages, config: Result.err(ProviderError("boom"))))

        result = runner.invoke(app, ["submit", "Build login", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "boom" in plain(result.output)


class TestTasksCommands:
    """Test the tasks group."""

    def test_list_empty(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("tasks", "list")
        assert code == 0
        assert "No tasks found" in output

    def test_list_after_submit(self, cli: Callable[..., tuple[int, str]]) -> None:
        """A task left unexecuted by an earlier invocation is listed as pending."""
        cli("submit", "Fix bug", "--no-wait")

        code, output = cli("tasks", "list", "--status", "pending")

        assert code == 0
        assert "Fix bug" in output

    def test_resubmit_runs_task_left_by_earlier_invocation(
        self, cli: Callable[..., tuple[int, str]]
    ) -> None:
        _, output = cli("submit", "Fix bug", "--no-wait")
        match = re.search(r"task_[0-9a-f]{12}", output)
        assert match is not None

        code, output = cli("tasks", "resubmit", match.group(0))

        assert code == 0
        assert "assigned to coder" in output
        assert "Solution from gpt-4o" in output

    def test_resubmit_unknown(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("tasks", "resubmit", "task_missing")
        assert code == 1
        assert "Task not found: task_missing" in output

    def test_cancel_unknown(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("tasks", "cancel", "task_missing")
        assert code == 1
        assert "Task not found: task_missing" in output


class TestAgentsCommands:
    """Test the agents group."""

    def test_list(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("agents", "list")
        assert code == 0
        for agent_id in ("planner", "coder", "designer", "debugger", "devops"):
            assert agent_id in output

    def test_show(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("agents", "show", "coder")
        assert code == 0
        assert "Coder" in output
        assert "openai" in output

    def test_toggle_flips(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("agents", "toggle", "debugger")
        assert code == 0
        assert "Agent debugger activated" in output

        _, output = cli("agents", "toggle", "debugger", "--off")
        assert "Agent debugger deactivated" in output

    def test_configure(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("agents", "configure", "coder", "--temperature", "0.1")
        assert code == 0
        assert "Updated temperature for agent coder" in output

    def test_configure_nothing(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("agents", "configure", "coder")
        assert code == 1
        assert "Nothing to update" in output

    def test_configure_invalid_value(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, _ = cli("agents", "configure", "coder", "--temperature", "5")
        assert code == 1


class TestStatsCommand:
    """Test `orchestra stats`."""

    def test_stats(self, cli: Callable[..., tuple[int, str]]) -> None:
        code, output = cli("stats")
        assert code == 0
        assert "Total agents" in output
        assert "Learning events" in output


class TestConfigCommands:
    """Test the config group."""

    def test_show(self, config_file: Path) -> None:
        result = runner.invoke(app, ["config", "show", "--config", str(config_file)])
        output = plain(result.output)
        assert result.exit_code == 0
        assert "orchestrator.max_concurrent_tasks" in output
        assert "database" in output

    def test_show_section(self, config_file: Path) -> None:
        result = runner.invoke(app, ["config", "show", "ticks", "--config", str(config_file)])
        output = plain(result.output)
        assert "ticks.pacing_delay" in output
        assert "orchestrator" not in output

    def test_show_unknown_section(self, config_file: Path) -> None:
        result = runner.invoke(app, ["config", "show", "nope", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "Unknown section" in plain(result.output)

    def test_show_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "show", "--config", str(tmp_path / "x.yaml")])
        assert result.exit_code == 1

    def test_init(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "init", "--dir", str(tmp_path)])
        assert result.exit_code == 0
        assert (tmp_path / "config.yaml").exists()

        again = runner.invoke(app, ["config", "init", "--dir", str(tmp_path)])
        assert again.exit_code == 1
        assert "already exists" in plain(again.output)
