"""Unit tests for orchestra.orchestration.subtasks module."""

from __future__ import annotations

import pytest

from orchestra.agents.registry import (
    ROLE_CODE,
    ROLE_DESIGN,
    ROLE_DEVOPS,
    ROLE_QA,
    default_agents,
)
from orchestra.orchestration.subtasks import parse_subtasks, role_for_subtask, route_subtask


class TestParseSubtasks:
    """Tests for plan parsing."""

    def test_numbered_lines(self) -> None:
        plan = "Overview first.\n1. Sketch the schema\n2: Write the migration\n  3. Ship it"
        assert parse_subtasks(plan) == ["Sketch the schema", "Write the migration", "Ship it"]

    def test_subtask_prefix(self) -> None:
        plan = "Subtask 1: Design the form\nsubtask 2. Wire the API"
        assert parse_subtasks(plan) == ["Design the form", "Wire the API"]

    def test_no_numbered_lines(self) -> None:
        assert parse_subtasks("- bullet one\n- bullet two") == []


class TestRouting:
    """Tests for subtask role routing."""

    @pytest.mark.parametrize(
        ("title", "role"),
        [
            ("Design the login UI", ROLE_DESIGN),
            ("Polish the ui copy", ROLE_DESIGN),
            ("Write integration tests", ROLE_QA),
            ("Debug the session timeout", ROLE_QA),
            ("Deploy to staging", ROLE_DEVOPS),
            ("Add a CI job", ROLE_DEVOPS),
            ("Implement the session API", ROLE_CODE),
            ("Build the guide", ROLE_CODE),
        ],
    )
    def test_role_for_subtask(self, title: str, role: str) -> None:
        assert role_for_subtask(title) == role

    def test_routes_to_agent_with_role(self) -> None:
        agents = default_agents()
        assert route_subtask("Deploy to staging", agents).id == "devops"

    def test_inactive_role_falls_back_to_first_active(self) -> None:
        # The debugger starts inactive.
        agents = default_agents()
        assert route_subtask("Write integration tests", agents).id == "planner"

    def test_no_active_agents(self) -> None:
        agents = default_agents()
        for agent in agents:
            agent.is_active = False
        assert route_subtask("Deploy to staging", agents) is None
