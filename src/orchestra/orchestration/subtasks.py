"""Plan parsing and subtask routing for hierarchical collaborations.

Parsing is a best-effort heuristic over model output. A plan with no
recognizable subtask lines yields an empty list, and the caller falls back
to single-agent execution.
"""

from __future__ import annotations

from collections.abc import Sequence
import re

from orchestra.agents.registry import ROLE_CODE, ROLE_DESIGN, ROLE_DEVOPS, ROLE_QA
from orchestra.core.models import Agent

# "1. text", "2: text" or "Subtask 3: text" at the start of a line.
_SUBTASK_LINE = re.compile(r"^\s*(?:subtask\s+)?(\d+)[:.]\s*(.+)$", re.IGNORECASE | re.MULTILINE)

SUBTASK_ROUTES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"design|\bui\b", re.IGNORECASE), ROLE_DESIGN),
    (re.compile(r"test|debug", re.IGNORECASE), ROLE_QA),
    (re.compile(r"deploy|\bci\b", re.IGNORECASE), ROLE_DEVOPS),
)
DEFAULT_SUBTASK_ROLE = ROLE_CODE


def parse_subtasks(plan: str) -> list[str]:
    """Subtask titles from a numbered plan, in plan order."""
    return [m.group(2).strip() for m in _SUBTASK_LINE.finditer(plan) if m.group(2).strip()]


def role_for_subtask(title: str) -> str:
    for pattern, role in SUBTASK_ROUTES:
        if pattern.search(title):
            return role
    return DEFAULT_SUBTASK_ROLE


def route_subtask(title: str, agents: Sequence[Agent]) -> Agent | None:
    """First active agent with the subtask's role, else the first active agent."""
    active = [a for a in agents if a.is_active]
    role = role_for_subtask(title)
    for agent in active:
        if agent.role == role:
            return agent
    return active[0] if active else None
