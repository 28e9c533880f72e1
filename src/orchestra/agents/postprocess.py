"""Role-aware metadata extraction from model output.

These are best-effort regex heuristics over free text. They annotate a
result; they never change its output or success flag.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
import re
from typing import Any

from orchestra.agents.registry import ROLE_CODE, ROLE_DESIGN, ROLE_DEVOPS, ROLE_QA
from orchestra.core.models import Agent, TaskResult

_CODE_BLOCK = re.compile(r"```(\w+)?\n(.*?)```", re.DOTALL)
_COMPONENT = re.compile(r"\bcomponents?\s*[:\-]\s*([^\n]+)", re.IGNORECASE)
_PATTERN = re.compile(r"\bpatterns?\s*[:\-]\s*([^\n]+)", re.IGNORECASE)
_ISSUE = re.compile(r"\bissues?\s*[:\-]\s*([^\n]+)", re.IGNORECASE)
_SEVERITY = re.compile(r"\bseverity\s*[:\-]\s*([^\n]+)", re.IGNORECASE)
_FIX = re.compile(r"\bfix(?:es)?\s*[:\-]\s*([^\n]+)", re.IGNORECASE)

ACCESSIBILITY_KEYWORDS = (
    "accessibility", "wcag", "aria", "screen reader", "keyboard navigation", "contrast",
)
AUTOMATION_KEYWORDS = ("automate", "automation", "script", "pipeline", "ci/cd", "continuous")
SECURITY_KEYWORDS = (
    "security", "authentication", "authorization", "encryption", "firewall", "ssl",
)


def extract_code_blocks(text: str) -> list[dict[str, str]]:
    """Fenced code blocks as ``{"language", "code"}`` dicts."""
    return [
        {"language": m.group(1) or "unknown", "code": m.group(2).strip()}
        for m in _CODE_BLOCK.finditer(text)
    ]


def _captures(pattern: re.Pattern[str], text: str) -> list[str]:
    return [m.group(1).strip() for m in pattern.finditer(text)]


def _keyword_hits(text: str, keywords: tuple[str, ...]) -> int:
    lowered = text.lower()
    return sum(lowered.count(keyword) for keyword in keywords)


def _code(result: TaskResult) -> dict[str, Any]:
    blocks = extract_code_blocks(result.output)
    result.artifacts.extend({"kind": "code", **block} for block in blocks)
    return {
        "code_blocks": len(blocks),
        "languages": list(dict.fromkeys(b["language"] for b in blocks)),
        "estimated_lines": sum(len(b["code"].split("\n")) for b in blocks),
    }


def _design(result: TaskResult) -> dict[str, Any]:
    return {
        "design_components": _captures(_COMPONENT, result.output),
        "design_patterns": _captures(_PATTERN, result.output),
        "accessibility_score": min(_keyword_hits(result.output, ACCESSIBILITY_KEYWORDS) * 0.2, 1.0),
    }


def _debug(result: TaskResult) -> dict[str, Any]:
    issues = _captures(_ISSUE, result.output)
    severities = _captures(_SEVERITY, result.output)
    paired = min(len(issues), len(severities))
    distribution = Counter(s.lower() for s in severities[:paired])
    return {
        "issues_found": paired,
        "fixes_provided": len(_captures(_FIX, result.output)),
        "severity_distribution": dict(distribution),
    }


def _devops(result: TaskResult) -> dict[str, Any]:
    return {
        "infrastructure_components": len(_captures(_COMPONENT, result.output)),
        "automation_level": min(_keyword_hits(result.output, AUTOMATION_KEYWORDS) * 0.25, 1.0),
        "security_measures": _keyword_hits(result.output, SECURITY_KEYWORDS),
    }


_BY_ROLE: dict[str, Callable[[TaskResult], dict[str, Any]]] = {
    ROLE_CODE: _code,
    ROLE_DESIGN: _design,
    ROLE_QA: _debug,
    ROLE_DEVOPS: _devops,
}


def postprocess(agent: Agent, result: TaskResult) -> TaskResult:
    """Annotate a successful result with metadata for the agent's role."""
    extractor = _BY_ROLE.get(agent.role)
    if extractor is None or not result.success:
        return result
    result.metadata.update(extractor(result))
    return result
