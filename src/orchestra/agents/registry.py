"""Agent registry and the built-in agent templates.

This module provides:
- Five built-in templates (planner, coder, designer, debugger, devops)
- The in-memory registry the scheduler and coordinator read from
- Cloning a template into a new agent under a fresh id

Usage:
    registry = AgentRegistry()
    registry.bootstrap_defaults()

    coder = registry.get("coder")
    registry.set_active("debugger", True)
    registry.update_config("coder", {"temperature": 0.1})
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from orchestra.core.errors import AgentNotFoundError, ValidationError
from orchestra.core.models import Agent, AgentConfig, AgentPerformance, AgentStatus
from orchestra.observability.logging import get_logger

log = get_logger(__name__)


# =============================================================================
# Roles
# =============================================================================

ROLE_PLANNING = "Architecture & Planning"
ROLE_CODE = "Code Generation"
ROLE_DESIGN = "UI/UX Design"
ROLE_QA = "Quality Assurance"
ROLE_DEVOPS = "Deployment & CI/CD"


# =============================================================================
# Built-in Templates
# =============================================================================


@dataclass(frozen=True, slots=True)
class AgentTemplate:
    """Immutable description of a built-in agent.

    Attributes:
        id: Template id, also the id of the default agent built from it.
        name: Display name.
        role: Role label.
        description: Human-readable description.
        capabilities: Capability tags.
        is_active: Whether the default agent starts active.
        success_rate: Seed success rate.
        average_time_ms: Seed average task time.
        quality_score: Seed quality score.
        user_rating: Seed user rating.
        primary_provider: Provider reference.
        fallback_providers: Provider references tried by the adapter on failure.
        temperature: Sampling temperature.
        max_tokens: Generation cap.
        system_prompt: Persona prompt.
        tools: Tool tags advertised in the persona.
    """

    id: str
    name: str
    role: str
    description: str
    capabilities: tuple[str, ...]
    is_active: bool
    success_rate: float
    average_time_ms: float
    quality_score: float
    user_rating: float
    primary_provider: str
    fallback_providers: tuple[str, ...]
    temperature: float
    max_tokens: int
    system_prompt: str
    tools: tuple[str, ...]

    def build(self, agent_id: str | None = None) -> Agent:
        """Instantiate a fresh, idle agent from this template."""
        return Agent(
            id=agent_id or self.id,
            name=self.name,
            role=self.role,
            description=self.description,
            capabilities=list(self.capabilities),
            is_active=self.is_active,
            performance=AgentPerformance(
                success_rate=self.success_rate,
                average_time_ms=self.average_time_ms,
                quality_score=self.quality_score,
                user_rating=self.user_rating,
            ),
            config=AgentConfig(
                primary_provider=self.primary_provider,
                fallback_providers=list(self.fallback_providers),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                system_prompt=self.system_prompt,
                tools=list(self.tools),
            ),
        )


_PLANNER_PROMPT = """You are a senior software architect and technical planner.

Your strengths:
1. System architecture: split complex requirements into components, design for
   scale and maintainability, write technical specifications.
2. Development planning: build roadmaps, identify technical risks and their
   mitigations, define phases and milestones.
3. Technology selection: recommend frameworks and weigh the trade-offs between
   approaches against the project's requirements.

Always answer with structured, actionable plans and explain your reasoning."""

_CODER_PROMPT = """You are an expert software developer fluent in many languages and frameworks.

Your strengths:
1. Code generation: clean, efficient, maintainable code with proper error
   handling and input validation.
2. Refactoring: clearer structure, better performance, less technical debt.
3. Breadth: Python, TypeScript, Java, Go, Rust and their common frameworks,
   databases and cloud platforms.

Write well-documented code and say how it should be tested."""

_DESIGNER_PROMPT = """You are a senior UI/UX designer focused on usable, accessible products.

Your strengths:
1. Interface design: intuitive, responsive layouts and consistent design systems.
2. Experience design: user needs, user flows and journey maps, accessibility and
   inclusive design.
3. Handoff: component specifications, design tokens and reusable components
   developers can implement precisely.

Put the user at the centre of every decision."""

_DEBUGGER_PROMPT = """You are a senior quality assurance engineer and code reviewer.

Your strengths:
1. Bug detection: logic errors, edge cases, failure modes, security
   vulnerabilities and performance bottlenecks.
2. Code review: standards, code smells, error handling and validation.
3. Testing strategy: test cases and scenarios, frameworks and automation.

Report each finding with its severity and a specific recommended fix."""

_DEVOPS_PROMPT = """You are a senior DevOps engineer for cloud infrastructure and releases.

Your strengths:
1. Delivery: automated build, test and deployment pipelines, release and
   rollback procedures.
2. Infrastructure: scalable cloud architecture, containers and orchestration,
   monitoring and alerting.
3. Operations: performance and reliability tuning, security and compliance,
   production troubleshooting.

Favour automation and reproducibility in everything you propose."""


BUILTIN_TEMPLATES: dict[str, AgentTemplate] = {
    "planner": AgentTemplate(
        id="planner",
        name="Planner",
        role=ROLE_PLANNING,
        description="Designs system architecture and breaks work into plans",
        capabilities=("system-design", "architecture", "planning", "requirements-analysis"),
        is_active=True,
        success_rate=0.95,
        average_time_ms=300_000,
        quality_score=0.92,
        user_rating=0.94,
        primary_provider="gemini",
        fallback_providers=("openai", "claude"),
        temperature=0.3,
        max_tokens=4096,
        system_prompt=_PLANNER_PROMPT,
        tools=("diagram-generator", "requirement-analyzer", "technology-evaluator"),
    ),
    "coder": AgentTemplate(
        id="coder",
        name="Coder",
        role=ROLE_CODE,
        description="Generates, refactors, and optimizes code across languages",
        capabilities=("code-generation", "refactoring", "optimization", "multiple-languages"),
        is_active=True,
        success_rate=0.89,
        average_time_ms=180_000,
        quality_score=0.91,
        user_rating=0.87,
        primary_provider="openai",
        fallback_providers=("claude", "gemini"),
        temperature=0.2,
        max_tokens=8192,
        system_prompt=_CODER_PROMPT,
        tools=("code-analyzer", "syntax-checker", "performance-profiler"),
    ),
    "designer": AgentTemplate(
        id="designer",
        name="Designer",
        role=ROLE_DESIGN,
        description="Creates interfaces and user experience flows",
        capabilities=("ui-design", "ux-research", "prototyping", "accessibility"),
        is_active=True,
        success_rate=0.96,
        average_time_ms=420_000,
        quality_score=0.94,
        user_rating=0.93,
        primary_provider="claude",
        fallback_providers=("gemini", "openai"),
        temperature=0.7,
        max_tokens=4096,
        system_prompt=_DESIGNER_PROMPT,
        tools=("design-system-generator", "accessibility-checker", "user-flow-creator"),
    ),
    "debugger": AgentTemplate(
        id="debugger",
        name="Debugger",
        role=ROLE_QA,
        description="Finds bugs, performance issues, and code quality problems",
        capabilities=("bug-detection", "performance-analysis", "testing", "code-review"),
        is_active=False,
        success_rate=0.87,
        average_time_ms=240_000,
        quality_score=0.88,
        user_rating=0.85,
        primary_provider="openai",
        fallback_providers=("gemini", "claude"),
        temperature=0.1,
        max_tokens=6144,
        system_prompt=_DEBUGGER_PROMPT,
        tools=("static-analyzer", "vulnerability-scanner", "performance-monitor"),
    ),
    "devops": AgentTemplate(
        id="devops",
        name="DevOps",
        role=ROLE_DEVOPS,
        description="Handles deployment, infrastructure, and continuous integration",
        capabilities=("deployment", "ci-cd", "infrastructure", "monitoring"),
        is_active=True,
        success_rate=0.91,
        average_time_ms=360_000,
        quality_score=0.89,
        user_rating=0.88,
        primary_provider="gemini",
        fallback_providers=("openai", "claude"),
        temperature=0.2,
        max_tokens=4096,
        system_prompt=_DEVOPS_PROMPT,
        tools=("deployment-manager", "monitoring-setup", "security-scanner"),
    ),
}


def default_agents() -> list[Agent]:
    """Fresh copies of the five built-in agents, in canonical order."""
    return [template.build() for template in BUILTIN_TEMPLATES.values()]


# =============================================================================
# Registry
# =============================================================================


class AgentRegistry:
    """In-memory set of agents keyed by id.

    Iteration order is registration order; scoring ties resolve to the
    agent registered first.
    """

    def __init__(self, agents: list[Agent] | None = None) -> None:
        self._agents: dict[str, Agent] = {}
        for agent in agents or []:
            self.register(agent)

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def register(self, agent: Agent) -> Agent:
        """Add or replace an agent."""
        self._agents[agent.id] = agent
        log.debug("agents.registry.registered", agent_id=agent.id, role=agent.role)
        return agent

    def bootstrap_defaults(self) -> list[Agent]:
        """Register the built-in agents. Returns the agents registered."""
        agents = default_agents()
        for agent in agents:
            self.register(agent)
        log.info("agents.registry.bootstrapped", count=len(agents))
        return agents

    def get(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    def require(self, agent_id: str) -> Agent:
        """Return the agent or raise AgentNotFoundError."""
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    def list_agents(self) -> list[Agent]:
        return list(self._agents.values())

    def available(self) -> list[Agent]:
        """Active, idle agents in registration order."""
        return [a for a in self._agents.values() if a.is_available]

    def active(self) -> list[Agent]:
        return [a for a in self._agents.values() if a.is_active]

    def by_role(self, role: str) -> list[Agent]:
        return [a for a in self._agents.values() if a.role == role]

    def set_active(self, agent_id: str, active: bool) -> Agent:
        """Activate or deactivate an agent.

        Deactivating a working agent returns it to ``idle`` and clears its
        current task; the in-flight call is not interrupted. Idempotent.

        Raises:
            AgentNotFoundError: If the id is unknown.
        """
        agent = self.require(agent_id)
        agent.is_active = active
        if not active and agent.status == AgentStatus.WORKING:
            agent.release(AgentStatus.IDLE)
        log.info("agents.registry.toggled", agent_id=agent_id, is_active=active)
        return agent

    def update_config(self, agent_id: str, partial: dict[str, Any]) -> Agent:
        """Merge ``partial`` into the agent's config.

        Raises:
            AgentNotFoundError: If the id is unknown (nothing is changed).
            ValidationError: If a key is unknown or a value is invalid.
        """
        agent = self.require(agent_id)
        merged = {**agent.config.model_dump(), **partial}
        try:
            agent.config = AgentConfig.model_validate(merged)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(x) for x in first["loc"])
            raise ValidationError(
                f"Invalid agent config: {first['msg']}",
                field=field,
                value=partial.get(field),
                details={"agent_id": agent_id},
            ) from e
        log.info("agents.registry.config_updated", agent_id=agent_id, keys=sorted(partial))
        return agent

    def create_agent(
        self,
        template_id: str,
        config_overrides: dict[str, Any] | None = None,
        *,
        agent_id: str | None = None,
    ) -> Agent:
        """Clone a built-in template into a new, registered agent.

        Args:
            template_id: Key of ``BUILTIN_TEMPLATES``.
            config_overrides: Partial config merged over the template's.
            agent_id: Explicit id; defaults to ``<template>_<suffix>``.

        Raises:
            ValidationError: Unknown template, taken id, or invalid overrides.
        """
        template = BUILTIN_TEMPLATES.get(template_id)
        if template is None:
            raise ValidationError(
                f"Unknown agent template: {template_id}",
                field="template_id",
                value=template_id,
                details={"available": sorted(BUILTIN_TEMPLATES)},
            )
        new_id = agent_id or f"{template_id}_{uuid4().hex[:8]}"
        if new_id in self._agents:
            raise ValidationError(f"Agent id already registered: {new_id}", field="agent_id")

        agent = template.build(new_id)
        agent.is_active = True
        self.register(agent)
        if config_overrides:
            try:
                self.update_config(new_id, config_overrides)
            except ValidationError:
                del self._agents[new_id]
                raise
        log.info("agents.registry.created", agent_id=new_id, template_id=template_id)
        return agent
