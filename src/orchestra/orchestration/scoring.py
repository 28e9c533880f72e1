"""Agent-task fit scoring and task heuristics.

Everything here is a pure function of agent, task and specialization
state: no randomness, no I/O. Ties between equal scores resolve to the
candidate seen first, i.e. registry order.

Score for a candidate agent:
    +10                 per capability in the task type's requirement set
    +5·sr + 3·q + 2·ur  performance (success rate, quality score, user rating)
    +5·expertise        per requirement, from the agent's specialization
    +15                 if the agent is among the caller's preferred agents
    +5                  if the agent is idle
    +10                 if the agent's role is compatible with the task type
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from orchestra.core.models import (
    Agent,
    AgentSpecialization,
    AgentStatus,
    CollaborationType,
    Complexity,
    Task,
    TaskPriority,
    TaskType,
)

# =============================================================================
# Lookup tables
# =============================================================================

TASK_REQUIREMENTS: dict[TaskType, tuple[str, ...]] = {
    TaskType.CODE: ("code-generation", "refactoring", "multiple-languages"),
    TaskType.DESIGN: ("ui-design", "ux-research", "prototyping"),
    TaskType.DEBUG: ("bug-detection", "performance-analysis", "testing"),
    TaskType.DEPLOY: ("deployment", "ci-cd", "infrastructure"),
    TaskType.ANALYZE: ("system-design", "architecture", "requirements-analysis"),
    TaskType.TEST: ("testing", "code-review", "bug-detection"),
}

ROLE_TASK_MATCHES: dict[str, frozenset[TaskType]] = {
    "Architecture & Planning": frozenset({TaskType.ANALYZE, TaskType.DESIGN}),
    "Code Generation": frozenset({TaskType.CODE, TaskType.TEST}),
    "UI/UX Design": frozenset({TaskType.DESIGN}),
    "Quality Assurance": frozenset({TaskType.DEBUG, TaskType.TEST}),
    "Deployment & CI/CD": frozenset({TaskType.DEPLOY}),
}

PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.URGENT: 4,
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}

_MINUTE_MS = 60_000

BASE_DURATION_MS: dict[TaskType, int] = {
    TaskType.CODE: 180 * _MINUTE_MS,
    TaskType.DESIGN: 240 * _MINUTE_MS,
    TaskType.DEBUG: 120 * _MINUTE_MS,
    TaskType.TEST: 90 * _MINUTE_MS,
    TaskType.DEPLOY: 60 * _MINUTE_MS,
    TaskType.ANALYZE: 150 * _MINUTE_MS,
}

TYPE_COMPLEXITY_WEIGHT: dict[TaskType, int] = {
    TaskType.CODE: 2,
    TaskType.DESIGN: 2,
    TaskType.DEBUG: 3,
    TaskType.DEPLOY: 1,
    TaskType.ANALYZE: 3,
    TaskType.TEST: 1,
}

PARTICIPANTS_BY_COMPLEXITY: dict[Complexity, int] = {
    Complexity.LOW: 1,
    Complexity.MEDIUM: 2,
    Complexity.HIGH: 3,
}

CAPABILITY_POINTS = 10.0
EXPERTISE_POINTS = 5.0
PREFERRED_BONUS = 15.0
AVAILABILITY_BONUS = 5.0
ROLE_MATCH_BONUS = 10.0
COLLABORATION_HISTORY_BONUS = 5.0
COMMUNICATION_BONUS = 3.0


# =============================================================================
# Scoring
# =============================================================================


def requirements_for(task_type: TaskType) -> tuple[str, ...]:
    return TASK_REQUIREMENTS.get(task_type, ())


def role_matches(role: str, task_type: TaskType) -> bool:
    return task_type in ROLE_TASK_MATCHES.get(role, frozenset())


def performance_points(agent: Agent) -> float:
    """``5·successRate + 3·qualityScore + 2·userRating``."""
    perf = agent.performance
    return 5 * perf.success_rate + 3 * perf.quality_score + 2 * perf.user_rating


def score_agent(
    agent: Agent,
    task: Task,
    specialization: AgentSpecialization | None = None,
    preferred_agents: Iterable[str] = (),
) -> float:
    """Fit score of ``agent`` for ``task``. Higher is better."""
    requirements = requirements_for(task.type)
    score = CAPABILITY_POINTS * sum(1 for req in requirements if req in agent.capabilities)
    score += performance_points(agent)
    if specialization is not None:
        score += EXPERTISE_POINTS * sum(specialization.expertise_for(req) for req in requirements)
    if agent.id in set(preferred_agents):
        score += PREFERRED_BONUS
    if agent.status == AgentStatus.IDLE:
        score += AVAILABILITY_BONUS
    if role_matches(agent.role, task.type):
        score += ROLE_MATCH_BONUS
    return score


def collaboration_score(
    agent: Agent,
    task: Task,
    specialization: AgentSpecialization | None = None,
    preferred_agents: Iterable[str] = (),
) -> float:
    """``score_agent`` plus collaboration-affinity bonuses."""
    score = score_agent(agent, task, specialization, preferred_agents)
    if specialization is not None and specialization.collaboration_history:
        score += COLLABORATION_HISTORY_BONUS
    if "communication" in agent.capabilities:
        score += COMMUNICATION_BONUS
    return score


def rank_agents(
    candidates: Sequence[Agent],
    scorer: Callable[[Agent], float],
) -> list[tuple[Agent, float]]:
    """Candidates with their scores, best first. Stable: ties keep input order."""
    scored = [(agent, scorer(agent)) for agent in candidates]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def select_best(
    candidates: Sequence[Agent],
    scorer: Callable[[Agent], float],
) -> Agent | None:
    """Highest-scoring candidate; the first seen wins ties."""
    ranked = rank_agents(candidates, scorer)
    return ranked[0][0] if ranked else None


# =============================================================================
# Task heuristics
# =============================================================================


def priority_rank(priority: TaskPriority) -> int:
    return PRIORITY_RANK[priority]


def estimate_duration_ms(task: Task, agent: Agent) -> int:
    """Advisory duration estimate in milliseconds.

    ``base × (0.8 + 0.2·avg/base) × (1 + 0.5·min(len(description)/500, 2))``
    """
    base = BASE_DURATION_MS.get(task.type, 120 * _MINUTE_MS)
    speed = 0.8 + 0.2 * (agent.performance.average_time_ms / base)
    length = 1 + 0.5 * min(len(task.description) / 500, 2)
    return round(base * speed * length)


def complexity_score(task: Task) -> int:
    score = 0
    if len(task.description) > 1000:
        score += 1
    if len(task.description) > 2000:
        score += 1
    if task.priority == TaskPriority.HIGH:
        score += 1
    elif task.priority == TaskPriority.URGENT:
        score += 2
    if len(task.dependencies) > 2:
        score += 1
    if len(task.dependencies) > 5:
        score += 1
    score += TYPE_COMPLEXITY_WEIGHT.get(task.type, 1)
    return score


def assess_complexity(task: Task) -> Complexity:
    """Bucket the task: score >= 5 high, >= 3 medium, otherwise low."""
    score = complexity_score(task)
    if score >= 5:
        return Complexity.HIGH
    if score >= 3:
        return Complexity.MEDIUM
    return Complexity.LOW


def determine_collaboration_type(task: Task) -> CollaborationType:
    """High complexity -> consensus; code/design -> parallel; deploy -> sequential."""
    if assess_complexity(task) == Complexity.HIGH:
        return CollaborationType.CONSENSUS
    if task.type in (TaskType.CODE, TaskType.DESIGN):
        return CollaborationType.PARALLEL
    if task.type == TaskType.DEPLOY:
        return CollaborationType.SEQUENTIAL
    return CollaborationType.HIERARCHICAL


def participant_count(task: Task) -> int:
    return PARTICIPANTS_BY_COMPLEXITY[assess_complexity(task)]
