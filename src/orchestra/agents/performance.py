"""Agent performance tracking.

After a successful task:
- ``tasks_completed`` increases by one
- ``success_rate`` nudges toward 1: ``min(sr + 0.01, 0.99)``
- ``average_time_ms`` is the running mean of durations
- ``quality_score`` is recomputed for the finished task
- ``user_rating`` becomes ``(user_rating + quality_score) / 2``

Failures leave ``success_rate`` untouched. Whether it should decay on
failure is an open product decision, pinned by a regression test.
"""

from __future__ import annotations

from orchestra.core.models import Agent, TaskResult
from orchestra.observability.logging import get_logger

log = get_logger(__name__)

SUCCESS_RATE_STEP = 0.01
SUCCESS_RATE_CAP = 0.99
TIME_BASELINE_MS = 300_000
TOKEN_BASELINE = 4_000


def quality_score(result: TaskResult, processing_ms: float) -> float:
    """Heuristic quality of one result, in [0, 1].

    Base 0.5, +0.3 on success, up to +0.2 for speed against a 5 minute
    baseline, up to +0.1 for token economy against 4000 tokens, and +0.1
    when the output length is plausible (100 < len < 10000).
    """
    score = 0.5
    if result.success:
        score += 0.3
    score += 0.2 * max(0.0, 1 - processing_ms / TIME_BASELINE_MS)
    score += 0.1 * max(0.0, 1 - result.tokens / TOKEN_BASELINE)
    if 100 < len(result.output) < 10_000:
        score += 0.1
    return min(score, 1.0)


class PerformanceTracker:
    """Applies task outcomes to an agent's rolling performance."""

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled

    def record_success(self, agent: Agent, duration_ms: float, result: TaskResult) -> None:
        if not self.enabled:
            return
        perf = agent.performance
        perf.tasks_completed += 1
        perf.success_rate = min(perf.success_rate + SUCCESS_RATE_STEP, SUCCESS_RATE_CAP)

        n = perf.tasks_completed
        perf.average_time_ms = (perf.average_time_ms * (n - 1) + duration_ms) / n

        perf.quality_score = quality_score(result, duration_ms)
        perf.user_rating = (perf.user_rating + perf.quality_score) / 2

        log.debug(
            "agents.performance.updated",
            agent_id=agent.id,
            tasks_completed=n,
            success_rate=perf.success_rate,
            quality_score=perf.quality_score,
        )

    def record_failure(self, agent: Agent, error: str) -> None:
        # Counters and success rate are left as they are on failure.
        if self.enabled:
            log.debug("agents.performance.failure_recorded", agent_id=agent.id, error=error)
