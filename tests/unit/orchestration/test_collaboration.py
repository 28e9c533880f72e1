"""Unit tests for orchestra.orchestration.collaboration module."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from orchestra.agents.context import ContextAssembler
from orchestra.agents.executor import AgentExecutor
from orchestra.config.models import ProviderConfig
from orchestra.core.errors import (
    CollaborationTimeoutError,
    NoAvailableAgentError,
    ProviderError,
    ValidationError,
)
from orchestra.core.models import (
    Collaboration,
    CollaborationStatus,
    CollaborationType,
    MessageType,
    Task,
    TaskPriority,
    TaskType,
)
from orchestra.core.types import Result
from orchestra.orchestration.bus import MessageBus
from orchestra.orchestration.collaboration import CollaborationCoordinator
from orchestra.orchestration.negotiation import NegotiationResolver
from orchestra.orchestration.state import OrchestratorState


def build_coordinator(
    state: OrchestratorState, llm: AsyncMock
) -> tuple[CollaborationCoordinator, MessageBus]:
    executor = AgentExecutor(
        llm, ContextAssembler(state.storage), ProviderConfig(), state.specializations
    )
    bus = MessageBus(state)
    resolver = NegotiationResolver(state, executor)
    return CollaborationCoordinator(state, executor, bus, resolver), bus


def open_collaboration(
    state: OrchestratorState,
    task: Task,
    type: CollaborationType,
    participants: list[str],
) -> Collaboration:
    collaboration = Collaboration(task_id=task.id, participants=participants, type=type)
    state.collaborations[collaboration.id] = collaboration
    return collaboration


class TestSelectParticipants:
    """Tests for participant selection."""

    def test_low_complexity_selects_one(self, state: OrchestratorState, llm: AsyncMock) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Add login", type=TaskType.CODE)

        assert [a.id for a in coordinator.select_participants(task)] == ["coder"]

    def test_high_complexity_selects_three(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Evaluate", type=TaskType.ANALYZE, priority=TaskPriority.URGENT)

        selected = [a.id for a in coordinator.select_participants(task)]

        assert selected == ["planner", "designer", "devops"]

    def test_count_capped_by_available_agents(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        for agent_id in ("planner", "designer", "devops"):
            state.registry.set_active(agent_id, False)
        task = Task(title="Evaluate", type=TaskType.ANALYZE, priority=TaskPriority.URGENT)

        assert [a.id for a in coordinator.select_participants(task)] == ["coder"]


class TestInitiate:
    """Tests for opening collaborations."""

    async def test_initiate_records_and_announces(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, bus = build_coordinator(state, llm)
        task = Task(title="Ship release", type=TaskType.DEPLOY, priority=TaskPriority.URGENT)

        collaboration = await coordinator.initiate(task)

        assert collaboration.type == CollaborationType.SEQUENTIAL
        assert collaboration.status == CollaborationStatus.INITIATED
        assert collaboration.primary == "devops"
        assert state.collaborations[collaboration.id] is collaboration
        assert bus.pending == 1

        await bus.drain()

        assert len(collaboration.messages) == 1
        assert collaboration.messages[0].type == MessageType.COORDINATION

    async def test_second_active_collaboration_rejected(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Ship release", type=TaskType.DEPLOY)
        await coordinator.initiate(task)

        with pytest.raises(ValidationError):
            await coordinator.initiate(task)

    async def test_no_available_agents(self, state: OrchestratorState, llm: AsyncMock) -> None:
        coordinator, _ = build_coordinator(state, llm)
        for agent in state.registry.list_agents():
            state.registry.set_active(agent.id, False)

        with pytest.raises(NoAvailableAgentError):
            await coordinator.initiate(Task(title="Ship release", type=TaskType.DEPLOY))
        assert state.collaborations == {}


class TestParallel:
    """Tests for the parallel strategy."""

    async def test_secondaries_are_synthesized_by_primary(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Build dashboard", type=TaskType.CODE)
        collaboration = open_collaboration(
            state, task, CollaborationType.PARALLEL, ["coder", "designer", "planner"]
        )

        result = await coordinator.execute(collaboration, task)

        assert result.output == "Synthesized solution"
        assert result.metadata["synthesized_from"] == 2
        assert llm.complete.await_count == 3
        assert collaboration.status == CollaborationStatus.COMPLETED
        assert collaboration.outcomes == {"success": True, "participants": 3, "tokens": 200}
        assert collaboration.end_time is not None
        assert state.analytics.collaborations_completed == 1

    async def test_failed_secondary_is_dropped(
        self,
        state: OrchestratorState,
        make_llm: Callable,
        default_answer: Callable,
    ) -> None:
        def answer(messages, config):
            if "claude" in config.model:
                return Result.err(ProviderError("overloaded", provider="anthropic"))
            return default_answer(messages, config)

        coordinator, _ = build_coordinator(state, make_llm(answer))
        task = Task(title="Build dashboard", type=TaskType.CODE)
        collaboration = open_collaboration(
            state, task, CollaborationType.PARALLEL, ["coder", "designer", "planner"]
        )

        result = await coordinator.execute(collaboration, task)

        assert result.metadata["synthesized_from"] == 1
        assert collaboration.status == CollaborationStatus.COMPLETED

    async def test_all_secondaries_failing_falls_back_to_primary(
        self,
        state: OrchestratorState,
        make_llm: Callable,
        default_answer: Callable,
    ) -> None:
        def answer(messages, config):
            if config.model != "gpt-4o":
                return Result.err(ProviderError("overloaded"))
            return default_answer(messages, config)

        coordinator, _ = build_coordinator(state, make_llm(answer))
        task = Task(title="Build dashboard", type=TaskType.CODE)
        collaboration = open_collaboration(
            state, task, CollaborationType.PARALLEL, ["coder", "designer"]
        )

        result = await coordinator.execute(collaboration, task)

        assert result.output == "Solution from gpt-4o"
        assert "synthesized_from" not in result.metadata

    async def test_single_participant_performs_alone(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Add login", type=TaskType.CODE)
        collaboration = open_collaboration(state, task, CollaborationType.PARALLEL, ["coder"])

        result = await coordinator.execute(collaboration, task)

        assert result.output == "Solution from gpt-4o"
        assert llm.complete.await_count == 1


class TestHierarchical:
    """Tests for the hierarchical strategy."""

    async def test_plan_is_routed_and_synthesized(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Fix flaky login", type=TaskType.DEBUG)
        collaboration = open_collaboration(
            state, task, CollaborationType.HIERARCHICAL, ["designer", "planner"]
        )

        result = await coordinator.execute(collaboration, task)

        models = [call.args[1].model for call in llm.complete.await_args_list]
        assert result.output == "Synthesized solution"
        assert result.metadata["subtasks"] == 3
        # plan by designer, subtasks by designer, planner (no active QA) and coder
        assert models == [
            "anthropic/claude-sonnet-4-20250514",
            "anthropic/claude-sonnet-4-20250514",
            "gemini/gemini-2.0-flash",
            "gpt-4o",
            "anthropic/claude-sonnet-4-20250514",
        ]

    async def test_unparseable_plan_falls_back_to_primary(
        self,
        state: OrchestratorState,
        make_llm: Callable,
        make_completion: Callable,
    ) -> None:
        llm = make_llm(lambda messages, config: make_completion("Just do it carefully."))
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Fix flaky login", type=TaskType.DEBUG)
        collaboration = open_collaboration(
            state, task, CollaborationType.HIERARCHICAL, ["planner", "coder"]
        )

        result = await coordinator.execute(collaboration, task)

        assert result.output == "Just do it carefully."
        assert llm.complete.await_count == 2
        assert "subtasks" not in result.metadata


class TestSequential:
    """Tests for the sequential strategy."""

    async def test_each_reviewer_appends_feedback(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Ship release", type=TaskType.DEPLOY)
        collaboration = open_collaboration(
            state, task, CollaborationType.SEQUENTIAL, ["devops", "designer", "planner"]
        )

        result = await coordinator.execute(collaboration, task)

        assert result.output.startswith("Solution from gemini/gemini-2.0-flash")
        assert "Feedback from Designer:\nLooks good" in result.output
        assert "Feedback from Planner:\nLooks good" in result.output
        assert result.metadata["reviewed_by"] == ["designer", "planner"]


class TestInactiveParticipants:
    """Tests for participants deactivated after initiation."""

    async def test_inactive_secondary_is_left_out(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Build dashboard", type=TaskType.CODE)
        collaboration = open_collaboration(
            state, task, CollaborationType.PARALLEL, ["coder", "designer", "planner"]
        )
        state.registry.set_active("designer", False)

        result = await coordinator.execute(collaboration, task)

        models = [call.args[1].model for call in llm.complete.call_args_list]
        assert "anthropic/claude-sonnet-4-20250514" not in models
        assert result.metadata["synthesized_from"] == 1
        assert collaboration.outcomes["participants"] == 2

    async def test_inactive_primary_fails_collaboration(
        self, state: OrchestratorState, llm: AsyncMock
    ) -> None:
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Build dashboard", type=TaskType.CODE)
        collaboration = open_collaboration(
            state, task, CollaborationType.SEQUENTIAL, ["coder", "designer"]
        )
        state.registry.set_active("coder", False)

        with pytest.raises(ValidationError, match="coder is not active"):
            await coordinator.execute(collaboration, task)

        assert collaboration.status == CollaborationStatus.FAILED
        assert collaboration.outcomes["error"] == "Primary agent coder is not active"
        llm.complete.assert_not_awaited()


class TestExecuteFailures:
    """Tests for strategy failures and expiry."""

    async def test_strategy_error_fails_collaboration(
        self, state: OrchestratorState, make_llm: Callable
    ) -> None:
        llm = make_llm(lambda messages, config: Result.err(ProviderError("boom")))
        coordinator, _ = build_coordinator(state, llm)
        task = Task(title="Ship release", type=TaskType.DEPLOY)
        collaboration = open_collaboration(
            state, task, CollaborationType.SEQUENTIAL, ["devops", "designer"]
        )

        with pytest.raises(ProviderError):
            await coordinator.execute(collaboration, task)

        assert collaboration.status == CollaborationStatus.FAILED
        assert collaboration.outcomes == {"success": False, "error": "boom"}
        assert state.analytics.collaborations_failed == 1

    async def test_expired_during_strategy(
        self,
        state: OrchestratorState,
        make_llm: Callable,
        default_answer: Callable,
    ) -> None:
        task = Task(title="Ship release", type=TaskType.DEPLOY)
        collaboration = open_collaboration(
            state, task, CollaborationType.SEQUENTIAL, ["devops"]
        )

        def answer(messages, config):
            collaboration.status = CollaborationStatus.FAILED
            return default_answer(messages, config)

        coordinator, _ = build_coordinator(state, make_llm(answer))

        with pytest.raises(CollaborationTimeoutError):
            await coordinator.execute(collaboration, task)
        assert state.analytics.collaborations_completed == 0
