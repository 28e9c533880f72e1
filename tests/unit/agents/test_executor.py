"""Unit tests for orchestra.agents.executor module."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from orchestra.agents.context import ContextAssembler
from orchestra.agents.executor import AgentExecutor
from orchestra.agents.registry import BUILTIN_TEMPLATES
from orchestra.config.models import ProviderConfig
from orchestra.core.errors import ProviderError
from orchestra.core.models import Task, TaskResult, TaskType
from orchestra.core.types import Result
from orchestra.persistence.base import InMemoryStorage, Project
from orchestra.providers.base import MessageRole


def agent(template_id: str):
    return BUILTIN_TEMPLATES[template_id].build()


class TestCompletionConfig:
    """Test provider resolution for an agent."""

    def test_primary_and_fallbacks_resolved(self, llm: AsyncMock) -> None:
        config = AgentExecutor(llm).completion_config(agent("coder"))

        assert config.model == "gpt-4o"
        assert config.fallback_models == (
            "anthropic/claude-sonnet-4-20250514",
            "gemini/gemini-2.0-flash",
        )
        assert config.temperature == 0.2
        assert config.max_tokens == 8192

    def test_fallbacks_deduplicated_and_exclude_primary(self, llm: AsyncMock) -> None:
        coder = agent("coder")
        coder.config.fallback_providers = ["openai", "claude", "claude"]

        config = AgentExecutor(llm).completion_config(coder)

        assert config.fallback_models == ("anthropic/claude-sonnet-4-20250514",)

    def test_custom_aliases(self, llm: AsyncMock) -> None:
        provider = ProviderConfig(model_aliases={"openai": "gpt-4o-mini"})
        config = AgentExecutor(llm, provider_config=provider).completion_config(agent("coder"))

        assert config.model == "gpt-4o-mini"
        # Unaliased references fall back to the default model.
        assert config.fallback_models == (provider.default_model,)

    def test_temperature_override(self, llm: AsyncMock) -> None:
        config = AgentExecutor(llm).completion_config(agent("designer"), temperature=0.3)
        assert config.temperature == 0.3


class TestPerform:
    """Test single-agent task execution."""

    async def test_result_carries_call_metadata(self, llm: AsyncMock) -> None:
        task = Task(title="Add login", type=TaskType.CODE)

        result = await AgentExecutor(llm).perform(agent("coder"), task)

        assert result.success is True
        assert result.output == "Solution from gpt-4o"
        assert result.metadata["agent"] == "coder"
        assert result.metadata["model"] == "gpt-4o"
        assert result.metadata["tokens"] == 100
        assert result.metadata["context_used"] is False
        assert result.metadata["code_blocks"] == 0
        assert result.metadata["processing_time_ms"] >= 0

    async def test_prompt_uses_persona_and_role_section(self, llm: AsyncMock) -> None:
        task = Task(title="Add login", type=TaskType.CODE, description="POST /login")

        await AgentExecutor(llm).perform(agent("coder"), task)

        system, user = llm.complete.await_args.args[0]
        assert system.role == MessageRole.SYSTEM
        assert system.content.startswith("You are an expert software developer")
        assert user.content.startswith("**Development Task:**")
        assert "- Description: POST /login" in user.content

    async def test_project_context_is_used(self, llm: AsyncMock) -> None:
        storage = InMemoryStorage()
        await storage.save_project(Project(id="p1", name="Shop", description="Online shop"))
        task = Task(title="Add login", type=TaskType.CODE, project_id="p1")

        result = await AgentExecutor(llm, ContextAssembler(storage)).perform(agent("coder"), task)

        user = llm.complete.await_args.args[0][-1]
        assert result.metadata["context_used"] is True
        assert user.content.startswith("Project: Shop\nDescription: Online shop")

    async def test_provider_error_raised(self, make_llm: Callable) -> None:
        llm = make_llm(lambda messages, config: Result.err(ProviderError("down")))

        with pytest.raises(ProviderError, match="down"):
            await AgentExecutor(llm).perform(agent("coder"), Task(title="t", type=TaskType.CODE))


class TestReviewAndSynthesize:
    """Test the collaboration helper calls."""

    async def test_review_skips_context_and_postprocessing(self, llm: AsyncMock) -> None:
        current = TaskResult(success=True, output="```python\nx\n```")

        feedback = await AgentExecutor(llm).review(
            agent("coder"), Task(title="t", type=TaskType.CODE), current
        )

        system, user = llm.complete.await_args.args[0]
        assert feedback.output == "Looks good"
        assert "code_blocks" not in feedback.metadata
        assert "Current Work:\n```python\nx\n```" in user.content

    async def test_synthesis_at_low_temperature(self, llm: AsyncMock) -> None:
        results = [TaskResult(success=True, output=f"r{i}") for i in range(3)]

        merged = await AgentExecutor(llm).synthesize(
            agent("designer"), Task(title="t", type=TaskType.DESIGN), results
        )

        messages, config = llm.complete.await_args.args
        assert merged.metadata["synthesized_from"] == 3
        assert config.temperature == 0.3
        assert "Result 3:\nr2" in messages[-1].content
