"""Agent execution: one language-model call per unit of agent work.

``AgentExecutor`` is the only component that talks to the ``LLMAdapter``.
It resolves an agent's provider references to model ids, builds the
prompt, and converts the completion into a ``TaskResult``. Provider
failures surface as ``ProviderError`` so the scheduler can fail the task.
"""

from __future__ import annotations

from collections.abc import Sequence
import time

from orchestra.agents.context import ContextAssembler
from orchestra.agents.postprocess import postprocess
from orchestra.agents.prompts import (
    SYNTHESIS_TEMPERATURE,
    review_messages,
    synthesis_messages,
    task_messages,
)
from orchestra.agents.specialization import SpecializationStore
from orchestra.config.models import ProviderConfig
from orchestra.core.models import Agent, Task, TaskResult
from orchestra.observability.logging import get_logger
from orchestra.providers.base import CompletionConfig, LLMAdapter, Message

log = get_logger(__name__)


class AgentExecutor:
    """Runs agent calls against a language-model adapter.

    Example:
        executor = AgentExecutor(LiteLLMAdapter(), ContextAssembler(storage))
        result = await executor.perform(agent, task)
    """

    def __init__(
        self,
        llm: LLMAdapter,
        assembler: ContextAssembler | None = None,
        provider_config: ProviderConfig | None = None,
        specializations: SpecializationStore | None = None,
    ) -> None:
        self._llm = llm
        self._assembler = assembler or ContextAssembler()
        self._provider = provider_config or ProviderConfig()
        self._specializations = specializations

    def completion_config(self, agent: Agent, temperature: float | None = None) -> CompletionConfig:
        """Completion parameters for ``agent``, with fallbacks resolved to model ids."""
        primary = self._provider.resolve_model(agent.config.primary_provider)
        fallbacks = tuple(
            model
            for model in dict.fromkeys(
                self._provider.resolve_model(ref) for ref in agent.config.fallback_providers
            )
            if model != primary
        )
        return CompletionConfig(
            model=primary,
            temperature=agent.config.temperature if temperature is None else temperature,
            max_tokens=agent.config.max_tokens,
            fallback_models=fallbacks,
        )

    async def perform(self, agent: Agent, task: Task) -> TaskResult:
        """Have ``agent`` carry out ``task`` with assembled context.

        Raises:
            ProviderError: If every configured model failed.
        """
        specialization = None
        if self._specializations is not None and self._specializations.has(agent.id):
            specialization = self._specializations.get(agent.id)
        bundle = await self._assembler.assemble(task, agent, specialization)
        result = await self._call(
            agent,
            task,
            task_messages(agent, task, bundle.render()),
            context_used=not bundle.is_empty,
        )
        return postprocess(agent, result)

    async def review(self, agent: Agent, task: Task, current: TaskResult) -> TaskResult:
        """Have ``agent`` critique ``current`` (no context assembly)."""
        return await self._call(agent, task, review_messages(agent, task, current))

    async def synthesize(
        self,
        agent: Agent,
        task: Task,
        results: Sequence[TaskResult],
    ) -> TaskResult:
        """Have ``agent`` merge ``results`` into one, at a low temperature."""
        result = await self._call(
            agent,
            task,
            synthesis_messages(agent, task, results),
            temperature=SYNTHESIS_TEMPERATURE,
        )
        result.metadata["synthesized_from"] = len(results)
        return result

    async def _call(
        self,
        agent: Agent,
        task: Task,
        messages: list[Message],
        *,
        temperature: float | None = None,
        context_used: bool = False,
    ) -> TaskResult:
        config = self.completion_config(agent, temperature)
        started = time.monotonic()
        log.debug(
            "agents.executor.call_started",
            agent_id=agent.id,
            task_id=task.id,
            model=config.model,
        )

        response = (await self._llm.complete(messages, config)).unwrap()

        elapsed_ms = int((time.monotonic() - started) * 1000)
        log.debug(
            "agents.executor.call_completed",
            agent_id=agent.id,
            task_id=task.id,
            model=response.model,
            tokens=response.usage.total_tokens,
            processing_time_ms=elapsed_ms,
        )
        return TaskResult(
            success=True,
            output=response.content,
            metadata={
                "agent": agent.id,
                "model": response.model,
                "tokens": response.usage.total_tokens,
                "processing_time_ms": elapsed_ms,
                "context_used": context_used,
            },
        )
