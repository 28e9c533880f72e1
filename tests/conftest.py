"""Shared fixtures: a scripted language model and an in-memory orchestrator."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from unittest.mock import AsyncMock

import pytest

from orchestra.agents.context import ContextAssembler
from orchestra.agents.executor import AgentExecutor
from orchestra.agents.prompts import PLAN_INSTRUCTION
from orchestra.agents.registry import AgentRegistry, default_agents
from orchestra.config.models import (
    LoggingSettings,
    OrchestraConfig,
    OrchestratorConfig,
    PersistenceConfig,
    ProviderConfig,
    TickConfig,
)
from orchestra.core.errors import ProviderError
from orchestra.core.types import Result
from orchestra.observability.logging import (
    LoggingConfig,
    configure_logging,
    reset_logging,
    set_console_logging,
)
from orchestra.orchestration.orchestrator import Orchestrator
from orchestra.orchestration.state import OrchestratorState
from orchestra.persistence.base import InMemoryStorage
from orchestra.providers.base import CompletionConfig, CompletionResponse, Message, UsageInfo

Responder = Callable[[list[Message], CompletionConfig], Result[CompletionResponse, ProviderError]]

PLAN_OUTPUT = "1. Design the login UI\n2. Write integration tests\n3. Implement the session API"


def completion(
    content: str, *, tokens: int = 100, model: str = "test-model"
) -> Result[CompletionResponse, ProviderError]:
    """An Ok completion with ``tokens`` total tokens."""
    return Result.ok(
        CompletionResponse(
            content=content,
            model=model,
            usage=UsageInfo(
                prompt_tokens=tokens // 2,
                completion_tokens=tokens - tokens // 2,
                total_tokens=tokens,
            ),
        )
    )


def default_responder(
    messages: list[Message], config: CompletionConfig
) -> Result[CompletionResponse, ProviderError]:
    """Answers by prompt kind: synthesis, review, plan, or plain task work."""
    system, user = messages[0].content, messages[-1].content
    if "synthesize multiple results" in system:
        return completion("Synthesized solution", tokens=200, model=config.model)
    if "review the following work" in system:
        return completion("Looks good", tokens=50, model=config.model)
    if PLAN_INSTRUCTION.strip() in user:
        return completion(PLAN_OUTPUT, tokens=120, model=config.model)
    return completion(f"Solution from {config.model}", tokens=100, model=config.model)


def scripted_llm(responder: Responder = default_responder) -> AsyncMock:
    """An LLMAdapter double whose ``complete`` answers through ``responder``."""
    llm = AsyncMock()
    llm.complete.side_effect = responder
    return llm


@pytest.fixture(autouse=True)
def quiet_logging() -> Iterator[None]:
    """Log without files or console output for the duration of a test."""
    reset_logging()
    configure_logging(LoggingConfig(enable_file_logging=False))
    set_console_logging(False)
    yield
    set_console_logging(True)
    reset_logging()


@pytest.fixture
def config() -> OrchestraConfig:
    return OrchestraConfig(
        ticks=TickConfig(pacing_delay=0),
        persistence=PersistenceConfig(enabled=False),
        logging=LoggingSettings(file_logging=False),
    )


@pytest.fixture
def llm() -> AsyncMock:
    return scripted_llm()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
async def orchestrator(
    llm: AsyncMock, config: OrchestraConfig, storage: InMemoryStorage
) -> AsyncIterator[Orchestrator]:
    """Initialized orchestrator with the five default agents."""
    orchestrator = Orchestrator(llm, config=config, storage=storage)
    await orchestrator.initialize()
    yield orchestrator
    await orchestrator.close()


@pytest.fixture
def make_completion() -> Callable[..., Result[CompletionResponse, ProviderError]]:
    """Factory for Ok completions, for tests that script their own responder."""
    return completion


@pytest.fixture
def make_llm() -> Callable[[Responder], AsyncMock]:
    """Factory for scripted adapters answering through a custom responder."""
    return scripted_llm


@pytest.fixture
def default_answer() -> Responder:
    return default_responder


@pytest.fixture
def state(storage: InMemoryStorage) -> OrchestratorState:
    """Bare orchestrator state holding the five default agents."""
    return OrchestratorState(
        config=OrchestratorConfig(),
        registry=AgentRegistry(default_agents()),
        storage=storage,
    )


@pytest.fixture
def executor(llm: AsyncMock, state: OrchestratorState) -> AgentExecutor:
    return AgentExecutor(
        llm, ContextAssembler(state.storage), ProviderConfig(), state.specializations
    )
