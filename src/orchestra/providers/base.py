"""Language-model adapter protocol and request/response models.

Agents never talk to a provider SDK directly: the executor builds
``Message`` lists and a ``CompletionConfig`` and hands them to whatever
``LLMAdapter`` the orchestrator was constructed with.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from orchestra.core.errors import ProviderError
from orchestra.core.types import Result


class MessageRole(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """A single chat message."""

    role: MessageRole
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True, slots=True)
class CompletionConfig:
    """Parameters for a completion request.

    Attributes:
        model: Concrete model id (e.g. "gpt-4o", "gemini/gemini-2.0-flash").
        temperature: Sampling temperature.
        max_tokens: Generation cap.
        fallback_models: Models the adapter may fail over to, in order.
    """

    model: str
    temperature: float = 0.7
    max_tokens: int = 4096
    fallback_models: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UsageInfo:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True, slots=True)
class CompletionResponse:
    """Generated text plus usage accounting.

    Attributes:
        content: Generated text.
        model: Model that actually answered (may be a fallback).
        usage: Token usage.
        finish_reason: Why generation stopped.
        raw_response: Provider payload, for debugging.
    """

    content: str
    model: str
    usage: UsageInfo
    finish_reason: str = "stop"
    raw_response: dict[str, object] = field(default_factory=dict)


class LLMAdapter(Protocol):
    """Unified interface to a language-model provider.

    Implementations own retries and provider failover and convert every
    expected failure into ``Result.err(ProviderError)``.

    Example:
        result = await adapter.complete(
            [Message.system(agent.config.system_prompt), Message.user(prompt)],
            CompletionConfig(model="gpt-4o", temperature=0.2),
        )
    """

    async def complete(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> Result[CompletionResponse, ProviderError]: ...
