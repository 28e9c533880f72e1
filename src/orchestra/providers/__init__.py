"""Language-model provider adapters for Orchestra."""

from orchestra.providers.base import (
    CompletionConfig,
    CompletionResponse,
    LLMAdapter,
    Message,
    MessageRole,
    UsageInfo,
)
from orchestra.providers.litellm_adapter import LiteLLMAdapter

__all__ = [
    "LLMAdapter",
    "Message",
    "MessageRole",
    "CompletionConfig",
    "CompletionResponse",
    "UsageInfo",
    "LiteLLMAdapter",
]
