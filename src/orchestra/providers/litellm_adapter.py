"""LiteLLM adapter: multi-provider completions with retries and failover.

Transient errors (rate limits, timeouts, connection failures) are retried
with stamina. When retries are exhausted, or a model is rejected outright,
the adapter moves on to the next model in ``CompletionConfig.fallback_models``.
Authentication failures stop immediately.
"""

from typing import Any

import litellm
import stamina
import structlog

from orchestra.core.errors import ProviderError
from orchestra.core.types import Result
from orchestra.providers.base import CompletionConfig, CompletionResponse, Message, UsageInfo

log = structlog.get_logger()

RETRIABLE_EXCEPTIONS = (
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.Timeout,
    litellm.APIConnectionError,
)

MAX_RESPONSE_LENGTH = 100_000


def extract_provider(model: str) -> str:
    """Provider name from a model id (``"anthropic/claude-..."`` -> ``"anthropic"``)."""
    if "/" in model:
        return model.split("/")[0]
    if model.startswith("gpt") or model.startswith("o1") or model.startswith("o3"):
        return "openai"
    if model.startswith("claude"):
        return "anthropic"
    if model.startswith("gemini"):
        return "gemini"
    return "unknown"


class LiteLLMAdapter:
    """LLMAdapter backed by ``litellm.acompletion``.

    API keys come from the environment (OPENAI_API_KEY, ANTHROPIC_API_KEY,
    GEMINI_API_KEY, OPENROUTER_API_KEY ...) unless ``api_key`` is given.

    Example:
        adapter = LiteLLMAdapter(timeout=30.0)
        result = await adapter.complete(
            [Message.user("Hello")],
            CompletionConfig(model="gpt-4o", fallback_models=("gemini/gemini-2.0-flash",)),
        )
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 3,
    ) -> None:
        self._api_key = api_key
        self._api_base = api_base
        self._timeout = timeout
        self._max_retries = max_retries

    def _build_completion_kwargs(
        self,
        messages: list[Message],
        model: str,
        config: CompletionConfig,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [m.to_dict() for m in messages],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "timeout": self._timeout,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def _raw_complete(
        self,
        messages: list[Message],
        model: str,
        config: CompletionConfig,
    ) -> litellm.ModelResponse:
        log.debug(
            "llm.request.started",
            model=model,
            message_count=len(messages),
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
        response = await litellm.acompletion(
            **self._build_completion_kwargs(messages, model, config)
        )
        log.debug(
            "llm.request.completed",
            model=model,
            finish_reason=response.choices[0].finish_reason,
        )
        return response

    def _parse_response(self, response: litellm.ModelResponse, model: str) -> CompletionResponse:
        choice = response.choices[0]
        usage = getattr(response, "usage", None)
        content = choice.message.content or ""

        if len(content) > MAX_RESPONSE_LENGTH:
            log.warning(
                "llm.response.truncated",
                model=model,
                original_length=len(content),
                max_length=MAX_RESPONSE_LENGTH,
            )
            content = content[:MAX_RESPONSE_LENGTH]

        return CompletionResponse(
            content=content,
            model=response.model or model,
            usage=UsageInfo(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            finish_reason=choice.finish_reason or "stop",
            raw_response=response.model_dump() if hasattr(response, "model_dump") else {},
        )

    async def _complete_with_model(
        self,
        messages: list[Message],
        model: str,
        config: CompletionConfig,
    ) -> Result[CompletionResponse, ProviderError]:
        @stamina.retry(
            on=RETRIABLE_EXCEPTIONS,
            attempts=self._max_retries,
            wait_initial=1.0,
            wait_max=10.0,
            wait_jitter=1.0,
        )
        async def _with_retry() -> litellm.ModelResponse:
            return await self._raw_complete(messages, model, config)

        provider = extract_provider(model)
        try:
            response = await _with_retry()
            return Result.ok(self._parse_response(response, model))
        except RETRIABLE_EXCEPTIONS as e:
            log.warning(
                "llm.request.failed.retries_exhausted",
                model=model,
                error=str(e),
                max_retries=self._max_retries,
            )
            return Result.err(ProviderError.from_exception(e, provider=provider))
        except litellm.AuthenticationError as e:
            log.warning("llm.request.failed.auth_error", model=model, error=str(e))
            return Result.err(
                ProviderError(
                    "Authentication failed - check API key",
                    provider=provider,
                    status_code=401,
                    details={"original_exception": type(e).__name__},
                )
            )
        except (litellm.BadRequestError, litellm.APIError) as e:
            log.warning(
                "llm.request.failed.api_error",
                model=model,
                error=str(e),
                status_code=getattr(e, "status_code", None),
            )
            return Result.err(ProviderError.from_exception(e, provider=provider))
        except Exception as e:
            log.exception("llm.request.failed.unexpected", model=model, error=str(e))
            return Result.err(
                ProviderError(
                    f"Unexpected error: {e!s}",
                    provider=provider,
                    details={"original_exception": type(e).__name__},
                )
            )

    async def complete(
        self,
        messages: list[Message],
        config: CompletionConfig,
    ) -> Result[CompletionResponse, ProviderError]:
        """Complete with ``config.model``, failing over to ``config.fallback_models``.

        Returns:
            The first successful response, or the last error when every
            model failed.
        """
        models = [config.model, *(m for m in config.fallback_models if m != config.model)]
        result: Result[CompletionResponse, ProviderError] | None = None
        for index, model in enumerate(models):
            result = await self._complete_with_model(messages, model, config)
            if result.is_ok:
                if index:
                    log.info("llm.request.failover_succeeded", model=model, attempt=index + 1)
                return result
            if result.error.status_code == 401:
                return result
            if index + 1 < len(models):
                log.warning(
                    "llm.request.failing_over",
                    failed_model=model,
                    next_model=models[index + 1],
                )
        assert result is not None
        return result
