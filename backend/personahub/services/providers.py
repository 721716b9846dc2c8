"""LLM provider adapters.

Every provider is reached through an OpenAI-compatible chat completions
endpoint (OpenAI itself, Gemini's compatibility endpoint, xAI for Grok) and
exposed as an async iterator of text chunks. Any SDK failure surfaces as
UpstreamProviderError.
"""

from collections.abc import AsyncIterator, Sequence
from functools import lru_cache
from typing import Any

import openai
import structlog
from openai import AsyncOpenAI
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from personahub.core.config import Settings, get_settings
from personahub.core.exceptions import UpstreamProviderError, ValidationError
from personahub.domain.providers import ModelProvider

logger = structlog.get_logger(__name__)

_RETRYABLE_ERRORS = (openai.RateLimitError, openai.APIConnectionError)


def build_chat_messages(system_prompt: str | None, history: Sequence[Any]) -> list[dict]:
    """Translate stored chat history into OpenAI chat messages.

    ``ai`` turns become ``assistant``; user images become ``image_url`` parts.
    """
    messages: list[dict] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    for message in history:
        if message.role == "ai":
            messages.append({"role": "assistant", "content": message.text})
        elif message.image_url:
            messages.append({
                "role": "user",
                "content": [
                    {"type": "text", "text": message.text},
                    {"type": "image_url", "image_url": {"url": message.image_url}},
                ],
            })
        else:
            messages.append({"role": "user", "content": message.text})
    return messages


def is_api_key_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return "api key" in str(exc).lower()


def to_upstream_error(provider: ModelProvider, exc: Exception) -> UpstreamProviderError:
    if is_api_key_error(exc):
        return UpstreamProviderError("chat.provider_api_key_error", provider=provider.label)
    return UpstreamProviderError(provider=provider.label, detail=str(exc))


class ProviderRegistry:
    """Builds per-request clients and streams completions."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def base_url(self, provider: ModelProvider) -> str | None:
        return {
            ModelProvider.GPT: self.settings.openai_base_url,
            ModelProvider.GEMINI: self.settings.gemini_base_url,
            ModelProvider.GROK: self.settings.grok_base_url,
        }[provider]

    def default_model(self, provider: ModelProvider) -> str:
        return self.settings.default_models[provider.value]

    def client(self, provider: ModelProvider, api_key: str) -> AsyncOpenAI:
        # Retries are handled by tenacity below
        return AsyncOpenAI(api_key=api_key, base_url=self.base_url(provider), max_retries=0)

    @retry(
        retry=retry_if_exception_type(_RETRYABLE_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
        before_sleep=lambda rs: logger.warning(
            "provider_stream_open_retrying",
            attempt=rs.attempt_number,
            sleep_seconds=rs.next_action.sleep,
        ),
    )
    async def _open_stream(self, client: AsyncOpenAI, model: str, messages: list[dict]):
        """Open a streaming completion, retrying rate limits and connection errors.

        Only the opening request is retried; chunks already forwarded can not
        be replayed.
        """
        return await client.chat.completions.create(model=model, messages=messages, stream=True)

    async def stream(
        self,
        provider: ModelProvider,
        model_name: str | None,
        system_prompt: str | None,
        history: Sequence[Any],
        api_key: str,
    ) -> AsyncIterator[str]:
        """Yield text chunks of the assistant reply as they arrive."""
        model = model_name or self.default_model(provider)
        messages = build_chat_messages(system_prompt, history)

        async with self.client(provider, api_key) as client:
            try:
                completion = await self._open_stream(client, model, messages)
                async for chunk in completion:
                    delta = chunk.choices[0].delta.content if chunk.choices else None
                    if delta:
                        yield delta
            except openai.APIError as exc:
                logger.warning(
                    "provider_stream_failed",
                    provider=provider.value,
                    model=model,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                raise to_upstream_error(provider, exc) from exc

    async def list_models(self, provider: ModelProvider, api_key: str) -> list[str]:
        """List chat model ids available to a key (GPT only)."""
        if provider is not ModelProvider.GPT:
            raise ValidationError("chat.unsupported_provider", provider=provider.label)

        async with self.client(provider, api_key) as client:
            try:
                page = await client.models.list()
            except openai.APIError as exc:
                raise to_upstream_error(provider, exc) from exc
        return sorted(model.id for model in page.data if "gpt" in model.id)


@lru_cache
def get_provider_registry() -> ProviderRegistry:
    return ProviderRegistry()
