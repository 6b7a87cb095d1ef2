"""Completion provider contract and built-in LLM clients.

The co-reference step depends only on `CompletionProvider.complete()`. Any object with a
conforming method can be passed in; the built-in providers wrap the Anthropic and OpenAI SDKs
so API keys, base URLs and timeouts are configured in one place.
"""

from __future__ import annotations

import os
from typing import Any, Optional, Protocol, runtime_checkable

from loguru import logger
from openai import OpenAI
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from charindex.utils.config import LLMConfig


class TokenUsage(BaseModel):
    """Token counters reported by a provider."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0


class CompletionRequest(BaseModel):
    """A single completion request."""

    model_config = ConfigDict(frozen=True)

    system_instruction: str
    user_message: str
    max_tokens: int = 1024
    temperature: float = 0.3


class CompletionResponse(BaseModel):
    """Generated text plus token usage."""

    model_config = ConfigDict(frozen=True)

    generated_text: str
    token_usage: TokenUsage = TokenUsage()


@runtime_checkable
class CompletionProvider(Protocol):
    """Anything that can turn a `CompletionRequest` into a `CompletionResponse`."""

    def complete(self, request: CompletionRequest) -> CompletionResponse: ...


def create_openai_client(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    max_retries: int = 2,
    **kwargs: Any,
) -> OpenAI:
    """Create and configure an OpenAI client.

    Args:
        api_key: The API key. If None, tries env var or defaults.
        base_url: The base URL. If None, tries env var.
        timeout: Request timeout in seconds.
        max_retries: Number of SDK-level retries.
        **kwargs: Additional arguments to pass to the OpenAI constructor.

    Returns:
        Configured OpenAI client.
    """
    final_api_key = api_key or os.getenv("OPENAI_API_KEY")
    final_base_url = base_url or os.getenv("OPENAI_BASE_URL")

    masked_key = (
        f"{final_api_key[:4]}...{final_api_key[-4:]}" if final_api_key and len(final_api_key) > 8 else "None"
    )
    logger.debug(
        f"Creating OpenAI client: base_url={final_base_url}, "
        f"api_key={masked_key}, timeout={timeout}"
    )

    return OpenAI(
        api_key=final_api_key,
        base_url=final_base_url,
        timeout=timeout,
        max_retries=max_retries,
        **kwargs,
    )


class OpenAICompletionProvider:
    """Completion provider backed by the OpenAI chat completions API."""

    def __init__(self, config: LLMConfig | None = None, client: OpenAI | None = None) -> None:
        self.config = config or LLMConfig(provider="openai", model="gpt-4.1-mini")
        self._client = client

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        client = self._client or create_openai_client(
            base_url=self.config.base_url, timeout=self.config.timeout
        )
        response = client.chat.completions.create(
            model=self.config.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            messages=[
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_message},
            ],
        )

        content = response.choices[0].message.content
        usage = getattr(response, "usage", None)
        return CompletionResponse(
            generated_text=str(content or ""),
            token_usage=TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
        )


class AnthropicCompletionProvider:
    """Completion provider backed by the Anthropic messages API."""

    def __init__(self, config: LLMConfig | None = None, client: Any | None = None) -> None:
        self.config = config or LLMConfig()
        self._client = client

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        client = self._client or self._create_client()
        message = client.messages.create(
            model=self.config.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            timeout=self.config.timeout,
            system=request.system_instruction,
            messages=[{"role": "user", "content": request.user_message}],
        )

        parts = []
        for block in message.content:
            if getattr(block, "type", None) == "text":
                parts.append(getattr(block, "text", ""))
        usage = getattr(message, "usage", None)
        return CompletionResponse(
            generated_text="\n".join(parts).strip(),
            token_usage=TokenUsage(
                prompt_tokens=getattr(usage, "input_tokens", 0) or 0,
                completion_tokens=getattr(usage, "output_tokens", 0) or 0,
            ),
        )

    def _create_client(self) -> Any:
        import anthropic

        client_kwargs: dict[str, Any] = {}
        if self.config.base_url:
            client_kwargs["base_url"] = self.config.base_url
        return anthropic.Anthropic(**client_kwargs)


def create_completion_provider(config: LLMConfig | None = None) -> CompletionProvider:
    """Build the built-in provider selected by `config.provider`."""
    config = config or LLMConfig()
    logger.debug("Creating completion provider", provider=config.provider, model=config.model)
    if config.provider == "openai":
        return OpenAICompletionProvider(config)
    if config.provider == "anthropic":
        return AnthropicCompletionProvider(config)
    raise ValueError(f"Unsupported LLM provider: {config.provider}")
