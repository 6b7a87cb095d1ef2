"""Shared utilities: configuration, completion providers and logging."""

from charindex.utils.config import Config, LLMConfig, load_config
from charindex.utils.llm_client import (
    AnthropicCompletionProvider,
    CompletionProvider,
    CompletionRequest,
    CompletionResponse,
    OpenAICompletionProvider,
    TokenUsage,
    create_completion_provider,
)

__all__ = [
    "AnthropicCompletionProvider",
    "CompletionProvider",
    "CompletionRequest",
    "CompletionResponse",
    "Config",
    "LLMConfig",
    "OpenAICompletionProvider",
    "TokenUsage",
    "create_completion_provider",
    "load_config",
]
