"""Provider construction helpers."""

import httpx

from conduit.config import ProviderConfig
from conduit.errors import ConfigError
from conduit.providers.base import ModelProvider
from conduit.providers.claude import ClaudeProvider
from conduit.providers.google import GoogleProvider
from conduit.providers.ollama import OllamaProvider
from conduit.providers.openai import OpenAIProvider

_PROVIDERS: dict[str, type[OpenAIProvider | ClaudeProvider | OllamaProvider | GoogleProvider]] = {
    "openai": OpenAIProvider,
    "claude": ClaudeProvider,
    "ollama": OllamaProvider,
    "google": GoogleProvider,
}


def build_provider(
    config: ProviderConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ModelProvider:
    provider_cls = _PROVIDERS.get(config.provider_kind)
    if provider_cls is None:
        raise ConfigError(f"unknown provider: {config.provider_kind}")
    return provider_cls(transport=transport)
