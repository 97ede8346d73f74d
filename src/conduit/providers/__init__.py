from conduit.errors import ProviderNetworkError as NetworkError
from conduit.providers.base import ModelProvider
from conduit.providers.claude import ClaudeProvider
from conduit.providers.factory import build_provider
from conduit.providers.google import GoogleProvider
from conduit.providers.ollama import OllamaProvider
from conduit.providers.openai import OpenAIProvider
from conduit.providers.retry import with_retry

__all__ = [
    "ClaudeProvider",
    "GoogleProvider",
    "ModelProvider",
    "NetworkError",
    "OllamaProvider",
    "OpenAIProvider",
    "build_provider",
    "with_retry",
]
