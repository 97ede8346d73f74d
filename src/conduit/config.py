"""Application configuration contract."""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from conduit.errors import ConfigError

logger = logging.getLogger(__name__)

ProviderKind = Literal["openai", "claude", "ollama", "google"]

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "claude": "claude-3-5-haiku-latest",
    "ollama": "llama3.1",
    "google": "gemini-1.5-flash",
}
_KEYLESS_PROVIDERS = {"ollama"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    api_provider: ProviderKind = Field(alias="API_PROVIDER", default="openai")
    model_name: str = Field(alias="MODEL_NAME", default="")
    max_tokens: int = Field(alias="MAX_TOKENS", default=1024, gt=0)
    temperature: float = Field(alias="TEMPERATURE", default=0.7, ge=0.0, le=1.0)
    retry_count: int = Field(alias="RETRY_COUNT", default=3, ge=1)
    backoff_base_ms: int = Field(alias="BACKOFF_BASE_MS", default=500, ge=0)
    backoff_jitter: float = Field(alias="BACKOFF_JITTER", default=0.0, ge=0.0, le=1.0)
    provider_timeout_seconds: float = Field(alias="PROVIDER_TIMEOUT_SECONDS", default=60.0, gt=0)

    openai_api_key: str = Field(alias="OPENAI_API_KEY", default="")
    anthropic_api_key: str = Field(alias="ANTHROPIC_API_KEY", default="")
    google_api_key: str = Field(alias="GOOGLE_API_KEY", default="")
    openai_base_url: str = Field(alias="OPENAI_BASE_URL", default="https://api.openai.com/v1")
    anthropic_base_url: str = Field(alias="ANTHROPIC_BASE_URL", default="https://api.anthropic.com")
    ollama_base_url: str = Field(alias="OLLAMA_BASE_URL", default="http://localhost:11434")
    google_base_url: str = Field(
        alias="GOOGLE_BASE_URL", default="https://generativelanguage.googleapis.com"
    )

    max_tool_round_trips: int = Field(alias="MAX_TOOL_ROUND_TRIPS", default=10, ge=1)
    agent_strict_tools: int = Field(alias="AGENT_STRICT_TOOLS", default=0)
    batch_max_concurrent: int = Field(alias="BATCH_MAX_CONCURRENT", default=8, ge=1)

    tool_workdir: str = Field(alias="TOOL_WORKDIR", default="")
    command_timeout_seconds: float = Field(alias="COMMAND_TIMEOUT_SECONDS", default=60.0, gt=0)
    fetch_timeout_seconds: float = Field(alias="FETCH_TIMEOUT_SECONDS", default=30.0, gt=0)
    tool_max_output_bytes: int = Field(alias="TOOL_MAX_OUTPUT_BYTES", default=32 * 1024, gt=0)


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Immutable snapshot of everything a provider exchange needs."""

    provider_kind: ProviderKind
    model_name: str
    max_tokens: int
    temperature: float
    api_key: str
    endpoint: str
    retry_count: int = 3
    backoff_base_ms: int = 500
    backoff_jitter: float = 0.0
    timeout_seconds: float = 60.0


def _credentials_for(settings: Settings) -> tuple[str, str]:
    kind = settings.api_provider
    if kind == "claude":
        return settings.anthropic_api_key, settings.anthropic_base_url
    if kind == "ollama":
        return "", settings.ollama_base_url
    if kind == "google":
        return settings.google_api_key, settings.google_base_url
    return settings.openai_api_key, settings.openai_base_url


def provider_config_from_settings(settings: Settings) -> ProviderConfig:
    api_key, endpoint = _credentials_for(settings)
    model = settings.model_name.strip() or DEFAULT_MODELS[settings.api_provider]
    return ProviderConfig(
        provider_kind=settings.api_provider,
        model_name=model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        api_key=api_key.strip(),
        endpoint=endpoint.strip().rstrip("/"),
        retry_count=settings.retry_count,
        backoff_base_ms=settings.backoff_base_ms,
        backoff_jitter=settings.backoff_jitter,
        timeout_seconds=settings.provider_timeout_seconds,
    )


def validate_settings_for_env(settings: Settings) -> None:
    missing: list[str] = []
    api_key, endpoint = _credentials_for(settings)
    if settings.api_provider not in _KEYLESS_PROVIDERS and not api_key.strip():
        key_names = {
            "openai": "OPENAI_API_KEY",
            "claude": "ANTHROPIC_API_KEY",
            "google": "GOOGLE_API_KEY",
        }
        missing.append(key_names[settings.api_provider])
    if not endpoint.strip():
        missing.append(f"{settings.api_provider.upper()}_BASE_URL")

    if settings.app_env == "prod" and settings.backoff_jitter == 0.0:
        logger.warning(
            "BACKOFF_JITTER=0 in production: concurrent retries will back off in lockstep"
        )

    if missing:
        keys = ", ".join(sorted(set(missing)))
        raise ConfigError(f"invalid configuration for provider {settings.api_provider}: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
