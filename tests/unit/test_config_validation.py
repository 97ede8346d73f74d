import logging

import pydantic
import pytest

from conduit.config import (
    DEFAULT_MODELS,
    get_settings,
    provider_config_from_settings,
    validate_settings_for_env,
)
from conduit.errors import ConfigError


def test_defaults_build_openai_config() -> None:
    settings = get_settings()
    config = provider_config_from_settings(settings)
    assert config.provider_kind == "openai"
    assert config.model_name == DEFAULT_MODELS["openai"]
    assert config.endpoint == "https://api.openai.com/v1"
    assert config.retry_count == 3
    assert config.backoff_base_ms == 500
    assert config.backoff_jitter == 0.0


def test_provider_selects_credentials_and_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_PROVIDER", "claude")
    monkeypatch.setenv("ANTHROPIC_API_KEY", " sk-ant ")
    monkeypatch.setenv("ANTHROPIC_BASE_URL", "https://proxy.local/anthropic/")
    monkeypatch.setenv("MODEL_NAME", "claude-sonnet-4")

    config = provider_config_from_settings(get_settings())
    assert config.provider_kind == "claude"
    assert config.api_key == "sk-ant"
    assert config.endpoint == "https://proxy.local/anthropic"
    assert config.model_name == "claude-sonnet-4"


def test_temperature_out_of_range_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEMPERATURE", "1.5")
    with pytest.raises(pydantic.ValidationError):
        get_settings()


def test_unknown_provider_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_PROVIDER", "mistral")
    with pytest.raises(pydantic.ValidationError):
        get_settings()


def test_validate_settings_missing_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_PROVIDER", "google")
    with pytest.raises(ConfigError, match="GOOGLE_API_KEY"):
        validate_settings_for_env(get_settings())


def test_validate_settings_ollama_needs_no_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_PROVIDER", "ollama")
    settings = get_settings()
    validate_settings_for_env(settings)
    assert provider_config_from_settings(settings).api_key == ""


def test_validate_settings_warns_on_lockstep_backoff_in_prod(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with caplog.at_level(logging.WARNING, logger="conduit.config"):
        validate_settings_for_env(get_settings())
    assert "BACKOFF_JITTER" in caplog.text
