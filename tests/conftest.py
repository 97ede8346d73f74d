from pathlib import Path

import pytest

from conduit.config import get_settings

_ENV_KEYS = (
    "APP_ENV",
    "LOG_LEVEL",
    "API_PROVIDER",
    "MODEL_NAME",
    "MAX_TOKENS",
    "TEMPERATURE",
    "RETRY_COUNT",
    "BACKOFF_BASE_MS",
    "BACKOFF_JITTER",
    "PROVIDER_TIMEOUT_SECONDS",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
    "OPENAI_BASE_URL",
    "ANTHROPIC_BASE_URL",
    "OLLAMA_BASE_URL",
    "GOOGLE_BASE_URL",
    "MAX_TOOL_ROUND_TRIPS",
    "AGENT_STRICT_TOOLS",
    "BATCH_MAX_CONCURRENT",
    "TOOL_WORKDIR",
    "COMMAND_TIMEOUT_SECONDS",
    "FETCH_TIMEOUT_SECONDS",
    "TOOL_MAX_OUTPUT_BYTES",
)


@pytest.fixture(autouse=True)
def test_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    # Run from an empty directory so a developer's .env never leaks in.
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
