import json

import httpx
import pytest

from conduit.config import ProviderConfig
from conduit.errors import (
    AuthError,
    ConfigError,
    MalformedResponse,
    ProviderNetworkError,
    RateLimited,
    RequestRejected,
)
from conduit.messages import Message, Role, ToolCall, ToolResult
from conduit.providers.claude import ClaudeProvider
from conduit.providers.factory import build_provider
from conduit.providers.google import GoogleProvider, build_request_body
from conduit.providers.ollama import OllamaProvider
from conduit.providers.openai import OpenAIProvider
from conduit.tools.registry import ParamSpec, ToolSpec

ECHO = ToolSpec(name="echo", description="Echo text back", parameters={"text": ParamSpec("string")})


def _config(kind: str = "openai", **overrides) -> ProviderConfig:
    values = {
        "provider_kind": kind,
        "model_name": "test-model",
        "max_tokens": 256,
        "temperature": 0.2,
        "api_key": "sk-test",
        "endpoint": f"http://{kind}.local",
    }
    values.update(overrides)
    return ProviderConfig(**values)


def _tool_history() -> list[Message]:
    call = ToolCall(name="echo", arguments={"text": "hi"}, id="call_1")
    return [
        Message.system("You are terse."),
        Message.user("say hi"),
        Message.assistant("", tool_call=call),
        ToolResult(tool_call_id="call_1", name="echo", output="hi").to_message(),
    ]


@pytest.mark.asyncio
async def test_openai_sends_history_and_parses_tool_call() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={
                "choices": [
                    {
                        "message": {
                            "role": "assistant",
                            "content": None,
                            "tool_calls": [
                                {
                                    "id": "call_abc",
                                    "type": "function",
                                    "function": {"name": "echo", "arguments": '{"text":"again"}'},
                                }
                            ],
                        }
                    }
                ]
            },
        )

    provider = OpenAIProvider(transport=httpx.MockTransport(handler))
    reply = await provider.complete(_tool_history(), _config(), [ECHO])

    assert seen["path"] == "/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["model"] == "test-model"
    assert body["tool_choice"] == "auto"
    assert body["tools"][0]["function"]["name"] == "echo"
    assert body["messages"][2]["tool_calls"][0]["id"] == "call_1"
    assert json.loads(body["messages"][2]["tool_calls"][0]["function"]["arguments"]) == {
        "text": "hi"
    }
    assert body["messages"][3] == {"role": "tool", "tool_call_id": "call_1", "content": "hi"}

    assert reply.role == Role.ASSISTANT
    assert reply.content == ""
    assert reply.tool_call is not None
    assert reply.tool_call.id == "call_abc"
    assert reply.tool_call.name == "echo"
    assert dict(reply.tool_call.arguments) == {"text": "again"}


@pytest.mark.asyncio
async def test_openai_plain_text_reply() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": [{"message": {"content": "hello"}}]})

    provider = OpenAIProvider(transport=httpx.MockTransport(handler))
    reply = await provider.complete([Message.user("hi")], _config())
    assert reply.content == "hello"
    assert reply.tool_call is None


@pytest.mark.asyncio
async def test_claude_hoists_system_and_maps_tool_blocks() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers.get("x-api-key")
        seen["version"] = request.headers.get("anthropic-version")
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={
                "content": [
                    {"type": "text", "text": "let me check"},
                    {"type": "tool_use", "id": "toolu_1", "name": "echo", "input": {"text": "x"}},
                ]
            },
        )

    provider = ClaudeProvider(transport=httpx.MockTransport(handler))
    reply = await provider.complete(_tool_history(), _config("claude"), [ECHO])

    assert seen["path"] == "/v1/messages"
    assert seen["key"] == "sk-test"
    assert seen["version"] == "2023-06-01"
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["system"] == "You are terse."
    assert [m["role"] for m in body["messages"]] == ["user", "assistant", "user"]
    assert body["messages"][1]["content"][0]["type"] == "tool_use"
    assert body["messages"][2]["content"][0] == {
        "type": "tool_result",
        "tool_use_id": "call_1",
        "content": "hi",
    }
    assert body["tools"][0]["input_schema"]["required"] == ["text"]

    assert reply.content == "let me check"
    assert reply.tool_call is not None
    assert reply.tool_call.id == "toolu_1"
    assert dict(reply.tool_call.arguments) == {"text": "x"}


@pytest.mark.asyncio
async def test_ollama_uses_native_chat_without_key() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={
                "message": {
                    "role": "assistant",
                    "content": "",
                    "tool_calls": [{"function": {"name": "echo", "arguments": {"text": "y"}}}],
                },
                "done": True,
            },
        )

    provider = OllamaProvider(transport=httpx.MockTransport(handler))
    reply = await provider.complete(_tool_history(), _config("ollama", api_key=""), [ECHO])

    assert seen["path"] == "/api/chat"
    assert seen["auth"] is None
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["stream"] is False
    assert body["options"] == {"temperature": 0.2, "num_predict": 256}
    assert body["messages"][2]["tool_calls"][0]["function"]["arguments"] == {"text": "hi"}
    assert body["messages"][3]["tool_name"] == "echo"
    assert reply.tool_call is not None
    assert reply.tool_call.name == "echo"
    assert dict(reply.tool_call.arguments) == {"text": "y"}


@pytest.mark.asyncio
async def test_google_generate_content_round_trip() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.url.params.get("key")
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"role": "model", "parts": [{"text": "done"}]}}]},
        )

    provider = GoogleProvider(transport=httpx.MockTransport(handler))
    reply = await provider.complete(_tool_history(), _config("google"), [ECHO])

    assert seen["path"] == "/v1beta/models/test-model:generateContent"
    assert seen["key"] == "sk-test"
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["systemInstruction"]["parts"][0]["text"] == "You are terse."
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][2]["parts"][0]["functionResponse"]["name"] == "echo"
    assert body["tools"][0]["function_declarations"][0]["name"] == "echo"
    assert reply.content == "done"
    assert reply.tool_call is None


def test_google_request_body_without_tools() -> None:
    body = build_request_body([Message.user("hi")], (), 0.5, 64)
    assert "tools" not in body
    assert "systemInstruction" not in body
    assert body["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 64}


@pytest.mark.asyncio
async def test_google_blocked_prompt_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    provider = GoogleProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(MalformedResponse, match="SAFETY"):
        await provider.complete([Message.user("hi")], _config("google"))


@pytest.mark.asyncio
async def test_google_invalid_key_is_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"error": {"status": "INVALID_ARGUMENT", "details": [{"reason": "API_KEY_INVALID"}]}},
        )

    provider = GoogleProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(AuthError):
        await provider.complete([Message.user("hi")], _config("google"))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (401, AuthError),
        (403, AuthError),
        (400, RequestRejected),
        (500, ProviderNetworkError),
        (503, ProviderNetworkError),
    ],
)
async def test_http_status_mapping(status: int, expected: type[Exception]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="nope")

    provider = OpenAIProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(expected):
        await provider.complete([Message.user("hi")], _config())


@pytest.mark.asyncio
async def test_rate_limit_carries_retry_after() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, headers={"Retry-After": "3"}, text="slow down")

    provider = ClaudeProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(RateLimited) as exc_info:
        await provider.complete([Message.user("hi")], _config("claude"))
    assert exc_info.value.retry_after == 3.0
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_transport_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = OllamaProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderNetworkError):
        await provider.complete([Message.user("hi")], _config("ollama"))


@pytest.mark.asyncio
async def test_non_json_body_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    provider = OpenAIProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(MalformedResponse):
        await provider.complete([Message.user("hi")], _config())


@pytest.mark.asyncio
async def test_missing_key_fails_before_network() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    provider = OpenAIProvider(transport=httpx.MockTransport(handler))
    with pytest.raises(AuthError):
        await provider.complete([Message.user("hi")], _config(api_key=""))
    assert calls == []


@pytest.mark.asyncio
async def test_unparseable_tool_arguments_become_empty() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "choices": [
                    {
                        "message": {
                            "content": "",
                            "tool_calls": [
                                {"id": "c1", "function": {"name": "echo", "arguments": "{not json"}}
                            ],
                        }
                    }
                ]
            },
        )

    provider = OpenAIProvider(transport=httpx.MockTransport(handler))
    reply = await provider.complete([Message.user("hi")], _config())
    assert reply.tool_call is not None
    assert dict(reply.tool_call.arguments) == {}


def test_build_provider_selects_adapter() -> None:
    assert isinstance(build_provider(_config("openai")), OpenAIProvider)
    assert isinstance(build_provider(_config("claude")), ClaudeProvider)
    assert isinstance(build_provider(_config("ollama")), OllamaProvider)
    assert isinstance(build_provider(_config("google")), GoogleProvider)
    with pytest.raises(ConfigError):
        build_provider(_config("mistral"))


@pytest.mark.asyncio
async def test_claude_flags_failed_tool_results() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"content": [{"type": "text", "text": "noted"}]})

    failed = ToolResult(
        tool_call_id="call_1", name="echo", output="error (not_found): gone", success=False
    )
    history = [*_tool_history()[:3], failed.to_message()]
    provider = ClaudeProvider(transport=httpx.MockTransport(handler))
    await provider.complete(history, _config("claude"))

    body = seen["body"]
    assert isinstance(body, dict)
    assert body["messages"][2]["content"][0]["is_error"] is True
