"""Google Gemini generateContent adapter (API key auth)."""

from collections.abc import Sequence
from typing import Any

import httpx

from conduit.config import ProviderConfig
from conduit.errors import AuthError, MalformedResponse, RequestRejected
from conduit.messages import Message, Role, ToolCall
from conduit.providers._http import post_json, require_api_key, warn_extra_calls
from conduit.tools.registry import ToolSpec


def _append(contents: list[dict[str, Any]], role: str, parts: list[dict[str, Any]]) -> None:
    if contents and contents[-1]["role"] == role:
        contents[-1]["parts"].extend(parts)
    else:
        contents.append({"role": role, "parts": parts})


def to_contents(history: Sequence[Message]) -> tuple[list[str], list[dict[str, Any]]]:
    system_parts: list[str] = []
    contents: list[dict[str, Any]] = []
    for msg in history:
        if msg.role == Role.SYSTEM:
            if msg.content.strip():
                system_parts.append(msg.content)
            continue
        if msg.role == Role.TOOL:
            _append(
                contents,
                "user",
                [
                    {
                        "functionResponse": {
                            "name": msg.name or "",
                            "response": {"content": msg.content},
                        }
                    }
                ],
            )
            continue
        if msg.role == Role.ASSISTANT:
            parts: list[dict[str, Any]] = []
            if msg.content:
                parts.append({"text": msg.content})
            if msg.tool_call is not None:
                parts.append(
                    {
                        "functionCall": {
                            "name": msg.tool_call.name,
                            "args": dict(msg.tool_call.arguments),
                        }
                    }
                )
            if parts:
                _append(contents, "model", parts)
            continue
        _append(contents, "user", [{"text": msg.content}])
    return system_parts, contents


def to_tools(tools: Sequence[ToolSpec]) -> list[dict[str, object]] | None:
    if not tools:
        return None
    declarations = [
        {"name": spec.name, "description": spec.description, "parameters": spec.to_schema()}
        for spec in tools
    ]
    return [{"function_declarations": declarations}]


def build_request_body(
    history: Sequence[Message],
    tools: Sequence[ToolSpec],
    temperature: float,
    max_tokens: int,
) -> dict[str, object]:
    system_parts, contents = to_contents(history)
    body: dict[str, object] = {
        "contents": contents,
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        },
    }
    if system_parts:
        body["systemInstruction"] = {"parts": [{"text": "\n\n".join(system_parts)}]}
    declared = to_tools(tools)
    if declared is not None:
        body["tools"] = declared
    return body


def parse_response(payload: dict[str, Any]) -> Message:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = payload.get("promptFeedback")
        reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if isinstance(reason, str) and reason:
            raise MalformedResponse(f"google response blocked: {reason}")
        raise MalformedResponse("google response missing candidates")
    first = candidates[0]
    if not isinstance(first, dict):
        raise MalformedResponse("google response candidate malformed")
    content = first.get("content")
    if not isinstance(content, dict):
        raise MalformedResponse("google response content missing")
    parts = content.get("parts", [])
    text_parts: list[str] = []
    calls: list[ToolCall] = []
    if isinstance(parts, list):
        for part in parts:
            if not isinstance(part, dict):
                continue
            text = part.get("text")
            if isinstance(text, str) and text:
                text_parts.append(text)
            function_call = part.get("functionCall")
            if isinstance(function_call, dict):
                name = function_call.get("name")
                args = function_call.get("args", {})
                if isinstance(name, str) and name:
                    calls.append(
                        ToolCall(name=name, arguments=args if isinstance(args, dict) else {})
                    )
    warn_extra_calls(GoogleProvider.name, len(calls))
    return Message.assistant("\n".join(text_parts), tool_call=calls[0] if calls else None)


class GoogleProvider:
    name = "google"

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def complete(
        self,
        history: Sequence[Message],
        config: ProviderConfig,
        tools: Sequence[ToolSpec] = (),
    ) -> Message:
        api_key = require_api_key(config)
        body = build_request_body(history, tools, config.temperature, config.max_tokens)
        url = f"{config.endpoint}/v1beta/models/{config.model_name}:generateContent"
        try:
            payload = await post_json(
                self.name,
                url,
                body,
                config=config,
                params={"key": api_key},
                transport=self._transport,
            )
        except RequestRejected as exc:
            # Google reports a bad key as 400 INVALID_ARGUMENT, not 401.
            if "API_KEY_INVALID" in str(exc):
                raise AuthError(f"google rejected credentials: {exc}") from exc
            raise
        return parse_response(payload)
