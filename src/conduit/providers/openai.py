"""OpenAI chat completions adapter."""

import json
from collections.abc import Sequence
from typing import Any

import httpx

from conduit.config import ProviderConfig
from conduit.errors import MalformedResponse
from conduit.messages import Message, Role, ToolCall
from conduit.providers._http import (
    coerce_text,
    decode_arguments,
    post_json,
    require_api_key,
    warn_extra_calls,
)
from conduit.tools.registry import ToolSpec


class OpenAIProvider:
    name = "openai"

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @staticmethod
    def _to_messages(history: Sequence[Message]) -> list[dict[str, object]]:
        messages: list[dict[str, object]] = []
        for msg in history:
            if msg.role == Role.TOOL:
                messages.append(
                    {"role": "tool", "tool_call_id": msg.tool_call_id, "content": msg.content}
                )
            elif msg.role == Role.ASSISTANT and msg.tool_call is not None:
                call = msg.tool_call
                messages.append(
                    {
                        "role": "assistant",
                        "content": msg.content or None,
                        "tool_calls": [
                            {
                                "id": call.id,
                                "type": "function",
                                "function": {
                                    "name": call.name,
                                    "arguments": json.dumps(dict(call.arguments)),
                                },
                            }
                        ],
                    }
                )
            else:
                messages.append({"role": str(msg.role), "content": msg.content})
        return messages

    @staticmethod
    def _to_tools(tools: Sequence[ToolSpec]) -> list[dict[str, object]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": spec.name,
                    "description": spec.description,
                    "parameters": spec.to_schema(),
                },
            }
            for spec in tools
        ]

    @classmethod
    def _parse_response(cls, payload: dict[str, Any]) -> Message:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise MalformedResponse("openai response missing choices")
        first = choices[0]
        if not isinstance(first, dict):
            raise MalformedResponse("openai response choice malformed")
        message = first.get("message")
        if not isinstance(message, dict):
            raise MalformedResponse("openai response message missing")
        content = coerce_text(message.get("content"))

        calls: list[ToolCall] = []
        raw_calls = message.get("tool_calls")
        if isinstance(raw_calls, list):
            for raw in raw_calls:
                if not isinstance(raw, dict):
                    continue
                fn = raw.get("function")
                if not isinstance(fn, dict):
                    continue
                name = fn.get("name")
                if not isinstance(name, str) or not name:
                    continue
                call_id = raw.get("id")
                arguments = decode_arguments(cls.name, fn.get("arguments"))
                if isinstance(call_id, str) and call_id:
                    calls.append(ToolCall(name=name, arguments=arguments, id=call_id))
                else:
                    calls.append(ToolCall(name=name, arguments=arguments))
        warn_extra_calls(cls.name, len(calls))
        return Message.assistant(content, tool_call=calls[0] if calls else None)

    async def complete(
        self,
        history: Sequence[Message],
        config: ProviderConfig,
        tools: Sequence[ToolSpec] = (),
    ) -> Message:
        api_key = require_api_key(config)
        body: dict[str, object] = {
            "model": config.model_name,
            "messages": self._to_messages(history),
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        if tools:
            body["tools"] = self._to_tools(tools)
            body["tool_choice"] = "auto"
        payload = await post_json(
            self.name,
            f"{config.endpoint}/chat/completions",
            body,
            config=config,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=self._transport,
        )
        return self._parse_response(payload)
