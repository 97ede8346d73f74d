"""Ollama native chat API adapter."""

from collections.abc import Sequence
from typing import Any

import httpx

from conduit.config import ProviderConfig
from conduit.errors import MalformedResponse
from conduit.messages import Message, Role, ToolCall
from conduit.providers._http import coerce_text, decode_arguments, post_json, warn_extra_calls
from conduit.tools.registry import ToolSpec


class OllamaProvider:
    name = "ollama"

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @staticmethod
    def _to_messages(history: Sequence[Message]) -> list[dict[str, object]]:
        messages: list[dict[str, object]] = []
        for msg in history:
            entry: dict[str, object] = {"role": str(msg.role), "content": msg.content}
            if msg.role == Role.ASSISTANT and msg.tool_call is not None:
                entry["tool_calls"] = [
                    {
                        "function": {
                            "name": msg.tool_call.name,
                            "arguments": dict(msg.tool_call.arguments),
                        }
                    }
                ]
            if msg.role == Role.TOOL and msg.name:
                entry["tool_name"] = msg.name
            messages.append(entry)
        return messages

    @staticmethod
    def _parse_response(payload: dict[str, Any]) -> Message:
        message = payload.get("message")
        if not isinstance(message, dict):
            raise MalformedResponse("ollama response message missing")
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
                if isinstance(name, str) and name:
                    arguments = decode_arguments(OllamaProvider.name, fn.get("arguments"))
                    calls.append(ToolCall(name=name, arguments=arguments))
        warn_extra_calls(OllamaProvider.name, len(calls))
        return Message.assistant(content, tool_call=calls[0] if calls else None)

    async def complete(
        self,
        history: Sequence[Message],
        config: ProviderConfig,
        tools: Sequence[ToolSpec] = (),
    ) -> Message:
        body: dict[str, object] = {
            "model": config.model_name,
            "messages": self._to_messages(history),
            "stream": False,
            "options": {
                "temperature": config.temperature,
                "num_predict": config.max_tokens,
            },
        }
        if tools:
            body["tools"] = [
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
        headers = {"Authorization": f"Bearer {config.api_key}"} if config.api_key else None
        payload = await post_json(
            self.name,
            f"{config.endpoint}/api/chat",
            body,
            config=config,
            headers=headers,
            transport=self._transport,
        )
        return self._parse_response(payload)
