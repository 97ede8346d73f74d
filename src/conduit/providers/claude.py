"""Anthropic Messages API adapter."""

from collections.abc import Sequence
from typing import Any

import httpx

from conduit.config import ProviderConfig
from conduit.errors import MalformedResponse
from conduit.messages import Message, Role, ToolCall
from conduit.providers._http import post_json, require_api_key, warn_extra_calls
from conduit.tools.registry import ToolSpec

ANTHROPIC_VERSION = "2023-06-01"


def _append(messages: list[dict[str, Any]], role: str, blocks: list[dict[str, Any]]) -> None:
    # The Messages API wants strictly alternating roles; fold consecutive
    # same-role turns (e.g. a tool result followed by a user prompt) together.
    if messages and messages[-1]["role"] == role:
        messages[-1]["content"].extend(blocks)
    else:
        messages.append({"role": role, "content": blocks})


class ClaudeProvider:
    name = "claude"

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @staticmethod
    def _split_history(history: Sequence[Message]) -> tuple[str, list[dict[str, Any]]]:
        system_parts: list[str] = []
        messages: list[dict[str, Any]] = []
        for msg in history:
            if msg.role == Role.SYSTEM:
                if msg.content.strip():
                    system_parts.append(msg.content)
                continue
            if msg.role == Role.TOOL:
                result: dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }
                if msg.is_error:
                    result["is_error"] = True
                _append(messages, "user", [result])
                continue
            if msg.role == Role.ASSISTANT:
                blocks: list[dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                if msg.tool_call is not None:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": msg.tool_call.id,
                            "name": msg.tool_call.name,
                            "input": dict(msg.tool_call.arguments),
                        }
                    )
                if blocks:
                    _append(messages, "assistant", blocks)
                continue
            _append(messages, "user", [{"type": "text", "text": msg.content}])
        return "\n\n".join(system_parts), messages

    @staticmethod
    def _parse_response(payload: dict[str, Any]) -> Message:
        content = payload.get("content")
        if not isinstance(content, list):
            raise MalformedResponse("claude response missing content")
        text_parts: list[str] = []
        calls: list[ToolCall] = []
        for block in content:
            if not isinstance(block, dict):
                continue
            kind = block.get("type")
            if kind == "text":
                text = block.get("text")
                if isinstance(text, str) and text:
                    text_parts.append(text)
            elif kind == "tool_use":
                name = block.get("name")
                call_id = block.get("id")
                arguments = block.get("input", {})
                if not isinstance(name, str) or not name:
                    continue
                if not isinstance(arguments, dict):
                    arguments = {}
                if isinstance(call_id, str) and call_id:
                    calls.append(ToolCall(name=name, arguments=arguments, id=call_id))
                else:
                    calls.append(ToolCall(name=name, arguments=arguments))
        warn_extra_calls(ClaudeProvider.name, len(calls))
        return Message.assistant("\n".join(text_parts), tool_call=calls[0] if calls else None)

    async def complete(
        self,
        history: Sequence[Message],
        config: ProviderConfig,
        tools: Sequence[ToolSpec] = (),
    ) -> Message:
        api_key = require_api_key(config)
        system, messages = self._split_history(history)
        body: dict[str, object] = {
            "model": config.model_name,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "messages": messages,
        }
        if system:
            body["system"] = system
        if tools:
            body["tools"] = [
                {
                    "name": spec.name,
                    "description": spec.description,
                    "input_schema": spec.to_schema(),
                }
                for spec in tools
            ]
        payload = await post_json(
            self.name,
            f"{config.endpoint}/v1/messages",
            body,
            config=config,
            headers={"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION},
            transport=self._transport,
        )
        return self._parse_response(payload)
