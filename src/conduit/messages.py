"""Conversation data model shared by the agent, providers and tools."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any
from uuid import uuid4


def new_call_id() -> str:
    return f"call_{uuid4().hex}"


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class ToolCall:
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_call_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))


@dataclass(frozen=True, slots=True)
class Message:
    role: Role
    content: str = ""
    tool_call: ToolCall | None = None
    tool_call_id: str | None = None
    name: str | None = None
    is_error: bool = False

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_call: ToolCall | None = None) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, tool_call=tool_call)


@dataclass(frozen=True, slots=True)
class ToolResult:
    tool_call_id: str
    name: str
    output: str
    success: bool = True

    def to_message(self) -> Message:
        return Message(
            role=Role.TOOL,
            content=self.output,
            tool_call_id=self.tool_call_id,
            name=self.name,
            is_error=not self.success,
        )
