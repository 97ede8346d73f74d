"""Tool catalog types and the validating registry."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from conduit.errors import InvalidArguments, ToolError
from conduit.messages import ToolCall, ToolResult

logger = logging.getLogger(__name__)

ParamType = Literal["string", "integer", "number", "boolean", "object", "array"]
ToolHandler = Callable[[Mapping[str, Any]], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class ParamSpec:
    type: ParamType
    required: bool = True
    description: str = ""


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    description: str
    parameters: Mapping[str, ParamSpec] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def to_schema(self) -> dict[str, object]:
        properties: dict[str, object] = {}
        for name, param in self.parameters.items():
            prop: dict[str, object] = {"type": param.type}
            if param.description:
                prop["description"] = param.description
            properties[name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [name for name, param in self.parameters.items() if param.required],
        }


def _matches_type(value: object, expected: ParamType) -> bool:
    # bool is an int subclass; a JSON true is never a valid integer/number.
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, int | float) and not isinstance(value, bool)
    if expected == "object":
        return isinstance(value, Mapping)
    if expected == "array":
        return isinstance(value, list | tuple)
    return False


@dataclass(slots=True)
class _Registered:
    spec: ToolSpec
    handler: ToolHandler


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, _Registered] = {}

    def register(self, spec: ToolSpec, handler: ToolHandler) -> None:
        self._tools[spec.name] = _Registered(spec=spec, handler=handler)

    def get(self, name: str) -> ToolSpec | None:
        entry = self._tools.get(name)
        return entry.spec if entry is not None else None

    def has(self, name: str) -> bool:
        return name in self._tools

    def specs(self) -> tuple[ToolSpec, ...]:
        return tuple(entry.spec for entry in self._tools.values())

    def schemas(self) -> list[dict[str, object]]:
        return [
            {
                "name": entry.spec.name,
                "description": entry.spec.description,
                "parameters": entry.spec.to_schema(),
            }
            for entry in self._tools.values()
        ]

    def validate(self, call: ToolCall) -> dict[str, Any]:
        """Check ``call`` against its spec and return the arguments to pass on.

        Raises InvalidArguments for an unknown tool, a missing required
        parameter or a type mismatch. Undeclared arguments are dropped.
        """
        entry = self._tools.get(call.name)
        if entry is None:
            raise InvalidArguments(f"unknown tool: {call.name}")
        accepted: dict[str, Any] = {}
        problems: list[str] = []
        for name, param in entry.spec.parameters.items():
            if name not in call.arguments or call.arguments[name] is None:
                if param.required:
                    problems.append(f"missing required parameter '{name}'")
                continue
            value = call.arguments[name]
            if not _matches_type(value, param.type):
                problems.append(
                    f"parameter '{name}' must be {param.type}, got {type(value).__name__}"
                )
                continue
            accepted[name] = value
        extra = sorted(set(call.arguments) - set(entry.spec.parameters))
        if extra:
            logger.debug("dropping undeclared arguments for %s: %s", call.name, extra)
        if problems:
            raise InvalidArguments(f"{call.name}: " + "; ".join(problems))
        return accepted

    async def execute(self, call: ToolCall) -> ToolResult:
        arguments = self.validate(call)
        handler = self._tools[call.name].handler
        logger.info("executing tool %s", call.name)
        try:
            output = await handler(arguments)
        except ToolError as exc:
            logger.warning("tool %s failed: %s: %s", call.name, type(exc).__name__, exc)
            raise
        except Exception as exc:
            # Handler bugs surface as a plain ToolError.
            logger.exception("tool %s crashed", call.name)
            raise ToolError(f"{call.name} crashed: {type(exc).__name__}: {exc}") from exc
        return ToolResult(tool_call_id=call.id, name=call.name, output=output, success=True)
