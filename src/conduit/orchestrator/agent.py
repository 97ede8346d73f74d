"""Agent dispatch loop.

One Agent owns one conversation. A turn runs:

    user message
        -> provider.complete (through with_retry)
        -> tool call?  yes: validate + execute, append result, ask again
                       no:  append assistant message, return it

Provider calls and tool executions inside a turn never overlap; the number
of tool round-trips per turn is capped.
"""

import asyncio
import logging
from collections.abc import Sequence
from uuid import uuid4

import httpx

from conduit.config import ProviderConfig, Settings, provider_config_from_settings
from conduit.errors import (
    AgentError,
    InvalidArguments,
    ProviderError,
    ProviderFailure,
    RoundTripLimitExceeded,
    ToolError,
    ToolFailure,
)
from conduit.logging import bound_context
from conduit.messages import Message, ToolCall, ToolResult
from conduit.orchestrator.batch import BatchRunner
from conduit.providers.base import ModelProvider
from conduit.providers.factory import build_provider
from conduit.providers.retry import Sleep, with_retry
from conduit.tools.catalog import build_default_registry, environment_from_settings
from conduit.tools.environment import CodeEvaluator
from conduit.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

MAX_TOOL_ROUND_TRIPS = 10
DEFAULT_SYSTEM_PROMPT = (
    "You are Conduit, a versatile coding assistant with tools for file I/O, "
    "directory listing, shell commands, HTTP fetches and code evaluation. "
    "Call a tool when it gets you facts you do not have; otherwise answer directly. "
    "Respond concisely."
)


def _failed_result(call: ToolCall, exc: ToolError) -> ToolResult:
    return ToolResult(
        tool_call_id=call.id,
        name=call.name,
        output=f"error ({exc.kind}): {exc}",
        success=False,
    )


class Agent:
    def __init__(
        self,
        config: ProviderConfig,
        provider: ModelProvider,
        registry: ToolRegistry,
        *,
        system_prompt: str | None = DEFAULT_SYSTEM_PROMPT,
        max_round_trips: int = MAX_TOOL_ROUND_TRIPS,
        strict_tools: bool = False,
        max_concurrent: int = 8,
        sleep: Sleep | None = None,
    ) -> None:
        if max_round_trips < 1:
            raise ValueError("max_round_trips must be at least 1")
        self.config = config
        self.provider = provider
        self.registry = registry
        self.system_prompt = system_prompt
        self.max_round_trips = max_round_trips
        self.strict_tools = strict_tools
        self.max_concurrent = max_concurrent
        self._sleep: Sleep = sleep if sleep is not None else asyncio.sleep
        self._history: list[Message] = []
        self.reset()

    @property
    def history(self) -> tuple[Message, ...]:
        return tuple(self._history)

    def reset(self) -> None:
        self._history = []
        if self.system_prompt:
            self._history.append(Message.system(self.system_prompt))

    def fork(self) -> "Agent":
        """A fresh Agent sharing config, provider and tools, with its own history."""
        return Agent(
            self.config,
            self.provider,
            self.registry,
            system_prompt=self.system_prompt,
            max_round_trips=self.max_round_trips,
            strict_tools=self.strict_tools,
            max_concurrent=self.max_concurrent,
            sleep=self._sleep,
        )

    async def _complete(self) -> Message:
        snapshot = tuple(self._history)
        tools = self.registry.specs()

        async def _attempt() -> Message:
            return await self.provider.complete(snapshot, self.config, tools)

        return await with_retry(
            _attempt,
            self.config.retry_count,
            self.config.backoff_base_ms,
            jitter=self.config.backoff_jitter,
            sleep=self._sleep,
        )

    async def _run_tool(self, call: ToolCall) -> ToolResult:
        if not self.registry.has(call.name):
            logger.warning("model requested unknown tool %s", call.name)
            return _failed_result(call, InvalidArguments(f"unknown tool: {call.name}"))
        try:
            return await self.registry.execute(call)
        except InvalidArguments as exc:
            return _failed_result(call, exc)
        except ToolError as exc:
            if self.strict_tools:
                # Record the failure first so the call still has its result.
                self._history.append(_failed_result(call, exc).to_message())
                raise ToolFailure(exc) from exc
            return _failed_result(call, exc)

    async def send(self, prompt: str) -> Message:
        """Run one turn and return the terminal assistant message.

        Raises ProviderFailure, ToolFailure (strict mode only) or
        RoundTripLimitExceeded.
        """
        with bound_context(turn_id=f"turn_{uuid4().hex[:12]}"):
            self._history.append(Message.user(prompt))
            round_trips = 0
            while True:
                try:
                    reply = await self._complete()
                except ProviderError as exc:
                    logger.error("turn failed on provider error: %s", exc)
                    raise ProviderFailure(exc) from exc

                if reply.tool_call is None:
                    self._history.append(reply)
                    logger.info(
                        "turn finished after %d tool round-trips (%d chars)",
                        round_trips,
                        len(reply.content),
                    )
                    return reply

                if round_trips >= self.max_round_trips:
                    logger.warning(
                        "model requested tool %s beyond the %d round-trip cap",
                        reply.tool_call.name,
                        self.max_round_trips,
                    )
                    raise RoundTripLimitExceeded(self.max_round_trips)

                round_trips += 1
                logger.debug("tool round-trip %d: %s", round_trips, reply.tool_call.name)
                self._history.append(reply)
                result = await self._run_tool(reply.tool_call)
                self._history.append(result.to_message())

    async def send_batch(self, prompts: Sequence[str]) -> list[Message | AgentError]:
        return await BatchRunner(self.fork, max_concurrent=self.max_concurrent).send_batch(prompts)


def build_agent(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    evaluator: CodeEvaluator | None = None,
) -> Agent:
    config = provider_config_from_settings(settings)
    registry = build_default_registry(environment_from_settings(settings, evaluator=evaluator))
    return Agent(
        config,
        build_provider(config, transport=transport),
        registry,
        max_round_trips=settings.max_tool_round_trips,
        strict_tools=bool(settings.agent_strict_tools),
        max_concurrent=settings.batch_max_concurrent,
    )
