"""Provider contracts."""

from collections.abc import Sequence
from typing import Protocol

from conduit.config import ProviderConfig
from conduit.messages import Message
from conduit.tools.registry import ToolSpec


class ModelProvider(Protocol):
    """One LLM backend behind the shared message shape.

    ``complete`` sends the whole history in a single request and returns an
    assistant Message, which carries a ToolCall when the model asked for one.
    Failures are raised as ProviderError subclasses.
    """

    async def complete(
        self,
        history: Sequence[Message],
        config: ProviderConfig,
        tools: Sequence[ToolSpec] = (),
    ) -> Message: ...
