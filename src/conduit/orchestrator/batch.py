"""Concurrent fan-out of independent prompts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from conduit.errors import AgentError

if TYPE_CHECKING:
    from conduit.messages import Message
    from conduit.orchestrator.agent import Agent

logger = logging.getLogger(__name__)


class BatchRunner:
    """Run each prompt on its own Agent and collect results by input index.

    ``agent_factory`` must return a fresh Agent per call so no two prompts
    share a history. Config, provider and tool registry may be shared; they
    are read-only. A failing prompt fills its own slot with the AgentError
    and never cancels its siblings.
    """

    def __init__(self, agent_factory: Callable[[], Agent], *, max_concurrent: int = 8) -> None:
        self._agent_factory = agent_factory
        self.max_concurrent = max(1, max_concurrent)

    async def send_batch(self, prompts: Sequence[str]) -> list[Message | AgentError]:
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def _run(index: int, prompt: str) -> Message | AgentError:
            async with semaphore:
                agent = self._agent_factory()
                try:
                    return await agent.send(prompt)
                except AgentError as exc:
                    logger.warning("batch prompt %d failed: %s", index, exc)
                    return exc
                except Exception as exc:
                    logger.exception("batch prompt %d crashed", index)
                    failure = AgentError(f"unexpected error: {type(exc).__name__}: {exc}")
                    failure.__cause__ = exc
                    return failure

        # gather returns results in argument order, whatever order they finish in.
        results = list(
            await asyncio.gather(*(_run(index, prompt) for index, prompt in enumerate(prompts)))
        )
        failed = sum(1 for result in results if isinstance(result, AgentError))
        logger.info("batch of %d finished, %d failed", len(results), failed)
        return results
