"""Code evaluation tool.

There is no in-process evaluation. Without a configured evaluator the tool
reports Unimplemented; a real deployment plugs in an evaluator that talks to
an isolated sandbox.
"""

from collections.abc import Mapping
from typing import Any

from conduit.errors import Unimplemented
from conduit.tools.environment import ToolEnvironment


async def eval_code(env: ToolEnvironment, arguments: Mapping[str, Any]) -> str:
    if env.evaluator is None:
        raise Unimplemented(
            "eval_code is disabled: no sandboxed evaluator is configured"
        )
    result = await env.evaluator(arguments["code"])
    return env.clip(result)
