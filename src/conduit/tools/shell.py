"""Shell command tool.

Commands run unsandboxed through the system shell in the tool working
directory. Whoever enables this tool owns that trust decision.

Each command gets its own process group so a timeout kills everything the
shell started, not just the shell.
"""

import asyncio
import os
import signal
import subprocess
from collections.abc import Mapping
from typing import Any

from conduit.errors import ExecutionError, InvalidArguments
from conduit.tools.environment import ToolEnvironment, to_text


def _kill_group(proc: subprocess.Popen[bytes]) -> None:
    if os.name != "posix":
        proc.kill()
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def _run(command: str, env: ToolEnvironment) -> tuple[int, bytes]:
    with subprocess.Popen(
        command,
        shell=True,
        cwd=env.workdir,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        stdin=subprocess.DEVNULL,
        start_new_session=True,
    ) as proc:
        try:
            output, _ = proc.communicate(timeout=env.command_timeout_s)
        except subprocess.TimeoutExpired:
            _kill_group(proc)
            output, _ = proc.communicate()
            raise subprocess.TimeoutExpired(command, env.command_timeout_s, output=output)
        return proc.returncode, output


async def run_command(env: ToolEnvironment, arguments: Mapping[str, Any]) -> str:
    command: str = arguments["command"]
    if "\x00" in command:
        raise InvalidArguments("command must not contain NUL bytes")
    try:
        returncode, raw_output = await asyncio.to_thread(_run, command, env)
    except subprocess.TimeoutExpired as exc:
        output = env.clip(to_text(exc.output))
        raise ExecutionError(
            f"command timed out after {env.command_timeout_s:g}s",
            exit_code=None,
            output=output,
        ) from exc
    except (OSError, ValueError) as exc:
        raise ExecutionError(f"failed to start command: {exc}") from exc

    output = env.clip(to_text(raw_output))
    if returncode != 0:
        raise ExecutionError(
            f"command exited with status {returncode}\n{output}".rstrip(),
            exit_code=returncode,
            output=output,
        )
    return output
