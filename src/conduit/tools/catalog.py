"""Built-in tool catalog and registry construction."""

from functools import partial
from pathlib import Path

import httpx

from conduit.config import Settings
from conduit.tools.code import eval_code
from conduit.tools.environment import CodeEvaluator, ToolEnvironment
from conduit.tools.files import delete_file, list_dir, read_file, write_file
from conduit.tools.registry import ParamSpec, ToolRegistry, ToolSpec
from conduit.tools.shell import run_command
from conduit.tools.web import fetch_url

_PATH = ParamSpec(
    "string", description="File or directory path, relative to the working directory"
)

READ_FILE = ToolSpec(
    name="read_file",
    description="Read a file from the filesystem",
    parameters={"path": _PATH},
)
WRITE_FILE = ToolSpec(
    name="write_file",
    description="Write content to a file, creating or overwriting it",
    parameters={
        "path": _PATH,
        "content": ParamSpec("string", description="Full text to write"),
    },
)
DELETE_FILE = ToolSpec(
    name="delete_file",
    description="Delete a file from the filesystem",
    parameters={"path": _PATH},
)
LIST_DIR = ToolSpec(
    name="list_dir",
    description="List the entries of a directory",
    parameters={"path": _PATH},
)
RUN_COMMAND = ToolSpec(
    name="run_command",
    description="Run a shell command and return its combined stdout/stderr",
    parameters={"command": ParamSpec("string", description="Shell command line")},
)
FETCH_URL = ToolSpec(
    name="fetch_url",
    description="Perform an HTTP GET request and return the response body",
    parameters={"url": ParamSpec("string", description="Absolute http(s) URL")},
)
EVAL_CODE = ToolSpec(
    name="eval_code",
    description="Evaluate a code snippet in a sandbox, if one is configured",
    parameters={"code": ParamSpec("string", description="Source code to evaluate")},
)

DEFAULT_TOOL_SPECS: tuple[ToolSpec, ...] = (
    READ_FILE,
    WRITE_FILE,
    DELETE_FILE,
    LIST_DIR,
    RUN_COMMAND,
    FETCH_URL,
    EVAL_CODE,
)

_HANDLERS = {
    "read_file": read_file,
    "write_file": write_file,
    "delete_file": delete_file,
    "list_dir": list_dir,
    "run_command": run_command,
    "fetch_url": fetch_url,
    "eval_code": eval_code,
}


def build_default_registry(env: ToolEnvironment) -> ToolRegistry:
    registry = ToolRegistry()
    for spec in DEFAULT_TOOL_SPECS:
        registry.register(spec, partial(_HANDLERS[spec.name], env))
    return registry


def environment_from_settings(
    settings: Settings,
    *,
    http_transport: httpx.AsyncBaseTransport | None = None,
    evaluator: CodeEvaluator | None = None,
) -> ToolEnvironment:
    workdir = Path(settings.tool_workdir).expanduser() if settings.tool_workdir else Path.cwd()
    return ToolEnvironment(
        workdir=workdir.resolve(),
        command_timeout_s=settings.command_timeout_seconds,
        fetch_timeout_s=settings.fetch_timeout_seconds,
        max_output_bytes=settings.tool_max_output_bytes,
        http_transport=http_transport,
        evaluator=evaluator,
    )
