"""Execution environment shared by the built-in tool handlers."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import httpx

CodeEvaluator = Callable[[str], Awaitable[str]]

TRUNCATION_MARKER = "\n[truncated]"


@dataclass(frozen=True, slots=True)
class ToolEnvironment:
    workdir: Path
    command_timeout_s: float = 60.0
    fetch_timeout_s: float = 30.0
    max_output_bytes: int = 32 * 1024
    http_transport: httpx.AsyncBaseTransport | None = None
    evaluator: CodeEvaluator | None = None

    def resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.workdir / candidate
        return candidate

    def clip(self, text: str) -> str:
        clipped, truncated = truncate_text(text, self.max_output_bytes)
        return clipped + TRUNCATION_MARKER if truncated else clipped


def truncate_text(value: str, max_bytes: int) -> tuple[str, bool]:
    encoded = value.encode("utf-8", errors="ignore")
    if len(encoded) <= max_bytes:
        return value, False
    clipped = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return clipped, True


def to_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
