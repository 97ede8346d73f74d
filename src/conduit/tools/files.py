"""Filesystem tools: read, write, delete, list.

The blocking pathlib work runs on a worker thread so a slow disk never
stalls the other turns sharing the event loop.
"""

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from conduit.errors import IoError, InvalidArguments, NotADirectory, NotFound, PermissionDenied
from conduit.tools.environment import ToolEnvironment


def _resolve(env: ToolEnvironment, raw: str) -> Path:
    if "\x00" in raw:
        raise InvalidArguments("path must not contain NUL bytes")
    return env.resolve(raw)


def _read(target: Path) -> str:
    try:
        return target.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError as exc:
        raise NotFound(f"no such file: {target}") from exc
    except PermissionError as exc:
        raise PermissionDenied(f"permission denied: {target}") from exc
    except IsADirectoryError as exc:
        raise IoError(f"is a directory: {target}") from exc
    except OSError as exc:
        raise IoError(f"cannot read {target}: {exc}") from exc


def _write(target: Path, content: str) -> int:
    try:
        encoded = content.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidArguments(f"content is not valid UTF-8 text: {exc.reason}") from exc
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(encoded)
    except PermissionError as exc:
        raise PermissionDenied(f"permission denied: {target}") from exc
    except OSError as exc:
        raise IoError(f"cannot write {target}: {exc}") from exc
    return len(content)


def _delete(target: Path) -> None:
    if target.is_dir():
        raise IoError(f"is a directory, refusing to delete: {target}")
    try:
        target.unlink()
    except FileNotFoundError as exc:
        raise NotFound(f"no such file: {target}") from exc
    except PermissionError as exc:
        raise PermissionDenied(f"permission denied: {target}") from exc
    except OSError as exc:
        raise IoError(f"cannot delete {target}: {exc}") from exc


def _list(target: Path) -> list[str]:
    if not target.exists():
        raise NotFound(f"no such directory: {target}")
    if not target.is_dir():
        raise NotADirectory(f"not a directory: {target}")
    try:
        return sorted(entry.name for entry in target.iterdir())
    except PermissionError as exc:
        raise PermissionDenied(f"permission denied: {target}") from exc
    except OSError as exc:
        raise IoError(f"cannot list {target}: {exc}") from exc


async def read_file(env: ToolEnvironment, arguments: Mapping[str, Any]) -> str:
    text = await asyncio.to_thread(_read, _resolve(env, arguments["path"]))
    return env.clip(text)


async def write_file(env: ToolEnvironment, arguments: Mapping[str, Any]) -> str:
    target = _resolve(env, arguments["path"])
    written = await asyncio.to_thread(_write, target, arguments["content"])
    return f"wrote {written} characters to {target}"


async def delete_file(env: ToolEnvironment, arguments: Mapping[str, Any]) -> str:
    target = _resolve(env, arguments["path"])
    await asyncio.to_thread(_delete, target)
    return f"deleted {target}"


async def list_dir(env: ToolEnvironment, arguments: Mapping[str, Any]) -> str:
    names = await asyncio.to_thread(_list, _resolve(env, arguments["path"]))
    return env.clip("\n".join(names))
