"""URL fetch tool."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

import httpx

from conduit.errors import InvalidArguments, ToolNetworkError
from conduit.tools.environment import ToolEnvironment

_USER_AGENT = "Conduit/1.0 (+fetch_url tool)"


async def fetch_url(env: ToolEnvironment, arguments: Mapping[str, Any]) -> str:
    url: str = arguments["url"].strip()
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise InvalidArguments(f"malformed URL {url!r}: {exc}") from exc
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidArguments(f"fetch_url only supports absolute http(s) URLs, got: {url!r}")

    try:
        async with httpx.AsyncClient(
            timeout=env.fetch_timeout_s,
            follow_redirects=True,
            transport=env.http_transport,
            headers={"User-Agent": _USER_AGENT},
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.InvalidURL as exc:
        raise InvalidArguments(f"malformed URL {url!r}: {exc}") from exc
    except httpx.TimeoutException as exc:
        raise ToolNetworkError(f"timed out fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        raise ToolNetworkError(
            f"fetch failed ({exc.response.status_code}) for {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise ToolNetworkError(f"fetch failed for {url}: {exc}") from exc
    return env.clip(response.text)
