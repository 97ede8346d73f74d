"""Shared HTTP exchange and error mapping for provider adapters."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from conduit.config import ProviderConfig
from conduit.errors import (
    AuthError,
    MalformedResponse,
    ProviderNetworkError,
    RateLimited,
    RequestRejected,
)

logger = logging.getLogger(__name__)

_AUTH_STATUSES = {401, 403}


def require_api_key(config: ProviderConfig) -> str:
    key = config.api_key.strip()
    if not key:
        raise AuthError(f"missing API key for provider {config.provider_kind}")
    return key


def parse_retry_after(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return max(0.0, seconds)


def _error_detail(response: httpx.Response) -> str:
    text = response.text.strip()
    return text[:500] if text else response.reason_phrase


def raise_for_provider_status(provider: str, response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    detail = _error_detail(response)
    if status == 429:
        raise RateLimited(
            f"{provider} rate limited (429): {detail}",
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        )
    if status in _AUTH_STATUSES:
        raise AuthError(f"{provider} rejected credentials ({status}): {detail}")
    if status >= 500:
        raise ProviderNetworkError(f"{provider} server error ({status}): {detail}")
    raise RequestRejected(f"{provider} rejected request ({status}): {detail}", status_code=status)


async def post_json(
    provider: str,
    url: str,
    body: Mapping[str, object],
    *,
    config: ProviderConfig,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """POST ``body`` and return the decoded JSON object.

    Transport failures and 5xx become ProviderNetworkError, 429 RateLimited,
    401/403 AuthError, other 4xx RequestRejected, and anything that is not a
    JSON object MalformedResponse.
    """
    try:
        async with httpx.AsyncClient(timeout=config.timeout_seconds, transport=transport) as client:
            response = await client.post(url, json=body, headers=headers, params=params)
    except httpx.TimeoutException as exc:
        raise ProviderNetworkError(f"{provider} request timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        raise ProviderNetworkError(f"{provider} request failed: {type(exc).__name__}: {exc}") from exc

    raise_for_provider_status(provider, response)
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponse(f"{provider} response is not JSON") from exc
    if not isinstance(payload, dict):
        raise MalformedResponse(f"{provider} response is not an object")
    logger.debug("%s responded %d", provider, response.status_code)
    return payload


def coerce_text(value: object) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        chunks: list[str] = []
        for item in value:
            if isinstance(item, str):
                chunks.append(item)
            elif isinstance(item, dict):
                text = item.get("text")
                if isinstance(text, str):
                    chunks.append(text)
        return "".join(chunks)
    return ""


def decode_arguments(provider: str, raw: object) -> dict[str, Any]:
    """Normalize a tool-call argument payload to a dict.

    Unparseable payloads become an empty dict; registry validation then
    rejects the call instead of executing on garbage.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("%s returned unparseable tool arguments", provider)
            return {}
        if isinstance(decoded, dict):
            return decoded
    return {}


def warn_extra_calls(provider: str, count: int) -> None:
    if count > 1:
        logger.warning(
            "%s returned %d tool calls; executing the first, ignoring the rest", provider, count
        )
