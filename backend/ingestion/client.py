from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from app.core.config import settings

from .errors import AdapterTimeout, MalformedResponse, UpstreamStatusError, UpstreamUnavailable


def build_client(
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    user_agent: str | None = None,
) -> httpx.AsyncClient:
    """Create the shared async client used for one aggregation pass."""

    headers = {
        "Accept": "application/json",
        "User-Agent": user_agent or settings.user_agent,
    }
    return httpx.AsyncClient(
        timeout=timeout or settings.http_timeout_seconds,
        headers=headers,
        follow_redirects=True,
        transport=transport,
    )


async def request_json(
    client: httpx.AsyncClient,
    source: str,
    url: str,
    *,
    method: str = "GET",
    timeout: float | None = None,
    params: dict[str, Any] | None = None,
    json: Any = None,
) -> Any:
    """Perform one upstream call and decode its JSON body.

    Transport and status failures are translated into the adapter error
    taxonomy so callers only ever deal with :class:`AdapterError`.
    """

    logger.debug("{} {} {} params={}", source, method, url, params)
    request_kwargs: dict[str, Any] = {"params": params}
    if json is not None:
        request_kwargs["json"] = json
    if timeout is not None:
        request_kwargs["timeout"] = timeout
    try:
        response = await client.request(method, url, **request_kwargs)
    except httpx.TimeoutException as exc:
        raise AdapterTimeout(source, f"request to {url} timed out") from exc
    except httpx.HTTPError as exc:
        raise UpstreamUnavailable(source, f"{exc.__class__.__name__} calling {url}") from exc

    if response.is_error:
        raise UpstreamStatusError(source, response.status_code, url)

    try:
        return response.json()
    except ValueError as exc:
        raise MalformedResponse(source, f"non-JSON body from {url}") from exc
