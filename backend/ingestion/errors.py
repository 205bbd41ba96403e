"""Failure taxonomy reported by source adapters."""

from __future__ import annotations


class AdapterError(Exception):
    """Base class for every adapter-level failure."""

    kind = "error"

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class AdapterTimeout(AdapterError):
    """The adapter did not finish within its allotted time."""

    kind = "timeout"


class MalformedResponse(AdapterError):
    """The upstream answered successfully with a payload we cannot interpret."""

    kind = "malformed"


class UpstreamStatusError(AdapterError):
    """The upstream answered with a non-2xx status code."""

    kind = "status"

    def __init__(self, source: str, status_code: int, url: str) -> None:
        super().__init__(source, f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


class UpstreamUnavailable(AdapterError):
    """The request never produced a response (DNS, connection reset, ...)."""

    kind = "unavailable"


__all__ = [
    "AdapterError",
    "AdapterTimeout",
    "MalformedResponse",
    "UpstreamStatusError",
    "UpstreamUnavailable",
]
