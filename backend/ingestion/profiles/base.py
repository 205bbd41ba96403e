"""Shared behaviour for coding-profile adapters."""

from __future__ import annotations

import asyncio
from abc import abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from loguru import logger

from app.domain import NormalizedCodingProfile, Platform

from ..base import SourceAdapter
from ..errors import AdapterError, AdapterTimeout, MalformedResponse
from ..platforms import profile_url

ProfileEndpoint = Callable[[httpx.AsyncClient], Awaitable[NormalizedCodingProfile | None]]


def looks_like_missing_user(payload: Any) -> bool:
    """Community APIs often answer 200 with an error body for unknown handles."""

    if not isinstance(payload, dict):
        return True
    if payload.get("error") or payload.get("success") is False:
        return True
    message = str(payload.get("message") or "").lower()
    return "not found" in message


class ProfileAdapter(SourceAdapter):
    """Try a provider's endpoints in order until one yields usable stats.

    Each endpoint gets ``timeout`` seconds; the adapter as a whole is bounded
    by the sum, so the alternate endpoint still gets its turn when the primary
    hangs.
    """

    platform: Platform

    def __init__(self, handle: str, *, timeout: float) -> None:
        self.handle = handle.strip()
        self.endpoint_timeout = timeout
        super().__init__(timeout=timeout * max(len(self.endpoints()), 1))

    @abstractmethod
    def endpoints(self) -> list[tuple[str, ProfileEndpoint]]:
        """Return ``(label, coroutine factory)`` pairs, primary first."""

    @property
    def profile_url(self) -> str:
        return profile_url(self.platform, self.handle)

    async def _fetch(self, client: httpx.AsyncClient) -> list[NormalizedCodingProfile]:
        last_error: AdapterError | None = None
        for label, endpoint in self.endpoints():
            try:
                profile = await asyncio.wait_for(endpoint(client), timeout=self.endpoint_timeout)
            except asyncio.TimeoutError:
                last_error = AdapterTimeout(
                    self.name, f"{label} gave no answer within {self.endpoint_timeout:g}s"
                )
            except AdapterError as exc:
                last_error = exc
            except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
                last_error = MalformedResponse(self.name, f"{label}: {exc.__class__.__name__}: {exc}")
            else:
                if profile is not None and profile.has_stats:
                    profile.source = label
                    return [profile]
                last_error = MalformedResponse(self.name, f"{label} returned no usable stats")
            logger.info("{} endpoint {} unusable for {}: {}", self.name, label, self.handle, last_error)
        raise last_error or MalformedResponse(self.name, "no endpoints configured")


__all__ = ["ProfileAdapter", "ProfileEndpoint", "looks_like_missing_user"]
