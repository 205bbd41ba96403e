"""Capability interface shared by every source adapter."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

from .errors import AdapterError, AdapterTimeout, MalformedResponse


@dataclass
class AdapterResult:
    """Outcome of one adapter run: normalized records or the reason there are none."""

    source: str
    records: list[Any] = field(default_factory=list)
    error: AdapterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SourceAdapter(ABC):
    """Fetch one provider and map its payload onto normalized records.

    Subclasses implement :meth:`_fetch`; :meth:`fetch` owns the timeout and
    turns every failure into an empty :class:`AdapterResult`.
    """

    name: str

    def __init__(self, *, timeout: float) -> None:
        self.timeout = timeout

    @abstractmethod
    async def _fetch(self, client: httpx.AsyncClient) -> list[Any]:
        """Return normalized records or raise :class:`AdapterError`."""

    async def fetch(self, client: httpx.AsyncClient) -> AdapterResult:
        try:
            records = await asyncio.wait_for(self._fetch(client), timeout=self.timeout)
        except asyncio.TimeoutError:
            error: AdapterError = AdapterTimeout(self.name, f"no answer within {self.timeout:g}s")
        except AdapterError as exc:
            error = exc
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            error = MalformedResponse(self.name, f"{exc.__class__.__name__}: {exc}")
        else:
            logger.info("Fetched {} records from {}", len(records), self.name)
            return AdapterResult(source=self.name, records=records)

        logger.warning("{} source failed ({}): {}", self.name, error.kind, error.message)
        return AdapterResult(source=self.name, error=error)


__all__ = ["AdapterResult", "SourceAdapter"]
