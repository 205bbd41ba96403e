"""kontests.net: a listing that already aggregates many judges."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from app.domain import NormalizedContest, Platform

from ..base import SourceAdapter
from ..client import request_json
from ..normalize import build_contest
from ..platforms import canonicalize_platform

KONTESTS_URL = "https://kontests.net/api/v1/all"


class KontestsAdapter(SourceAdapter):
    name = "kontests"

    def __init__(self, *, timeout: float, url: str = KONTESTS_URL) -> None:
        super().__init__(timeout=timeout)
        self.url = url

    async def _fetch(self, client: httpx.AsyncClient) -> list[NormalizedContest]:
        payload = await request_json(client, self.name, self.url, timeout=self.timeout)
        if not isinstance(payload, list):
            raise ValueError(f"expected a list of contests, got {type(payload).__name__}")

        contests: list[NormalizedContest] = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            platform = canonicalize_platform(entry.get("site"))
            if platform is None:
                continue
            try:
                contests.append(self._normalize(entry, platform))
            except ValueError as exc:
                logger.debug("Skipping kontests entry: {}", exc)
        return contests

    def _normalize(self, entry: dict[str, Any], platform: Platform) -> NormalizedContest:
        return build_contest(
            platform=platform,
            name=entry.get("name"),
            start_time=entry.get("start_time"),
            end_time=entry.get("end_time"),
            duration_seconds=entry.get("duration"),
            url=entry.get("url"),
            source=self.name,
        )
