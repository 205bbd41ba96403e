from __future__ import annotations

import httpx
from loguru import logger

from app.domain import NormalizedContest, Platform

from ..base import SourceAdapter
from ..client import request_json
from ..normalize import build_contest

CODEFORCES_CONTESTS_URL = "https://codeforces.com/api/contest.list"
MAX_CONTESTS = 50


def unwrap_codeforces(payload: object) -> list:
    """Return ``result`` from a Codeforces API envelope."""
    if not isinstance(payload, dict):
        raise ValueError("Codeforces payload is not an object")
    if payload.get("status") != "OK":
        raise ValueError(f"Codeforces status {payload.get('status')!r}: {payload.get('comment', '')}")
    result = payload.get("result")
    if not isinstance(result, list):
        raise ValueError("Codeforces payload has no result list")
    return result


class CodeforcesContestAdapter(SourceAdapter):
    name = "codeforces"

    def __init__(self, *, timeout: float, url: str = CODEFORCES_CONTESTS_URL) -> None:
        super().__init__(timeout=timeout)
        self.url = url

    async def _fetch(self, client: httpx.AsyncClient) -> list[NormalizedContest]:
        payload = await request_json(client, self.name, self.url, timeout=self.timeout)
        contests: list[NormalizedContest] = []
        # contest.list is ordered newest first, upcoming rounds included
        for entry in unwrap_codeforces(payload)[:MAX_CONTESTS]:
            if not isinstance(entry, dict) or entry.get("startTimeSeconds") is None:
                continue
            try:
                contests.append(
                    build_contest(
                        platform=Platform.CODEFORCES,
                        name=entry.get("name"),
                        start_time=entry.get("startTimeSeconds"),
                        duration_seconds=entry.get("durationSeconds"),
                        url=f"https://codeforces.com/contest/{entry.get('id')}",
                        source=self.name,
                    )
                )
            except ValueError as exc:
                logger.debug("Skipping Codeforces contest: {}", exc)
        return contests
