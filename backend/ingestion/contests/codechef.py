from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from app.domain import NormalizedContest, Platform

from ..base import SourceAdapter
from ..client import request_json
from ..normalize import build_contest

CODECHEF_CONTESTS_URL = "https://www.codechef.com/api/list/contests/all"
CODECHEF_PARAMS = {
    "sort_by": "START",
    "sorting_order": "asc",
    "offset": 0,
    "mode": "all",
}
MAX_PAST_CONTESTS = 10


class CodeChefContestAdapter(SourceAdapter):
    name = "codechef"

    def __init__(self, *, timeout: float, url: str = CODECHEF_CONTESTS_URL) -> None:
        super().__init__(timeout=timeout)
        self.url = url

    async def _fetch(self, client: httpx.AsyncClient) -> list[NormalizedContest]:
        payload = await request_json(
            client, self.name, self.url, params=CODECHEF_PARAMS, timeout=self.timeout
        )
        if not isinstance(payload, dict):
            raise ValueError("CodeChef payload is not an object")
        groups = ("present_contests", "future_contests", "past_contests")
        if not any(isinstance(payload.get(group), list) for group in groups):
            raise ValueError("CodeChef payload has no contest lists")

        present = payload.get("present_contests") or []
        future = payload.get("future_contests") or []
        past = (payload.get("past_contests") or [])[:MAX_PAST_CONTESTS]

        contests: list[NormalizedContest] = []
        for entry in [*present, *future, *past]:
            if not isinstance(entry, dict):
                continue
            try:
                contests.append(self._normalize(entry))
            except ValueError as exc:
                logger.debug("Skipping CodeChef contest: {}", exc)
        return contests

    def _normalize(self, entry: dict[str, Any]) -> NormalizedContest:
        code = entry.get("contest_code") or ""
        return build_contest(
            platform=Platform.CODECHEF,
            name=entry.get("contest_name") or entry.get("name"),
            start_time=entry.get("contest_start_date_iso")
            or entry.get("contest_start_date")
            or entry.get("start_date"),
            end_time=entry.get("contest_end_date_iso")
            or entry.get("contest_end_date")
            or entry.get("end_date"),
            url=f"https://www.codechef.com/{code}",
            source=self.name,
        )
