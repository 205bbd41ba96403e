from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import httpx
from loguru import logger

from app.domain import NormalizedContest, Platform, utcnow

from ..base import SourceAdapter
from ..client import request_json
from ..normalize import build_contest, parse_datetime

LEETCODE_GRAPHQL_URL = "https://leetcode.com/graphql"
MAX_CONTESTS = 20

ALL_CONTESTS_QUERY = """
query {
  allContests {
    title
    startTime
    duration
    titleSlug
  }
}
"""


class LeetCodeContestAdapter(SourceAdapter):
    """LeetCode's public GraphQL contest catalogue, trimmed to a window around now."""

    name = "leetcode"

    def __init__(
        self,
        *,
        timeout: float,
        window_days: int = 60,
        clock: Callable[[], datetime] = utcnow,
        url: str = LEETCODE_GRAPHQL_URL,
    ) -> None:
        super().__init__(timeout=timeout)
        self.window_days = window_days
        self.clock = clock
        self.url = url

    async def _fetch(self, client: httpx.AsyncClient) -> list[NormalizedContest]:
        payload = await request_json(
            client,
            self.name,
            self.url,
            method="POST",
            json={"query": ALL_CONTESTS_QUERY},
            timeout=self.timeout,
        )
        entries = payload["data"]["allContests"]
        if not isinstance(entries, list):
            raise ValueError("allContests is not a list")

        now = self.clock()
        window = timedelta(days=self.window_days)
        contests: list[NormalizedContest] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            start = parse_datetime(entry.get("startTime"))
            if start is None or not (now - window < start < now + window):
                continue
            try:
                contests.append(
                    build_contest(
                        platform=Platform.LEETCODE,
                        name=entry.get("title"),
                        start_time=start,
                        duration_seconds=entry.get("duration"),
                        url=f"https://leetcode.com/contest/{entry.get('titleSlug', '')}/",
                        source=self.name,
                    )
                )
            except ValueError as exc:
                logger.debug("Skipping LeetCode contest: {}", exc)
            if len(contests) >= MAX_CONTESTS:
                break
        return contests
