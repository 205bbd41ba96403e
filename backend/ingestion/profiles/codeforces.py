from __future__ import annotations

import asyncio
from typing import Any

import httpx
from loguru import logger

from app.domain import NormalizedCodingProfile, Platform

from ..client import request_json
from ..contests.codeforces import unwrap_codeforces
from ..errors import AdapterError
from ..normalize import parse_int
from ..platforms import compute_trend, rank_tier
from .base import ProfileAdapter, ProfileEndpoint

CODEFORCES_API = "https://codeforces.com/api"
CODEFORCES_MIRROR_API = "https://mirror.codeforces.com/api"
SUBMISSION_PAGE = 1000


def count_solved(submissions: list[dict[str, Any]]) -> int:
    """Count distinct accepted problems, keyed by ``contestId-index``."""
    solved: set[str] = set()
    for submission in submissions:
        if not isinstance(submission, dict) or submission.get("verdict") != "OK":
            continue
        problem = submission.get("problem")
        if not isinstance(problem, dict):
            continue
        solved.add(f"{problem.get('contestId')}-{problem.get('index')}")
    return len(solved)


class CodeforcesProfileAdapter(ProfileAdapter):
    """``user.info`` carries the ratings; history and submissions are best effort.

    Global rank is left empty: the API exposes no ranking lookup.
    """

    name = "codeforces"
    platform = Platform.CODEFORCES

    def endpoints(self) -> list[tuple[str, ProfileEndpoint]]:
        return [
            ("codeforces.com", lambda client: self._from_api(client, CODEFORCES_API)),
            ("mirror.codeforces.com", lambda client: self._from_api(client, CODEFORCES_MIRROR_API)),
        ]

    async def _call(self, client: httpx.AsyncClient, base: str, method: str, params: dict[str, Any]) -> list:
        payload = await request_json(
            client, self.name, f"{base}/{method}", params=params, timeout=self.endpoint_timeout
        )
        return unwrap_codeforces(payload)

    async def _from_api(self, client: httpx.AsyncClient, base: str) -> NormalizedCodingProfile | None:
        info, history, submissions = await asyncio.gather(
            self._call(client, base, "user.info", {"handles": self.handle}),
            self._call(client, base, "user.rating", {"handle": self.handle}),
            self._call(
                client,
                base,
                "user.status",
                {"handle": self.handle, "from": 1, "count": SUBMISSION_PAGE},
            ),
            return_exceptions=True,
        )
        if isinstance(info, BaseException):
            raise info
        if not info:
            return None
        user = info[0]
        if not isinstance(user, dict):
            raise ValueError("user.info entry is not an object")

        ratings: list[int] = []
        if isinstance(history, BaseException):
            self._log_optional_failure("user.rating", history)
        else:
            ratings = [
                parse_int(change.get("newRating")) for change in history if isinstance(change, dict)
            ]

        solved = 0
        if isinstance(submissions, BaseException):
            self._log_optional_failure("user.status", submissions)
        else:
            solved = count_solved(submissions)

        rating = parse_int(user.get("rating"))
        trend, delta = compute_trend(ratings)
        return NormalizedCodingProfile(
            platform=self.platform,
            handle=user.get("handle") or self.handle,
            rating=rating,
            max_rating=parse_int(user.get("maxRating"), default=rating),
            rank_tier=rank_tier(self.platform, rating),
            problems_solved=solved,
            contests_attended=len(ratings),
            trend=trend,
            trend_delta=delta,
            profile_url=self.profile_url,
        )

    def _log_optional_failure(self, method: str, exc: BaseException) -> None:
        if isinstance(exc, (AdapterError, ValueError, KeyError, TypeError, AttributeError)):
            logger.info("Codeforces {} unavailable for {}: {}", method, self.handle, exc)
            return
        raise exc
