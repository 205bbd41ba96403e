from __future__ import annotations

import asyncio
from typing import Any

import httpx
from loguru import logger

from app.domain import NormalizedCodingProfile, Platform

from ..client import request_json
from ..errors import AdapterError
from ..normalize import parse_int, parse_optional_int
from ..platforms import compute_trend, rank_tier
from .base import ProfileAdapter, ProfileEndpoint, looks_like_missing_user

ALFA_API = "https://alfa-leetcode-api.onrender.com"
STATS_API = "https://leetcode-stats-api.herokuapp.com"


class LeetCodeProfileAdapter(ProfileAdapter):
    name = "leetcode"
    platform = Platform.LEETCODE

    def endpoints(self) -> list[tuple[str, ProfileEndpoint]]:
        return [
            ("alfa-leetcode-api", self._from_alfa),
            ("leetcode-stats-api", self._from_stats_api),
        ]

    async def _from_alfa(self, client: httpx.AsyncClient) -> NormalizedCodingProfile | None:
        profile, contest = await asyncio.gather(
            request_json(
                client, self.name, f"{ALFA_API}/userProfile/{self.handle}", timeout=self.endpoint_timeout
            ),
            request_json(
                client, self.name, f"{ALFA_API}/{self.handle}/contest", timeout=self.endpoint_timeout
            ),
            return_exceptions=True,
        )
        if isinstance(profile, BaseException):
            raise profile
        if looks_like_missing_user(profile):
            return None

        contest_data: dict[str, Any] = {}
        if isinstance(contest, AdapterError):
            logger.info("LeetCode contest history unavailable for {}: {}", self.handle, contest)
        elif isinstance(contest, BaseException):
            raise contest
        elif isinstance(contest, dict):
            contest_data = contest

        history = [
            float(entry.get("rating") or 0)
            for entry in contest_data.get("contestParticipation") or []
            if isinstance(entry, dict) and entry.get("attended", True)
        ]
        rating = int(round(float(contest_data.get("contestRating") or 0)))
        trend, delta = compute_trend(history)
        return NormalizedCodingProfile(
            platform=self.platform,
            handle=self.handle,
            rating=rating,
            max_rating=int(round(max(history, default=rating))),
            rank_tier=rank_tier(self.platform, rating),
            problems_solved=parse_int(profile.get("totalSolved")),
            easy_solved=parse_int(profile.get("easySolved")),
            medium_solved=parse_int(profile.get("mediumSolved")),
            hard_solved=parse_int(profile.get("hardSolved")),
            contests_attended=parse_int(contest_data.get("contestAttend"), default=len(history)),
            global_rank=parse_optional_int(profile.get("ranking")),
            trend=trend,
            trend_delta=delta,
            profile_url=self.profile_url,
        )

    async def _from_stats_api(self, client: httpx.AsyncClient) -> NormalizedCodingProfile | None:
        payload = await request_json(
            client, self.name, f"{STATS_API}/{self.handle}", timeout=self.endpoint_timeout
        )
        if not isinstance(payload, dict):
            raise ValueError("leetcode-stats-api payload is not an object")
        solved = parse_int(payload.get("totalSolved"))
        if payload.get("status") != "success" and solved <= 0:
            return None
        return NormalizedCodingProfile(
            platform=self.platform,
            handle=self.handle,
            rank_tier=rank_tier(self.platform, 0),
            problems_solved=solved,
            easy_solved=parse_int(payload.get("easySolved")),
            medium_solved=parse_int(payload.get("mediumSolved")),
            hard_solved=parse_int(payload.get("hardSolved")),
            global_rank=parse_optional_int(payload.get("ranking")),
            profile_url=self.profile_url,
        )
