from __future__ import annotations

from typing import Any

import httpx

from app.domain import NormalizedCodingProfile, Platform

from ..client import request_json
from ..normalize import parse_int, parse_optional_int
from ..platforms import compute_trend, rank_tier
from .base import ProfileAdapter, ProfileEndpoint, looks_like_missing_user

CODECHEF_API = "https://codechef-api.vercel.app/handle"
COMPETITIVE_CODING_API = "https://competitive-coding-api.herokuapp.com/api/codechef"


class CodeChefProfileAdapter(ProfileAdapter):
    name = "codechef"
    platform = Platform.CODECHEF

    def endpoints(self) -> list[tuple[str, ProfileEndpoint]]:
        return [
            ("codechef-api", self._from_codechef_api),
            ("competitive-coding-api", self._from_competitive_coding_api),
        ]

    def _build(
        self,
        *,
        rating: int,
        max_rating: int,
        solved: int,
        history: list[int],
        global_rank: Any,
        country_rank: Any,
    ) -> NormalizedCodingProfile:
        trend, delta = compute_trend(history)
        return NormalizedCodingProfile(
            platform=self.platform,
            handle=self.handle,
            rating=rating,
            max_rating=max(max_rating, rating),
            rank_tier=rank_tier(self.platform, rating),
            problems_solved=solved,
            contests_attended=len(history),
            global_rank=parse_optional_int(global_rank),
            country_rank=parse_optional_int(country_rank),
            trend=trend,
            trend_delta=delta,
            profile_url=self.profile_url,
        )

    async def _from_codechef_api(self, client: httpx.AsyncClient) -> NormalizedCodingProfile | None:
        data = await request_json(
            client, self.name, f"{CODECHEF_API}/{self.handle}", timeout=self.endpoint_timeout
        )
        if looks_like_missing_user(data):
            return None
        rating = parse_int(data.get("currentRating") or data.get("rating"))
        return self._build(
            rating=rating,
            max_rating=parse_int(data.get("highestRating") or data.get("maxRating")),
            solved=parse_int(data.get("problemsSolved") or data.get("fullySolved")),
            history=[parse_int(entry.get("rating")) for entry in data.get("ratingData") or []],
            global_rank=data.get("globalRank"),
            country_rank=data.get("countryRank"),
        )

    async def _from_competitive_coding_api(
        self, client: httpx.AsyncClient
    ) -> NormalizedCodingProfile | None:
        data = await request_json(
            client, self.name, f"{COMPETITIVE_CODING_API}/{self.handle}", timeout=self.endpoint_timeout
        )
        if looks_like_missing_user(data) or data.get("status") == "Failed":
            return None
        rating = parse_int(data.get("rating"))
        fully_solved = data.get("fully_solved") or {}
        return self._build(
            rating=rating,
            max_rating=parse_int(data.get("highest_rating"), default=rating),
            solved=parse_int(fully_solved.get("count") if isinstance(fully_solved, dict) else 0),
            history=[parse_int(entry.get("rating")) for entry in data.get("contest_ratings") or []],
            global_rank=data.get("global_rank"),
            country_rank=data.get("country_rank"),
        )
