from __future__ import annotations

from typing import Any

import httpx

from app.domain import NormalizedCodingProfile, Platform

from ..client import request_json
from ..normalize import parse_int, parse_optional_int
from ..platforms import rank_tier
from .base import ProfileAdapter, ProfileEndpoint, looks_like_missing_user

GFG_API = "https://geeks-for-geeks-api.vercel.app"
GFG_STATS_API = "https://geeks-for-geeks-stats-api.vercel.app/"


class GeeksforGeeksProfileAdapter(ProfileAdapter):
    """GeeksforGeeks has no public contest rating, so only solved counts are reported."""

    name = "geeksforgeeks"
    platform = Platform.GEEKSFORGEEKS

    def endpoints(self) -> list[tuple[str, ProfileEndpoint]]:
        return [
            ("geeks-for-geeks-api", self._from_gfg_api),
            ("geeks-for-geeks-stats-api", self._from_stats_api),
        ]

    def _build(self, data: dict[str, Any]) -> NormalizedCodingProfile:
        rating = parse_int(data.get("contestRating"))
        return NormalizedCodingProfile(
            platform=self.platform,
            handle=data.get("userName") or self.handle,
            rating=rating,
            max_rating=rating,
            rank_tier=rank_tier(self.platform, rating),
            problems_solved=parse_int(data.get("totalProblemsSolved")),
            global_rank=parse_optional_int(data.get("globalRank")),
            country_rank=parse_optional_int(data.get("instituteRank")),
            profile_url=self.profile_url,
        )

    async def _from_gfg_api(self, client: httpx.AsyncClient) -> NormalizedCodingProfile | None:
        payload = await request_json(
            client, self.name, f"{GFG_API}/{self.handle}", timeout=self.endpoint_timeout
        )
        if looks_like_missing_user(payload):
            return None
        info = payload.get("info")
        if not isinstance(info, dict):
            raise ValueError("GeeksforGeeks payload has no info block")
        return self._build(info)

    async def _from_stats_api(self, client: httpx.AsyncClient) -> NormalizedCodingProfile | None:
        payload = await request_json(
            client,
            self.name,
            GFG_STATS_API,
            params={"userName": self.handle, "raw": "y"},
            timeout=self.endpoint_timeout,
        )
        if looks_like_missing_user(payload):
            return None
        return self._build(payload)
