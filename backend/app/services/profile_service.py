"""Coding-profile facade used by the API and CLI."""

from __future__ import annotations

from collections.abc import Mapping

from app.domain import Platform
from app.schemas import CodingProfile, ProfileList
from ingestion.service import ProfileAggregator


class ProfileService:
    """Serve profile stats for the portfolio owner's configured handles."""

    def __init__(self, aggregator: ProfileAggregator, handles: Mapping[str, str]):
        self._aggregator = aggregator
        self._handles = dict(handles)

    async def list_profiles(self) -> ProfileList:
        aggregate = await self._aggregator.aggregate(self._handles)
        return ProfileList(
            profiles=[CodingProfile.model_validate(profile) for profile in aggregate.profiles],
            sources=aggregate.sources,
        )

    async def get_profile(self, platform: Platform, handle: str) -> CodingProfile | None:
        """Return the profile for ``handle``, or ``None`` when the platform has no adapter."""

        try:
            profile = await self._aggregator.fetch_profile(platform, handle)
        except LookupError:
            return None
        return CodingProfile.model_validate(profile)
