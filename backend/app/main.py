from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query

from ingestion.cache import SnapshotCache
from ingestion.platforms import canonicalize_platform
from ingestion.service import (
    ActivityAggregator,
    ContestAggregator,
    ProfileAggregator,
    build_snapshot_cache,
)

from . import schemas
from .core.config import get_settings, settings
from .db import init_db
from .services.activity_service import ActivityService
from .services.contest_service import ContestQuery, ContestService
from .services.profile_service import ProfileService

app = FastAPI(title="Devfolio Stats API", version="0.1.0", debug=settings.debug)


@app.on_event("startup")
def on_startup() -> None:
    """Initialize database connections when the API boots."""

    init_db()


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness check consumed by infrastructure monitors."""

    return {"status": "ok"}


def _contest_query(
    platform: Annotated[
        str | None, Query(description="Only return contests for this platform", examples=["codeforces"])
    ] = None,
) -> ContestQuery:
    """Resolve platform aliases before the query reaches the service."""

    if platform is None:
        return ContestQuery()
    canonical = canonicalize_platform(platform)
    if canonical is None:
        raise HTTPException(status_code=400, detail=f"Unknown platform '{platform}'")
    return ContestQuery(platform=canonical)


@lru_cache
def _snapshot_cache() -> SnapshotCache:
    """One snapshot cache per process so snapshots survive between requests."""

    return build_snapshot_cache(get_settings())


def _contest_service() -> ContestService:
    return ContestService(ContestAggregator(settings=get_settings()))


def _profile_service(cache: SnapshotCache = Depends(_snapshot_cache)) -> ProfileService:
    current = get_settings()
    return ProfileService(
        ProfileAggregator(cache=cache, settings=current),
        handles=current.coding_handles,
    )


def _activity_service() -> ActivityService:
    current = get_settings()
    return ActivityService(ActivityAggregator(settings=current), handles=current.coding_handles)


@app.get("/contests", response_model=schemas.ContestList, tags=["contests"])
async def list_contests(
    *,
    query: ContestQuery = Depends(_contest_query),
    service: ContestService = Depends(_contest_service),
):
    """Merged contest calendar across every listing source."""

    return await service.list_contests(query)


@app.get("/profiles", response_model=schemas.ProfileList, tags=["profiles"])
async def list_profiles(service: ProfileService = Depends(_profile_service)):
    """Coding-profile stats for the configured handles."""

    return await service.list_profiles()


@app.get("/profiles/{platform}/{handle}", response_model=schemas.CodingProfile, tags=["profiles"])
async def get_profile(
    platform: str, handle: str, service: ProfileService = Depends(_profile_service)
):
    """Coding-profile stats for an arbitrary handle."""

    canonical = canonicalize_platform(platform)
    profile = await service.get_profile(canonical, handle) if canonical else None
    if profile is None:
        raise HTTPException(status_code=404, detail="Platform not supported")
    return profile


@app.get("/activity", response_model=schemas.ActivityMap, tags=["profiles"])
async def get_activity(service: ActivityService = Depends(_activity_service)):
    """Daily submission counts for the configured handles over the last year."""

    return await service.get_activity()
