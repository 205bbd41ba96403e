"""Placeholder data used when live sources come up short.

Contests fall back to the next occurrence of well-known weekly rounds;
profiles fall back to the snapshot cache and then to caller-supplied
baseline stats. Nothing here raises: every path ends in a usable record.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, fields
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Any

from loguru import logger

from app.domain import (
    CachedSnapshot,
    NormalizedCodingProfile,
    NormalizedContest,
    Platform,
    Trend,
)

from .base import AdapterResult
from .cache import SnapshotCache, snapshot_key
from .normalize import build_contest, merge_contests
from .platforms import canonicalize_platform, rank_tier

FALLBACK_SOURCE = "fallback"


@dataclass(slots=True)
class RecurringContest:
    """A contest held every week on a fixed weekday and local time."""

    key: str
    name: str
    platform: Platform
    weekday: int
    hour: int
    minute: int = 0
    duration_seconds: int = 5400
    url: str = ""

    @classmethod
    def from_config(cls, entry: Mapping[str, Any]) -> "RecurringContest":
        platform = canonicalize_platform(entry.get("platform"))
        if platform is None:
            raise ValueError(f"unknown platform {entry.get('platform')!r} in recurring contest")
        return cls(
            key=str(entry.get("key") or entry["name"]),
            name=str(entry["name"]),
            platform=platform,
            weekday=int(entry["weekday"]),
            hour=int(entry["hour"]),
            minute=int(entry.get("minute", 0)),
            duration_seconds=int(entry.get("duration_seconds", 5400)),
            url=str(entry.get("url") or ""),
        )


def next_occurrence(
    now: datetime,
    weekday: int,
    hour: int,
    minute: int = 0,
    tz: tzinfo = timezone.utc,
) -> datetime:
    """Return the next ``weekday`` at ``hour:minute`` in ``tz`` that is after ``now``.

    ``weekday`` follows :meth:`datetime.weekday` (Monday is 0). When ``now``
    falls on that weekday at or after the target time, the following week is
    used, so the result is always strictly in the future.
    """

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(tz)
    days_ahead = (weekday - local_now.weekday()) % 7
    target_day = local_now.date() + timedelta(days=days_ahead)
    candidate = datetime.combine(target_day, time(hour, minute), tzinfo=tz)
    if candidate <= now:
        candidate = datetime.combine(target_day + timedelta(days=7), time(hour, minute), tzinfo=tz)
    return candidate.astimezone(timezone.utc)


def synthesize_contest(recurring: RecurringContest, now: datetime, tz: tzinfo) -> NormalizedContest:
    start = next_occurrence(now, recurring.weekday, recurring.hour, recurring.minute, tz)
    return build_contest(
        platform=recurring.platform,
        name=recurring.name,
        start_time=start,
        duration_seconds=recurring.duration_seconds,
        url=recurring.url,
        source=FALLBACK_SOURCE,
    )


def needs_fallback(
    records: Sequence[NormalizedContest],
    *,
    min_count: int,
    required_sources: Iterable[str],
    succeeded: Iterable[str],
) -> bool:
    missing = set(required_sources) - set(succeeded)
    return len(records) < min_count or bool(missing)


def ensure_minimum_contests(
    records: Sequence[NormalizedContest],
    *,
    now: datetime,
    min_count: int,
    required_sources: Iterable[str],
    succeeded: Iterable[str],
    schedule: Sequence[RecurringContest],
    tz: tzinfo = timezone.utc,
) -> list[NormalizedContest]:
    """Top up ``records`` with synthesized weekly contests when coverage is thin.

    A synthesized entry is only added for platforms that have no live record
    at all, so real data is never shadowed by a placeholder.
    """

    if not needs_fallback(
        records, min_count=min_count, required_sources=required_sources, succeeded=succeeded
    ):
        return list(records)

    covered = {contest.platform for contest in records}
    synthesized = [
        synthesize_contest(recurring, now, tz)
        for recurring in schedule
        if recurring.platform not in covered
    ]
    logger.info(
        "Contest coverage thin ({} records); adding {} fallback entries",
        len(records),
        len(synthesized),
    )
    return merge_contests(records, synthesized)


_PROFILE_FIELDS = {item.name for item in fields(NormalizedCodingProfile)}


def baseline_profile(
    platform: Platform, handle: str, baseline: Mapping[str, Any], *, profile_url: str = ""
) -> NormalizedCodingProfile:
    """Build a profile from configured last-known stats; unknown keys are ignored."""

    values = {
        key: value
        for key, value in baseline.items()
        if key in _PROFILE_FIELDS and key not in {"platform", "handle", "error", "source", "stale"}
    }
    if "trend" in values:
        values["trend"] = Trend(values["trend"])
    profile = NormalizedCodingProfile(platform=platform, handle=handle, profile_url=profile_url, **values)
    if "rank_tier" not in values:
        profile.rank_tier = rank_tier(platform, profile.rating)
    if "max_rating" not in values:
        profile.max_rating = profile.rating
    profile.source = "baseline"
    return profile


def resolve_profile(
    platform: Platform,
    handle: str,
    live: AdapterResult,
    *,
    cache: SnapshotCache,
    now: datetime,
    ttl_seconds: int,
    baseline: Mapping[str, Any] | None = None,
    profile_url: str = "",
    persist: bool = True,
) -> NormalizedCodingProfile:
    """Pick the best available profile for ``handle``.

    Order: live result (primary or alternate endpoint), fresh snapshot,
    configured baseline, stale snapshot, and finally an error-marked profile. A
    live success is written to the cache before returning unless ``persist``
    is false.
    """

    key = snapshot_key(platform, handle)
    if live.ok and live.records:
        profile: NormalizedCodingProfile = live.records[0]
        if persist:
            cache.put(key, CachedSnapshot(profile=profile, captured_at=now))
        return profile

    snapshot = cache.get(key)
    if snapshot is not None and snapshot.is_fresh(now, ttl_seconds):
        logger.info(
            "Serving cached {} profile for {} captured at {}",
            platform.value,
            handle,
            snapshot.captured_at,
        )
        return snapshot.as_profile(stale=False)

    if baseline:
        logger.info("Serving configured baseline for {} {}", platform.value, handle)
        return baseline_profile(platform, handle, baseline, profile_url=profile_url)

    if snapshot is not None:
        logger.info(
            "Serving stale {} snapshot for {} captured at {}",
            platform.value,
            handle,
            snapshot.captured_at,
        )
        return snapshot.as_profile(stale=True)

    reason = live.error.message if live.error else "no data available"
    return NormalizedCodingProfile.failed(platform, handle, reason, profile_url=profile_url)


__all__ = [
    "FALLBACK_SOURCE",
    "RecurringContest",
    "baseline_profile",
    "ensure_minimum_contests",
    "needs_fallback",
    "next_occurrence",
    "resolve_profile",
    "synthesize_contest",
]
