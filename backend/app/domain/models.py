"""Typed domain representations shared by adapters, aggregation, and the API."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from enum import Enum


class Platform(str, Enum):
    CODEFORCES = "CodeForces"
    LEETCODE = "LeetCode"
    CODECHEF = "CodeChef"
    ATCODER = "AtCoder"
    HACKERRANK = "HackerRank"
    HACKEREARTH = "HackerEarth"
    TOPCODER = "TopCoder"
    GEEKSFORGEEKS = "GeeksforGeeks"
    KICK_START = "Kick_Start"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


UNRATED = "Unrated"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class NormalizedContest:
    """Contest listing entry in the shape every source is mapped onto."""

    identifier: str
    name: str
    platform: Platform
    start_time: datetime
    end_time: datetime
    duration_seconds: int
    url: str
    source: str = ""


@dataclass(slots=True)
class NormalizedCodingProfile:
    """Per-platform coding statistics for a single handle.

    ``error`` is only set on profiles that carry no stats at all; see
    :meth:`failed`.
    """

    platform: Platform
    handle: str
    rating: int = 0
    max_rating: int = 0
    rank_tier: str = UNRATED
    problems_solved: int = 0
    easy_solved: int = 0
    medium_solved: int = 0
    hard_solved: int = 0
    contests_attended: int = 0
    global_rank: int | None = None
    country_rank: int | None = None
    trend: Trend = Trend.STABLE
    trend_delta: int = 0
    profile_url: str = ""
    error: str | None = None
    source: str = ""
    stale: bool = False

    @property
    def has_stats(self) -> bool:
        return self.rating > 0 or self.problems_solved > 0

    @classmethod
    def failed(cls, platform: Platform, handle: str, reason: str, *, profile_url: str = "") -> "NormalizedCodingProfile":
        return cls(
            platform=platform,
            handle=handle,
            profile_url=profile_url,
            error=reason,
            source="none",
        )


@dataclass(slots=True)
class CachedSnapshot:
    """Last known good profile and the moment it was captured."""

    profile: NormalizedCodingProfile
    captured_at: datetime

    def is_fresh(self, now: datetime, ttl_seconds: int) -> bool:
        return now - self.captured_at < timedelta(seconds=ttl_seconds)

    def as_profile(self, *, stale: bool) -> NormalizedCodingProfile:
        return replace(self.profile, source="cache", stale=stale, error=None)


@dataclass(slots=True)
class ActivityCalendar:
    """Submission counts per UTC day reported by one source."""

    source: str
    days: dict[date, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.days.values())
