"""Platform name resolution and rating-derived fields."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from app.domain import UNRATED, Platform, Trend


def _alias_key(name: str) -> str:
    return "".join(name.lower().split()).replace("_", "")


_ALIASES: dict[str, Platform] = {
    "codeforces": Platform.CODEFORCES,
    "codeforces.com": Platform.CODEFORCES,
    "cf": Platform.CODEFORCES,
    "leetcode": Platform.LEETCODE,
    "leetcode.com": Platform.LEETCODE,
    "lc": Platform.LEETCODE,
    "codechef": Platform.CODECHEF,
    "codechef.com": Platform.CODECHEF,
    "atcoder": Platform.ATCODER,
    "atcoder.jp": Platform.ATCODER,
    "hackerrank": Platform.HACKERRANK,
    "hackerrank.com": Platform.HACKERRANK,
    "hackerearth": Platform.HACKEREARTH,
    "hackerearth.com": Platform.HACKEREARTH,
    "topcoder": Platform.TOPCODER,
    "topcoder.com": Platform.TOPCODER,
    "geeksforgeeks": Platform.GEEKSFORGEEKS,
    "geeksforgeeks.org": Platform.GEEKSFORGEEKS,
    "gfg": Platform.GEEKSFORGEEKS,
    "kickstart": Platform.KICK_START,
    "googlekickstart": Platform.KICK_START,
}


def canonicalize_platform(name: Any) -> Platform | None:
    """Resolve a provider-specific site name to its canonical platform.

    Matching ignores case, whitespace and underscores. Unknown names return
    ``None``.
    """

    if isinstance(name, Platform):
        return name
    if not isinstance(name, str) or not name.strip():
        return None
    return _ALIASES.get(_alias_key(name))


# Ordered (threshold, label) pairs, highest first; a rating at or above the
# threshold earns the label.
RANK_TIERS: dict[Platform, tuple[tuple[int, str], ...]] = {
    Platform.CODEFORCES: (
        (3000, "Legendary Grandmaster"),
        (2600, "International Grandmaster"),
        (2400, "Grandmaster"),
        (2300, "International Master"),
        (2100, "Master"),
        (1900, "Candidate Master"),
        (1600, "Expert"),
        (1400, "Specialist"),
        (1200, "Pupil"),
        (0, "Newbie"),
    ),
    Platform.CODECHEF: (
        (2500, "7★"),
        (2200, "6★"),
        (2000, "5★"),
        (1800, "4★"),
        (1600, "3★"),
        (1400, "2★"),
        (0, "1★"),
    ),
    Platform.LEETCODE: (
        (2150, "Guardian"),
        (1850, "Knight"),
        (0, "No Badge"),
    ),
}


def rank_tier(platform: Platform, rating: int | float | None) -> str:
    if not rating or rating <= 0:
        return UNRATED
    table = RANK_TIERS.get(platform)
    if not table:
        return UNRATED
    for threshold, label in table:
        if rating >= threshold:
            return label
    return UNRATED


def compute_trend(history: Sequence[int | float]) -> tuple[Trend, int]:
    """Derive the trend from the most recent rating change."""

    if len(history) < 2:
        return Trend.STABLE, 0
    delta = int(round(history[-1] - history[-2]))
    if delta > 0:
        return Trend.UP, delta
    if delta < 0:
        return Trend.DOWN, delta
    return Trend.STABLE, 0


_PROFILE_URLS: dict[Platform, str] = {
    Platform.CODEFORCES: "https://codeforces.com/profile/{handle}",
    Platform.LEETCODE: "https://leetcode.com/u/{handle}/",
    Platform.CODECHEF: "https://www.codechef.com/users/{handle}",
    Platform.GEEKSFORGEEKS: "https://www.geeksforgeeks.org/user/{handle}/",
    Platform.ATCODER: "https://atcoder.jp/users/{handle}",
}


def profile_url(platform: Platform, handle: str) -> str:
    template = _PROFILE_URLS.get(platform)
    return template.format(handle=handle) if template else ""


__all__ = [
    "RANK_TIERS",
    "canonicalize_platform",
    "compute_trend",
    "profile_url",
    "rank_tier",
]
