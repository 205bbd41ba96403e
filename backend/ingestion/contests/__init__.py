"""Contest listing adapters in merge priority order."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from app.core.config import Settings
from app.domain import utcnow

from ..base import SourceAdapter
from .codechef import CodeChefContestAdapter
from .codeforces import CodeforcesContestAdapter
from .kontests import KontestsAdapter
from .leetcode import LeetCodeContestAdapter


def default_contest_adapters(
    settings: Settings, *, clock: Callable[[], datetime] = utcnow
) -> list[SourceAdapter]:
    """Aggregator-of-aggregators first, then the authoritative per-platform APIs."""

    timeout = settings.http_timeout_seconds
    return [
        KontestsAdapter(timeout=timeout),
        CodeforcesContestAdapter(timeout=timeout),
        LeetCodeContestAdapter(
            timeout=timeout, window_days=settings.contest_window_days, clock=clock
        ),
        CodeChefContestAdapter(timeout=timeout),
    ]


__all__ = [
    "CodeChefContestAdapter",
    "CodeforcesContestAdapter",
    "KontestsAdapter",
    "LeetCodeContestAdapter",
    "default_contest_adapters",
]
