"""Coding-profile adapters keyed by canonical platform."""

from __future__ import annotations

from app.domain import Platform

from .base import ProfileAdapter
from .codechef import CodeChefProfileAdapter
from .codeforces import CodeforcesProfileAdapter
from .geeksforgeeks import GeeksforGeeksProfileAdapter
from .leetcode import LeetCodeProfileAdapter

PROFILE_ADAPTERS: dict[Platform, type[ProfileAdapter]] = {
    Platform.LEETCODE: LeetCodeProfileAdapter,
    Platform.CODEFORCES: CodeforcesProfileAdapter,
    Platform.CODECHEF: CodeChefProfileAdapter,
    Platform.GEEKSFORGEEKS: GeeksforGeeksProfileAdapter,
}


def supported_profile_platforms() -> tuple[Platform, ...]:
    return tuple(PROFILE_ADAPTERS)


def build_profile_adapter(platform: Platform, handle: str, *, timeout: float) -> ProfileAdapter:
    try:
        adapter_cls = PROFILE_ADAPTERS[platform]
    except KeyError as exc:
        raise LookupError(f"No profile adapter registered for {platform.value}") from exc
    return adapter_cls(handle, timeout=timeout)


__all__ = [
    "PROFILE_ADAPTERS",
    "CodeChefProfileAdapter",
    "CodeforcesProfileAdapter",
    "GeeksforGeeksProfileAdapter",
    "LeetCodeProfileAdapter",
    "ProfileAdapter",
    "build_profile_adapter",
    "supported_profile_platforms",
]
