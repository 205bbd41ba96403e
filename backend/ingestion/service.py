from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import httpx
from loguru import logger

from app.core.config import Settings, get_settings
from app.db import SessionLocal, init_db
from app.domain import ActivityCalendar, NormalizedCodingProfile, NormalizedContest, Platform, utcnow

from .activity import ACTIVITY_ADAPTERS, activity_window, merge_activity
from .base import AdapterResult, SourceAdapter
from .cache import DatabaseSnapshotCache, InMemorySnapshotCache, SnapshotCache
from .client import build_client
from .contests import KontestsAdapter, default_contest_adapters
from .errors import AdapterError
from .fallback import RecurringContest, ensure_minimum_contests, resolve_profile
from .normalize import merge_contests, merge_profiles
from .platforms import canonicalize_platform
from .profiles import PROFILE_ADAPTERS, ProfileAdapter, build_profile_adapter


@dataclass(slots=True)
class ContestAggregate:
    contests: list[NormalizedContest]
    sources: list[str]
    window_start: datetime
    window_end: datetime
    fetched_from_aggregator: bool = False

    @property
    def platforms(self) -> list[str]:
        seen: dict[str, None] = {}
        for contest in self.contests:
            seen.setdefault(contest.platform.value, None)
        return list(seen)


@dataclass(slots=True)
class ProfileAggregate:
    profiles: list[NormalizedCodingProfile] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ActivityAggregate:
    days: dict[date, int]
    sources: list[str]
    window_start: date
    window_end: date

    @property
    def total(self) -> int:
        return sum(self.days.values())


async def run_adapters(
    adapters: Sequence[SourceAdapter], client: httpx.AsyncClient
) -> list[AdapterResult]:
    """Start every adapter at once and wait for all of them to settle.

    Results come back in ``adapters`` order regardless of completion order.
    """

    outcomes = await asyncio.gather(
        *(adapter.fetch(client) for adapter in adapters), return_exceptions=True
    )
    results: list[AdapterResult] = []
    for adapter, outcome in zip(adapters, outcomes):
        if isinstance(outcome, AdapterResult):
            results.append(outcome)
            continue
        if not isinstance(outcome, Exception):
            raise outcome
        logger.opt(exception=outcome).error("{} adapter crashed", adapter.name)
        results.append(
            AdapterResult(
                source=adapter.name,
                error=AdapterError(adapter.name, f"{outcome.__class__.__name__}: {outcome}"),
            )
        )
    return results


@asynccontextmanager
async def _client_scope(
    client: httpx.AsyncClient | None,
    *,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None,
) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with build_client(timeout=timeout, transport=transport) as owned:
        yield owned


class ContestAggregator:
    """Merge every contest listing into one deduplicated, time-ordered calendar."""

    def __init__(
        self,
        *,
        adapters: Sequence[SourceAdapter] | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock = clock
        self.transport = transport
        self.adapters = (
            list(adapters)
            if adapters is not None
            else default_contest_adapters(self.settings, clock=clock)
        )
        self.schedule = [
            RecurringContest.from_config(entry) for entry in self.settings.recurring_contests
        ]
        self.tz = ZoneInfo(self.settings.fallback_timezone)

    async def aggregate(
        self, *, now: datetime | None = None, client: httpx.AsyncClient | None = None
    ) -> ContestAggregate:
        now = now or self.clock()
        async with _client_scope(
            client, timeout=self.settings.http_timeout_seconds, transport=self.transport
        ) as http:
            results = await run_adapters(self.adapters, http)

        contests: list[NormalizedContest] = []
        sources: list[str] = []
        for result in results:
            if not result.ok or not result.records:
                continue
            sources.append(result.source)
            contests = merge_contests(contests, result.records)

        contests = ensure_minimum_contests(
            contests,
            now=now,
            min_count=self.settings.contest_min_count,
            required_sources=self.settings.contest_required_sources,
            succeeded=sources,
            schedule=self.schedule,
            tz=self.tz,
        )

        window_start = now - timedelta(days=self.settings.contest_window_days)
        contests = [contest for contest in contests if contest.end_time > window_start]
        contests.sort(key=lambda contest: (contest.start_time, contest.identifier))

        logger.info("Aggregated {} contests from {}", len(contests), ", ".join(sources) or "fallback only")
        return ContestAggregate(
            contests=contests,
            sources=sources,
            window_start=window_start,
            window_end=now,
            fetched_from_aggregator=KontestsAdapter.name in sources,
        )


def build_snapshot_cache(settings: Settings) -> SnapshotCache:
    if settings.snapshot_cache_backend == "database":
        init_db()
        return DatabaseSnapshotCache(SessionLocal)
    return InMemorySnapshotCache()


class ProfileAggregator:
    """Collect one coding profile per platform, falling back to cache or baseline."""

    def __init__(
        self,
        *,
        cache: SnapshotCache | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        transport: httpx.AsyncBaseTransport | None = None,
        adapter_factory: Callable[..., ProfileAdapter] = build_profile_adapter,
        owner_handles: Mapping[Any, str] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else build_snapshot_cache(self.settings)
        self.clock = clock
        self.transport = transport
        self.adapter_factory = adapter_factory
        self.baselines: dict[Platform, dict[str, Any]] = {}
        for name, baseline in self.settings.profile_baselines.items():
            platform = canonicalize_platform(name)
            if platform is None:
                logger.warning("Ignoring baseline for unknown platform {}", name)
                continue
            self.baselines[platform] = dict(baseline)
        # Baselines and snapshots belong to the owner's handles only.
        self.owners: dict[Platform, str] = {}
        owners = self.settings.coding_handles if owner_handles is None else owner_handles
        for name, handle in owners.items():
            platform = canonicalize_platform(name)
            if platform is not None and handle and handle.strip():
                self.owners[platform] = handle.strip().lower()

    def is_owner(self, platform: Platform, handle: str) -> bool:
        return self.owners.get(platform) == handle.strip().lower()

    def _resolve_handles(self, handles: Mapping[Any, str]) -> list[tuple[Platform, str]]:
        resolved: list[tuple[Platform, str]] = []
        for name, handle in handles.items():
            platform = canonicalize_platform(name)
            if platform is None or platform not in PROFILE_ADAPTERS:
                logger.warning("No profile adapter for platform {}; skipping", name)
                continue
            if not handle or not handle.strip():
                continue
            resolved.append((platform, handle.strip()))
        return resolved

    async def aggregate(
        self, handles: Mapping[Any, str], *, client: httpx.AsyncClient | None = None
    ) -> ProfileAggregate:
        targets = self._resolve_handles(handles)
        if not targets:
            return ProfileAggregate()

        adapters = [
            self.adapter_factory(platform, handle, timeout=self.settings.profile_timeout_seconds)
            for platform, handle in targets
        ]
        async with _client_scope(
            client, timeout=self.settings.profile_timeout_seconds, transport=self.transport
        ) as http:
            results = await run_adapters(adapters, http)

        now = self.clock()
        aggregate = ProfileAggregate()
        for (platform, handle), adapter, result in zip(targets, adapters, results):
            if result.ok and result.records:
                aggregate.sources.append(result.source)
            owner = self.is_owner(platform, handle)
            profile = resolve_profile(
                platform,
                handle,
                result,
                cache=self.cache,
                now=now,
                ttl_seconds=self.settings.snapshot_ttl_seconds,
                baseline=self.baselines.get(platform) if owner else None,
                profile_url=adapter.profile_url,
                persist=owner,
            )
            aggregate.profiles = merge_profiles(aggregate.profiles, [profile])
        return aggregate

    async def fetch_profile(
        self, platform: Platform, handle: str, *, client: httpx.AsyncClient | None = None
    ) -> NormalizedCodingProfile:
        if platform not in PROFILE_ADAPTERS:
            raise LookupError(f"No profile adapter registered for {platform.value}")
        aggregate = await self.aggregate({platform: handle}, client=client)
        if not aggregate.profiles:
            raise LookupError(f"No handle supplied for {platform.value}")
        return aggregate.profiles[0]


class ActivityAggregator:
    """Merge the owner's submission calendars into one year of daily counts."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock = clock
        self.transport = transport

    def _build_adapters(self, handles: Mapping[Any, str]) -> list[SourceAdapter]:
        adapters: list[SourceAdapter] = []
        for name, handle in handles.items():
            platform = canonicalize_platform(name)
            if platform not in ACTIVITY_ADAPTERS or not handle or not handle.strip():
                continue
            adapter_cls = ACTIVITY_ADAPTERS[platform]
            adapters.append(adapter_cls(handle, timeout=self.settings.profile_timeout_seconds))
        return adapters

    async def aggregate(
        self, handles: Mapping[Any, str] | None = None, *, client: httpx.AsyncClient | None = None
    ) -> ActivityAggregate:
        handles = self.settings.coding_handles if handles is None else handles
        start, end = activity_window(self.clock())
        adapters = self._build_adapters(handles)

        calendars: list[ActivityCalendar] = []
        if adapters:
            async with _client_scope(
                client, timeout=self.settings.profile_timeout_seconds, transport=self.transport
            ) as http:
                results = await run_adapters(adapters, http)
            for result in results:
                if result.ok:
                    calendars.extend(result.records)

        days = merge_activity(calendars, start=start, end=end)
        sources = [calendar.source for calendar in calendars]
        logger.info(
            "Merged activity from {} ({} submissions)",
            ", ".join(sources) or "no sources",
            sum(days.values()),
        )
        return ActivityAggregate(days=days, sources=sources, window_start=start, window_end=end)


__all__ = [
    "ActivityAggregate",
    "ActivityAggregator",
    "ContestAggregate",
    "ContestAggregator",
    "ProfileAggregate",
    "ProfileAggregator",
    "build_snapshot_cache",
    "run_adapters",
]
