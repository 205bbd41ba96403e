from __future__ import annotations

import asyncio
from datetime import timedelta

import httpx

from app.core.config import Settings
from app.domain import CachedSnapshot, NormalizedCodingProfile, Platform
from ingestion.base import SourceAdapter
from ingestion.cache import InMemorySnapshotCache, snapshot_key
from ingestion.errors import AdapterTimeout, UpstreamStatusError
from ingestion.fallback import FALLBACK_SOURCE
from ingestion.normalize import build_contest
from ingestion.service import ContestAggregator, ProfileAggregator, run_adapters


class StaticAdapter(SourceAdapter):
    def __init__(self, name, records=(), *, error=None, delay=0.0, crash=None):
        super().__init__(timeout=1)
        self.name = name
        self.records = list(records)
        self.error = error
        self.delay = delay
        self.crash = crash

    async def _fetch(self, client):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.records)

    async def fetch(self, client):
        if self.crash is not None:
            raise self.crash
        return await super().fetch(client)


def _contest(name, now, *, platform=Platform.CODEFORCES, offset=timedelta(days=1), source="kontests"):
    return build_contest(
        platform=platform,
        name=name,
        start_time=now + offset,
        duration_seconds=7200,
        source=source,
    )


def _settings(**overrides) -> Settings:
    values = {"contest_min_count": 0, "contest_required_sources": [], "http_timeout_seconds": 2}
    values.update(overrides)
    return Settings(**values)


def _aggregate(aggregator):
    return asyncio.run(aggregator.aggregate())


def test_run_adapters_preserves_order_and_wraps_crashes(fixed_now):
    adapters = [
        StaticAdapter("slow", [_contest("A", fixed_now)], delay=0.05),
        StaticAdapter("broken", crash=RuntimeError("boom")),
        StaticAdapter("fast", [_contest("B", fixed_now)]),
    ]

    async def _inner():
        async with httpx.AsyncClient() as client:
            return await run_adapters(adapters, client)

    results = asyncio.run(_inner())

    assert [result.source for result in results] == ["slow", "broken", "fast"]
    assert results[0].ok and results[2].ok
    assert "RuntimeError: boom" in results[1].error.message


def test_aggregator_prefers_earlier_source_even_when_slower(fixed_now):
    adapters = [
        StaticAdapter("kontests", [_contest("Codeforces Round 900", fixed_now)], delay=0.05),
        StaticAdapter(
            "codeforces",
            [
                _contest("Codeforces Round 900", fixed_now, source="codeforces"),
                _contest("Codeforces Round 901", fixed_now, offset=timedelta(days=2), source="codeforces"),
            ],
        ),
    ]
    aggregate = _aggregate(ContestAggregator(adapters=adapters, settings=_settings(), clock=lambda: fixed_now))

    assert [(contest.name, contest.source) for contest in aggregate.contests] == [
        ("Codeforces Round 900", "kontests"),
        ("Codeforces Round 901", "codeforces"),
    ]
    assert aggregate.sources == ["kontests", "codeforces"]
    assert aggregate.fetched_from_aggregator is True


def test_aggregator_sorts_by_start_then_identifier(fixed_now):
    adapters = [
        StaticAdapter(
            "codechef",
            [
                _contest("Zeta", fixed_now, platform=Platform.CODECHEF),
                _contest("Later", fixed_now, platform=Platform.CODECHEF, offset=timedelta(days=3)),
                _contest("Alpha", fixed_now, platform=Platform.CODECHEF),
            ],
        )
    ]
    aggregate = _aggregate(ContestAggregator(adapters=adapters, settings=_settings(), clock=lambda: fixed_now))

    assert [contest.name for contest in aggregate.contests] == ["Alpha", "Zeta", "Later"]
    assert aggregate.platforms == ["CodeChef"]


def test_aggregator_drops_contests_outside_window(fixed_now):
    adapters = [
        StaticAdapter(
            "codeforces",
            [
                _contest("Ancient", fixed_now, offset=-timedelta(days=61)),
                _contest("Recent", fixed_now, offset=-timedelta(days=59)),
                _contest("Upcoming", fixed_now),
            ],
        )
    ]
    aggregator = ContestAggregator(adapters=adapters, settings=_settings())
    aggregate = asyncio.run(aggregator.aggregate(now=fixed_now))

    assert [contest.name for contest in aggregate.contests] == ["Recent", "Upcoming"]
    assert aggregate.window_start == fixed_now - timedelta(days=60)
    assert aggregate.window_end == fixed_now


def test_aggregator_never_returns_empty_calendar(fixed_now):
    adapters = [
        StaticAdapter("kontests", error=AdapterTimeout("kontests", "no answer within 10s")),
        StaticAdapter("codeforces", error=UpstreamStatusError("codeforces", 503, "https://codeforces.com")),
        StaticAdapter("leetcode", []),
    ]
    settings = Settings(http_timeout_seconds=2)
    aggregate = _aggregate(ContestAggregator(adapters=adapters, settings=settings, clock=lambda: fixed_now))

    assert aggregate.contests
    assert all(contest.source == FALLBACK_SOURCE for contest in aggregate.contests)
    assert all(contest.start_time > fixed_now for contest in aggregate.contests)
    assert aggregate.sources == []
    assert aggregate.fetched_from_aggregator is False


def test_aggregator_tops_up_when_aggregator_missing(fixed_now):
    adapters = [
        StaticAdapter("kontests", error=AdapterTimeout("kontests", "no answer within 10s")),
        StaticAdapter(
            "leetcode",
            [_contest(f"Weekly Contest {index}", fixed_now, platform=Platform.LEETCODE, offset=timedelta(days=index)) for index in range(1, 7)],
        ),
    ]
    settings = Settings(http_timeout_seconds=2)
    aggregate = _aggregate(ContestAggregator(adapters=adapters, settings=settings, clock=lambda: fixed_now))

    synthesized = {contest.platform for contest in aggregate.contests if contest.source == FALLBACK_SOURCE}
    assert synthesized == {Platform.GEEKSFORGEEKS, Platform.ATCODER}
    assert aggregate.sources == ["leetcode"]


def _codeforces_transport(route_transport, *, healthy: bool):
    if not healthy:
        return route_transport({})
    return route_transport(
        {
            "https://codeforces.com/api/user.info": {
                "status": "OK",
                "result": [{"handle": "tourist", "rating": 1850, "maxRating": 1990}],
            },
            "https://codeforces.com/api/user.rating": {"status": "OK", "result": []},
            "https://codeforces.com/api/user.status": {"status": "OK", "result": []},
        }
    )


def test_profile_aggregator_live_result_is_cached(route_transport, fixed_now):
    cache = InMemorySnapshotCache()
    aggregator = ProfileAggregator(
        cache=cache,
        settings=Settings(profile_timeout_seconds=2, coding_handles={"codeforces": "tourist"}),
        clock=lambda: fixed_now,
        transport=_codeforces_transport(route_transport, healthy=True),
    )

    aggregate = asyncio.run(aggregator.aggregate({"codeforces": "tourist"}))

    assert aggregate.sources == ["codeforces"]
    assert aggregate.profiles[0].rank_tier == "Expert"
    assert len(cache) == 1


def test_profile_aggregator_serves_cache_when_provider_down(route_transport, fixed_now):
    cache = InMemorySnapshotCache()
    cached = NormalizedCodingProfile(platform=Platform.CODEFORCES, handle="tourist", rating=1850, rank_tier="Expert")
    cache.put(
        snapshot_key(Platform.CODEFORCES, "tourist"),
        CachedSnapshot(profile=cached, captured_at=fixed_now - timedelta(minutes=30)),
    )
    aggregator = ProfileAggregator(
        cache=cache,
        settings=Settings(profile_timeout_seconds=2),
        clock=lambda: fixed_now,
        transport=_codeforces_transport(route_transport, healthy=False),
    )

    aggregate = asyncio.run(aggregator.aggregate({"CodeForces": "tourist"}))

    profile = aggregate.profiles[0]
    assert profile.rating == 1850
    assert profile.source == "cache"
    assert profile.stale is False
    assert aggregate.sources == []


def test_profile_aggregator_uses_configured_baseline(route_transport, fixed_now):
    settings = Settings(
        profile_timeout_seconds=2,
        profile_baselines={"cf": {"rating": 1500, "problems_solved": 250}, "toph": {"rating": 1}},
        coding_handles={"codeforces": "Tourist"},
    )
    aggregator = ProfileAggregator(
        cache=InMemorySnapshotCache(),
        settings=settings,
        clock=lambda: fixed_now,
        transport=_codeforces_transport(route_transport, healthy=False),
    )

    aggregate = asyncio.run(aggregator.aggregate({"codeforces": "tourist"}))

    assert aggregate.profiles[0].source == "baseline"
    assert aggregate.profiles[0].rank_tier == "Specialist"


def test_profile_aggregator_skips_unsupported_and_blank_handles(route_transport, fixed_now):
    aggregator = ProfileAggregator(
        cache=InMemorySnapshotCache(),
        settings=Settings(profile_timeout_seconds=2),
        clock=lambda: fixed_now,
        transport=route_transport({}),
    )

    aggregate = asyncio.run(aggregator.aggregate({"hackerrank": "someone", "leetcode": "  "}))

    assert aggregate.profiles == []


def test_fetch_profile_reports_errors_without_raising(route_transport, fixed_now):
    aggregator = ProfileAggregator(
        cache=InMemorySnapshotCache(),
        settings=Settings(profile_timeout_seconds=2),
        clock=lambda: fixed_now,
        transport=route_transport({}),
    )

    profile = asyncio.run(aggregator.fetch_profile(Platform.GEEKSFORGEEKS, "nobody"))

    assert profile.error
    assert profile.source == "none"
    assert profile.profile_url == "https://www.geeksforgeeks.org/user/nobody/"


def test_adapter_attribute_errors_are_reported_as_malformed():
    adapter = StaticAdapter("codeforces", error=AttributeError("'str' object has no attribute 'get'"))

    async def _inner():
        async with httpx.AsyncClient() as client:
            return await adapter.fetch(client)

    result = asyncio.run(_inner())

    assert not result.ok
    assert result.error.kind == "malformed"


def _unavailable_transport() -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(503, json={"status": "FAILED"}))


def test_baseline_is_never_served_for_another_handle(fixed_now):
    settings = Settings(
        profile_timeout_seconds=2,
        coding_handles={"codeforces": "owner"},
        profile_baselines={"codeforces": {"rating": 1447, "problems_solved": 30}},
    )
    aggregator = ProfileAggregator(
        cache=InMemorySnapshotCache(),
        settings=settings,
        clock=lambda: fixed_now,
        transport=_unavailable_transport(),
    )

    stranger = asyncio.run(aggregator.fetch_profile(Platform.CODEFORCES, "someone_else"))
    owner = asyncio.run(aggregator.fetch_profile(Platform.CODEFORCES, "Owner"))

    assert stranger.error
    assert stranger.source == "none"
    assert stranger.rating == 0
    assert owner.source == "baseline"
    assert owner.rating == 1447
    assert owner.problems_solved == 30


def test_arbitrary_handle_lookups_do_not_grow_the_cache(route_transport, fixed_now):
    cache = InMemorySnapshotCache()
    settings = Settings(profile_timeout_seconds=2, coding_handles={"codeforces": "owner"})

    def _user_info(request):
        handle = request.url.params["handles"]
        return {"status": "OK", "result": [{"handle": handle, "rating": 1200, "maxRating": 1300}]}

    transport = route_transport(
        {
            "https://codeforces.com/api/user.info": _user_info,
            "https://codeforces.com/api/user.rating": {"status": "OK", "result": []},
            "https://codeforces.com/api/user.status": {"status": "OK", "result": []},
        }
    )
    aggregator = ProfileAggregator(cache=cache, settings=settings, clock=lambda: fixed_now)

    async def _lookup_all():
        async with httpx.AsyncClient(transport=transport) as client:
            return [
                await aggregator.fetch_profile(Platform.CODEFORCES, f"user{index}", client=client)
                for index in range(200)
            ]

    profiles = asyncio.run(_lookup_all())

    assert all(profile.rating == 1200 for profile in profiles)
    assert len(cache) == 0


def test_owner_handles_argument_overrides_settings(route_transport, fixed_now):
    cache = InMemorySnapshotCache()
    aggregator = ProfileAggregator(
        cache=cache,
        settings=Settings(profile_timeout_seconds=2),
        clock=lambda: fixed_now,
        transport=_codeforces_transport(route_transport, healthy=True),
        owner_handles={"cf": "tourist"},
    )

    asyncio.run(aggregator.aggregate({"codeforces": "tourist"}))

    assert aggregator.is_owner(Platform.CODEFORCES, " Tourist ")
    assert cache.get(snapshot_key(Platform.CODEFORCES, "tourist")) is not None
