from __future__ import annotations

import asyncio
import json
from datetime import date, datetime, timezone

import httpx
import pytest

from app.core.config import Settings
from app.domain import ActivityCalendar
from ingestion.activity import (
    CodeforcesActivityAdapter,
    LeetCodeCalendarAdapter,
    activity_window,
    count_submission_days,
    extract_submission_calendar,
    merge_activity,
    parse_submission_calendar,
)
from ingestion.client import build_client
from ingestion.service import ActivityAggregator

MAR_4 = 1709510400
MAR_5 = 1709596800
MAR_6 = 1709683200


def _run(adapter, transport):
    async def _inner():
        async with build_client(timeout=5, transport=transport) as client:
            return await adapter.fetch(client)

    return asyncio.run(_inner())


def test_parse_calendar_string_sums_same_day():
    raw = json.dumps({str(MAR_5): 2, str(MAR_5 + 3600): 1, str(MAR_6): "4"})

    assert parse_submission_calendar(raw) == {date(2024, 3, 5): 3, date(2024, 3, 6): 4}


def test_parse_calendar_double_encoded():
    raw = json.dumps(json.dumps({str(MAR_4): 7}))

    assert parse_submission_calendar(raw) == {date(2024, 3, 4): 7}


def test_parse_calendar_mapping_ignores_noise():
    raw = {str(MAR_4): 0, "total": 12, str(MAR_6): 1}

    assert parse_submission_calendar(raw) == {date(2024, 3, 6): 1}


def test_parse_calendar_skips_out_of_range_timestamps():
    raw = {"99999999999999999999": 3, str(MAR_6): 1}

    assert parse_submission_calendar(raw) == {date(2024, 3, 6): 1}


@pytest.mark.parametrize("raw", [None, "", "{}", '""'])
def test_parse_calendar_empty_inputs(raw):
    assert parse_submission_calendar(raw) == {}


def test_parse_calendar_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_submission_calendar("[1, 2, 3]")


def test_extract_calendar_from_graphql_shape():
    payload = {"data": {"matchedUser": {"submissionCalendar": json.dumps({str(MAR_5): 2})}}}

    assert extract_submission_calendar(payload) == {date(2024, 3, 5): 2}


def test_extract_calendar_from_epoch_keyed_object():
    payload = {"submissionCalendar": "{}", str(MAR_6): 5, "12345": 9}

    assert extract_submission_calendar(payload) == {date(2024, 3, 6): 5}


def test_extract_calendar_ignores_error_bodies():
    assert extract_submission_calendar({"error": True, str(MAR_6): 5}) == {}
    assert extract_submission_calendar(["not", "an", "object"]) == {}


def test_leetcode_calendar_tries_endpoints_in_order(route_transport):
    seen: list[str] = []

    def _record(outcome):
        def _handler(request):
            seen.append(request.url.host + request.url.path)
            return outcome

        return _handler

    routes = {
        "https://alfa-leetcode-api.onrender.com/coder/calendar": _record(httpx.Response(503)),
        "https://leetcode-api-faisalshohag.vercel.app/coder": _record({"submissionCalendar": "{}"}),
        "https://alfa-leetcode-api.onrender.com/userProfile/coder": _record(
            {"totalSolved": 10, "submissionCalendar": json.dumps({str(MAR_6): 3})}
        ),
    }

    result = _run(LeetCodeCalendarAdapter("coder", timeout=2), route_transport(routes))

    assert result.ok
    calendar = result.records[0]
    assert calendar.source == "alfa-leetcode-api/userProfile"
    assert calendar.days == {date(2024, 3, 6): 3}
    assert seen == [
        "alfa-leetcode-api.onrender.com/coder/calendar",
        "leetcode-api-faisalshohag.vercel.app/coder",
        "alfa-leetcode-api.onrender.com/userProfile/coder",
    ]


def test_leetcode_calendar_primary_endpoint(route_transport):
    routes = {
        "https://alfa-leetcode-api.onrender.com/coder/calendar": {
            "submissionCalendar": {str(MAR_4): 1, str(MAR_5): 2},
        },
    }

    result = _run(LeetCodeCalendarAdapter("coder", timeout=2), route_transport(routes))

    assert result.records[0].source == "alfa-leetcode-api/calendar"
    assert result.records[0].total == 3


def test_leetcode_calendar_without_any_data(route_transport):
    routes = {
        "https://leetcode-api-faisalshohag.vercel.app/coder": {"errors": "user not found", "error": True},
    }

    result = _run(LeetCodeCalendarAdapter("coder", timeout=2), route_transport(routes))

    assert not result.ok
    assert result.records == []


def test_count_submission_days_skips_malformed_entries():
    submissions = [
        {"creationTimeSeconds": MAR_5},
        {"creationTimeSeconds": MAR_5 + 60},
        {"creationTimeSeconds": MAR_6},
        {"verdict": "OK"},
        "garbage",
    ]

    assert count_submission_days(submissions) == {date(2024, 3, 5): 2, date(2024, 3, 6): 1}


def test_codeforces_activity_falls_back_to_mirror(route_transport):
    routes = {
        "https://codeforces.com/api/user.status": {"status": "FAILED", "comment": "Call limit exceeded"},
        "https://mirror.codeforces.com/api/user.status": {
            "status": "OK",
            "result": [{"creationTimeSeconds": MAR_4}, {"creationTimeSeconds": MAR_4 + 5}],
        },
    }

    result = _run(CodeforcesActivityAdapter("tourist", timeout=2), route_transport(routes))

    assert result.ok
    assert result.records[0].source == "mirror.codeforces.com"
    assert result.records[0].days == {date(2024, 3, 4): 2}


def test_codeforces_activity_without_submissions_is_not_an_error(route_transport):
    routes = {"https://codeforces.com/api/user.status": {"status": "OK", "result": []}}

    result = _run(CodeforcesActivityAdapter("newbie", timeout=2), route_transport(routes))

    assert result.ok
    assert result.records[0].days == {}


def test_activity_window_starts_on_sunday(fixed_now):
    start, end = activity_window(fixed_now)

    assert end == date(2024, 3, 6)
    assert start == date(2023, 3, 5)
    assert start.isoweekday() == 7


def test_activity_window_from_leap_day():
    start, end = activity_window(datetime(2024, 2, 29, 23, 0, tzinfo=timezone.utc))

    assert end == date(2024, 2, 29)
    assert start == date(2023, 2, 26)


def test_merge_activity_fills_every_day_in_window():
    calendars = [
        ActivityCalendar(source="leetcode", days={date(2024, 3, 4): 2, date(2024, 2, 1): 9}),
        ActivityCalendar(source="codeforces", days={date(2024, 3, 4): 1, date(2024, 3, 6): 4}),
    ]

    days = merge_activity(calendars, start=date(2024, 3, 3), end=date(2024, 3, 6))

    assert days == {
        date(2024, 3, 3): 0,
        date(2024, 3, 4): 3,
        date(2024, 3, 5): 0,
        date(2024, 3, 6): 4,
    }


def test_activity_aggregator_merges_both_platforms(route_transport, fixed_now):
    routes = {
        "https://alfa-leetcode-api.onrender.com/coder/calendar": {
            "submissionCalendar": json.dumps({str(MAR_5): 2, str(MAR_6): 1}),
        },
        "https://codeforces.com/api/user.status": {
            "status": "OK",
            "result": [{"creationTimeSeconds": MAR_6}, {"creationTimeSeconds": MAR_6 + 10}],
        },
    }
    aggregator = ActivityAggregator(
        settings=Settings(profile_timeout_seconds=2),
        clock=lambda: fixed_now,
        transport=route_transport(routes),
    )

    aggregate = asyncio.run(
        aggregator.aggregate({"lc": "coder", "codeforces": "tourist", "codechef": "chef"})
    )

    assert aggregate.sources == ["alfa-leetcode-api/calendar", "codeforces.com"]
    assert aggregate.days[date(2024, 3, 5)] == 2
    assert aggregate.days[date(2024, 3, 6)] == 3
    assert aggregate.total == 5
    assert aggregate.window_start == date(2023, 3, 5)
    assert len(aggregate.days) == (aggregate.window_end - aggregate.window_start).days + 1


def test_activity_aggregator_survives_every_source_failing(route_transport, fixed_now):
    aggregator = ActivityAggregator(
        settings=Settings(profile_timeout_seconds=2, coding_handles={"leetcode": "coder"}),
        clock=lambda: fixed_now,
        transport=route_transport({}),
    )

    aggregate = asyncio.run(aggregator.aggregate())

    assert aggregate.sources == []
    assert aggregate.total == 0
    assert all(count == 0 for count in aggregate.days.values())
