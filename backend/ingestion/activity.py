"""Daily submission activity for the heatmap.

LeetCode publishes a ``submissionCalendar`` (epoch second -> count) through
several community mirrors; Codeforces activity is rebuilt from the owner's
recent submissions. Every day is a UTC calendar day.
"""

from __future__ import annotations

import asyncio
import json
import re
from abc import abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Iterator
from datetime import date, datetime, timedelta, timezone
from typing import Any

import httpx
from dateutil.relativedelta import relativedelta
from loguru import logger

from app.domain import ActivityCalendar, Platform

from .base import SourceAdapter
from .client import request_json
from .contests.codeforces import unwrap_codeforces
from .errors import AdapterError, AdapterTimeout, MalformedResponse
from .normalize import parse_int
from .profiles.codeforces import CODEFORCES_API, CODEFORCES_MIRROR_API, SUBMISSION_PAGE
from .profiles.leetcode import ALFA_API

FAISALSHOHAG_API = "https://leetcode-api-faisalshohag.vercel.app"
EPOCH_KEY = re.compile(r"^\d{10}$")

CalendarEndpoint = Callable[[httpx.AsyncClient], Awaitable[dict[date, int] | None]]


def _utc_day(timestamp: int) -> date | None:
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError):
        logger.debug("Skipping out-of-range timestamp {}", timestamp)
        return None


def _decode_calendar(raw: str) -> Any:
    text = raw.strip()
    try:
        decoded: Any = json.loads(text)
    except ValueError:
        # escaped JSON that lost its outer quotes
        decoded = json.loads(text.replace("\\", ""))
    # double-encoded payloads decode to another JSON string first
    while isinstance(decoded, str) and decoded.strip():
        decoded = json.loads(decoded)
    return decoded


def parse_submission_calendar(raw: Any) -> dict[date, int]:
    """Turn a ``submissionCalendar`` string or mapping into counts per UTC day.

    Raises ``ValueError`` when ``raw`` is neither JSON text nor a mapping.
    """

    if raw is None or raw == "":
        return {}
    calendar = _decode_calendar(raw) if isinstance(raw, str) else raw
    if calendar is None or calendar == "":
        return {}
    if not isinstance(calendar, dict):
        raise ValueError(f"submission calendar is a {type(calendar).__name__}, not an object")

    days: dict[date, int] = {}
    for key, value in calendar.items():
        if not str(key).isdigit():
            continue
        count = parse_int(value)
        if count <= 0:
            continue
        day = _utc_day(int(key))
        if day is None:
            continue
        days[day] = days.get(day, 0) + count
    return days


def _calendar_candidates(payload: Any) -> Iterator[Any]:
    if not isinstance(payload, dict):
        return
    if payload.get("submissionCalendar"):
        yield payload["submissionCalendar"]
    data = payload.get("data")
    matched = data.get("matchedUser") if isinstance(data, dict) else None
    if isinstance(matched, dict) and matched.get("submissionCalendar"):
        yield matched["submissionCalendar"]
    if not payload.get("error"):
        stamps = {key: value for key, value in payload.items() if EPOCH_KEY.match(str(key))}
        if stamps:
            yield stamps


def extract_submission_calendar(payload: Any) -> dict[date, int]:
    """Read the first non-empty calendar from any known payload shape."""

    for candidate in _calendar_candidates(payload):
        days = parse_submission_calendar(candidate)
        if days:
            return days
    return {}


def count_submission_days(submissions: Iterable[Any]) -> dict[date, int]:
    """Count Codeforces submissions per UTC day of ``creationTimeSeconds``."""

    days: dict[date, int] = {}
    for submission in submissions:
        if not isinstance(submission, dict):
            continue
        created = parse_int(submission.get("creationTimeSeconds"))
        if created <= 0:
            continue
        day = _utc_day(created)
        if day is None:
            continue
        days[day] = days.get(day, 0) + 1
    return days


def activity_window(now: datetime) -> tuple[date, date]:
    """One year back from ``now``, widened to start on a Sunday."""

    end = now.astimezone(timezone.utc).date()
    start = end - relativedelta(years=1)
    start -= timedelta(days=start.isoweekday() % 7)
    return start, end


def merge_activity(
    calendars: Iterable[ActivityCalendar], *, start: date, end: date
) -> dict[date, int]:
    """Sum every calendar into one count per day from ``start`` to ``end`` inclusive.

    Days without submissions are present with a zero count.
    """

    days: dict[date, int] = {}
    current = start
    while current <= end:
        days[current] = 0
        current += timedelta(days=1)
    for calendar in calendars:
        for day, count in calendar.days.items():
            if day in days:
                days[day] += count
    return days


class CalendarAdapter(SourceAdapter):
    """Try a provider's calendar endpoints in order until one answers.

    An endpoint returning ``None`` had nothing usable; an empty mapping is a
    valid answer with no activity.
    """

    platform: Platform

    def __init__(self, handle: str, *, timeout: float) -> None:
        self.handle = handle.strip()
        self.endpoint_timeout = timeout
        super().__init__(timeout=timeout * max(len(self.endpoints()), 1))

    @abstractmethod
    def endpoints(self) -> list[tuple[str, CalendarEndpoint]]:
        """Return ``(label, coroutine factory)`` pairs, primary first."""

    async def _fetch(self, client: httpx.AsyncClient) -> list[ActivityCalendar]:
        last_error: AdapterError | None = None
        for label, endpoint in self.endpoints():
            try:
                days = await asyncio.wait_for(endpoint(client), timeout=self.endpoint_timeout)
            except asyncio.TimeoutError:
                last_error = AdapterTimeout(
                    self.name, f"{label} gave no answer within {self.endpoint_timeout:g}s"
                )
            except AdapterError as exc:
                last_error = exc
            except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
                last_error = MalformedResponse(self.name, f"{label}: {exc.__class__.__name__}: {exc}")
            else:
                if days is not None:
                    return [ActivityCalendar(source=label, days=days)]
                last_error = MalformedResponse(self.name, f"{label} returned no submission calendar")
            logger.info("{} endpoint {} unusable for {}: {}", self.name, label, self.handle, last_error)
        raise last_error or MalformedResponse(self.name, "no endpoints configured")


class LeetCodeCalendarAdapter(CalendarAdapter):
    name = "leetcode-calendar"
    platform = Platform.LEETCODE

    def endpoints(self) -> list[tuple[str, CalendarEndpoint]]:
        return [
            ("alfa-leetcode-api/calendar", self._endpoint(f"{ALFA_API}/{self.handle}/calendar")),
            ("leetcode-api-faisalshohag", self._endpoint(f"{FAISALSHOHAG_API}/{self.handle}")),
            ("alfa-leetcode-api/userProfile", self._endpoint(f"{ALFA_API}/userProfile/{self.handle}")),
        ]

    def _endpoint(self, url: str) -> CalendarEndpoint:
        async def _load(client: httpx.AsyncClient) -> dict[date, int] | None:
            payload = await request_json(client, self.name, url, timeout=self.endpoint_timeout)
            return extract_submission_calendar(payload) or None

        return _load


class CodeforcesActivityAdapter(CalendarAdapter):
    name = "codeforces-activity"
    platform = Platform.CODEFORCES

    def endpoints(self) -> list[tuple[str, CalendarEndpoint]]:
        return [
            ("codeforces.com", lambda client: self._from_api(client, CODEFORCES_API)),
            ("mirror.codeforces.com", lambda client: self._from_api(client, CODEFORCES_MIRROR_API)),
        ]

    async def _from_api(self, client: httpx.AsyncClient, base: str) -> dict[date, int]:
        payload = await request_json(
            client,
            self.name,
            f"{base}/user.status",
            params={"handle": self.handle, "from": 1, "count": SUBMISSION_PAGE},
            timeout=self.endpoint_timeout,
        )
        return count_submission_days(unwrap_codeforces(payload))


ACTIVITY_ADAPTERS: dict[Platform, type[CalendarAdapter]] = {
    Platform.LEETCODE: LeetCodeCalendarAdapter,
    Platform.CODEFORCES: CodeforcesActivityAdapter,
}


__all__ = [
    "ACTIVITY_ADAPTERS",
    "CalendarAdapter",
    "CodeforcesActivityAdapter",
    "LeetCodeCalendarAdapter",
    "activity_window",
    "count_submission_days",
    "extract_submission_calendar",
    "merge_activity",
    "parse_submission_calendar",
]
