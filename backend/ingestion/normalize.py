from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from dateutil import parser as date_parser

from app.domain import NormalizedCodingProfile, NormalizedContest, Platform

_WHITESPACE = re.compile(r"\s+")


def parse_datetime(value: Any) -> datetime | None:
    """Parse ISO strings, provider date strings, or epoch seconds into aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        try:
            parsed = date_parser.parse(str(value))
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(round(float(str(value).replace(",", "").strip())))
    except (TypeError, ValueError):
        return default


def parse_optional_int(value: Any) -> int | None:
    parsed = parse_int(value, default=0)
    return parsed if parsed > 0 else None


def isoformat_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def contest_identifier(platform: Platform, name: str, start_time: datetime) -> str:
    """Stable identifier so repeated fetches of one contest collapse together."""
    raw = f"{platform.value}-{name.strip()}-{isoformat_utc(start_time)}"
    return _WHITESPACE.sub("-", raw).lower()


def contest_dedup_key(contest: NormalizedContest) -> str:
    raw = f"{contest.platform.value}{contest.name}{isoformat_utc(contest.start_time)}"
    return _WHITESPACE.sub("", raw).lower()


def build_contest(
    *,
    platform: Platform,
    name: Any,
    start_time: Any,
    end_time: Any = None,
    duration_seconds: Any = None,
    url: Any = "",
    source: str,
) -> NormalizedContest:
    """Assemble a contest from loosely typed provider fields.

    Either ``end_time`` or ``duration_seconds`` must be resolvable; a missing
    name or start time is treated as a malformed entry.
    """

    clean_name = str(name or "").strip()
    if not clean_name:
        raise ValueError("contest entry has no name")
    start = parse_datetime(start_time)
    if start is None:
        raise ValueError(f"contest '{clean_name}' has no parseable start time")

    end = parse_datetime(end_time)
    duration = parse_int(duration_seconds, default=-1)
    if end is None and duration >= 0:
        end = start + timedelta(seconds=duration)
    if end is None:
        raise ValueError(f"contest '{clean_name}' has neither end time nor duration")
    if duration < 0:
        duration = max(int((end - start).total_seconds()), 0)

    return NormalizedContest(
        identifier=contest_identifier(platform, clean_name, start),
        name=clean_name,
        platform=platform,
        start_time=start,
        end_time=end,
        duration_seconds=duration,
        url=str(url or ""),
        source=source,
    )


def merge_contests(
    existing: Iterable[NormalizedContest], new: Iterable[NormalizedContest]
) -> list[NormalizedContest]:
    """Append contests from ``new`` whose dedup key is not already present.

    Earlier records always win, so callers control priority through the
    order in which they merge sources.
    """

    merged = list(existing)
    seen = {contest_dedup_key(contest) for contest in merged}
    for contest in new:
        key = contest_dedup_key(contest)
        if key in seen:
            continue
        seen.add(key)
        merged.append(contest)
    return merged


def merge_profiles(
    existing: Iterable[NormalizedCodingProfile], new: Iterable[NormalizedCodingProfile]
) -> list[NormalizedCodingProfile]:
    merged = list(existing)
    seen = {profile.platform for profile in merged}
    for profile in new:
        if profile.platform in seen:
            continue
        seen.add(profile.platform)
        merged.append(profile)
    return merged


__all__ = [
    "build_contest",
    "contest_dedup_key",
    "contest_identifier",
    "isoformat_utc",
    "merge_contests",
    "merge_profiles",
    "parse_datetime",
    "parse_int",
    "parse_optional_int",
]
