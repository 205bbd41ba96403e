"""Profile snapshot persistence."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.domain import CachedSnapshot, NormalizedCodingProfile, Platform, Trend
from app.models import ProfileSnapshot


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def profile_to_payload(profile: NormalizedCodingProfile) -> dict[str, Any]:
    payload = asdict(profile)
    payload["platform"] = profile.platform.value
    payload["trend"] = profile.trend.value
    return payload


def payload_to_profile(payload: dict[str, Any]) -> NormalizedCodingProfile:
    values = dict(payload)
    values["platform"] = Platform(values["platform"])
    values["trend"] = Trend(values.get("trend") or Trend.STABLE.value)
    return NormalizedCodingProfile(**values)


class SnapshotRepository:
    """Read and overwrite the single snapshot kept per ``platform:handle``."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_snapshot(self, key: str) -> CachedSnapshot | None:
        record = self._session.get(ProfileSnapshot, key)
        if record is None:
            return None
        return CachedSnapshot(
            profile=payload_to_profile(record.payload),
            captured_at=_as_aware(record.captured_at),
        )

    def upsert_snapshot(self, key: str, snapshot: CachedSnapshot) -> ProfileSnapshot:
        record = self._session.get(ProfileSnapshot, key)
        if record is None:
            record = ProfileSnapshot(cache_key=key)
            self._session.add(record)
        record.platform = snapshot.profile.platform.value
        record.handle = snapshot.profile.handle
        record.payload = profile_to_payload(snapshot.profile)
        record.captured_at = snapshot.captured_at
        self._session.flush()
        return record
