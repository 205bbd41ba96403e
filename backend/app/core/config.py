from functools import lru_cache
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_RECURRING_CONTESTS: list[dict[str, Any]] = [
    {
        "key": "leetcode-weekly",
        "name": "Weekly Contest",
        "platform": "LeetCode",
        "weekday": 6,
        "hour": 8,
        "minute": 0,
        "duration_seconds": 5400,
        "url": "https://leetcode.com/contest/",
    },
    {
        "key": "leetcode-biweekly",
        "name": "Biweekly Contest",
        "platform": "LeetCode",
        "weekday": 5,
        "hour": 14,
        "minute": 30,
        "duration_seconds": 5400,
        "url": "https://leetcode.com/contest/",
    },
    {
        "key": "gfg-weekly",
        "name": "GFG Weekly Coding Contest",
        "platform": "GeeksforGeeks",
        "weekday": 6,
        "hour": 13,
        "minute": 30,
        "duration_seconds": 5400,
        "url": "https://practice.geeksforgeeks.org/contests",
    },
    {
        "key": "atcoder-abc",
        "name": "AtCoder Beginner Contest",
        "platform": "AtCoder",
        "weekday": 5,
        "hour": 12,
        "minute": 0,
        "duration_seconds": 6000,
        "url": "https://atcoder.jp/contests",
    },
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: str = Field(
        default="sqlite:///../data/devfolio.db",
        description="SQLAlchemy compatible database URL",
    )
    user_agent: str = Field(
        default="Portfolio-Contest-Tracker/1.0",
        description="User-Agent header sent to upstream APIs",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        description="Per-adapter timeout for contest listing sources",
        gt=0,
    )
    profile_timeout_seconds: float = Field(
        default=12.0,
        description="Per-endpoint timeout for coding-profile sources",
        gt=0,
    )
    contest_min_count: int = Field(
        default=5,
        description="Minimum number of contests before fallback entries are synthesized",
        ge=0,
    )
    contest_window_days: int = Field(
        default=60,
        description="Contests that ended more than this many days ago are dropped",
        ge=0,
    )
    contest_required_sources: list[str] = Field(
        default_factory=lambda: ["kontests"],
        description="Sources whose absence triggers fallback synthesis",
    )
    fallback_timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA timezone the recurring contest schedule is expressed in",
    )
    recurring_contests: list[dict[str, Any]] = Field(
        default_factory=lambda: [dict(item) for item in DEFAULT_RECURRING_CONTESTS],
        description="Weekly contests synthesized when live sources come up short",
    )
    snapshot_ttl_seconds: int = Field(
        default=3600,
        description="How long a cached profile snapshot is considered fresh",
        ge=0,
    )
    snapshot_cache_backend: str = Field(
        default="memory",
        description="Where profile snapshots are kept (memory|database)",
    )
    coding_handles: dict[str, str] = Field(
        default_factory=dict,
        description="Coding platform handles keyed by platform name",
    )
    profile_baselines: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Last-known profile stats served when no live or cached data exists",
    )

    @field_validator("fallback_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"fallback_timezone '{value}' is not a known IANA timezone") from exc
        return value

    @field_validator("snapshot_cache_backend")
    @classmethod
    def _validate_cache_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"memory", "database"}:
            raise ValueError("SNAPSHOT_CACHE_BACKEND must be 'memory' or 'database'")
        return normalized

    @field_validator("contest_required_sources", mode="before")
    @classmethod
    def _parse_required_sources(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [part.strip().lower() for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip().lower() for item in value if str(item).strip()]
        raise ValueError(
            "CONTEST_REQUIRED_SOURCES must be provided as a list or comma-separated string"
        )

    @field_validator("recurring_contests")
    @classmethod
    def _validate_recurring_contests(cls, value: list[dict[str, Any]]) -> list[dict[str, Any]]:
        required = {"name", "platform", "weekday", "hour"}
        for entry in value:
            missing = required - set(entry)
            if missing:
                raise ValueError(
                    f"recurring contest entry is missing keys: {', '.join(sorted(missing))}"
                )
            if not 0 <= int(entry["weekday"]) <= 6:
                raise ValueError("recurring contest weekday must be 0 (Monday) through 6 (Sunday)")
            if not 0 <= int(entry["hour"]) < 24 or not 0 <= int(entry.get("minute", 0)) < 60:
                raise ValueError("recurring contest hour must be 0-23 and minute 0-59")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
