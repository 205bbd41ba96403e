from datetime import date, datetime

from pydantic import BaseModel, Field

from .domain import Platform, Trend


class Contest(BaseModel):
    identifier: str
    name: str
    platform: Platform
    start_time: datetime
    end_time: datetime
    duration_seconds: int
    url: str
    source: str

    model_config = {"from_attributes": True}


class ContestList(BaseModel):
    contests: list[Contest]
    sources: list[str] = Field(default_factory=list)
    fetched_from_api: bool
    platforms: list[str] = Field(default_factory=list)
    window_start: datetime
    window_end: datetime


class CodingProfile(BaseModel):
    platform: Platform
    handle: str
    rating: int = 0
    max_rating: int = 0
    rank_tier: str
    problems_solved: int = 0
    easy_solved: int = 0
    medium_solved: int = 0
    hard_solved: int = 0
    contests_attended: int = 0
    global_rank: int | None = None
    country_rank: int | None = None
    trend: Trend = Trend.STABLE
    trend_delta: int = 0
    profile_url: str = ""
    error: str | None = None
    source: str = ""
    stale: bool = False

    model_config = {"from_attributes": True}


class ProfileList(BaseModel):
    profiles: list[CodingProfile]
    sources: list[str] = Field(default_factory=list)


class ActivityDay(BaseModel):
    day: date
    count: int


class ActivityMap(BaseModel):
    days: list[ActivityDay]
    total: int
    sources: list[str] = Field(default_factory=list)
    window_start: date
    window_end: date
