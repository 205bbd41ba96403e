"""Domain models representing normalized contest, profile and activity data."""

from .models import (
    UNRATED,
    ActivityCalendar,
    CachedSnapshot,
    NormalizedCodingProfile,
    NormalizedContest,
    Platform,
    Trend,
    utcnow,
)

__all__ = [
    "UNRATED",
    "ActivityCalendar",
    "CachedSnapshot",
    "NormalizedCodingProfile",
    "NormalizedContest",
    "Platform",
    "Trend",
    "utcnow",
]
