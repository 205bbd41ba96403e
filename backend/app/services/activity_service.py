"""Submission-activity facade used by the API."""

from __future__ import annotations

from collections.abc import Mapping

from app.schemas import ActivityDay, ActivityMap
from ingestion.service import ActivityAggregator


class ActivityService:
    def __init__(self, aggregator: ActivityAggregator, handles: Mapping[str, str]):
        self._aggregator = aggregator
        self._handles = dict(handles)

    async def get_activity(self) -> ActivityMap:
        aggregate = await self._aggregator.aggregate(self._handles)
        return ActivityMap(
            days=[ActivityDay(day=day, count=count) for day, count in aggregate.days.items()],
            total=aggregate.total,
            sources=aggregate.sources,
            window_start=aggregate.window_start,
            window_end=aggregate.window_end,
        )
