"""Contest calendar facade used by the API and CLI."""

from __future__ import annotations

from dataclasses import dataclass

from app.domain import Platform
from app.schemas import Contest, ContestList
from ingestion.service import ContestAggregator


@dataclass(slots=True)
class ContestQuery:
    platform: Platform | None = None


class ContestService:
    def __init__(self, aggregator: ContestAggregator):
        self._aggregator = aggregator

    async def list_contests(self, query: ContestQuery) -> ContestList:
        aggregate = await self._aggregator.aggregate()
        contests = aggregate.contests
        if query.platform is not None:
            contests = [contest for contest in contests if contest.platform == query.platform]
        return ContestList(
            contests=[Contest.model_validate(contest) for contest in contests],
            sources=aggregate.sources,
            fetched_from_api=aggregate.fetched_from_aggregator,
            platforms=aggregate.platforms,
            window_start=aggregate.window_start,
            window_end=aggregate.window_end,
        )
