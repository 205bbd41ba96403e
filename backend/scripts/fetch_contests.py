import argparse
import asyncio
import json
from pathlib import Path

from loguru import logger

from app.core.config import get_settings
from app.services.contest_service import ContestQuery, ContestService
from ingestion.platforms import canonicalize_platform
from ingestion.service import ContestAggregator


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch the merged contest calendar")
    parser.add_argument(
        "--platform",
        default=None,
        help="Only keep contests for this platform (aliases such as 'cf' are accepted)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON calendar to this file instead of stdout",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    query = ContestQuery()
    if args.platform:
        platform = canonicalize_platform(args.platform)
        if platform is None:
            raise SystemExit(f"Unknown platform '{args.platform}'")
        query = ContestQuery(platform=platform)

    service = ContestService(ContestAggregator(settings=get_settings()))
    calendar = asyncio.run(service.list_contests(query))
    payload = json.dumps(calendar.model_dump(mode="json"), indent=2)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info("Wrote {} contests to {}", len(calendar.contests), args.output)
    else:
        print(payload)

    logger.info(
        "Contest sources: {} (aggregator {})",
        ", ".join(calendar.sources) or "none",
        "reachable" if calendar.fetched_from_api else "unavailable",
    )


if __name__ == "__main__":
    main()
