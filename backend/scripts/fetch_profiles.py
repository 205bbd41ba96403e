import argparse
import asyncio
import json

from loguru import logger

from app.core.config import get_settings
from app.services.profile_service import ProfileService
from ingestion.service import ProfileAggregator, build_snapshot_cache


def _parse_handles(raw_handles: list[str] | None) -> dict[str, str]:
    handles: dict[str, str] = {}
    for raw in raw_handles or []:
        if "=" not in raw:
            logger.warning("Ignoring invalid handle argument: {}", raw)
            continue
        platform, handle = raw.split("=", 1)
        if not platform.strip() or not handle.strip():
            logger.warning("Ignoring handle argument with empty side: {}", raw)
            continue
        handles[platform.strip()] = handle.strip()
    return handles


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch coding-profile stats")
    parser.add_argument(
        "--handle",
        action="append",
        default=None,
        metavar="PLATFORM=HANDLE",
        help="Profile to fetch (repeatable, e.g. --handle codeforces=tourist). "
        "Defaults to the configured coding handles.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    handles = _parse_handles(args.handle) or dict(settings.coding_handles)
    if not handles:
        raise SystemExit("No handles given and none configured (CODING_HANDLES)")

    aggregator = ProfileAggregator(
        cache=build_snapshot_cache(settings), settings=settings, owner_handles=handles
    )
    service = ProfileService(aggregator, handles=handles)
    result = asyncio.run(service.list_profiles())
    print(json.dumps(result.model_dump(mode="json"), indent=2))

    failed = [profile.platform.value for profile in result.profiles if profile.error]
    if failed:
        logger.warning("No data available for: {}", ", ".join(failed))
    logger.info("Fetched {} profiles (live sources: {})", len(result.profiles), len(result.sources))


if __name__ == "__main__":
    main()
