"""Command line entry point.

Usage:
    exercise-sync replay events.jsonl [--no-upload]

Replays a recorded feed (one JSON event per line), prints the resulting
session summary and submits it to the configured training backend.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from exercise_sync.aggregator import SessionMetricsAggregator
from exercise_sync.config import Settings
from exercise_sync.exceptions import EmptySessionError
from exercise_sync.feed import FeedEvent, MetricFeed, SampleEvent, StatsEvent, parse_event
from exercise_sync.logging import get_logger, setup_logging
from exercise_sync.uploader import SessionUploader

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="exercise-sync", description="Exercise session tools"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay = subparsers.add_parser(
        "replay", help="Aggregate a recorded feed and upload the session"
    )
    replay.add_argument("events", type=Path, help="JSON lines file of feed events")
    replay.add_argument(
        "--no-upload",
        action="store_true",
        help="Only print the session summary",
    )
    return parser.parse_args(argv)


async def replay(path: Path, settings: Settings, upload: bool = True) -> int:
    aggregator = SessionMetricsAggregator(
        min_gap_seconds=settings.downsample_min_gap_seconds,
        step_seconds=settings.downsample_step_seconds,
    )
    feed = MetricFeed(max_size=settings.feed_max_size)

    def handle(event: FeedEvent) -> None:
        if isinstance(event, SampleEvent):
            aggregator.observe(event.sample)
        elif isinstance(event, StatsEvent):
            aggregator.apply_stats_summary(event.summary)

    consumer = asyncio.create_task(feed.run(handle))
    try:
        with path.open(encoding="utf-8") as fh:
            for line_number, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    event = parse_event(line)
                except ValidationError as e:
                    logger.error("Invalid feed event", line=line_number, error=str(e))
                    return 1
                await feed.publish(event)
    finally:
        await feed.close()
        await consumer

    logger.info("Feed replayed", path=str(path), events=feed.events_delivered)
    session = aggregator.current_session()

    async with SessionUploader.from_settings(settings) as uploader:
        try:
            summary = uploader.derive_summary(session)
        except EmptySessionError as e:
            logger.error("Nothing to upload", error=str(e))
            return 1

        print(summary.to_json())
        if not upload:
            return 0

        result = await uploader.submit(session)

    return 0 if result.success else 1


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = Settings()
    setup_logging(settings.service_name, settings)

    if args.command == "replay":
        return asyncio.run(replay(args.events, settings, upload=not args.no_upload))
    return 2


if __name__ == "__main__":
    sys.exit(main())
