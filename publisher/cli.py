"""Command-line entry point: one publish run per invocation.

Exit status is 0 on success (including an unchanged record), 1 on any
pipeline or configuration failure and 2 on invalid arguments.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from publisher.config import get_settings, require_publish_settings
from publisher.errors import PublisherError
from publisher.logging_config import configure_logging
from publisher.services.pipeline import run_publish_pipeline
from publisher.time_utils import is_valid_date_string

logger = logging.getLogger(__name__)


def _date_arg(value: str) -> str:
    if not is_valid_date_string(value):
        raise argparse.ArgumentTypeError("date must be formatted YYYY-MM-DD")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daily60s",
        description="Fetch the daily 60s digest, render it and publish to GitHub.",
    )
    parser.add_argument(
        "--date",
        type=_date_arg,
        default=None,
        help="Target date (YYYY-MM-DD). Upstream must report this date.",
    )
    parser.add_argument(
        "--from-cache",
        action="store_true",
        help="Republish the locally cached record instead of fetching upstream.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(settings)

    try:
        require_publish_settings(settings)
        result = asyncio.run(
            run_publish_pipeline(settings, args.date, from_cache=args.from_cache)
        )
    except PublisherError as exc:
        logger.error("Run failed: %s: %s", type(exc).__name__, exc)
        return 1

    logger.info(
        "[%s] Done (json=%s, image written)", result["date"], result["json_action"]
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
