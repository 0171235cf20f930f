"""cisummary - summarize failed GitHub Actions runs into Slack."""

import argparse
import asyncio
import sys
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from cisummary.config import Settings
from cisummary.engine import SummaryEngine
from cisummary.exceptions import CISummaryError
from cisummary.utils import set_failed, set_output


def setup_logging(level: str = "INFO") -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cisummary",
        description="Summarize a failed GitHub Actions run with AI and post it to Slack.",
    )
    parser.add_argument("--run-id", type=int, default=None, help="Workflow run to analyze")
    parser.add_argument("--log-level", default=None, help="Override CISUMMARY_LOG_LEVEL")
    return parser.parse_args(argv)


async def run(settings: Settings, run_id: Optional[int] = None) -> int:
    """Run the engine and report its outcome as Action outputs. Returns the exit code."""
    engine = SummaryEngine(settings)
    try:
        result = await engine.run(run_id)
    finally:
        if engine.summary:
            set_output("summary", engine.summary)

    notification = result.notification
    if notification is not None and notification.notified_user:
        set_output("notified_user", notification.notified_user)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point."""
    args = parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(f"Invalid configuration: {e}")
        set_failed(f"Invalid configuration: {e}")
        return 1

    setup_logging(args.log_level or settings.log_level)

    try:
        return asyncio.run(run(settings, args.run_id))
    except CISummaryError as e:
        logger.error(f"Action failed: {e}")
        set_failed(f"Action failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        set_failed(f"Action failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
