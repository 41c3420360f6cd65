"""Main application entry point."""
import argparse
import asyncio
import logging
import re
import sys
from datetime import datetime, timedelta
from typing import Optional

from booking_engine import ReservationClient
from calendar_utils import calendar_generator
from config import settings
from errors import ReservationError
from notifications import notifier

logger = logging.getLogger(__name__)

_MARGIN_PATTERN = re.compile(r'^(?:(\d+)h)?(?:(\d+)m)?$')


def configure_logging():
    """Configure root logging from settings."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers
    )


def parse_margin(value: str) -> timedelta:
    """Convert '2h', '90m' or '1h30m' to a timedelta."""
    match = _MARGIN_PATTERN.match(value.strip().lower())
    if not value.strip() or not match:
        raise argparse.ArgumentTypeError(f"Invalid margin: {value}")
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return timedelta(hours=hours, minutes=minutes)


def next_full_hour(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now()
    return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reserve a RareJob lesson")
    parser.add_argument(
        "--from", dest="window_start", type=datetime.fromisoformat, default=None,
        help="start of the search window, e.g. 2024-05-01T09:00 (default: next full hour)"
    )
    parser.add_argument(
        "--margin", type=parse_margin, default=timedelta(hours=1),
        help="length of the search window, e.g. 2h or 90m (default: 1h)"
    )
    return parser


async def run(window_start: datetime, margin: timedelta) -> int:
    """Log in, reserve a lesson and report the outcome. Returns an exit code."""
    try:
        async with ReservationClient() as client:
            await client.login(settings.rarejob_email, settings.rarejob_password)
            reservation = await client.reserve_tutor(window_start, margin)
    except ReservationError as e:
        logger.error(f"Reservation failed: {e}")
        await notifier.reservation_failed(window_start, str(e))
        return 1

    logger.info(
        f"Reserved {reservation.tutor_name} from {reservation.start_at:%Y-%m-%d %H:%M} "
        f"to {reservation.end_at:%H:%M}"
    )
    if settings.calendar_dir:
        calendar_generator.write_ics(reservation, settings.calendar_dir)
    await notifier.reservation_success(reservation)
    return 0


def main(argv=None):
    """Run one reservation attempt."""
    configure_logging()
    args = build_parser().parse_args(argv)
    window_start = args.window_start or next_full_hour()

    logger.info("Starting RareJob reservation")
    return asyncio.run(run(window_start, args.margin))


if __name__ == "__main__":
    sys.exit(main())
