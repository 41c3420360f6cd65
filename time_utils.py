"""Time helpers for the tutor search: window validation and slot label parsing."""
import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Tuple

from errors import SlotParseError, SpreadAcrossTwoDaysError

logger = logging.getLogger(__name__)

# Marks a slot whose label could not be read. Kept in place so slot indexes
# keep matching the page's slot elements.
ZERO_TIME = None

MAX_MARGIN = timedelta(hours=24)

_SLOT_PATTERN = re.compile(r'^\s*(\d{1,2}):(\d{2})')


def validate_window(window_start: datetime, margin: timedelta) -> datetime:
    """
    Check that a search window stays within one day and return its end.

    The check works on hours only: the window is accepted when the margin is
    under 24 hours and the start hour is strictly before the end hour.

    Raises:
        SpreadAcrossTwoDaysError: If the window crosses midnight
    """
    by = window_start + margin
    if by.tzinfo is not None:
        by = by.astimezone()

    if not (margin < MAX_MARGIN and window_start.hour < by.hour):
        raise SpreadAcrossTwoDaysError(
            f"search window {window_start:%Y-%m-%d %H:%M} + {margin} spreads across two days"
        )
    return by


def parse_slot_time(text: str) -> Tuple[int, int]:
    """Convert a slot label such as '9:05' or '21:30〜' to (hour, minute)."""
    if text is None:
        raise SlotParseError("empty slot label")

    match = _SLOT_PATTERN.match(text)
    if not match:
        raise SlotParseError(f"Invalid slot label: {text!r}")

    hour = int(match.group(1))
    minute = int(match.group(2))
    if not (0 <= hour < 24):
        raise SlotParseError(f"Hour must be between 0-23: {hour}")
    if not (0 <= minute < 60):
        raise SlotParseError(f"Minute must be between 0-59: {minute}")

    return hour, minute


def slot_instant(anchor: datetime, text: str) -> Optional[datetime]:
    """
    Anchor a slot label to the calendar date of ``anchor``.

    Returns ZERO_TIME instead of raising when the label is unreadable.
    """
    try:
        hour, minute = parse_slot_time(text)
    except SlotParseError as e:
        logger.debug(f"Unreadable slot label, keeping placeholder: {e}")
        return ZERO_TIME

    return anchor.replace(hour=hour, minute=minute, second=0, microsecond=0)
