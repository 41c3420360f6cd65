"""
Calendar invite generation utilities for RareJob lessons.

Generates RFC 5545 compliant .ics files for reservations.
"""

import logging
from datetime import datetime, timedelta
from io import BytesIO
from pathlib import Path
from zoneinfo import ZoneInfo

from icalendar import Calendar, Event, Alarm

from config import settings

logger = logging.getLogger(__name__)


class CalendarInviteGenerator:
    """Generate calendar invite files for reserved lessons."""

    REMINDER_MINUTES_BEFORE = 10
    LOCATION = "RareJob Online"

    def __init__(self, timezone: str = settings.timezone):
        self.timezone = ZoneInfo(timezone)

    def localize(self, dt: datetime) -> datetime:
        """Attach the configured timezone to naive datetimes."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.timezone)
        return dt.astimezone(self.timezone)

    def generate_ics(self, reservation) -> BytesIO:
        """
        Generate .ics calendar file for a reservation.

        Args:
            reservation: Reservation with tutor_name, start_at and end_at

        Returns:
            BytesIO object containing .ics file data
        """
        start_dt = self.localize(reservation.start_at)
        end_dt = self.localize(reservation.end_at)

        cal = Calendar()
        cal.add('prodid', '-//RareJob Reservation Bot//EN')
        cal.add('version', '2.0')
        cal.add('calscale', 'GREGORIAN')
        cal.add('method', 'PUBLISH')

        event = Event()
        event.add('summary', f'RareJob lesson - {reservation.tutor_name}')
        event.add('dtstart', start_dt)
        event.add('dtend', end_dt)
        event.add('dtstamp', datetime.now(tz=self.timezone))
        event.add('location', self.LOCATION)
        event.add('status', 'CONFIRMED')
        event.add('transp', 'OPAQUE')

        minutes = int((end_dt - start_dt).total_seconds() // 60)
        description = (
            f"RareJob Lesson Reservation\n\n"
            f"Tutor: {reservation.tutor_name}\n"
            f"Date: {start_dt:%Y-%m-%d}\n"
            f"Time: {start_dt:%H:%M}-{end_dt:%H:%M}\n"
            f"Duration: {minutes} minutes"
        )
        event.add('description', description)

        alarm = Alarm()
        alarm.add('action', 'DISPLAY')
        alarm.add('description', f'RareJob lesson - {reservation.tutor_name}')
        alarm.add('trigger', timedelta(minutes=-self.REMINDER_MINUTES_BEFORE))
        event.add_component(alarm)

        cal.add_component(event)
        return BytesIO(cal.to_ical())

    def generate_filename(self, reservation) -> str:
        """Filename like "rarejob_lesson_2024-05-01_0900.ics"."""
        return f"rarejob_lesson_{reservation.start_at:%Y-%m-%d_%H%M}.ics"

    def write_ics(self, reservation, directory: Path) -> Path:
        """Save the invite for ``reservation`` into ``directory``."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.generate_filename(reservation)
        path.write_bytes(self.generate_ics(reservation).getvalue())
        logger.info(f"Calendar invite saved to {path}")
        return path


# Singleton instance
calendar_generator = CalendarInviteGenerator()
