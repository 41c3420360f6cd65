"""Playwright reservation flow for RareJob lessons."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, auto
from typing import List, Optional
from urllib.parse import urlencode

import locators
from browser import AutomationDriver, PlaywrightDriver
from config import settings
from errors import (
    LoginError,
    NoAvailableSlotError,
    ReservationError,
    SearchError,
)
from time_utils import ZERO_TIME, slot_instant, validate_window

logger = logging.getLogger(__name__)


class ReservationState(Enum):
    IDLE = auto()
    LOGGED_IN = auto()
    SLOTS_DISCOVERED = auto()
    SELECTED = auto()
    RESERVED = auto()
    FAILED = auto()


@dataclass
class Tutor:
    """A tutor row from the search results. Unreadable slots hold ZERO_TIME."""

    name: str
    available_slots: List[Optional[datetime]] = field(default_factory=list)


@dataclass
class Reservation:
    tutor_name: str
    start_at: datetime
    end_at: datetime

    @classmethod
    def for_slot(cls, tutor_name: str, start_at: datetime,
                 lesson_minutes: int = settings.lesson_minutes) -> "Reservation":
        return cls(tutor_name, start_at, start_at + timedelta(minutes=lesson_minutes))


def build_search_url(window_start: datetime, by: datetime,
                     base_url: str = settings.search_url) -> str:
    """Build the tutor search URL for a same-day window."""
    query = urlencode({
        "date": window_start.strftime("%Y-%m-%d"),
        "from_time": window_start.strftime("%H:%M"),
        "to_time": by.strftime("%H:%M"),
    })
    return f"{base_url}?{query}"


class ReservationClient:
    """
    Log in to RareJob and reserve the first open slot of a search window.

    The client owns the driver for its whole lifetime. Use it as an async
    context manager so teardown runs on every exit path.
    """

    def __init__(
        self,
        driver: Optional[AutomationDriver] = None,
        *,
        logger: Optional[logging.Logger] = None,
        login_url: str = settings.login_url,
        search_url: str = settings.search_url,
        finish_url: str = settings.reservation_finish_url,
        lesson_minutes: int = settings.lesson_minutes,
    ):
        self.driver = driver if driver is not None else PlaywrightDriver()
        self.logger = logger or logging.getLogger(__name__)
        self.login_url = login_url
        self.search_url = search_url
        self.finish_url = finish_url
        self.lesson_minutes = lesson_minutes
        self.state = ReservationState.IDLE

    async def __aenter__(self) -> "ReservationClient":
        try:
            await self.driver.start()
        except BaseException:
            try:
                await self.teardown()
            except ReservationError as e:
                self.logger.error(f"Teardown after failed start also failed: {e}")
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.teardown()

    async def login(self, email: str, password: str) -> None:
        """Fill in the login form and wait until the site issues a session cookie."""
        self.logger.info("Navigating to login page")
        try:
            await self.driver.navigate(self.login_url)

            await self.driver.wait_for(locators.LOGIN_EMAIL)
            email_input = await self.driver.find(locators.LOGIN_EMAIL)
            await self.driver.type_text(email_input, email)

            await self.driver.wait_for(locators.LOGIN_PASSWORD)
            password_input = await self.driver.find(locators.LOGIN_PASSWORD)
            await self.driver.type_text(password_input, password)

            self.logger.info("Submitting login form")
            submit = await self.driver.find(locators.LOGIN_SUBMIT)
            await self.driver.click(submit)

            await self.driver.wait_for_session()
        except ReservationError as e:
            self.state = ReservationState.FAILED
            raise LoginError(f"login failed: {e}") from e

        self.state = ReservationState.LOGGED_IN
        self.logger.info("Login successful")

    async def reserve_tutor(self, window_start: datetime, margin: timedelta) -> Reservation:
        """
        Search tutors available in the window and reserve the first slot found.

        Args:
            window_start: Start of the search window, local time
            margin: Length of the search window, must keep it within one day

        Returns:
            The booked Reservation

        Raises:
            SpreadAcrossTwoDaysError: If the window crosses midnight
            SearchError: If the result rows could not be read
            NoAvailableSlotError: If no tutor has a readable first slot
            ReservationError: For any other failed step
        """
        try:
            by = validate_window(window_start, margin)
            tutors = await self.search_tutors(window_start, by)
            tutor, start_at = self._first_slot(tutors)
            await self._select_slot(1, 1)
            await self._confirm()
        except ReservationError:
            self.state = ReservationState.FAILED
            raise

        reservation = Reservation.for_slot(tutor.name, start_at, self.lesson_minutes)
        self.logger.info(
            f"Reserved {reservation.tutor_name} "
            f"{reservation.start_at:%Y-%m-%d %H:%M}-{reservation.end_at:%H:%M}"
        )
        return reservation

    async def search_tutors(self, window_start: datetime, by: datetime) -> List[Tutor]:
        """Open the search results for the window and scrape every tutor row."""
        query_url = build_search_url(window_start, by, self.search_url)
        self.logger.info(f"Searching tutors between {window_start:%H:%M} and {by:%H:%M}")
        await self.driver.navigate(query_url)

        try:
            await self.driver.wait_for(locators.TUTOR_LIST)
            rows = await self.driver.find_all(locators.TUTOR_ROWS)
        except ReservationError as e:
            raise SearchError(f"failed to get tutor list: {e}") from e

        tutors = []
        for row in range(1, len(rows) + 1):
            self.logger.debug(f"Getting tutor info #{row}")
            tutors.append(await self._scrape_tutor(row, window_start))

        self.logger.info(f"Found tutors: {[t.name for t in tutors]}")
        self.state = ReservationState.SLOTS_DISCOVERED
        return tutors

    async def _scrape_tutor(self, row: int, window_start: datetime) -> Tutor:
        try:
            name_element = await self.driver.find(locators.TUTOR_NAME.format(row))
            name = await self.driver.text(name_element)
            slot_elements = await self.driver.find_all(locators.TUTOR_TIME_SLOTS.format(row))
        except ReservationError as e:
            raise SearchError(f"failed to get time slots for tutor #{row}: {e}") from e

        slots = []
        for column in range(1, len(slot_elements) + 1):
            try:
                button = await self.driver.find(locators.TUTOR_TIME_SLOT_BUTTON.format(row, column))
                label = await self.driver.text(button)
            except ReservationError as e:
                self.logger.debug(f"Slot #{column} of tutor #{row} unreadable: {e}")
                slots.append(ZERO_TIME)
                continue
            slots.append(slot_instant(window_start, label))

        return Tutor(name=name, available_slots=slots)

    def _first_slot(self, tutors: List[Tutor]):
        if not tutors:
            raise NoAvailableSlotError("no tutor is available in the search window")
        tutor = tutors[0]
        if not tutor.available_slots or tutor.available_slots[0] is ZERO_TIME:
            raise NoAvailableSlotError(f"first slot of {tutor.name} is not readable")
        return tutor, tutor.available_slots[0]

    async def _select_slot(self, row: int, column: int) -> None:
        button_locator = locators.TUTOR_TIME_SLOT_BUTTON.format(row, column)
        await self.driver.wait_for(button_locator)
        button = await self.driver.find(button_locator)
        await self.driver.click(button)
        self.state = ReservationState.SELECTED
        self.logger.debug(f"Current URL: {await self.driver.current_url()}")

    async def _confirm(self) -> None:
        await self.driver.wait_for(locators.RESERVE_BUTTON)
        reserve_button = await self.driver.find(locators.RESERVE_BUTTON)
        await self.driver.click(reserve_button)
        await self.driver.wait_for_url(self.finish_url)
        self.state = ReservationState.RESERVED

    async def teardown(self) -> None:
        """Release the browser session and driver, then flush log handlers."""
        try:
            await self.driver.teardown()
        finally:
            self._flush_log_handlers()

    def _flush_log_handlers(self) -> None:
        # Handlers usually sit on the root logger, so follow propagation upwards
        current = self.logger
        while current is not None:
            for handler in current.handlers:
                handler.flush()
            if not current.propagate:
                break
            current = current.parent
