"""Exceptions raised by the reservation flow."""
from typing import Optional


class ReservationError(Exception):
    """Base class for every failure of a reservation run."""


class SpreadAcrossTwoDaysError(ReservationError):
    """The search window does not fit inside a single day."""

    def __init__(self, message: str = "search window spreads across two days"):
        super().__init__(message)


class SlotParseError(ValueError):
    """A scraped slot label could not be read as a time of day."""


class ElementNotFoundError(ReservationError):
    """A required page element was not found."""

    def __init__(self, step: str, locator, cause: Optional[BaseException] = None):
        self.step = step
        self.locator = locator
        message = f"{step}: element not found ({locator})"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class NavigationError(ReservationError):
    """The browser failed to load a page."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.url = url
        message = f"failed to navigate to {url}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class WaitTimeoutError(ReservationError):
    """A wait condition was not satisfied within its bound."""

    def __init__(self, condition: str, timeout: float):
        self.condition = condition
        self.timeout = timeout
        super().__init__(f"timed out after {timeout:.1f}s waiting for {condition}")


class DriverStartError(ReservationError):
    """The browser driver or the browser itself failed to launch."""


class TeardownError(ReservationError):
    """Releasing the browser session or the driver process failed."""


class LoginError(ReservationError):
    """Login did not complete."""


class SearchError(ReservationError):
    """The tutor search results could not be read."""


class NoAvailableSlotError(ReservationError):
    """The search returned no usable time slot."""
