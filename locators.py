"""Element locators for the RareJob pages.

Row and slot templates are 1-based and filled with ``str.format``.
"""
from typing import NamedTuple


class Locator(NamedTuple):
    strategy: str
    value: str

    def format(self, *args) -> "Locator":
        return Locator(self.strategy, self.value.format(*args))

    def __str__(self) -> str:
        return f"{self.strategy}={self.value}"


CSS = "css"
LINK_TEXT = "link_text"
NAME = "name"

# Login page
LOGIN_EMAIL = Locator(CSS, "#RJ_LoginForm_email")
LOGIN_PASSWORD = Locator(CSS, "#RJ_LoginForm_password")
LOGIN_SUBMIT = Locator(NAME, "yt0")

# Tutor search results
TUTOR_LIST = Locator(CSS, "ul.tutorList")
TUTOR_ROWS = Locator(CSS, "ul.tutorList > li")
TUTOR_NAME = Locator(CSS, "ul.tutorList > li:nth-child({}) .tutorInfo .name a")
TUTOR_TIME_SLOTS = Locator(CSS, "ul.tutorList > li:nth-child({}) .tutorSchedule ul > li")
TUTOR_TIME_SLOT_BUTTON = Locator(
    CSS, "ul.tutorList > li:nth-child({}) .tutorSchedule ul > li:nth-child({}) a"
)

# Reservation confirmation
RESERVE_BUTTON = Locator(LINK_TEXT, "予約する")
