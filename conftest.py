"""Shared fixtures: an in-memory stand-in for the Playwright driver."""
from typing import Callable, Dict, List, Optional

import pytest

from errors import ElementNotFoundError, WaitTimeoutError


class FakeElement:
    def __init__(self, text: str = "", on_click: Optional[Callable[[], None]] = None):
        self.text = text
        self.value = ""
        self.clicks = 0
        self.on_click = on_click


class FakeDriver:
    """Serve elements from dictionaries and record every call."""

    def __init__(self):
        self.elements: Dict = {}
        self.lists: Dict = {}
        self.present: set = set()
        self.session = ""
        self.url = "about:blank"
        self.calls: List[tuple] = []
        self.on_submit: Optional[Callable[[], None]] = None

    def add(self, locator, element=None, present=True):
        element = element or FakeElement()
        self.elements[locator] = element
        if present:
            self.present.add(locator)
        return element

    async def start(self):
        self.calls.append(("start",))

    async def navigate(self, url):
        self.calls.append(("navigate", url))
        self.url = url

    async def wait_for(self, locator, timeout=None):
        self.calls.append(("wait_for", locator))
        if locator not in self.present and locator not in self.lists:
            raise WaitTimeoutError(str(locator), timeout or 0.0)

    async def find(self, locator):
        self.calls.append(("find", locator))
        if locator not in self.elements:
            raise ElementNotFoundError("find", locator)
        return self.elements[locator]

    async def find_all(self, locator):
        self.calls.append(("find_all", locator))
        if locator not in self.lists:
            raise ElementNotFoundError("find_all", locator)
        return self.lists[locator]

    async def text(self, element):
        return element.text

    async def click(self, element):
        self.calls.append(("click", element))
        element.clicks += 1
        if element.on_click:
            element.on_click()

    async def type_text(self, element, value):
        self.calls.append(("type_text", element))
        element.value = value

    async def current_url(self):
        return self.url

    async def session_id(self):
        return self.session

    async def wait_for_url(self, url, timeout=None):
        self.calls.append(("wait_for_url", url))
        if self.url != url:
            raise WaitTimeoutError(f"URL {url}", timeout or 0.0)

    async def wait_for_session(self, timeout=None):
        self.calls.append(("wait_for_session",))
        if not self.session:
            raise WaitTimeoutError("session cookie", timeout or 0.0)

    async def teardown(self):
        self.calls.append(("teardown",))

    def called(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def fake_driver():
    return FakeDriver()
