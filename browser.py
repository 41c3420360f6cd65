"""Playwright browser session used by the reservation flow."""
import asyncio
import logging
import os
import subprocess
from typing import Any, List, Optional, Protocol

from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from config import settings
from errors import (
    DriverStartError,
    ElementNotFoundError,
    NavigationError,
    TeardownError,
    WaitTimeoutError,
)
from locators import CSS, LINK_TEXT, NAME, Locator

logger = logging.getLogger(__name__)


class AutomationDriver(Protocol):
    """Browser operations the reservation flow relies on."""

    async def start(self) -> None: ...

    async def navigate(self, url: str) -> None: ...

    async def wait_for(self, locator: Locator, timeout: Optional[float] = None) -> None: ...

    async def find(self, locator: Locator) -> Any: ...

    async def find_all(self, locator: Locator) -> List[Any]: ...

    async def text(self, element: Any) -> str: ...

    async def click(self, element: Any) -> None: ...

    async def type_text(self, element: Any, value: str) -> None: ...

    async def current_url(self) -> str: ...

    async def session_id(self) -> str: ...

    async def wait_for_url(self, url: str, timeout: Optional[float] = None) -> None: ...

    async def wait_for_session(self, timeout: Optional[float] = None) -> None: ...

    async def teardown(self) -> None: ...


def to_selector(locator: Locator) -> str:
    """Translate a locator into a Playwright selector string."""
    if locator.strategy == CSS:
        return locator.value
    if locator.strategy == LINK_TEXT:
        return f'a:text-is("{locator.value}")'
    if locator.strategy == NAME:
        return f'[name="{locator.value}"]'
    raise ValueError(f"Unknown locator strategy: {locator.strategy}")


class PlaywrightDriver:
    """Run one browser session on a virtual display and release it on teardown."""

    def __init__(
        self,
        *,
        browser_name: str = settings.browser_name,
        headless: bool = settings.headless,
        use_virtual_display: bool = settings.use_virtual_display,
        display: str = settings.virtual_display,
        timeout: float = settings.wait_timeout_seconds,
        poll_interval: float = settings.poll_interval_seconds,
        session_cookie: str = settings.session_cookie_name,
    ):
        self._browser_name = browser_name
        self._headless = headless
        self._use_virtual_display = use_virtual_display
        self._display = display
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._session_cookie = session_cookie
        self._xvfb: Optional[subprocess.Popen] = None
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser page is not initialized yet.")
        return self._page

    async def start(self) -> None:
        """Start the virtual display, the Playwright driver and a browser page."""
        env = None
        if self._use_virtual_display and not self._headless:
            self._start_virtual_display()
            env = {**os.environ, "DISPLAY": self._display}

        logger.info(f"Launching {self._browser_name} (headless={self._headless})")
        try:
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self._browser_name)
            self._browser = await launcher.launch(headless=self._headless, env=env)
            self._context = await self._browser.new_context(locale="ja-JP", timezone_id=settings.timezone)
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            raise DriverStartError(f"failed to launch {self._browser_name}: {e}") from e
        self._page.set_default_timeout(self._timeout * 1000)

    def _start_virtual_display(self) -> None:
        logger.info(f"Starting Xvfb virtual display on {self._display}")
        try:
            self._xvfb = subprocess.Popen(
                ['Xvfb', self._display, '-screen', '0', '1920x1080x24', '-ac'],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL
            )
        except FileNotFoundError:
            logger.warning("Xvfb not found, relying on the current DISPLAY")
            self._xvfb = None

    async def navigate(self, url: str) -> None:
        logger.debug(f"Navigating to {url}")
        try:
            await self.page.goto(url, wait_until="load")
        except PlaywrightError as e:
            raise NavigationError(url, e) from e

    async def wait_for(self, locator: Locator, timeout: Optional[float] = None) -> None:
        """Wait until an element matching ``locator`` is attached to the page."""
        if timeout is None:
            timeout = self._timeout
        try:
            await self.page.wait_for_selector(
                to_selector(locator), state="attached", timeout=timeout * 1000
            )
        except PlaywrightTimeoutError as e:
            raise WaitTimeoutError(str(locator), timeout) from e

    async def find(self, locator: Locator) -> ElementHandle:
        try:
            element = await self.page.query_selector(to_selector(locator))
        except PlaywrightError as e:
            raise ElementNotFoundError("find", locator, e) from e
        if element is None:
            raise ElementNotFoundError("find", locator)
        return element

    async def find_all(self, locator: Locator) -> List[ElementHandle]:
        try:
            return await self.page.query_selector_all(to_selector(locator))
        except PlaywrightError as e:
            raise ElementNotFoundError("find_all", locator, e) from e

    async def text(self, element: ElementHandle) -> str:
        return (await self._act("text", element, element.inner_text())).strip()

    async def click(self, element: ElementHandle) -> None:
        await self._act("click", element, element.click())

    async def type_text(self, element: ElementHandle, value: str) -> None:
        await self._act("type_text", element, element.fill(value))

    async def _act(self, step: str, element: ElementHandle, action):
        """Await an element action, translating Playwright failures."""
        try:
            return await action
        except PlaywrightTimeoutError as e:
            raise WaitTimeoutError(f"{step} on {element}", self._timeout) from e
        except PlaywrightError as e:
            raise ElementNotFoundError(step, element, e) from e

    async def current_url(self) -> str:
        return self.page.url

    async def session_id(self) -> str:
        if self._context is None:
            return ""
        for cookie in await self._context.cookies():
            if cookie.get("name") == self._session_cookie:
                return cookie.get("value", "")
        return ""

    async def wait_for_url(self, url: str, timeout: Optional[float] = None) -> None:
        await self._poll(lambda current: current == url, self.current_url, f"URL {url}", timeout)

    async def wait_for_session(self, timeout: Optional[float] = None) -> None:
        await self._poll(bool, self.session_id, f"cookie {self._session_cookie}", timeout)

    async def _poll(self, predicate, probe, condition: str, timeout: Optional[float]) -> None:
        if timeout is None:
            timeout = self._timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            if predicate(await probe()):
                return
            if loop.time() >= deadline:
                raise WaitTimeoutError(condition, timeout)
            await asyncio.sleep(self._poll_interval)

    async def teardown(self) -> None:
        """
        Close the browser session, then stop the driver and the virtual display.

        Every step runs even if an earlier one fails. The first failure is
        raised once all steps have been attempted.
        """
        failures = []

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                failures.append(TeardownError(f"failed to quit browser session: {e}"))
            finally:
                self._browser = None
                self._context = None
                self._page = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                failures.append(TeardownError(f"failed to stop playwright driver: {e}"))
            finally:
                self._playwright = None

        if self._xvfb is not None:
            self._xvfb.terminate()
            try:
                self._xvfb.wait(timeout=5)
            except subprocess.TimeoutExpired:
                logger.warning("Xvfb did not exit after terminate, killing it")
                self._xvfb.kill()
                self._xvfb.wait()
            finally:
                self._xvfb = None

        for extra in failures[1:]:
            logger.error(f"Additional teardown failure: {extra}")
        if failures:
            raise failures[0]

        logger.info("Browser cleanup complete")
