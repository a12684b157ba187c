"""
Single-use Playwright browser session.

A session owns one browser, one browsing context and one page for the
duration of a single test case run.
"""

import time
from enum import Enum
from typing import Any, Callable, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from stepwright.config.settings import get_settings
from stepwright.error_handling import SessionAcquisitionError
from stepwright.monitoring.logger import get_logger, log_performance_metric


class SessionState(str, Enum):
    """Lifecycle states of a browser session."""

    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class BrowserSession:
    """
    Browser + context + page, acquired in that order and released in reverse.

    ``open()`` either acquires all three handles or releases whatever it got
    before raising SessionAcquisitionError. ``close()`` is idempotent and
    best-effort per handle; once closed a session cannot be reopened.
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        viewport_width: Optional[int] = None,
        viewport_height: Optional[int] = None,
        timeout: Optional[int] = None,
        playwright_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            headless: Run browser in headless mode
            viewport_width: Browser viewport width
            viewport_height: Browser viewport height
            timeout: Default timeout for page operations in milliseconds
            playwright_factory: Callable returning a Playwright context manager
        """
        settings = get_settings()
        self.headless = headless if headless is not None else settings.browser_headless
        self.viewport_width = viewport_width or settings.browser_viewport_width
        self.viewport_height = viewport_height or settings.browser_viewport_height
        self.timeout = timeout or settings.browser_timeout
        self.wait_until = settings.navigation_wait_until

        self.logger = get_logger("browser.session")
        self._playwright_factory = playwright_factory or async_playwright
        self._state = SessionState.UNOPENED
        self._open_attempted = False
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def page(self) -> Page:
        """The live page of an open session."""
        if self._state != SessionState.OPEN or self._page is None:
            raise SessionAcquisitionError(
                f"Browser session is not open (state: {self._state.value})"
            )
        return self._page

    async def open(self) -> Page:
        """Launch the browser, create a context and a page."""
        if self._open_attempted or self._state != SessionState.UNOPENED:
            raise SessionAcquisitionError(
                f"Browser session cannot be opened again (state: {self._state.value})"
            )
        self._open_attempted = True

        self.logger.info(
            "Starting browser",
            extra={
                "headless": self.headless,
                "viewport": f"{self.viewport_width}x{self.viewport_height}",
            },
        )

        stage = "playwright"
        try:
            self._playwright = await self._playwright_factory().start()

            stage = "launch"
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=[
                    "--no-sandbox",
                    "--disable-dev-shm-usage",
                    "--disable-extensions",
                ],
            )

            stage = "context"
            self._context = await self._browser.new_context(
                viewport={
                    "width": self.viewport_width,
                    "height": self.viewport_height,
                },
            )
            self._context.set_default_timeout(self.timeout)

            stage = "page"
            self._page = await self._context.new_page()
        except Exception as e:
            self.logger.error(
                "Failed to acquire browser session",
                extra={"stage": stage, "error": str(e)},
            )
            await self._release_handles()
            raise SessionAcquisitionError(
                f"Failed to start browser session ({stage}): {e}",
                stage=stage,
                cause=e,
            ) from e

        self._state = SessionState.OPEN
        return self._page

    async def navigate(self, url: str) -> None:
        """Navigate the session page and record the load time."""
        page = self.page
        self.logger.info("Navigating to URL", extra={"url": url})
        start_time = time.perf_counter()

        await page.goto(url, wait_until=self.wait_until)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        log_performance_metric("page_navigation", elapsed_ms, context={"url": url})

    async def close(self) -> None:
        """Release page, context and browser. Safe to call more than once."""
        if self._state == SessionState.CLOSED:
            return

        await self._release_handles()
        self._state = SessionState.CLOSED
        self.logger.info("Browser stopped")

    async def _release_handles(self) -> None:
        """Close every acquired handle, continuing past individual failures."""
        for name, handle, closer in (
            ("page", self._page, "close"),
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("playwright", self._playwright, "stop"),
        ):
            if handle is None:
                continue
            try:
                await getattr(handle, closer)()
            except Exception as e:
                self.logger.warning(
                    f"Failed to release {name}",
                    extra={"stage": name, "error": str(e)},
                )

        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None

    async def __aenter__(self) -> "BrowserSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
