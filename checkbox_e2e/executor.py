"""
PlaywrightExecutor - Browser automation wrapper for E2E testing

This module wraps a Playwright async page to provide the capabilities every
page object composes with: navigation relative to a base URL, load waits,
element waits, title/heading reads and screenshots.
"""

import time
from pathlib import Path
from typing import Optional, Union

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = structlog.get_logger(__name__)


class BrowserError(Exception):
    """Base exception for browser automation errors"""
    pass


class ElementNotFoundError(BrowserError):
    """Raised when an element cannot be found"""
    pass


class NavigationError(BrowserError):
    """Raised when navigation fails"""
    pass


class NavigationTimeoutError(NavigationError):
    """Raised when a page does not reach its load marker in time"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class StateSyncError(AssertionError):
    """
    Raised when a checkbox's `checked` property and `checked` attribute disagree.

    This is a correctness failure of the page under test, not of the harness,
    so it derives from AssertionError rather than BrowserError and is never
    retried.
    """

    def __init__(self, index: int, property_checked: bool, attribute_checked: bool):
        self.index = index
        self.property_checked = property_checked
        self.attribute_checked = attribute_checked
        super().__init__(
            f"Checkbox {index} out of sync: property checked={property_checked}, "
            f"attribute checked={attribute_checked}"
        )


class PlaywrightExecutor:
    """
    Wrapper around a Playwright page.

    Page objects hold an executor instead of inheriting from a base page, so the
    shared capabilities stay in one place and can be mocked independently.
    """

    def __init__(
        self,
        page: Page,
        base_url: str,
        screenshot_dir: str = "test-artifacts/screenshots",
        navigation_timeout_ms: int = 30000,
        expect_timeout_ms: int = 5000,
    ):
        """
        Initialize the PlaywrightExecutor.

        Args:
            page: Playwright async page to drive
            base_url: Origin that relative paths are resolved against
            screenshot_dir: Directory to save screenshots
            navigation_timeout_ms: Budget for navigation and load markers
            expect_timeout_ms: Default budget for element waits
        """
        self.page = page
        self.base_url = base_url.rstrip("/")
        self.screenshot_dir = Path(screenshot_dir)
        self.navigation_timeout_ms = navigation_timeout_ms
        self.expect_timeout_ms = expect_timeout_ms

        logger.debug(
            "playwright_executor_initialized",
            base_url=self.base_url,
            screenshot_dir=str(self.screenshot_dir),
        )

    @property
    def current_url(self) -> str:
        return self.page.url

    def resolve_url(self, path: str) -> str:
        """Resolve a path against the base URL; absolute URLs pass through."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    async def navigate(self, path: str) -> Optional[Response]:
        """
        Navigate to a path relative to the base URL.

        Args:
            path: Path (or absolute URL) to navigate to

        Returns:
            The main resource response, if any

        Raises:
            NavigationTimeoutError: If the navigation exceeds its budget
            NavigationError: If navigation fails for any other reason
        """
        url = self.resolve_url(path)
        logger.info("navigating_to_url", url=url)

        try:
            response = await self.page.goto(url, timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            logger.error("navigation_timed_out", url=url, error=str(e))
            raise NavigationTimeoutError(
                f"Navigation to {url} timed out after {self.navigation_timeout_ms}ms",
                url=self.current_url,
            ) from e
        except PlaywrightError as e:
            logger.error("navigation_failed", url=url, error=str(e))
            raise NavigationError(f"Failed to navigate to {url}: {e}") from e

        logger.info(
            "navigation_successful",
            url=url,
            status=response.status if response else None,
        )
        return response

    async def wait_for_load(self) -> None:
        """Wait until the DOM is parsed and the load event has fired."""
        try:
            await self.page.wait_for_load_state("domcontentloaded", timeout=self.navigation_timeout_ms)
            await self.page.wait_for_load_state("load", timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(
                f"Page did not finish loading within {self.navigation_timeout_ms}ms",
                url=self.current_url,
            ) from e

    async def wait_for_element(
        self,
        target: Union[str, Locator],
        timeout_ms: Optional[int] = None,
    ) -> Locator:
        """
        Wait for an element to become visible.

        Args:
            target: CSS selector or locator for the element
            timeout_ms: Maximum time to wait in milliseconds

        Returns:
            The locator that became visible

        Raises:
            ElementNotFoundError: If the element doesn't appear within timeout
        """
        locator = self.page.locator(target) if isinstance(target, str) else target
        timeout_ms = timeout_ms if timeout_ms is not None else self.expect_timeout_ms
        logger.debug("waiting_for_element", target=str(target), timeout_ms=timeout_ms)

        try:
            await locator.first.wait_for(state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(
                f"Element {target} did not appear within {timeout_ms}ms"
            ) from e

        return locator

    async def get_title(self) -> str:
        return await self.page.title()

    async def get_heading(self) -> str:
        """Return the stripped text of the page's first h3 heading."""
        heading = self.page.locator("h3").first
        try:
            text = await heading.text_content(timeout=self.expect_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(
                f"No h3 heading appeared within {self.expect_timeout_ms}ms"
            ) from e
        return (text or "").strip()

    async def take_screenshot(self, filename: str, full_page: bool = True) -> str:
        """
        Take a screenshot of the current page.

        Args:
            filename: Filename for the screenshot (without extension)
            full_page: Whether to capture the full page or just viewport

        Returns:
            Path to the saved screenshot file

        Raises:
            BrowserError: If screenshot fails
        """
        timestamp = int(time.time())
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        screenshot_path = self.screenshot_dir / f"{filename}_{timestamp}.png"

        try:
            await self.page.screenshot(path=str(screenshot_path), full_page=full_page)
        except PlaywrightError as e:
            logger.error("screenshot_failed", filename=filename, error=str(e))
            raise BrowserError(f"Failed to take screenshot: {e}") from e

        logger.info("screenshot_saved", path=str(screenshot_path))
        return str(screenshot_path)
