"""
CheckboxPage - page object for "The Internet" checkbox demo.

The target page mirrors each checkbox's live `checked` property into the
`checked` HTML attribute from an inline click handler. Every state read here
consults both channels and treats disagreement as a StateSyncError.
"""

from typing import AsyncIterator, List, Optional

import structlog
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from checkbox_e2e.config import Settings, settings as default_settings
from checkbox_e2e.executor import (
    ElementNotFoundError,
    NavigationTimeoutError,
    PlaywrightExecutor,
    StateSyncError,
)

logger = structlog.get_logger(__name__)

FORM_SELECTOR = "#checkboxes"
CHECKBOX_SELECTOR = '#checkboxes input[type="checkbox"]'
HEADING_TEXT = "Checkboxes"


class CheckboxPage:
    """Typed interface over the two-checkbox form."""

    def __init__(self, page: Page, config: Settings = default_settings):
        self.page = page
        self.config = config
        self.executor = PlaywrightExecutor(
            page,
            base_url=config.BASE_URL,
            screenshot_dir=f"{config.ARTIFACTS_DIR}/screenshots",
            navigation_timeout_ms=config.NAVIGATION_TIMEOUT_MS,
            expect_timeout_ms=config.EXPECT_TIMEOUT_MS,
        )
        self.form = page.locator(FORM_SELECTOR)
        self.checkboxes = page.locator(CHECKBOX_SELECTOR)
        self.heading = page.locator("h3", has_text=HEADING_TEXT)

    @property
    def timeout_ms(self) -> int:
        return self.config.ACTION_TIMEOUT_MS

    async def navigate(self) -> "CheckboxPage":
        """
        Load the checkbox page and wait for its heading.

        Raises:
            NavigationTimeoutError: If the heading never appears within the
                navigation budget
        """
        await self.executor.navigate(self.config.CHECKBOX_PATH)
        try:
            await self.heading.wait_for(timeout=self.config.NAVIGATION_TIMEOUT_MS)
        except PlaywrightTimeoutError as e:
            logger.error("checkbox_page_marker_missing", url=self.executor.current_url)
            raise NavigationTimeoutError(
                f"Heading '{HEADING_TEXT}' did not appear within "
                f"{self.config.NAVIGATION_TIMEOUT_MS}ms",
                url=self.executor.current_url,
            ) from e

        logger.info("checkbox_page_loaded", url=self.executor.current_url)
        return self

    def get_checkbox(self, index: int) -> Locator:
        """Checkbox at `index` in document order. Not bounds checked."""
        return self.checkboxes.nth(index)

    async def _property_checked(self, index: int) -> bool:
        try:
            return await self.get_checkbox(index).is_checked(timeout=self.timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(f"Checkbox {index} not found") from e

    async def has_checked_attribute(self, index: int) -> bool:
        """Whether the `checked` HTML attribute is present on checkbox `index`."""
        try:
            value = await self.get_checkbox(index).get_attribute("checked", timeout=self.timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(f"Checkbox {index} not found") from e
        return value is not None

    async def is_checked(self, index: int) -> bool:
        """
        Read checkbox `index` through both state channels.

        Returns:
            The checked state shared by the property and the attribute

        Raises:
            StateSyncError: If the property and attribute disagree
            ElementNotFoundError: If no checkbox exists at `index`
        """
        property_checked = await self._property_checked(index)
        attribute_checked = await self.has_checked_attribute(index)

        if property_checked != attribute_checked:
            logger.error(
                "checkbox_state_out_of_sync",
                index=index,
                property_checked=property_checked,
                attribute_checked=attribute_checked,
            )
            raise StateSyncError(index, property_checked, attribute_checked)

        return property_checked

    async def check(self, index: int) -> "CheckboxPage":
        """Ensure checkbox `index` ends checked. No-op when already checked."""
        if not await self.is_checked(index):
            logger.info("checking_checkbox", index=index)
            await self._run_action(index, self.get_checkbox(index).check)
        else:
            logger.debug("checkbox_already_checked", index=index)

        await self.is_checked(index)
        return self

    async def uncheck(self, index: int) -> "CheckboxPage":
        """Ensure checkbox `index` ends unchecked. No-op when already unchecked."""
        if await self.is_checked(index):
            logger.info("unchecking_checkbox", index=index)
            await self._run_action(index, self.get_checkbox(index).uncheck)
        else:
            logger.debug("checkbox_already_unchecked", index=index)

        await self.is_checked(index)
        return self

    async def iter_states(self) -> AsyncIterator[bool]:
        """Yield the verified state of each checkbox in document order."""
        for index in range(await self.count()):
            yield await self.is_checked(index)

    async def get_all_states(self) -> List[bool]:
        return [state async for state in self.iter_states()]

    async def count(self) -> int:
        return await self.checkboxes.count()

    async def get_heading(self) -> str:
        return await self.executor.get_heading()

    # Raw input channels, used to exercise the page without idempotence guards.

    async def click(self, index: int) -> None:
        await self._run_action(index, self.get_checkbox(index).click)

    async def focus(self, index: int) -> None:
        await self._run_action(index, self.get_checkbox(index).focus)

    async def press(self, index: int, key: str) -> None:
        await self._run_action(index, self.get_checkbox(index).press, key)

    async def is_focused(self, index: int) -> bool:
        return await self._run_action(
            index, self.get_checkbox(index).evaluate, "el => document.activeElement === el"
        )

    async def click_label_text(self, index: int) -> None:
        """Click the bare text next to checkbox `index` ("checkbox 1", "checkbox 2")."""
        label = f"checkbox {index + 1}"
        await self._run_action(index, self.page.get_by_text(label).click, target=f"Label text '{label}'")

    async def _run_action(self, index: int, action, *args, target: Optional[str] = None):
        """Run a locator call under the action timeout and return its result."""
        target = target or f"Checkbox {index}"
        try:
            return await action(*args, timeout=self.timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(f"{target} not found within {self.timeout_ms}ms") from e
