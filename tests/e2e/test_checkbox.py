"""
End-to-end tests for checkbox state transitions.
"""

import pytest

from checkbox_e2e.scenarios import CHECKBOX_COUNT, INITIAL_STATES

pytestmark = [pytest.mark.e2e, pytest.mark.asyncio]


async def test_initial_states(checkbox_page):
    """Fresh load: checkbox 1 unchecked, checkbox 2 checked."""
    assert await checkbox_page.get_all_states() == list(INITIAL_STATES)


async def test_check_unchecked_checkbox(checkbox_page):
    await checkbox_page.check(0)

    assert await checkbox_page.is_checked(0) is True
    # The page's click handler mirrors the property into the attribute
    assert await checkbox_page.get_checkbox(0).get_attribute("checked") is not None


async def test_uncheck_checked_checkbox(checkbox_page):
    await checkbox_page.uncheck(1)

    assert await checkbox_page.is_checked(1) is False
    assert await checkbox_page.get_checkbox(1).get_attribute("checked") is None


async def test_toggle_multiple_checkboxes(checkbox_page):
    await checkbox_page.check(0)
    await checkbox_page.uncheck(1)

    assert await checkbox_page.get_all_states() == [True, False]


async def test_label_text_is_not_clickable(checkbox_page):
    """The text beside each checkbox is not wrapped in a <label>."""
    initial_state = await checkbox_page.is_checked(0)

    await checkbox_page.click_label_text(0)

    assert await checkbox_page.is_checked(0) == initial_state


async def test_space_key_toggles_checkbox(checkbox_page):
    await checkbox_page.focus(0)

    await checkbox_page.press(0, "Space")
    assert await checkbox_page.is_checked(0) is True

    await checkbox_page.press(0, "Space")
    assert await checkbox_page.is_checked(0) is False


async def test_attribute_follows_property(checkbox_page):
    checkbox = checkbox_page.get_checkbox(0)

    await checkbox.check()
    assert await checkbox.is_checked() is True
    assert await checkbox.get_attribute("checked") is not None

    await checkbox.uncheck()
    assert await checkbox.is_checked() is False
    assert await checkbox.get_attribute("checked") is None


async def test_checkbox_count(checkbox_page):
    assert await checkbox_page.count() == CHECKBOX_COUNT


async def test_page_heading(checkbox_page):
    assert await checkbox_page.get_heading() == "Checkboxes"


async def test_sequential_operations(checkbox_page):
    assert await checkbox_page.get_all_states() == [False, True]

    await checkbox_page.check(0)
    assert await checkbox_page.get_all_states() == [True, True]

    await checkbox_page.uncheck(1)
    assert await checkbox_page.get_all_states() == [True, False]

    await checkbox_page.uncheck(0)
    assert await checkbox_page.get_all_states() == [False, False]

    await checkbox_page.check(0)
    await checkbox_page.check(1)
    assert await checkbox_page.get_all_states() == [True, True]

    # Count does not drift over the session
    assert await checkbox_page.count() == CHECKBOX_COUNT


@pytest.mark.parametrize("index", [0, 1])
async def test_check_then_uncheck_round_trips(checkbox_page, index):
    await checkbox_page.check(index)
    await checkbox_page.uncheck(index)

    assert await checkbox_page.is_checked(index) is False


@pytest.mark.parametrize("index", [0, 1])
async def test_uncheck_then_check_round_trips(checkbox_page, index):
    await checkbox_page.uncheck(index)
    await checkbox_page.check(index)

    assert await checkbox_page.is_checked(index) is True
