"""
Pytest configuration and fixtures for the checkbox suite.

Browser tests run against a local copy of the reference checkbox page served
by pytest-httpserver. Pass --live to target the configured BASE_URL instead,
and --browser (repeatable) to choose the engines every e2e test runs on.
"""

from datetime import datetime
from pathlib import Path

import pytest
import pytest_asyncio
from playwright.async_api import async_playwright

from checkbox_e2e.config import SUPPORTED_BROWSERS, configure_logging, settings
from checkbox_e2e.pages.checkbox_page import CheckboxPage

FIXTURES_DIR = Path(__file__).parent / "fixtures"

DESYNC_PATH = "/desync/checkboxes"
BLANK_PATH = "/blank"


def pytest_addoption(parser):
    group = parser.getgroup("checkbox-e2e")
    group.addoption(
        "--browser",
        action="append",
        choices=SUPPORTED_BROWSERS,
        help="Browser engine for e2e tests (can be specified multiple times)",
    )
    group.addoption(
        "--live",
        action="store_true",
        help="Run e2e tests against the configured BASE_URL instead of the local copy",
    )


def pytest_configure(config):
    """Configure logging and markers."""
    configure_logging()
    config.addinivalue_line("markers", "e2e: end-to-end tests that drive a real browser")
    config.addinivalue_line("markers", "local_only: needs pages that only the local server provides")


def pytest_generate_tests(metafunc):
    """Run every browser-backed test once per selected engine."""
    if "browser_name" in metafunc.fixturenames:
        browsers = metafunc.config.getoption("--browser") or settings.BROWSERS
        metafunc.parametrize("browser_name", browsers, scope="function")


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--live"):
        return
    skip_local = pytest.mark.skip(reason="needs the local checkbox server")
    for item in items:
        if "local_only" in item.keywords:
            item.add_marker(skip_local)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Store test results for use in fixtures."""
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)


@pytest.fixture
def checkbox_site(request, httpserver) -> str:
    """Base URL serving the checkbox page and its broken variants."""
    if request.config.getoption("--live"):
        return settings.BASE_URL

    for path, fixture in (
        (settings.CHECKBOX_PATH, "checkboxes.html"),
        (DESYNC_PATH, "checkboxes_desync.html"),
        (BLANK_PATH, "blank.html"),
    ):
        httpserver.expect_request(path).respond_with_data(
            (FIXTURES_DIR / fixture).read_text(),
            content_type="text/html",
        )
    return httpserver.url_for("/").rstrip("/")


@pytest.fixture
def harness_settings(checkbox_site, tmp_path):
    return settings.model_copy(
        update={
            "BASE_URL": checkbox_site,
            "ARTIFACTS_DIR": str(tmp_path / "artifacts"),
        }
    )


@pytest_asyncio.fixture
async def page(request, browser_name, harness_settings):
    """A fresh page in its own browser context."""
    async with async_playwright() as playwright:
        browser = await getattr(playwright, browser_name).launch(headless=harness_settings.HEADLESS)
        artifacts = Path(harness_settings.ARTIFACTS_DIR)
        context = await browser.new_context(record_video_dir=str(artifacts / "videos"))
        context.set_default_timeout(harness_settings.ACTION_TIMEOUT_MS)
        context.set_default_navigation_timeout(harness_settings.NAVIGATION_TIMEOUT_MS)
        page = await context.new_page()

        yield page

        rep_call = getattr(request.node, "rep_call", None)
        failed = rep_call is not None and rep_call.failed
        if failed:
            artifacts.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            test_name = request.node.name.replace("/", "_").replace(":", "_")
            screenshot_path = artifacts / f"failure_{test_name}_{timestamp}.png"
            await page.screenshot(path=str(screenshot_path), full_page=True)
            print(f"\n[E2E] Screenshot saved: {screenshot_path} (url: {page.url})")

        await context.close()
        if page.video is not None:
            if failed:
                print(f"[E2E] Video saved: {await page.video.path()}")
            else:
                await page.video.delete()
        await browser.close()


@pytest.fixture
def make_checkbox_page(page, harness_settings):
    """Build a CheckboxPage on the test's page with settings overrides."""

    def factory(**overrides) -> CheckboxPage:
        return CheckboxPage(page, harness_settings.model_copy(update=overrides))

    return factory


@pytest_asyncio.fixture
async def checkbox_page(page, harness_settings) -> CheckboxPage:
    """CheckboxPage on a freshly loaded checkbox page."""
    return await CheckboxPage(page, harness_settings).navigate()
