"""
Checkbox E2E configuration using Pydantic settings.
"""

import logging

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Harness settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHECKBOX_E2E_",
        case_sensitive=True,
        extra="ignore",
    )

    # Target page
    BASE_URL: str = "http://the-internet.herokuapp.com"
    CHECKBOX_PATH: str = "/checkboxes"

    # Browsers
    BROWSERS: list[str] = ["chromium"]  # Options: chromium, firefox, webkit
    HEADLESS: bool = True

    # Timeouts (milliseconds)
    ACTION_TIMEOUT_MS: int = 10000
    NAVIGATION_TIMEOUT_MS: int = 30000
    EXPECT_TIMEOUT_MS: int = 5000
    NO_NAVIGATION_WINDOW_MS: int = 1000

    # Runner
    MAX_RETRIES: int = 0
    WORKERS: int = 1

    # Artifacts
    ARTIFACTS_DIR: str = "test-artifacts"
    REPORT_PATH: str = "test-results.json"


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

settings = Settings()


def configure_logging(verbose: bool = False) -> None:
    """Configure structured logging for the harness."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(format="%(message)s", level=level)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
