"""
ScenarioRunner - Runs checkbox scenarios across browser engines.

This module provides the command-line runner that:
- Loads scenario tables (built-in or from JSON)
- Filters scenarios by name pattern and tag
- Executes each scenario on a fresh page per browser engine
- Retries whole scenarios on transient browser failures
- Captures screenshots and video on failure, and a trace on the first retry
- Generates test-results.json using ScenarioReporter
"""

import argparse
import asyncio
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from checkbox_e2e.config import SUPPORTED_BROWSERS, Settings, configure_logging, settings
from checkbox_e2e.executor import BrowserError
from checkbox_e2e.pages.checkbox_page import CheckboxPage
from checkbox_e2e.reporter import (
    ErrorDiagnostic,
    RunReport,
    ScenarioReporter,
    ScenarioResult,
    ScenarioStatus,
    classify_error,
)
from checkbox_e2e.scenarios import (
    DATA_DRIVEN_SCENARIOS,
    CheckboxScenario,
    apply_action,
    load_scenarios,
)

logger = structlog.get_logger(__name__)


def filter_scenarios(
    scenarios: Sequence[CheckboxScenario],
    name_pattern: Optional[str] = None,
    tag: Optional[str] = None,
) -> List[CheckboxScenario]:
    """Keep scenarios whose description contains `name_pattern` and that carry `tag`."""
    selected = []
    for scenario in scenarios:
        if name_pattern and name_pattern.lower() not in scenario.description.lower():
            continue
        if tag and tag not in scenario.tags:
            continue
        selected.append(scenario)
    return selected


class ScenarioRunner:
    """
    Orchestrates scenario execution.

    Every attempt owns its own browser context and starts from a fresh page
    load. Retries re-run the whole scenario and only follow BrowserError;
    state-sync and assertion failures are correctness signals and fail at once.
    """

    def __init__(
        self,
        scenarios: Sequence[CheckboxScenario],
        browsers: Sequence[str],
        config: Settings = settings,
        output_path: Optional[str] = None,
        max_retries: Optional[int] = None,
        workers: Optional[int] = None,
    ):
        """
        Initialize the ScenarioRunner.

        Args:
            scenarios: Scenarios to execute
            browsers: Browser engines to execute them on
            config: Harness settings (base URL, timeouts, headless)
            output_path: Path to write test-results.json
            max_retries: Whole-scenario retries for transient failures
            workers: Maximum scenarios in flight at once

        Raises:
            ValueError: If a browser is unsupported or max_retries is negative
        """
        unknown = [b for b in browsers if b not in SUPPORTED_BROWSERS]
        if unknown:
            raise ValueError(f"Unsupported browser(s): {', '.join(unknown)}")

        max_retries = config.MAX_RETRIES if max_retries is None else max_retries
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")

        self.scenarios = list(scenarios)
        self.browsers = list(browsers)
        self.config = config
        self.max_retries = max_retries
        self.workers = max(1, config.WORKERS if workers is None else workers)
        self.artifacts_dir = Path(config.ARTIFACTS_DIR)
        self.reporter = ScenarioReporter(
            output_path=output_path or config.REPORT_PATH,
            base_url=config.BASE_URL,
        )

        logger.info(
            "scenario_runner_initialized",
            num_scenarios=len(self.scenarios),
            browsers=self.browsers,
            max_retries=self.max_retries,
            workers=self.workers,
        )

    async def _execute_scenario(
        self,
        browser: Browser,
        browser_name: str,
        scenario: CheckboxScenario,
        attempt: int = 0,
    ) -> Dict[str, Any]:
        """
        Execute one attempt of a scenario on a fresh context.

        Video is recorded for every attempt and kept only when it fails. The
        first retry also records a Playwright trace.

        Returns:
            Attempt result dictionary
        """
        status = ScenarioStatus.PASSED
        error_diagnostic = None
        retryable = False
        actual_states: List[bool] = []
        action_index = None
        context = None
        page = None
        checkbox_page = None
        tracing = False

        try:
            context = await browser.new_context(record_video_dir=str(self.artifacts_dir / "videos"))
            context.set_default_timeout(self.config.ACTION_TIMEOUT_MS)
            context.set_default_navigation_timeout(self.config.NAVIGATION_TIMEOUT_MS)
            if attempt == 1:
                await context.tracing.start(screenshots=True, snapshots=True)
                tracing = True
            page = await context.new_page()
            checkbox_page = CheckboxPage(page, self.config)

            await checkbox_page.navigate()
            for action_index, action in enumerate(scenario.actions):
                await apply_action(checkbox_page, action)
            action_index = None

            actual_states = await checkbox_page.get_all_states()
            expected_states = list(scenario.expected_states)
            if actual_states != expected_states:
                raise AssertionError(f"Expected states {expected_states}, got {actual_states}")

        except (AssertionError, BrowserError) as e:
            status = ScenarioStatus.FAILED
            retryable = isinstance(e, BrowserError)
            error_diagnostic = await self._diagnose(checkbox_page, browser_name, scenario, e, action_index)
        except Exception as e:
            status = ScenarioStatus.ERROR
            error_diagnostic = await self._diagnose(checkbox_page, browser_name, scenario, e, action_index)
        finally:
            trace_path, video_path = await self._close_context(
                context,
                page,
                f"{scenario.scenario_id}_{browser_name}_attempt{attempt + 1}",
                tracing=tracing,
                keep_artifacts=status != ScenarioStatus.PASSED,
            )

        if error_diagnostic is not None:
            error_diagnostic.trace = trace_path
            error_diagnostic.video = video_path

        return {
            "status": status,
            "retryable": retryable,
            "actual_states": actual_states,
            "error": error_diagnostic,
        }

    async def _close_context(
        self,
        context: Optional[BrowserContext],
        page: Optional[Page],
        name: str,
        tracing: bool,
        keep_artifacts: bool,
    ) -> Tuple[Optional[str], Optional[str]]:
        """Stop tracing, close the context and keep or discard its trace and video."""
        trace_path = None
        video_path = None
        if context is None:
            return trace_path, video_path

        try:
            if tracing and keep_artifacts:
                trace_file = self.artifacts_dir / "traces" / f"{name}.zip"
                trace_file.parent.mkdir(parents=True, exist_ok=True)
                await context.tracing.stop(path=str(trace_file))
                trace_path = str(trace_file)
                logger.info("trace_saved", path=trace_path)
            elif tracing:
                await context.tracing.stop()
        except PlaywrightError as e:
            logger.warning("trace_capture_skipped", name=name, error=str(e))
        finally:
            await context.close()

        # the video file is only complete once the context is closed
        video = page.video if page is not None else None
        if video is not None:
            try:
                if keep_artifacts:
                    video_path = str(await video.path())
                    logger.info("video_saved", path=video_path)
                else:
                    await video.delete()
            except PlaywrightError as e:
                logger.warning("video_capture_skipped", name=name, error=str(e))

        return trace_path, video_path

    async def _diagnose(
        self,
        checkbox_page: Optional[CheckboxPage],
        browser_name: str,
        scenario: CheckboxScenario,
        error: BaseException,
        action_index: Optional[int],
    ) -> ErrorDiagnostic:
        logger.error(
            "scenario_attempt_failed",
            scenario_id=scenario.scenario_id,
            browser=browser_name,
            error_type=type(error).__name__,
            error=str(error),
        )

        if checkbox_page is None:
            return ErrorDiagnostic(
                type=classify_error(error).value,
                message=str(error),
                action_index=action_index,
            )

        screenshot_path = None
        try:
            screenshot_path = await checkbox_page.executor.take_screenshot(
                f"{scenario.scenario_id}_{browser_name}_failure"
            )
        except (BrowserError, OSError) as e:
            logger.warning("failure_screenshot_skipped", error=str(e))

        return ErrorDiagnostic(
            type=classify_error(error).value,
            message=str(error),
            action_index=action_index,
            url=checkbox_page.executor.current_url,
            screenshot=screenshot_path,
        )

    def _error_result(
        self, browser_name: str, scenario: CheckboxScenario, error: BaseException, started_at: datetime
    ) -> ScenarioResult:
        """Result for a scenario that could not be executed at all."""
        logger.error(
            "scenario_execution_error",
            scenario_id=scenario.scenario_id,
            browser=browser_name,
            error_type=type(error).__name__,
            error=str(error),
        )
        completed_at = datetime.now(timezone.utc)
        return ScenarioResult(
            scenario_id=scenario.scenario_id,
            description=scenario.description,
            browser=browser_name,
            status=ScenarioStatus.ERROR.value,
            duration_seconds=round((completed_at - started_at).total_seconds(), 3),
            started_at=started_at.isoformat(),
            completed_at=completed_at.isoformat(),
            expected_states=list(scenario.expected_states),
            error=ErrorDiagnostic(type=classify_error(error).value, message=str(error)),
        )

    async def _run_with_retries(
        self, browser: Browser, browser_name: str, scenario: CheckboxScenario
    ) -> ScenarioResult:
        start_time = datetime.now(timezone.utc)
        started = time.monotonic()

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                logger.info(
                    "retrying_scenario",
                    scenario_id=scenario.scenario_id,
                    browser=browser_name,
                    attempt=attempt,
                )

            result = await self._execute_scenario(browser, browser_name, scenario, attempt=attempt)
            if result["status"] == ScenarioStatus.PASSED or not result["retryable"]:
                break

        return ScenarioResult(
            scenario_id=scenario.scenario_id,
            description=scenario.description,
            browser=browser_name,
            status=result["status"].value,
            duration_seconds=round(time.monotonic() - started, 3),
            started_at=start_time.isoformat(),
            completed_at=datetime.now(timezone.utc).isoformat(),
            attempts=attempt + 1,
            actual_states=result["actual_states"],
            expected_states=list(scenario.expected_states),
            error=result["error"],
        )

    async def _run_browser(self, playwright, browser_name: str, semaphore: asyncio.Semaphore) -> None:
        started_at = datetime.now(timezone.utc)
        try:
            browser = await getattr(playwright, browser_name).launch(headless=self.config.HEADLESS)
        except Exception as e:
            logger.error("browser_launch_failed", browser=browser_name, error=str(e))
            for scenario in self.scenarios:
                self.reporter.add_result(self._error_result(browser_name, scenario, e, started_at))
            return

        logger.info("browser_launched", browser=browser_name, version=browser.version)

        async def run_one(scenario: CheckboxScenario) -> None:
            async with semaphore:
                scenario_started = datetime.now(timezone.utc)
                try:
                    result = await self._run_with_retries(browser, browser_name, scenario)
                except Exception as e:
                    result = self._error_result(browser_name, scenario, e, scenario_started)
                self.reporter.add_result(result)

        try:
            await asyncio.gather(*(run_one(s) for s in self.scenarios))
        finally:
            await browser.close()

    async def run(self, trigger: str = "manual") -> RunReport:
        """Run every scenario on every browser and write the report."""
        run_id = f"run_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"
        self.reporter.start_run(run_id=run_id, trigger=trigger)

        semaphore = asyncio.Semaphore(self.workers)
        try:
            async with async_playwright() as playwright:
                await asyncio.gather(
                    *(self._run_browser(playwright, name, semaphore) for name in self.browsers)
                )
        finally:
            self.reporter.end_run()
            report = self.reporter.write_report()

        return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run checkbox scenarios against the reference checkbox page"
    )
    parser.add_argument(
        "--scenarios",
        help="Path to a scenario JSON file (default: built-in data-driven scenarios)",
    )
    parser.add_argument(
        "-k",
        "--name",
        help="Only run scenarios whose description contains this text",
    )
    parser.add_argument(
        "-m",
        "--tag",
        help="Only run scenarios carrying this tag",
    )
    parser.add_argument(
        "--browser",
        action="append",
        choices=SUPPORTED_BROWSERS,
        help="Browser engine to run on (can be specified multiple times)",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Run browsers with a visible window",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.WORKERS,
        help=f"Maximum concurrent scenarios (default: {settings.WORKERS})",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=settings.MAX_RETRIES,
        help=f"Whole-scenario retries for transient failures (default: {settings.MAX_RETRIES})",
    )
    parser.add_argument(
        "--base-url",
        default=settings.BASE_URL,
        help=f"Origin of the checkbox page (default: {settings.BASE_URL})",
    )
    parser.add_argument(
        "--output",
        default=settings.REPORT_PATH,
        help=f"Path to write results (default: {settings.REPORT_PATH})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the scenario runner CLI.

    Returns:
        Exit code (0 if all scenarios pass, 1 otherwise)
    """
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    config = settings.model_copy(
        update={
            "BASE_URL": args.base_url,
            "HEADLESS": settings.HEADLESS and not args.headed,
        }
    )

    try:
        scenarios = load_scenarios(args.scenarios) if args.scenarios else list(DATA_DRIVEN_SCENARIOS)
        scenarios = filter_scenarios(scenarios, name_pattern=args.name, tag=args.tag)
        if not scenarios:
            print("No scenarios matched the given filters")
            return 1

        runner = ScenarioRunner(
            scenarios=scenarios,
            browsers=args.browser or config.BROWSERS,
            config=config,
            output_path=args.output,
            max_retries=args.retries,
            workers=args.workers,
        )
        report = asyncio.run(runner.run())

    except Exception as e:
        logger.error("scenario_run_failed", error=str(e))
        print(f"\nScenario run failed: {e}")
        return 1

    if report.summary.passed != report.summary.total:
        print(f"\n{report.summary.total - report.summary.passed} scenario(s) failed")
        return 1

    print("\nAll scenarios passed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
