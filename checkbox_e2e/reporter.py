"""
ScenarioReporter - Generates test-results.json after a scenario run.

This module provides structured reporting for scenario runs, including:
- Run metadata (timing, trigger, target, browsers)
- Summary statistics overall and per browser engine
- Detailed scenario results with error diagnostics
- Recommendations for debugging failures
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from checkbox_e2e.executor import (
    BrowserError,
    ElementNotFoundError,
    NavigationError,
    StateSyncError,
)

logger = structlog.get_logger(__name__)


class ScenarioStatus(str, Enum):
    """Scenario execution status."""
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


class ErrorType(str, Enum):
    """Types of scenario errors."""
    ELEMENT_NOT_FOUND = "element_not_found"
    NAVIGATION_TIMEOUT = "navigation_timeout"
    STATE_SYNC = "state_sync"
    ASSERTION_FAILED = "assertion_failed"
    BROWSER_ERROR = "browser_error"
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorType:
    """Map an exception onto the report's error taxonomy."""
    # StateSyncError is an AssertionError, so it must be matched first
    if isinstance(error, StateSyncError):
        return ErrorType.STATE_SYNC
    if isinstance(error, AssertionError):
        return ErrorType.ASSERTION_FAILED
    if isinstance(error, ElementNotFoundError):
        return ErrorType.ELEMENT_NOT_FOUND
    if isinstance(error, NavigationError):
        return ErrorType.NAVIGATION_TIMEOUT
    if isinstance(error, BrowserError):
        return ErrorType.BROWSER_ERROR
    return ErrorType.UNKNOWN


@dataclass
class ErrorDiagnostic:
    """Detailed error diagnostic information."""
    type: str
    message: str
    action_index: Optional[int] = None
    url: Optional[str] = None
    screenshot: Optional[str] = None
    trace: Optional[str] = None
    video: Optional[str] = None


@dataclass
class ScenarioResult:
    """Result of one scenario on one browser engine."""
    scenario_id: str
    description: str
    browser: str
    status: str
    duration_seconds: float
    started_at: str
    completed_at: str
    attempts: int = 1
    actual_states: List[bool] = field(default_factory=list)
    expected_states: List[bool] = field(default_factory=list)
    error: Optional[ErrorDiagnostic] = None


@dataclass
class RunSummary:
    """Pass/fail counts for a set of results."""
    total: int
    passed: int
    failed: int
    error: int
    pass_rate: float = 0.0

    def __post_init__(self):
        """Calculate pass rate."""
        if self.total > 0:
            self.pass_rate = round((self.passed / self.total) * 100, 2)
        else:
            self.pass_rate = 0.0


@dataclass
class RunMetadata:
    """Run metadata."""
    run_id: str
    started_at: str
    completed_at: str
    duration_seconds: float
    trigger: str
    base_url: str
    browsers: List[str]


@dataclass
class RunReport:
    """Complete run report."""
    metadata: RunMetadata
    summary: RunSummary
    browsers: Dict[str, RunSummary]
    results: List[ScenarioResult]
    recommendations: List[str]


def summarize(results: List[ScenarioResult]) -> RunSummary:
    counts = {status: 0 for status in ScenarioStatus}
    for result in results:
        counts[ScenarioStatus(result.status)] += 1

    return RunSummary(
        total=len(results),
        passed=counts[ScenarioStatus.PASSED],
        failed=counts[ScenarioStatus.FAILED],
        error=counts[ScenarioStatus.ERROR],
    )


class ScenarioReporter:
    """
    Generates scenario run reports in JSON format.

    This class collects scenario results and produces structured reports with
    error diagnostics, per-browser summaries and recommendations.
    """

    def __init__(self, output_path: str = "test-results.json", base_url: str = ""):
        """
        Initialize ScenarioReporter.

        Args:
            output_path: Path to write test-results.json
            base_url: Target origin recorded in the report metadata
        """
        self.output_path = Path(output_path)
        self.base_url = base_url
        self.results: List[ScenarioResult] = []
        self.run_start_time: Optional[datetime] = None
        self.run_end_time: Optional[datetime] = None
        self.run_id: Optional[str] = None
        self.trigger: str = "manual"

        logger.debug("scenario_reporter_initialized", output_path=str(self.output_path))

    def start_run(self, run_id: str, trigger: str = "manual") -> None:
        """
        Mark the start of a run.

        Args:
            run_id: Unique identifier for this run
            trigger: What triggered the run (manual, ci)
        """
        self.run_id = run_id
        self.trigger = trigger
        self.run_start_time = datetime.now(timezone.utc)
        self.results = []

        logger.info("scenario_run_started", run_id=run_id, trigger=trigger)

    def end_run(self) -> None:
        """Mark the end of a run."""
        self.run_end_time = datetime.now(timezone.utc)
        logger.info("scenario_run_ended", run_id=self.run_id)

    def add_result(self, result: ScenarioResult) -> None:
        self.results.append(result)

        logger.info(
            "scenario_result_added",
            scenario_id=result.scenario_id,
            browser=result.browser,
            status=result.status,
            attempts=result.attempts,
        )

    def _browser_summaries(self) -> Dict[str, RunSummary]:
        by_browser: Dict[str, List[ScenarioResult]] = {}
        for result in self.results:
            by_browser.setdefault(result.browser, []).append(result)
        return {browser: summarize(results) for browser, results in sorted(by_browser.items())}

    def _generate_recommendations(self, summary: RunSummary) -> List[str]:
        """
        Generate recommendations based on failures.

        Args:
            summary: Run summary statistics

        Returns:
            List of actionable recommendations
        """
        recommendations = []

        failure_types: Dict[str, int] = {}
        for result in self.results:
            if result.error:
                failure_types[result.error.type] = failure_types.get(result.error.type, 0) + 1

        if failure_types.get(ErrorType.STATE_SYNC.value):
            recommendations.append(
                f"{failure_types[ErrorType.STATE_SYNC.value]} scenario(s) saw the checked property "
                "and checked attribute disagree. The page's attribute sync script is broken; "
                "this is a regression in the page, not harness flakiness."
            )
        if failure_types.get(ErrorType.ELEMENT_NOT_FOUND.value):
            recommendations.append(
                f"{failure_types[ErrorType.ELEMENT_NOT_FOUND.value]} scenario(s) could not find a "
                "checkbox. Check the #checkboxes form markup and the scenario indices."
            )
        if failure_types.get(ErrorType.NAVIGATION_TIMEOUT.value):
            recommendations.append(
                f"{failure_types[ErrorType.NAVIGATION_TIMEOUT.value]} scenario(s) failed to load "
                f"the page. Verify {self.base_url or 'the base URL'} is reachable."
            )
        if failure_types.get(ErrorType.ASSERTION_FAILED.value):
            recommendations.append(
                f"{failure_types[ErrorType.ASSERTION_FAILED.value]} scenario(s) ended in an "
                "unexpected state vector. Compare actual_states with expected_states."
            )

        screenshots = [r.error.screenshot for r in self.results if r.error and r.error.screenshot]
        if screenshots:
            recommendations.append(f"{len(screenshots)} screenshot(s) captured for visual debugging.")

        if summary.total > 0 and summary.passed == summary.total:
            recommendations.append("All scenarios passed.")

        return recommendations

    def generate_report(self) -> RunReport:
        """
        Generate the complete run report.

        Raises:
            ValueError: If start_run() and end_run() were not both called
        """
        if not self.run_start_time or not self.run_end_time:
            raise ValueError("Run not properly initialized. Call start_run() and end_run().")

        duration = (self.run_end_time - self.run_start_time).total_seconds()
        browsers = self._browser_summaries()

        metadata = RunMetadata(
            run_id=self.run_id or "unknown",
            started_at=self.run_start_time.isoformat(),
            completed_at=self.run_end_time.isoformat(),
            duration_seconds=round(duration, 2),
            trigger=self.trigger,
            base_url=self.base_url,
            browsers=list(browsers),
        )

        summary = summarize(self.results)
        report = RunReport(
            metadata=metadata,
            summary=summary,
            browsers=browsers,
            results=self.results,
            recommendations=self._generate_recommendations(summary),
        )

        logger.info(
            "scenario_report_generated",
            total=summary.total,
            passed=summary.passed,
            failed=summary.failed,
            pass_rate=summary.pass_rate,
        )
        return report

    def write_report(self) -> RunReport:
        """Write the run report to JSON and print a summary per browser."""
        report = self.generate_report()

        report_dict = {
            "metadata": asdict(report.metadata),
            "summary": asdict(report.summary),
            "browsers": {name: asdict(s) for name, s in report.browsers.items()},
            "results": [asdict(r) for r in report.results],
            "recommendations": report.recommendations,
        }

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, "w") as f:
            json.dump(report_dict, f, indent=2)

        logger.info("scenario_report_written", output_path=str(self.output_path))

        print(f"\nReport written to: {self.output_path}")
        for name, browser_summary in report.browsers.items():
            print(
                f"  {name}: {browser_summary.passed}/{browser_summary.total} passed, "
                f"{browser_summary.failed} failed, {browser_summary.error} errored"
            )
        print(
            f"Summary: {report.summary.passed}/{report.summary.total} passed "
            f"({report.summary.pass_rate}% pass rate)"
        )
        return report
