"""
Checkbox E2E Package

Page object, state-verification contract and scenario runner for the
checkbox page of "The Internet" demo site.

Available modules:
- executor: shared browser capabilities and the error taxonomy
- pages: the CheckboxPage page object
- scenarios: typed check/uncheck actions and data-driven scenarios
- reporter: structured JSON run reports
- runner: the `checkbox-e2e` command-line runner
"""

from checkbox_e2e.executor import (
    BrowserError,
    ElementNotFoundError,
    NavigationError,
    NavigationTimeoutError,
    PlaywrightExecutor,
    StateSyncError,
)
from checkbox_e2e.pages import CheckboxPage
from checkbox_e2e.scenarios import (
    DATA_DRIVEN_SCENARIOS,
    INITIAL_STATES,
    ActionKind,
    CheckboxAction,
    CheckboxScenario,
    apply_actions,
)

__all__ = [
    "BrowserError",
    "ElementNotFoundError",
    "NavigationError",
    "NavigationTimeoutError",
    "PlaywrightExecutor",
    "StateSyncError",
    "CheckboxPage",
    "DATA_DRIVEN_SCENARIOS",
    "INITIAL_STATES",
    "ActionKind",
    "CheckboxAction",
    "CheckboxScenario",
    "apply_actions",
]
