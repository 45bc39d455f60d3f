"""
Checkbox Test Scenarios

This module provides the typed scenario data used by the test suite and the
scenario runner:
- CheckboxAction: a check/uncheck step against one checkbox index
- CheckboxScenario: an ordered list of actions plus the expected state vector
- apply_actions: drive a CheckboxPage through a list of actions
- load_scenarios: read a scenario table from JSON

These scenarios can be composed to create end-to-end test flows.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import structlog

from checkbox_e2e.pages.checkbox_page import CheckboxPage

logger = structlog.get_logger(__name__)

# Fixed states of the reference page on a fresh load
INITIAL_STATES: Tuple[bool, ...] = (False, True)
CHECKBOX_COUNT = len(INITIAL_STATES)


class ActionKind(str, Enum):
    """Kinds of checkbox actions."""
    CHECK = "check"
    UNCHECK = "uncheck"


@dataclass(frozen=True)
class CheckboxAction:
    """A single check/uncheck step."""
    kind: ActionKind
    index: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckboxAction":
        if not isinstance(data, dict):
            raise ValueError(f"Action must be an object: {data!r}")
        try:
            kind = ActionKind(data["kind"])
        except KeyError:
            raise ValueError(f"Action is missing 'kind': {data}")
        except ValueError:
            raise ValueError(f"Unknown action kind: {data.get('kind')!r}")

        index = data.get("index")
        if not isinstance(index, int) or isinstance(index, bool) or index < 0:
            raise ValueError(f"Action index must be a non-negative integer: {index!r}")

        return cls(kind=kind, index=index)


@dataclass(frozen=True)
class CheckboxScenario:
    """Ordered actions and the state vector expected once they settle."""
    description: str
    actions: Tuple[CheckboxAction, ...]
    expected_states: Tuple[bool, ...]
    tags: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def scenario_id(self) -> str:
        return self.description.lower().replace(" ", "_")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckboxScenario":
        if not isinstance(data, dict):
            raise ValueError(f"Scenario must be an object: {data!r}")

        description = data.get("description")
        if not description:
            raise ValueError("Scenario is missing 'description'")

        expected = data.get("expected_states")
        if not isinstance(expected, list) or not all(isinstance(s, bool) for s in expected):
            raise ValueError(f"Scenario '{description}' needs a list of booleans in 'expected_states'")

        actions = data.get("actions", [])
        if not isinstance(actions, list):
            raise ValueError(f"Scenario '{description}' needs a list in 'actions'")

        tags = data.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ValueError(f"Scenario '{description}' needs a list of strings in 'tags'")

        return cls(
            description=description,
            actions=tuple(CheckboxAction.from_dict(a) for a in actions),
            expected_states=tuple(expected),
            tags=tuple(tags),
        )


def check(index: int) -> CheckboxAction:
    return CheckboxAction(ActionKind.CHECK, index)


def uncheck(index: int) -> CheckboxAction:
    return CheckboxAction(ActionKind.UNCHECK, index)


DATA_DRIVEN_SCENARIOS: Tuple[CheckboxScenario, ...] = (
    CheckboxScenario(
        description="check first checkbox",
        actions=(check(0),),
        expected_states=(True, True),
        tags=("smoke",),
    ),
    CheckboxScenario(
        description="uncheck second checkbox",
        actions=(uncheck(1),),
        expected_states=(False, False),
        tags=("smoke",),
    ),
    CheckboxScenario(
        description="toggle both checkboxes",
        actions=(check(0), uncheck(1)),
        expected_states=(True, False),
    ),
    CheckboxScenario(
        description="check all then uncheck all",
        actions=(check(0), check(1), uncheck(0), uncheck(1)),
        expected_states=(False, False),
    ),
)


async def apply_action(page: CheckboxPage, action: CheckboxAction) -> CheckboxPage:
    """Apply one action to the page object."""
    if action.kind is ActionKind.CHECK:
        return await page.check(action.index)
    if action.kind is ActionKind.UNCHECK:
        return await page.uncheck(action.index)
    raise ValueError(f"Unhandled action kind: {action.kind}")


async def apply_actions(page: CheckboxPage, actions: Sequence[CheckboxAction]) -> List[bool]:
    """
    Apply actions in order and return the resulting verified state vector.

    Raises:
        StateSyncError: If any checkbox's property and attribute disagree
        ElementNotFoundError: If an action targets a missing checkbox
    """
    for action in actions:
        logger.debug("applying_action", kind=action.kind.value, index=action.index)
        await apply_action(page, action)

    return await page.get_all_states()


def load_scenarios(path: str) -> List[CheckboxScenario]:
    """
    Load a scenario table from a JSON file.

    The file holds {"scenarios": [{"description", "actions", "expected_states", "tags"}]}.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the JSON or a scenario definition is invalid
    """
    scenario_path = Path(path)
    try:
        with open(scenario_path, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.error("scenario_file_not_found", path=str(scenario_path))
        raise
    except json.JSONDecodeError as e:
        logger.error("scenario_file_invalid_json", path=str(scenario_path), error=str(e))
        raise ValueError(f"Invalid JSON in {scenario_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("scenarios", []), list):
        logger.error("scenario_file_invalid_layout", path=str(scenario_path))
        raise ValueError(f"{scenario_path} must hold an object with a 'scenarios' list")

    scenarios = [CheckboxScenario.from_dict(item) for item in data.get("scenarios", [])]
    logger.info("scenarios_loaded", path=str(scenario_path), count=len(scenarios))
    return scenarios
