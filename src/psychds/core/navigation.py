"""
Step navigation for the dataset-creation wizard.

A later step can be entered when it was already visited, or when the step
before it is complete. Going back is always allowed.
"""

from dataclasses import dataclass, field
from typing import Optional

from .models import WizardState


FIRST_STEP = 1
LAST_STEP = 3

STEP_TITLES = {
    1: "Select Files",
    2: "Dataset Metadata",
    3: "Organize Files",
}

STEP_1_INCOMPLETE = "Complete Step 1 first (select a project directory and at least one data file)"
STEP_2_INCOMPLETE = "Complete Step 2 first (provide dataset name and description)"

MISSING_PROJECT_NAME = "Please enter a name for your project directory."
MISSING_DIRECTORY = "Please select a data directory."
NO_FILES_SELECTED = "No data files are selected. Do you want to continue anyway?"


@dataclass
class NavigationResult:
    """Outcome of a navigation request."""

    allowed: bool
    step: int
    """Step that is active after the request."""

    message: Optional[str] = None
    """Warning to show when the request was refused."""


@dataclass
class StepCheck:
    """Problems found when leaving a step with its Continue button."""

    errors: list[str] = field(default_factory=list)
    """Blocking problems."""

    warnings: list[str] = field(default_factory=list)
    """Problems the user may choose to ignore."""

    @property
    def ok(self) -> bool:
        return not self.errors


def step1_complete(state: WizardState) -> bool:
    """Return True when a directory is set and at least one file is selected."""
    return state.has_project_dir() and len(state.data_files) > 0


def step2_complete(state: WizardState) -> bool:
    """Return True when the dataset has a non-empty name and description."""
    return state.dataset_info.is_complete()


def can_reach_step(state: WizardState, step: int) -> bool:
    """
    Check whether the wizard may show a step.

    Args:
        state: Current wizard state.
        step: Target step (1-3).

    Returns:
        True if the step may be entered.

    Raises:
        ValueError: If step is out of range.
    """
    if step < FIRST_STEP or step > LAST_STEP:
        raise ValueError(f"Invalid wizard step: {step}")

    if step == 1 or state.current_step >= step:
        return True
    if step == 2:
        return step1_complete(state)
    return step2_complete(state)


def blocked_message(step: int) -> str:
    """Warning shown when step cannot be entered yet."""
    return STEP_1_INCOMPLETE if step == 2 else STEP_2_INCOMPLETE


def go_to_step(state: WizardState, step: int) -> NavigationResult:
    """
    Move the wizard to a step if the gate allows it.

    Args:
        state: Wizard state, updated in place on success.
        step: Target step (1-3).

    Returns:
        NavigationResult describing the outcome.
    """
    if not can_reach_step(state, step):
        return NavigationResult(allowed=False, step=state.current_step, message=blocked_message(step))

    state.current_step = step
    return NavigationResult(allowed=True, step=step)


def reachable_steps(state: WizardState) -> list[int]:
    """List the steps the sidebar should show as clickable."""
    return [step for step in range(FIRST_STEP, LAST_STEP + 1) if can_reach_step(state, step)]


def leave_create_tab(state: WizardState) -> None:
    """Remember the active step and mark the create tab inactive."""
    if state.current_step:
        state.last_create_step = state.current_step
    state.current_step = 0


def enter_create_tab(state: WizardState) -> int:
    """
    Restore the step that was active when the create tab was left.

    Returns:
        The restored step (1 when none was remembered).
    """
    state.current_step = state.last_create_step or FIRST_STEP
    return state.current_step


def check_step1(state: WizardState) -> StepCheck:
    """
    Check the inputs of step 1 before continuing.

    Returns:
        A StepCheck; an empty file selection is only a warning.
    """
    check = StepCheck()
    if not state.project_name.strip():
        check.errors.append(MISSING_PROJECT_NAME)
    if not state.has_project_dir():
        check.errors.append(MISSING_DIRECTORY)
    if check.ok and not state.data_files:
        check.warnings.append(NO_FILES_SELECTED)
    return check


def check_step2(state: WizardState) -> StepCheck:
    """Check the inputs of step 2 before continuing."""
    check = StepCheck()
    if not state.dataset_info.name.strip():
        check.errors.append("Please provide a dataset name.")
    if not state.dataset_info.description.strip():
        check.errors.append("Please provide a dataset description.")
    return check


def advance(state: WizardState) -> NavigationResult:
    """
    Continue from the current step to the next one.

    The Continue button may move past an empty file selection once the
    user confirmed the warning, so this bypasses the step 1 file gate.

    Returns:
        NavigationResult for the move.
    """
    target = state.current_step + 1
    if target > LAST_STEP:
        return NavigationResult(allowed=False, step=state.current_step)
    if target == 2:
        state.current_step = target
        return NavigationResult(allowed=True, step=target)
    return go_to_step(state, target)
