"""
Validation step tracking.

The external validator reports progress as a sequence of step events. This
module defines the fixed step hierarchy shown in the checklist and keeps
per-step status. Once any step fails, later incomplete steps are frozen so
the checklist shows where validation stopped.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from ..infrastructure.file_tree import FileTree


@dataclass(frozen=True)
class StepMessage:
    """Checklist text for a step before and after it has run."""

    imperative: str
    past_tense: str


@dataclass(frozen=True)
class ValidationStep:
    """One entry of the validation checklist."""

    key: str
    message: StepMessage
    sub_steps: tuple["ValidationStep", ...] = ()


def _step(key: str, imperative: str, past_tense: str, *sub_steps: ValidationStep) -> ValidationStep:
    return ValidationStep(key, StepMessage(imperative, past_tense), tuple(sub_steps))


VALIDATION_STEPS: tuple[ValidationStep, ...] = (
    _step("start", "Start validation", "Validation started"),
    _step(
        "check-folder", "Find project folder", "Project folder found",
        _step("build-tree", "Crawl project folder and construct file tree",
              "Project folder crawled and file tree constructed"),
    ),
    _step("find-metadata", "Find metadata file",
          'Metadata file "dataset_description.json" found in the root folder'),
    _step("find-data-dir", 'Find "data" subfolder', '"data" subfolder found in the root folder'),
    _step(
        "parse-metadata", 'Parse "dataset_description.json" metadata file',
        'Successfully parsed "dataset_description.json" metadata file',
        _step("metadata-utf8", "Check metadata file for utf-8 encoding", "Metadata file is utf-8 encoded"),
        _step("metadata-json", "Parse metadata file as JSON", "Metadata file parsed successfully"),
        _step("metadata-jsonld", "Validate metadata file as JSON-LD", "Metadata file is valid JSON-LD"),
        _step("metadata-fields",
              'Check metadata file for required "name", "description", and "variableMeasured" fields',
              'Metadata file contains required "name", "description", and "variableMeasured" fields.'),
        _step("metadata-type", 'Check metadata file for field "@type" with value "Dataset"',
              'Metadata file has "@type" field with value "Dataset"'),
    ),
    _step("check-for-csv", 'Check for CSV data files in "data" subfolder',
          'CSV data files found in "data" subfolder'),
    _step(
        "validate-csvs", "Check that all CSV data files are valid", "All CSV data files are valid",
        _step("csv-keywords", "Check filename for keyword formatting", "Filename uses valid keyword formatting"),
        _step("csv-parse", "Parse data file as CSV", "Data file successfully parsed as CSV"),
        _step("csv-header", "Check for header line", "Header line found"),
        _step("csv-nomismatch", "Check all lines for equal number of cells", "All lines have equal number of cells"),
        _step("csv-rowid", "Check for any row_id columns with non-unique values",
              "All row_id columns have unique values"),
    ),
    _step("check-variableMeasured",
          'Confirm that all column headers in CSV data files are found in "variableMeasured" metadata field',
          'All column headers in CSV data files were found in "variableMeasured" metadata field'),
)


def iter_steps(steps: tuple[ValidationStep, ...] = VALIDATION_STEPS):
    """Yield every step, each super-step followed by its sub-steps."""
    for step in steps:
        yield step
        yield from step.sub_steps


@dataclass
class StepStatus:
    """Progress of one step."""

    complete: bool = False
    success: bool = False
    issue: Optional[str] = None


@dataclass
class StepTracker:
    """
    Status of every validation step for one run.

    Updates for steps that are not complete yet are ignored once any step
    has failed. A super-step with sub-steps is derived from them: complete
    when all are complete, successful when all succeeded.
    """

    steps: tuple[ValidationStep, ...] = VALIDATION_STEPS
    status: dict[str, StepStatus] = field(default_factory=dict)
    failed: bool = False

    def __post_init__(self):
        self.reset()

    def reset(self) -> None:
        """Mark every step incomplete."""
        self.status = {step.key: StepStatus() for step in iter_steps(self.steps)}
        self.failed = False

    def _parent_of(self, key: str) -> Optional[ValidationStep]:
        for step in self.steps:
            if any(sub.key == key for sub in step.sub_steps):
                return step
        return None

    def update(self, key: str, success: bool, issue: Optional[str] = None) -> bool:
        """
        Record the outcome of a step.

        Args:
            key: Step key.
            success: Whether the step passed.
            issue: Reason for a failure, if any.

        Returns:
            True if the update was applied, False if it was ignored.

        Raises:
            KeyError: If key is not a known step.
        """
        current = self.status[key]
        if self.failed and not current.complete:
            return False

        self.status[key] = StepStatus(complete=True, success=success, issue=issue)

        parent = self._parent_of(key)
        if parent is not None:
            self._update_super_step(parent)

        if not success:
            self.failed = True
        return True

    def _update_super_step(self, step: ValidationStep) -> None:
        if self.failed and not self.status[step.key].complete:
            return
        sub_status = [self.status[sub.key] for sub in step.sub_steps]
        self.status[step.key] = StepStatus(
            complete=all(s.complete for s in sub_status),
            success=all(s.success for s in sub_status),
        )

    def apply(self, step_status: dict[str, Any]) -> None:
        """
        Apply a step status map reported by the validator.

        Steps are applied in checklist order; unknown keys are ignored.

        Args:
            step_status: Mapping of step key to {'complete', 'success', 'issue'}.
        """
        for step in iter_steps(self.steps):
            reported = step_status.get(step.key)
            if not isinstance(reported, dict) or not reported.get("complete"):
                continue
            if step.sub_steps:
                # Derived from sub-steps, which come next in iteration order
                continue
            issue = reported.get("issue")
            if isinstance(issue, dict):
                issue = issue.get("reason")
            self.update(step.key, bool(reported.get("success")), issue)

    def message_for(self, step: ValidationStep) -> str:
        """Checklist text for a step in its current state."""
        return step.message.past_tense if self.status[step.key].complete else step.message.imperative

    @property
    def all_successful(self) -> bool:
        return all(s.complete and s.success for s in self.status.values())


@dataclass
class ValidationResult:
    """
    Outcome of running the external validator.
    """

    valid: bool
    tracker: StepTracker = field(default_factory=StepTracker)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, message: str) -> "ValidationResult":
        """Result for a validator that could not be run at all."""
        return cls(valid=False, errors=[message])


class Validator(Protocol):
    """Anything that can validate a file tree."""

    def validate(self, tree: FileTree) -> ValidationResult:
        ...
