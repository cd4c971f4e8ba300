"""
External validator backend.

The Psych-DS validator is a separate program. It is started as a
subprocess, receives the file tree as JSON on stdin and prints a JSON
result on stdout:

    {
        "valid": true,
        "stepStatus": {"start": {"complete": true, "success": true}, ...},
        "issues": {"errors": [...], "warnings": [...]}
    }

Issues may be plain strings or objects with a "reason" or "message" key.
"""

import json
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any, Optional

from ..config.settings import get_settings
from ..core.validation import StepTracker, ValidationResult
from .file_tree import FileTree, build_file_tree, is_valid_tree
from .logging_config import get_logger

logger = get_logger(__name__)


def _issue_text(issue: Any) -> str:
    if isinstance(issue, dict):
        text = issue.get("reason") or issue.get("message") or issue.get("key") or json.dumps(issue)
        files = issue.get("files")
        if isinstance(files, list) and files:
            text = f"{text} ({', '.join(str(f) for f in files)})"
        return str(text)
    return str(issue)


def parse_validator_output(output: str) -> ValidationResult:
    """
    Turn the validator's stdout into a ValidationResult.

    Args:
        output: Text printed by the validator.

    Returns:
        The parsed result. Unparsable output yields a failed result.
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        logger.error(f"Validator printed invalid JSON: {e}")
        return ValidationResult.failure(f"The validator returned output that could not be read: {e}")

    if not isinstance(data, dict) or "valid" not in data:
        return ValidationResult.failure("The validator returned an unexpected result.")

    tracker = StepTracker()
    step_status = data.get("stepStatus") or {}
    if isinstance(step_status, dict):
        tracker.apply(step_status)

    errors: list[str] = []
    warnings: list[str] = []
    issues = data.get("issues") or {}
    if isinstance(issues, dict):
        errors = [_issue_text(i) for i in issues.get("errors", [])]
        warnings = [_issue_text(i) for i in issues.get("warnings", [])]
    elif isinstance(issues, list):
        for issue in issues:
            severity = issue.get("severity", "error") if isinstance(issue, dict) else "error"
            (warnings if severity == "warning" else errors).append(_issue_text(issue))

    return ValidationResult(valid=bool(data["valid"]), tracker=tracker, errors=errors, warnings=warnings)


class SubprocessValidator:
    """
    Runs the external validator command.
    """

    def __init__(self, command: list[str], timeout: int = 120, validation_level: str = "standard"):
        """
        Initialize the backend.

        Args:
            command: Command line of the validator; the file tree is sent on stdin.
            timeout: Seconds to wait before giving up.
            validation_level: Passed to the validator in PSYCHDS_VALIDATION_LEVEL.
        """
        if not command:
            raise ValueError("Validator command must not be empty")
        self._command = list(command)
        self._timeout = timeout
        self._validation_level = validation_level

    def is_available(self) -> bool:
        """Return True if the validator executable can be found."""
        return shutil.which(self._command[0]) is not None

    def validate(self, tree: FileTree) -> ValidationResult:
        """
        Validate a file tree.

        Args:
            tree: Tree as returned by build_file_tree.

        Returns:
            The validator's result, or a failed result if it could not run.
        """
        if not is_valid_tree(tree):
            return ValidationResult.failure(
                "The selected folder does not contain any files or subfolders to validate."
            )

        executable = shutil.which(self._command[0])
        if executable is None:
            return ValidationResult.failure(
                f"Validator not found: {self._command[0]}. Install it or set validator_command in the settings."
            )

        env = dict(os.environ, PSYCHDS_VALIDATION_LEVEL=self._validation_level)
        logger.info(f"Running validator: {' '.join(self._command)}")

        try:
            completed = subprocess.run(
                [executable, *self._command[1:]],
                input=json.dumps(tree),
                capture_output=True,
                text=True,
                encoding='utf-8',
                timeout=self._timeout,
                env=env,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Validator timed out after {self._timeout} seconds")
            return ValidationResult.failure(f"Validation timed out after {self._timeout} seconds.")
        except OSError as e:
            logger.error(f"Failed to start validator: {e}")
            return ValidationResult.failure(f"Failed to start validator: {e}")

        if completed.stderr:
            logger.debug(f"Validator stderr: {completed.stderr.strip()}")

        if not completed.stdout.strip():
            return ValidationResult.failure(
                f"The validator exited with code {completed.returncode} without a result."
            )

        result = parse_validator_output(completed.stdout)
        logger.info(f"Validation finished: valid={result.valid}, {len(result.errors)} errors")
        return result


def validate_directory(root: Path, validator: Optional[SubprocessValidator] = None) -> ValidationResult:
    """
    Build the file tree of a directory and validate it.

    File contents above the max_file_size_mb setting are not sent.

    Args:
        root: Dataset root.
        validator: Backend to use; built from the settings when None.

    Returns:
        The validation result.
    """
    settings = get_settings()
    if validator is None:
        validator = SubprocessValidator(
            settings.validator_command,
            timeout=settings.validator_timeout,
            validation_level=settings.validation_level,
        )

    try:
        tree = build_file_tree(root, max_text_size=settings.max_file_size_mb * 1024 * 1024)
    except FileNotFoundError as e:
        return ValidationResult.failure(str(e))

    return validator.validate(tree)
