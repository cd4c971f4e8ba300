"""
Psych-DS file naming.

Data files are named from keyword/value pairs, for example
``study-stroop_subject-01_data.csv``. Keywords are lower-case letters only
and values are letters and digits only.
"""

import re
from pathlib import PurePosixPath
from typing import Optional

from .errors import KeywordError


STANDARD_KEYWORDS = (
    "study", "site", "subject", "session", "task",
    "condition", "trial", "stimulus", "description",
)

KEYWORD_VALUE_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")
KEYWORD_NAME_PATTERN = re.compile(r"^[a-z]+$")
DATASET_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

EMPTY_VALUE_MESSAGE = "Value cannot be empty"
INVALID_VALUE_MESSAGE = (
    "Value must contain only letters and numbers (a-z, A-Z, 0-9). "
    "No spaces or special characters allowed."
)
INVALID_KEYWORD_MESSAGE = "Keyword must contain only lowercase letters (a-z)."
INVALID_DATASET_NAME_MESSAGE = (
    "Dataset name can only contain letters, numbers, underscores, and hyphens."
)

# Column names that usually hold a per-file constant, and the keyword they map to
COLUMN_KEYWORD_HINTS = {
    "study": "study",
    "study_id": "study",
    "site": "site",
    "site_id": "site",
    "subject": "subject",
    "subject_id": "subject",
    "participant": "subject",
    "participant_id": "subject",
    "sub": "subject",
    "session": "session",
    "session_id": "session",
    "ses": "session",
    "task": "task",
    "task_name": "task",
    "condition": "condition",
    "stimulus": "stimulus",
}


def validate_keyword_value(value: str) -> str:
    """
    Check a keyword value.

    Args:
        value: Value typed by the user.

    Returns:
        The value with surrounding whitespace removed.

    Raises:
        KeywordError: If the value is empty or has characters other than
            letters and digits.
    """
    value = value.strip()
    if not value:
        raise KeywordError(EMPTY_VALUE_MESSAGE)
    if not KEYWORD_VALUE_PATTERN.match(value):
        raise KeywordError(INVALID_VALUE_MESSAGE)
    return value


def validate_keyword_name(keyword: str) -> str:
    """
    Check a custom keyword name.

    Raises:
        KeywordError: If the name is not lower-case letters only.
    """
    keyword = keyword.strip()
    if not KEYWORD_NAME_PATTERN.match(keyword):
        raise KeywordError(INVALID_KEYWORD_MESSAGE)
    return keyword


def build_filename(keywords: dict[str, str], original: str) -> str:
    """
    Build a Psych-DS file name.

    Keywords keep their insertion order. The extension of the original file
    is carried over.

    Args:
        keywords: Keyword/value pairs.
        original: Original file name or relative path.

    Returns:
        The new file name, e.g. 'study-x_subject-01_data.csv'.

    Raises:
        KeywordError: If keywords is empty or any pair is invalid.
    """
    if not keywords:
        raise KeywordError("Add at least one keyword to build a file name.")

    parts = [
        f"{validate_keyword_name(key)}-{validate_keyword_value(value)}"
        for key, value in keywords.items()
    ]
    extension = PurePosixPath(original.replace("\\", "/")).suffix.lstrip(".")
    stem = "_".join(parts) + "_data"
    return f"{stem}.{extension}" if extension else stem


def parse_filename(filename: str) -> Optional[dict[str, str]]:
    """
    Split a Psych-DS file name into its keyword/value pairs.

    Returns:
        Ordered keyword/value pairs, or None when the name does not follow
        the keyword format.
    """
    stem = PurePosixPath(filename).name
    if "." in stem:
        stem = stem[:stem.index(".")]
    if not stem.endswith("_data"):
        return None

    keywords = {}
    for part in stem[:-len("_data")].split("_"):
        key, sep, value = part.partition("-")
        if not sep or not KEYWORD_NAME_PATTERN.match(key) or not KEYWORD_VALUE_PATTERN.match(value):
            return None
        keywords[key] = value
    return keywords or None


def suggest_keywords(constant_columns: dict[str, str]) -> dict[str, str]:
    """
    Suggest keyword values from columns that are constant within a file.

    Args:
        constant_columns: Column name to constant value.

    Returns:
        Keyword/value pairs in standard keyword order. Values that are not
        plain letters and digits are cleaned by dropping other characters.
    """
    found: dict[str, str] = {}
    for column, value in constant_columns.items():
        keyword = COLUMN_KEYWORD_HINTS.get(column.strip().lower())
        if keyword is None or keyword in found:
            continue
        cleaned = re.sub(r"[^a-zA-Z0-9]", "", value)
        if cleaned:
            found[keyword] = cleaned

    return {keyword: found[keyword] for keyword in STANDARD_KEYWORDS if keyword in found}


def validate_dataset_name(name: str) -> str:
    """
    Check a dataset folder name.

    Raises:
        KeywordError: If the name is empty or has characters outside
            letters, digits, '_' and '-'.
    """
    name = name.strip()
    if not name:
        raise KeywordError("Please enter a dataset name.")
    if not DATASET_NAME_PATTERN.match(name):
        raise KeywordError(INVALID_DATASET_NAME_MESSAGE)
    return name


def suggest_dataset_name(project_name: str = "", dataset_name: str = "") -> str:
    """
    Suggest a folder name for the new dataset.

    Uses the project name, then the dataset name, then 'my_dataset', with
    unsupported characters replaced by '_'.
    """
    source = project_name.strip() or dataset_name.strip() or "my_dataset"
    return re.sub(r"[^a-zA-Z0-9_-]", "_", source)
