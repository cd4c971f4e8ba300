"""
Browsing an existing Psych-DS dataset.

The explorer lists the CSV files of a dataset's data/ folder and narrows
them down with filters on file name keywords (e.g. subject-01) and on
column values of the table being viewed.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .description import DESCRIPTION_FILENAME
from .filenames import parse_filename
from ..infrastructure.csv_loader import list_csv_files
from ..infrastructure.logging_config import get_logger

logger = get_logger(__name__)


BLANK_LABEL = "(blank)"


@dataclass(frozen=True)
class KeywordFilter:
    """Keep files whose name has the given keyword value."""

    keyword: str
    value: str

    def matches(self, path: str) -> bool:
        keywords = parse_filename(PurePosixPath(path).name) or {}
        return keywords.get(self.keyword) == self.value

    def __str__(self) -> str:
        return f'{self.keyword}: "{self.value}"'


@dataclass(frozen=True)
class ColumnFilter:
    """Keep rows whose column holds the given value; '' matches blank cells."""

    column: str
    value: str

    def __str__(self) -> str:
        return f'{self.column}: "{self.value or BLANK_LABEL}"'


def load_dataset_files(root: Path) -> list[str]:
    """
    List the CSV files of a dataset.

    Args:
        root: Dataset root directory.

    Returns:
        CSV paths relative to data/, sorted, with forward slashes.

    Raises:
        ValueError: If root is not a Psych-DS dataset folder.
    """
    root = Path(root)
    if not root.is_dir():
        raise ValueError("Please select a valid dataset directory")
    if not (root / DESCRIPTION_FILENAME).is_file():
        raise ValueError(f"Selected directory does not contain {DESCRIPTION_FILENAME}")
    if not (root / "data").is_dir():
        raise ValueError("Selected directory does not contain a 'data' folder")

    files = list_csv_files(root / "data")
    logger.info(f"Loaded dataset {root.name}: {len(files)} CSV files")
    return files


def extract_keywords(files: list[str]) -> list[str]:
    """Return the keywords used in the file names, in order of first use."""
    keywords: dict[str, None] = {}
    for path in files:
        for keyword in parse_filename(PurePosixPath(path).name) or {}:
            keywords.setdefault(keyword, None)
    return list(keywords)


def extract_keyword_values(files: list[str], keyword: str) -> list[str]:
    """Return the sorted distinct values a keyword takes across the file names."""
    values = set()
    for path in files:
        value = (parse_filename(PurePosixPath(path).name) or {}).get(keyword)
        if value is not None:
            values.add(value)
    return sorted(values)


def filter_files(files: list[str], filters: list[KeywordFilter]) -> list[str]:
    """
    Keep the files that match every keyword filter.

    Args:
        files: Paths as returned by load_dataset_files.
        filters: Active filters; an empty list keeps every file.

    Returns:
        Matching paths in their original order.
    """
    return [path for path in files if all(f.matches(path) for f in filters)]


def column_choices(header: list[str], rows: list[list[str]], column: str) -> list[str]:
    """
    Distinct values of a column, blank first when present, then sorted.

    Returns an empty list if the column is not in the header.
    """
    if column not in header:
        return []
    index = header.index(column)
    values = {row[index].strip() for row in rows}
    choices = sorted(values - {""})
    if "" in values:
        choices.insert(0, "")
    return choices


def filter_rows(header: list[str], rows: list[list[str]], filters: list[ColumnFilter]) -> list[list[str]]:
    """
    Keep the rows that match every column filter.

    A filter on a column the table doesn't have removes every row.
    """
    indexed = []
    for f in filters:
        if f.column not in header:
            return []
        indexed.append((header.index(f.column), f.value))
    return [row for row in rows if all(row[i].strip() == value for i, value in indexed)]
