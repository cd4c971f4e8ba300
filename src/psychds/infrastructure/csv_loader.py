"""
CSV file loading utilities.

This module provides functions for finding CSV data files in a project
directory and summarizing their columns without loading whole files.
"""

import csv
import math
from collections import defaultdict
from pathlib import Path
from typing import Optional

from ..core.models import ColumnInfo
from .logging_config import get_logger
from .paths import to_posix

logger = get_logger(__name__)


CSV_NA_STRINGS = frozenset({"", "NA"})
BOOLEAN_STRINGS = frozenset({"true", "false", "TRUE", "FALSE", "True", "False", "T", "F"})


def list_csv_files(directory: Path, recursive: bool = True) -> list[str]:
    """
    List CSV files below a directory.

    The extension match is case-insensitive and hidden files are skipped.

    Args:
        directory: Directory to scan.
        recursive: Whether to descend into subdirectories.

    Returns:
        Sorted paths relative to directory, using forward slashes.
        Returns an empty list if the directory doesn't exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug(f"Directory not found: {directory}")
        return []

    pattern = directory.rglob("*") if recursive else directory.glob("*")
    files = []
    for path in pattern:
        rel_path = path.relative_to(directory)
        if any(part.startswith('.') for part in rel_path.parts):
            continue
        if path.is_file() and path.suffix.lower() == ".csv":
            files.append(to_posix(rel_path))

    files.sort()
    logger.debug(f"Found {len(files)} CSV files in {directory}")
    return files


def read_csv_rows(file_path: Path, max_rows: Optional[int] = None) -> tuple[list[str], list[list[str]]]:
    """
    Read the header and up to max_rows data rows of a CSV file.

    Args:
        file_path: Path to the CSV file.
        max_rows: Maximum number of data rows, or None for all rows.

    Returns:
        Tuple of (header, rows). Rows shorter than the header are padded
        with empty strings.

    Raises:
        OSError: If the file cannot be opened.
        csv.Error: If the file is not parseable as CSV.
    """
    with open(file_path, 'r', encoding='utf-8-sig', errors='replace', newline='') as f:
        reader = csv.reader(f)
        header = [name.strip() for name in next(reader, [])]
        rows = []
        for row in reader:
            if max_rows is not None and len(rows) >= max_rows:
                break
            if not row:
                continue
            if len(row) < len(header):
                row = row + [""] * (len(header) - len(row))
            rows.append(row[:len(header)])
    return header, rows


def read_csv_header(file_path: Path) -> list[str]:
    """
    Get the column headers from a CSV file without loading all data.

    Args:
        file_path: Path to the CSV file.

    Returns:
        List of column names, or empty list if file cannot be read.
    """
    try:
        header, _ = read_csv_rows(file_path, max_rows=0)
        return header
    except (OSError, csv.Error) as e:
        logger.error(f"Failed to read CSV headers from {file_path}: {e}")
        return []


def read_column_values(file_path: Path, column: str, max_rows: int = 10000) -> list[str]:
    """
    Read the raw values of one column as strings.

    Args:
        file_path: Path to the CSV file.
        column: Column name.
        max_rows: Maximum number of data rows to read.

    Returns:
        Values in file order, or empty list if the column or file is missing.
    """
    try:
        header, rows = read_csv_rows(file_path, max_rows=max_rows)
    except (OSError, csv.Error) as e:
        logger.error(f"Failed to read CSV file {file_path}: {e}")
        return []

    if column not in header:
        return []
    index = header.index(column)
    return [row[index] for row in rows]


def _parse_float(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _column_type(values: list[str]) -> str:
    """Guess the storage type of a column from its non-missing values."""
    if not values:
        return "string"
    if all(v in BOOLEAN_STRINGS for v in values):
        return "boolean"
    numbers = [_parse_float(v) for v in values]
    if all(n is not None for n in numbers):
        if all(n == int(n) and "." not in v for n, v in zip(numbers, values)):
            return "integer"
        return "number"
    return "string"


def extract_csv_structure(file_path: Path, max_rows: int = 100) -> list[ColumnInfo]:
    """
    Summarize the columns of a CSV file from its first rows.

    Args:
        file_path: Path to the CSV file.
        max_rows: Number of data rows to inspect.

    Returns:
        One ColumnInfo per column, or an empty list if the file cannot be read.
    """
    try:
        header, rows = read_csv_rows(file_path, max_rows=max_rows)
    except (OSError, csv.Error) as e:
        logger.error(f"Failed to extract CSV structure from {file_path}: {e}")
        return []

    columns = []
    for index, name in enumerate(header):
        raw = [row[index].strip() for row in rows]
        present = [v for v in raw if v not in CSV_NA_STRINGS]
        column_type = _column_type(present)

        info = ColumnInfo(
            name=name,
            type=column_type,
            unique_values=len(set(present)),
            na_count=len(raw) - len(present),
        )
        if column_type in ("integer", "number") and present:
            numbers = [float(v) for v in present]
            info.min = min(numbers)
            info.max = max(numbers)
        columns.append(info)

    logger.debug(f"Extracted {len(columns)} columns from {Path(file_path).name}")
    return columns


def extract_variable_info(project_dir: Path, files: list[str]) -> dict[str, list[str]]:
    """
    Find which selected files contain each variable.

    Args:
        project_dir: Directory the file paths are relative to.
        files: Selected data files.

    Returns:
        Mapping of variable name to the files it appears in, ordered by
        variable name.
    """
    present_in: dict[str, list[str]] = defaultdict(list)
    for rel_path in files:
        for name in read_csv_header(Path(project_dir) / rel_path):
            if name and rel_path not in present_in[name]:
                present_in[name].append(rel_path)

    return {name: present_in[name] for name in sorted(present_in)}


def find_constant_columns(file_path: Path, max_rows: int = 1000) -> dict[str, str]:
    """
    Find columns holding the same value in every row.

    Missing and empty cells are ignored. Such columns usually describe the
    whole file (a subject or session) and make good filename keywords.

    Args:
        file_path: Path to the CSV file.
        max_rows: Number of data rows to inspect.

    Returns:
        Mapping of column name to its constant value.
    """
    try:
        header, rows = read_csv_rows(file_path, max_rows=max_rows)
    except (OSError, csv.Error) as e:
        logger.error(f"Failed to analyze columns of {file_path}: {e}")
        return {}

    constants = {}
    for index, name in enumerate(header):
        values = {row[index].strip() for row in rows} - CSV_NA_STRINGS
        if len(values) == 1:
            constants[name] = values.pop()
    return constants
