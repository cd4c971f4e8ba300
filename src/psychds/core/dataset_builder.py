"""
Creation of a Psych-DS dataset directory.

This module lays out a new dataset next to the user's project: a data/
folder with the renamed CSV files, the optional top-level folders, and the
two metadata documents.
"""

import shutil
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

from .description import DESCRIPTION_FILENAME, build_dataset_description, write_json
from .errors import DatasetCreationError, KeywordError
from .filenames import validate_dataset_name
from .manifest import MANIFEST_FILENAME, build_manifest
from .models import ColumnInfo, DataDictionary, DatasetInfo, FileMapping, OptionalDirectories
from ..infrastructure.logging_config import get_logger

logger = get_logger(__name__)


DATA_DIRECTORY = "data"
FOLDER_EXISTS_MESSAGE = (
    "A folder with this name already exists at this location. Please choose a different name."
)
DUPLICATE_NAMES_MESSAGE = "Several files would get the same name. Change their keywords so each name is unique:"


@dataclass
class CreateDatasetRequest:
    """
    Everything needed to write a new dataset to disk.
    """

    project_dir: Path
    """Directory the original data files are relative to."""

    location: Path
    """Parent directory of the new dataset."""

    name: str
    """Folder name of the new dataset."""

    info: DatasetInfo
    """Metadata for dataset_description.json."""

    file_mappings: list[FileMapping] = field(default_factory=list)
    """Rename instructions; mappings without a new name are skipped."""

    optional_dirs: OptionalDirectories = field(default_factory=OptionalDirectories)
    columns: dict[str, list[ColumnInfo]] = field(default_factory=dict)
    dictionary: Optional[DataDictionary] = None
    write_manifest: bool = True

    @property
    def target(self) -> Path:
        return Path(self.location) / self.name


@dataclass
class DatasetStats:
    """
    Statistics about files to be copied into a dataset.
    """

    file_count: int = 0
    total_size: int = 0
    missing: list[str] = field(default_factory=list)
    """Mapped source files that do not exist."""

    def get_size_string(self) -> str:
        """Get human-readable size string."""
        if self.total_size < 1024:
            return f"{self.total_size} B"
        elif self.total_size < 1024 ** 2:
            return f"{self.total_size / 1024:.1f} KB"
        elif self.total_size < 1024 ** 3:
            return f"{self.total_size / (1024 ** 2):.1f} MB"
        else:
            return f"{self.total_size / (1024 ** 3):.2f} GB"


def destination_path(mapping: FileMapping) -> PurePosixPath:
    """
    Path of a renamed file relative to the data/ folder.

    The first component of the original path is dropped; deeper folders
    are kept, so 'raw/s1/a.csv' lands in 's1/'.
    """
    parts = PurePosixPath(mapping.original.replace("\\", "/")).parts
    return PurePosixPath(*parts[1:-1], mapping.new_name)


def planned_copies(request: CreateDatasetRequest) -> list[tuple[Path, PurePosixPath]]:
    """
    List (source, destination) pairs for the mapped files.

    Destinations are relative to the data/ folder.
    """
    copies = []
    for mapping in request.file_mappings:
        if not mapping.new_name.strip():
            continue
        source = Path(request.project_dir) / mapping.original
        copies.append((source, destination_path(mapping)))
    return copies


def duplicate_destinations(request: CreateDatasetRequest) -> list[str]:
    """
    Find destinations that more than one mapped file would be copied to.

    Names are compared case-insensitively, since 'A.csv' and 'a.csv' are the
    same file on Windows and macOS.

    Returns:
        The clashing destinations relative to data/, in first-seen order.
    """
    destinations = [str(rel_dest) for _, rel_dest in planned_copies(request)]
    counts = Counter(dest.casefold() for dest in destinations)

    duplicates = []
    for dest in destinations:
        if counts[dest.casefold()] > 1:
            # report each clash once
            counts[dest.casefold()] = 0
            duplicates.append(dest)
    return duplicates


def calculate_dataset_stats(request: CreateDatasetRequest) -> DatasetStats:
    """
    Count the files that would be copied and their total size.

    Args:
        request: Dataset creation request.

    Returns:
        DatasetStats for the mapped files.
    """
    stats = DatasetStats()
    for source, _ in planned_copies(request):
        if source.is_file():
            stats.file_count += 1
            stats.total_size += source.stat().st_size
        else:
            stats.missing.append(str(source))
    return stats


def create_directories(root: Path, optional_dirs: OptionalDirectories) -> list[Path]:
    """
    Create data/ and the enabled optional folders below root.

    Returns:
        The created directories, data/ first.
    """
    created = [root / DATA_DIRECTORY]
    created.extend(root / name for name in optional_dirs.enabled())
    for directory in created:
        directory.mkdir(parents=True, exist_ok=True)
    return created


def copy_data_files(
    copies: list[tuple[Path, PurePosixPath]],
    data_dir: Path,
    progress_callback: Optional[Callable[[int, int, Path], None]] = None
) -> list[str]:
    """
    Copy source files into the data folder under their new names.

    Missing sources are logged and skipped.

    Args:
        copies: (source, destination relative to data_dir) pairs.
        data_dir: The dataset's data/ folder.
        progress_callback: Optional callback(current, total, filepath) for progress updates.

    Returns:
        Destinations that were written, relative to data_dir.

    Raises:
        IOError: If a copy fails.
    """
    written = []
    total_files = len(copies)

    for i, (source, rel_dest) in enumerate(copies, start=1):
        if not source.is_file():
            logger.warning(f"Source file not found, skipping: {source}")
            continue

        dest_file = data_dir / Path(*rel_dest.parts)
        dest_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            shutil.copy2(source, dest_file)
        except OSError as e:
            raise IOError(f"Failed to copy {source} to {dest_file}: {e}")

        written.append(str(rel_dest))
        if progress_callback:
            progress_callback(i, total_files, dest_file)

    return written


def create_dataset(
    request: CreateDatasetRequest,
    progress_callback: Optional[Callable[[int, int, Path], None]] = None
) -> Path:
    """
    Create a new Psych-DS dataset directory.

    Args:
        request: Dataset creation request.
        progress_callback: Optional callback(current, total, filepath) for progress updates.

    Returns:
        Path to the new dataset root.

    Raises:
        DatasetCreationError: If the name is invalid, the location is missing,
            the target folder already exists, two files would get the same
            name, or writing fails. A partly written dataset is removed.
    """
    try:
        name = validate_dataset_name(request.name)
    except KeywordError as e:
        raise DatasetCreationError(str(e)) from e

    location = Path(request.location)
    if not location.is_dir():
        raise DatasetCreationError(f"The selected location does not exist: {location}")

    root = location / name
    if root.exists():
        raise DatasetCreationError(FOLDER_EXISTS_MESSAGE)

    duplicates = duplicate_destinations(request)
    if duplicates:
        raise DatasetCreationError(
            f"{DUPLICATE_NAMES_MESSAGE}\n" + "\n".join(f"data/{dest}" for dest in duplicates)
        )

    logger.info(f"Creating dataset at {root}")
    root.mkdir()

    try:
        create_directories(root, request.optional_dirs)
        written = copy_data_files(planned_copies(request), root / DATA_DIRECTORY, progress_callback)

        description = build_dataset_description(request.info, request.columns, request.dictionary)
        write_json(description, root / DESCRIPTION_FILENAME)

        if request.write_manifest:
            data_files = [f"{DATA_DIRECTORY}/{rel_path}" for rel_path in written]
            write_json(build_manifest(request.info, data_files, package_name=name), root / MANIFEST_FILENAME)
    except OSError as e:
        logger.error(f"Dataset creation failed, removing {root}: {e}")
        shutil.rmtree(root, ignore_errors=True)
        raise DatasetCreationError(str(e)) from e

    logger.info(f"Dataset created with {len(written)} data files: {root}")
    return root
