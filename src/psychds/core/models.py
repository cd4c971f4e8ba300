"""
Core domain models for Psych-DS dataset creation.

This module contains pure data models for the wizard state and the metadata
collected along the way. These models are GUI-agnostic and should not import
any UI frameworks.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DEFAULT_LICENSE = "CC-BY-4.0"
DEFAULT_VERSION = "1.0.0"

STANDARD_DIRECTORIES = ("analysis", "materials", "results", "products", "documentation")

COMMON_LICENSES = ("CC-BY-4.0", "CC0-1.0", "CC-BY-SA-4.0", "CC-BY-NC-4.0", "ODC-By-1.0", "PDDL-1.0")

AUTHOR_NAME_REQUIRED = "First and last name are required"


@dataclass
class Author:
    """A dataset author."""

    first_name: str
    """Given name."""

    last_name: str
    """Family name."""

    orcid: Optional[str] = None
    """ORCID identifier or URL, if the author has one."""

    @property
    def full_name(self) -> str:
        """Given and family name separated by a space."""
        return f"{self.first_name} {self.last_name}".strip()


def create_author(first_name: str, last_name: str, orcid: str = "") -> Author:
    """
    Create an author from form input.

    Raises:
        ValueError: If the first or last name is empty.
    """
    first_name, last_name = first_name.strip(), last_name.strip()
    if not first_name or not last_name:
        raise ValueError(AUTHOR_NAME_REQUIRED)
    return Author(first_name, last_name, orcid.strip() or None)


@dataclass
class DatasetInfo:
    """Dataset-level metadata entered in step 2."""

    name: str = ""
    description: str = ""
    authors: list[Author] = field(default_factory=list)
    license: Optional[str] = DEFAULT_LICENSE
    version: Optional[str] = DEFAULT_VERSION

    acknowledgements: Optional[str] = None
    how_to_acknowledge: Optional[str] = None
    funding: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    doi: Optional[str] = None
    keywords: list[str] = field(default_factory=list)

    def is_complete(self) -> bool:
        """Return True when both name and description are filled in."""
        return bool(self.name.strip()) and bool(self.description.strip())


@dataclass
class ColumnInfo:
    """Summary of one CSV column, computed from the first rows of a file."""

    name: str
    type: str = "string"
    """One of 'integer', 'number', 'boolean' or 'string'."""

    description: str = ""
    unique_values: int = 0
    min: Optional[float] = None
    """Minimum for numeric columns, None otherwise."""

    max: Optional[float] = None
    na_count: int = 0


@dataclass
class OptionalDirectories:
    """Which optional top-level directories to create next to data/."""

    analysis: bool = True
    materials: bool = True
    results: bool = False
    products: bool = False
    documentation: bool = False
    custom: list[str] = field(default_factory=list)

    def enabled(self) -> list[str]:
        """
        List the directory names to create, standard ones first.

        Returns:
            Directory names in creation order, without duplicates.
        """
        names = [name for name in STANDARD_DIRECTORIES if getattr(self, name)]
        for name in self.custom:
            name = name.strip()
            if name and name not in names:
                names.append(name)
        return names


@dataclass
class FileMapping:
    """Rename instruction for one selected data file."""

    original: str
    """Path relative to the project directory."""

    new_name: str = ""
    """New file name. Empty means the file is not copied."""

    keywords: dict[str, str] = field(default_factory=dict)
    """Keyword/value pairs the new name was built from, in order."""


@dataclass
class CategoryValue:
    """One allowed value of a categorical variable."""

    value: str
    label: str = ""
    description: str = ""


@dataclass
class VariableDefinition:
    """Data dictionary entry for one variable."""

    name: str
    type: str = "string"
    """One of 'string', 'integer', 'number', 'boolean', 'categorical', 'date', 'datetime'."""

    description: str = ""
    unit: str = ""
    min_value: str = ""
    max_value: str = ""
    categorical_values: list[CategoryValue] = field(default_factory=list)
    required: bool = False
    unique: bool = False
    pattern: str = ""
    notes: str = ""
    present_in: list[str] = field(default_factory=list)
    """Data files (relative paths) containing this variable."""


@dataclass
class DataDictionary:
    """Variable definitions plus the missing value codes shared by all variables."""

    variables: dict[str, VariableDefinition] = field(default_factory=dict)
    missing_values: list[str] = field(default_factory=lambda: ["NA", "N/A", "null", "NULL", "-999", "missing", ""])


@dataclass
class WizardState:
    """
    Shared state of one dataset-creation session.

    Each wizard step reads and mutates the same instance. It is created when
    the window opens and discarded when it closes.
    """

    current_step: int = 1
    """Active step (1-3), or 0 when the create tab is not shown."""

    last_create_step: Optional[int] = None
    """Step that was active when the user last left the create tab."""

    project_dir: str = ""
    project_name: str = ""
    data_files: list[str] = field(default_factory=list)
    """Selected data files, relative to project_dir."""

    optional_dirs: OptionalDirectories = field(default_factory=OptionalDirectories)
    columns: dict[str, list[ColumnInfo]] = field(default_factory=dict)
    """Column summaries per selected data file."""

    dataset_info: DatasetInfo = field(default_factory=DatasetInfo)
    dictionary: DataDictionary = field(default_factory=DataDictionary)
    file_mappings: list[FileMapping] = field(default_factory=list)
    dataset_dir: Optional[Path] = None
    """Directory of the dataset created in step 3."""

    errors: list[str] = field(default_factory=list)
    notifications: list[str] = field(default_factory=list)

    def has_project_dir(self) -> bool:
        """Return True when a project directory has been chosen."""
        return bool(self.project_dir.strip())

    def set_data_files(self, files: list[str]) -> None:
        """
        Replace the file selection.

        Existing rename mappings are dropped when the selection changes.

        Args:
            files: Paths relative to project_dir.
        """
        files = list(files)
        if files != self.data_files:
            self.file_mappings = []
            self.columns = {f: cols for f, cols in self.columns.items() if f in files}
        self.data_files = files

    def mapping_for(self, original: str) -> Optional[FileMapping]:
        """Find the rename mapping for a selected file, if any."""
        for mapping in self.file_mappings:
            if mapping.original == original:
                return mapping
        return None

    def set_mapping(self, original: str, new_name: str, keywords: dict[str, str]) -> FileMapping:
        """
        Create or replace the rename mapping for a file.

        Args:
            original: Selected file, relative to project_dir.
            new_name: Generated file name.
            keywords: Keyword/value pairs used for the name.

        Returns:
            The stored mapping.
        """
        mapping = self.mapping_for(original)
        if mapping is None:
            mapping = FileMapping(original=original)
            self.file_mappings.append(mapping)
        mapping.new_name = new_name
        mapping.keywords = dict(keywords)
        return mapping

    def notify(self, message: str) -> None:
        """Queue a notification for the UI."""
        self.notifications.append(message)

    def add_error(self, message: str) -> None:
        """Queue an error message for the UI."""
        self.errors.append(message)
