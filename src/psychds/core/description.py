"""
Builders for the dataset_description.json metadata document.

Two renderings exist. The legacy template uses BIDS-style capitalized keys
and is shown as a preview while metadata is being entered. The schema.org
rendering is what gets written into the dataset. Fields without a value are
left out of both.
"""

import json
from pathlib import Path
from typing import Any, Optional

from .dictionary import to_property_value
from .models import Author, ColumnInfo, DataDictionary, DatasetInfo


DESCRIPTION_FILENAME = "dataset_description.json"
SCHEMA_CONTEXT = "https://schema.org/"
TEMPLATE_VERSION = "1.0.0-rc1"


def omit_nulls(data: dict[str, Any]) -> dict[str, Any]:
    """
    Drop keys whose value is None, recursing into nested objects and lists.

    Args:
        data: Mapping to clean.

    Returns:
        A new mapping without None values.
    """
    cleaned = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = omit_nulls(value)
        elif isinstance(value, list):
            value = [omit_nulls(item) if isinstance(item, dict) else item for item in value if item is not None]
        cleaned[key] = value
    return cleaned


def _text(value: Optional[str]) -> Optional[str]:
    """Normalize blank strings to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _list(values: list[str]) -> Optional[list[str]]:
    values = [v.strip() for v in values if v and v.strip()]
    return values or None


def create_description_template(info: DatasetInfo) -> dict[str, Any]:
    """
    Build the legacy description template.

    Args:
        info: Dataset metadata.

    Returns:
        Mapping with the template keys that have a value.
    """
    template = {
        "Name": _text(info.name),
        "BIDSVersion": TEMPLATE_VERSION,
        "Description": _text(info.description),
        "License": _text(info.license),
        "Authors": _list([author.full_name for author in info.authors]),
        "Acknowledgements": _text(info.acknowledgements),
        "HowToAcknowledge": _text(info.how_to_acknowledge),
        "Funding": _list(info.funding),
        "ReferencesAndLinks": _list(info.references),
        "DatasetDOI": _text(info.doi),
    }
    return omit_nulls(template)


def author_to_person(author: Author) -> dict[str, Any]:
    """
    Convert an author to a schema.org Person.

    The ORCID becomes the '@id' and is only present when given.
    """
    return omit_nulls({
        "@type": "Person",
        "givenName": author.first_name.strip(),
        "familyName": author.last_name.strip(),
        "@id": _text(author.orcid),
    })


def variables_from_columns(columns: dict[str, list[ColumnInfo]]) -> list[dict[str, Any]]:
    """
    Build variableMeasured entries from the per-file column summaries.

    Each variable appears once, in first-seen order; the first non-empty
    description wins.

    Args:
        columns: Column summaries keyed by file.

    Returns:
        List of PropertyValue objects.
    """
    descriptions: dict[str, str] = {}
    for file_columns in columns.values():
        for column in file_columns:
            if not descriptions.get(column.name):
                descriptions[column.name] = column.description.strip()

    return [
        omit_nulls({"@type": "PropertyValue", "name": name, "description": description or None})
        for name, description in descriptions.items()
    ]


def build_dataset_description(
    info: DatasetInfo,
    columns: Optional[dict[str, list[ColumnInfo]]] = None,
    dictionary: Optional[DataDictionary] = None,
) -> dict[str, Any]:
    """
    Build the schema.org dataset description.

    Variables come from the data dictionary when it has entries, otherwise
    from the column summaries.

    Args:
        info: Dataset metadata.
        columns: Column summaries keyed by file.
        dictionary: Edited data dictionary.

    Returns:
        The description document with null fields omitted.
    """
    if dictionary is not None and dictionary.variables:
        variables = [
            to_property_value(variable, dictionary.missing_values)
            for variable in dictionary.variables.values()
        ]
    elif columns:
        variables = variables_from_columns(columns)
    else:
        variables = None

    description = {
        "@context": SCHEMA_CONTEXT,
        "@type": "Dataset",
        "name": _text(info.name),
        "description": _text(info.description),
        "author": [author_to_person(author) for author in info.authors] or None,
        "license": _text(info.license),
        "version": _text(info.version),
        "keywords": _list(info.keywords),
        "funder": _list(info.funding),
        "citation": _list(info.references),
        "identifier": _text(info.doi),
        "creditText": _text(info.how_to_acknowledge),
        "acknowledgements": _text(info.acknowledgements),
        "variableMeasured": variables,
    }
    return omit_nulls(description)


def write_json(data: dict[str, Any], path: Path) -> Path:
    """
    Write a JSON document with UTF-8 encoding and 2-space indentation.

    Args:
        data: Document to write.
        path: Destination file.

    Returns:
        The written path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return path


def load_json(path: Path) -> dict[str, Any]:
    """
    Read a JSON object from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file is not a JSON object.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return data
