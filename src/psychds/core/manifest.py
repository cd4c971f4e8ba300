"""
Builder for the datapackage.json manifest.

The manifest lists every data file of the dataset as a resource so that
generic data-package tools can load it.
"""

import re
from pathlib import PurePosixPath
from typing import Any

from .description import omit_nulls
from .models import DatasetInfo


MANIFEST_FILENAME = "datapackage.json"
DEFAULT_ENCODING = "utf-8"


def resource_name(path: str) -> str:
    """
    Derive a data-package resource name from a file path.

    The file stem is lower-cased and characters outside [a-z0-9._-] become '-'.
    """
    stem = PurePosixPath(path).stem.lower()
    return re.sub(r"[^a-z0-9._-]", "-", stem)


def build_resource(path: str, encoding: str = DEFAULT_ENCODING) -> dict[str, Any]:
    """
    Describe one data file.

    Args:
        path: Path relative to the dataset root, with forward slashes.
        encoding: Text encoding of the file.

    Returns:
        Resource descriptor with name, path, format and encoding.
    """
    path = path.replace("\\", "/")
    return omit_nulls({
        "name": resource_name(path),
        "path": path,
        "format": PurePosixPath(path).suffix.lstrip(".").lower() or None,
        "encoding": encoding,
    })


def build_manifest(info: DatasetInfo, files: list[str], package_name: str = "") -> dict[str, Any]:
    """
    Build the data-package manifest for a dataset.

    Args:
        info: Dataset metadata.
        files: Data files relative to the dataset root.
        package_name: Folder name of the dataset, used as the package name.

    Returns:
        The manifest with null fields omitted.
    """
    contributors = [
        {"title": author.full_name, "role": "author"}
        for author in info.authors
        if author.full_name
    ]
    name = package_name or info.name.strip() or "dataset"

    manifest = {
        "name": re.sub(r"[^a-z0-9._-]", "-", name.lower()),
        "title": info.name.strip() or None,
        "description": info.description.strip() or None,
        "version": (info.version or "").strip() or None,
        "licenses": [{"name": info.license.strip()}] if info.license and info.license.strip() else None,
        "contributors": contributors or None,
        "resources": [build_resource(path) for path in files],
    }
    return omit_nulls(manifest)
