"""
File tree construction for the external validator.

The validator does not read the disk itself. It receives a nested mapping
describing every file below the dataset root:

    {
        "data": {
            "type": "directory",
            "contents": {
                "study-x_data.csv": {
                    "type": "file",
                    "file": {"name": "study-x_data.csv", "path": "/data/study-x_data.csv", "text": "..."}
                }
            }
        }
    }

Only text formats the validator inspects (csv, json, md, txt) carry their
content; every other file, and any file over the size limit, has an empty text.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .logging_config import get_logger
from .paths import to_posix

logger = get_logger(__name__)


TEXT_EXTENSIONS = frozenset({".csv", ".json", ".md", ".txt"})

FileTree = dict[str, dict[str, Any]]


@dataclass
class TreeSummary:
    """Counts of entries in a file tree."""

    files: int = 0
    dirs: int = 0

    @property
    def total(self) -> int:
        return self.files + self.dirs


def _read_text(path: Path, max_text_size: Optional[int] = None) -> str:
    if path.suffix.lower() not in TEXT_EXTENSIONS:
        return ""
    try:
        if max_text_size is not None and path.stat().st_size > max_text_size:
            logger.warning(f"{path} is larger than {max_text_size} bytes, its content is not sent")
            return ""
        return path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read text of {path}: {e}")
        return ""


def build_file_tree(root: Path, max_text_size: Optional[int] = None) -> FileTree:
    """
    Build the nested file tree of a directory.

    Hidden files and directories are skipped. Text files larger than
    max_text_size get an empty text.

    Args:
        root: Dataset root directory.
        max_text_size: Size limit in bytes for file contents, or None for no limit.

    Returns:
        Mapping of top-level names to file or directory entries.

    Raises:
        FileNotFoundError: If root is not a directory.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")

    tree: FileTree = {}
    for path in sorted(root.rglob("*")):
        rel_path = path.relative_to(root)
        if any(part.startswith('.') for part in rel_path.parts):
            continue

        # Walk down to the parent directory entry, creating it if needed
        contents = tree
        for part in rel_path.parts[:-1]:
            entry = contents.setdefault(part, {"type": "directory", "contents": {}})
            contents = entry["contents"]

        if path.is_dir():
            contents.setdefault(path.name, {"type": "directory", "contents": {}})
        elif path.is_file():
            contents[path.name] = {
                "type": "file",
                "file": {
                    "name": path.name,
                    "path": "/" + to_posix(rel_path),
                    "text": _read_text(path, max_text_size),
                },
            }

    summary = summarize_tree(tree)
    logger.info(f"Built file tree for {root}: {summary.files} files, {summary.dirs} directories")
    return tree


def summarize_tree(tree: FileTree) -> TreeSummary:
    """
    Count files and directories in a file tree.

    Args:
        tree: Tree as returned by build_file_tree.

    Returns:
        TreeSummary with file and directory counts.
    """
    summary = TreeSummary()
    for entry in tree.values():
        if entry.get("type") == "directory":
            summary.dirs += 1
            child = summarize_tree(entry.get("contents", {}))
            summary.files += child.files
            summary.dirs += child.dirs
        else:
            summary.files += 1
    return summary


def is_valid_tree(tree: FileTree) -> bool:
    """Return True when the tree holds at least one directory and one file."""
    summary = summarize_tree(tree)
    return summary.dirs > 0 and summary.files > 0


def format_tree(tree: FileTree, prefix: str = "") -> list[str]:
    """
    Render a file tree as ASCII lines.

    Args:
        tree: Tree as returned by build_file_tree.
        prefix: Indentation carried from parent levels.

    Returns:
        One line per entry; directories end with '/'.
    """
    lines = []
    names = list(tree)
    for index, name in enumerate(names):
        entry = tree[name]
        last = index == len(names) - 1
        connector = "└── " if last else "├── "
        if entry.get("type") == "directory":
            lines.append(f"{prefix}{connector}{name}/")
            extension = "    " if last else "│   "
            lines.extend(format_tree(entry.get("contents", {}), prefix + extension))
        else:
            lines.append(f"{prefix}{connector}{name}")
    return lines


def organize_directory_hierarchy(paths: list[str]) -> dict[str, list[str]]:
    """
    Group relative file paths by their parent directory.

    Args:
        paths: Relative paths with forward slashes.

    Returns:
        Mapping of directory ('' for the root) to file names, both sorted.
        Every ancestor directory appears as a key.
    """
    hierarchy: dict[str, list[str]] = {"": []}
    for rel_path in paths:
        parts = rel_path.split("/")
        for depth in range(1, len(parts)):
            hierarchy.setdefault("/".join(parts[:depth]), [])
        hierarchy["/".join(parts[:-1])].append(parts[-1])

    return {directory: sorted(hierarchy[directory]) for directory in sorted(hierarchy)}
