"""
Tests for the validator file tree.
"""

from pathlib import Path

import pytest

from psychds.infrastructure.file_tree import (
    build_file_tree,
    format_tree,
    is_valid_tree,
    organize_directory_hierarchy,
    summarize_tree,
)


@pytest.fixture
def dataset_dir(tmp_path: Path) -> Path:
    """
    Create a small dataset directory.

    Layout:
        dataset/
            data/study-x_data.csv
            data/image.png
            analysis/          (empty)
            dataset_description.json
            .git/config
    """
    root = tmp_path / "dataset"
    (root / "data").mkdir(parents=True)
    (root / "analysis").mkdir()
    (root / ".git").mkdir()
    (root / "data" / "study-x_data.csv").write_text("a,b\n1,2\n", encoding="utf-8")
    (root / "data" / "image.png").write_bytes(b"\x89PNG\r\n")
    (root / "dataset_description.json").write_text('{"name": "x"}\n', encoding="utf-8")
    (root / ".git" / "config").write_text("[core]\n", encoding="utf-8")
    return root


class TestBuildFileTree:
    """Tests for building the nested tree."""

    def test_structure(self, dataset_dir: Path):
        tree = build_file_tree(dataset_dir)

        assert set(tree) == {"data", "analysis", "dataset_description.json"}
        assert tree["data"]["type"] == "directory"
        assert set(tree["data"]["contents"]) == {"study-x_data.csv", "image.png"}

    def test_file_entries(self, dataset_dir: Path):
        """Test that files carry name, absolute-style path and text."""
        tree = build_file_tree(dataset_dir)

        entry = tree["data"]["contents"]["study-x_data.csv"]
        assert entry == {
            "type": "file",
            "file": {
                "name": "study-x_data.csv",
                "path": "/data/study-x_data.csv",
                "text": "a,b\n1,2\n",
            },
        }

    def test_binary_files_have_no_text(self, dataset_dir: Path):
        tree = build_file_tree(dataset_dir)
        assert tree["data"]["contents"]["image.png"]["file"]["text"] == ""

    def test_empty_directory_is_kept(self, dataset_dir: Path):
        tree = build_file_tree(dataset_dir)
        assert tree["analysis"] == {"type": "directory", "contents": {}}

    def test_hidden_entries_are_skipped(self, dataset_dir: Path):
        assert ".git" not in build_file_tree(dataset_dir)

    def test_missing_root(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            build_file_tree(tmp_path / "missing")


def test_summarize_tree(dataset_dir: Path):
    summary = summarize_tree(build_file_tree(dataset_dir))

    assert summary.files == 3
    assert summary.dirs == 2
    assert summary.total == 5


def test_is_valid_tree(dataset_dir: Path):
    """Test that a tree needs at least one directory and one file."""
    assert is_valid_tree(build_file_tree(dataset_dir))
    assert not is_valid_tree({})
    assert not is_valid_tree({"a.csv": {"type": "file", "file": {"name": "a.csv", "path": "/a.csv", "text": ""}}})
    assert not is_valid_tree({"data": {"type": "directory", "contents": {}}})


def test_format_tree():
    tree = {
        "data": {
            "type": "directory",
            "contents": {
                "a.csv": {"type": "file", "file": {}},
                "b.csv": {"type": "file", "file": {}},
            },
        },
        "dataset_description.json": {"type": "file", "file": {}},
    }

    assert format_tree(tree) == [
        "├── data/",
        "│   ├── a.csv",
        "│   └── b.csv",
        "└── dataset_description.json",
    ]


def test_organize_directory_hierarchy():
    """Test that files are grouped by folder and every ancestor is listed."""
    hierarchy = organize_directory_hierarchy(["raw/s1/b.csv", "a.csv", "raw/s1/a.csv"])

    assert hierarchy == {
        "": ["a.csv"],
        "raw": [],
        "raw/s1": ["a.csv", "b.csv"],
    }


def test_large_text_files_have_empty_text(dataset_dir: Path):
    tree = build_file_tree(dataset_dir, max_text_size=10)

    assert tree["data"]["contents"]["study-x_data.csv"]["file"]["text"] == "a,b\n1,2\n"
    assert tree["dataset_description.json"]["file"]["text"] == ""
