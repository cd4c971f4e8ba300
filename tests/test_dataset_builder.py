"""
Tests for creating a dataset directory on disk.
"""

import json
import re
from pathlib import Path

import pytest

import psychds.core.dataset_builder as builder
from psychds.core.dataset_builder import (
    DUPLICATE_NAMES_MESSAGE,
    FOLDER_EXISTS_MESSAGE,
    CreateDatasetRequest,
    DatasetStats,
    calculate_dataset_stats,
    create_dataset,
    destination_path,
    duplicate_destinations,
)
from psychds.core.errors import DatasetCreationError
from psychds.core.models import FileMapping, OptionalDirectories


@pytest.fixture
def request_for(sample_project: Path, tmp_path: Path, dataset_info, sample_columns):
    """Build a creation request for the sample project."""
    location = tmp_path / "output"
    location.mkdir()

    def make(name: str = "stroop_dataset", **kwargs) -> CreateDatasetRequest:
        mappings = kwargs.pop("file_mappings", [
            FileMapping("raw/s01.csv", "study-stroop_subject-01_data.csv", {"study": "stroop", "subject": "01"}),
            FileMapping("raw/s02.csv", "study-stroop_subject-02_data.csv", {"study": "stroop", "subject": "02"}),
        ])
        return CreateDatasetRequest(
            project_dir=sample_project,
            location=location,
            name=name,
            info=dataset_info,
            file_mappings=mappings,
            columns=sample_columns,
            **kwargs,
        )

    return make


@pytest.mark.parametrize("original, expected", [
    ("raw/s01.csv", "new.csv"),
    ("raw/sub/s01.csv", "sub/new.csv"),
    ("s01.csv", "new.csv"),
    ("raw\\sub\\s01.csv", "sub/new.csv"),
])
def test_destination_path(original, expected):
    """Test that the first folder is dropped and deeper folders are kept."""
    assert str(destination_path(FileMapping(original, "new.csv"))) == expected


class TestCreateDataset:
    """Tests for create_dataset."""

    def test_layout(self, request_for):
        root = create_dataset(request_for())

        assert root.name == "stroop_dataset"
        assert (root / "data" / "study-stroop_subject-01_data.csv").is_file()
        assert (root / "data" / "study-stroop_subject-02_data.csv").is_file()
        assert (root / "analysis").is_dir()
        assert (root / "materials").is_dir()
        assert not (root / "results").exists()

    def test_file_content_is_copied(self, request_for, sample_project: Path):
        root = create_dataset(request_for())

        copied = root / "data" / "study-stroop_subject-01_data.csv"
        assert copied.read_bytes() == (sample_project / "raw" / "s01.csv").read_bytes()

    def test_description_document(self, request_for):
        root = create_dataset(request_for())

        with open(root / "dataset_description.json", encoding="utf-8") as f:
            description = json.load(f)

        assert description["@type"] == "Dataset"
        assert description["name"] == "Stroop Study"
        assert [v["name"] for v in description["variableMeasured"]] == ["subject", "rt", "accuracy"]

    def test_manifest_document(self, request_for):
        root = create_dataset(request_for())

        with open(root / "datapackage.json", encoding="utf-8") as f:
            manifest = json.load(f)

        assert manifest["name"] == "stroop_dataset"
        assert [r["path"] for r in manifest["resources"]] == [
            "data/study-stroop_subject-01_data.csv",
            "data/study-stroop_subject-02_data.csv",
        ]

    def test_without_manifest(self, request_for):
        root = create_dataset(request_for(write_manifest=False))
        assert not (root / "datapackage.json").exists()

    def test_custom_directories(self, request_for):
        dirs = OptionalDirectories(analysis=False, materials=False, custom=["stimuli"])

        root = create_dataset(request_for(optional_dirs=dirs))

        assert (root / "stimuli").is_dir()
        assert not (root / "analysis").exists()

    def test_unmapped_and_missing_files_are_skipped(self, request_for):
        """Test that mappings without a name and missing sources are not copied."""
        request = request_for(file_mappings=[
            FileMapping("raw/s01.csv", ""),
            FileMapping("raw/gone.csv", "study-x_data.csv"),
            FileMapping("raw/s02.csv", "study-y_data.csv"),
        ])

        root = create_dataset(request)

        assert sorted(p.name for p in (root / "data").iterdir()) == ["study-y_data.csv"]
        with open(root / "datapackage.json", encoding="utf-8") as f:
            assert [r["path"] for r in json.load(f)["resources"]] == ["data/study-y_data.csv"]

    def test_progress_callback(self, request_for):
        calls = []
        create_dataset(request_for(), progress_callback=lambda i, n, path: calls.append((i, n, path.name)))

        assert calls == [
            (1, 2, "study-stroop_subject-01_data.csv"),
            (2, 2, "study-stroop_subject-02_data.csv"),
        ]

    def test_existing_folder(self, request_for):
        request = request_for()
        request.target.mkdir()

        with pytest.raises(DatasetCreationError, match=FOLDER_EXISTS_MESSAGE):
            create_dataset(request)

    def test_duplicate_names_are_rejected(self, request_for):
        """Test that nothing is written when two files would get the same name."""
        request = request_for(file_mappings=[
            FileMapping("raw/s01.csv", "study-x_data.csv"),
            FileMapping("raw/s02.csv", "study-x_data.csv"),
        ])

        with pytest.raises(DatasetCreationError, match=re.escape(DUPLICATE_NAMES_MESSAGE)) as excinfo:
            create_dataset(request)

        assert "data/study-x_data.csv" in str(excinfo.value)
        assert not request.target.exists()

    def test_failed_copy_removes_partial_dataset(self, request_for, monkeypatch):
        """Test that a failed copy leaves no folder behind, so a retry can succeed."""
        request = request_for()

        def fail(source, dest):
            raise OSError("disk full")

        with monkeypatch.context() as m:
            m.setattr(builder.shutil, "copy2", fail)
            with pytest.raises(DatasetCreationError, match="disk full"):
                create_dataset(request)

        assert not request.target.exists()
        assert create_dataset(request) == request.target

    def test_invalid_name(self, request_for):
        with pytest.raises(DatasetCreationError):
            create_dataset(request_for(name="my dataset"))

    def test_missing_location(self, request_for, tmp_path: Path):
        request = request_for()
        request.location = tmp_path / "nowhere"

        with pytest.raises(DatasetCreationError):
            create_dataset(request)


class TestDatasetStats:
    """Tests for the pre-creation summary."""

    def test_counts(self, request_for, sample_project: Path):
        request = request_for(file_mappings=[
            FileMapping("raw/s01.csv", "study-x_data.csv"),
            FileMapping("raw/gone.csv", "study-y_data.csv"),
            FileMapping("raw/s02.csv", ""),
        ])

        stats = calculate_dataset_stats(request)

        assert stats.file_count == 1
        assert stats.total_size == (sample_project / "raw" / "s01.csv").stat().st_size
        assert stats.missing == [str(sample_project / "raw/gone.csv")]

    @pytest.mark.parametrize("size, expected", [
        (512, "512 B"),
        (2048, "2.0 KB"),
        (5 * 1024 ** 2, "5.0 MB"),
        (3 * 1024 ** 3, "3.00 GB"),
    ])
    def test_size_string(self, size, expected):
        assert DatasetStats(total_size=size).get_size_string() == expected


def test_duplicate_destinations(request_for):
    """Test that clashes are found case-insensitively and reported once."""
    request = request_for(file_mappings=[
        FileMapping("raw/a.csv", "study-x_data.csv"),
        FileMapping("raw/b.csv", "Study-X_data.csv"),
        FileMapping("raw/c.csv", "study-x_data.csv"),
        FileMapping("raw/sub/d.csv", "study-x_data.csv"),
        FileMapping("raw/e.csv", ""),
        FileMapping("raw/f.csv", ""),
    ])

    assert duplicate_destinations(request) == ["study-x_data.csv"]
