"""
Tests for browsing and filtering an existing dataset.
"""

from pathlib import Path

import pytest

from psychds.core.explorer import (
    ColumnFilter,
    KeywordFilter,
    column_choices,
    extract_keyword_values,
    extract_keywords,
    filter_files,
    filter_rows,
    load_dataset_files,
)


FILES = [
    "study-stroop_subject-01_data.csv",
    "study-stroop_subject-02_data.csv",
    "pilot/study-flanker_subject-01_session-1_data.csv",
    "notes.csv",
]

HEADER = ["trial", "rt", "condition"]
ROWS = [
    ["1", "523.5", "congruent"],
    ["2", "610.2", "incongruent"],
    ["3", "", "congruent"],
]


@pytest.fixture
def dataset_dir(tmp_path: Path) -> Path:
    root = tmp_path / "stroop"
    (root / "data" / "pilot").mkdir(parents=True)
    for name in FILES:
        (root / "data" / name).write_text("trial,rt\n1,500\n", encoding="utf-8")
    (root / "data" / "readme.txt").write_text("not a table\n", encoding="utf-8")
    (root / "dataset_description.json").write_text("{}", encoding="utf-8")
    return root


class TestLoadDatasetFiles:
    """Tests for opening a dataset folder."""

    def test_lists_csv_files(self, dataset_dir: Path):
        assert load_dataset_files(dataset_dir) == sorted(FILES)

    def test_missing_description(self, dataset_dir: Path):
        (dataset_dir / "dataset_description.json").unlink()

        with pytest.raises(ValueError, match="dataset_description.json"):
            load_dataset_files(dataset_dir)

    def test_missing_data_folder(self, tmp_path: Path):
        (tmp_path / "dataset_description.json").write_text("{}", encoding="utf-8")

        with pytest.raises(ValueError, match="'data' folder"):
            load_dataset_files(tmp_path)

    def test_not_a_directory(self, tmp_path: Path):
        with pytest.raises(ValueError, match="valid dataset directory"):
            load_dataset_files(tmp_path / "missing")


class TestKeywords:
    """Tests for keyword discovery and file filtering."""

    def test_extract_keywords(self):
        assert extract_keywords(FILES) == ["study", "subject", "session"]

    def test_extract_keyword_values(self):
        assert extract_keyword_values(FILES, "subject") == ["01", "02"]
        assert extract_keyword_values(FILES, "study") == ["flanker", "stroop"]
        assert extract_keyword_values(FILES, "task") == []

    def test_no_filters_keep_every_file(self):
        assert filter_files(FILES, []) == FILES

    def test_filters_are_combined(self):
        filters = [KeywordFilter("subject", "01")]
        assert filter_files(FILES, filters) == [FILES[0], FILES[2]]

        filters.append(KeywordFilter("study", "stroop"))
        assert filter_files(FILES, filters) == [FILES[0]]

    def test_value_must_match_whole_keyword(self):
        """Test that subject-0 does not match subject-01."""
        assert filter_files(FILES, [KeywordFilter("subject", "0")]) == []

    def test_filter_label(self):
        assert str(KeywordFilter("subject", "01")) == 'subject: "01"'


class TestColumns:
    """Tests for column value choices and row filtering."""

    def test_column_choices(self):
        assert column_choices(HEADER, ROWS, "condition") == ["congruent", "incongruent"]
        assert column_choices(HEADER, ROWS, "rt") == ["", "523.5", "610.2"]
        assert column_choices(HEADER, ROWS, "missing") == []

    def test_filter_rows(self):
        assert filter_rows(HEADER, ROWS, []) == ROWS
        assert filter_rows(HEADER, ROWS, [ColumnFilter("condition", "congruent")]) == [ROWS[0], ROWS[2]]
        assert filter_rows(HEADER, ROWS, [ColumnFilter("condition", "congruent"), ColumnFilter("rt", "")]) == [ROWS[2]]

    def test_filter_on_unknown_column(self):
        assert filter_rows(HEADER, ROWS, [ColumnFilter("age", "30")]) == []

    def test_blank_filter_label(self):
        assert str(ColumnFilter("rt", "")) == 'rt: "(blank)"'
