"""
Tests for CSV discovery and column summaries.
"""

from pathlib import Path

from psychds.infrastructure.csv_loader import (
    extract_csv_structure,
    extract_variable_info,
    find_constant_columns,
    list_csv_files,
    read_column_values,
    read_csv_header,
    read_csv_rows,
)


class TestListCsvFiles:
    """Tests for finding CSV files in a project."""

    def test_recursive_listing(self, sample_project: Path):
        """Test that hidden files and non-CSV files are skipped."""
        assert list_csv_files(sample_project) == ["raw/s01.csv", "raw/s02.csv"]

    def test_non_recursive(self, sample_project: Path):
        assert list_csv_files(sample_project, recursive=False) == []
        assert list_csv_files(sample_project / "raw", recursive=False) == ["s01.csv", "s02.csv"]

    def test_extension_is_case_insensitive(self, sample_project: Path):
        extra = sample_project / "extra"
        extra.mkdir()
        (extra / "UPPER.CSV").write_text("a\n1\n", encoding="utf-8")

        assert "extra/UPPER.CSV" in list_csv_files(sample_project)

    def test_hidden_directories_are_skipped(self, sample_project: Path):
        hidden = sample_project / ".cache"
        hidden.mkdir()
        (hidden / "tmp.csv").write_text("a\n1\n", encoding="utf-8")

        assert list_csv_files(sample_project) == ["raw/s01.csv", "raw/s02.csv"]

    def test_missing_directory(self, tmp_path: Path):
        assert list_csv_files(tmp_path / "missing") == []


class TestReadCsv:
    """Tests for low-level CSV reading."""

    def test_ragged_rows(self, tmp_path: Path):
        """Test that short rows are padded, long rows truncated and blank lines skipped."""
        path = tmp_path / "ragged.csv"
        path.write_text("a,b\n1\n\n2,3,4\n", encoding="utf-8")

        header, rows = read_csv_rows(path)

        assert header == ["a", "b"]
        assert rows == [["1", ""], ["2", "3"]]

    def test_byte_order_mark(self, tmp_path: Path):
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufeffsubject, rt\n01,500\n".encode("utf-8"))

        assert read_csv_header(path) == ["subject", "rt"]

    def test_max_rows(self, sample_project: Path):
        _, rows = read_csv_rows(sample_project / "raw" / "s01.csv", max_rows=2)
        assert len(rows) == 2

    def test_read_column_values(self, sample_project: Path):
        path = sample_project / "raw" / "s02.csv"
        assert read_column_values(path, "rt") == ["NA", "701.9"]
        assert read_column_values(path, "missing") == []

    def test_unreadable_file(self, tmp_path: Path):
        assert read_csv_header(tmp_path / "missing.csv") == []
        assert read_column_values(tmp_path / "missing.csv", "a") == []


class TestExtractCsvStructure:
    """Tests for column summaries."""

    def test_column_types(self, sample_project: Path):
        columns = {c.name: c for c in extract_csv_structure(sample_project / "raw" / "s01.csv")}

        assert list(columns) == ["subject", "session", "trial", "rt", "correct", "condition"]
        assert columns["subject"].type == "integer"
        assert columns["trial"].type == "integer"
        assert columns["rt"].type == "number"
        assert columns["correct"].type == "boolean"
        assert columns["condition"].type == "string"

    def test_numeric_range(self, sample_project: Path):
        columns = {c.name: c for c in extract_csv_structure(sample_project / "raw" / "s01.csv")}

        assert columns["rt"].min == 488.0
        assert columns["rt"].max == 610.2
        assert columns["condition"].min is None
        assert columns["condition"].unique_values == 2

    def test_missing_values_are_counted(self, sample_project: Path):
        columns = {c.name: c for c in extract_csv_structure(sample_project / "raw" / "s02.csv")}

        assert columns["rt"].na_count == 1
        assert columns["rt"].type == "number"
        assert columns["rt"].min == 701.9

    def test_empty_column_is_string(self, tmp_path: Path):
        path = tmp_path / "empty.csv"
        path.write_text("a,b\n1,\n2,NA\n", encoding="utf-8")

        columns = extract_csv_structure(path)

        assert columns[1].type == "string"
        assert columns[1].na_count == 2

    def test_unreadable_file(self, tmp_path: Path):
        assert extract_csv_structure(tmp_path / "missing.csv") == []


def test_extract_variable_info(sample_project: Path):
    """Test that variables are listed by name with the files they appear in."""
    other = sample_project / "raw" / "extra.csv"
    other.write_text("age,subject\n30,03\n", encoding="utf-8")

    info = extract_variable_info(sample_project, ["raw/s01.csv", "raw/extra.csv"])

    assert list(info) == ["age", "condition", "correct", "rt", "session", "subject", "trial"]
    assert info["subject"] == ["raw/s01.csv", "raw/extra.csv"]
    assert info["age"] == ["raw/extra.csv"]


def test_find_constant_columns(sample_project: Path):
    assert find_constant_columns(sample_project / "raw" / "s01.csv") == {"subject": "01", "session": "1"}


def test_constant_columns_ignore_missing(tmp_path: Path):
    path = tmp_path / "a.csv"
    path.write_text("subject,rt\n07,NA\n07,\n,500\n", encoding="utf-8")

    assert find_constant_columns(path) == {"subject": "07", "rt": "500"}
