"""
Tests for core domain models.

These tests verify the behavior of data models in the core package.
"""

import pytest

from psychds.core.models import (
    AUTHOR_NAME_REQUIRED,
    Author,
    DatasetInfo,
    OptionalDirectories,
    WizardState,
    create_author,
)


class TestAuthor:
    """Tests for Author and create_author."""

    def test_full_name(self):
        """Test that the full name joins given and family name."""
        assert Author("Ada", "Lovelace").full_name == "Ada Lovelace"

    def test_create_author_strips_input(self):
        """Test that form input is trimmed and a blank ORCID becomes None."""
        author = create_author("  Ada ", " Lovelace", "   ")

        assert author.first_name == "Ada"
        assert author.last_name == "Lovelace"
        assert author.orcid is None

    def test_create_author_keeps_orcid(self):
        author = create_author("Ada", "Lovelace", "0000-0001-2345-6789")
        assert author.orcid == "0000-0001-2345-6789"

    @pytest.mark.parametrize("first, last", [("", "Lovelace"), ("Ada", ""), ("  ", "  ")])
    def test_create_author_requires_both_names(self, first, last):
        """Test that a missing first or last name is rejected."""
        with pytest.raises(ValueError, match=AUTHOR_NAME_REQUIRED):
            create_author(first, last)


class TestDatasetInfo:
    """Tests for DatasetInfo."""

    def test_defaults(self):
        info = DatasetInfo()
        assert info.license == "CC-BY-4.0"
        assert info.version == "1.0.0"
        assert not info.is_complete()

    def test_whitespace_is_not_complete(self):
        """Test that blank name or description does not count as filled in."""
        assert not DatasetInfo(name="Study", description="   ").is_complete()
        assert DatasetInfo(name="Study", description="A study").is_complete()


class TestOptionalDirectories:
    """Tests for the optional directory selection."""

    def test_default_directories(self):
        assert OptionalDirectories().enabled() == ["analysis", "materials"]

    def test_custom_directories_are_deduplicated(self):
        """Test that custom names follow standard ones without duplicates or blanks."""
        dirs = OptionalDirectories(results=True, custom=["stimuli", " analysis ", "", "stimuli"])
        assert dirs.enabled() == ["analysis", "materials", "results", "stimuli"]


class TestWizardState:
    """Tests for the shared wizard state."""

    def test_set_mapping_creates_and_replaces(self):
        state = WizardState()
        state.set_data_files(["raw/a.csv"])

        state.set_mapping("raw/a.csv", "study-x_data.csv", {"study": "x"})
        state.set_mapping("raw/a.csv", "study-y_data.csv", {"study": "y"})

        assert len(state.file_mappings) == 1
        assert state.mapping_for("raw/a.csv").new_name == "study-y_data.csv"
        assert state.mapping_for("raw/a.csv").keywords == {"study": "y"}
        assert state.mapping_for("raw/b.csv") is None

    def test_changing_selection_drops_mappings(self):
        """Test that rename mappings are dropped when the file selection changes."""
        state = WizardState()
        state.set_data_files(["a.csv", "b.csv"])
        state.set_mapping("a.csv", "study-x_data.csv", {"study": "x"})
        state.columns = {"a.csv": [], "b.csv": []}

        state.set_data_files(["a.csv"])

        assert state.file_mappings == []
        assert list(state.columns) == ["a.csv"]

    def test_same_selection_keeps_mappings(self):
        state = WizardState()
        state.set_data_files(["a.csv"])
        state.set_mapping("a.csv", "study-x_data.csv", {"study": "x"})

        state.set_data_files(["a.csv"])

        assert len(state.file_mappings) == 1

    def test_has_project_dir(self):
        state = WizardState()
        assert not state.has_project_dir()
        state.project_dir = "  "
        assert not state.has_project_dir()
        state.project_dir = "/data/project"
        assert state.has_project_dir()

    def test_notifications_and_errors_are_queued(self):
        state = WizardState()
        state.notify("Saved")
        state.add_error("Failed")
        assert state.notifications == ["Saved"]
        assert state.errors == ["Failed"]
