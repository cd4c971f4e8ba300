"""
Pytest configuration and shared fixtures.

This file contains pytest configuration and reusable test fixtures.
"""

import pytest
from pathlib import Path

import psychds.config.settings as settings_mod
from psychds.config.settings import SettingsManager
from psychds.core.models import Author, ColumnInfo, DatasetInfo, WizardState


S01_CSV = (
    "subject,session,trial,rt,correct,condition\n"
    "01,1,1,523.5,true,congruent\n"
    "01,1,2,610.2,false,incongruent\n"
    "01,1,3,488.0,true,congruent\n"
)

S02_CSV = (
    "subject,session,trial,rt,correct,condition\n"
    "02,1,1,NA,true,incongruent\n"
    "02,1,2,701.9,true,congruent\n"
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """
    Point the home directory at a temporary folder.

    Settings, logs and reports are written below the home directory, so no
    test touches the real user profile. The global settings manager is
    reset around each test.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setattr(settings_mod, "_settings_manager", None)
    return home


@pytest.fixture
def settings_manager(tmp_path: Path) -> SettingsManager:
    """
    Create a settings manager backed by a temporary file.

    Returns:
        A loaded SettingsManager with default settings.
    """
    manager = SettingsManager(config_file=tmp_path / "config" / "settings.json")
    manager.load()
    return manager


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """
    Create a project directory with raw CSV data files.

    Layout:
        project/
            raw/s01.csv
            raw/s02.csv
            notes.txt
            .hidden.csv

    Returns:
        Path to the project directory.
    """
    project = tmp_path / "project"
    raw = project / "raw"
    raw.mkdir(parents=True)
    (raw / "s01.csv").write_text(S01_CSV, encoding="utf-8")
    (raw / "s02.csv").write_text(S02_CSV, encoding="utf-8")
    (project / "notes.txt").write_text("pilot data\n", encoding="utf-8")
    (project / ".hidden.csv").write_text("a,b\n1,2\n", encoding="utf-8")
    return project


@pytest.fixture
def dataset_info() -> DatasetInfo:
    """
    Create dataset metadata with two authors.

    Returns:
        A complete DatasetInfo.
    """
    return DatasetInfo(
        name="Stroop Study",
        description="Reaction times in a Stroop task",
        authors=[
            Author("Ada", "Lovelace", "https://orcid.org/0000-0001-2345-6789"),
            Author("Alan", "Turing"),
        ],
        keywords=["stroop", "attention"],
    )


@pytest.fixture
def sample_columns() -> dict[str, list[ColumnInfo]]:
    """Column summaries for two files sharing most columns."""
    return {
        "raw/s01.csv": [
            ColumnInfo(name="subject", type="integer"),
            ColumnInfo(name="rt", type="number", description=""),
        ],
        "raw/s02.csv": [
            ColumnInfo(name="rt", type="number", description="Reaction time in ms"),
            ColumnInfo(name="accuracy", type="number", description="Proportion correct"),
        ],
    }


@pytest.fixture
def wizard_state(sample_project: Path) -> WizardState:
    """
    Create a wizard state with step 1 filled in.

    Returns:
        A WizardState pointing at the sample project.
    """
    state = WizardState()
    state.project_dir = str(sample_project)
    state.project_name = "stroop"
    state.set_data_files(["raw/s01.csv", "raw/s02.csv"])
    return state
