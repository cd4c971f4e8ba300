"""
Tests for the OSF upload client.

No network access: the client is given a fake session that answers
requests from a routing function and records every call.
"""

from datetime import date
from pathlib import Path

import pytest
import requests

from psychds.core.errors import OSFError
from psychds.infrastructure.osf_client import (
    MISSING_DIRECTORY,
    MISSING_PROJECT_ID,
    MISSING_TOKEN,
    OSFClient,
    UploadReport,
    check_upload_inputs,
    find_readme,
    generate_readme,
    iter_upload_files,
    make_session,
    parse_project_id,
)


API = "https://api.test/v2"
FILES = "https://files.test/v1"


class FakeResponse:
    def __init__(self, status_code: int, data=None, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        self._data = data

    def json(self):
        if self._data is None:
            raise ValueError("No JSON body")
        return self._data


class FakeSession:
    """Records requests and answers them with a routing function."""

    def __init__(self, route):
        self.route = route
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        if "data" in kwargs and hasattr(kwargs["data"], "read"):
            kwargs["body"] = kwargs.pop("data").read()
        self.calls.append((method, url, kwargs))
        return self.route(method, url, kwargs)


def storage_response(path: str) -> FakeResponse:
    return FakeResponse(201, {"data": {"attributes": {"path": path}}})


def make_client(route) -> tuple[OSFClient, FakeSession]:
    session = FakeSession(route)
    return OSFClient("secret", api_url=API, files_url=FILES, session=session), session


@pytest.fixture
def dataset_dir(tmp_path: Path) -> Path:
    root = tmp_path / "dataset"
    (root / "data").mkdir(parents=True)
    (root / "data" / "study-x_data.csv").write_text("a\n1\n", encoding="utf-8")
    (root / "dataset_description.json").write_text("{}\n", encoding="utf-8")
    (root / ".DS_Store").write_bytes(b"")
    (root / "__pycache__").mkdir()
    (root / "__pycache__" / "x.pyc").write_bytes(b"")
    return root


@pytest.mark.parametrize("value, expected", [
    ("abc12", "abc12"),
    ("  abc12/ ", "abc12"),
    ("https://osf.io/abc12/", "abc12"),
    ("https://osf.io/abc12/files/osfstorage", "abc12"),
    ("", ""),
])
def test_parse_project_id(value, expected):
    assert parse_project_id(value) == expected


def test_check_upload_inputs(dataset_dir: Path, tmp_path: Path):
    assert check_upload_inputs(dataset_dir, "abc12", "token") == []
    assert check_upload_inputs(None, " ", "") == [MISSING_DIRECTORY, MISSING_PROJECT_ID, MISSING_TOKEN]
    assert check_upload_inputs(tmp_path / "missing", "abc12", "token") == [MISSING_DIRECTORY]


def test_iter_upload_files(dataset_dir: Path):
    """Test that hidden files and caches are not uploaded."""
    files = [p.as_posix() for p in iter_upload_files(dataset_dir)]
    assert files == ["data/study-x_data.csv", "dataset_description.json"]


def test_make_session():
    session = make_session("secret")

    assert session.headers["Authorization"] == "Bearer secret"
    assert session.get_adapter("https://api.osf.io").max_retries.total == 3


def test_upload_report():
    report = UploadReport(project_id="abc12", uploaded=["a.csv"])
    assert report.success
    assert report.project_url == "https://osf.io/abc12/"

    report.failed["b.csv"] = "boom"
    assert not report.success


class TestRequests:
    """Tests for single API calls."""

    def test_empty_token(self):
        with pytest.raises(OSFError, match=MISSING_TOKEN):
            OSFClient("  ")

    def test_test_connection(self):
        client, session = make_client(
            lambda method, url, kwargs: FakeResponse(200, {"data": {"attributes": {"full_name": "Ada Lovelace"}}})
        )

        assert client.test_connection() == "Ada Lovelace"
        assert session.calls[0][:2] == ("GET", f"{API}/users/me/")

    @pytest.mark.parametrize("status, text", [
        (401, "rejected the token"),
        (403, "permission"),
        (404, "not found"),
    ])
    def test_error_status(self, status, text):
        client, _ = make_client(lambda method, url, kwargs: FakeResponse(status))

        with pytest.raises(OSFError, match=text) as excinfo:
            client.test_connection()
        assert excinfo.value.status_code == status

    def test_error_detail(self):
        client, _ = make_client(
            lambda method, url, kwargs: FakeResponse(400, {"errors": [{"detail": "Title is required"}]})
        )

        with pytest.raises(OSFError, match="Title is required"):
            client.create_project("")

    def test_error_without_body(self):
        client, _ = make_client(lambda method, url, kwargs: FakeResponse(500, reason="Server Error"))

        with pytest.raises(OSFError, match="Server Error"):
            client.test_connection()

    def test_connection_failure(self):
        def route(method, url, kwargs):
            raise requests.ConnectionError("no route to host")

        client, _ = make_client(route)

        with pytest.raises(OSFError, match="Could not reach OSF"):
            client.test_connection()

    def test_create_project(self):
        client, session = make_client(lambda method, url, kwargs: FakeResponse(201, {"data": {"id": "xyz98"}}))

        assert client.create_project("Stroop", "Reaction times") == "xyz98"

        method, url, kwargs = session.calls[0]
        assert (method, url) == ("POST", f"{API}/nodes/")
        attributes = kwargs["json"]["data"]["attributes"]
        assert attributes["title"] == "Stroop"
        assert attributes["category"] == "project"
        assert attributes["public"] is False

    def test_check_storage_missing(self):
        client, _ = make_client(lambda method, url, kwargs: FakeResponse(200, {"data": []}))

        with pytest.raises(OSFError, match="no OSF Storage"):
            client.check_storage("abc12")

    def test_existing_folder_is_found(self):
        """Test that a 409 on folder creation falls back to the existing folder."""
        def route(method, url, kwargs):
            if method == "PUT":
                return FakeResponse(409)
            return FakeResponse(200, {"data": [
                {"attributes": {"name": "data", "kind": "file", "path": "/file1"}},
                {"attributes": {"name": "data", "kind": "folder", "path": "/folder1/"}},
            ]})

        client, _ = make_client(route)

        assert client.create_folder("abc12", "data") == "/folder1/"

    def test_overwrite_existing_file(self, dataset_dir: Path):
        def route(method, url, kwargs):
            if method == "GET":
                return FakeResponse(200, {"data": [
                    {"attributes": {"name": "dataset_description.json", "kind": "file", "path": "/file9"}},
                ]})
            if url.endswith("/file9"):
                return FakeResponse(200, {"data": {"attributes": {"path": "/file9"}}})
            return FakeResponse(409)

        client, session = make_client(route)

        assert client.upload_file("abc12", dataset_dir / "dataset_description.json") == "/file9"
        assert session.calls[-1][2]["params"] == {"kind": "file"}
        assert session.calls[-1][2]["body"] == b"{}\n"

    def test_no_overwrite(self, dataset_dir: Path):
        client, _ = make_client(lambda method, url, kwargs: FakeResponse(409))

        with pytest.raises(OSFError, match="already exists"):
            client.upload_file("abc12", dataset_dir / "dataset_description.json", overwrite=False)


class TestUploadDataset:
    """Tests for uploading a whole dataset."""

    @staticmethod
    def route(method, url, kwargs):
        if method == "GET":
            return FakeResponse(200, {"data": [{"id": "abc12:osfstorage", "attributes": {"provider": "osfstorage"}}]})
        params = kwargs.get("params", {})
        if params.get("kind") == "folder":
            return storage_response(f"/{params['name']}-folder/")
        return storage_response(f"/{params['name']}")

    def test_upload_dataset(self, dataset_dir: Path):
        client, session = make_client(self.route)
        progress = []

        report = client.upload_dataset(
            "https://osf.io/abc12/", dataset_dir,
            progress_callback=lambda current, total, path: progress.append((current, total, path)),
        )

        assert report.success
        assert report.project_id == "abc12"
        assert report.uploaded == ["data/study-x_data.csv", "dataset_description.json"]
        assert progress == [(1, 2, "data/study-x_data.csv"), (2, 2, "dataset_description.json")]

        puts = [(url, kwargs["params"]) for method, url, kwargs in session.calls if method == "PUT"]
        storage = f"{FILES}/resources/abc12/providers/osfstorage"
        assert puts == [
            (f"{storage}/", {"kind": "folder", "name": "data"}),
            (f"{storage}/data-folder/", {"kind": "file", "name": "study-x_data.csv"}),
            (f"{storage}/", {"kind": "file", "name": "dataset_description.json"}),
        ]

    def test_failed_file_does_not_stop_upload(self, dataset_dir: Path):
        def route(method, url, kwargs):
            if kwargs.get("params", {}).get("name") == "study-x_data.csv":
                return FakeResponse(500, reason="Server Error")
            return self.route(method, url, kwargs)

        client, _ = make_client(route)

        report = client.upload_dataset("abc12", dataset_dir)

        assert not report.success
        assert list(report.failed) == ["data/study-x_data.csv"]
        assert report.uploaded == ["dataset_description.json"]

    def test_missing_project_id(self, dataset_dir: Path):
        client, _ = make_client(self.route)

        with pytest.raises(OSFError, match=MISSING_PROJECT_ID):
            client.upload_dataset("  ", dataset_dir)

    def test_unexpected_success_body_is_recorded(self, dataset_dir: Path):
        """Test that a 201 without a storage path fails that file only."""
        def route(method, url, kwargs):
            if kwargs.get("params", {}).get("name") == "dataset_description.json":
                return FakeResponse(201, {"data": {}})
            return self.route(method, url, kwargs)

        client, _ = make_client(route)

        report = client.upload_dataset("abc12", dataset_dir)

        assert report.uploaded == ["data/study-x_data.csv"]
        assert "unexpected response" in report.failed["dataset_description.json"]

    def test_generated_readme(self, dataset_dir: Path):
        client, session = make_client(self.route)
        progress = []

        report = client.upload_dataset(
            "abc12", dataset_dir, create_readme=True,
            progress_callback=lambda current, total, path: progress.append((current, total, path)),
        )

        assert report.uploaded[-1] == "README.md"
        assert progress[-1] == (3, 3, "README.md")
        method, url, kwargs = session.calls[-1]
        assert kwargs["params"] == {"kind": "file", "name": "README.md"}
        assert kwargs["data"].decode("utf-8").startswith("# dataset\n")

    def test_existing_readme_is_kept(self, dataset_dir: Path):
        (dataset_dir / "readme.txt").write_text("Notes\n", encoding="utf-8")
        client, _ = make_client(self.route)

        report = client.upload_dataset("abc12", dataset_dir, create_readme=True)

        assert "README.md" not in report.uploaded
        assert "readme.txt" in report.uploaded


class TestMalformedResponses:
    """Tests for successful statuses with unusable bodies."""

    def test_missing_json_body(self):
        client, _ = make_client(lambda method, url, kwargs: FakeResponse(200))

        with pytest.raises(OSFError, match="unexpected response") as excinfo:
            client.test_connection()
        assert excinfo.value.status_code == 200

    def test_missing_project_id_in_body(self):
        client, _ = make_client(lambda method, url, kwargs: FakeResponse(201, {"data": {"attributes": {}}}))

        with pytest.raises(OSFError, match="data/id"):
            client.create_project("Stroop")

    def test_storage_list_is_not_a_list(self):
        client, _ = make_client(lambda method, url, kwargs: FakeResponse(200, {"errors": []}))

        with pytest.raises(OSFError, match="unexpected response"):
            client.check_storage("abc12")


class TestReadme:
    """Tests for README detection and generation."""

    def test_find_readme(self, dataset_dir: Path):
        assert find_readme(dataset_dir) is None

        (dataset_dir / "README.md").write_text("# Stroop\n", encoding="utf-8")
        assert find_readme(dataset_dir) == dataset_dir / "README.md"

    def test_generate_readme(self, tmp_path: Path):
        root = tmp_path / "stroop"
        (root / "data" / "pilot").mkdir(parents=True)
        (root / "data" / "study-stroop_data.csv").write_text("a\n", encoding="utf-8")
        (root / "data" / "pilot" / "study-pilot_data.csv").write_text("a\n", encoding="utf-8")
        (root / "data" / "notes.docx").write_bytes(b"")
        (root / "dataset_description.json").write_text(
            '{"name": "Stroop Study", "description": "Reaction times"}', encoding="utf-8"
        )

        lines = generate_readme(root, today=date(2024, 5, 1)).splitlines()

        assert lines[:4] == ["# Stroop Study", "", "Reaction times", ""]
        assert "- `data/`: Directory containing 2 data file(s)" in lines
        assert "  - Subdirectories: pilot" in lines
        assert "- `pilot/study-pilot_data.csv`" in lines
        assert "- `study-stroop_data.csv`" in lines
        assert not any("notes.docx" in line for line in lines)
        assert lines[-1] == "*Generated on May 01, 2024 by psychds*"

    def test_generate_readme_without_description(self, tmp_path: Path):
        root = tmp_path / "empty"
        root.mkdir()

        text = generate_readme(root, today=date(2024, 5, 1))

        assert text.startswith("# empty\n\n## Dataset Structure\n")
        assert "containing 0 data file(s)" in text
        assert "### Data Files" not in text
