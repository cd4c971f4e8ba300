"""
Client for uploading datasets to the Open Science Framework (OSF).

Project metadata goes through the JSON:API at api.osf.io; file content goes
through the WaterButler storage service at files.osf.io. Every request is
authenticated with a personal access token.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, IO, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..core.description import DESCRIPTION_FILENAME, load_json
from ..core.errors import OSFError
from .logging_config import get_logger

logger = get_logger(__name__)


DEFAULT_API_URL = "https://api.osf.io/v2"
DEFAULT_FILES_URL = "https://files.osf.io/v1"
STORAGE_PROVIDER = "osfstorage"

SKIPPED_DIRECTORIES = frozenset({"__pycache__", "node_modules", ".git"})

MISSING_DIRECTORY = "Please select a dataset directory to upload."
MISSING_PROJECT_ID = "Please enter an OSF project ID."
MISSING_TOKEN = "Please enter your OSF token."

README_FILENAME = "README.md"
README_NAMES = frozenset({"readme.md", "readme.txt"})
README_DATA_EXTENSIONS = frozenset({".csv", ".tsv", ".txt", ".json"})


@dataclass
class UploadReport:
    """Outcome of a dataset upload."""

    project_id: str
    uploaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    """Relative path to error message."""

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def project_url(self) -> str:
        return f"https://osf.io/{self.project_id}/"


def parse_project_id(value: str) -> str:
    """
    Extract a project id from an id or an OSF project URL.

    'https://osf.io/abc12/files' and 'abc12' both give 'abc12'.
    """
    value = value.strip()
    match = re.search(r"osf\.io/([A-Za-z0-9]+)", value)
    if match:
        return match.group(1)
    return value.strip("/")


def check_upload_inputs(dataset_dir: Optional[Path], project_id: str, token: str) -> list[str]:
    """
    Check the inputs of the upload form.

    Returns:
        Messages for every missing input; empty when the upload can start.
    """
    problems = []
    if dataset_dir is None or not Path(dataset_dir).is_dir():
        problems.append(MISSING_DIRECTORY)
    if not project_id.strip():
        problems.append(MISSING_PROJECT_ID)
    if not token.strip():
        problems.append(MISSING_TOKEN)
    return problems


def iter_upload_files(root: Path) -> list[Path]:
    """
    List the files of a dataset that should be uploaded.

    Hidden files and folders, caches and VCS metadata are skipped.

    Returns:
        Paths relative to root, sorted.
    """
    files = []
    for path in sorted(root.rglob("*")):
        rel_path = path.relative_to(root)
        if any(part.startswith('.') or part in SKIPPED_DIRECTORIES for part in rel_path.parts):
            continue
        if path.is_file():
            files.append(rel_path)
    return files


def find_readme(root: Path) -> Optional[Path]:
    """Return the README at the top of a dataset, if there is one."""
    for path in sorted(Path(root).iterdir()):
        if path.is_file() and path.name.lower() in README_NAMES:
            return path
    return None


def generate_readme(root: Path, today: Optional[date] = None) -> str:
    """
    Write a Markdown README describing a dataset.

    Name and description come from dataset_description.json; the data files
    are listed from the data/ folder.

    Args:
        root: Dataset root directory.
        today: Date shown in the footer; defaults to today.

    Returns:
        README content.
    """
    root = Path(root)
    try:
        description = load_json(root / DESCRIPTION_FILENAME)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read dataset description for README: {e}")
        description = {}

    name = str(description.get("name") or root.name)
    summary = str(description.get("description") or "")

    data_dir = root / "data"
    data_files = []
    data_dirs = []
    if data_dir.is_dir():
        for path in sorted(data_dir.rglob("*")):
            rel_path = path.relative_to(data_dir).as_posix()
            if path.is_dir():
                data_dirs.append(rel_path)
            elif path.suffix.lower() in README_DATA_EXTENSIONS:
                data_files.append(rel_path)

    lines = [f"# {name}", ""]
    if summary:
        lines += [summary, ""]
    lines += [
        "## Dataset Structure",
        "",
        "This is a Psych-DS compliant dataset containing:",
        "- `dataset_description.json`: Metadata about the dataset",
        f"- `data/`: Directory containing {len(data_files)} data file(s)",
    ]
    if data_dirs:
        lines.append(f"  - Subdirectories: {', '.join(data_dirs)}")
    lines.append("")

    if data_files:
        lines += ["## Files", "", "### Data Files"]
        lines += [f"- `{rel_path}`" for rel_path in data_files]
        lines.append("")

    lines += [
        "## Psych-DS Standard",
        "",
        "This dataset follows the Psych-DS standard for organizing behavioral datasets.",
        "Learn more at: https://psych-ds.github.io/",
        "",
        "## Citation",
        "",
        "Please cite this dataset as specified in the dataset_description.json file.",
        "",
        "---",
        f"*Generated on {(today or date.today()).strftime('%B %d, %Y')} by psychds*",
    ]
    return "\n".join(lines) + "\n"


def make_session(token: str, max_retries: int = 3, backoff_factor: float = 0.5) -> requests.Session:
    """
    Create an authenticated requests.Session with retry and backoff on reads.

    Args:
        token: OSF personal access token.
        max_retries: Total retry attempts per GET request.
        backoff_factor: Exponential backoff multiplier.

    Returns:
        Configured session.
    """
    session = requests.Session()
    session.headers.update({
        "Authorization": f"Bearer {token}",
        "User-Agent": "psychds/0.1",
    })

    retry = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class OSFClient:
    """
    Minimal OSF API client for creating projects and uploading files.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        files_url: str = DEFAULT_FILES_URL,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            token: OSF personal access token.
            api_url: Base URL of the OSF API.
            files_url: Base URL of the storage service.
            timeout: Seconds to wait for each request.
            session: Session to use; one is created from the token when None.
        """
        if not token.strip():
            raise OSFError(MISSING_TOKEN)
        self._api_url = api_url.rstrip("/")
        self._files_url = files_url.rstrip("/")
        self._timeout = timeout
        self._session = session if session is not None else make_session(token.strip())

    def _request(self, method: str, url: str, expected: tuple[int, ...], **kwargs) -> requests.Response:
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise OSFError(f"Could not reach OSF: {e}") from e

        if response.status_code not in expected:
            raise OSFError(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _json(response: requests.Response, *keys: str) -> Any:
        """
        Read a value from a JSON response body by following keys.

        Raises:
            OSFError: If the body is not JSON or a key is missing.
        """
        try:
            value = response.json()
            for key in keys:
                value = value[key]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise OSFError(
                f"OSF returned an unexpected response (missing {'/'.join(keys) or 'body'})",
                status_code=response.status_code,
            ) from e
        return value

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        if response.status_code == 401:
            return "OSF rejected the token. Check that it is correct and has not expired."
        if response.status_code == 403:
            return "The token does not have permission for this project."
        if response.status_code == 404:
            return "The OSF project was not found. Check the project ID."
        try:
            errors = response.json().get("errors") or []
            detail = errors[0].get("detail") if errors else None
        except (ValueError, AttributeError, IndexError):
            detail = None
        return f"OSF request failed ({response.status_code}): {detail or response.reason}"

    def _storage_url(self, project_id: str, path: str = "/") -> str:
        return f"{self._files_url}/resources/{project_id}/providers/{STORAGE_PROVIDER}{path}"

    def test_connection(self) -> str:
        """
        Check that the token is accepted.

        Returns:
            Full name of the token's user.

        Raises:
            OSFError: If authentication fails.
        """
        response = self._request("GET", f"{self._api_url}/users/me/", expected=(200,))
        full_name = self._json(response, "data", "attributes").get("full_name", "")
        logger.info(f"Authenticated with OSF as {full_name}")
        return full_name

    def create_project(self, title: str, description: str = "", public: bool = False) -> str:
        """
        Create a new OSF project.

        Args:
            title: Project title.
            description: Project description.
            public: Whether the project is publicly visible.

        Returns:
            The new project id.
        """
        payload = {
            "data": {
                "type": "nodes",
                "attributes": {
                    "title": title,
                    "description": description,
                    "category": "project",
                    "public": public,
                },
            }
        }
        response = self._request("POST", f"{self._api_url}/nodes/", expected=(201,), json=payload)
        project_id = self._json(response, "data", "id")
        logger.info(f"Created OSF project {project_id}: {title}")
        return project_id

    def check_storage(self, project_id: str) -> dict[str, Any]:
        """
        Find the OSF storage provider of a project.

        Raises:
            OSFError: If the project has no osfstorage provider.
        """
        response = self._request("GET", f"{self._api_url}/nodes/{project_id}/files/", expected=(200,))
        for provider in self._json(response, "data"):
            if provider.get("attributes", {}).get("provider") == STORAGE_PROVIDER or provider.get("id", "").endswith(STORAGE_PROVIDER):
                return provider
        raise OSFError("The project has no OSF Storage. Enable it in the project settings.")

    def list_folder(self, project_id: str, path: str = "/") -> list[dict[str, Any]]:
        """
        List the entries of a storage folder.

        Returns:
            Entries with their 'name', 'kind' and 'path' attributes.
        """
        response = self._request("GET", self._storage_url(project_id, path), expected=(200,))
        return [entry.get("attributes", {}) for entry in self._json(response, "data")]

    def _find_entry(self, project_id: str, parent_path: str, name: str, kind: str) -> str:
        for entry in self.list_folder(project_id, parent_path):
            if entry.get("name") == name and entry.get("kind") == kind and entry.get("path"):
                return entry["path"]
        raise OSFError(f"Could not find existing {kind} '{name}' on OSF.")

    def create_folder(self, project_id: str, name: str, parent_path: str = "/") -> str:
        """
        Create a folder, or find it if it already exists.

        Args:
            project_id: OSF project id.
            name: Folder name.
            parent_path: Storage path of the parent folder.

        Returns:
            Storage path of the folder (ends with '/').
        """
        response = self._request(
            "PUT", self._storage_url(project_id, parent_path), expected=(201, 409),
            params={"kind": "folder", "name": name},
        )
        if response.status_code == 409:
            logger.debug(f"Folder already exists on OSF: {name}")
            return self._find_entry(project_id, parent_path, name, "folder")
        return self._json(response, "data", "attributes", "path")

    def _put_file(self, project_id: str, name: str, open_body: Callable[[], Union[bytes, IO[bytes]]],
                  parent_path: str, overwrite: bool) -> str:
        """Upload content under a name, replacing an existing file when allowed."""
        body = open_body()
        try:
            response = self._request(
                "PUT", self._storage_url(project_id, parent_path), expected=(200, 201, 409),
                params={"kind": "file", "name": name}, data=body,
            )
        finally:
            if hasattr(body, "close"):
                body.close()

        if response.status_code == 409:
            if not overwrite:
                raise OSFError(f"A file named '{name}' already exists on OSF.", status_code=409)
            existing = self._find_entry(project_id, parent_path, name, "file")
            body = open_body()
            try:
                response = self._request(
                    "PUT", self._storage_url(project_id, existing), expected=(200, 201),
                    params={"kind": "file"}, data=body,
                )
            finally:
                if hasattr(body, "close"):
                    body.close()

        return self._json(response, "data", "attributes", "path")

    def upload_file(self, project_id: str, local_path: Path, parent_path: str = "/", overwrite: bool = True) -> str:
        """
        Upload one file.

        Args:
            project_id: OSF project id.
            local_path: File to upload.
            parent_path: Storage path of the destination folder.
            overwrite: Replace the file when one with the same name exists.

        Returns:
            Storage path of the uploaded file.
        """
        return self._put_file(project_id, local_path.name, lambda: open(local_path, 'rb'), parent_path, overwrite)

    def upload_text(self, project_id: str, name: str, text: str, parent_path: str = "/", overwrite: bool = True) -> str:
        """Upload generated text as a UTF-8 file; see upload_file."""
        content = text.encode('utf-8')
        return self._put_file(project_id, name, lambda: content, parent_path, overwrite)

    def upload_dataset(
        self,
        project_id: str,
        root: Path,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
        create_readme: bool = False,
    ) -> UploadReport:
        """
        Upload a dataset directory, recreating its folder structure.

        A failed file is recorded in the report and the upload continues.

        Args:
            project_id: OSF project id or URL.
            root: Dataset root directory.
            progress_callback: Optional callback(current, total, relative_path).
            create_readme: Upload a generated README.md when the dataset has no README.

        Returns:
            UploadReport listing uploaded and failed files.

        Raises:
            OSFError: If the project or its storage cannot be reached.
        """
        project_id = parse_project_id(project_id)
        if not project_id:
            raise OSFError(MISSING_PROJECT_ID)

        self.check_storage(project_id)

        report = UploadReport(project_id=project_id)
        folders: dict[Path, str] = {Path(): "/"}
        files = iter_upload_files(root)
        readme = create_readme and find_readme(root) is None
        total = len(files) + (1 if readme else 0)

        for i, rel_path in enumerate(files, start=1):
            display = rel_path.as_posix()
            try:
                parent_path = self._ensure_folders(project_id, rel_path.parent, folders)
                self.upload_file(project_id, root / rel_path, parent_path)
                report.uploaded.append(display)
                logger.info(f"Uploaded {display}")
            except (OSFError, OSError) as e:
                report.failed[display] = str(e)
                logger.error(f"Failed to upload {display}: {e}")

            if progress_callback:
                progress_callback(i, total, display)

        if readme:
            try:
                self.upload_text(project_id, README_FILENAME, generate_readme(root))
                report.uploaded.append(README_FILENAME)
                logger.info(f"Uploaded generated {README_FILENAME}")
            except OSFError as e:
                report.failed[README_FILENAME] = str(e)
                logger.error(f"Failed to upload generated {README_FILENAME}: {e}")
            if progress_callback:
                progress_callback(total, total, README_FILENAME)

        return report

    def _ensure_folders(self, project_id: str, rel_dir: Path, folders: dict[Path, str]) -> str:
        """Create the folders of rel_dir parent-first and return its storage path."""
        if rel_dir in folders:
            return folders[rel_dir]
        parent_path = self._ensure_folders(project_id, rel_dir.parent, folders)
        folders[rel_dir] = self.create_folder(project_id, rel_dir.name, parent_path)
        return folders[rel_dir]
