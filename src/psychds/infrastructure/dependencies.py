"""
Dependency and environment preflight checks.

Run once at startup. A missing required package blocks startup; everything
else (optional packages, version conflicts, an old interpreter, no PDF
backend) only produces warnings.
"""

import shutil
import sys
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version as get_version
from typing import Callable, Optional

from packaging.version import InvalidVersion, Version

from ..config.settings import SettingsManager, get_settings_manager
from ..core.errors import PreflightError
from .logging_config import get_logger

logger = get_logger(__name__)


MINIMUM_PYTHON = (3, 10)

# Distribution name -> minimum version
REQUIRED_PACKAGES = {
    "PySide6": "6.5",
    "qt-material": "2.14",
    "requests": "2.28",
    "packaging": "21.0",
}

# Distribution name -> what it adds
OPTIONAL_PACKAGES = {
    "weasyprint": "PDF export of the HTML data dictionary",
}

# Pairs of distributions whose versions must be identical
MATCHED_VERSIONS = [
    ("PySide6", "shiboken6"),
]

VersionLookup = Callable[[str], Optional[str]]


def installed_version(distribution: str) -> Optional[str]:
    """Return the installed version of a distribution, or None if absent."""
    try:
        return get_version(distribution)
    except PackageNotFoundError:
        return None


@dataclass
class OutdatedPackage:
    name: str
    installed: str
    minimum: str


@dataclass
class PreflightReport:
    """Findings of the startup checks."""

    skipped: bool = False
    missing_required: list[str] = field(default_factory=list)
    missing_optional: dict[str, str] = field(default_factory=dict)
    outdated: list[OutdatedPackage] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    pdf_backend: Optional[str] = None

    def is_fatal(self, startup_mode: str = "recommended") -> bool:
        """
        Decide whether startup must be blocked.

        Args:
            startup_mode: 'minimal' or 'recommended'.
        """
        if self.skipped or startup_mode == "minimal":
            return False
        return bool(self.missing_required)

    def summary_lines(self) -> list[str]:
        """Human-readable lines describing every finding."""
        lines = []
        if self.missing_required:
            lines.append(f"Missing required packages: {', '.join(self.missing_required)}")
            lines.append(f"Install them with: pip install {' '.join(self.missing_required)}")
        for package in self.outdated:
            lines.append(f"{package.name} {package.installed} is older than the required {package.minimum}")
        lines.extend(self.conflicts)
        for name, purpose in self.missing_optional.items():
            lines.append(f"Optional package {name} is not installed ({purpose})")
        lines.extend(self.warnings)
        return lines


def _parse(value: str) -> Optional[Version]:
    try:
        return Version(value)
    except InvalidVersion:
        return None


def check_packages(report: PreflightReport, lookup: VersionLookup = installed_version) -> None:
    """Record missing and outdated required packages and missing optional ones."""
    for name, minimum in REQUIRED_PACKAGES.items():
        found = lookup(name)
        if found is None:
            report.missing_required.append(name)
            continue
        parsed = _parse(found)
        if parsed is not None and parsed < Version(minimum):
            report.outdated.append(OutdatedPackage(name, found, minimum))

    for name, purpose in OPTIONAL_PACKAGES.items():
        if lookup(name) is None:
            report.missing_optional[name] = purpose


def check_conflicts(report: PreflightReport, lookup: VersionLookup = installed_version) -> None:
    """Record distributions whose versions must match but don't."""
    for first, second in MATCHED_VERSIONS:
        first_version, second_version = lookup(first), lookup(second)
        if first_version is None or second_version is None:
            continue
        if _parse(first_version) != _parse(second_version):
            report.conflicts.append(
                f"Version conflict: {first} {first_version} requires {second} {first_version}, "
                f"but {second_version} is installed"
            )


def check_python(report: PreflightReport, version_info: tuple[int, ...] = tuple(sys.version_info[:2])) -> None:
    """Warn when the interpreter is older than the supported minimum."""
    if tuple(version_info[:2]) < MINIMUM_PYTHON:
        required = ".".join(str(part) for part in MINIMUM_PYTHON)
        running = ".".join(str(part) for part in version_info[:2])
        report.warnings.append(f"Python {required} or newer is recommended (running {running})")


def find_pdf_backend(lookup: VersionLookup = installed_version) -> Optional[str]:
    """
    Find a way to turn HTML or LaTeX output into PDF.

    Returns:
        'pdflatex', 'weasyprint', or None when neither is available.
    """
    if shutil.which("pdflatex"):
        return "pdflatex"
    if lookup("weasyprint") is not None:
        return "weasyprint"
    return None


def check_pdf_capability(
    manager: Optional[SettingsManager] = None,
    lookup: VersionLookup = installed_version,
) -> tuple[bool, Optional[str]]:
    """
    Look for a PDF backend at most once per process.

    Args:
        manager: Settings manager holding the pdf_check_done flag.
        lookup: Version lookup, replaceable in tests.

    Returns:
        Tuple of (checked, backend). checked is False when the check already
        ran earlier in this process.
    """
    manager = manager or get_settings_manager()
    if manager.get().pdf_check_done:
        return False, None

    backend = find_pdf_backend(lookup)
    manager.set_flag("pdf_check_done", True)
    if backend is None:
        logger.info("No PDF backend found; data dictionaries can be printed to PDF from a browser")
    else:
        logger.info(f"PDF backend available: {backend}")
    return True, backend


def run_preflight(
    manager: Optional[SettingsManager] = None,
    lookup: VersionLookup = installed_version,
    version_info: tuple[int, ...] = tuple(sys.version_info[:2]),
    force: bool = False,
) -> PreflightReport:
    """
    Run the startup checks.

    The checks run once per process; later calls return a skipped report
    unless force is set.

    Args:
        manager: Settings manager with the startup flags.
        lookup: Version lookup, replaceable in tests.
        version_info: Interpreter version, replaceable in tests.
        force: Run even if skipped by settings or already done.

    Returns:
        The preflight report.

    Raises:
        PreflightError: If the findings are fatal for the configured startup mode.
    """
    manager = manager or get_settings_manager()
    settings = manager.get()

    if not force and (settings.skip_startup_check or settings.dependency_check_done
                      or settings.startup_mode == "minimal"):
        logger.debug("Skipping startup checks")
        return PreflightReport(skipped=True)

    report = PreflightReport()
    check_python(report, version_info)
    check_packages(report, lookup)
    check_conflicts(report, lookup)

    checked, backend = check_pdf_capability(manager, lookup)
    if checked:
        report.pdf_backend = backend
        if backend is None:
            report.warnings.append(
                "No PDF backend found (pdflatex or weasyprint). "
                "Open the HTML data dictionary in a browser and print it to PDF instead."
            )

    manager.set_flag("dependency_check_done", True)

    for line in report.summary_lines():
        logger.warning(line)

    if report.is_fatal(settings.startup_mode):
        raise PreflightError("\n".join(report.summary_lines()))

    if not report.summary_lines():
        logger.info("All dependency checks passed")
    return report
