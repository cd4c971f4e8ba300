"""
Command-line interface for psychds.

This module provides a CLI for the non-interactive parts of the application:
dependency checks, validation, file tree inspection, data dictionary
generation and OSF upload. The 'gui' command starts the wizard.
"""

import argparse
import json
import logging
import sys
import webbrowser
from pathlib import Path

from .. import __version__
from ..config.settings import get_settings, get_settings_manager
from ..core.description import DESCRIPTION_FILENAME, load_json
from ..core.dictionary import build_data_dictionary, merge_existing_metadata
from ..core.dictionary_html import write_dictionary_html
from ..core.errors import OSFError, PreflightError
from ..core.models import DatasetInfo
from ..core.validation import iter_steps
from ..infrastructure.csv_loader import list_csv_files
from ..infrastructure.dependencies import run_preflight
from ..infrastructure.file_tree import build_file_tree, format_tree, summarize_tree
from ..infrastructure.logging_config import setup_logging, get_logger
from ..infrastructure.osf_client import MISSING_PROJECT_ID, OSFClient, check_upload_inputs
from ..infrastructure.paths import get_reports_directory
from ..infrastructure.validator_backend import validate_directory


logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="psychds",
        description="Create, validate and upload Psych-DS datasets"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"psychds {__version__}"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    gui_parser = subparsers.add_parser("gui", help="Start the dataset creation wizard")
    gui_parser.add_argument("directory", nargs="?", type=Path, help="Data directory to open")

    subparsers.add_parser("check-deps", help="Check dependencies and PDF support")

    validate_parser = subparsers.add_parser("validate", help="Validate a Psych-DS dataset")
    validate_parser.add_argument("dataset", type=Path, help="Path to the dataset root")
    validate_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    tree_parser = subparsers.add_parser("tree", help="Show the file tree sent to the validator")
    tree_parser.add_argument("dataset", type=Path, help="Path to the dataset root")
    tree_parser.add_argument("--json", action="store_true", help="Print the tree as JSON")

    dict_parser = subparsers.add_parser("dictionary", help="Generate an HTML data dictionary")
    dict_parser.add_argument("dataset", type=Path, help="Path to the dataset root")
    dict_parser.add_argument("-o", "--output", type=Path, help="Output HTML file")
    dict_parser.add_argument("--no-missing", action="store_true", help="Leave out missing value codes")
    dict_parser.add_argument("--open", action="store_true", help="Open the result in a web browser")

    upload_parser = subparsers.add_parser("upload", help="Upload a dataset to OSF")
    upload_parser.add_argument("dataset", type=Path, help="Path to the dataset root")
    upload_parser.add_argument("--project", default="", help="OSF project ID or URL")
    upload_parser.add_argument("--token", default="", help="OSF personal access token")
    upload_parser.add_argument("--create", metavar="TITLE", help="Create a new project with this title")
    upload_parser.add_argument("--readme", action="store_true", help="Upload a generated README.md if the dataset has none")

    return parser


def cmd_gui(args: argparse.Namespace) -> int:
    """Start the GUI application."""
    from ..ui.app import main as gui_main
    gui_argv = [sys.argv[0]]
    if args.directory:
        gui_argv.append(str(args.directory))
    return gui_main(gui_argv)


def cmd_check_deps(args: argparse.Namespace) -> int:
    """
    Run the dependency checks and print the findings.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 when nothing is fatal).
    """
    manager = get_settings_manager()

    try:
        report = run_preflight(manager, force=True)
    except PreflightError as e:
        print(f"✗ {e}")
        return 1

    lines = report.summary_lines()
    for line in lines:
        print(f"! {line}")
    if report.pdf_backend:
        print(f"✓ PDF backend: {report.pdf_backend}")
    if not lines:
        print("✓ All dependency checks passed")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """
    Validate a dataset with the external validator.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for a valid dataset).
    """
    dataset_path = args.dataset

    if not dataset_path.is_dir():
        logger.error(f"Dataset path does not exist: {dataset_path}")
        return 1

    result = validate_directory(dataset_path)

    if args.json:
        print(json.dumps({
            "valid": result.valid,
            "errors": result.errors,
            "warnings": result.warnings,
            "steps": {key: vars(status) for key, status in result.tracker.status.items()},
        }, indent=2))
        return 0 if result.valid else 1

    for step in iter_steps():
        status = result.tracker.status[step.key]
        mark = "⋯" if not status.complete else ("✓" if status.success else "✗")
        indent = "    " if step not in result.tracker.steps else ""
        print(f"{indent}{mark} {result.tracker.message_for(step)}")
        if status.issue:
            print(f"{indent}    Issue: {status.issue}")

    for error in result.errors:
        print(f"✗ {error}")
    for warning in result.warnings:
        print(f"! {warning}")

    print("✓ Dataset is valid" if result.valid else "✗ Dataset is not valid")
    return 0 if result.valid else 1


def cmd_tree(args: argparse.Namespace) -> int:
    """
    Print the file tree of a dataset.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    try:
        tree = build_file_tree(args.dataset)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    if args.json:
        print(json.dumps(tree, indent=2))
        return 0

    print(f"{args.dataset.name}/")
    for line in format_tree(tree):
        print(line)
    summary = summarize_tree(tree)
    print(f"\n{summary.files} files, {summary.dirs} directories")
    return 0


def cmd_dictionary(args: argparse.Namespace) -> int:
    """
    Generate an HTML data dictionary for a dataset.

    Variables are inferred from the CSV files under data/ and overlaid with
    the variableMeasured entries of dataset_description.json.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    dataset_path = args.dataset
    data_dir = dataset_path / "data"
    if not data_dir.is_dir():
        logger.error(f"No data directory found in {dataset_path}")
        return 1

    files = list_csv_files(data_dir)
    dictionary = build_data_dictionary(data_dir, files)

    info = DatasetInfo(name=dataset_path.name)
    description_path = dataset_path / DESCRIPTION_FILENAME
    if description_path.exists():
        try:
            description = load_json(description_path)
        except ValueError as e:
            logger.error(f"Could not read {description_path}: {e}")
            return 1
        merge_existing_metadata(dictionary, description)
        info.name = description.get("name", info.name)
        info.description = description.get("description", "")
        info.version = description.get("version")

    output = args.output or get_reports_directory() / f"{dataset_path.name}_data_dictionary.html"
    written = write_dictionary_html(dictionary, output, info, include_missing=not args.no_missing)
    print(f"✓ Data dictionary written to {written}")

    if args.open or get_settings().force_browser:
        webbrowser.open(written.resolve().as_uri())
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    """
    Upload a dataset to an OSF project.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 when every file was uploaded).
    """
    project = args.project
    problems = check_upload_inputs(args.dataset, project, args.token)
    if args.create:
        problems = [p for p in problems if p != MISSING_PROJECT_ID]
    if problems:
        for problem in problems:
            print(f"✗ {problem}")
        return 1

    settings = get_settings()
    try:
        client = OSFClient(args.token, api_url=settings.osf_api_url, files_url=settings.osf_files_url)
        user = client.test_connection()
        print(f"✓ Authenticated as {user}")
        if args.create:
            project = client.create_project(args.create)
            print(f"✓ Created project {project}")

        def progress(current: int, total: int, path: str) -> None:
            print(f"[{current}/{total}] {path}")

        report = client.upload_dataset(project, args.dataset, progress_callback=progress, create_readme=args.readme)
    except OSFError as e:
        print(f"✗ {e}")
        return 1

    for path, error in report.failed.items():
        print(f"✗ {path}: {error}")
    print(f"Uploaded {len(report.uploaded)} files to {report.project_url}")
    return 0 if report.success else 1


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    log_level = logging.DEBUG if args.verbose or settings.debug else logging.WARNING
    setup_logging(level=log_level, log_to_file=False)

    handlers = {
        "gui": cmd_gui,
        "check-deps": cmd_check_deps,
        "validate": cmd_validate,
        "tree": cmd_tree,
        "dictionary": cmd_dictionary,
        "upload": cmd_upload,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 0
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
