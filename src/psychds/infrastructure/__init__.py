"""
Infrastructure layer package.

This package contains modules for interacting with the outside world:
- Filesystem scans and CSV introspection
- File tree construction for the validator
- External validator and OSF storage access
- Dependency preflight checks
- Logging configuration and path utilities

Modules here must not import GUI frameworks (PySide6, Qt, etc.).
"""
