"""
Exception types raised by the core and infrastructure layers.

The UI and CLI catch these and show their message to the user as is, so
messages are written as complete sentences.
"""


class PsychDSError(Exception):
    """Base class for all application errors."""


class PreflightError(PsychDSError):
    """A required dependency is missing and the application cannot start."""


class KeywordError(PsychDSError, ValueError):
    """A filename keyword or keyword value is not valid."""


class DatasetCreationError(PsychDSError):
    """The dataset directory could not be created."""


class ValidatorError(PsychDSError):
    """The external validator could not be run or returned unusable output."""


class OSFError(PsychDSError):
    """A request to the OSF API failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
