"""
Infrastructure errors

Data problems never raise, they are reported as violations. The errors
below abort a run (or, for remote requests, a single remote check).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.report import ValidationReport


class RegistryError(Exception):
    """Base class for errors raised by the validation suite"""


class RegistryFileNotFoundError(RegistryError, FileNotFoundError):
    """A registry document is missing from the data directory"""


class RegistryParseError(RegistryError, ValueError):
    """A registry document is not valid JSON or has the wrong root shape"""


class MissingCredentialError(RegistryError):
    """A required credential is not configured"""


class RemoteRequestError(RegistryError):
    """An external API request failed after retries or returned errors"""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ValidationFailed(RegistryError):
    """Raised once per run when any check reported violations"""

    def __init__(self, report: ValidationReport):
        self.report = report
        super().__init__(report.summary())
