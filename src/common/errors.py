"""Error taxonomy for the installer.

Every failure that should abort a run derives from ``GpmError`` and carries
the exit code the CLI terminates with.
"""
from __future__ import annotations

from typing import Optional

from constants import ExitCodes


class GpmError(Exception):
    """Base class for fatal installer errors."""

    exit_code = ExitCodes.FILE_ERROR


class RegistryError(GpmError):
    """Registry request failed or returned an unusable document."""

    exit_code = ExitCodes.CONNECTION_ERROR

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.package_name = package_name
        self.status_code = status_code
        self.reason = reason


class IntegrityError(GpmError):
    """Downloaded archive digest does not match the declared one."""

    exit_code = ExitCodes.INTEGRITY_ERROR

    def __init__(self, archive_name: str, expected: str, actual: str):
        super().__init__(
            f'Downloaded file "{archive_name}" has incorrect hash '
            f"(expected {expected}, got {actual})"
        )
        self.archive_name = archive_name
        self.expected = expected
        self.actual = actual


class ResolutionError(GpmError):
    """No published version satisfies the requested range."""

    exit_code = ExitCodes.RESOLUTION_ERROR

    def __init__(self, package_name: str, version_range: str, detail: Optional[str] = None):
        message = f'No version of "{package_name}" satisfies range "{version_range}"'
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.package_name = package_name
        self.version_range = version_range


class ExtractionError(GpmError):
    """Archive could not be decompressed or unpacked."""

    exit_code = ExitCodes.EXTRACTION_ERROR


class FilesystemError(GpmError):
    """Cache, module or bin directory operation failed."""

    exit_code = ExitCodes.FILE_ERROR
