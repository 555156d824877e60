"""Error hierarchy for clone operations.

Every failure a single clone can report derives from ``CloneError``. The CLI
maps each class to an exit code so callers can tell resolution problems apart
from network and filesystem ones.
"""

from __future__ import annotations

from constants import ExitCodes


class CloneError(Exception):
    """Base class for clone failures."""

    exit_code: ExitCodes = ExitCodes.FILE_ERROR


class VersionParseError(CloneError, ValueError):
    """Raised when a requested version is not a valid semantic version."""

    exit_code = ExitCodes.RESOLUTION_ERROR

    def __init__(self, version: str, reason: str = "") -> None:
        self.version = version
        message = f"invalid version '{version}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PackageNotFoundError(CloneError):
    """Raised when no package matches the query."""

    exit_code = ExitCodes.RESOLUTION_ERROR


class UnsupportedQueryError(CloneError):
    """Raised when a source cannot answer the query (e.g. list all crates of a registry)."""

    exit_code = ExitCodes.RESOLUTION_ERROR


class DestinationConflictError(CloneError):
    """Raised when the clone destination exists and is not empty."""

    def __init__(self, path) -> None:
        self.path = path
        super().__init__(
            f"destination path '{path}' already exists and is not an empty directory."
        )


class SourceError(CloneError):
    """Raised when a source cannot be loaded, refreshed or downloaded from."""


class ManifestError(SourceError):
    """Raised when a Cargo.toml manifest cannot be read."""


class RegistryError(CloneError):
    """Raised on network, HTTP status or payload errors talking to a registry."""

    exit_code = ExitCodes.CONNECTION_ERROR

    def __init__(self, message: str, status_code=None) -> None:
        self.status_code = status_code
        super().__init__(message)


def exit_code_for(exc: BaseException) -> int:
    """Map an exception raised by a clone operation to a process exit code."""
    if isinstance(exc, CloneError):
        return exc.exit_code.value
    return ExitCodes.FILE_ERROR.value
