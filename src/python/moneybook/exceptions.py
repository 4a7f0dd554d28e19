"""Custom exception types for MoneyBook."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class MoneyBookError(Exception):
    """Base class for errors surfaced by the data layer."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class NotFoundError(MoneyBookError):
    """Raised when a requested record does not exist."""


class DecodeError(MoneyBookError):
    """Raised when a stored document cannot be decoded into its record type."""


class StorageWriteError(MoneyBookError):
    """Raised when a collection document could not be written.

    The previous on-disk version of the document is left in place.
    """

    def __init__(self, message: str, path: str | Path) -> None:
        super().__init__(message, {"path": str(path)})
        self.path = Path(path)


class BackupError(MoneyBookError):
    """Raised when creating or exporting a backup archive fails."""

    def __init__(self, message: str, archive: str | Path | None = None) -> None:
        details = {"archive": str(archive)} if archive is not None else {}
        super().__init__(message, details)
        self.archive = Path(archive) if archive is not None else None


class InvalidArchiveError(MoneyBookError):
    """Raised when a backup archive fails validation; live data is untouched."""


class PartialRestoreError(MoneyBookError):
    """Raised when a restore fails after live directories started changing.

    ``rolled_back`` tells whether the pre-restore state was reinstated. When it
    was not, ``safety_copy`` points at the directory holding that state.
    """

    def __init__(
        self,
        message: str,
        rolled_back: bool,
        safety_copy: str | Path | None = None,
    ) -> None:
        details: dict[str, Any] = {"rolled_back": rolled_back}
        if safety_copy is not None:
            details["safety_copy"] = str(safety_copy)
        super().__init__(message, details)
        self.rolled_back = rolled_back
        self.safety_copy = Path(safety_copy) if safety_copy is not None else None


class WebDavError(MoneyBookError):
    """Raised when a WebDAV request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code
