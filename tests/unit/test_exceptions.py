from __future__ import annotations

from pathlib import Path

from moneybook.exceptions import (
    BackupError,
    MoneyBookError,
    NotFoundError,
    PartialRestoreError,
    StorageWriteError,
    WebDavError,
)


def test_error_details() -> None:
    error = NotFoundError("Account missing", {"account_id": "acc1"})

    assert isinstance(error, MoneyBookError)
    assert error.details == {"account_id": "acc1"}
    assert "Account missing" in str(error)


def test_storage_write_error_path() -> None:
    error = StorageWriteError("disk full", "/data/config/settings.json")

    assert error.path == Path("/data/config/settings.json")
    assert error.details == {"path": str(Path("/data/config/settings.json"))}


def test_backup_error_archive_optional() -> None:
    assert BackupError("failed").archive is None
    assert BackupError("failed", "b.zip").archive == Path("b.zip")


def test_partial_restore_error() -> None:
    rolled_back = PartialRestoreError("boom", rolled_back=True)
    stuck = PartialRestoreError("boom", rolled_back=False, safety_copy="/data/.safety")

    assert rolled_back.rolled_back is True
    assert rolled_back.safety_copy is None
    assert stuck.safety_copy == Path("/data/.safety")
    assert stuck.details["rolled_back"] is False


def test_webdav_error_status() -> None:
    assert WebDavError("denied", status_code=401).status_code == 401
