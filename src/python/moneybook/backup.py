"""Backup archives of the MoneyBook data directory.

An archive is a zip file whose entries mirror the collection directories
(``config/settings.json``, ``records/<book>/transactions.json`` ...). Restore
extracts into a staging directory, validates it, takes a safety copy of the
live directories and then swaps directories one by one. If a swap fails the
safety copy is put back automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from enum import Enum
import logging
import os
from pathlib import Path, PurePosixPath
import re
import shutil
import tempfile
from typing import Callable
import zipfile
import zlib

from moneybook.exceptions import (
    BackupError,
    InvalidArchiveError,
    PartialRestoreError,
    WebDavError,
)
from moneybook.schema import BACKUP_DIR, BACKUP_DIRS, REQUIRED_RESTORE_DIRS
from moneybook.store import CORRUPT_MARKER, TEMP_SUFFIX
from moneybook.webdav import WebDavClient

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "backup_"
BACKUP_SUFFIX = ".zip"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
BACKUP_NAME_PATTERN = re.compile(r"^backup_(\d{8}_\d{6})(?:_(\d+))?\.zip$")
DEFAULT_KEEP_COUNT = 5
DEFAULT_REMOTE_DIR = "moneybook"
STAGING_PREFIX = ".restore-staging-"
SAFETY_PREFIX = ".restore-safety-"
# Raised by zipfile for damaged streams, encrypted entries and unknown methods.
UNREADABLE_ARCHIVE_ERRORS = (
    zlib.error,
    EOFError,
    RuntimeError,
    NotImplementedError,
    ValueError,
)


class BackupState(str, Enum):
    IDLE = "IDLE"
    SNAPSHOTTING = "SNAPSHOTTING"
    ARCHIVED = "ARCHIVED"
    VALIDATING = "VALIDATING"
    RESTORING = "RESTORING"
    RESTORED = "RESTORED"
    RESTORE_FAILED = "RESTORE_FAILED"


@dataclass(frozen=True)
class BackupInfo:
    """A local archive and the time it was taken."""
    path: Path
    created_at: dt.datetime
    size: int

    @property
    def formatted_size(self) -> str:
        if self.size < 1024:
            return f"{self.size} B"
        if self.size < 1024 * 1024:
            return f"{self.size // 1024} KB"
        return f"{self.size // (1024 * 1024)} MB"

    @property
    def formatted_date(self) -> str:
        return self.created_at.strftime("%Y-%m-%d %H:%M")


@dataclass(frozen=True)
class RestoreReport:
    """Directories replaced by a successful restore."""
    archive: Path
    restored_dirs: tuple[str, ...]


def _parse_archive_name(name: str) -> tuple[dt.datetime, int] | None:
    match = BACKUP_NAME_PATTERN.match(name)
    if match is None:
        return None
    try:
        stamp = dt.datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return stamp, int(match.group(2) or 0)


def _check_member(name: str) -> None:
    """Reject entries that would land outside the staging directory."""
    member = PurePosixPath(name.replace("\\", "/"))
    if member.is_absolute() or ".." in member.parts or ":" in "".join(member.parts[:1]):
        raise InvalidArchiveError(f"Unsafe archive entry: {name!r}", {"entry": name})


def _is_archivable(path: Path) -> bool:
    """Skip half-written saves and quarantined documents."""
    name = path.name
    if CORRUPT_MARKER in name:
        return False
    return not (name.startswith(".") and name.endswith(TEMP_SUFFIX))


def _discard(path: Path | None) -> None:
    if path is not None:
        shutil.rmtree(path, ignore_errors=True)


class BackupManager:
    """Create, list, export, prune and restore backup archives."""

    def __init__(
        self,
        data_dir: str | Path,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.backup_dir = self.data_dir / BACKUP_DIR
        self.state = BackupState.IDLE
        self._clock = clock

    def _next_archive_path(self) -> Path:
        stamp = self._clock().strftime(TIMESTAMP_FORMAT)
        path = self.backup_dir / f"{BACKUP_PREFIX}{stamp}{BACKUP_SUFFIX}"
        counter = 1
        while path.exists():
            path = self.backup_dir / f"{BACKUP_PREFIX}{stamp}_{counter}{BACKUP_SUFFIX}"
            counter += 1
        return path

    def create_backup(self) -> Path:
        """Snapshot every collection directory into a new local archive.

        Raises:
            BackupError: If the archive could not be written. Source data is
                never modified and no partial archive is left behind.
        """
        self.state = BackupState.SNAPSHOTTING
        partial: Path | None = None
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            target = self._next_archive_path()
            partial = target.with_name(target.name + ".part")
            with zipfile.ZipFile(partial, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for name in BACKUP_DIRS:
                    directory = self.data_dir / name
                    if not directory.is_dir():
                        continue
                    archive.write(directory, name)
                    for path in sorted(directory.rglob("*")):
                        if (path.is_dir() or path.is_file()) and _is_archivable(path):
                            archive.write(path, path.relative_to(self.data_dir).as_posix())
            os.replace(partial, target)
        except OSError as exc:
            if partial is not None:
                try:
                    partial.unlink()
                except OSError:
                    pass
            self.state = BackupState.IDLE
            raise BackupError(f"Backup failed: {exc}") from exc
        self.state = BackupState.ARCHIVED
        logger.info("Created backup %s", target)
        return target

    def export_backup(
        self,
        destination: str | Path | WebDavClient,
        remote_dir: str = DEFAULT_REMOTE_DIR,
    ) -> Path | str:
        """Create a backup and copy it to ``destination``.

        ``destination`` is a file path, an existing directory, or a WebDAV
        client (the archive is uploaded under ``remote_dir``). The local
        archive is removed only once the copy succeeded.

        Returns:
            The exported file path or remote path.

        Raises:
            BackupError: If creating or copying failed. When the copy failed,
                ``error.archive`` is the local archive, which is kept.
        """
        archive = self.create_backup()
        try:
            if isinstance(destination, WebDavClient):
                location: Path | str = f"{remote_dir.strip('/')}/{archive.name}"
                destination.upload_file(location, archive)
            else:
                location = Path(destination)
                if location.is_dir():
                    location = location / archive.name
                location.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(archive, location)
        except (OSError, WebDavError) as exc:
            logger.error("Export of %s failed: %s", archive, exc)
            raise BackupError(
                f"Export failed, local archive kept at {archive}: {exc}", archive
            ) from exc

        try:
            archive.unlink()
        except OSError as exc:
            logger.warning("Exported, but could not remove %s: %s", archive, exc)
        logger.info("Exported backup to %s", location)
        return location

    def restore_from_backup(self, archive: str | Path) -> RestoreReport:
        """Replace live collection directories with those in ``archive``.

        Only directories present in the archive are replaced; the others
        are left as they are.

        Raises:
            InvalidArchiveError: If the archive is unreadable, unsafe, or has
                neither ``config/`` nor ``accounts/``. Nothing was changed.
            BackupError: If the safety copy could not be taken. Nothing was
                changed.
            PartialRestoreError: If swapping directories failed. The live
                directories were reinstated from the safety copy unless
                ``rolled_back`` is False, in which case ``safety_copy`` holds
                the pre-restore state.
        """
        archive = Path(archive)
        self.state = BackupState.VALIDATING
        self.data_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.data_dir))
        try:
            present = self._stage(archive, staging)
        except Exception:
            _discard(staging)
            self.state = BackupState.IDLE
            raise

        try:
            safety = self._take_safety_copy()
        except OSError as exc:
            _discard(staging)
            self.state = BackupState.RESTORE_FAILED
            raise BackupError(f"Could not copy current data before restore: {exc}") from exc

        self.state = BackupState.RESTORING
        try:
            for name in present:
                live = self.data_dir / name
                if live.exists():
                    shutil.rmtree(live)
                shutil.move(str(staging / name), str(live))
                logger.info("Restored %s", name)
        except OSError as exc:
            self.state = BackupState.RESTORE_FAILED
            _discard(staging)
            logger.error("Restore of %s failed, rolling back: %s", archive, exc)
            if self._reinstate(safety, present):
                _discard(safety)
                raise PartialRestoreError(
                    f"Restore failed and was rolled back: {exc}", rolled_back=True
                ) from exc
            raise PartialRestoreError(
                f"Restore failed; previous data kept at {safety}: {exc}",
                rolled_back=False,
                safety_copy=safety,
            ) from exc

        _discard(staging)
        _discard(safety)
        self.state = BackupState.RESTORED
        logger.info("Restored backup %s (%s)", archive, ", ".join(present))
        return RestoreReport(archive=archive, restored_dirs=tuple(present))

    def _stage(self, archive: Path, staging: Path) -> list[str]:
        try:
            with zipfile.ZipFile(archive) as bundle:
                for member in bundle.infolist():
                    _check_member(member.filename)
                bundle.extractall(staging)
        except zipfile.BadZipFile as exc:
            raise InvalidArchiveError(f"Not a backup archive: {archive}") from exc
        except UNREADABLE_ARCHIVE_ERRORS as exc:
            raise InvalidArchiveError(f"Damaged backup archive {archive}: {exc}") from exc
        except OSError as exc:
            raise InvalidArchiveError(f"Cannot read backup archive {archive}: {exc}") from exc

        present = [name for name in BACKUP_DIRS if (staging / name).is_dir()]
        if not any(name in present for name in REQUIRED_RESTORE_DIRS):
            raise InvalidArchiveError(
                f"Backup archive {archive} contains no "
                + " or ".join(f"{name}/" for name in REQUIRED_RESTORE_DIRS)
                + " directory",
                {"archive": str(archive)},
            )
        return present

    def _take_safety_copy(self) -> Path:
        safety = Path(tempfile.mkdtemp(prefix=SAFETY_PREFIX, dir=self.data_dir))
        try:
            for name in BACKUP_DIRS:
                live = self.data_dir / name
                if live.is_dir():
                    shutil.copytree(live, safety / name)
        except OSError:
            _discard(safety)
            raise
        return safety

    def _reinstate(self, safety: Path, names: list[str]) -> bool:
        """Put the safety copy of ``names`` back in place."""
        try:
            for name in names:
                live = self.data_dir / name
                if live.exists():
                    shutil.rmtree(live)
                saved = safety / name
                if saved.is_dir():
                    shutil.copytree(saved, live)
        except OSError as exc:
            logger.error("Rollback failed, safety copy kept at %s: %s", safety, exc)
            return False
        logger.info("Rolled back restore from safety copy")
        return True

    def get_local_backups(self) -> list[BackupInfo]:
        """Local archives, newest first.

        Archives whose name carries no parseable timestamp are dated by
        their modification time.
        """
        if not self.backup_dir.is_dir():
            return []
        ranked: list[tuple[dt.datetime, int, BackupInfo]] = []
        for path in self.backup_dir.iterdir():
            if not (
                path.is_file()
                and path.name.startswith(BACKUP_PREFIX)
                and path.name.endswith(BACKUP_SUFFIX)
            ):
                continue
            stat = path.stat()
            parsed = _parse_archive_name(path.name)
            if parsed is None:
                created_at, sequence = dt.datetime.fromtimestamp(stat.st_mtime), 0
            else:
                created_at, sequence = parsed
            ranked.append((created_at, sequence, BackupInfo(path, created_at, stat.st_size)))
        ranked.sort(key=lambda item: (item[0], item[1], item[2].path.name), reverse=True)
        return [info for _, _, info in ranked]

    def delete_backup(self, path: str | Path) -> bool:
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted backup %s", path)
        return True

    def clean_old_backups(self, keep: int = DEFAULT_KEEP_COUNT) -> list[Path]:
        """Delete all but the ``keep`` newest local archives."""
        if keep < 0:
            raise ValueError("keep must not be negative")
        removed = []
        for info in self.get_local_backups()[keep:]:
            if self.delete_backup(info.path):
                removed.append(info.path)
        return removed
