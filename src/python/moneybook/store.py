"""JSON file document store for MoneyBook collections."""

from __future__ import annotations

from contextlib import contextmanager
import datetime as dt
import logging
import os
from pathlib import Path
import tempfile
import threading
from typing import Any, Iterator

from moneybook import codec
from moneybook.exceptions import DecodeError, StorageWriteError
from moneybook.persistence import PersistenceBackend
from moneybook.schema import Collection

logger = logging.getLogger(__name__)

CORRUPT_SUFFIX_FORMAT = "%Y%m%d%H%M%S"
CORRUPT_MARKER = ".corrupt-"
TEMP_SUFFIX = ".tmp"


class DocumentStore(PersistenceBackend):
    """Whole-document JSON storage rooted at a data directory.

    Every save replaces the full document through a temporary file and an
    atomic rename. Nothing is cached between calls. Read-modify-write cycles
    on a single file are serialized by a per-file re-entrant lock; there is
    no protection against other processes writing the same tree.
    """

    def __init__(self, root: str | Path) -> None:
        """Create a store over ``root``; the directory is created lazily."""
        self.root = Path(root)
        self._locks: dict[Path, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, collection: Collection, partition_key: str | None = None) -> Path:
        """Return the file backing ``collection``."""
        return self.root.joinpath(*collection.relative_path(partition_key).parts)

    def _lock_for(self, path: Path) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = threading.RLock()
                self._locks[path] = lock
            return lock

    @contextmanager
    def locked(
        self, collection: Collection, partition_key: str | None = None
    ) -> Iterator[None]:
        """Hold the lock for one collection document."""
        with self._lock_for(self.path_for(collection, partition_key)):
            yield

    def load(
        self,
        collection: Collection,
        partition_key: str | None = None,
        default: Any = None,
    ) -> Any:
        """Load a collection document.

        A missing or blank file yields ``default`` (the collection's empty
        value when not given), which is then written so later reads see the
        same document. A corrupt file is moved aside and treated as missing.
        A read error yields ``default`` without writing anything.
        """
        path = self.path_for(collection, partition_key)
        if default is None:
            default = collection.empty()
        with self.locked(collection, partition_key):
            try:
                text = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                text = ""
            except OSError as exc:
                logger.warning("Could not read %s, using default: %s", path, exc)
                return default

            if text.strip():
                try:
                    return collection.decode(codec.loads(text))
                except DecodeError as exc:
                    logger.warning("Corrupt document %s, using default: %s", path, exc)
                    self._quarantine(path)

            try:
                self.save(collection, default, partition_key)
            except StorageWriteError as exc:
                logger.warning("Could not persist default for %s: %s", path, exc)
            return default

    def save(
        self,
        collection: Collection,
        value: Any,
        partition_key: str | None = None,
    ) -> None:
        """Replace a collection document atomically.

        Raises:
            StorageWriteError: If the document could not be written. The
                previous file, if any, is unchanged.
        """
        path = self.path_for(collection, partition_key)
        text = codec.dumps(collection.encode(value))
        with self.locked(collection, partition_key):
            self._write_atomic(path, text)
        logger.debug("Saved %s", path)

    def add_to(
        self,
        collection: Collection,
        record: Any,
        partition_key: str | None = None,
    ) -> None:
        """Append ``record`` to a list collection."""
        with self.locked(collection, partition_key):
            items = list(self.load(collection, partition_key))
            items.append(record)
            self.save(collection, items, partition_key)

    def update_in(
        self,
        collection: Collection,
        record: Any,
        partition_key: str | None = None,
    ) -> bool:
        """Replace the record sharing ``record.id``.

        Returns False, writing nothing, when no record matches.
        """
        with self.locked(collection, partition_key):
            items = list(self.load(collection, partition_key))
            for index, item in enumerate(items):
                if item.id == record.id:
                    items[index] = record
                    self.save(collection, items, partition_key)
                    return True
        return False

    def remove_from(
        self,
        collection: Collection,
        record_id: str,
        partition_key: str | None = None,
    ) -> bool:
        """Drop the record with ``record_id``.

        Returns False, writing nothing, when no record matches.
        """
        with self.locked(collection, partition_key):
            items = list(self.load(collection, partition_key))
            remaining = [item for item in items if item.id != record_id]
            if len(remaining) == len(items):
                return False
            self.save(collection, remaining, partition_key)
        return True

    @staticmethod
    def _write_atomic(path: Path, text: str) -> None:
        tmp_path: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=TEMP_SUFFIX, dir=path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise StorageWriteError(f"Failed to write {path}: {exc}", path) from exc

    @staticmethod
    def _quarantine(path: Path) -> None:
        stamp = dt.datetime.now().strftime(CORRUPT_SUFFIX_FORMAT)
        target = path.with_name(f"{path.name}{CORRUPT_MARKER}{stamp}")
        try:
            os.replace(path, target)
        except OSError as exc:
            logger.warning("Could not move corrupt document %s aside: %s", path, exc)
        else:
            logger.warning("Moved corrupt document to %s", target)
