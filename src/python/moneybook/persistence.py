"""Persistence interface for MoneyBook storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any

from moneybook.schema import Collection


class PersistenceBackend(ABC):
    """Abstract interface for whole-document collection storage."""

    @abstractmethod
    def __init__(self, root: str | Path) -> None:
        """Initialize the backend with a data directory."""

    @abstractmethod
    def locked(
        self, collection: Collection, partition_key: str | None = None
    ) -> AbstractContextManager[None]:
        """Serialize read-modify-write cycles on one collection document."""

    @abstractmethod
    def load(
        self,
        collection: Collection,
        partition_key: str | None = None,
        default: Any = None,
    ) -> Any:
        """Return the stored document, or persist and return ``default``."""

    @abstractmethod
    def save(
        self,
        collection: Collection,
        value: Any,
        partition_key: str | None = None,
    ) -> None:
        """Replace the stored document."""

    @abstractmethod
    def add_to(
        self,
        collection: Collection,
        record: Any,
        partition_key: str | None = None,
    ) -> None:
        """Append a record to a list collection."""

    @abstractmethod
    def update_in(
        self,
        collection: Collection,
        record: Any,
        partition_key: str | None = None,
    ) -> bool:
        """Replace the record with the same id; False when none matched."""

    @abstractmethod
    def remove_from(
        self,
        collection: Collection,
        record_id: str,
        partition_key: str | None = None,
    ) -> bool:
        """Drop the record with ``record_id``; False when none matched."""
