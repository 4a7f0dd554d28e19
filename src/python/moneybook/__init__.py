"""Public MoneyBook package exports."""

from __future__ import annotations

from moneybook.__version__ import __version__
from moneybook.backup import BackupInfo, BackupManager, BackupState, RestoreReport
from moneybook.client import MoneyBookClient
from moneybook.exceptions import (
    BackupError,
    DecodeError,
    InvalidArchiveError,
    MoneyBookError,
    NotFoundError,
    PartialRestoreError,
    StorageWriteError,
    WebDavError,
)
from moneybook.ledger import LedgerEngine, signed_effect
from moneybook.models import (
    AccountBook,
    AssetAccount,
    AssetType,
    Session,
    Transaction,
    TransactionType,
)
from moneybook.persistence import PersistenceBackend
from moneybook.repository import Repository
from moneybook.store import DocumentStore

__all__ = [
    "__version__",
    "AccountBook",
    "AssetAccount",
    "AssetType",
    "BackupError",
    "BackupInfo",
    "BackupManager",
    "BackupState",
    "DecodeError",
    "DocumentStore",
    "InvalidArchiveError",
    "LedgerEngine",
    "MoneyBookClient",
    "MoneyBookError",
    "NotFoundError",
    "PartialRestoreError",
    "PersistenceBackend",
    "Repository",
    "RestoreReport",
    "Session",
    "StorageWriteError",
    "Transaction",
    "TransactionType",
    "WebDavError",
    "signed_effect",
]
