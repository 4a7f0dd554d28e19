"""Client orchestration layer for MoneyBook."""

from __future__ import annotations

import dataclasses
import datetime as dt
from decimal import Decimal
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Callable

from moneybook.backup import BackupInfo, BackupManager, RestoreReport
from moneybook.exceptions import NotFoundError
from moneybook.ledger import LedgerEngine
from moneybook.models import (
    AccountBook,
    AssetAccount,
    BalanceDrift,
    Session,
    Transaction,
    TransactionType,
    utc_now,
)
from moneybook.repository import Repository
from moneybook.store import DocumentStore
from moneybook.webdav import WebDavClient

# Configure logging
logger = logging.getLogger("moneybook")
log_level = os.environ.get('LOGGING_LEVEL', 'INFO').upper()
logger.setLevel(getattr(logging, log_level, logging.INFO))
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
    logger.addHandler(handler)

CONFIG_FILE_NAME = "mb-config.json"
HOME_ENV = "MONEYBOOK_HOME"
CONFIG_ENV = "MONEYBOOK_CONFIG"
DEFAULT_HOME_NAME = ".moneybook"


def default_home() -> Path:
    """Directory holding the config file and, by default, the data tree."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override)
    return Path.home() / DEFAULT_HOME_NAME


class MoneyBookClient:
    """Coordinate store, ledger and backup operations for one data directory."""

    def __init__(
        self,
        data_dir: str | Path | None = None,
        config_path: str | Path | None = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        """Initialize the client.

        Args:
            data_dir: Root of the collection tree. Falls back to the config
                file's ``data_dir``, then to the MoneyBook home directory.
            config_path: Path to ``mb-config.json``. Falls back to
                ``$MONEYBOOK_CONFIG``, then to the home directory.
            clock: Source of local time for backup archive names.
        """
        self.config_path = self._resolve_config_path(config_path)
        self.config = self._load_config()
        self.data_dir = self._resolve_data_dir(data_dir)
        self.store = DocumentStore(self.data_dir)
        self.repository = Repository(self.store)
        self.ledger = LedgerEngine(self.repository)
        self.backups = BackupManager(self.data_dir, clock=clock)
        self._session: Session | None = None

    def __enter__(self) -> "MoneyBookClient":
        """Resolve the session so the default book exists before use."""
        _ = self.session
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._session = None

    def _resolve_config_path(self, config_path: str | Path | None) -> Path:
        if config_path is not None:
            return Path(config_path)
        override = os.environ.get(CONFIG_ENV)
        if override:
            return Path(override)
        return default_home() / CONFIG_FILE_NAME

    def _load_config(self) -> dict[str, Any]:
        """Load config file if present, else return empty config."""
        if not self.config_path.exists():
            return {}
        try:
            with self.config_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", self.config_path, exc)
            return {}
        if not isinstance(payload, dict):
            return {}
        return payload

    def _resolve_data_dir(self, data_dir: str | Path | None) -> Path:
        if data_dir is not None:
            return Path(data_dir)
        configured = self.config.get("data_dir")
        if isinstance(configured, str) and configured.strip():
            return Path(configured).expanduser()
        return default_home()

    # Session

    @property
    def session(self) -> Session:
        """Current book selection, read once from the stored pointer."""
        if self._session is None:
            self._session = Session(self.repository.get_current_book_id())
        return self._session

    def switch_book(self, book_id: str) -> Session:
        if self.repository.get_account_book(book_id) is None:
            raise NotFoundError(f"Account book {book_id} not found")
        self.repository.set_current_book_id(book_id)
        self._session = Session(book_id)
        logger.info("Switched to account book %s", book_id)
        return self._session

    def list_books(self) -> list[AccountBook]:
        return self.repository.get_account_books()

    # Transactions

    def new_transaction(
        self,
        type: TransactionType | str,
        amount: Decimal | str | int,
        account_id: str,
        category_id: str = "",
        to_account_id: str | None = None,
        date: dt.datetime | dt.date | None = None,
        **fields: Any,
    ) -> Transaction:
        """Build a transaction in the session's book (not yet stored)."""
        return Transaction(
            type=TransactionType(type),
            amount=amount,
            category_id=category_id,
            account_id=account_id,
            to_account_id=to_account_id,
            book_id=self.session.book_id,
            date=date if date is not None else utc_now(),
            **fields,
        )

    def add_transaction(self, transaction: Transaction) -> Transaction:
        return self.ledger.add_transaction(transaction)

    def get_transaction(self, transaction_id: str, book_id: str | None = None) -> Transaction:
        book_id = book_id or self.session.book_id
        for transaction in self.repository.get_transactions(book_id):
            if transaction.id == transaction_id:
                return transaction
        raise NotFoundError(f"Transaction {transaction_id} not found in book {book_id}")

    def list_transactions(
        self,
        start: dt.datetime | None = None,
        end: dt.datetime | None = None,
        book_id: str | None = None,
    ) -> list[Transaction]:
        """Transactions of a book within ``[start, end)``, newest first."""
        transactions = self.repository.get_transactions(book_id or self.session.book_id)
        if start is not None:
            transactions = [t for t in transactions if t.date >= start]
        if end is not None:
            transactions = [t for t in transactions if t.date < end]
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    def edit_transaction(self, transaction_id: str, **changes: Any) -> Transaction:
        """Change fields of a stored transaction, keeping balances in step."""
        if "id" in changes:
            raise ValueError("Transaction id cannot be changed")
        old = self.get_transaction(transaction_id)
        new = dataclasses.replace(old, **changes)
        return self.ledger.edit_transaction(old, new)

    def delete_transaction(self, transaction_id: str) -> Transaction:
        transaction = self.get_transaction(transaction_id)
        self.ledger.delete_transaction(transaction)
        return transaction

    # Accounts

    def list_accounts(self, include_archived: bool = True) -> list[AssetAccount]:
        accounts = self.repository.get_asset_accounts()
        if include_archived:
            return accounts
        return [account for account in accounts if not account.archived]

    def net_worth(self) -> Decimal:
        """Sum of balances counted in the total (archived accounts excluded)."""
        return sum(
            (
                account.balance
                for account in self.repository.get_asset_accounts()
                if account.include_in_total and not account.archived
            ),
            Decimal("0"),
        )

    def set_account_balance(self, account_id: str, balance: Decimal) -> None:
        if not self.ledger.set_balance(account_id, balance):
            raise NotFoundError(f"Account {account_id} not found")

    def recompute_balances(
        self, opening_balances: dict[str, Decimal] | None = None
    ) -> list[BalanceDrift]:
        return self.ledger.recompute_balances(opening_balances=opening_balances)

    # Backups

    def _keep_count(self) -> int:
        configured = self.config.get("backup_keep_count")
        if isinstance(configured, int) and not isinstance(configured, bool):
            return configured
        return self.repository.get_settings().backup_keep_count

    def webdav_client(self) -> WebDavClient:
        section = self.config.get("webdav")
        if not isinstance(section, dict) or not section.get("url"):
            raise ValueError("webdav is not configured")
        return WebDavClient.from_config(section)

    def create_backup(self) -> Path:
        return self.backups.create_backup()

    def export_backup(self, destination: str | Path | None = None) -> Path | str:
        """Export to ``destination``, or to the configured WebDAV server."""
        if destination is None:
            return self.backups.export_backup(self.webdav_client())
        return self.backups.export_backup(destination)

    def list_backups(self) -> list[BackupInfo]:
        return self.backups.get_local_backups()

    def restore_backup(self, archive: str | Path) -> RestoreReport:
        try:
            return self.backups.restore_from_backup(archive)
        finally:
            # The current-book pointer may have changed on disk.
            self._session = None

    def restore_remote_backup(self, remote_path: str) -> RestoreReport:
        """Download an archive from the configured WebDAV server and restore it."""
        with tempfile.TemporaryDirectory() as tmp:
            local = self.webdav_client().download_file(
                remote_path, Path(tmp) / Path(remote_path).name
            )
            return self.restore_backup(local)

    def clean_old_backups(self, keep: int | None = None) -> list[Path]:
        return self.backups.clean_old_backups(self._keep_count() if keep is None else keep)
