"""Collection layout constants for the MoneyBook data directory."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from moneybook import codec
from moneybook.exceptions import DecodeError
from moneybook.models import (
    AccountBook,
    AIConfig,
    AppSettings,
    AssetAccount,
    Budget,
    Category,
    Currency,
    CurrentBook,
    RecordTemplate,
    RecurringTransaction,
    Reminder,
    SavingsPlan,
    Transaction,
)

CONFIG_DIR = "config"
ACCOUNTS_DIR = "accounts"
RECORDS_DIR = "records"
BUDGET_DIR = "budget"
SAVINGS_DIR = "savings"
REMINDERS_DIR = "reminders"
BACKUP_DIR = "backup"

# Archived and restored in this order; BACKUP_DIR is never archived.
BACKUP_DIRS = (
    CONFIG_DIR,
    ACCOUNTS_DIR,
    RECORDS_DIR,
    BUDGET_DIR,
    SAVINGS_DIR,
    REMINDERS_DIR,
)
REQUIRED_RESTORE_DIRS = (CONFIG_DIR, ACCOUNTS_DIR)

PARTITION_PLACEHOLDER = "{partition}"


def validate_partition_key(key: str) -> str:
    """Reject partition keys that are not a single safe path segment."""
    if not key or not key.strip():
        raise ValueError("Partition key is required")
    if key in {".", ".."} or "/" in key or "\\" in key:
        raise ValueError(f"Invalid partition key: {key!r}")
    return key


@dataclass(frozen=True)
class Collection:
    """A named document: its relative path, record type and wrapper key.

    List collections are stored as ``{items_key: [...]}``; singletons
    (``items_key`` is None) are stored as a bare object.
    """
    name: str
    path: str
    record_type: type
    items_key: str | None = None

    @property
    def partitioned(self) -> bool:
        return PARTITION_PLACEHOLDER in self.path

    @property
    def is_list(self) -> bool:
        return self.items_key is not None

    def relative_path(self, partition_key: str | None = None) -> PurePosixPath:
        if self.partitioned:
            if partition_key is None:
                raise ValueError(f"Collection {self.name!r} requires a partition key")
            key = validate_partition_key(partition_key)
            return PurePosixPath(self.path.replace(PARTITION_PLACEHOLDER, key))
        if partition_key is not None:
            raise ValueError(f"Collection {self.name!r} is not partitioned")
        return PurePosixPath(self.path)

    def empty(self) -> Any:
        """Value used when the document holds nothing."""
        if self.is_list:
            return []
        return self.record_type()

    def encode(self, value: Any) -> Any:
        if self.is_list:
            return {self.items_key: [codec.encode_record(item) for item in value]}
        return codec.encode_record(value)

    def decode(self, payload: Any) -> Any:
        if not self.is_list:
            return codec.decode_record(self.record_type, payload)
        if not isinstance(payload, dict):
            raise DecodeError(f"Expected object for {self.name}, got {type(payload).__name__}")
        return codec.decode_value(list[self.record_type], payload.get(self.items_key, []))


SETTINGS = Collection("settings", "config/settings.json", AppSettings)
AI_CONFIG = Collection("ai_config", "config/ai_config.json", AIConfig)
CATEGORIES = Collection("categories", "config/categories.json", Category, "categories")
CURRENCIES = Collection("currencies", "config/currencies.json", Currency, "currencies")
ACCOUNT_BOOKS = Collection("account_books", "accounts/account_books.json", AccountBook, "books")
ASSET_ACCOUNTS = Collection(
    "asset_accounts", "accounts/asset_accounts.json", AssetAccount, "accounts"
)
CURRENT_BOOK = Collection("current_book", "accounts/current_book.json", CurrentBook)
TRANSACTIONS = Collection(
    "transactions", "records/{partition}/transactions.json", Transaction, "transactions"
)
TEMPLATES = Collection(
    "templates", "records/{partition}/templates.json", RecordTemplate, "templates"
)
RECURRING = Collection(
    "recurring", "records/{partition}/recurring.json", RecurringTransaction, "recurring"
)
BUDGETS = Collection("budgets", "budget/budgets.json", Budget, "budgets")
SAVINGS_PLANS = Collection("savings_plans", "savings/savings_plans.json", SavingsPlan, "plans")
REMINDERS = Collection("reminders", "reminders/reminders.json", Reminder, "reminders")

COLLECTIONS = {
    collection.name: collection
    for collection in (
        SETTINGS,
        AI_CONFIG,
        CATEGORIES,
        CURRENCIES,
        ACCOUNT_BOOKS,
        ASSET_ACCOUNTS,
        CURRENT_BOOK,
        TRANSACTIONS,
        TEMPLATES,
        RECURRING,
        BUDGETS,
        SAVINGS_PLANS,
        REMINDERS,
    )
}
