"""Typed collection accessors over a MoneyBook persistence backend."""

from __future__ import annotations

import dataclasses
from decimal import Decimal
import logging
import shutil

from moneybook.defaults import (
    default_account_book,
    default_asset_accounts,
    default_categories,
    default_currencies,
)
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
    SavingsDeposit,
    SavingsPlan,
    Transaction,
)
from moneybook.schema import (
    ACCOUNT_BOOKS,
    AI_CONFIG,
    ASSET_ACCOUNTS,
    BUDGETS,
    CATEGORIES,
    CURRENCIES,
    CURRENT_BOOK,
    RECORDS_DIR,
    RECURRING,
    REMINDERS,
    SAVINGS_PLANS,
    SETTINGS,
    TEMPLATES,
    TRANSACTIONS,
    Collection,
    validate_partition_key,
)
from moneybook.store import DocumentStore

logger = logging.getLogger(__name__)


class Repository:
    """Collection-level reads and writes for every MoneyBook document.

    Each call goes straight to the store; balance-affecting transaction
    writes belong to :class:`moneybook.ledger.LedgerEngine`.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def _load_seeded(self, collection: Collection, seed) -> list:
        """Load a list collection, writing ``seed()`` when it is empty."""
        with self.store.locked(collection):
            items = self.store.load(collection)
            if items:
                return items
            items = seed()
            logger.info("Seeding default %s", collection.name)
            self.store.save(collection, items)
            return items

    # Settings

    def get_settings(self) -> AppSettings:
        return self.store.load(SETTINGS)

    def save_settings(self, settings: AppSettings) -> None:
        self.store.save(SETTINGS, settings)

    def get_ai_config(self) -> AIConfig:
        return self.store.load(AI_CONFIG)

    def save_ai_config(self, config: AIConfig) -> None:
        self.store.save(AI_CONFIG, config)

    # Categories

    def get_categories(self) -> list[Category]:
        return self._load_seeded(CATEGORIES, default_categories)

    def save_categories(self, categories: list[Category]) -> None:
        self.store.save(CATEGORIES, categories)

    def add_category(self, category: Category) -> None:
        with self.store.locked(CATEGORIES):
            self.get_categories()
            self.store.add_to(CATEGORIES, category)

    def update_category(self, category: Category) -> bool:
        with self.store.locked(CATEGORIES):
            self.get_categories()
            return self.store.update_in(CATEGORIES, category)

    def delete_category(self, category_id: str) -> bool:
        with self.store.locked(CATEGORIES):
            self.get_categories()
            return self.store.remove_from(CATEGORIES, category_id)

    # Currencies

    def get_currencies(self) -> list[Currency]:
        return self._load_seeded(CURRENCIES, default_currencies)

    def save_currencies(self, currencies: list[Currency]) -> None:
        self.store.save(CURRENCIES, currencies)

    # Account books

    def get_account_books(self) -> list[AccountBook]:
        with self.store.locked(ACCOUNT_BOOKS):
            books = self.store.load(ACCOUNT_BOOKS)
            if books:
                return books
            book = default_account_book()
            logger.info("Creating default account book %s", book.id)
            self.store.save(ACCOUNT_BOOKS, [book])
            self.set_current_book_id(book.id)
            return [book]

    def save_account_books(self, books: list[AccountBook]) -> None:
        self.store.save(ACCOUNT_BOOKS, books)

    def get_account_book(self, book_id: str) -> AccountBook | None:
        for book in self.get_account_books():
            if book.id == book_id:
                return book
        return None

    def add_account_book(self, book: AccountBook) -> None:
        validate_partition_key(book.id)
        with self.store.locked(ACCOUNT_BOOKS):
            books = self.get_account_books() + [book]
            self.save_account_books(self._single_default(books, book))

    def update_account_book(self, book: AccountBook) -> bool:
        with self.store.locked(ACCOUNT_BOOKS):
            books = self.get_account_books()
            if not any(item.id == book.id for item in books):
                return False
            books = [book if item.id == book.id else item for item in books]
            self.save_account_books(self._single_default(books, book))
            return True

    def delete_account_book(self, book_id: str) -> bool:
        """Remove a book together with its ``records/<book_id>`` tree.

        Account balances keep the effect of the removed transactions.
        """
        with self.store.locked(ACCOUNT_BOOKS):
            books = self.get_account_books()
            remaining = [book for book in books if book.id != book_id]
            if len(remaining) == len(books):
                return False
            if not remaining:
                raise ValueError("Cannot delete the last account book")
            if not any(book.is_default for book in remaining):
                remaining[0] = dataclasses.replace(remaining[0], is_default=True)
            self.save_account_books(remaining)
        records_dir = self.store.root / RECORDS_DIR / validate_partition_key(book_id)
        shutil.rmtree(records_dir, ignore_errors=True)
        if self.store.load(CURRENT_BOOK).book_id == book_id:
            self.set_current_book_id(self._fallback_book(remaining).id)
        logger.info("Deleted account book %s", book_id)
        return True

    @staticmethod
    def _single_default(books: list[AccountBook], changed: AccountBook) -> list[AccountBook]:
        if not changed.is_default:
            return books
        return [
            dataclasses.replace(book, is_default=False)
            if book.is_default and book.id != changed.id
            else book
            for book in books
        ]

    @staticmethod
    def _fallback_book(books: list[AccountBook]) -> AccountBook:
        return next((book for book in books if book.is_default), books[0])

    # Current book pointer

    def get_current_book_id(self) -> str:
        pointer = self.store.load(CURRENT_BOOK)
        if pointer.book_id:
            return pointer.book_id
        return self._fallback_book(self.get_account_books()).id

    def set_current_book_id(self, book_id: str) -> None:
        self.store.save(CURRENT_BOOK, CurrentBook(validate_partition_key(book_id)))

    # Asset accounts

    def get_asset_accounts(self) -> list[AssetAccount]:
        return self._load_seeded(ASSET_ACCOUNTS, default_asset_accounts)

    def get_asset_account(self, account_id: str) -> AssetAccount | None:
        for account in self.get_asset_accounts():
            if account.id == account_id:
                return account
        return None

    def save_asset_accounts(self, accounts: list[AssetAccount]) -> None:
        self.store.save(ASSET_ACCOUNTS, accounts)

    def add_asset_account(self, account: AssetAccount) -> None:
        with self.store.locked(ASSET_ACCOUNTS):
            self.get_asset_accounts()
            self.store.add_to(ASSET_ACCOUNTS, account)

    def update_asset_account(self, account: AssetAccount) -> bool:
        with self.store.locked(ASSET_ACCOUNTS):
            self.get_asset_accounts()
            return self.store.update_in(ASSET_ACCOUNTS, account)

    def delete_asset_account(self, account_id: str) -> bool:
        with self.store.locked(ASSET_ACCOUNTS):
            self.get_asset_accounts()
            return self.store.remove_from(ASSET_ACCOUNTS, account_id)

    def update_account_balance(self, account_id: str, balance: Decimal) -> bool:
        """Set an account balance outright, bypassing the ledger."""
        with self.store.locked(ASSET_ACCOUNTS):
            account = self.get_asset_account(account_id)
            if account is None:
                return False
            return self.store.update_in(
                ASSET_ACCOUNTS, dataclasses.replace(account, balance=Decimal(balance))
            )

    # Book-scoped records

    def get_transactions(self, book_id: str) -> list[Transaction]:
        return self.store.load(TRANSACTIONS, book_id)

    def save_transactions(self, book_id: str, transactions: list[Transaction]) -> None:
        self.store.save(TRANSACTIONS, transactions, book_id)

    def get_templates(self, book_id: str) -> list[RecordTemplate]:
        return self.store.load(TEMPLATES, book_id)

    def save_templates(self, book_id: str, templates: list[RecordTemplate]) -> None:
        self.store.save(TEMPLATES, templates, book_id)

    def add_template(self, book_id: str, template: RecordTemplate) -> None:
        self.store.add_to(TEMPLATES, template, book_id)

    def delete_template(self, book_id: str, template_id: str) -> bool:
        return self.store.remove_from(TEMPLATES, template_id, book_id)

    def get_recurring_transactions(self, book_id: str) -> list[RecurringTransaction]:
        return self.store.load(RECURRING, book_id)

    def save_recurring_transactions(
        self, book_id: str, recurring: list[RecurringTransaction]
    ) -> None:
        self.store.save(RECURRING, recurring, book_id)

    # Budgets

    def get_budgets(self) -> list[Budget]:
        return self.store.load(BUDGETS)

    def save_budgets(self, budgets: list[Budget]) -> None:
        self.store.save(BUDGETS, budgets)

    def add_budget(self, budget: Budget) -> None:
        self.store.add_to(BUDGETS, budget)

    def update_budget(self, budget: Budget) -> bool:
        return self.store.update_in(BUDGETS, budget)

    def delete_budget(self, budget_id: str) -> bool:
        return self.store.remove_from(BUDGETS, budget_id)

    # Savings plans

    def get_savings_plans(self) -> list[SavingsPlan]:
        return self.store.load(SAVINGS_PLANS)

    def save_savings_plans(self, plans: list[SavingsPlan]) -> None:
        self.store.save(SAVINGS_PLANS, plans)

    def add_savings_plan(self, plan: SavingsPlan) -> None:
        self.store.add_to(SAVINGS_PLANS, plan)

    def update_savings_plan(self, plan: SavingsPlan) -> bool:
        return self.store.update_in(SAVINGS_PLANS, plan)

    def delete_savings_plan(self, plan_id: str) -> bool:
        return self.store.remove_from(SAVINGS_PLANS, plan_id)

    def add_deposit_to_plan(self, plan_id: str, deposit: SavingsDeposit) -> bool:
        """Record a deposit and raise the plan's current amount by it."""
        with self.store.locked(SAVINGS_PLANS):
            for plan in self.get_savings_plans():
                if plan.id == plan_id:
                    updated = dataclasses.replace(
                        plan,
                        deposits=plan.deposits + [deposit],
                        current_amount=plan.current_amount + deposit.amount,
                    )
                    return self.store.update_in(SAVINGS_PLANS, updated)
        return False

    # Reminders

    def get_reminders(self) -> list[Reminder]:
        return self.store.load(REMINDERS)

    def save_reminders(self, reminders: list[Reminder]) -> None:
        self.store.save(REMINDERS, reminders)

    def add_reminder(self, reminder: Reminder) -> None:
        self.store.add_to(REMINDERS, reminder)

    def delete_reminder(self, reminder_id: str) -> bool:
        return self.store.remove_from(REMINDERS, reminder_id)
