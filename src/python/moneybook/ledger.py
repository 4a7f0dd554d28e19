"""Balance reconciliation between transaction ledgers and asset accounts.

Every ledger write is paired with a compensating balance adjustment, so an
account balance always equals the signed sum of the transactions that
reference it. The two writes touch different files: a process stopped
between them leaves the documents out of step until
:meth:`LedgerEngine.recompute_balances` is run.
"""

from __future__ import annotations

from contextlib import ExitStack
import dataclasses
from decimal import Decimal
import logging
from typing import Iterable, Mapping

from moneybook.exceptions import NotFoundError
from moneybook.models import BalanceDrift, Transaction, TransactionType
from moneybook.repository import Repository
from moneybook.schema import ASSET_ACCOUNTS, TRANSACTIONS

logger = logging.getLogger(__name__)

APPLY = 1
ROLLBACK = -1
ZERO = Decimal("0")


def signed_effect(transaction: Transaction, account_id: str) -> Decimal:
    """Balance delta ``transaction`` contributes to ``account_id``."""
    amount = transaction.amount
    effect = ZERO
    if transaction.type is TransactionType.INCOME:
        if transaction.account_id == account_id:
            effect += amount
    elif transaction.type is TransactionType.EXPENSE:
        if transaction.account_id == account_id:
            effect -= amount
    elif transaction.type is TransactionType.TRANSFER:
        if transaction.account_id == account_id:
            effect -= amount
        if transaction.to_account_id == account_id:
            effect += amount
    return effect


def _affected_accounts(transaction: Transaction) -> list[str]:
    ids = [transaction.account_id]
    if transaction.to_account_id:
        ids.append(transaction.to_account_id)
    return ids


class LedgerEngine:
    """Apply transaction mutations and keep account balances in step."""

    def __init__(self, repository: Repository) -> None:
        self.repository = repository
        self.store = repository.store

    def apply_effect(self, transaction: Transaction, sign: int) -> None:
        """Add (``sign=1``) or roll back (``sign=-1``) a transaction's effect.

        Accounts that no longer exist are skipped.
        """
        if sign not in (APPLY, ROLLBACK):
            raise ValueError("sign must be 1 or -1")
        with self.store.locked(ASSET_ACCOUNTS):
            accounts = self.repository.get_asset_accounts()
            known = {account.id for account in accounts}
            for account_id in _affected_accounts(transaction):
                if account_id not in known:
                    logger.debug(
                        "Skipping unknown account %s for transaction %s",
                        account_id,
                        transaction.id,
                    )
            changed = False
            for index, account in enumerate(accounts):
                delta = signed_effect(transaction, account.id) * sign
                if delta:
                    accounts[index] = dataclasses.replace(
                        account, balance=account.balance + delta
                    )
                    changed = True
                    logger.debug(
                        "Account %s balance %s -> %s",
                        account.id,
                        account.balance,
                        accounts[index].balance,
                    )
            if changed:
                self.repository.save_asset_accounts(accounts)

    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Append to the book's ledger, then apply the balance effect."""
        with self.store.locked(TRANSACTIONS, transaction.book_id):
            self.store.add_to(TRANSACTIONS, transaction, transaction.book_id)
            self.apply_effect(transaction, APPLY)
        logger.info("Added transaction %s to book %s", transaction.id, transaction.book_id)
        return transaction

    def edit_transaction(self, old: Transaction, new: Transaction) -> Transaction:
        """Replace ``old`` with ``new``: roll back, rewrite, reapply.

        The rollback uses the stored copy of ``old`` so it reverses exactly
        what was applied.

        Raises:
            ValueError: If the two records have different ids.
            NotFoundError: If ``old`` is not in its book's ledger.
        """
        if old.id != new.id:
            raise ValueError("Edited transaction must keep its id")
        with ExitStack() as stack:
            for book_id in sorted({old.book_id, new.book_id}):
                stack.enter_context(self.store.locked(TRANSACTIONS, book_id))
            stored = self._find(old.book_id, old.id)
            if stored != old:
                logger.warning("Transaction %s changed since it was read", old.id)

            self.apply_effect(stored, ROLLBACK)
            if old.book_id == new.book_id:
                self.store.update_in(TRANSACTIONS, new, new.book_id)
            else:
                self.store.remove_from(TRANSACTIONS, old.id, old.book_id)
                self.store.add_to(TRANSACTIONS, new, new.book_id)
            self.apply_effect(new, APPLY)
        logger.info("Edited transaction %s", new.id)
        return new

    def delete_transaction(self, transaction: Transaction) -> bool:
        """Remove from the ledger, then roll back the balance effect.

        Returns False, changing nothing, when the id is not in the ledger.
        """
        with self.store.locked(TRANSACTIONS, transaction.book_id):
            try:
                stored = self._find(transaction.book_id, transaction.id)
            except NotFoundError:
                return False
            self.store.remove_from(TRANSACTIONS, transaction.id, transaction.book_id)
            self.apply_effect(stored, ROLLBACK)
        logger.info("Deleted transaction %s", transaction.id)
        return True

    def set_balance(self, account_id: str, balance: Decimal) -> bool:
        """Explicitly set an opening or corrected balance."""
        return self.repository.update_account_balance(account_id, balance)

    def recompute_balances(
        self,
        book_ids: Iterable[str] | None = None,
        opening_balances: Mapping[str, Decimal] | None = None,
    ) -> list[BalanceDrift]:
        """Rebuild every account balance from the ledgers.

        Balances start at zero, or at ``opening_balances[account_id]``, and
        fold in every transaction of ``book_ids`` (all books by default).
        Transactions of deleted books are gone, so their effect is dropped.
        Returns the accounts whose stored balance was wrong.
        """
        if book_ids is None:
            book_ids = [book.id for book in self.repository.get_account_books()]
        book_ids = sorted(set(book_ids))
        opening_balances = opening_balances or {}

        with ExitStack() as stack:
            for book_id in book_ids:
                stack.enter_context(self.store.locked(TRANSACTIONS, book_id))
            stack.enter_context(self.store.locked(ASSET_ACCOUNTS))

            accounts = self.repository.get_asset_accounts()
            totals = {
                account.id: Decimal(opening_balances.get(account.id, ZERO))
                for account in accounts
            }
            for book_id in book_ids:
                for transaction in self.repository.get_transactions(book_id):
                    for account_id in _affected_accounts(transaction):
                        if account_id in totals:
                            totals[account_id] += signed_effect(transaction, account_id)

            drifts = [
                BalanceDrift(account.id, account.balance, totals[account.id])
                for account in accounts
                if account.balance != totals[account.id]
            ]
            if drifts:
                self.repository.save_asset_accounts(
                    [dataclasses.replace(a, balance=totals[a.id]) for a in accounts]
                )
        for drift in drifts:
            logger.warning(
                "Corrected balance of %s from %s to %s",
                drift.account_id,
                drift.stored,
                drift.recomputed,
            )
        return drifts

    def _find(self, book_id: str, transaction_id: str) -> Transaction:
        for item in self.repository.get_transactions(book_id):
            if item.id == transaction_id:
                return item
        raise NotFoundError(f"Transaction {transaction_id} not found in book {book_id}")
