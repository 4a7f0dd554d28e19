"""Integration tests for ledger and balance reconciliation."""

from __future__ import annotations

import dataclasses
import datetime as dt
from decimal import Decimal

import pytest

from moneybook.exceptions import NotFoundError
from moneybook.ledger import APPLY, LedgerEngine, signed_effect
from moneybook.models import AccountBook, Transaction, TransactionType
from moneybook.repository import Repository


def _transaction(
    kind: TransactionType,
    amount: str,
    account_id: str,
    when: dt.datetime,
    to_account_id: str | None = None,
    book_id: str = "book1",
) -> Transaction:
    return Transaction(
        type=kind,
        amount=Decimal(amount),
        category_id="",
        account_id=account_id,
        to_account_id=to_account_id,
        book_id=book_id,
        date=when,
    )


def test_signed_effect() -> None:
    when = dt.datetime(2026, 1, 1, tzinfo=dt.timezone.utc)
    transfer = _transaction(TransactionType.TRANSFER, "30", "a", when, to_account_id="b")
    income = _transaction(TransactionType.INCOME, "30", "a", when)

    assert signed_effect(transfer, "a") == Decimal("-30")
    assert signed_effect(transfer, "b") == Decimal("30")
    assert signed_effect(transfer, "c") == Decimal("0")
    assert signed_effect(income, "a") == Decimal("30")


@pytest.mark.sit
def test_balance_follows_ledger(
    ledger: LedgerEngine, two_accounts, balance_of, when
) -> None:
    account_a, _ = two_accounts
    expense = _transaction(TransactionType.EXPENSE, "50", account_a, when)

    ledger.add_transaction(expense)
    assert balance_of(account_a) == Decimal("-50")

    ledger.add_transaction(_transaction(TransactionType.INCOME, "200", account_a, when))
    assert balance_of(account_a) == Decimal("150")

    ledger.delete_transaction(expense)
    assert balance_of(account_a) == Decimal("200")


@pytest.mark.sit
def test_edit_amount_equals_delete_and_add(
    ledger: LedgerEngine, two_accounts, balance_of, when
) -> None:
    account_a, _ = two_accounts
    original = _transaction(TransactionType.EXPENSE, "100", account_a, when)
    ledger.add_transaction(original)

    ledger.edit_transaction(original, dataclasses.replace(original, amount=Decimal("40")))

    assert balance_of(account_a) == Decimal("-40")


@pytest.mark.sit
def test_add_edit_delete_walkthrough(
    ledger: LedgerEngine, repository: Repository, two_accounts, balance_of, when
) -> None:
    account_a, _ = two_accounts
    expense = _transaction(TransactionType.EXPENSE, "50", account_a, when)

    ledger.add_transaction(expense)
    assert balance_of(account_a) == Decimal("-50")

    income = _transaction(TransactionType.INCOME, "200", account_a, when)
    ledger.add_transaction(income)
    assert balance_of(account_a) == Decimal("150")

    edited = dataclasses.replace(expense, amount=Decimal("20"))
    ledger.edit_transaction(expense, edited)
    assert balance_of(account_a) == Decimal("180")

    assert ledger.delete_transaction(edited) is True
    assert balance_of(account_a) == Decimal("200")
    assert repository.get_transactions("book1") == [income]


@pytest.mark.sit
def test_transfer_conserves_total(
    ledger: LedgerEngine, two_accounts, balance_of, when
) -> None:
    account_a, account_b = two_accounts
    ledger.set_balance(account_a, Decimal("100"))

    ledger.add_transaction(
        _transaction(TransactionType.TRANSFER, "30", account_a, when, to_account_id=account_b)
    )

    assert balance_of(account_a) == Decimal("70")
    assert balance_of(account_b) == Decimal("30")
    assert balance_of(account_a) + balance_of(account_b) == Decimal("100")


@pytest.mark.sit
def test_edit_matches_delete_then_add(
    ledger: LedgerEngine, repository: Repository, two_accounts, balance_of, when
) -> None:
    account_a, account_b = two_accounts
    original = _transaction(TransactionType.EXPENSE, "40", account_a, when)
    ledger.add_transaction(original)

    changed = dataclasses.replace(
        original,
        type=TransactionType.TRANSFER,
        amount=Decimal("15"),
        to_account_id=account_b,
    )
    ledger.edit_transaction(original, changed)
    edited_balances = (balance_of(account_a), balance_of(account_b))

    ledger.delete_transaction(changed)
    ledger.add_transaction(changed)

    assert edited_balances == (Decimal("-15"), Decimal("15"))
    assert (balance_of(account_a), balance_of(account_b)) == edited_balances


@pytest.mark.sit
def test_edit_moves_between_books(
    ledger: LedgerEngine, repository: Repository, two_accounts, balance_of, when
) -> None:
    account_a, _ = two_accounts
    repository.add_account_book(AccountBook(name="Book 1", id="book1"))
    repository.add_account_book(AccountBook(name="Book 2", id="book2"))
    original = _transaction(TransactionType.EXPENSE, "10", account_a, when)
    ledger.add_transaction(original)

    moved = dataclasses.replace(original, book_id="book2")
    ledger.edit_transaction(original, moved)

    assert repository.get_transactions("book1") == []
    assert repository.get_transactions("book2") == [moved]
    assert balance_of(account_a) == Decimal("-10")


@pytest.mark.sit
def test_edit_requires_stored_transaction(ledger: LedgerEngine, two_accounts, when) -> None:
    account_a, _ = two_accounts
    missing = _transaction(TransactionType.EXPENSE, "10", account_a, when)

    with pytest.raises(NotFoundError):
        ledger.edit_transaction(missing, dataclasses.replace(missing, amount=Decimal("5")))

    with pytest.raises(ValueError):
        ledger.edit_transaction(missing, dataclasses.replace(missing, id="other"))


@pytest.mark.sit
def test_delete_unknown_transaction_changes_nothing(
    ledger: LedgerEngine, two_accounts, balance_of, when
) -> None:
    account_a, _ = two_accounts

    assert ledger.delete_transaction(
        _transaction(TransactionType.EXPENSE, "10", account_a, when)
    ) is False
    assert balance_of(account_a) == Decimal("0")


@pytest.mark.sit
def test_unknown_account_is_skipped(
    ledger: LedgerEngine, repository: Repository, two_accounts, balance_of, when
) -> None:
    account_a, _ = two_accounts
    transfer = _transaction(
        TransactionType.TRANSFER, "25", account_a, when, to_account_id="deleted_account"
    )

    ledger.add_transaction(transfer)

    assert balance_of(account_a) == Decimal("-25")
    assert repository.get_transactions("book1") == [transfer]


@pytest.mark.sit
def test_apply_effect_rejects_bad_sign(ledger: LedgerEngine, two_accounts, when) -> None:
    account_a, _ = two_accounts
    income = _transaction(TransactionType.INCOME, "5", account_a, when)

    with pytest.raises(ValueError):
        ledger.apply_effect(income, 2)

    ledger.apply_effect(income, APPLY)


@pytest.mark.sit
def test_recompute_repairs_drift(
    ledger: LedgerEngine, repository: Repository, two_accounts, balance_of, when
) -> None:
    account_a, account_b = two_accounts
    repository.add_account_book(AccountBook(name="Book 1", id="book1"))
    ledger.add_transaction(_transaction(TransactionType.INCOME, "500", account_a, when))
    ledger.add_transaction(
        _transaction(TransactionType.TRANSFER, "120", account_a, when, to_account_id=account_b)
    )
    # Simulate a crash between the ledger write and the balance write.
    repository.save_transactions(
        "book1",
        repository.get_transactions("book1")
        + [_transaction(TransactionType.EXPENSE, "80", account_b, when)],
    )

    drifts = ledger.recompute_balances()

    assert [(d.account_id, d.difference) for d in drifts] == [(account_b, Decimal("-80"))]
    assert balance_of(account_a) == Decimal("380")
    assert balance_of(account_b) == Decimal("40")
    assert ledger.recompute_balances() == []


@pytest.mark.sit
def test_recompute_with_opening_balances(
    ledger: LedgerEngine, two_accounts, balance_of, when
) -> None:
    account_a, _ = two_accounts
    ledger.add_transaction(_transaction(TransactionType.EXPENSE, "30", account_a, when))

    drifts = ledger.recompute_balances(
        book_ids=["book1"], opening_balances={account_a: Decimal("100")}
    )

    assert len(drifts) == 1
    assert balance_of(account_a) == Decimal("70")
