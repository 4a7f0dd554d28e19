from __future__ import annotations

import datetime as dt
from decimal import Decimal
import json

import pytest

from moneybook import codec
from moneybook.exceptions import DecodeError
from moneybook.models import (
    AccountBook,
    AIConfig,
    AppSettings,
    AssetAccount,
    AssetType,
    Budget,
    BudgetPeriod,
    BudgetType,
    Category,
    Currency,
    CurrentBook,
    RecordTemplate,
    RecurringFrequency,
    RecurringTransaction,
    Reminder,
    ReminderType,
    SavingsDeposit,
    SavingsPlan,
    SavingsType,
    Transaction,
    TransactionType,
)

WHEN = dt.datetime(2026, 1, 15, 8, 0, tzinfo=dt.timezone.utc)

RECORDS = [
    AccountBook(name="Travel", id="book2", created_at=WHEN),
    AssetAccount(
        name="Visa",
        type=AssetType.CREDIT_CARD,
        id="visa",
        balance=Decimal("-300.25"),
        credit_limit=Decimal("5000"),
        bill_day=5,
        repayment_day=25,
        created_at=WHEN,
    ),
    Transaction(
        type=TransactionType.TRANSFER,
        amount=Decimal("99.99"),
        category_id="",
        account_id="default_cash",
        to_account_id="visa",
        book_id="book1",
        date=WHEN,
        tags=["repay"],
        created_at=WHEN,
    ),
    Category(id="exp_food", name="Food", type=TransactionType.EXPENSE, is_system=True),
    Budget(
        name="Food",
        type=BudgetType.CATEGORY,
        amount=Decimal("800"),
        period=BudgetPeriod.MONTHLY,
        start_date=WHEN,
        book_id="book1",
        category_id="exp_food",
    ),
    SavingsPlan(
        name="Trip",
        target_amount=Decimal("10000"),
        type=SavingsType.FLEXIBLE,
        deposits=[SavingsDeposit(amount=Decimal("200"), date=WHEN, id="dep1")],
        created_at=WHEN,
    ),
    RecordTemplate(name="Lunch", type=TransactionType.EXPENSE, category_id="exp_food", account_id="default_cash"),
    RecurringTransaction(template_id="t1", frequency=RecurringFrequency.MONTHLY, start_date=WHEN),
    Reminder(type=ReminderType.CREDIT_CARD, title="Pay Visa", time=WHEN, related_id="visa"),
    Currency(code="USD", name="US Dollar", symbol="$", rate=Decimal("0.14"), last_updated=WHEN),
    AppSettings(default_book_id="book1", backup_keep_count=3),
    AIConfig(api_key="secret"),
    CurrentBook("book1"),
]


@pytest.mark.parametrize("record", RECORDS, ids=lambda record: type(record).__name__)
def test_record_round_trip(record) -> None:
    text = codec.dumps(codec.encode_record(record))

    assert codec.decode_record(type(record), codec.loads(text)) == record


def test_wire_formats() -> None:
    payload = codec.encode_record(RECORDS[2])

    assert payload["amount"] == "99.99"
    assert payload["type"] == "TRANSFER"
    assert payload["date"] == "2026-01-15T08:00:00+00:00"
    assert payload["refundFromId"] is None
    assert payload["accountId"] == "default_cash"
    assert "account_id" not in payload
    json.dumps(payload)


def test_unknown_fields_are_ignored() -> None:
    payload = codec.encode_record(RECORDS[0])
    payload["syncedAt"] = 123

    assert codec.decode_record(AccountBook, payload) == RECORDS[0]


def test_missing_fields_take_defaults() -> None:
    settings = codec.decode_record(AppSettings, {"language": "en"})

    assert settings.language == "en"
    assert settings.default_currency == "CNY"
    assert settings.backup_keep_count == 5


def test_missing_required_field() -> None:
    with pytest.raises(DecodeError):
        codec.decode_record(Category, {"id": "x", "type": "EXPENSE"})


def test_invalid_values() -> None:
    payload = codec.encode_record(RECORDS[2])

    with pytest.raises(DecodeError):
        codec.decode_record(Transaction, {**payload, "type": "GIFT"})

    with pytest.raises(DecodeError):
        codec.decode_record(Transaction, {**payload, "amount": "abc"})

    with pytest.raises(DecodeError):
        codec.decode_record(Transaction, {**payload, "amount": "0"})

    with pytest.raises(DecodeError):
        codec.decode_record(Transaction, "not an object")


def test_epoch_milliseconds_accepted() -> None:
    payload = codec.encode_record(RECORDS[2])
    payload["date"] = 1768464000000

    decoded = codec.decode_record(Transaction, payload)

    assert decoded.date == WHEN


def test_mobile_app_documents_decode() -> None:
    transaction = codec.decode_record(
        Transaction,
        {
            "id": "t1",
            "type": "EXPENSE",
            "amount": 12.5,
            "categoryId": "exp_food",
            "accountId": "acc",
            "toAccountId": None,
            "bookId": "book",
            "date": 1700000000000,
            "note": "",
            "tags": [],
            "images": [],
            "currency": "CNY",
            "exchangeRate": 1.0,
            "isRefund": False,
            "refundFromId": None,
            "createdAt": 1700000000000,
        },
    )
    account = codec.decode_record(
        AssetAccount,
        {"id": "a1", "name": "Cash", "type": "CASH", "balance": -3.25, "isArchived": True},
    )
    ai_config = codec.decode_record(AIConfig, {"enableOCR": False, "apiKey": "k"})

    assert transaction.amount == Decimal("12.5")
    assert transaction.category_id == "exp_food"
    assert transaction.book_id == "book"
    assert transaction.date == dt.datetime(2023, 11, 14, 22, 13, 20, tzinfo=dt.timezone.utc)
    assert account.archived is True
    assert account.balance == Decimal("-3.25")
    assert ai_config.enable_ocr is False
    assert ai_config.api_key == "k"


def test_explicit_wire_names() -> None:
    account_payload = codec.encode_record(RECORDS[1])
    ai_payload = codec.encode_record(AIConfig())

    assert account_payload["isArchived"] is False
    assert account_payload["creditLimit"] == "5000"
    assert ai_payload["enableOCR"] is True


def test_snake_case_keys_accepted() -> None:
    book = codec.decode_record(
        AccountBook, {"name": "Travel", "id": "book2", "created_at": WHEN.isoformat()}
    )

    assert book == RECORDS[0]


def test_zulu_and_naive_timestamps() -> None:
    payload = codec.encode_record(RECORDS[0])

    zulu = codec.decode_record(AccountBook, {**payload, "createdAt": "2026-01-15T08:00:00Z"})
    naive = codec.decode_record(AccountBook, {**payload, "createdAt": "2026-01-15T08:00:00"})

    assert zulu.created_at == WHEN
    assert naive.created_at == WHEN


def test_loads_malformed_json() -> None:
    with pytest.raises(DecodeError):
        codec.loads("{not json")


def test_dumps_keeps_unicode() -> None:
    text = codec.dumps({"name": "默认账本"})

    assert "默认账本" in text
    assert text.endswith("\n")
