"""Domain records persisted in the MoneyBook document store."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from decimal import Decimal
from enum import Enum
import uuid


def new_id() -> str:
    """Return a fresh opaque record id."""
    return uuid.uuid4().hex


def utc_now() -> dt.datetime:
    """Current instant in UTC, truncated to milliseconds."""
    now = dt.datetime.now(dt.timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def _ensure_instant(value: dt.datetime | dt.date, field_name: str) -> dt.datetime:
    """Normalize a date or datetime to an aware UTC datetime."""
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc)
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
    raise ValueError(f"{field_name} must be a datetime")


def _ensure_optional_instant(
    value: dt.datetime | dt.date | None, field_name: str
) -> dt.datetime | None:
    if value is None:
        return None
    return _ensure_instant(value, field_name)


def _ensure_non_empty(value: str, field_name: str) -> str:
    """Validate required text fields."""
    if not value or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value.strip()


def _to_decimal(value: Decimal | str | int | float, field_name: str) -> Decimal:
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except Exception as exc:
        raise ValueError(f"{field_name} must be a decimal") from exc


def _ensure_positive(value: Decimal | str | int | float, field_name: str) -> Decimal:
    """Parse and validate positive decimal values."""
    amount = _to_decimal(value, field_name)
    if amount <= Decimal("0"):
        raise ValueError(f"{field_name} must be greater than zero")
    return amount


def _ensure_day_of_month(value: int | None, field_name: str) -> int | None:
    if value is None:
        return None
    if not 1 <= value <= 31:
        raise ValueError(f"{field_name} must be between 1 and 31")
    return value


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class AssetType(str, Enum):
    CASH = "CASH"
    DEBIT_CARD = "DEBIT_CARD"
    CREDIT_CARD = "CREDIT_CARD"
    ALIPAY = "ALIPAY"
    WECHAT = "WECHAT"
    INVESTMENT = "INVESTMENT"
    RECEIVABLE = "RECEIVABLE"
    PAYABLE = "PAYABLE"


class BudgetPeriod(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class BudgetType(str, Enum):
    TOTAL = "TOTAL"
    CATEGORY = "CATEGORY"


class SavingsType(str, Enum):
    FIXED = "FIXED"
    FLEXIBLE = "FLEXIBLE"


class RecurringFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class ReminderType(str, Enum):
    RECORD = "RECORD"
    CREDIT_CARD = "CREDIT_CARD"
    DEBT = "DEBT"
    BUDGET = "BUDGET"
    SAVINGS = "SAVINGS"
    CUSTOM = "CUSTOM"


@dataclass(frozen=True)
class AccountBook:
    """Named partition of transactions, templates and recurring rules."""
    name: str
    id: str = field(default_factory=new_id)
    icon: str = "book"
    color: str = "#5B8DEF"
    description: str = ""
    created_at: dt.datetime = field(default_factory=utc_now)
    is_default: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "Name"))
        object.__setattr__(self, "created_at", _ensure_instant(self.created_at, "created_at"))


@dataclass(frozen=True)
class AssetAccount:
    """Asset account whose balance mirrors the transaction ledger.

    ``balance`` is signed: credit cards and payables normally run negative.
    It is changed only by the ledger engine or by an explicit balance-set.
    """
    name: str
    type: AssetType
    id: str = field(default_factory=new_id)
    balance: Decimal = Decimal("0")
    icon: str = ""
    color: str = ""
    currency: str = "CNY"
    credit_limit: Decimal | None = None
    bill_day: int | None = None
    repayment_day: int | None = None
    interest_rate: Decimal | None = None
    include_in_total: bool = True
    archived: bool = field(default=False, metadata={"wire": "isArchived"})
    created_at: dt.datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "Name"))
        object.__setattr__(self, "type", AssetType(self.type))
        object.__setattr__(self, "balance", _to_decimal(self.balance, "balance"))
        if self.credit_limit is not None:
            object.__setattr__(
                self, "credit_limit", _to_decimal(self.credit_limit, "credit_limit")
            )
        if self.interest_rate is not None:
            object.__setattr__(
                self, "interest_rate", _to_decimal(self.interest_rate, "interest_rate")
            )
        _ensure_day_of_month(self.bill_day, "bill_day")
        _ensure_day_of_month(self.repayment_day, "repayment_day")
        object.__setattr__(self, "created_at", _ensure_instant(self.created_at, "created_at"))


@dataclass(frozen=True)
class Transaction:
    """A single ledger entry belonging to one account book.

    ``to_account_id`` is set exactly when ``type`` is TRANSFER.
    """
    type: TransactionType
    amount: Decimal
    category_id: str
    account_id: str
    book_id: str
    date: dt.datetime
    id: str = field(default_factory=new_id)
    to_account_id: str | None = None
    note: str = ""
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    currency: str = "CNY"
    exchange_rate: Decimal = Decimal("1")
    is_refund: bool = False
    refund_from_id: str | None = None
    created_at: dt.datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", TransactionType(self.type))
        object.__setattr__(self, "amount", _ensure_positive(self.amount, "Amount"))
        object.__setattr__(
            self, "account_id", _ensure_non_empty(self.account_id, "Account")
        )
        object.__setattr__(self, "book_id", _ensure_non_empty(self.book_id, "Book"))
        object.__setattr__(
            self, "exchange_rate", _ensure_positive(self.exchange_rate, "Exchange rate")
        )
        object.__setattr__(self, "date", _ensure_instant(self.date, "date"))
        object.__setattr__(self, "created_at", _ensure_instant(self.created_at, "created_at"))
        if self.type is TransactionType.TRANSFER:
            if not self.to_account_id:
                raise ValueError("Transfer requires a target account")
            if self.to_account_id == self.account_id:
                raise ValueError("From account and to account must differ")
        elif self.to_account_id is not None:
            raise ValueError("Only transfers may set a target account")


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    type: TransactionType
    icon: str = ""
    color: str = ""
    parent_id: str | None = None
    is_system: bool = False
    sort_order: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", TransactionType(self.type))


@dataclass(frozen=True)
class Budget:
    name: str
    type: BudgetType
    amount: Decimal
    period: BudgetPeriod
    start_date: dt.datetime
    book_id: str
    id: str = field(default_factory=new_id)
    category_id: str | None = None
    alert_threshold: Decimal = Decimal("0.8")
    rollover: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", BudgetType(self.type))
        object.__setattr__(self, "period", BudgetPeriod(self.period))
        object.__setattr__(self, "amount", _ensure_positive(self.amount, "Amount"))
        object.__setattr__(self, "start_date", _ensure_instant(self.start_date, "start_date"))
        object.__setattr__(
            self, "alert_threshold", _to_decimal(self.alert_threshold, "alert_threshold")
        )
        if self.type is BudgetType.CATEGORY and not self.category_id:
            raise ValueError("Category budget requires a category")


@dataclass(frozen=True)
class SavingsDeposit:
    amount: Decimal
    date: dt.datetime
    id: str = field(default_factory=new_id)
    note: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _ensure_positive(self.amount, "Amount"))
        object.__setattr__(self, "date", _ensure_instant(self.date, "date"))


@dataclass(frozen=True)
class SavingsPlan:
    name: str
    target_amount: Decimal
    type: SavingsType
    id: str = field(default_factory=new_id)
    emoji: str = "\U0001F4B0"
    current_amount: Decimal = Decimal("0")
    fixed_amount: Decimal | None = None
    frequency: str | None = None
    target_date: dt.datetime | None = None
    deposits: list[SavingsDeposit] = field(default_factory=list)
    color: str = "#10B981"
    created_at: dt.datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "Name"))
        object.__setattr__(self, "type", SavingsType(self.type))
        object.__setattr__(
            self, "target_amount", _ensure_positive(self.target_amount, "Target amount")
        )
        object.__setattr__(
            self, "current_amount", _to_decimal(self.current_amount, "current_amount")
        )
        if self.fixed_amount is not None:
            object.__setattr__(
                self, "fixed_amount", _ensure_positive(self.fixed_amount, "Fixed amount")
            )
        object.__setattr__(
            self, "target_date", _ensure_optional_instant(self.target_date, "target_date")
        )
        object.__setattr__(self, "created_at", _ensure_instant(self.created_at, "created_at"))


@dataclass(frozen=True)
class RecordTemplate:
    name: str
    type: TransactionType
    category_id: str
    account_id: str
    id: str = field(default_factory=new_id)
    amount: Decimal | None = None
    note: str = ""
    tags: list[str] = field(default_factory=list)
    use_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", TransactionType(self.type))
        if self.amount is not None:
            object.__setattr__(self, "amount", _ensure_positive(self.amount, "Amount"))


@dataclass(frozen=True)
class RecurringTransaction:
    template_id: str
    frequency: RecurringFrequency
    start_date: dt.datetime
    id: str = field(default_factory=new_id)
    end_date: dt.datetime | None = None
    last_executed: dt.datetime | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "frequency", RecurringFrequency(self.frequency))
        object.__setattr__(self, "start_date", _ensure_instant(self.start_date, "start_date"))
        object.__setattr__(self, "end_date", _ensure_optional_instant(self.end_date, "end_date"))
        object.__setattr__(
            self, "last_executed", _ensure_optional_instant(self.last_executed, "last_executed")
        )


@dataclass(frozen=True)
class Reminder:
    type: ReminderType
    title: str
    time: dt.datetime
    id: str = field(default_factory=new_id)
    content: str = ""
    repeat_type: str = "NONE"
    is_enabled: bool = True
    related_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ReminderType(self.type))
        object.__setattr__(self, "time", _ensure_instant(self.time, "time"))


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str
    rate: Decimal = Decimal("1")
    last_updated: dt.datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", _ensure_positive(self.rate, "Rate"))
        object.__setattr__(
            self, "last_updated", _ensure_instant(self.last_updated, "last_updated")
        )


@dataclass(frozen=True)
class AppSettings:
    """Process-wide preferences (singleton document)."""
    default_book_id: str = ""
    default_currency: str = "CNY"
    start_day_of_month: int = 1
    start_day_of_week: int = 1
    enable_biometric: bool = False
    enable_pin: bool = False
    pin_code: str = ""
    dark_mode: str = "system"
    language: str = "zh"
    enable_notifications: bool = True
    enable_budget_alert: bool = True
    budget_alert_threshold: Decimal = Decimal("0.8")
    backup_keep_count: int = 5


@dataclass(frozen=True)
class AIConfig:
    provider: str = "deepseek"
    api_key: str = ""
    base_url: str = "https://api.deepseek.com"
    model: str = "deepseek-chat"
    enable_auto_classify: bool = True
    enable_ocr: bool = field(default=True, metadata={"wire": "enableOCR"})


@dataclass(frozen=True)
class CurrentBook:
    """Pointer to the book selected in the last session."""
    book_id: str = ""


@dataclass(frozen=True)
class Session:
    """Explicit per-caller state for book-scoped operations."""
    book_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "book_id", _ensure_non_empty(self.book_id, "Book"))


@dataclass(frozen=True)
class BalanceDrift:
    """Stored versus recomputed balance for one account."""
    account_id: str
    stored: Decimal
    recomputed: Decimal

    @property
    def difference(self) -> Decimal:
        return self.recomputed - self.stored
