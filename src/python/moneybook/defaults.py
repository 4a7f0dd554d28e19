"""Seed data written the first time a collection is read empty."""

from __future__ import annotations

from decimal import Decimal

from moneybook.models import (
    AccountBook,
    AssetAccount,
    AssetType,
    Category,
    Currency,
    TransactionType,
)

DEFAULT_BOOK_NAME = "Default Book"

_EXPENSE_CATEGORIES = [
    ("exp_food", "Food", "restaurant", "#FFAA5B"),
    ("exp_shopping", "Shopping", "shopping_bag", "#FF6B6B"),
    ("exp_transport", "Transport", "train", "#5B8DEF"),
    ("exp_entertainment", "Entertainment", "gamepad", "#A78BFA"),
    ("exp_housing", "Housing", "home", "#2DD4BF"),
    ("exp_medical", "Medical", "activity", "#FF6B6B"),
    ("exp_education", "Education", "graduation_cap", "#5B8DEF"),
    ("exp_communication", "Communication", "phone", "#737373"),
    ("exp_beauty", "Beauty", "sparkles", "#F472B6"),
    ("exp_sports", "Sports", "dumbbell", "#4CD964"),
    ("exp_social", "Social", "users", "#FFAA5B"),
    ("exp_travel", "Travel", "plane", "#5B8DEF"),
    ("exp_pet", "Pets", "paw_print", "#FFAA5B"),
    ("exp_gift", "Gifts", "gift", "#F472B6"),
    ("exp_other", "Other", "more_horizontal", "#A3A3A3"),
]

_INCOME_CATEGORIES = [
    ("inc_salary", "Salary", "briefcase", "#4CD964"),
    ("inc_bonus", "Bonus", "award", "#4CD964"),
    ("inc_sideline", "Side Job", "laptop", "#2DD4BF"),
    ("inc_investment", "Investment", "trending_up", "#A78BFA"),
    ("inc_interest", "Interest", "landmark", "#5B8DEF"),
    ("inc_gift", "Gift Money", "heart", "#FFAA5B"),
    ("inc_refund", "Refund", "rotate_ccw", "#5B8DEF"),
    ("inc_other", "Other", "more_horizontal", "#A3A3A3"),
]


def default_categories() -> list[Category]:
    categories = []
    for rows, kind in (
        (_EXPENSE_CATEGORIES, TransactionType.EXPENSE),
        (_INCOME_CATEGORIES, TransactionType.INCOME),
    ):
        for order, (category_id, name, icon, color) in enumerate(rows, start=1):
            categories.append(
                Category(
                    id=category_id,
                    name=name,
                    type=kind,
                    icon=icon,
                    color=color,
                    is_system=True,
                    sort_order=order,
                )
            )
    return categories


def default_asset_accounts() -> list[AssetAccount]:
    return [
        AssetAccount(
            id="default_cash", name="Cash", type=AssetType.CASH, icon="wallet", color="#4CD964"
        ),
        AssetAccount(
            id="default_alipay",
            name="Alipay",
            type=AssetType.ALIPAY,
            icon="smartphone",
            color="#5B8DEF",
        ),
        AssetAccount(
            id="default_wechat",
            name="WeChat",
            type=AssetType.WECHAT,
            icon="message_circle",
            color="#4CD964",
        ),
    ]


def default_currencies() -> list[Currency]:
    # Rates are expressed against CNY.
    return [
        Currency("CNY", "Chinese Yuan", "¥", Decimal("1")),
        Currency("USD", "US Dollar", "$", Decimal("7.2")),
        Currency("EUR", "Euro", "€", Decimal("7.8")),
        Currency("GBP", "British Pound", "£", Decimal("9.1")),
        Currency("JPY", "Japanese Yen", "¥", Decimal("0.048")),
        Currency("HKD", "Hong Kong Dollar", "HK$", Decimal("0.92")),
        Currency("TWD", "New Taiwan Dollar", "NT$", Decimal("0.22")),
        Currency("KRW", "South Korean Won", "₩", Decimal("0.0054")),
    ]


def default_account_book() -> AccountBook:
    return AccountBook(name=DEFAULT_BOOK_NAME, is_default=True)
