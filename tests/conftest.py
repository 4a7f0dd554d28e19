"""Pytest configuration and fixtures.

Every fixture works on a fresh data directory under ``tmp_path``; nothing
touches the user's MoneyBook home.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from pathlib import Path
import sys

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src" / "python"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from moneybook.ledger import LedgerEngine  # noqa: E402
from moneybook.models import AssetAccount, AssetType  # noqa: E402
from moneybook.repository import Repository  # noqa: E402
from moneybook.store import DocumentStore  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point MONEYBOOK_HOME at a temporary directory for every test."""
    home = tmp_path / "home"
    monkeypatch.setenv("MONEYBOOK_HOME", str(home))
    monkeypatch.delenv("MONEYBOOK_CONFIG", raising=False)
    return home


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture()
def store(data_dir: Path) -> DocumentStore:
    return DocumentStore(data_dir)


@pytest.fixture()
def repository(store: DocumentStore) -> Repository:
    return Repository(store)


@pytest.fixture()
def ledger(repository: Repository) -> LedgerEngine:
    return LedgerEngine(repository)


@pytest.fixture()
def two_accounts(repository: Repository) -> tuple[str, str]:
    """Replace the seeded accounts with two zero-balance accounts A and B."""
    repository.save_asset_accounts(
        [
            AssetAccount(id="acc_a", name="Account A", type=AssetType.DEBIT_CARD),
            AssetAccount(id="acc_b", name="Account B", type=AssetType.CASH),
        ]
    )
    return "acc_a", "acc_b"


@pytest.fixture()
def when() -> dt.datetime:
    return dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc)


@pytest.fixture()
def balance_of(repository: Repository):
    def _balance(account_id: str) -> Decimal:
        account = repository.get_asset_account(account_id)
        assert account is not None
        return account.balance

    return _balance
