"""Transaction CLI commands."""

from __future__ import annotations

import click

from moneybook.cli.common import get_client, parse_date, parse_decimal
from moneybook.exceptions import MoneyBookError
from moneybook.models import TransactionType

TYPE_CHOICES = click.Choice([kind.value.lower() for kind in TransactionType], case_sensitive=False)


@click.group()
def transaction() -> None:
    """Transaction commands."""


@transaction.command("add")
@click.option("--type", "kind", type=TYPE_CHOICES, required=True, help="income, expense or transfer.")
@click.option("--amount", "amount_value", required=True, help="Positive amount.")
@click.option("--account", "account_id", required=True, help="Source account id.")
@click.option("--to-account", "to_account_id", default=None, help="Target account id (transfers).")
@click.option("--category", "category_id", default="", help="Category id.")
@click.option("--date", "date_value", default=None, help="Date in YYYY-MM-DD (defaults to now).")
@click.option("--note", default="", help="Free text note.")
@click.pass_context
def add_transaction(
    ctx: click.Context,
    kind: str,
    amount_value: str,
    account_id: str,
    to_account_id: str | None,
    category_id: str,
    date_value: str | None,
    note: str,
) -> None:
    """Add a transaction to the current book."""
    amount = parse_decimal(amount_value, "--amount")
    date = parse_date(date_value, "--date")
    with get_client(ctx) as client:
        try:
            record = client.new_transaction(
                type=kind.upper(),
                amount=amount,
                account_id=account_id,
                category_id=category_id,
                to_account_id=to_account_id,
                date=date,
                note=note,
            )
            client.add_transaction(record)
        except (MoneyBookError, ValueError) as e:
            raise click.ClickException(f"Transaction add failed: {e}")
    click.echo(f"Added transaction {record.id}")


@transaction.command("list")
@click.option("--start-date", default=None, help="Start date in YYYY-MM-DD.")
@click.option("--end-date", default=None, help="End date in YYYY-MM-DD (exclusive).")
@click.option("--limit", type=int, default=None, help="Limit results.")
@click.pass_context
def list_transactions(
    ctx: click.Context,
    start_date: str | None,
    end_date: str | None,
    limit: int | None,
) -> None:
    """List transactions of the current book, newest first."""
    start = parse_date(start_date, "--start-date")
    end = parse_date(end_date, "--end-date")
    with get_client(ctx) as client:
        records = client.list_transactions(start=start, end=end)
    if limit is not None:
        records = records[:limit]
    for record in records:
        target = f"->{record.to_account_id}" if record.to_account_id else ""
        click.echo(
            f"{record.id}\t{record.date.date().isoformat()}\t{record.type.value}"
            f"\t{record.amount}\t{record.account_id}{target}\t{record.category_id}\t{record.note}"
        )


@transaction.command("edit")
@click.argument("transaction_id")
@click.option("--amount", "amount_value", default=None, help="New amount.")
@click.option("--category", "category_id", default=None, help="New category id.")
@click.option("--note", default=None, help="New note.")
@click.pass_context
def edit_transaction(
    ctx: click.Context,
    transaction_id: str,
    amount_value: str | None,
    category_id: str | None,
    note: str | None,
) -> None:
    """Edit a transaction; account balances follow the change."""
    changes = {}
    if amount_value is not None:
        changes["amount"] = parse_decimal(amount_value, "--amount")
    if category_id is not None:
        changes["category_id"] = category_id
    if note is not None:
        changes["note"] = note
    if not changes:
        raise click.UsageError("Nothing to change.")
    with get_client(ctx) as client:
        try:
            client.edit_transaction(transaction_id, **changes)
        except MoneyBookError as e:
            raise click.ClickException(str(e))
        except ValueError as e:
            raise click.ClickException(f"Transaction edit failed: {e}")
    click.echo(f"Updated transaction {transaction_id}")


@transaction.command("delete")
@click.argument("transaction_id")
@click.pass_context
def delete_transaction(ctx: click.Context, transaction_id: str) -> None:
    """Delete a transaction and roll back its balance effect."""
    with get_client(ctx) as client:
        try:
            client.delete_transaction(transaction_id)
        except MoneyBookError as e:
            raise click.ClickException(str(e))
    click.echo(f"Deleted transaction {transaction_id}")
