"""Account CLI commands."""

from __future__ import annotations

import click

from moneybook.cli.common import get_client, parse_decimal
from moneybook.exceptions import MoneyBookError


@click.group()
def account() -> None:
    """Account commands."""


@account.command("list")
@click.option("--active", is_flag=True, help="Hide archived accounts.")
@click.pass_context
def list_accounts(ctx: click.Context, active: bool) -> None:
    """List asset accounts with current balances.

    Examples:
        mb account list
        mb account list --active
    """
    with get_client(ctx) as client:
        accounts = client.list_accounts(include_archived=not active)
        net_worth = client.net_worth()

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    click.echo(f"{'Id':<24} {'Name':<20} {'Type':<14} {'Balance':>14} {'Currency':<6}")
    click.echo("-" * 80)
    for item in accounts:
        click.echo(
            f"{item.id:<24} {item.name:<20} {item.type.value:<14} {item.balance:>14.2f} {item.currency:<6}"
        )
    click.echo("-" * 80)
    click.echo(f"Net worth: {net_worth:.2f}")


@account.command("set-balance")
@click.argument("account_id")
@click.argument("balance")
@click.pass_context
def set_balance(ctx: click.Context, account_id: str, balance: str) -> None:
    """Set an account balance outright (opening balance or correction)."""
    amount = parse_decimal(balance, "BALANCE")
    with get_client(ctx) as client:
        try:
            client.set_account_balance(account_id, amount)
        except MoneyBookError as e:
            raise click.ClickException(str(e))
    click.echo(f"Set balance of {account_id} to {amount}")


@account.command("recompute")
@click.option(
    "--opening",
    "openings",
    multiple=True,
    metavar="ACCOUNT_ID=AMOUNT",
    help="Opening balance to start ACCOUNT_ID from. Repeatable.",
)
@click.pass_context
def recompute(ctx: click.Context, openings: tuple[str, ...]) -> None:
    """Rebuild balances from every book's transactions.

    Use after an interrupted write left balances out of step with the
    ledger. Balances start from zero, so opening balances set with
    set-balance are lost unless passed again with --opening. Transactions
    of deleted books no longer count: their effect disappears here.

    Examples:
        mb account recompute
        mb account recompute --opening default_cash=250.00
    """
    opening_balances = {}
    for item in openings:
        account_id, sep, amount = item.partition("=")
        if not sep or not account_id:
            raise click.BadParameter("Use ACCOUNT_ID=AMOUNT.", param_hint="--opening")
        opening_balances[account_id] = parse_decimal(amount, "--opening")
    with get_client(ctx) as client:
        try:
            drifts = client.recompute_balances(opening_balances)
        except MoneyBookError as e:
            raise click.ClickException(str(e))

    if not drifts:
        click.echo("All balances match the ledger.")
        return
    for drift in drifts:
        click.echo(
            f"{drift.account_id}: {drift.stored:.2f} -> {drift.recomputed:.2f} "
            f"({drift.difference:+.2f})"
        )
