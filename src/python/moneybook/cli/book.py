"""Account book CLI commands."""

from __future__ import annotations

import click

from moneybook.cli.common import get_client
from moneybook.exceptions import MoneyBookError


@click.group()
def book() -> None:
    """Account book commands."""


@book.command("list")
@click.pass_context
def list_books(ctx: click.Context) -> None:
    """List account books; the current one is marked with *."""
    with get_client(ctx) as client:
        books = client.list_books()
        current = client.session.book_id
    for item in books:
        marker = "*" if item.id == current else " "
        default = " (default)" if item.is_default else ""
        click.echo(f"{marker} {item.id}\t{item.name}{default}")


@book.command("use")
@click.argument("book_id")
@click.pass_context
def use_book(ctx: click.Context, book_id: str) -> None:
    """Make BOOK_ID the current book."""
    with get_client(ctx) as client:
        try:
            client.switch_book(book_id)
        except MoneyBookError as e:
            raise click.ClickException(str(e))
    click.echo(f"Current book is {book_id}")
