"""Shared CLI helpers."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal, InvalidOperation

import click

from moneybook.client import MoneyBookClient


def parse_date(value: str | None, field_name: str) -> dt.datetime | None:
    """Parse an ISO date or datetime string into a UTC datetime."""
    if value is None:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter("Use YYYY-MM-DD or YYYY-MM-DDTHH:MM format.", param_hint=field_name) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def parse_decimal(value: str | None, field_name: str) -> Decimal | None:
    """Parse a decimal string into a Decimal."""
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise click.BadParameter("Use a valid decimal value.", param_hint=field_name) from exc


def get_client(ctx: click.Context) -> MoneyBookClient:
    """Build a MoneyBook client from Click context."""
    payload = ctx.obj or {}
    return MoneyBookClient(
        data_dir=payload.get("data_dir"),
        config_path=payload.get("config_path"),
    )
