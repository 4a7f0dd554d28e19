"""MoneyBook CLI entry point."""

from __future__ import annotations

from pathlib import Path

import click

from moneybook.__version__ import __version__
from moneybook.cli.account import account
from moneybook.cli.backup import backup
from moneybook.cli.book import book
from moneybook.cli.transaction import transaction


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="mb")
@click.option(
    "--data-dir",
    "data_dir",
    type=click.Path(path_type=Path, file_okay=False),
    help="Path to the MoneyBook data directory.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Path to mb-config.json.",
)
@click.pass_context
def main(ctx: click.Context, data_dir: Path | None, config_path: Path | None) -> None:
    """MoneyBook CLI entry point."""
    ctx.obj = {
        "data_dir": data_dir,
        "config_path": config_path,
    }


main.add_command(account)
main.add_command(transaction)
main.add_command(book)
main.add_command(backup)


if __name__ == "__main__":
    main()
