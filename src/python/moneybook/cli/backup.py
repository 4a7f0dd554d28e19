"""Backup CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from moneybook.cli.common import get_client
from moneybook.exceptions import (
    BackupError,
    InvalidArchiveError,
    PartialRestoreError,
    WebDavError,
)


@click.group()
def backup() -> None:
    """Backup and restore commands."""


@backup.command("create")
@click.pass_context
def create_backup(ctx: click.Context) -> None:
    """Snapshot the data directory into a local archive."""
    with get_client(ctx) as client:
        try:
            path = client.create_backup()
        except BackupError as e:
            raise click.ClickException(str(e))
    click.echo(f"Created {path}")


@backup.command("list")
@click.pass_context
def list_backups(ctx: click.Context) -> None:
    """List local archives, newest first."""
    with get_client(ctx) as client:
        backups = client.list_backups()
    if not backups:
        click.echo("No backups found.")
        return
    for info in backups:
        click.echo(f"{info.formatted_date}\t{info.formatted_size:>8}\t{info.path.name}")


@backup.command("export")
@click.argument("destination", required=False, type=click.Path(path_type=Path))
@click.pass_context
def export_backup(ctx: click.Context, destination: Path | None) -> None:
    """Export a fresh archive to DESTINATION or the configured WebDAV server."""
    with get_client(ctx) as client:
        try:
            location = client.export_backup(destination)
        except (BackupError, ValueError) as e:
            raise click.ClickException(str(e))
    click.echo(f"Exported to {location}")


@backup.command("restore")
@click.argument("archive")
@click.option("--remote", is_flag=True, help="ARCHIVE is a path on the WebDAV server.")
@click.confirmation_option(prompt="Replace current data with the archive contents?")
@click.pass_context
def restore_backup(ctx: click.Context, archive: str, remote: bool) -> None:
    """Restore the directories contained in ARCHIVE."""
    with get_client(ctx) as client:
        try:
            if remote:
                report = client.restore_remote_backup(archive)
            else:
                report = client.restore_backup(archive)
        except InvalidArchiveError as e:
            raise click.ClickException(f"Invalid backup, nothing changed: {e}")
        except PartialRestoreError as e:
            if e.safety_copy is not None:
                raise click.ClickException(f"{e}\nPrevious data: {e.safety_copy}")
            raise click.ClickException(str(e))
        except (BackupError, WebDavError, ValueError) as e:
            raise click.ClickException(str(e))
    click.echo(f"Restored {', '.join(report.restored_dirs)}")


@backup.command("clean")
@click.option("--keep", type=click.IntRange(min=0), default=None, help="Archives to keep.")
@click.pass_context
def clean_backups(ctx: click.Context, keep: int | None) -> None:
    """Delete all but the newest local archives."""
    with get_client(ctx) as client:
        removed = client.clean_old_backups(keep)
    click.echo(f"Removed {len(removed)} backup(s)")
