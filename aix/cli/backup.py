"""Backup commands for aix - list and restore platform config backups."""

from typing import Annotated, Optional

import typer
from rich.table import Table

from aix.adapters import AdapterRegistry
from aix.backup import BackupManager
from aix.cli.common import PlatformOption, console, handle_errors, resolve_platforms
from aix.exceptions import BackupError

app = typer.Typer(
    help="List and restore the backups aix takes before changing platform config.",
    no_args_is_help=True,
)


@app.command("list")
def list_backups(
    platform: PlatformOption = None,
    as_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List backups per platform, most recent first.

    Examples:
      aix backup list
      aix backup list --platform claude
    """
    platforms = resolve_platforms(platform, AdapterRegistry.all_names())
    manager = BackupManager()
    with handle_errors():
        listing = {name: manager.list_backups(name) for name in platforms}

    if as_json:
        console.print_json(
            data=[
                {
                    "platform": name,
                    "backups": [
                        {
                            "id": m.id,
                            "created_at": m.created_at,
                            "file_count": len(m.files),
                            "aix_version": m.aix_version,
                        }
                        for m in manifests
                    ],
                }
                for name, manifests in listing.items()
            ]
        )
        return

    for name, manifests in listing.items():
        display = AdapterRegistry.display_name(name)
        if not manifests:
            console.print(f"[bold cyan]{display}[/bold cyan] [dim](no backups available)[/dim]")
            continue
        table = Table(title=f"{display} backups", title_justify="left")
        table.add_column("ID", style="green")
        table.add_column("Created (UTC)")
        table.add_column("Files", justify="right")
        table.add_column("Version", style="dim")
        for m in manifests:
            created = m.created_at.replace("T", " ")[:19]
            table.add_row(m.id, created, str(len(m.files)), m.aix_version)
        console.print(table)

    if not any(listing.values()):
        console.print()
        console.print("No backups available")
        console.print(
            "[dim]Backups are created automatically before aix modifies configurations.[/dim]"
        )


@app.command()
def restore(
    backup_id: Annotated[
        Optional[str],
        typer.Argument(help="Backup to restore. Defaults to the most recent one."),
    ] = None,
    platform: PlatformOption = None,
) -> None:
    """Restore a platform's configuration from a backup.

    Every file in the backup is checked against its recorded checksum, then
    written back to its original location with its original permissions.
    Existing files are overwritten.

    Examples:
      aix backup restore --platform claude
      aix backup restore 20260123T100712 --platform claude
    """
    if not platform:
        raise typer.BadParameter("--platform is required for restore")
    if len(set(platform)) != 1:
        raise typer.BadParameter("restore requires exactly one platform")
    (name,) = resolve_platforms(sorted(set(platform)), [])
    display = AdapterRegistry.display_name(name)

    manager = BackupManager()
    with handle_errors():
        if backup_id is None:
            latest = manager.latest(name)
            if latest is None:
                raise BackupError(f"no backups found for {display}")
            backup_id = latest.id
            console.print(f"Using most recent backup: {backup_id}")
        manifest = manager.restore(name, backup_id)

    console.print(
        f"[green]Restored {display} configuration from backup {backup_id} "
        f"({len(manifest.files)} file(s))[/green]"
    )
