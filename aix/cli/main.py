"""CLI entry point for aix."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.table import Table

from aix import __version__
from aix.adapters import AdapterRegistry
from aix.cli import backup, mcp
from aix.cli.common import (
    PlatformOption,
    ScopeOption,
    build_orchestrator,
    configure_logging,
    console,
    describe_mcp,
    handle_errors,
    parse_scope,
    parse_type,
    print_issues,
    print_outcomes,
    print_resource,
    resolve_platforms,
    select_match,
)
from aix.config import AixConfig
from aix.core.parser import detect_type, parse_file
from aix.core.resource import MCPServer, ResourceType
from aix.core.validator import Validator
from aix.resolver import DirectoryIndex, locate

app = typer.Typer(
    name="aix",
    help="Install skills, commands, agents and MCP servers across AI coding tools.",
    no_args_is_help=True,
    add_completion=False,
)
app.add_typer(backup.app, name="backup")
app.add_typer(mcp.app, name="mcp")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"aix {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging.")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
        ),
    ] = False,
) -> None:
    """aix - one definition, every assistant."""
    configure_logging(verbose)


@app.command()
def install(
    source: Annotated[str, typer.Argument(help="Resource name, local path or git URL")],
    resource_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Resource type: skill, command, agent or mcp"),
    ] = None,
    platform: PlatformOption = None,
    scope: ScopeOption = "user",
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite existing resources")
    ] = False,
    file: Annotated[
        bool,
        typer.Option("--file", "-f", help="Treat SOURCE as a path; skip repository search"),
    ] = False,
    strict: Annotated[
        bool, typer.Option("--strict", help="Validate allowed-tools syntax")
    ] = False,
    no_backup: Annotated[
        bool, typer.Option("--no-backup", help="Skip backing up platform config first")
    ] = False,
) -> None:
    """Install a resource to one or more platforms.

    Examples:
      aix install code-review
      aix install ./skills/code-review --platform claude --platform opencode
      aix install https://github.com/user/code-review.git --force
      aix install ./mcp/github.json --type mcp
    """
    with handle_errors():
        config = AixConfig.load()
        if resource_type is not None:
            rtype = parse_type(resource_type)
        else:
            rtype = detect_type(Path(source)) or ResourceType.SKILL
        platforms = resolve_platforms(platform, config.default_platforms)
        install_scope = parse_scope(scope)

        result = build_orchestrator(config, no_backup).install_from_source(
            source,
            rtype,
            platforms,
            scope=install_scope,
            force=force,
            project_root=Path.cwd(),
            strict=strict,
            force_file=file,
            index=DirectoryIndex(config.repo_paths()) if config.repos else None,
            selector=select_match,
        )

    for issue in result.warnings:
        console.print(f"[yellow]{escape(str(issue))}[/yellow]", highlight=False)
    for name in result.installed:
        verb = "Updated" if name in result.overwritten else "Installed"
        console.print(f"[green]{verb} {rtype.label} '{result.resource_name}' on {name}[/green]")


@app.command()
def remove(
    name: Annotated[str, typer.Argument(help="Name of the resource to remove")],
    resource_type: Annotated[
        str, typer.Option("--type", "-t", help="Resource type: skill, command, agent or mcp")
    ] = "skill",
    platform: PlatformOption = None,
    scope: ScopeOption = "user",
) -> None:
    """Remove a resource from every platform that has it."""
    with handle_errors():
        config = AixConfig.load()
        outcomes = build_orchestrator(config).remove(
            parse_type(resource_type),
            name,
            resolve_platforms(platform, config.default_platforms),
            scope=parse_scope(scope),
            project_root=Path.cwd(),
        )
    if not print_outcomes("Removed", name, outcomes):
        raise typer.Exit(1)


@app.command()
def enable(
    name: Annotated[str, typer.Argument(help="MCP server name")],
    platform: PlatformOption = None,
    scope: ScopeOption = "user",
) -> None:
    """Enable an MCP server."""
    with handle_errors():
        config = AixConfig.load()
        outcomes = build_orchestrator(config).enable(
            name,
            resolve_platforms(platform, config.default_platforms),
            scope=parse_scope(scope),
            project_root=Path.cwd(),
        )
    if not print_outcomes("Enabled", name, outcomes):
        raise typer.Exit(1)


@app.command()
def disable(
    name: Annotated[str, typer.Argument(help="MCP server name")],
    platform: PlatformOption = None,
    scope: ScopeOption = "user",
) -> None:
    """Disable an MCP server without removing it."""
    with handle_errors():
        config = AixConfig.load()
        outcomes = build_orchestrator(config).disable(
            name,
            resolve_platforms(platform, config.default_platforms),
            scope=parse_scope(scope),
            project_root=Path.cwd(),
        )
    if not print_outcomes("Disabled", name, outcomes):
        raise typer.Exit(1)


@app.command()
def validate(
    path: Annotated[Path, typer.Argument(help="Resource file or skill directory")],
    resource_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Resource type: skill, command, agent or mcp"),
    ] = None,
    strict: Annotated[
        bool, typer.Option("--strict", help="Validate allowed-tools syntax")
    ] = False,
) -> None:
    """Validate a resource without installing it."""
    with handle_errors():
        if resource_type is not None:
            rtype = parse_type(resource_type)
        else:
            rtype = detect_type(path) or ResourceType.SKILL
        source = locate(path, rtype)
        resource = parse_file(source, rtype)
        result = Validator(strict=strict).validate_with_path(resource, source)

    if not result.issues:
        console.print(f"[green]{rtype.label} '{resource.name}' is valid[/green]")
        return
    console.print(f"[bold]{source}[/bold]")
    print_issues(result)
    if result.has_errors():
        raise typer.Exit(1)


@app.command()
def show(
    name: Annotated[str, typer.Argument(help="Name of the installed resource")],
    resource_type: Annotated[
        str, typer.Option("--type", "-t", help="Resource type: skill, command, agent or mcp")
    ] = "skill",
    platform: PlatformOption = None,
    scope: ScopeOption = "user",
) -> None:
    """Show an installed resource as each platform stores it.

    Examples:
      aix show code-review
      aix show github --type mcp --platform claude
    """
    with handle_errors():
        config = AixConfig.load()
        rtype = parse_type(resource_type)
        found = build_orchestrator(config, no_backup=True).show(
            rtype,
            name,
            resolve_platforms(platform, config.default_platforms),
            scope=parse_scope(scope),
            project_root=Path.cwd(),
        )

    if not found:
        console.print(f"[red]Error:[/red] {rtype.label} '{escape(name)}' not found on any platform")
        raise typer.Exit(1)

    console.print(f"[bold]{rtype.label}: {escape(name)}[/bold]")
    console.print()
    for platform_name, resource in found.items():
        print_resource(AdapterRegistry.display_name(platform_name), resource)


@app.command(name="list")
def list_resources(
    resource_type: Annotated[
        str, typer.Option("--type", "-t", help="Resource type: skill, command, agent or mcp")
    ] = "skill",
    platform: PlatformOption = None,
    scope: ScopeOption = "user",
) -> None:
    """List installed resources per platform."""
    with handle_errors():
        config = AixConfig.load()
        rtype = parse_type(resource_type)
        listing = build_orchestrator(config, no_backup=True).list(
            rtype,
            resolve_platforms(platform, config.default_platforms),
            scope=parse_scope(scope),
            project_root=Path.cwd(),
        )

    table = Table(title=f"Installed {rtype.label}s")
    table.add_column("Platform", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Details")
    for platform_name, resources in listing.items():
        for resource in resources:
            if isinstance(resource, MCPServer):
                detail = describe_mcp(resource)
            else:
                detail = escape(resource.description)
            table.add_row(platform_name, resource.name, detail)
    console.print(table)


if __name__ == "__main__":
    app()
