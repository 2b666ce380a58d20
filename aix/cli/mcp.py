"""MCP commands for aix - define an MCP server from the command line."""

from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.markup import escape

from aix.cli.common import (
    PlatformOption,
    ScopeOption,
    build_orchestrator,
    console,
    handle_errors,
    parse_pairs,
    parse_scope,
    resolve_platforms,
)
from aix.config import AixConfig
from aix.core.resource import TRANSPORT_SSE, TRANSPORT_STDIO, MCPServer
from aix.orchestrator import InstallRequest

app = typer.Typer(
    help="Manage MCP server definitions.",
    no_args_is_help=True,
)


def build_server(
    name: str,
    command: str | None,
    args: list[str] | None,
    url: str | None,
    env: list[str] | None,
    headers: list[str] | None,
    transport: str | None,
    os_platforms: list[str] | None,
) -> MCPServer:
    """Assemble an MCPServer from command-line values.

    Raises:
        typer.BadParameter: If neither or both of command and url are given,
            or a KEY=VALUE option is malformed
    """
    if not command and not url:
        raise typer.BadParameter("either command or --url is required")
    if command and url:
        raise typer.BadParameter("cannot specify both command and --url")
    if args and not command:
        raise typer.BadParameter("arguments need a command")
    return MCPServer(
        name=name,
        transport=transport or (TRANSPORT_SSE if url else TRANSPORT_STDIO),
        command=command or "",
        args=list(args or []),
        url=url or "",
        env=parse_pairs(env, "--env"),
        headers=parse_pairs(headers, "--header"),
        platforms=list(os_platforms or []),
    )


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Server name")],
    command: Annotated[
        Optional[str], typer.Argument(help="Executable for a local (stdio) server")
    ] = None,
    args: Annotated[
        Optional[List[str]], typer.Argument(help="Arguments passed to the command")
    ] = None,
    url: Annotated[
        Optional[str], typer.Option("--url", help="Endpoint of a remote (sse) server")
    ] = None,
    env: Annotated[
        Optional[List[str]],
        typer.Option("--env", "-e", help="Environment variable as KEY=VALUE (repeatable)"),
    ] = None,
    headers: Annotated[
        Optional[List[str]],
        typer.Option("--header", help="HTTP header as KEY=VALUE (repeatable)"),
    ] = None,
    transport: Annotated[
        Optional[str],
        typer.Option("--transport", help="stdio or sse. Inferred from --url when omitted."),
    ] = None,
    os_platforms: Annotated[
        Optional[List[str]],
        typer.Option("--os", help="Restrict to an OS: darwin, linux or windows (repeatable)"),
    ] = None,
    platform: PlatformOption = None,
    scope: ScopeOption = "user",
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing server")
    ] = False,
    no_backup: Annotated[
        bool, typer.Option("--no-backup", help="Skip backing up platform config first")
    ] = False,
) -> None:
    """Add an MCP server to one or more platforms.

    Put -- before the command when its arguments start with a dash.

    Examples:
      aix mcp add github --env GITHUB_TOKEN=ghp_xxx -- npx -y @modelcontextprotocol/server-github
      aix mcp add docs --url https://mcp.example.com/sse --header "Authorization=Bearer xxx"
      aix mcp add fetch uvx mcp-server-fetch --platform claude --scope project
    """
    server = build_server(name, command, args, url, env, headers, transport, os_platforms)
    with handle_errors():
        config = AixConfig.load()
        result = build_orchestrator(config, no_backup).apply(
            InstallRequest(
                resource=server,
                platforms=resolve_platforms(platform, config.default_platforms),
                scope=parse_scope(scope),
                force=force,
                project_root=Path.cwd(),
            )
        )

    for issue in result.warnings:
        console.print(f"[yellow]{escape(str(issue))}[/yellow]", highlight=False)
    for target in result.installed:
        verb = "Updated" if target in result.overwritten else "Added"
        console.print(f"[green]{verb} MCP server '{server.name}' on {target}[/green]")
