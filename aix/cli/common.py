"""Shared CLI utilities for aix commands."""

import logging
from contextlib import contextmanager
from typing import Annotated, Generator, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import IntPrompt

from aix.adapters import AdapterRegistry, Scope
from aix.backup import BackupManager, NoBackup
from aix.config import AixConfig
from aix.core.resource import MCPServer, Resource, ResourceType, Skill, parse_resource_type
from aix.core.validator import Issue, Severity, ValidationResult
from aix.exceptions import AixError, ValidationFailedError
from aix.orchestrator import Orchestrator, OutcomeStatus, PlatformOutcome
from aix.resolver import Match

console = Console()
err_console = Console(stderr=True)

PlatformOption = Annotated[
    Optional[List[str]],
    typer.Option(
        "--platform",
        "-p",
        help="Target platform (repeatable). Defaults to default_platforms in config.toml.",
    ),
]
ScopeOption = Annotated[
    str,
    typer.Option("--scope", "-s", help="Install scope: user or project"),
]

_SEVERITY_STYLE = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}


def configure_logging(verbose: bool) -> None:
    """Route aix log records through rich when --verbose is given."""
    if not verbose:
        return
    handler = RichHandler(console=err_console, show_path=False, show_time=False)
    logger = logging.getLogger("aix")
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)


def build_orchestrator(config: AixConfig, no_backup: bool = False) -> Orchestrator:
    backup = NoBackup() if no_backup else BackupManager()
    return Orchestrator(backup=backup, config_dirs=config.config_dirs())


def mask_secret(value: str) -> str:
    """Mask a secret for display, keeping a short prefix for recognition."""
    if len(value) <= 8:
        return "****"
    return value[:4] + "****"


def describe_mcp(server: MCPServer) -> str:
    """One-line summary of an MCP server with secrets masked."""
    detail = escape(server.url or " ".join([server.command, *server.args]))
    secrets = {**server.env, **server.headers}
    if secrets:
        masked = ", ".join(f"{k}={mask_secret(v)}" for k, v in secrets.items())
        detail += f" [dim]({escape(masked)})[/dim]"
    if server.disabled:
        detail += " [yellow](disabled)[/yellow]"
    return detail


def _field(label: str, value: str) -> None:
    console.print(f"  [bold]{escape(label)}:[/bold] {escape(value)}", highlight=False)


def print_resource(display_name: str, resource: Resource) -> None:
    """Print the installed form of a resource as read from one platform."""
    console.print(f"[bold cyan]{display_name}[/bold cyan]")
    match resource:
        case MCPServer():
            _field("Transport", resource.transport)
            if resource.url:
                _field("URL", resource.url)
            else:
                _field("Command", " ".join([resource.command, *resource.args]))
            for key, value in resource.env.items():
                _field("Env", f"{key}={mask_secret(value)}")
            for key, value in resource.headers.items():
                _field("Header", f"{key}={mask_secret(value)}")
            if resource.platforms:
                _field("OS", ", ".join(resource.platforms))
            _field("Status", "disabled" if resource.disabled else "enabled")
        case Skill():
            _field("Description", resource.description)
            if resource.license:
                _field("License", resource.license)
            if resource.compatibility:
                _field("Compatibility", ", ".join(resource.compatibility))
            if resource.allowed_tools:
                _field("Allowed tools", " ".join(resource.allowed_tools))
            for key, value in resource.metadata.items():
                _field(key, value)
        case _:
            _field("Description", resource.description)
    if not isinstance(resource, MCPServer) and resource.instructions:
        console.print()
        console.print(escape(resource.instructions), highlight=False)
    console.print()


def parse_type(value: str) -> ResourceType:
    try:
        return parse_resource_type(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def parse_scope(value: str) -> Scope:
    try:
        return Scope(value.lower())
    except ValueError:
        raise typer.BadParameter(f"Unknown scope '{value}'. Must be 'user' or 'project'") from None


def resolve_platforms(requested: list[str] | None, defaults: list[str]) -> list[str]:
    """Return the requested platforms, or the configured defaults."""
    platforms = requested or defaults
    known = AdapterRegistry.all_names()
    for name in platforms:
        if name not in known:
            raise typer.BadParameter(
                f"Unknown platform '{name}'. Available: {', '.join(known)}"
            )
    return platforms


def parse_pairs(values: list[str] | None, option: str) -> dict[str, str]:
    """Parse repeated KEY=VALUE options into a dict."""
    pairs: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint=option)
        pairs[key] = value
    return pairs


def select_match(matches: list[Match]) -> Match:
    """Ask the user which repository to install from."""
    console.print(f"[bold]'{matches[0].name}' was found in several repositories:[/bold]")
    for number, match in enumerate(matches, start=1):
        console.print(f"  [cyan]{number}[/cyan]. {match.repo} [dim]({match.path})[/dim]")
    choice = IntPrompt.ask(
        "Select a repository",
        choices=[str(n) for n in range(1, len(matches) + 1)],
        default=1,
        console=console,
    )
    return matches[choice - 1]


def print_issues(result: ValidationResult) -> None:
    for issue in result.issues:
        print_issue(issue)


def print_issue(issue: Issue) -> None:
    style = _SEVERITY_STYLE[issue.severity]
    console.print(f"  [{style}]{escape(str(issue))}[/{style}]", highlight=False)


def print_outcomes(action: str, name: str, outcomes: list[PlatformOutcome]) -> bool:
    """Print a per-platform summary. Returns True if every platform succeeded."""
    ok = True
    for outcome in outcomes:
        if outcome.status is OutcomeStatus.OK:
            console.print(f"[green]{action} '{name}' on {outcome.display_name}[/green]")
        elif outcome.status is OutcomeStatus.NOT_FOUND:
            console.print(f"[dim]'{name}' not found on {outcome.display_name}[/dim]")
        else:
            ok = False
            console.print(f"[red]Failed on {outcome.display_name}:[/red] {escape(outcome.error)}")
    return ok


@contextmanager
def handle_errors() -> Generator[None, None, None]:
    """Turn aix errors into a red message and exit status 1."""
    try:
        yield
    except ValidationFailedError as e:
        console.print(f"[red]Error:[/red] '{e.name}' failed validation")
        print_issues(e.result)
        raise typer.Exit(1)
    except AixError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1)
