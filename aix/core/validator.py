"""Resource validation.

Validation never fails fast: every applicable check runs and contributes
issues to a ValidationResult. Only ERROR issues block installation.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from aix.core import toolperm
from aix.core.resource import (
    MAX_NAME_LENGTH,
    NAME_PATTERN,
    TRANSPORT_SSE,
    TRANSPORT_STDIO,
    TRANSPORTS,
    VALID_OS_PLATFORMS,
    Agent,
    Command,
    MCPServer,
    Resource,
    Skill,
)
from aix.core.variables import validate_variables
from aix.exceptions import ToolPermError

_NAME_RE = re.compile(NAME_PATTERN)


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Issue:
    """A single validation finding."""

    severity: Severity
    field: str
    message: str
    value: Any = None
    context: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        out = f'{self.severity.value}: field "{self.field}": {self.message}'
        if self.value not in (None, ""):
            out += f" (got {self.value})"
        return out


@dataclass
class ValidationResult:
    """Ordered collection of issues."""

    issues: list[Issue] = field(default_factory=list)

    def add(self, severity: Severity, field_name: str, message: str, value: Any = None,
            context: dict[str, str] | None = None) -> None:
        self.issues.append(Issue(severity, field_name, message, value, context or {}))

    def add_error(self, field_name: str, message: str, value: Any = None,
                  context: dict[str, str] | None = None) -> None:
        self.add(Severity.ERROR, field_name, message, value, context)

    def add_warning(self, field_name: str, message: str, value: Any = None,
                    context: dict[str, str] | None = None) -> None:
        self.add(Severity.WARNING, field_name, message, value, context)

    def add_info(self, field_name: str, message: str, value: Any = None,
                 context: dict[str, str] | None = None) -> None:
        self.add(Severity.INFO, field_name, message, value, context)

    def extend(self, other: "ValidationResult") -> None:
        self.issues.extend(other.issues)

    def has_errors(self) -> bool:
        return any(i.severity is Severity.ERROR for i in self.issues)

    def has_warnings(self) -> bool:
        return any(i.severity is Severity.WARNING for i in self.issues)

    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]


def name_error(name: str) -> str | None:
    """Return the message for the first rule the name violates, or None.

    Exactly one message is produced per invalid name, so callers report a
    single "name" issue.
    """
    if not name:
        return "name is required"
    if len(name) > MAX_NAME_LENGTH:
        return f"name exceeds maximum length of {MAX_NAME_LENGTH} characters"
    if _NAME_RE.match(name):
        return None
    if name.startswith("-") or name.endswith("-"):
        return "name cannot start or end with a hyphen"
    if "--" in name:
        return "name cannot contain consecutive hyphens"
    if name != name.lower():
        return "name must be lowercase"
    return (
        "name must start with a letter, be lowercase alphanumeric "
        "with single hyphens between segments"
    )


class Validator:
    """Validate canonical resources.

    Args:
        strict: Also parse allowed-tools with the permission grammar and
            warn about missing optional descriptions. Without strict mode
            malformed tool syntax is accepted as-is.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def validate(self, resource: Resource) -> ValidationResult:
        result = ValidationResult()
        self._check_name(result, resource.name)

        match resource:
            case Skill():
                self._check_skill(result, resource)
            case Command() | Agent():
                self._check_prompt(result, resource)
            case MCPServer():
                self._check_mcp(result, resource)
            case _:
                raise TypeError(f"unsupported resource: {type(resource).__name__}")
        return result

    def validate_with_path(self, resource: Resource, path: Path) -> ValidationResult:
        """Validate and also require the name to agree with its location.

        For skills, ``path`` is the SKILL.md file and the name must equal
        the enclosing directory. For commands and agents the name must
        equal the file stem.
        """
        result = self.validate(resource)
        path = Path(path)

        match resource:
            case Skill():
                directory = path.parent.name if path.name == "SKILL.md" else path.name
                if resource.name and resource.name != directory:
                    result.add_error(
                        "name",
                        "skill name must match directory name",
                        resource.name,
                        {"directory": directory, "path": str(path)},
                    )
            case Command() | Agent():
                stem = path.stem
                if resource.name and resource.name != stem:
                    result.add_error(
                        "name",
                        "name must match file name",
                        resource.name,
                        {"file": path.name, "path": str(path)},
                    )
        return result

    def _check_name(self, result: ValidationResult, name: str) -> None:
        message = name_error(name)
        if message:
            result.add_error("name", message, name)

    def _check_variables(self, result: ValidationResult, instructions: str) -> None:
        for variable in validate_variables(instructions):
            result.add_warning("instructions", "unsupported variable", variable)

    def _check_skill(self, result: ValidationResult, skill: Skill) -> None:
        if not skill.description:
            result.add_error("description", "description is required")
        elif not skill.description.strip():
            result.add_error("description", "description cannot be only whitespace")

        if self.strict and skill.allowed_tools:
            try:
                toolperm.parse(" ".join(skill.allowed_tools))
            except ToolPermError as e:
                result.add_error("allowed-tools", str(e), e.token)

        self._check_variables(result, skill.instructions)

    def _check_prompt(self, result: ValidationResult, resource: Command | Agent) -> None:
        if resource.description and not resource.description.strip():
            result.add_warning("description", "description cannot be only whitespace")
        elif self.strict and not resource.description:
            result.add_warning("description", "description is recommended")

        if not resource.instructions.strip():
            result.add_warning("instructions", "instructions are empty")

        self._check_variables(result, resource.instructions)

    def _check_mcp(self, result: ValidationResult, server: MCPServer) -> None:
        if server.transport not in TRANSPORTS:
            result.add_error(
                "transport",
                f"transport must be one of: {', '.join(TRANSPORTS)}",
                server.transport,
            )
        elif server.command and server.url:
            result.add_error(
                "command/url",
                "exactly one of command or url may be set",
                context={"command": server.command, "url": server.url},
            )
        elif server.transport == TRANSPORT_STDIO and not server.command:
            result.add_error("command", "command is required for stdio transport")
        elif server.transport == TRANSPORT_SSE and not server.url:
            result.add_error("url", "url is required for sse transport")

        for platform in server.platforms:
            if platform not in VALID_OS_PLATFORMS:
                result.add_error(
                    "platforms",
                    f"platform must be one of: {', '.join(VALID_OS_PLATFORMS)}",
                    platform,
                )

        if any(not key for key in server.env):
            result.add_error("env", "environment variable names cannot be empty")
        if any(not key for key in server.headers):
            result.add_error("headers", "header names cannot be empty")
