"""The allowed-tools permission grammar.

A permission string is a whitespace-delimited list of tokens, each either
``ToolName`` or ``ToolName(scope)``::

    Read Glob Bash(git:*)

Parsing is fail-fast: the first malformed token aborts the whole parse.
"""

import re
from dataclasses import dataclass

from aix.exceptions import ToolPermError

_TOKEN_RE = re.compile(r"^([A-Z][a-zA-Z0-9]*)(?:\(([^)]+)\))?$")

_PASCAL_CASE_HINT = (
    "tool name must be PascalCase (start with uppercase letter, e.g., Read, Write, Bash)"
)


@dataclass(frozen=True)
class Permission:
    """One allowed-tools entry."""

    name: str
    scope: str = ""

    def __str__(self) -> str:
        if self.scope:
            return f"{self.name}({self.scope})"
        return self.name


def _diagnose(token: str) -> str:
    if "(" in token and not token.endswith(")"):
        return "unclosed '(' in tool permission"
    if token.endswith("()"):
        return "empty scope in tool permission"
    if ")" in token and "(" not in token:
        return "unexpected ')' in tool permission"
    if not token[0].isupper():
        return f"invalid tool permission syntax: {_PASCAL_CASE_HINT}"
    return "invalid tool permission syntax: expected ToolName or ToolName(scope)"


def parse_single(token: str) -> Permission:
    """Parse one permission token.

    Raises:
        ToolPermError: If the token does not match the grammar
    """
    token = token.strip()
    if not token:
        raise ToolPermError("", "empty tool permission")

    match = _TOKEN_RE.match(token)
    if match is None:
        raise ToolPermError(token, _diagnose(token))
    return Permission(name=match.group(1), scope=match.group(2) or "")


def parse(value: str) -> list[Permission]:
    """Parse a whitespace-delimited permission string.

    Args:
        value: e.g. "Read Glob Bash(git:*)"

    Returns:
        Permissions in input order; [] for an empty or blank string

    Raises:
        ToolPermError: On the first malformed token
    """
    return [parse_single(token) for token in value.split()]


def format(permissions: list[Permission]) -> str:
    """Render permissions back to their canonical string form."""
    return " ".join(str(p) for p in permissions)


def normalize(tokens: list[str]) -> list[str]:
    """Split a mixed list of tokens and space-joined strings into tokens."""
    out: list[str] = []
    for item in tokens:
        out.extend(str(item).split())
    return out
