"""Canonical resource types.

A resource is one of four variants: Skill, Command, Agent or MCPServer.
The union is closed; adapters and the validator dispatch over it with
``match`` and raise TypeError for anything else.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

NAME_PATTERN = r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$"
MAX_NAME_LENGTH = 64

TRANSPORT_STDIO = "stdio"
TRANSPORT_SSE = "sse"
TRANSPORTS = (TRANSPORT_STDIO, TRANSPORT_SSE)

VALID_OS_PLATFORMS = ("darwin", "linux", "windows")


class ResourceType(Enum):
    """Resource types supported by aix."""

    SKILL = "skill"
    COMMAND = "command"
    AGENT = "agent"
    MCP = "mcp"

    @property
    def label(self) -> str:
        """Human-readable label used in messages."""
        return "MCP server" if self is ResourceType.MCP else self.value


@dataclass(frozen=True)
class Skill:
    """A reusable capability: frontmatter metadata plus Markdown instructions."""

    resource_type: ClassVar[ResourceType] = ResourceType.SKILL

    name: str
    description: str = ""
    license: str = ""
    compatibility: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
    allowed_tools: list[str] = field(default_factory=list)
    instructions: str = ""


@dataclass(frozen=True)
class Command:
    """A slash command invoked by the user."""

    resource_type: ClassVar[ResourceType] = ResourceType.COMMAND

    name: str
    description: str = ""
    instructions: str = ""


@dataclass(frozen=True)
class Agent:
    """A sub-agent definition."""

    resource_type: ClassVar[ResourceType] = ResourceType.AGENT

    name: str
    description: str = ""
    instructions: str = ""


@dataclass(frozen=True)
class MCPServer:
    """An MCP server definition.

    Local servers (``stdio``) are launched from ``command``/``args``; remote
    servers (``sse``) are reached at ``url``.
    """

    resource_type: ClassVar[ResourceType] = ResourceType.MCP

    name: str
    transport: str = TRANSPORT_STDIO
    command: str = ""
    args: list[str] = field(default_factory=list)
    url: str = ""
    env: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    platforms: list[str] = field(default_factory=list)
    disabled: bool = False

    @property
    def is_remote(self) -> bool:
        return self.transport == TRANSPORT_SSE


Resource = Union[Skill, Command, Agent, MCPServer]


def parse_resource_type(value: str) -> ResourceType:
    """Convert a user-supplied type string to a ResourceType.

    Raises:
        ValueError: If the string names no resource type
    """
    try:
        return ResourceType(value.lower())
    except ValueError:
        valid = ", ".join(t.value for t in ResourceType)
        raise ValueError(f"Unknown resource type '{value}'. Must be one of: {valid}") from None
