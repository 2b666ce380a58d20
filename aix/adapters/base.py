"""Base classes and protocols for platform adapters.

A platform adapter owns one AI coding tool's on-disk schema. It marshals
canonical resources into that tool's native files on install and reads
them back into canonical form on get/list.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Protocol, runtime_checkable

import yaml

from aix import frontmatter
from aix.core import parser
from aix.core.resource import (
    Agent,
    Command,
    MCPServer,
    Resource,
    ResourceType,
    Skill,
)
from aix.core.variables import IDENTITY, VariableTranslator
from aix.exceptions import (
    FrontmatterError,
    ParseError,
    RenderError,
    ResourceNotFoundError,
)
from aix.fileutil import read_json, write_atomic, write_json_atomic

logger = logging.getLogger(__name__)


class Scope(Enum):
    """Where resources are installed."""

    USER = "user"
    PROJECT = "project"


@dataclass(frozen=True)
class PlatformFormat:
    """Platform-specific layout configuration.

    Attributes:
        name: Short identifier (e.g., "claude", "opencode")
        display_name: Human-readable name (e.g., "Claude Code")
        user_config_dir: User-level base directory, relative to home
            (e.g., ".claude", ".config/opencode")
        project_config_dir: Project-level base directory, relative to the
            project root (e.g., ".claude")
        skill_dir: Subdirectory for skills
        command_dir: Subdirectory for commands
        agent_dir: Subdirectory for agents
        command_ext: File extension for command files (".md" or ".toml")
        mcp_key: Top-level key holding MCP servers in the MCP config file
        skill_marker: File that identifies a skill directory
    """

    name: str
    display_name: str
    user_config_dir: str
    project_config_dir: str
    skill_dir: str
    command_dir: str
    agent_dir: str
    command_ext: str
    mcp_key: str
    skill_marker: str = "SKILL.md"


class PlatformPaths:
    """Resolve resource locations for one platform and scope."""

    def __init__(
        self,
        fmt: PlatformFormat,
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
        home: Path | None = None,
        config_dir: Path | None = None,
    ) -> None:
        self.format = fmt
        self.scope = scope
        self.home = Path(home) if home is not None else Path.home()
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        self._config_dir = Path(config_dir).expanduser() if config_dir else None

    @property
    def base_dir(self) -> Path:
        if self.scope is Scope.PROJECT:
            return self.project_root / self.format.project_config_dir
        if self._config_dir is not None:
            return self._config_dir
        return self.home / self.format.user_config_dir

    def skill_dir(self) -> Path:
        return self.base_dir / self.format.skill_dir

    def command_dir(self) -> Path:
        return self.base_dir / self.format.command_dir

    def agent_dir(self) -> Path:
        return self.base_dir / self.format.agent_dir

    def skill_path(self, name: str) -> Path:
        return self.skill_dir() / name / self.format.skill_marker

    def command_path(self, name: str) -> Path:
        return self.command_dir() / f"{name}{self.format.command_ext}"

    def agent_path(self, name: str) -> Path:
        return self.agent_dir() / f"{name}.md"


@runtime_checkable
class PlatformAdapter(Protocol):
    """Protocol for platform adapters.

    Defines the interface that all platform adapters must implement.
    """

    @property
    def format(self) -> PlatformFormat:
        """Return the platform format configuration."""
        ...

    @property
    def paths(self) -> PlatformPaths:
        """Return the resolved paths for this adapter's scope."""
        ...

    @property
    def mcp_config_path(self) -> Path:
        """Return the JSON file holding MCP server definitions."""
        ...

    def install(self, resource: Resource) -> None:
        """Write a resource in the platform's native format, replacing any existing one."""
        ...

    def get(self, resource_type: ResourceType, name: str) -> Resource:
        """Read an installed resource back into canonical form.

        Raises:
            ResourceNotFoundError: If it is not installed
        """
        ...

    def list(self, resource_type: ResourceType) -> list[Resource]:
        """List installed resources of a type, sorted by name."""
        ...

    def exists(self, resource_type: ResourceType, name: str) -> bool:
        """Check whether a resource is installed."""
        ...

    def uninstall(self, resource_type: ResourceType, name: str) -> None:
        """Remove an installed resource. Removing a missing resource is a no-op."""
        ...

    def enable_mcp(self, name: str) -> None:
        """Clear the disabled flag on an installed MCP server."""
        ...

    def disable_mcp(self, name: str) -> None:
        """Set the disabled flag on an installed MCP server."""
        ...

    def backup_paths(self) -> list[Path]:
        """Return the config paths to back up before mutating."""
        ...

    def is_available(self) -> bool:
        """Check whether the platform appears to be installed."""
        ...


class FileAdapter:
    """Shared implementation for file-backed platforms.

    Subclasses set FORMAT, optionally VARIABLES, and override the
    render/read hooks for the parts of their schema that differ. Markdown
    resources default to frontmatter plus body; MCP servers live in a
    single JSON document under ``FORMAT.mcp_key``.
    """

    FORMAT: ClassVar[PlatformFormat]
    VARIABLES: ClassVar[VariableTranslator] = IDENTITY

    def __init__(
        self,
        scope: Scope = Scope.USER,
        project_root: Path | None = None,
        home: Path | None = None,
        config_dir: Path | None = None,
    ) -> None:
        self._paths = PlatformPaths(self.FORMAT, scope, project_root, home, config_dir)

    @property
    def format(self) -> PlatformFormat:
        return self.FORMAT

    @property
    def paths(self) -> PlatformPaths:
        return self._paths

    @property
    def mcp_config_path(self) -> Path:
        raise NotImplementedError

    def backup_paths(self) -> list[Path]:
        return [self.mcp_config_path, self.paths.base_dir]

    def is_available(self) -> bool:
        return self.paths.base_dir.exists()

    def path_for(self, resource_type: ResourceType, name: str) -> Path:
        """Return the file that stores a resource."""
        match resource_type:
            case ResourceType.SKILL:
                return self.paths.skill_path(name)
            case ResourceType.COMMAND:
                return self.paths.command_path(name)
            case ResourceType.AGENT:
                return self.paths.agent_path(name)
            case ResourceType.MCP:
                return self.mcp_config_path
        raise TypeError(f"unsupported resource type: {resource_type!r}")

    # -- install / get / list / uninstall -------------------------------

    def install(self, resource: Resource) -> None:
        try:
            match resource:
                case Skill():
                    self._write(self.paths.skill_path(resource.name), self.render_skill(resource))
                case Command():
                    self._write(
                        self.paths.command_path(resource.name), self.render_command(resource)
                    )
                case Agent():
                    self._write(self.paths.agent_path(resource.name), self.render_agent(resource))
                case MCPServer():
                    self._install_mcp(resource)
                case _:
                    raise TypeError(f"unsupported resource: {type(resource).__name__}")
        except (ValueError, yaml.YAMLError) as e:
            raise RenderError(self.FORMAT.display_name, resource.name, e) from e
        logger.debug(
            "installed %s '%s' to %s", resource.resource_type.value, resource.name,
            self.FORMAT.name,
        )

    def get(self, resource_type: ResourceType, name: str) -> Resource:
        if resource_type is ResourceType.MCP:
            entry = self._mcp_servers(self._load_mcp_doc()).get(name)
            if entry is None:
                raise self._not_found(resource_type, name)
            return self.mcp_from_native(name, entry)

        path = self.path_for(resource_type, name)
        if not path.is_file():
            raise self._not_found(resource_type, name)
        text = self._read(path)
        match resource_type:
            case ResourceType.SKILL:
                return self.read_skill(text, path)
            case ResourceType.COMMAND:
                return self.read_command(text, path)
            case ResourceType.AGENT:
                return self.read_agent(text, path)
        raise TypeError(f"unsupported resource type: {resource_type!r}")

    def list(self, resource_type: ResourceType) -> list[Resource]:
        match resource_type:
            case ResourceType.SKILL:
                root = self.paths.skill_dir()
                if not root.is_dir():
                    return []
                found = [
                    self.read_skill_header(entry / self.FORMAT.skill_marker)
                    for entry in sorted(root.iterdir())
                    if (entry / self.FORMAT.skill_marker).is_file()
                ]
            case ResourceType.COMMAND:
                found = [
                    self.read_command_header(p)
                    for p in self._files(self.paths.command_dir(), self.FORMAT.command_ext)
                ]
            case ResourceType.AGENT:
                found = [
                    self.read_agent_header(p) for p in self._files(self.paths.agent_dir(), ".md")
                ]
            case ResourceType.MCP:
                servers = self._mcp_servers(self._load_mcp_doc())
                found = [self.mcp_from_native(name, entry) for name, entry in servers.items()]
            case _:
                raise TypeError(f"unsupported resource type: {resource_type!r}")
        return sorted(found, key=lambda r: r.name)

    def exists(self, resource_type: ResourceType, name: str) -> bool:
        if resource_type is ResourceType.MCP:
            return name in self._mcp_servers(self._load_mcp_doc())
        return self.path_for(resource_type, name).is_file()

    def uninstall(self, resource_type: ResourceType, name: str) -> None:
        match resource_type:
            case ResourceType.SKILL:
                skill_dir = self.paths.skill_path(name).parent
                if skill_dir.is_dir():
                    shutil.rmtree(skill_dir)
            case ResourceType.COMMAND | ResourceType.AGENT:
                self.path_for(resource_type, name).unlink(missing_ok=True)
            case ResourceType.MCP:
                doc = self._load_mcp_doc()
                servers = self._mcp_servers(doc)
                if name in servers:
                    del servers[name]
                    self._save_mcp_doc(doc)
        logger.debug("removed %s '%s' from %s", resource_type.value, name, self.FORMAT.name)

    # -- MCP ------------------------------------------------------------

    def enable_mcp(self, name: str) -> None:
        self._toggle_mcp(name, disabled=False)

    def disable_mcp(self, name: str) -> None:
        self._toggle_mcp(name, disabled=True)

    def _toggle_mcp(self, name: str, disabled: bool) -> None:
        doc = self._load_mcp_doc()
        entry = self._mcp_servers(doc).get(name)
        if entry is None:
            raise self._not_found(ResourceType.MCP, name)
        self.set_native_disabled(entry, disabled)
        self._save_mcp_doc(doc)

    def _install_mcp(self, server: MCPServer) -> None:
        doc = self._load_mcp_doc()
        self._mcp_servers(doc, create=True)[server.name] = self.mcp_to_native(server)
        self._save_mcp_doc(doc)

    def _load_mcp_doc(self) -> dict[str, Any]:
        try:
            return read_json(self.mcp_config_path)
        except ValueError as e:
            raise ParseError(str(self.mcp_config_path), e) from e

    def _save_mcp_doc(self, doc: dict[str, Any]) -> None:
        self.mcp_config_path.parent.mkdir(parents=True, exist_ok=True)
        write_json_atomic(self.mcp_config_path, doc)

    def _mcp_servers(self, doc: dict[str, Any], create: bool = False) -> dict[str, Any]:
        """Return the mapping of server name to native entry inside doc.

        Unknown keys elsewhere in the document are left alone.
        """
        servers = doc.get(self.FORMAT.mcp_key)
        if not isinstance(servers, dict):
            if not create:
                return {}
            servers = doc[self.FORMAT.mcp_key] = {}
        return servers

    def mcp_to_native(self, server: MCPServer) -> dict[str, Any]:
        raise NotImplementedError

    def mcp_from_native(self, name: str, entry: dict[str, Any]) -> MCPServer:
        raise NotImplementedError

    def set_native_disabled(self, entry: dict[str, Any], disabled: bool) -> None:
        raise NotImplementedError

    # -- Markdown hooks -------------------------------------------------

    def skill_metadata(self, skill: Skill) -> dict[str, Any]:
        meta: dict[str, Any] = {"name": skill.name, "description": skill.description}
        if skill.license:
            meta["license"] = skill.license
        if skill.compatibility:
            meta["compatibility"] = list(skill.compatibility)
        if skill.metadata:
            meta["metadata"] = dict(skill.metadata)
        if skill.allowed_tools:
            meta["allowed-tools"] = " ".join(skill.allowed_tools)
        return meta

    def render_skill(self, skill: Skill) -> str:
        body = self.VARIABLES.to_platform(skill.instructions)
        return frontmatter.format(self.skill_metadata(skill), body)

    def read_skill(self, text: str, path: Path) -> Skill:
        meta, body = self._split(text, path, required=True)
        skill = parser.skill_from_metadata(meta, self.VARIABLES.to_canonical(body.strip()))
        return self._named(skill, path.parent.name)

    def read_skill_header(self, path: Path) -> Skill:
        skill = parser.parse_skill_header(path)
        return self._named(skill, path.parent.name)

    def render_command(self, command: Command) -> str:
        body = self.VARIABLES.to_platform(command.instructions)
        if not command.description:
            return body if body.endswith("\n") or not body else body + "\n"
        return frontmatter.format({"description": command.description}, body)

    def read_command(self, text: str, path: Path) -> Command:
        return self._read_markdown(Command, text, path)

    def read_command_header(self, path: Path) -> Command:
        return parser.parse_command_header(path)

    def agent_metadata(self, agent: Agent) -> dict[str, Any]:
        meta: dict[str, Any] = {"name": agent.name}
        if agent.description:
            meta["description"] = agent.description
        return meta

    def render_agent(self, agent: Agent) -> str:
        body = self.VARIABLES.to_platform(agent.instructions)
        return frontmatter.format(self.agent_metadata(agent), body)

    def read_agent(self, text: str, path: Path) -> Agent:
        return self._read_markdown(Agent, text, path)

    def read_agent_header(self, path: Path) -> Agent:
        return parser.parse_agent_header(path)

    # -- helpers --------------------------------------------------------

    def _read_markdown(self, cls: type, text: str, path: Path):
        meta, body = self._split(text, path, required=False)
        return cls(
            name=str(meta.get("name") or parser.infer_name(path)),
            description=str(meta.get("description") or ""),
            instructions=self.VARIABLES.to_canonical(body.strip()),
        )

    def _split(self, text: str, path: Path, required: bool) -> tuple[dict[str, Any], str]:
        try:
            return frontmatter.split(text, required=required)
        except (FrontmatterError, yaml.YAMLError) as e:
            raise ParseError(str(path), e) from e

    @staticmethod
    def _named(resource, name: str):
        if resource.name:
            return resource
        return replace(resource, name=name)

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ParseError(str(path), e) from e

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_atomic(path, content)

    @staticmethod
    def _files(directory: Path, ext: str) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ext)

    def _not_found(self, resource_type: ResourceType, name: str) -> ResourceNotFoundError:
        return ResourceNotFoundError(
            f"{resource_type.label} '{name}' not found on {self.FORMAT.display_name}"
        )
