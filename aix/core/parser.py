"""Parse canonical resources from their source files.

Skills, commands and agents are Markdown with YAML frontmatter; MCP servers
are a small JSON document. Every failure is reported as a ParseError that
names the path and chains the underlying cause.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from aix import frontmatter
from aix.core.resource import (
    TRANSPORT_SSE,
    TRANSPORT_STDIO,
    Agent,
    Command,
    MCPServer,
    Resource,
    ResourceType,
    Skill,
)
from aix.core.toolperm import normalize
from aix.exceptions import FrontmatterError, ParseError

SKILL_MARKER = "SKILL.md"


def _decode(data: bytes | str, path: str) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(path, e) from e


def _read(path: Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ParseError(str(path), e) from e


def _split(text: str, path: str, required: bool) -> tuple[dict[str, Any], str]:
    try:
        return frontmatter.split(text, required=required)
    except (FrontmatterError, yaml.YAMLError) as e:
        raise ParseError(path, e) from e


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _str_map(value: Any) -> dict[str, str]:
    if not value:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"expected a mapping, got {type(value).__name__}")
    return {str(k): _str(v) for k, v in value.items()}


def bool_field(value: Any, field: str) -> bool:
    """Return a boolean field, rejecting strings and numbers such as "false"."""
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{field} must be true or false, got {value!r}")
    return value


def _tool_list(value: Any) -> list[str]:
    """Accept allowed-tools as either a space-delimited string or a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return normalize([str(v) for v in value])


def infer_name(path: str | Path) -> str:
    """Infer a command/agent name from its file name."""
    name = Path(path).name
    return name[:-3] if name.endswith(".md") else name


def skill_from_metadata(meta: dict[str, Any], instructions: str = "") -> Skill:
    """Build a Skill from a frontmatter mapping.

    ``allowed-tools`` may be a string or a list; ``allowed_tools`` is
    accepted as an alternate key.
    """
    tools = meta.get("allowed-tools", meta.get("allowed_tools"))
    compatibility = meta.get("compatibility")
    if isinstance(compatibility, dict):
        compatibility = [f"{k} {v}".strip() if v else str(k) for k, v in compatibility.items()]
    return Skill(
        name=_str(meta.get("name")),
        description=_str(meta.get("description")),
        license=_str(meta.get("license")),
        compatibility=_str_list(compatibility),
        metadata=_str_map(meta.get("metadata")),
        allowed_tools=_tool_list(tools),
        instructions=instructions,
    )


def parse_skill(data: bytes | str, path: str = "") -> Skill:
    """Parse a SKILL.md document.

    Args:
        data: Raw file contents
        path: Source path, used in error messages

    Raises:
        ParseError: If frontmatter is missing or malformed
    """
    meta, body = _split(_decode(data, path), path, required=True)
    try:
        return skill_from_metadata(meta, body.strip())
    except (TypeError, ValueError) as e:
        raise ParseError(path, e) from e


def parse_skill_file(path: Path) -> Skill:
    """Parse a SKILL.md file, or the SKILL.md inside a skill directory."""
    path = Path(path)
    if path.is_dir():
        path = path / SKILL_MARKER
    return parse_skill(_read(path), str(path))


def parse_skill_header(path: Path) -> Skill:
    """Parse only the frontmatter of a SKILL.md file."""
    try:
        meta = frontmatter.read_header(path)
        return skill_from_metadata(meta)
    except (OSError, FrontmatterError, yaml.YAMLError, TypeError, ValueError) as e:
        raise ParseError(str(path), e) from e


def _parse_markdown(cls: type, data: bytes | str, path: str):
    meta, body = _split(_decode(data, path), path, required=False)
    name = _str(meta.get("name")) or (infer_name(path) if path else "")
    return cls(
        name=name,
        description=_str(meta.get("description")),
        instructions=body.strip(),
    )


def _parse_markdown_header(cls: type, path: Path):
    try:
        meta = frontmatter.read_header(path)
    except (OSError, FrontmatterError, yaml.YAMLError) as e:
        raise ParseError(str(path), e) from e
    return cls(
        name=_str(meta.get("name")) or infer_name(path),
        description=_str(meta.get("description")),
    )


def parse_command(data: bytes | str, path: str = "") -> Command:
    """Parse a command file; frontmatter is optional."""
    return _parse_markdown(Command, data, path)


def parse_command_file(path: Path) -> Command:
    return parse_command(_read(path), str(path))


def parse_command_header(path: Path) -> Command:
    return _parse_markdown_header(Command, Path(path))


def parse_agent(data: bytes | str, path: str = "") -> Agent:
    """Parse an agent file; frontmatter is optional."""
    return _parse_markdown(Agent, data, path)


def parse_agent_file(path: Path) -> Agent:
    return parse_agent(_read(path), str(path))


def parse_agent_header(path: Path) -> Agent:
    return _parse_markdown_header(Agent, Path(path))


def mcp_from_dict(name: str, data: dict[str, Any]) -> MCPServer:
    """Build an MCPServer from its canonical dict form.

    The transport is inferred from ``url`` when not given.
    """
    url = _str(data.get("url"))
    transport = _str(data.get("transport") or data.get("type"))
    if not transport:
        transport = TRANSPORT_SSE if url else TRANSPORT_STDIO
    return MCPServer(
        name=name,
        transport=transport,
        command=_str(data.get("command")),
        args=_str_list(data.get("args")),
        url=url,
        env=_str_map(data.get("env")),
        headers=_str_map(data.get("headers")),
        platforms=_str_list(data.get("platforms")),
        disabled=bool_field(data.get("disabled"), "disabled"),
    )


def mcp_to_dict(server: MCPServer) -> dict[str, Any]:
    """Render an MCPServer in its canonical dict form, omitting empty fields."""
    out: dict[str, Any] = {"name": server.name, "transport": server.transport}
    if server.command:
        out["command"] = server.command
    if server.args:
        out["args"] = list(server.args)
    if server.url:
        out["url"] = server.url
    if server.env:
        out["env"] = dict(server.env)
    if server.headers:
        out["headers"] = dict(server.headers)
    if server.platforms:
        out["platforms"] = list(server.platforms)
    if server.disabled:
        out["disabled"] = True
    return out


def parse_mcp(data: bytes | str, path: str = "") -> MCPServer:
    """Parse a canonical MCP server JSON document.

    The name defaults to the file stem when the document has none.
    """
    try:
        doc = json.loads(_decode(data, path))
        if not isinstance(doc, dict):
            raise ValueError("expected a JSON object")
        name = _str(doc.get("name")) or (Path(path).stem if path else "")
        return mcp_from_dict(name, doc)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise ParseError(path, e) from e


def parse_mcp_file(path: Path) -> MCPServer:
    return parse_mcp(_read(path), str(path))


def parse_file(path: Path, resource_type: ResourceType) -> Resource:
    """Parse a source file of the given resource type."""
    match resource_type:
        case ResourceType.SKILL:
            return parse_skill_file(path)
        case ResourceType.COMMAND:
            return parse_command_file(path)
        case ResourceType.AGENT:
            return parse_agent_file(path)
        case ResourceType.MCP:
            return parse_mcp_file(path)
    raise TypeError(f"unsupported resource type: {resource_type!r}")


def detect_type(path: Path) -> ResourceType | None:
    """Guess the resource type of a source path from its shape.

    Returns None when the path is ambiguous (a plain .md file could be a
    command or an agent).
    """
    path = Path(path)
    if path.is_dir() and (path / SKILL_MARKER).exists():
        return ResourceType.SKILL
    if path.name == SKILL_MARKER:
        return ResourceType.SKILL
    if path.suffix == ".json":
        return ResourceType.MCP
    parent = path.parent.name
    if parent in ("commands", "command"):
        return ResourceType.COMMAND
    if parent in ("agents", "agent"):
        return ResourceType.AGENT
    return None
