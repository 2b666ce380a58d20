"""Claude Code adapter implementation.

Claude Code uses:
- ~/.claude (user) or <project>/.claude (project) as the base directory
- skills/<name>/SKILL.md with allowed-tools as a space-delimited string
- commands/<name>.md and agents/<name>.md with YAML frontmatter
- MCP servers under "mcpServers" in ~/.claude.json or <project>/.mcp.json
"""

from pathlib import Path
from typing import Any

from aix.adapters.base import FileAdapter, PlatformFormat, Scope
from aix.adapters.registry import AdapterRegistry
from aix.core.parser import bool_field
from aix.core.resource import TRANSPORT_SSE, TRANSPORT_STDIO, MCPServer
from aix.exceptions import ParseError

# Claude writes "http" for streamable remote servers; both map to sse.
_REMOTE_TYPES = ("sse", "http")


class ClaudeAdapter(FileAdapter):
    """Adapter for Claude Code."""

    FORMAT = PlatformFormat(
        name="claude",
        display_name="Claude Code",
        user_config_dir=".claude",
        project_config_dir=".claude",
        skill_dir="skills",
        command_dir="commands",
        agent_dir="agents",
        command_ext=".md",
        mcp_key="mcpServers",
    )

    @property
    def mcp_config_path(self) -> Path:
        if self.paths.scope is Scope.PROJECT:
            return self.paths.project_root / ".mcp.json"
        return self.paths.home / ".claude.json"

    def mcp_to_native(self, server: MCPServer) -> dict[str, Any]:
        entry: dict[str, Any] = {"type": server.transport}
        if server.command:
            entry["command"] = server.command
        if server.args:
            entry["args"] = list(server.args)
        if server.url:
            entry["url"] = server.url
        if server.env:
            entry["env"] = dict(server.env)
        if server.headers:
            entry["headers"] = dict(server.headers)
        if server.platforms:
            entry["platforms"] = list(server.platforms)
        if server.disabled:
            entry["disabled"] = True
        return entry

    def mcp_from_native(self, name: str, entry: dict[str, Any]) -> MCPServer:
        kind = entry.get("type") or ""
        if kind in _REMOTE_TYPES or (not kind and entry.get("url")):
            transport = TRANSPORT_SSE
        else:
            transport = TRANSPORT_STDIO
        try:
            disabled = bool_field(entry.get("disabled"), "disabled")
        except ValueError as e:
            raise ParseError(str(self.mcp_config_path), f"mcpServers.{name}: {e}") from e
        return MCPServer(
            name=name,
            transport=transport,
            command=entry.get("command", ""),
            args=list(entry.get("args") or []),
            url=entry.get("url", ""),
            env=dict(entry.get("env") or {}),
            headers=dict(entry.get("headers") or {}),
            platforms=list(entry.get("platforms") or []),
            disabled=disabled,
        )

    def set_native_disabled(self, entry: dict[str, Any], disabled: bool) -> None:
        if disabled:
            entry["disabled"] = True
        else:
            entry.pop("disabled", None)


AdapterRegistry.register("claude", ClaudeAdapter)
