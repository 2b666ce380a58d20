"""OpenCode adapter implementation.

OpenCode uses:
- ~/.config/opencode (user) or <project>/.opencode (project)
- skill/<name>/SKILL.md with allowed-tools as a YAML list
- commands/<name>.md with only a description in frontmatter
- agent/<name>.md with a "mode" field
- MCP servers under "mcp" in opencode.json, with the command and its
  arguments folded into one list and "enabled" instead of "disabled"
"""

from pathlib import Path
from typing import Any

from aix.adapters.base import FileAdapter, PlatformFormat, Scope
from aix.adapters.registry import AdapterRegistry
from aix.core.resource import TRANSPORT_SSE, TRANSPORT_STDIO, Agent, MCPServer, Skill

CONFIG_FILENAME = "opencode.json"
AGENT_MODE = "subagent"


def _split_requirement(entry: str) -> tuple[str, str]:
    """Split "claude-code >=1.0" into ("claude-code", ">=1.0")."""
    name, _, version = entry.partition(" ")
    return name, version.strip()


def _compatibility(entries: list[str]) -> dict[str, str] | list[str]:
    """Render requirements as a name -> version map.

    Several entries for the same tool cannot share a map key, so those are
    written as the plain list instead.
    """
    pairs = [_split_requirement(c) for c in entries]
    if len({name for name, _ in pairs}) < len(pairs):
        return list(entries)
    return dict(pairs)


class OpenCodeAdapter(FileAdapter):
    """Adapter for OpenCode."""

    FORMAT = PlatformFormat(
        name="opencode",
        display_name="OpenCode",
        user_config_dir=".config/opencode",
        project_config_dir=".opencode",
        skill_dir="skill",
        command_dir="commands",
        agent_dir="agent",
        command_ext=".md",
        mcp_key="mcp",
    )

    @property
    def mcp_config_path(self) -> Path:
        if self.paths.scope is Scope.PROJECT:
            return self.paths.project_root / CONFIG_FILENAME
        return self.paths.base_dir / CONFIG_FILENAME

    def skill_metadata(self, skill: Skill) -> dict[str, Any]:
        meta = super().skill_metadata(skill)
        if skill.allowed_tools:
            meta["allowed-tools"] = list(skill.allowed_tools)
        if skill.compatibility:
            meta["compatibility"] = _compatibility(skill.compatibility)
        return meta

    def agent_metadata(self, agent: Agent) -> dict[str, Any]:
        meta = super().agent_metadata(agent)
        meta["mode"] = AGENT_MODE
        return meta

    def mcp_to_native(self, server: MCPServer) -> dict[str, Any]:
        if server.is_remote:
            entry: dict[str, Any] = {"type": "remote", "url": server.url}
            if server.headers:
                entry["headers"] = dict(server.headers)
        else:
            entry = {"type": "local", "command": [server.command, *server.args]}
            if server.env:
                entry["environment"] = dict(server.env)
        if server.disabled:
            entry["enabled"] = False
        return entry

    def mcp_from_native(self, name: str, entry: dict[str, Any]) -> MCPServer:
        command = entry.get("command") or []
        if isinstance(command, str):
            command = [command]
        remote = entry.get("type") == "remote"
        return MCPServer(
            name=name,
            transport=TRANSPORT_SSE if remote else TRANSPORT_STDIO,
            command="" if remote or not command else command[0],
            args=[] if remote else list(command[1:]),
            url=entry.get("url", ""),
            env=dict(entry.get("environment") or {}),
            headers=dict(entry.get("headers") or {}),
            disabled=entry.get("enabled", True) is False,
        )

    def set_native_disabled(self, entry: dict[str, Any], disabled: bool) -> None:
        entry["enabled"] = not disabled


AdapterRegistry.register("opencode", OpenCodeAdapter)
