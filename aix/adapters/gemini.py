"""Gemini CLI adapter implementation.

Gemini CLI uses:
- ~/.gemini (user) or <project>/.gemini (project)
- skills/<name>/SKILL.md and agents/<name>.md with YAML frontmatter
- commands/<name>.toml with "description" and "prompt" keys
- {{args}} / {{selection}} placeholders instead of $ARGUMENTS / $SELECTION
- settings.json for MCP servers ("mcpServers") and feature flags

Agents only load when experimental.enableAgents is set, so installing an
agent turns that flag on first.
"""

import logging
import re
from pathlib import Path
from typing import Any

import tomli
import tomlkit
from tomlkit.items import String

from aix.adapters.base import FileAdapter, PlatformFormat
from aix.adapters.registry import AdapterRegistry
from aix.core.resource import TRANSPORT_SSE, TRANSPORT_STDIO, Agent, Command, MCPServer, Resource
from aix.core.variables import GEMINI
from aix.exceptions import ParseError

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"

# Control characters other than tab and newline cannot appear in literal strings.
_LITERAL_FORBIDDEN = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


def render_prompt(value: str) -> String:
    """Build the TOML string item for a command prompt.

    Multiline prompts are emitted as literal ''' blocks so they stay
    readable. Content that contains ''' or a control character falls
    back to a basic multiline string, which tomlkit escapes.
    """
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    if "\n" not in value:
        return tomlkit.string(value)
    # The newline after the opening delimiter is trimmed by TOML readers.
    block = "\n" + value + ("" if value.endswith("\n") else "\n")
    if "'''" in value or _LITERAL_FORBIDDEN.search(value):
        return tomlkit.string(block, multiline=True)
    return tomlkit.string(block, literal=True, multiline=True)


class GeminiAdapter(FileAdapter):
    """Adapter for Gemini CLI."""

    FORMAT = PlatformFormat(
        name="gemini",
        display_name="Gemini CLI",
        user_config_dir=".gemini",
        project_config_dir=".gemini",
        skill_dir="skills",
        command_dir="commands",
        agent_dir="agents",
        command_ext=".toml",
        mcp_key="mcpServers",
    )
    VARIABLES = GEMINI

    @property
    def mcp_config_path(self) -> Path:
        return self.paths.base_dir / SETTINGS_FILENAME

    @property
    def settings_path(self) -> Path:
        return self.mcp_config_path

    def install(self, resource: Resource) -> None:
        if isinstance(resource, Agent):
            self.ensure_agents_enabled()
        super().install(resource)

    def ensure_agents_enabled(self) -> bool:
        """Turn on experimental.enableAgents in settings.json.

        Returns:
            True if the settings file was changed, False if the flag was
            already set
        """
        settings = self._load_mcp_doc()
        experimental = settings.get("experimental")
        if experimental is None:
            experimental = settings["experimental"] = {}
        elif not isinstance(experimental, dict):
            raise ParseError(str(self.settings_path), "'experimental' must be an object")

        if experimental.get("enableAgents") is True:
            logger.debug("enableAgents already set in %s", self.settings_path)
            return False

        experimental["enableAgents"] = True
        self._save_mcp_doc(settings)
        logger.info("enabled experimental agents in %s", self.settings_path)
        return True

    # -- commands -------------------------------------------------------

    def render_command(self, command: Command) -> str:
        doc = tomlkit.document()
        if command.description:
            doc["description"] = command.description
        doc["prompt"] = render_prompt(self.VARIABLES.to_platform(command.instructions))
        return tomlkit.dumps(doc)

    def read_command(self, text: str, path: Path) -> Command:
        try:
            data = tomli.loads(text)
        except tomli.TOMLDecodeError as e:
            raise ParseError(str(path), e) from e
        return Command(
            name=path.stem,
            description=str(data.get("description", "")),
            instructions=self.VARIABLES.to_canonical(str(data.get("prompt", "")).strip()),
        )

    def read_command_header(self, path: Path) -> Command:
        return self.read_command(self._read(path), path)

    # -- MCP ------------------------------------------------------------

    def mcp_to_native(self, server: MCPServer) -> dict[str, Any]:
        entry: dict[str, Any] = {}
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
        entry["enabled"] = not server.disabled
        return entry

    def mcp_from_native(self, name: str, entry: dict[str, Any]) -> MCPServer:
        url = entry.get("url") or entry.get("httpUrl") or ""
        return MCPServer(
            name=name,
            transport=TRANSPORT_SSE if url else TRANSPORT_STDIO,
            command=entry.get("command", ""),
            args=list(entry.get("args") or []),
            url=url,
            env=dict(entry.get("env") or {}),
            headers=dict(entry.get("headers") or {}),
            disabled=entry.get("enabled", True) is False,
        )

    def set_native_disabled(self, entry: dict[str, Any], disabled: bool) -> None:
        entry["enabled"] = not disabled


AdapterRegistry.register("gemini", GeminiAdapter)
