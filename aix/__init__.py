"""aix - sync skills, commands, agents and MCP servers across AI coding tools."""

__version__ = "0.3.0"
