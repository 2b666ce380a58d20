"""Tests for parsing canonical resources."""

import json
from pathlib import Path

import pytest

from aix.core import parser
from aix.core.resource import Agent, Command, MCPServer, ResourceType, Skill
from aix.exceptions import MissingFrontmatterError, ParseError


class TestParseSkill:
    """Test skill parsing."""

    def test_full_skill(self):
        """Test every frontmatter field is read."""
        data = b"""---
name: pdf-tools
description: Work with PDFs
license: MIT
compatibility:
  - claude-code
metadata:
  version: "1.0"
allowed-tools:
  - Read
  - Bash(pdftotext:*)
---

# PDF tools

Extract text.
"""
        skill = parser.parse_skill(data, "pdf-tools/SKILL.md")
        assert skill == Skill(
            name="pdf-tools",
            description="Work with PDFs",
            license="MIT",
            compatibility=["claude-code"],
            metadata={"version": "1.0"},
            allowed_tools=["Read", "Bash(pdftotext:*)"],
            instructions="# PDF tools\n\nExtract text.",
        )

    def test_tools_as_string(self, skill_dir: Path):
        """Test allowed-tools given as a string becomes a token list."""
        skill = parser.parse_skill((skill_dir / "SKILL.md").read_bytes())
        assert skill.allowed_tools == ["Read", "Glob", "Bash(git:*)"]

    def test_missing_frontmatter(self):
        """Test skills require frontmatter and say so."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse_skill(b"# no frontmatter\n", "x/SKILL.md")
        err = exc_info.value
        assert err.path == "x/SKILL.md"
        assert err.missing_frontmatter
        assert isinstance(err.__cause__, MissingFrontmatterError)

    def test_malformed_yaml_wrapped(self):
        """Test YAML errors are wrapped with the path."""
        with pytest.raises(ParseError, match="bad/SKILL.md") as exc_info:
            parser.parse_skill(b"---\nname: [x\n---\n", "bad/SKILL.md")
        assert not exc_info.value.missing_frontmatter

    def test_io_error_wrapped(self, tmp_path: Path):
        """Test a missing file is a ParseError wrapping the OSError."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse_skill_file(tmp_path / "nope" / "SKILL.md")
        assert isinstance(exc_info.value.err, OSError)

    def test_skill_directory(self, skill_dir: Path):
        """Test a skill directory resolves to its SKILL.md."""
        assert parser.parse_skill_file(skill_dir).name == "code-review"

    def test_header_only(self, skill_dir: Path):
        """Test the header variant skips the body."""
        skill = parser.parse_skill_header(skill_dir / "SKILL.md")
        assert skill.name == "code-review"
        assert skill.description == "Performs code review"
        assert skill.instructions == ""


class TestParseCommandAgent:
    """Test command and agent parsing."""

    def test_command_without_frontmatter(self):
        """Test the name is inferred from the file name."""
        command = parser.parse_command(b"Deploy $ARGUMENTS now\n", "cmds/deploy.md")
        assert command == Command(name="deploy", instructions="Deploy $ARGUMENTS now")

    def test_command_with_frontmatter(self):
        """Test frontmatter name and description win."""
        data = "---\nname: ship\ndescription: Ship it\n---\nDo it\n"
        command = parser.parse_command(data, "x.md")
        assert command.name == "ship"
        assert command.description == "Ship it"

    def test_agent_file_and_header(self, tmp_path: Path):
        """Test agent files parse fully and header-only."""
        path = tmp_path / "reviewer.md"
        path.write_text("---\ndescription: Reviews code\n---\nYou review code.\n")
        assert parser.parse_agent_file(path) == Agent(
            name="reviewer", description="Reviews code", instructions="You review code."
        )
        header = parser.parse_agent_header(path)
        assert header.name == "reviewer"
        assert header.instructions == ""

    def test_infer_name(self):
        """Test only a trailing .md is stripped."""
        assert parser.infer_name("a/b/review.md") == "review"
        assert parser.infer_name("notes.txt") == "notes.txt"


class TestParseMCP:
    """Test MCP server parsing."""

    def test_local_server(self):
        """Test a stdio server with env."""
        data = json.dumps(
            {"name": "github", "command": "npx", "args": ["-y", "gh"], "env": {"TOKEN": "x"}}
        )
        server = parser.parse_mcp(data)
        assert server == MCPServer(
            name="github", command="npx", args=["-y", "gh"], env={"TOKEN": "x"}
        )

    def test_transport_inferred_from_url(self):
        """Test a url without transport means sse."""
        server = parser.parse_mcp('{"name": "r", "url": "https://x/sse"}')
        assert server.transport == "sse"
        assert server.is_remote

    def test_name_from_file(self, tmp_path: Path):
        """Test the file stem is used when name is absent."""
        path = tmp_path / "fetch.json"
        path.write_text('{"command": "uvx", "args": ["mcp-server-fetch"]}')
        assert parser.parse_mcp_file(path).name == "fetch"

    def test_invalid_json(self):
        """Test JSON errors are wrapped."""
        with pytest.raises(ParseError):
            parser.parse_mcp("{not json", "m.json")

    @pytest.mark.parametrize("value", ["false", "true", 0, 1])
    def test_disabled_must_be_bool(self, value):
        """Test a quoted or numeric disabled flag is rejected, not coerced."""
        data = json.dumps({"name": "s", "command": "x", "disabled": value})
        with pytest.raises(ParseError, match="disabled must be true or false"):
            parser.parse_mcp(data, "s.json")

    def test_disabled_bool(self):
        server = parser.parse_mcp('{"name": "s", "command": "x", "disabled": true}')
        assert server.disabled is True

    def test_round_trip_dict(self):
        """Test mcp_to_dict omits empty fields and reads back."""
        server = MCPServer(name="s", transport="sse", url="https://x", headers={"A": "b"})
        data = parser.mcp_to_dict(server)
        assert data == {"name": "s", "transport": "sse", "url": "https://x", "headers": {"A": "b"}}
        assert parser.mcp_from_dict("s", data) == server


class TestDispatch:
    """Test parse_file and detect_type."""

    def test_parse_file_dispatch(self, skill_dir: Path, tmp_path: Path):
        """Test parse_file routes on resource type."""
        assert isinstance(parser.parse_file(skill_dir, ResourceType.SKILL), Skill)
        cmd = tmp_path / "c.md"
        cmd.write_text("x")
        assert isinstance(parser.parse_file(cmd, ResourceType.COMMAND), Command)

    def test_detect_type(self, skill_dir: Path, tmp_path: Path):
        """Test type detection from path shape."""
        assert parser.detect_type(skill_dir) is ResourceType.SKILL
        assert parser.detect_type(tmp_path / "m.json") is ResourceType.MCP
        assert parser.detect_type(tmp_path / "commands" / "x.md") is ResourceType.COMMAND
        assert parser.detect_type(tmp_path / "agents" / "x.md") is ResourceType.AGENT
        assert parser.detect_type(tmp_path / "x.md") is None
