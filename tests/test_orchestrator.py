"""Tests for the install/remove/enable/disable orchestrator."""

from pathlib import Path

import pytest

from aix.adapters import ClaudeAdapter, GeminiAdapter, OpenCodeAdapter, Scope
from aix.backup import NoBackup
from aix.core.resource import Command, MCPServer, ResourceType, Skill
from aix.exceptions import (
    InstallError,
    ResourceExistsError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from aix.orchestrator import InstallRequest, Orchestrator, OutcomeStatus

SKILL = Skill(
    name="code-review",
    description="Performs code review",
    allowed_tools=["Read", "Glob"],
    instructions="Review $ARGUMENTS.",
)

SERVER = MCPServer(name="github", command="npx", args=["-y", "server-github"])


def _request(resource, platforms, **kwargs) -> InstallRequest:
    return InstallRequest(resource=resource, platforms=platforms, **kwargs)


class TestApply:
    """Test installing a parsed resource across platforms."""

    def test_install_to_two_platforms(self, orchestrator: Orchestrator, home: Path):
        """Test installing code-review to Claude Code and OpenCode."""
        result = orchestrator.apply(_request(SKILL, ["opencode", "claude"]))

        assert result.installed == ["claude", "opencode"]
        assert result.overwritten == []
        assert (home / ".claude" / "skills" / "code-review" / "SKILL.md").is_file()
        assert (home / ".config" / "opencode" / "skill" / "code-review" / "SKILL.md").is_file()
        assert not (home / ".gemini").exists()

    def test_duplicate_platforms_once(self, orchestrator: Orchestrator):
        """Test a platform listed twice is installed once."""
        result = orchestrator.apply(_request(SKILL, ["claude", "claude"]))
        assert result.installed == ["claude"]

    def test_project_scope(self, orchestrator: Orchestrator, project: Path):
        """Test project scope writes under the project root."""
        orchestrator.apply(
            _request(SERVER, ["claude"], scope=Scope.PROJECT, project_root=project)
        )
        assert (project / ".mcp.json").is_file()

    def test_validation_failure_writes_nothing(self, orchestrator: Orchestrator, home: Path):
        """Test an invalid resource is rejected before any platform is touched."""
        bad = Skill(name="Code_Review", description="")
        with pytest.raises(ValidationFailedError) as exc_info:
            orchestrator.apply(_request(bad, ["claude", "opencode"]))

        assert exc_info.value.result.has_errors()
        assert list(home.iterdir()) == []
        assert orchestrator.backup.requests == []

    def test_source_path_checked(self, orchestrator: Orchestrator, tmp_path: Path):
        """Test a skill whose name differs from its directory is rejected."""
        source = tmp_path / "other-name" / "SKILL.md"
        with pytest.raises(ValidationFailedError, match="directory name"):
            orchestrator.apply(_request(SKILL, ["claude"], source_path=source))

    def test_warnings_reported(self, orchestrator: Orchestrator):
        """Test validation warnings travel back with the result."""
        command = Command(name="review", description="Review", instructions="")
        result = orchestrator.apply(_request(command, ["claude"]))
        assert result.installed == ["claude"]
        assert any(i.field == "instructions" for i in result.warnings)

    @pytest.mark.parametrize("existing_on", ["claude", "gemini", "opencode"])
    def test_exists_without_force_writes_nothing(
        self, orchestrator: Orchestrator, home: Path, existing_on: str
    ):
        """Test pre-flight rejects the install before writing to any platform."""
        Orchestrator(backup=NoBackup(), home=home).apply(_request(SKILL, [existing_on]))
        others = [p for p in ["claude", "gemini", "opencode"] if p != existing_on]

        with pytest.raises(ResourceExistsError, match="use --force to overwrite"):
            orchestrator.apply(_request(SKILL, ["claude", "gemini", "opencode"]))

        for name in others:
            adapter = {"claude": ClaudeAdapter, "gemini": GeminiAdapter,
                       "opencode": OpenCodeAdapter}[name](home=home)
            assert not adapter.exists(ResourceType.SKILL, "code-review")
        assert orchestrator.backup.requests == []

    def test_force_overwrites(self, orchestrator: Orchestrator, home: Path):
        """Test force replaces existing resources and reports them."""
        orchestrator.apply(_request(SKILL, ["claude"]))
        updated = Skill(name="code-review", description="Updated", instructions="New body.")

        result = orchestrator.apply(_request(updated, ["claude", "opencode"], force=True))

        assert result.overwritten == ["claude"]
        assert result.installed == ["claude", "opencode"]
        got = ClaudeAdapter(home=home).get(ResourceType.SKILL, "code-review")
        assert got.description == "Updated"

    def test_failure_keeps_earlier_platforms(
        self, orchestrator: Orchestrator, home: Path, monkeypatch
    ):
        """Test a mid-loop failure stops the install without rolling back."""

        def broken_install(self, resource):
            raise OSError("disk full")

        monkeypatch.setattr(GeminiAdapter, "install", broken_install)

        with pytest.raises(InstallError, match="failed to install to Gemini CLI: disk full"):
            orchestrator.apply(_request(SKILL, ["claude", "gemini", "opencode"]))

        assert ClaudeAdapter(home=home).exists(ResourceType.SKILL, "code-review")
        assert not OpenCodeAdapter(home=home).exists(ResourceType.SKILL, "code-review")

    def test_render_failure_reported_as_install_error(
        self, orchestrator: Orchestrator, home: Path, monkeypatch
    ):
        """Test a serializer ValueError is reported against its platform."""

        def broken_render(self, command):
            raise ValueError("unrepresentable")

        monkeypatch.setattr(GeminiAdapter, "render_command", broken_render)
        command = Command(name="review", instructions="Review.")

        with pytest.raises(InstallError, match="failed to install to Gemini CLI") as exc:
            orchestrator.apply(_request(command, ["claude", "gemini"]))

        assert exc.value.platform == "Gemini CLI"
        assert ClaudeAdapter(home=home).exists(ResourceType.COMMAND, "review")

    def test_backup_before_each_platform(self, orchestrator: Orchestrator, home: Path):
        """Test each platform's config paths are handed to the backup service."""
        orchestrator.apply(_request(SERVER, ["claude", "opencode"]))

        platforms = [platform for platform, _ in orchestrator.backup.requests]
        assert platforms == ["claude", "opencode"]
        claude_paths = orchestrator.backup.requests[0][1]
        assert home / ".claude.json" in claude_paths

    def test_config_dir_override(self, home: Path, tmp_path: Path):
        """Test per-platform base directory overrides reach the adapters."""
        custom = tmp_path / "custom-claude"
        orchestrator = Orchestrator(backup=NoBackup(), home=home, config_dirs={"claude": custom})
        orchestrator.apply(_request(SKILL, ["claude"]))
        assert (custom / "skills" / "code-review" / "SKILL.md").is_file()


class TestInstallFromSource:
    """Test resolving, parsing and applying in one step."""

    def test_local_skill_directory(self, orchestrator: Orchestrator, skill_dir: Path, home: Path):
        """Test installing from a local skill directory."""
        result = orchestrator.install_from_source(
            str(skill_dir), ResourceType.SKILL, ["claude"]
        )
        assert result.resource_name == "code-review"
        installed = ClaudeAdapter(home=home).get(ResourceType.SKILL, "code-review")
        assert installed.allowed_tools == ["Read", "Glob", "Bash(git:*)"]

    def test_git_source(self, orchestrator: Orchestrator, home: Path):
        """Test a git URL is cloned into scratch and installed from there."""
        cloned = []

        def fake_clone(url: str, dest: Path, depth: int) -> None:
            cloned.append(dest)
            (dest / "code-review").mkdir(parents=True)
            (dest / "code-review" / "SKILL.md").write_text(
                "---\nname: code-review\ndescription: Review\n---\nBody\n"
            )

        orchestrator.install_from_source(
            "https://github.com/example/code-review.git",
            ResourceType.SKILL,
            ["opencode"],
            cloner=fake_clone,
        )

        assert OpenCodeAdapter(home=home).exists(ResourceType.SKILL, "code-review")
        assert not cloned[0].exists()

    def test_mcp_file(self, orchestrator: Orchestrator, tmp_path: Path, home: Path):
        """Test installing an MCP server from a JSON file."""
        source = tmp_path / "github.json"
        source.write_text('{"command": "npx", "args": ["-y", "server-github"]}')
        orchestrator.install_from_source(str(source), ResourceType.MCP, ["gemini"])
        assert GeminiAdapter(home=home).get(ResourceType.MCP, "github") == SERVER


class TestBestEffort:
    """Test remove, enable and disable report per-platform outcomes."""

    def test_remove_reports_not_found(self, orchestrator: Orchestrator, home: Path):
        """Test remove succeeds where installed and reports the rest."""
        orchestrator.apply(_request(SKILL, ["claude"]))

        outcomes = orchestrator.remove(ResourceType.SKILL, "code-review", ["claude", "opencode"])

        assert [(o.platform, o.status) for o in outcomes] == [
            ("claude", OutcomeStatus.OK),
            ("opencode", OutcomeStatus.NOT_FOUND),
        ]
        assert not ClaudeAdapter(home=home).exists(ResourceType.SKILL, "code-review")

    def test_remove_missing_everywhere(self, orchestrator: Orchestrator):
        """Test removing something no platform has raises."""
        with pytest.raises(ResourceNotFoundError, match="not found on any platform"):
            orchestrator.remove(ResourceType.COMMAND, "ghost", ["claude", "opencode"])

    def test_failure_does_not_stop_others(
        self, orchestrator: Orchestrator, home: Path, monkeypatch
    ):
        """Test one failing platform is reported while the others proceed."""
        orchestrator.apply(_request(SERVER, ["claude", "gemini", "opencode"]))

        def broken_disable(self, name):
            raise OSError("read-only file system")

        monkeypatch.setattr(ClaudeAdapter, "disable_mcp", broken_disable)
        outcomes = orchestrator.disable("github", ["claude", "gemini", "opencode"])

        statuses = {o.platform: o.status for o in outcomes}
        assert statuses == {
            "claude": OutcomeStatus.FAILED,
            "gemini": OutcomeStatus.OK,
            "opencode": OutcomeStatus.OK,
        }
        failed = next(o for o in outcomes if o.status is OutcomeStatus.FAILED)
        assert "read-only" in failed.error
        assert GeminiAdapter(home=home).get(ResourceType.MCP, "github").disabled

    def test_enable_after_disable(self, orchestrator: Orchestrator, home: Path):
        """Test enable clears the disabled flag."""
        orchestrator.apply(_request(SERVER, ["opencode"]))
        orchestrator.disable("github", ["opencode"])
        orchestrator.enable("github", ["opencode"])
        assert OpenCodeAdapter(home=home).get(ResourceType.MCP, "github") == SERVER

    def test_backup_only_when_found(self, orchestrator: Orchestrator):
        """Test platforms without the resource are not backed up."""
        orchestrator.apply(_request(SERVER, ["claude"]))
        orchestrator.backup.requests.clear()

        orchestrator.disable("github", ["claude", "opencode"])

        assert [p for p, _ in orchestrator.backup.requests] == ["claude"]


class TestList:
    def test_list_by_platform(self, orchestrator: Orchestrator):
        """Test listing returns installed resources keyed by platform."""
        orchestrator.apply(_request(SKILL, ["claude"]))
        listing = orchestrator.list(ResourceType.SKILL, ["opencode", "claude"])
        assert list(listing) == ["claude", "opencode"]
        assert [s.name for s in listing["claude"]] == ["code-review"]
        assert listing["opencode"] == []

    def test_show_only_where_installed(self, orchestrator: Orchestrator):
        """Test show reads the resource back from each platform that has it."""
        orchestrator.apply(_request(SERVER, ["claude", "gemini"]))
        found = orchestrator.show(ResourceType.MCP, "github", ["claude", "gemini", "opencode"])
        assert list(found) == ["claude", "gemini"]
        assert found["gemini"].command == "npx"
        assert orchestrator.show(ResourceType.MCP, "ghost", ["claude"]) == {}
