"""Test configuration and fixtures."""

from pathlib import Path

import pytest

from aix.backup import NoBackup
from aix.orchestrator import Orchestrator

CODE_REVIEW_SKILL = """---
name: code-review
description: Performs code review
allowed-tools: Read Glob Bash(git:*)
---

Review the diff in $ARGUMENTS and report problems.
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: tests taking > 5 seconds")
    config.addinivalue_line("markers", "git: tests that need a git executable")


@pytest.fixture
def home(tmp_path: Path, monkeypatch) -> Path:
    """Isolate the home directory and aix config directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    monkeypatch.setenv("AIX_CONFIG_DIR", str(home_dir / ".config" / "aix"))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    return home_dir


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    """Set up a temporary project directory as the cwd."""
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def skill_dir(tmp_path: Path) -> Path:
    """A code-review skill source directory."""
    path = tmp_path / "src" / "code-review"
    path.mkdir(parents=True)
    (path / "SKILL.md").write_text(CODE_REVIEW_SKILL)
    return path


@pytest.fixture
def backup() -> NoBackup:
    return NoBackup()


@pytest.fixture
def orchestrator(home: Path, backup: NoBackup) -> Orchestrator:
    """An orchestrator bound to the isolated home with backups recorded, not written."""
    return Orchestrator(backup=backup, home=home)
