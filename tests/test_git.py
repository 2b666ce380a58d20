"""Tests for git helpers."""

import subprocess
from pathlib import Path

import pytest

from aix import git
from aix.exceptions import GitError


class TestValidateURL:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/example/skills.git",
            "http://example.com/repo",
            "git@github.com:example/skills.git",
            "ssh://git@example.com/skills.git",
            "git://example.com/skills.git",
            "file:///srv/git/skills",
        ],
    )
    def test_accepted(self, url):
        git.validate_url(url)
        assert git.is_url(url)

    @pytest.mark.parametrize(
        "url, fragment",
        [
            ("", "cannot be empty"),
            ("--upload-pack=evil", "cannot start with '-'"),
            ("ext::sh -c evil", "ext:: protocol"),
            ("ftp://example.com/repo.git", "unsupported protocol scheme 'ftp'"),
            ("code-review", "missing protocol scheme"),
        ],
    )
    def test_rejected(self, url, fragment):
        """Test unsafe or unsupported URLs are refused."""
        with pytest.raises(GitError, match=fragment):
            git.validate_url(url)
        assert not git.is_url(url)


class TestClone:
    """Test clone without touching the network."""

    def test_command_line(self, tmp_path: Path, monkeypatch):
        """Test the git command is shallow and separates options from the URL."""
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(git.subprocess, "run", fake_run)
        git.clone("https://github.com/example/skills.git", tmp_path / "skills")

        cmd, kwargs = calls[0]
        assert cmd == [
            "git", "clone", "--quiet", "--depth", "1", "--",
            "https://github.com/example/skills.git", str(tmp_path / "skills"),
        ]
        assert kwargs["timeout"] == git.CLONE_TIMEOUT
        assert kwargs["check"] is True

    def test_full_clone(self, tmp_path: Path, monkeypatch):
        calls = []
        monkeypatch.setattr(
            git.subprocess, "run",
            lambda cmd, **kwargs: calls.append(cmd) or subprocess.CompletedProcess(cmd, 0),
        )
        git.clone("https://github.com/example/skills.git", tmp_path / "skills", depth=0)
        assert "--depth" not in calls[0]

    def test_rejects_bad_url(self, tmp_path: Path, monkeypatch):
        """Test URL validation happens before git runs."""

        def fail(*args, **kwargs):
            raise AssertionError("git should not run")

        monkeypatch.setattr(git.subprocess, "run", fail)
        with pytest.raises(GitError):
            git.clone("-oProxyCommand=evil", tmp_path / "x")

    @pytest.mark.parametrize(
        "error, fragment",
        [
            (FileNotFoundError("git"), "git is not installed"),
            (subprocess.TimeoutExpired(["git"], 300), "timed out"),
            (
                subprocess.CalledProcessError(128, ["git"], stderr="fatal: repository not found\n"),
                "fatal: repository not found",
            ),
            (subprocess.CalledProcessError(1, ["git"], stderr=""), "exit status 1"),
        ],
    )
    def test_errors(self, tmp_path: Path, monkeypatch, error, fragment):
        """Test subprocess failures are reported as GitError."""

        def fake_run(*args, **kwargs):
            raise error

        monkeypatch.setattr(git.subprocess, "run", fake_run)
        with pytest.raises(GitError, match=fragment):
            git.clone("https://github.com/example/skills.git", tmp_path / "skills")
