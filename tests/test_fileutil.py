"""Tests for atomic file writes."""

import json
import os
import stat
from pathlib import Path

import pytest

from aix import fileutil


def _temp_artifacts(directory: Path) -> list[Path]:
    return [p for p in directory.iterdir() if p.name.startswith(fileutil.TEMP_PREFIX)]


class TestWriteAtomic:
    """Test write_atomic."""

    def test_writes_new_file(self, tmp_path: Path):
        """Test content lands at the destination."""
        dest = tmp_path / "out.txt"
        fileutil.write_atomic(dest, "hello\n")
        assert dest.read_text() == "hello\n"
        assert _temp_artifacts(tmp_path) == []

    def test_replaces_existing(self, tmp_path: Path):
        """Test an existing file is replaced wholesale."""
        dest = tmp_path / "out.txt"
        dest.write_text("old content that is longer")
        fileutil.write_atomic(dest, b"new")
        assert dest.read_bytes() == b"new"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_sets_permissions(self, tmp_path: Path):
        """Test perm is applied to the final file."""
        dest = tmp_path / "secret.json"
        fileutil.write_atomic(dest, "{}", perm=0o600)
        assert stat.S_IMODE(dest.stat().st_mode) == 0o600

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_keeps_existing_mode(self, tmp_path: Path):
        """Test replacing a private file does not widen its permissions."""
        dest = tmp_path / "private.json"
        dest.write_text("{}")
        dest.chmod(0o600)
        fileutil.write_json_atomic(dest, {"a": 1})
        assert stat.S_IMODE(dest.stat().st_mode) == 0o600

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_new_file_default_mode(self, tmp_path: Path):
        dest = tmp_path / "new.json"
        fileutil.write_atomic(dest, "{}")
        assert stat.S_IMODE(dest.stat().st_mode) == fileutil.DEFAULT_PERM

    def test_failure_before_rename_leaves_destination(self, tmp_path: Path, monkeypatch):
        """Test an interrupted write keeps the old file and cleans up the temp file."""
        dest = tmp_path / "config.json"
        dest.write_text('{"keep": true}')
        before = dest.read_bytes()

        def interrupted(src, dst):
            raise OSError("simulated crash before rename")

        monkeypatch.setattr(fileutil.os, "replace", interrupted)
        with pytest.raises(OSError, match="simulated crash"):
            fileutil.write_atomic(dest, '{"keep": false}')

        assert dest.read_bytes() == before
        assert _temp_artifacts(tmp_path) == []

    def test_failure_during_write_cleans_up(self, tmp_path: Path, monkeypatch):
        """Test a failing fsync also removes the temp file."""
        dest = tmp_path / "new.txt"

        def broken_fsync(fd):
            raise OSError("disk full")

        monkeypatch.setattr(fileutil.os, "fsync", broken_fsync)
        with pytest.raises(OSError, match="disk full"):
            fileutil.write_atomic(dest, "data")

        assert not dest.exists()
        assert _temp_artifacts(tmp_path) == []


class TestJSONHelpers:
    """Test write_json_atomic and read_json."""

    def test_json_indent_and_newline(self, tmp_path: Path):
        """Test JSON is indented by two and ends with a newline."""
        dest = tmp_path / "a.json"
        fileutil.write_json_atomic(dest, {"a": {"b": 1}})
        text = dest.read_text()
        assert text == '{\n  "a": {\n    "b": 1\n  }\n}\n'

    def test_read_json_missing_and_empty(self, tmp_path: Path):
        """Test missing or empty files read as an empty object."""
        assert fileutil.read_json(tmp_path / "missing.json") == {}
        empty = tmp_path / "empty.json"
        empty.write_text("  \n")
        assert fileutil.read_json(empty) == {}

    def test_read_json_rejects_non_object(self, tmp_path: Path):
        """Test a top-level array is rejected."""
        path = tmp_path / "list.json"
        path.write_text(json.dumps([1, 2]))
        with pytest.raises(ValueError, match="JSON object"):
            fileutil.read_json(path)
