"""Tests for working directory staging."""

import os
import stat
from unittest.mock import patch

import pytest

from sonarqube_bootstrapper.errors import StagingError
from sonarqube_bootstrapper.utils.filesystem import (
    ensure_directory_exists,
    ensure_empty_directory,
)


class TestEnsureEmptyDirectory:
    """Tests for ensure_empty_directory."""

    def test_creates_missing_directory(self, tmp_path):
        """Test that a missing directory is created."""
        target = tmp_path / "work"

        result = ensure_empty_directory(str(target))

        assert target.is_dir()
        assert result == target

    def test_creates_missing_parents(self, tmp_path):
        """Test that intermediate directories are created."""
        target = tmp_path / ".sonarqube" / "bin"

        ensure_empty_directory(target)

        assert target.is_dir()

    def test_removes_existing_contents(self, tmp_path):
        """Test that files and nested directories are removed."""
        target = tmp_path / "work"
        (target / "nested" / "deeper").mkdir(parents=True)
        (target / "stale.txt").write_text("old")
        (target / "nested" / "deeper" / "tool.exe").write_bytes(b"\x00\x01")

        ensure_empty_directory(target)

        assert target.is_dir()
        assert list(target.iterdir()) == []

    def test_removes_read_only_files(self, tmp_path):
        """Test that read-only files do not block deletion."""
        target = tmp_path / "work"
        target.mkdir()
        locked = target / "readonly.dll"
        locked.write_text("x")
        os.chmod(locked, stat.S_IREAD)

        ensure_empty_directory(target)

        assert list(target.iterdir()) == []

    def test_replaces_file_with_directory(self, tmp_path):
        """Test that a plain file at the path is replaced."""
        target = tmp_path / "work"
        target.write_text("not a directory")

        ensure_empty_directory(target)

        assert target.is_dir()

    def test_is_idempotent(self, tmp_path):
        """Test calling twice leaves an empty directory."""
        target = tmp_path / "work"

        ensure_empty_directory(target)
        ensure_empty_directory(target)

        assert target.is_dir()
        assert list(target.iterdir()) == []

    @pytest.mark.parametrize("value", ["", "   "])
    def test_rejects_empty_path(self, value):
        """Test that an empty path is rejected."""
        with pytest.raises(ValueError):
            ensure_empty_directory(value)

    def test_refuses_working_directory(self, tmp_path, monkeypatch):
        """Test that the working directory is never wiped."""
        (tmp_path / "Program.cs").write_text("class Program {}")
        monkeypatch.chdir(tmp_path)

        with pytest.raises(StagingError):
            ensure_empty_directory(".")

        assert (tmp_path / "Program.cs").exists()

    def test_refuses_parent_of_working_directory(self, tmp_path, monkeypatch):
        """Test that a directory containing the working directory is never wiped."""
        build = tmp_path / "src" / "app"
        build.mkdir(parents=True)
        monkeypatch.chdir(build)

        with pytest.raises(StagingError):
            ensure_empty_directory(tmp_path)

        assert build.is_dir()

    def test_delete_failure_raises_staging_error(self, tmp_path):
        """Test that a denied delete surfaces as StagingError."""
        target = tmp_path / "work"
        target.mkdir()

        with patch(
            "sonarqube_bootstrapper.utils.filesystem._remove_tree",
            side_effect=PermissionError("in use"),
        ):
            with pytest.raises(StagingError) as exc_info:
                ensure_empty_directory(target)

        assert isinstance(exc_info.value, OSError)
        assert isinstance(exc_info.value.__cause__, PermissionError)

    def test_create_failure_raises_staging_error(self, tmp_path):
        """Test that a denied create surfaces as StagingError."""
        with patch("pathlib.Path.mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(StagingError):
                ensure_empty_directory(tmp_path / "work")


class TestEnsureDirectoryExists:
    """Tests for ensure_directory_exists."""

    def test_creates_missing_directory(self, tmp_path):
        """Test that a missing directory is created."""
        target = tmp_path / "a" / "b"

        ensure_directory_exists(target)

        assert target.is_dir()

    def test_keeps_existing_contents(self, tmp_path):
        """Test that an existing directory is reused untouched."""
        target = tmp_path / "work"
        target.mkdir()
        (target / "keep.txt").write_text("keep")

        ensure_directory_exists(target)

        assert (target / "keep.txt").read_text() == "keep"

    def test_rejects_empty_path(self):
        """Test that an empty path is rejected."""
        with pytest.raises(ValueError):
            ensure_directory_exists("")
