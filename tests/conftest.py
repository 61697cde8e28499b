"""Pytest fixtures for sonarqube-bootstrapper tests."""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from sonarqube_bootstrapper.config import BootstrapperSettings  # noqa: E402


@pytest.fixture
def build_dir(tmp_path, monkeypatch):
    """Isolated build directory used as CWD (keeps stray .env files out)."""
    build = tmp_path / "build"
    build.mkdir()
    monkeypatch.chdir(build)
    monkeypatch.delenv("TF_BUILD_BUILDDIRECTORY", raising=False)
    return build


@pytest.fixture
def settings(build_dir):
    """Settings rooted in the isolated build directory."""
    return BootstrapperSettings(
        build_directory=build_dir,
        sonarqube_url="http://sonar.test:9000",
        pre_processor_timeout_ms=300_000,
        post_processor_timeout_ms=600_000,
    )


@pytest.fixture
def python_exe():
    """Interpreter used as a stand-in for supervised executables."""
    return sys.executable
