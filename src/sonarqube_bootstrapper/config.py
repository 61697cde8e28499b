"""Bootstrapper settings.

Values come from ``SONARQUBE_BOOTSTRAPPER_*`` environment variables or a
``.env`` file. Directory and executable defaults are derived from the build
directory, which the TFS/VSTS build agent publishes as
``TF_BUILD_BUILDDIRECTORY``.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

BUILD_DIRECTORY_ENV_VAR = "TF_BUILD_BUILDDIRECTORY"
TEMP_DIRECTORY_NAME = ".sonarqube"
DOWNLOAD_DIRECTORY_NAME = "bin"
PRE_PROCESSOR_EXE = "SonarQube.MSBuild.PreProcessor.exe"
POST_PROCESSOR_EXE = "SonarQube.MSBuild.PostProcessor.exe"

DEFAULT_SONARQUBE_URL = "http://localhost:9000"
DEFAULT_PRE_PROCESSOR_TIMEOUT_MS = 5 * 60 * 1000
DEFAULT_POST_PROCESSOR_TIMEOUT_MS = 60 * 60 * 1000


def _default_build_directory() -> Path:
    build_dir = os.environ.get(BUILD_DIRECTORY_ENV_VAR)
    return Path(build_dir) if build_dir else Path.cwd()


class BootstrapperSettings(BaseSettings):
    """Read-only configuration for one bootstrapper run."""

    model_config = SettingsConfigDict(
        env_prefix="SONARQUBE_BOOTSTRAPPER_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    sonarqube_url: str = Field(
        default=DEFAULT_SONARQUBE_URL,
        min_length=1,
        description="Base URL of the SonarQube server.",
    )
    build_directory: Path = Field(
        default_factory=_default_build_directory,
        description="Root of the build; working directories live below it.",
    )
    temp_directory: Path | None = Field(
        default=None,
        description="Working directory for the pre/post-processors.",
    )
    download_directory: Path | None = Field(
        default=None,
        description="Directory the tool bundle is extracted into.",
    )
    pre_processor_file_path: Path | None = None
    post_processor_file_path: Path | None = None

    pre_processor_timeout_ms: int = Field(default=DEFAULT_PRE_PROCESSOR_TIMEOUT_MS, ge=1)
    post_processor_timeout_ms: int = Field(default=DEFAULT_POST_PROCESSOR_TIMEOUT_MS, ge=1)

    download_timeout_ms: int = Field(
        default=30_000,
        ge=1,
        description="Time budget for fetching the tool bundle, retries included.",
    )
    download_pause_ms: int = Field(
        default=1_000,
        ge=1,
        description="Pause between download attempts.",
    )

    @field_validator(
        "temp_directory",
        "download_directory",
        "pre_processor_file_path",
        "post_processor_file_path",
        mode="before",
    )
    @classmethod
    def _reject_blank_paths(cls, value: object) -> object:
        # an empty string would otherwise become Path("."), the build directory
        if value is not None and not str(value).strip():
            raise ValueError("path must not be empty")
        return value

    @model_validator(mode="after")
    def _derive_paths(self) -> BootstrapperSettings:
        if self.temp_directory is None:
            self.temp_directory = self.build_directory / TEMP_DIRECTORY_NAME
        if self.download_directory is None:
            self.download_directory = self.temp_directory / DOWNLOAD_DIRECTORY_NAME
        if self.pre_processor_file_path is None:
            self.pre_processor_file_path = self.download_directory / PRE_PROCESSOR_EXE
        if self.post_processor_file_path is None:
            self.post_processor_file_path = self.download_directory / POST_PROCESSOR_EXE
        return self


def load_settings(**overrides: object) -> BootstrapperSettings:
    """Load settings from the environment.

    Raises:
        ConfigurationError: If a setting is invalid
    """
    try:
        return BootstrapperSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid bootstrapper settings: {e}") from e
