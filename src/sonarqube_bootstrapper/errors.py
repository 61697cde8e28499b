"""Bootstrapper specific exceptions."""


class BootstrapperError(Exception):
    """Base exception for bootstrapper errors."""

    pass


class ConfigurationError(BootstrapperError):
    """Raised when a required setting is missing or invalid."""

    pass


class StagingError(BootstrapperError, OSError):
    """Raised when a working directory cannot be reset."""

    pass


class LaunchError(BootstrapperError):
    """Raised when a supervised executable cannot be started."""

    def __init__(self, message: str, executable: str | None = None):
        super().__init__(message)
        self.executable = executable
