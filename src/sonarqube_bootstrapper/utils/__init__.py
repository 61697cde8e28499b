"""Utility modules for sonarqube-bootstrapper."""

from .filesystem import ensure_directory_exists, ensure_empty_directory
from .retry import RetryOutcome, retry, retry_operation

__all__ = [
    "ensure_directory_exists",
    "ensure_empty_directory",
    "RetryOutcome",
    "retry",
    "retry_operation",
]
