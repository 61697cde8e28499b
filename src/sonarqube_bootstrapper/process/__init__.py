"""Supervised process execution.

Provides:
- Launch with inherited console streams and an explicit working directory
- Timeout enforcement with whole-tree termination
- Windows Job Objects / POSIX process groups for process tree cleanup
"""

from .state import ProcessResult
from .supervisor import ProcessSupervisor, format_command_line
from .tree import ProcessTree

__all__ = [
    "ProcessResult",
    "ProcessSupervisor",
    "ProcessTree",
    "format_command_line",
]
