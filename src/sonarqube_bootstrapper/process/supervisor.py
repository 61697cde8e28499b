"""Supervised execution of external tools with timeout enforcement.

The child inherits the parent's stdout/stderr so its output appears in the
build log unchanged. A child that outlives its timeout is killed together
with everything it spawned.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import subprocess
import time
from collections.abc import Sequence

from ..errors import LaunchError
from .state import ProcessResult
from .tree import ProcessTree, popen_options

logger = logging.getLogger(__name__)


def format_command_line(executable_path: str, arguments: Sequence[str]) -> str:
    """Render a command line for logging, quoted the way Windows parses it."""
    return subprocess.list2cmdline([executable_path, *arguments])


def _normalize_arguments(arguments: Sequence[str] | str | None) -> list[str]:
    if arguments is None:
        return []
    if isinstance(arguments, str):
        return shlex.split(arguments)
    return [str(arg) for arg in arguments]


class ProcessSupervisor:
    """Launches an executable and waits for it, up to a timeout."""

    async def execute(
        self,
        executable_path: str,
        arguments: Sequence[str] | str | None,
        working_directory: str,
        timeout: float,
    ) -> ProcessResult:
        """Run an executable to completion or until the timeout expires.

        Args:
            executable_path: Path to the executable
            arguments: Argument vector (a single string is split shell-style)
            working_directory: Working directory for the child
            timeout: Timeout in seconds

        Returns:
            ProcessResult. ``completed`` is False if the process was killed
            on timeout, in which case ``exit_code`` is None.

        Raises:
            ValueError: If timeout is not positive
            LaunchError: If the executable cannot be found or started
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        args = _normalize_arguments(arguments)
        logger.info(f"Executing: {format_command_line(executable_path, args)}")
        logger.debug(f"Working directory: {working_directory}, timeout: {timeout}s")

        tree = ProcessTree()
        process: asyncio.subprocess.Process | None = None
        start_time = time.perf_counter()

        try:
            # Never use shell=True; arguments are passed as a real vector
            try:
                process = await asyncio.create_subprocess_exec(
                    executable_path,
                    *args,
                    cwd=working_directory,
                    **popen_options(),
                )
            except OSError as e:
                raise LaunchError(
                    f"Cannot start {executable_path}: {e}", executable=executable_path
                ) from e

            tree.attach(getattr(process, "pid", None))

            try:
                exit_code = await asyncio.wait_for(process.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                duration = (time.perf_counter() - start_time) * 1000
                logger.warning(
                    f"{executable_path} did not exit within {timeout}s, killing process tree"
                )
                tree.kill()
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
                return ProcessResult(
                    completed=False,
                    exit_code=None,
                    executable=executable_path,
                    duration_ms=duration,
                )

            duration = (time.perf_counter() - start_time) * 1000
            result = ProcessResult(
                completed=True,
                exit_code=exit_code,
                executable=executable_path,
                duration_ms=duration,
            )
            logger.info(result.to_summary())
            return result

        finally:
            # cancelled while waiting (Ctrl+C never reaches a child in its own session)
            if process is not None and process.returncode is None:
                logger.warning(f"Run interrupted, killing {executable_path}")
                tree.kill()
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            tree.close()
