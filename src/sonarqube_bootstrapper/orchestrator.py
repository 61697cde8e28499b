"""Pre/post-process orchestration.

Run modes:
Start → PreProcess  (one or more arguments)
Start → PostProcess (no arguments)

PreProcess resets the working directories, fetches the tool bundle and runs
the pre-processor with the caller's arguments. PostProcess runs the
post-processor against what the build produced. The program's exit code is
the supervised child's exit code.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Final

from .config import BootstrapperSettings
from .errors import ConfigurationError
from .process import ProcessResult, ProcessSupervisor
from .updater import BundleUpdater
from .utils.filesystem import ensure_empty_directory

logger = logging.getLogger(__name__)

# Tool bundle could not be acquired; no processor was launched
EXIT_BUNDLE_UNAVAILABLE: Final[int] = 1
# Supervised processor was killed after exceeding its timeout
EXIT_TIMEOUT: Final[int] = 124
# Shell convention for a child terminated by signal N: 128 + N
EXIT_SIGNAL_BASE: Final[int] = 128


def _exit_code_for(result: ProcessResult, timeout_ms: int) -> int:
    if not result.completed:
        logger.error(f"{result.executable} timed out after {timeout_ms}ms and was killed")
        return EXIT_TIMEOUT
    exit_code = result.exit_code or 0
    if exit_code < 0:
        signal_number = -exit_code
        logger.error(f"{result.executable} was terminated by signal {signal_number}")
        return EXIT_SIGNAL_BASE + signal_number
    return exit_code


async def preprocess(
    args: Sequence[str],
    settings: BootstrapperSettings,
    updater: BundleUpdater,
    supervisor: ProcessSupervisor,
) -> int:
    """Stage working directories, fetch the bundle and run the pre-processor."""
    temp_directory = str(settings.temp_directory)
    download_directory = str(settings.download_directory)

    ensure_empty_directory(temp_directory)
    ensure_empty_directory(download_directory)

    server = settings.sonarqube_url
    if not server or not server.strip():
        raise ConfigurationError("SonarQube server URL is not configured")
    logger.info(f"SonarQube server url: {server}")

    if not await updater.try_update(server, download_directory):
        logger.error(
            "Could not find the SonarQube MSBuild integration zip on the server. "
            "Check that the C# plugin is installed on the SonarQube server."
        )
        return EXIT_BUNDLE_UNAVAILABLE

    result = await supervisor.execute(
        str(settings.pre_processor_file_path),
        list(args),
        temp_directory,
        settings.pre_processor_timeout_ms / 1000,
    )
    return _exit_code_for(result, settings.pre_processor_timeout_ms)


async def postprocess(
    settings: BootstrapperSettings,
    supervisor: ProcessSupervisor,
) -> int:
    """Run the post-processor in the working directory."""
    result = await supervisor.execute(
        str(settings.post_processor_file_path),
        [],
        str(settings.temp_directory),
        settings.post_processor_timeout_ms / 1000,
    )
    return _exit_code_for(result, settings.post_processor_timeout_ms)


async def run(
    args: Sequence[str],
    settings: BootstrapperSettings,
    updater: BundleUpdater,
    supervisor: ProcessSupervisor,
) -> int:
    """Select the run mode from the arguments and execute it.

    Args:
        args: Command-line arguments (without the program name)
        settings: Bootstrapper settings
        updater: Tool bundle updater
        supervisor: Process supervisor

    Returns:
        Exit code for the bootstrapper process

    Raises:
        ConfigurationError: If the server URL is empty
        StagingError: If a working directory cannot be reset
        LaunchError: If a processor cannot be started
    """
    if args:
        logger.info(f"Pre-processing ({len(args)} argument(s) passed)")
        return await preprocess(args, settings, updater, supervisor)

    logger.info("Post-processing (no arguments passed)")
    return await postprocess(settings, supervisor)
