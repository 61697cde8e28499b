"""Entry point for the SonarQube MSBuild bootstrapper."""

import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from .config import load_settings
from .errors import BootstrapperError
from .orchestrator import run as run_orchestrator
from .process import ProcessSupervisor
from .updater import BuildAgentUpdater

EXIT_FATAL = 1


def configure_logging() -> None:
    """Configure logging based on environment."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


async def main(argv: Sequence[str]) -> int:
    """Run one bootstrapper pass.

    Args:
        argv: Arguments without the program name. Any argument selects
            pre-processing and is forwarded to the pre-processor.

    Returns:
        Process exit code
    """
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings()
        updater = BuildAgentUpdater(
            timeout_ms=settings.download_timeout_ms,
            pause_ms=settings.download_pause_ms,
        )
        return await run_orchestrator(list(argv), settings, updater, ProcessSupervisor())
    except BootstrapperError:
        logger.exception("Bootstrapper failed")
        return EXIT_FATAL


def run() -> None:
    """Run the bootstrapper and exit with its exit code."""
    configure_logging()
    try:
        exit_code = asyncio.run(main(sys.argv[1:]))
    except KeyboardInterrupt:
        exit_code = EXIT_FATAL
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
