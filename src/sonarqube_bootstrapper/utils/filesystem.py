"""Working directory staging.

Directories are reset at the start of pre-processing so that nothing from a
previous run can leak into the current one.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
from pathlib import Path
from typing import Any, Callable

from ..errors import StagingError

logger = logging.getLogger(__name__)


def _clear_readonly(func: Callable[[str], Any], path: str, _exc: Any) -> None:
    """rmtree error hook: drop the read-only bit and retry once.

    Windows refuses to delete read-only files, which tool bundles often ship.
    """
    os.chmod(path, stat.S_IWRITE)
    func(path)


def _remove_tree(directory: Path) -> None:
    if sys.version_info >= (3, 12):
        shutil.rmtree(directory, onexc=_clear_readonly)
    else:
        shutil.rmtree(directory, onerror=_clear_readonly)


def _validate_directory(directory: str | os.PathLike[str]) -> Path:
    if directory is None or not str(directory).strip():
        raise ValueError("directory must not be empty")
    return Path(directory)


def ensure_directory_exists(directory: str | os.PathLike[str]) -> Path:
    """Ensure that the specified directory exists.

    An existing directory is reused as is.

    Args:
        directory: Directory path

    Returns:
        The directory as a Path

    Raises:
        ValueError: If directory is empty
        StagingError: If the directory cannot be created
    """
    path = _validate_directory(directory)

    if path.is_dir():
        logger.debug(f"Directory already exists: {path}")
        return path

    logger.debug(f"Creating directory: {path}")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StagingError(f"Cannot create directory {path}: {e}") from e
    return path


def ensure_empty_directory(directory: str | os.PathLike[str]) -> Path:
    """Ensure that the specified directory exists and is empty.

    Any existing contents are deleted recursively.

    Args:
        directory: Directory path

    Returns:
        The directory as a Path

    Raises:
        ValueError: If directory is empty
        StagingError: If the directory is the working directory or one of its
            parents, or if deletion or creation is denied by the filesystem
    """
    path = _validate_directory(directory)

    cwd = Path.cwd().resolve()
    resolved = path.resolve()
    if resolved == cwd or resolved in cwd.parents:
        raise StagingError(f"Refusing to empty {path}: it contains the working directory")

    if path.exists():
        logger.debug(f"Deleting directory: {path}")
        try:
            if path.is_dir() and not path.is_symlink():
                _remove_tree(path)
            else:
                path.unlink()
        except OSError as e:
            raise StagingError(f"Cannot delete {path}: {e}") from e

    logger.debug(f"Creating directory: {path}")
    try:
        path.mkdir(parents=True)
    except OSError as e:
        raise StagingError(f"Cannot create directory {path}: {e}") from e
    return path
