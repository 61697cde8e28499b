"""Process tree ownership for supervised executables.

Killing only the top-level process leaves grandchildren running, so each
supervised process gets its own tree handle:
- Windows: a Job Object with JOB_OBJECT_LIMIT_KILL_ON_JOB_CLOSE
- POSIX: a new session (process group) terminated with killpg
"""

from __future__ import annotations

import logging
import os
import signal
from typing import Any

logger = logging.getLogger(__name__)

JOB_OBJECT_LIMIT_KILL_ON_JOB_CLOSE = 0x2000
JOB_OBJECT_EXTENDED_LIMIT_INFORMATION_CLASS = 9
PROCESS_SET_QUOTA = 0x0100
PROCESS_TERMINATE = 0x0001
# Exit code reported by processes terminated through the job
JOB_KILL_EXIT_CODE = 1


def popen_options() -> dict[str, bool]:
    """Extra subprocess options needed for tree management."""
    if os.name == "nt":
        return {}
    return {"start_new_session": True}


def _kernel32() -> Any:
    import ctypes

    return ctypes.windll.kernel32


def _kill_on_close_limits() -> Any:
    """Build a JOBOBJECT_EXTENDED_LIMIT_INFORMATION with kill-on-close set."""
    import ctypes
    from ctypes import wintypes

    ulonglong = ctypes.c_uint64

    class BasicLimits(ctypes.Structure):
        _fields_ = [
            ("PerProcessUserTimeLimit", ctypes.c_int64),
            ("PerJobUserTimeLimit", ctypes.c_int64),
            ("LimitFlags", wintypes.DWORD),
            ("MinimumWorkingSetSize", ctypes.c_size_t),
            ("MaximumWorkingSetSize", ctypes.c_size_t),
            ("ActiveProcessLimit", wintypes.DWORD),
            ("Affinity", ctypes.POINTER(ctypes.c_ulong)),
            ("PriorityClass", wintypes.DWORD),
            ("SchedulingClass", wintypes.DWORD),
        ]

    class IoCounters(ctypes.Structure):
        _fields_ = [
            (f"{kind}{unit}", ulonglong)
            for unit in ("OperationCount", "TransferCount")
            for kind in ("Read", "Write", "Other")
        ]

    class ExtendedLimits(ctypes.Structure):
        _fields_ = [
            ("BasicLimitInformation", BasicLimits),
            ("IoInfo", IoCounters),
            ("ProcessMemoryLimit", ctypes.c_size_t),
            ("JobMemoryLimit", ctypes.c_size_t),
            ("PeakProcessMemoryUsed", ctypes.c_size_t),
            ("PeakJobMemoryUsed", ctypes.c_size_t),
        ]

    limits = ExtendedLimits()
    limits.BasicLimitInformation.LimitFlags = JOB_OBJECT_LIMIT_KILL_ON_JOB_CLOSE
    return limits


def _create_job_object() -> int | None:
    """Create a kill-on-close Job Object.

    Returns:
        Job handle, or None off Windows or when the job cannot be set up
        (the supervisor then falls back to killing the root process only)
    """
    if os.name != "nt":
        return None

    try:
        import ctypes

        kernel32 = _kernel32()
        job = kernel32.CreateJobObjectW(None, None)
        if not job:
            logger.warning("Failed to create job object")
            return None

        limits = _kill_on_close_limits()
        if not kernel32.SetInformationJobObject(
            job,
            JOB_OBJECT_EXTENDED_LIMIT_INFORMATION_CLASS,
            ctypes.byref(limits),
            ctypes.sizeof(limits),
        ):
            logger.warning("Failed to set job object limits")
            kernel32.CloseHandle(job)
            return None
        return job
    except (OSError, AttributeError) as e:
        logger.warning(f"Job object creation failed: {e}")
        return None


class ProcessTree:
    """Owns the tree of processes rooted at one supervised process."""

    def __init__(self) -> None:
        self._job_handle: int | None = _create_job_object()
        self._pid: int | None = None

    @property
    def pid(self) -> int | None:
        return self._pid

    def attach(self, pid: int | None) -> None:
        """Attach the root process (assigns it to the job object on Windows)."""
        self._pid = pid
        if pid is None or self._job_handle is None:
            return

        try:
            kernel32 = _kernel32()
            proc_handle = kernel32.OpenProcess(
                PROCESS_SET_QUOTA | PROCESS_TERMINATE, False, pid
            )
            if not proc_handle:
                logger.warning(f"Cannot open PID {pid}; grandchildren will not be tracked")
                return
            try:
                kernel32.AssignProcessToJobObject(self._job_handle, proc_handle)
            finally:
                kernel32.CloseHandle(proc_handle)
        except (OSError, AttributeError) as e:
            logger.warning(f"Failed to assign process to job: {e}")

    def kill(self) -> None:
        """Forcibly terminate the root process and all its descendants."""
        if self._job_handle is not None:
            try:
                _kernel32().TerminateJobObject(self._job_handle, JOB_KILL_EXIT_CODE)
                logger.debug(f"Terminated job for PID {self._pid}")
            except (OSError, AttributeError) as e:
                logger.warning(f"Failed to terminate job: {e}")
            return

        if os.name == "nt" or self._pid is None:
            return
        try:
            os.killpg(self._pid, signal.SIGKILL)
            logger.debug(f"Killed process group {self._pid}")
        except ProcessLookupError:
            logger.debug(f"Process group {self._pid} already gone")
        except PermissionError as e:
            logger.warning(f"Failed to kill process group {self._pid}: {e}")

    def close(self) -> None:
        """Release the job object (kills any process still assigned to it)."""
        if self._job_handle is None:
            return

        try:
            _kernel32().CloseHandle(self._job_handle)
        except (OSError, AttributeError) as e:
            logger.warning(f"Failed to close job object: {e}")
        finally:
            self._job_handle = None
