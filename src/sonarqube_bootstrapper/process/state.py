"""Supervised process result types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ProcessResult:
    """Outcome of a supervised process run.

    ``exit_code`` is only meaningful when ``completed`` is True; a process
    killed on timeout has no exit code.
    """

    completed: bool
    exit_code: int | None = None
    executable: str = ""
    duration_ms: float = 0.0

    @property
    def timed_out(self) -> bool:
        """Whether the process was killed because it ran out of time."""
        return not self.completed

    @property
    def success(self) -> bool:
        return self.completed and self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "completed": self.completed,
            "executable": self.executable,
            "durationMs": round(self.duration_ms, 2),
        }
        if self.exit_code is not None:
            result["exitCode"] = self.exit_code
        if self.timed_out:
            result["timedOut"] = True
        return result

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        if self.timed_out:
            status = f"[TIMEOUT] {self.executable} killed after {self.duration_ms:.0f}ms"
        elif self.exit_code == 0:
            status = f"[OK] {self.executable} exited with code 0"
        else:
            status = f"[FAILED] {self.executable} exited with code {self.exit_code}"
        return f"{status} ({self.duration_ms:.0f}ms)"
