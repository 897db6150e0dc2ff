# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


# ----------------------------------------------------------------------
# Version resolution
# ----------------------------------------------------------------------

class VersionResolutionError(Exception):
    """Base class for everything that can go wrong reading the release version."""


class ManifestReadFailure(VersionResolutionError):
    """The manifest could not be read (missing, unreadable, or too large)."""


class MissingVersion(VersionResolutionError):
    """No line in the manifest starts with the version key."""


class InvalidVersionFormat(VersionResolutionError):
    """The version line does not carry a double-quoted value."""


# ----------------------------------------------------------------------
# Graph / execution
# ----------------------------------------------------------------------

class GraphError(ValueError):
    """Invalid step graph: duplicates, unknown edges, cycles, late mutation."""


@dataclass
class StepActionFailure(Exception):
    """
    An action inside a step failed.

    Wraps a non-zero tool exit, a missing tool, or an I/O error, and always
    names the step and the action that failed.
    """
    step: str
    action: str
    message: str
    exit_code: int | None = None
    stderr: str = ""
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        head = f"[{self.step}] {self.action} failed"
        if self.exit_code is not None:
            head += f" (exit={self.exit_code})"
        lines = [f"{head}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)
