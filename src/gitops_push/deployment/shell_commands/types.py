"""Data types for shell command results.

This module contains the dataclasses and enums shared by the shell
command modules and the components that consume their results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "CommandResult",
    "CommitStatus",
    "CommitOutcome",
    "DiffState",
]


@dataclass
class CommandResult:
    """Result of a command execution.

    Attributes:
        success: Whether the command exited with status 0
        stdout: Captured standard output
        stderr: Captured standard error
        returncode: Process exit status
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


class DiffState(str, Enum):
    """State of the staging area relative to HEAD."""

    CLEAN = "clean"
    CHANGED = "changed"
    ERROR = "error"


class CommitStatus(str, Enum):
    """Terminal states of the change detector and committer."""

    NO_CHANGES_SKIPPED = "no-changes-skipped"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitOutcome:
    """Result of staging and committing placed manifests.

    "Nothing to commit" is a distinct, non-error terminal state, so this is
    a tri-state result rather than a boolean.

    Attributes:
        status: Which terminal state was reached
        reason: Failure reason, set only when status is FAILED
        message: Commit message used, set only when status is COMMITTED
    """

    status: CommitStatus
    reason: str | None = None
    message: str | None = None

    @classmethod
    def skipped(cls) -> CommitOutcome:
        return cls(CommitStatus.NO_CHANGES_SKIPPED)

    @classmethod
    def committed(cls, message: str) -> CommitOutcome:
        return cls(CommitStatus.COMMITTED, message=message)

    @classmethod
    def failed(cls, reason: str) -> CommitOutcome:
        return cls(CommitStatus.FAILED, reason=reason)

    @property
    def has_commit(self) -> bool:
        """Whether a new commit was created and needs pushing."""
        return self.status is CommitStatus.COMMITTED
