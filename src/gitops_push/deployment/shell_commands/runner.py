"""Process execution for the git and helm wrappers.

Every external program the pipeline starts goes through CommandRunner.run,
which never raises for a non-zero exit: callers inspect the returned
CommandResult and decide what a given exit status means.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult

# Exit status shells report when a program cannot be found
COMMAND_NOT_FOUND = 127


class CommandRunner:
    """Low-level command executor with consistent result handling.

    This class provides the foundation for executing external programs with
    full output capture. stdout and stderr are captured separately and
    never truncated, since callers need both verbatim.

    All specialized command modules (Helm, Git) use this runner for actual
    command execution, which keeps them testable with a mock runner.
    """

    def __init__(self, project_root: Path) -> None:
        """Initialize the command runner.

        Args:
            project_root: Default working directory for commands.
        """
        self.project_root = project_root

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = True,
    ) -> CommandResult:
        """Run a program and collect its exit status and output.

        Args:
            cmd: Program and arguments as a sequence
            cwd: Working directory (defaults to project_root)
            capture_output: Whether to capture stdout/stderr

        Returns:
            CommandResult with success status, output, and return code.
            A program that cannot be found yields returncode 127.
        """
        logger.debug("Running {} in {}", cmd[0], cwd or self.project_root)
        try:
            result = subprocess.run(
                list(cmd),
                cwd=cwd or self.project_root,
                capture_output=capture_output,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(
                success=False,
                stderr=f"command not found: {cmd[0]} ({e})",
                returncode=COMMAND_NOT_FOUND,
            )
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
