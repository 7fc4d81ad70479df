"""Git command abstractions.

This module provides the git operations used to materialize a GitOps
working copy and to stage, commit and push placed manifests.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult, DiffState

if TYPE_CHECKING:
    from .runner import CommandRunner


class GitCommands:
    """Git-related shell commands.

    Provides operations for:
    - Cloning and branch checkout
    - Commit identity configuration
    - Staging, staged-diff detection and committing
    - Pushing to the origin remote
    """

    def __init__(self, runner: CommandRunner, binary: str = "git") -> None:
        """Initialize Git commands.

        Args:
            runner: Command runner for executing shell commands
            binary: Name or path of the git executable
        """
        self._runner = runner
        self._binary = binary

    def _git(self, args: list[str], repo_dir: Path) -> CommandResult:
        return self._runner.run([self._binary, *args], cwd=repo_dir)

    # =========================================================================
    # Repository Setup
    # =========================================================================

    def clone(self, url: str, directory: Path) -> CommandResult:
        """Clone a remote repository into an existing, empty directory.

        Args:
            url: Clone URL (may embed credentials)
            directory: Target directory

        Returns:
            CommandResult with clone status
        """
        return self._runner.run(
            [self._binary, "clone", url, str(directory)], cwd=directory.parent
        )

    def checkout(
        self, branch: str, repo_dir: Path, *, create: bool = False
    ) -> CommandResult:
        """Check out a branch, optionally creating it.

        Args:
            branch: Branch name
            repo_dir: Repository working copy
            create: Pass -b to create the branch from the current HEAD

        Returns:
            CommandResult with checkout status
        """
        args = ["checkout", "-b", branch] if create else ["checkout", branch]
        return self._git(args, repo_dir)

    def set_config(self, key: str, value: str, repo_dir: Path) -> CommandResult:
        """Set a repository-local git config value."""
        return self._git(["config", key, value], repo_dir)

    # =========================================================================
    # Staging and Committing
    # =========================================================================

    def add(self, pathspec: str, repo_dir: Path) -> CommandResult:
        """Stage a single pathspec.

        Args:
            pathspec: Path relative to the repository root
            repo_dir: Repository working copy

        Returns:
            CommandResult with staging status
        """
        return self._git(["add", "--", pathspec], repo_dir)

    def staged_diff_state(self, repo_dir: Path) -> tuple[DiffState, CommandResult]:
        """Report whether the index differs from HEAD.

        Uses ``git diff --cached --quiet``, whose exit status is 0 when there
        are no staged differences and 1 when there are. Any other status
        means git itself failed and is reported as ERROR, never as CHANGED.

        Args:
            repo_dir: Repository working copy

        Returns:
            Tuple of (diff state, raw command result)

        Example:
            >>> state, _ = git.staged_diff_state(Path("/tmp/gitops-repo"))
            >>> state is DiffState.CLEAN
            True
        """
        result = self._git(["diff", "--cached", "--quiet"], repo_dir)
        if result.returncode == 0:
            return DiffState.CLEAN, result
        if result.returncode == 1:
            return DiffState.CHANGED, result
        return DiffState.ERROR, result

    def commit(self, message: str, repo_dir: Path) -> CommandResult:
        """Create a commit from the staged changes."""
        return self._git(["commit", "-m", message], repo_dir)

    # =========================================================================
    # Remote
    # =========================================================================

    def push(self, ref: str, repo_dir: Path, remote: str = "origin") -> CommandResult:
        """Push a ref to the remote and set it as upstream.

        Args:
            ref: Branch name, or HEAD to push the current branch under its own name
            repo_dir: Repository working copy
            remote: Remote name

        Returns:
            CommandResult with push status
        """
        return self._git(["push", "-u", remote, ref], repo_dir)
