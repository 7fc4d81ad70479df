"""Change detection, commit and push for the GitOps working copy.

Staging is limited to the two top-level paths placement writes. Whether
anything changed is decided by ``git diff --cached --quiet``:

    exit 0  -> index matches HEAD, nothing to commit
    exit 1  -> staged changes exist, commit them
    other   -> git failed; reported as a failure, never read as "changed"

Pushing is retried with exponential backoff (2s, 4s, 8s, 16s between five
attempts). Retries re-issue the same push; the working copy is not
re-synchronized with the remote between attempts.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger
from rich.markup import escape
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .constants import GitOpsConstants, GitOpsLayout
from .errors import PushFailed
from .shell_commands.types import CommitOutcome, DiffState

if TYPE_CHECKING:
    from ..shared.console import CLIConsole
    from .shell_commands import ShellCommands


class PushAttemptError(Exception):
    """A single push attempt failed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


def build_commit_message(
    layout: GitOpsLayout, application_manifests_path: str | Path
) -> str:
    """Build the structured commit message.

    The first line always reads ``Deploy <application> to <environment>`` so
    tooling can grep both from the log.
    """
    source_name = Path(application_manifests_path).resolve().name
    return (
        f"Deploy {layout.application_name} to {layout.environment}\n"
        "\n"
        f"- Updated ArgoCD application manifest: {layout.pointer_manifest}\n"
        f"- Updated application manifests from: {source_name}\n"
    )


class GitPublisher:
    """Stages, commits and pushes placed manifests.

    Attributes:
        commands: Shell command executor
        console: Console for progress output
        constants: Retry budget and layout constants
        sleep: Function used to wait between push attempts
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        constants: GitOpsConstants | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the publisher.

        Args:
            commands: Shell command executor
            console: Console for progress output
            constants: Optional constants override
            sleep: Backoff sleep function (tests inject a recorder)
        """
        self.commands = commands
        self.console = console
        self.constants = constants or GitOpsConstants()
        self.sleep = sleep

    # =========================================================================
    # Change Detection & Commit
    # =========================================================================

    def commit_changes(
        self,
        working_copy: Path,
        gitops_path: str,
        application_name: str,
        environment: str,
        application_manifests_path: str | Path,
    ) -> CommitOutcome:
        """Stage placed paths and commit them if anything changed.

        A placed path with no files under it (no raw manifests were found)
        is not staged.

        Args:
            working_copy: Root of the cloned GitOps repository
            gitops_path: Subdirectory root inside the repository
            application_name: Workload identifier
            environment: Deployment tier label
            application_manifests_path: Local manifests path (its basename
                                        goes into the commit message)

        Returns:
            CommitOutcome: NO_CHANGES_SKIPPED, COMMITTED or FAILED
        """
        git = self.commands.git
        layout = GitOpsLayout(
            gitops_path,
            application_name,
            environment,
            str(application_manifests_path),
            self.constants,
        )

        for pathspec in layout.staged_paths():
            if not self._has_files(working_copy / pathspec):
                logger.debug("Nothing to stage under {}", pathspec)
                continue
            result = git.add(pathspec, working_copy)
            if not result.success:
                return CommitOutcome.failed(
                    f"git add {pathspec} failed: {result.stderr.strip()}"
                )

        state, result = git.staged_diff_state(working_copy)
        if state is DiffState.CLEAN:
            self.console.info("No changes to commit")
            return CommitOutcome.skipped()
        if state is DiffState.ERROR:
            return CommitOutcome.failed(
                f"git diff exited with {result.returncode}: {result.stderr.strip()}"
            )

        message = build_commit_message(layout, application_manifests_path)
        result = git.commit(message, working_copy)
        if not result.success:
            return CommitOutcome.failed(f"git commit failed: {result.stderr.strip()}")

        self.console.ok(message.splitlines()[0])
        return CommitOutcome.committed(message)

    @staticmethod
    def _has_files(path: Path) -> bool:
        # git add rejects a pathspec that matches only empty directories
        return path.is_file() or any(p.is_file() for p in path.rglob("*"))

    # =========================================================================
    # Push with Retry
    # =========================================================================

    def _warn_before_retry(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self.console.warn(
            f"Push attempt {retry_state.attempt_number}/"
            f"{self.constants.PUSH_MAX_ATTEMPTS} failed: {escape(str(error))}; "
            f"retrying in {delay:g}s"
        )

    def push_with_retry(self, working_copy: Path, branch: str | None) -> int:
        """Push the branch upstream, retrying with exponential backoff.

        Args:
            working_copy: Root of the cloned GitOps repository
            branch: Branch to push; empty or None pushes HEAD

        Returns:
            Number of attempts used (1 when the first push succeeds)

        Raises:
            PushFailed: If every attempt failed
        """
        ref = branch or self.constants.PUSH_FALLBACK_REF
        attempts = 0

        def push_once() -> None:
            nonlocal attempts
            attempts += 1
            result = self.commands.git.push(
                ref, working_copy, remote=self.constants.REMOTE_NAME
            )
            if not result.success:
                raise PushAttemptError(
                    result.stderr.strip() or f"git push exited with {result.returncode}"
                )

        retrying = Retrying(
            stop=stop_after_attempt(self.constants.PUSH_MAX_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.constants.PUSH_BACKOFF_MULTIPLIER,
                max=self.constants.PUSH_BACKOFF_MAX,
            ),
            retry=retry_if_exception_type(PushAttemptError),
            before_sleep=self._warn_before_retry,
            sleep=self.sleep,
        )

        self.console.print(f"[bold cyan]🚀 Pushing to {ref}...[/bold cyan]")
        try:
            retrying(push_once)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            raise PushFailed(attempts, str(last_error)) from last_error

        logger.debug("Successfully pushed changes to {} after {} attempt(s)", ref, attempts)
        self.console.ok(f"Pushed changes to {ref}")
        return attempts
