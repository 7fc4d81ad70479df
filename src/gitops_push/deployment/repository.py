"""GitOps repository coordinates, working copy scope and cloning.

The working copy is a transient clone owned by exactly one invocation. It
is created fresh (stale contents at the same path are removed first) and
removed when the scope exits, whatever the exit path.
"""

from __future__ import annotations

import secrets
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .constants import GitOpsConstants
from .errors import CloneFailed, InputError

if TYPE_CHECKING:
    from ..shared.console import CLIConsole
    from .shell_commands import ShellCommands


@dataclass(frozen=True)
class GitOpsRepository:
    """Coordinates of a GitHub-hosted GitOps repository."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def clone_url(self, token: str, host: str = GitOpsConstants.GITHUB_HOST) -> str:
        """Authenticated HTTPS clone URL. Never log the return value."""
        return f"https://x-access-token:{token}@{host}/{self.owner}/{self.name}.git"


def parse_repository(coordinate: str, default_owner: str = "") -> GitOpsRepository:
    """Parse ``owner/repo`` or a bare ``repo``.

    Args:
        coordinate: Repository coordinate as supplied by the caller
        default_owner: Owner used for bare names (the invoking repository's owner)

    Returns:
        Parsed GitOpsRepository

    Raises:
        InputError: If the coordinate is empty or no owner can be determined

    Example:
        >>> parse_repository("acme/gitops")
        GitOpsRepository(owner='acme', name='gitops')
        >>> parse_repository("gitops", default_owner="acme").full_name
        'acme/gitops'
    """
    coordinate = coordinate.strip().strip("/")
    if not coordinate:
        raise InputError(
            "gitops-repository input or GITOPS_REPOSITORY environment variable "
            "must be provided"
        )

    if "/" in coordinate:
        owner, _, name = coordinate.partition("/")
        logger.debug("Using provided repository: {}/{}", owner, name)
    else:
        owner, name = default_owner, coordinate
        logger.debug("Using context owner: {}/{}", owner, name)

    if not owner or not name or "/" in name:
        raise InputError(
            f"Cannot determine GitOps repository from {coordinate!r}",
            details="Use the owner/repo form, or set GITHUB_REPOSITORY so the "
            "owner can be taken from the invoking repository.",
        )
    return GitOpsRepository(owner=owner, name=name)


def redact(text: str, *secrets_to_hide: str) -> str:
    """Replace every occurrence of each secret with ***."""
    for secret in secrets_to_hide:
        if secret:
            text = text.replace(secret, "***")
    return text


@contextmanager
def working_copy(
    temp_root: Path, prefix: str = GitOpsConstants.WORKING_COPY_PREFIX
) -> Iterator[Path]:
    """Provide a fresh, exclusively owned directory for one invocation.

    The directory is removed on every exit path. A cleanup failure is logged
    at debug level and never replaces an exception raised inside the scope.

    Args:
        temp_root: Parent directory (RUNNER_TEMP or the system temp dir)
        prefix: Directory name prefix

    Yields:
        Path of the empty working copy directory

    Raises:
        CloneFailed: If the directory cannot be created
    """
    path = temp_root / f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"
    shutil.rmtree(path, ignore_errors=True)
    try:
        path.mkdir(parents=True)
    except OSError as e:
        raise CloneFailed(f"cannot create working copy {path}: {e}") from e
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.debug("Failed to clean up directory {}: {}", path, e)


class RepositoryMaterializer:
    """Clones the GitOps repository and prepares it for committing.

    After materialize() the directory is checked out at the requested
    branch (created locally if the remote does not have it) and has a
    commit identity configured.
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        user_name: str = GitOpsConstants.COMMIT_USER_NAME,
        user_email: str = GitOpsConstants.COMMIT_USER_EMAIL,
    ) -> None:
        """Initialize the materializer.

        Args:
            commands: Shell command executor
            console: Console for progress output
            user_name: Commit author name
            user_email: Commit author email
        """
        self.commands = commands
        self.console = console
        self.user_name = user_name
        self.user_email = user_email

    def materialize(
        self,
        repository: GitOpsRepository,
        token: str,
        branch: str,
        directory: Path,
    ) -> None:
        """Clone the repository into directory and check out branch.

        Args:
            repository: Repository coordinates
            token: Access token embedded in the clone URL
            branch: Branch to check out or create ("" keeps the default branch)
            directory: Empty target directory

        Raises:
            CloneFailed: If any git step fails. The token never appears in
                         the reason.
        """
        git = self.commands.git

        self.console.print(
            f"[bold cyan]📥 Cloning {repository.full_name}...[/bold cyan]"
        )
        result = git.clone(repository.clone_url(token), directory)
        if not result.success:
            reason = result.stderr.strip() or f"git clone exited with {result.returncode}"
            raise CloneFailed(redact(reason, token))

        if branch:
            result = git.checkout(branch, directory)
            if not result.success:
                logger.debug("Branch {} doesn't exist, creating new branch", branch)
                result = git.checkout(branch, directory, create=True)
                if not result.success:
                    raise CloneFailed(
                        f"cannot check out or create branch {branch}: {result.stderr.strip()}"
                    )
                self.console.info(f"Created new branch {branch}")

        for key, value in (("user.name", self.user_name), ("user.email", self.user_email)):
            result = git.set_config(key, value, directory)
            if not result.success:
                raise CloneFailed(f"cannot set {key}: {result.stderr.strip()}")

        self.console.ok(f"Cloned {repository.full_name} at {branch or 'default branch'}")
