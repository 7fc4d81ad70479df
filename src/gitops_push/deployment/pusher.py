"""GitOps push orchestration.

This module provides the GitOpsPusher class which drives one deployment
end to end. It coordinates specialized components for:
- Values composition
- Pointer manifest rendering
- Working copy materialization
- Manifest placement
- Change detection, commit and push

Composition and rendering happen before any network activity, so input,
chart and template errors fail fast without cloning anything.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .constants import GitOpsConstants, normalize_segment, validate_name
from .errors import CommitFailed
from .placement import ManifestPlacement
from .publisher import GitPublisher
from .renderer import ManifestRenderer
from .repository import GitOpsRepository, RepositoryMaterializer, working_copy
from .shell_commands.types import CommitOutcome, CommitStatus
from .values import compose_values

if TYPE_CHECKING:
    from ..shared.console import CLIConsole
    from .shell_commands import ShellCommands

__all__ = ["DeploymentRequest", "SyncResult", "GitOpsPusher"]


@dataclass(frozen=True)
class DeploymentRequest:
    """Everything needed to render and place one application/environment.

    Attributes:
        application_name: Workload identifier
        environment: Deployment tier label
        source_org: Organization ArgoCD reads manifests from
        source_repo: Repository ArgoCD reads manifests from
        source_branch: Revision ArgoCD tracks
        gitops_path: Subdirectory root inside the GitOps repository
        application_manifests_path: Local directory of raw manifests
        custom_values: YAML merged over the default values
        chart_location: Chart directory, None for the bundled chart
    """

    application_name: str
    environment: str
    source_org: str
    source_repo: str
    source_branch: str = GitOpsConstants.DEFAULT_BRANCH
    gitops_path: str = ""
    application_manifests_path: str = "."
    custom_values: str = ""
    chart_location: str | None = None

    def __post_init__(self) -> None:
        validate_name(self.application_name, "application name")
        validate_name(self.environment, "environment")
        normalize_segment(self.gitops_path, "gitops path")
        normalize_segment(self.application_manifests_path, "application manifests path")


@dataclass
class SyncResult:
    """Outcome of a completed push.

    Attributes:
        outcome: Commit outcome (committed or skipped)
        pointer_manifest: Repository-relative path of the pointer manifest
        copied_entries: Number of top-level manifest entries copied
        push_attempts: Push attempts used (0 when nothing was committed)
        completed_at: UTC completion time
    """

    outcome: CommitOutcome
    pointer_manifest: str
    copied_entries: int
    push_attempts: int
    completed_at: datetime

    @property
    def pushed(self) -> bool:
        return self.push_attempts > 0


class GitOpsPusher:
    """Orchestrates rendering and pushing manifests to a GitOps repository.

    The workflow consists of:
    1. Compose the values document (defaults plus custom values)
    2. Render the ArgoCD Application manifest with helm template
    3. Clone the GitOps repository into a fresh working copy
    4. Write the pointer manifest and copy raw manifests
    5. Stage, detect changes and commit
    6. Push with retry when a commit was created

    The working copy is removed on every exit path.

    Attributes:
        commands: Shell command executor
        console: Console for progress output
        renderer: Pointer manifest renderer
        materializer: Working copy cloner
        placement: Manifest writer
        publisher: Committer and pusher
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        *,
        temp_root: Path | None = None,
        base_dir: Path | None = None,
        user_name: str = GitOpsConstants.COMMIT_USER_NAME,
        user_email: str = GitOpsConstants.COMMIT_USER_EMAIL,
        sleep: Callable[[float], None] = time.sleep,
        constants: GitOpsConstants | None = None,
    ) -> None:
        """Initialize the pusher.

        Args:
            commands: Shell command executor
            console: Console for progress output
            temp_root: Parent directory for the values file and working copy
            base_dir: Base for relative chart locations (default: cwd)
            user_name: Commit author name
            user_email: Commit author email
            sleep: Backoff sleep used between push attempts
            constants: Optional constants override
        """
        self.commands = commands
        self.console = console
        self.constants = constants or GitOpsConstants()
        self.temp_root = temp_root

        self.renderer = ManifestRenderer(
            commands=commands,
            console=console,
            base_dir=base_dir,
            temp_dir=temp_root,
            constants=self.constants,
        )
        self.materializer = RepositoryMaterializer(
            commands=commands,
            console=console,
            user_name=user_name,
            user_email=user_email,
        )
        self.placement = ManifestPlacement(console=console, constants=self.constants)
        self.publisher = GitPublisher(
            commands=commands,
            console=console,
            constants=self.constants,
            sleep=sleep,
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    def compose(self, request: DeploymentRequest) -> str:
        """Compose the values document for a request."""
        return compose_values(
            application_name=request.application_name,
            environment=request.environment,
            source_org=request.source_org,
            source_repo=request.source_repo,
            source_branch=request.source_branch,
            gitops_path=request.gitops_path,
            custom_values=request.custom_values,
            application_manifests_path=request.application_manifests_path,
        )

    def render(self, request: DeploymentRequest) -> str:
        """Compose values and render the pointer manifest.

        Raises:
            InvalidOverrideDocument: If custom values are not a YAML mapping
            ChartNotFound: If the chart location has no Chart.yaml
            RenderFailed: If helm template fails
        """
        values = self.compose(request)
        logger.debug("Composed values:\n{}", values)
        return self.renderer.render(
            request.chart_location, values, release_name=request.application_name
        )

    # =========================================================================
    # Publishing
    # =========================================================================

    def publish(
        self,
        request: DeploymentRequest,
        manifest: str,
        repository: GitOpsRepository,
        token: str,
        branch: str = GitOpsConstants.DEFAULT_BRANCH,
    ) -> SyncResult:
        """Place an already rendered manifest and push it.

        Args:
            request: Deployment request
            manifest: Rendered pointer manifest
            repository: GitOps repository coordinates
            token: Access token for cloning and pushing
            branch: GitOps branch to check out and push

        Returns:
            SyncResult describing the commit and push

        Raises:
            CloneFailed: If the repository cannot be prepared
            PlacementFailed: If writing manifests fails
            CommitFailed: If staging, diffing or committing fails
            PushFailed: If every push attempt fails
        """
        temp_root = self.temp_root or self.renderer.temp_dir

        with working_copy(temp_root, self.constants.WORKING_COPY_PREFIX) as directory:
            logger.debug("Using working copy {}", directory)
            self.materializer.materialize(repository, token, branch, directory)

            placed = self.placement.place(
                directory,
                request.gitops_path,
                request.application_name,
                request.environment,
                manifest,
                request.application_manifests_path,
            )

            outcome = self.publisher.commit_changes(
                directory,
                request.gitops_path,
                request.application_name,
                request.environment,
                request.application_manifests_path,
            )
            if outcome.status is CommitStatus.FAILED:
                raise CommitFailed(outcome.reason or "unknown error")

            attempts = 0
            if outcome.has_commit:
                attempts = self.publisher.push_with_retry(directory, branch)

        return SyncResult(
            outcome=outcome,
            pointer_manifest=placed.pointer_manifest,
            copied_entries=len(placed.copied),
            push_attempts=attempts,
            completed_at=datetime.now(timezone.utc),
        )

    def push(
        self,
        request: DeploymentRequest,
        repository: GitOpsRepository,
        token: str,
        branch: str = GitOpsConstants.DEFAULT_BRANCH,
    ) -> SyncResult:
        """Render, place, commit and push in one call."""
        manifest = self.render(request)
        return self.publish(request, manifest, repository, token, branch)
