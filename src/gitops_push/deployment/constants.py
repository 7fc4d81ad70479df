"""GitOps push constants and path layout.

This module centralizes the magic strings, retry budget and output path
layout used throughout the push pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import InputError

# Bundled chart shipped inside the package
BUNDLED_CHART_PATH = Path(__file__).resolve().parent.parent / "templates" / "helm" / "argocd-app"


@dataclass(frozen=True)
class GitOpsConstants:
    """Constants for rendering and pushing GitOps manifests.

    All attributes are class-level and immutable.
    """

    # Repository defaults
    DEFAULT_BRANCH: str = "main"
    PUSH_FALLBACK_REF: str = "HEAD"
    REMOTE_NAME: str = "origin"
    GITHUB_HOST: str = "github.com"

    # Commit identity
    COMMIT_USER_NAME: str = "GitHub Action"
    COMMIT_USER_EMAIL: str = "action@github.com"

    # Output layout
    ARGOCD_APPS_DIR: str = "argocd-apps"
    MANIFEST_SUFFIX: str = ".yaml"
    EXCLUDED_ENTRIES: tuple[str, ...] = (".git",)

    # Helm
    CHART_DESCRIPTOR: str = "Chart.yaml"
    HELM_TOOL_NAME: str = "helm"
    HELM_DEFAULT_VERSION: str = "latest"

    # Push retry: 5 attempts separated by 2s, 4s, 8s, 16s
    PUSH_MAX_ATTEMPTS: int = 5
    PUSH_BACKOFF_MULTIPLIER: float = 2
    PUSH_BACKOFF_MAX: float = 16

    # Temporary file and directory prefixes
    VALUES_FILE_PREFIX: str = "gitops-push-values"
    WORKING_COPY_PREFIX: str = "gitops-repo"


def normalize_segment(value: str, field: str = "path") -> str:
    """Normalize a user-supplied path into a relative POSIX segment.

    Empty and "." components are dropped and a leading "/" is ignored, so
    "./", "" and "/" all normalize to "". Parent references are rejected
    because the result is joined under the working copy.

    Args:
        value: Raw path as supplied by the caller
        field: Input name used in the error message

    Returns:
        Normalized segment without leading or trailing slashes

    Raises:
        InputError: If the path contains ".." components
    """
    parts = [p for p in PurePosixPath(value.replace("\\", "/")).parts if p not in ("/", ".")]
    if ".." in parts:
        raise InputError(f"{field} must not contain '..': {value!r}")
    return "/".join(parts)


def join_segments(*segments: str) -> str:
    """Join already-normalized segments, skipping empty ones."""
    return "/".join(s for s in segments if s)


def validate_name(value: str, field: str) -> str:
    """Check that value can be used as exactly one path segment.

    Raises:
        InputError: If value is blank, contains a path separator or is a
            "." or ".." reference
    """
    if not value.strip():
        raise InputError(f"{field} must not be empty")
    if "/" in value or "\\" in value or value in (".", ".."):
        raise InputError(f"{field} must be a single path segment: {value!r}")
    return value


class GitOpsLayout:
    """Path resolver for everything written into the GitOps repository.

    Layout (relative to the gitops path):
        argocd-apps/<application>/<environment>.yaml
        <application>/<environment>/<manifests path>/...
    """

    def __init__(
        self,
        gitops_path: str,
        application_name: str,
        environment: str,
        application_manifests_path: str,
        constants: GitOpsConstants | None = None,
    ) -> None:
        """Initialize the layout.

        Args:
            gitops_path: Subdirectory root inside the repository ("" = root)
            application_name: Workload identifier
            environment: Deployment tier label
            application_manifests_path: Local manifests path, reused as a segment
            constants: Optional constants override
        """
        self._constants = constants or GitOpsConstants()
        self.gitops_path = normalize_segment(gitops_path, "gitops path")
        self.application_name = validate_name(application_name, "application name")
        self.environment = validate_name(environment, "environment")
        self.manifests_segment = normalize_segment(
            application_manifests_path, "application manifests path"
        )

    @property
    def argocd_apps_root(self) -> str:
        """Top-level argocd-apps directory (staged as a whole)."""
        return join_segments(self.gitops_path, self._constants.ARGOCD_APPS_DIR)

    @property
    def application_root(self) -> str:
        """Top-level application directory (staged as a whole)."""
        return join_segments(self.gitops_path, self.application_name)

    @property
    def pointer_manifest(self) -> str:
        """Relative path of the rendered ArgoCD Application manifest."""
        return join_segments(
            self.argocd_apps_root,
            self.application_name,
            f"{self.environment}{self._constants.MANIFEST_SUFFIX}",
        )

    @property
    def manifests_dir(self) -> str:
        """Relative directory that receives the copied raw manifests."""
        return join_segments(
            self.application_root, self.environment, self.manifests_segment
        )

    @property
    def source_path(self) -> str:
        """Value for application.source.path, always with a trailing slash."""
        return f"{self.manifests_dir}/"

    def staged_paths(self) -> list[str]:
        """The two top-level paths placement touches, in staging order."""
        return [self.argocd_apps_root, self.application_root]
