"""Exception hierarchy for GitOps push operations.

Every failure the pipeline can surface derives from GitOpsPushError, so the
CLI needs a single handler. Each subclass keeps the structured fields a
caller may want (exit code, path, attempt count) next to the message.
"""

from __future__ import annotations

from pathlib import Path


class GitOpsPushError(Exception):
    """Raised when a GitOps push operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class InputError(GitOpsPushError):
    """A required input is missing or malformed."""


class InvalidOverrideDocument(GitOpsPushError):
    """The custom values document is not a valid YAML mapping."""

    def __init__(self, diagnostic: str):
        self.diagnostic = diagnostic
        super().__init__(f"Invalid custom values YAML: {diagnostic}")


class ChartNotFound(GitOpsPushError):
    """The resolved chart location has no Chart.yaml."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Helm chart not found: no Chart.yaml in {path}",
            details=(
                "Relative chart locations are resolved against the current "
                "working directory. Omit the chart option to use the bundled "
                "argocd-app chart."
            ),
        )


class RenderFailed(GitOpsPushError):
    """helm template exited with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"helm template failed with exit code {exit_code}: {stderr}")


class ValuesFileError(GitOpsPushError):
    """The composed values could not be written for helm."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write Helm values file {path}: {reason}")


class ToolAcquisitionError(GitOpsPushError):
    """A required tool could not be found in the cache or downloaded."""


class CloneFailed(GitOpsPushError):
    """The GitOps repository could not be cloned or prepared."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to clone GitOps repository: {reason}")


class PlacementFailed(GitOpsPushError):
    """Writing or copying manifests into the working copy failed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to place manifests: {reason}")


class CommitFailed(GitOpsPushError):
    """Staging, diffing or committing failed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to commit and push changes: {reason}")


class PushFailed(GitOpsPushError):
    """Every push attempt failed."""

    def __init__(self, attempts: int, last_reason: str):
        self.attempts = attempts
        self.last_reason = last_reason
        super().__init__(
            f"Failed to commit and push changes after {attempts} attempts: "
            f"{last_reason}",
            details=(
                "The remote kept rejecting the push. If another deployment "
                "pushed to the same branch concurrently, re-run this job so "
                "it starts from the new remote head."
            ),
        )
