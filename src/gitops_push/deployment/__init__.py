"""Deployment pipeline for pushing manifests to a GitOps repository."""

from .errors import (
    ChartNotFound,
    CloneFailed,
    CommitFailed,
    GitOpsPushError,
    InputError,
    InvalidOverrideDocument,
    PlacementFailed,
    PushFailed,
    RenderFailed,
    ToolAcquisitionError,
    ValuesFileError,
)
from .pusher import DeploymentRequest, GitOpsPusher, SyncResult
from .repository import GitOpsRepository, parse_repository
from .values import compose_values, deep_merge

__all__ = [
    "ChartNotFound",
    "CloneFailed",
    "CommitFailed",
    "DeploymentRequest",
    "GitOpsPushError",
    "GitOpsPusher",
    "GitOpsRepository",
    "InputError",
    "InvalidOverrideDocument",
    "PlacementFailed",
    "PushFailed",
    "RenderFailed",
    "SyncResult",
    "ToolAcquisitionError",
    "ValuesFileError",
    "compose_values",
    "deep_merge",
    "parse_repository",
]
