"""Helm values composition for the ArgoCD pointer manifest.

This module builds the values document consumed by the argocd-app chart:
a fixed default shape derived from the deployment identity, deep-merged
with an optional user-supplied YAML override.

Merge semantics:
    - mapping over mapping merges recursively
    - anything else (scalars, sequences, type changes) is replaced by the
      override value wholesale
    - keys only present in the defaults are kept, keys only present in the
      override are added
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

import yaml  # type: ignore[import-untyped]

from .constants import GitOpsLayout
from .errors import InvalidOverrideDocument


class NodeKind(str, Enum):
    """Shape of a node in a parsed YAML document."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def node_kind(value: Any) -> NodeKind:
    """Classify a parsed YAML value."""
    if isinstance(value, Mapping):
        return NodeKind.MAPPING
    if isinstance(value, list | tuple):
        return NodeKind.SEQUENCE
    return NodeKind.SCALAR


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge override into base and return a new mapping.

    Neither input is mutated. Override wins at every leaf; base supplies
    keys the override does not mention.

    Args:
        base: Default document
        override: User-supplied document

    Returns:
        The merged document

    Example:
        >>> deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}})
        {'a': {'x': 1, 'y': 3}}
    """
    merged: dict[str, Any] = {key: _copy_node(value) for key, value in base.items()}

    for key, value in override.items():
        current = merged.get(key)
        if (
            key in merged
            and node_kind(current) is NodeKind.MAPPING
            and node_kind(value) is NodeKind.MAPPING
        ):
            merged[key] = deep_merge(current, value)
        else:
            # Sequences and scalars are replaced, never concatenated
            merged[key] = _copy_node(value)

    return merged


def _copy_node(value: Any) -> Any:
    kind = node_kind(value)
    if kind is NodeKind.MAPPING:
        return {k: _copy_node(v) for k, v in value.items()}
    if kind is NodeKind.SEQUENCE:
        return [_copy_node(v) for v in value]
    return value


def default_values(
    application_name: str,
    environment: str,
    source_org: str,
    source_repo: str,
    source_branch: str,
    gitops_path: str,
    application_manifests_path: str,
) -> dict[str, Any]:
    """Build the default values document for one application/environment."""
    layout = GitOpsLayout(
        gitops_path, application_name, environment, application_manifests_path
    )
    return {
        "applicationName": f"{application_name}-{environment}",
        "application": {
            "destination": {
                "namespace": application_name,
            },
            "source": {
                "repoURL": f"https://github.com/{source_org}/{source_repo}.git",
                "targetRevision": source_branch,
                "path": layout.source_path,
            },
        },
    }


def dump_values(values: Mapping[str, Any]) -> str:
    """Serialize a values document deterministically (insertion order)."""
    return yaml.safe_dump(dict(values), default_flow_style=False, sort_keys=False)


def parse_override(custom_values: str) -> dict[str, Any]:
    """Parse a custom values document.

    Args:
        custom_values: Raw YAML text

    Returns:
        The parsed mapping, or an empty mapping for an empty/null document

    Raises:
        InvalidOverrideDocument: If the text is not valid YAML or not a mapping
    """
    try:
        parsed = yaml.safe_load(custom_values)
    except yaml.YAMLError as e:
        raise InvalidOverrideDocument(str(e)) from e

    if parsed is None:
        return {}
    if node_kind(parsed) is not NodeKind.MAPPING:
        raise InvalidOverrideDocument(
            f"expected a mapping at the top level, got {node_kind(parsed).value}"
        )
    return dict(parsed)


def compose_values(
    application_name: str,
    environment: str,
    source_org: str,
    source_repo: str,
    source_branch: str,
    gitops_path: str,
    custom_values: str,
    application_manifests_path: str,
) -> str:
    """Compose the Helm values document for the ArgoCD pointer manifest.

    Args:
        application_name: Workload identifier
        environment: Deployment tier label
        source_org: Organization of the repository ArgoCD should read from
        source_repo: Repository ArgoCD should read from
        source_branch: Revision ArgoCD should track
        gitops_path: Subdirectory root inside the GitOps repository
        custom_values: Optional raw YAML merged over the defaults
        application_manifests_path: Local manifests path, reused as a segment

    Returns:
        The values document as YAML text

    Raises:
        InvalidOverrideDocument: If custom_values is not a valid YAML mapping

    Example:
        >>> print(compose_values("my-app", "dev", "org", "repo", "main", "", "", "./"))
        applicationName: my-app-dev
        application:
          destination:
            namespace: my-app
          source:
            repoURL: https://github.com/org/repo.git
            targetRevision: main
            path: my-app/dev/
        <BLANKLINE>
    """
    defaults = default_values(
        application_name,
        environment,
        source_org,
        source_repo,
        source_branch,
        gitops_path,
        application_manifests_path,
    )

    if not custom_values.strip():
        return dump_values(defaults)

    return dump_values(deep_merge(defaults, parse_override(custom_values)))
