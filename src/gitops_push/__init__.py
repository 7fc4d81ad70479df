"""Render ArgoCD Application manifests and push them to a GitOps repository."""

__version__ = "0.1.0"
