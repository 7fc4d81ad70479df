"""Shared fixtures for gitops-push tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gitops_push.deployment.shell_commands.types import CommandResult, DiffState

RENDERED_MANIFEST = """apiVersion: argoproj.io/v1alpha1
kind: Application
metadata:
  name: my-app-dev"""


@pytest.fixture
def mock_runner() -> MagicMock:
    """Create a mock command runner."""
    return MagicMock()


@pytest.fixture
def mock_console() -> MagicMock:
    """Create a mock CLI console."""
    return MagicMock()


@pytest.fixture
def mock_commands() -> MagicMock:
    """Create mock shell commands where every git/helm step succeeds.

    The staged diff reports changes, so a full run commits and pushes.
    """
    commands = MagicMock()
    ok = CommandResult(success=True)
    commands.git.clone.return_value = ok
    commands.git.checkout.return_value = ok
    commands.git.set_config.return_value = ok
    commands.git.add.return_value = ok
    commands.git.staged_diff_state.return_value = (
        DiffState.CHANGED,
        CommandResult(success=False, returncode=1),
    )
    commands.git.commit.return_value = ok
    commands.git.push.return_value = ok
    commands.helm.template.return_value = CommandResult(
        success=True, stdout=f"---\n{RENDERED_MANIFEST}\n\n"
    )
    return commands


@pytest.fixture
def chart_dir(tmp_path: Path) -> Path:
    """Create a minimal chart directory."""
    chart = tmp_path / "charts" / "argocd-app"
    (chart / "templates").mkdir(parents=True)
    (chart / "Chart.yaml").write_text("apiVersion: v2\nname: argocd-app\nversion: 0.1.0\n")
    return chart


@pytest.fixture
def manifests_dir(tmp_path: Path) -> Path:
    """Create a local manifests directory with a nested layout."""
    source = tmp_path / "app" / "k8s"
    (source / "overlays").mkdir(parents=True)
    (source / "deployment.yaml").write_text("kind: Deployment\n")
    (source / "service.yaml").write_text("kind: Service\n")
    (source / "overlays" / "patch.yaml").write_text("kind: Patch\n")
    return source
