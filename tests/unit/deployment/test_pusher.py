"""Tests for the GitOps push orchestration."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gitops_push.deployment.errors import (
    CloneFailed,
    CommitFailed,
    InputError,
    RenderFailed,
)
from gitops_push.deployment.pusher import DeploymentRequest, GitOpsPusher
from gitops_push.deployment.repository import GitOpsRepository
from gitops_push.deployment.shell_commands.types import CommandResult, CommitStatus, DiffState

from conftest import RENDERED_MANIFEST

REPOSITORY = GitOpsRepository("acme", "gitops")


def make_request(chart: Path, **overrides: str) -> DeploymentRequest:
    fields = {
        "application_name": "my-app",
        "environment": "dev",
        "source_org": "acme",
        "source_repo": "gitops",
        "source_branch": "main",
        "application_manifests_path": ".",
        "chart_location": str(chart),
    }
    fields.update(overrides)
    return DeploymentRequest(**fields)


class TestDeploymentRequest:
    """Tests for DeploymentRequest validation."""

    @pytest.mark.parametrize("field", ["application_name", "environment"])
    def test_required_fields(self, field: str, chart_dir: Path) -> None:
        with pytest.raises(InputError):
            make_request(chart_dir, **{field: " "})

    def test_parent_segments_rejected(self, chart_dir: Path) -> None:
        with pytest.raises(InputError, match="gitops path"):
            make_request(chart_dir, gitops_path="../elsewhere")

    @pytest.mark.parametrize(
        "field, label",
        [("application_name", "application name"), ("environment", "environment")],
    )
    @pytest.mark.parametrize("value", ["../../../outside", "a/b", "a\\b", ".", ".."])
    def test_names_must_be_single_segments(
        self, field: str, label: str, value: str, chart_dir: Path
    ) -> None:
        with pytest.raises(InputError, match=f"{label} must be a single path segment"):
            make_request(chart_dir, **{field: value})


class TestGitOpsPusher:
    """Tests for GitOpsPusher."""

    @pytest.fixture
    def temp_root(self, tmp_path: Path) -> Path:
        path = tmp_path / "runner-temp"
        path.mkdir()
        return path

    @pytest.fixture
    def pusher(
        self,
        mock_commands: MagicMock,
        mock_console: MagicMock,
        temp_root: Path,
        tmp_path: Path,
    ) -> GitOpsPusher:
        return GitOpsPusher(
            mock_commands,
            mock_console,
            temp_root=temp_root,
            base_dir=tmp_path,
            sleep=lambda _: None,
        )

    @pytest.fixture(autouse=True)
    def in_manifests_dir(self, manifests_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(manifests_dir)

    def test_full_run_commits_and_pushes(
        self,
        pusher: GitOpsPusher,
        mock_commands: MagicMock,
        chart_dir: Path,
        temp_root: Path,
    ) -> None:
        written: dict[str, str] = {}

        def capture_commit(message: str, repo_dir: Path) -> CommandResult:
            written["pointer"] = (repo_dir / "argocd-apps/my-app/dev.yaml").read_text()
            written["deployment"] = (repo_dir / "my-app/dev/deployment.yaml").read_text()
            return CommandResult(success=True)

        mock_commands.git.commit.side_effect = capture_commit

        result = pusher.push(make_request(chart_dir), REPOSITORY, "tok", "main")

        assert result.outcome.status is CommitStatus.COMMITTED
        assert result.pushed
        assert result.push_attempts == 1
        assert result.pointer_manifest == "argocd-apps/my-app/dev.yaml"
        assert result.copied_entries == 3
        assert written["pointer"] == f"---\n{RENDERED_MANIFEST}"
        assert written["deployment"] == "kind: Deployment\n"
        mock_commands.git.push.assert_called_once()
        assert list(temp_root.iterdir()) == []

    def test_missing_manifests_path_commits_pointer_only(
        self, pusher: GitOpsPusher, mock_commands: MagicMock, chart_dir: Path
    ) -> None:
        request = make_request(chart_dir, application_manifests_path="does-not-exist")

        result = pusher.push(request, REPOSITORY, "tok", "main")

        assert result.outcome.status is CommitStatus.COMMITTED
        assert result.copied_entries == 0
        assert [c[0][0] for c in mock_commands.git.add.call_args_list] == ["argocd-apps"]
        mock_commands.git.push.assert_called_once()

    def test_release_name_is_application_name(
        self, pusher: GitOpsPusher, mock_commands: MagicMock, chart_dir: Path
    ) -> None:
        pusher.render(make_request(chart_dir))

        assert mock_commands.helm.template.call_args[0][0] == "my-app"

    def test_no_changes_skips_push(
        self, pusher: GitOpsPusher, mock_commands: MagicMock, chart_dir: Path
    ) -> None:
        mock_commands.git.staged_diff_state.return_value = (
            DiffState.CLEAN,
            CommandResult(success=True),
        )

        result = pusher.push(make_request(chart_dir), REPOSITORY, "tok")

        assert result.outcome.status is CommitStatus.NO_CHANGES_SKIPPED
        assert not result.pushed
        mock_commands.git.commit.assert_not_called()
        mock_commands.git.push.assert_not_called()

    def test_render_failure_happens_before_clone(
        self, pusher: GitOpsPusher, mock_commands: MagicMock, chart_dir: Path
    ) -> None:
        mock_commands.helm.template.return_value = CommandResult(
            success=False, stderr="template: invalid values", returncode=1
        )

        with pytest.raises(RenderFailed):
            pusher.push(make_request(chart_dir), REPOSITORY, "tok")

        mock_commands.git.clone.assert_not_called()

    def test_clone_failure_removes_working_copy(
        self,
        pusher: GitOpsPusher,
        mock_commands: MagicMock,
        chart_dir: Path,
        temp_root: Path,
    ) -> None:
        mock_commands.git.clone.return_value = CommandResult(
            success=False, stderr="repository not found", returncode=128
        )

        with pytest.raises(CloneFailed):
            pusher.push(make_request(chart_dir), REPOSITORY, "tok")

        assert list(temp_root.iterdir()) == []

    def test_diff_error_raises_commit_failed(
        self,
        pusher: GitOpsPusher,
        mock_commands: MagicMock,
        chart_dir: Path,
        temp_root: Path,
    ) -> None:
        mock_commands.git.staged_diff_state.return_value = (
            DiffState.ERROR,
            CommandResult(success=False, stderr="fatal: bad index", returncode=128),
        )

        with pytest.raises(CommitFailed, match="bad index"):
            pusher.push(make_request(chart_dir), REPOSITORY, "tok")

        mock_commands.git.push.assert_not_called()
        assert list(temp_root.iterdir()) == []
