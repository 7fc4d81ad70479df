"""Tests for the gitops-push CLI."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from gitops_push.cli import app
from gitops_push.deployment.errors import PushFailed
from gitops_push.deployment.pusher import SyncResult
from gitops_push.deployment.shell_commands.types import CommitOutcome

COMPLETED_AT = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

ENV_VARS = [
    "GITHUB_REPOSITORY",
    "GITHUB_ACTIONS",
    "GITHUB_OUTPUT",
    "GITHUB_STEP_SUMMARY",
    "RUNNER_DEBUG",
    "RUNNER_TEMP",
    "RUNNER_TOOL_CACHE",
    "GITOPS_REPOSITORY",
    "GITOPS_TOKEN",
    "INPUT_GITOPS-REPOSITORY",
    "INPUT_GITOPS-TOKEN",
    "INPUT_ENVIRONMENT",
    "INPUT_APPLICATION-NAME",
]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every CLI test in an empty directory with no runner variables set."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/my-app")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def mock_pusher() -> MagicMock:
    pusher = MagicMock()
    pusher.render.return_value = "kind: Application"
    pusher.publish.return_value = SyncResult(
        outcome=CommitOutcome.committed("Deploy my-app to dev"),
        pointer_manifest="argocd-apps/my-app/dev.yaml",
        copied_entries=2,
        push_attempts=1,
        completed_at=COMPLETED_AT,
    )
    return pusher


@pytest.fixture
def patched_pipeline(mock_pusher: MagicMock):
    with (
        patch("gitops_push.cli.commands.GitOpsPusher", return_value=mock_pusher) as factory,
        patch("gitops_push.cli.commands.resolve_helm", return_value="helm"),
    ):
        yield factory


class TestPushCommand:
    """Tests for gitops-push push."""

    def test_push_writes_time_output(
        self,
        runner: CliRunner,
        patched_pipeline: MagicMock,
        mock_pusher: MagicMock,
        tmp_path: Path,
    ) -> None:
        output = tmp_path / "github_output"
        summary = tmp_path / "summary.md"

        result = runner.invoke(
            app,
            ["push", "--environment", "dev", "--gitops-repository", "acme/gitops"],
            env={
                "GITOPS_TOKEN": "tok",
                "GITHUB_OUTPUT": str(output),
                "GITHUB_STEP_SUMMARY": str(summary),
            },
        )

        assert result.exit_code == 0, result.output
        assert output.read_text() == "time=2024-05-01T10:00:00+00:00\n"
        assert "kind: Application" in summary.read_text()

        request, manifest, repository, token, branch = mock_pusher.publish.call_args[0]
        assert request.application_name == "my-app"
        assert request.environment == "dev"
        assert (request.source_org, request.source_repo) == ("acme", "gitops")
        assert request.source_branch == "main"
        assert manifest == "kind: Application"
        assert repository.full_name == "acme/gitops"
        assert token == "tok"
        assert branch == "main"

    def test_inputs_from_action_environment(
        self, runner: CliRunner, patched_pipeline: MagicMock, mock_pusher: MagicMock
    ) -> None:
        result = runner.invoke(
            app,
            ["push"],
            env={
                "INPUT_GITOPS-REPOSITORY": "gitops",
                "INPUT_GITOPS-TOKEN": "tok",
                "INPUT_ENVIRONMENT": "prod",
                "INPUT_APPLICATION-NAME": "api",
            },
        )

        assert result.exit_code == 0, result.output
        request, _, repository, _, _ = mock_pusher.publish.call_args[0]
        assert request.application_name == "api"
        assert request.environment == "prod"
        assert repository.full_name == "acme/gitops"

    def test_masks_token_in_actions(
        self, runner: CliRunner, patched_pipeline: MagicMock
    ) -> None:
        result = runner.invoke(
            app,
            ["push", "-e", "dev", "--gitops-repository", "acme/gitops", "--gitops-token", "s3cret"],
            env={"GITHUB_ACTIONS": "true"},
        )

        assert result.exit_code == 0, result.output
        assert "::add-mask::s3cret" in result.output
        assert "::notice::" in result.output

    def test_missing_token_fails(self, runner: CliRunner, patched_pipeline: MagicMock) -> None:
        result = runner.invoke(app, ["push", "-e", "dev", "--gitops-repository", "acme/gitops"])

        assert result.exit_code == 1
        assert "GITOPS_TOKEN" in result.output
        patched_pipeline.assert_not_called()

    def test_missing_repository_fails(
        self, runner: CliRunner, patched_pipeline: MagicMock
    ) -> None:
        result = runner.invoke(app, ["push", "-e", "dev"], env={"GITOPS_TOKEN": "tok"})

        assert result.exit_code == 1
        assert "GITOPS_REPOSITORY" in result.output

    def test_missing_environment_fails(
        self, runner: CliRunner, patched_pipeline: MagicMock
    ) -> None:
        result = runner.invoke(
            app, ["push", "--gitops-repository", "acme/gitops"], env={"GITOPS_TOKEN": "tok"}
        )

        assert result.exit_code == 1
        assert "environment" in result.output

    def test_pipeline_error_exits_one(
        self, runner: CliRunner, patched_pipeline: MagicMock, mock_pusher: MagicMock
    ) -> None:
        mock_pusher.publish.side_effect = PushFailed(5, "rejected")

        result = runner.invoke(
            app,
            ["push", "-e", "dev", "--gitops-repository", "acme/gitops"],
            env={"GITOPS_TOKEN": "tok"},
        )

        assert result.exit_code == 1
        assert "rejected" in result.output


class TestRenderCommand:
    """Tests for gitops-push render."""

    def test_show_values_needs_no_helm(self, runner: CliRunner) -> None:
        result = runner.invoke(
            app,
            ["render", "-e", "dev", "--gitops-repository", "acme/gitops", "--show-values"],
        )

        assert result.exit_code == 0, result.output
        assert "applicationName: my-app-dev" in result.stdout
        assert "repoURL: https://github.com/acme/gitops.git" in result.stdout

    def test_render_prints_manifest(
        self, runner: CliRunner, patched_pipeline: MagicMock, mock_pusher: MagicMock
    ) -> None:
        result = runner.invoke(app, ["render", "-e", "dev"])

        assert result.exit_code == 0, result.output
        assert "kind: Application" in result.stdout
        request = mock_pusher.render.call_args[0][0]
        assert (request.source_org, request.source_repo) == ("acme", "my-app")

    def test_invalid_custom_values(self, runner: CliRunner) -> None:
        result = runner.invoke(
            app, ["render", "-e", "dev", "--show-values", "--custom-values", "a: [1"]
        )

        assert result.exit_code == 1
        assert "Invalid custom values YAML" in result.output
