"""GitOps push commands.

This module provides the commands that render the ArgoCD Application
manifest and push it, together with the application's raw manifests, to
a GitOps repository. Every option can also be supplied through the
INPUT_<NAME> variables GitHub Actions sets for action inputs.
"""

from __future__ import annotations

from typing import Annotated

import typer

from ..deployment import DeploymentRequest, GitOpsPusher, InputError, parse_repository
from ..deployment.constants import GitOpsConstants
from ..runtime import github
from ..shared.console import console
from .shared import (
    build_commands,
    load_settings,
    print_header,
    resolve_helm,
    with_error_handling,
)

# ---------------------------------------------------------------------------
# Shared option types
# ---------------------------------------------------------------------------

GitOpsRepositoryOption = Annotated[
    str,
    typer.Option(
        "--gitops-repository",
        envvar=["INPUT_GITOPS-REPOSITORY", "GITOPS_REPOSITORY"],
        help="GitOps repository as owner/repo, or repo to use the current owner",
        show_envvar=False,
    ),
]
GitOpsBranchOption = Annotated[
    str,
    typer.Option(
        "--gitops-branch",
        envvar="INPUT_GITOPS-BRANCH",
        help="Branch of the GitOps repository to push to",
        show_envvar=False,
    ),
]
GitOpsPathOption = Annotated[
    str,
    typer.Option(
        "--gitops-path",
        envvar="INPUT_GITOPS-PATH",
        help="Subdirectory inside the GitOps repository (default: repository root)",
        show_envvar=False,
    ),
]
EnvironmentOption = Annotated[
    str,
    typer.Option(
        "--environment",
        "-e",
        envvar="INPUT_ENVIRONMENT",
        help="Target environment (e.g. dev, staging, prod)",
        show_envvar=False,
    ),
]
ApplicationNameOption = Annotated[
    str,
    typer.Option(
        "--application-name",
        "-a",
        envvar="INPUT_APPLICATION-NAME",
        help="Application name (default: name of the current repository)",
        show_envvar=False,
    ),
]
ManifestsPathOption = Annotated[
    str,
    typer.Option(
        "--application-manifests-path",
        envvar="INPUT_APPLICATION-MANIFESTS-PATH",
        help="Local directory holding the application's Kubernetes manifests",
        show_envvar=False,
    ),
]
ChartOption = Annotated[
    str,
    typer.Option(
        "--argocd-app-helm-chart",
        envvar="INPUT_ARGOCD-APP-HELM-CHART",
        help="Helm chart that renders the ArgoCD Application (default: bundled chart)",
        show_envvar=False,
    ),
]
CustomValuesOption = Annotated[
    str,
    typer.Option(
        "--custom-values",
        envvar="INPUT_CUSTOM-VALUES",
        help="YAML document merged over the default chart values",
        show_envvar=False,
    ),
]
HelmVersionOption = Annotated[
    str,
    typer.Option(
        "--helm-version",
        envvar="INPUT_HELM-VERSION",
        help="Helm version to download when no helm binary is given",
        show_envvar=False,
    ),
]
HelmBinaryOption = Annotated[
    str | None,
    typer.Option(
        "--helm-binary",
        envvar="INPUT_HELM-BINARY",
        help="Use this helm executable instead of the tool cache",
        show_envvar=False,
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        envvar="RUNNER_DEBUG",
        help="Enable debug logging",
        show_envvar=False,
    ),
]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@with_error_handling
def push(
    environment: EnvironmentOption = "",
    gitops_repository: GitOpsRepositoryOption = "",
    gitops_token: Annotated[
        str,
        typer.Option(
            "--gitops-token",
            envvar=["INPUT_GITOPS-TOKEN", "GITOPS_TOKEN"],
            help="Token with push access to the GitOps repository",
            show_envvar=False,
        ),
    ] = "",
    gitops_branch: GitOpsBranchOption = GitOpsConstants.DEFAULT_BRANCH,
    gitops_path: GitOpsPathOption = "",
    application_name: ApplicationNameOption = "",
    application_manifests_path: ManifestsPathOption = ".",
    argocd_app_helm_chart: ChartOption = "",
    custom_values: CustomValuesOption = "",
    helm_version: HelmVersionOption = GitOpsConstants.HELM_DEFAULT_VERSION,
    helm_binary: HelmBinaryOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Render the ArgoCD Application and push manifests to the GitOps repository.

    Writes argocd-apps/<application>/<environment>.yaml and copies the raw
    manifests to <application>/<environment>/ under the GitOps path, then
    commits and pushes when anything changed.

    Examples:
        gitops-push push -e dev --gitops-repository acme/gitops
        gitops-push push -e prod -a api --application-manifests-path k8s
    """
    settings = load_settings(verbose)
    if settings.in_actions:
        github.mask_secret(gitops_token)

    repository = parse_repository(gitops_repository, settings.context_owner)
    if not gitops_token:
        raise InputError(
            "gitops-token input or GITOPS_TOKEN environment variable must be provided"
        )

    request = DeploymentRequest(
        application_name=application_name or settings.context_repo,
        environment=environment,
        source_org=repository.owner,
        source_repo=repository.name,
        source_branch=gitops_branch,
        gitops_path=gitops_path,
        application_manifests_path=application_manifests_path,
        custom_values=custom_values,
        chart_location=argocd_app_helm_chart or None,
    )

    print_header(f"Pushing {request.application_name} ({request.environment})")
    if settings.in_actions:
        github.notice(
            f"Pushing {request.application_name} to {repository.full_name} "
            f"for environment {request.environment}"
        )

    helm = resolve_helm(settings, helm_version, helm_binary)
    pusher = GitOpsPusher(
        build_commands(helm),
        console,
        temp_root=settings.temp_root,
        user_name=settings.commit_user_name,
        user_email=settings.commit_user_email,
    )

    manifest = pusher.render(request)
    github.append_step_summary(
        f"ArgoCD Application: {request.application_name}/{request.environment}",
        manifest,
        settings.step_summary_file,
    )

    result = pusher.publish(request, manifest, repository, gitops_token, gitops_branch)

    completed = result.completed_at.isoformat()
    github.set_output("time", completed, settings.output_file)
    if result.pushed:
        console.ok(
            f"Pushed {result.pointer_manifest} to {repository.full_name} "
            f"in {result.push_attempts} attempt(s)"
        )
    else:
        console.info(f"{repository.full_name} already up to date, nothing pushed")
    console.dim(f"time={completed}")


@with_error_handling
def render(
    environment: EnvironmentOption = "",
    gitops_repository: GitOpsRepositoryOption = "",
    gitops_branch: GitOpsBranchOption = GitOpsConstants.DEFAULT_BRANCH,
    gitops_path: GitOpsPathOption = "",
    application_name: ApplicationNameOption = "",
    application_manifests_path: ManifestsPathOption = ".",
    argocd_app_helm_chart: ChartOption = "",
    custom_values: CustomValuesOption = "",
    show_values: Annotated[
        bool,
        typer.Option(
            "--show-values",
            help="Print the composed values document instead of rendering",
        ),
    ] = False,
    helm_version: HelmVersionOption = GitOpsConstants.HELM_DEFAULT_VERSION,
    helm_binary: HelmBinaryOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Render the ArgoCD Application manifest to stdout without touching git.

    Examples:
        gitops-push render -e dev --gitops-repository acme/gitops
        gitops-push render -e dev -a api --show-values
    """
    settings = load_settings(verbose)

    owner, repo = settings.context_owner, settings.context_repo
    if gitops_repository:
        repository = parse_repository(gitops_repository, settings.context_owner)
        owner, repo = repository.owner, repository.name

    request = DeploymentRequest(
        application_name=application_name or settings.context_repo,
        environment=environment,
        source_org=owner,
        source_repo=repo,
        source_branch=gitops_branch,
        gitops_path=gitops_path,
        application_manifests_path=application_manifests_path,
        custom_values=custom_values,
        chart_location=argocd_app_helm_chart or None,
    )

    if show_values:
        values = GitOpsPusher(build_commands("helm"), console).compose(request)
        typer.echo(values, nl=False)
        return

    helm = resolve_helm(settings, helm_version, helm_binary)
    pusher = GitOpsPusher(build_commands(helm), console, temp_root=settings.temp_root)
    typer.echo(pusher.render(request))
