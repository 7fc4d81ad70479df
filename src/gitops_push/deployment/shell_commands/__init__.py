"""Shell command abstractions for GitOps push operations.

This package provides a thin, typed interface over the external programs
the pipeline drives. It is organized into specialized modules per tool:

- helm: chart rendering (helm template)
- git: clone, checkout, stage, diff, commit and push

Every module executes through a CommandRunner, so tests can replace the
runner with a fake that returns scripted CommandResult values instead of
starting real processes.

Usage:
    from gitops_push.deployment.shell_commands import ShellCommands

    commands = ShellCommands(Path("."), helm_binary=cached_helm)
    result = commands.helm.template("my-app", chart_path, value_files=[values])
"""

from pathlib import Path

from .git import GitCommands
from .helm import HelmCommands
from .runner import CommandRunner
from .types import CommandResult, CommitOutcome, CommitStatus, DiffState


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        helm: Helm-related commands
        git: Git repository commands

    Example:
        >>> commands = ShellCommands(Path("."))
        >>> commands.git.push("main", Path("/tmp/gitops-repo"))
    """

    def __init__(self, project_root: Path, helm_binary: str | Path = "helm") -> None:
        """Initialize the shell commands executor.

        Args:
            project_root: Default working directory for commands
            helm_binary: Name or path of the helm executable
        """
        self._project_root = Path(project_root)
        self._runner = CommandRunner(self._project_root)

        self.helm = HelmCommands(self._runner, binary=helm_binary)
        self.git = GitCommands(self._runner)

    @property
    def project_root(self) -> Path:
        """Get the default working directory."""
        return self._project_root


__all__ = [
    "ShellCommands",
    "CommandResult",
    "CommitOutcome",
    "CommitStatus",
    "DiffState",
    "GitCommands",
    "HelmCommands",
    "CommandRunner",
]
