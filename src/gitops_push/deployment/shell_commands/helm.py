"""Helm command abstractions.

This module provides the Helm operations used to render the ArgoCD
pointer manifest from a chart.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Client-side rendering of charts (helm template)
    """

    def __init__(self, runner: CommandRunner, binary: str | Path = "helm") -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
            binary: Name or path of the helm executable. A cached binary is
                    passed here explicitly instead of being added to PATH.
        """
        self._runner = runner
        self.binary = str(binary)

    def template(
        self,
        release_name: str,
        chart_path: Path,
        *,
        value_files: list[Path] | None = None,
    ) -> CommandResult:
        """Render a chart locally without contacting a cluster.

        Args:
            release_name: Release name passed to the templates
            chart_path: Path to the Helm chart directory
            value_files: Optional list of values.yaml files, applied in order

        Returns:
            CommandResult whose stdout is the rendered manifest text

        Example:
            >>> helm.template(
            ...     "my-app",
            ...     Path("./templates/helm/argocd-app"),
            ...     value_files=[Path("/tmp/values.yaml")],
            ... )
        """
        cmd = [self.binary, "template", release_name, str(chart_path)]
        for vf in value_files or []:
            cmd.extend(["-f", str(vf)])
        return self._runner.run(cmd, capture_output=True)
