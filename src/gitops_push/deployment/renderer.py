"""ArgoCD pointer manifest rendering via helm template.

This module persists the composed values to a uniquely named temporary
file, validates the chart location and runs ``helm template`` against it.
"""

from __future__ import annotations

import secrets
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger
from rich.markup import escape

from .constants import BUNDLED_CHART_PATH, GitOpsConstants
from .errors import ChartNotFound, RenderFailed, ValuesFileError

if TYPE_CHECKING:
    from ..shared.console import CLIConsole
    from .shell_commands import ShellCommands


class ManifestRenderer:
    """Renders the ArgoCD Application manifest from a Helm chart.

    Chart resolution rule: absolute locations are used as given, relative
    ones are resolved against ``base_dir`` (the working directory the CLI
    was started from). A missing location falls back to the chart bundled
    with this package.
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        base_dir: Path | None = None,
        temp_dir: Path | None = None,
        constants: GitOpsConstants | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            commands: Shell command executor
            console: Console for progress output
            base_dir: Base for relative chart locations (default: cwd)
            temp_dir: Directory for the temporary values file
            constants: Optional constants override
        """
        self.commands = commands
        self.console = console
        self.base_dir = base_dir or Path.cwd()
        self.temp_dir = temp_dir or Path(tempfile.gettempdir())
        self.constants = constants or GitOpsConstants()

    def resolve_chart(self, chart_location: str | Path | None) -> Path:
        """Resolve and validate a chart location.

        Args:
            chart_location: Absolute or relative chart path, or None for the
                            bundled chart

        Returns:
            Absolute path of the chart directory

        Raises:
            ChartNotFound: If the directory has no Chart.yaml
        """
        if not chart_location:
            chart = BUNDLED_CHART_PATH
        else:
            chart = Path(chart_location)
            if not chart.is_absolute():
                chart = (self.base_dir / chart).resolve()

        if not (chart / self.constants.CHART_DESCRIPTOR).is_file():
            raise ChartNotFound(chart)
        return chart

    def _values_file_path(self) -> Path:
        timestamp = int(time.time() * 1000)
        suffix = secrets.token_hex(6)
        return self.temp_dir / f"{self.constants.VALUES_FILE_PREFIX}-{timestamp}-{suffix}.yaml"

    @staticmethod
    def _write_values(values_file: Path, values_yaml: str) -> None:
        try:
            values_file.write_text(values_yaml, encoding="utf-8")
        except OSError as e:
            raise ValuesFileError(values_file, str(e)) from e

    def render(
        self,
        chart_location: str | Path | None,
        values_yaml: str,
        release_name: str,
    ) -> str:
        """Render the pointer manifest.

        Args:
            chart_location: Chart directory (see class docstring for resolution)
            values_yaml: Composed values document
            release_name: Helm release name, normally the application name

        Returns:
            Rendered manifest text with surrounding whitespace stripped

        Raises:
            ChartNotFound: If the chart location has no Chart.yaml
            RenderFailed: If helm template exits non-zero
            ValuesFileError: If the values file cannot be written
        """
        chart = self.resolve_chart(chart_location)
        values_file = self._values_file_path()

        self.console.print("[bold cyan]🧩 Rendering ArgoCD application manifest...[/bold cyan]")
        try:
            self._write_values(values_file, values_yaml)
            logger.debug("Rendering chart {} with values {}", chart, values_file)

            result = self.commands.helm.template(
                release_name, chart, value_files=[values_file]
            )
            if not result.success:
                raise RenderFailed(result.returncode, result.stderr)
        finally:
            values_file.unlink(missing_ok=True)

        manifest = result.stdout.strip()
        self.console.ok(f"Rendered ArgoCD application manifest from {escape(chart.name)}")
        return manifest
