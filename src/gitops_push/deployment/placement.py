"""Placement of rendered and raw manifests into the GitOps working copy.

Writes the ArgoCD pointer manifest under argocd-apps/ and copies the
application's plain Kubernetes manifests under <application>/<environment>/.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger
from rich.markup import escape

from .constants import GitOpsConstants, GitOpsLayout
from .errors import PlacementFailed

if TYPE_CHECKING:
    from ..shared.console import CLIConsole


@dataclass
class PlacementResult:
    """What placement wrote, relative to the working copy root.

    Attributes:
        pointer_manifest: Path of the ArgoCD Application manifest
        manifests_dir: Directory that received the raw manifests
        copied: Names of the copied top-level entries
        manifests_found: Whether the local manifests path existed
    """

    pointer_manifest: str
    manifests_dir: str
    copied: list[str] = field(default_factory=list)
    manifests_found: bool = True


class ManifestPlacement:
    """Writes manifests into a deterministic layout inside the working copy."""

    def __init__(
        self,
        console: CLIConsole,
        constants: GitOpsConstants | None = None,
    ) -> None:
        """Initialize manifest placement.

        Args:
            console: Console for progress output
            constants: Optional constants override
        """
        self.console = console
        self.constants = constants or GitOpsConstants()

    def place(
        self,
        working_copy: Path,
        gitops_path: str,
        application_name: str,
        environment: str,
        rendered_manifest: str,
        application_manifests_path: str | Path,
    ) -> PlacementResult:
        """Write the pointer manifest and copy raw manifests.

        A missing manifests path only produces a warning; a deploy with just
        the pointer manifest is valid.

        Args:
            working_copy: Root of the cloned GitOps repository
            gitops_path: Subdirectory root inside the repository
            application_name: Workload identifier
            environment: Deployment tier label
            rendered_manifest: Pointer manifest text, written unmodified
            application_manifests_path: Local directory of raw manifests

        Returns:
            PlacementResult describing what was written

        Raises:
            PlacementFailed: If any filesystem write or copy fails
        """
        layout = GitOpsLayout(
            gitops_path,
            application_name,
            environment,
            str(application_manifests_path),
            self.constants,
        )
        result = PlacementResult(
            pointer_manifest=layout.pointer_manifest,
            manifests_dir=layout.manifests_dir,
        )

        try:
            pointer_path = working_copy / layout.pointer_manifest
            pointer_path.parent.mkdir(parents=True, exist_ok=True)
            pointer_path.write_text(rendered_manifest, encoding="utf-8")
            self.console.print(f"  [dim]✓ {escape(layout.pointer_manifest)}[/dim]")

            target_dir = working_copy / layout.manifests_dir
            target_dir.mkdir(parents=True, exist_ok=True)

            source = Path(application_manifests_path)
            if not source.exists():
                self.console.warn(
                    f"Application manifests path {escape(str(source))} does not exist, "
                    "skipping manifest copy"
                )
                result.manifests_found = False
                return result

            result.copied = self._copy_manifests(source, target_dir, working_copy)
        except OSError as e:
            raise PlacementFailed(str(e)) from e

        self.console.ok(
            f"Copied manifests from {escape(str(source))} into "
            f"{escape(layout.manifests_dir or '.')}"
        )
        return result

    def _copy_manifests(
        self, source: Path, target_dir: Path, working_copy: Path
    ) -> list[str]:
        """Copy each direct entry of source into target_dir.

        Files are copied individually, directories recursively; existing
        target directories are merged into. An entry that is or contains
        the working copy is skipped so the clone never copies into itself.
        """
        if source.is_file():
            shutil.copy2(source, target_dir / source.name)
            return [source.name]

        copied: list[str] = []
        for entry in sorted(source.iterdir()):
            if entry.name in self.constants.EXCLUDED_ENTRIES:
                continue
            if self._holds_working_copy(entry, working_copy):
                logger.debug("Skipping {}: it contains the working copy", entry)
                continue
            destination = target_dir / entry.name
            if entry.is_dir():
                shutil.copytree(entry, destination, dirs_exist_ok=True)
            else:
                shutil.copy2(entry, destination)
            copied.append(entry.name)
            self.console.print(f"  [dim]✓ {escape(entry.name)}[/dim]")
        return copied

    @staticmethod
    def _holds_working_copy(entry: Path, working_copy: Path) -> bool:
        resolved = working_copy.resolve()
        return resolved.is_relative_to(entry.resolve())
