"""GitHub Actions workflow-command helpers.

These write to the files and stdout markers the Actions runner reads.
Every helper is a no-op outside a runner (no GITHUB_* file configured),
so the CLI behaves the same locally.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO


def mask_secret(value: str, stream: TextIO | None = None) -> None:
    """Ask the runner to redact value from all subsequent log output."""
    if not value:
        return
    out = stream or sys.stdout
    print(f"::add-mask::{value}", file=out, flush=True)


def notice(message: str, stream: TextIO | None = None) -> None:
    """Emit a notice annotation."""
    out = stream or sys.stdout
    print(f"::notice::{message}", file=out, flush=True)


def set_output(name: str, value: str, output_file: Path | None) -> None:
    """Append a step output to the GITHUB_OUTPUT file.

    Args:
        name: Output name
        value: Single-line output value
        output_file: Path from GITHUB_OUTPUT, or None outside a runner
    """
    if output_file is None:
        return
    with open(output_file, "a", encoding="utf-8") as f:
        f.write(f"{name}={value}\n")


def append_step_summary(
    heading: str, body: str, summary_file: Path | None, language: str = "yaml"
) -> None:
    """Append a heading and fenced code block to the job summary."""
    if summary_file is None:
        return
    with open(summary_file, "a", encoding="utf-8") as f:
        f.write(f"### {heading}\n\n```{language}\n{body}\n```\n\n")
