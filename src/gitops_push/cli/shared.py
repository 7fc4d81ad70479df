"""Shared helpers for CLI commands.

This module provides the error-handling decorator, settings loading and
the factories that wire pipeline components together.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.panel import Panel

from ..deployment.constants import GitOpsConstants
from ..deployment.errors import GitOpsPushError
from ..deployment.shell_commands import ShellCommands
from ..runtime import ActionSettings, configure_logging
from ..shared.console import console
from ..tools import ToolCache


def print_header(title: str, style: str = "blue") -> None:
    """Print a styled header panel.

    Args:
        title: Header title text
        style: Border style color
    """
    console.print(
        Panel.fit(
            f"[bold {style}]{title}[/bold {style}]",
            border_style=style,
        )
    )


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator to wrap command functions with standard error handling.

    Every pipeline failure derives from GitOpsPushError, so it is reported
    as one error line (plus an optional details panel) and exit code 1.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except GitOpsPushError as e:
            console.handle_error(e.message, e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


def load_settings(verbose: bool = False) -> ActionSettings:
    """Load settings from the environment and configure logging.

    A .env file in the working directory is loaded first for local runs;
    variables already set in the environment win.

    Args:
        verbose: Force debug logging regardless of RUNNER_DEBUG

    Returns:
        Populated ActionSettings
    """
    load_dotenv(Path.cwd() / ".env", override=False)
    settings = ActionSettings.from_env()
    configure_logging(verbose or settings.debug)
    return settings


def resolve_helm(
    settings: ActionSettings, helm_version: str, helm_binary: str | None = None
) -> str:
    """Return the helm executable to use.

    Args:
        settings: Runtime settings (provides the tool cache configuration)
        helm_version: Version to fetch when no binary is given
        helm_binary: Explicit helm executable, bypasses the tool cache

    Returns:
        Path or name of the helm executable

    Raises:
        ToolAcquisitionError: If helm cannot be found or downloaded
    """
    if helm_binary:
        return helm_binary
    cache = ToolCache(settings.tool_cache, console)
    return str(cache.ensure(GitOpsConstants.HELM_TOOL_NAME, helm_version))


def build_commands(helm: str) -> ShellCommands:
    """Create the shell command executor rooted at the working directory."""
    return ShellCommands(Path.cwd(), helm_binary=helm)
