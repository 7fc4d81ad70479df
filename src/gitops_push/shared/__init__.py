"""Shared utilities for CLI commands and pipeline components."""

from .console import CLIConsole, console

__all__ = ["CLIConsole", "console"]
