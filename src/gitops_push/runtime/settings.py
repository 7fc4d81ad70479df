"""Runtime settings read from the process environment.

The CLI reads the environment exactly once, in ActionSettings.from_env, and
passes the resulting objects down explicitly. No component below the CLI
looks at os.environ.
"""

from __future__ import annotations

import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from ..deployment.constants import GitOpsConstants

_TRUTHY = {"1", "true", "yes", "on"}


def _default_tool_cache_root() -> Path:
    return Path.home() / ".cache" / "gitops-push" / "tools"


def _detect_platform() -> str:
    system = platform.system().lower()
    if system.startswith("win"):
        return "win32"
    return system


def _detect_arch() -> str:
    machine = platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return "amd64"
    if machine in ("aarch64", "arm64"):
        return "arm64"
    return machine


class ToolCacheConfig(BaseModel):
    """Where and for which platform tools are cached.

    Attributes:
        root: Cache root; tools live under <root>/<tool>/<version>/<platform>-<arch>
        platform: Operating system key (linux, darwin, win32)
        arch: CPU architecture key (amd64, arm64)
        download_timeout: Seconds before a download is abandoned
    """

    root: Path = Field(default_factory=_default_tool_cache_root)
    platform: str = Field(default_factory=_detect_platform)
    arch: str = Field(default_factory=_detect_arch)
    download_timeout: float = 120.0

    @property
    def platform_key(self) -> str:
        return f"{self.platform}-{self.arch}"


class ActionSettings(BaseModel):
    """Invocation context and runner configuration.

    Attributes:
        context_owner: Owner of the repository running the workflow
        context_repo: Name of the repository running the workflow
        in_actions: Whether running inside GitHub Actions
        output_file: GITHUB_OUTPUT path, if any
        step_summary_file: GITHUB_STEP_SUMMARY path, if any
        temp_root: Directory that hosts the transient working copy
        debug: Whether runner debug logging is enabled
        commit_user_name: Commit author name for the GitOps commit
        commit_user_email: Commit author email for the GitOps commit
        tool_cache: Tool cache configuration
    """

    context_owner: str = ""
    context_repo: str = ""
    in_actions: bool = False
    output_file: Path | None = None
    step_summary_file: Path | None = None
    temp_root: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    debug: bool = False
    commit_user_name: str = GitOpsConstants.COMMIT_USER_NAME
    commit_user_email: str = GitOpsConstants.COMMIT_USER_EMAIL
    tool_cache: ToolCacheConfig = Field(default_factory=ToolCacheConfig)

    @field_validator("output_file", "step_summary_file", mode="before")
    @classmethod
    def _empty_path_is_none(cls, value: object) -> object:
        if value == "":
            return None
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ActionSettings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Populated ActionSettings
        """
        env = os.environ if environ is None else environ

        owner, _, repo = env.get("GITHUB_REPOSITORY", "").partition("/")

        data: dict[str, object] = {
            "context_owner": owner,
            "context_repo": repo,
            "in_actions": env.get("GITHUB_ACTIONS", "").lower() in _TRUTHY,
            "output_file": env.get("GITHUB_OUTPUT") or None,
            "step_summary_file": env.get("GITHUB_STEP_SUMMARY") or None,
            "debug": env.get("RUNNER_DEBUG", "").lower() in _TRUTHY,
        }
        if env.get("RUNNER_TEMP"):
            data["temp_root"] = env["RUNNER_TEMP"]
        if env.get("GITOPS_COMMIT_USER_NAME"):
            data["commit_user_name"] = env["GITOPS_COMMIT_USER_NAME"]
        if env.get("GITOPS_COMMIT_USER_EMAIL"):
            data["commit_user_email"] = env["GITOPS_COMMIT_USER_EMAIL"]
        if env.get("RUNNER_TOOL_CACHE"):
            data["tool_cache"] = ToolCacheConfig(root=Path(env["RUNNER_TOOL_CACHE"]))

        return cls.model_validate(data)
