"""Cache-or-fetch acquisition of external tool binaries.

Tools are cached per tool, version and platform:

    <root>/<tool>/<version>/<platform>-<arch>/<binary>

A cache hit returns immediately. A miss downloads the release archive,
extracts it into a scratch directory, copies the binary into the cache
and returns its path. Callers pass that path on explicitly; PATH is never
modified.
"""

from __future__ import annotations

import shutil
import stat
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from loguru import logger

from ..deployment.errors import ToolAcquisitionError

if TYPE_CHECKING:
    from ..runtime.settings import ToolCacheConfig
    from ..shared.console import CLIConsole

_LATEST_URLS: dict[str, dict[str, str]] = {
    "helm": {
        "linux-amd64": "https://github.com/helm/helm/releases/latest/download/helm-linux-amd64.tar.gz",
        "darwin-amd64": "https://github.com/helm/helm/releases/latest/download/helm-darwin-amd64.tar.gz",
        "win32-amd64": "https://github.com/helm/helm/releases/latest/download/helm-windows-amd64.zip",
    },
}

_VERSIONED_URL_TEMPLATES: dict[str, str] = {
    "helm": "https://get.helm.sh/helm-v{version}-{os}-{arch}.{ext}",
}


def download_url(tool: str, version: str, platform: str, arch: str) -> str:
    """Resolve the release archive URL for a tool.

    Args:
        tool: Tool name (only "helm" is supported)
        version: "latest" or an explicit version such as "3.14.0"
        platform: linux, darwin or win32
        arch: amd64 or arm64

    Returns:
        The archive URL

    Raises:
        ToolAcquisitionError: If tool, version or platform is unsupported
    """
    if tool not in _LATEST_URLS:
        raise ToolAcquisitionError(f"No download url found for tool: {tool}")

    if version == "latest":
        url = _LATEST_URLS[tool].get(f"{platform}-{arch}")
        if url is None:
            raise ToolAcquisitionError(
                f"No download url found for tool: {tool} version: {version} "
                f"on platform: {platform}-{arch}"
            )
        return url

    if platform not in ("linux", "darwin", "win32"):
        raise ToolAcquisitionError(
            f"No download url found for tool: {tool} version: {version} "
            f"on platform: {platform}-{arch}"
        )
    os_name = "windows" if platform == "win32" else platform
    ext = "zip" if platform == "win32" else "tar.gz"
    return _VERSIONED_URL_TEMPLATES[tool].format(
        version=version.removeprefix("v"), os=os_name, arch=arch, ext=ext
    )


class ToolCache:
    """Finds cached tool binaries or downloads them on demand."""

    def __init__(
        self,
        config: ToolCacheConfig,
        console: CLIConsole,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the tool cache.

        Args:
            config: Cache location and platform
            console: Console for progress output
            client: Optional HTTP client (tests inject one with a mock transport)
        """
        self.config = config
        self.console = console
        self._client = client

    def _binary_name(self, tool: str) -> str:
        return f"{tool}.exe" if self.config.platform == "win32" else tool

    def cache_dir(self, tool: str, version: str) -> Path:
        """Directory that holds the cached binary for tool/version/platform."""
        return self.config.root / tool / version / self.config.platform_key

    def find(self, tool: str, version: str = "latest") -> Path | None:
        """Return the cached binary path, or None on a cache miss."""
        candidate = self.cache_dir(tool, version) / self._binary_name(tool)
        return candidate if candidate.is_file() else None

    def ensure(self, tool: str, version: str = "latest") -> Path:
        """Return a usable binary for tool, downloading it if needed.

        Args:
            tool: Tool name
            version: "latest" or an explicit version

        Returns:
            Path to the executable

        Raises:
            ToolAcquisitionError: If the tool cannot be resolved or downloaded
        """
        cached = self.find(tool, version)
        if cached is not None:
            self.console.dim(f"Tool {tool} {version} is already cached in {cached.parent}")
            return cached

        url = download_url(tool, version, self.config.platform, self.config.arch)
        self.console.info(f"Tool {tool} {version} is not cached, downloading...")

        with tempfile.TemporaryDirectory(prefix=f"gitops-push-{tool}-") as scratch:
            scratch_dir = Path(scratch)
            archive = scratch_dir / url.rsplit("/", 1)[-1]
            self._download(url, archive)
            extracted = scratch_dir / "extracted"
            self._extract(archive, extracted)
            binary = self._locate_binary(extracted, tool)

            target_dir = self.cache_dir(tool, version)
            target = target_dir / binary.name
            try:
                target_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(binary, target)
                target.chmod(
                    target.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
                )
            except OSError as e:
                raise ToolAcquisitionError(
                    f"Failed to cache {tool} {version} in {target_dir}: {e}"
                ) from e

        self.console.ok(f"Tool {tool} {version} has been cached in {target_dir}")
        return target

    def _download(self, url: str, destination: Path) -> None:
        logger.debug("Downloading {} to {}", url, destination)
        client = self._client or httpx.Client(
            follow_redirects=True, timeout=self.config.download_timeout
        )
        try:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            raise ToolAcquisitionError(f"Failed to download {url}: {e}") from e
        finally:
            if self._client is None:
                client.close()

    def _extract(self, archive: Path, destination: Path) -> None:
        destination.mkdir(parents=True, exist_ok=True)
        try:
            if archive.name.endswith(".zip"):
                with zipfile.ZipFile(archive) as zf:
                    zf.extractall(destination)
            else:
                with tarfile.open(archive, "r:gz") as tf:
                    tf.extractall(destination, filter="data")
        except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
            raise ToolAcquisitionError(f"Failed to extract {archive.name}: {e}") from e

    def _locate_binary(self, root: Path, tool: str) -> Path:
        name = self._binary_name(tool)
        for candidate in sorted(root.rglob(name)):
            if candidate.is_file():
                return candidate
        raise ToolAcquisitionError(f"Archive for {tool} does not contain {name}")
