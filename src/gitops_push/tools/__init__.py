"""External tool acquisition."""

from .tool_cache import ToolCache, download_url

__all__ = ["ToolCache", "download_url"]
