"""Runtime configuration and GitHub Actions integration."""

from .log_config import configure_logging
from .settings import ActionSettings, ToolCacheConfig

__all__ = ["ActionSettings", "ToolCacheConfig", "configure_logging"]
