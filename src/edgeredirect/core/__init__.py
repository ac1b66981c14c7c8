"""Core."""

from .config import (
    EdgeRedirectConfig,
    RedirectSettings,
    ServerSettings,
    load_config_from_file,
)
from .exceptions import (
    ConfigError,
    ConfigFetchError,
    PatternCompileError,
    RedirectorError,
    RuleParseError,
    UrlResolutionError,
    format_error_for_user,
)

__all__ = [
    # Config
    "EdgeRedirectConfig",
    "RedirectSettings",
    "ServerSettings",
    "load_config_from_file",
    # Errors
    "RedirectorError",
    "ConfigError",
    "ConfigFetchError",
    "RuleParseError",
    "PatternCompileError",
    "UrlResolutionError",
    "format_error_for_user",
]
