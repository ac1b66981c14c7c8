"""Configuration types with environment variable support.

Redirect behaviour is configured with the same variable names the edge
worker always used (FORCE_HTTPS, WWW_REDIRECT, GIST_CONFIG_URL, ADMIN_KEY).
Listener settings use the EDGEREDIRECT_ prefix.
Example: EDGEREDIRECT_PORT=9000 binds the server to port 9000.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from edgeredirect.core.exceptions import ConfigError

WwwMode = Literal["add", "remove", "none"]

DEFAULT_CACHE_TTL = 300.0


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load configuration from a YAML or TOML file.

    Args:
        path: Path to the configuration file (.yaml, .yml, or .toml)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file has encoding errors, invalid syntax, or unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Config file encoding error in {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            return tomllib.loads(content)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


class RedirectSettings(BaseSettings):
    """Redirect behaviour and rule source settings.

    Environment variables (no prefix):
    - FORCE_HTTPS: "true" (default) or "false"
    - WWW_REDIRECT: "add", "remove" or "none" (default)
    - GIST_CONFIG_URL: external rule source URL (optional)
    - RULES_FILE: local JSON/YAML rule file (optional)
    - ADMIN_KEY: bearer secret for /admin/rules and /metrics (optional)
    - RULES_CACHE_TTL: seconds a fetched rule set stays fresh (default 300)
    - RULES_FETCH_TIMEOUT: rule fetch timeout in seconds (default 10)
    - TRUST_FORWARDED_HEADERS: honour X-Forwarded-Proto/Host (default false)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    force_https: bool = Field(
        default=True,
        description="Redirect plain HTTP requests to HTTPS before anything else.",
    )
    www_redirect: WwwMode = Field(
        default="none",
        description="Add or remove the www. host prefix ('add', 'remove', 'none').",
    )
    gist_config_url: str | None = Field(
        default=None,
        description="URL of the external JSON rule set. Unset disables fetching.",
    )
    rules_file: str | None = Field(
        default=None,
        description="Local JSON or YAML rule file, used when no URL is configured.",
    )
    admin_key: str | None = Field(
        default=None,
        repr=False,
        description="Bearer secret for admin endpoints. Unset leaves them open.",
    )
    rules_cache_ttl: float = Field(
        default=DEFAULT_CACHE_TTL,
        gt=0,
        description="Seconds a fetched rule set stays fresh (5 minutes default).",
    )
    rules_fetch_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for the external rule fetch.",
    )
    trust_forwarded_headers: bool = Field(
        default=False,
        description="Take scheme and host from X-Forwarded-Proto / X-Forwarded-Host.",
    )


class ServerSettings(BaseSettings):
    """HTTP listener settings (EDGEREDIRECT_HOST, EDGEREDIRECT_PORT, EDGEREDIRECT_LOG_LEVEL)."""

    model_config = SettingsConfigDict(
        env_prefix="EDGEREDIRECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="Bind address.")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port.")
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Log level for structlog output.",
    )


class EdgeRedirectConfig:
    """Master configuration combining redirect and server settings.

    Example:
        config = EdgeRedirectConfig()
        print(config.redirects.force_https)
        print(config.server.port)
    """

    def __init__(
        self,
        redirects: RedirectSettings | None = None,
        server: ServerSettings | None = None,
    ) -> None:
        try:
            self.redirects = redirects if redirects is not None else RedirectSettings()
            self.server = server if server is not None else ServerSettings()
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> EdgeRedirectConfig:
        """Build configuration from a file mapping.

        Accepts either flat keys or ``redirects`` / ``server`` sections.
        Environment variables still fill in anything the mapping omits.
        """
        redirect_data = dict(data.get("redirects", {}))
        server_data = dict(data.get("server", {}))
        for key, value in data.items():
            if key in RedirectSettings.model_fields:
                redirect_data.setdefault(key, value)
            elif key in ServerSettings.model_fields:
                server_data.setdefault(key, value)

        try:
            return cls(
                redirects=RedirectSettings(**redirect_data),
                server=ServerSettings(**server_data),
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def to_display_dict(self) -> dict[str, Any]:
        """Export current configuration as a nested dictionary for display."""
        return {
            "redirects": {
                "force_https": self.redirects.force_https,
                "www_redirect": self.redirects.www_redirect,
                "gist_config_url": self.redirects.gist_config_url,
                "rules_file": self.redirects.rules_file,
                "admin_key": "***" if self.redirects.admin_key else None,
                "rules_cache_ttl": self.redirects.rules_cache_ttl,
                "rules_fetch_timeout": self.redirects.rules_fetch_timeout,
                "trust_forwarded_headers": self.redirects.trust_forwarded_headers,
            },
            "server": {
                "host": self.server.host,
                "port": self.server.port,
                "log_level": self.server.log_level,
            },
        }
