"""External rule sources.

A source delivers the raw decoded rule payload (a list of dicts). It raises
ConfigFetchError for anything that prevents that: unreachable host,
non-success status, timeout, undecodable body. Validation of the payload
itself happens in the provider.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol

import httpx
import yaml

from edgeredirect.core.config import RedirectSettings
from edgeredirect.core.exceptions import ConfigFetchError


class RuleSource(Protocol):
    """Anything that can fetch a raw rule payload."""

    @property
    def name(self) -> str: ...

    async def fetch(self) -> Any: ...


class HttpRuleSource:
    """Fetch rules from a URL (e.g. a raw gist) with httpx."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "http"

    async def fetch(self) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(self.url, headers={"Accept": "application/json"})
        except httpx.TimeoutException as e:
            raise ConfigFetchError(f"Timed out fetching rules from {self.url}") from e
        except httpx.HTTPError as e:
            raise ConfigFetchError(f"Error fetching rules from {self.url}: {e}") from e

        if not response.is_success:
            raise ConfigFetchError(
                f"Failed to fetch rules from {self.url}: HTTP {response.status_code}",
                code="config_fetch_status",
            )

        try:
            return response.json()
        except ValueError as e:
            raise ConfigFetchError(f"Rule source {self.url} returned invalid JSON: {e}") from e

    def __repr__(self) -> str:
        return f"HttpRuleSource(url={self.url!r})"


class FileRuleSource:
    """Read rules from a local JSON or YAML file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return "file"

    async def fetch(self) -> Any:
        try:
            content = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigFetchError(f"Cannot read rule file {self.path}: {e}") from e

        try:
            if self.path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(content)
            return json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigFetchError(f"Invalid rule file {self.path}: {e}") from e

    def __repr__(self) -> str:
        return f"FileRuleSource(path={str(self.path)!r})"


def build_rule_source(settings: RedirectSettings) -> RuleSource | None:
    """Pick the rule source configured in settings.

    GIST_CONFIG_URL wins over RULES_FILE; with neither set there is no
    external source and the provider serves the default rules.
    """
    if settings.gist_config_url:
        return HttpRuleSource(settings.gist_config_url, timeout=settings.rules_fetch_timeout)
    if settings.rules_file:
        return FileRuleSource(settings.rules_file)
    return None
