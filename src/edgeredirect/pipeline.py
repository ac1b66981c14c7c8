"""Request pipeline: HTTPS enforcement, www normalisation, rule resolution.

Stages run in a fixed order and the first one that produces a redirect
wins:

    HttpsStage  ->  WwwStage  ->  RuleStage  ->  PassThrough

The HTTP surface renders PassThrough as /health, /admin/rules or the 404
page.

Example:
    pipeline = RequestPipeline(PreprocessOptions(www_mode="remove"), provider)
    outcome = await pipeline.run(create_request_info("https://www.example.com/a"))
    # Redirect(url='https://example.com/a', status=301, reason='www')
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Protocol

import structlog

from edgeredirect.core.config import RedirectSettings, WwwMode
from edgeredirect.rules.models import RedirectRule
from edgeredirect.rules.provider import RuleConfigProvider
from edgeredirect.rules.resolver import RequestInfo, resolve

logger = structlog.get_logger()

WWW_PREFIX = "www."
PREPROCESS_STATUS = 301

RedirectReason = Literal["https", "www", "rule"]


@dataclass(frozen=True)
class Redirect:
    """Send the client elsewhere."""

    url: str
    status: int
    reason: RedirectReason
    rule: RedirectRule | None = None


@dataclass(frozen=True)
class PassThrough:
    """No redirect applies; the caller serves a fallback response."""


Outcome = Redirect | PassThrough


@dataclass(frozen=True)
class PreprocessOptions:
    """Global policies applied before any rule is consulted."""

    force_https: bool = True
    www_mode: WwwMode = "none"

    @classmethod
    def from_settings(cls, settings: RedirectSettings) -> PreprocessOptions:
        return cls(force_https=settings.force_https, www_mode=settings.www_redirect)


class Stage(Protocol):
    """One step of the pipeline. Returns a Redirect or None to continue."""

    name: str

    async def __call__(self, request: RequestInfo) -> Redirect | None: ...


class HttpsStage:
    """Upgrade plain-HTTP requests to HTTPS, keeping host, port, path and query."""

    name = "https"

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    async def __call__(self, request: RequestInfo) -> Redirect | None:
        if not self.enabled or request.scheme != "http":
            return None
        # Default port 80 must not leak into the https URL
        port = None if request.port == 80 else request.port
        upgraded = replace(request, scheme="https", port=port)
        return Redirect(url=upgraded.url, status=PREPROCESS_STATUS, reason="https")


class WwwStage:
    """Add or strip the www. host prefix."""

    name = "www"

    def __init__(self, mode: WwwMode = "none") -> None:
        self.mode = mode

    async def __call__(self, request: RequestInfo) -> Redirect | None:
        hostname = request.hostname
        if self.mode == "remove" and hostname.startswith(WWW_PREFIX):
            rewritten = replace(request, hostname=hostname[len(WWW_PREFIX) :])
        elif self.mode == "add" and not hostname.startswith(WWW_PREFIX):
            rewritten = replace(request, hostname=WWW_PREFIX + hostname)
        else:
            return None
        return Redirect(url=rewritten.url, status=PREPROCESS_STATUS, reason="www")


class RuleStage:
    """Resolve the request against the provider's active rule set."""

    name = "rule"

    def __init__(self, provider: RuleConfigProvider) -> None:
        self.provider = provider

    async def __call__(self, request: RequestInfo) -> Redirect | None:
        rules = await self.provider.get_active_rules()
        decision = resolve(request, rules)
        if decision is None:
            return None
        return Redirect(
            url=decision.url,
            status=decision.status,
            reason="rule",
            rule=decision.rule,
        )


async def preprocess(request: RequestInfo, options: PreprocessOptions) -> Outcome:
    """Apply HTTPS and www policies only (no rule lookup)."""
    for stage in (HttpsStage(options.force_https), WwwStage(options.www_mode)):
        redirect = await stage(request)
        if redirect is not None:
            return redirect
    return PassThrough()


class RequestPipeline:
    """Ordered stages deciding what to do with a request."""

    def __init__(
        self,
        options: PreprocessOptions,
        provider: RuleConfigProvider,
    ) -> None:
        self.options = options
        self.provider = provider
        self.stages: tuple[Stage, ...] = (
            HttpsStage(options.force_https),
            WwwStage(options.www_mode),
            RuleStage(provider),
        )

    async def run(self, request: RequestInfo) -> Outcome:
        """Run stages in order; the first redirect wins."""
        for stage in self.stages:
            redirect = await stage(request)
            if redirect is not None:
                logger.debug(
                    "Pipeline stage redirected",
                    stage=stage.name,
                    location=redirect.url,
                    status=redirect.status,
                )
                return redirect
        return PassThrough()
