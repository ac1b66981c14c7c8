"""Redirect server: aiohttp front end for the request pipeline."""

from __future__ import annotations

import functools
import html
import json
from datetime import UTC, datetime
from urllib.parse import urlsplit

import structlog
from aiohttp import web

from edgeredirect.core.config import RedirectSettings, ServerSettings
from edgeredirect.observability.metrics import (
    REDIRECTS,
    RESOLVE_DURATION,
    UNMATCHED_REQUESTS,
    generate_metrics,
    get_content_type,
)
from edgeredirect.pipeline import PreprocessOptions, Redirect, RequestPipeline
from edgeredirect.rules.models import rules_to_list
from edgeredirect.rules.provider import RuleConfigProvider
from edgeredirect.rules.resolver import RequestInfo
from edgeredirect.security.bearer import (
    AUTH_CHALLENGE,
    AUTH_HEADER,
    BearerAuthenticator,
    create_bearer_authenticator,
)

logger = structlog.get_logger()

SERVICE_NAME = "edgeredirect"

HEALTH_PATH = "/health"
ADMIN_RULES_PATH = "/admin/rules"
METRICS_PATH = "/metrics"

NOT_FOUND_PAGE = """<html>
  <head>
    <title>Redirecting...</title>
    <style>
      body {{ font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px; }}
      .status {{ color: #666; }}
      .path {{ font-family: monospace; background: #f5f5f5; padding: 2px 4px; }}
    </style>
  </head>
  <body>
    <h1>Redirect Service</h1>
    <p class="status">No redirect rule found for path: <span class="path">{path}</span></p>
    <p>Please contact the person who gave this link to you</p>
    <ul>
      <li>Health check: <a href="/health">/health</a></li>
      <li>Current rules: <a href="/admin/rules">/admin/rules</a> (requires admin key)</li>
    </ul>
  </body>
</html>
"""

_json_dumps_pretty = functools.partial(json.dumps, indent=2)


def _first_forwarded(value: str | None) -> str | None:
    """First entry of a comma-separated X-Forwarded-* header."""
    if not value:
        return None
    return value.split(",", 1)[0].strip() or None


def request_info_from_aiohttp(request: web.Request, trust_forwarded: bool = False) -> RequestInfo:
    """Build a RequestInfo from an aiohttp request.

    Path and query are kept percent-encoded, as they appeared on the wire.
    """
    scheme = request.scheme
    host = request.host
    if trust_forwarded:
        scheme = _first_forwarded(request.headers.get("X-Forwarded-Proto")) or scheme
        host = _first_forwarded(request.headers.get("X-Forwarded-Host")) or host

    authority = urlsplit(f"//{host}")
    try:
        port = authority.port
    except ValueError:
        port = None

    return RequestInfo(
        scheme=scheme.lower(),
        hostname=authority.hostname or "",
        path=request.rel_url.raw_path or "/",
        query=request.rel_url.raw_query_string,
        port=port,
        method=request.method,
    )


class RedirectServer:
    """Serves redirects and the fallback endpoints."""

    def __init__(
        self,
        settings: RedirectSettings,
        server_settings: ServerSettings | None = None,
        provider: RuleConfigProvider | None = None,
    ) -> None:
        self.settings = settings
        self.server_settings = server_settings or ServerSettings()
        self.provider = provider or RuleConfigProvider.from_settings(settings)
        self.pipeline = RequestPipeline(PreprocessOptions.from_settings(settings), self.provider)
        self._auth: BearerAuthenticator = create_bearer_authenticator(settings.admin_key)
        self._runner: web.AppRunner | None = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{path:.*}", self._handle_request)
        return app

    async def start(self) -> None:
        if not self._auth.enabled:
            logger.warning("ADMIN_KEY not set, admin endpoints are open to everyone")

        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.server_settings.host, self.server_settings.port)
        await site.start()
        logger.info(
            "Redirect server started",
            host=self.server_settings.host,
            port=self.server_settings.port,
            rules_source=self.provider.source_name,
            force_https=self.settings.force_https,
            www_redirect=self.settings.www_redirect,
        )

    async def stop(self) -> None:
        logger.info("Stopping redirect server...")
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Redirect server stopped")

    def _check_admin_auth(self, request: web.Request) -> web.Response | None:
        """Returns an error response, or None if the caller may proceed."""
        result = self._auth.check(request.headers.get(AUTH_HEADER))
        if result.allowed:
            return None
        logger.warning("Rejected admin request", path=request.path, reason=result.reason)
        return web.Response(
            text="Unauthorized",
            status=401,
            headers={AUTH_CHALLENGE: 'Bearer realm="edgeredirect admin"'},
        )

    async def _handle_request(self, request: web.Request) -> web.Response:
        info = request_info_from_aiohttp(request, self.settings.trust_forwarded_headers)

        with RESOLVE_DURATION.time():
            outcome = await self.pipeline.run(info)

        if isinstance(outcome, Redirect):
            REDIRECTS.labels(reason=outcome.reason, status=str(outcome.status)).inc()
            logger.info(
                "Redirecting",
                reason=outcome.reason,
                host=info.hostname,
                path=info.path,
                location=outcome.url,
                status=outcome.status,
            )
            return web.Response(status=outcome.status, headers={"Location": outcome.url})

        if info.path == HEALTH_PATH:
            return self._handle_health()
        if info.path == ADMIN_RULES_PATH and request.method == "GET":
            return self._handle_admin_rules(request)
        if info.path == METRICS_PATH and request.method == "GET":
            return self._handle_metrics(request)
        return self._handle_not_found(info)

    def _handle_health(self) -> web.Response:
        UNMATCHED_REQUESTS.labels(response="health").inc()
        return web.json_response(
            {
                "status": "ok",
                "timestamp": datetime.now(UTC).isoformat(),
                "service": SERVICE_NAME,
                "rules_source": self.provider.source_name,
            }
        )

    def _handle_admin_rules(self, request: web.Request) -> web.Response:
        if auth_error := self._check_admin_auth(request):
            return auth_error
        UNMATCHED_REQUESTS.labels(response="admin").inc()
        return web.json_response(
            rules_to_list(self.provider.current_rules()),
            dumps=_json_dumps_pretty,
        )

    def _handle_metrics(self, request: web.Request) -> web.Response:
        if auth_error := self._check_admin_auth(request):
            return auth_error
        return web.Response(
            body=generate_metrics(),
            headers={"Content-Type": get_content_type()},
        )

    def _handle_not_found(self, info: RequestInfo) -> web.Response:
        UNMATCHED_REQUESTS.labels(response="not_found").inc()
        logger.debug("No redirect rule matched", host=info.hostname, path=info.path)
        return web.Response(
            text=NOT_FOUND_PAGE.format(path=html.escape(info.path)),
            status=404,
            content_type="text/html",
        )
