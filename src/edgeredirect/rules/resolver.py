"""Redirect resolution engine.

Evaluates rules in source order and turns the first match into a
destination URL and status code.

Example:
    request = create_request_info("https://example.com/blog/my-post?ref=x")
    decision = resolve(request, DEFAULT_REDIRECTS)
    if decision:
        print(decision.url, decision.status)
        # https://example.com/articles/my-post?ref=x 301
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlsplit, urlunsplit

import structlog

from edgeredirect.core.exceptions import PatternCompileError, UrlResolutionError
from edgeredirect.rules.matcher import MatchResult, match_path
from edgeredirect.rules.models import RedirectRule, RuleSet

logger = structlog.get_logger()

_PLACEHOLDER = re.compile(r"\$(\d+)")

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class RequestInfo:
    """The parts of an incoming request the redirect engine looks at."""

    scheme: str
    hostname: str
    path: str = "/"
    query: str = ""
    """Raw query string without the leading '?'."""

    port: int | None = None
    method: str = "GET"

    @property
    def netloc(self) -> str:
        """Host with the port, unless it is the scheme's default port.

        IPv6 literals get their brackets back.
        """
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        if self.port is None or _DEFAULT_PORTS.get(self.scheme) == self.port:
            return host
        return f"{host}:{self.port}"

    @property
    def origin(self) -> str:
        return f"{self.scheme}://{self.netloc}"

    @property
    def url(self) -> str:
        return urlunsplit((self.scheme, self.netloc, self.path or "/", self.query, ""))


@dataclass(frozen=True)
class RedirectDecision:
    """Outcome of a successful rule match."""

    url: str
    status: int
    rule: RedirectRule = field(compare=False)


def substitute_captures(template: str, match: MatchResult) -> str:
    """Replace $N placeholders with captured groups.

    Missing captures (including $0) become the empty string.

    Examples:
        >>> substitute_captures("/articles/$1", MatchResult(("my-post",)))
        '/articles/my-post'
        >>> substitute_captures("/a/$2", MatchResult(("x",)))
        '/a/'
    """

    def _replace(m: re.Match[str]) -> str:
        index = int(m.group(1))
        if 1 <= index <= len(match.captures):
            return match.captures[index - 1]
        return ""

    return _PLACEHOLDER.sub(_replace, template)


def build_destination(target: str, request: RequestInfo, preserve_query: bool) -> str:
    """Turn a substituted ``to`` value into the final Location URL.

    A target with a scheme is absolute and used as-is, so ``mailto:`` and
    ``tel:`` destinations work. Anything else is resolved against the
    request origin. With preserve_query the request query string replaces
    whatever query the target carried.

    Raises:
        UrlResolutionError: If the target cannot be parsed as a URL, or is
            an http(s) URL without a host.
    """
    try:
        parts = urlsplit(target)
        if not parts.scheme:
            parts = urlsplit(urljoin(request.origin + "/", target))
    except ValueError as e:
        raise UrlResolutionError(f"Cannot resolve redirect target {target!r}: {e}") from e

    if parts.scheme in _DEFAULT_PORTS and not parts.netloc:
        raise UrlResolutionError(f"Redirect target {target!r} has no host")

    if parts.netloc and not parts.path:
        parts = parts._replace(path="/")
    if preserve_query and request.query:
        parts = parts._replace(query=request.query)
    return urlunsplit(parts)


def apply_rule(rule: RedirectRule, request: RequestInfo) -> RedirectDecision | None:
    """Evaluate a single rule against a request.

    Returns:
        RedirectDecision if the rule matches, None otherwise.

    Raises:
        PatternCompileError: If the rule's pattern is invalid.
        UrlResolutionError: If the destination cannot be built.
    """
    if not rule.applies_to_host(request.hostname):
        return None

    match = match_path(request.path, rule.source, rule.matches_case)
    if match is None:
        return None

    target = substitute_captures(rule.target, match)
    url = build_destination(target, request, rule.keeps_query)
    return RedirectDecision(url=url, status=rule.effective_status, rule=rule)


def resolve(request: RequestInfo, rules: RuleSet) -> RedirectDecision | None:
    """Find the first rule that matches the request.

    A rule with a broken pattern or destination is skipped, so one bad
    rule never stops the rest of the set from being evaluated.

    Returns:
        RedirectDecision for the first matching rule, None if nothing matched.
    """
    for position, rule in enumerate(rules):
        try:
            decision = apply_rule(rule, request)
        except (PatternCompileError, UrlResolutionError) as e:
            logger.warning(
                "Skipping invalid redirect rule",
                position=position,
                source=rule.source,
                error=e.message,
            )
            continue
        if decision is not None:
            logger.debug(
                "Redirect rule matched",
                position=position,
                source=rule.source,
                location=decision.url,
                status=decision.status,
            )
            return decision
    return None


def create_request_info(
    url: str,
    method: str = "GET",
) -> RequestInfo:
    """Helper to build a RequestInfo from a full URL.

    Args:
        url: Absolute request URL, e.g. "http://example.com/test?a=1".
        method: HTTP method (default: GET).

    Returns:
        RequestInfo for use with resolve() or RequestPipeline.run().

    Raises:
        ValueError: If the URL has no scheme or host.
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {url!r}")
    return RequestInfo(
        scheme=parts.scheme.lower(),
        hostname=parts.hostname,
        path=parts.path or "/",
        query=parts.query,
        port=parts.port,
        method=method.upper(),
    )
