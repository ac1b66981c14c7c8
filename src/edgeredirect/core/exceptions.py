"""Exception hierarchy for edgeredirect.

Only ConfigError is meant to escape to the user. Everything raised while
loading or resolving rules is caught close to where it happens and turned
into a fallback (cached rules, default rules, or "no match").
"""

from __future__ import annotations


class RedirectorError(Exception):
    """Base class for all edgeredirect errors."""

    code = "redirector_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ConfigError(RedirectorError):
    """Invalid service configuration."""

    code = "config_error"


class ConfigFetchError(RedirectorError):
    """The external rule source could not deliver a usable rule set."""

    code = "config_fetch_failed"


class RuleParseError(ConfigFetchError):
    """A rule payload is not a valid list of rule objects."""

    code = "rule_parse_failed"


class PatternCompileError(RedirectorError):
    """A rule's ``from`` pattern is not a valid regular expression."""

    code = "pattern_compile_failed"

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern


class UrlResolutionError(RedirectorError):
    """A rule destination could not be turned into a URL."""

    code = "url_resolution_failed"


def format_error_for_user(error: Exception) -> str:
    """Render an exception as a one-line message for CLI output."""
    if isinstance(error, RedirectorError):
        return error.message
    return f"{type(error).__name__}: {error}"
