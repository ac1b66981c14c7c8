"""Redirect rule models.

A rule set is a JSON array of objects:

    [
      {"from": "/old-page", "to": "/new-page", "status": 301},
      {"from": "/blog/*", "to": "/articles/$1"},
      {"domain": "book.example.com", "from": "/", "to": "https://cal.example.com",
       "preserveQuery": false}
    ]

Keys are camelCase on the wire; rules are frozen once parsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from edgeredirect.core.exceptions import RuleParseError

DEFAULT_STATUS = 301
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class PatternKind(Enum):
    """How a rule's ``from`` pattern is interpreted."""

    LITERAL = "literal"
    """Literal path where each ``*`` is a greedy capture."""

    REGEX = "regex"
    """Raw regular expression supplied by the rule author."""


def detect_pattern_kind(pattern: str) -> PatternKind:
    """Classify a pattern: anything containing both ``(`` and ``)`` is a regex.

    Examples:
        >>> detect_pattern_kind("/product/(.*)")
        <PatternKind.REGEX: 'regex'>
        >>> detect_pattern_kind("/blog/*")
        <PatternKind.LITERAL: 'literal'>
    """
    if "(" in pattern and ")" in pattern:
        return PatternKind.REGEX
    return PatternKind.LITERAL


@dataclass(frozen=True)
class RedirectRule:
    """One configured redirect.

    Example:
        >>> rule = RedirectRule(source="/blog/*", target="/articles/$1")
        >>> rule.kind
        <PatternKind.LITERAL: 'literal'>
    """

    source: str
    """The ``from`` pattern."""

    target: str
    """The ``to`` destination, may contain $1, $2, ... placeholders."""

    status: int | None = None
    """Redirect status code (301, 302, 303, 307 or 308); None means 301."""

    preserve_query: bool | None = None
    """Copy the request query string to the destination; None means True."""

    case_sensitive: bool | None = None
    """Case-sensitive path matching; None means True."""

    domain: str | None = None
    """Only apply when the request hostname equals this value."""

    kind: PatternKind = field(init=False)

    def __post_init__(self) -> None:
        if self.status is not None and self.status not in REDIRECT_STATUSES:
            raise RuleParseError(
                f"rule {self.source!r}: status {self.status} is not a redirect status "
                f"(expected one of {sorted(REDIRECT_STATUSES)})"
            )
        object.__setattr__(self, "kind", detect_pattern_kind(self.source))

    @property
    def effective_status(self) -> int:
        return self.status if self.status is not None else DEFAULT_STATUS

    @property
    def keeps_query(self) -> bool:
        return self.preserve_query is not False

    @property
    def matches_case(self) -> bool:
        return self.case_sensitive is not False

    def applies_to_host(self, hostname: str) -> bool:
        """Check domain scoping (exact string equality)."""
        return not self.domain or self.domain == hostname

    def to_dict(self) -> dict[str, Any]:
        """Convert rule to its wire format, omitting unset optional keys."""
        data: dict[str, Any] = {}
        if self.domain is not None:
            data["domain"] = self.domain
        data["from"] = self.source
        data["to"] = self.target
        if self.status is not None:
            data["status"] = self.status
        if self.preserve_query is not None:
            data["preserveQuery"] = self.preserve_query
        if self.case_sensitive is not None:
            data["caseSensitive"] = self.case_sensitive
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RedirectRule:
        """Create a rule from its wire format.

        Raises:
            RuleParseError: If required keys are missing or fields have the wrong type.
        """
        if not isinstance(data, dict):
            raise RuleParseError(f"rule must be an object, got {type(data).__name__}")

        source = data.get("from")
        target = data.get("to")
        if not isinstance(source, str):
            raise RuleParseError("rule missing required string field 'from'")
        if not isinstance(target, str):
            raise RuleParseError(f"rule {source!r} missing required string field 'to'")

        status = data.get("status")
        # bool is an int subclass; reject it explicitly
        if status is not None and (isinstance(status, bool) or not isinstance(status, int)):
            raise RuleParseError(f"rule {source!r}: 'status' must be an integer")

        return cls(
            source=source,
            target=target,
            status=status,
            preserve_query=_optional_bool(data, "preserveQuery", source),
            case_sensitive=_optional_bool(data, "caseSensitive", source),
            domain=_optional_str(data, "domain", source),
        )


RuleSet = tuple[RedirectRule, ...]
"""Ordered rules; the first matching rule wins."""


def _optional_bool(data: dict[str, Any], key: str, source: str) -> bool | None:
    value = data.get(key)
    if value is not None and not isinstance(value, bool):
        raise RuleParseError(f"rule {source!r}: {key!r} must be a boolean")
    return value


def _optional_str(data: dict[str, Any], key: str, source: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise RuleParseError(f"rule {source!r}: {key!r} must be a string")
    # An empty domain scopes nothing, same as an absent one
    return value or None


def parse_rule_set(payload: Any) -> RuleSet:
    """Parse a decoded JSON payload into a rule set.

    The payload must be a non-empty list of rule objects. Any invalid entry
    rejects the whole payload so a rule set is never partially applied.

    Raises:
        RuleParseError: If the payload is not a valid, non-empty rule list.
    """
    if not isinstance(payload, list):
        raise RuleParseError(f"rule set must be a JSON array, got {type(payload).__name__}")
    if not payload:
        raise RuleParseError("rule set is empty")
    return tuple(RedirectRule.from_dict(item) for item in payload)


def rules_to_list(rules: RuleSet) -> list[dict[str, Any]]:
    """Serialize a rule set back to its wire format."""
    return [rule.to_dict() for rule in rules]
