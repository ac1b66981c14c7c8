"""Path pattern matching for redirect rules.

Two pattern flavours share one syntax:

    - Literal templates: "/blog/*" where each * captures greedily (.*)
    - Regular expressions: anything containing both "(" and ")", used as-is

Both are anchored to the whole path. Literal templates are deliberately
NOT escaped: "." or "+" in a literal path keep their regex meaning, so
"/file.html" also matches "/fileXhtml". Existing rule sets rely on this.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from edgeredirect.core.exceptions import PatternCompileError
from edgeredirect.rules.models import PatternKind, detect_pattern_kind


@dataclass(frozen=True)
class MatchResult:
    """Captured groups from a successful match, in group order."""

    captures: tuple[str, ...] = ()


def pattern_to_regex(pattern: str, kind: PatternKind | None = None) -> str:
    """Translate a rule pattern into regex source.

    Examples:
        >>> pattern_to_regex("/blog/*")
        '/blog/(.*)'
        >>> pattern_to_regex("/product/(.*)")
        '/product/(.*)'
    """
    if kind is None:
        kind = detect_pattern_kind(pattern)
    if kind is PatternKind.REGEX:
        return pattern
    return pattern.replace("*", "(.*)")


@lru_cache(maxsize=1000)
def compile_pattern(pattern: str, case_sensitive: bool = True) -> re.Pattern[str]:
    """Compile a rule pattern (cached).

    Raises:
        PatternCompileError: If the resulting expression is not valid.
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern_to_regex(pattern), flags)
    except re.error as e:
        raise PatternCompileError(pattern, str(e)) from e


def match_path(path: str, pattern: str, case_sensitive: bool = True) -> MatchResult | None:
    """Match a request path against a rule pattern.

    Args:
        path: Request path, e.g. "/blog/my-post".
        pattern: Rule ``from`` pattern.
        case_sensitive: False to ignore letter case.

    Returns:
        MatchResult with the captured groups, or None if the whole path
        does not match.

    Raises:
        PatternCompileError: If the pattern is not a valid expression.

    Examples:
        >>> match_path("/blog/my-post", "/blog/*")
        MatchResult(captures=('my-post',))
        >>> match_path("/blog", "/blog/*") is None
        True
    """
    regex = compile_pattern(pattern, case_sensitive)
    match = regex.fullmatch(path)
    if match is None:
        return None
    # Optional groups that did not take part capture as ""
    return MatchResult(captures=tuple(group or "" for group in match.groups()))
