"""edgeredirect rule engine.

Matches incoming requests against an ordered list of redirect rules.

Features:
- Literal paths with * wildcards and raw regex patterns
- Positional capture substitution ($1, $2, ...) in destinations
- Per-rule domain scoping, case sensitivity, query preservation and status
- First match wins, in source order
- TTL-cached rule loading from HTTP or file sources with fallback to
  compiled-in defaults

Usage:
    from edgeredirect.rules import RuleConfigProvider, create_request_info, resolve

    provider = RuleConfigProvider()
    rules = await provider.get_active_rules()

    request = create_request_info("https://example.com/blog/my-post")
    decision = resolve(request, rules)
    if decision:
        print(f"{decision.status} -> {decision.url}")
"""

from edgeredirect.rules.defaults import DEFAULT_REDIRECTS
from edgeredirect.rules.matcher import MatchResult, compile_pattern, match_path, pattern_to_regex
from edgeredirect.rules.models import (
    DEFAULT_STATUS,
    REDIRECT_STATUSES,
    PatternKind,
    RedirectRule,
    RuleSet,
    detect_pattern_kind,
    parse_rule_set,
    rules_to_list,
)
from edgeredirect.rules.provider import CacheSnapshot, RuleCache, RuleConfigProvider
from edgeredirect.rules.resolver import (
    RedirectDecision,
    RequestInfo,
    apply_rule,
    build_destination,
    create_request_info,
    resolve,
    substitute_captures,
)
from edgeredirect.rules.sources import (
    FileRuleSource,
    HttpRuleSource,
    RuleSource,
    build_rule_source,
)

__all__ = [
    # Models
    "RedirectRule",
    "RuleSet",
    "PatternKind",
    "DEFAULT_STATUS",
    "REDIRECT_STATUSES",
    "DEFAULT_REDIRECTS",
    "detect_pattern_kind",
    "parse_rule_set",
    "rules_to_list",
    # Matching
    "MatchResult",
    "compile_pattern",
    "match_path",
    "pattern_to_regex",
    # Resolution
    "RequestInfo",
    "RedirectDecision",
    "apply_rule",
    "build_destination",
    "create_request_info",
    "resolve",
    "substitute_captures",
    # Rule loading
    "RuleSource",
    "HttpRuleSource",
    "FileRuleSource",
    "build_rule_source",
    "RuleCache",
    "CacheSnapshot",
    "RuleConfigProvider",
]
