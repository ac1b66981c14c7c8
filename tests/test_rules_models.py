"""Tests for redirect rule models and rule set parsing."""

from __future__ import annotations

import dataclasses

import pytest

from edgeredirect.core.exceptions import ConfigFetchError, RuleParseError
from edgeredirect.rules.defaults import DEFAULT_REDIRECTS
from edgeredirect.rules.models import (
    DEFAULT_STATUS,
    PatternKind,
    RedirectRule,
    detect_pattern_kind,
    parse_rule_set,
    rules_to_list,
)


class TestPatternKind:
    """Tests for pattern kind detection."""

    def test_literal(self):
        assert detect_pattern_kind("/old-page") is PatternKind.LITERAL
        assert detect_pattern_kind("/blog/*") is PatternKind.LITERAL

    def test_regex_needs_both_parentheses(self):
        assert detect_pattern_kind("/product/(.*)") is PatternKind.REGEX
        assert detect_pattern_kind("/a(") is PatternKind.LITERAL
        assert detect_pattern_kind("/a)") is PatternKind.LITERAL

    def test_kind_fixed_at_construction(self):
        """Rule kind is computed once from the source pattern."""
        assert RedirectRule(source="/x/(.*)", target="/y").kind is PatternKind.REGEX
        assert RedirectRule(source="/x/*", target="/y").kind is PatternKind.LITERAL


class TestRedirectRule:
    """Tests for RedirectRule defaults and behaviour."""

    def test_defaults(self):
        """Unset optional fields resolve to documented defaults."""
        rule = RedirectRule(source="/a", target="/b")
        assert rule.effective_status == DEFAULT_STATUS == 301
        assert rule.keeps_query is True
        assert rule.matches_case is True
        assert rule.domain is None

    def test_explicit_values(self):
        rule = RedirectRule(
            source="/a",
            target="/b",
            status=302,
            preserve_query=False,
            case_sensitive=False,
        )
        assert rule.effective_status == 302
        assert rule.keeps_query is False
        assert rule.matches_case is False

    @pytest.mark.parametrize("status", [301, 302, 303, 307, 308])
    def test_redirect_statuses_accepted(self, status):
        assert RedirectRule(source="/a", target="/b", status=status).effective_status == status

    @pytest.mark.parametrize("status", [0, -1, 42, 200, 304, 404, 1000])
    def test_non_redirect_status_rejected(self, status):
        """Only statuses a client can follow as a redirect are allowed."""
        with pytest.raises(RuleParseError):
            RedirectRule(source="/a", target="/b", status=status)

    def test_frozen(self):
        rule = RedirectRule(source="/a", target="/b")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.target = "/c"  # type: ignore[misc]

    def test_domain_scoping(self):
        """Domain comparison is exact string equality."""
        rule = RedirectRule(source="/", target="/x", domain="book.example.com")
        assert rule.applies_to_host("book.example.com") is True
        assert rule.applies_to_host("example.com") is False
        assert rule.applies_to_host("BOOK.example.com") is False

    def test_no_domain_applies_everywhere(self):
        rule = RedirectRule(source="/", target="/x")
        assert rule.applies_to_host("anything.test") is True


class TestWireFormat:
    """Tests for to_dict / from_dict."""

    def test_from_dict_full(self):
        rule = RedirectRule.from_dict(
            {
                "domain": "book.example.com",
                "from": "/",
                "to": "https://cal.example.com",
                "status": 302,
                "preserveQuery": False,
                "caseSensitive": False,
            }
        )
        assert rule.domain == "book.example.com"
        assert rule.source == "/"
        assert rule.target == "https://cal.example.com"
        assert rule.status == 302
        assert rule.preserve_query is False
        assert rule.case_sensitive is False

    def test_from_dict_minimal(self):
        rule = RedirectRule.from_dict({"from": "/a", "to": "/b"})
        assert rule.status is None
        assert rule.preserve_query is None

    def test_to_dict_omits_unset(self):
        """Only keys that were set appear on the wire."""
        assert RedirectRule(source="/a", target="/b").to_dict() == {"from": "/a", "to": "/b"}

    def test_to_dict_camel_case(self):
        data = RedirectRule(
            source="/a",
            target="/b",
            status=307,
            preserve_query=False,
            case_sensitive=True,
            domain="x.test",
        ).to_dict()
        assert data == {
            "domain": "x.test",
            "from": "/a",
            "to": "/b",
            "status": 307,
            "preserveQuery": False,
            "caseSensitive": True,
        }

    def test_empty_domain_is_unscoped(self):
        rule = RedirectRule.from_dict({"from": "/a", "to": "/b", "domain": ""})
        assert rule.domain is None

    @pytest.mark.parametrize(
        "data",
        [
            {"to": "/b"},
            {"from": "/a"},
            {"from": 1, "to": "/b"},
            {"from": "/a", "to": "/b", "status": "301"},
            {"from": "/a", "to": "/b", "status": True},
            {"from": "/a", "to": "/b", "preserveQuery": "no"},
            {"from": "/a", "to": "/b", "caseSensitive": 0},
            {"from": "/a", "to": "/b", "domain": 5},
        ],
    )
    def test_from_dict_rejects_bad_fields(self, data):
        with pytest.raises(RuleParseError):
            RedirectRule.from_dict(data)

    @pytest.mark.parametrize("status", [42, 1000, -1, 0])
    def test_from_dict_rejects_non_redirect_status(self, status):
        with pytest.raises(RuleParseError):
            RedirectRule.from_dict({"from": "/x", "to": "/y", "status": status})

    def test_bad_status_rejects_whole_payload(self):
        with pytest.raises(RuleParseError):
            parse_rule_set([{"from": "/ok", "to": "/fine"}, {"from": "/x", "to": "/y", "status": 42}])

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(RuleParseError):
            RedirectRule.from_dict(["/a", "/b"])  # type: ignore[arg-type]


class TestParseRuleSet:
    """Tests for parse_rule_set."""

    def test_parses_in_order(self):
        rules = parse_rule_set(
            [
                {"from": "/one", "to": "/1"},
                {"from": "/two", "to": "/2"},
            ]
        )
        assert [r.source for r in rules] == ["/one", "/two"]
        assert isinstance(rules, tuple)

    def test_rejects_non_list(self):
        with pytest.raises(RuleParseError):
            parse_rule_set({"from": "/a", "to": "/b"})

    def test_rejects_empty_list(self):
        with pytest.raises(RuleParseError):
            parse_rule_set([])

    def test_one_bad_entry_rejects_all(self):
        """No partially applied rule sets."""
        with pytest.raises(RuleParseError):
            parse_rule_set([{"from": "/ok", "to": "/fine"}, {"from": "/broken"}])

    def test_parse_error_is_fetch_error(self):
        """Providers catch RuleParseError as a failed fetch."""
        assert issubclass(RuleParseError, ConfigFetchError)

    def test_rules_to_list_roundtrip_defaults(self):
        assert parse_rule_set(rules_to_list(DEFAULT_REDIRECTS)) == DEFAULT_REDIRECTS


class TestDefaultRedirects:
    """Tests for the compiled-in rule set."""

    def test_not_empty(self):
        assert len(DEFAULT_REDIRECTS) == 10

    def test_domain_root_rule_is_last(self):
        """The catch-all root rule must come after more specific ones."""
        last = DEFAULT_REDIRECTS[-1]
        assert last.domain == "carlosguerrero.com"
        assert last.source == "/"
