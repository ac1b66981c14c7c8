"""Active rule set provider with TTL caching and fallback.

Resolution order for the active rules:

    1. Cached rules fetched less than ``ttl`` seconds ago
    2. A fresh fetch from the configured source (replaces the cache)
    3. The last cached rules, however old
    4. The compiled-in defaults (never cached)

Concurrent refreshes are not serialised; two requests may both fetch.
The cache itself is a single immutable snapshot swapped under a lock, so a
reader always sees one complete rule set with its timestamp.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

import structlog

from edgeredirect.core.config import DEFAULT_CACHE_TTL, RedirectSettings
from edgeredirect.core.exceptions import ConfigFetchError
from edgeredirect.observability.metrics import ACTIVE_RULES, RULE_FETCHES
from edgeredirect.rules.defaults import DEFAULT_REDIRECTS
from edgeredirect.rules.models import RuleSet, parse_rule_set
from edgeredirect.rules.sources import RuleSource, build_rule_source

logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheSnapshot:
    """A fetched rule set and when it was fetched (epoch seconds)."""

    rules: RuleSet
    fetched_at: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.fetched_at < ttl


class RuleCache:
    """Holds at most one CacheSnapshot. Empty at construction."""

    def __init__(self) -> None:
        self._snapshot: CacheSnapshot | None = None
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> CacheSnapshot | None:
        return self._snapshot

    def replace(self, rules: RuleSet, fetched_at: float) -> CacheSnapshot:
        snapshot = CacheSnapshot(rules=rules, fetched_at=fetched_at)
        with self._lock:
            self._snapshot = snapshot
        return snapshot


class RuleConfigProvider:
    """Supplies the active rule set for each request."""

    def __init__(
        self,
        source: RuleSource | None = None,
        ttl: float = DEFAULT_CACHE_TTL,
        defaults: RuleSet = DEFAULT_REDIRECTS,
        cache: RuleCache | None = None,
    ) -> None:
        self.source = source
        self.ttl = ttl
        self.defaults = defaults
        self.cache = cache if cache is not None else RuleCache()

    @classmethod
    def from_settings(cls, settings: RedirectSettings) -> RuleConfigProvider:
        return cls(source=build_rule_source(settings), ttl=settings.rules_cache_ttl)

    @property
    def source_name(self) -> str:
        """Label of the configured source ('http', 'file' or 'default')."""
        return self.source.name if self.source is not None else "default"

    @property
    def snapshot(self) -> CacheSnapshot | None:
        return self.cache.snapshot

    def current_rules(self) -> RuleSet:
        """Cached rules if any fetch ever succeeded, else the defaults. No I/O."""
        snapshot = self.cache.snapshot
        if snapshot is not None:
            return snapshot.rules
        return self.defaults

    async def get_active_rules(self, now: float | None = None) -> RuleSet:
        """Return the rule set to evaluate for a request.

        Args:
            now: Current time in epoch seconds (defaults to time.time()).

        Returns:
            Fresh cached rules, freshly fetched rules, stale cached rules or
            the defaults, in that order of preference. Never empty unless
            the defaults are.
        """
        if now is None:
            now = time.time()

        snapshot = self.cache.snapshot
        if snapshot is not None and snapshot.is_fresh(now, self.ttl):
            return snapshot.rules

        if self.source is None:
            return self.current_rules()

        refreshed = await self.refresh(now)
        if refreshed is not None:
            return refreshed.rules
        return self.current_rules()

    async def refresh(self, now: float | None = None) -> CacheSnapshot | None:
        """Fetch once from the source and swap the cache on success.

        Returns:
            The new snapshot, or None if there is no source or the fetch
            failed (the cache is left untouched in that case).
        """
        if self.source is None:
            return None
        if now is None:
            now = time.time()

        try:
            payload = await self.source.fetch()
            rules = parse_rule_set(payload)
        except ConfigFetchError as e:
            RULE_FETCHES.labels(result="failure").inc()
            logger.error(
                "Failed to load external rules, using cached or default rules",
                source=repr(self.source),
                error=e.message,
                code=e.code,
                cached=self.cache.snapshot is not None,
            )
            return None

        snapshot = self.cache.replace(rules, now)
        RULE_FETCHES.labels(result="success").inc()
        ACTIVE_RULES.set(len(rules))
        logger.info("Loaded redirect rules from external config", count=len(rules))
        return snapshot
