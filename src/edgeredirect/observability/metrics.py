from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

REDIRECTS = Counter(
    "edgeredirect_redirects_total",
    "Redirect responses issued",
    ["reason", "status"],  # reason: https/www/rule
)

UNMATCHED_REQUESTS = Counter(
    "edgeredirect_unmatched_requests_total",
    "Requests that matched no redirect",
    ["response"],  # response: health/admin/not_found
)

RULE_FETCHES = Counter(
    "edgeredirect_rule_fetches_total",
    "External rule source fetch attempts",
    ["result"],  # result: success/failure
)

ACTIVE_RULES = Gauge(
    "edgeredirect_cached_rules",
    "Rules in the most recently fetched rule set",
)

RESOLVE_DURATION = Histogram(
    "edgeredirect_resolve_duration_seconds",
    "Time spent deciding a request, including rule fetches",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0),
)


def generate_metrics() -> bytes:
    return generate_latest()


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST
