"""Edgeredirect - rule-driven HTTP redirect service."""

__version__ = "0.1.0"

from edgeredirect.pipeline import PassThrough, PreprocessOptions, Redirect, RequestPipeline
from edgeredirect.rules import (
    DEFAULT_REDIRECTS,
    RedirectDecision,
    RedirectRule,
    RequestInfo,
    RuleConfigProvider,
    create_request_info,
    resolve,
)

__all__ = [
    "__version__",
    # Pipeline
    "RequestPipeline",
    "PreprocessOptions",
    "Redirect",
    "PassThrough",
    # Rules
    "RedirectRule",
    "RedirectDecision",
    "RequestInfo",
    "RuleConfigProvider",
    "DEFAULT_REDIRECTS",
    "create_request_info",
    "resolve",
]
