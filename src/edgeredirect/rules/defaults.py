"""Compiled-in fallback rules.

Used when no external rule set has ever been loaded successfully.
These are never written into the rule cache.
"""

from __future__ import annotations

from edgeredirect.rules.models import RedirectRule, RuleSet

CALENDAR_URL = "https://calendar.app.google/6TBBkNxv1fH7etaj6"
WHATSAPP_URL = "https://wa.me/qr/PVZTFJDU3YOPE1"

DEFAULT_REDIRECTS: RuleSet = (
    RedirectRule(source="/old-page", target="/new-page", status=301, preserve_query=True),
    RedirectRule(source="/blog/*", target="/articles/$1", status=301, preserve_query=True),
    RedirectRule(source="/product/(.*)", target="/products/$1", status=301, preserve_query=True),
    # Domain-wide redirects
    RedirectRule(
        domain="book.carlosguerrero.com",
        source="/",
        target=CALENDAR_URL,
        status=301,
        preserve_query=False,
    ),
    RedirectRule(
        domain="calendar.carlosguerrero.com",
        source="/",
        target=CALENDAR_URL,
        status=301,
        preserve_query=False,
    ),
    RedirectRule(
        domain="carlosguerrero.com",
        source="/calendar",
        target=CALENDAR_URL,
        status=301,
        preserve_query=False,
    ),
    RedirectRule(
        domain="whatsapp.carlosguerrero.com",
        source="/",
        target=WHATSAPP_URL,
        status=301,
        preserve_query=False,
    ),
    RedirectRule(
        domain="carlosguerrero.com",
        source="/whatsapp",
        target=WHATSAPP_URL,
        status=301,
        preserve_query=False,
    ),
    RedirectRule(
        domain="carlosguerrero.com",
        source="/linkedin",
        target="https://www.linkedin.com/in/carlosguerrero-com/",
        status=301,
        preserve_query=False,
    ),
    # Main domain root goes to the CV subdomain
    RedirectRule(
        domain="carlosguerrero.com",
        source="/",
        target="https://cv.carlosguerrero.com",
        status=301,
        preserve_query=False,
    ),
)
