"""Admin endpoint authentication."""

from edgeredirect.security.bearer import (
    AUTH_CHALLENGE,
    AUTH_HEADER,
    AuthResult,
    BearerAuthenticator,
    create_bearer_authenticator,
)

__all__ = [
    "AUTH_HEADER",
    "AUTH_CHALLENGE",
    "AuthResult",
    "BearerAuthenticator",
    "create_bearer_authenticator",
]
