from __future__ import annotations

import secrets
from dataclasses import dataclass

AUTH_HEADER = "Authorization"
AUTH_CHALLENGE = "WWW-Authenticate"


@dataclass
class AuthResult:
    allowed: bool
    reason: str


class BearerAuthenticator:
    """Checks ``Authorization: Bearer <key>`` against a shared secret.

    With no secret configured every request is allowed. That keeps local
    setups simple but leaves admin endpoints open; the server warns about it
    at start-up.
    """

    def __init__(self, admin_key: str | None) -> None:
        self._admin_key = admin_key or None

    @property
    def enabled(self) -> bool:
        return self._admin_key is not None

    def check(self, auth_header: str | None) -> AuthResult:
        if self._admin_key is None:
            return AuthResult(allowed=True, reason="Admin key not configured")

        if not auth_header:
            return AuthResult(allowed=False, reason="Missing Authorization header")

        if not auth_header.startswith("Bearer "):
            return AuthResult(allowed=False, reason="Invalid authorization scheme")

        token = auth_header[7:]
        if not secrets.compare_digest(token.encode(), self._admin_key.encode()):
            return AuthResult(allowed=False, reason="Invalid credentials")

        return AuthResult(allowed=True, reason="Authenticated")


def create_bearer_authenticator(admin_key: str | None) -> BearerAuthenticator:
    return BearerAuthenticator(admin_key=admin_key)
