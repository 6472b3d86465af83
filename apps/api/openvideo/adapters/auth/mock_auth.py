"""Mock auth verifier for local development and tests."""

from openvideo.adapters.auth.base import AuthVerificationError, TokenVerifier, principal_from_username
from openvideo.schemas.auth import AuthPrincipal


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic ``test:<username>`` tokens only."""

    def verify_token(self, token: str) -> AuthPrincipal:
        scheme, _, username = token.partition(":")
        if scheme != "test" or ":" in username:
            raise AuthVerificationError("Invalid bearer token")
        return principal_from_username(username)


__all__ = ["MockTokenVerifier"]
