"""Uploader identity verification interfaces."""

from abc import ABC, abstractmethod
from typing import Any

from openvideo.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""


def principal_from_username(raw_username: Any) -> AuthPrincipal:
    """Build the uploader principal, rejecting blank usernames."""
    username = str(raw_username or "").strip()
    if not username:
        raise AuthVerificationError("Bearer token missing username")
    return AuthPrincipal(username=username)


class TokenVerifier(ABC):
    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify a bearer token and return the uploader it identifies."""


__all__ = ["AuthVerificationError", "TokenVerifier", "principal_from_username"]
