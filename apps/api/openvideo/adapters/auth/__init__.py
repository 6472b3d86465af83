"""Bearer token verifiers resolving the uploading user."""

from .base import AuthVerificationError, TokenVerifier, principal_from_username
from .firebase_auth import FirebaseTokenVerifier
from .mock_auth import MockTokenVerifier

__all__ = [
    "AuthVerificationError",
    "FirebaseTokenVerifier",
    "MockTokenVerifier",
    "TokenVerifier",
    "principal_from_username",
]
