"""Firebase Auth token verifier adapter."""

from __future__ import annotations

from typing import Any

from openvideo.adapters.auth.base import AuthVerificationError, TokenVerifier, principal_from_username
from openvideo.schemas.auth import AuthPrincipal

# First present claim names the uploader.
_USERNAME_CLAIMS = ("username", "uid", "sub")


def _decode_id_token(token: str) -> dict[str, Any]:
    try:
        import firebase_admin
        from firebase_admin import auth as firebase_auth
    except ImportError as exc:  # pragma: no cover - depends on optional package
        raise AuthVerificationError("Firebase auth verifier is unavailable") from exc

    if not firebase_admin._apps:
        firebase_admin.initialize_app()

    try:
        return firebase_auth.verify_id_token(token, check_revoked=True)
    except Exception as exc:  # pragma: no cover - provider exception surface
        raise AuthVerificationError("Invalid bearer token") from exc


class FirebaseTokenVerifier(TokenVerifier):
    """Verifies Firebase ID tokens and maps them onto an uploader username."""

    def __init__(self, project_id: str | None, audience: str | None) -> None:
        self._project_id = project_id
        self._audience = audience

    def verify_token(self, token: str) -> AuthPrincipal:
        claims = _decode_id_token(token)

        if self._audience and claims.get("aud") != self._audience:
            raise AuthVerificationError("Invalid bearer token audience")
        if self._project_id and not str(claims.get("iss", "")).endswith(f"/{self._project_id}"):
            raise AuthVerificationError("Invalid bearer token issuer")

        return principal_from_username(next((claims[name] for name in _USERNAME_CLAIMS if claims.get(name)), None))


__all__ = ["FirebaseTokenVerifier"]
