"""Authenticity checks for inbound storage and transcoder notifications."""

from __future__ import annotations

import base64
import binascii
import logging
import re

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from openvideo.errors import SignatureError, UpstreamError
from openvideo.notifications.cert_cache import CertificateCache
from openvideo.schemas.notification import InboundNotification

logger = logging.getLogger(__name__)

SUPPORTED_SIGNATURE_VERSION = "1"

CERT_URL_PATTERN = re.compile(
    r"https://sns\.[a-zA-Z0-9-]{3,}\.amazonaws\.com(\.cn)?/SimpleNotificationService-[a-zA-Z0-9]{32}\.pem"
)

_CONFIRMATION_FIELDS = ("Message", "MessageId", "SubscribeURL", "Timestamp", "Token", "TopicArn", "Type")

# Wire fields covered by the signature, in signing order.
SIGNED_FIELDS_BY_TYPE: dict[str, tuple[str, ...]] = {
    "Notification": ("Message", "MessageId", "Subject", "Timestamp", "TopicArn", "Type"),
    "SubscriptionConfirmation": _CONFIRMATION_FIELDS,
    "UnsubscribeConfirmation": _CONFIRMATION_FIELDS,
}


def build_signable_string(notification: InboundNotification) -> str:
    fields = notification.wire_fields()
    return "".join(
        f"{name}\n{fields[name]}\n"
        for name in SIGNED_FIELDS_BY_TYPE.get(notification.type, ())
        if name in fields
    )


def _signature_matches(certificate_pem: bytes, signature_b64: str, signable: str) -> bool:
    try:
        signature = base64.b64decode(signature_b64, validate=True)
        public_key = x509.load_pem_x509_certificate(certificate_pem).public_key()
        public_key.verify(signature, signable.encode("utf-8"), padding.PKCS1v15(), hashes.SHA1())
    except (InvalidSignature, binascii.Error, ValueError, TypeError) as exc:
        logger.info("notification.signature_mismatch reason=%s", type(exc).__name__)
        return False
    return True


class NotificationVerifier:
    """Decides whether a parsed notification may be trusted.

    ``verify`` raises ``SignatureError`` only for envelopes missing the fields
    needed to attempt verification; every other failure returns ``False``.
    """

    def __init__(self, cert_cache: CertificateCache, *, cert_url_pattern: re.Pattern[str] = CERT_URL_PATTERN) -> None:
        self._cert_cache = cert_cache
        self._cert_url_pattern = cert_url_pattern

    async def verify(self, notification: InboundNotification) -> bool:
        required = {
            "Type": notification.type,
            "SignatureVersion": notification.signature_version,
            "SigningCertURL": notification.signing_cert_url,
            "Signature": notification.signature,
        }
        missing = sorted(name for name, value in required.items() if not value)
        if missing:
            logger.warning("notification.malformed type=%s missing_fields=%s", notification.type, ",".join(missing))
            raise SignatureError(
                "Notification is missing signature fields",
                details={"missing_fields": missing},
            )

        if notification.signature_version != SUPPORTED_SIGNATURE_VERSION:
            logger.warning(
                "notification.rejected reason=unsupported_signature_version signature_version=%s",
                notification.signature_version,
            )
            return False

        if not self._cert_url_pattern.fullmatch(notification.signing_cert_url):
            logger.warning(
                "notification.rejected reason=untrusted_cert_url cert_url=%r",
                notification.signing_cert_url,
            )
            return False

        try:
            certificate = await self._cert_cache.get(notification.signing_cert_url)
        except UpstreamError:
            logger.warning(
                "notification.rejected reason=cert_unavailable cert_url=%s",
                notification.signing_cert_url,
            )
            return False
        except Exception:
            logger.exception(
                "notification.rejected reason=cert_fetch_error cert_url=%r",
                notification.signing_cert_url,
            )
            return False

        return _signature_matches(certificate, notification.signature, build_signable_string(notification))


__all__ = [
    "CERT_URL_PATTERN",
    "NotificationVerifier",
    "SIGNED_FIELDS_BY_TYPE",
    "SUPPORTED_SIGNATURE_VERSION",
    "build_signable_string",
]
