"""Notification signature verification tests."""

from __future__ import annotations

import json
import re
import unittest

import httpx

from notification_signing import CERT_URL, TRANSCODE_TOPIC, NotificationSigner
from openvideo.errors import SignatureError
from openvideo.notifications.cert_cache import CertificateCache
from openvideo.notifications.verification import NotificationVerifier, build_signable_string
from openvideo.schemas.notification import (
    EnvelopeParseError,
    NotificationEnvelope,
    SubscriptionConfirmationEnvelope,
    parse_envelope,
)


class SignableStringTests(unittest.TestCase):
    def test_notification_fields_are_ordered_and_absent_subject_is_skipped(self) -> None:
        envelope = parse_envelope(
            json.dumps(
                {
                    "Type": "Notification",
                    "TopicArn": "arn:topic",
                    "Message": "hello",
                    "MessageId": "m-1",
                    "Timestamp": "2026-10-18T12:00:00.000Z",
                    "UnsubscribeURL": "https://example.invalid/unsub",
                    "Signature": "c2ln",
                }
            )
        )

        self.assertIsInstance(envelope, NotificationEnvelope)
        self.assertEqual(
            build_signable_string(envelope),
            "Message\nhello\nMessageId\nm-1\nTimestamp\n2026-10-18T12:00:00.000Z\nTopicArn\narn:topic\nType\nNotification\n",
        )

    def test_confirmation_fields_include_subscribe_url_and_token(self) -> None:
        envelope = parse_envelope(
            json.dumps(
                {
                    "Type": "SubscriptionConfirmation",
                    "TopicArn": "arn:topic",
                    "Message": "confirm",
                    "MessageId": "m-2",
                    "SubscribeURL": "https://example.invalid/sub",
                    "Token": "tok",
                    "Timestamp": "t",
                }
            )
        )

        self.assertIsInstance(envelope, SubscriptionConfirmationEnvelope)
        self.assertEqual(
            build_signable_string(envelope),
            "Message\nconfirm\nMessageId\nm-2\nSubscribeURL\nhttps://example.invalid/sub\n"
            "Timestamp\nt\nToken\ntok\nTopicArn\narn:topic\nType\nSubscriptionConfirmation\n",
        )

    def test_unknown_type_and_invalid_json_fail_to_parse(self) -> None:
        for body in ('{"Type": "Mystery"}', "not json", "[]", '{"Type": ["Notification"]}'):
            with self.subTest(body=body):
                with self.assertRaises(EnvelopeParseError):
                    parse_envelope(body)


class NotificationVerifierTests(unittest.IsolatedAsyncioTestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.signer = NotificationSigner()

    async def asyncSetUp(self) -> None:
        self.signer.cert_requests.clear()
        self.client = httpx.AsyncClient(transport=self.signer.transport())
        self.cache = CertificateCache(http_client=self.client, retry_delay_seconds=0)
        self.verifier = NotificationVerifier(self.cache)

    async def asyncTearDown(self) -> None:
        await self.client.aclose()

    def _envelope(self, payload: dict) -> NotificationEnvelope:
        return parse_envelope(json.dumps(payload))

    async def test_signed_notification_verifies(self) -> None:
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={"state": "COMPLETED"})

        self.assertTrue(await self.verifier.verify(self._envelope(payload)))
        self.assertEqual(self.signer.cert_requests, [CERT_URL])

    async def test_signed_confirmation_verifies(self) -> None:
        payload = self.signer.sign(
            {
                "Type": "SubscriptionConfirmation",
                "MessageId": "m-3",
                "TopicArn": TRANSCODE_TOPIC,
                "Message": "You have chosen to subscribe",
                "SubscribeURL": "https://sns.ap-southeast-2.amazonaws.com/?Action=ConfirmSubscription",
                "Token": "token-1",
                "Timestamp": "2026-10-18T12:00:00.000Z",
            }
        )

        self.assertTrue(await self.verifier.verify(self._envelope(payload)))

    async def test_tampered_message_fails_verification(self) -> None:
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={"state": "COMPLETED"})
        payload["Message"] = json.dumps({"state": "COMPLETED", "outputs": []})

        self.assertFalse(await self.verifier.verify(self._envelope(payload)))

    async def test_signature_from_another_key_fails_verification(self) -> None:
        other = NotificationSigner()
        payload = other.notification(topic=TRANSCODE_TOPIC, message={"state": "COMPLETED"})

        self.assertFalse(await self.verifier.verify(self._envelope(payload)))

    async def test_untrusted_cert_url_is_rejected_without_fetch(self) -> None:
        for url in (
            "https://attacker.example.com/SimpleNotificationService-0123456789abcdef0123456789abcdef.pem",
            "http://sns.ap-southeast-2.amazonaws.com/SimpleNotificationService-0123456789abcdef0123456789abcdef.pem",
            "https://sns.ap-southeast-2.amazonaws.com.evil.io/SimpleNotificationService-0123456789abcdef0123456789abcdef.pem",
            "https://sns.ap-southeast-2.amazonaws.com/other/SimpleNotificationService-0123456789abcdef0123456789abcdef.pem",
            "https://sns.ap-southeast-2.amazonaws.com/SimpleNotificationService-0123456789abcdef0123456789abcdef.pem\n",
            "https://sns.ap-southeast-2.amazonaws.com/SimpleNotificationService-0123456789abcdef0123456789abcdef.pem?x=1",
            "https://sns.ap-southeast-2.amazonaws.com/SimpleNotificationService-0123456789abcdef.pem",
            "https://sns.ap-southeast-2.amazonaws.com/OtherService-0123456789abcdef0123456789abcdef.pem",
            "https://sns.ap-southeast-2.amazonaws.com/SimpleNotificationService-0123456789abcdef0123456789abcdef.crt",
        ):
            with self.subTest(url=url):
                payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={})
                payload["SigningCertURL"] = url
                self.assertFalse(await self.verifier.verify(self._envelope(payload)))
        self.assertEqual(self.signer.cert_requests, [])

    async def test_unsupported_signature_version_is_rejected_without_fetch(self) -> None:
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={})
        payload["SignatureVersion"] = "2"

        self.assertFalse(await self.verifier.verify(self._envelope(payload)))
        self.assertEqual(self.signer.cert_requests, [])

    async def test_missing_signature_fields_raise_malformed_error(self) -> None:
        for field in ("SignatureVersion", "SigningCertURL", "Signature"):
            with self.subTest(field=field):
                payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={})
                payload.pop(field)
                with self.assertRaises(SignatureError) as context:
                    await self.verifier.verify(self._envelope(payload))
                self.assertEqual(context.exception.payload.code, "NOTIFICATION_MALFORMED")
                self.assertEqual(context.exception.payload.details, {"missing_fields": [field]})

    async def test_garbage_signature_returns_false(self) -> None:
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={})
        payload["Signature"] = "%%% not base64 %%%"

        self.assertFalse(await self.verifier.verify(self._envelope(payload)))

    async def test_certificate_fetch_failure_returns_false(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
            verifier = NotificationVerifier(CertificateCache(http_client=client, retry_delay_seconds=0))
            payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={})

            self.assertFalse(await verifier.verify(self._envelope(payload)))

    async def test_unfetchable_cert_url_returns_false(self) -> None:
        verifier = NotificationVerifier(self.cache, cert_url_pattern=re.compile(r"https://.+", re.DOTALL))
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={})
        payload["SigningCertURL"] = CERT_URL + "\n"

        self.assertFalse(await verifier.verify(self._envelope(payload)))
        self.assertEqual(self.signer.cert_requests, [])

    async def test_unexpected_certificate_lookup_error_returns_false(self) -> None:
        class _BrokenCache:
            async def get(self, url: str) -> bytes:
                raise RuntimeError("cache backend unavailable")

        verifier = NotificationVerifier(_BrokenCache())
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={})

        with self.assertLogs("openvideo.notifications.verification", level="ERROR"):
            self.assertFalse(await verifier.verify(self._envelope(payload)))

    async def test_certificate_is_reused_across_verifications(self) -> None:
        for index in range(3):
            payload = self.signer.notification(topic=TRANSCODE_TOPIC, message={"n": index}, message_id=f"m-{index}")
            self.assertTrue(await self.verifier.verify(self._envelope(payload)))

        self.assertEqual(self.signer.cert_requests, [CERT_URL])


if __name__ == "__main__":
    unittest.main()
