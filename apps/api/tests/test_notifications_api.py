"""Notification webhook tests covering verification and topic routing."""

from __future__ import annotations

import json
import os
import unittest
from unittest import mock
from uuid import uuid4

from fastapi.testclient import TestClient
import httpx

from notification_signing import (
    CERT_URL,
    TRANSCODE_TOPIC,
    UPLOAD_TOPIC,
    NotificationSigner,
    transcode_complete_message,
    upload_complete_message,
)
from openvideo.core.config import get_settings
from openvideo.main import create_app
from openvideo.notifications.cert_cache import CertificateCache
from openvideo.repositories.memory import InMemoryStore
from openvideo.schemas.builder import BuilderStatus

_WEBHOOK = "/api/v1/notifications/sns"


class NotificationWebhookTests(unittest.TestCase):
    _env = {
        "OPENVIDEO_AUTH_PROVIDER": "mock",
        "OPENVIDEO_STORAGE_PROVIDER": "mock",
        "OPENVIDEO_TRANSCODER_PROVIDER": "mock",
        "OPENVIDEO_TRANSCODER_PIPELINE_ID": "pipeline-test",
        "OPENVIDEO_MEDIA_BASE_URL": "https://media.openvideo.test",
        "OPENVIDEO_UPLOAD_COMPLETE_TOPIC_ARN": UPLOAD_TOPIC,
        "OPENVIDEO_TRANSCODE_COMPLETE_TOPIC_ARN": TRANSCODE_TOPIC,
    }

    @classmethod
    def setUpClass(cls) -> None:
        cls.signer = NotificationSigner()

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env}
        os.environ.update(self._env)
        get_settings.cache_clear()
        self.signer.cert_requests.clear()
        self.app = create_app()
        self.app.state.cert_cache = CertificateCache(
            http_client=httpx.AsyncClient(transport=self.signer.transport()),
            retry_delay_seconds=0,
        )
        self.client = TestClient(self.app)
        self.store = self.app.state.store

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()

    def _post(self, payload: dict | str) -> httpx.Response:
        body = payload if isinstance(payload, str) else json.dumps(payload)
        return self.client.post(_WEBHOOK, content=body, headers={"Content-Type": "text/plain; charset=UTF-8"})

    def _uploaded_builder(self) -> str:
        headers = {"Authorization": "Bearer test:alice"}
        builder_id = self.client.post("/api/v1/uploads", headers=headers).json()["id"]
        self.client.post(f"/api/v1/uploads/{builder_id}/accepted", headers=headers)
        return builder_id

    def test_transcode_complete_notification_finalizes_video(self) -> None:
        builder_id = self._uploaded_builder()
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message=transcode_complete_message(builder_id))

        response = self._post(payload)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Ok")
        self.assertEqual(self.store.builders[builder_id].status, BuilderStatus.TRANSCODED)
        video = self.client.get(f"/api/v1/videos/{builder_id}").json()
        self.assertEqual(video["src"], f"https://media.openvideo.test/videos/{builder_id}/video.mp4")
        self.assertEqual(video["thumbnail"], f"https://media.openvideo.test/videos/{builder_id}/thumb-00001.png")
        self.assertEqual(video["owner_username"], "alice")
        self.assertEqual(self.signer.cert_requests, [CERT_URL])

    def test_redelivered_transcode_notification_creates_one_video(self) -> None:
        builder_id = self._uploaded_builder()
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message=transcode_complete_message(builder_id))

        first = self._post(payload)
        second = self._post(payload)

        self.assertEqual((first.text, second.text), ("Ok", "Ok"))
        self.assertEqual(len(self.store.videos), 1)
        self.assertEqual(self.store.video_write_count, 1)

    def test_multiple_outputs_leave_builder_uploaded(self) -> None:
        builder_id = self._uploaded_builder()
        message = transcode_complete_message(builder_id, outputs=[{"key": "480.mp4"}, {"key": "720.mp4"}])

        response = self._post(self.signer.notification(topic=TRANSCODE_TOPIC, message=message))

        self.assertEqual(response.text, "Ok")
        self.assertEqual(self.store.builders[builder_id].status, BuilderStatus.UPLOADED)
        self.assertEqual(self.store.videos, {})

    def test_transcoder_error_state_is_ignored(self) -> None:
        builder_id = self._uploaded_builder()
        message = transcode_complete_message(builder_id, state="ERROR")

        response = self._post(self.signer.notification(topic=TRANSCODE_TOPIC, message=message))

        self.assertEqual(response.text, "Ok")
        self.assertEqual(self.store.builders[builder_id].status, BuilderStatus.UPLOADED)

    def test_tampered_notification_is_rejected_before_any_mutation(self) -> None:
        builder_id = self._uploaded_builder()
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message=transcode_complete_message(str(uuid4())))
        payload["Message"] = json.dumps(transcode_complete_message(builder_id))

        response = self._post(payload)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Invalid Message Signature")
        self.assertEqual(self.store.builders[builder_id].status, BuilderStatus.UPLOADED)
        self.assertEqual(self.store.videos, {})

    def test_forged_cert_url_is_rejected_without_fetch(self) -> None:
        builder_id = self._uploaded_builder()
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message=transcode_complete_message(builder_id))
        payload["SigningCertURL"] = "https://evil.example.com/SimpleNotificationService-0123456789abcdef0123456789abcdef.pem"

        response = self._post(payload)

        self.assertEqual(response.text, "Invalid Message Signature")
        self.assertEqual(self.signer.cert_requests, [])
        self.assertEqual(self.store.builders[builder_id].status, BuilderStatus.UPLOADED)

    def test_cert_url_with_trailing_newline_is_rejected_with_200(self) -> None:
        builder_id = self._uploaded_builder()
        payload = self.signer.notification(topic=TRANSCODE_TOPIC, message=transcode_complete_message(builder_id))
        payload["SigningCertURL"] = CERT_URL + "\n"

        response = self._post(payload)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Invalid Message Signature")
        self.assertEqual(self.signer.cert_requests, [])
        self.assertEqual(self.store.builders[builder_id].status, BuilderStatus.UPLOADED)

    def test_unexpected_handler_failure_is_acknowledged(self) -> None:
        builder_id = self.client.post("/api/v1/uploads", headers={"Authorization": "Bearer test:alice"}).json()["id"]
        payload = self.signer.notification(topic=UPLOAD_TOPIC, message=upload_complete_message(builder_id))

        with mock.patch.object(InMemoryStore, "record_landed_object", side_effect=RuntimeError("store offline")):
            response = self._post(payload)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Ok")

    def test_malformed_bodies_report_missing_data(self) -> None:
        unsigned = self.signer.notification(topic=TRANSCODE_TOPIC, message={})
        unsigned.pop("Signature")
        for body in ("{not json", json.dumps({"Type": "Unknown"}), json.dumps(unsigned)):
            with self.subTest(body=body[:20]):
                response = self._post(body)
                self.assertEqual(response.status_code, 200)
                self.assertEqual(response.text, "Missing Data")

    def test_signed_notification_with_undecodable_message_reports_missing_data(self) -> None:
        response = self._post(self.signer.notification(topic=TRANSCODE_TOPIC, message="not-json"))

        self.assertEqual(response.text, "Missing Data")

    def test_signed_notification_with_invalid_payload_reports_missing_data(self) -> None:
        response = self._post(self.signer.notification(topic=TRANSCODE_TOPIC, message={"outputs": []}))

        self.assertEqual(response.text, "Missing Data")

    def test_unknown_topic_is_acknowledged(self) -> None:
        payload = self.signer.notification(topic="arn:aws:sns:ap-southeast-2:000000000000:Other", message={"x": 1})

        response = self._post(payload)

        self.assertEqual(response.text, "Ok")

    def test_subscription_confirmation_is_acknowledged_without_side_effects(self) -> None:
        payload = self.signer.sign(
            {
                "Type": "SubscriptionConfirmation",
                "MessageId": "m-sub",
                "TopicArn": TRANSCODE_TOPIC,
                "Message": "You have chosen to subscribe",
                "SubscribeURL": "https://sns.ap-southeast-2.amazonaws.com/?Action=ConfirmSubscription",
                "Token": "token-1",
                "Timestamp": "2026-10-18T12:00:00.000Z",
            }
        )

        response = self._post(payload)

        self.assertEqual(response.text, "Ok")
        self.assertEqual(self.store.builders, {})

    def test_upload_complete_notification_records_landed_object(self) -> None:
        builder_id = self.client.post("/api/v1/uploads", headers={"Authorization": "Bearer test:alice"}).json()["id"]

        response = self._post(self.signer.notification(topic=UPLOAD_TOPIC, message=upload_complete_message(builder_id)))

        self.assertEqual(response.text, "Ok")
        self.assertEqual(self.store.landed_objects[builder_id].object_key, f"uploads/{builder_id}.mp4")
        self.assertEqual(self.store.builders[builder_id].status, BuilderStatus.INITIATED)

    def test_storage_test_event_is_acknowledged(self) -> None:
        message = {"Service": "Amazon S3", "Event": "s3:TestEvent", "Bucket": "raw.openvideo.ml"}

        response = self._post(self.signer.notification(topic=UPLOAD_TOPIC, message=message))

        self.assertEqual(response.text, "Ok")
        self.assertEqual(self.store.landed_objects, {})


if __name__ == "__main__":
    unittest.main()
