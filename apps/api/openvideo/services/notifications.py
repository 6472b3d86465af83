"""Inbound notification routing."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
import logging
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from openvideo.domain.object_keys import builder_id_from_object_key
from openvideo.errors import ApiError, SignatureError
from openvideo.notifications.verification import NotificationVerifier
from openvideo.schemas.notification import (
    EnvelopeParseError,
    NotificationEnvelope,
    TranscodeCompleteMessage,
    UploadCompleteMessage,
    decode_message,
    parse_envelope,
)
from openvideo.services.pipeline import PipelineService

logger = logging.getLogger(__name__)

_TRANSCODE_COMPLETED_STATE = "COMPLETED"


class NotificationOutcome(str, Enum):
    OK = "Ok"
    INVALID_SIGNATURE = "Invalid Message Signature"
    MISSING_DATA = "Missing Data"


class NotificationRouter:
    """Verifies raw notification bodies and dispatches them by topic."""

    def __init__(
        self,
        verifier: NotificationVerifier,
        pipeline: PipelineService,
        *,
        upload_complete_topic: str | None,
        transcode_complete_topic: str | None,
    ) -> None:
        self._verifier = verifier
        self._pipeline = pipeline
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[None]]] = {}
        if upload_complete_topic:
            self._handlers[upload_complete_topic] = self._on_upload_complete
        if transcode_complete_topic:
            self._handlers[transcode_complete_topic] = self._on_transcode_complete

    async def route(self, raw_body: str | bytes) -> NotificationOutcome:
        try:
            envelope = parse_envelope(raw_body)
        except EnvelopeParseError as exc:
            logger.warning("notification.unparseable reason=%s", exc)
            return NotificationOutcome.MISSING_DATA

        try:
            valid = await self._verifier.verify(envelope)
        except SignatureError:
            return NotificationOutcome.MISSING_DATA
        if not valid:
            logger.info("notification.invalid_signature type=%s topic=%s", envelope.type, envelope.topic_arn)
            return NotificationOutcome.INVALID_SIGNATURE

        if not isinstance(envelope, NotificationEnvelope):
            # Subscriptions are confirmed by an operator visiting SubscribeURL.
            logger.info(
                "notification.subscription_event type=%s topic=%s subscribe_url=%s",
                envelope.type,
                envelope.topic_arn,
                envelope.subscribe_url,
            )
            return NotificationOutcome.OK

        message = decode_message(envelope)
        if not envelope.topic_arn or message is None:
            logger.warning(
                "notification.missing_data topic=%s message_id=%s has_message=%s",
                envelope.topic_arn,
                envelope.message_id,
                message is not None,
            )
            return NotificationOutcome.MISSING_DATA

        handler = self._handlers.get(envelope.topic_arn)
        if handler is None:
            logger.info("notification.unknown_topic topic=%s message_id=%s", envelope.topic_arn, envelope.message_id)
            return NotificationOutcome.OK

        try:
            await handler(message)
        except PayloadValidationError as exc:
            logger.warning(
                "notification.invalid_payload topic=%s message_id=%s errors=%s",
                envelope.topic_arn,
                envelope.message_id,
                exc.error_count(),
            )
            return NotificationOutcome.MISSING_DATA
        except ApiError as exc:
            logger.warning(
                "notification.handler_failed topic=%s message_id=%s code=%s",
                envelope.topic_arn,
                envelope.message_id,
                exc.payload.code,
            )
        except Exception:
            logger.exception(
                "notification.handler_crashed topic=%s message_id=%s",
                envelope.topic_arn,
                envelope.message_id,
            )

        return NotificationOutcome.OK

    async def _on_upload_complete(self, message: dict[str, Any]) -> None:
        event = UploadCompleteMessage.model_validate(message)
        if event.is_test_event:
            logger.info("notification.storage_test_event")
            return
        for record in event.records:
            self._pipeline.handle_upload_complete_event(record.s3.object.key)

    async def _on_transcode_complete(self, message: dict[str, Any]) -> None:
        event = TranscodeCompleteMessage.model_validate(message)
        if event.state is not None and event.state != _TRANSCODE_COMPLETED_STATE:
            logger.info(
                "notification.transcode_state_ignored job_id=%s state=%s input_key=%s",
                event.job_id,
                event.state,
                event.input.key,
            )
            return

        builder_id = builder_id_from_object_key(event.input.key)
        if builder_id is None:
            logger.warning("notification.transcode_input_unrecognized input_key=%s", event.input.key)
            return

        self._pipeline.handle_transcode_complete_event(
            builder_id=builder_id,
            output_key_prefix=event.output_key_prefix,
            outputs=event.outputs,
        )
