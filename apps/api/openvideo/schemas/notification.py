"""Inbound notification envelope and payload schemas."""

from __future__ import annotations

import json
from typing import Any
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _Envelope(BaseModel):
    """Fields shared by every notification envelope.

    Values are kept as the exact strings received because the signature covers
    their textual form.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field(alias="Type")
    message_id: str | None = Field(default=None, alias="MessageId")
    topic_arn: str | None = Field(default=None, alias="TopicArn")
    message: str | None = Field(default=None, alias="Message")
    timestamp: str | None = Field(default=None, alias="Timestamp")
    signature_version: str | None = Field(default=None, alias="SignatureVersion")
    signature: str | None = Field(default=None, alias="Signature")
    signing_cert_url: str | None = Field(default=None, alias="SigningCertURL")

    def wire_fields(self) -> dict[str, str]:
        """Return present fields keyed by their wire names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class NotificationEnvelope(_Envelope):
    type: Literal["Notification"] = Field(alias="Type")
    subject: str | None = Field(default=None, alias="Subject")
    unsubscribe_url: str | None = Field(default=None, alias="UnsubscribeURL")


class SubscriptionConfirmationEnvelope(_Envelope):
    type: Literal["SubscriptionConfirmation"] = Field(alias="Type")
    subscribe_url: str | None = Field(default=None, alias="SubscribeURL")
    token: str | None = Field(default=None, alias="Token")


class UnsubscribeConfirmationEnvelope(_Envelope):
    type: Literal["UnsubscribeConfirmation"] = Field(alias="Type")
    subscribe_url: str | None = Field(default=None, alias="SubscribeURL")
    token: str | None = Field(default=None, alias="Token")


InboundNotification = NotificationEnvelope | SubscriptionConfirmationEnvelope | UnsubscribeConfirmationEnvelope

_ENVELOPE_TYPES: dict[str, type[_Envelope]] = {
    "Notification": NotificationEnvelope,
    "SubscriptionConfirmation": SubscriptionConfirmationEnvelope,
    "UnsubscribeConfirmation": UnsubscribeConfirmationEnvelope,
}


class EnvelopeParseError(ValueError):
    """Raised when a raw body is not a recognizable notification envelope."""


def parse_envelope(raw_body: str | bytes) -> InboundNotification:
    try:
        payload = json.loads(raw_body)
    except (TypeError, ValueError) as exc:
        raise EnvelopeParseError("Notification body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise EnvelopeParseError("Notification body must be a JSON object")

    raw_type = payload.get("Type")
    envelope_type = _ENVELOPE_TYPES.get(raw_type) if isinstance(raw_type, str) else None
    if envelope_type is None:
        raise EnvelopeParseError(f"Unsupported notification type {raw_type!r}")

    try:
        return envelope_type.model_validate(payload)
    except ValueError as exc:
        raise EnvelopeParseError("Notification envelope has invalid field values") from exc


class TranscodeInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str


class TranscodeOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    key: str
    preset_id: str | None = Field(default=None, alias="presetId")
    status: str | None = None
    thumbnail_pattern: str | None = Field(default=None, alias="thumbnailPattern")
    duration: int | None = None
    width: int | None = None
    height: int | None = None


class TranscodeCompleteMessage(BaseModel):
    """Message body published by the transcoder when a job changes state."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    state: str | None = None
    job_id: str | None = Field(default=None, alias="jobId")
    pipeline_id: str | None = Field(default=None, alias="pipelineId")
    input: TranscodeInput
    output_key_prefix: str = Field(default="", alias="outputKeyPrefix")
    outputs: list[TranscodeOutput] = Field(default_factory=list)


class StoredObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str
    size: int | None = None


class _StorageEntity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: StoredObject


class StorageEventRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_name: str | None = Field(default=None, alias="eventName")
    s3: _StorageEntity


class UploadCompleteMessage(BaseModel):
    """Object-created event published by blob storage."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    records: list[StorageEventRecord] = Field(default_factory=list, alias="Records")
    event: str | None = Field(default=None, alias="Event")

    @property
    def is_test_event(self) -> bool:
        return self.event == "s3:TestEvent"


def decode_message(envelope: NotificationEnvelope) -> dict[str, Any] | None:
    """Decode the JSON-encoded ``Message`` field, or ``None`` when absent or invalid."""
    if envelope.message is None:
        return None
    try:
        decoded = json.loads(envelope.message)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None
