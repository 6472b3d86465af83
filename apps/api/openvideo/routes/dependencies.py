"""Dependency wiring for routes."""

from __future__ import annotations

from datetime import timedelta
import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from openvideo.adapters.auth import (
    AuthVerificationError,
    FirebaseTokenVerifier,
    MockTokenVerifier,
    TokenVerifier,
)
from openvideo.adapters.transcoder.base import OutputProfile
from openvideo.core.config import Settings, get_settings
from openvideo.core.logging_safety import safe_log_identifier
from openvideo.errors import AuthenticationError
from openvideo.notifications.verification import NotificationVerifier
from openvideo.repositories.memory import InMemoryStore
from openvideo.schemas.auth import AuthPrincipal
from openvideo.services.admission import AdmissionService, UploadPolicy
from openvideo.services.notifications import NotificationRouter
from openvideo.services.pipeline import PipelineService
from openvideo.services.transcode import TranscodeDispatcher

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id") or f"req-{uuid4()}"
    request.state.correlation_id = correlation_id
    return correlation_id


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "firebase":
        return FirebaseTokenVerifier(
            project_id=settings.firebase_project_id,
            audience=settings.firebase_audience,
        )
    return MockTokenVerifier()


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> AuthPrincipal:
    """Validate bearer token and attach the uploader to request context."""
    safe_correlation_id = safe_log_identifier(_request_correlation_id(request), prefix="cid")
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=invalid_or_missing_bearer",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise AuthenticationError("Invalid or missing bearer token")

    try:
        principal = verifier.verify_token(credentials.credentials)
    except AuthVerificationError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=token_verification_failed",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise AuthenticationError(str(exc) or "Invalid bearer token") from exc

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.username, prefix="uid"),
    )
    request.state.auth_principal = principal
    return principal


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_upload_policy(settings: Annotated[Settings, Depends(get_settings)]) -> UploadPolicy:
    return UploadPolicy(
        max_concurrent_uploads=settings.max_concurrent_uploads,
        stale_after=timedelta(seconds=settings.builder_stale_after_seconds),
        key_prefix=settings.upload_key_prefix,
        key_extension=settings.upload_key_extension,
        content_type=settings.upload_content_type,
        url_expiry_seconds=settings.upload_url_expiry_seconds,
    )


def get_admission_service(
    request: Request,
    store: Annotated[InMemoryStore, Depends(get_store)],
    policy: Annotated[UploadPolicy, Depends(get_upload_policy)],
) -> AdmissionService:
    return AdmissionService(store, request.app.state.storage, policy)


def get_transcode_dispatcher(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> TranscodeDispatcher:
    return TranscodeDispatcher(
        request.app.state.transcoder,
        output_profile=OutputProfile(
            pipeline_id=settings.transcoder_pipeline_id,
            preset_id=settings.transcoder_preset_id,
            thumbnail_pattern=settings.thumbnail_pattern or None,
        ),
        output_prefix=settings.transcoded_key_prefix,
    )


def get_pipeline_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    dispatcher: Annotated[TranscodeDispatcher, Depends(get_transcode_dispatcher)],
    policy: Annotated[UploadPolicy, Depends(get_upload_policy)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PipelineService:
    return PipelineService(store, dispatcher, policy, media_base_url=settings.media_base_url)


def get_notification_router(
    request: Request,
    pipeline: Annotated[PipelineService, Depends(get_pipeline_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> NotificationRouter:
    return NotificationRouter(
        NotificationVerifier(request.app.state.cert_cache),
        pipeline,
        upload_complete_topic=settings.upload_complete_topic_arn,
        transcode_complete_topic=settings.transcode_complete_topic_arn,
    )
