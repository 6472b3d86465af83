"""FastAPI application entrypoint."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from openvideo.adapters.storage import MockUploadTargetIssuer, S3UploadTargetIssuer, UploadTargetIssuer
from openvideo.adapters.transcoder import ElasticTranscoderClient, MockTranscoderClient, TranscoderClient
from openvideo.core.config import Settings, get_settings
from openvideo.errors import ApiError
from openvideo.notifications.cert_cache import CertificateCache
from openvideo.repositories.memory import InMemoryStore
from openvideo.routes import notifications_router, uploads_router, videos_router


def _build_upload_target_issuer(settings: Settings) -> UploadTargetIssuer:
    if settings.storage_provider == "s3":
        return S3UploadTargetIssuer(
            bucket=settings.upload_bucket,
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    return MockUploadTargetIssuer()


def _build_transcoder(settings: Settings) -> TranscoderClient:
    if settings.transcoder_provider == "elastictranscoder":
        return ElasticTranscoderClient(
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    return MockTranscoderClient()


def _build_cert_cache(settings: Settings) -> CertificateCache:
    return CertificateCache(
        ttl_seconds=settings.cert_cache_ttl_seconds,
        max_entries=settings.cert_cache_max_entries,
        fetch_attempts=settings.cert_fetch_attempts,
        retry_delay_seconds=settings.cert_fetch_retry_delay_seconds,
        timeout_seconds=settings.cert_fetch_timeout_seconds,
    )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="OpenVideo Ingest API", version="1.0.0")
    app.state.store = InMemoryStore()
    app.state.storage = _build_upload_target_issuer(settings)
    app.state.transcoder = _build_transcoder(settings)
    app.state.cert_cache = _build_cert_cache(settings)

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.get("/status", include_in_schema=False)
    async def get_status() -> dict[str, str]:
        return {"status": "ok"}

    api_prefix = "/api/v1"
    app.include_router(uploads_router, prefix=api_prefix)
    app.include_router(videos_router, prefix=api_prefix)
    app.include_router(notifications_router, prefix=api_prefix)

    return app


app = create_app()
