"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    auth_provider: Literal["mock", "firebase"] = "firebase"
    firebase_project_id: str | None = None
    firebase_audience: str | None = None

    storage_provider: Literal["mock", "s3"] = "s3"
    aws_region: str = "ap-southeast-2"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    upload_bucket: str = "raw.openvideo.ml"
    upload_key_prefix: str = "uploads/"
    upload_key_extension: str = ".mp4"
    upload_content_type: str = "video/mp4"
    upload_url_expiry_seconds: int = 600

    transcoder_provider: Literal["mock", "elastictranscoder"] = "elastictranscoder"
    transcoder_pipeline_id: str | None = None
    transcoder_preset_id: str = "1351620000001-000010"
    transcoded_key_prefix: str = "videos/"
    thumbnail_pattern: str = "thumb-{count}"
    media_base_url: str = "https://openvideo.ml"

    max_concurrent_uploads: int = 3
    builder_stale_after_seconds: int = 30 * 60

    upload_complete_topic_arn: str | None = None
    transcode_complete_topic_arn: str | None = None

    cert_cache_ttl_seconds: float = 60.0
    cert_cache_max_entries: int = 5000
    cert_fetch_attempts: int = 3
    cert_fetch_retry_delay_seconds: float = 0.1
    cert_fetch_timeout_seconds: float = 3.0

    model_config = SettingsConfigDict(env_prefix="OPENVIDEO_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
