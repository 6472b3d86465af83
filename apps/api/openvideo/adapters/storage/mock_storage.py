"""Mock storage adapter for local development and tests."""

from dataclasses import dataclass

from openvideo.adapters.storage.base import UploadTargetError, UploadTargetIssuer


@dataclass(slots=True)
class IssuedUploadTarget:
    object_key: str
    expiry_seconds: int
    content_type: str
    url: str


class MockUploadTargetIssuer(UploadTargetIssuer):
    """Issues deterministic fake URLs and remembers every request."""

    def __init__(self, base_url: str = "https://uploads.invalid", failure_message: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.failure_message = failure_message
        self.issued: list[IssuedUploadTarget] = []

    async def issue_upload_target(self, object_key: str, expiry_seconds: int, content_type: str) -> str:
        if self.failure_message is not None:
            raise UploadTargetError(self.failure_message)

        url = f"{self.base_url}/{object_key}?expires={expiry_seconds}"
        self.issued.append(
            IssuedUploadTarget(
                object_key=object_key,
                expiry_seconds=expiry_seconds,
                content_type=content_type,
                url=url,
            )
        )
        return url


__all__ = ["IssuedUploadTarget", "MockUploadTargetIssuer"]
