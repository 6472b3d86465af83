"""Mock transcoder adapter for local development and tests."""

from dataclasses import dataclass
from uuid import uuid4

from openvideo.adapters.transcoder.base import OutputProfile, TranscoderClient, TranscoderError


@dataclass(slots=True)
class SubmittedJob:
    job_id: str
    object_key: str
    output_key_prefix: str
    output_profile: OutputProfile


class MockTranscoderClient(TranscoderClient):
    """Records submitted jobs instead of calling a transcoding service."""

    def __init__(self, failure_message: str | None = None) -> None:
        self.failure_message = failure_message
        self.jobs: list[SubmittedJob] = []

    async def submit_job(self, object_key: str, output_key_prefix: str, output_profile: OutputProfile) -> str:
        if self.failure_message is not None:
            raise TranscoderError(self.failure_message)

        job = SubmittedJob(
            job_id=f"job-{uuid4()}",
            object_key=object_key,
            output_key_prefix=output_key_prefix,
            output_profile=output_profile,
        )
        self.jobs.append(job)
        return job.job_id


__all__ = ["MockTranscoderClient", "SubmittedJob"]
