"""Time-bounded cache of notification signing certificates."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
import logging
import time

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

from openvideo.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _CachedCertificate:
    content: bytes
    expires_at: float


def _should_retry(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


class CertificateCache:
    """LRU cache of raw certificate bytes keyed by fetch URL.

    Entries expire ``ttl_seconds`` after they were stored regardless of reads.
    Lookups and stores never await, so concurrent verifications on one event
    loop cannot observe an entry past its expiry.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 60.0,
        max_entries: int = 5000,
        fetch_attempts: int = 3,
        retry_delay_seconds: float = 0.1,
        timeout_seconds: float = 3.0,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._fetch_attempts = max(1, fetch_attempts)
        self._retry_delay_seconds = retry_delay_seconds
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._clock = clock
        self._entries: OrderedDict[str, _CachedCertificate] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    async def get(self, url: str) -> bytes:
        cached = self._lookup(url)
        if cached is not None:
            return cached

        content = await self._fetch(url)
        self._store(url, content)
        return content

    def _lookup(self, url: str) -> bytes | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[url]
            return None
        self._entries.move_to_end(url)
        return entry.content

    def _store(self, url: str, content: bytes) -> None:
        self._entries[url] = _CachedCertificate(content=content, expires_at=self._clock() + self._ttl_seconds)
        self._entries.move_to_end(url)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def _fetch(self, url: str) -> bytes:
        if self._http_client is not None:
            return await self._fetch_with_retries(self._http_client, url)
        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            return await self._fetch_with_retries(client, url)

    async def _fetch_with_retries(self, client: httpx.AsyncClient, url: str) -> bytes:
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_should_retry),
                stop=stop_after_attempt(self._fetch_attempts),
                wait=wait_fixed(self._retry_delay_seconds),
                reraise=True,
            ):
                with attempt:
                    response = await client.get(url, timeout=self._timeout_seconds)
                    response.raise_for_status()
                    if response.status_code != 200:
                        raise UpstreamError(
                            f"Unexpected status {response.status_code} fetching signing certificate",
                            code="CERTIFICATE_FETCH_FAILED",
                        )
                    return response.content
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "cert.fetch_failed url=%s attempts=%s reason=%s",
                url,
                self._fetch_attempts,
                type(exc).__name__,
            )
            raise UpstreamError("Failed to fetch signing certificate", code="CERTIFICATE_FETCH_FAILED") from exc


__all__ = ["CertificateCache"]
