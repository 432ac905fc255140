"""
HTTP access for manifests and module archives.

Both kinds of transfer stream the response body into a caller-provided file
and retry transient transport failures a bounded number of times. Archives get
a longer timeout and more attempts than manifests.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Tuple

import requests

from core.settings import InstallerSettings
from module_profiles.module_profiles import logger as app_logger

_LOGGER = app_logger.get_logger()

CHUNK_SIZE = 64 * 1024
_TRANSIENT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


class FetchError(Exception):
    """Raised when a URL could not be fetched within its retry budget."""

    def __init__(self, url: str, message: str, *, attempts: int = 1) -> None:
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class _TransientStatus(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and timing for one kind of transfer."""

    max_attempts: int = 2
    timeout_seconds: float = 20.0
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def compute_delay(self, attempt: int) -> float:
        """Exponential backoff; attempt 1 is the first retry."""
        return min(self.max_delay_seconds, self.base_delay_seconds * (2 ** (attempt - 1)))


class HttpFetcher:
    """Streams manifests and archives with bounded retries."""

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        manifest_policy: Optional[RetryPolicy] = None,
        download_policy: Optional[RetryPolicy] = None,
        user_agent: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session or requests.Session()
        self.manifest_policy = manifest_policy or RetryPolicy(max_attempts=2, timeout_seconds=20)
        self.download_policy = download_policy or RetryPolicy(max_attempts=3, timeout_seconds=60)
        self._headers = {"User-Agent": user_agent} if user_agent else {}
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: InstallerSettings,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "HttpFetcher":
        return cls(
            session=session,
            manifest_policy=RetryPolicy(
                max_attempts=settings.manifest_attempts,
                timeout_seconds=settings.manifest_timeout_seconds,
            ),
            download_policy=RetryPolicy(
                max_attempts=settings.download_attempts,
                timeout_seconds=settings.download_timeout_seconds,
            ),
            user_agent=settings.user_agent,
            sleep=sleep,
        )

    def close(self) -> None:
        self._session.close()

    def fetch_manifest(self, url: str, buffer: BinaryIO) -> int:
        """Stream a manifest into ``buffer``; returns the number of bytes written."""
        return self._stream(url, buffer, self.manifest_policy)

    def download_artifact(self, url: str, destination: Path) -> int:
        """Stream an archive to ``destination``, truncating it on every attempt."""
        with destination.open("wb") as handle:
            return self._stream(url, handle, self.download_policy)

    def _stream(self, url: str, handle: BinaryIO, policy: RetryPolicy) -> int:
        attempts = 0
        while True:
            attempts += 1
            handle.seek(0)
            handle.truncate()
            try:
                return self._stream_once(url, handle, policy)
            except (_TransientStatus, *_TRANSIENT_ERRORS) as exc:
                if attempts >= policy.max_attempts:
                    raise FetchError(
                        url,
                        f"Giving up on {url} after {attempts} attempt(s): {exc}",
                        attempts=attempts,
                    ) from exc
                delay = policy.compute_delay(attempts)
                _LOGGER.debug(
                    "Attempt {}/{} for {} failed ({}); retrying in {:.1f}s.",
                    attempts,
                    policy.max_attempts,
                    url,
                    exc,
                    delay,
                )
                self._sleep(delay)
            except requests.RequestException as exc:
                raise FetchError(url, f"Request for {url} failed: {exc}", attempts=attempts) from exc

    def _stream_once(self, url: str, handle: BinaryIO, policy: RetryPolicy) -> int:
        response = self._session.get(
            url,
            stream=True,
            timeout=policy.timeout_seconds,
            headers=self._headers,
        )
        try:
            if response.status_code in policy.retry_on_status:
                raise _TransientStatus(response.status_code)
            response.raise_for_status()
            written = 0
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    handle.write(chunk)
                    written += len(chunk)
            handle.flush()
            return written
        finally:
            response.close()
