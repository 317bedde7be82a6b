"""HTTP client that retrieves the page a DummySite points at."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests
import urllib3

from ..constants import FETCH_HEADERS, FETCH_READ_CHUNK_BYTES, FETCH_TIMEOUT_SECONDS, MAX_CONTENT_BYTES
from ..utils.errors import FetchError, sanitize_error_message

logger = logging.getLogger(__name__)


class ContentFetcher:
    """Fetch remote site content with browser-like headers.

    ``timeout`` bounds the whole fetch, body included: the body is read in
    small pieces and each socket read may only wait for the time that is
    left. The body is returned as the raw bytes the server sent.

    Without an injected session every fetch opens its own
    ``requests.Session``, so concurrent handler threads never share one.

    No retries: a failed fetch fails the reconcile pass and the object is
    picked up again on its next event or on resync.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        max_bytes: int = MAX_CONTENT_BYTES,
    ):
        self.session = session
        self.timeout = timeout
        self.max_bytes = max_bytes

    def fetch(self, url: str) -> bytes:
        """GET ``url`` and return the response body.

        Args:
            url: Absolute http(s) URL from ``spec.sourceURL``

        Returns:
            The body bytes, undecoded apart from any Content-Encoding

        Raises:
            FetchError: On network errors, timeouts, non-2xx responses and
                bodies larger than ``max_bytes``
        """
        if self.session is not None:
            return self._fetch(self.session, url)
        with requests.Session() as session:
            return self._fetch(session, url)

    def _fetch(self, session: requests.Session, url: str) -> bytes:
        safe_url = sanitize_error_message(url)
        deadline = time.monotonic() + self.timeout
        try:
            response = session.get(url, headers=FETCH_HEADERS, timeout=self.timeout, stream=True)
        except requests.Timeout as e:
            raise self._timed_out(url, safe_url) from e
        except requests.RequestException as e:
            raise FetchError(
                f"Failed to fetch {safe_url}: {sanitize_error_message(str(e))}", url
            ) from e

        try:
            if not 200 <= response.status_code < 300:
                reason = f" {response.reason}" if response.reason else ""
                raise FetchError(
                    f"HTTP {response.status_code}{reason} fetching {safe_url}",
                    url,
                    status_code=response.status_code,
                )
            body = self._read_body(response.raw, url, safe_url, deadline)
            logger.debug("Fetched %d bytes from %s", len(body), safe_url)
            return body
        finally:
            response.close()

    def _read_body(self, raw: Any, url: str, safe_url: str, deadline: float) -> bytes:
        chunks: list[bytes] = []
        size = 0
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise self._timed_out(url, safe_url)
            _limit_read_timeout(raw, remaining)
            try:
                chunk = raw.read1(FETCH_READ_CHUNK_BYTES, decode_content=True)
            except urllib3.exceptions.TimeoutError as e:
                raise self._timed_out(url, safe_url) from e
            except (urllib3.exceptions.HTTPError, OSError) as e:
                raise FetchError(
                    f"Failed to read body from {safe_url}: {sanitize_error_message(str(e))}", url
                ) from e
            if not chunk:
                return b"".join(chunks)
            size += len(chunk)
            if size > self.max_bytes:
                raise FetchError(f"Body of {safe_url} exceeds {self.max_bytes} bytes", url)
            chunks.append(chunk)

    def _timed_out(self, url: str, safe_url: str) -> FetchError:
        return FetchError(f"Timed out after {self.timeout:g}s fetching {safe_url}", url)


def _limit_read_timeout(raw: Any, seconds: float) -> None:
    """Let the next socket read wait at most ``seconds``."""
    sock = getattr(getattr(raw, "connection", None), "sock", None)
    if sock is not None:
        sock.settimeout(seconds)
