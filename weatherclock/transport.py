# ABOUTME: HTTPS GET with bounded retries that streams the body into a capped buffer.
# ABOUTME: Validates received length against Content-Length and wraps httpx failures as TransportError.

import logging

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from weatherclock.errors import HTTPStatusFailure, PartialBodyError, TransportError

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 30000
CHUNK_SIZE = 512
ERROR_EXCERPT_BYTES = 200
STALL_TIMEOUT_SECONDS = 30.0
_REDACTED_PARAMS = ("appid",)


def describe_request(url: str, params: dict | None = None) -> str:
    """Render a request URL for logs with the API key masked."""
    shown = dict(params or {})
    for name in _REDACTED_PARAMS:
        if name in shown:
            shown[name] = "***"
    return str(httpx.URL(url, params=shown))


def _declared_length(response: httpx.Response) -> int | None:
    raw = response.headers.get("Content-Length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class Fetcher:
    """Streams GET responses into a bounded buffer.

    A stream that goes idle for longer than the read timeout is a failed
    attempt. Retries are explicit per call: `attempts` total tries with
    `retry_delay` seconds between them, retrying only TransportError.
    """

    def __init__(
        self,
        client: httpx.Client,
        max_body_bytes: int = MAX_BODY_BYTES,
        chunk_size: int = CHUNK_SIZE,
        stall_timeout: float = STALL_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.max_body_bytes = max_body_bytes
        self.chunk_size = chunk_size
        self.stall_timeout = stall_timeout

    def fetch(
        self,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
        timeout: float | None = None,
        attempts: int = 1,
        retry_delay: float = 0.0,
        tag: str = "GET",
    ) -> bytes:
        """GET `url` and return the body, or raise TransportError after the last attempt."""
        retrying = Retrying(
            stop=stop_after_attempt(max(1, attempts)),
            wait=wait_fixed(retry_delay),
            retry=retry_if_exception_type(TransportError),
            before_sleep=lambda state: logger.warning(
                "%s attempt %d failed: %s", tag, state.attempt_number, state.outcome.exception()
            ),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                logger.debug(
                    "%s request (attempt %d): %s",
                    tag,
                    attempt.retry_state.attempt_number,
                    describe_request(url, params),
                )
                body = self._fetch_once(url, params, headers, timeout, tag)
        return body

    def _fetch_once(
        self, url: str, params: dict | None, headers: dict | None, timeout: float | None, tag: str
    ) -> bytes:
        # identity encoding keeps Content-Length comparable with the bytes counted
        request_headers = {"Accept-Encoding": "identity", **(headers or {})}
        request_timeout = (
            httpx.Timeout(timeout, read=self.stall_timeout) if timeout is not None else httpx.USE_CLIENT_DEFAULT
        )
        body = bytearray()
        try:
            with self.client.stream(
                "GET", url, params=params, headers=request_headers, timeout=request_timeout
            ) as response:
                if response.status_code != httpx.codes.OK:
                    excerpt = self._read_excerpt(response)
                    logger.warning("%s HTTP error: %d", tag, response.status_code)
                    raise HTTPStatusFailure(response.status_code, excerpt)

                declared = _declared_length(response)
                for chunk in response.iter_bytes(self.chunk_size):
                    body += chunk[: self.max_body_bytes - len(body)]
                    if len(body) >= self.max_body_bytes:
                        break
        except httpx.ReadTimeout as e:
            raise TransportError(f"{tag} stream stalled: {e}") from e
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise TransportError(f"{tag} request failed: {e}") from e

        logger.info("%s payload length=%d (Content-Length %s)", tag, len(body), declared)

        if declared and declared > 0 and body and len(body) != declared:
            raise PartialBodyError(len(body), declared)
        # An empty 200 is a transport failure, so it spends the retry budget.
        if not body:
            raise TransportError(f"{tag} returned an empty body")
        return bytes(body)

    def _read_excerpt(self, response: httpx.Response) -> str:
        excerpt = bytearray()
        for chunk in response.iter_bytes(self.chunk_size):
            excerpt += chunk
            if len(excerpt) >= ERROR_EXCERPT_BYTES:
                break
        return excerpt[:ERROR_EXCERPT_BYTES].decode("utf-8", errors="replace")
