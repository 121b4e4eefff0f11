"""
Streaming remote fetcher with byte-level progress reporting.

This module downloads one remote source with:
- A single attempt (no retries; the caller decides whether to rerun an import)
- Incremental body reads reported through the progress log
- Classification of failures into network, HTTP status, empty body and
  stream read errors (see core.exceptions)

``data:`` URLs are decoded locally and go through the same chunked
accumulation as network bodies.
"""

import base64
from typing import AsyncIterator, Callable, Dict, Optional
from urllib.parse import unquote_to_bytes

import httpx

from core.config import settings
from core.exceptions import (
    EmptyBodyFailure,
    HttpStatusFailure,
    NetworkFailure,
    StreamReadFailure,
)
from ingestion.progress import ProgressLog
import logging

logger = logging.getLogger(__name__)

PROGRESS_TEXT = "Loading data from URL..."

HTTP_STATUS_TEXT = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    408: "Request Timeout",
    409: "Conflict",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}

# Statuses whose responses never carry a body
NO_BODY_STATUSES = (204, 205)

DATA_URL_CHUNK_SIZE = 64 * 1024

DEFAULT_HEADERS = {"User-Agent": "dataset-importer"}


def format_file_size(num_bytes: int, decimals: int = 2) -> str:
    """Human-readable size in base-1000 units: ``500 B``, ``1.50 KB``, ``1.50 MB``."""
    units = ["B", "KB", "MB", "GB"]
    base = 1000

    value = num_bytes
    unit_index = 0
    while value >= base and unit_index < len(units) - 1:
        value /= base
        unit_index += 1

    formatted = str(value) if unit_index == 0 else f"{value:.{decimals}f}"
    return f"{formatted} {units[unit_index]}"


def http_error_status_text(code: int) -> str:
    """Describe a failing HTTP status, e.g. ``HTTP 404 - Not Found``."""
    reason = HTTP_STATUS_TEXT.get(code)
    if reason:
        return f"HTTP {code} - {reason}"
    return f"HTTP {code}"


async def read_chunks(
    chunks: AsyncIterator[bytes],
    on_progress: Optional[Callable[[int], None]] = None
) -> bytes:
    """
    Accumulate a single-pass stream of byte chunks.

    Args:
        chunks: Async iterator of body chunks
        on_progress: Called with the running byte total after each chunk

    Returns:
        The concatenated bytes
    """
    buffer = bytearray()
    async for chunk in chunks:
        buffer.extend(chunk)
        if on_progress is not None:
            on_progress(len(buffer))
    return bytes(buffer)


def decode_data_url(url: str) -> bytes:
    """Decode the payload of a ``data:`` URL."""
    header, sep, payload = url[len("data:"):].partition(",")
    if not sep:
        raise ValueError("data URL has no payload separator")
    if header.lower().endswith(";base64"):
        return base64.b64decode(unquote_to_bytes(payload), validate=False)
    return unquote_to_bytes(payload)


async def _iter_bytes(data: bytes, chunk_size: int = DATA_URL_CHUNK_SIZE) -> AsyncIterator[bytes]:
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]


def _progress_reporter(progress: Optional[ProgressLog]) -> Optional[Callable[[int], None]]:
    if progress is None:
        return None

    def report(bytes_loaded: int) -> None:
        progress.info(PROGRESS_TEXT, progress_text=format_file_size(bytes_loaded))

    return report


async def fetch_with_progress(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    progress: Optional[ProgressLog] = None
) -> bytes:
    """
    Download ``url`` and return its body, reporting byte progress.

    Args:
        url: http(s) or data: URL
        client: Shared client; a short-lived one is created when omitted
        method: HTTP method
        headers: Extra request headers
        timeout: Per-request timeout in seconds (defaults to FETCH_TIMEOUT)
        progress: Progress log receiving byte counts

    Returns:
        The response body

    Raises:
        NetworkFailure: The request could not be completed
        HttpStatusFailure: The server answered with a non-2xx status
        EmptyBodyFailure: The response has no body
        StreamReadFailure: Reading the body failed part way through
    """
    on_progress = _progress_reporter(progress)

    if url.startswith("data:"):
        try:
            data = decode_data_url(url)
        except ValueError as e:
            raise NetworkFailure(url, original_exception=e)
        return await _accumulate(url, _iter_bytes(data), on_progress)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.FETCH_TIMEOUT, follow_redirects=True)

    try:
        request_headers = dict(DEFAULT_HEADERS)
        request_headers.update(headers or {})
        request_kwargs = {"headers": request_headers}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        try:
            request = client.build_request(method, url, **request_kwargs)
            response = await client.send(request, stream=True, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.warning(f"Request to {url} failed: {type(e).__name__}: {e}")
            raise NetworkFailure(url, original_exception=e)

        try:
            if not response.is_success:
                raise HttpStatusFailure(
                    url, response.status_code, http_error_status_text(response.status_code)
                )

            if response.status_code in NO_BODY_STATUSES or method.upper() == "HEAD":
                raise EmptyBodyFailure(url, status_code=response.status_code)

            data = await _accumulate(url, response.aiter_bytes(), on_progress)
        finally:
            await response.aclose()

        logger.info(f"Fetched {format_file_size(len(data))} from {url}")
        return data

    finally:
        if owns_client:
            await client.aclose()


async def _accumulate(
    url: str,
    chunks: AsyncIterator[bytes],
    on_progress: Optional[Callable[[int], None]]
) -> bytes:
    bytes_loaded = 0

    def track(total: int) -> None:
        nonlocal bytes_loaded
        bytes_loaded = total
        if on_progress is not None:
            on_progress(total)

    try:
        return await read_chunks(chunks, track)
    except Exception as e:
        logger.warning(f"Reading body of {url} failed after {bytes_loaded} bytes: {e}")
        raise StreamReadFailure(url, bytes_loaded=bytes_loaded, original_exception=e)
