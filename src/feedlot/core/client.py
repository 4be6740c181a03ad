"""Record store HTTP client - core request functions only.

The record store exposes a PostgREST-style REST API: one path per
collection, equality filters as ``column=eq.value`` query parameters, and
row updates via PATCH with the same filters.
"""

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from feedlot.core.config import settings

# =============================================================================
# Retry Configuration
# =============================================================================

MAX_RETRIES = 3
MIN_WAIT_SECONDS = 1
MAX_WAIT_SECONDS = 10


# =============================================================================
# Exceptions
# =============================================================================


class RecordStoreError(Exception):
    """Non-retryable error from the record store."""

    pass


class RetryableError(Exception):
    """Transient error that should be retried (timeouts, connection errors, 5xx)."""

    pass


# =============================================================================
# Client Functions
# =============================================================================


def build_headers(api_key: str | None = None) -> dict[str, str]:
    """Headers sent with every record store request."""
    key = api_key if api_key is not None else settings.store_api_key
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if key:
        headers["apikey"] = key
        headers["Authorization"] = f"Bearer {key}"
    return headers


def eq(value: object) -> str:
    """Format an equality filter value (``eq.<value>``)."""
    return f"eq.{value}"


async def request(
    method: str,
    path: str,
    params: dict | None = None,
    json: dict | list | None = None,
    base_url: str | None = None,
    api_key: str | None = None,
) -> httpx.Response:
    """Send a single request to the record store without retry.

    For most use cases, prefer `request_with_retry()` which handles transient errors.

    Args:
        method: HTTP method ("GET", "PATCH", ...)
        path: Collection path relative to the store URL, e.g. "animals"
        params: Query parameters (filters, pagination)
        json: Optional JSON body
        base_url: Override settings.store_url
        api_key: Override settings.store_api_key

    Returns:
        The HTTP response

    Raises:
        httpx.HTTPStatusError: If the HTTP request fails
    """
    url = f"{(base_url or settings.store_url).rstrip('/')}/{path.lstrip('/')}"
    headers = build_headers(api_key)
    if method.upper() in ("PATCH", "POST"):
        headers["Prefer"] = "return=representation"

    async with httpx.AsyncClient() as client:
        response = await client.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json,
            timeout=settings.request_timeout,
        )
        response.raise_for_status()
        return response


@retry(
    retry=retry_if_exception_type(RetryableError),
    stop=stop_after_attempt(MAX_RETRIES),
    wait=wait_exponential_jitter(initial=MIN_WAIT_SECONDS, max=MAX_WAIT_SECONDS, jitter=2),
    reraise=True,
)
async def request_with_retry(
    method: str,
    path: str,
    params: dict | None = None,
    json: dict | list | None = None,
    base_url: str | None = None,
    api_key: str | None = None,
) -> httpx.Response:
    """Send a request with automatic retry on transient errors.

    Retries on:
    - Timeouts
    - Connection errors
    - HTTP 5xx errors

    After MAX_RETRIES failures the last RetryableError is re-raised.

    Raises:
        RetryableError: If all retries fail
        RecordStoreError: For non-retryable (4xx) errors
    """
    try:
        return await request(method, path, params=params, json=json, base_url=base_url, api_key=api_key)
    except httpx.TimeoutException as e:
        raise RetryableError(f"Request timed out: {e}") from e
    except httpx.ConnectError as e:
        raise RetryableError(f"Connection failed: {e}") from e
    except httpx.HTTPStatusError as e:
        try:
            body = e.response.text
        except Exception:
            body = "(unable to read response body)"

        if e.response.status_code >= 500:
            raise RetryableError(f"HTTP {e.response.status_code}: {body}") from e
        raise RecordStoreError(f"HTTP {e.response.status_code}: {body}") from e


async def get_rows(
    path: str,
    params: dict | None = None,
    base_url: str | None = None,
    api_key: str | None = None,
) -> list[dict]:
    """GET a collection and return its rows.

    Raises:
        RecordStoreError: If the response body is not a JSON array
    """
    response = await request_with_retry("GET", path, params=params, base_url=base_url, api_key=api_key)
    try:
        rows = response.json()
    except ValueError as e:
        raise RecordStoreError(f"Invalid JSON from {path}: {e}") from e
    if not isinstance(rows, list):
        raise RecordStoreError(f"Expected a list of rows from {path}, got {type(rows).__name__}")
    return rows
