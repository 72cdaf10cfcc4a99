"""HTTP helpers shared by the upstream platform adapters.

Transient network failures (timeouts, refused connections) are retried with
exponential backoff; HTTP status errors are not.
"""

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from port.identity_provider import ProviderError

API_TIMEOUT_SECONDS = 10.0

retry_transient = retry(
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    reraise=True,
)


@retry_transient
async def get_with_retry(
    client: httpx.AsyncClient,
    url: str,
    params: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    return await client.get(url, params=params, headers=headers)


@retry_transient
async def post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    data: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    return await client.post(url, data=data, headers=headers)


def json_object(response: httpx.Response, provider: str) -> dict:
    """Decode a response body that must be a JSON object."""
    try:
        payload = response.json()
    except ValueError as e:
        raise ProviderError(provider, "malformed JSON response") from e
    if not isinstance(payload, dict):
        raise ProviderError(provider, f"expected a JSON object, got {type(payload).__name__}")
    return payload


def dict_items(value) -> list[dict]:
    """The dict entries of a JSON array; anything else yields nothing."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
