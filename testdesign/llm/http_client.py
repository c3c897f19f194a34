"""Outbound HTTP for LLM providers.

Every provider call goes through ``request_with_timeout``: one httpx request,
its own timeout, and failures mapped onto the provider error taxonomy so a
timeout is distinguishable from a refused connection or a non-2xx answer.

Tests inject an ``httpx.MockTransport`` through the ``transport`` argument.
"""

from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

from testdesign.llm.errors import ProviderRequestError, ProviderTimeoutError
from testdesign.utils.logging import log, get_logger

MODULE = "llm.http"
logger = get_logger()

DEFAULT_REQUEST_TIMEOUT_S = 60.0


async def request_with_timeout(
    method: str,
    url: str,
    *,
    error_label: str,
    timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs: Any,
) -> httpx.Response:
    """Send a single request bounded by ``timeout_s``.

    The response is returned whatever its status; callers decide how a
    non-2xx answer maps to an error.

    Raises:
        ProviderTimeoutError: the request did not complete in time
        ProviderRequestError: the request could not be sent at all
    """
    async with httpx.AsyncClient(transport=transport, timeout=timeout_s) as client:
        try:
            return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            log.warning(logger, MODULE, "request_timeout", error_label,
                        host=urlsplit(url).netloc, timeout_s=timeout_s,
                        error_type=type(e).__name__)
            raise ProviderTimeoutError(error_label, timeout_s) from e
        except httpx.HTTPError as e:
            log.warning(logger, MODULE, "request_failed", error_label,
                        host=urlsplit(url).netloc, error=str(e),
                        error_type=type(e).__name__)
            raise ProviderRequestError(f"{error_label}: {e}") from e


def read_error_body(response: httpx.Response) -> str:
    """Best-effort response body for error messages."""
    try:
        return response.text
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        return "<failed to read error body>"


def read_json_object(response: httpx.Response, label: str) -> dict[str, Any]:
    """Decode a 2xx body as a JSON object.

    A body that is not JSON, or not an object, comes back as ``{}`` so the
    caller's envelope lookups fall through to their empty defaults.
    """
    try:
        data = response.json()
    except ValueError:
        log.warning(logger, MODULE, "decode_failed", f"{label}: response is not JSON",
                    host=response.request.url.host, status=response.status_code,
                    content_type=response.headers.get("content-type"))
        return {}
    if not isinstance(data, dict):
        log.warning(logger, MODULE, "decode_failed", f"{label}: response is not a JSON object",
                    host=response.request.url.host, body_type=type(data).__name__)
        return {}
    return data


def dict_items(value: Any) -> list[dict[str, Any]]:
    """The dict entries of a JSON list; anything else yields no entries."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def assert_valid_url(value: str, field_name: str) -> str:
    """Validate an http(s) base URL and strip its trailing slash."""
    trimmed = value.strip()
    parts = urlsplit(trimmed)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"{field_name} must be an http(s) URL")
    return trimmed.rstrip("/")
