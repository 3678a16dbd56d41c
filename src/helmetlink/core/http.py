"""
HTTP helpers.

One blocking GET-JSON call shared by provider clients. It always sends a
User-Agent (Nominatim rejects anonymous clients) and raises on non-2xx, leaving
retry and error mapping to the caller.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "helmetlink/0.1.0 (+https://local)"


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 10,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.get(url, params=params, headers=request_headers)
        resp.raise_for_status()
        return resp.json()
