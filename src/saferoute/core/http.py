"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the routing providers.

Design goals:
- Small surface area (GET JSON, POST JSON).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail (providers turn it into a fallback).

`timeout_seconds` bounds the whole attempt, not just each socket operation: bodies are
streamed and the read is abandoned once the attempt's `Deadline` runs out. httpx applies
the same value to each connect/read, so a stalled read can overrun by at most one read timeout.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from saferoute.core.time import Deadline

DEFAULT_USER_AGENT = "saferoute/0.1.0 (+https://local)"


def _headers(extra: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if extra:
        request_headers.update(extra)
    return request_headers


def _read_body(resp: httpx.Response, deadline: Deadline) -> bytes:
    chunks: list[bytes] = []
    for chunk in resp.iter_bytes():
        chunks.append(chunk)
        if deadline.expired():
            raise httpx.ReadTimeout("attempt deadline exceeded", request=resp.request)
    return b"".join(chunks)


def _send_json(
    method: str,
    url: str,
    *,
    timeout_seconds: float,
    transport: httpx.BaseTransport | None,
    allow_error_body: bool,
    **request_kwargs: Any,
) -> Any:
    deadline = Deadline(timeout_seconds)
    with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
        with client.stream(method, url, **request_kwargs) as resp:
            raw = _read_body(resp, deadline)
            if resp.is_error:
                try:
                    body = json.loads(raw)
                except ValueError:
                    body = None
                if allow_error_body and isinstance(body, dict) and "error" in body:
                    return body
                resp.raise_for_status()
            return json.loads(raw)


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 5,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors (including timeouts) or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    return _send_json(
        "GET",
        url,
        params=params,
        headers=_headers(headers),
        timeout_seconds=timeout_seconds,
        transport=transport,
        allow_error_body=False,
    )


def post_json(
    url: str,
    *,
    payload: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 5,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    """POST `payload` as a JSON body and return the decoded JSON response.

    Error responses whose body is JSON (e.g. `{"error": {...}}`) are returned as-is so the
    caller can inspect the provider's error payload; other non-2xx responses raise.

    Raises:
        httpx.HTTPError: On transport errors (including timeouts) or non-2xx, non-JSON responses.
        ValueError: If a 2xx response body is not valid JSON.
    """
    return _send_json(
        "POST",
        url,
        json=payload,
        headers=_headers(headers),
        timeout_seconds=timeout_seconds,
        transport=transport,
        allow_error_body=True,
    )
