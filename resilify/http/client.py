"""Outbound HTTP calls that honour the active cancellation signal."""

from __future__ import annotations

from typing import Any

import httpx

from resilify.resilience.cancellation import CancellationSignal, current_signal, run_with_signal


async def resilient_request(
    method: str,
    url: httpx.URL | str,
    *,
    signal: CancellationSignal | None = None,
    client: httpx.AsyncClient | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """Send an HTTP request that aborts when its cancellation signal fires.

    Inside an attempt wrapped with ``use_cancel_signal=True`` the attempt's
    signal is picked up automatically, so the request is abandoned when
    the attempt times out.

    Args:
        method: HTTP method.
        url: Request URL.
        signal: Explicit signal. Defaults to the active signal.
        client: Client to send with. A short-lived client is created and
            closed when omitted.
        **kwargs: Passed to ``httpx.AsyncClient.request``.

    Returns:
        The response.

    Raises:
        CancelledError: If the signal fired before the response arrived.
        httpx.HTTPError: Transport failures, unchanged.

    Example:
        >>> @resilient(timeout_ms=2_000, use_cancel_signal=True)
        ... async def load(user_id: int) -> dict:
        ...     response = await resilient_request("GET", f"https://api.example.com/users/{user_id}")
        ...     return response.json()
    """
    if signal is None:
        signal = current_signal()
    if signal is not None:
        signal.raise_if_cancelled()

    if client is not None:
        return await run_with_signal(client.request(method, url, **kwargs), signal)

    async with httpx.AsyncClient() as owned:
        return await run_with_signal(owned.request(method, url, **kwargs), signal)
