"""HTTP transport factory: builds HttpTransport from client configuration (no provider logic in the client)."""
from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from fluent_http.infrastructure.http.httpx_client import HttpxTransport
from fluent_http.ports.http_client import HttpTransport

if TYPE_CHECKING:
    from fluent_http.application.client import ClientConfig


def create_http_transport(config: ClientConfig) -> HttpTransport:
    """Build the transport. An injected httpx transport replaces the network layer.

    A zero timeout disables it. The adapter bounds each whole round trip by the
    timeout, capped to the request context deadline.
    """
    httpx_client = httpx.Client(
        timeout=httpx.Timeout(config.timeout_seconds or None),
        proxy=config.proxy_url or None,
        transport=config.transport,
        follow_redirects=True,
    )
    return HttpxTransport(httpx_client, timeout_seconds=config.timeout_seconds)
