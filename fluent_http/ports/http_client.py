"""HTTP transport port: error taxonomy and the contract for executing requests.

The client and domain depend on this port; infrastructure (httpx) implements it.
Middleware receive the assembled `httpx.Request` the transport built, so the
request type is shared across the boundary.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    import httpx

    from fluent_http.domain.context import RequestContext


class HttpClientError(Exception):
    """Base for every failure raised by this library."""


class ConfigurationError(HttpClientError):
    """Raised when a client option carries an invalid value."""


class RequestBuildError(HttpClientError):
    """Raised when the URL or the platform request cannot be constructed."""


class BodySerializationError(HttpClientError):
    """Raised when a typed body setter cannot encode its value."""

    def __init__(self, message: str, *, content_type: str) -> None:
        super().__init__(message)
        self.content_type = content_type


class TransportError(HttpClientError):
    """Raised when the network call fails."""


class RequestTimeoutError(TransportError):
    """Raised when the call exceeds the configured timeout or the context deadline."""


class RequestCancelledError(TransportError):
    """Raised when the request context is cancelled before or during the call."""


class BodyReadError(HttpClientError):
    """Raised when the response body cannot be read in full."""


class ResponseDecodeError(HttpClientError):
    """Raised when a buffered body does not decode into the requested shape."""

    def __init__(self, message: str, *, content_type: str) -> None:
        super().__init__(message)
        self.content_type = content_type


# Mutates the assembled request in place; raising aborts dispatch.
Middleware = Callable[["httpx.Request"], None]


@dataclass(frozen=True)
class RawResponse:
    """Fully buffered transport result; the connection is already released."""

    status_code: int
    proto: str
    url: str
    body: bytes
    headers: dict[str, list[str]] = field(default_factory=dict)


@runtime_checkable
class HttpTransport(Protocol):
    """Port: build and execute requests. Implementations live in infrastructure."""

    def build_request(
        self,
        method: str,
        url: str,
        *,
        headers: Sequence[tuple[str, str]],
        query: str = "",
        content: Any = None,
    ) -> "httpx.Request":
        """Build the platform request; a non-empty `query` replaces the URL query string.

        Raise RequestBuildError on a malformed URL.
        """
        ...

    def send(self, request: "httpx.Request", *, context: "RequestContext") -> RawResponse:
        """Execute the request and buffer the body; raise TransportError or BodyReadError."""
        ...

    def close(self) -> None:
        """Release the connection pool."""
        ...
