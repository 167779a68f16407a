"""Client: shared base configuration, middleware and the dispatch pipeline.

A client is built once from options applied in order and then reused across
many dispatches; it keeps no per-call state. Dispatch merges base and request
headers, runs middleware in registration order (the first to raise aborts
the call before any network I/O), executes the call and returns a fully
buffered Response.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import urlencode, urlsplit

import httpx
from loguru import logger

from fluent_http.constants import DEFAULT_TIMEOUT_SECONDS, HttpMethod
from fluent_http.core import SERVICE_NAME
from fluent_http.domain.request import Request
from fluent_http.domain.response import Response
from fluent_http.infrastructure.http.factory import create_http_transport
from fluent_http.ports.http_client import (
    ConfigurationError,
    HttpClientError,
    HttpTransport,
    Middleware,
)


_PREVIEW_BYTES = 1024


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@dataclass
class ClientConfig:
    """Mutable configuration the options write into before the transport is built."""

    base_url: str = ""
    base_headers: dict[str, list[str]] = field(default_factory=dict)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    proxy_url: str = ""
    transport: httpx.BaseTransport | None = None


Option = Callable[[ClientConfig], None]


def with_base_url(base_url: str) -> Option:
    def apply(config: ClientConfig) -> None:
        config.base_url = base_url

    return apply


def with_timeout(seconds: float) -> Option:
    """Bound each whole round trip, body read included; 0 disables the timeout."""
    if seconds < 0:
        raise ConfigurationError(f"timeout must not be negative, got {seconds}")

    def apply(config: ClientConfig) -> None:
        config.timeout_seconds = float(seconds)

    return apply


def with_proxy(proxy_url: str) -> Option:
    parts = urlsplit(proxy_url)
    if not parts.scheme or not parts.netloc:
        raise ConfigurationError(f"invalid proxy url: {proxy_url!r}")

    def apply(config: ClientConfig) -> None:
        config.proxy_url = proxy_url

    return apply


def with_header(key: str, value: str) -> Option:
    """Add a base header value; repeated keys accumulate."""

    def apply(config: ClientConfig) -> None:
        config.base_headers.setdefault(key, []).append(value)

    return apply


def with_transport(transport: httpx.BaseTransport) -> Option:
    """Route calls through the given httpx transport (mock transports, custom mounts)."""

    def apply(config: ClientConfig) -> None:
        config.transport = transport

    return apply


def _body_preview(body: Any) -> str:
    if body is None:
        return "<empty>"
    if isinstance(body, bytes):
        return repr(body[:_PREVIEW_BYTES])
    # Streams are read lazily by the transport and are not consumed here.
    return f"<stream {type(body).__name__}>"


def _encode_query(params: dict[str, list[str]]) -> str:
    return urlencode([(key, value) for key in sorted(params) for value in params[key]])


class Client:
    def __init__(self, *options: Option, http_transport: HttpTransport | None = None) -> None:
        self._config = ClientConfig()
        for option in options:
            option(self._config)
        self._middleware: list[Middleware] = []
        self._transport = http_transport or create_http_transport(self._config)
        _log(
            "client_created",
            base_url=self._config.base_url,
            timeout_seconds=self._config.timeout_seconds,
            proxy=bool(self._config.proxy_url),
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def base_headers(self) -> dict[str, list[str]]:
        return self._config.base_headers

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return tuple(self._middleware)

    def use(self, middleware: Middleware) -> Client:
        self._middleware.append(middleware)
        _log(
            "middleware_registered",
            middleware=getattr(middleware, "__name__", type(middleware).__name__),
            position=len(self._middleware),
        )
        return self

    def _merged_headers(self, request: Request) -> list[tuple[str, str]]:
        merged: list[tuple[str, str]] = []
        for source in (self._config.base_headers, request.get_headers()):
            for key, values in source.items():
                merged.extend((key, value) for value in values)
        return merged

    def dispatch(self, request: Request) -> Response:
        full_url = self._config.base_url + request.get_endpoint()
        context = request.get_context()
        context.raise_if_done()

        query_params = request.get_query_params()
        outgoing = self._transport.build_request(
            request.get_method() or HttpMethod.GET.value,
            full_url,
            headers=self._merged_headers(request),
            query=_encode_query(query_params) if query_params else "",
            content=request.get_body(),
        )
        _log("request_dispatching", method=outgoing.method, url=str(outgoing.url))
        logger.debug("Request headers: {}", outgoing.headers.multi_items())
        logger.debug("Request body: {}", _body_preview(request.get_body()))

        for middleware in self._middleware:
            try:
                middleware(outgoing)
            except Exception as exc:
                _log(
                    "request_aborted_by_middleware",
                    method=outgoing.method,
                    url=str(outgoing.url),
                    error=str(exc),
                )
                raise

        try:
            raw = self._transport.send(outgoing, context=context)
        except HttpClientError as exc:
            _log("request_failed", method=outgoing.method, url=str(outgoing.url), error=str(exc))
            raise

        _log(
            "response_received",
            method=outgoing.method,
            url=raw.url,
            status_code=raw.status_code,
            body_length=len(raw.body),
        )
        logger.debug("Response body: {!r}", raw.body[:_PREVIEW_BYTES])

        return Response(
            request=request,
            status_code=raw.status_code,
            proto=raw.proto,
            body=raw.body,
            headers=raw.headers,
            url=raw.url,
        )

    def close(self) -> None:
        self._transport.close()
        _log("client_closed", base_url=self._config.base_url)

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
