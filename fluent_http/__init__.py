"""Fluent HTTP request builder, shared client and response inspection."""
from fluent_http.application.client import (
    Client,
    ClientConfig,
    Option,
    with_base_url,
    with_header,
    with_proxy,
    with_timeout,
    with_transport,
)
from fluent_http.composition import create_client
from fluent_http.config.settings import ClientSettings
from fluent_http.constants import HttpMethod
from fluent_http.domain.context import RequestContext
from fluent_http.domain.request import Request
from fluent_http.domain.response import Response
from fluent_http.ports.http_client import (
    BodyReadError,
    BodySerializationError,
    ConfigurationError,
    HttpClientError,
    Middleware,
    RequestBuildError,
    RequestCancelledError,
    RequestTimeoutError,
    ResponseDecodeError,
    TransportError,
)

__all__ = [
    "BodyReadError",
    "BodySerializationError",
    "Client",
    "ClientConfig",
    "ClientSettings",
    "ConfigurationError",
    "HttpClientError",
    "HttpMethod",
    "Middleware",
    "Option",
    "Request",
    "RequestBuildError",
    "RequestCancelledError",
    "RequestContext",
    "RequestTimeoutError",
    "Response",
    "ResponseDecodeError",
    "TransportError",
    "create_client",
    "with_base_url",
    "with_header",
    "with_proxy",
    "with_timeout",
    "with_transport",
]
