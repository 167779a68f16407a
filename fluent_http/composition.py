"""Composition root: turn settings into client options and build the client.

Settings come first so that caller-supplied options override them.
"""
from __future__ import annotations

from fluent_http.application.client import (
    Client,
    Option,
    with_base_url,
    with_header,
    with_proxy,
    with_timeout,
)
from fluent_http.config.settings import ClientSettings


def options_from_settings(settings: ClientSettings) -> list[Option]:
    options: list[Option] = [
        with_base_url(settings.base_url),
        with_timeout(settings.timeout_seconds),
    ]
    if settings.proxy_url:
        options.append(with_proxy(settings.proxy_url))
    if settings.user_agent:
        options.append(with_header("User-Agent", settings.user_agent))
    return options


def create_client(settings: ClientSettings | None = None, *options: Option) -> Client:
    settings = settings or ClientSettings()
    return Client(*options_from_settings(settings), *options)
