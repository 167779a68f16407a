"""Concrete HTTP transport using httpx (injected where HttpTransport is needed)."""
from __future__ import annotations

import threading
import time
from typing import Any, Sequence

import httpx

from fluent_http.domain.context import RequestContext
from fluent_http.ports.http_client import (
    BodyReadError,
    HttpClientError,
    HttpTransport,
    RawResponse,
    RequestBuildError,
    RequestCancelledError,
    RequestTimeoutError,
    TransportError,
)


def _multi_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for key, value in headers.multi_items():
        result.setdefault(key, []).append(value)
    return result


class HttpxTransport(HttpTransport):
    """HttpTransport implementation using a shared httpx.Client.

    The httpx client owns the connection pool and is safe to share across
    threads; requests and responses are not.
    """

    def __init__(self, client: httpx.Client, *, timeout_seconds: float) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    def build_request(
        self,
        method: str,
        url: str,
        *,
        headers: Sequence[tuple[str, str]],
        query: str = "",
        content: Any = None,
    ) -> httpx.Request:
        try:
            target = httpx.URL(url)
            if query:
                target = target.copy_with(query=query.encode("ascii"))
            if not target.scheme or not target.host:
                raise RequestBuildError(f"request url must be absolute: {url!r}")
            return self._client.build_request(
                method,
                target,
                headers=list(headers),
                content=content,
            )
        except httpx.InvalidURL as exc:
            raise RequestBuildError(f"invalid request url {url!r}: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise RequestBuildError(f"cannot build {method} request for {url}: {exc}") from exc

    def _deadline(self, context: RequestContext) -> float | None:
        """Monotonic deadline for the whole round trip: client timeout or context deadline, whichever is first."""
        deadlines = [] if context.deadline is None else [context.deadline]
        if self._timeout_seconds > 0:
            deadlines.append(time.monotonic() + self._timeout_seconds)
        return min(deadlines) if deadlines else None

    def send(self, request: httpx.Request, *, context: RequestContext) -> RawResponse:
        """Run the round trip on a worker thread and wait for it, the deadline or cancellation.

        On cancellation or deadline the in-flight response is closed and the
        worker is abandoned; it finishes on its own within the httpx step timeout.
        """
        context.raise_if_done()
        deadline = self._deadline(context)
        step_timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
        request.extensions["timeout"] = httpx.Timeout(step_timeout).as_dict()

        call = _RoundTrip(self._client, request, context=context, deadline=deadline)
        unregister = context.on_cancel(call.wake.set)
        worker = threading.Thread(target=call.run, name="fluent-http-call", daemon=True)
        worker.start()
        try:
            call.wake.wait(None if deadline is None else max(0.0, deadline - time.monotonic()))
        finally:
            unregister()

        if not call.done.is_set():
            call.abandon()
            context.raise_if_done()
            raise RequestTimeoutError(f"timeout while calling {request.url}")
        return call.outcome()

    def close(self) -> None:
        self._client.close()


class _RoundTrip:
    """One send plus full body read, executed on a worker thread."""

    def __init__(
        self,
        client: httpx.Client,
        request: httpx.Request,
        *,
        context: RequestContext,
        deadline: float | None,
    ) -> None:
        self._client = client
        self._request = request
        self._context = context
        self._deadline = deadline
        self._response: httpx.Response | None = None
        self._abandoned = False
        self._lock = threading.Lock()
        self._phase = "send"
        self._result: RawResponse | None = None
        self._error: Exception | None = None
        self.wake = threading.Event()
        self.done = threading.Event()

    def _check(self) -> None:
        self._context.raise_if_done()
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise RequestTimeoutError(f"timeout while reading body from {self._request.url}")

    def run(self) -> None:
        try:
            self._result = self._round_trip()
        except Exception as exc:
            self._error = exc
        finally:
            self.done.set()
            self.wake.set()

    def _round_trip(self) -> RawResponse:
        response = self._client.send(self._request, stream=True)
        with self._lock:
            self._response = response
        self._phase = "read"
        try:
            if self._abandoned:
                response.close()
            chunks: list[bytes] = []
            for chunk in response.iter_bytes():
                self._check()
                chunks.append(chunk)
            self._check()
        finally:
            response.close()
        return RawResponse(
            status_code=response.status_code,
            proto=response.http_version,
            url=str(response.url),
            body=b"".join(chunks),
            headers=_multi_headers(response.headers),
        )

    def abandon(self) -> None:
        with self._lock:
            self._abandoned = True
            response = self._response
        # A worker still waiting for headers closes its own response once they arrive.
        if response is not None:
            response.close()

    def outcome(self) -> RawResponse:
        exc = self._error
        if exc is None:
            assert self._result is not None
            return self._result
        if isinstance(exc, HttpClientError):
            raise exc
        url = self._request.url
        if self._context.cancelled():
            raise RequestCancelledError(f"request to {url} cancelled") from exc
        if isinstance(exc, httpx.TimeoutException) or self._context.expired():
            raise RequestTimeoutError(f"timeout while calling {url}") from exc
        if self._phase == "read" and isinstance(exc, (httpx.HTTPError, httpx.StreamError)):
            raise BodyReadError(f"reading body from {url} failed: {exc}") from exc
        if isinstance(exc, httpx.HTTPError):
            raise TransportError(f"http call failed for {url}: {exc}") from exc
        raise exc
