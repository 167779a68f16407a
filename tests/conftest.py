from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Sequence

import httpx
import pytest

from fluent_http.application.client import Client, with_base_url, with_header, with_transport
from fluent_http.domain.context import RequestContext
from fluent_http.ports.http_client import RawResponse, RequestBuildError

Handler = Callable[[httpx.Request], httpx.Response]


def echo_handler(request: httpx.Request) -> httpx.Response:
    """Answers with the method, URL, headers and body it received, as JSON."""
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "url": str(request.url),
            "headers": request.headers.multi_items(),
            "body": request.content.decode("utf-8"),
        },
    )


class SpyTransport(httpx.MockTransport):
    """httpx transport that records every request reaching the network layer."""

    def __init__(self, handler: Handler = echo_handler) -> None:
        super().__init__(handler)
        self.calls: list[httpx.Request] = []

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return super().handle_request(request)


class FakeHttpTransport:
    """Implements HttpTransport for tests; answers every send with a fixed RawResponse."""

    def __init__(
        self,
        response: RawResponse | None = None,
        *,
        raise_on_send: Exception | None = None,
    ) -> None:
        self.response = response or RawResponse(
            status_code=200,
            proto="HTTP/1.1",
            url="",
            body=b"{}",
            headers={"content-type": ["application/json"]},
        )
        self.built: list[httpx.Request] = []
        self.sent: list[tuple[httpx.Request, RequestContext]] = []
        self.closed = False
        self._raise_on_send = raise_on_send

    def build_request(
        self,
        method: str,
        url: str,
        *,
        headers: Sequence[tuple[str, str]],
        query: str = "",
        content: Any = None,
    ) -> httpx.Request:
        target = httpx.URL(url)
        if not target.scheme:
            raise RequestBuildError(f"request url must be absolute: {url!r}")
        if query:
            target = target.copy_with(query=query.encode("ascii"))
        request = httpx.Request(method, target, headers=list(headers), content=content)
        self.built.append(request)
        return request

    def send(self, request: httpx.Request, *, context: RequestContext) -> RawResponse:
        context.raise_if_done()
        if self._raise_on_send is not None:
            raise self._raise_on_send
        self.sent.append((request, context))
        return RawResponse(
            status_code=self.response.status_code,
            proto=self.response.proto,
            url=str(request.url),
            body=self.response.body,
            headers=self.response.headers,
        )

    def close(self) -> None:
        self.closed = True


def decode_echo(body: bytes) -> dict[str, Any]:
    return json.loads(body)


@pytest.fixture()
def fake_transport() -> FakeHttpTransport:
    return FakeHttpTransport()


@pytest.fixture()
def spy_transport() -> SpyTransport:
    return SpyTransport()


@pytest.fixture()
def api_client(spy_transport: SpyTransport):
    """Client pointed at http://api.test with a base X-Env header, backed by the spy transport."""
    client = Client(
        with_base_url("http://api.test"),
        with_header("X-Env", "test"),
        with_transport(spy_transport),
    )
    yield client
    client.close()


class SlowHandler(BaseHTTPRequestHandler):
    """Local endpoints that stall: /slow-headers waits before answering, /drip sends one byte per 0.3s."""

    server: LocalServer

    def do_GET(self) -> None:
        try:
            if self.path == "/slow-headers":
                self.server.release.wait(2)
                self._reply(b"late")
            elif self.path == "/drip":
                self.send_response(200)
                self.send_header("Content-Length", "8")
                self.end_headers()
                for _ in range(8):
                    if self.server.release.wait(0.3):
                        return
                    self.wfile.write(b"x")
                    self.wfile.flush()
            else:
                self._reply(b"ok")
        except (BrokenPipeError, ConnectionResetError):
            pass

    def _reply(self, body: bytes) -> None:
        self.send_response(200)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        pass


class LocalServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), SlowHandler)
        self.release = threading.Event()

    @property
    def base_url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


@pytest.fixture()
def local_server(monkeypatch):
    """Real HTTP server on a free loopback port; stalled handlers are released on teardown."""
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    server = LocalServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.release.set()
    server.shutdown()
    server.server_close()
