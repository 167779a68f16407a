"""Response snapshot: status, protocol, headers and the fully buffered body."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fluent_http.constants import (
    CLIENT_ERROR_RANGE,
    REDIRECT_RANGE,
    SERVER_ERROR_RANGE,
    SUCCESS_RANGE,
)
from fluent_http.domain import codecs

if TYPE_CHECKING:
    from fluent_http.domain.request import Request


@dataclass(frozen=True)
class Response:
    """Immutable view of a completed call; the connection is already released.

    Header keys are lower-cased. Decoders never mutate the response and raise
    ResponseDecodeError on malformed bodies.
    """

    request: "Request" = field(repr=False, compare=False)
    status_code: int
    proto: str
    body: bytes
    headers: dict[str, list[str]] = field(default_factory=dict)
    url: str = ""

    def _in(self, band: tuple[int, int]) -> bool:
        low, high = band
        return low <= self.status_code < high

    def is_success(self) -> bool:
        return self._in(SUCCESS_RANGE)

    def is_redirect(self) -> bool:
        return self._in(REDIRECT_RANGE)

    def is_client_error(self) -> bool:
        return self._in(CLIENT_ERROR_RANGE)

    def is_server_error(self) -> bool:
        return self._in(SERVER_ERROR_RANGE)

    def is_error(self) -> bool:
        return self.is_client_error() or self.is_server_error()

    def get_header(self, name: str) -> str | None:
        values = self.headers.get(name.lower())
        return values[0] if values else None

    def text_body(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json_body(self, target: Any = None) -> Any:
        return codecs.decode_json(self.body, target)

    def xml_body(self, target: Any = None) -> Any:
        """Root Element without a target; otherwise the root's content validated into it."""
        return codecs.decode_xml(self.body, target)

    def yaml_body(self, target: Any = None) -> Any:
        return codecs.decode_yaml(self.body, target)
