"""Request builder: accumulates everything the client needs to dispatch one call.

Every configuration method mutates the instance and returns it, so calls
chain. A request is owned by one caller until it is handed to
`Client.dispatch`.
"""
from __future__ import annotations

from typing import IO, Any, Iterable, Union

from fluent_http.constants import CONTENT_TYPE, CONTENT_TYPE_HEADER, HttpMethod
from fluent_http.core.strings import has_prefix
from fluent_http.domain import codecs
from fluent_http.domain.context import RequestContext

Body = Union[bytes, IO[bytes], Iterable[bytes]]


def _append(values: dict[str, list[str]], key: str, value: str) -> None:
    if key in values:
        values[key].append(value)
    else:
        values[key] = [value]


class Request:
    def __init__(self) -> None:
        self._method: str = HttpMethod.GET.value
        self._endpoint: str = ""
        self._headers: dict[str, list[str]] = {}
        self._body: Body | None = None
        self._query_params: dict[str, list[str]] = {}
        self._context = RequestContext.background()

    def __repr__(self) -> str:
        return f"Request(method={self._method!r}, endpoint={self._endpoint!r})"

    def method(self, method: HttpMethod | str) -> Request:
        self._method = method.value if isinstance(method, HttpMethod) else str(method).upper()
        return self

    def endpoint(self, endpoint: str) -> Request:
        """Set the path; a leading "/" is added unless present or the path is empty."""
        if not has_prefix(endpoint, "/"):
            endpoint = "/" + endpoint
        self._endpoint = endpoint
        return self

    def header(self, key: str, value: str) -> Request:
        """Add a header value; repeated keys accumulate in insertion order."""
        _append(self._headers, key, value)
        return self

    def body(self, body: Body | None) -> Request:
        self._body = body
        return self

    def _typed_body(self, content_type: str, payload: bytes) -> Request:
        self.header(CONTENT_TYPE_HEADER, content_type)
        self._body = payload
        return self

    # Typed setters encode before touching the request, so a
    # BodySerializationError leaves headers and body as they were.

    def form_body(self, form_data: codecs.FormData) -> Request:
        return self._typed_body(CONTENT_TYPE.FORM, codecs.encode_form(form_data))

    def multipart_form_body(self, form_data: codecs.FormData) -> Request:
        """Send the url-encoded form under a multipart/form-data content type."""
        return self._typed_body(CONTENT_TYPE.MULTIPART_FORM, codecs.encode_form(form_data))

    def text_body(self, text: str) -> Request:
        return self._typed_body(CONTENT_TYPE.TEXT, codecs.encode_text(text))

    def json_body(self, value: Any) -> Request:
        return self._typed_body(CONTENT_TYPE.JSON, codecs.encode_json(value))

    def xml_body(self, value: Any) -> Request:
        return self._typed_body(CONTENT_TYPE.XML, codecs.encode_xml(value))

    def yaml_body(self, value: Any) -> Request:
        return self._typed_body(CONTENT_TYPE.YAML, codecs.encode_yaml(value))

    def query_param(self, key: str, value: str) -> Request:
        _append(self._query_params, key, value)
        return self

    def context(self, context: RequestContext) -> Request:
        self._context = context
        return self

    def get(self, endpoint: str) -> Request:
        return self.method(HttpMethod.GET).endpoint(endpoint)

    def post(self, endpoint: str) -> Request:
        return self.method(HttpMethod.POST).endpoint(endpoint)

    def put(self, endpoint: str) -> Request:
        return self.method(HttpMethod.PUT).endpoint(endpoint)

    def delete(self, endpoint: str) -> Request:
        return self.method(HttpMethod.DELETE).endpoint(endpoint)

    def patch(self, endpoint: str) -> Request:
        return self.method(HttpMethod.PATCH).endpoint(endpoint)

    def get_headers(self) -> dict[str, list[str]]:
        return self._headers

    def get_method(self) -> str:
        return self._method

    def get_endpoint(self) -> str:
        return self._endpoint

    def get_query_params(self) -> dict[str, list[str]]:
        return self._query_params

    def get_body(self) -> Body | None:
        return self._body

    def get_context(self) -> RequestContext:
        return self._context
