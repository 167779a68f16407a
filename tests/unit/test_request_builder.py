"""Unit tests for the Request builder: chaining, normalization, accumulation, typed bodies."""
from __future__ import annotations

import io
import json
from dataclasses import dataclass

import pytest

from fluent_http.constants import CONTENT_TYPE, HttpMethod
from fluent_http.domain.context import RequestContext
from fluent_http.domain.request import Request
from fluent_http.ports.http_client import BodySerializationError
from tests.test_data import ENDPOINT_CASES


@dataclass
class Pet:
    name: str
    age: int


def test_new_request_defaults():
    req = Request()
    assert req.get_method() == "GET"
    assert req.get_endpoint() == ""
    assert req.get_headers() == {}
    assert req.get_query_params() == {}
    assert req.get_body() is None
    assert req.get_context().done() is False


@pytest.mark.parametrize("endpoint,expected", ENDPOINT_CASES)
def test_endpoint_normalization(endpoint, expected):
    assert Request().endpoint(endpoint).get_endpoint() == expected


def test_every_setter_returns_same_instance():
    req = Request()
    ctx = RequestContext.with_cancel()
    assert req.method("GET") is req
    assert req.endpoint("x") is req
    assert req.header("A", "1") is req
    assert req.body(b"raw") is req
    assert req.form_body({"a": "1"}) is req
    assert req.multipart_form_body({"a": "1"}) is req
    assert req.text_body("hi") is req
    assert req.json_body({"a": 1}) is req
    assert req.xml_body({"a": "1"}) is req
    assert req.yaml_body({"a": 1}) is req
    assert req.query_param("q", "1") is req
    assert req.context(ctx) is req
    for shorthand in (req.get, req.post, req.put, req.delete, req.patch):
        assert shorthand("/x") is req


def test_headers_accumulate_in_insertion_order():
    req = Request().header("X-Tag", "a").header("X-Other", "z").header("X-Tag", "b").header("X-Tag", "c")
    assert req.get_headers() == {"X-Tag": ["a", "b", "c"], "X-Other": ["z"]}


def test_query_params_accumulate():
    req = Request().query_param("id", "1").query_param("id", "2").query_param("q", "x")
    assert req.get_query_params() == {"id": ["1", "2"], "q": ["x"]}


@pytest.mark.parametrize(
    "shorthand,method",
    [("get", "GET"), ("post", "POST"), ("put", "PUT"), ("delete", "DELETE"), ("patch", "PATCH")],
)
def test_shorthands_set_method_and_endpoint(shorthand, method):
    req = getattr(Request(), shorthand)("users")
    assert req.get_method() == method
    assert req.get_endpoint() == "/users"


def test_method_accepts_enum_and_string():
    assert Request().method(HttpMethod.OPTIONS).get_method() == "OPTIONS"
    assert Request().method("head").get_method() == "HEAD"


def test_raw_body_is_kept_as_given():
    stream = io.BytesIO(b"payload")
    req = Request().body(stream)
    assert req.get_body() is stream
    assert "Content-Type" not in req.get_headers()


def test_form_body_sets_content_type_and_encodes_sorted():
    req = Request().form_body({"b": "2", "a": ["1", "x y"]})
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.FORM]
    assert req.get_body() == b"a=1&a=x+y&b=2"


def test_multipart_form_body_uses_multipart_content_type():
    req = Request().multipart_form_body([("k", "v")])
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.MULTIPART_FORM]
    assert req.get_body() == b"k=v"


def test_text_body():
    req = Request().text_body("héllo")
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.TEXT]
    assert req.get_body() == "héllo".encode("utf-8")


def test_json_body_encodes_dataclass():
    req = Request().json_body(Pet(name="Rex", age=3))
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.JSON]
    assert json.loads(req.get_body()) == {"name": "Rex", "age": 3}


def test_xml_body_encodes_single_root_mapping():
    req = Request().xml_body({"pet": {"@id": 7, "name": "Rex"}})
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.XML]
    assert req.get_body() == b'<pet id="7"><name>Rex</name></pet>'


def test_yaml_body():
    req = Request().yaml_body({"name": "Rex", "age": 3})
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.YAML]
    assert req.get_body() == b"name: Rex\nage: 3\n"


def test_second_typed_body_appends_content_type():
    req = Request().text_body("a").json_body({"a": 1})
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.TEXT, CONTENT_TYPE.JSON]
    assert req.get_body() == b'{"a": 1}'


def test_json_serialization_failure_raises_and_leaves_request_untouched():
    req = Request().text_body("keep")
    with pytest.raises(BodySerializationError) as exc_info:
        req.json_body({"bad": object()})
    assert exc_info.value.content_type == CONTENT_TYPE.JSON
    assert req.get_headers()["Content-Type"] == [CONTENT_TYPE.TEXT]
    assert req.get_body() == b"keep"


def test_xml_serialization_failure_raises():
    with pytest.raises(BodySerializationError):
        Request().xml_body({"a": 1, "b": 2})


def test_text_body_with_lone_surrogate_raises_and_leaves_request_untouched():
    req = Request()
    with pytest.raises(BodySerializationError) as exc_info:
        req.text_body("broken \ud800")
    assert exc_info.value.content_type == CONTENT_TYPE.TEXT
    assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)
    assert req.get_headers() == {}
    assert req.get_body() is None


def test_context_replaces_handle():
    ctx = RequestContext.with_timeout(5)
    req = Request().context(ctx)
    assert req.get_context() is ctx
