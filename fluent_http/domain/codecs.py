"""Body codecs: encode request bodies and decode buffered response bodies.

Encoders raise BodySerializationError; decoders raise ResponseDecodeError.
Decoders optionally validate the decoded value into a caller-supplied type
(pydantic model, dataclass, typed container) through pydantic.TypeAdapter.

XML mapping convention, shared by both directions: keys starting with "@" are
attributes, "#text" is element text, list values repeat the element.
"""
from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from typing import Any, Iterable, Mapping
from urllib.parse import urlencode

import yaml
from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from fluent_http.constants import CONTENT_TYPE
from fluent_http.ports.http_client import BodySerializationError, ResponseDecodeError

_XML_NAME = re.compile(r"^[A-Za-z_][\w.\-]*$")
_ATTR_PREFIX = "@"
_TEXT_KEY = "#text"

FormData = Mapping[str, Any] | Iterable[tuple[str, Any]]


def form_pairs(data: FormData) -> list[tuple[str, str]]:
    """Flatten form data into (key, value) pairs, keys sorted, values in given order."""
    items = data.items() if isinstance(data, Mapping) else data
    grouped: dict[str, list[str]] = {}
    for key, value in items:
        values = value if isinstance(value, (list, tuple)) else [value]
        grouped.setdefault(str(key), []).extend("" if v is None else str(v) for v in values)
    return [(key, v) for key in sorted(grouped) for v in grouped[key]]


def encode_form(data: FormData) -> bytes:
    try:
        return urlencode(form_pairs(data)).encode("ascii")
    except (TypeError, ValueError) as exc:
        raise BodySerializationError(f"form encoding failed: {exc}", content_type=CONTENT_TYPE.FORM) from exc


def encode_text(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise BodySerializationError(f"text encoding failed: {exc}", content_type=CONTENT_TYPE.TEXT) from exc


def _jsonable(value: Any) -> Any:
    return to_jsonable_python(value)


def encode_json(value: Any) -> bytes:
    try:
        return json.dumps(value, default=_jsonable, allow_nan=False, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError, PydanticSerializationError) as exc:
        raise BodySerializationError(f"json encoding failed: {exc}", content_type=CONTENT_TYPE.JSON) from exc


def encode_yaml(value: Any) -> bytes:
    try:
        plain = to_jsonable_python(value)
        return yaml.safe_dump(plain, sort_keys=False, allow_unicode=True).encode("utf-8")
    except (PydanticSerializationError, yaml.YAMLError) as exc:
        raise BodySerializationError(f"yaml encoding failed: {exc}", content_type=CONTENT_TYPE.YAML) from exc


def _xml_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _check_tag(tag: str) -> str:
    if not isinstance(tag, str) or not _XML_NAME.match(tag):
        raise ValueError(f"invalid xml element name: {tag!r}")
    return tag


def _fill_element(element: ET.Element, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, Mapping):
        element.text = _xml_text(value)
        return
    for key, child in value.items():
        if key == _TEXT_KEY:
            element.text = _xml_text(child)
        elif isinstance(key, str) and key.startswith(_ATTR_PREFIX):
            element.set(_check_tag(key[1:]), _xml_text(child))
        else:
            tag = _check_tag(key)
            for item in child if isinstance(child, list) else [child]:
                _fill_element(ET.SubElement(element, tag), item)


def to_element(value: Any) -> ET.Element:
    """Build an element tree from an Element, a single-root mapping, or a model/dataclass."""
    if isinstance(value, ET.Element):
        return value
    if isinstance(value, Mapping):
        if len(value) != 1:
            raise ValueError("xml mapping must have exactly one root key")
        ((tag, content),) = value.items()
        root = ET.Element(_check_tag(tag))
        _fill_element(root, content)
        return root
    if isinstance(value, (str, bytes, int, float, list, tuple)) or value is None:
        raise ValueError(f"cannot encode {type(value).__name__} as an xml document")
    root = ET.Element(_check_tag(type(value).__name__))
    _fill_element(root, to_jsonable_python(value))
    return root


def encode_xml(value: Any) -> bytes:
    try:
        return ET.tostring(to_element(value), encoding="unicode").encode("utf-8")
    except (TypeError, ValueError, PydanticSerializationError) as exc:
        raise BodySerializationError(f"xml encoding failed: {exc}", content_type=CONTENT_TYPE.XML) from exc


def element_to_value(element: ET.Element) -> Any:
    """Convert an element's content into plain data (the inverse of the mapping convention)."""
    children = list(element)
    text = (element.text or "").strip()
    if not children and not element.attrib:
        return text
    result: dict[str, Any] = {f"{_ATTR_PREFIX}{k}": v for k, v in element.attrib.items()}
    for child in children:
        value = element_to_value(child)
        if child.tag in result:
            existing = result[child.tag]
            if not isinstance(existing, list):
                result[child.tag] = existing = [existing]
            existing.append(value)
        else:
            result[child.tag] = value
    if text:
        result[_TEXT_KEY] = text
    return result


def shape(data: Any, target: Any, *, content_type: str) -> Any:
    """Validate decoded data into `target`; returns `data` unchanged when target is None."""
    if target is None:
        return data
    try:
        return TypeAdapter(target).validate_python(data)
    except ValidationError as exc:
        raise ResponseDecodeError(
            f"decoded body does not match {getattr(target, '__name__', target)}: {exc}",
            content_type=content_type,
        ) from exc


def decode_json(body: bytes, target: Any = None) -> Any:
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ResponseDecodeError(f"malformed json body: {exc}", content_type=CONTENT_TYPE.JSON) from exc
    return shape(data, target, content_type=CONTENT_TYPE.JSON)


def decode_yaml(body: bytes, target: Any = None) -> Any:
    try:
        data = yaml.safe_load(body)
    except yaml.YAMLError as exc:
        raise ResponseDecodeError(f"malformed yaml body: {exc}", content_type=CONTENT_TYPE.YAML) from exc
    return shape(data, target, content_type=CONTENT_TYPE.YAML)


def decode_xml(body: bytes, target: Any = None) -> Any:
    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise ResponseDecodeError(f"malformed xml body: {exc}", content_type=CONTENT_TYPE.XML) from exc
    if target is None:
        return root
    return shape(element_to_value(root), target, content_type=CONTENT_TYPE.XML)
