"""Library-level constants shared across modules."""
from __future__ import annotations

from enum import Enum


class HttpMethod(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    CONNECT = "CONNECT"
    TRACE = "TRACE"


class CONTENT_TYPE:
    FORM = "application/x-www-form-urlencoded"
    MULTIPART_FORM = "multipart/form-data"
    TEXT = "text/plain"
    JSON = "application/json"
    XML = "application/xml"
    YAML = "application/yaml"


CONTENT_TYPE_HEADER = "Content-Type"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Inclusive lower bound, exclusive upper bound.
SUCCESS_RANGE = (200, 300)
REDIRECT_RANGE = (300, 400)
CLIENT_ERROR_RANGE = (400, 500)
SERVER_ERROR_RANGE = (500, 600)
